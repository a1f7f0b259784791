"""Terminal renderings of Stripe models."""

import json
from dataclasses import asdict

from .models import CheckoutSession, Customer, Product, TaxRate


def format_amount(cents: int) -> str:
    """4900 -> "49", 499 -> "4.99"."""
    whole, fraction = divmod(cents, 100)
    if fraction:
        return f"{whole}.{fraction:02d}"
    return str(whole)


def format_user_line(customer: Customer) -> str:
    return (
        f"{customer.id:<20} {customer.email or '':<25} "
        f"{customer.status_label:<10} lang={customer.language:<4}"
    )


def format_user_record(customer: Customer) -> str:
    """Key: value lines, terminated by an empty line."""
    lines = [f"ID: {customer.id}", f"Verified: {customer.status_label}"]
    if customer.hash1 is not None:
        lines.append(f"Hash1: {customer.hash1}")
    for tax_id in customer.tax_ids:
        lines.append(f"TaxType: {tax_id.type}")
        lines.append(f"TaxID: {tax_id.value}")
    if customer.name:
        lines.append(f"Name: {customer.name}")
    if customer.email:
        lines.append(f"Email: {customer.email}")
    if customer.ecode is not None:
        lines.append(f"Ecode: {customer.ecode}")
    if customer.phone:
        lines.append(f"Phone: {customer.phone}")
    if customer.description:
        lines.append(f"Description: {customer.description}")

    address = customer.address
    if address is not None:
        for label, value in (
            ("City", address.city),
            ("Country", address.country),
            ("Addr1", address.line1),
            ("Addr2", address.line2),
            ("Zipcode", address.postal_code),
            ("State", address.state),
        ):
            if value:
                lines.append(f"{label}: {value}")

    lines.append("")
    return "\n".join(lines) + "\n"


def format_user_json(customer: Customer) -> str:
    """The customer record as Stripe returned it, or the model when there is none."""
    data = customer.raw
    if not data:
        data = asdict(customer)
        del data["raw"]
    return json.dumps(data, default=str, indent=2, sort_keys=True)


def format_product_line(
    product: Product, with_price_id: bool = True, with_price_info: bool = True
) -> str:
    line = f"{product.id:<20}"
    price = product.default_price
    if price is not None and with_price_id:
        line += f" p={price.id:<30}"
    if price is not None and with_price_info:
        line += f" i={format_amount(price.unit_amount)}{price.currency}"
        if price.recurring_interval:
            line += f",{price.recurring_interval_count or 1},{price.recurring_interval}"
    return line + f" n={product.name}"


def format_tax_rate_line(tax_rate: TaxRate) -> str:
    return (
        f"{tax_rate.id} {tax_rate.jurisdiction or ''} {tax_rate.display_name} "
        f"{tax_rate.percentage:f} active={'true' if tax_rate.active else 'false'}"
    )


def format_session_record(session: CheckoutSession) -> str:
    return f"ID: {session.id}\nURL: {session.url}"
