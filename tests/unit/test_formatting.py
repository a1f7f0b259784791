"""Tests for terminal renderings."""

import json

import pytest

from ustripe.formatting import (
    format_amount,
    format_product_line,
    format_session_record,
    format_tax_rate_line,
    format_user_json,
    format_user_line,
    format_user_record,
)
from ustripe.mock import (
    checkout_session_factory,
    customer_factory,
    price_factory,
    product_factory,
    tax_rate_factory,
)
from ustripe.models import Address, TaxId


@pytest.mark.parametrize(
    "cents,expected", [(4900, "49"), (499, "4.99"), (5, "0.05"), (0, "0"), (12050, "120.50")]
)
def test_format_amount(cents, expected):
    assert format_amount(cents) == expected


class TestUserFormats:
    """Tests for customer renderings."""

    def test_user_line(self):
        customer = customer_factory(
            id="cus_1", email="jane@example.com", metadata={"status": "verified"}
        )
        line = format_user_line(customer)

        assert line.split() == ["cus_1", "jane@example.com", "verified", "lang=auto"]

    def test_user_line_language(self):
        customer = customer_factory(id="cus_1", email="a@b.com", preferred_locales=["en-GB"])
        assert "lang=en-GB" in format_user_line(customer)
        assert "unverified" in format_user_line(customer)

    def test_user_record(self):
        customer = customer_factory(
            id="cus_1",
            email="jane@example.com",
            name="Jane Doe",
            phone="+34600000000",
            metadata={"hash1": "$1$pstripe$x", "status": "verified", "ecode": "abc"},
            tax_ids=[TaxId(id="txi_1", type="es_cif", value="B12345678")],
            address=Address(city="Bilbao", postal_code="48001"),
        )

        assert format_user_record(customer) == (
            "ID: cus_1\n"
            "Verified: verified\n"
            "Hash1: $1$pstripe$x\n"
            "TaxType: es_cif\n"
            "TaxID: B12345678\n"
            "Name: Jane Doe\n"
            "Email: jane@example.com\n"
            "Ecode: abc\n"
            "Phone: +34600000000\n"
            "City: Bilbao\n"
            "Zipcode: 48001\n"
            "\n"
        )

    def test_minimal_user_record(self):
        customer = customer_factory(id="cus_1", email=None)
        assert format_user_record(customer) == "ID: cus_1\nVerified: unverified\n\n"

    def test_user_json(self):
        customer = customer_factory(id="cus_1", email="jane@example.com", metadata={"a": "b"})
        data = json.loads(format_user_json(customer))

        assert data["id"] == "cus_1"
        assert data["email"] == "jane@example.com"
        assert data["metadata"] == {"a": "b"}
        assert "raw" not in data

    def test_user_json_prefers_stripe_record(self):
        customer = customer_factory(id="cus_1")
        customer.raw = {"id": "cus_1", "object": "customer", "subscriptions": {"data": []}}

        assert json.loads(format_user_json(customer)) == customer.raw


class TestCatalogFormats:
    def test_product_line(self):
        product = product_factory(
            id="prod_basic",
            name="Basic plan",
            default_price=price_factory(id="price_basic", unit_amount=499, currency="eur"),
        )

        assert format_product_line(product) == (
            f"{'prod_basic':<20} p={'price_basic':<30} i=4.99eur,1,month n=Basic plan"
        )

    def test_product_line_without_price(self):
        product = product_factory(id="prod_free", name="Free", default_price=None)
        assert format_product_line(product) == f"{'prod_free':<20} n=Free"

    def test_one_off_price(self):
        product = product_factory(
            id="prod_x",
            name="X",
            default_price=price_factory(unit_amount=4900, currency="usd", recurring_interval=None),
        )
        line = format_product_line(product, with_price_id=False)
        assert line == f"{'prod_x':<20} i=49usd n=X"

    def test_tax_rate_line(self):
        tax_rate = tax_rate_factory(id="txr_1", display_name="IVA", percentage=21.0, jurisdiction="ES")
        assert format_tax_rate_line(tax_rate) == "txr_1 ES IVA 21.000000 active=true"

    def test_session_record(self):
        session = checkout_session_factory(id="cs_1", url="https://checkout.stripe.com/c/pay/cs_1")
        assert format_session_record(session) == "ID: cs_1\nURL: https://checkout.stripe.com/c/pay/cs_1"
