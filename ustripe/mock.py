"""
Mock Stripe client for testing.

Provides an in-memory implementation of StripeClientInterface for testing
without making real Stripe API calls.
"""

import copy
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Any

from .client import StripeClientInterface
from .exceptions import (
    ProductError,
    StripeCustomerError,
    StripePaymentError,
    StripeSubscriptionError,
)
from .listing import PAGE_SIZE, Listing
from .models import (
    Address,
    CheckoutSession,
    Customer,
    LineItem,
    Price,
    Product,
    Subscription,
    SubscriptionItem,
    SubscriptionStatus,
    TaxId,
    TaxRate,
)


# Factory functions for creating test data


def customer_factory(**kwargs: Any) -> Customer:
    """Create a test Customer."""
    return Customer(
        id=kwargs.get("id", f"cus_{uuid.uuid4().hex[:14]}"),
        email=kwargs.get("email", f"test-{uuid.uuid4().hex[:6]}@example.com"),
        name=kwargs.get("name"),
        phone=kwargs.get("phone"),
        description=kwargs.get("description"),
        metadata=kwargs.get("metadata", {}),
        preferred_locales=kwargs.get("preferred_locales", []),
        address=kwargs.get("address"),
        tax_ids=kwargs.get("tax_ids", []),
        created_at=kwargs.get("created_at", datetime.utcnow()),
    )


def price_factory(**kwargs: Any) -> Price:
    """Create a test Price."""
    return Price(
        id=kwargs.get("id", f"price_{uuid.uuid4().hex[:14]}"),
        product_id=kwargs.get("product_id", f"prod_{uuid.uuid4().hex[:14]}"),
        unit_amount=kwargs.get("unit_amount", 4900),  # 49.00
        currency=kwargs.get("currency", "eur"),
        recurring_interval=kwargs.get("recurring_interval", "month"),
        recurring_interval_count=kwargs.get("recurring_interval_count", 1),
        active=kwargs.get("active", True),
    )


def product_factory(**kwargs: Any) -> Product:
    """Create a test Product, with a default price unless told otherwise."""
    product_id = kwargs.get("id", f"prod_{uuid.uuid4().hex[:14]}")
    default_price = kwargs.get("default_price", price_factory(product_id=product_id))
    return Product(
        id=product_id,
        name=kwargs.get("name", "Test product"),
        active=kwargs.get("active", True),
        default_price=default_price,
        default_price_id=default_price.id if default_price else None,
    )


def tax_rate_factory(**kwargs: Any) -> TaxRate:
    """Create a test TaxRate."""
    return TaxRate(
        id=kwargs.get("id", f"txr_{uuid.uuid4().hex[:14]}"),
        display_name=kwargs.get("display_name", "VAT"),
        percentage=kwargs.get("percentage", 21.0),
        jurisdiction=kwargs.get("jurisdiction", "ES"),
        active=kwargs.get("active", True),
        inclusive=kwargs.get("inclusive", False),
    )


def subscription_factory(**kwargs: Any) -> Subscription:
    """Create a test Subscription with one item per given price."""
    prices: list[Price] = kwargs.get("prices") or [price_factory()]
    return Subscription(
        id=kwargs.get("id", f"sub_{uuid.uuid4().hex[:14]}"),
        customer_id=kwargs.get("customer_id", f"cus_{uuid.uuid4().hex[:14]}"),
        status=kwargs.get("status", SubscriptionStatus.ACTIVE),
        items=[
            SubscriptionItem(
                id=f"si_{uuid.uuid4().hex[:14]}",
                price_id=price.id,
                product_id=price.product_id,
            )
            for price in prices
        ],
        metadata=kwargs.get("metadata", {}),
    )


def checkout_session_factory(**kwargs: Any) -> CheckoutSession:
    """Create a test CheckoutSession."""
    session_id = kwargs.get("id", f"cs_{uuid.uuid4().hex[:24]}")
    return CheckoutSession(
        id=session_id,
        url=kwargs.get("url", f"https://checkout.stripe.com/c/pay/{session_id}"),
        customer_id=kwargs.get("customer_id"),
        client_reference_id=kwargs.get("client_reference_id"),
        status=kwargs.get("status", "open"),
        payment_status=kwargs.get("payment_status", "unpaid"),
    )


class MockStripeClient(StripeClientInterface):
    """Mock Stripe client for testing.

    Stores data in memory and simulates Stripe API behavior. Metadata
    updates are merged into the stored metadata, like Stripe does.

    Example:
        mock_client = MockStripeClient()

        # Pre-populate with test data
        mock_client.add_customer(customer_factory(email="test@example.com"))

        # Or let it create on demand
        customer = mock_client.create_customer(email="new@example.com")
    """

    def __init__(self) -> None:
        """Initialize the mock client."""
        self._customers: dict[str, Customer] = {}
        self._subscriptions: dict[str, Subscription] = {}
        self._checkout_sessions: dict[str, CheckoutSession] = {}
        self._products: dict[str, Product] = {}
        self._tax_rates: dict[str, TaxRate] = {}

        # Requests received, for assertions
        self.checkout_requests: list[dict[str, Any]] = []

        # Control flags for testing error scenarios
        self._should_fail = False
        self._fail_message = "Mock failure"

    # Control methods for testing

    def set_should_fail(self, should_fail: bool, message: str = "Mock failure") -> None:
        """Configure the mock to fail on next operation."""
        self._should_fail = should_fail
        self._fail_message = message

    def add_customer(self, customer: Customer) -> None:
        """Add a customer to the mock store."""
        self._customers[customer.id] = customer

    def add_subscription(self, subscription: Subscription) -> None:
        """Add a subscription to the mock store."""
        self._subscriptions[subscription.id] = subscription

    def add_product(self, product: Product) -> None:
        """Add a product to the mock store."""
        self._products[product.id] = product

    def add_tax_rate(self, tax_rate: TaxRate) -> None:
        """Add a tax rate to the mock store."""
        self._tax_rates[tax_rate.id] = tax_rate

    def stored_customer(self, customer_id: str) -> Customer | None:
        """Return the stored customer without going through the API surface."""
        return self._customers.get(customer_id)

    def clear(self) -> None:
        """Clear all stored data."""
        self._customers.clear()
        self._subscriptions.clear()
        self._checkout_sessions.clear()
        self._products.clear()
        self._tax_rates.clear()
        self.checkout_requests.clear()

    def _check_failure(self, exception_class: type[Exception]) -> None:
        """Check if mock should fail and raise exception."""
        if self._should_fail:
            self._should_fail = False  # Reset after one failure
            raise exception_class(self._fail_message)

    def _require_customer(self, customer_id: str) -> Customer:
        customer = self._customers.get(customer_id)
        if customer is None:
            raise StripeCustomerError(
                f"No such customer: {customer_id}",
                details={"customer_id": customer_id},
            )
        return customer

    # Customer operations

    def list_customers(self) -> Listing[Customer]:
        def fetch():
            self._check_failure(StripeCustomerError)
            return [copy.deepcopy(c) for c in list(self._customers.values())[:PAGE_SIZE]]

        return Listing(fetch)

    def find_customer_by_email(self, email: str) -> Customer | None:
        self._check_failure(StripeCustomerError)
        for customer in self._customers.values():
            if customer.email == email:
                found = copy.deepcopy(customer)
                # Stripe leaves canceled subscriptions out of the expansion
                found.subscriptions = [
                    copy.deepcopy(sub)
                    for sub in self._subscriptions.values()
                    if sub.customer_id == customer.id
                    and sub.status != SubscriptionStatus.CANCELED
                ]
                return found
        return None

    def get_customer_id(self, email: str) -> str | None:
        self._check_failure(StripeCustomerError)
        for customer in self._customers.values():
            if customer.email == email:
                return customer.id
        return None

    def create_customer(
        self,
        email: str,
        metadata: dict[str, str] | None = None,
        preferred_locales: list[str] | None = None,
    ) -> Customer:
        """Create a mock customer."""
        self._check_failure(StripeCustomerError)

        customer = customer_factory(
            email=email,
            metadata=dict(metadata or {}),
            preferred_locales=list(preferred_locales or []),
        )
        self._customers[customer.id] = customer
        return copy.deepcopy(customer)

    def update_customer(
        self,
        customer_id: str,
        metadata: dict[str, str] | None = None,
        preferred_locales: list[str] | None = None,
        address: Address | None = None,
        name: str | None = None,
        phone: str | None = None,
        description: str | None = None,
    ) -> Customer:
        """Update a mock customer, merging metadata and address fields."""
        self._check_failure(StripeCustomerError)
        customer = self._require_customer(customer_id)

        if metadata:
            customer.metadata.update(metadata)
        if preferred_locales is not None:
            customer.preferred_locales = list(preferred_locales)
        if address is not None:
            changes = {k: v for k, v in vars(address).items() if v is not None}
            customer.address = replace(customer.address or Address(), **changes)
        if name is not None:
            customer.name = name
        if phone is not None:
            customer.phone = phone
        if description is not None:
            customer.description = description
        return copy.deepcopy(customer)

    def delete_customer(self, customer_id: str) -> bool:
        self._check_failure(StripeCustomerError)
        self._require_customer(customer_id)
        del self._customers[customer_id]
        return True

    # Tax id operations

    def list_tax_ids(self, customer_id: str) -> Listing[TaxId]:
        def fetch():
            self._check_failure(StripeCustomerError)
            return list(self._require_customer(customer_id).tax_ids)

        return Listing(fetch)

    def create_tax_id(self, customer_id: str, tax_type: str, value: str) -> TaxId:
        self._check_failure(StripeCustomerError)
        customer = self._require_customer(customer_id)
        tax_id = TaxId(id=f"txi_{uuid.uuid4().hex[:14]}", type=tax_type, value=value)
        customer.tax_ids.append(tax_id)
        return tax_id

    def delete_tax_id(self, customer_id: str, tax_id: str) -> None:
        self._check_failure(StripeCustomerError)
        customer = self._require_customer(customer_id)
        customer.tax_ids = [t for t in customer.tax_ids if t.id != tax_id]

    # Catalog operations

    def list_products(self) -> Listing[Product]:
        def fetch():
            self._check_failure(ProductError)
            return list(self._products.values())[:PAGE_SIZE]

        return Listing(fetch)

    def get_product(self, product_id: str) -> Product | None:
        self._check_failure(ProductError)
        return self._products.get(product_id)

    def list_tax_rates(self) -> Listing[TaxRate]:
        def fetch():
            self._check_failure(ProductError)
            return list(self._tax_rates.values())[:PAGE_SIZE]

        return Listing(fetch)

    # Subscription operations

    def list_active_subscriptions(self, customer_id: str) -> list[Subscription]:
        self._check_failure(StripeSubscriptionError)
        return [
            sub
            for sub in self._subscriptions.values()
            if sub.customer_id == customer_id and sub.status == SubscriptionStatus.ACTIVE
        ]

    # Checkout operations

    def create_checkout_session(
        self,
        customer_id: str,
        line_items: list[LineItem],
        success_url: str,
        cancel_url: str,
        client_reference_id: str | None = None,
    ) -> CheckoutSession:
        """Create a mock checkout session."""
        self._check_failure(StripePaymentError)

        self.checkout_requests.append(
            {
                "customer_id": customer_id,
                "line_items": list(line_items),
                "success_url": success_url,
                "cancel_url": cancel_url,
                "client_reference_id": client_reference_id,
            }
        )
        session = checkout_session_factory(
            customer_id=customer_id,
            client_reference_id=client_reference_id,
        )
        self._checkout_sessions[session.id] = session
        return session
