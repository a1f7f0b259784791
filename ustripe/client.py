"""
Stripe client implementation.

Concrete implementation using the official Stripe API. Every remote call the
tool makes goes through this module; results come back as ustripe models and
Stripe library errors come back as ustripe exceptions.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

import stripe
import structlog

from .config import StripeConfig
from .exceptions import (
    ProductError,
    StripeConnectionError,
    StripeCustomerError,
    StripeError,
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

logger = structlog.get_logger(__name__)


class StripeClientInterface(ABC):
    """Abstract interface for Stripe operations."""

    # Customer operations
    @abstractmethod
    def list_customers(self) -> Listing[Customer]:
        """List customers, one page at most."""
        ...

    @abstractmethod
    def find_customer_by_email(self, email: str) -> Customer | None:
        """Get a customer by email with subscriptions and tax ids expanded."""
        ...

    @abstractmethod
    def get_customer_id(self, email: str) -> str | None:
        """Get the id of the customer registered with email."""
        ...

    @abstractmethod
    def create_customer(
        self,
        email: str,
        metadata: dict[str, str] | None = None,
        preferred_locales: list[str] | None = None,
    ) -> Customer:
        """Create a new Stripe customer."""
        ...

    @abstractmethod
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
        """Update the given fields of a customer."""
        ...

    @abstractmethod
    def delete_customer(self, customer_id: str) -> bool:
        """Delete a customer. Returns whether Stripe reports it deleted."""
        ...

    # Tax id operations
    @abstractmethod
    def list_tax_ids(self, customer_id: str) -> Listing[TaxId]:
        """List the tax ids of a customer."""
        ...

    @abstractmethod
    def create_tax_id(self, customer_id: str, tax_type: str, value: str) -> TaxId:
        """Attach a tax id to a customer."""
        ...

    @abstractmethod
    def delete_tax_id(self, customer_id: str, tax_id: str) -> None:
        """Remove a tax id from a customer."""
        ...

    # Catalog operations
    @abstractmethod
    def list_products(self) -> Listing[Product]:
        """List products with their default price expanded."""
        ...

    @abstractmethod
    def get_product(self, product_id: str) -> Product | None:
        """Get a product by ID."""
        ...

    @abstractmethod
    def list_tax_rates(self) -> Listing[TaxRate]:
        """List defined tax rates."""
        ...

    # Subscription operations
    @abstractmethod
    def list_active_subscriptions(self, customer_id: str) -> list[Subscription]:
        """List the active subscriptions of a customer."""
        ...

    # Checkout operations
    @abstractmethod
    def create_checkout_session(
        self,
        customer_id: str,
        line_items: list[LineItem],
        success_url: str,
        cancel_url: str,
        client_reference_id: str | None = None,
    ) -> CheckoutSession:
        """Create a subscription mode Checkout session."""
        ...


def _expandable_id(value: Any) -> str | None:
    """Return the id of a field that may or may not have been expanded."""
    if value is None or isinstance(value, str):
        return value
    return value.id


def _plain(value: Any) -> Any:
    """Recursively turn Stripe objects into plain dicts and lists."""
    if isinstance(value, stripe.StripeObject):
        value = dict(value) if isinstance(value, dict) else value.to_dict()
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_plain(item) for item in value]
    return value


class StripeClient(StripeClientInterface):
    """Concrete Stripe client implementation."""

    def __init__(self, config: StripeConfig):
        """Initialize the Stripe client.

        Args:
            config: StripeConfig instance with API credentials
        """
        self.config = config
        stripe.api_key = config.require_api_key()

        logger.debug(
            "stripe_client_initialized",
            is_test_mode=config.is_test_mode,
            release_mode=config.release_mode,
        )

    def _error(
        self,
        error_class: type[StripeError],
        message: str,
        error: Exception,
        **details: Any,
    ) -> StripeError:
        """Build the ustripe exception for a Stripe library error."""
        if isinstance(error, stripe.APIConnectionError):
            error_class = StripeConnectionError
        return error_class(
            f"{message}: {getattr(error, 'user_message', None) or str(error)}",
            details=details,
            original_error=error,
        )

    def _convert_stripe_customer(self, stripe_customer: Any) -> Customer:
        """Convert Stripe customer object to Customer model."""
        address = None
        stripe_address = getattr(stripe_customer, "address", None)
        if stripe_address:
            address = Address(
                city=getattr(stripe_address, "city", None),
                country=getattr(stripe_address, "country", None),
                line1=getattr(stripe_address, "line1", None),
                line2=getattr(stripe_address, "line2", None),
                postal_code=getattr(stripe_address, "postal_code", None),
                state=getattr(stripe_address, "state", None),
            )

        # Unexpanded list fields come back as None or as a bare URL string
        tax_ids = []
        stripe_tax_ids = getattr(stripe_customer, "tax_ids", None)
        if stripe_tax_ids and not isinstance(stripe_tax_ids, str):
            tax_ids = [self._convert_stripe_tax_id(t) for t in stripe_tax_ids.data]

        subscriptions = []
        stripe_subscriptions = getattr(stripe_customer, "subscriptions", None)
        if stripe_subscriptions and not isinstance(stripe_subscriptions, str):
            subscriptions = [
                self._convert_stripe_subscription(s) for s in stripe_subscriptions.data
            ]

        created = getattr(stripe_customer, "created", None)
        return Customer(
            id=stripe_customer.id,
            email=getattr(stripe_customer, "email", None),
            name=getattr(stripe_customer, "name", None),
            phone=getattr(stripe_customer, "phone", None),
            description=getattr(stripe_customer, "description", None),
            metadata=_plain(getattr(stripe_customer, "metadata", None) or {}),
            preferred_locales=list(getattr(stripe_customer, "preferred_locales", None) or []),
            address=address,
            tax_ids=tax_ids,
            subscriptions=subscriptions,
            created_at=datetime.fromtimestamp(created) if created else None,
            raw=_plain(stripe_customer),
        )

    def _convert_stripe_tax_id(self, stripe_tax_id: Any) -> TaxId:
        return TaxId(
            id=stripe_tax_id.id,
            type=stripe_tax_id.type,
            value=stripe_tax_id.value,
        )

    def _convert_stripe_price(self, stripe_price: Any) -> Price:
        """Convert Stripe price object to Price model."""
        recurring = getattr(stripe_price, "recurring", None)
        return Price(
            id=stripe_price.id,
            product_id=_expandable_id(getattr(stripe_price, "product", None)),
            unit_amount=getattr(stripe_price, "unit_amount", None) or 0,
            currency=getattr(stripe_price, "currency", None),
            recurring_interval=getattr(recurring, "interval", None) if recurring else None,
            recurring_interval_count=(
                getattr(recurring, "interval_count", None) if recurring else None
            ),
            active=bool(getattr(stripe_price, "active", False)),
        )

    def _convert_stripe_product(self, stripe_product: Any) -> Product:
        """Convert Stripe product object to Product model."""
        default_price = getattr(stripe_product, "default_price", None)
        return Product(
            id=stripe_product.id,
            name=getattr(stripe_product, "name", None) or "",
            active=bool(getattr(stripe_product, "active", False)),
            default_price=(
                self._convert_stripe_price(default_price)
                if default_price is not None and not isinstance(default_price, str)
                else None
            ),
            default_price_id=_expandable_id(default_price),
        )

    def _convert_stripe_tax_rate(self, stripe_tax_rate: Any) -> TaxRate:
        """Convert Stripe tax rate object to TaxRate model."""
        return TaxRate(
            id=stripe_tax_rate.id,
            display_name=getattr(stripe_tax_rate, "display_name", None) or "",
            percentage=float(getattr(stripe_tax_rate, "percentage", None) or 0),
            jurisdiction=getattr(stripe_tax_rate, "jurisdiction", None),
            active=bool(getattr(stripe_tax_rate, "active", False)),
            inclusive=bool(getattr(stripe_tax_rate, "inclusive", False)),
        )

    def _convert_stripe_subscription(self, stripe_sub: Any) -> Subscription:
        """Convert Stripe subscription object to Subscription model."""
        # "items" must be read by key, the attribute is dict.items
        items = []
        for item in stripe_sub["items"].data:
            price = getattr(item, "price", None)
            if price is None:
                continue
            items.append(
                SubscriptionItem(
                    id=item.id,
                    price_id=price.id,
                    product_id=_expandable_id(getattr(price, "product", None)),
                    quantity=getattr(item, "quantity", None) or 1,
                )
            )

        return Subscription(
            id=stripe_sub.id,
            customer_id=_expandable_id(getattr(stripe_sub, "customer", None)),
            status=SubscriptionStatus(stripe_sub.status),
            items=items,
            metadata=_plain(getattr(stripe_sub, "metadata", None) or {}),
        )

    def _convert_stripe_checkout_session(self, stripe_session: Any) -> CheckoutSession:
        """Convert Stripe checkout session to CheckoutSession model."""
        return CheckoutSession(
            id=stripe_session.id,
            url=getattr(stripe_session, "url", None) or "",
            customer_id=_expandable_id(getattr(stripe_session, "customer", None)),
            client_reference_id=getattr(stripe_session, "client_reference_id", None),
            mode=getattr(stripe_session, "mode", None) or "subscription",
            status=getattr(stripe_session, "status", None),
            payment_status=getattr(stripe_session, "payment_status", None),
        )

    # Customer operations

    def list_customers(self) -> Listing[Customer]:
        """List customers, one page at most."""

        def fetch():
            try:
                logger.debug("listing_stripe_customers")
                result = stripe.Customer.list(limit=PAGE_SIZE)
            except stripe.StripeError as e:
                logger.error("list_customers_failed", error=str(e))
                raise self._error(StripeCustomerError, "Failed to list customers", e)
            for stripe_customer in result.data:
                yield self._convert_stripe_customer(stripe_customer)

        return Listing(fetch)

    def find_customer_by_email(self, email: str) -> Customer | None:
        """Get a customer by email with subscriptions and tax ids expanded."""
        try:
            logger.debug("searching_stripe_customer_by_email", email=email)

            result = stripe.Customer.list(
                email=email,
                limit=1,
                expand=["data.subscriptions", "data.tax_ids"],
            )

            if result.data:
                return self._convert_stripe_customer(result.data[0])

            return None

        except stripe.StripeError as e:
            logger.error("stripe_customer_search_failed", email=email, error=str(e))
            raise self._error(
                StripeCustomerError, "Failed to search Stripe customer", e, email=email
            )

    def get_customer_id(self, email: str) -> str | None:
        """Get the id of the customer registered with email."""
        try:
            logger.debug("resolving_stripe_customer_id", email=email)

            result = stripe.Customer.list(email=email, limit=1)
            if result.data:
                return result.data[0].id

            return None

        except stripe.StripeError as e:
            logger.error("stripe_customer_search_failed", email=email, error=str(e))
            raise self._error(
                StripeCustomerError, "Failed to search Stripe customer", e, email=email
            )

    def create_customer(
        self,
        email: str,
        metadata: dict[str, str] | None = None,
        preferred_locales: list[str] | None = None,
    ) -> Customer:
        """Create a new Stripe customer."""
        try:
            logger.info("creating_stripe_customer", email=email)

            customer_data: dict[str, Any] = {
                "email": email,
                "metadata": metadata or {},
            }
            if preferred_locales:
                customer_data["preferred_locales"] = preferred_locales

            stripe_customer = stripe.Customer.create(**customer_data)

            customer = self._convert_stripe_customer(stripe_customer)
            logger.info("stripe_customer_created", customer_id=customer.id, email=email)
            return customer

        except stripe.StripeError as e:
            logger.error("stripe_customer_create_failed", email=email, error=str(e))
            raise self._error(
                StripeCustomerError, "Failed to create Stripe customer", e, email=email
            )

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
        """Update the given fields of a customer."""
        customer_data: dict[str, Any] = {}
        if metadata:
            customer_data["metadata"] = metadata
        if preferred_locales is not None:
            customer_data["preferred_locales"] = preferred_locales
        if address is not None:
            customer_data["address"] = {
                key: value for key, value in vars(address).items() if value is not None
            }
        for key, value in (("name", name), ("phone", phone), ("description", description)):
            if value is not None:
                customer_data[key] = value

        try:
            logger.info(
                "updating_stripe_customer",
                customer_id=customer_id,
                fields=sorted(customer_data),
            )

            stripe_customer = stripe.Customer.modify(customer_id, **customer_data)

            return self._convert_stripe_customer(stripe_customer)

        except stripe.StripeError as e:
            logger.error(
                "stripe_customer_update_failed", customer_id=customer_id, error=str(e)
            )
            raise self._error(
                StripeCustomerError,
                "Failed to update Stripe customer",
                e,
                customer_id=customer_id,
            )

    def delete_customer(self, customer_id: str) -> bool:
        """Delete a customer. Returns whether Stripe reports it deleted."""
        try:
            logger.info("deleting_stripe_customer", customer_id=customer_id)

            result = stripe.Customer.delete(customer_id)

            deleted = bool(getattr(result, "deleted", False))
            logger.info("stripe_customer_deleted", customer_id=customer_id, deleted=deleted)
            return deleted

        except stripe.StripeError as e:
            logger.error(
                "stripe_customer_delete_failed", customer_id=customer_id, error=str(e)
            )
            raise self._error(
                StripeCustomerError,
                "Failed to delete Stripe customer",
                e,
                customer_id=customer_id,
            )

    # Tax id operations

    def list_tax_ids(self, customer_id: str) -> Listing[TaxId]:
        """List the tax ids of a customer."""

        def fetch():
            try:
                logger.debug("listing_customer_tax_ids", customer_id=customer_id)
                result = stripe.Customer.list_tax_ids(customer_id, limit=PAGE_SIZE)
            except stripe.StripeError as e:
                logger.error(
                    "list_tax_ids_failed", customer_id=customer_id, error=str(e)
                )
                raise self._error(
                    StripeCustomerError,
                    "Failed to list tax ids",
                    e,
                    customer_id=customer_id,
                )
            for stripe_tax_id in result.data:
                yield self._convert_stripe_tax_id(stripe_tax_id)

        return Listing(fetch)

    def create_tax_id(self, customer_id: str, tax_type: str, value: str) -> TaxId:
        """Attach a tax id to a customer."""
        try:
            logger.info("creating_tax_id", customer_id=customer_id, tax_type=tax_type)

            stripe_tax_id = stripe.Customer.create_tax_id(
                customer_id, type=tax_type, value=value
            )

            return self._convert_stripe_tax_id(stripe_tax_id)

        except stripe.StripeError as e:
            logger.error("tax_id_create_failed", customer_id=customer_id, error=str(e))
            raise self._error(
                StripeCustomerError,
                "Failed to create tax id",
                e,
                customer_id=customer_id,
                tax_type=tax_type,
            )

    def delete_tax_id(self, customer_id: str, tax_id: str) -> None:
        """Remove a tax id from a customer."""
        try:
            logger.info("deleting_tax_id", customer_id=customer_id, tax_id=tax_id)

            stripe.Customer.delete_tax_id(customer_id, tax_id)

        except stripe.StripeError as e:
            logger.error(
                "tax_id_delete_failed",
                customer_id=customer_id,
                tax_id=tax_id,
                error=str(e),
            )
            raise self._error(
                StripeCustomerError,
                "Failed to delete tax id",
                e,
                customer_id=customer_id,
                tax_id=tax_id,
            )

    # Catalog operations

    def list_products(self) -> Listing[Product]:
        """List products with their default price expanded."""

        def fetch():
            try:
                logger.debug("listing_products")
                result = stripe.Product.list(
                    limit=PAGE_SIZE, expand=["data.default_price"]
                )
            except stripe.StripeError as e:
                logger.error("list_products_failed", error=str(e))
                raise self._error(ProductError, "Failed to list products", e)
            for stripe_product in result.data:
                yield self._convert_stripe_product(stripe_product)

        return Listing(fetch)

    def get_product(self, product_id: str) -> Product | None:
        """Get a product by ID."""
        try:
            logger.debug("fetching_product", product_id=product_id)

            stripe_product = stripe.Product.retrieve(product_id)

            return self._convert_stripe_product(stripe_product)

        except stripe.InvalidRequestError:
            logger.warning("product_not_found", product_id=product_id)
            return None
        except stripe.StripeError as e:
            logger.error("product_fetch_failed", product_id=product_id, error=str(e))
            raise self._error(
                ProductError, "Failed to fetch product", e, product_id=product_id
            )

    def list_tax_rates(self) -> Listing[TaxRate]:
        """List defined tax rates."""

        def fetch():
            try:
                logger.debug("listing_tax_rates")
                result = stripe.TaxRate.list(limit=PAGE_SIZE)
            except stripe.StripeError as e:
                logger.error("list_tax_rates_failed", error=str(e))
                raise self._error(ProductError, "Failed to list tax rates", e)
            for stripe_tax_rate in result.data:
                yield self._convert_stripe_tax_rate(stripe_tax_rate)

        return Listing(fetch)

    # Subscription operations

    def list_active_subscriptions(self, customer_id: str) -> list[Subscription]:
        """List the active subscriptions of a customer."""
        try:
            logger.debug("listing_customer_subscriptions", customer_id=customer_id)

            result = stripe.Subscription.list(
                customer=customer_id,
                status=SubscriptionStatus.ACTIVE.value,
                limit=PAGE_SIZE,
            )

            subscriptions = [
                self._convert_stripe_subscription(sub) for sub in result.data
            ]
            logger.debug(
                "customer_subscriptions_listed",
                customer_id=customer_id,
                count=len(subscriptions),
            )
            return subscriptions

        except stripe.StripeError as e:
            logger.error(
                "list_subscriptions_failed", customer_id=customer_id, error=str(e)
            )
            raise self._error(
                StripeSubscriptionError,
                "Failed to list subscriptions",
                e,
                customer_id=customer_id,
            )

    # Checkout operations

    def create_checkout_session(
        self,
        customer_id: str,
        line_items: list[LineItem],
        success_url: str,
        cancel_url: str,
        client_reference_id: str | None = None,
    ) -> CheckoutSession:
        """Create a subscription mode Checkout session."""
        try:
            logger.info(
                "creating_checkout_session",
                customer_id=customer_id,
                line_items=len(line_items),
            )

            session_data: dict[str, Any] = {
                "mode": "subscription",
                "customer": customer_id,
                "line_items": [item.to_params() for item in line_items],
                "success_url": success_url,
                "cancel_url": cancel_url,
            }
            if client_reference_id:
                session_data["client_reference_id"] = client_reference_id

            stripe_session = stripe.checkout.Session.create(**session_data)

            session = self._convert_stripe_checkout_session(stripe_session)
            logger.info(
                "checkout_session_created",
                session_id=session.id,
                customer_id=customer_id,
            )
            return session

        except stripe.StripeError as e:
            logger.error(
                "checkout_session_create_failed", customer_id=customer_id, error=str(e)
            )
            raise self._error(
                StripePaymentError,
                "Failed to create checkout session",
                e,
                customer_id=customer_id,
            )
