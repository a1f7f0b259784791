"""
Subscription checkout.

The subscribe command takes its line items as ``@PRODUCT=QUANTITY[,TAX]``
parameters::

    ustripe subscribe us=https://shop/ok uc=https://shop/ko e=user@example.com \\
        @prod_basic=1 @prod_seats=5,txr_reduced
"""

import structlog

from .catalog import CatalogService
from .client import StripeClientInterface
from .config import StripeConfig
from .exceptions import (
    ConfigurationError,
    CustomerNotFoundError,
    InvalidParameterError,
    MissingParameterError,
)
from .models import CheckoutSession, LineItem
from .params import marked_params

logger = structlog.get_logger(__name__)


class CheckoutService:
    def __init__(
        self,
        client: StripeClientInterface,
        config: StripeConfig,
        catalog: CatalogService,
    ):
        self.client = client
        self.config = config
        self.catalog = catalog

    def default_tax_rate(self, params: dict[str, str]) -> str:
        """Tax rate for entries that name none: ``tax_rate`` or the configured one."""
        tax_rate = params.get("tax_rate") or self.config.default_tax_rate
        if not tax_rate:
            raise ConfigurationError("tax rate not specified")
        return tax_rate

    def build_line_items(self, params: dict[str, str]) -> list[LineItem]:
        """Resolve every ``@PRODUCT=QUANTITY[,TAX]`` parameter to a line item."""
        items = []
        for product_id, value in marked_params(params).items():
            price_id = self.catalog.product_price(product_id)

            quantity_text, sep, tax_rate = value.partition(",")
            if not sep:
                tax_rate = self.default_tax_rate(params)

            try:
                quantity = int(quantity_text)
            except ValueError:
                quantity = 0
            if quantity <= 0:
                raise InvalidParameterError(
                    f"invalid quantity for {product_id}: {quantity_text!r}",
                    details={"product_id": product_id},
                )

            items.append(LineItem(price_id=price_id, quantity=quantity, tax_rates=[tax_rate]))

        if not items:
            raise MissingParameterError("products", message="missing product list")
        return items

    def resolve_customer(self, params: dict[str, str]) -> str:
        """Customer id from ``customer``, or from the customer owning ``email``."""
        if params.get("customer"):
            return params["customer"]
        if params.get("email"):
            customer_id = self.client.get_customer_id(params["email"])
            if customer_id is None:
                raise CustomerNotFoundError(details={"email": params["email"]})
            return customer_id
        raise MissingParameterError("email/customer")

    def subscribe(self, params: dict[str, str]) -> CheckoutSession:
        """Open a subscription checkout session.

        Unlike parse_params, which counts ``us=`` as present, both redirect
        URLs must be non-empty: an empty one raises MissingParameterError.
        """
        for key in ("url_success", "url_cancel"):
            if not params.get(key):
                raise MissingParameterError(key)

        customer_id = self.resolve_customer(params)
        line_items = self.build_line_items(params)

        session = self.client.create_checkout_session(
            customer_id=customer_id,
            line_items=line_items,
            success_url=params["url_success"],
            cancel_url=params["url_cancel"],
            client_reference_id=params.get("reference") or None,
        )
        logger.info("subscription_checkout_started", session_id=session.id)
        return session
