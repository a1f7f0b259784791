"""
Stripe data models.

Plain mirrors of the Stripe resources the tool reads and writes. The
customer metadata bag carries the password hash, verification status and
email validation code.
"""

from dataclasses import dataclass, field
from typing import Any
from datetime import datetime
from enum import Enum

METADATA_HASH = "hash1"
METADATA_STATUS = "status"
METADATA_ECODE = "ecode"

STATUS_VERIFIED = "verified"
STATUS_UNVERIFIED = "unverified"


class SubscriptionStatus(str, Enum):
    """Standard Stripe subscription statuses."""

    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    UNPAID = "unpaid"
    TRIALING = "trialing"
    INCOMPLETE = "incomplete"
    INCOMPLETE_EXPIRED = "incomplete_expired"
    PAUSED = "paused"


@dataclass
class Address:
    """Postal address of a customer."""

    city: str | None = None
    country: str | None = None
    line1: str | None = None
    line2: str | None = None
    postal_code: str | None = None
    state: str | None = None


@dataclass
class TaxId:
    """Tax identifier attached to a customer."""

    id: str
    type: str
    value: str


@dataclass
class Customer:
    """Stripe customer."""

    id: str
    email: str | None = None
    name: str | None = None
    phone: str | None = None
    description: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    preferred_locales: list[str] = field(default_factory=list)
    address: Address | None = None
    tax_ids: list[TaxId] = field(default_factory=list)
    subscriptions: list["Subscription"] = field(default_factory=list)
    created_at: datetime | None = None
    # Full record as returned by Stripe, empty when not built from an API response
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def hash1(self) -> str | None:
        return self.metadata.get(METADATA_HASH)

    @property
    def ecode(self) -> str | None:
        return self.metadata.get(METADATA_ECODE)

    @property
    def verified(self) -> bool:
        return self.metadata.get(METADATA_STATUS) == STATUS_VERIFIED

    @property
    def status_label(self) -> str:
        return STATUS_VERIFIED if self.verified else STATUS_UNVERIFIED

    @property
    def language(self) -> str:
        """Preferred language, "auto" when none is set."""
        if self.preferred_locales:
            return self.preferred_locales[0]
        return "auto"


@dataclass
class Price:
    """Stripe price."""

    id: str
    product_id: str
    unit_amount: int  # in cents
    currency: str = "usd"
    recurring_interval: str | None = None  # "month", "year"
    recurring_interval_count: int | None = None
    active: bool = True


@dataclass
class Product:
    """Stripe product with its default price when expanded."""

    id: str
    name: str
    active: bool = True
    default_price: Price | None = None
    default_price_id: str | None = None


@dataclass
class TaxRate:
    """Stripe tax rate."""

    id: str
    display_name: str
    percentage: float
    jurisdiction: str | None = None
    active: bool = True
    inclusive: bool = False


@dataclass
class SubscriptionItem:
    """One price line of a subscription."""

    id: str
    price_id: str
    product_id: str | None = None
    quantity: int = 1


@dataclass
class Subscription:
    """Stripe subscription."""

    id: str
    customer_id: str
    status: SubscriptionStatus
    items: list[SubscriptionItem] = field(default_factory=list)
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class LineItem:
    """Checkout line item requested by the subscribe command."""

    price_id: str
    quantity: int
    tax_rates: list[str] = field(default_factory=list)

    def to_params(self) -> dict:
        return {
            "price": self.price_id,
            "quantity": self.quantity,
            "tax_rates": list(self.tax_rates),
        }


@dataclass
class CheckoutSession:
    """Stripe Checkout session."""

    id: str
    url: str
    customer_id: str | None = None
    client_reference_id: str | None = None
    mode: str = "subscription"
    status: str | None = "open"
    payment_status: str | None = "unpaid"
