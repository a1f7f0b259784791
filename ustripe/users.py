"""
User operations.

A user is a Stripe customer whose metadata bag holds the password hash
(``hash1``), the verification status and the pending email validation code.
"""

import uuid
from typing import Callable

import structlog

from .client import StripeClientInterface
from .config import StripeConfig
from .exceptions import (
    AuthenticationError,
    CustomerExistsError,
    CustomerNotFoundError,
    ValidationCodeError,
)
from .languages import AUTO, normalize_language
from .listing import Listing
from .mail import MailSender, compose_validation_mail, validation_url
from .models import (
    METADATA_ECODE,
    METADATA_HASH,
    METADATA_STATUS,
    STATUS_UNVERIFIED,
    STATUS_VERIFIED,
    Address,
    Customer,
)
from .params import marked_params
from .security import PasswordHasher, PasswordStrengthChecker

logger = structlog.get_logger(__name__)

TRUE_VALUES = frozenset({"true", "yes", "t", "y", "verified"})

# edit parameter -> Address field
ADDRESS_PARAMS = {
    "city": "city",
    "country": "country",
    "addr1": "line1",
    "addr2": "line2",
    "zipcode": "postal_code",
    "state": "state",
}
CUSTOMER_PARAMS = ("name", "phone", "description")

# edit parameter -> Stripe tax id type
TAX_ID_PARAMS = {"cif": "es_cif"}


def verified_param(params: dict[str, str]) -> str | None:
    """Status named by the ``verified`` parameter, None when absent."""
    if "verified" not in params:
        return None
    if params["verified"] in TRUE_VALUES:
        return STATUS_VERIFIED
    return STATUS_UNVERIFIED


def language_param(params: dict[str, str]) -> str | None:
    """Stripe locale named by the ``language`` parameter, None when absent."""
    if "language" not in params:
        return None
    return normalize_language(params["language"])


def new_code() -> str:
    return str(uuid.uuid4())


class UserService:
    """Customer accounts with local password authentication."""

    def __init__(
        self,
        client: StripeClientInterface,
        config: StripeConfig,
        hasher: PasswordHasher,
        checker: PasswordStrengthChecker,
        mail_sender: MailSender,
        code_factory: Callable[[], str] = new_code,
    ):
        self.client = client
        self.config = config
        self.hasher = hasher
        self.checker = checker
        self.mail_sender = mail_sender
        self.code_factory = code_factory

    def hash_password(self, password: str) -> str:
        """Hash a password after trimming surrounding whitespace."""
        return self.hasher.hash(password.strip())

    def list_users(self) -> Listing[Customer]:
        return self.client.list_customers()

    def find(self, email: str) -> Customer:
        """Fetch a user with subscriptions and tax ids, or fail."""
        customer = self.client.find_customer_by_email(email)
        if customer is None:
            raise CustomerNotFoundError(details={"email": email})
        return customer

    def subscribed_products(self, email: str) -> dict[str, str]:
        """Map product id to price id over the user's active subscriptions."""
        customer = self.find(email)
        products: dict[str, str] = {}
        for subscription in self.client.list_active_subscriptions(customer.id):
            for item in subscription.items:
                if item.product_id:
                    products[item.product_id] = item.price_id
        return products

    def login(self, email: str, password: str) -> Customer:
        """Return the user when password matches the stored hash."""
        customer = self.find(email)
        password_hash = self.hash_password(password)

        stored_hash = customer.hash1
        if not stored_hash:
            logger.warning("login_without_password", customer_id=customer.id)
            raise AuthenticationError(
                "user has no password", details={"email": email}
            )

        if self.config.has_master_password and password_hash == self.config.master_password_hash:
            logger.warning("master_password_login", customer_id=customer.id, email=email)
            return customer

        if password_hash != stored_hash:
            logger.info("login_failed", customer_id=customer.id)
            raise AuthenticationError("invalid password", details={"email": email})

        logger.info("login_succeeded", customer_id=customer.id)
        return customer

    def change_password(self, email: str, password: str) -> str:
        """Store a new password hash, returning the customer id."""
        customer = self.find(email)
        password = password.strip()
        self.checker.check(password)
        self.client.update_customer(
            customer.id, metadata={METADATA_HASH: self.hasher.hash(password)}
        )
        logger.info("password_changed", customer_id=customer.id)
        return customer.id

    def add(self, email: str, password: str, params: dict[str, str]) -> Customer:
        """Register a new user.

        Args:
            email: Address of the new user
            password: Clear password, checked for strength then hashed
            params: Optional ``language``, ``verified`` and ``@key`` metadata
        """
        existing = self.client.find_customer_by_email(email)
        if existing is not None:
            if existing.verified:
                raise CustomerExistsError("the user already exists", details={"email": email})
            raise CustomerExistsError("email address not verified", details={"email": email})

        language = language_param(params) or AUTO
        status = verified_param(params) or STATUS_UNVERIFIED

        password = password.strip()
        self.checker.check(password)
        password_hash = self.hasher.hash(password)

        metadata = {METADATA_HASH: password_hash, METADATA_STATUS: status}
        metadata.update(marked_params(params))

        return self.client.create_customer(
            email=email,
            metadata=metadata,
            preferred_locales=[language] if language != AUTO else None,
        )

    def delete(self, email: str) -> bool:
        """Delete a user. An unknown email counts as already deleted."""
        customer_id = self.client.get_customer_id(email)
        if customer_id is None:
            logger.info("delete_skipped_unknown_user", email=email)
            return True
        return self.client.delete_customer(customer_id)

    def edit(self, email: str, params: dict[str, str]) -> Customer:
        """Apply key/value edits to a user and return the refreshed record."""
        customer = self.client.find_customer_by_email(email)
        if customer is None:
            raise CustomerNotFoundError("the user does not exist", details={"email": email})

        metadata = marked_params(params)
        status = verified_param(params)
        if status is not None:
            metadata[METADATA_STATUS] = status

        preferred_locales = None
        language = language_param(params)
        if language is not None and language != AUTO:
            preferred_locales = [language]

        address = None
        address_fields = {
            field: params[key] for key, field in ADDRESS_PARAMS.items() if key in params
        }
        if address_fields:
            address = Address(**address_fields)

        for key, tax_type in TAX_ID_PARAMS.items():
            if key in params:
                self._replace_tax_id(customer.id, tax_type, params[key])

        self.client.update_customer(
            customer.id,
            metadata=metadata,
            preferred_locales=preferred_locales,
            address=address,
            **{key: params[key] for key in CUSTOMER_PARAMS if key in params},
        )

        updated = self.client.find_customer_by_email(customer.email or email)
        if updated is None:
            raise CustomerNotFoundError(
                "can't fetch user after modification", details={"email": email}
            )
        return updated

    def _replace_tax_id(self, customer_id: str, tax_type: str, value: str) -> None:
        """Make the given tax id the only one the customer has."""
        present = False
        for tax_id in self.client.list_tax_ids(customer_id):
            if tax_id.type == tax_type and tax_id.value == value:
                present = True
            else:
                self.client.delete_tax_id(customer_id, tax_id.id)
        if not present:
            self.client.create_tax_id(customer_id, tax_type, value)

    def send_validation_mail(self, email: str) -> str:
        """Issue a fresh validation code and mail the link to the user."""
        customer_id = self.client.get_customer_id(email)
        if customer_id is None:
            raise CustomerNotFoundError("Customer not found.", details={"email": email})

        ecode = self.code_factory()
        customer = self.client.update_customer(
            customer_id,
            metadata={METADATA_ECODE: ecode, METADATA_STATUS: STATUS_UNVERIFIED},
        )
        to = customer.email or email
        message = compose_validation_mail(
            to=to,
            url=validation_url(self.config.validation_url, ecode, to),
            subject=self.config.mail_subject,
            mail_from=self.config.mail_from,
        )
        self.mail_sender.send(message)
        logger.info("validation_mail_sent", customer_id=customer_id)
        return customer_id

    def validate(self, email: str, ecode: str) -> str:
        """Mark the user verified when ecode matches, then rotate the code."""
        customer = self.find(email)

        if not customer.ecode or customer.ecode != ecode:
            logger.info("validation_code_rejected", customer_id=customer.id)
            raise ValidationCodeError("invalid verification code", details={"email": email})

        self.client.update_customer(
            customer.id,
            metadata={METADATA_ECODE: self.code_factory(), METADATA_STATUS: STATUS_VERIFIED},
        )
        logger.info("user_validated", customer_id=customer.id)
        return customer.id
