"""
    ustripe - Manage Stripe customers and subscriptions from the command line.

Example usage:
    from ustripe import StripeClient, UserService, load_config
    from ustripe.mail import SendmailCommandSender
    from ustripe.security import CracklibStrengthChecker, OpenSSLPasswordHasher

    config = load_config()
    users = UserService(
        client=StripeClient(config),
        config=config,
        hasher=OpenSSLPasswordHasher(),
        checker=CracklibStrengthChecker(),
        mail_sender=SendmailCommandSender(config.sendmail_command),
    )

    customer = users.login("user@example.com", "secret")
"""

from .catalog import CatalogService
from .checkout import CheckoutService
from .client import StripeClient, StripeClientInterface
from .config import Settings, StripeConfig, load_config
from .exceptions import (
    AuthenticationError,
    CommandError,
    ConfigurationError,
    CustomerExistsError,
    CustomerNotFoundError,
    InvalidParameterError,
    MailDeliveryError,
    MissingParameterError,
    ParameterError,
    PasswordValidationError,
    ProductError,
    StripeConfigError,
    StripeConnectionError,
    StripeCustomerError,
    StripeError,
    StripePaymentError,
    StripeSubscriptionError,
    ValidationCodeError,
)
from .listing import Listing
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
from .users import UserService
from .version import __version__

__all__ = [
    # Client
    "StripeClient",
    "StripeClientInterface",
    "Listing",
    # Config
    "Settings",
    "StripeConfig",
    "load_config",
    # Services
    "UserService",
    "CatalogService",
    "CheckoutService",
    # Exceptions
    "StripeError",
    "StripeConfigError",
    "ConfigurationError",
    "StripeConnectionError",
    "StripeCustomerError",
    "CustomerNotFoundError",
    "CustomerExistsError",
    "StripePaymentError",
    "StripeSubscriptionError",
    "ProductError",
    "ParameterError",
    "MissingParameterError",
    "InvalidParameterError",
    "AuthenticationError",
    "ValidationCodeError",
    "PasswordValidationError",
    "CommandError",
    "MailDeliveryError",
    # Models
    "Address",
    "Customer",
    "TaxId",
    "Product",
    "Price",
    "TaxRate",
    "Subscription",
    "SubscriptionItem",
    "SubscriptionStatus",
    "LineItem",
    "CheckoutSession",
    # Version
    "__version__",
]
