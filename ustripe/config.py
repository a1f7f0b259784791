"""
ustripe configuration.

Settings are read once from the environment (and an optional .env file)
and frozen into a StripeConfig that every service receives explicitly.
"""

from dataclasses import dataclass
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import StripeConfigError

DEFAULT_SENDMAIL_COMMAND = "msmtp -t"
DEFAULT_VALIDATION_URL = "https://efferox.com/wellcome"
DEFAULT_MAIL_SUBJECT = "Confirm your mail with Lotorius"
PASSWORD_HASHERS = ("openssl", "passlib")


class Settings(BaseSettings):
    """Environment variables understood by ustripe."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Any non-empty value selects the live key and tax rate
    RELEASE_MODE: str = ""

    # Stripe
    STRIPE_SECRET_KEY: Optional[str] = None
    STRIPE_TEST_SECRET_KEY: Optional[str] = None
    STRIPE_DEFAULT_TAXID: Optional[str] = None
    STRIPE_TEST_DEFAULT_TAXID: Optional[str] = None
    STRIPE_MASTER_PASSWORD_HASH1: Optional[str] = None

    # Mail
    SENDMAIL_COMMAND: Optional[str] = None
    VALIDATION_URL: str = DEFAULT_VALIDATION_URL
    MAIL_SUBJECT: str = DEFAULT_MAIL_SUBJECT
    MAIL_FROM: Optional[str] = None

    PASSWORD_HASHER: str = "openssl"
    LOG_LEVEL: str = "WARNING"

    @property
    def release_mode(self) -> bool:
        return len(self.RELEASE_MODE) > 0


@dataclass(frozen=True)
class StripeConfig:
    """Immutable runtime configuration.

    Args:
        api_key: Stripe secret key (sk_live_*, sk_test_* or a restricted key).
            Commands that never reach Stripe run without one.
        release_mode: True when the live key and tax rate were selected
        default_tax_rate: Tax rate id used for line items that name none
        sendmail_command: Shell pipeline receiving a full message on stdin
        master_password_hash: Hash that authenticates any account
        validation_url: Base URL of the link sent in validation mails
        mail_subject: Subject of the validation mail
        mail_from: Optional From header of the validation mail
        password_hasher: "openssl" (external tool) or "passlib" (in process)
    """

    api_key: str | None = None
    release_mode: bool = False
    default_tax_rate: str | None = None
    sendmail_command: str = DEFAULT_SENDMAIL_COMMAND
    master_password_hash: str | None = None
    validation_url: str = DEFAULT_VALIDATION_URL
    mail_subject: str = DEFAULT_MAIL_SUBJECT
    mail_from: str | None = None
    password_hasher: str = "openssl"

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.api_key and not self.api_key.startswith(
            ("sk_live_", "sk_test_", "rk_live_", "rk_test_")
        ):
            raise StripeConfigError(
                "api_key must be a valid Stripe secret key (sk_*) or restricted key (rk_*)"
            )

        if not self.sendmail_command:
            raise StripeConfigError("sendmail_command must not be empty")

        if self.password_hasher not in PASSWORD_HASHERS:
            raise StripeConfigError(
                f"password_hasher must be one of: {', '.join(PASSWORD_HASHERS)}"
            )

    @property
    def api_key_variable(self) -> str:
        """Name of the environment variable holding the key for this mode."""
        return "STRIPE_SECRET_KEY" if self.release_mode else "STRIPE_TEST_SECRET_KEY"

    @property
    def is_test_mode(self) -> bool:
        """Check if using test mode API key."""
        return self.api_key is not None and "_test_" in self.api_key

    @property
    def is_live_mode(self) -> bool:
        """Check if using live mode API key."""
        return self.api_key is not None and "_live_" in self.api_key

    @property
    def has_master_password(self) -> bool:
        return self.master_password_hash is not None and len(self.master_password_hash) > 1

    def require_api_key(self) -> str:
        """Return the API key or fail naming the variable to set."""
        if not self.api_key:
            raise StripeConfigError(f"Please set {self.api_key_variable}")
        return self.api_key


def load_config(settings: Settings | None = None) -> StripeConfig:
    """Build the runtime configuration from environment settings."""
    settings = settings or Settings()

    if settings.release_mode:
        api_key = settings.STRIPE_SECRET_KEY
        tax_rate = settings.STRIPE_DEFAULT_TAXID
    else:
        api_key = settings.STRIPE_TEST_SECRET_KEY
        tax_rate = settings.STRIPE_TEST_DEFAULT_TAXID

    return StripeConfig(
        api_key=api_key or None,
        release_mode=settings.release_mode,
        default_tax_rate=tax_rate or None,
        sendmail_command=settings.SENDMAIL_COMMAND or DEFAULT_SENDMAIL_COMMAND,
        master_password_hash=settings.STRIPE_MASTER_PASSWORD_HASH1 or None,
        validation_url=settings.VALIDATION_URL,
        mail_subject=settings.MAIL_SUBJECT,
        mail_from=settings.MAIL_FROM or None,
        password_hasher=settings.PASSWORD_HASHER,
    )
