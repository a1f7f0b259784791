"""
ustripe exceptions.

Every failure the tool reports derives from StripeError so the CLI can
turn any of them into a message on stderr and a nonzero exit.
"""

from typing import Any


class StripeError(Exception):
    """Base exception for all ustripe errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, details={self.details})"


class StripeConfigError(StripeError):
    """Invalid or incomplete configuration."""

    pass


class ConfigurationError(StripeConfigError):
    """A configuration value needed by an operation is not set."""

    pass


class StripeConnectionError(StripeError):
    """Unable to connect to Stripe API."""

    pass


class StripeCustomerError(StripeError):
    """Customer operation failed (create, get, update, delete)."""

    pass


class CustomerNotFoundError(StripeCustomerError):
    """No customer matches the given email or id."""

    def __init__(self, message: str = "user not found", **kwargs: Any):
        super().__init__(message, **kwargs)


class CustomerExistsError(StripeCustomerError):
    """A customer with the email is already registered."""

    pass


class StripePaymentError(StripeError):
    """Checkout session operation failed."""

    pass


class StripeSubscriptionError(StripeError):
    """Subscription listing failed."""

    pass


class ProductError(StripeError):
    """Product, price or tax rate lookup failed."""

    pass


class ParameterError(StripeError):
    """Command line parameters are unusable."""

    pass


class MissingParameterError(ParameterError):
    """One or more required parameters were not given."""

    def __init__(self, missing: list[str] | str, message: str | None = None):
        if isinstance(missing, str):
            missing = [missing]
        self.missing = list(missing)
        super().__init__(
            message or "missing parameters: " + " ".join(self.missing),
            details={"missing": self.missing},
        )


class InvalidParameterError(ParameterError):
    """A parameter value cannot be interpreted."""

    pass


class AuthenticationError(StripeError):
    """Login failed."""

    pass


class ValidationCodeError(StripeError):
    """The email validation code does not match."""

    pass


class PasswordValidationError(StripeError):
    """The password was rejected by the strength checker."""

    pass


class CommandError(StripeError):
    """An external program failed to run or exited with an error."""

    pass


class MailDeliveryError(CommandError):
    """The mail submission command failed."""

    pass
