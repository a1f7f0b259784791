"""Shared test fixtures."""

import os

import pytest

from ustripe import CatalogService, CheckoutService, StripeConfig, UserService
from ustripe.browser import LinkOpener
from ustripe.client import StripeClient
from ustripe.exceptions import PasswordValidationError
from ustripe.mail import MailSender
from ustripe.mock import MockStripeClient
from ustripe.security import Md5CryptPasswordHasher, PasswordStrengthChecker


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without network access")
    config.addinivalue_line("markers", "e2e: tests against the real Stripe test mode API")


@pytest.fixture(autouse=True)
def configure_structlog():
    """Configure structlog for testing."""
    import structlog

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


class FakeStrengthChecker(PasswordStrengthChecker):
    """Rejects passwords listed in ``weak``."""

    def __init__(self, weak: tuple[str, ...] = ("123456",)):
        self.weak = weak
        self.checked: list[str] = []

    def check(self, password: str) -> None:
        self.checked.append(password)
        if password in self.weak:
            raise PasswordValidationError("the password, it is too simplistic/systematic")


class RecordingMailSender(MailSender):
    def __init__(self):
        self.messages: list[str] = []

    def send(self, message: str) -> None:
        self.messages.append(message)


class RecordingLinkOpener(LinkOpener):
    def __init__(self):
        self.urls: list[str] = []

    def open(self, url: str) -> None:
        self.urls.append(url)


class SequentialCodes:
    """Predictable validation codes: code-1, code-2, ..."""

    def __init__(self):
        self.count = 0

    def __call__(self) -> str:
        self.count += 1
        return f"code-{self.count}"


@pytest.fixture
def mock_client() -> MockStripeClient:
    """Create a mock Stripe client for unit tests."""
    return MockStripeClient()


@pytest.fixture
def test_config() -> StripeConfig:
    """Create a test config with fake API key."""
    return StripeConfig(
        api_key="sk_test_fake123456789",
        default_tax_rate="txr_default",
        validation_url="https://example.com/welcome",
        mail_subject="Confirm your mail",
        mail_from="noreply@example.com",
    )


@pytest.fixture
def hasher() -> Md5CryptPasswordHasher:
    return Md5CryptPasswordHasher()


@pytest.fixture
def checker() -> FakeStrengthChecker:
    return FakeStrengthChecker()


@pytest.fixture
def mail_sender() -> RecordingMailSender:
    return RecordingMailSender()


@pytest.fixture
def link_opener() -> RecordingLinkOpener:
    return RecordingLinkOpener()


@pytest.fixture
def codes() -> SequentialCodes:
    return SequentialCodes()


@pytest.fixture
def users(mock_client, test_config, hasher, checker, mail_sender, codes) -> UserService:
    return UserService(
        client=mock_client,
        config=test_config,
        hasher=hasher,
        checker=checker,
        mail_sender=mail_sender,
        code_factory=codes,
    )


@pytest.fixture
def catalog(mock_client) -> CatalogService:
    return CatalogService(mock_client)


@pytest.fixture
def checkout(mock_client, test_config, catalog) -> CheckoutService:
    return CheckoutService(mock_client, test_config, catalog)


@pytest.fixture
def live_config() -> StripeConfig | None:
    """Create a config for E2E tests with real Stripe.

    Returns None if STRIPE_TEST_SECRET_KEY is not set.
    """
    api_key = os.environ.get("STRIPE_TEST_SECRET_KEY")
    if not api_key:
        return None

    return StripeConfig(
        api_key=api_key,
        default_tax_rate=os.environ.get("STRIPE_TEST_DEFAULT_TAXID"),
    )


@pytest.fixture
def live_client(live_config: StripeConfig | None) -> StripeClient | None:
    """Create a real Stripe client for E2E tests.

    Returns None if STRIPE_TEST_SECRET_KEY is not set.
    """
    if not live_config:
        return None
    return StripeClient(live_config)
