"""Open URLs in the desktop browser, and the Stripe dashboard shortcuts."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

import structlog

from .commands import check_result, run_command
from .exceptions import InvalidParameterError

logger = structlog.get_logger(__name__)


class LinkOpener(ABC):
    """Shows a URL to the operator."""

    @abstractmethod
    def open(self, url: str) -> None:
        ...


class XdgOpenLinkOpener(LinkOpener):
    """Open URLs with ``xdg-open``."""

    def __init__(self, executable: str = "xdg-open"):
        self.executable = executable

    def open(self, url: str) -> None:
        args = [self.executable, url]
        logger.debug("opening_url", url=url)
        check_result(args, run_command(args))


@dataclass(frozen=True)
class DashboardTarget:
    name: str
    description: str
    url: str
    test_url: str | None = None

    def url_for(self, release_mode: bool) -> str:
        if release_mode or self.test_url is None:
            return self.url
        return self.test_url


DASHBOARD_TARGETS = [
    DashboardTarget(
        "doc-api",
        "API documentation.",
        "https://stripe.com/docs/api/balance/balance_retrieve?lang=python",
    ),
    DashboardTarget("doc-testing", "Fake testing user account doc.", "https://stripe.com/docs/testing"),
    DashboardTarget("dashboard", "Show graphs.", "https://dashboard.stripe.com/login"),
    DashboardTarget(
        "customers",
        "Show customers.",
        "https://dashboard.stripe.com/customers",
        "https://dashboard.stripe.com/test/customers",
    ),
    DashboardTarget(
        "api-keys",
        "Open API key configuration place.",
        "https://dashboard.stripe.com/apikeys",
        "https://dashboard.stripe.com/test/apikeys",
    ),
    DashboardTarget("webhooks", "Open STRIPE webhooks page.", "https://dashboard.stripe.com/webhooks"),
    DashboardTarget(
        "cfg-invoice", "Set the company NIF.", "https://dashboard.stripe.com/settings/billing/invoice"
    ),
    DashboardTarget(
        "cfg-branding", "Set the company colors etc.", "https://dashboard.stripe.com/settings/branding"
    ),
    DashboardTarget("cfg-profile", "Set the language, ...", "https://dashboard.stripe.com/settings/user"),
    DashboardTarget("cfg-team", "Team members, etc.", "https://dashboard.stripe.com/settings/team"),
]


def dashboard_url(name: str, release_mode: bool) -> str:
    """Resolve a dashboard shortcut name to its URL."""
    for target in DASHBOARD_TARGETS:
        if target.name == name:
            return target.url_for(release_mode)
    raise InvalidParameterError(f"Invalid argument: {name}", details={"target": name})
