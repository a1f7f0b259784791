import functools
import sys
from dataclasses import dataclass, field
from typing import Callable

import click
import structlog
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .browser import DASHBOARD_TARGETS, LinkOpener, XdgOpenLinkOpener, dashboard_url
from .catalog import CatalogService
from .checkout import CheckoutService
from .client import StripeClient, StripeClientInterface
from .config import Settings, StripeConfig, load_config
from .exceptions import StripeError
from .formatting import (
    format_product_line,
    format_session_record,
    format_tax_rate_line,
    format_user_json,
    format_user_line,
    format_user_record,
)
from .logging import configure_logging
from .mail import MailSender, SendmailCommandSender
from .params import parse_params
from .security import (
    CracklibStrengthChecker,
    PasswordHasher,
    PasswordStrengthChecker,
    password_hasher_for,
)
from .users import UserService
from .version import __version__

console = Console()
err_console = Console(stderr=True)
logger = structlog.get_logger(__name__)

TOKENS = {"ignore_unknown_options": True}


@dataclass
class App:
    """Configuration and collaborators shared by all subcommands.

    Collaborators left unset get their default implementation on first use;
    the Stripe client is only built by commands that talk to Stripe.
    """

    config: StripeConfig
    client_factory: Callable[[StripeConfig], StripeClientInterface] = StripeClient
    hasher: PasswordHasher | None = None
    checker: PasswordStrengthChecker | None = None
    mail_sender: MailSender | None = None
    link_opener: LinkOpener | None = None
    _client: StripeClientInterface | None = field(default=None, repr=False)

    @property
    def client(self) -> StripeClientInterface:
        if self._client is None:
            self._client = self.client_factory(self.config)
        return self._client

    @property
    def password_hasher(self) -> PasswordHasher:
        if self.hasher is None:
            self.hasher = password_hasher_for(self.config)
        return self.hasher

    @property
    def opener(self) -> LinkOpener:
        if self.link_opener is None:
            self.link_opener = XdgOpenLinkOpener()
        return self.link_opener

    @property
    def users(self) -> UserService:
        if self.checker is None:
            self.checker = CracklibStrengthChecker()
        if self.mail_sender is None:
            self.mail_sender = SendmailCommandSender(self.config.sendmail_command)
        return UserService(
            client=self.client,
            config=self.config,
            hasher=self.password_hasher,
            checker=self.checker,
            mail_sender=self.mail_sender,
        )

    @property
    def catalog(self) -> CatalogService:
        return CatalogService(self.client)

    @property
    def checkout(self) -> CheckoutService:
        return CheckoutService(self.client, self.config, self.catalog)


pass_app = click.make_pass_decorator(App)


def report_error(error: StripeError) -> None:
    err_console.print(f"[red]Error:[/red] {escape(error.message)}", soft_wrap=True)


def handle_errors(func):
    """Print StripeError failures on stderr and exit with status 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except StripeError as e:
            logger.debug("command_failed", error=e.to_dict())
            report_error(e)
            sys.exit(1)

    return wrapper


@click.group()
@click.version_option(version=__version__, prog_name="ustripe")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log verbosity on stderr (default: $LOG_LEVEL or WARNING)",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str | None):
    """
    ustripe - Simple mechanism to handle subscriptions with Stripe.

    Subcommands take KEY=VALUE parameters. Short aliases: e=email,
    p/pass=password, l/lang=language, us=url_success, uc=url_cancel,
    c=customer, t=tax_rate, r=reference, v=verified.

    Environment: RELEASE_MODE, STRIPE[_TEST]_SECRET_KEY,
    STRIPE[_TEST]_DEFAULT_TAXID, STRIPE_MASTER_PASSWORD_HASH1,
    SENDMAIL_COMMAND.
    """
    if ctx.obj is not None:
        configure_logging(log_level or "WARNING")
        return

    settings = Settings()
    configure_logging(log_level or settings.LOG_LEVEL)
    try:
        ctx.obj = App(config=load_config(settings))
    except StripeError as e:
        report_error(e)
        sys.exit(1)


# Accounts


@cli.command("hash1", context_settings=TOKENS)
@click.argument("tokens", nargs=-1)
@pass_app
@handle_errors
def hash1(app: App, tokens: tuple[str, ...]):
    """Calculate hash of the password (p=PASSWORD)."""
    params, _ = parse_params(tokens, "password")
    click.echo(app.password_hasher.hash(params["password"].strip()))


@cli.command("login", context_settings=TOKENS)
@click.argument("tokens", nargs=-1)
@pass_app
@handle_errors
def login(app: App, tokens: tuple[str, ...]):
    """Check password (e=EMAIL p=PASS), print the customer id."""
    params, _ = parse_params(tokens, "email", "password")
    customer = app.users.login(params["email"], params["password"])
    click.echo(customer.id)


@cli.command("chpass", context_settings=TOKENS)
@click.argument("tokens", nargs=-1)
@pass_app
@handle_errors
def chpass(app: App, tokens: tuple[str, ...]):
    """Change password (e=EMAIL p=PASS)."""
    params, _ = parse_params(tokens, "email", "password")
    app.users.change_password(params["email"], params["password"])


@cli.command("www")
@click.argument("target", required=False)
@pass_app
@handle_errors
def www(app: App, target: str | None):
    """Open the Stripe dashboard and resources."""
    if target is None:
        table = Table(title="Dashboard targets")
        table.add_column("Target", style="cyan")
        table.add_column("Description")
        for entry in DASHBOARD_TARGETS:
            table.add_row(entry.name, entry.description)
        console.print(table)
        return
    app.opener.open(dashboard_url(target, app.config.release_mode))


# Catalog


@cli.command("tax-list")
@pass_app
@handle_errors
def tax_list(app: App):
    """List defined taxes."""
    for tax_rate in app.catalog.tax_rates():
        click.echo(format_tax_rate_line(tax_rate))


@cli.command("prod-list")
@pass_app
@handle_errors
def prod_list(app: App):
    """List defined products."""
    for product in app.catalog.products():
        click.echo(format_product_line(product))


@cli.command("prod-price")
@click.argument("products", nargs=-1)
@pass_app
@handle_errors
def prod_price(app: App, products: tuple[str, ...]):
    """Convert from product to price."""
    for product_id in products:
        click.echo(app.catalog.product_price(product_id))


# Users


@cli.command("user-list")
@pass_app
@handle_errors
def user_list(app: App):
    """List users."""
    for customer in app.users.list_users():
        click.echo(format_user_line(customer))


@cli.command("user-get-json", context_settings=TOKENS)
@click.argument("tokens", nargs=-1)
@pass_app
@handle_errors
def user_get_json(app: App, tokens: tuple[str, ...]):
    """Print user JSON (e=EMAIL)."""
    params, _ = parse_params(tokens, "email")
    click.echo(format_user_json(app.users.find(params["email"])))


@cli.command("user-get-subs", context_settings=TOKENS)
@click.argument("tokens", nargs=-1)
@pass_app
@handle_errors
def user_get_subs(app: App, tokens: tuple[str, ...]):
    """User's subscribed products (e=EMAIL [PROD1 ...]).

    With products given, print the first one the user is subscribed to.
    """
    params, products = parse_params(tokens, "email")
    subscribed = app.users.subscribed_products(params["email"])
    if products:
        for product_id in products:
            if product_id in subscribed:
                click.echo(product_id)
                break
    else:
        for product_id in subscribed:
            click.echo(product_id)


@cli.command("user-info", context_settings=TOKENS)
@click.argument("tokens", nargs=-1)
@pass_app
@handle_errors
def user_info(app: App, tokens: tuple[str, ...]):
    """User information (e=EMAIL)."""
    params, _ = parse_params(tokens, "email")
    click.echo(format_user_record(app.users.find(params["email"])), nl=False)


@cli.command("user-add", context_settings=TOKENS)
@click.argument("tokens", nargs=-1)
@pass_app
@handle_errors
def user_add(app: App, tokens: tuple[str, ...]):
    """Add new user (e=EMAIL p=PASS [l=LANG] [v=yes] [@KEY=VALUE ...])."""
    params, _ = parse_params(tokens, "email", "password")
    customer = app.users.add(params["email"], params["password"], params)
    click.echo(format_user_line(customer))


@cli.command("user-del")
@click.argument("emails", nargs=-1)
@pass_app
@handle_errors
def user_del(app: App, emails: tuple[str, ...]):
    """Delete users (EMAIL ...), continuing past failures."""
    failed = False
    for email in emails:
        try:
            app.users.delete(email)
        except StripeError as e:
            logger.error("user_delete_failed", email=email, error=e.message)
            report_error(e)
            failed = True
    if failed:
        sys.exit(1)


@cli.command("user-edit", context_settings=TOKENS)
@click.argument("tokens", nargs=-1)
@pass_app
@handle_errors
def user_edit(app: App, tokens: tuple[str, ...]):
    """Edit user (e=EMAIL PARAMS...).

    PARAMS: name, phone, description, city, country, addr1, addr2, zipcode,
    state, cif, l=LANG, v=yes|no, @KEY=VALUE.
    """
    params, _ = parse_params(tokens, "email")
    customer = app.users.edit(params["email"], params)
    click.echo(format_user_record(customer), nl=False)


@cli.command("user-mail-v", context_settings=TOKENS)
@click.argument("tokens", nargs=-1)
@pass_app
@handle_errors
def user_mail_v(app: App, tokens: tuple[str, ...]):
    """Send validation mail (e=EMAIL)."""
    params, _ = parse_params(tokens, "email")
    app.users.send_validation_mail(params["email"])


@cli.command("user-validate", context_settings=TOKENS)
@click.argument("tokens", nargs=-1)
@pass_app
@handle_errors
def user_validate(app: App, tokens: tuple[str, ...]):
    """Validate (e=EMAIL ecode=ECODE)."""
    params, _ = parse_params(tokens, "email", "ecode")
    app.users.validate(params["email"], params["ecode"])
    click.echo(params["email"])


# Checkout


@cli.command("subscribe", context_settings=TOKENS)
@click.argument("tokens", nargs=-1)
@pass_app
@handle_errors
def subscribe(app: App, tokens: tuple[str, ...]):
    """Create a checkout session (us, uc, c|e required).

    \b
      url_success | us = SUCCESS-URL
      url_cancel  | uc = CANCEL-URL
      customer    | c  = CUSTOMER or
      email       | e  = EMAIL
      reference   | r  = REFERENCE
      tax_rate    | t  = DEFAULT-TAX
      browse           = y|n
      @PROD=NUM[,TAX]
    """
    params, _ = parse_params(tokens)
    session = app.checkout.subscribe(params)
    if params.get("browse") == "y":
        app.opener.open(session.url)
    else:
        click.echo(format_session_record(session))


def main():
    cli()


if __name__ == "__main__":
    main()
