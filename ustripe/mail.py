"""Validation mail composition and delivery through a local MTA command."""

from abc import ABC, abstractmethod
from email.mime.text import MIMEText
from urllib.parse import urlencode

import structlog

from .commands import run_command
from .exceptions import MailDeliveryError

logger = structlog.get_logger(__name__)

VALIDATION_BODY = """\
<html>
  <body>
    <p>
      To complete the sign-up, we need you to confirm your
      mail address by clicking the next button.
    </p>
    <p>
      <a href="{url}">Confirm email</a>
    </p>
    <p>
      Once your email has been validated you will receive
      a testing account.
    </p>
  </body>
</html>
"""


class MailSender(ABC):
    """Delivers a complete RFC-822 message."""

    @abstractmethod
    def send(self, message: str) -> None:
        """Send message, raising MailDeliveryError on failure."""
        ...


class SendmailCommandSender(MailSender):
    """Pipe the message into a shell command such as ``msmtp -t``."""

    def __init__(self, command: str):
        self.command = command

    def send(self, message: str) -> None:
        args = ["sh", "-e", "-c", self.command]
        logger.debug("sending_mail", command=self.command)

        result = run_command(args, stdin=message, error_class=MailDeliveryError)

        if result.return_code != 0 or result.stderr:
            logger.error(
                "mail_delivery_failed",
                command=self.command,
                return_code=result.return_code,
                stderr=result.stderr.strip(),
            )
            raise MailDeliveryError(
                result.stderr.strip() or f"mail command exited with status {result.return_code}",
                details={"command": self.command, "return_code": result.return_code},
            )

        logger.info("mail_sent", command=self.command)


def validation_url(base_url: str, ecode: str, email: str) -> str:
    """Link that proves ownership of email when followed."""
    return f"{base_url}?{urlencode({'mcode': ecode, 'email': email})}"


def compose_validation_mail(
    to: str,
    url: str,
    subject: str,
    mail_from: str | None = None,
) -> str:
    """Build the validation message as a string ready for sendmail."""
    msg = MIMEText(VALIDATION_BODY.format(url=url), "html", "utf-8")
    msg["To"] = to
    if mail_from:
        msg["From"] = mail_from
    msg["Subject"] = subject
    return msg.as_string()
