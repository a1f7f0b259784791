"""
Password hashing and strength checking.

Stored hashes are MD5-crypt strings with the fixed salt ``pstripe``
(``$1$pstripe$...``), the format ``openssl passwd -1`` produces. Both hasher
implementations produce identical strings, so either can verify hashes
written by the other.
"""

import re
from abc import ABC, abstractmethod

import structlog
from passlib.hash import md5_crypt

from .commands import check_result, run_command
from .config import StripeConfig
from .exceptions import PasswordValidationError

logger = structlog.get_logger(__name__)

SALT = "pstripe"

_CRACKLIB_OK = re.compile(r": *OK")


class PasswordHasher(ABC):
    """Deterministic salted one-way password hash."""

    @abstractmethod
    def hash(self, password: str) -> str:
        ...


class PasswordStrengthChecker(ABC):
    """Rejects passwords that are too weak to use."""

    @abstractmethod
    def check(self, password: str) -> None:
        """Raise PasswordValidationError when password is not acceptable."""
        ...


class OpenSSLPasswordHasher(PasswordHasher):
    """Hash with ``openssl passwd -1``."""

    def __init__(self, salt: str = SALT, executable: str = "openssl"):
        self.salt = salt
        self.executable = executable

    def hash(self, password: str) -> str:
        args = [self.executable, "passwd", "-1", "-salt", self.salt, "-stdin"]
        result = check_result(args, run_command(args, stdin=password))
        return result.stdout.split("\n", 1)[0]


class Md5CryptPasswordHasher(PasswordHasher):
    """In-process MD5-crypt hash, no external program needed."""

    def __init__(self, salt: str = SALT):
        self._handler = md5_crypt.using(salt=salt)

    def hash(self, password: str) -> str:
        return self._handler.hash(password)


class CracklibStrengthChecker(PasswordStrengthChecker):
    """Check passwords with ``cracklib-check``."""

    def __init__(self, executable: str = "cracklib-check"):
        self.executable = executable

    def check(self, password: str) -> None:
        args = [self.executable]
        result = check_result(args, run_command(args, stdin=password))
        output = result.stdout.strip()

        if not output:
            raise PasswordValidationError("password check failed")
        if _CRACKLIB_OK.search(output):
            return

        # cracklib prints "<password>: <reason>", keep only the reason
        reason = output.rsplit(": ", 1)[-1]
        logger.info("password_rejected", reason=reason)
        raise PasswordValidationError(f"the password, {reason}")


def password_hasher_for(config: StripeConfig) -> PasswordHasher:
    """Return the hasher selected by the configuration."""
    if config.password_hasher == "passlib":
        return Md5CryptPasswordHasher()
    return OpenSSLPasswordHasher()
