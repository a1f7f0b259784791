"""
key=value command line parameters.

Subcommands take their input as ``key=value`` tokens (with short aliases)
mixed with plain positional tokens, e.g.::

    ustripe user-add e=user@example.com p=secret l=es_ES.UTF-8 @origin=web
"""

from typing import Iterable

from .exceptions import MissingParameterError

ALIASES = {
    "e": "email",
    "p": "password",
    "pass": "password",
    "l": "language",
    "lang": "language",
    "us": "url_success",
    "uc": "url_cancel",
    "c": "customer",
    "t": "tax_rate",
    "r": "reference",
    "v": "verified",
}

# Keys starting with this marker go verbatim into the customer metadata,
# or name a product in the subscribe command.
MARKER = "@"


def canonical_key(key: str) -> str:
    """Map an alias to its canonical parameter name."""
    return ALIASES.get(key, key)


def parse_params(
    tokens: Iterable[str], *required: str
) -> tuple[dict[str, str], list[str]]:
    """Split tokens into named parameters and positional arguments.

    Args:
        tokens: Raw command line tokens
        required: Canonical names that must be present

    Returns:
        (params, positional) where later duplicates overwrite earlier ones

    Raises:
        MissingParameterError: listing every missing required name
    """
    params: dict[str, str] = {}
    positional: list[str] = []

    for token in tokens:
        key, sep, value = token.partition("=")
        if sep:
            params[canonical_key(key)] = value
        else:
            positional.append(token)

    missing = [name for name in required if name not in params]
    if missing:
        raise MissingParameterError(missing)

    return params, positional


def marked_params(params: dict[str, str]) -> dict[str, str]:
    """Return the ``@key=value`` parameters with the marker stripped."""
    return {
        key[len(MARKER):]: value
        for key, value in params.items()
        if key.startswith(MARKER) and len(key) > len(MARKER)
    }
