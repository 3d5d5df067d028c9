"""Check that the process locale uses a character encoding we can handle."""

from __future__ import annotations

import locale
import os

_ACCEPTED = ("US-ASCII", "UTF-8")


class LocaleError(Exception):
    """Raised when the locale's character set is neither ASCII nor UTF-8."""


def _initialize_from_env() -> None:
    try:
        locale.setlocale(locale.LC_ALL, "")
    except locale.Error:
        pass


def get_encoding() -> str:
    """Return the codeset name of the current locale."""
    encoding = locale.nl_langinfo(locale.CODESET)

    if encoding == "ANSI_X3.4-1968":
        return "US-ASCII"

    return encoding


def _locale_env() -> str:
    for name in ("LC_ALL", "LC_CTYPE", "LANG"):
        value = os.environ.get(name)
        if value is not None:
            return f"{name}={value}"
    return ""


def check_utf8_locale() -> str:
    """Load the locale from the environment and return its accepted encoding."""
    _initialize_from_env()
    encoding = get_encoding()

    if encoding in _ACCEPTED:
        return encoding

    raise LocaleError(
        "termcast requires ASCII or UTF-8 character encoding. "
        f'The environment ({_locale_env()}) specifies the character set "{encoding}". '
        "Check the output of `locale` command."
    )