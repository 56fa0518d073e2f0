"""Coloured status lines for the terminal."""
from __future__ import annotations

import os
import sys

_RESET = "\x1b[0m"


def no_emoji() -> bool:
    """Return True when the NO_EMOJI environment variable is set."""
    return "NO_EMOJI" in os.environ


def _colors_enabled() -> bool:
    force = os.environ.get("CLICOLOR_FORCE")
    if force is not None and force != "0":
        return True
    if os.environ.get("CLICOLOR") == "0":
        return False
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


def _paint(code: str, text: object) -> str:
    text = str(text)
    if not _colors_enabled():
        return text
    return f"\x1b[{code}m{text}{_RESET}"


def bold(text: object) -> str:
    """Render text in bold."""
    return _paint("1", text)


def blue(text: object) -> str:
    """Render text in blue."""
    return _paint("34", text)


def red(text: object) -> str:
    """Render text in red."""
    return _paint("31", text)


def green(text: object) -> str:
    """Render text in green."""
    return _paint("32", text)


def warn(message: str) -> None:
    """Print a warning line in red."""
    symbol = "!" if no_emoji() else "⚠️ "
    print(f"{red(symbol)} {red(message)}")


def success(message: str) -> None:
    """Print a success line in green."""
    symbol = "✓" if no_emoji() else "✅"
    print(f"{green(symbol)} {green(message)}")