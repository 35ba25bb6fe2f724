"""Coloured status lines for the terminal."""

from __future__ import annotations

import os
import sys

_COLORS = {
    "black": 30,
    "red": 31,
    "green": 32,
    "yellow": 33,
    "blue": 34,
    "magenta": 35,
    "cyan": 36,
    "white": 37,
}


def _colors_enabled() -> bool:
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


def no_emoji() -> bool:
    """Whether the user asked for plain symbols instead of emoji."""
    return "NO_EMOJI" in os.environ


def style(text: object, *, color: str | None = None, bold: bool = False,
          enabled: bool | None = None) -> str:
    """Wrap text in ANSI escape codes when the terminal supports colour."""
    codes: list[int] = []
    if color is not None:
        try:
            codes.append(_COLORS[color])
        except KeyError:
            raise ValueError(f"unknown colour: {color!r}") from None
    if bold:
        codes.append(1)
    if enabled is None:
        enabled = _colors_enabled()
    if not enabled or not codes:
        return str(text)
    prefix = "".join(f"\x1b[{code}m" for code in codes)
    return f"{prefix}{text}\x1b[0m"


def warn(message: object) -> None:
    """Print a warning line in red."""
    symbol = "!" if no_emoji() else "⚠️ "
    print(style(symbol, color="red"), style(message, color="red"))


def success(message: object) -> None:
    """Print a success line in green."""
    symbol = "✓" if no_emoji() else "✅"
    print(style(symbol, color="green"), style(message, color="green"))