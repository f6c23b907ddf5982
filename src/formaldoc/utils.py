"""Console diagnostics and unit helpers shared across formaldoc."""

from __future__ import annotations

import sys

# Word measures indents and spacing in twentieths of a point.
TWIPS_PER_POINT = 20


def print_info(message: str) -> None:
    """Print info message."""
    print(f"[INFO] {message}")


def print_warn(message: str) -> None:
    """Print warning message."""
    print(f"[WARN] {message}", file=sys.stderr)


def print_error(message: str) -> None:
    """Print error message."""
    print(f"[ERROR] {message}", file=sys.stderr)


def pt_to_twips(pt: float) -> int:
    return int(round(pt * TWIPS_PER_POINT))


def two_char_indent(font_size: float) -> int:
    """First-line indent of two characters at the given font size, in twips."""
    return pt_to_twips(font_size * 2)
