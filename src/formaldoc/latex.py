"""LaTeX formulas to native Word equations.

Pipeline: LaTeX -> MathML (latex2mathml) -> OMML (mathml2omml) -> escaping
repair -> Math Component Model. A formula that fails anywhere along the way
is kept as its raw LaTeX in an italic text run.
"""

from __future__ import annotations

import html.entities
import re
from collections import Counter

import latex2mathml.converter
import mathml2omml
from latex2mathml import commands, symbols_parser

from .elements import EquationRun, TextRun
from .omml import parse_omml, repair_omml_escaping
from .utils import print_warn

_ENVIRONMENT_PATTERN = re.compile(r"\\(begin|end)\s*\{([^{}]*)\}")


def _command_names() -> frozenset[str]:
    """Every control sequence named in latex2mathml's command tables."""
    names: set[str] = set()
    for value in vars(commands).values():
        if isinstance(value, str):
            items = (value,)
        elif isinstance(value, (tuple, list, set, frozenset, dict)):
            items = value
        else:
            continue
        names.update(item for item in items if isinstance(item, str) and item.startswith("\\"))
    return frozenset(names)


KNOWN_COMMANDS = _command_names()


def is_known_command(command: str) -> bool:
    """Whether latex2mathml renders ``command`` (e.g. ``\\frac``) rather than printing it literally."""
    return command in KNOWN_COMMANDS or symbols_parser.convert_symbol(command) is not None


class LatexRenderError(ValueError):
    """Raised when a LaTeX formula cannot be rendered to MathML."""


def check_latex(latex: str) -> None:
    """Reject input that latex2mathml would silently render as something else.

    Raises:
        LatexRenderError: On blank input, unbalanced braces, a dangling
            backslash, an undefined control sequence or unmatched
            ``\\begin`` / ``\\end`` environments.
    """
    if not latex.strip():
        raise LatexRenderError("Empty formula")

    depth = 0
    i = 0
    while i < len(latex):
        char = latex[i]
        if char == "\\":
            if i + 1 >= len(latex):
                raise LatexRenderError("Formula ends with an unterminated command")
            end = i + 1
            while end < len(latex) and latex[end].isascii() and latex[end].isalpha():
                end += 1
            if end == i + 1:
                # Escaped character such as \{ or \,
                i += 2
                continue
            command = latex[i:end]
            if not is_known_command(command):
                raise LatexRenderError(f"Undefined control sequence: {command}")
            i = end
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth < 0:
                raise LatexRenderError("Unexpected closing brace")
        i += 1

    if depth:
        raise LatexRenderError(f"Unbalanced braces: {depth} group(s) left open")

    environments: Counter[str] = Counter()
    for kind, name in _ENVIRONMENT_PATTERN.findall(latex):
        environments[name] += 1 if kind == "begin" else -1
    unmatched = sorted(name for name, count in environments.items() if count)
    if unmatched:
        raise LatexRenderError(f"Unmatched environment: {', '.join(unmatched)}")


def render_mathml(latex: str, display: bool = False) -> str:
    """Render LaTeX to a MathML string, raising instead of guessing.

    Raises:
        LatexRenderError: If the formula is malformed or latex2mathml fails.
    """
    check_latex(latex)
    try:
        return latex2mathml.converter.convert(latex, display="block" if display else "inline")
    except Exception as e:
        raise LatexRenderError(f"{type(e).__name__}: {e}") from e


def transduce_omml(mathml: str) -> str:
    """Convert MathML to an OMML string (``m:`` prefixed, undeclared)."""
    return mathml2omml.convert(mathml, html.entities.name2codepoint)


def latex_to_omml(latex: str, display: bool = False) -> str | None:
    """
    Convert LaTeX to an OMML string.

    Args:
        latex: LaTeX formula, without ``$`` delimiters
        display: Render as a display (block) formula

    Returns:
        Repaired OMML markup, or None if the formula cannot be converted
    """
    try:
        return repair_omml_escaping(transduce_omml(render_mathml(latex, display)))
    except Exception as e:
        print_warn(f"LaTeX conversion failed for {latex!r}: {e}")
        return None


def latex_to_math(latex: str, display: bool = False) -> EquationRun | TextRun:
    """
    Convert LaTeX to an equation run.

    Falls back to an italic text run holding the raw LaTeX when rendering,
    transduction or parsing fails; a warning is printed in that case.
    """
    try:
        mathml = render_mathml(latex, display)
    except LatexRenderError as e:
        print_warn(f"LaTeX conversion failed for {latex!r}: {e}")
        return TextRun(text=latex, italic=True)

    try:
        children = parse_omml(repair_omml_escaping(transduce_omml(mathml)))
    except Exception as e:
        print_warn(f"OMML conversion failed for {latex!r}, using raw LaTeX: {e}")
        return TextRun(text=latex, italic=True)

    return EquationRun(children=tuple(children), display=display, latex=latex)
