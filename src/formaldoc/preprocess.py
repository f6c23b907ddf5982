"""
Text-level passes run on raw markdown before parsing.

Two problems are fixed here:

1. Emphasis next to punctuation. CommonMark does not treat ``**`` as an
   opening delimiter when it sits between a letter and a quote or bracket
   (``这是**"功能性"**的安排``). A zero-width space between the delimiter and
   the punctuation restores the emphasis without changing the rendered text.

2. Bare LaTeX. Chat exports often contain display formulas with no ``$$``
   around them. Lines that look like formulas are wrapped in ``$$`` fences so
   the math parser picks them up.
"""

from __future__ import annotations

import re

ZERO_WIDTH_SPACE = "\u200b"

OPENING_PUNCTUATION = (
    '"',
    "'",
    "(",
    "[",
    "\u201c",  # left double quotation mark
    "\u2018",  # left single quotation mark
    "\uff08",  # fullwidth left parenthesis
    "\u3010",  # left black lenticular bracket
    "\u300a",  # left double angle bracket
    "\u3008",  # left angle bracket
    "\u300c",  # left corner bracket
    "\u300e",  # left white corner bracket
    "\u3014",  # left tortoise shell bracket
    "\u3016",  # left white lenticular bracket
)

CLOSING_PUNCTUATION = (
    '"',
    "'",
    ")",
    "]",
    "\u201d",  # right double quotation mark
    "\u2019",  # right single quotation mark
    "\uff09",  # fullwidth right parenthesis
    "\u3011",  # right black lenticular bracket
    "\u300b",  # right double angle bracket
    "\u3009",  # right angle bracket
    "\u300d",  # right corner bracket
    "\u300f",  # right white corner bracket
    "\u3015",  # right tortoise shell bracket
    "\u3017",  # right white lenticular bracket
)

_OPENING_CLASS = "[" + "".join(re.escape(c) for c in OPENING_PUNCTUATION) + "]"
_CLOSING_CLASS = "[" + "".join(re.escape(c) for c in CLOSING_PUNCTUATION) + "]"

EMPHASIS_OPEN_PATTERN = re.compile(rf"(\*{{1,3}})({_OPENING_CLASS})")
EMPHASIS_CLOSE_PATTERN = re.compile(rf"({_CLOSING_CLASS})(\*{{1,3}})")

# Math and code spans are left untouched by the emphasis fix
PROTECTED_SPAN_PATTERN = re.compile(r"(\$\$[\s\S]*?\$\$|\$[^$\n]+\$|`[^`\n]+`)")

# LaTeX commands that strongly indicate a formula
LATEX_COMMANDS: tuple[str, ...] = (
    "\\frac",
    "\\nabla",
    "\\partial",
    "\\sqrt",
    "\\sum",
    "\\int",
    "\\prod",
    "\\lim",
    "\\infty",
    "\\cdot",
    "\\times",
    "\\div",
    "\\pm",
    "\\mp",
    "\\leq",
    "\\geq",
    "\\neq",
    "\\approx",
    "\\equiv",
    "\\propto",
    "\\rightarrow",
    "\\leftarrow",
    "\\Rightarrow",
    "\\Leftarrow",
    "\\leftrightarrow",
    "\\Leftrightarrow",
    "\\forall",
    "\\exists",
    "\\in",
    "\\notin",
    "\\subset",
    "\\supset",
    "\\cup",
    "\\cap",
    "\\alpha",
    "\\beta",
    "\\gamma",
    "\\delta",
    "\\epsilon",
    "\\theta",
    "\\lambda",
    "\\mu",
    "\\pi",
    "\\sigma",
    "\\phi",
    "\\psi",
    "\\omega",
    "\\Gamma",
    "\\Delta",
    "\\Theta",
    "\\Lambda",
    "\\Sigma",
    "\\Phi",
    "\\Psi",
    "\\Omega",
    "\\big(",
    "\\big)",
    "\\Big(",
    "\\Big)",
    "\\bigg(",
    "\\bigg)",
    "\\left(",
    "\\right)",
    "\\left[",
    "\\right]",
    "\\left\\{",
    "\\right\\}",
    "\\text{",
    "\\mathrm{",
    "\\mathbf{",
    "\\mathit{",
    "\\quad",
    "\\qquad",
    "\\log",
    "\\exp",
    "\\sin",
    "\\cos",
    "\\tan",
)

# X_t, X^2, X_{ss}
SUBSCRIPT_SUPERSCRIPT_PATTERN = re.compile(r"[A-Za-z]_\{?[A-Za-z0-9]+\}?|[A-Za-z]\^\{?\d+\}?")

# something = something
EQUATION_PATTERN = re.compile(r"^[^=]*=[^=]+$")

# Lines opening with these are markdown structure, never formulas
MARKDOWN_LINE_PATTERN = re.compile(r"^(#|[-*+>|]|\d+[.)]\s)")

CJK_PATTERN = re.compile("[\u4e00-\u9fff]")
MAX_CJK_CHARS = 5

MATH_FENCE = "$$"


def preprocess_bold_punctuation(markdown: str) -> str:
    """Insert zero-width spaces between emphasis delimiters and adjacent punctuation."""
    parts = PROTECTED_SPAN_PATTERN.split(markdown)
    # Odd indices are protected spans
    for i in range(0, len(parts), 2):
        part = EMPHASIS_OPEN_PATTERN.sub(rf"\1{ZERO_WIDTH_SPACE}\2", parts[i])
        parts[i] = EMPHASIS_CLOSE_PATTERN.sub(rf"\1{ZERO_WIDTH_SPACE}\2", part)
    return "".join(parts)


def count_latex_commands(line: str) -> int:
    """Number of distinct known LaTeX commands appearing in ``line``."""
    return sum(1 for cmd in LATEX_COMMANDS if cmd in line)


def is_likely_latex_formula(line: str) -> bool:
    """Check if a line looks like a standalone LaTeX formula.

    Errs on the side of leaving prose alone: a command alone is not enough,
    it must come with an equation shape, a second command or a script.
    """
    trimmed = line.strip()
    if not trimmed or MARKDOWN_LINE_PATTERN.match(trimmed):
        return False

    if len(CJK_PATTERN.findall(trimmed)) > MAX_CJK_CHARS:
        return False

    command_count = count_latex_commands(trimmed)
    if command_count == 0:
        return False

    return (
        EQUATION_PATTERN.match(trimmed) is not None
        or command_count >= 2
        or SUBSCRIPT_SUPERSCRIPT_PATTERN.search(trimmed) is not None
    )


def _is_delimited_math_line(trimmed: str) -> bool:
    if trimmed.startswith(MATH_FENCE) and trimmed.endswith(MATH_FENCE) and len(trimmed) > 4:
        return True
    return trimmed.startswith("$") and trimmed.endswith("$") and not trimmed.startswith(MATH_FENCE)


def preprocess_latex(markdown: str) -> str:
    """Wrap bare LaTeX formula lines in ``$$`` fences."""
    result: list[str] = []
    inside_math_block = False

    for line in markdown.split("\n"):
        trimmed = line.strip()

        if trimmed == MATH_FENCE:
            inside_math_block = not inside_math_block
            result.append(line)
            continue

        if inside_math_block or _is_delimited_math_line(trimmed):
            result.append(line)
            continue

        if is_likely_latex_formula(line):
            result.extend((MATH_FENCE, trimmed, MATH_FENCE))
        else:
            result.append(line)

    # Close an unterminated block
    if inside_math_block:
        result.append(MATH_FENCE)

    return "\n".join(result)


def preprocess(markdown: str) -> str:
    """Run all text-level passes."""
    return preprocess_latex(preprocess_bold_punctuation(markdown))
