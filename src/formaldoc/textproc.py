"""
Cleanup passes for chat-generated text.
Applied on request (``--clean``) before conversion.
"""

from __future__ import annotations

import re
from typing import NamedTuple


class ProcessingResult(NamedTuple):
    """Processed text and the number of replacements made."""

    text: str
    count: int


class CleanResult(NamedTuple):
    """Result of all cleanup passes, with one count per pass."""

    text: str
    quotes: int
    emphasis: int
    spaces: int


QUOTED_PATTERN = re.compile(r'"([^"]*)"')
LEFT_DOUBLE_QUOTE = "\u201c"
RIGHT_DOUBLE_QUOTE = "\u201d"

# Math is never touched by the emphasis pass
MATH_SPAN_PATTERN = re.compile(r"(\$\$[\s\S]*?\$\$|\$[^$\n]+\$)")

BOLD_ITALIC_PATTERN = re.compile(r"\*\*\*([^*]+)\*\*\*")
BOLD_PATTERN = re.compile(r"\*\*([^*]+)\*\*")
ITALIC_PATTERN = re.compile(r"(?<!\*)\*([^*]+)\*(?!\*)")

CHINESE_CHAR = "[\u4e00-\u9fff]"
CHINESE_PUNCTUATION = "[\uff0c\u3002\u3001\uff1b\uff1a\uff1f\uff01\u201c\u201d\u2018\u2019\uff08\uff09\u3010\u3011\u300a\u300b]"
# Spaces and tabs only; newlines separate paragraphs
INLINE_SPACE = "[ \t\u3000\u00a0]+"

CHINESE_GAP_PATTERN = re.compile(f"({CHINESE_CHAR}){INLINE_SPACE}({CHINESE_CHAR})")
CHAR_PUNCTUATION_GAP_PATTERN = re.compile(f"({CHINESE_CHAR}){INLINE_SPACE}({CHINESE_PUNCTUATION})")
PUNCTUATION_CHAR_GAP_PATTERN = re.compile(f"({CHINESE_PUNCTUATION}){INLINE_SPACE}({CHINESE_CHAR})")


def convert_quotes(text: str) -> ProcessingResult:
    """Convert paired ASCII double quotes to Chinese curly quotes."""
    converted, count = QUOTED_PATTERN.subn(rf"{LEFT_DOUBLE_QUOTE}\1{RIGHT_DOUBLE_QUOTE}", text)
    return ProcessingResult(converted, count)


def remove_markdown_emphasis(text: str) -> ProcessingResult:
    """Remove ``***``, ``**`` and ``*`` emphasis markers, keeping their content."""
    parts = MATH_SPAN_PATTERN.split(text)
    count = 0
    # Odd indices are math spans
    for i in range(0, len(parts), 2):
        part = parts[i]
        for pattern in (BOLD_ITALIC_PATTERN, BOLD_PATTERN, ITALIC_PATTERN):
            part, n = pattern.subn(r"\1", part)
            count += n
        parts[i] = part
    return ProcessingResult("".join(parts), count)


def remove_chinese_spaces(text: str) -> ProcessingResult:
    """Remove spaces between Chinese characters (or a character and Chinese punctuation).

    Spaces between Chinese and Latin text or digits are kept.
    """
    count = 0
    result = text

    # Matches overlap ("中 国 人"), so repeat until nothing changes
    while True:
        result, n = CHINESE_GAP_PATTERN.subn(r"\1\2", result)
        count += n
        if not n:
            break

    result, n = CHAR_PUNCTUATION_GAP_PATTERN.subn(r"\1\2", result)
    count += n
    result, n = PUNCTUATION_CHAR_GAP_PATTERN.subn(r"\1\2", result)
    count += n

    return ProcessingResult(result, count)


def clean_all(text: str) -> CleanResult:
    """Apply all cleanup passes: quotes, then emphasis, then spaces."""
    quotes = convert_quotes(text)
    emphasis = remove_markdown_emphasis(quotes.text)
    spaces = remove_chinese_spaces(emphasis.text)
    return CleanResult(text=spaces.text, quotes=quotes.count, emphasis=emphasis.count, spaces=spaces.count)
