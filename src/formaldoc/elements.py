"""Document elements: the flat, style-tagged output of the converter."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from .mathmodel import MathNode

# Paragraph style ids
STYLE_TITLE = "Title"
STYLE_HEADING1 = "Heading1"
STYLE_HEADING2 = "Heading2"
STYLE_HEADING3 = "Heading3"
STYLE_HEADING4 = "Heading4"
STYLE_BODY_TEXT = "BodyText"
STYLE_LIST_PARAGRAPH = "ListParagraph"
STYLE_BLOCK_QUOTE = "BlockQuote"
STYLE_TABLE_HEADER = "TableCaption"
STYLE_TABLE_TEXT = "TableText"
STYLE_FORMULA = "Formula"

# Style id -> style table key supplying its font
STYLE_KEY_FOR_ID: dict[str, str] = {
    STYLE_TITLE: "title",
    STYLE_HEADING1: "heading1",
    STYLE_HEADING2: "heading2",
    STYLE_HEADING3: "heading3",
    STYLE_HEADING4: "heading4",
    STYLE_BODY_TEXT: "bodyText",
    STYLE_LIST_PARAGRAPH: "listItem",
    STYLE_BLOCK_QUOTE: "blockquote",
    STYLE_TABLE_HEADER: "tableHeader",
    STYLE_TABLE_TEXT: "tableCell",
    STYLE_FORMULA: "bodyText",
}

ALIGN_LEFT = "left"
ALIGN_CENTER = "center"
ALIGN_RIGHT = "right"
ALIGN_JUSTIFY = "justify"


@dataclass(frozen=True)
class TextRun:
    text: str
    bold: bool = False
    italic: bool = False


@dataclass(frozen=True)
class EquationRun:
    """A native equation built from a Math Component Model tree."""

    children: tuple[MathNode, ...]
    display: bool = False
    latex: str = ""


Run = Union[TextRun, EquationRun]


@dataclass(frozen=True)
class Indent:
    """Paragraph indent override, in twips. None leaves the style value."""

    left: int | None = None
    first_line: int | None = None


@dataclass(frozen=True)
class FormattedParagraph:
    runs: tuple[Run, ...] = ()
    style: str = STYLE_BODY_TEXT
    indent: Indent | None = None
    alignment: str | None = None

    @property
    def text(self) -> str:
        """Plain text of the paragraph; equations contribute their LaTeX source."""
        return "".join(run.text if isinstance(run, TextRun) else run.latex for run in self.runs)


@dataclass(frozen=True)
class Border:
    style: str = "single"
    size: int = 4  # eighths of a point
    color: str = "000000"


@dataclass(frozen=True)
class TableCell:
    paragraph: FormattedParagraph
    vertical_align: str = ALIGN_CENTER


@dataclass(frozen=True)
class TableRow:
    cells: tuple[TableCell, ...] = ()
    header: bool = False


@dataclass(frozen=True)
class Table:
    rows: tuple[TableRow, ...] = ()
    borders: Border = field(default_factory=Border)
    width_percent: int = 100

    @property
    def column_count(self) -> int:
        return max((len(row.cells) for row in self.rows), default=0)


DocumentElement = Union[FormattedParagraph, Table]
