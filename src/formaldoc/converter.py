"""
Core converter module for formaldoc.
Converts the markdown syntax tree to a flat sequence of document elements.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from . import nodes
from .config import StyleSettings
from .elements import (
    ALIGN_CENTER,
    STYLE_BLOCK_QUOTE,
    STYLE_BODY_TEXT,
    STYLE_FORMULA,
    STYLE_HEADING1,
    STYLE_HEADING2,
    STYLE_HEADING3,
    STYLE_HEADING4,
    STYLE_LIST_PARAGRAPH,
    STYLE_TABLE_HEADER,
    STYLE_TABLE_TEXT,
    STYLE_TITLE,
    Border,
    DocumentElement,
    EquationRun,
    FormattedParagraph,
    Indent,
    Run,
    Table,
    TableCell,
    TableRow,
    TextRun,
)
from .latex import latex_to_math
from .parser import parse_markdown
from .preprocess import preprocess
from .templates import get_template_styles
from .utils import two_char_indent

# Markdown heading depth -> paragraph style; deeper headings are body text
HEADING_STYLES: dict[int, str] = {
    1: STYLE_TITLE,
    2: STYLE_HEADING1,
    3: STYLE_HEADING2,
    4: STYLE_HEADING3,
    5: STYLE_HEADING4,
}

# Extra first-line indent per list nesting level: 2 characters at 16pt
LIST_INDENT_BASE = 640

# Left indent per block quote level: about 1cm
BLOCKQUOTE_INDENT = 567

BULLET_PREFIX = "\u2022 "  # bullet

TABLE_BORDER = Border(style="single", size=4, color="000000")


def list_prefix(ordered: bool, number: int) -> str:
    return f"{number}. " if ordered else BULLET_PREFIX


class DocumentConverter:
    """Flattens a syntax tree into paragraphs and tables.

    Nesting (lists in lists, quotes in quotes) is expressed through paragraph
    indents only; the output order is the depth-first order of the source.
    """

    def __init__(self, styles: StyleSettings | None = None):
        self.styles = styles if styles is not None else get_template_styles()

    @property
    def list_base_indent(self) -> int:
        """First-line indent of a top-level list item, in twips."""
        style = self.styles["listItem"]
        return two_char_indent(style.size) if style.indent else 0

    def list_indent(self, level: int) -> int:
        return self.list_base_indent + LIST_INDENT_BASE * level

    def convert(self, blocks: Iterable[nodes.BlockNode]) -> list[DocumentElement]:
        elements: list[DocumentElement] = []
        for block in blocks:
            elements.extend(self.convert_block(block))
        return elements

    def convert_block(self, block: nodes.BlockNode) -> list[DocumentElement]:
        if isinstance(block, nodes.Heading):
            style = HEADING_STYLES.get(block.depth, STYLE_BODY_TEXT)
            return [FormattedParagraph(runs=self.convert_inlines(block.children), style=style)]
        if isinstance(block, nodes.Paragraph):
            return [FormattedParagraph(runs=self.convert_inlines(block.children), style=STYLE_BODY_TEXT)]
        if isinstance(block, nodes.Math):
            return [self.convert_math(block)]
        if isinstance(block, nodes.List):
            return self.convert_list(block)
        if isinstance(block, nodes.ListItem):
            return self.convert_list_item(block, prefix="", level=0)
        if isinstance(block, nodes.Blockquote):
            return self.convert_blockquote(block)
        if isinstance(block, nodes.Table):
            return [self.convert_table(block)]
        if isinstance(block, nodes.HtmlBlock):
            return self.convert_html(block)
        # Unsupported
        return []

    # Inline content

    def convert_inlines(
        self, inlines: Iterable[nodes.InlineNode], bold: bool = False, italic: bool = False
    ) -> tuple[Run, ...]:
        runs: list[Run] = []
        for inline in inlines:
            runs.extend(self.convert_inline(inline, bold=bold, italic=italic))
        return tuple(runs)

    def convert_inline(self, inline: nodes.InlineNode, bold: bool = False, italic: bool = False) -> list[Run]:
        if isinstance(inline, nodes.Text):
            return [TextRun(text=inline.value, bold=bold, italic=italic)]
        if isinstance(inline, nodes.Strong):
            return list(self.convert_inlines(inline.children, bold=True, italic=italic))
        if isinstance(inline, nodes.Emphasis):
            return list(self.convert_inlines(inline.children, bold=bold, italic=True))
        if isinstance(inline, nodes.InlineCode):
            return [TextRun(text=inline.value, bold=bold, italic=italic)]
        if isinstance(inline, nodes.Link):
            return list(self.convert_inlines(inline.children, bold=bold, italic=italic))
        if isinstance(inline, nodes.InlineMath):
            run = latex_to_math(inline.value, display=False)
            if isinstance(run, TextRun) and bold:
                run = replace(run, bold=True)
            return [run]
        return []

    # Blocks

    def convert_math(self, block: nodes.Math) -> FormattedParagraph:
        run = latex_to_math(block.value, display=block.display)
        return FormattedParagraph(runs=(run,), style=STYLE_FORMULA, alignment=ALIGN_CENTER)

    def convert_list(
        self, block: nodes.List, level: int = 0, quote_indent: int | None = None
    ) -> list[DocumentElement]:
        elements: list[DocumentElement] = []
        for index, item in enumerate(block.items):
            prefix = list_prefix(block.ordered, block.start + index)
            elements.extend(self.convert_list_item(item, prefix, level, quote_indent))
        return elements

    def convert_list_item(
        self, item: nodes.ListItem, prefix: str, level: int, quote_indent: int | None = None
    ) -> list[DocumentElement]:
        if quote_indent is None:
            indent = Indent(first_line=self.list_indent(level))
        else:
            indent = Indent(left=quote_indent, first_line=LIST_INDENT_BASE * (level + 1))

        elements: list[DocumentElement] = []
        for index, child in enumerate(item.children):
            if isinstance(child, nodes.Paragraph):
                runs = self.convert_inlines(child.children)
                # Only the item's first paragraph carries the marker
                if index == 0 and prefix:
                    runs = (TextRun(text=prefix), *runs)
                elements.append(FormattedParagraph(runs=runs, style=STYLE_LIST_PARAGRAPH, indent=indent))
            elif isinstance(child, nodes.List):
                elements.extend(self.convert_list(child, level + 1, quote_indent))
            else:
                elements.extend(self.convert_block(child))
        return elements

    def convert_blockquote(self, block: nodes.Blockquote, level: int = 1) -> list[DocumentElement]:
        left = BLOCKQUOTE_INDENT * level
        elements: list[DocumentElement] = []
        for child in block.children:
            if isinstance(child, (nodes.Paragraph, nodes.Heading)):
                elements.append(
                    FormattedParagraph(
                        runs=self.convert_inlines(child.children),
                        style=STYLE_BLOCK_QUOTE,
                        indent=Indent(left=left, first_line=0),
                    )
                )
            elif isinstance(child, nodes.Blockquote):
                elements.extend(self.convert_blockquote(child, level + 1))
            elif isinstance(child, nodes.List):
                elements.extend(self.convert_list(child, quote_indent=left))
            else:
                elements.extend(self.convert_block(child))
        return elements

    def convert_table(self, block: nodes.Table) -> Table:
        rows = []
        for index, row in enumerate(block.rows):
            header = index == 0
            style = STYLE_TABLE_HEADER if header else STYLE_TABLE_TEXT
            # Cells are always centered; source column alignment is not applied
            cells = tuple(
                TableCell(
                    paragraph=FormattedParagraph(
                        runs=self.convert_inlines(cell.children, bold=header),
                        style=style,
                        alignment=ALIGN_CENTER,
                    ),
                    vertical_align=ALIGN_CENTER,
                )
                for cell in row.cells
            )
            rows.append(TableRow(cells=cells, header=header))
        return Table(rows=tuple(rows), borders=TABLE_BORDER)

    def convert_html(self, block: nodes.HtmlBlock) -> list[DocumentElement]:
        return [
            FormattedParagraph(runs=(TextRun(text=line),), style=STYLE_BODY_TEXT)
            for line in block.value.splitlines()
        ]


def convert_nodes(
    blocks: nodes.Document | Iterable[nodes.BlockNode], styles: StyleSettings | None = None
) -> list[DocumentElement]:
    """
    Convert syntax nodes to document elements.

    Args:
        blocks: Parsed document or its top-level blocks
        styles: Style table used for list indents (defaults to the default template)

    Returns:
        Flat list of paragraphs and tables in document order
    """
    if isinstance(blocks, nodes.Document):
        blocks = blocks.children
    return DocumentConverter(styles).convert(blocks)


def convert_markdown(markdown: str, styles: StyleSettings | None = None) -> list[DocumentElement]:
    """Preprocess, parse and convert markdown text to document elements."""
    return convert_nodes(parse_markdown(preprocess(markdown)), styles)


def count_equations(elements: Iterable[DocumentElement]) -> int:
    """Number of native equation runs in a converted document."""
    total = 0
    for element in elements:
        if isinstance(element, Table):
            paragraphs = [cell.paragraph for row in element.rows for cell in row.cells]
        else:
            paragraphs = [element]
        total += sum(1 for paragraph in paragraphs for run in paragraph.runs if isinstance(run, EquationRun))
    return total
