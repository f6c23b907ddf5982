"""Markdown syntax tree produced by :mod:`formaldoc.parser`.

The node set is closed: the parser maps every token it does not know onto
:class:`Unsupported`, so converters can dispatch on the classes below and
treat anything else as an error in the parser.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union


# Inline nodes


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class Strong:
    children: tuple[InlineNode, ...] = ()


@dataclass(frozen=True)
class Emphasis:
    children: tuple[InlineNode, ...] = ()


@dataclass(frozen=True)
class InlineCode:
    value: str


@dataclass(frozen=True)
class Link:
    url: str
    children: tuple[InlineNode, ...] = ()


@dataclass(frozen=True)
class InlineMath:
    value: str


# Block nodes


@dataclass(frozen=True)
class Heading:
    depth: int
    children: tuple[InlineNode, ...] = ()


@dataclass(frozen=True)
class Paragraph:
    children: tuple[InlineNode, ...] = ()


@dataclass(frozen=True)
class ListItem:
    children: tuple[BlockNode, ...] = ()


@dataclass(frozen=True)
class List:
    ordered: bool = False
    start: int = 1
    items: tuple[ListItem, ...] = ()


@dataclass(frozen=True)
class TableCell:
    children: tuple[InlineNode, ...] = ()


@dataclass(frozen=True)
class TableRow:
    cells: tuple[TableCell, ...] = ()


@dataclass(frozen=True)
class Table:
    # One entry per column: "left", "center", "right" or None
    align: tuple[str | None, ...] = ()
    rows: tuple[TableRow, ...] = ()


@dataclass(frozen=True)
class Blockquote:
    children: tuple[BlockNode, ...] = ()


@dataclass(frozen=True)
class HtmlBlock:
    value: str


@dataclass(frozen=True)
class Math:
    value: str
    display: bool = True


@dataclass(frozen=True)
class Unsupported:
    """A token the converter has no rendering for (code blocks, rules...)."""

    kind: str
    raw: str = ""


@dataclass(frozen=True)
class Document:
    children: tuple[BlockNode, ...] = field(default_factory=tuple)


InlineNode = Union[Text, Strong, Emphasis, InlineCode, Link, InlineMath, Unsupported]
BlockNode = Union[Heading, Paragraph, List, ListItem, Table, Blockquote, HtmlBlock, Math, Unsupported]
