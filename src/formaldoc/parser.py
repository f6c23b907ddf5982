"""
Markdown parsing: mistune AST tokens -> :mod:`formaldoc.nodes`.

mistune is run with the table, math and strikethrough plugins. Math uses
``$...$`` for inline formulas and ``$$`` fenced blocks for display formulas.
"""

from __future__ import annotations

from typing import Any

import mistune

from . import nodes

_markdown = mistune.create_markdown(renderer="ast", plugins=["table", "math", "strikethrough"])

# Tokens that carry no content at all
_SKIPPED_BLOCKS = {"blank_line"}


def parse_tokens(markdown: str) -> list[dict[str, Any]]:
    """Parse markdown into raw mistune AST tokens."""
    if not markdown:
        return []
    tokens = _markdown(markdown)
    return list(tokens)  # type: ignore[arg-type]


def parse_markdown(markdown: str) -> nodes.Document:
    """Parse markdown text into a syntax tree."""
    return nodes.Document(children=_convert_blocks(parse_tokens(markdown)))


def _convert_blocks(tokens: list[dict[str, Any]]) -> tuple[nodes.BlockNode, ...]:
    blocks = []
    for token in tokens:
        if token.get("type") in _SKIPPED_BLOCKS:
            continue
        blocks.append(_convert_block(token))
    return tuple(blocks)


def _convert_block(token: dict[str, Any]) -> nodes.BlockNode:
    tp = token.get("type", "")
    attrs = token.get("attrs", {})
    children = token.get("children", [])

    if tp == "heading":
        return nodes.Heading(depth=attrs.get("level", 1), children=_convert_inlines(children))

    # mistune uses "block_text" for tight list items, "paragraph" for loose
    if tp in ("paragraph", "block_text"):
        return nodes.Paragraph(children=_convert_inlines(children))

    if tp == "list":
        items = tuple(
            nodes.ListItem(children=_convert_blocks(item.get("children", [])))
            for item in children
            if item.get("type") == "list_item"
        )
        return nodes.List(
            ordered=bool(attrs.get("ordered", False)),
            start=attrs.get("start", 1),
            items=items,
        )

    if tp == "list_item":
        return nodes.ListItem(children=_convert_blocks(children))

    if tp == "block_quote":
        return nodes.Blockquote(children=_convert_blocks(children))

    if tp == "table":
        return _convert_table(token)

    if tp == "block_html":
        return nodes.HtmlBlock(value=token.get("raw", ""))

    if tp == "block_math":
        return nodes.Math(value=token.get("raw", "").strip(), display=True)

    return nodes.Unsupported(kind=tp, raw=token.get("raw", ""))


def _convert_table(token: dict[str, Any]) -> nodes.Table:
    """Flatten mistune's head/body split into a plain list of rows.

    mistune v3 AST for tables:
      table -> [table_head, table_body]
      table_head -> [table_cell, ...]   (cells directly, no row wrapper)
      table_body -> [table_row, ...]
      table_row  -> [table_cell, ...]
    """
    rows: list[nodes.TableRow] = []
    align: tuple[str | None, ...] = ()

    for section in token.get("children", []):
        stype = section.get("type", "")
        if stype == "table_head":
            cells = [c for c in section.get("children", []) if c.get("type") == "table_cell"]
            align = tuple(c.get("attrs", {}).get("align") for c in cells)
            rows.append(nodes.TableRow(cells=tuple(_convert_cell(c) for c in cells)))
        elif stype == "table_body":
            for row in section.get("children", []):
                if row.get("type") == "table_row":
                    rows.append(nodes.TableRow(cells=tuple(_convert_cell(c) for c in row.get("children", []))))

    return nodes.Table(align=align, rows=tuple(rows))


def _convert_cell(token: dict[str, Any]) -> nodes.TableCell:
    return nodes.TableCell(children=_convert_inlines(token.get("children", [])))


def _convert_inlines(tokens: list[dict[str, Any]]) -> tuple[nodes.InlineNode, ...]:
    result: list[nodes.InlineNode] = []
    for token in tokens:
        result.extend(_convert_inline(token))
    return tuple(result)


def _convert_inline(token: dict[str, Any]) -> list[nodes.InlineNode]:
    tp = token.get("type", "")
    children = token.get("children", [])

    if tp == "text":
        return [nodes.Text(value=token.get("raw", ""))]
    if tp == "strong":
        return [nodes.Strong(children=_convert_inlines(children))]
    if tp == "emphasis":
        return [nodes.Emphasis(children=_convert_inlines(children))]
    if tp == "codespan":
        return [nodes.InlineCode(value=token.get("raw", ""))]
    if tp == "link":
        return [nodes.Link(url=token.get("attrs", {}).get("url", ""), children=_convert_inlines(children))]
    if tp == "inline_math":
        return [nodes.InlineMath(value=token.get("raw", ""))]
    if tp in ("softbreak", "linebreak"):
        return [nodes.Text(value="\n")]
    if tp == "inline_html":
        return [nodes.Text(value=token.get("raw", ""))]
    # strikethrough and friends: keep the text, drop the decoration
    if children:
        return list(_convert_inlines(children))
    return [nodes.Unsupported(kind=tp, raw=token.get("raw", ""))]
