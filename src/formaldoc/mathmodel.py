"""
Math Component Model: a small tree describing an equation, and its OMML writer.

The tree is what the OMML parser in :mod:`formaldoc.omml` produces and what the
assembler turns back into ``m:oMath`` markup. Composite slots are never empty:
an empty slot holds a single ``MathRun("")`` (see :func:`slot`).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Union

from lxml import etree

M_NS = "http://schemas.openxmlformats.org/officeDocument/2006/math"
W_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
XML_NS = "http://www.w3.org/XML/1998/namespace"


def m_tag(name: str) -> str:
    return f"{{{M_NS}}}{name}"


# Delimiter kinds
ROUND = "round"
SQUARE = "square"
CURLY = "curly"

DELIMITER_CHARS: dict[str, tuple[str, str]] = {
    ROUND: ("(", ")"),
    SQUARE: ("[", "]"),
    CURLY: ("{", "}"),
}

# N-ary operators with a dedicated node
SUM = "\u2211"  # n-ary summation
INTEGRAL = "\u222b"  # integral


@dataclass(frozen=True)
class MathRun:
    text: str


@dataclass(frozen=True)
class MathFraction:
    numerator: tuple[MathNode, ...]
    denominator: tuple[MathNode, ...]


@dataclass(frozen=True)
class MathSuperScript:
    children: tuple[MathNode, ...]
    super_script: tuple[MathNode, ...]


@dataclass(frozen=True)
class MathSubScript:
    children: tuple[MathNode, ...]
    sub_script: tuple[MathNode, ...]


@dataclass(frozen=True)
class MathSubSuperScript:
    children: tuple[MathNode, ...]
    sub_script: tuple[MathNode, ...]
    super_script: tuple[MathNode, ...]


@dataclass(frozen=True)
class MathRadical:
    children: tuple[MathNode, ...]
    degree: tuple[MathNode, ...] | None = None


@dataclass(frozen=True)
class MathDelimited:
    children: tuple[MathNode, ...]
    kind: str = ROUND


@dataclass(frozen=True)
class MathNary:
    """Sum or integral with optional limits."""

    symbol: str
    children: tuple[MathNode, ...]
    sub_script: tuple[MathNode, ...] | None = None
    super_script: tuple[MathNode, ...] | None = None


@dataclass(frozen=True)
class MathAccent:
    accent: str
    children: tuple[MathNode, ...]


@dataclass(frozen=True)
class MathStructure:
    """Generic OMML element kept as-is: local name, ``m:`` attributes, content.

    Used where the shape is open-ended, such as matrix properties.
    """

    name: str
    attributes: tuple[tuple[str, str], ...] = ()
    children: tuple[MathNode, ...] = ()
    text: str | None = None


@dataclass(frozen=True)
class MathMatrix:
    # rows -> cells -> cell content
    rows: tuple[tuple[tuple[MathNode, ...], ...], ...]
    properties: tuple[MathStructure, ...] = ()


MathNode = Union[
    MathRun,
    MathFraction,
    MathSuperScript,
    MathSubScript,
    MathSubSuperScript,
    MathRadical,
    MathDelimited,
    MathNary,
    MathAccent,
    MathMatrix,
    MathStructure,
]


def slot(children: Iterable[MathNode]) -> tuple[MathNode, ...]:
    """Content of a composite slot, never empty."""
    items = tuple(children)
    return items or (MathRun(""),)


def plain_text(children: Iterable[MathNode]) -> str:
    """Concatenated run text of a tree, ignoring structure."""
    parts: list[str] = []
    for node in children:
        if isinstance(node, MathRun):
            parts.append(node.text)
        elif isinstance(node, MathStructure):
            if node.text:
                parts.append(node.text)
            parts.append(plain_text(node.children))
        elif isinstance(node, MathMatrix):
            for row in node.rows:
                for cell in row:
                    parts.append(plain_text(cell))
        else:
            for value in vars(node).values():
                if isinstance(value, tuple) and value and not isinstance(value[0], (str, tuple)):
                    parts.append(plain_text(value))
    return "".join(parts)


# OMML serialization


def math_to_omml(children: Iterable[MathNode], display: bool = False) -> etree._Element:
    """Serialize a tree to ``m:oMath``, wrapped in ``m:oMathPara`` for display math."""
    omath = etree.Element(m_tag("oMath"), nsmap={"m": M_NS, "w": W_NS})
    _append_all(omath, children)
    if not display:
        return omath

    para = etree.Element(m_tag("oMathPara"), nsmap={"m": M_NS, "w": W_NS})
    para.append(omath)
    return para


def _append_all(parent: etree._Element, children: Iterable[MathNode]) -> None:
    for child in children:
        parent.append(_build(child))


def _container(parent: etree._Element, name: str, children: Iterable[MathNode]) -> etree._Element:
    element = etree.SubElement(parent, m_tag(name))
    _append_all(element, children)
    return element


def _flag(parent: etree._Element, name: str, value: str = "1") -> etree._Element:
    element = etree.SubElement(parent, m_tag(name))
    element.set(m_tag("val"), value)
    return element


def _build_run(node: MathRun) -> etree._Element:
    mr = etree.Element(m_tag("r"))
    mt = etree.SubElement(mr, m_tag("t"))
    mt.text = node.text
    mt.set(f"{{{XML_NS}}}space", "preserve")
    return mr


def _build_fraction(node: MathFraction) -> etree._Element:
    mf = etree.Element(m_tag("f"))
    _container(mf, "num", node.numerator)
    _container(mf, "den", node.denominator)
    return mf


def _build_superscript(node: MathSuperScript) -> etree._Element:
    element = etree.Element(m_tag("sSup"))
    _container(element, "e", node.children)
    _container(element, "sup", node.super_script)
    return element


def _build_subscript(node: MathSubScript) -> etree._Element:
    element = etree.Element(m_tag("sSub"))
    _container(element, "e", node.children)
    _container(element, "sub", node.sub_script)
    return element


def _build_subsuperscript(node: MathSubSuperScript) -> etree._Element:
    element = etree.Element(m_tag("sSubSup"))
    _container(element, "e", node.children)
    _container(element, "sub", node.sub_script)
    _container(element, "sup", node.super_script)
    return element


def _build_radical(node: MathRadical) -> etree._Element:
    mrad = etree.Element(m_tag("rad"))
    if node.degree is None:
        rad_pr = etree.SubElement(mrad, m_tag("radPr"))
        _flag(rad_pr, "degHide")
        etree.SubElement(mrad, m_tag("deg"))
    else:
        _container(mrad, "deg", node.degree)
    _container(mrad, "e", node.children)
    return mrad


def _build_delimited(node: MathDelimited) -> etree._Element:
    begin, end = DELIMITER_CHARS.get(node.kind, DELIMITER_CHARS[ROUND])
    md = etree.Element(m_tag("d"))
    d_pr = etree.SubElement(md, m_tag("dPr"))
    _flag(d_pr, "begChr", begin)
    _flag(d_pr, "endChr", end)
    _container(md, "e", node.children)
    return md


def _build_nary(node: MathNary) -> etree._Element:
    mnary = etree.Element(m_tag("nary"))
    nary_pr = etree.SubElement(mnary, m_tag("naryPr"))
    _flag(nary_pr, "chr", node.symbol)
    _flag(nary_pr, "limLoc", "subSup" if node.symbol == INTEGRAL else "undOvr")
    if node.sub_script is None:
        _flag(nary_pr, "subHide")
    if node.super_script is None:
        _flag(nary_pr, "supHide")
    # sub and sup are required by the schema even when hidden
    _container(mnary, "sub", node.sub_script or ())
    _container(mnary, "sup", node.super_script or ())
    _container(mnary, "e", node.children)
    return mnary


def _build_accent(node: MathAccent) -> etree._Element:
    macc = etree.Element(m_tag("acc"))
    acc_pr = etree.SubElement(macc, m_tag("accPr"))
    _flag(acc_pr, "chr", node.accent)
    _container(macc, "e", node.children)
    return macc


def _build_matrix(node: MathMatrix) -> etree._Element:
    mm = etree.Element(m_tag("m"))
    for prop in node.properties:
        mm.append(_build_structure(prop))
    for row in node.rows:
        mr = etree.SubElement(mm, m_tag("mr"))
        for cell in row:
            _container(mr, "e", cell)
    return mm


def _build_structure(node: MathStructure) -> etree._Element:
    element = etree.Element(m_tag(node.name))
    for key, value in node.attributes:
        element.set(m_tag(key), value)
    if node.text is not None:
        element.text = node.text
    _append_all(element, node.children)
    return element


_BUILDERS = {
    MathRun: _build_run,
    MathFraction: _build_fraction,
    MathSuperScript: _build_superscript,
    MathSubScript: _build_subscript,
    MathSubSuperScript: _build_subsuperscript,
    MathRadical: _build_radical,
    MathDelimited: _build_delimited,
    MathNary: _build_nary,
    MathAccent: _build_accent,
    MathMatrix: _build_matrix,
    MathStructure: _build_structure,
}


def _build(node: MathNode) -> etree._Element:
    builder = _BUILDERS.get(type(node))
    if builder is None:
        raise TypeError(f"Not a math node: {node!r}")
    return builder(node)
