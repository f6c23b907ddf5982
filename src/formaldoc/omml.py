"""
OMML -> Math Component Model.

mathml2omml emits ``m:``-prefixed markup without namespace declarations and
does not escape ``<`` / ``>`` inside ``m:t`` text. :func:`repair_omml_escaping`
fixes the text, :func:`parse_omml` reads the result with lxml.
"""

from __future__ import annotations

import re

from lxml import etree

from .mathmodel import (
    CURLY,
    INTEGRAL,
    M_NS,
    ROUND,
    SQUARE,
    SUM,
    W_NS,
    MathDelimited,
    MathFraction,
    MathMatrix,
    MathNary,
    MathNode,
    MathRadical,
    MathRun,
    MathStructure,
    MathSubScript,
    MathSubSuperScript,
    MathSuperScript,
    slot,
)

# An m:t element: opening tag (name followed by whitespace or ">", never "/>"),
# text, closing tag. Look-alikes such as <m:type> do not match.
_TEXT_ELEMENT_PATTERN = re.compile(r"(<m:t(?:\s[^<>]*)?(?<!/)>)(.*?)(</m:t\s*>)", re.DOTALL)

# "&" that does not start an entity or character reference
_BARE_AMPERSAND_PATTERN = re.compile(r"&(?!#\d+;|#x[0-9A-Fa-f]+;|[A-Za-z][A-Za-z0-9]*;)")

_XML_DECLARATION_PATTERN = re.compile(r"^\s*<\?xml[^>]*\?>")

_WRAPPER_OPEN = f'<formaldoc-omml xmlns:m="{M_NS}" xmlns:w="{W_NS}">'
_WRAPPER_CLOSE = "</formaldoc-omml>"

# Accent glyph -> combining diacritic fused into a short base
COMBINING_ACCENTS: dict[str, str] = {
    "^": "\u0302",  # circumflex (\hat)
    "\u0302": "\u0302",
    "~": "\u0303",  # tilde (\tilde)
    "\u0303": "\u0303",
    "\u2192": "\u20d7",  # right arrow (\vec)
    "\u00af": "\u0304",  # macron (\bar, \overline)
    "\u0304": "\u0304",
    "\u02d9": "\u0307",  # dot above (\dot)
    "\u0307": "\u0307",
    "\u00a8": "\u0308",  # diaeresis (\ddot)
}
DEFAULT_ACCENT = "^"
DEFAULT_SEPARATOR = "|"
MAX_FUSED_BASE_LENGTH = 2


def _escape_text(match: re.Match) -> str:
    opening, content, closing = match.groups()
    content = _BARE_AMPERSAND_PATTERN.sub("&amp;", content)
    content = content.replace("<", "&lt;").replace(">", "&gt;")
    return opening + content + closing


def repair_omml_escaping(omml: str) -> str:
    """Escape markup characters inside ``m:t`` text, leaving every tag alone."""
    return _TEXT_ELEMENT_PATTERN.sub(_escape_text, omml)


def _local_name(element: etree._Element) -> str:
    return etree.QName(element).localname


def _is_math(element: etree._Element) -> bool:
    return isinstance(element.tag, str) and etree.QName(element).namespace == M_NS


def _child(element: etree._Element, name: str) -> etree._Element | None:
    for child in element:
        if _is_math(child) and _local_name(child) == name:
            return child
    return None


def _children(element: etree._Element, name: str) -> list[etree._Element]:
    return [child for child in element if _is_math(child) and _local_name(child) == name]


def _val(element: etree._Element | None) -> str | None:
    if element is None:
        return None
    value = element.get(f"{{{M_NS}}}val")
    if value is None:
        value = element.get("val")
    return value


def _property(element: etree._Element, properties: str, name: str) -> str | None:
    props = _child(element, properties)
    if props is None:
        return None
    return _val(_child(props, name))


def parse_omml(omml: str) -> list[MathNode]:
    """Parse an OMML fragment into Math Component Model nodes.

    The fragment may use the ``m:`` prefix without declaring it. The first
    ``m:oMath`` element (possibly inside ``m:oMathPara``) is converted; when
    there is none, the fragment's top-level elements are.

    Raises:
        lxml.etree.XMLSyntaxError: If the fragment is not well-formed.
    """
    source = _XML_DECLARATION_PATTERN.sub("", omml)
    root = etree.fromstring(_WRAPPER_OPEN + source + _WRAPPER_CLOSE)

    omath = next(root.iter(f"{{{M_NS}}}oMath"), None)
    if omath is None:
        return parse_children(root)
    return parse_children(omath)


def parse_children(element: etree._Element) -> list[MathNode]:
    """Convert the element children of ``element``, in order."""
    nodes: list[MathNode] = []
    for child in element:
        if not isinstance(child.tag, str):
            continue  # comments, processing instructions
        nodes.extend(_parse_element(child))
    return nodes


def _slot_of(element: etree._Element, name: str) -> tuple[MathNode, ...]:
    part = _child(element, name)
    return slot(parse_children(part) if part is not None else ())


def _optional_slot_of(element: etree._Element, name: str) -> tuple[MathNode, ...] | None:
    part = _child(element, name)
    nodes = parse_children(part) if part is not None else []
    return tuple(nodes) or None


def _parse_run(element: etree._Element) -> list[MathNode]:
    text_element = _child(element, "t")
    text = text_element.text if text_element is not None else "".join(element.itertext())
    if not text or not text.strip():
        return []
    return [MathRun(text)]


def _parse_fraction(element: etree._Element) -> list[MathNode]:
    return [MathFraction(numerator=_slot_of(element, "num"), denominator=_slot_of(element, "den"))]


def _parse_superscript(element: etree._Element) -> list[MathNode]:
    return [MathSuperScript(children=_slot_of(element, "e"), super_script=_slot_of(element, "sup"))]


def _parse_subscript(element: etree._Element) -> list[MathNode]:
    return [MathSubScript(children=_slot_of(element, "e"), sub_script=_slot_of(element, "sub"))]


def _parse_subsuperscript(element: etree._Element) -> list[MathNode]:
    return [
        MathSubSuperScript(
            children=_slot_of(element, "e"),
            sub_script=_slot_of(element, "sub"),
            super_script=_slot_of(element, "sup"),
        )
    ]


def _parse_radical(element: etree._Element) -> list[MathNode]:
    degree = _child(element, "deg")
    degree_nodes = parse_children(degree) if degree is not None else []
    hidden = _property(element, "radPr", "degHide") in ("1", "on", "true")
    # An empty or hidden degree is a square root
    if hidden or not degree_nodes:
        return [MathRadical(children=_slot_of(element, "e"))]
    return [MathRadical(children=_slot_of(element, "e"), degree=tuple(degree_nodes))]


def _parse_delimiter(element: etree._Element) -> list[MathNode]:
    begin = _property(element, "dPr", "begChr") or "("
    end = _property(element, "dPr", "endChr") or ")"
    if begin == "[" or end == "]":
        kind = SQUARE
    elif begin == "{" or end == "}":
        kind = CURLY
    else:
        kind = ROUND

    # Several m:e children are items joined by the separator glyph
    separator = _property(element, "dPr", "sepChr") or DEFAULT_SEPARATOR
    children: list[MathNode] = []
    for index, item in enumerate(_children(element, "e")):
        if index:
            children.append(MathRun(separator))
        children.extend(parse_children(item))
    return [MathDelimited(children=slot(children), kind=kind)]


def _parse_nary(element: etree._Element) -> list[MathNode]:
    operator = _property(element, "naryPr", "chr") or SUM
    sub_script = _optional_slot_of(element, "sub")
    super_script = _optional_slot_of(element, "sup")
    if _property(element, "naryPr", "subHide") in ("1", "on", "true"):
        sub_script = None
    if _property(element, "naryPr", "supHide") in ("1", "on", "true"):
        super_script = None
    children = _slot_of(element, "e")

    if operator in (SUM, INTEGRAL):
        return [MathNary(symbol=operator, children=children, sub_script=sub_script, super_script=super_script)]

    # Other operators (product, union...) become a scripted glyph before the operand
    glyph = MathRun(operator)
    if sub_script and super_script:
        head: MathNode = MathSubSuperScript(children=(glyph,), sub_script=sub_script, super_script=super_script)
    elif sub_script:
        head = MathSubScript(children=(glyph,), sub_script=sub_script)
    elif super_script:
        head = MathSuperScript(children=(glyph,), super_script=super_script)
    else:
        head = glyph
    return [head, *children]


def _parse_accent(element: etree._Element) -> list[MathNode]:
    accent = _property(element, "accPr", "chr") or DEFAULT_ACCENT
    base_nodes = _slot_of(element, "e")

    # Only a single short text run is fused; any structure keeps the superscript form
    combining = COMBINING_ACCENTS.get(accent)
    if combining and len(base_nodes) == 1 and isinstance(base_nodes[0], MathRun):
        base_text = base_nodes[0].text
        if base_text and len(base_text) <= MAX_FUSED_BASE_LENGTH:
            return [MathRun(base_text + combining)]
    return [MathSuperScript(children=base_nodes, super_script=(MathRun(accent),))]


def _parse_matrix(element: etree._Element) -> list[MathNode]:
    properties = _child(element, "mPr")
    rows = tuple(
        tuple(slot(parse_children(cell)) for cell in _children(row, "e")) for row in _children(element, "mr")
    )
    return [
        MathMatrix(
            rows=rows,
            properties=(parse_structure(properties),) if properties is not None else (),
        )
    ]


def parse_structure(element: etree._Element) -> MathStructure:
    """Keep an element as a generic structure: name, ``m:val``-style attributes, content."""
    attributes = tuple(
        (etree.QName(key).localname, value)
        for key, value in element.attrib.items()
        if etree.QName(key).namespace == M_NS
    )
    children = tuple(parse_structure(child) for child in element if _is_math(child))
    text = element.text.strip() if element.text and element.text.strip() and not children else None
    return MathStructure(name=_local_name(element), attributes=attributes, children=children, text=text)


def _parse_unknown(element: etree._Element) -> list[MathNode]:
    if len(element):
        return parse_children(element)
    text = "".join(element.itertext()).strip()
    if text:
        return [MathRun(text)]
    return []


_PARSERS = {
    "r": _parse_run,
    "f": _parse_fraction,
    "sSup": _parse_superscript,
    "sSub": _parse_subscript,
    "sSubSup": _parse_subsuperscript,
    "rad": _parse_radical,
    "d": _parse_delimiter,
    "nary": _parse_nary,
    "acc": _parse_accent,
    "m": _parse_matrix,
}


def _parse_element(element: etree._Element) -> list[MathNode]:
    if _local_name(element) == "t":
        return [MathRun(element.text or "")]
    parser = _PARSERS.get(_local_name(element)) if _is_math(element) else None
    if parser is None:
        return _parse_unknown(element)
    return parser(element)
