"""
Document assembly for formaldoc.
Turns converted document elements into a .docx package with python-docx.
"""

from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Iterable

from docx import Document
from docx.enum.section import WD_ORIENT
from docx.enum.style import WD_STYLE_TYPE
from docx.enum.table import WD_CELL_VERTICAL_ALIGNMENT
from docx.enum.text import WD_ALIGN_PARAGRAPH, WD_LINE_SPACING
from docx.oxml import OxmlElement, parse_xml
from docx.oxml.ns import qn
from docx.shared import Pt, RGBColor, Twips
from lxml import etree

from .config import DocumentSettings, StyleSettings, TextStyle, load_config
from .converter import BLOCKQUOTE_INDENT, convert_markdown, count_equations
from .elements import (
    ALIGN_CENTER,
    ALIGN_JUSTIFY,
    ALIGN_LEFT,
    ALIGN_RIGHT,
    STYLE_BLOCK_QUOTE,
    STYLE_BODY_TEXT,
    STYLE_FORMULA,
    STYLE_HEADING1,
    STYLE_HEADING2,
    STYLE_HEADING3,
    STYLE_HEADING4,
    STYLE_KEY_FOR_ID,
    STYLE_LIST_PARAGRAPH,
    STYLE_TABLE_HEADER,
    STYLE_TABLE_TEXT,
    STYLE_TITLE,
    Border,
    DocumentElement,
    EquationRun,
    FormattedParagraph,
    Table,
)
from .mathmodel import math_to_omml
from .templates import get_template
from .utils import print_info, two_char_indent

# A4, in twips
PAGE_WIDTH = 11906
PAGE_HEIGHT = 16838

# Single line spacing for the "auto" rule
SINGLE_LINE = 240

TITLE_SPACING = 560
FORMULA_SPACING = 120
FORMULA_FONT = "Cambria Math"

# Style id -> style name in styles.xml
STYLE_NAMES: dict[str, str] = {
    STYLE_TITLE: "Title",
    STYLE_HEADING1: "Heading 1",
    STYLE_HEADING2: "Heading 2",
    STYLE_HEADING3: "Heading 3",
    STYLE_HEADING4: "Heading 4",
    STYLE_BODY_TEXT: "Body Text",
    STYLE_LIST_PARAGRAPH: "List Paragraph",
    STYLE_BLOCK_QUOTE: "Block Quote",
    STYLE_TABLE_HEADER: "Caption",
    STYLE_TABLE_TEXT: "Table Text",
    STYLE_FORMULA: "Formula",
}

OUTLINE_LEVELS: dict[str, int] = {
    STYLE_HEADING1: 0,
    STYLE_HEADING2: 1,
    STYLE_HEADING3: 2,
    STYLE_HEADING4: 3,
}

ALIGNMENTS = {
    ALIGN_LEFT: WD_ALIGN_PARAGRAPH.LEFT,
    ALIGN_CENTER: WD_ALIGN_PARAGRAPH.CENTER,
    ALIGN_RIGHT: WD_ALIGN_PARAGRAPH.RIGHT,
    ALIGN_JUSTIFY: WD_ALIGN_PARAGRAPH.JUSTIFY,
}

# Theme font attributes override explicit fonts, so they are removed
_THEME_FONT_ATTRIBUTES = ("w:asciiTheme", "w:hAnsiTheme", "w:eastAsiaTheme", "w:cstheme")

# Elements that must follow w:outlineLvl inside w:pPr
_OUTLINE_LEVEL_SUCCESSORS = ("w:divId", "w:cnfStyle", "w:rPr", "w:sectPr", "w:pPrChange")

_TABLE_BORDER_EDGES = ("top", "left", "bottom", "right", "insideH", "insideV")

# Elements that must follow w:tblBorders inside w:tblPr
_TABLE_BORDERS_SUCCESSORS = ("w:shd", "w:tblLayout", "w:tblCellMar", "w:tblLook", "w:tblCaption", "w:tblDescription")

# Run properties of the built-in Title and Heading styles that no template sets
_RUN_DECORATIONS = ("w:spacing", "w:kern")


# Style application functions
def set_run_fonts(element, latin: str, east_asian: str) -> None:
    """Set every rFonts slot on a run or style element (``w:r`` / ``w:style``)."""
    rFonts = element.get_or_add_rPr().get_or_add_rFonts()
    for attribute in _THEME_FONT_ATTRIBUTES:
        rFonts.attrib.pop(qn(attribute), None)
    rFonts.set(qn("w:ascii"), latin)
    rFonts.set(qn("w:hAnsi"), latin)
    rFonts.set(qn("w:cs"), latin)
    rFonts.set(qn("w:eastAsia"), east_asian)


def apply_text_style(style, text_style: TextStyle, latin_font: str | None = None) -> None:
    """Apply a TextStyle's font settings to a paragraph style."""
    font = style.font
    font.size = Pt(text_style.size)
    font.bold = text_style.bold
    font.italic = text_style.italic
    font.color.rgb = RGBColor(0, 0, 0)
    set_run_fonts(style.element, latin_font or text_style.latin_font, text_style.east_asian_font)


def apply_line_spacing(paragraph_format, settings: DocumentSettings) -> None:
    """Apply the document line spacing rule."""
    spacing = settings.line_spacing
    if spacing.type == "exact":
        paragraph_format.line_spacing = Twips(spacing.value)
        paragraph_format.line_spacing_rule = WD_LINE_SPACING.EXACTLY
    else:
        paragraph_format.line_spacing = spacing.value / SINGLE_LINE


def apply_single_spacing(paragraph_format) -> None:
    paragraph_format.line_spacing = 1.0


def set_outline_level(style, level: int) -> None:
    pPr = style.element.get_or_add_pPr()
    outline = pPr.find(qn("w:outlineLvl"))
    if outline is None:
        outline = OxmlElement("w:outlineLvl")
        pPr.insert_element_before(outline, *_OUTLINE_LEVEL_SUCCESSORS)
    outline.set(qn("w:val"), str(level))


def clear_style_decorations(style) -> None:
    """Drop borders, character spacing and kerning inherited from the built-in style."""
    element = style.element
    paths = [qn("w:pPr") + "/" + qn("w:pBdr")]
    paths.extend(qn("w:rPr") + "/" + qn(tag) for tag in _RUN_DECORATIONS)
    for path in paths:
        for child in element.findall(path):
            child.getparent().remove(child)


def get_or_add_paragraph_style(document, style_id: str):
    """Look up a paragraph style by name, creating it (based on Normal) when missing."""
    name = STYLE_NAMES[style_id]
    try:
        return document.styles[name]
    except KeyError:
        style = document.styles.add_style(name, WD_STYLE_TYPE.PARAGRAPH)
        style.base_style = document.styles["Normal"]
        style.quick_style = True
        return style


def _alignment_of(text_style: TextStyle) -> WD_ALIGN_PARAGRAPH:
    return WD_ALIGN_PARAGRAPH.CENTER if text_style.center else WD_ALIGN_PARAGRAPH.JUSTIFY


def _first_line_of(text_style: TextStyle) -> Twips:
    return Twips(two_char_indent(text_style.size) if text_style.indent else 0)


def apply_styles_to_document(document, styles: StyleSettings, settings: DocumentSettings) -> None:
    """Create or update every paragraph style the converter refers to."""
    normal = document.styles["Normal"]
    apply_text_style(normal, styles["bodyText"])
    apply_line_spacing(normal.paragraph_format, settings)
    normal.paragraph_format.space_after = Twips(settings.spacing_after)

    for style_id in STYLE_NAMES:
        text_style = styles[STYLE_KEY_FOR_ID[style_id]]
        style = get_or_add_paragraph_style(document, style_id)
        clear_style_decorations(style)
        pf = style.paragraph_format

        if style_id == STYLE_FORMULA:
            apply_text_style(style, text_style, latin_font=FORMULA_FONT)
            font = style.font
            font.bold = False
            font.italic = False
            pf.alignment = WD_ALIGN_PARAGRAPH.CENTER
            apply_single_spacing(pf)
            pf.space_before = Twips(FORMULA_SPACING)
            pf.space_after = Twips(FORMULA_SPACING)
            pf.first_line_indent = Twips(0)
            continue

        apply_text_style(style, text_style)
        pf.left_indent = Twips(0)

        if style_id in (STYLE_TABLE_HEADER, STYLE_TABLE_TEXT):
            pf.alignment = _alignment_of(text_style)
            apply_single_spacing(pf)
            pf.space_before = Twips(0)
            pf.space_after = Twips(0)
            pf.first_line_indent = Twips(0)
            pf.keep_with_next = style_id == STYLE_TABLE_HEADER
            continue

        apply_line_spacing(pf, settings)
        pf.space_after = Twips(settings.spacing_after)

        if style_id == STYLE_TITLE:
            pf.alignment = _alignment_of(text_style)
            pf.space_before = Twips(TITLE_SPACING)
            pf.space_after = Twips(TITLE_SPACING)
            pf.first_line_indent = Twips(0)
        elif style_id in OUTLINE_LEVELS:
            pf.alignment = WD_ALIGN_PARAGRAPH.CENTER if text_style.center else WD_ALIGN_PARAGRAPH.LEFT
            pf.space_before = Twips(0)
            pf.first_line_indent = _first_line_of(text_style)
            pf.keep_with_next = True
            pf.keep_together = True
            set_outline_level(style, OUTLINE_LEVELS[style_id])
        elif style_id == STYLE_BLOCK_QUOTE:
            pf.alignment = _alignment_of(text_style)
            pf.left_indent = Twips(BLOCKQUOTE_INDENT)
            pf.first_line_indent = Twips(0)
        else:
            # Body Text and List Paragraph
            pf.alignment = _alignment_of(text_style)
            pf.first_line_indent = _first_line_of(text_style)


def setup_page(document, settings: DocumentSettings) -> None:
    """A4 portrait with the template margins."""
    margins = settings.margins
    for section in document.sections:
        section.orientation = WD_ORIENT.PORTRAIT
        section.page_width = Twips(PAGE_WIDTH)
        section.page_height = Twips(PAGE_HEIGHT)
        section.top_margin = Twips(margins.top)
        section.bottom_margin = Twips(margins.bottom)
        section.left_margin = Twips(margins.left)
        section.right_margin = Twips(margins.right)
        section.header_distance = Twips(margins.header)
        section.footer_distance = Twips(margins.footer)


def _apply_footer_font(run, text_style: TextStyle) -> None:
    run.font.size = Pt(text_style.size)
    set_run_fonts(run._r, text_style.latin_font, text_style.east_asian_font)


def add_page_number_footer(document, styles: StyleSettings, settings: DocumentSettings) -> None:
    """Add a centered PAGE field to every section footer, as ``- 1 -`` or ``1``."""
    text_style = styles["pageFooter"]
    dash = settings.page_number_format == "dash"

    for section in document.sections:
        footer = section.footer
        footer.is_linked_to_previous = False
        paragraph = footer.paragraphs[0] if footer.paragraphs else footer.add_paragraph()
        paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
        paragraph.paragraph_format.first_line_indent = Twips(0)

        if dash:
            _apply_footer_font(paragraph.add_run("- "), text_style)

        run = paragraph.add_run()
        fld_char_begin = OxmlElement("w:fldChar")
        fld_char_begin.set(qn("w:fldCharType"), "begin")
        run._r.append(fld_char_begin)
        _apply_footer_font(run, text_style)

        run = paragraph.add_run()
        instr_text = OxmlElement("w:instrText")
        instr_text.set(qn("xml:space"), "preserve")
        instr_text.text = " PAGE "
        run._r.append(instr_text)
        _apply_footer_font(run, text_style)

        run = paragraph.add_run()
        fld_char_separate = OxmlElement("w:fldChar")
        fld_char_separate.set(qn("w:fldCharType"), "separate")
        run._r.append(fld_char_separate)
        _apply_footer_font(run, text_style)

        # Cached value shown until Word updates the field
        _apply_footer_font(paragraph.add_run("1"), text_style)

        run = paragraph.add_run()
        fld_char_end = OxmlElement("w:fldChar")
        fld_char_end.set(qn("w:fldCharType"), "end")
        run._r.append(fld_char_end)
        _apply_footer_font(run, text_style)

        if dash:
            _apply_footer_font(paragraph.add_run(" -"), text_style)


# Element rendering
def add_equation(paragraph, run: EquationRun) -> None:
    """Append an equation to a paragraph as m:oMath / m:oMathPara."""
    omml = etree.tostring(math_to_omml(run.children, display=run.display), encoding="unicode")
    paragraph._p.append(parse_xml(omml))


def fill_paragraph(paragraph, element: FormattedParagraph) -> None:
    """Set style, alignment, indent and runs of an existing paragraph."""
    paragraph.style = STYLE_NAMES.get(element.style, STYLE_NAMES[STYLE_BODY_TEXT])
    pf = paragraph.paragraph_format
    if element.alignment in ALIGNMENTS:
        pf.alignment = ALIGNMENTS[element.alignment]
    if element.indent is not None:
        if element.indent.left is not None:
            pf.left_indent = Twips(element.indent.left)
        if element.indent.first_line is not None:
            pf.first_line_indent = Twips(element.indent.first_line)

    for run in element.runs:
        if isinstance(run, EquationRun):
            add_equation(paragraph, run)
            continue
        text_run = paragraph.add_run(run.text)
        # Only switch formatting on; the style decides otherwise
        if run.bold:
            text_run.bold = True
        if run.italic:
            text_run.italic = True


def set_table_borders(table, border: Border) -> None:
    tblPr = table._tbl.tblPr
    borders = tblPr.find(qn("w:tblBorders"))
    if borders is None:
        borders = OxmlElement("w:tblBorders")
        tblPr.insert_element_before(borders, *_TABLE_BORDERS_SUCCESSORS)
    for edge in _TABLE_BORDER_EDGES:
        edge_element = OxmlElement(f"w:{edge}")
        edge_element.set(qn("w:val"), border.style)
        edge_element.set(qn("w:sz"), str(border.size))
        edge_element.set(qn("w:space"), "0")
        edge_element.set(qn("w:color"), border.color)
        borders.append(edge_element)


def set_table_width_percent(table, percent: int) -> None:
    tblPr = table._tbl.tblPr
    tblW = tblPr.find(qn("w:tblW"))
    if tblW is None:
        tblW = OxmlElement("w:tblW")
        tblPr.insert_element_before(tblW, "w:jc", "w:tblCellSpacing", "w:tblInd", *_TABLE_BORDERS_SUCCESSORS)
    # pct widths are in fiftieths of a percent
    tblW.set(qn("w:w"), str(percent * 50))
    tblW.set(qn("w:type"), "pct")


def set_repeat_table_header(row) -> None:
    trPr = row._tr.get_or_add_trPr()
    header = OxmlElement("w:tblHeader")
    header.set(qn("w:val"), "true")
    trPr.append(header)


def add_table(document, element: Table) -> None:
    columns = element.column_count
    if not element.rows or columns == 0:
        return

    table = document.add_table(rows=len(element.rows), cols=columns)
    table.autofit = True
    set_table_borders(table, element.borders)
    set_table_width_percent(table, element.width_percent)

    for row_element, row in zip(element.rows, table.rows):
        if row_element.header:
            set_repeat_table_header(row)
        for index, cell in enumerate(row.cells):
            cell.vertical_alignment = WD_CELL_VERTICAL_ALIGNMENT.CENTER
            if index < len(row_element.cells):
                fill_paragraph(cell.paragraphs[0], row_element.cells[index].paragraph)


def build_document(
    elements: Iterable[DocumentElement],
    styles: StyleSettings | None = None,
    settings: DocumentSettings | None = None,
):
    """
    Build a python-docx Document from converted elements.

    Args:
        elements: Paragraphs and tables in document order
        styles: Style table (defaults to the default template's)
        settings: Page and spacing settings (defaults to the default template's)

    Returns:
        docx.document.Document
    """
    template = get_template()
    styles = styles if styles is not None else template.styles
    settings = settings if settings is not None else template.document_settings

    document = Document()
    apply_styles_to_document(document, styles, settings)
    setup_page(document, settings)
    add_page_number_footer(document, styles, settings)

    for element in elements:
        if isinstance(element, Table):
            add_table(document, element)
        else:
            fill_paragraph(document.add_paragraph(), element)

    return document


def _resolve(
    styles: StyleSettings | None, settings: DocumentSettings | None, template: str | None
) -> tuple[StyleSettings, DocumentSettings]:
    chosen = get_template(template)
    return (
        styles if styles is not None else chosen.styles,
        settings if settings is not None else chosen.document_settings,
    )


def generate_docx(
    markdown: str,
    styles: StyleSettings | None = None,
    settings: DocumentSettings | None = None,
    template: str | None = None,
) -> bytes:
    """
    Convert Markdown content to .docx bytes.

    Args:
        markdown: Markdown text content
        styles: Style table (uses the template's if None)
        settings: Document settings (uses the template's if None)
        template: Template name supplying the defaults

    Returns:
        The .docx package (a ZIP archive)
    """
    styles, settings = _resolve(styles, settings, template)
    elements = convert_markdown(markdown, styles)
    equations = count_equations(elements)
    if equations:
        print_info(f"Converted {equations} LaTeX formulas")

    buffer = BytesIO()
    build_document(elements, styles, settings).save(buffer)
    return buffer.getvalue()


def convert(
    markdown_content: str,
    output_path: str | Path,
    styles: StyleSettings | None = None,
    settings: DocumentSettings | None = None,
    template: str | None = None,
) -> Path:
    """
    Convert Markdown content to Word document.

    Args:
        markdown_content: Markdown text content
        output_path: Output file path
        styles: Style table (uses the template's if None)
        settings: Document settings (uses the template's if None)
        template: Template name supplying the defaults

    Returns:
        Path to the output file
    """
    output_path = Path(output_path)
    data = generate_docx(markdown_content, styles, settings, template)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(data)
    print_info(f"Document saved: {output_path}")

    return output_path


def strip_markdown_wrapper(markdown_content: str) -> str:
    """Remove a ```markdown code block wrapper around the whole content."""
    stripped = markdown_content.strip()
    if stripped.startswith("```markdown") and stripped.endswith("```"):
        return stripped[len("```markdown") : -3].strip("\n")
    return markdown_content


def convert_file(
    input_path: str | Path,
    output_path: str | Path | None = None,
    styles: StyleSettings | str | Path | None = None,
    template: str | None = None,
) -> Path:
    """
    Convert Markdown file to Word document.

    Args:
        input_path: Input Markdown file path
        output_path: Output file path (defaults to input with .docx extension)
        styles: Style table or path to a style override JSON file
        template: Template name supplying the defaults

    Returns:
        Path to the output file
    """
    input_path = Path(input_path)
    if not input_path.exists():
        raise FileNotFoundError(f"Input file not found: {input_path}")

    if output_path is None:
        output_path = input_path.with_suffix(".docx")
    else:
        output_path = Path(output_path)

    chosen = get_template(template)
    settings = chosen.document_settings
    if styles is None:
        styles = chosen.styles
    elif isinstance(styles, (str, Path)):
        styles, settings = load_config(styles, chosen.styles, chosen.document_settings)

    markdown_content = strip_markdown_wrapper(input_path.read_text(encoding="utf-8"))

    return convert(markdown_content, output_path, styles, settings, template)
