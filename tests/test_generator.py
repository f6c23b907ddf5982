"""Tests for formaldoc document assembly."""

import json
import os
import tempfile
from io import BytesIO
from pathlib import Path

import pytest
from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml.ns import qn
from docx.shared import Pt, Twips

from formaldoc import convert, convert_file, generate_docx
from formaldoc.converter import convert_markdown
from formaldoc.generator import STYLE_NAMES, build_document, strip_markdown_wrapper
from formaldoc.mathmodel import M_NS
from formaldoc.templates import get_template


def open_docx(data):
    return Document(BytesIO(data))


class TestGenerateDocx:
    """Tests for generate_docx function."""

    def test_zip_package(self):
        """Test the output is a ZIP package."""
        data = generate_docx("# Hello World\n\nThis is a test.")
        assert data[:2] == b"PK"

    def test_empty_markdown(self):
        """Test empty input still gives a valid document."""
        document = open_docx(generate_docx(""))
        assert all(not paragraph.text for paragraph in document.paragraphs)

    def test_styles_created(self):
        """Test every paragraph style exists in the package."""
        document = open_docx(generate_docx("text"))
        names = {style.name for style in document.styles}
        for name in STYLE_NAMES.values():
            assert name in names

    def test_heading_styles_applied(self):
        """Test headings use the mapped paragraph styles."""
        document = open_docx(generate_docx("# Title\n\n## Section\n\nBody"))
        styles = [paragraph.style.name for paragraph in document.paragraphs]
        assert styles == ["Title", "Heading 1", "Body Text"]

    def test_style_fonts(self):
        """Test style fonts follow the template."""
        document = open_docx(generate_docx("text", template="cn-gov"))
        title = document.styles["Title"]
        assert title.font.size == Pt(22)
        assert title.font.bold is True
        rFonts = title.element.rPr.rFonts
        assert rFonts.get(qn("w:eastAsia")) == "宋体"
        assert rFonts.get(qn("w:ascii")) == "Times New Roman"

    def test_exact_line_spacing(self):
        """Test the government template uses exact 28pt spacing."""
        document = open_docx(generate_docx("text", template="cn-gov"))
        assert document.styles["Body Text"].paragraph_format.line_spacing == Twips(560)

    def test_heading_outline_level(self):
        """Test heading styles carry an outline level."""
        document = open_docx(generate_docx("text"))
        pPr = document.styles["Heading 2"].element.pPr
        outline = pPr.find(qn("w:outlineLvl"))
        assert outline is not None
        assert outline.get(qn("w:val")) == "1"

    def test_a4_page(self):
        """Test the page is A4 with template margins."""
        document = open_docx(generate_docx("text"))
        section = document.sections[0]
        assert section.page_width == Twips(11906)
        assert section.page_height == Twips(16838)
        assert section.left_margin == Twips(1440)

    def test_dash_page_number(self):
        """Test the government footer wraps the PAGE field in dashes."""
        document = open_docx(generate_docx("text", template="cn-gov"))
        paragraph = document.sections[0].footer.paragraphs[0]
        assert "PAGE" in paragraph._p.xml
        assert paragraph.alignment == WD_ALIGN_PARAGRAPH.CENTER
        assert paragraph.runs[0].text == "- "
        assert paragraph.runs[-1].text == " -"

    def test_plain_page_number(self):
        """Test the English footer has a bare PAGE field."""
        document = open_docx(generate_docx("text", template="en-standard"))
        paragraph = document.sections[0].footer.paragraphs[0]
        assert "PAGE" in paragraph._p.xml
        assert "-" not in "".join(run.text for run in paragraph.runs)

    def test_table(self):
        """Test tables are written with borders and a repeated header."""
        markdown = "| A | B |\n|---|---|\n| 1 | 2 |"
        document = open_docx(generate_docx(markdown))
        assert len(document.tables) == 1
        table = document.tables[0]
        assert table.cell(0, 0).text == "A"
        assert table.cell(1, 1).text == "2"
        assert table._tbl.tblPr.find(qn("w:tblBorders")) is not None
        assert table.rows[0]._tr.trPr.find(qn("w:tblHeader")) is not None
        assert table.cell(0, 0).paragraphs[0].runs[0].bold is True

    def test_equations(self):
        """Test formulas are written as native equations."""
        markdown = "Inline $x^2$ text\n\n$$\n\\frac{a}{b}\n$$"
        document = open_docx(generate_docx(markdown))
        body = document.element.body
        assert len(list(body.iter(f"{{{M_NS}}}oMath"))) == 2
        assert len(list(body.iter(f"{{{M_NS}}}oMathPara"))) == 1

    def test_malformed_formula_kept_as_text(self):
        """Test a malformed formula is written as italic text."""
        markdown = "$$\n\\frac{a}{\n$$"
        document = open_docx(generate_docx(markdown))
        runs = [run for paragraph in document.paragraphs for run in paragraph.runs]
        assert any(run.text == "\\frac{a}{" and run.italic for run in runs)

    def test_list_indent(self):
        """Test list indents are written on the paragraphs."""
        document = open_docx(generate_docx("- outer\n  - inner", template="cn-gov"))
        indents = [paragraph.paragraph_format.first_line_indent for paragraph in document.paragraphs]
        assert indents == [Twips(640), Twips(1280)]

    def test_build_document(self):
        """Test build_document accepts converted elements."""
        template = get_template("en-standard")
        elements = convert_markdown("# Title\n\nBody", template.styles)
        document = build_document(elements, template.styles, template.document_settings)
        assert [paragraph.text for paragraph in document.paragraphs] == ["Title", "Body"]


class TestStripMarkdownWrapper:
    """Tests for strip_markdown_wrapper function."""

    def test_wrapper_removed(self):
        """Test a markdown code block wrapper is removed."""
        assert strip_markdown_wrapper("```markdown\n# Title\n```") == "# Title"

    def test_no_wrapper(self):
        """Test plain content is unchanged."""
        assert strip_markdown_wrapper("# Title\n") == "# Title\n"


class TestConvert:
    """Tests for convert function."""

    def test_simple_conversion(self):
        """Test simple markdown conversion."""
        markdown = "# Hello World\n\nThis is a test."
        temp_dir = tempfile.mkdtemp()
        output_path = Path(temp_dir) / "output.docx"
        try:
            result = convert(markdown, output_path)
            assert result.exists()
            assert result.suffix == ".docx"
        finally:
            output_path.unlink(missing_ok=True)
            os.rmdir(temp_dir)

    def test_with_template(self):
        """Test conversion with a named template."""
        markdown = "# Test\n\nContent"
        temp_dir = tempfile.mkdtemp()
        output_path = Path(temp_dir) / "output.docx"
        try:
            result = convert(markdown, output_path, template="en-standard")
            document = Document(str(result))
            assert document.styles["Body Text"].font.size == Pt(12)
        finally:
            output_path.unlink(missing_ok=True)
            os.rmdir(temp_dir)

    def test_creates_parent_directory(self):
        """Test missing parent directories are created."""
        temp_dir = tempfile.mkdtemp()
        sub_dir = Path(temp_dir) / "out"
        output_path = sub_dir / "output.docx"
        try:
            result = convert("text", output_path)
            assert result.exists()
        finally:
            output_path.unlink(missing_ok=True)
            if sub_dir.exists():
                os.rmdir(sub_dir)
            os.rmdir(temp_dir)


class TestConvertFile:
    """Tests for convert_file function."""

    def test_file_conversion(self):
        """Test file-based conversion."""
        temp_dir = tempfile.mkdtemp()
        md_path = Path(temp_dir) / "input.md"
        docx_path = Path(temp_dir) / "input.docx"
        try:
            md_path.write_text("# Test\n\nHello World", encoding="utf-8")
            result = convert_file(md_path)
            assert result.exists()
            assert result == docx_path
        finally:
            md_path.unlink(missing_ok=True)
            docx_path.unlink(missing_ok=True)
            os.rmdir(temp_dir)

    def test_custom_output_path(self):
        """Test conversion with custom output path."""
        temp_dir = tempfile.mkdtemp()
        md_path = Path(temp_dir) / "input.md"
        docx_path = Path(temp_dir) / "custom_output.docx"
        try:
            md_path.write_text("# Test", encoding="utf-8")
            result = convert_file(md_path, docx_path)
            assert result.exists()
            assert result == docx_path
        finally:
            md_path.unlink(missing_ok=True)
            docx_path.unlink(missing_ok=True)
            os.rmdir(temp_dir)

    def test_styles_file(self):
        """Test a style override file is applied."""
        temp_dir = tempfile.mkdtemp()
        md_path = Path(temp_dir) / "input.md"
        styles_path = Path(temp_dir) / "styles.json"
        docx_path = Path(temp_dir) / "input.docx"
        try:
            md_path.write_text("Body", encoding="utf-8")
            styles_path.write_text(json.dumps({"bodyText": {"size": 14}}), encoding="utf-8")
            result = convert_file(md_path, styles=styles_path)
            document = Document(str(result))
            assert document.styles["Body Text"].font.size == Pt(14)
        finally:
            md_path.unlink(missing_ok=True)
            styles_path.unlink(missing_ok=True)
            docx_path.unlink(missing_ok=True)
            os.rmdir(temp_dir)

    def test_markdown_wrapper_stripped(self):
        """Test a wrapped file converts its content."""
        temp_dir = tempfile.mkdtemp()
        md_path = Path(temp_dir) / "input.md"
        docx_path = Path(temp_dir) / "input.docx"
        try:
            md_path.write_text("```markdown\n# Wrapped\n```", encoding="utf-8")
            result = convert_file(md_path)
            document = Document(str(result))
            assert document.paragraphs[0].text == "Wrapped"
            assert document.paragraphs[0].style.name == "Title"
        finally:
            md_path.unlink(missing_ok=True)
            docx_path.unlink(missing_ok=True)
            os.rmdir(temp_dir)

    def test_nonexistent_file_raises(self):
        """Test that non-existent file raises error."""
        with pytest.raises(FileNotFoundError):
            convert_file("/nonexistent/file.md")
