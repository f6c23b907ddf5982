"""Tests for formaldoc built-in templates."""

import pytest

from formaldoc.config import STYLE_KEYS, StyleConfigError
from formaldoc.templates import (
    DEFAULT_TEMPLATE,
    get_template,
    get_template_names,
    get_template_styles,
    is_valid_template_name,
)


class TestTemplates:
    """Tests for template lookup."""

    def test_template_names(self):
        """Test both built-in templates are listed."""
        names = get_template_names()
        assert "cn-gov" in names
        assert "en-standard" in names

    def test_default_template(self):
        """Test no name selects the government template."""
        assert DEFAULT_TEMPLATE == "cn-gov"
        assert get_template().id == "cn-gov"
        assert get_template(None).id == "cn-gov"

    def test_unknown_template_raises(self):
        """Test an unknown template name is rejected."""
        assert not is_valid_template_name("fancy")
        with pytest.raises(StyleConfigError):
            get_template("fancy")

    def test_templates_are_complete(self):
        """Test every template defines every style key."""
        for name in get_template_names():
            styles = get_template(name).styles
            for key in STYLE_KEYS:
                assert key in styles

    def test_get_template_styles_is_a_copy(self):
        """Test the returned style table is independent of the template."""
        styles = get_template_styles("cn-gov")
        styles.styles["title"] = styles["bodyText"]
        assert get_template("cn-gov").styles["title"].size == 22


class TestGovernmentTemplate:
    """Tests for the GB/T 9704-2012 template values."""

    def test_title(self):
        """Test the title is 宋体 二号 bold and centered."""
        title = get_template("cn-gov").styles["title"]
        assert title.font == "宋体"
        assert title.size == 22
        assert title.bold is True
        assert title.center is True

    def test_heading_fonts(self):
        """Test the heading font sequence."""
        styles = get_template("cn-gov").styles
        assert styles["heading1"].font == "黑体"
        assert styles["heading2"].font == "楷体"
        assert styles["heading3"].font == "仿宋"
        assert styles["heading3"].bold is True

    def test_body_text(self):
        """Test body text is 仿宋 三号 with a first line indent."""
        body = get_template("cn-gov").styles["bodyText"]
        assert body.font == "仿宋"
        assert body.size == 16
        assert body.indent is True

    def test_document_settings(self):
        """Test exact 28pt line spacing and dashed page numbers."""
        settings = get_template("cn-gov").document_settings
        assert settings.line_spacing.type == "exact"
        assert settings.line_spacing.value == 560
        assert settings.page_number_format == "dash"


class TestEnglishTemplate:
    """Tests for the en-standard template values."""

    def test_fonts(self):
        """Test Arial headings and Times New Roman body."""
        styles = get_template("en-standard").styles
        assert styles["heading1"].font == "Arial"
        assert styles["bodyText"].font == "Times New Roman"
        assert styles["bodyText"].indent is False

    def test_document_settings(self):
        """Test 1.5 line spacing and plain page numbers."""
        settings = get_template("en-standard").document_settings
        assert settings.line_spacing.type == "auto"
        assert settings.line_spacing.value == 360
        assert settings.page_number_format == "plain"
        assert settings.spacing_after == 200
