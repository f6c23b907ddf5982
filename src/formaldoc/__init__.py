"""
formaldoc - Convert Markdown to formal Word documents.

A Python library and CLI tool for converting Markdown (GFM tables and lists,
embedded LaTeX) to Word documents (.docx) with native equations, styled by a
named template such as the GB/T 9704-2012 government document format.
"""

from .config import (
    CHINESE_FONT_SIZE_MAP,
    STYLE_KEYS,
    DocumentSettings,
    StyleConfigError,
    StyleSettings,
    TextStyle,
    load_config,
)
from .converter import convert_markdown, convert_nodes
from .generator import build_document, convert, convert_file, generate_docx
from .latex import LatexRenderError, latex_to_math, latex_to_omml
from .parser import parse_markdown
from .preprocess import preprocess
from .templates import DEFAULT_TEMPLATE, get_template, get_template_names, get_template_styles
from .textproc import clean_all

__version__ = "0.1.0"
__all__ = [
    "TextStyle",
    "StyleSettings",
    "DocumentSettings",
    "StyleConfigError",
    "LatexRenderError",
    "CHINESE_FONT_SIZE_MAP",
    "STYLE_KEYS",
    "DEFAULT_TEMPLATE",
    "load_config",
    "get_template",
    "get_template_names",
    "get_template_styles",
    "preprocess",
    "parse_markdown",
    "convert_nodes",
    "convert_markdown",
    "latex_to_math",
    "latex_to_omml",
    "build_document",
    "generate_docx",
    "convert",
    "convert_file",
    "clean_all",
]
