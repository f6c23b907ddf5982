"""Built-in document templates."""

from __future__ import annotations

from dataclasses import dataclass

from .config import DocumentSettings, LineSpacing, PageMargins, StyleConfigError, StyleSettings, TextStyle


@dataclass(frozen=True)
class Template:
    id: str
    name: str
    description: str
    styles: StyleSettings
    document_settings: DocumentSettings


# GB/T 9704-2012 Chinese government document format
CN_GOV_STYLES = {
    # 公文标题: 宋体 二号, bold, centered
    "title": TextStyle(font="宋体", size=22, bold=True, center=True),
    # 一级标题 (一、二、三): 黑体 三号
    "heading1": TextStyle(font="黑体", size=16, indent=True),
    # 二级标题 (（一）（二）): 楷体 三号
    "heading2": TextStyle(font="楷体", size=16, indent=True),
    # 三级标题 (1. 2. 3.): 仿宋 三号, bold
    "heading3": TextStyle(font="仿宋", size=16, bold=True, indent=True),
    # 四级标题 (（1）（2）): 仿宋 三号, bold
    "heading4": TextStyle(font="仿宋", size=16, bold=True, indent=True),
    "bodyText": TextStyle(font="仿宋", size=16, indent=True),
    "listItem": TextStyle(font="仿宋", size=16, indent=True),
    "blockquote": TextStyle(font="楷体", size=16),
    "tableHeader": TextStyle(font="仿宋", size=16, bold=True, center=True),
    "tableCell": TextStyle(font="仿宋", size=16, center=True),
    # 页脚: 仿宋 四号
    "pageFooter": TextStyle(font="仿宋", size=14),
}

CN_GOV_DOCUMENT_SETTINGS = DocumentSettings(
    line_spacing=LineSpacing(type="exact", value=560),  # 28pt exact
    page_number_format="dash",  # "- 1 -"
    margins=PageMargins(top=1440, bottom=1440, left=1440, right=1440, header=851, footer=992),
    spacing_after=0,
)

EN_STANDARD_STYLES = {
    "title": TextStyle(font="Arial", size=20, bold=True, center=True),
    "heading1": TextStyle(font="Arial", size=16, bold=True),
    "heading2": TextStyle(font="Arial", size=14, bold=True),
    "heading3": TextStyle(font="Arial", size=12, bold=True),
    "heading4": TextStyle(font="Arial", size=12, bold=True, italic=True),
    "bodyText": TextStyle(font="Times New Roman", size=12),
    "listItem": TextStyle(font="Times New Roman", size=12),
    "blockquote": TextStyle(font="Times New Roman", size=12, italic=True),
    "tableHeader": TextStyle(font="Arial", size=11, bold=True, center=True),
    "tableCell": TextStyle(font="Times New Roman", size=11),
    "pageFooter": TextStyle(font="Times New Roman", size=10),
}

EN_STANDARD_DOCUMENT_SETTINGS = DocumentSettings(
    line_spacing=LineSpacing(type="auto", value=360),  # 1.5 lines
    page_number_format="plain",
    margins=PageMargins(top=1440, bottom=1440, left=1440, right=1440, header=720, footer=720),
    spacing_after=200,  # 10pt
)

TEMPLATES: dict[str, Template] = {
    "cn-gov": Template(
        id="cn-gov",
        name="公文格式",
        description="GB/T 9704-2012 中国公文标准",
        styles=StyleSettings(styles=CN_GOV_STYLES),
        document_settings=CN_GOV_DOCUMENT_SETTINGS,
    ),
    "en-standard": Template(
        id="en-standard",
        name="English Standard",
        description="Times New Roman body, Arial headings",
        styles=StyleSettings(styles=EN_STANDARD_STYLES),
        document_settings=EN_STANDARD_DOCUMENT_SETTINGS,
    ),
}

DEFAULT_TEMPLATE = "cn-gov"


def is_valid_template_name(name: str) -> bool:
    return name in TEMPLATES


def get_template_names() -> list[str]:
    return list(TEMPLATES)


def get_template(name: str | None = None) -> Template:
    """Get a template by name (default template if None)."""
    name = name or DEFAULT_TEMPLATE
    if not is_valid_template_name(name):
        raise StyleConfigError(f"Unknown template: {name} (available: {', '.join(TEMPLATES)})")
    return TEMPLATES[name]


def get_template_styles(name: str | None = None) -> StyleSettings:
    """Get a fresh copy of a template's style table."""
    return StyleSettings(styles=dict(get_template(name).styles.styles))
