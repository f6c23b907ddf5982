"""Configuration classes for formaldoc."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

from .utils import print_warn

# Chinese font size mapping (font name -> point size)
CHINESE_FONT_SIZE_MAP: dict[str, float] = {
    "初号": 42,
    "小初": 36,
    "一号": 26,
    "小一": 24,
    "二号": 22,
    "小二": 18,
    "三号": 16,
    "小三": 15,
    "四号": 14,
    "小四": 12,
    "五号": 10.5,
    "小五": 9,
    "六号": 7.5,
    "小六": 6.5,
    "七号": 5.5,
    "八号": 5,
}

CHINESE_FONTS = ("宋体", "黑体", "楷体", "仿宋")

# Latin font paired with each Chinese font for ascii/hAnsi text
FONT_PAIRING: dict[str, str] = {
    "宋体": "Times New Roman",
    "黑体": "Arial",
    "楷体": "Times New Roman",
    "仿宋": "Times New Roman",
}

# Fallback east-Asian font when the style font is a Latin one
DEFAULT_EAST_ASIAN_FONT = "宋体"

STYLE_KEYS: tuple[str, ...] = (
    "title",
    "heading1",
    "heading2",
    "heading3",
    "heading4",
    "bodyText",
    "listItem",
    "blockquote",
    "tableHeader",
    "tableCell",
    "pageFooter",
)

LINE_SPACING_TYPES = ("exact", "auto")
PAGE_NUMBER_FORMATS = ("dash", "plain")


class StyleConfigError(ValueError):
    """Raised when a style override or template selection is invalid."""


def parse_font_size(value: int | float | str) -> float:
    """Parse font size, supporting both numeric (points) and Chinese font sizes."""
    if isinstance(value, bool):
        value = str(value)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        value = value.strip()
        if value in CHINESE_FONT_SIZE_MAP:
            return CHINESE_FONT_SIZE_MAP[value]
        try:
            return float(value.removesuffix("pt"))
        except ValueError:
            pass
    print_warn(f"Unrecognized font size: {value}, using default 10.5 (五号)")
    return 10.5


def _to_int(value: Any, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise StyleConfigError(f"Document setting '{name}' must be an integer, got {value!r}") from e


def is_chinese_font(font: str) -> bool:
    return font in CHINESE_FONTS


@dataclass(frozen=True)
class TextStyle:
    """Visual style of one kind of document text."""

    font: str = "仿宋"
    size: float = 16
    bold: bool = False
    italic: bool = False
    center: bool = False
    indent: bool = False  # Two-character first line indent
    english_font: str | None = None

    @property
    def latin_font(self) -> str:
        """Font used for ascii/hAnsi characters."""
        if self.english_font:
            return self.english_font
        return FONT_PAIRING.get(self.font, self.font)

    @property
    def east_asian_font(self) -> str:
        """Font used for CJK characters."""
        return self.font if is_chinese_font(self.font) else DEFAULT_EAST_ASIAN_FONT

    @classmethod
    def from_dict(cls, data: dict[str, Any], base: TextStyle | None = None) -> TextStyle:
        """Create TextStyle from dictionary, filling missing fields from ``base``."""
        style = base if base is not None else cls()
        updates: dict[str, Any] = {}
        if "font" in data:
            updates["font"] = str(data["font"])
        if "size" in data:
            updates["size"] = parse_font_size(data["size"])
        for flag in ("bold", "italic", "center", "indent"):
            if flag in data:
                if not isinstance(data[flag], bool):
                    raise StyleConfigError(f"Style field '{flag}' must be true or false, got {data[flag]!r}")
                updates[flag] = data[flag]
        english_font = data.get("english_font", data.get("englishFont"))
        if english_font is not None:
            updates["english_font"] = str(english_font)
        return replace(style, **updates)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data: dict[str, Any] = {
            "font": self.font,
            "size": self.size,
            "bold": self.bold,
            "italic": self.italic,
            "center": self.center,
            "indent": self.indent,
        }
        if self.english_font:
            data["english_font"] = self.english_font
        return data


@dataclass
class StyleSettings:
    """Style table: one TextStyle per style key, always complete."""

    styles: dict[str, TextStyle] = field(default_factory=lambda: {key: TextStyle() for key in STYLE_KEYS})

    def __post_init__(self) -> None:
        missing = [key for key in STYLE_KEYS if key not in self.styles]
        if missing:
            raise StyleConfigError(f"Style table is missing keys: {', '.join(missing)}")

    def __getitem__(self, key: str) -> TextStyle:
        return self.styles[key]

    def __contains__(self, key: object) -> bool:
        return key in self.styles

    def keys(self) -> tuple[str, ...]:
        return STYLE_KEYS

    def merged(self, overrides: dict[str, Any]) -> StyleSettings:
        """Return a new table with ``overrides`` merged over this one.

        Only known style keys are taken from ``overrides``; everything else is
        ignored. Each entry may be a partial style record.
        """
        if not isinstance(overrides, dict):
            raise StyleConfigError("Style overrides must be a JSON object")
        styles = dict(self.styles)
        for key in STYLE_KEYS:
            if key not in overrides:
                continue
            value = overrides[key]
            if isinstance(value, TextStyle):
                styles[key] = value
            elif isinstance(value, dict):
                styles[key] = TextStyle.from_dict(value, base=styles[key])
            else:
                raise StyleConfigError(f"Style '{key}' must be an object, got {type(value).__name__}")
        return StyleSettings(styles=styles)

    @classmethod
    def from_dict(cls, data: dict[str, Any], base: StyleSettings | None = None) -> StyleSettings:
        """Create StyleSettings from dictionary, merged over ``base``."""
        return (base if base is not None else cls()).merged(data)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {key: self.styles[key].to_dict() for key in STYLE_KEYS}


@dataclass(frozen=True)
class LineSpacing:
    """Line spacing rule: exact (value in twips) or auto (240 = single)."""

    type: str = "exact"
    value: int = 560


@dataclass(frozen=True)
class PageMargins:
    """Page margins and header/footer distances, in twips."""

    top: int = 1440
    bottom: int = 1440
    left: int = 1440
    right: int = 1440
    header: int = 851
    footer: int = 992


@dataclass(frozen=True)
class DocumentSettings:
    """Document-level settings: line spacing, page numbers, margins."""

    line_spacing: LineSpacing = field(default_factory=LineSpacing)
    page_number_format: str = "dash"
    margins: PageMargins = field(default_factory=PageMargins)
    spacing_after: int = 0  # twips after each body paragraph

    @classmethod
    def from_dict(cls, data: dict[str, Any], base: DocumentSettings | None = None) -> DocumentSettings:
        """Create DocumentSettings from dictionary, filling gaps from ``base``."""
        settings = base if base is not None else cls()
        if not isinstance(data, dict):
            raise StyleConfigError("Document settings must be a JSON object")

        line_spacing = settings.line_spacing
        spacing_data = data.get("line_spacing", data.get("lineSpacing"))
        if spacing_data is not None:
            if not isinstance(spacing_data, dict):
                raise StyleConfigError("Document setting 'line_spacing' must be a JSON object")
            spacing_type = spacing_data.get("type", line_spacing.type)
            if spacing_type not in LINE_SPACING_TYPES:
                raise StyleConfigError(f"Unknown line spacing type: {spacing_type}")
            spacing_value = _to_int(spacing_data.get("value", line_spacing.value), "line_spacing.value")
            line_spacing = LineSpacing(type=spacing_type, value=spacing_value)

        page_number_format = data.get("page_number_format", data.get("pageNumberFormat", settings.page_number_format))
        if page_number_format not in PAGE_NUMBER_FORMATS:
            raise StyleConfigError(f"Unknown page number format: {page_number_format}")

        margins = settings.margins
        margins_data = data.get("margins")
        if margins_data is not None:
            if not isinstance(margins_data, dict):
                raise StyleConfigError("Document setting 'margins' must be a JSON object")
            known = {f.name for f in fields(PageMargins)}
            margins = replace(margins, **{k: _to_int(v, f"margins.{k}") for k, v in margins_data.items() if k in known})

        spacing_after = data.get("spacing_after", data.get("spacingAfter", settings.spacing_after))
        spacing_after = _to_int(spacing_after, "spacing_after")

        return cls(
            line_spacing=line_spacing,
            page_number_format=page_number_format,
            margins=margins,
            spacing_after=spacing_after,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "line_spacing": {"type": self.line_spacing.type, "value": self.line_spacing.value},
            "page_number_format": self.page_number_format,
            "margins": {
                "top": self.margins.top,
                "bottom": self.margins.bottom,
                "left": self.margins.left,
                "right": self.margins.right,
                "header": self.margins.header,
                "footer": self.margins.footer,
            },
            "spacing_after": self.spacing_after,
        }


def read_overrides(path: str | Path) -> dict[str, Any]:
    """Read a style override JSON file.

    Unlike the template defaults, a bad override file is never silently
    replaced: a missing file, invalid JSON or a non-object top level raises
    StyleConfigError.
    """
    path = Path(path)
    if not path.exists():
        raise StyleConfigError(f"Styles file not found: {path}")
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise StyleConfigError(f"Failed to parse styles file {path}: {e}") from e
    if not isinstance(data, dict):
        raise StyleConfigError(f"Styles file {path} must contain a JSON object")
    return data


def load_config(
    path: str | Path | None,
    base_styles: StyleSettings,
    base_settings: DocumentSettings,
) -> tuple[StyleSettings, DocumentSettings]:
    """Load style overrides (and an optional ``document`` section) over template defaults."""
    if path is None:
        return base_styles, base_settings
    data = read_overrides(path)
    styles = base_styles.merged(data)
    settings = base_settings
    if "document" in data:
        settings = DocumentSettings.from_dict(data["document"], base=base_settings)
    return styles, settings


def save_styles(styles: StyleSettings, path: str | Path, settings: DocumentSettings | None = None) -> None:
    """Save a style table (and optionally document settings) to a JSON file."""
    data = styles.to_dict()
    if settings is not None:
        data["document"] = settings.to_dict()
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=4)
