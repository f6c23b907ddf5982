"""
CLI entry point for formaldoc.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import STYLE_KEYS, StyleConfigError, load_config, save_styles
from .generator import convert, strip_markdown_wrapper
from .templates import DEFAULT_TEMPLATE, TEMPLATES, get_template
from .textproc import clean_all
from .utils import print_error, print_info


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="formaldoc",
        description="Convert Markdown to formal Word documents (.docx)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  formaldoc document.md                       Convert to document.docx
  formaldoc document.md -o report.docx        Specify output file
  formaldoc document.md -t en-standard        Use the English template
  formaldoc document.md -s custom.json        Override styles from a JSON file
  cat doc.md | formaldoc --stdin -o out.docx  Read markdown from stdin
  formaldoc --init-styles -s custom.json      Write the template styles to a file

Style keys: {", ".join(STYLE_KEYS)}
Style fields: font, size (points or 三号/小四...), bold, italic, center, indent, englishFont
        """,
    )
    parser.add_argument("input", nargs="?", help="Input Markdown file path")
    parser.add_argument("output_file", nargs="?", help=argparse.SUPPRESS)
    parser.add_argument("-o", "--output", help="Output Word file path (default: input with .docx extension)")
    parser.add_argument(
        "-t",
        "--template",
        default=DEFAULT_TEMPLATE,
        help=f"Document template (default: {DEFAULT_TEMPLATE})",
    )
    parser.add_argument("-s", "--styles", help="Style override JSON file")
    parser.add_argument("--stdin", action="store_true", help="Read markdown from stdin (requires -o)")
    parser.add_argument(
        "--clean",
        action="store_true",
        help="Convert quotes, remove emphasis markers and spaces between Chinese characters first",
    )
    parser.add_argument("--list-templates", action="store_true", help="List available templates")
    parser.add_argument("--init-styles", action="store_true", help="Write the template styles to the -s file")
    parser.add_argument("-v", "--version", action="store_true", help="Show version")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        from . import __version__

        print(f"formaldoc {__version__}")
        return 0

    if args.list_templates:
        for template in TEMPLATES.values():
            marker = " (default)" if template.id == DEFAULT_TEMPLATE else ""
            print(f"{template.id}{marker}: {template.name} - {template.description}")
        return 0

    try:
        template = get_template(args.template)
    except StyleConfigError as e:
        print_error(str(e))
        return 1

    if args.init_styles:
        if not args.styles:
            print_error("--init-styles requires -s/--styles to specify the file to write")
            return 1
        styles_path = Path(args.styles)
        if styles_path.exists():
            print_error(f"Styles file already exists: {styles_path}")
            return 1
        save_styles(template.styles, styles_path, template.document_settings)
        print_info(f"Styles file created: {styles_path}")
        return 0

    output = args.output or args.output_file

    if args.stdin:
        if not output:
            print_error("--stdin requires -o/--output to specify output file")
            return 1
        markdown_content = sys.stdin.read()
        output_path = Path(output)
    elif args.input:
        input_path = Path(args.input)
        if not input_path.exists():
            print_error(f"Input file not found: {input_path}")
            return 1
        markdown_content = input_path.read_text(encoding="utf-8")
        output_path = Path(output) if output else input_path.with_suffix(".docx")
    else:
        parser.print_help()
        return 1

    try:
        styles, settings = load_config(args.styles, template.styles, template.document_settings)
    except StyleConfigError as e:
        print_error(str(e))
        return 1

    markdown_content = strip_markdown_wrapper(markdown_content)
    if args.clean:
        result = clean_all(markdown_content)
        markdown_content = result.text
        print_info(
            f"Cleaned text: {result.quotes} quotes converted, "
            f"{result.emphasis} emphasis markers removed, {result.spaces} spaces removed"
        )

    try:
        convert(markdown_content, output_path, styles, settings, template.id)
        return 0
    except Exception as e:
        print_error(f"Conversion failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
