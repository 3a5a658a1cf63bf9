#!/usr/bin/env python
"""
Command-line interface for MathDoc.

Usage:
    mathdoc --input <file> --output <docx_or_dir> [options]

Examples:
    # Convert LaTeX text to a standard Word file
    mathdoc --input lesson.tex --output ./output

    # Worksheet and flashcard versions of a scanned PDF
    mathdoc --input exam.pdf --output ./output --style worksheet flashcards

    # Read from stdin, keep the HTML too
    cat notes.md | mathdoc --input - --output notes.docx --html
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from mathdoc import __version__
from mathdoc.config import get_config, create_vision_client
from mathdoc.utils.styles import OutputStyle, STYLE_TABLE

logger = logging.getLogger("mathdoc")


def setup_argparser() -> argparse.ArgumentParser:
    """Create argument parser."""
    style_choices = [s.value for s in OutputStyle] + ["all"]

    parser = argparse.ArgumentParser(
        prog="mathdoc",
        description="MathDoc - Convert LaTeX text, Word files, PDFs and images to Word documents",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Convert a LaTeX text file:
    mathdoc --input lesson.tex --output ./output

  Export every style:
    mathdoc --input lesson.tex --output ./output --style all

  Scan a PDF with local Tesseract instead of Gemini:
    mathdoc --input exam.pdf --output ./output --no-smart-ocr
        """
    )

    parser.add_argument(
        "--input", "-i",
        help="Input file (.tex/.txt/.md, .docx/.doc, .pdf, image) or '-' for stdin"
    )

    parser.add_argument(
        "--output", "-o",
        help="Output .docx file or directory"
    )

    parser.add_argument(
        "--style", "-s",
        nargs="+",
        default=None,
        choices=style_choices,
        help="Export style(s) (default: standard)"
    )

    parser.add_argument(
        "--rich-text",
        action="store_true",
        help="Treat the input text as HTML (stdin/text input only)"
    )

    parser.add_argument(
        "--html",
        action="store_true",
        help="Also write the serialized HTML next to each .docx"
    )

    parser.add_argument(
        "--no-smart-ocr",
        action="store_true",
        help="OCR PDFs locally with Tesseract instead of the Gemini vision model"
    )

    parser.add_argument(
        "--footer",
        default=None,
        help="Credit line printed at the end of the document"
    )

    parser.add_argument(
        "--list-styles",
        action="store_true",
        help="List export styles and exit"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress non-error output"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def resolve_styles(requested: Optional[List[str]], default: str) -> List[OutputStyle]:
    """Turn --style values into a de-duplicated list of styles."""
    if not requested:
        return [OutputStyle.parse(default)]
    if "all" in requested:
        return list(OutputStyle)

    styles = []
    for value in requested:
        style = OutputStyle.parse(value)
        if style not in styles:
            styles.append(style)
    return styles


def resolve_output_path(output: str, base_name: str, style: OutputStyle, multiple: bool) -> Path:
    """
    Output path for one style.

    A path ending in .docx is used as-is for a single style; otherwise it is
    treated as a directory and the file is named after the input and style.
    """
    from mathdoc.utils.export import export_filename

    output_path = Path(output)
    if output_path.suffix.lower() == ".docx":
        if not multiple:
            return output_path
        return output_path.parent / export_filename(output_path.stem, style)
    return output_path / export_filename(base_name, style)


def list_styles():
    for style, spec in STYLE_TABLE.items():
        print(f"  {style.value:<12} {spec.label}")


def run(args) -> int:
    """Run one conversion."""
    from mathdoc.utils.export import DocumentExporter, HtmlDocxPackager
    from mathdoc.utils.io import ImportedDocument, load_path

    config = get_config()
    if args.no_smart_ocr:
        config.importing.smart_ocr = False
    footer = args.footer if args.footer is not None else config.export.footer_text

    if args.input == "-":
        document = ImportedDocument(
            text=sys.stdin.read(),
            rich_text=args.rich_text,
            base_name=config.export.default_file_name,
            source_type="text",
        )
    else:
        input_path = Path(args.input)
        client = None
        if input_path.suffix.lower() in (".pdf", ".jpg", ".jpeg", ".png", ".webp"):
            if config.importing.smart_ocr or input_path.suffix.lower() != ".pdf":
                client = create_vision_client(config)
        document = load_path(
            input_path,
            smart_ocr=config.importing.smart_ocr and client is not None,
            client=client,
            config=config.importing,
        )
        if args.rich_text:
            document.rich_text = True

    logger.info(
        f"Loaded {document.source_type} input ({len(document.text)} chars, "
        f"{'rich text' if document.rich_text else 'plain text'})"
    )

    exporter = DocumentExporter(
        packager=HtmlDocxPackager(config.export.docx_template),
        footer_text=footer,
    )

    styles = resolve_styles(args.style, config.export.default_style)
    for style in styles:
        path = resolve_output_path(args.output, document.base_name, style, len(styles) > 1)
        exporter.export(document.text, path, rich_text=document.rich_text, style=style)
        if args.html:
            exporter.export_html(
                document.text, path.with_suffix(".html"),
                rich_text=document.rich_text, style=style
            )
        if not args.quiet:
            print(f"{style.value}: {path}")

    return 0


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    parser = setup_argparser()
    args = parser.parse_args(argv)

    if args.list_styles:
        list_styles()
        sys.exit(0)

    if not args.input or not args.output:
        parser.error("--input and --output are required")

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    elif args.quiet:
        logging.getLogger().setLevel(logging.ERROR)

    try:
        exit_code = run(args)
        sys.exit(exit_code)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Conversion failed: {e}")
        if args.verbose:
            raise
        sys.exit(1)


if __name__ == "__main__":
    main()
