#!/usr/bin/env python3
"""
PosterForge - Main Entry Point

Run with: python -m posterforge.main
Headless export: posterforge --export poster.png design.pforge
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from PyQt6.QtWidgets import QApplication
from PyQt6.QtCore import Qt

from . import __version__
from .config import APPLICATION, ORGANIZATION, configure_logging, load_settings

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="posterforge",
        description="Compose posters from text, lines and images."
    )
    parser.add_argument("document", nargs="?", help="design file to open")
    parser.add_argument(
        "--export", metavar="OUT",
        help="render DOCUMENT to OUT (.png or .svg) without opening a window"
    )
    parser.add_argument(
        "--outline-text", action="store_true",
        help="when exporting SVG, convert text in custom fonts to paths"
    )
    parser.add_argument("--log-level", help="override the configured log level")
    return parser


def export_headless(document_path: str, output_path: str, outline_text: bool = False) -> int:
    """Load a design, decode its images and write it out. Returns an exit code."""
    from .editor import Editor
    from .graphics.fonts import ensure_application
    from .io.export import export_raster_file, export_vector_file

    ensure_application()
    editor = Editor(load_settings())
    result = editor.open_file(document_path)
    if not result.ok:
        logger.error(f"Cannot open {document_path}: {result.error}")
        return 1
    for warning in result.warnings:
        logger.warning(warning)
    editor.process_assets()

    suffix = Path(output_path).suffix.lower()
    if suffix == '.svg':
        ok = export_vector_file(editor.document, output_path, editor.fonts, outline_text)
    elif suffix == '.png':
        ok = export_raster_file(editor.document, output_path, editor.renderer)
    else:
        logger.error(f"Unsupported export format: {suffix or output_path}")
        return 2
    return 0 if ok else 1


def main(argv: Optional[List[str]] = None):
    """Main entry point for PosterForge."""
    args = build_parser().parse_args(argv)
    settings = load_settings()
    configure_logging(args.log_level or settings.log_level)

    if args.export:
        if not args.document:
            logger.error("--export needs a design file to render")
            return 2
        os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
        return export_headless(args.document, args.export, args.outline_text)

    try:
        # Enable high DPI scaling
        QApplication.setHighDpiScaleFactorRoundingPolicy(
            Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
        )

        app = QApplication(sys.argv)
        app.setApplicationName(APPLICATION)
        app.setApplicationVersion(__version__)
        app.setOrganizationName(ORGANIZATION)

        # Import here to speed up startup of the headless path
        from .ui.mainwindow import MainWindow

        window = MainWindow(settings)
        window.show()
        if args.document:
            window.open_path(args.document)

        return app.exec()
    except Exception:
        logger.exception("Fatal error")
        return 1


if __name__ == "__main__":
    sys.exit(main())
