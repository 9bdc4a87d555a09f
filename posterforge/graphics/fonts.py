"""
Font Registry for PosterForge

Tracks user-supplied fonts and resolves the document's font selector to a
usable family, falling back to a default family when a custom font has not
been supplied.
"""

from PyQt6.QtWidgets import QApplication
from PyQt6.QtGui import QFont, QFontDatabase, QFontMetricsF, QPainterPath
from PyQt6.QtCore import QPointF
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple
import logging
import sys

from ..core.document import TextSettings, custom_font_name, is_custom_family
from ..core.errors import AssetError

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_FAMILY = "Sans Serif"

_application: Optional[QApplication] = None


def ensure_application() -> QApplication:
    """
    Return the running QApplication, creating one if needed.

    Fonts, metrics and painting all require a GUI application object, even
    for headless export.
    """
    global _application
    app = QApplication.instance()
    if app is None:
        _application = QApplication(sys.argv[:1])
        app = _application
    return app


@dataclass(frozen=True)
class TextMetrics:
    """Size of rendered text, in pixels. The box is centered on the origin."""
    width: float
    height: float
    ascent: float

    @property
    def baseline(self) -> float:
        """Local y of the baseline for text centered on the origin."""
        return -self.height / 2 + self.ascent


class FontRegistry:
    """
    Manages custom fonts supplied at runtime.

    Custom fonts are referenced in documents as ``custom:<name>``; the name
    maps to whatever family Qt registered for the font data.
    """

    def __init__(self, fallback_family: str = DEFAULT_FALLBACK_FAMILY):
        self.fallback_family = fallback_family
        self._custom: Dict[str, str] = {}
        self._font_ids: Dict[str, int] = {}

    def register_font_data(self, name: str, data: bytes) -> str:
        """
        Register font bytes under ``name``.

        Returns:
            The family name Qt registered

        Raises:
            AssetError: if Qt cannot load the font data
        """
        ensure_application()
        font_id = QFontDatabase.addApplicationFontFromData(data)
        if font_id == -1:
            raise AssetError(f"Could not load font '{name}'")
        families = QFontDatabase.applicationFontFamilies(font_id)
        if not families:
            QFontDatabase.removeApplicationFont(font_id)
            raise AssetError(f"Font '{name}' contains no families")
        previous = self._font_ids.pop(name, None)
        if previous is not None:
            QFontDatabase.removeApplicationFont(previous)
        self._font_ids[name] = font_id
        self._custom[name] = families[0]
        logger.debug(f"Registered font {name!r} as family {families[0]!r}")
        return families[0]

    def register_font_file(self, font_path: str, name: Optional[str] = None) -> str:
        """Register a .ttf/.otf file; the name defaults to the file stem."""
        path = Path(font_path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise AssetError(f"Could not read font file {font_path}: {e}") from e
        return self.register_font_data(name or path.stem, data)

    def custom_fonts(self):
        return sorted(self._custom)

    def is_registered(self, name: str) -> bool:
        return name in self._custom

    def resolve(self, selector: str) -> Tuple[str, bool]:
        """
        Resolve a font selector to a family.

        Returns:
            (family, used_fallback)
        """
        if is_custom_family(selector):
            family = self._custom.get(custom_font_name(selector))
            if family is None:
                return self.fallback_family, True
            return family, False
        return selector, False

    def make_font(self, settings: TextSettings) -> QFont:
        """Build the QFont used for every text element of a document."""
        ensure_application()
        family, _ = self.resolve(settings.font_family)
        font = QFont(family)
        font.setPixelSize(max(1, int(round(settings.font_size))))
        return font

    def measure(self, content: str, settings: TextSettings) -> TextMetrics:
        """Rendered size of ``content`` at the document's font settings."""
        metrics = QFontMetricsF(self.make_font(settings))
        return TextMetrics(
            width=metrics.horizontalAdvance(content),
            height=metrics.height(),
            ascent=metrics.ascent()
        )

    def outline_path(self, content: str, settings: TextSettings) -> QPainterPath:
        """Glyph outlines of ``content`` in local space, centered on the origin."""
        font = self.make_font(settings)
        text_metrics = self.measure(content, settings)
        path = QPainterPath()
        path.addText(QPointF(-text_metrics.width / 2, text_metrics.baseline), font, content)
        return path


# Global font registry instance
_font_registry: Optional[FontRegistry] = None


def get_font_registry() -> FontRegistry:
    """Get the global font registry instance."""
    global _font_registry
    if _font_registry is None:
        _font_registry = FontRegistry()
    return _font_registry
