"""
Renderer for PosterForge

Draws a Document onto a QPainter in a fixed order: background fill,
cover-fit background image, then elements back to front. Each element is
drawn in its local space after translating to its center and rotating.
The vector exporter reuses the same decomposition and box geometry.
"""

from PyQt6.QtCore import QBuffer, QByteArray, QIODevice, QPointF, QRectF
from PyQt6.QtGui import QColor, QImage, QPainter
from typing import Optional, Tuple

from ..core.document import Document
from ..core.elements import (
    BackgroundImage, Color, Element, ImageLayer, LineElement, TextElement
)
from ..core.geometry import LocalBox
from .fonts import FontRegistry, ensure_application, get_font_registry


def qcolor(color: Color) -> QColor:
    return QColor(color.r, color.g, color.b)


def cover_fit_rect(surface_w: float, surface_h: float,
                   image_w: float, image_h: float) -> Tuple[float, float, float, float]:
    """
    Rectangle (x, y, w, h) that covers the whole surface with the image.

    The image keeps its aspect ratio, is centered, and overflows (is cropped
    by) the surface on one axis. It is never letterboxed.
    """
    if image_w <= 0 or image_h <= 0:
        return 0.0, 0.0, float(surface_w), float(surface_h)
    scale = max(surface_w / image_w, surface_h / image_h)
    width = image_w * scale
    height = image_h * scale
    return (surface_w - width) / 2, (surface_h - height) / 2, width, height


def element_box(element: Element, document: Document,
                fonts: Optional[FontRegistry] = None) -> LocalBox:
    """The local-space box an element draws into and is hit-tested against."""
    if isinstance(element, TextElement):
        metrics = (fonts or get_font_registry()).measure(element.content, document.settings)
        return LocalBox(metrics.width, metrics.height)
    if isinstance(element, LineElement):
        return LocalBox(element.length, element.thickness)
    if isinstance(element, ImageLayer):
        width, height = element.display_size
        return LocalBox(width, height)
    raise TypeError(f"Unsupported element type: {type(element).__name__}")


class Renderer:
    """
    Renders documents to QImage surfaces.

    The renderer holds no document state; every call reads the document it
    is given.
    """

    def __init__(self, fonts: Optional[FontRegistry] = None):
        self.fonts = fonts or get_font_registry()

    def render(self, document: Document) -> QImage:
        """Render the document into a new width x height surface."""
        ensure_application()
        surface = QImage(document.width, document.height, QImage.Format.Format_ARGB32)
        surface.fill(qcolor(document.background_color))
        painter = QPainter(surface)
        try:
            self.draw(painter, document)
        finally:
            painter.end()
        return surface

    def draw(self, painter: QPainter, document: Document) -> None:
        """Draw the full pipeline onto an already-open painter."""
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.setRenderHint(QPainter.RenderHint.TextAntialiasing)

        surface_rect = QRectF(0, 0, document.width, document.height)
        painter.fillRect(surface_rect, qcolor(document.background_color))

        if document.background_image is not None:
            self._draw_background_image(painter, document, document.background_image)

        for element in document.elements:
            if not element.ready:
                continue
            painter.save()
            painter.translate(element.x, element.y)
            painter.rotate(element.angle)
            self._draw_element(painter, element, document)
            painter.restore()

    def _draw_background_image(self, painter: QPainter, document: Document,
                               background: BackgroundImage) -> None:
        if not background.ready:
            return
        image = background.asset.image
        x, y, width, height = cover_fit_rect(
            document.width, document.height, image.width(), image.height()
        )
        painter.save()
        painter.setClipRect(QRectF(0, 0, document.width, document.height))
        painter.drawImage(QRectF(x, y, width, height), image)
        painter.restore()

    def _draw_element(self, painter: QPainter, element: Element,
                      document: Document) -> None:
        """Draw one element in its local space."""
        if isinstance(element, TextElement):
            self._draw_text(painter, element, document)
        elif isinstance(element, LineElement):
            rect = QRectF(-element.length / 2, -element.thickness / 2,
                          element.length, element.thickness)
            painter.fillRect(rect, qcolor(document.settings.color))
        elif isinstance(element, ImageLayer):
            width, height = element.display_size
            painter.drawImage(QRectF(-width / 2, -height / 2, width, height),
                              element.asset.image)
        else:
            raise TypeError(f"Unsupported element type: {type(element).__name__}")

    def _draw_text(self, painter: QPainter, element: TextElement,
                   document: Document) -> None:
        if not element.content:
            return
        metrics = self.fonts.measure(element.content, document.settings)
        painter.setFont(self.fonts.make_font(document.settings))
        painter.setPen(qcolor(document.settings.color))
        painter.drawText(QPointF(-metrics.width / 2, metrics.baseline), element.content)


def encode_png(image: QImage) -> bytes:
    """Encode a rendered surface as PNG bytes."""
    data = QByteArray()
    buffer = QBuffer(data)
    buffer.open(QIODevice.OpenModeFlag.WriteOnly)
    image.save(buffer, "PNG")
    buffer.close()
    return bytes(data)
