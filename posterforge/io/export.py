"""
Export for PosterForge

Raster export encodes the Renderer's surface as PNG. Vector export walks the
Document again and emits one SVG primitive per element, using the same
translate / rotate / local-box decomposition as the Renderer so both
outputs line up exactly.
"""

import logging
import xml.etree.ElementTree as ET
from typing import Optional

from PyQt6.QtGui import QPainterPath

from ..core.document import Document, custom_font_name, is_custom_family
from ..core.elements import ImageLayer, LineElement, TextElement
from ..graphics.fonts import FontRegistry, get_font_registry
from ..graphics.renderer import Renderer, cover_fit_rect, encode_png
from .assets import encode_data_url, image_size

logger = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"

ET.register_namespace('xlink', XLINK_NS)


def _fmt(value: float) -> str:
    text = f"{value:.4f}".rstrip('0').rstrip('.')
    return "0" if text in ("-0", "") else text


def _set_href(node: ET.Element, url: str) -> None:
    # SVG 1.1 readers only understand xlink:href
    node.set('href', url)
    node.set(f'{{{XLINK_NS}}}href', url)


def export_raster(document: Document, renderer: Optional[Renderer] = None) -> bytes:
    """Render the document and return PNG bytes sized width x height."""
    renderer = renderer or Renderer()
    return encode_png(renderer.render(document))


def painter_path_to_svg(path: QPainterPath) -> str:
    """Convert a QPainterPath into SVG path data."""
    commands = []
    index = 0
    count = path.elementCount()
    while index < count:
        element = path.elementAt(index)
        if element.isMoveTo():
            commands.append(f"M{_fmt(element.x)} {_fmt(element.y)}")
            index += 1
        elif element.isLineTo():
            commands.append(f"L{_fmt(element.x)} {_fmt(element.y)}")
            index += 1
        elif element.isCurveTo() and index + 2 < count:
            c2 = path.elementAt(index + 1)
            end = path.elementAt(index + 2)
            commands.append(
                f"C{_fmt(element.x)} {_fmt(element.y)} "
                f"{_fmt(c2.x)} {_fmt(c2.y)} {_fmt(end.x)} {_fmt(end.y)}"
            )
            index += 3
        else:
            index += 1
    return " ".join(commands)


def export_vector(document: Document, fonts: Optional[FontRegistry] = None,
                  text_as_paths: bool = False) -> str:
    """
    Export the document as SVG markup.

    Args:
        document: The document to export
        fonts: Font registry for metrics and custom font outlines
        text_as_paths: Emit text as glyph outlines when the document uses a
            registered custom font

    Returns:
        SVG markup sized exactly width x height
    """
    fonts = fonts or get_font_registry()
    settings = document.settings
    color = settings.color.to_hex()

    svg = ET.Element('svg')
    svg.set('xmlns', SVG_NS)
    svg.set('width', str(document.width))
    svg.set('height', str(document.height))
    svg.set('viewBox', f'0 0 {document.width} {document.height}')

    background = ET.SubElement(svg, 'rect')
    background.set('x', '0')
    background.set('y', '0')
    background.set('width', str(document.width))
    background.set('height', str(document.height))
    background.set('fill', document.background_color.to_hex())

    bg_image = document.background_image
    if bg_image is not None and bg_image.ready:
        img_w, img_h = image_size(bg_image.asset.data)
        x, y, width, height = cover_fit_rect(document.width, document.height, img_w, img_h)
        node = ET.SubElement(svg, 'image')
        node.set('x', _fmt(x))
        node.set('y', _fmt(y))
        node.set('width', _fmt(width))
        node.set('height', _fmt(height))
        node.set('preserveAspectRatio', 'none')
        _set_href(node, encode_data_url(bg_image.asset.data, bg_image.asset.mime))

    family, used_fallback = fonts.resolve(settings.font_family)
    outlines = (text_as_paths and is_custom_family(settings.font_family)
                and not used_fallback)
    if used_fallback:
        logger.warning(f"Font {custom_font_name(settings.font_family)!r} not loaded; "
                       f"exporting text with fallback family {family!r}")

    for element in document.elements:
        if not element.ready:
            continue
        if isinstance(element, TextElement) and not element.content:
            continue
        group = ET.SubElement(svg, 'g')
        group.set('transform', f'translate({_fmt(element.x)} {_fmt(element.y)}) '
                               f'rotate({_fmt(element.angle)})')

        if isinstance(element, TextElement):
            if outlines:
                path = ET.SubElement(group, 'path')
                path.set('d', painter_path_to_svg(fonts.outline_path(element.content, settings)))
                path.set('fill', color)
                continue
            metrics = fonts.measure(element.content, settings)
            text = ET.SubElement(group, 'text')
            text.set('x', _fmt(-metrics.width / 2))
            text.set('y', _fmt(metrics.baseline))
            text.set('font-family', family if used_fallback else f"{family}, {fonts.fallback_family}")
            text.set('font-size', f"{_fmt(settings.font_size)}px")
            text.set('fill', color)
            text.set('{http://www.w3.org/XML/1998/namespace}space', 'preserve')
            if used_fallback:
                text.set('data-fallback-font', custom_font_name(settings.font_family))
            text.text = element.content
        elif isinstance(element, LineElement):
            rect = ET.SubElement(group, 'rect')
            rect.set('x', _fmt(-element.length / 2))
            rect.set('y', _fmt(-element.thickness / 2))
            rect.set('width', _fmt(element.length))
            rect.set('height', _fmt(element.thickness))
            rect.set('fill', color)
        elif isinstance(element, ImageLayer):
            width, height = element.display_size
            image = ET.SubElement(group, 'image')
            image.set('x', _fmt(-width / 2))
            image.set('y', _fmt(-height / 2))
            image.set('width', _fmt(width))
            image.set('height', _fmt(height))
            image.set('preserveAspectRatio', 'none')
            _set_href(image, encode_data_url(element.asset.data, element.asset.mime))
        else:
            raise TypeError(f"Unsupported element type: {type(element).__name__}")

    ET.indent(svg, space="  ")
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(svg, encoding='unicode')


def export_raster_file(document: Document, filepath: str,
                       renderer: Optional[Renderer] = None) -> bool:
    """Write a PNG export to disk. Returns True on success."""
    try:
        with open(filepath, 'wb') as f:
            f.write(export_raster(document, renderer))
    except OSError as e:
        logger.error(f"Error exporting PNG to {filepath}: {e}")
        return False
    logger.info(f"Exported PNG to {filepath}")
    return True


def export_vector_file(document: Document, filepath: str,
                       fonts: Optional[FontRegistry] = None,
                       text_as_paths: bool = False) -> bool:
    """Write an SVG export to disk. Returns True on success."""
    try:
        with open(filepath, 'w', encoding='utf-8') as f:
            f.write(export_vector(document, fonts, text_as_paths))
    except OSError as e:
        logger.error(f"Error exporting SVG to {filepath}: {e}")
        return False
    logger.info(f"Exported SVG to {filepath}")
    return True
