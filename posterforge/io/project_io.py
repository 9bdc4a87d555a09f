"""
Project File I/O for PosterForge

Handles saving and loading .pforge design documents.
Uses JSON format with base64 data URLs for embedded images.

Documents written by older format versions are upgraded step by step before
the Document is built. Loading is all-or-nothing: any structural problem
raises DocumentFormatError before a Document exists.
"""

import json
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from numbers import Real
from typing import Any, Callable, Dict, List, Optional, Union
from uuid import UUID, uuid4

from ..core.document import (
    CURRENT_VERSION, DEFAULT_FONT_FAMILY, Document, TextSettings,
    custom_font_name, is_custom_family
)
from ..core.elements import (
    BLACK, WHITE, BackgroundImage, Color, Element, ElementKind, ImageAsset,
    ImageLayer, LineElement, TextElement
)
from ..core.errors import AssetError, DocumentFormatError, UnsupportedVersionError
from ..graphics.fonts import FontRegistry
from .assets import AssetDecoder, encode_data_url, image_size, parse_data_url

logger = logging.getLogger(__name__)

FILE_EXTENSION = ".pforge"


@dataclass
class LoadResult:
    """Outcome of loading a project file."""
    document: Optional[Document] = None
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.document is not None


# Format upgrades. Each step takes a raw dict at version N and returns a new
# dict at version N + 1, only filling in what that version introduced.

def _upgrade_v1_to_v2(raw: Dict[str, Any]) -> Dict[str, Any]:
    """v2 moved text settings into a ``settings`` object and added fontFamily."""
    out = dict(raw)
    settings = out.get('settings')
    settings = dict(settings) if isinstance(settings, dict) else {}
    font_size = out.pop('fontSize', 48)
    color = out.pop('color', BLACK.to_dict())
    settings.setdefault('fontSize', font_size)
    settings.setdefault('color', color)
    settings.setdefault('fontFamily', DEFAULT_FONT_FAMILY)
    out['settings'] = settings
    out['version'] = 2
    return out


def _upgrade_v2_to_v3(raw: Dict[str, Any]) -> Dict[str, Any]:
    """v3 added backgroundImage, element ids and image scale."""
    out = dict(raw)
    out.setdefault('backgroundImage', None)
    elements = []
    for element in out.get('elements', []):
        if isinstance(element, dict):
            element = dict(element)
            element.setdefault('id', str(uuid4()))
            if element.get('type') == ElementKind.IMAGE.value:
                element.setdefault('scale', 1.0)
        elements.append(element)
    out['elements'] = elements
    out['version'] = 3
    return out


UPGRADES: Dict[int, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
    1: _upgrade_v1_to_v2,
    2: _upgrade_v2_to_v3,
}


def _read_version(raw: Dict[str, Any]) -> int:
    version = raw.get('version', 1)
    if isinstance(version, bool):
        raise DocumentFormatError(f"Invalid version: {version!r}")
    try:
        number = float(version)
    except (TypeError, ValueError, OverflowError):
        raise DocumentFormatError(f"Invalid version: {version!r}")
    if not math.isfinite(number):
        raise DocumentFormatError(f"Invalid version: {version!r}")
    if not number.is_integer():
        raise UnsupportedVersionError(version)
    return max(1, int(number))


def upgrade(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Bring a raw document dict up to CURRENT_VERSION.

    Raises:
        UnsupportedVersionError: for versions newer than CURRENT_VERSION
    """
    version = _read_version(raw)
    if version > CURRENT_VERSION:
        raise UnsupportedVersionError(raw.get('version'))
    out = dict(raw)
    while version < CURRENT_VERSION:
        out = UPGRADES[version](out)
        version += 1
    out['version'] = CURRENT_VERSION
    return out


# Saving

def element_to_dict(element: Element) -> Dict[str, Any]:
    """Convert an Element to a dictionary."""
    base_dict = {
        'type': element.kind.value,
        'id': str(element.id),
        'x': element.x,
        'y': element.y,
        'angle': element.angle,
    }
    if isinstance(element, TextElement):
        base_dict['content'] = element.content
    elif isinstance(element, LineElement):
        base_dict.update({
            'length': element.length,
            'thickness': element.thickness
        })
    elif isinstance(element, ImageLayer):
        base_dict.update({
            'src': encode_data_url(element.asset.data, element.asset.mime),
            'width': element.width,
            'height': element.height,
            'scale': element.scale
        })
    else:
        raise TypeError(f"Unsupported element type: {type(element).__name__}")
    return base_dict


def document_to_dict(document: Document) -> Dict[str, Any]:
    """Convert a Document to its persisted dictionary form."""
    background = None
    if document.background_image is not None:
        asset = document.background_image.asset
        background = {'src': encode_data_url(asset.data, asset.mime)}
    return {
        'version': CURRENT_VERSION,
        'width': document.width,
        'height': document.height,
        'backgroundColor': document.background_color.to_dict(),
        'backgroundImage': background,
        'settings': {
            'fontSize': document.settings.font_size,
            'fontFamily': document.settings.font_family,
            'color': document.settings.color.to_dict()
        },
        'elements': [element_to_dict(element) for element in document.elements]
    }


# Loading

def _require_positive_int(raw: Dict[str, Any], key: str) -> int:
    value = raw.get(key)
    if isinstance(value, bool) or not isinstance(value, Real):
        raise DocumentFormatError(f"'{key}' must be a positive integer")
    if isinstance(value, float) and not math.isfinite(value):
        raise DocumentFormatError(f"'{key}' must be a positive integer")
    if value <= 0 or int(value) != value:
        raise DocumentFormatError(f"'{key}' must be a positive integer")
    return int(value)


def _usable_size(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    if isinstance(value, float) and not math.isfinite(value):
        return False
    return value >= 1


def _color(value: Any, default: Color) -> Color:
    if isinstance(value, dict):
        return Color.from_mapping(value, default)
    return default


def _parse_id(value: Any, seen: set) -> UUID:
    try:
        element_id = UUID(str(value))
    except (TypeError, ValueError):
        element_id = uuid4()
    if element_id in seen:
        element_id = uuid4()
    seen.add(element_id)
    return element_id


def _image_asset(src: Any) -> ImageAsset:
    try:
        data, mime = parse_data_url(src)
    except AssetError as e:
        raise DocumentFormatError(f"Invalid image source: {e}") from e
    return ImageAsset(data=data, mime=mime)


def dict_to_element(element_dict: Any, seen_ids: set) -> Optional[Element]:
    """
    Convert a dictionary to an Element.

    Returns None for unknown element types; raises DocumentFormatError for
    structurally invalid entries.
    """
    if not isinstance(element_dict, dict):
        raise DocumentFormatError("Element entries must be objects")
    element_type = element_dict.get('type')
    if not isinstance(element_type, str):
        raise DocumentFormatError("Element is missing its 'type'")
    for key in ('x', 'y'):
        value = element_dict.get(key)
        if isinstance(value, bool) or not isinstance(value, Real):
            raise DocumentFormatError(f"Element '{key}' must be a number")

    common = {
        'x': element_dict['x'],
        'y': element_dict['y'],
        'angle': element_dict.get('angle', 0.0),
        'id': _parse_id(element_dict.get('id'), seen_ids),
    }

    if element_type == ElementKind.TEXT.value:
        return TextElement(content=element_dict.get('content'), **common)
    if element_type == ElementKind.LINE.value:
        return LineElement(
            length=element_dict.get('length', 100.0),
            thickness=element_dict.get('thickness', 4.0),
            **common
        )
    if element_type == ElementKind.IMAGE.value:
        asset = _image_asset(element_dict.get('src'))
        width = element_dict.get('width')
        height = element_dict.get('height')
        if not (_usable_size(width) and _usable_size(height)):
            try:
                width, height = image_size(asset.data)
            except AssetError as e:
                raise DocumentFormatError(f"Image element has no usable size: {e}") from e
        return ImageLayer(
            asset=asset,
            width=int(width),
            height=int(height),
            scale=element_dict.get('scale', 1.0),
            **common
        )

    logger.warning(f"Skipping unknown element type: {element_type!r}")
    return None


def load_document(raw: Union[Dict[str, Any], str, bytes],
                  fonts: Optional[FontRegistry] = None,
                  decoder: Optional[AssetDecoder] = None) -> Document:
    """
    Build a Document from its persisted form.

    Args:
        raw: Parsed dict, or JSON text/bytes
        fonts: Registry used to check custom font availability
        decoder: If given, embedded images are queued for decoding

    Raises:
        UnsupportedVersionError: the document is newer than this reader
        DocumentFormatError: the document is structurally invalid
    """
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise DocumentFormatError(f"Not a valid JSON document: {e}") from e
    if not isinstance(raw, dict):
        raise DocumentFormatError("Document root must be an object")

    doc_dict = upgrade(raw)

    width = _require_positive_int(doc_dict, 'width')
    height = _require_positive_int(doc_dict, 'height')

    settings_dict = doc_dict.get('settings')
    if not isinstance(settings_dict, dict):
        raise DocumentFormatError("'settings' must be an object")
    font_family = settings_dict.get('fontFamily', DEFAULT_FONT_FAMILY)
    if not isinstance(font_family, str) or not font_family:
        font_family = DEFAULT_FONT_FAMILY
    settings = TextSettings(
        font_size=settings_dict.get('fontSize', 48.0),
        font_family=font_family,
        color=_color(settings_dict.get('color'), BLACK)
    )

    background = None
    background_dict = doc_dict.get('backgroundImage')
    if background_dict is not None:
        if not isinstance(background_dict, dict):
            raise DocumentFormatError("'backgroundImage' must be an object or null")
        background = BackgroundImage(_image_asset(background_dict.get('src')))

    raw_elements = doc_dict.get('elements', [])
    if not isinstance(raw_elements, list):
        raise DocumentFormatError("'elements' must be a list")
    seen_ids: set = set()
    elements = []
    for element_dict in raw_elements:
        element = dict_to_element(element_dict, seen_ids)
        if element is not None:
            elements.append(element)

    document = Document(
        width=width,
        height=height,
        version=CURRENT_VERSION,
        background_color=_color(doc_dict.get('backgroundColor'), WHITE),
        background_image=background,
        elements=elements,
        settings=settings
    )

    if is_custom_family(font_family):
        if fonts is None or not fonts.is_registered(custom_font_name(font_family)):
            document.uses_fallback_font = True
            logger.warning(f"Custom font {custom_font_name(font_family)!r} is not loaded; "
                           f"using fallback family")

    if decoder is not None:
        if background is not None:
            decoder.submit(background.asset)
        for element in elements:
            if isinstance(element, ImageLayer):
                decoder.submit(element.asset)

    return document


def save_project(document: Document, filepath: str) -> bool:
    """
    Save a document to a .pforge project file.

    Args:
        document: The document to save
        filepath: Path to save the file

    Returns:
        True if successful, False otherwise
    """
    try:
        doc_dict = document_to_dict(document)
        doc_dict['saved_at'] = datetime.now().isoformat()
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(doc_dict, f, indent=2, ensure_ascii=False)
        logger.info(f"Saved project to {filepath}")
        return True
    except OSError as e:
        logger.error(f"Error saving project {filepath}: {e}")
        return False


def load_project(filepath: str, fonts: Optional[FontRegistry] = None,
                 decoder: Optional[AssetDecoder] = None) -> LoadResult:
    """
    Load a document from a .pforge project file.

    Returns:
        LoadResult with the document, or with an error message
    """
    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Error reading project {filepath}: {e}")
        return LoadResult(error=f"Could not read {filepath}: {e}")

    try:
        document = load_document(text, fonts=fonts, decoder=decoder)
    except DocumentFormatError as e:
        logger.error(f"Error loading project {filepath}: {e}")
        return LoadResult(error=str(e))

    result = LoadResult(document=document)
    if document.uses_fallback_font:
        result.warnings.append(
            f"Font '{custom_font_name(document.settings.font_family)}' is not loaded; "
            f"text uses a fallback font until it is supplied."
        )
    logger.info(f"Loaded project {filepath} ({len(document.elements)} elements)")
    return result
