"""
PosterForge Core Module

Contains the core data structures:
- Geometry: surface/local space conversions
- Elements: Text, Line, ImageLayer, BackgroundImage
- Document: Root container for all design data
- ElementStore: the owner of the Document and its mutations
"""

# Import order matters - geometry first, then elements, then document
from .geometry import Point, LocalBox, normalize_angle, to_local, to_surface
from .elements import (
    Color, ElementKind, Element, TextElement, LineElement, ImageLayer,
    BackgroundImage, ImageAsset, clamp
)
from .document import Document, TextSettings, CURRENT_VERSION
from .store import ElementStore
from .errors import (
    PosterForgeError, ElementNotFoundError, AssetError,
    DocumentFormatError, UnsupportedVersionError
)

__all__ = [
    'Point', 'LocalBox', 'normalize_angle', 'to_local', 'to_surface',
    'Color', 'ElementKind', 'Element', 'TextElement', 'LineElement',
    'ImageLayer', 'BackgroundImage', 'ImageAsset', 'clamp',
    'Document', 'TextSettings', 'CURRENT_VERSION',
    'ElementStore',
    'PosterForgeError', 'ElementNotFoundError', 'AssetError',
    'DocumentFormatError', 'UnsupportedVersionError',
]
