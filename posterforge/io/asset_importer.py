"""
Asset Importer for PosterForge

Accepts dropped or opened files: raster images become ImageLayer elements
(or the background image), font files are registered as custom fonts.
Images are added immediately and decode later; the element is inert until
then.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional
from uuid import UUID
import logging

from ..core.document import CUSTOM_FONT_PREFIX
from ..core.elements import (
    SCALE_RANGE, BackgroundImage, ElementKind, ImageAsset, clamp
)
from ..core.errors import AssetError
from ..core.store import ElementStore
from ..graphics.fonts import FontRegistry
from .assets import AssetDecoder, image_size, sniff_mime

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = frozenset({'.png', '.jpg', '.jpeg', '.gif', '.bmp', '.webp'})
FONT_EXTENSIONS = frozenset({'.ttf', '.otf'})


@dataclass
class ImportResult:
    """Outcome of an import; ``message`` is meant for the user."""
    ok: bool
    message: str
    element_id: Optional[UUID] = None
    font_family: Optional[str] = None


class AssetImporter:
    """
    Import image and font files into the current document.

    Rejected file types and undecodable data are reported through the
    returned ImportResult; the document is left unchanged in that case.
    """

    def __init__(self, store: ElementStore, fonts: FontRegistry,
                 decoder: AssetDecoder,
                 image_extensions: Iterable[str] = IMAGE_EXTENSIONS,
                 font_extensions: Iterable[str] = FONT_EXTENSIONS):
        self.store = store
        self.fonts = fonts
        self.decoder = decoder
        self.image_extensions = frozenset(ext.lower() for ext in image_extensions)
        self.font_extensions = frozenset(ext.lower() for ext in font_extensions)

    def accepts(self, filepath: str) -> bool:
        ext = Path(filepath).suffix.lower()
        return ext in self.image_extensions or ext in self.font_extensions

    def import_file(self, filepath: str, as_background: bool = False) -> ImportResult:
        """
        Import a file by extension.

        Args:
            filepath: Path to an image or font file
            as_background: Use an image as the document background

        Returns:
            ImportResult describing success or the reason for rejection
        """
        path = Path(filepath)
        ext = path.suffix.lower()
        if ext not in self.image_extensions and ext not in self.font_extensions:
            return ImportResult(False, f"Unsupported file type: {ext or path.name}")
        try:
            data = path.read_bytes()
        except OSError as e:
            logger.error(f"Could not read {filepath}: {e}")
            return ImportResult(False, f"Could not read {path.name}: {e}")

        if ext in self.font_extensions:
            return self.import_font_bytes(data, path.stem)
        return self.import_image_bytes(data, path.name, as_background)

    def import_image_bytes(self, data: bytes, name: str = "image",
                           as_background: bool = False) -> ImportResult:
        try:
            mime = sniff_mime(data)
            width, height = image_size(data)
        except AssetError as e:
            logger.warning(f"Rejected image {name}: {e}")
            return ImportResult(False, f"Could not load image {name}: {e}")

        asset = ImageAsset(data=data, mime=mime)
        if as_background:
            self.store.set_background_image(BackgroundImage(asset))
            self.decoder.submit(asset)
            logger.info(f"Set background image from {name}")
            return ImportResult(True, f"Background set from {name}")

        document = self.store.document
        # Fit inside the surface, never scale up
        scale = min(1.0, document.width / width, document.height / height)
        element_id = self.store.add(ElementKind.IMAGE, {
            'x': document.width / 2,
            'y': document.height / 2,
            'asset': asset,
            'width': width,
            'height': height,
            'scale': clamp(scale, *SCALE_RANGE),
        })
        self.decoder.submit(asset)
        logger.info(f"Imported image {name} ({width}x{height})")
        return ImportResult(True, f"Imported {name}", element_id=element_id)

    def import_font_bytes(self, data: bytes, name: str, select: bool = True) -> ImportResult:
        """Register a custom font and, by default, make it the document font."""
        try:
            family = self.fonts.register_font_data(name, data)
        except AssetError as e:
            logger.warning(f"Rejected font {name}: {e}")
            return ImportResult(False, str(e))
        if select:
            self.store.set_text_settings(font_family=CUSTOM_FONT_PREFIX + name)
        logger.info(f"Registered font {name} ({family})")
        return ImportResult(True, f"Loaded font {family}", font_family=family)
