"""
PosterForge Editor

Wires the element store, renderer, interaction controller, asset decoder
and importer together. This is also the surface a host application talks
to: ``raster_bytes()`` for the current image and ``apply_override()`` for
externally supplied settings.
"""

import logging
from typing import Any, Callable, List, Mapping, Optional, Union
from uuid import UUID

from PyQt6.QtGui import QImage

from .config import EditorSettings
from .core.document import Document
from .core.elements import ElementKind, ImageLayer
from .core.errors import DocumentFormatError
from .core.store import ElementStore
from .graphics.fonts import FontRegistry
from .graphics.interaction import InteractionController
from .graphics.renderer import Renderer
from .io.asset_importer import AssetImporter, ImportResult
from .io.assets import AssetDecoder
from .io.export import export_raster, export_vector
from .io.project_io import LoadResult, load_document, load_project, save_project

logger = logging.getLogger(__name__)


class Editor:
    """One document edited by one user."""

    def __init__(self, settings: Optional[EditorSettings] = None,
                 fonts: Optional[FontRegistry] = None):
        self.settings = settings or EditorSettings()
        self.fonts = fonts or FontRegistry(self.settings.fallback_font_family)
        self.store = ElementStore(self._blank_document(),
                                  duplicate_offset=self.settings.duplicate_offset,
                                  font_available=self.fonts.is_registered)
        self.renderer = Renderer(self.fonts)
        self.decoder = AssetDecoder(on_decoded=self.refresh)
        self.controller = InteractionController(self.store, self.settings, self.fonts)
        self.importer = AssetImporter(self.store, self.fonts, self.decoder)
        self._surface: Optional[QImage] = None
        self._view_listeners: List[Callable[[], None]] = []
        self.store.add_listener(self._on_document_changed)

    def _blank_document(self) -> Document:
        return Document(
            width=self.settings.surface_width,
            height=self.settings.surface_height,
            background_color=self.settings.background_color,
            settings=self.settings.text_settings()
        )

    @property
    def document(self) -> Document:
        return self.store.document

    # Rendering

    def add_view_listener(self, callback: Callable[[], None]) -> None:
        """Register a callback run after each re-render (e.g. widget.update)."""
        self._view_listeners.append(callback)

    def _on_document_changed(self, document: Document) -> None:
        self.refresh()

    def refresh(self) -> None:
        """Re-render the current document."""
        self._surface = self.renderer.render(self.store.document)
        for callback in list(self._view_listeners):
            callback()

    def surface(self) -> QImage:
        """The most recent render, rendering first if none exists."""
        if self._surface is None:
            self.refresh()
        return self._surface

    # Host-integration entry points

    def raster_bytes(self) -> bytes:
        """Current composition as PNG bytes."""
        return export_raster(self.store.document, self.renderer)

    def vector_markup(self, text_as_paths: bool = False) -> str:
        return export_vector(self.store.document, self.fonts, text_as_paths)

    def apply_override(self, override: Mapping[str, Any]) -> None:
        """Apply an externally supplied configuration override."""
        self.store.apply_override(override)

    # Documents

    def new_document(self) -> None:
        self.controller.cancel()
        self.decoder.clear()
        self.store.replace_document(self._blank_document())

    def _install(self, document: Document) -> None:
        self.controller.cancel()
        self.decoder.clear()
        self.store.replace_document(document)
        if document.background_image is not None:
            self.decoder.submit(document.background_image.asset)
        for element in document.elements:
            if isinstance(element, ImageLayer):
                self.decoder.submit(element.asset)

    def open_document(self, raw: Union[Mapping[str, Any], str, bytes]) -> LoadResult:
        """
        Replace the current document with a loaded one.

        On failure the current document is left exactly as it was.
        """
        try:
            document = load_document(raw, fonts=self.fonts)
        except DocumentFormatError as e:
            logger.warning(f"Document load failed: {e}")
            return LoadResult(error=str(e))
        self._install(document)
        result = LoadResult(document=document)
        if document.uses_fallback_font:
            result.warnings.append("Custom font is not loaded; using a fallback font.")
        return result

    def open_file(self, filepath: str) -> LoadResult:
        result = load_project(filepath, fonts=self.fonts)
        if result.ok:
            self._install(result.document)
        return result

    def save_file(self, filepath: str) -> bool:
        return save_project(self.store.document, filepath)

    # Element creation helpers

    def add_text(self, content: str, x: Optional[float] = None,
                 y: Optional[float] = None) -> UUID:
        document = self.store.document
        return self.store.add(ElementKind.TEXT, {
            'x': document.width / 2 if x is None else x,
            'y': document.height / 2 if y is None else y,
            'content': content,
        })

    def add_line(self, length: float = 200.0, thickness: float = 4.0,
                 x: Optional[float] = None, y: Optional[float] = None) -> UUID:
        document = self.store.document
        return self.store.add(ElementKind.LINE, {
            'x': document.width / 2 if x is None else x,
            'y': document.height / 2 if y is None else y,
            'length': length,
            'thickness': thickness,
        })

    def import_file(self, filepath: str, as_background: bool = False) -> ImportResult:
        return self.importer.import_file(filepath, as_background=as_background)

    def process_assets(self, limit: Optional[int] = None) -> int:
        """Decode pending images; re-renders when any finish."""
        return self.decoder.process(limit)
