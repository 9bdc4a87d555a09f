"""
PosterForge Element Store

Single owner of the current Document. Every mutation goes through here and
notifies listeners once it is committed.
"""

import copy
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Union
from uuid import UUID, uuid4

from .document import Document, TextSettings, custom_font_name, is_custom_family
from .elements import (
    ELEMENT_CLASSES, FONT_SIZE_RANGE, BackgroundImage, Color, Element,
    ElementKind, TextElement, clamp
)
from .errors import ElementNotFoundError

logger = logging.getLogger(__name__)

Listener = Callable[[Document], None]


class ElementStore:
    """
    Ordered element collection plus global document settings.

    Lookups by unknown id raise ElementNotFoundError. Ids are handed out by
    the store itself, so a miss means a caller bug rather than user error.

    ``font_available`` answers whether a custom font name is registered; it
    keeps ``uses_fallback_font`` current when the font family changes.
    """

    def __init__(self, document: Optional[Document] = None,
                 duplicate_offset: float = 20.0,
                 font_available: Optional[Callable[[str], bool]] = None):
        self._document = document if document is not None else Document()
        self._listeners: List[Listener] = []
        self.duplicate_offset = duplicate_offset
        self.font_available = font_available

    @property
    def document(self) -> Document:
        return self._document

    def add_listener(self, callback: Listener) -> None:
        """Register a callback invoked after every committed mutation."""
        self._listeners.append(callback)

    def remove_listener(self, callback: Listener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self) -> None:
        for callback in list(self._listeners):
            callback(self._document)

    def _index(self, element_id: UUID) -> int:
        for index, element in enumerate(self._document.elements):
            if element.id == element_id:
                return index
        raise ElementNotFoundError(element_id)

    # Element operations

    def add(self, kind: Union[ElementKind, str],
            props: Optional[Mapping[str, Any]] = None) -> UUID:
        """Create an element of the given kind on top of the z-order."""
        kind = ElementKind(kind)
        if kind not in ELEMENT_CLASSES:
            raise ValueError(f"Cannot add element of kind {kind.value!r}")
        props = dict(props or {})
        if 'id' in props and self._document.find(props['id']) is not None:
            raise ValueError(f"Duplicate element id: {props['id']}")
        element = ELEMENT_CLASSES[kind](**props)
        self._document.elements.append(element)
        logger.debug("Added %s element %s", kind.value, element.id)
        self._notify()
        return element.id

    def remove(self, element_id: UUID) -> None:
        index = self._index(element_id)
        del self._document.elements[index]
        logger.debug("Removed element %s", element_id)
        self._notify()

    def duplicate(self, element_id: UUID) -> UUID:
        """Copy an element, offset slightly, directly above the original."""
        index = self._index(element_id)
        original = self._document.elements[index]
        clone = copy.copy(original)
        clone.id = uuid4()
        clone.x = original.x + self.duplicate_offset
        clone.y = original.y + self.duplicate_offset
        self._document.elements.insert(index + 1, clone)
        logger.debug("Duplicated element %s as %s", element_id, clone.id)
        self._notify()
        return clone.id

    def update(self, element_id: UUID, props: Mapping[str, Any]) -> None:
        """Apply a partial update; numeric fields are clamped, never rejected."""
        element = self.get(element_id)
        for name, value in props.items():
            element.set_field(name, value)
        self._notify()

    def reorder(self, element_id: UUID, new_index: int) -> None:
        """Move an element to new_index (clamped into the list bounds)."""
        elements = self._document.elements
        index = self._index(element_id)
        element = elements.pop(index)
        new_index = int(clamp(new_index, 0, len(elements), len(elements)))
        elements.insert(new_index, element)
        self._notify()

    def raise_to_top(self, element_id: UUID) -> None:
        self.reorder(element_id, len(self._document.elements) - 1)

    def lower_to_bottom(self, element_id: UUID) -> None:
        self.reorder(element_id, 0)

    def index_of(self, element_id: UUID) -> int:
        return self._index(element_id)

    def get(self, element_id: UUID) -> Element:
        return self._document.elements[self._index(element_id)]

    def list(self) -> List[Element]:
        """Elements in z-order, back to front."""
        return list(self._document.elements)

    # Document-level settings

    def set_background_color(self, color: Any) -> None:
        self._document.background_color = Color.parse(color)
        self._notify()

    def set_background_image(self, background: Optional[BackgroundImage]) -> None:
        self._document.background_image = background
        self._notify()

    def set_text_settings(self, font_size: Any = None, font_family: Optional[str] = None,
                          color: Any = None) -> None:
        settings = self._document.settings
        if font_size is not None:
            settings.font_size = clamp(font_size, *FONT_SIZE_RANGE, default=settings.font_size)
        if font_family is not None:
            settings.font_family = font_family
            self._refresh_fallback_flag()
        if color is not None:
            settings.color = Color.parse(color, settings.color)
        self._notify()

    def _refresh_fallback_flag(self) -> None:
        family = self._document.settings.font_family
        if is_custom_family(family):
            name = custom_font_name(family)
            available = self.font_available is not None and self.font_available(name)
            self._document.uses_fallback_font = not available
        else:
            self._document.uses_fallback_font = False

    def set_surface_size(self, width: Any, height: Any) -> None:
        self._document.width = int(clamp(width, 1, 20000, self._document.width))
        self._document.height = int(clamp(height, 1, 20000, self._document.height))
        self._notify()

    def replace_document(self, document: Document) -> None:
        """Swap in a whole new document (new file or a completed load)."""
        self._document = document
        logger.debug("Document replaced (%d elements)", len(document.elements))
        self._notify()

    def new_document(self, width: int = 600, height: int = 800,
                     settings: Optional[TextSettings] = None,
                     background_color: Optional[Color] = None) -> Document:
        document = Document(width=width, height=height)
        if settings is not None:
            document.settings = settings
        if background_color is not None:
            document.background_color = background_color
        self.replace_document(document)
        return document

    def apply_override(self, override: Mapping[str, Any]) -> None:
        """
        Apply an externally supplied configuration override.

        Recognized keys: color, backgroundColor, fontSize, fontFamily, width,
        height, and text/label (replaces the content of the first text
        element, or adds one at the surface center). Unknown keys and
        malformed values are ignored with a warning.
        """
        doc = self._document
        for key, value in override.items():
            try:
                if key == 'color':
                    doc.settings.color = Color.parse(value, doc.settings.color)
                elif key == 'backgroundColor':
                    doc.background_color = Color.parse(value, doc.background_color)
                elif key == 'fontSize':
                    doc.settings.font_size = clamp(value, *FONT_SIZE_RANGE,
                                                   default=doc.settings.font_size)
                elif key == 'fontFamily':
                    doc.settings.font_family = str(value)
                    self._refresh_fallback_flag()
                elif key in ('width', 'height'):
                    setattr(doc, key, int(clamp(value, 1, 20000, getattr(doc, key))))
                elif key in ('text', 'label'):
                    self._apply_label(str(value))
                else:
                    logger.warning("Ignoring unknown override key %r", key)
            except ValueError as e:
                logger.warning("Ignoring override %r=%r: %s", key, value, e)
        self._notify()

    def _apply_label(self, text: str) -> None:
        for element in self._document.elements:
            if isinstance(element, TextElement):
                element.content = text
                return
        self._document.elements.append(TextElement(
            x=self._document.width / 2,
            y=self._document.height / 2,
            content=text
        ))
