"""
PosterForge Document Model

The Document class is the root container for all design data.
"""

from dataclasses import dataclass, field
from typing import List, Optional
from uuid import UUID

from .elements import (
    BLACK, WHITE, FONT_SIZE_RANGE, BackgroundImage, Color, Element, clamp
)


CURRENT_VERSION = 3
CUSTOM_FONT_PREFIX = "custom:"
DEFAULT_FONT_FAMILY = "Arial"


def is_custom_family(family: str) -> bool:
    """True when the family selector names a user-supplied font."""
    return family.startswith(CUSTOM_FONT_PREFIX)


def custom_font_name(family: str) -> str:
    return family[len(CUSTOM_FONT_PREFIX):] if is_custom_family(family) else family


@dataclass
class TextSettings:
    """Shared text/line settings; not per-element."""
    font_size: float = 48.0
    font_family: str = DEFAULT_FONT_FAMILY
    color: Color = BLACK

    def __post_init__(self):
        self.font_size = clamp(self.font_size, *FONT_SIZE_RANGE, default=48.0)


@dataclass
class Document:
    """
    The root document containing all design data.

    ``elements`` is ordered back to front; list order is the z-order.
    ``uses_fallback_font`` is runtime state set by the loader when a custom
    font referenced by the document is not registered.
    """
    width: int = 600
    height: int = 800
    version: int = CURRENT_VERSION
    background_color: Color = WHITE
    background_image: Optional[BackgroundImage] = None
    elements: List[Element] = field(default_factory=list)
    settings: TextSettings = field(default_factory=TextSettings)
    uses_fallback_font: bool = field(default=False, compare=False)

    def __post_init__(self):
        self.width = int(max(1, clamp(self.width, 1, 20000, 600)))
        self.height = int(max(1, clamp(self.height, 1, 20000, 800)))

    def find(self, element_id: UUID) -> Optional[Element]:
        """Find an element by id, or None."""
        for element in self.elements:
            if element.id == element_id:
                return element
        return None

    def pending_assets(self) -> bool:
        """True while any image in the document is still decoding."""
        if self.background_image is not None and not self.background_image.ready:
            return True
        return any(not element.ready for element in self.elements)
