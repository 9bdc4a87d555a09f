"""
Interaction Controller for PosterForge

Turns pointer and transient modifier-key input into element edits:
- Move, or move constrained to one axis
- Rotate
- Resize (global font size for text, scale for images)
- Adjust line length / thickness

Every edit is committed through the ElementStore, whose listeners re-render.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional
from uuid import UUID
import logging

from ..config import EditorSettings
from ..core.elements import (
    FONT_SIZE_RANGE, ImageLayer, LineElement, TextElement, clamp
)
from ..core.geometry import Point, normalize_angle
from ..core.store import ElementStore
from .fonts import FontRegistry
from .hit_test import hit_test

logger = logging.getLogger(__name__)


class DragKind(Enum):
    """Interpretation of pointer movement during a drag."""
    MOVE = "move"
    CONSTRAIN_X = "constrain_x"
    CONSTRAIN_Y = "constrain_y"
    ROTATE = "rotate"
    RESIZE = "resize"
    ADJUST_LENGTH = "adjust_length"
    ADJUST_THICKNESS = "adjust_thickness"


@dataclass
class DragState:
    """State of an in-progress drag. Holds the element id, never the element."""
    element_id: UUID
    kind: DragKind
    offset: Point
    last_pos: Point
    modifier: Optional[DragKind] = None


class InteractionController:
    """
    Idle / Dragging state machine.

    Pointer-down on an element starts a Move drag; a held modifier switches
    the drag kind (last pressed wins) and releasing it returns to Move.
    Pointer-up always ends the drag and keeps the last value.
    """

    def __init__(self, store: ElementStore,
                 settings: Optional[EditorSettings] = None,
                 fonts: Optional[FontRegistry] = None):
        self.store = store
        self.settings = settings or EditorSettings()
        self.fonts = fonts
        self._drag: Optional[DragState] = None
        self.selected_id: Optional[UUID] = None

    @property
    def is_dragging(self) -> bool:
        return self._drag is not None

    @property
    def drag_state(self) -> Optional[DragState]:
        return self._drag

    @property
    def drag_kind(self) -> Optional[DragKind]:
        return self._drag.kind if self._drag else None

    def pointer_down(self, point: Point) -> bool:
        """
        Start dragging the frontmost element under point.

        Returns:
            True if a drag started
        """
        if self._drag is not None:
            return True
        document = self.store.document
        element_id = hit_test(point, document, self.fonts)
        self.selected_id = element_id
        if element_id is None:
            return False
        element = self.store.get(element_id)
        self._drag = DragState(
            element_id=element_id,
            kind=DragKind.MOVE,
            offset=point - element.center,
            last_pos=point
        )
        logger.debug("Drag started on %s", element_id)
        return True

    def pointer_move(self, point: Point) -> None:
        if self._drag is None:
            return
        element = self.store.document.find(self._drag.element_id)
        if element is None:
            # The element went away mid-drag (removed or document replaced)
            self._drag = None
            return

        drag = self._drag
        dx = point.x - drag.last_pos.x
        dy = point.y - drag.last_pos.y
        drag.last_pos = point
        settings = self.settings
        props: Dict[str, Any] = {}

        if drag.kind == DragKind.MOVE:
            props = {'x': point.x - drag.offset.x, 'y': point.y - drag.offset.y}
        elif drag.kind == DragKind.CONSTRAIN_X:
            props = {'x': point.x - drag.offset.x}
        elif drag.kind == DragKind.CONSTRAIN_Y:
            props = {'y': point.y - drag.offset.y}
        elif drag.kind == DragKind.ROTATE:
            props = {'angle': normalize_angle(element.angle + dx * settings.rotate_sensitivity)}
        elif drag.kind == DragKind.RESIZE:
            if isinstance(element, TextElement):
                text = self.store.document.settings
                self.store.set_text_settings(font_size=clamp(
                    text.font_size - dy * settings.font_size_sensitivity,
                    *FONT_SIZE_RANGE
                ))
                return
            if isinstance(element, ImageLayer):
                props = {'scale': element.scale - dy * settings.resize_sensitivity}
        elif drag.kind == DragKind.ADJUST_LENGTH:
            if isinstance(element, LineElement):
                props = {'length': element.length + dx * settings.length_sensitivity}
        elif drag.kind == DragKind.ADJUST_THICKNESS:
            if isinstance(element, LineElement):
                props = {'thickness': element.thickness - dy * settings.thickness_sensitivity}

        self.store.update(element.id, props)

    def pointer_up(self, point: Optional[Point] = None) -> None:
        """End the drag unconditionally; the last value stays committed."""
        if self._drag is not None:
            logger.debug("Drag finished on %s (%s)", self._drag.element_id, self._drag.kind.value)
        self._drag = None

    def modifier_down(self, kind: DragKind) -> None:
        """Activate a drag kind while the modifier is held."""
        if self._drag is None:
            return
        if self._drag.kind != kind:
            self._rebase()
        self._drag.modifier = kind
        self._drag.kind = kind

    def modifier_up(self, kind: DragKind) -> None:
        """Releasing the active modifier reverts to a plain move."""
        if self._drag is None or self._drag.modifier != kind:
            return
        self._rebase()
        self._drag.modifier = None
        self._drag.kind = DragKind.MOVE

    def _rebase(self) -> None:
        """
        Re-anchor the pointer offset when switching modes so the element does
        not jump to where the pointer drifted during a non-move drag.
        """
        element = self.store.document.find(self._drag.element_id)
        if element is not None:
            self._drag.offset = self._drag.last_pos - element.center

    def cancel(self) -> None:
        """Drop drag state without further edits (used on document replacement)."""
        self._drag = None
        self.selected_id = None
