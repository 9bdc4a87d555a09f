"""
Hit testing for PosterForge

Finds the topmost element under a surface point by testing the point in
each element's local (unrotated, centered) space.
"""

from typing import Optional
from uuid import UUID

from ..core.document import Document
from ..core.geometry import Point, to_local
from .fonts import FontRegistry
from .renderer import element_box


def hit_test(point: Point, document: Document,
             fonts: Optional[FontRegistry] = None) -> Optional[UUID]:
    """
    Return the id of the frontmost element containing point, or None.

    Elements are checked in reverse z-order. Elements still waiting on an
    asset decode are not hittable, and the background image never is.
    """
    for element in reversed(document.elements):
        if not element.ready:
            continue
        box = element_box(element, document, fonts)
        if box.contains(to_local(point, element)):
            return element.id
    return None
