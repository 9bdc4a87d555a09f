"""
PosterForge Graphics Module

Contains the drawing and interaction components:
- Fonts: custom font registry and text metrics
- Renderer: draws a Document onto a surface
- Hit testing: topmost element under a point
- Interaction: the drag state machine
"""

from .fonts import FontRegistry, TextMetrics, ensure_application, get_font_registry
from .renderer import Renderer, cover_fit_rect, element_box, encode_png
from .hit_test import hit_test
from .interaction import InteractionController, DragKind, DragState

__all__ = [
    'FontRegistry',
    'TextMetrics',
    'ensure_application',
    'get_font_registry',
    'Renderer',
    'cover_fit_rect',
    'element_box',
    'encode_png',
    'hit_test',
    'InteractionController',
    'DragKind',
    'DragState',
]
