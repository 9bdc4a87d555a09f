"""
PosterForge UI Module

Contains the canvas widget and the main window.
"""

from .canvas import CompositionCanvas
from .mainwindow import MainWindow

__all__ = ['CompositionCanvas', 'MainWindow']
