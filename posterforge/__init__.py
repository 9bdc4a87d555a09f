"""
PosterForge - Poster Composition Editor

Place text, lines and images on a fixed-size surface, drag them around
with keyboard-held modifiers, and export the result as PNG or SVG.
"""

__version__ = "0.1.0"
__author__ = "PosterForge Team"
