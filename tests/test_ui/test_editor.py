"""
Tests for the Editor facade.
"""

import io
import json
import os
import unittest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PIL import Image

from posterforge.config import EditorSettings
from posterforge.core.document import CURRENT_VERSION, Document
from posterforge.core.elements import Color, ImageAsset, ImageLayer
from posterforge.core.geometry import Point
from posterforge.editor import Editor
from posterforge.graphics.fonts import ensure_application
from posterforge.graphics.hit_test import hit_test
from posterforge.io.project_io import document_to_dict


def setUpModule():
    ensure_application()


def png_bytes(width=40, height=40):
    buffer = io.BytesIO()
    Image.new('RGB', (width, height), (255, 0, 0)).save(buffer, format='PNG')
    return buffer.getvalue()


class TestEditor(unittest.TestCase):

    def setUp(self):
        self.editor = Editor(EditorSettings(surface_width=400, surface_height=300,
                                            background_color=Color(0, 0, 0)))
        self.views = 0
        self.editor.add_view_listener(self._on_view)

    def _on_view(self):
        self.views += 1

    def test_blank_document_from_settings(self):
        document = self.editor.document
        self.assertEqual((document.width, document.height), (400, 300))
        self.assertEqual(document.background_color, Color(0, 0, 0))
        surface = self.editor.surface()
        self.assertEqual((surface.width(), surface.height()), (400, 300))

    def test_mutations_re_render(self):
        self.editor.add_line()
        self.assertEqual(self.views, 1)
        self.editor.apply_override({'color': '#00ff00'})
        self.assertEqual(self.views, 2)

    def test_add_helpers_default_to_center(self):
        line = self.editor.store.get(self.editor.add_line(length=50))
        self.assertEqual((line.x, line.y, line.length), (200, 150, 50))
        text = self.editor.store.get(self.editor.add_text("Hi", x=10))
        self.assertEqual((text.x, text.y, text.content), (10, 150, "Hi"))

    def test_raster_bytes(self):
        with Image.open(io.BytesIO(self.editor.raster_bytes())) as img:
            self.assertEqual(img.size, (400, 300))

    def test_vector_markup(self):
        self.assertIn('width="400"', self.editor.vector_markup())

    def test_unsupported_version_leaves_document_unchanged(self):
        self.editor.add_line()
        before = self.editor.document
        snapshot = document_to_dict(before)
        raw = dict(snapshot, version=CURRENT_VERSION + 1)
        result = self.editor.open_document(raw)
        self.assertFalse(result.ok)
        self.assertIn("Unsupported", result.error)
        self.assertIs(self.editor.document, before)
        self.assertEqual(document_to_dict(self.editor.document), snapshot)

    def test_invalid_document_leaves_document_unchanged(self):
        before = self.editor.document
        result = self.editor.open_document('{"width": 0}')
        self.assertFalse(result.ok)
        self.assertIs(self.editor.document, before)

    def test_non_finite_size_leaves_document_unchanged(self):
        before = self.editor.document
        raw = json.dumps(document_to_dict(Document())).replace('"width": 600', '"width": 1e400')
        result = self.editor.open_document(raw)
        self.assertFalse(result.ok)
        self.assertIsNotNone(result.error)
        self.assertIs(self.editor.document, before)

    def test_open_document_decodes_images_later(self):
        layer = ImageLayer(x=100, y=100, asset=ImageAsset(data=png_bytes()), width=40, height=40)
        raw = json.dumps(document_to_dict(Document(elements=[layer])))
        result = self.editor.open_document(raw)
        self.assertTrue(result.ok)
        document = self.editor.document
        self.assertIsNone(hit_test(Point(100, 100), document, self.editor.fonts))

        views = self.views
        self.assertEqual(self.editor.process_assets(), 1)
        self.assertGreater(self.views, views)
        self.assertEqual(hit_test(Point(100, 100), document, self.editor.fonts), layer.id)
        color = self.editor.surface().pixelColor(100, 100)
        self.assertEqual((color.red(), color.green(), color.blue()), (255, 0, 0))

    def test_open_document_warns_about_missing_font(self):
        raw = document_to_dict(Document())
        raw['settings']['fontFamily'] = 'custom:Brand'
        result = self.editor.open_document(raw)
        self.assertTrue(result.ok)
        self.assertTrue(self.editor.document.uses_fallback_font)
        self.assertEqual(len(result.warnings), 1)

    def test_font_change_tracks_fallback(self):
        self.editor.store.set_text_settings(font_family="custom:Brand")
        self.assertTrue(self.editor.document.uses_fallback_font)
        self.editor.apply_override({'fontFamily': 'Georgia'})
        self.assertFalse(self.editor.document.uses_fallback_font)

    def test_open_cancels_drag(self):
        self.editor.add_line()
        self.editor.controller.pointer_down(Point(200, 150))
        self.assertTrue(self.editor.controller.is_dragging)
        self.editor.new_document()
        self.assertFalse(self.editor.controller.is_dragging)
        self.assertEqual(self.editor.document.elements, [])


if __name__ == '__main__':
    unittest.main()
