"""
Tests for saving, loading and upgrading design documents.
"""

import io
import json
import os
import shutil
import tempfile
import unittest
from uuid import UUID, uuid4

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PIL import Image

from posterforge.core.document import CURRENT_VERSION, Document, TextSettings
from posterforge.core.elements import (
    BackgroundImage, Color, ImageAsset, ImageLayer, LineElement, TextElement
)
from posterforge.core.errors import DocumentFormatError, UnsupportedVersionError
from posterforge.graphics.fonts import FontRegistry, ensure_application
from posterforge.io.assets import AssetDecoder, encode_data_url
from posterforge.io.project_io import (
    document_to_dict, load_document, load_project, save_project, upgrade
)


def setUpModule():
    ensure_application()


def png_bytes(width=6, height=3):
    buffer = io.BytesIO()
    Image.new('RGB', (width, height), (1, 2, 3)).save(buffer, format='PNG')
    return buffer.getvalue()


def sample_document():
    return Document(
        width=640,
        height=480,
        background_color=Color(10, 20, 30),
        background_image=BackgroundImage(ImageAsset(data=png_bytes(4, 4))),
        elements=[
            TextElement(x=100.5, y=200.25, angle=-45, content="Grand Opening"),
            LineElement(x=320, y=400, angle=90, length=250, thickness=3.5),
            ImageLayer(x=50, y=60, angle=180, asset=ImageAsset(data=png_bytes()),
                       width=6, height=3, scale=2.5),
        ],
        settings=TextSettings(font_size=72, font_family="Georgia", color=Color(200, 0, 0)),
    )


class TestRoundTrip(unittest.TestCase):
    """load(save(D)) == D."""

    def test_round_trip_through_json(self):
        document = sample_document()
        text = json.dumps(document_to_dict(document))
        self.assertEqual(load_document(text), document)

    def test_round_trip_preserves_order_and_ids(self):
        document = sample_document()
        loaded = load_document(document_to_dict(document))
        self.assertEqual([e.id for e in loaded.elements], [e.id for e in document.elements])
        self.assertEqual([type(e) for e in loaded.elements],
                         [TextElement, LineElement, ImageLayer])

    def test_empty_document(self):
        self.assertEqual(load_document(document_to_dict(Document())), Document())

    def test_saved_format(self):
        data = document_to_dict(sample_document())
        self.assertEqual(data['version'], CURRENT_VERSION)
        self.assertEqual(data['backgroundColor'], {'r': 10, 'g': 20, 'b': 30})
        self.assertEqual(data['settings']['fontFamily'], "Georgia")
        self.assertTrue(data['backgroundImage']['src'].startswith("data:image/png;base64,"))
        self.assertEqual([e['type'] for e in data['elements']], ["text", "line", "image"])

    def test_file_round_trip(self):
        tmpdir = tempfile.mkdtemp()
        try:
            path = os.path.join(tmpdir, "poster.pforge")
            document = sample_document()
            self.assertTrue(save_project(document, path))
            result = load_project(path)
            self.assertTrue(result.ok)
            self.assertEqual(result.document, document)
            self.assertEqual(result.warnings, [])
        finally:
            shutil.rmtree(tmpdir, ignore_errors=True)


class TestUpgrades(unittest.TestCase):
    """Test loading documents written by older versions."""

    V1 = {
        'width': 600,
        'height': 800,
        'backgroundColor': {'r': 255, 'g': 255, 'b': 0},
        'color': {'r': 0, 'g': 0, 'b': 255},
        'fontSize': 30,
        'elements': [
            {'type': 'text', 'x': 300, 'y': 100, 'angle': 10, 'content': 'Hello'},
            {'type': 'line', 'x': 300, 'y': 200, 'angle': 0, 'length': 120, 'thickness': 2},
        ],
    }

    def test_v1_without_version(self):
        document = load_document(dict(self.V1))
        self.assertEqual(document.version, CURRENT_VERSION)
        self.assertEqual(document.settings.font_size, 30)
        self.assertEqual(document.settings.color, Color(0, 0, 255))
        self.assertEqual(document.settings.font_family, "Arial")
        self.assertEqual(document.background_color, Color(255, 255, 0))
        self.assertIsNone(document.background_image)
        self.assertEqual(document.elements[0].content, 'Hello')
        self.assertEqual(document.elements[0].angle, 10)
        self.assertEqual(document.elements[1].length, 120)
        self.assertIsInstance(document.elements[0].id, UUID)

    def test_upgrade_chain_is_stepwise(self):
        raw = upgrade(dict(self.V1, version=1))
        self.assertEqual(raw['version'], CURRENT_VERSION)
        self.assertNotIn('fontSize', raw)
        self.assertEqual(raw['settings']['fontSize'], 30)
        self.assertIsNone(raw['backgroundImage'])
        self.assertTrue(all('id' in e for e in raw['elements']))

    def test_v2_image_gets_default_scale(self):
        raw = {
            'version': 2,
            'width': 300,
            'height': 300,
            'settings': {'fontSize': 20, 'fontFamily': 'Courier', 'color': {'r': 0, 'g': 0, 'b': 0}},
            'elements': [{
                'type': 'image', 'x': 10, 'y': 20, 'angle': 0,
                'src': encode_data_url(png_bytes(6, 3), "image/png"),
                'width': 6, 'height': 3,
            }],
        }
        document = load_document(raw)
        layer = document.elements[0]
        self.assertEqual(layer.scale, 1.0)
        self.assertEqual((layer.width, layer.height), (6, 3))
        self.assertEqual(document.settings.font_family, 'Courier')

    def test_version_as_string(self):
        self.assertEqual(load_document(dict(self.V1, version="1")).settings.font_size, 30)

    def test_newer_version_rejected(self):
        with self.assertRaises(UnsupportedVersionError):
            load_document(dict(self.V1, version=CURRENT_VERSION + 1))

    def test_fractional_version_rejected(self):
        for version in (3.7, "2.5", 1.5):
            with self.assertRaises(UnsupportedVersionError, msg=repr(version)):
                load_document(dict(self.V1, version=version))

    def test_integral_float_version_accepted(self):
        document = load_document(dict(self.V1, version=1.0))
        self.assertEqual(document.settings.font_size, 30)

    def test_unsupported_is_a_format_error(self):
        self.assertTrue(issubclass(UnsupportedVersionError, DocumentFormatError))


class TestInvalidDocuments(unittest.TestCase):
    """Structurally invalid input fails before a Document exists."""

    def valid(self, **overrides):
        raw = document_to_dict(Document())
        raw.update(overrides)
        return raw

    def test_invalid_structures(self):
        cases = [
            "{not json",
            [1, 2, 3],
            self.valid(width=-5),
            self.valid(height="tall"),
            self.valid(width=True),
            self.valid(settings="big"),
            self.valid(elements={}),
            self.valid(elements=[{'type': 'line', 'y': 3}]),
            self.valid(elements=[{'x': 1, 'y': 3}]),
            self.valid(elements=["line"]),
            self.valid(elements=[{'type': 'image', 'x': 1, 'y': 1, 'src': 'http://x/y.png'}]),
            self.valid(backgroundImage="blue"),
            self.valid(version=True),
        ]
        for raw in cases:
            with self.assertRaises(DocumentFormatError, msg=repr(raw)):
                load_document(raw)

    def test_non_finite_numbers_rejected(self):
        cases = [
            '{"version": 1e400, "width": 600, "height": 800, "settings": {}}',
            '{"version": 3, "width": 1e400, "height": 800, "settings": {}}',
            self.valid(version=float('nan')),
            self.valid(height=float('-inf')),
        ]
        for raw in cases:
            with self.assertRaises(DocumentFormatError, msg=repr(raw)):
                load_document(raw)

    def test_non_finite_image_size_uses_embedded_size(self):
        raw = self.valid(elements=[{
            'type': 'image', 'x': 1, 'y': 1,
            'src': encode_data_url(png_bytes(6, 3), "image/png"),
            'width': 1, 'height': 3,
        }])
        text = json.dumps(raw).replace('"width": 1,', '"width": 1e400,')
        layer = load_document(text).elements[0]
        self.assertEqual((layer.width, layer.height), (6, 3))

    def test_null_content_loads_empty(self):
        raw = self.valid(elements=[
            {'type': 'text', 'x': 1, 'y': 1, 'content': None},
            {'type': 'text', 'x': 2, 'y': 2, 'content': 42},
        ])
        contents = [e.content for e in load_document(raw).elements]
        self.assertEqual(contents, ['', '42'])

    def test_unknown_element_type_skipped(self):
        raw = self.valid(elements=[
            {'type': 'sparkle', 'x': 1, 'y': 1},
            {'type': 'line', 'x': 5, 'y': 5},
        ])
        with self.assertLogs('posterforge.io.project_io', level='WARNING'):
            document = load_document(raw)
        self.assertEqual(len(document.elements), 1)
        self.assertIsInstance(document.elements[0], LineElement)

    def test_out_of_range_fields_are_clamped(self):
        raw = self.valid(elements=[
            {'type': 'line', 'x': 5, 'y': 5, 'angle': 540, 'length': -3, 'thickness': 'wide'},
        ])
        line = load_document(raw).elements[0]
        self.assertEqual(line.angle, 180)
        self.assertEqual(line.length, 1.0)
        self.assertEqual(line.thickness, 1.0)

    def test_duplicate_and_invalid_ids_replaced(self):
        same = str(uuid4())
        raw = self.valid(elements=[
            {'type': 'line', 'x': 1, 'y': 1, 'id': same},
            {'type': 'line', 'x': 2, 'y': 2, 'id': same},
            {'type': 'line', 'x': 3, 'y': 3, 'id': 'not-a-uuid'},
        ])
        ids = [e.id for e in load_document(raw).elements]
        self.assertEqual(ids[0], UUID(same))
        self.assertEqual(len(set(ids)), 3)

    def test_missing_file(self):
        result = load_project("/nonexistent/design.pforge")
        self.assertFalse(result.ok)
        self.assertIsNotNone(result.error)


class TestLoadSideEffects(unittest.TestCase):

    def test_missing_custom_font_flags_fallback(self):
        raw = document_to_dict(Document(settings=TextSettings(font_family="custom:Brand")))
        document = load_document(raw, fonts=FontRegistry())
        self.assertTrue(document.uses_fallback_font)
        self.assertEqual(document.settings.font_family, "custom:Brand")

    def test_builtin_font_not_flagged(self):
        document = load_document(document_to_dict(Document()), fonts=FontRegistry())
        self.assertFalse(document.uses_fallback_font)

    def test_fallback_reported_as_warning(self):
        tmpdir = tempfile.mkdtemp()
        try:
            path = os.path.join(tmpdir, "font.pforge")
            save_project(Document(settings=TextSettings(font_family="custom:Brand")), path)
            result = load_project(path, fonts=FontRegistry())
            self.assertTrue(result.ok)
            self.assertEqual(len(result.warnings), 1)
            self.assertIn("Brand", result.warnings[0])
        finally:
            shutil.rmtree(tmpdir, ignore_errors=True)

    def test_images_queued_for_decoding(self):
        decoder = AssetDecoder()
        document = load_document(document_to_dict(sample_document()), decoder=decoder)
        self.assertEqual(decoder.pending, 2)
        self.assertTrue(document.pending_assets())
        decoder.process()
        self.assertFalse(document.pending_assets())


if __name__ == '__main__':
    unittest.main()
