"""
Tests for hit testing.
"""

import os
import random
import unittest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from posterforge.core.document import Document
from posterforge.core.elements import BackgroundImage, ImageAsset, ImageLayer, LineElement
from posterforge.core.geometry import Point, to_local
from posterforge.graphics.fonts import FontRegistry, ensure_application
from posterforge.graphics.hit_test import hit_test
from posterforge.graphics.renderer import element_box


def setUpModule():
    ensure_application()


class TestHitTest(unittest.TestCase):

    def setUp(self):
        self.fonts = FontRegistry()

    def test_single_element_matches_local_box(self):
        """A lone element is hit exactly when the point is inside its local box."""
        rng = random.Random(3)
        for _ in range(50):
            line = LineElement(
                x=rng.uniform(100, 500), y=rng.uniform(100, 700),
                angle=rng.uniform(-180, 180),
                length=rng.uniform(1, 300), thickness=rng.uniform(1, 60)
            )
            document = Document(elements=[line])
            box = element_box(line, document, self.fonts)
            for _ in range(40):
                point = Point(line.x + rng.uniform(-160, 160), line.y + rng.uniform(-160, 160))
                expected = line.id if box.contains(to_local(point, line)) else None
                self.assertEqual(hit_test(point, document, self.fonts), expected)

    def test_rotated_line(self):
        line = LineElement(x=300, y=400, angle=90, length=200, thickness=10)
        document = Document(elements=[line])
        self.assertEqual(hit_test(Point(300, 490), document, self.fonts), line.id)
        self.assertIsNone(hit_test(Point(390, 400), document, self.fonts))

    def test_z_order_prefers_frontmost(self):
        a = LineElement(x=300, y=400, length=200, thickness=40)
        b = LineElement(x=350, y=400, length=200, thickness=40)
        document = Document(elements=[a, b])
        self.assertEqual(hit_test(Point(320, 400), document, self.fonts), b.id)
        self.assertEqual(hit_test(Point(210, 400), document, self.fonts), a.id)
        document.elements.reverse()
        self.assertEqual(hit_test(Point(320, 400), document, self.fonts), a.id)

    def test_miss_returns_none(self):
        document = Document(elements=[LineElement(x=100, y=100)])
        self.assertIsNone(hit_test(Point(500, 500), document, self.fonts))
        self.assertIsNone(hit_test(Point(10, 10), Document(), self.fonts))

    def test_pending_image_is_not_hittable(self):
        layer = ImageLayer(x=300, y=400, asset=ImageAsset(data=b"png"), width=100, height=100)
        document = Document(elements=[layer])
        self.assertIsNone(hit_test(Point(300, 400), document, self.fonts))
        layer.asset.image = object()
        self.assertEqual(hit_test(Point(300, 400), document, self.fonts), layer.id)

    def test_image_box_uses_scale(self):
        layer = ImageLayer(x=300, y=400, asset=ImageAsset(data=b"png"), width=100, height=100,
                           scale=0.5)
        layer.asset.image = object()
        document = Document(elements=[layer])
        self.assertEqual(hit_test(Point(324, 400), document, self.fonts), layer.id)
        self.assertIsNone(hit_test(Point(330, 400), document, self.fonts))

    def test_background_image_never_hit(self):
        asset = ImageAsset(data=b"png")
        asset.image = object()
        document = Document(background_image=BackgroundImage(asset))
        self.assertIsNone(hit_test(Point(300, 400), document, self.fonts))


if __name__ == '__main__':
    unittest.main()
