"""
PosterForge Geometry

Conversions between surface space (canvas pixels, origin top-left, y down)
and an element's local space (origin at the element center, rotation undone).
"""

from dataclasses import dataclass
import math


@dataclass(frozen=True)
class Point:
    """A 2D point."""
    x: float
    y: float

    def __add__(self, other: 'Point') -> 'Point':
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: 'Point') -> 'Point':
        return Point(self.x - other.x, self.y - other.y)

    def rotate(self, degrees: float) -> 'Point':
        """Rotate around the origin by an angle in degrees (clockwise on screen)."""
        rad = math.radians(degrees)
        cos_a = math.cos(rad)
        sin_a = math.sin(rad)
        return Point(
            self.x * cos_a - self.y * sin_a,
            self.x * sin_a + self.y * cos_a
        )


@dataclass(frozen=True)
class LocalBox:
    """An axis-aligned box in local space, centered on the origin."""
    width: float
    height: float

    def contains(self, point: Point) -> bool:
        half_w = self.width / 2
        half_h = self.height / 2
        return (-half_w <= point.x <= half_w and
                -half_h <= point.y <= half_h)

    def corners(self):
        half_w = self.width / 2
        half_h = self.height / 2
        return [
            Point(-half_w, -half_h),
            Point(half_w, -half_h),
            Point(half_w, half_h),
            Point(-half_w, half_h),
        ]


def normalize_angle(degrees: float) -> float:
    """Normalize an angle into the half-open range (-180, 180]."""
    angle = math.fmod(degrees, 360.0)
    if angle <= -180.0:
        angle += 360.0
    elif angle > 180.0:
        angle -= 360.0
    return angle


def to_local(point: Point, element) -> Point:
    """Map a surface point into the element's local space."""
    return (point - element.center).rotate(-element.angle)


def to_surface(local_point: Point, element) -> Point:
    """Map a local point of the element back into surface space."""
    return local_point.rotate(element.angle) + element.center
