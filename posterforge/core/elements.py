"""
PosterForge Core Elements

Defines the drawable element kinds: Text, Line, ImageLayer and the
document-level BackgroundImage. Kind-specific behavior elsewhere dispatches
on the concrete class; ElementKind is the serialized tag.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, Optional, Tuple
from uuid import UUID, uuid4
import math

from .geometry import Point, normalize_angle


# Valid ranges for clamped numeric fields
FONT_SIZE_RANGE = (6.0, 400.0)
SCALE_RANGE = (0.1, 5.0)
LENGTH_RANGE = (1.0, 5000.0)
THICKNESS_RANGE = (1.0, 500.0)


def clamp(value: Any, low: float, high: float, default: Optional[float] = None) -> float:
    """
    Coerce value to a float inside [low, high].

    Malformed input (None, non-numeric strings, NaN) yields default, or low
    when no default is given. Never raises.
    """
    fallback = low if default is None else default
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return fallback
    if math.isnan(number):
        return fallback
    return max(low, min(high, number))


def coerce_float(value: Any, default: float = 0.0) -> float:
    """Coerce to a finite float, falling back to default."""
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def coerce_text(value: Any) -> str:
    """Text content is always a str; None becomes empty."""
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


class ElementKind(Enum):
    """Serialized element type tags."""
    TEXT = "text"
    LINE = "line"
    IMAGE = "image"
    BACKGROUND = "background"


@dataclass(frozen=True)
class Color:
    """An RGB color with 0-255 channels."""
    r: int = 0
    g: int = 0
    b: int = 0

    def __post_init__(self):
        for name in ('r', 'g', 'b'):
            object.__setattr__(self, name, int(clamp(getattr(self, name), 0, 255)))

    @classmethod
    def from_hex(cls, value: str) -> 'Color':
        text = value.strip().lstrip('#')
        if len(text) == 3:
            text = ''.join(ch * 2 for ch in text)
        if len(text) != 6:
            raise ValueError(f"Invalid color: {value!r}")
        return cls(int(text[0:2], 16), int(text[2:4], 16), int(text[4:6], 16))

    @classmethod
    def from_mapping(cls, data: Dict[str, Any], default: 'Color' = None) -> 'Color':
        base = default or cls()
        return cls(
            int(clamp(data.get('r', base.r), 0, 255, base.r)),
            int(clamp(data.get('g', base.g), 0, 255, base.g)),
            int(clamp(data.get('b', base.b), 0, 255, base.b)),
        )

    @classmethod
    def parse(cls, value: Any, default: 'Color' = None) -> 'Color':
        """Accept a Color, '#rrggbb' string, {r,g,b} mapping or 3-sequence."""
        if isinstance(value, Color):
            return value
        if isinstance(value, str):
            return cls.from_hex(value)
        if isinstance(value, dict):
            return cls.from_mapping(value, default)
        if isinstance(value, (list, tuple)) and len(value) == 3:
            return cls(*value)
        raise ValueError(f"Invalid color: {value!r}")

    def to_hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"

    def to_dict(self) -> Dict[str, int]:
        return {'r': self.r, 'g': self.g, 'b': self.b}

    def as_tuple(self) -> Tuple[int, int, int]:
        return self.r, self.g, self.b


WHITE = Color(255, 255, 255)
BLACK = Color(0, 0, 0)


@dataclass
class ImageAsset:
    """
    An encoded image plus its decoded form.

    ``data`` is the self-describing encoded blob (PNG, JPEG, ...) that is
    persisted. ``image`` is the decoded QImage; it stays None until the
    AssetDecoder finishes, and the owning element is inert until then.
    """
    data: bytes
    mime: str = "image/png"
    image: Any = field(default=None, compare=False, repr=False)
    failed: bool = field(default=False, compare=False)

    @property
    def ready(self) -> bool:
        return self.image is not None


@dataclass
class Element:
    """
    Base for positioned elements.

    (x, y) is the element center in surface pixels; angle is in degrees and
    is always stored normalized to (-180, 180].
    """
    x: float = 0.0
    y: float = 0.0
    angle: float = 0.0
    id: UUID = field(default_factory=uuid4)

    kind = None
    _bounds = {}

    def __post_init__(self):
        self.x = coerce_float(self.x)
        self.y = coerce_float(self.y)
        self.angle = normalize_angle(coerce_float(self.angle))
        for name, (low, high) in self._bounds.items():
            setattr(self, name, clamp(getattr(self, name), low, high))

    @property
    def center(self) -> Point:
        return Point(self.x, self.y)

    @property
    def ready(self) -> bool:
        """False while an asset this element draws is still decoding."""
        return True

    def field_names(self):
        return [f.name for f in fields(self)]

    def set_field(self, name: str, value: Any) -> None:
        """Assign a field, clamping numeric values into their valid range."""
        if name == 'id' or name not in self.field_names():
            raise AttributeError(f"{type(self).__name__} has no editable field '{name}'")
        if name == 'angle':
            value = normalize_angle(coerce_float(value, self.angle))
        elif name in ('x', 'y'):
            value = coerce_float(value, getattr(self, name))
        elif name in self._bounds:
            low, high = self._bounds[name]
            value = clamp(value, low, high, getattr(self, name))
        elif name == 'content':
            value = coerce_text(value)
        setattr(self, name, value)


@dataclass
class TextElement(Element):
    """Text content; font size, family and color come from the document."""
    content: str = ""

    kind = ElementKind.TEXT

    def __post_init__(self):
        super().__post_init__()
        self.content = coerce_text(self.content)


@dataclass
class LineElement(Element):
    """A straight line drawn as a centered length x thickness bar."""
    length: float = 100.0
    thickness: float = 4.0

    kind = ElementKind.LINE
    _bounds = {'length': LENGTH_RANGE, 'thickness': THICKNESS_RANGE}


@dataclass
class ImageLayer(Element):
    """A raster image drawn centered, scaled by ``scale``."""
    asset: Optional[ImageAsset] = None
    width: int = 0
    height: int = 0
    scale: float = 1.0

    kind = ElementKind.IMAGE
    _bounds = {'scale': SCALE_RANGE}

    @property
    def ready(self) -> bool:
        return self.asset is not None and self.asset.ready

    @property
    def display_size(self) -> Tuple[float, float]:
        return self.width * self.scale, self.height * self.scale


@dataclass
class BackgroundImage:
    """Full-surface background image, always drawn cover-fit."""
    asset: ImageAsset

    kind = ElementKind.BACKGROUND

    @property
    def ready(self) -> bool:
        return self.asset.ready


ELEMENT_CLASSES = {
    ElementKind.TEXT: TextElement,
    ElementKind.LINE: LineElement,
    ElementKind.IMAGE: ImageLayer,
}
