"""
PosterForge configuration.

EditorSettings carries the tunables used when creating documents and when
translating pointer movement into edits. Values can be overridden from a
QSettings store.
"""

from PyQt6.QtCore import QSettings
from dataclasses import dataclass, fields
from typing import Optional
import logging
import os

from .core.document import TextSettings
from .core.elements import BLACK, WHITE, Color

logger = logging.getLogger(__name__)

ORGANIZATION = "PosterForge"
APPLICATION = "PosterForge"
LOG_LEVEL_ENV = "POSTERFORGE_LOG_LEVEL"


@dataclass
class EditorSettings:
    """Editor defaults and drag sensitivities."""
    surface_width: int = 600
    surface_height: int = 800
    background_color: Color = WHITE
    text_color: Color = BLACK
    font_size: float = 48.0
    font_family: str = "Arial"
    fallback_font_family: str = "Sans Serif"

    rotate_sensitivity: float = 0.5       # degrees per horizontal pixel
    resize_sensitivity: float = 0.01      # scale per vertical pixel
    font_size_sensitivity: float = 0.25   # font pixels per vertical pixel
    length_sensitivity: float = 1.0       # line pixels per horizontal pixel
    thickness_sensitivity: float = 0.1    # line pixels per vertical pixel
    duplicate_offset: float = 20.0

    log_level: str = "INFO"

    def text_settings(self) -> TextSettings:
        return TextSettings(
            font_size=self.font_size,
            font_family=self.font_family,
            color=self.text_color
        )


def _convert(value, current):
    if isinstance(current, Color):
        return Color.parse(value)
    if isinstance(current, bool):
        return str(value).lower() in ('1', 'true', 'yes')
    return type(current)(value)


def load_settings(qsettings: Optional[QSettings] = None) -> EditorSettings:
    """
    Build EditorSettings from defaults plus any stored overrides.

    Stored values that fail to convert are skipped with a warning.
    """
    settings = EditorSettings()
    store = qsettings if qsettings is not None else QSettings(ORGANIZATION, APPLICATION)
    store.beginGroup("editor")
    try:
        for f in fields(EditorSettings):
            if not store.contains(f.name):
                continue
            raw = store.value(f.name)
            try:
                setattr(settings, f.name, _convert(raw, getattr(settings, f.name)))
            except (TypeError, ValueError) as e:
                logger.warning(f"Ignoring stored setting {f.name}={raw!r}: {e}")
    finally:
        store.endGroup()

    env_level = os.environ.get(LOG_LEVEL_ENV)
    if env_level:
        settings.log_level = env_level.upper()
    return settings


def save_settings(settings: EditorSettings, qsettings: Optional[QSettings] = None) -> None:
    """Persist EditorSettings to a QSettings store."""
    store = qsettings if qsettings is not None else QSettings(ORGANIZATION, APPLICATION)
    store.beginGroup("editor")
    try:
        for f in fields(EditorSettings):
            value = getattr(settings, f.name)
            store.setValue(f.name, value.to_hex() if isinstance(value, Color) else value)
    finally:
        store.endGroup()
    store.sync()


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger once for the application."""
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )
