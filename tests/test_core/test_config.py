"""
Tests for editor settings persistence.
"""

import os
import shutil
import tempfile
import unittest
from unittest import mock

from PyQt6.QtCore import QSettings

from posterforge.config import (
    LOG_LEVEL_ENV, EditorSettings, load_settings, save_settings
)
from posterforge.core.elements import Color


class TestEditorSettings(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.qsettings = QSettings(os.path.join(self.tmpdir, "posterforge.ini"),
                                   QSettings.Format.IniFormat)

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_defaults(self):
        settings = EditorSettings()
        self.assertEqual(settings.rotate_sensitivity, 0.5)
        self.assertEqual(settings.duplicate_offset, 20.0)
        text = settings.text_settings()
        self.assertEqual(text.font_size, 48)
        self.assertEqual(text.color, Color(0, 0, 0))

    @mock.patch.dict(os.environ, {}, clear=False)
    def test_save_and_load(self):
        os.environ.pop(LOG_LEVEL_ENV, None)
        original = EditorSettings(surface_width=1080, rotate_sensitivity=1.5,
                                  background_color=Color(1, 2, 3), font_family="Georgia",
                                  log_level="DEBUG")
        save_settings(original, self.qsettings)
        self.assertEqual(load_settings(self.qsettings), original)

    @mock.patch.dict(os.environ, {}, clear=False)
    def test_bad_stored_value_skipped(self):
        os.environ.pop(LOG_LEVEL_ENV, None)
        self.qsettings.setValue("editor/rotate_sensitivity", "fast")
        self.qsettings.setValue("editor/length_sensitivity", "2.5")
        with self.assertLogs('posterforge.config', level='WARNING'):
            settings = load_settings(self.qsettings)
        self.assertEqual(settings.rotate_sensitivity, 0.5)
        self.assertEqual(settings.length_sensitivity, 2.5)

    @mock.patch.dict(os.environ, {LOG_LEVEL_ENV: "debug"})
    def test_environment_overrides_log_level(self):
        self.assertEqual(load_settings(self.qsettings).log_level, "DEBUG")


if __name__ == '__main__':
    unittest.main()
