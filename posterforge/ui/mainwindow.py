"""
Main Application Window for PosterForge
"""

from PyQt6.QtWidgets import (
    QMainWindow, QToolBar, QStatusBar, QFileDialog, QMessageBox,
    QInputDialog, QColorDialog, QSpinBox, QLabel, QScrollArea
)
from PyQt6.QtCore import Qt, QSettings
from PyQt6.QtGui import QAction, QKeySequence, QColor
from pathlib import Path
from typing import Optional
import logging

from ..config import APPLICATION, ORGANIZATION, EditorSettings
from ..core.elements import Color, FONT_SIZE_RANGE
from ..editor import Editor
from ..io.asset_importer import FONT_EXTENSIONS, IMAGE_EXTENSIONS
from ..io.export import export_raster_file, export_vector_file
from ..io.project_io import FILE_EXTENSION
from .canvas import CompositionCanvas

logger = logging.getLogger(__name__)

PROJECT_FILTER = f"PosterForge Files (*{FILE_EXTENSION});;All Files (*)"


def _extension_filter(label: str, extensions) -> str:
    patterns = " ".join(f"*{ext}" for ext in sorted(extensions))
    return f"{label} ({patterns})"


class MainWindow(QMainWindow):
    """Main application window."""

    def __init__(self, settings: Optional[EditorSettings] = None):
        super().__init__()

        self.editor = Editor(settings)

        self.setWindowTitle("PosterForge - Untitled")
        self.setMinimumSize(900, 700)

        # Track current file path for save
        self._current_filepath: Optional[str] = None

        # Setup UI components
        self._create_actions()
        self._create_menus()
        self._create_toolbars()
        self._create_central_widget()
        self._create_status_bar()

        # Load settings
        self._load_settings()

    def _create_actions(self):
        """Create all menu/toolbar actions."""

        # File actions
        self.action_new = QAction("&New", self)
        self.action_new.setShortcut(QKeySequence.StandardKey.New)
        self.action_new.setStatusTip("Create a new design")
        self.action_new.triggered.connect(self._on_new)

        self.action_open = QAction("&Open...", self)
        self.action_open.setShortcut(QKeySequence.StandardKey.Open)
        self.action_open.triggered.connect(self._on_open)

        self.action_save = QAction("&Save", self)
        self.action_save.setShortcut(QKeySequence.StandardKey.Save)
        self.action_save.triggered.connect(self._on_save)

        self.action_save_as = QAction("Save &As...", self)
        self.action_save_as.setShortcut(QKeySequence.StandardKey.SaveAs)
        self.action_save_as.triggered.connect(self._on_save_as)

        self.action_export_png = QAction("Export &PNG...", self)
        self.action_export_png.setShortcut("Ctrl+E")
        self.action_export_png.triggered.connect(self._on_export_png)

        self.action_export_svg = QAction("Export S&VG...", self)
        self.action_export_svg.setShortcut("Ctrl+Shift+E")
        self.action_export_svg.triggered.connect(self._on_export_svg)

        self.action_exit = QAction("E&xit", self)
        self.action_exit.setShortcut(QKeySequence.StandardKey.Quit)
        self.action_exit.triggered.connect(self.close)

        # Insert actions
        self.action_add_text = QAction("Add &Text...", self)
        self.action_add_text.setShortcut("Ctrl+T")
        self.action_add_text.triggered.connect(self._on_add_text)

        self.action_add_line = QAction("Add &Line", self)
        self.action_add_line.setShortcut("Ctrl+L")
        self.action_add_line.triggered.connect(self._on_add_line)

        self.action_add_image = QAction("Add &Image...", self)
        self.action_add_image.setShortcut("Ctrl+I")
        self.action_add_image.triggered.connect(self._on_add_image)

        self.action_background_image = QAction("&Background Image...", self)
        self.action_background_image.triggered.connect(self._on_background_image)

        self.action_clear_background = QAction("&Clear Background Image", self)
        self.action_clear_background.triggered.connect(
            lambda: self.editor.store.set_background_image(None)
        )

        self.action_load_font = QAction("Load &Font...", self)
        self.action_load_font.triggered.connect(self._on_load_font)

        # Edit actions
        self.action_duplicate = QAction("D&uplicate", self)
        self.action_duplicate.setShortcut("Ctrl+D")
        self.action_duplicate.triggered.connect(lambda: self.canvas.duplicate_selected())

        self.action_delete = QAction("&Delete", self)
        self.action_delete.setShortcut(QKeySequence.StandardKey.Delete)
        self.action_delete.triggered.connect(lambda: self.canvas.delete_selected())

        self.action_raise = QAction("Bring to &Front", self)
        self.action_raise.setShortcut("Ctrl+]")
        self.action_raise.triggered.connect(lambda: self.canvas.raise_selected())

        self.action_lower = QAction("Send to &Back", self)
        self.action_lower.setShortcut("Ctrl+[")
        self.action_lower.triggered.connect(lambda: self.canvas.lower_selected())

        self.action_text_color = QAction("Text && Line &Color...", self)
        self.action_text_color.triggered.connect(self._on_text_color)

        self.action_background_color = QAction("Bac&kground Color...", self)
        self.action_background_color.triggered.connect(self._on_background_color)

    def _create_menus(self):
        """Create menu bar."""
        menubar = self.menuBar()

        file_menu = menubar.addMenu("&File")
        file_menu.addAction(self.action_new)
        file_menu.addAction(self.action_open)
        file_menu.addSeparator()
        file_menu.addAction(self.action_save)
        file_menu.addAction(self.action_save_as)
        file_menu.addSeparator()
        file_menu.addAction(self.action_export_png)
        file_menu.addAction(self.action_export_svg)
        file_menu.addSeparator()
        file_menu.addAction(self.action_exit)

        edit_menu = menubar.addMenu("&Edit")
        edit_menu.addAction(self.action_duplicate)
        edit_menu.addAction(self.action_delete)
        edit_menu.addSeparator()
        edit_menu.addAction(self.action_raise)
        edit_menu.addAction(self.action_lower)
        edit_menu.addSeparator()
        edit_menu.addAction(self.action_text_color)
        edit_menu.addAction(self.action_background_color)

        insert_menu = menubar.addMenu("&Insert")
        insert_menu.addAction(self.action_add_text)
        insert_menu.addAction(self.action_add_line)
        insert_menu.addAction(self.action_add_image)
        insert_menu.addSeparator()
        insert_menu.addAction(self.action_background_image)
        insert_menu.addAction(self.action_clear_background)
        insert_menu.addSeparator()
        insert_menu.addAction(self.action_load_font)

    def _create_toolbars(self):
        """Create toolbar with the shared text settings."""
        toolbar = QToolBar("Main", self)
        toolbar.setObjectName("MainToolbar")
        self.addToolBar(toolbar)
        toolbar.addAction(self.action_add_text)
        toolbar.addAction(self.action_add_line)
        toolbar.addAction(self.action_add_image)
        toolbar.addSeparator()

        toolbar.addWidget(QLabel(" Font size: "))
        self.font_size_spin = QSpinBox()
        self.font_size_spin.setRange(int(FONT_SIZE_RANGE[0]), int(FONT_SIZE_RANGE[1]))
        self.font_size_spin.setValue(int(self.editor.document.settings.font_size))
        self.font_size_spin.valueChanged.connect(
            lambda value: self.editor.store.set_text_settings(font_size=value)
        )
        toolbar.addWidget(self.font_size_spin)
        toolbar.addAction(self.action_text_color)

        # Keep the spin box in step with drag-resizing of text
        self.editor.add_view_listener(self._sync_font_size)

    def _create_central_widget(self):
        self.canvas = CompositionCanvas(self.editor)
        self.canvas.status_message.connect(lambda msg: self.status_bar.showMessage(msg, 5000))
        self.canvas.import_failed.connect(
            lambda msg: QMessageBox.warning(self, "Import Error", msg)
        )
        scroll = QScrollArea()
        scroll.setAlignment(Qt.AlignmentFlag.AlignCenter)
        scroll.setWidget(self.canvas)
        self.setCentralWidget(scroll)

    def _create_status_bar(self):
        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)
        self.status_bar.showMessage(
            "Drag to move. Hold X/Y to constrain, R rotate, S resize, L/T line length/thickness."
        )

    def _sync_font_size(self):
        value = int(round(self.editor.document.settings.font_size))
        if self.font_size_spin.value() != value:
            self.font_size_spin.blockSignals(True)
            self.font_size_spin.setValue(value)
            self.font_size_spin.blockSignals(False)

    def _load_settings(self):
        """Load window settings."""
        settings = QSettings(ORGANIZATION, APPLICATION)
        geometry = settings.value("geometry")
        if geometry:
            self.restoreGeometry(geometry)
        state = settings.value("windowState")
        if state:
            self.restoreState(state)

    def _save_settings(self):
        """Save window settings."""
        settings = QSettings(ORGANIZATION, APPLICATION)
        settings.setValue("geometry", self.saveGeometry())
        settings.setValue("windowState", self.saveState())

    def closeEvent(self, event):
        self._save_settings()
        event.accept()

    def _set_title(self):
        name = Path(self._current_filepath).name if self._current_filepath else "Untitled"
        self.setWindowTitle(f"PosterForge - {name}")

    # Action handlers
    def _on_new(self):
        """Create new document."""
        self.editor.new_document()
        self._current_filepath = None
        self._set_title()

    def _on_open(self):
        """Open existing file."""
        filepath, _ = QFileDialog.getOpenFileName(self, "Open Design", "", PROJECT_FILTER)
        if filepath:
            self.open_path(filepath)

    def open_path(self, filepath: str) -> bool:
        """Open a design file, reporting problems in message boxes."""
        result = self.editor.open_file(filepath)
        if not result.ok:
            QMessageBox.critical(
                self,
                "Open Failed",
                f"Failed to open file:\n{filepath}\n\n{result.error}"
            )
            self.status_bar.showMessage("Failed to open file", 3000)
            return False
        self._current_filepath = filepath
        self._set_title()
        self.canvas.schedule_decoding()
        for warning in result.warnings:
            QMessageBox.warning(self, "Missing Font", warning)
        self.status_bar.showMessage(f"Opened {Path(filepath).name}", 3000)
        return True

    def _on_save(self):
        """Save current document."""
        if not self._current_filepath:
            self._on_save_as()
            return
        self._write_project(self._current_filepath)

    def _on_save_as(self):
        """Save document with new name."""
        filepath, _ = QFileDialog.getSaveFileName(self, "Save As", "", PROJECT_FILTER)
        if not filepath:
            return
        if not filepath.endswith(FILE_EXTENSION):
            filepath += FILE_EXTENSION
        if self._write_project(filepath):
            self._current_filepath = filepath
            self._set_title()

    def _write_project(self, filepath: str) -> bool:
        if self.editor.save_file(filepath):
            self.status_bar.showMessage(f"Saved {Path(filepath).name}", 3000)
            return True
        QMessageBox.critical(self, "Save Failed", f"Failed to save file:\n{filepath}")
        self.status_bar.showMessage("Failed to save file", 3000)
        return False

    def _on_export_png(self):
        filepath, _ = QFileDialog.getSaveFileName(self, "Export PNG", "", "PNG Images (*.png)")
        if not filepath:
            return
        if not filepath.lower().endswith('.png'):
            filepath += '.png'
        if export_raster_file(self.editor.document, filepath, self.editor.renderer):
            self.status_bar.showMessage(f"Exported {Path(filepath).name}", 3000)
        else:
            QMessageBox.critical(self, "Export Failed", f"Failed to export:\n{filepath}")

    def _on_export_svg(self):
        filepath, _ = QFileDialog.getSaveFileName(self, "Export SVG", "", "SVG Files (*.svg)")
        if not filepath:
            return
        if not filepath.lower().endswith('.svg'):
            filepath += '.svg'
        outlines = False
        if self.editor.fonts.custom_fonts():
            reply = QMessageBox.question(
                self, "Export SVG", "Convert text to outlines?",
                QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No
            )
            outlines = reply == QMessageBox.StandardButton.Yes
        if export_vector_file(self.editor.document, filepath, self.editor.fonts, outlines):
            self.status_bar.showMessage(f"Exported {Path(filepath).name}", 3000)
        else:
            QMessageBox.critical(self, "Export Failed", f"Failed to export:\n{filepath}")

    def _on_add_text(self):
        text, ok = QInputDialog.getText(self, "Add Text", "Text:")
        if ok and text:
            self.editor.controller.selected_id = self.editor.add_text(text)

    def _on_add_line(self):
        self.editor.controller.selected_id = self.editor.add_line()

    def _import(self, title: str, extensions, as_background: bool = False):
        filepath, _ = QFileDialog.getOpenFileName(
            self, title, "", _extension_filter(title, extensions)
        )
        if not filepath:
            return
        result = self.editor.import_file(filepath, as_background=as_background)
        if not result.ok:
            QMessageBox.warning(self, "Import Error", result.message)
            return
        if result.element_id is not None:
            self.editor.controller.selected_id = result.element_id
        self.canvas.schedule_decoding()
        self.status_bar.showMessage(result.message, 3000)

    def _on_add_image(self):
        self._import("Images", IMAGE_EXTENSIONS)

    def _on_background_image(self):
        self._import("Images", IMAGE_EXTENSIONS, as_background=True)

    def _on_load_font(self):
        self._import("Fonts", FONT_EXTENSIONS)

    def _pick_color(self, current: Color, title: str) -> Optional[Color]:
        color = QColorDialog.getColor(QColor(*current.as_tuple()), self, title)
        if not color.isValid():
            return None
        return Color(color.red(), color.green(), color.blue())

    def _on_text_color(self):
        color = self._pick_color(self.editor.document.settings.color, "Text Color")
        if color is not None:
            self.editor.store.set_text_settings(color=color)

    def _on_background_color(self):
        color = self._pick_color(self.editor.document.background_color, "Background Color")
        if color is not None:
            self.editor.store.set_background_color(color)
