"""
PosterForge Canvas - the drawing and editing surface.

Paints the editor's rendered surface and forwards pointer and key events to
the InteractionController. Held keys select the drag kind:
X/Y constrain, R rotate, S resize, L line length, T line thickness.
"""

from PyQt6.QtWidgets import QWidget
from PyQt6.QtCore import Qt, QSize, QTimer, pyqtSignal
from PyQt6.QtGui import (
    QDragEnterEvent, QDropEvent, QKeyEvent, QMouseEvent, QPainter, QPaintEvent
)
from typing import Dict, Optional

from ..core.errors import ElementNotFoundError
from ..core.geometry import Point
from ..editor import Editor
from ..graphics.interaction import DragKind

KEY_BINDINGS: Dict[int, DragKind] = {
    Qt.Key.Key_X.value: DragKind.CONSTRAIN_X,
    Qt.Key.Key_Y.value: DragKind.CONSTRAIN_Y,
    Qt.Key.Key_R.value: DragKind.ROTATE,
    Qt.Key.Key_S.value: DragKind.RESIZE,
    Qt.Key.Key_L.value: DragKind.ADJUST_LENGTH,
    Qt.Key.Key_T.value: DragKind.ADJUST_THICKNESS,
}


class CompositionCanvas(QWidget):
    """
    Widget showing the composition at 1:1 scale.

    Widget coordinates are surface coordinates, so pointer positions are
    passed to the controller unchanged.
    """

    # Signals
    selection_changed = pyqtSignal(object)  # element id or None
    status_message = pyqtSignal(str)
    import_failed = pyqtSignal(str)

    def __init__(self, editor: Editor, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.editor = editor
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setAcceptDrops(True)
        self.editor.add_view_listener(self._on_rendered)

        self._decode_timer = QTimer(self)
        self._decode_timer.setSingleShot(True)
        self._decode_timer.setInterval(0)
        self._decode_timer.timeout.connect(self._process_assets)

        self._sync_size()

    def sizeHint(self) -> QSize:
        document = self.editor.document
        return QSize(document.width, document.height)

    def _sync_size(self):
        self.setFixedSize(self.sizeHint())

    def _on_rendered(self):
        if self.size() != self.sizeHint():
            self._sync_size()
        self.update()

    # Asset decoding

    def schedule_decoding(self):
        """Decode pending images one per event-loop turn."""
        if self.editor.decoder.pending and not self._decode_timer.isActive():
            self._decode_timer.start()

    def _process_assets(self):
        self.editor.process_assets(limit=1)
        for _, message in self.editor.decoder.failures:
            self.status_message.emit(f"Image could not be decoded: {message}")
        self.editor.decoder.failures.clear()
        self.schedule_decoding()

    # Painting

    def paintEvent(self, event: QPaintEvent):
        painter = QPainter(self)
        painter.drawImage(0, 0, self.editor.surface())
        painter.end()

    # Pointer input

    def _point(self, event: QMouseEvent) -> Point:
        pos = event.position()
        return Point(pos.x(), pos.y())

    def mousePressEvent(self, event: QMouseEvent):
        """Handle mouse press."""
        if event.button() != Qt.MouseButton.LeftButton:
            super().mousePressEvent(event)
            return
        self.setFocus()
        self.editor.controller.pointer_down(self._point(event))
        self.selection_changed.emit(self.editor.controller.selected_id)

    def mouseMoveEvent(self, event: QMouseEvent):
        """Handle mouse move."""
        if self.editor.controller.is_dragging:
            self.editor.controller.pointer_move(self._point(event))
        else:
            super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event: QMouseEvent):
        """Handle mouse release."""
        if event.button() == Qt.MouseButton.LeftButton:
            self.editor.controller.pointer_up(self._point(event))
        else:
            super().mouseReleaseEvent(event)

    # Modifier keys

    def keyPressEvent(self, event: QKeyEvent):
        """Handle key press."""
        if event.isAutoRepeat():
            return
        kind = KEY_BINDINGS.get(event.key())
        if kind is not None:
            self.editor.controller.modifier_down(kind)
        elif event.key() in (Qt.Key.Key_Delete.value, Qt.Key.Key_Backspace.value):
            self.delete_selected()
        else:
            super().keyPressEvent(event)

    def keyReleaseEvent(self, event: QKeyEvent):
        if event.isAutoRepeat():
            return
        kind = KEY_BINDINGS.get(event.key())
        if kind is not None:
            self.editor.controller.modifier_up(kind)
        else:
            super().keyReleaseEvent(event)

    # Selection commands

    def delete_selected(self):
        element_id = self.editor.controller.selected_id
        if element_id is None:
            return
        self.editor.controller.cancel()
        try:
            self.editor.store.remove(element_id)
        except ElementNotFoundError:
            pass
        self.selection_changed.emit(None)

    def duplicate_selected(self):
        element_id = self.editor.controller.selected_id
        if element_id is None or self.editor.document.find(element_id) is None:
            return
        self.editor.controller.selected_id = self.editor.store.duplicate(element_id)
        self.selection_changed.emit(self.editor.controller.selected_id)

    def raise_selected(self):
        element_id = self.editor.controller.selected_id
        if element_id is not None and self.editor.document.find(element_id) is not None:
            self.editor.store.raise_to_top(element_id)

    def lower_selected(self):
        element_id = self.editor.controller.selected_id
        if element_id is not None and self.editor.document.find(element_id) is not None:
            self.editor.store.lower_to_bottom(element_id)

    # File drops

    def dragEnterEvent(self, event: QDragEnterEvent):
        if event.mimeData().hasUrls():
            event.acceptProposedAction()
        else:
            event.ignore()

    def dropEvent(self, event: QDropEvent):
        for url in event.mimeData().urls():
            if not url.isLocalFile():
                continue
            result = self.editor.import_file(url.toLocalFile())
            if result.ok:
                self.status_message.emit(result.message)
            else:
                self.import_failed.emit(result.message)
        self.schedule_decoding()
        event.acceptProposedAction()
