"""
Card preview widget with the photo positioning overlay.

The rendered card is drawn aspect-fit inside the widget. While positioning
mode is on, a translucent ghost of the photo is drawn where the compositor
will place it, and pointer gestures are forwarded to the
``PositionInteractionController`` in card-relative preview pixels.
"""

from typing import Optional, Tuple

from PIL import ImageQt
from PySide6.QtCore import Qt, QRectF, Signal
from PySide6.QtGui import QColor, QMouseEvent, QPainter, QPen, QPixmap, QWheelEvent
from PySide6.QtWidgets import QSizePolicy, QWidget

from card_geometry import (
    CANVAS_HEIGHT,
    CANVAS_WIDTH,
    FRAME,
    LogicalPosition,
    RenderDimensions,
    frame_preview_rect,
    preview_rect,
)
from interaction_controller import PositionInteractionController
from raster import RasterImage

HINT_TEXT = "Drag to position • Scroll to scale"
GHOST_OPACITY = 0.7


def scale_label(position: LogicalPosition) -> str:
    return f"Scale: {position.scale:.1f}x"


class CardPreviewView(QWidget):
    """Shows the generated card and hosts the positioning overlay."""

    # Emitted with the new RenderDimensions whenever the card's on-screen size changes
    render_size_changed = Signal(object)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setMinimumSize(240, 330)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)

        # Colors
        self.background_color = QColor(64, 64, 64)
        self.ghost_border_color = QColor(59, 130, 246)
        self.overlay_tint = QColor(59, 130, 246, 26)
        self.overlay_border_color = QColor(96, 165, 250)
        self.label_color = QColor(37, 99, 235)

        self._card_pixmap: Optional[QPixmap] = None
        self._ghost_pixmap: Optional[QPixmap] = None
        self._native_size: Optional[Tuple[int, int]] = None
        self._position: Optional[LogicalPosition] = None
        self._positioning = False
        self._controller: Optional[PositionInteractionController] = None
        self._last_render = RenderDimensions(0, 0)

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------
    def set_controller(self, controller: PositionInteractionController):
        self._controller = controller

    def set_card_png(self, data: bytes) -> bool:
        """Display a generated card from PNG bytes. Returns False if undecodable."""
        pixmap = QPixmap()
        if not pixmap.loadFromData(data, "PNG"):
            return False
        self.set_card_pixmap(pixmap)
        return True

    def set_card_pixmap(self, pixmap: QPixmap):
        self._card_pixmap = pixmap
        self.update()

    def has_card(self) -> bool:
        return self._card_pixmap is not None and not self._card_pixmap.isNull()

    def set_ghost(self, image: Optional[RasterImage]):
        """Photo drawn translucently while positioning (None to clear)."""
        if image is None:
            self._ghost_pixmap = None
        else:
            self._ghost_pixmap = QPixmap.fromImage(ImageQt.ImageQt(image.pil))
        self.update()

    def set_position(self, position: LogicalPosition, native_size: Optional[Tuple[int, int]]):
        self._position = position
        self._native_size = native_size
        self.update()

    def set_positioning(self, enabled: bool):
        self._positioning = bool(enabled)
        if not self._positioning:
            self._release_grab()
        self.setCursor(Qt.SizeAllCursor if self._positioning else Qt.ArrowCursor)
        self.update()

    def is_positioning(self) -> bool:
        return self._positioning

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------
    def card_rect(self) -> QRectF:
        """Aspect-fit rectangle the card occupies inside the widget."""
        w, h = self.width(), self.height()
        if w <= 0 or h <= 0:
            return QRectF()
        scale = min(w / CANVAS_WIDTH, h / CANVAS_HEIGHT)
        card_w, card_h = CANVAS_WIDTH * scale, CANVAS_HEIGHT * scale
        return QRectF((w - card_w) / 2, (h - card_h) / 2, card_w, card_h)

    def render_dimensions(self) -> RenderDimensions:
        rect = self.card_rect()
        return RenderDimensions(rect.width(), rect.height())

    def ghost_rect(self) -> Optional[QRectF]:
        """Preview-pixel rectangle of the photo ghost, relative to the widget."""
        if self._position is None:
            return None
        rect = self.card_rect()
        placed = preview_rect(self._position, self._native_size, self.render_dimensions(), FRAME)
        return QRectF(rect.x() + placed.x, rect.y() + placed.y, placed.width, placed.height)

    def _card_point(self, event: QMouseEvent) -> Tuple[float, float]:
        pos = event.position()
        rect = self.card_rect()
        return pos.x() - rect.x(), pos.y() - rect.y()

    def resizeEvent(self, event):
        """Report the card's new on-screen size."""
        super().resizeEvent(event)
        render = self.render_dimensions()
        if render != self._last_render:
            self._last_render = render
            self.render_size_changed.emit(render)

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------
    def mousePressEvent(self, event: QMouseEvent):
        if event.button() == Qt.LeftButton and self._controller is not None:
            if self._controller.press(*self._card_point(event)):
                # Keep receiving move/release while the pointer is outside
                if self.isVisible():
                    self.grabMouse()
                event.accept()
                return
        event.ignore()

    def mouseMoveEvent(self, event: QMouseEvent):
        if self._controller is not None and self._controller.is_dragging():
            self._controller.move(*self._card_point(event))
            event.accept()
            return
        event.ignore()

    def mouseReleaseEvent(self, event: QMouseEvent):
        if event.button() != Qt.LeftButton:
            event.ignore()
            return
        # The drag may have been cancelled while the grab was held
        self._release_grab()
        if self._controller is not None and self._controller.release():
            event.accept()
            return
        event.ignore()

    def _release_grab(self):
        if QWidget.mouseGrabber() is self:
            self.releaseMouse()

    def wheelEvent(self, event: QWheelEvent):
        """Scroll down shrinks the photo, scroll up enlarges it."""
        if self._controller is None or not self._controller.is_enabled():
            event.ignore()
            return
        delta = event.angleDelta().y()
        if delta:
            # Qt reports scroll-up as positive
            self._controller.wheel(-delta)
        event.accept()

    # ------------------------------------------------------------------
    # Painting
    # ------------------------------------------------------------------
    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing, True)
        painter.setRenderHint(QPainter.SmoothPixmapTransform, True)
        painter.fillRect(self.rect(), self.background_color)

        rect = self.card_rect()
        if self.has_card() and not rect.isEmpty():
            painter.drawPixmap(rect, self._card_pixmap, QRectF(self._card_pixmap.rect()))

        if self._positioning and not rect.isEmpty():
            self._paint_overlay(painter, rect)

        painter.end()

    def _paint_overlay(self, painter: QPainter, rect: QRectF):
        painter.save()
        painter.setClipRect(rect)

        ghost = self.ghost_rect()
        if ghost is not None:
            if self._ghost_pixmap is not None and not self._ghost_pixmap.isNull():
                painter.setOpacity(GHOST_OPACITY)
                painter.drawPixmap(ghost, self._ghost_pixmap, QRectF(self._ghost_pixmap.rect()))
                painter.setOpacity(1.0)
            painter.setPen(QPen(self.ghost_border_color, 2))
            painter.setBrush(Qt.NoBrush)
            painter.drawRect(ghost)

        painter.fillRect(rect, self.overlay_tint)
        painter.setPen(QPen(self.overlay_border_color, 2, Qt.DashLine))
        painter.drawRect(rect.adjusted(1, 1, -1, -1))

        # Photo frame outline
        frame = frame_preview_rect(self.render_dimensions(), FRAME)
        painter.setPen(QPen(self.overlay_border_color, 1, Qt.DotLine))
        painter.drawRect(QRectF(rect.x() + frame.x, rect.y() + frame.y, frame.width, frame.height))

        self._draw_label(painter, HINT_TEXT, rect, Qt.AlignTop | Qt.AlignLeft)
        if self._position is not None:
            self._draw_label(painter, scale_label(self._position), rect, Qt.AlignBottom | Qt.AlignRight)

        painter.restore()

    def _draw_label(self, painter: QPainter, text: str, rect: QRectF, corner):
        metrics = painter.fontMetrics()
        box_w = metrics.horizontalAdvance(text) + 12
        box_h = metrics.height() + 6
        margin = 8

        x = rect.left() + margin if corner & Qt.AlignLeft else rect.right() - margin - box_w
        y = rect.top() + margin if corner & Qt.AlignTop else rect.bottom() - margin - box_h
        box = QRectF(x, y, box_w, box_h)

        painter.fillRect(box, self.label_color)
        painter.setPen(QPen(Qt.white))
        painter.drawText(box, Qt.AlignCenter, text)
