"""
Drag and wheel handling for positioning the card photo.

The controller is a small state machine with two modes. While disabled it
ignores all input and the card is rendered with the fill-and-center default.
While enabled, dragging moves the photo center under the pointer and the
wheel changes the scale. It never stores the position itself: it reads it
through ``position_provider`` and publishes new values through
``on_position_changed`` so the owning tab stays the single source of truth.
"""

from typing import Callable, Optional, Tuple

from card_geometry import (
    FRAME,
    FrameGeometry,
    LogicalPosition,
    RenderDimensions,
    apply_scroll,
    position_at_pointer,
)
from card_logging import get_logger

logger = get_logger("interaction")


class PositionInteractionController:
    """Translates pointer gestures on the preview into ``LogicalPosition`` updates."""

    def __init__(
        self,
        *,
        position_provider: Callable[[], LogicalPosition],
        default_provider: Callable[[], LogicalPosition],
        native_size_provider: Callable[[], Optional[Tuple[int, int]]],
        render_size_provider: Callable[[], RenderDimensions],
        on_position_changed: Callable[[LogicalPosition], None],
        on_mode_changed: Optional[Callable[[bool], None]] = None,
        frame: FrameGeometry = FRAME,
    ):
        self._position_provider = position_provider
        self._default_provider = default_provider
        self._native_size_provider = native_size_provider
        self._render_size_provider = render_size_provider
        self._on_position_changed = on_position_changed
        self._on_mode_changed = on_mode_changed
        self._frame = frame

        self._enabled = False
        self._dragging = False

    # ------------------------------------------------------------------
    # Mode
    # ------------------------------------------------------------------
    def is_enabled(self) -> bool:
        return self._enabled

    def is_dragging(self) -> bool:
        return self._dragging

    def set_enabled(self, enabled: bool):
        """Switch positioning mode. The current position is kept either way."""
        enabled = bool(enabled)
        if enabled == self._enabled:
            return
        self._enabled = enabled
        self._dragging = False
        logger.debug("Positioning mode %s", "enabled" if enabled else "disabled")
        if self._on_mode_changed is not None:
            self._on_mode_changed(enabled)

    # ------------------------------------------------------------------
    # Drag
    # ------------------------------------------------------------------
    def press(self, x: float, y: float) -> bool:
        """Begin a drag session. Returns True if the press was accepted."""
        if not self._enabled:
            return False
        self._dragging = True
        return True

    def move(self, x: float, y: float) -> Optional[LogicalPosition]:
        """Move the photo center to the pointer (preview pixels, relative to the card)."""
        if not (self._enabled and self._dragging):
            return None
        new_position = position_at_pointer(
            self._position_provider(), x, y, self._render_size_provider(), self._frame
        )
        self._on_position_changed(new_position)
        return new_position

    def release(self) -> bool:
        """End the drag session. Returns True if a drag was in progress."""
        was_dragging = self._dragging
        self._dragging = False
        return was_dragging

    # ------------------------------------------------------------------
    # Wheel / reset
    # ------------------------------------------------------------------
    def wheel(self, delta_y: float) -> Optional[LogicalPosition]:
        """Scale the photo by one wheel tick.

        ``delta_y`` follows the DOM/Qt convention used by the view: positive
        means scrolling down, which shrinks the photo.
        """
        if not self._enabled or delta_y == 0:
            return None
        new_position = apply_scroll(self._position_provider(), self._native_size_provider(), delta_y > 0)
        self._on_position_changed(new_position)
        return new_position

    def reset(self) -> LogicalPosition:
        """Publish the recorded default position."""
        default = self._default_provider()
        self._on_position_changed(default)
        return default
