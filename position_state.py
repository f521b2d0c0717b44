"""
Live and default photo placement.
"""

from typing import Optional, Tuple

from card_geometry import FRAME, FrameGeometry, LogicalPosition, default_position


class PositionState:
    """Holds the editable photo position next to its recorded default.

    The default is recomputed whenever the source photo changes; the live
    position is reset to it at the same time. Comparing the two tells the
    compositor whether the user has customized the placement.

    The default is the exact fill scale and is not clamped to the wheel
    range, so very small or very large photos still cover the frame.
    """

    def __init__(self, frame: FrameGeometry = FRAME):
        self.frame = frame
        self.default: LogicalPosition = default_position(None, frame)
        self.current: LogicalPosition = self.default

    def set_source(self, native_size: Optional[Tuple[int, int]]) -> LogicalPosition:
        """Record a new source photo (``None`` for the placeholder) and reset to its default."""
        self.default = default_position(native_size, self.frame)
        self.current = self.default
        return self.current

    def update(self, position: LogicalPosition) -> LogicalPosition:
        self.current = position
        return self.current

    def reset(self) -> LogicalPosition:
        self.current = self.default
        return self.current

    def is_customized(self, position: Optional[LogicalPosition] = None) -> bool:
        """True if ``position`` (the live one by default) differs from the default."""
        if position is None:
            position = self.current
        return position != self.default
