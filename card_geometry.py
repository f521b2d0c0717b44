"""
Coordinate mapping for the card photo frame.

Three coordinate spaces are involved:

* preview pixels - the card as it is currently drawn on screen, at whatever
  size the layout gave it (see ``RenderDimensions``);
* canvas pixels  - the full resolution 726x996 card;
* frame units    - canvas pixels relative to the top-left corner of the photo
  frame (``FrameGeometry``).

A photo placement is described by a ``LogicalPosition``: the frame-unit
coordinates of the photo's CENTER plus a uniform scale applied to the photo's
native size. Everything in this module is pure and independent of Qt and
Pillow so the preview overlay and the compositor share exactly the same math.
"""

import dataclasses
import math
from dataclasses import dataclass
from typing import NamedTuple, Optional, Tuple

CANVAS_WIDTH = 726
CANVAS_HEIGHT = 996

MIN_SCALE = 0.1
MAX_SCALE = 3.0

# How far (frame units) the center may be dragged past each frame edge
OVERFLOW_MARGIN = 100

# Assumed native size of the photo while its real size is unknown
PLACEHOLDER_SIZE = (300, 300)

# Target on-screen change per wheel tick, in photo pixels
SCROLL_PIXEL_STEP = 20
FALLBACK_SCROLL_STEP = 0.02


@dataclass(frozen=True)
class FrameGeometry:
    """Where the photo window sits inside the card canvas (canvas pixels)."""

    offset_x: int
    offset_y: int
    width: int
    height: int

    @property
    def center(self) -> Tuple[float, float]:
        return self.width / 2, self.height / 2


FRAME = FrameGeometry(offset_x=82, offset_y=122, width=558, height=390)


@dataclass(frozen=True)
class RenderDimensions:
    """Size at which the card preview is currently displayed."""

    width: float
    height: float

    def is_measurable(self) -> bool:
        return self.width > 0 and self.height > 0

    def effective(self) -> Tuple[float, float]:
        """Displayed size, or the nominal canvas size when it cannot be measured."""
        if self.is_measurable():
            return float(self.width), float(self.height)
        return float(CANVAS_WIDTH), float(CANVAS_HEIGHT)


NOMINAL_RENDER = RenderDimensions(CANVAS_WIDTH, CANVAS_HEIGHT)


@dataclass(frozen=True)
class LogicalPosition:
    """Center point (frame units) and scale of the placed photo."""

    x: float
    y: float
    scale: float

    def replace(self, **changes) -> "LogicalPosition":
        return dataclasses.replace(self, **changes)


class PlacementRect(NamedTuple):
    x: float
    y: float
    width: float
    height: float


def clamp_scale(scale: float) -> float:
    return max(MIN_SCALE, min(MAX_SCALE, scale))


def clamp_center(x: float, y: float, frame: FrameGeometry = FRAME) -> Tuple[float, float]:
    """Clamp a center point to the frame plus ``OVERFLOW_MARGIN`` on every side."""
    return (
        max(-OVERFLOW_MARGIN, min(frame.width + OVERFLOW_MARGIN, x)),
        max(-OVERFLOW_MARGIN, min(frame.height + OVERFLOW_MARGIN, y)),
    )


def clamp_position(position: LogicalPosition, frame: FrameGeometry = FRAME,
                   keep_scale: bool = False) -> LogicalPosition:
    """Clamp a position to the allowed range.

    Idempotent, and a no-op for in-range positions. With ``keep_scale`` only
    the center is clamped and the scale passes through unchanged.
    """
    x, y = clamp_center(position.x, position.y, frame)
    scale = position.scale if keep_scale else clamp_scale(position.scale)
    if (x, y, scale) == (position.x, position.y, position.scale):
        return position
    return LogicalPosition(x, y, scale)


def native_size_or_placeholder(native_size: Optional[Tuple[int, int]]) -> Tuple[int, int]:
    """Return ``native_size`` if it is known, else the placeholder size."""
    if native_size is None:
        return PLACEHOLDER_SIZE
    width, height = native_size
    if width <= 0 or height <= 0:
        return PLACEHOLDER_SIZE
    return int(width), int(height)


def fill_scale(native_size: Optional[Tuple[int, int]], frame: FrameGeometry = FRAME) -> float:
    """Smallest uniform scale at which the photo covers the frame on both axes."""
    width, height = native_size_or_placeholder(native_size)
    return max(frame.width / width, frame.height / height)


def default_position(native_size: Optional[Tuple[int, int]], frame: FrameGeometry = FRAME) -> LogicalPosition:
    """Frame-filling default placement for a photo.

    ``None`` means no photo was chosen: the placeholder is shown centered at
    its native size.
    """
    center_x, center_y = frame.center
    if native_size is None:
        return LogicalPosition(center_x, center_y, 1.0)
    return LogicalPosition(center_x, center_y, fill_scale(native_size, frame))


# ----------------------------------------------------------------------
# Preview <-> canvas <-> frame
# ----------------------------------------------------------------------

def screen_to_canvas(px: float, py: float, render: RenderDimensions) -> Tuple[float, float]:
    rendered_w, rendered_h = render.effective()
    return px * (CANVAS_WIDTH / rendered_w), py * (CANVAS_HEIGHT / rendered_h)


def canvas_to_screen(cx: float, cy: float, render: RenderDimensions) -> Tuple[float, float]:
    rendered_w, rendered_h = render.effective()
    return cx * (rendered_w / CANVAS_WIDTH), cy * (rendered_h / CANVAS_HEIGHT)


def frame_to_canvas(fx: float, fy: float, frame: FrameGeometry = FRAME) -> Tuple[float, float]:
    return fx + frame.offset_x, fy + frame.offset_y


def canvas_to_frame(cx: float, cy: float, frame: FrameGeometry = FRAME) -> Tuple[float, float]:
    return cx - frame.offset_x, cy - frame.offset_y


def screen_to_frame(px: float, py: float, render: RenderDimensions,
                    frame: FrameGeometry = FRAME) -> Tuple[float, float]:
    """Map a pointer position on the preview to (unclamped) frame units."""
    cx, cy = screen_to_canvas(px, py, render)
    return canvas_to_frame(cx, cy, frame)


def position_at_pointer(position: LogicalPosition, px: float, py: float,
                        render: RenderDimensions, frame: FrameGeometry = FRAME) -> LogicalPosition:
    """Move the photo center under the pointer, keeping the scale."""
    fx, fy = screen_to_frame(px, py, render, frame)
    return clamp_position(position.replace(x=fx, y=fy), frame, keep_scale=True)


# ----------------------------------------------------------------------
# Placement of the scaled photo
# ----------------------------------------------------------------------

def scaled_size(native_size: Optional[Tuple[int, int]], scale: float) -> Tuple[float, float]:
    width, height = native_size_or_placeholder(native_size)
    return width * scale, height * scale


def placement_in_frame(position: LogicalPosition, native_size: Optional[Tuple[int, int]]) -> PlacementRect:
    """Top-left and size of the scaled photo, in frame units."""
    width, height = scaled_size(native_size, position.scale)
    return PlacementRect(position.x - width / 2, position.y - height / 2, width, height)


def placement_in_canvas(position: LogicalPosition, native_size: Optional[Tuple[int, int]],
                        frame: FrameGeometry = FRAME) -> PlacementRect:
    """Top-left and size of the scaled photo, in canvas pixels."""
    rect = placement_in_frame(position, native_size)
    x, y = frame_to_canvas(rect.x, rect.y, frame)
    return PlacementRect(x, y, rect.width, rect.height)


def position_from_canvas_rect(rect: PlacementRect, native_size: Optional[Tuple[int, int]],
                              frame: FrameGeometry = FRAME) -> LogicalPosition:
    """Inverse of ``placement_in_canvas``."""
    width, _ = native_size_or_placeholder(native_size)
    fx, fy = canvas_to_frame(rect.x + rect.width / 2, rect.y + rect.height / 2, frame)
    return LogicalPosition(fx, fy, rect.width / width)


def preview_rect(position: LogicalPosition, native_size: Optional[Tuple[int, int]],
                 render: RenderDimensions, frame: FrameGeometry = FRAME) -> PlacementRect:
    """Where the photo ghost is drawn on the preview, in preview pixels.

    Same placement the compositor uses, scaled by the display factor.
    """
    rect = placement_in_canvas(position, native_size, frame)
    x, y = canvas_to_screen(rect.x, rect.y, render)
    right, bottom = canvas_to_screen(rect.x + rect.width, rect.y + rect.height, render)
    return PlacementRect(x, y, right - x, bottom - y)


def frame_preview_rect(render: RenderDimensions, frame: FrameGeometry = FRAME) -> PlacementRect:
    """The photo frame itself, in preview pixels."""
    x, y = canvas_to_screen(frame.offset_x, frame.offset_y, render)
    right, bottom = canvas_to_screen(frame.offset_x + frame.width, frame.offset_y + frame.height, render)
    return PlacementRect(x, y, right - x, bottom - y)


def _floor(value: float) -> int:
    # 390 / 7 * 7 can land a hair under 390
    return math.floor(value + 1e-9)


def pixel_placement(position: LogicalPosition, native_size: Tuple[int, int]) -> Tuple[int, int, int, int]:
    """Integer placement used for the final raster: (x, y, width, height) in frame units.

    Sizes and the top-left corner are floored; sizes never drop below 1px.
    """
    width, height = native_size
    scaled_w = max(1, _floor(width * position.scale))
    scaled_h = max(1, _floor(height * position.scale))
    x = math.floor(position.x - scaled_w / 2)
    y = math.floor(position.y - scaled_h / 2)
    return x, y, scaled_w, scaled_h


def fill_pixel_placement(native_size: Tuple[int, int], frame: FrameGeometry = FRAME) -> Tuple[int, int, int, int]:
    """Integer fill-and-center placement: (x, y, width, height) in frame units."""
    width, height = native_size
    scale = fill_scale(native_size, frame)
    scaled_w = max(1, _floor(width * scale))
    scaled_h = max(1, _floor(height * scale))
    x = math.floor((frame.width - scaled_w) / 2)
    y = math.floor((frame.height - scaled_h) / 2)
    return x, y, scaled_w, scaled_h


# ----------------------------------------------------------------------
# Wheel scaling
# ----------------------------------------------------------------------

def scroll_scale_delta(native_size: Optional[Tuple[int, int]], scroll_down: bool) -> float:
    """Scale change for one wheel tick.

    Sized so one tick moves the photo edge by roughly ``SCROLL_PIXEL_STEP``
    pixels regardless of its resolution. Scrolling down shrinks the photo.
    """
    if native_size is not None and native_size[0] > 0 and native_size[1] > 0:
        step = SCROLL_PIXEL_STEP / max(native_size)
    else:
        step = FALLBACK_SCROLL_STEP
    return -step if scroll_down else step


def apply_scroll(position: LogicalPosition, native_size: Optional[Tuple[int, int]],
                 scroll_down: bool) -> LogicalPosition:
    new_scale = clamp_scale(position.scale + scroll_scale_delta(native_size, scroll_down))
    return position.replace(scale=new_scale)
