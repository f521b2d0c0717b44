"""
Card compositing.

Builds the final 726x996 card from the photo, the type frame overlay, the
text fields and the badge icons. The photo is either scaled to fill the
frame and centered, or placed exactly where the user put it (see
``card_geometry`` for the shared placement math).
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from PIL import Image, ImageDraw

from asset_cache import AssetCache
from card_data import CardData, is_none_value, retreat_icon_count
from card_geometry import (
    CANVAS_HEIGHT,
    CANVAS_WIDTH,
    FRAME,
    FrameGeometry,
    LogicalPosition,
    fill_pixel_placement,
    pixel_placement,
)
from card_logging import get_logger
from raster import RasterImage

logger = get_logger("compositor")

TEXT_COLOR = (0, 0, 0, 255)

HP_BADGE_SIZE = (118, 32)
HP_BADGE_POS = (490, 76)

MOVE1_ENERGY_POS = (80, 609)
MOVE2_ENERGY_POS = (58, 709)
MOVE2_COLORLESS_POS = (108, 709)

WEAKNESS_POS = (100, 834)
RESISTANCE_POS = (340, 834)

# Retreat cost -> x offsets of the colorless icons
RETREAT_ICON_X: Dict[int, Tuple[int, ...]] = {
    1: (580,),
    2: (563, 596),
    3: (547, 580, 612),
}
RETREAT_ICON_Y = 834

# Half-size round trip applied to the finished card
SOFTEN_SIZE = (CANVAS_WIDTH // 2, CANVAS_HEIGHT // 2)


@dataclass(frozen=True)
class TextBox:
    font_key: str
    x: int
    y: int
    max_width: int
    max_height: int
    align_x: str = "left"    # "left" or "center"
    align_y: str = "top"     # "top" or "middle"


NAME_BOX = TextBox("gill_cb_48", 72, 60, 400, 60)
DESCRIPTION_BOX = TextBox("gill_rbi_22", 100, 529, 525, 30, align_x="center")
FLAVOR_BOX = TextBox("gill_rbi_22", 87, 877, 590, 55)
MOVE1_NAME_BOX = TextBox("gill_cb_44", 114, 600, 500, 50, align_x="center", align_y="middle")
MOVE1_DMG_BOX = TextBox("gill_rp_64", 570, 600, 100, 50, align_x="center", align_y="middle")
MOVE2_NAME_BOX = TextBox("gill_cb_44", 114, 700, 500, 50, align_x="center", align_y="middle")
MOVE2_DMG_BOX = TextBox("gill_rp_64", 570, 700, 100, 50, align_x="center", align_y="middle")


@dataclass
class CardRequest:
    """Everything one card render needs, captured at request time.

    ``source`` may be None, in which case the placeholder photo is used.
    """

    source: Optional[RasterImage] = None
    card_data: CardData = field(default_factory=CardData)
    use_custom_position: bool = False
    position: Optional[LogicalPosition] = None


def retreat_icon_positions(retreat_cost: Optional[str]) -> List[Tuple[int, int]]:
    """Top-left corners of the retreat cost icons for ``retreat_cost``."""
    count = retreat_icon_count(retreat_cost)
    return [(x, RETREAT_ICON_Y) for x in RETREAT_ICON_X.get(count, ())]


def _line_height(font) -> int:
    if hasattr(font, "getmetrics"):
        ascent, descent = font.getmetrics()
        return ascent + descent
    return font.getbbox("Ay")[3]


def _split_long_word(word: str, font, max_width: int) -> List[str]:
    """Break a single word that is wider than the box into box-wide chunks."""
    chunks = []
    while len(word) > 1 and font.getlength(word) > max_width:
        cut = len(word) - 1
        while cut > 1 and font.getlength(word[:cut]) > max_width:
            cut -= 1
        chunks.append(word[:cut])
        word = word[cut:]
    chunks.append(word)
    return chunks


def wrap_text(text: str, font, max_width: int) -> List[str]:
    """Greedy word wrap to ``max_width`` pixels, honouring explicit newlines."""
    lines: List[str] = []
    for paragraph in text.splitlines():
        current = ""
        for word in paragraph.split():
            candidate = f"{current} {word}" if current else word
            if font.getlength(candidate) <= max_width:
                current = candidate
                continue
            if current:
                lines.append(current)
            pieces = _split_long_word(word, font, max_width)
            lines.extend(pieces[:-1])
            current = pieces[-1]
        if current:
            lines.append(current)
    return lines


def fit_text(text: str, font, max_width: int, max_height: int) -> List[str]:
    """Wrap ``text`` and drop the lines that do not fit ``max_height``.

    The first line is always kept so short fields never vanish.
    """
    lines = wrap_text(text, font, max_width)
    if not lines:
        return []
    max_lines = max(1, max_height // max(1, _line_height(font)))
    return lines[:max_lines]


class CardCompositor:
    """Renders cards using fonts and images from a shared ``AssetCache``."""

    def __init__(self, assets: AssetCache, frame: FrameGeometry = FRAME):
        self.assets = assets
        self.frame = frame

    def generate(self, source: RasterImage, card_data: CardData,
                 use_custom_position: bool = False,
                 position: Optional[LogicalPosition] = None) -> RasterImage:
        """Build the finished card.

        Raises ``AssetLoadError`` if any required font or image is missing;
        nothing partially composited is returned in that case.
        """
        overlay = self.assets.image(card_data.type)

        photo = self.render_frame(source, use_custom_position, position)

        card = RasterImage.blank(CANVAS_WIDTH, CANVAS_HEIGHT)
        card.composite(photo, self.frame.offset_x, self.frame.offset_y)
        card.composite(overlay, 0, 0)

        self.draw_text(card, card_data)
        self.draw_badges(card, card_data)

        return card.resize(*SOFTEN_SIZE, resample=Image.BILINEAR).resize(
            CANVAS_WIDTH, CANVAS_HEIGHT, resample=Image.BILINEAR
        )

    def render(self, request: CardRequest) -> RasterImage:
        source = request.source if request.source is not None else self.assets.placeholder()
        return self.generate(source, request.card_data,
                             request.use_custom_position, request.position)

    def render_frame(self, source: RasterImage, use_custom_position: bool,
                     position: Optional[LogicalPosition]) -> RasterImage:
        """The photo placed on a transparent frame-sized canvas.

        Anything that falls outside the frame is clipped.
        """
        if use_custom_position and position is not None:
            x, y, width, height = pixel_placement(position, source.size)
        else:
            x, y, width, height = fill_pixel_placement(source.size, self.frame)

        logger.debug("Placing %dx%d photo as %dx%d at (%d, %d), custom=%s",
                     source.width, source.height, width, height, x, y,
                     use_custom_position and position is not None)

        canvas = RasterImage.blank(self.frame.width, self.frame.height)

        # Only the part of the scaled photo that lands inside the frame is resampled
        left, top = max(0, x), max(0, y)
        right = min(self.frame.width, x + width)
        bottom = min(self.frame.height, y + height)
        if right <= left or bottom <= top:
            return canvas

        sx = source.width / width
        sy = source.height / height
        box = ((left - x) * sx, (top - y) * sy, (right - x) * sx, (bottom - y) * sy)
        visible = source.resize(right - left, bottom - top, box=box)
        return canvas.composite(visible, left, top)

    # ------------------------------------------------------------------
    # Text
    # ------------------------------------------------------------------
    def draw_text(self, card: RasterImage, card_data: CardData):
        fields = [
            (NAME_BOX, card_data.name),
            (DESCRIPTION_BOX, card_data.description_line),
            (FLAVOR_BOX, card_data.flavor_text),
            (MOVE1_NAME_BOX, card_data.move1_name),
            (MOVE1_DMG_BOX, card_data.move1_dmg),
            (MOVE2_NAME_BOX, card_data.move2_name),
            (MOVE2_DMG_BOX, card_data.move2_dmg),
        ]
        draw = ImageDraw.Draw(card.pil)
        for box, text in fields:
            self.draw_text_box(draw, box, text or "")

    def draw_text_box(self, draw: ImageDraw.ImageDraw, box: TextBox, text: str):
        font = self.assets.font(box.font_key)
        lines = fit_text(text, font, box.max_width, box.max_height)
        if not lines:
            return

        line_height = _line_height(font)
        y = box.y
        if box.align_y == "middle":
            y = box.y + (box.max_height - line_height * len(lines)) / 2

        for line in lines:
            x = box.x
            if box.align_x == "center":
                x = box.x + (box.max_width - font.getlength(line)) / 2
            draw.text((x, y), line, font=font, fill=TEXT_COLOR)
            y += line_height

    # ------------------------------------------------------------------
    # Badges
    # ------------------------------------------------------------------
    def draw_badges(self, card: RasterImage, card_data: CardData):
        hp_badge = self.assets.image(f"hp-{card_data.hp}").resize(*HP_BADGE_SIZE)
        card.composite(hp_badge, *HP_BADGE_POS)

        energy = self.assets.image(f"energy-large-{card_data.type}")
        colorless = self.assets.image("energy-colorless")
        card.composite(energy, *MOVE1_ENERGY_POS)
        card.composite(energy, *MOVE2_ENERGY_POS)
        card.composite(colorless, *MOVE2_COLORLESS_POS)

        if not is_none_value(card_data.weakness):
            card.composite(self.assets.image(f"energy-small-{card_data.weakness}"), *WEAKNESS_POS)

        if not is_none_value(card_data.resistance):
            card.composite(self.assets.image(f"energy-small-{card_data.resistance}"), *RESISTANCE_POS)

        positions = retreat_icon_positions(card_data.retreat_cost)
        if positions:
            retreat = self.assets.image("energy-small-colorless")
            for x, y in positions:
                card.composite(retreat, x, y)
