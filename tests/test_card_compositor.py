"""Tests for card compositing."""

import pytest
from PIL import Image, ImageChops

from card_compositor import (
    RETREAT_ICON_Y,
    CardCompositor,
    CardRequest,
    fit_text,
    retreat_icon_positions,
    wrap_text,
)
from card_data import CardData
from card_errors import AssetLoadError
from card_geometry import FRAME, LogicalPosition, default_position
from raster import RasterImage

RETREAT_ICON_COLOR = (255, 0, 255, 255)
PHOTO_COLOR = (0, 200, 0, 255)
ICON_CENTERS = {547: 553, 563: 569, 580: 586, 596: 602, 612: 618}


def _photo(width, height, color=PHOTO_COLOR) -> RasterImage:
    return RasterImage(Image.new("RGBA", (width, height), color))


@pytest.fixture
def compositor(assets):
    return CardCompositor(assets)


@pytest.mark.parametrize("cost, xs", [
    ("1", [580]),
    ("2", [563, 596]),
    ("3", [547, 580, 612]),
])
def test_retreat_icon_positions(cost, xs):
    assert retreat_icon_positions(cost) == [(x, RETREAT_ICON_Y) for x in xs]


@pytest.mark.parametrize("cost", ["0", "", "abc", "4", None])
def test_no_retreat_icons(cost):
    assert retreat_icon_positions(cost) == []


def test_output_is_full_canvas(compositor):
    card = compositor.generate(_photo(640, 480), CardData())
    assert card.size == (726, 996)


@pytest.mark.parametrize("cost, xs", [
    ("0", []),
    ("1", [580]),
    ("2", [563, 596]),
    ("3", [547, 580, 612]),
    ("7", []),
])
def test_retreat_icons_are_drawn_where_expected(compositor, cost, xs):
    card = compositor.generate(_photo(640, 480), CardData(retreat_cost=cost)).pil
    y = RETREAT_ICON_Y + 6

    for x, center in ICON_CENTERS.items():
        pixel = card.getpixel((center, y))
        if x in xs:
            assert pixel == RETREAT_ICON_COLOR
        else:
            assert pixel[3] == 0


def test_positioning_only_applies_when_opted_in(compositor):
    photo = _photo(800, 600)
    data = CardData(name="Pikachu")

    plain = compositor.generate(photo, data).encode()
    ignored = compositor.generate(photo, data, False, LogicalPosition(10, 10, 0.2)).encode()

    assert plain == ignored


def test_custom_position_at_default_matches_fill(compositor):
    photo = _photo(800, 600)
    default = default_position(photo.size)

    filled = compositor.generate(photo, CardData()).encode()
    custom = compositor.generate(photo, CardData(), True, default).encode()

    assert filled == custom


def test_custom_position_moves_the_photo(compositor):
    photo = _photo(100, 100)
    # Small photo in the top-left corner of the frame
    frame = compositor.render_frame(photo, True, LogicalPosition(50, 50, 1.0)).pil

    assert frame.size == (FRAME.width, FRAME.height)
    assert frame.getpixel((10, 10)) == PHOTO_COLOR
    assert frame.getpixel((200, 200))[3] == 0


def test_out_of_frame_photo_is_clipped(compositor):
    photo = _photo(200, 200)
    frame = compositor.render_frame(photo, True, LogicalPosition(-50, -50, 1.0)).pil

    assert frame.getpixel((0, 0)) == PHOTO_COLOR
    assert frame.getpixel((49, 49)) == PHOTO_COLOR
    assert frame.getpixel((51, 51))[3] == 0


def _gradient(width, height) -> RasterImage:
    img = Image.new("RGBA", (width, height))
    img.putdata([(x * 255 // (width - 1), y * 255 // (height - 1), 90, 255)
                 for y in range(height) for x in range(width)])
    return RasterImage(img)


def test_only_the_visible_window_is_resampled(compositor, monkeypatch):
    sizes = []
    original = RasterImage.resize

    def recording_resize(self, width, height, *args, **kwargs):
        sizes.append((width, height))
        return original(self, width, height, *args, **kwargs)

    monkeypatch.setattr(RasterImage, "resize", recording_resize)
    photo = _photo(1200, 800)

    frame = compositor.render_frame(photo, True, LogicalPosition(279, 195, 3.0)).pil

    assert sizes == [(FRAME.width, FRAME.height)]
    assert frame.getpixel((0, 0)) == PHOTO_COLOR
    assert frame.getpixel((FRAME.width - 1, FRAME.height - 1)) == PHOTO_COLOR


def test_windowed_resample_matches_full_resize(compositor):
    photo = _gradient(200, 100)
    position = LogicalPosition(40, 300, 2.5)

    frame = compositor.render_frame(photo, True, position).pil

    # 500x250 at (-210, 175)
    full = photo.pil.resize((500, 250), Image.LANCZOS)
    expected = Image.new("RGBA", (FRAME.width, FRAME.height), (0, 0, 0, 0))
    expected.paste(full, (-210, 175))
    diff = ImageChops.difference(frame, expected)
    assert max(high for _, high in diff.getextrema()) <= 2


def test_photo_entirely_outside_the_frame_leaves_it_empty(compositor):
    frame = compositor.render_frame(_photo(50, 50), True, LogicalPosition(-100, -100, 0.5)).pil
    assert frame.getextrema()[3] == (0, 0)


def test_placeholder_fills_the_frame(compositor, assets):
    frame = compositor.render_frame(assets.placeholder(), False, None).pil
    # 558x558 at (0, -84): every frame pixel is covered
    assert frame.getpixel((0, 0))[3] == 255
    assert frame.getpixel((FRAME.width - 1, FRAME.height - 1))[3] == 255


def test_render_request_falls_back_to_placeholder(compositor, assets):
    from_request = compositor.render(CardRequest(card_data=CardData())).encode()
    direct = compositor.generate(assets.placeholder(), CardData()).encode()
    assert from_request == direct


def test_missing_overlay_raises(compositor, card_settings):
    (card_settings.assets_dir / "fire.png").unlink()
    with pytest.raises(AssetLoadError):
        compositor.generate(_photo(10, 10), CardData(type="fire"))


def test_missing_weakness_icon_raises(compositor, card_settings):
    (card_settings.assets_dir / "energy-small-water.png").unlink()
    with pytest.raises(AssetLoadError):
        compositor.generate(_photo(10, 10), CardData(weakness="water"))


def test_none_weakness_and_resistance_are_skipped(compositor, card_settings):
    for energy_type in ("fire", "water", "grass", "lightning", "psychic", "fighting"):
        (card_settings.assets_dir / f"energy-small-{energy_type}.png").unlink()

    card = compositor.generate(_photo(10, 10), CardData(weakness="none", resistance=""))
    assert card.size == (726, 996)


def test_wrap_text_respects_width(fake_fonts):
    font = fake_fonts
    text = "a quick brown fox jumps over the lazy dog " * 4
    width = 120

    lines = wrap_text(text, font, width)

    assert len(lines) > 1
    assert all(font.getlength(line) <= width for line in lines)
    assert " ".join(lines) == " ".join(text.split())


def test_wrap_text_splits_long_words(fake_fonts):
    lines = wrap_text("W" * 80, fake_fonts, 60)
    assert len(lines) > 1
    assert "".join(lines) == "W" * 80


def test_fit_text_drops_lines_past_max_height(fake_fonts):
    text = "word " * 200
    lines = fit_text(text, fake_fonts, 100, 30)
    all_lines = wrap_text(text, fake_fonts, 100)
    assert 1 <= len(lines) < len(all_lines)


def test_fit_text_empty():
    assert fit_text("", None, 100, 100) == []
