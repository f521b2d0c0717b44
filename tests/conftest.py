import os
import sys
import tempfile
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
os.environ.setdefault("CARD_CREATOR_LOG_DIR", str(Path(tempfile.gettempdir()) / "card_creator_test_logs"))

import pytest  # noqa: E402
from PIL import Image, ImageFont  # noqa: E402

from asset_cache import AssetCache  # noqa: E402
from card_data import ENERGY_TYPES, HP_VALUES  # noqa: E402
from card_settings import DEFAULT_FONTS, CardSettings  # noqa: E402

RETREAT_ICON_COLOR = (255, 0, 255, 255)
SMALL_ICON_SIZE = (12, 12)
LARGE_ICON_SIZE = (36, 36)


def _solid(path: Path, size, color):
    Image.new("RGBA", size, color).save(path)


def build_asset_tree(root: Path) -> Path:
    """Write a minimal but complete set of card assets under ``root``."""
    poke = root / "poke"
    fonts = root / "fonts"
    poke.mkdir(parents=True)
    fonts.mkdir(parents=True)

    for index, energy_type in enumerate(ENERGY_TYPES):
        # Frame overlay: transparent apart from a strip along the top edge
        overlay = Image.new("RGBA", (726, 996), (0, 0, 0, 0))
        overlay.paste((200, 180, 40 + index * 20, 255), (0, 0, 726, 20))
        overlay.save(poke / f"{energy_type}.png")

        _solid(poke / f"energy-large-{energy_type}.png", LARGE_ICON_SIZE, (30 * index, 120, 60, 255))
        if energy_type != "colorless":
            _solid(poke / f"energy-small-{energy_type}.png", SMALL_ICON_SIZE, (10, 30 * index, 200, 255))

    _solid(poke / "energy-colorless.png", LARGE_ICON_SIZE, (220, 220, 220, 255))
    _solid(poke / "energy-small-colorless.png", SMALL_ICON_SIZE, RETREAT_ICON_COLOR)

    for hp in HP_VALUES:
        _solid(poke / f"hp-{hp}.png", (59, 16), (180, 20, 20, 255))

    _solid(poke / "missingno.png", (300, 300), (90, 90, 90, 255))

    for file_name, _ in DEFAULT_FONTS.values():
        (fonts / file_name).write_bytes(b"not a real font")

    return root


@pytest.fixture
def fake_fonts(monkeypatch):
    """Serve Pillow's built-in font for every truetype() request."""
    default_font = ImageFont.load_default()

    def _truetype(font=None, size=10, *args, **kwargs):
        return default_font

    monkeypatch.setattr(ImageFont, "truetype", _truetype)
    return default_font


@pytest.fixture
def asset_root(tmp_path) -> Path:
    return build_asset_tree(tmp_path / "assets")


@pytest.fixture
def card_settings(asset_root) -> CardSettings:
    return CardSettings(
        assets_dir=asset_root / "poke",
        fonts_dir=asset_root / "fonts",
        card_debounce_ms=20,
        position_debounce_ms=20,
    )


@pytest.fixture
def assets(card_settings, fake_fonts) -> AssetCache:
    return AssetCache.from_settings(card_settings)


class ImmediatePool:
    """Thread pool stand-in that runs each worker inline."""

    def __init__(self):
        self.started = []

    def start(self, runnable):
        self.started.append(runnable)
        runnable.run()


@pytest.fixture
def immediate_pool() -> ImmediatePool:
    return ImmediatePool()
