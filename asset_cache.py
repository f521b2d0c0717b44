"""
Load-once cache for card fonts and images.

One ``AssetCache`` is created at startup and handed to the compositor.
Images are looked up by logical key (``fire`` -> ``fire.png``,
``hp-60`` -> ``hp-60.png``, ``energy-small-water`` -> ...), fonts by the
keys configured in ``CardSettings.fonts``.
"""

import threading
from pathlib import Path
from typing import Dict, Tuple

from PIL import Image, ImageFont

from card_data import ENERGY_TYPES
from card_errors import AssetLoadError
from card_logging import get_logger
from raster import RasterImage

logger = get_logger("assets")


class AssetCache:
    """Lazily populated, idempotent cache of fonts and images."""

    def __init__(self, assets_dir: Path, fonts_dir: Path,
                 fonts: Dict[str, Tuple[str, int]], placeholder: str = "missingno.png"):
        self.assets_dir = Path(assets_dir)
        self.fonts_dir = Path(fonts_dir)
        self.font_specs = dict(fonts)
        self.placeholder_name = placeholder

        self._images: Dict[str, RasterImage] = {}
        self._fonts: Dict[str, ImageFont.FreeTypeFont] = {}
        self._lock = threading.Lock()
        self._preloaded = False

    @classmethod
    def from_settings(cls, settings) -> "AssetCache":
        return cls(settings.assets_dir, settings.fonts_dir, settings.fonts, settings.placeholder)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def image_path(self, key: str) -> Path:
        return self.assets_dir / f"{key}.png"

    def image(self, key: str) -> RasterImage:
        """Return the cached image for ``key``, loading it on first use."""
        with self._lock:
            cached = self._images.get(key)
            if cached is not None:
                return cached
            img = self._load_image(key, self.image_path(key))
            self._images[key] = img
            return img

    def placeholder(self) -> RasterImage:
        """The stand-in photo shown when the user has not chosen one."""
        key = Path(self.placeholder_name).stem
        with self._lock:
            cached = self._images.get(key)
            if cached is None:
                cached = self._load_image(key, self.assets_dir / self.placeholder_name)
                self._images[key] = cached
            return cached

    def font(self, key: str) -> ImageFont.FreeTypeFont:
        with self._lock:
            cached = self._fonts.get(key)
            if cached is not None:
                return cached
            spec = self.font_specs.get(key)
            if spec is None:
                raise AssetLoadError(key, self.fonts_dir, "no font configured for this key")
            file_name, size = spec
            path = self.fonts_dir / file_name
            if not path.exists():
                raise AssetLoadError(key, path)
            try:
                font = ImageFont.truetype(str(path), size)
            except OSError as e:
                raise AssetLoadError(key, path, str(e)) from e
            self._fonts[key] = font
            return font

    # ------------------------------------------------------------------
    # Preload
    # ------------------------------------------------------------------
    def preload(self):
        """Load the fonts and energy icons every card uses.

        Safe to call repeatedly; only the first successful call does work.
        Raises ``AssetLoadError`` if anything is missing.
        """
        if self._preloaded:
            return

        for key in self.font_specs:
            self.font(key)

        for energy_type in ENERGY_TYPES:
            self.image(f"energy-large-{energy_type}")
            self.image(f"energy-small-{energy_type}")
        self.image("energy-colorless")
        self.image("energy-small-colorless")

        self._preloaded = True
        logger.info("Preloaded %d fonts and %d images from %s",
                    len(self._fonts), len(self._images), self.assets_dir)

    @property
    def is_preloaded(self) -> bool:
        return self._preloaded

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------
    @staticmethod
    def _load_image(key: str, path: Path) -> RasterImage:
        if not path.exists():
            raise AssetLoadError(key, path)
        try:
            img = RasterImage.open(path)
        except (OSError, Image.DecompressionBombError) as e:
            raise AssetLoadError(key, path, str(e)) from e
        logger.debug("Loaded image %s (%dx%d)", key, img.width, img.height)
        return img
