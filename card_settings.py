"""
Configuration loading for the Card Creator.

Settings live in a small YAML file (``config.yaml`` by default). Every key is
optional; anything missing falls back to the defaults below.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple

import yaml

from app_paths import get_assets_dir, get_config_path, get_fonts_dir
from card_errors import ConfigError
from card_logging import get_logger

logger = get_logger("settings")

# Logical font key -> (file name, point size)
DEFAULT_FONTS: Dict[str, Tuple[str, int]] = {
    "gill_cb_44": ("gill-cb.ttf", 44),
    "gill_cb_48": ("gill-cb.ttf", 48),
    "gill_rp_64": ("gill-rp.ttf", 64),
    "gill_rbi_22": ("gill-rbi.ttf", 22),
}


def load_yaml(path: Path) -> dict:
    """Read a YAML mapping from ``path``."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to read config {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must contain a mapping, got {type(data).__name__}")
    return data


@dataclass
class CardSettings:
    assets_dir: Path = field(default_factory=get_assets_dir)
    fonts_dir: Path = field(default_factory=get_fonts_dir)
    placeholder: str = "missingno.png"
    fonts: Dict[str, Tuple[str, int]] = field(default_factory=lambda: dict(DEFAULT_FONTS))
    card_debounce_ms: int = 500
    position_debounce_ms: int = 300

    @property
    def placeholder_path(self) -> Path:
        return self.assets_dir / self.placeholder

    @classmethod
    def from_mapping(cls, cfg: dict, base_dir: Path) -> "CardSettings":
        """Build settings from a parsed config mapping.

        Relative paths are resolved against ``base_dir`` (the config file's folder).
        """
        settings = cls()

        paths = cfg.get("paths", {}) or {}
        if paths.get("assets_dir"):
            settings.assets_dir = (base_dir / paths["assets_dir"]).resolve()
        if paths.get("fonts_dir"):
            settings.fonts_dir = (base_dir / paths["fonts_dir"]).resolve()
        if paths.get("placeholder"):
            settings.placeholder = str(paths["placeholder"])

        for key, spec in (cfg.get("fonts", {}) or {}).items():
            try:
                file_name, size = spec
                settings.fonts[key] = (str(file_name), int(size))
            except (TypeError, ValueError):
                logger.warning("Ignoring malformed font entry %r: %r", key, spec)

        timing = cfg.get("timing", {}) or {}
        settings.card_debounce_ms = int(timing.get("card_debounce_ms", settings.card_debounce_ms))
        settings.position_debounce_ms = int(timing.get("position_debounce_ms", settings.position_debounce_ms))

        return settings


def load_settings(config_path: Optional[Path] = None) -> CardSettings:
    """Load settings from ``config_path`` (or the default location)."""
    config_path = Path(config_path) if config_path else get_config_path()
    if not config_path.exists():
        logger.info("No config at %s, using defaults", config_path)
        return CardSettings()

    cfg = load_yaml(config_path)
    settings = CardSettings.from_mapping(cfg, config_path.parent)
    logger.info("Loaded config from %s (assets: %s)", config_path, settings.assets_dir)
    return settings
