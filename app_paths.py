"""
Filesystem locations used by the Card Creator.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent

CONFIG_ENV_VAR = "CARD_CREATOR_CONFIG"


def get_config_path() -> Path:
    """Return the config file path, honouring ``CARD_CREATOR_CONFIG`` when set."""
    override = os.getenv(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser().resolve()
    return BASE_DIR / "config.yaml"


def get_assets_dir() -> Path:
    """Default directory holding frame overlays, badges and energy icons."""
    return BASE_DIR / "assets" / "poke"


def get_fonts_dir() -> Path:
    """Default directory holding the card fonts."""
    return BASE_DIR / "assets" / "fonts"
