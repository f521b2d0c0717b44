"""
Exception hierarchy for the Card Creator.
"""


class CardCreatorError(Exception):
    """Base class for all errors raised by the Card Creator."""


class AssetLoadError(CardCreatorError):
    """Raised when a font or image asset is missing or cannot be decoded."""

    def __init__(self, key: str, path, reason: str = "not found"):
        super().__init__(f"Failed to load asset '{key}' from {path}: {reason}")
        self.key = key
        self.path = path
        self.reason = reason


class ConfigError(CardCreatorError):
    """Raised when the configuration file exists but cannot be read."""
