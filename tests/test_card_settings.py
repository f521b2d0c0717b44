import pytest

from app_paths import CONFIG_ENV_VAR, get_config_path
from card_errors import ConfigError
from card_settings import DEFAULT_FONTS, CardSettings, load_settings


def test_missing_file_gives_defaults(tmp_path):
    settings = load_settings(tmp_path / "nope.yaml")
    assert settings.fonts == DEFAULT_FONTS
    assert settings.card_debounce_ms == 500
    assert settings.position_debounce_ms == 300
    assert settings.placeholder == "missingno.png"


def test_relative_paths_resolve_against_config_dir(tmp_path):
    config = tmp_path / "config.yaml"
    config.write_text(
        "paths:\n"
        "  assets_dir: ./art\n"
        "  fonts_dir: ./type\n"
        "timing:\n"
        "  card_debounce_ms: 250\n",
        encoding="utf-8",
    )

    settings = load_settings(config)

    assert settings.assets_dir == (tmp_path / "art").resolve()
    assert settings.fonts_dir == (tmp_path / "type").resolve()
    assert settings.card_debounce_ms == 250
    assert settings.position_debounce_ms == 300


def test_font_overrides_and_malformed_entries(tmp_path):
    config = tmp_path / "config.yaml"
    config.write_text(
        "fonts:\n"
        "  gill_cb_48: [other.ttf, 50]\n"
        "  broken: 12\n",
        encoding="utf-8",
    )

    settings = load_settings(config)

    assert settings.fonts["gill_cb_48"] == ("other.ttf", 50)
    assert settings.fonts["gill_rp_64"] == DEFAULT_FONTS["gill_rp_64"]
    assert "broken" not in settings.fonts


@pytest.mark.parametrize("content", ["- just\n- a list\n", "paths: [unclosed\n"])
def test_unreadable_config_raises(tmp_path, content):
    config = tmp_path / "config.yaml"
    config.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_settings(config)


def test_env_var_overrides_config_location(tmp_path, monkeypatch):
    target = tmp_path / "custom.yaml"
    monkeypatch.setenv(CONFIG_ENV_VAR, str(target))
    assert get_config_path() == target.resolve()


def test_placeholder_path():
    settings = CardSettings()
    assert settings.placeholder_path == settings.assets_dir / "missingno.png"
