"""Smoke tests for the Card Creator tab."""

import pytest

pytest.importorskip("PySide6")

from PIL import Image  # noqa: E402

import card_creator_tab  # noqa: E402
from card_creator_tab import CardCreatorTab  # noqa: E402
from card_geometry import fill_scale  # noqa: E402
from raster import RasterImage  # noqa: E402

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


@pytest.fixture
def tab(qtbot, card_settings, assets, immediate_pool):
    widget = CardCreatorTab(card_settings, assets, pool=immediate_pool)
    qtbot.addWidget(widget)
    return widget


def test_initial_card_is_generated(tab):
    assert tab.assets.is_preloaded
    assert tab.last_png is not None
    assert tab.last_png.startswith(PNG_SIGNATURE)
    assert tab.download_btn.isEnabled()
    assert not tab.uses_custom_position()


def test_form_edits_are_debounced_into_card_data(qtbot, tab):
    tab.name_edit.setText("Pikachu")
    tab.retreat_combo.setCurrentIndex(2)
    assert tab.card_data.name == "MissingNo."

    qtbot.waitUntil(lambda: tab.card_data.name == "Pikachu", timeout=2000)
    assert tab.card_data.retreat_cost == "2"


def test_sliders_update_labels_and_fields(qtbot, tab):
    tab.length_slider.setValue(55)
    tab.weight_slider.setValue(150)

    assert tab.length_label.text() == "4'7\""
    assert tab.weight_label.text() == "58 lbs"
    qtbot.waitUntil(lambda: tab.card_data.weight == "58", timeout=2000)
    assert tab.card_data.length == "4'7\""


def test_flavor_text_is_truncated(tab):
    tab.flavor_edit.setPlainText("x" * 200)
    assert len(tab.flavor_edit.toPlainText()) == 120


def test_uploading_a_photo_resets_position_to_fill(tab):
    photo = RasterImage(Image.new("RGBA", (800, 400), (0, 120, 255, 255)))
    previous = tab.last_png

    tab.set_source_image(photo)

    assert tab.position_state.default.scale == pytest.approx(fill_scale((800, 400)))
    assert tab.position_state.current == tab.position_state.default
    assert tab.clear_btn.isEnabled()
    assert tab.last_png != previous


def test_positioning_suppresses_generation_until_turned_off(tab, immediate_pool):
    tab.positioning_check.setChecked(True)
    assert tab.controller.is_enabled()
    assert tab.scheduler.is_suppressed()
    assert tab.reset_position_btn.isEnabled()
    started = len(immediate_pool.started)

    tab.controller.wheel(120)
    tab._commit_position()
    assert len(immediate_pool.started) == started

    tab.positioning_check.setChecked(False)

    assert not tab.scheduler.is_suppressed()
    assert len(immediate_pool.started) == started + 1
    assert tab.uses_custom_position()


def test_reset_position_restores_default(tab):
    tab.positioning_check.setChecked(True)
    tab.controller.wheel(-120)
    assert tab.position_state.is_customized()

    tab.reset_position_btn.click()

    assert not tab.position_state.is_customized()
    tab.positioning_check.setChecked(False)
    assert not tab.uses_custom_position()


def test_download_writes_last_card(tab, tmp_path, monkeypatch):
    target = tmp_path / "out" / "card.png"
    target.parent.mkdir()

    class FakeDialog:
        @staticmethod
        def getSaveFileName(parent, caption, default_name, file_filter):
            assert default_name == "MissingNo..png"
            return str(target), "PNG Image (*.png)"

    monkeypatch.setattr(card_creator_tab, "QFileDialog", FakeDialog)

    tab._download_card()

    assert target.read_bytes() == tab.last_png


def test_generation_failure_keeps_previous_card(tab, card_settings):
    previous = tab.last_png
    (card_settings.assets_dir / "fire.png").unlink()

    tab.type_combo.setCurrentIndex(tab.type_combo.findData("fire"))
    tab._commit_card_data()

    assert tab.last_png == previous
    assert "Generation failed" in tab.status_label.text()


class HoldingPool:
    """Thread pool stand-in that keeps workers until told to run them."""

    def __init__(self):
        self.held = []

    def start(self, runnable):
        self.held.append(runnable)

    def run_next(self):
        self.held.pop(0).run()


@pytest.fixture
def held_tab(qtbot, card_settings, assets):
    pool = HoldingPool()
    widget = CardCreatorTab(card_settings, assets, pool=pool)
    qtbot.addWidget(widget)
    pool.run_next()
    return widget, pool


def test_download_disabled_while_generating(held_tab, tmp_path, monkeypatch):
    tab, pool = held_tab
    assert tab.download_btn.isEnabled()
    saved = []

    class FakeDialog:
        @staticmethod
        def getSaveFileName(parent, caption, default_name, file_filter):
            saved.append(default_name)
            return str(tmp_path / default_name), "PNG Image (*.png)"

    monkeypatch.setattr(card_creator_tab, "QFileDialog", FakeDialog)

    tab.name_edit.setText("Pikachu")
    tab._commit_card_data()

    assert tab.scheduler.is_running()
    assert not tab.download_btn.isEnabled()
    tab._download_card()
    assert saved == []

    pool.run_next()

    assert tab.download_btn.isEnabled()
    tab._download_card()
    assert saved == ["Pikachu.png"]
    assert (tmp_path / "Pikachu.png").read_bytes() == tab.last_png


def test_download_disabled_during_follow_up_generation(held_tab):
    tab, pool = held_tab

    tab.name_edit.setText("Pikachu")
    tab._commit_card_data()
    tab.name_edit.setText("Raichu")
    tab._commit_card_data()
    assert tab.scheduler.has_pending()

    pool.run_next()

    # The stale result is dropped and the follow-up is now in flight
    assert tab.scheduler.is_running()
    assert not tab.download_btn.isEnabled()

    pool.run_next()
    assert tab.download_btn.isEnabled()
    assert tab.last_card_name == "Raichu"


def test_failed_generation_keeps_name_of_previous_card(tab, card_settings, tmp_path, monkeypatch):
    saved = []

    class FakeDialog:
        @staticmethod
        def getSaveFileName(parent, caption, default_name, file_filter):
            saved.append(default_name)
            return "", ""

    monkeypatch.setattr(card_creator_tab, "QFileDialog", FakeDialog)
    (card_settings.assets_dir / "fire.png").unlink()

    tab.name_edit.setText("Charmander")
    tab.type_combo.setCurrentIndex(tab.type_combo.findData("fire"))
    tab._commit_card_data()

    assert tab.download_btn.isEnabled()
    tab._download_card()
    assert saved == ["MissingNo..png"]
