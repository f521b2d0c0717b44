"""
Card Creator tab.

Form for the card fields, photo upload, the photo positioning controls and
the live preview. Card generation runs in the background through a
``GenerationScheduler``; field edits and position changes are debounced
before they trigger a new render.
"""

import copy
from pathlib import Path
from typing import NamedTuple, Optional, Tuple

from PySide6.QtCore import Qt, QThreadPool
from PySide6.QtGui import QTextCursor
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QFileDialog,
    QGroupBox, QComboBox, QMessageBox, QLineEdit, QPlainTextEdit, QSlider,
    QCheckBox, QScrollArea, QFormLayout, QSizePolicy
)

from asset_cache import AssetCache
from card_compositor import CardCompositor, CardRequest
from card_data import (
    DAMAGE_VALUES, DESC_TYPE_MAX_LENGTH, ENERGY_TYPES, FLAVOR_TEXT_MAX_LENGTH,
    HP_VALUES, LENGTH_SLIDER_RANGE, MATCHUP_TYPES, MOVE_NAME_MAX_LENGTH,
    NAME_MAX_LENGTH, NONE, RETREAT_COSTS, WEIGHT_SLIDER_RANGE, CardData,
    card_filename, format_length, format_weight,
)
from card_errors import AssetLoadError
from card_geometry import LogicalPosition, RenderDimensions
from card_logging import get_logger
from card_preview_view import CardPreviewView
from card_settings import CardSettings, load_settings
from generation import Debouncer, GenerationScheduler
from interaction_controller import PositionInteractionController
from position_state import PositionState
from raster import RasterImage

logger = get_logger("tab")

IMAGE_FILTER = "Images (*.png *.jpg *.jpeg *.bmp *.gif *.webp);;All Files (*)"

RETREAT_LABELS = {"0": "none", "1": "✴", "2": "✴ ✴", "3": "✴ ✴ ✴"}


class RenderedCard(NamedTuple):
    """A generated card and the name it was rendered with."""

    png: bytes
    name: str


class CardCreatorTab(QWidget):
    """Tab for building a card from a photo and the form fields."""

    def __init__(self, settings: Optional[CardSettings] = None, assets: Optional[AssetCache] = None,
                 pool: Optional[QThreadPool] = None):
        super().__init__()

        self.settings = settings if settings is not None else load_settings()
        self.assets = assets if assets is not None else AssetCache.from_settings(self.settings)
        self.compositor = CardCompositor(self.assets)

        # Photo state - None means the placeholder is used
        self.source_image: Optional[RasterImage] = None
        self.source_path: Optional[Path] = None

        # Position state; generation reads the debounced copy
        self.position_state = PositionState()
        self.committed_position: LogicalPosition = self.position_state.current
        self.render_size = RenderDimensions(0, 0)

        # Last generated card (PNG bytes) and the name it was rendered with
        self.last_png: Optional[bytes] = None
        self.last_card_name: Optional[str] = None
        self.last_error: Optional[str] = None

        self.controller = PositionInteractionController(
            position_provider=lambda: self.position_state.current,
            default_provider=lambda: self.position_state.default,
            native_size_provider=self._native_size,
            render_size_provider=lambda: self.render_size,
            on_position_changed=self._on_position_changed,
            on_mode_changed=self._on_positioning_mode_changed,
        )

        self.scheduler = GenerationScheduler(self._render_png, self._build_request, pool=pool, parent=self)
        self.scheduler.started.connect(self._on_generation_started)
        self.scheduler.generated.connect(self._on_card_generated)
        self.scheduler.failed.connect(self._on_generation_failed)

        # Debounce timers for field edits and position changes
        self.card_debouncer = Debouncer(self.settings.card_debounce_ms, self._commit_card_data, self)
        self.position_debouncer = Debouncer(self.settings.position_debounce_ms, self._commit_position, self)

        self._setup_ui()

        self.card_data: CardData = self._read_form()
        self._pending_card_data: CardData = self.card_data

        self._preload_assets()
        self._request_generation()

    # ------------------------------------------------------------------
    # UI
    # ------------------------------------------------------------------
    def _setup_ui(self):
        """Setup the user interface."""
        layout = QHBoxLayout(self)
        layout.setContentsMargins(10, 10, 10, 10)
        layout.setSpacing(10)

        # Left panel - form
        scroll_area = QScrollArea()
        scroll_area.setWidgetResizable(True)
        scroll_area.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        scroll_area.setMinimumWidth(320)
        scroll_area.setMaximumWidth(380)

        left_panel = QWidget()
        left_layout = QVBoxLayout(left_panel)
        left_layout.setSpacing(8)
        left_layout.setContentsMargins(5, 5, 5, 5)

        left_layout.addWidget(self._build_image_group())
        left_layout.addWidget(self._build_details_group())
        left_layout.addWidget(self._build_attacks_group())
        left_layout.addWidget(self._build_matchups_group())

        self.download_btn = QPushButton("Download Card")
        self.download_btn.setMinimumHeight(36)
        self.download_btn.setEnabled(False)
        self.download_btn.clicked.connect(self._download_card)
        left_layout.addWidget(self.download_btn)

        self.status_label = QLabel("Loading")
        self.status_label.setStyleSheet("font-size: 10px; color: #888;")
        self.status_label.setWordWrap(True)
        left_layout.addWidget(self.status_label)

        left_layout.addStretch()
        scroll_area.setWidget(left_panel)
        layout.addWidget(scroll_area)

        # Right panel - preview
        self.preview_view = CardPreviewView()
        self.preview_view.set_controller(self.controller)
        self.preview_view.render_size_changed.connect(self._on_render_size_changed)
        self.preview_view.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        layout.addWidget(self.preview_view, 1)

        self.render_size = self.preview_view.render_dimensions()

    def _build_image_group(self) -> QGroupBox:
        group = QGroupBox("Image")
        group_layout = QVBoxLayout(group)
        group_layout.setSpacing(6)

        buttons = QHBoxLayout()
        self.upload_btn = QPushButton("Upload Image")
        self.upload_btn.setMinimumHeight(32)
        self.upload_btn.clicked.connect(self._upload_image)
        buttons.addWidget(self.upload_btn)

        self.clear_btn = QPushButton("Clear")
        self.clear_btn.setMinimumHeight(32)
        self.clear_btn.setEnabled(False)
        self.clear_btn.clicked.connect(self._clear_image)
        buttons.addWidget(self.clear_btn)
        group_layout.addLayout(buttons)

        self.image_info = QLabel("No image loaded")
        self.image_info.setStyleSheet("font-size: 10px; color: #888;")
        self.image_info.setWordWrap(True)
        group_layout.addWidget(self.image_info)

        self.positioning_check = QCheckBox("Enable Image Positioning")
        self.positioning_check.toggled.connect(self.controller.set_enabled)
        group_layout.addWidget(self.positioning_check)

        self.positioning_help = QLabel("Drag on the card preview to position your image.\n"
                                       "Scroll over the card to scale your image.")
        self.positioning_help.setStyleSheet("font-size: 10px; color: #888;")
        self.positioning_help.setVisible(False)
        group_layout.addWidget(self.positioning_help)

        self.reset_position_btn = QPushButton("Reset Position")
        self.reset_position_btn.setEnabled(False)
        self.reset_position_btn.clicked.connect(self.controller.reset)
        group_layout.addWidget(self.reset_position_btn)

        return group

    def _build_details_group(self) -> QGroupBox:
        group = QGroupBox("Details")
        form = QFormLayout(group)

        self.name_edit = QLineEdit(CardData.name)
        self.name_edit.setMaxLength(NAME_MAX_LENGTH)
        self.name_edit.textChanged.connect(self._on_form_changed)
        form.addRow("Name", self.name_edit)

        self.hp_combo = self._combo(HP_VALUES)
        form.addRow("HP", self.hp_combo)

        self.desc_type_edit = QLineEdit()
        self.desc_type_edit.setMaxLength(DESC_TYPE_MAX_LENGTH)
        self.desc_type_edit.textChanged.connect(self._on_form_changed)
        form.addRow("Descriptive Type", self.desc_type_edit)

        self.type_combo = self._combo(ENERGY_TYPES, [t.capitalize() for t in ENERGY_TYPES])
        form.addRow("Energy Type", self.type_combo)

        # Length / weight sliders with their formatted value
        self.length_slider = QSlider(Qt.Horizontal)
        self.length_slider.setRange(*LENGTH_SLIDER_RANGE)
        self.length_label = QLabel(format_length(LENGTH_SLIDER_RANGE[0]))
        self.length_slider.valueChanged.connect(self._on_length_changed)
        form.addRow("Length", self._with_value_label(self.length_slider, self.length_label))

        self.weight_slider = QSlider(Qt.Horizontal)
        self.weight_slider.setRange(*WEIGHT_SLIDER_RANGE)
        self.weight_label = QLabel(f"{format_weight(WEIGHT_SLIDER_RANGE[0])} lbs")
        self.weight_slider.valueChanged.connect(self._on_weight_changed)
        form.addRow("Weight", self._with_value_label(self.weight_slider, self.weight_label))

        self.flavor_edit = QPlainTextEdit()
        self.flavor_edit.setFixedHeight(64)
        self.flavor_edit.textChanged.connect(self._on_flavor_changed)
        form.addRow("Flavor Text", self.flavor_edit)

        return group

    def _build_attacks_group(self) -> QGroupBox:
        group = QGroupBox("Attacks")
        form = QFormLayout(group)

        self.move1_name_edit = QLineEdit()
        self.move1_name_edit.setMaxLength(MOVE_NAME_MAX_LENGTH)
        self.move1_name_edit.textChanged.connect(self._on_form_changed)
        form.addRow("First Attack", self.move1_name_edit)
        self.move1_dmg_combo = self._combo(DAMAGE_VALUES)
        form.addRow("Dmg", self.move1_dmg_combo)

        self.move2_name_edit = QLineEdit()
        self.move2_name_edit.setMaxLength(MOVE_NAME_MAX_LENGTH)
        self.move2_name_edit.textChanged.connect(self._on_form_changed)
        form.addRow("Second Attack", self.move2_name_edit)
        self.move2_dmg_combo = self._combo(DAMAGE_VALUES)
        form.addRow("Dmg", self.move2_dmg_combo)

        return group

    def _build_matchups_group(self) -> QGroupBox:
        group = QGroupBox("Weakness / Resistance / Retreat")
        form = QFormLayout(group)

        matchup_values = [NONE] + MATCHUP_TYPES
        matchup_labels = [v.capitalize() for v in matchup_values]
        self.weakness_combo = self._combo(matchup_values, matchup_labels)
        form.addRow("Weakness", self.weakness_combo)
        self.resistance_combo = self._combo(matchup_values, matchup_labels)
        form.addRow("Resistance", self.resistance_combo)

        self.retreat_combo = self._combo(RETREAT_COSTS, [RETREAT_LABELS[c] for c in RETREAT_COSTS])
        form.addRow("Retreat Cost", self.retreat_combo)

        return group

    def _combo(self, values, labels=None) -> QComboBox:
        combo = QComboBox()
        for value, label in zip(values, labels or values):
            combo.addItem(label, value)
        combo.currentIndexChanged.connect(self._on_form_changed)
        return combo

    @staticmethod
    def _with_value_label(slider: QSlider, label: QLabel) -> QWidget:
        container = QWidget()
        row = QHBoxLayout(container)
        row.setContentsMargins(0, 0, 0, 0)
        row.addWidget(slider, 1)
        label.setMinimumWidth(60)
        label.setStyleSheet("font-weight: bold; font-style: italic;")
        row.addWidget(label)
        return container

    # ------------------------------------------------------------------
    # Form
    # ------------------------------------------------------------------
    def _read_form(self) -> CardData:
        return CardData(
            name=self.name_edit.text(),
            type=self.type_combo.currentData(),
            desc_type=self.desc_type_edit.text(),
            flavor_text=self.flavor_edit.toPlainText(),
            hp=self.hp_combo.currentData(),
            move1_name=self.move1_name_edit.text(),
            move1_dmg=self.move1_dmg_combo.currentData(),
            move2_name=self.move2_name_edit.text(),
            move2_dmg=self.move2_dmg_combo.currentData(),
            weakness=self.weakness_combo.currentData(),
            resistance=self.resistance_combo.currentData(),
            retreat_cost=self.retreat_combo.currentData(),
            length=format_length(self.length_slider.value()),
            weight=format_weight(self.weight_slider.value()),
        )

    def _on_form_changed(self, *args):
        self._pending_card_data = self._read_form()
        self.card_debouncer.trigger()

    def _on_flavor_changed(self):
        text = self.flavor_edit.toPlainText()
        if len(text) > FLAVOR_TEXT_MAX_LENGTH:
            # Re-emits textChanged with the truncated text
            self.flavor_edit.setPlainText(text[:FLAVOR_TEXT_MAX_LENGTH])
            self.flavor_edit.moveCursor(QTextCursor.End)
            return
        self._on_form_changed()

    def _on_length_changed(self, value: int):
        self.length_label.setText(format_length(value))
        self._on_form_changed()

    def _on_weight_changed(self, value: int):
        self.weight_label.setText(f"{format_weight(value)} lbs")
        self._on_form_changed()

    def _commit_card_data(self):
        """Apply the debounced form values (called by the debounce timer)."""
        self.card_data = self._pending_card_data
        self._request_generation()

    # ------------------------------------------------------------------
    # Image
    # ------------------------------------------------------------------
    def _upload_image(self):
        """Open file dialog to choose the card photo."""
        file_path, _ = QFileDialog.getOpenFileName(self, "Upload Image", "", IMAGE_FILTER)
        if not file_path:
            return

        try:
            image = RasterImage.open(file_path)
        except Exception as e:
            logger.exception("Failed to load image %s", file_path)
            QMessageBox.critical(self, "Error", f"Failed to load image:\n{e}")
            return

        self.set_source_image(image, Path(file_path))

    def set_source_image(self, image: Optional[RasterImage], path: Optional[Path] = None):
        """Use ``image`` as the card photo (None restores the placeholder)."""
        self.source_image = image
        self.source_path = path

        if image is None:
            self.position_state.set_source(None)
            self.image_info.setText("No image loaded")
            self.clear_btn.setEnabled(False)
            self.preview_view.set_ghost(self._placeholder_or_none())
        else:
            self.position_state.set_source(image.size)
            name = path.name if path is not None else "image"
            self.image_info.setText(f"Loaded: {name}\nOriginal: {image.width}x{image.height}")
            self.clear_btn.setEnabled(True)
            self.preview_view.set_ghost(image)
            logger.info("Loaded photo %s (%dx%d)", name, image.width, image.height)

        self.position_debouncer.cancel()
        self.committed_position = self.position_state.current
        self.preview_view.set_position(self.position_state.current, self._native_size())
        self._request_generation()

    def _clear_image(self):
        self.set_source_image(None)

    def _placeholder_or_none(self) -> Optional[RasterImage]:
        try:
            return self.assets.placeholder()
        except AssetLoadError:
            logger.warning("Placeholder image unavailable", exc_info=True)
            return None

    def _native_size(self) -> Optional[Tuple[int, int]]:
        """Native size of the photo that will actually be composited."""
        if self.source_image is not None:
            return self.source_image.size
        placeholder = self._placeholder_or_none()
        return placeholder.size if placeholder is not None else None

    # ------------------------------------------------------------------
    # Positioning
    # ------------------------------------------------------------------
    def _on_render_size_changed(self, render: RenderDimensions):
        self.render_size = render

    def _on_position_changed(self, position: LogicalPosition):
        self.position_state.update(position)
        self.preview_view.set_position(position, self._native_size())
        self.position_debouncer.trigger()

    def _commit_position(self):
        """Apply the debounced position (called by the debounce timer)."""
        self.committed_position = self.position_state.current
        self._request_generation()

    def _on_positioning_mode_changed(self, enabled: bool):
        self.preview_view.set_positioning(enabled)
        self.positioning_help.setVisible(enabled)
        self.reset_position_btn.setEnabled(enabled)
        if self.positioning_check.isChecked() != enabled:
            self.positioning_check.setChecked(enabled)

        if enabled:
            self.scheduler.set_suppressed(True)
            self._update_status()
            return

        # Leaving positioning mode renders the final card right away
        self.position_debouncer.cancel()
        self.committed_position = self.position_state.current
        self.scheduler.invalidate()
        self.scheduler.set_suppressed(False)
        self._update_status()

    def uses_custom_position(self) -> bool:
        return self.position_state.is_customized(self.committed_position)

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------
    def _preload_assets(self):
        try:
            self.assets.preload()
        except AssetLoadError as e:
            logger.exception("Asset preload failed")
            self.status_label.setText(f"Some assets are missing:\n{e}")
        self.preview_view.set_ghost(self._placeholder_or_none())
        self.preview_view.set_position(self.position_state.current, self._native_size())

    def _build_request(self) -> CardRequest:
        """Capture the inputs for one render (runs on the GUI thread)."""
        return CardRequest(
            source=self.source_image,
            card_data=copy.copy(self.card_data),
            use_custom_position=self.uses_custom_position(),
            position=self.committed_position,
        )

    def _render_png(self, request: CardRequest) -> RenderedCard:
        """Render a card to PNG bytes (runs on the worker thread)."""
        return RenderedCard(self.compositor.render(request).encode("PNG"), request.card_data.name)

    def _request_generation(self):
        self.scheduler.invalidate()
        self.scheduler.request()
        self._update_status()

    def _on_generation_started(self):
        self.download_btn.setEnabled(False)

    def _on_card_generated(self, card: RenderedCard):
        self.last_png = card.png
        self.last_card_name = card.name
        self.last_error = None
        if not self.preview_view.set_card_png(card.png):
            logger.error("Generated card could not be decoded for display")
        self._update_status()

    def _on_generation_failed(self, message: str):
        # Keep showing the previous card
        self.last_error = message
        self._update_status()

    def _update_status(self):
        self.download_btn.setEnabled(self.last_png is not None and not self.scheduler.is_running())
        if self.controller.is_enabled():
            self.status_label.setText("Positioning - the card updates when positioning is turned off")
        elif self.scheduler.is_running():
            self.status_label.setText("Generating...")
        elif self.last_error is not None:
            self.status_label.setText(f"Generation failed:\n{self.last_error}")
        elif self.last_png is not None:
            self.status_label.setText("Ready")

    # ------------------------------------------------------------------
    # Download
    # ------------------------------------------------------------------
    def _download_card(self):
        """Save the last generated card as a PNG."""
        if self.last_png is None or self.scheduler.is_running():
            return

        file_path, _ = QFileDialog.getSaveFileName(
            self,
            "Download Card",
            card_filename(self.last_card_name or ""),
            "PNG Image (*.png);;All Files (*)"
        )
        if not file_path:
            return

        try:
            Path(file_path).write_bytes(self.last_png)
        except OSError as e:
            logger.exception("Failed to save card to %s", file_path)
            QMessageBox.critical(self, "Download Error", f"Failed to save card:\n{e}")
            return

        logger.info("Saved card to %s", file_path)
        self.status_label.setText(f"Saved to {file_path}")
