"""Entry point for the Card Creator: Qt window or headless render."""

import argparse
import sys
from pathlib import Path
from typing import Optional

from asset_cache import AssetCache
from card_compositor import CardCompositor
from card_data import CardData
from card_errors import CardCreatorError
from card_geometry import LogicalPosition, clamp_position, default_position
from card_logging import get_logger, setup_logging
from card_settings import CardSettings, load_settings, load_yaml
from raster import RasterImage


def render_card(settings: CardSettings, out_path: Path, card_path: Optional[Path] = None,
                photo_path: Optional[Path] = None, x: Optional[float] = None,
                y: Optional[float] = None, scale: Optional[float] = None) -> Path:
    """Render one card without a GUI and write it to ``out_path``.

    ``x``/``y``/``scale`` override the fill-and-center default; any that are
    left out keep their default value.
    """
    logger = get_logger("cli")

    card_data = CardData.from_mapping(load_yaml(card_path)) if card_path else CardData()

    assets = AssetCache.from_settings(settings)
    if photo_path:
        source = RasterImage.open(photo_path)
        default = default_position(source.size)
    else:
        source = assets.placeholder()
        default = default_position(None)

    position = clamp_position(LogicalPosition(
        default.x if x is None else x,
        default.y if y is None else y,
        default.scale if scale is None else scale,
    ))
    use_custom = any(v is not None for v in (x, y, scale)) and position != default

    card = CardCompositor(assets).generate(source, card_data, use_custom, position)

    out_path.parent.mkdir(parents=True, exist_ok=True)
    card.save(out_path)
    logger.info("Rendered %s -> %s (custom position: %s)", card_path or "default card", out_path, use_custom)
    return out_path


def run_gui(settings: CardSettings) -> int:
    from PySide6.QtWidgets import QApplication, QMainWindow, QTabWidget

    from card_creator_tab import CardCreatorTab

    app = QApplication.instance() or QApplication(sys.argv)

    window = QMainWindow()
    window.setWindowTitle("Pokemon Card Generator")
    tabs = QTabWidget()
    tabs.addTab(CardCreatorTab(settings), "Card Creator")
    window.setCentralWidget(tabs)
    window.resize(1200, 860)
    window.show()

    return app.exec()


def main(argv=None) -> int:
    setup_logging()
    logger = get_logger("cli")

    ap = argparse.ArgumentParser(description="Pokemon trading card creator")
    ap.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    sub = ap.add_subparsers(dest="command")

    render = sub.add_parser("render", help="Render a card without opening the window")
    render.add_argument("--card", type=Path, default=None, help="YAML file with the card fields")
    render.add_argument("--photo", type=Path, default=None, help="Photo for the card (placeholder if omitted)")
    render.add_argument("--x", type=float, default=None, help="Photo center x in frame units")
    render.add_argument("--y", type=float, default=None, help="Photo center y in frame units")
    render.add_argument("--scale", type=float, default=None, help="Photo scale")
    render.add_argument("--out", type=Path, required=True, help="Output PNG path")

    args = ap.parse_args(argv)

    try:
        settings = load_settings(args.config)
    except CardCreatorError as e:
        logger.error("%s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if args.command != "render":
        return run_gui(settings)

    try:
        out = render_card(settings, args.out, args.card, args.photo, args.x, args.y, args.scale)
    except (CardCreatorError, OSError) as e:
        logger.exception("Render failed")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Wrote card → {out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
