import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import requests
from pyproj.exceptions import ProjError

from .codes import build_country_codes
from .config import MapConfig
from .errors import TravelsMapError
from .loader import load_world
from .models import TravelsData
from .page import Page, render_page_template
from .theme import DARK, LIGHT, ThemeResolver
from .view import MapView

logger = logging.getLogger("travels")


def _write_atomic(path: Path, text: str) -> None:
    tmp = path.with_suffix(path.suffix + ".tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        f.write(text)
    tmp.replace(path)


def _theme(args, page: Page) -> ThemeResolver:
    if args.css:
        with open(args.css, "r", encoding="utf-8") as f:
            return ThemeResolver(f.read())
    return ThemeResolver(page.stylesheet_text())


async def render_command(args, cfg: MapConfig) -> int:
    page = Page.from_file(args.page, cfg)
    view = MapView(page, cfg, theme=_theme(args, page), scheme=args.scheme)
    if not await view.start():
        return 1

    out_dir = Path(args.out or cfg.OUTPUT_DIR)
    out_dir.mkdir(parents=True, exist_ok=True)
    _write_atomic(out_dir / cfg.HTML_FILE, page.html())
    _write_atomic(out_dir / cfg.SVG_FILE, view.svg_markup())
    logger.info(f"Saved {cfg.HTML_FILE} and {cfg.SVG_FILE} to {out_dir}")
    return 0


def page_command(args, cfg: MapConfig) -> int:
    with open(args.data, "r", encoding="utf-8") as f:
        payload = json.load(f)
    # Validate before writing anything
    TravelsData.from_payload(payload)
    css = args.css.read_text(encoding="utf-8") if args.css else ""
    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    _write_atomic(out, render_page_template(payload, css, cfg))
    logger.info(f"Saved page to {out}")
    return 0


def codes_command(args, cfg: MapConfig) -> int:
    build_country_codes(cfg, Path(args.out) if args.out else None)
    return 0


def preview_command(args, cfg: MapConfig) -> int:
    # Imported here so matplotlib is only loaded for raster output
    from .preview import PreviewRenderer

    page = Page.from_file(args.page, cfg)
    data = TravelsData.from_page(page.soup)
    world = asyncio.run(load_world(cfg))
    if world is None:
        return 1
    colors = _theme(args, page).resolve(args.scheme)
    PreviewRenderer(cfg, data, world, colors).save(Path(args.out or cfg.OUTPUT_DIR))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="travels", description="Render the travels map.")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="render the map into the page and an SVG file")
    render.add_argument("--page", type=Path, required=True, help="HTML page with the travels payload")
    render.add_argument("--css", type=Path, help="stylesheet with the theme custom properties")
    render.add_argument("--scheme", choices=[LIGHT, DARK], default=LIGHT)
    render.add_argument("--out", type=Path, help="output directory")

    page = sub.add_parser("page", help="build an HTML page embedding a travels dataset")
    page.add_argument("--data", type=Path, required=True, help="travels JSON (countries + settings)")
    page.add_argument("--css", type=Path, help="stylesheet to inline")
    page.add_argument("--out", type=Path, required=True, help="output HTML path")

    codes = sub.add_parser("codes", help="build the numeric -> alpha-3 country code mapping")
    codes.add_argument("--out", type=Path, help="output JSON path")

    preview = sub.add_parser("preview", help="write WebP/PNG raster previews")
    preview.add_argument("--page", type=Path, required=True)
    preview.add_argument("--css", type=Path)
    preview.add_argument("--scheme", choices=[LIGHT, DARK], default=LIGHT)
    preview.add_argument("--out", type=Path)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    cfg = MapConfig.from_env()

    try:
        if args.command == "render":
            return asyncio.run(render_command(args, cfg))
        if args.command == "page":
            return page_command(args, cfg)
        if args.command == "codes":
            return codes_command(args, cfg)
        return preview_command(args, cfg)
    except (TravelsMapError, OSError, ValueError, ProjError, requests.RequestException) as e:
        logger.error(f"❌ {args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
