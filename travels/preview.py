import io
import logging
from pathlib import Path
from typing import Dict, Tuple

import matplotlib
from PIL import Image

# Force non-interactive backend (Must be done before importing pyplot)
matplotlib.use("Agg")
import geopandas as gpd
import matplotlib.pyplot as plt

from .config import MapConfig
from .loader import WorldData
from .models import Classification, TravelsData
from .projection import NaturalEarthProjection
from .render import resolve
from .theme import ThemeColors

logger = logging.getLogger(__name__)

# Matplotlib only hatches at fixed angles: "//" leans 45°, "xx" crosses
HATCHES = {
    Classification.HOME: "//",
    Classification.VISITED: "xx",
    Classification.DEFAULT: None,
}


class PreviewRenderer:
    """Raster (WebP + PNG) snapshot of the travels map, for feeds and social cards."""

    def __init__(self, cfg: MapConfig, data: TravelsData, world: WorldData, colors: ThemeColors) -> None:
        self.cfg = cfg
        self.data = data
        self.world = world
        self.colors = colors
        self.width = cfg.DEFAULT_WIDTH
        self.height = cfg.DEFAULT_HEIGHT
        self.projection = NaturalEarthProjection(
            self.width, self.height, data.settings, cfg.SCALE_DIVISOR
        )

    def projected_frame(self) -> gpd.GeoDataFrame:
        """Screen-space geometries with their classification; degenerate shapes dropped."""
        rows = []
        features = self.world.features
        for raw_id, geom in zip(features["id"], features.geometry):
            _, _, classification = resolve(raw_id, self.world.numeric_to_alpha3, self.data)
            projected = self.projection.project(geom)
            if projected is None:
                continue
            rows.append({"classification": classification.value, "geometry": projected})
        return gpd.GeoDataFrame(rows, columns=["classification", "geometry"], geometry="geometry")

    def _style(self, classification: Classification) -> Tuple[str, str]:
        if classification is Classification.HOME:
            return self.colors.home, self.colors.home_stroke
        if classification is Classification.VISITED:
            return self.colors.visited, self.colors.visited_stroke
        return self.colors.land, self.colors.land_stroke

    def figure(self) -> plt.Figure:
        frame = self.projected_frame()
        fig_width = self.cfg.IMG_WIDTH_INCHES
        fig_height = fig_width * self.height / self.width
        fig = plt.figure(figsize=(fig_width, fig_height), dpi=self.cfg.DPI)

        # Axes fill the figure 100% (No margins)
        ax = plt.Axes(fig, [0.0, 0.0, 1.0, 1.0])
        ax.set_axis_off()
        fig.add_axes(ax)
        fig.patch.set_facecolor(self.colors.water)

        # Draw order: plain land, then visited, then home on top
        for zorder, classification in enumerate(
            (Classification.DEFAULT, Classification.VISITED, Classification.HOME), start=1
        ):
            subset = frame[frame["classification"] == classification.value]
            if subset.empty:
                continue
            fill, stroke = self._style(classification)
            hatch = HATCHES[classification]
            subset.plot(
                ax=ax,
                facecolor=self.colors.land if hatch else fill,
                edgecolor=fill if hatch else stroke,
                hatch=hatch,
                linewidth=0.3,
                zorder=zorder,
            )
            if hatch:
                # Clean border over the hatched fill
                subset.boundary.plot(ax=ax, color=stroke, linewidth=0.6, zorder=zorder)

        # Lock to screen coordinates after plotting: y grows downward
        ax.set_xlim(0, self.width)
        ax.set_ylim(self.height, 0)
        return fig

    @staticmethod
    def _replace_via_tmp(image: Image.Image, target: Path, **save_kwargs) -> None:
        tmp = target.with_name(target.name + ".tmp")
        try:
            image.save(tmp, **save_kwargs)
            tmp.replace(target)
        finally:
            if tmp.exists():
                tmp.unlink()

    def _rasterize(self) -> Image.Image:
        fig = self.figure()
        try:
            buf = io.BytesIO()
            fig.savefig(buf, format="png", pad_inches=0, dpi=self.cfg.DPI)
        finally:
            plt.close(fig)
        buf.seek(0)
        with Image.open(buf) as img:
            return img.convert("RGBA")

    def save(self, out_dir: Path, name: str = "travels-map") -> Dict[str, Path]:
        """Writes `<name>.webp` at full resolution and a small palette `<name>.png` thumbnail."""
        out_dir.mkdir(parents=True, exist_ok=True)
        paths = {"webp": out_dir / f"{name}.webp", "png": out_dir / f"{name}.png"}

        try:
            image = self._rasterize()
            self._replace_via_tmp(
                image, paths["webp"], format="WEBP", quality=self.cfg.WEBP_QUALITY, method=5
            )

            size = (
                max(1, int(image.width * self.cfg.PNG_SCALE_FACTOR)),
                max(1, int(image.height * self.cfg.PNG_SCALE_FACTOR)),
            )
            thumb = image.resize(size, resample=Image.Resampling.LANCZOS).quantize(
                colors=64, method=Image.Quantize.FASTOCTREE, dither=Image.Dither.NONE
            )
            self._replace_via_tmp(thumb, paths["png"], format="PNG", optimize=True)
        except (OSError, ValueError) as e:
            logger.error(f"❌ Preview for {name} not written: {e}")
            raise

        sizes = ", ".join(f"{kind} {path.stat().st_size / 1024:.1f}KB" for kind, path in paths.items())
        logger.info(f"Preview saved to {out_dir} ({sizes})")
        return paths
