import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import numpy as np

from .config import MapConfig
from .models import Classification, CountryRecord, TravelsData, classify
from .projection import NaturalEarthProjection, svg_path
from .sketch import SketchOptions, hachure_path, seed_for
from .surface import DrawSurface
from .theme import ThemeColors

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CountryStyle:
    fill: str
    stroke: str
    hachure_angle: Optional[float] = None


@dataclass
class RenderedCountry:
    country_id: str
    alpha3: Optional[str]
    classification: Classification
    style: CountryStyle
    node: Any
    record: Optional[CountryRecord] = None

    @property
    def is_home(self) -> bool:
        return self.classification is Classification.HOME

    @property
    def interactive(self) -> bool:
        return self.classification.interactive


# Padded feature id -> what is currently drawn for it
RenderState = Dict[str, RenderedCountry]


def pad_id(raw_id: Any, width: int = 3) -> Optional[str]:
    """World topology ids are ISO numeric codes, stored without leading zeros (32 -> "032")."""
    if raw_id is None:
        return None
    if isinstance(raw_id, float):
        if math.isnan(raw_id):
            return None
        if raw_id.is_integer():
            raw_id = int(raw_id)
    return str(raw_id).zfill(width)


def resolve(
    raw_id: Any, numeric_to_alpha3: Dict[str, str], data: TravelsData
) -> Tuple[Optional[str], Optional[CountryRecord], Classification]:
    padded = pad_id(raw_id)
    alpha3 = numeric_to_alpha3.get(padded) if padded else None
    record = data.get(alpha3)
    return alpha3, record, classify(record)


class RenderEngine:
    """Draws one node per country feature; every pass starts from an empty group."""

    def __init__(self, cfg: MapConfig, projection: NaturalEarthProjection) -> None:
        self.cfg = cfg
        self.projection = projection

    def style_for(self, classification: Classification, colors: ThemeColors) -> CountryStyle:
        if classification is Classification.HOME:
            return CountryStyle(colors.home, colors.home_stroke, self.cfg.HOME_HACHURE_ANGLE)
        if classification is Classification.VISITED:
            return CountryStyle(colors.visited, colors.visited_stroke, self.cfg.VISITED_HACHURE_ANGLE)
        return CountryStyle(colors.land, colors.land_stroke)

    def render(self, state, surface: DrawSurface, group: Any) -> RenderState:
        """Clears `group` and redraws every feature of `state.world`."""
        surface.clear(group)
        rendered: RenderState = {}
        if state.world is None:
            return rendered

        features = state.world.features
        skipped = 0
        # iterrows() would turn missing geometries into NaN
        for index, raw_id, geom in zip(features.index, features["id"], features.geometry):
            alpha3, record, classification = resolve(raw_id, state.world.numeric_to_alpha3, state.data)

            projected = self.projection.project(geom)
            path_data = svg_path(projected)
            if not path_data:
                skipped += 1
                continue

            key = pad_id(raw_id) or f"feature-{index}"
            if key in rendered:
                key = f"{key}-{index}"

            style = self.style_for(classification, state.colors)
            css_class = f"country {classification.value}" if classification.interactive else "country"
            attrs = {"data-id": key, "data-code": alpha3, "class": css_class}

            if classification.interactive:
                node = surface.create_group(group, {**attrs, "style": "cursor: pointer"})

                # Layer 1: sketchy hachure fill, no outline
                options = SketchOptions(
                    fill=style.fill,
                    hachure_angle=style.hachure_angle,
                    hachure_gap=self.cfg.HACHURE_GAP,
                    fill_weight=self.cfg.FILL_WEIGHT,
                    roughness=self.cfg.ROUGHNESS,
                    bowing=self.cfg.BOWING,
                )
                fill_layer = surface.create_group(node, {"class": "hachure"})
                rng = np.random.default_rng(seed_for(key))
                fill_d = hachure_path(projected, options, rng)
                if fill_d:
                    surface.create_path(
                        fill_layer,
                        fill_d,
                        {"fill": "none", "stroke": style.fill, "stroke-width": options.fill_weight},
                    )

                # Layer 2: exact border on top
                surface.create_path(
                    node,
                    path_data,
                    {"fill": "none", "stroke": style.stroke, "stroke-width": self.cfg.BORDER_STROKE_WIDTH},
                )
            else:
                node = surface.create_path(
                    group,
                    path_data,
                    {
                        **attrs,
                        "fill": style.fill,
                        "stroke": style.stroke,
                        "stroke-width": self.cfg.DEFAULT_STROKE_WIDTH,
                    },
                )

            rendered[key] = RenderedCountry(
                country_id=key,
                alpha3=alpha3,
                classification=classification,
                style=style,
                node=node,
                record=record,
            )

        logger.debug(f"Rendered {len(rendered)} countries, skipped {skipped} without geometry")
        return rendered
