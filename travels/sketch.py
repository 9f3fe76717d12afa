"""
Hand-drawn ("hachure") fills for projected country shapes.

Hachure lines are parallel strokes at a fixed angle and spacing, clipped to
the polygon interior. Each stroke gets a bit of endpoint jitter and a bowed
midpoint so the fill looks sketched, while the country border is drawn
separately as an exact path.
"""

import math
import zlib
from dataclasses import dataclass
from typing import List, Tuple

import numpy as np
import shapely
from shapely import affinity
from shapely.geometry import LineString, MultiLineString
from shapely.geometry.base import BaseGeometry

from .projection import fmt_number

MAX_RANDOMNESS_OFFSET = 2.0


@dataclass(frozen=True)
class SketchOptions:
    fill: str
    hachure_angle: float = 60
    hachure_gap: float = 4
    fill_weight: float = 0.5
    roughness: float = 0.4
    bowing: float = 0.2


def seed_for(key: str) -> int:
    """Stable RNG seed for a feature, so re-renders draw the same strokes."""
    return zlib.crc32(key.encode("utf-8"))


def _segments(geom: BaseGeometry) -> List[LineString]:
    if geom.is_empty:
        return []
    if geom.geom_type == "LineString":
        return [geom]
    if hasattr(geom, "geoms"):
        out = []
        for part in geom.geoms:
            out.extend(_segments(part))
        return out
    # Points and other touch-only leftovers
    return []


def hachure_lines(geom: BaseGeometry, angle: float, gap: float) -> List[LineString]:
    """Parallel lines `gap` apart at `angle` degrees, clipped to the shape."""
    if geom is None or geom.is_empty or gap <= 0:
        return []
    if not geom.is_valid:
        geom = shapely.make_valid(geom)

    # Rotate the shape so the hachure becomes horizontal, clip, rotate back
    origin = geom.centroid
    flat = affinity.rotate(geom, -angle, origin=origin)
    minx, miny, maxx, maxy = flat.bounds

    ys = np.arange(miny + gap / 2, maxy, gap)
    if len(ys) == 0:
        return []
    scan = MultiLineString([[(minx - 1, y), (maxx + 1, y)] for y in ys])
    clipped = flat.intersection(scan)

    lines = [affinity.rotate(seg, angle, origin=origin) for seg in _segments(clipped)]
    return [line for line in lines if line.length > 0]


def rough_line(p0: Tuple[float, float], p1: Tuple[float, float], roughness: float, bowing: float, rng) -> str:
    """A single sketched stroke as a quadratic curve segment."""
    (x1, y1), (x2, y2) = p0, p1
    offset = roughness * MAX_RANDOMNESS_OFFSET
    length = math.hypot(x2 - x1, y2 - y1)
    # Long strokes wobble less
    if length < 200:
        gain = 1.0
    elif length > 500:
        gain = 0.4
    else:
        gain = -0.0016668 * length + 1.233334
    offset *= gain

    def jitter() -> float:
        return float(rng.uniform(-offset, offset))

    mid_dx = bowing * MAX_RANDOMNESS_OFFSET * (y2 - y1) / 200
    mid_dy = bowing * MAX_RANDOMNESS_OFFSET * (x1 - x2) / 200
    cx = (x1 + x2) / 2 + mid_dx + jitter()
    cy = (y1 + y2) / 2 + mid_dy + jitter()

    sx, sy = x1 + jitter(), y1 + jitter()
    ex, ey = x2 + jitter(), y2 + jitter()
    return f"M{fmt_number(sx)},{fmt_number(sy)}Q{fmt_number(cx)},{fmt_number(cy)} {fmt_number(ex)},{fmt_number(ey)}"


def hachure_path(geom: BaseGeometry, options: SketchOptions, rng) -> str:
    """Path data for the whole hachure layer of one shape ("" if nothing fits)."""
    strokes = []
    for line in hachure_lines(geom, options.hachure_angle, options.hachure_gap):
        coords = list(line.coords)
        strokes.append(rough_line(coords[0], coords[-1], options.roughness, options.bowing, rng))
    return "".join(strokes)
