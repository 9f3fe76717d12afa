import math
from typing import Iterator, Optional

from pyproj import Transformer
from shapely import affinity
from shapely.geometry import Polygon
from shapely.geometry.base import BaseGeometry
from shapely.ops import transform as shapely_transform

from .models import MapSettings

# Natural Earth I on the mean Earth sphere; PROJ rejects a unit sphere as a
# non-Earth body. Output metres are divided by the radius to get unit-sphere
# coordinates before the screen scale is applied.
EARTH_RADIUS = 6371008.8
NATURAL_EARTH = f"+proj=natearth +R={EARTH_RADIUS} +lon_0=0 +x_0=0 +y_0=0 +no_defs"


def fmt_number(value: float) -> str:
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def _polygons(geom: BaseGeometry) -> Iterator[Polygon]:
    if geom.geom_type == "Polygon":
        yield geom
    elif hasattr(geom, "geoms"):
        for part in geom.geoms:
            yield from _polygons(part)


def ring_path(coords) -> str:
    points = list(coords)
    if len(points) > 1 and points[0] == points[-1]:
        points = points[:-1]
    head, *tail = points
    parts = [f"M{fmt_number(head[0])},{fmt_number(head[1])}"]
    parts.extend(f"L{fmt_number(x)},{fmt_number(y)}" for x, y, *_ in tail)
    return "".join(parts) + "Z"


def svg_path(geom: Optional[BaseGeometry]) -> Optional[str]:
    """Path data for the polygonal parts of an already projected geometry."""
    if geom is None or geom.is_empty:
        return None
    rings = []
    for poly in _polygons(geom):
        if poly.is_empty:
            continue
        rings.append(ring_path(poly.exterior.coords))
        rings.extend(ring_path(hole.coords) for hole in poly.interiors)
    return "".join(rings) or None


class NaturalEarthProjection:
    """
    Natural Earth projection sized to the map container.

    The scale is proportional to the container width, the configured center
    (lon, lat) lands on the middle of the container, and screen y grows
    downward.
    """

    def __init__(self, width: float, height: float, settings: MapSettings, divisor: float = 5.5) -> None:
        self.settings = settings
        self.divisor = divisor
        self._transformer = Transformer.from_crs("EPSG:4326", NATURAL_EARTH, always_xy=True)
        self._center = self._transformer.transform(settings.center_lon, settings.center_lat)
        self.fit(width, height)

    def fit(self, width: float, height: float) -> None:
        """Recomputes scale and translate for a new container size."""
        self.width = width
        self.height = height
        self.scale = width / self.divisor * self.settings.default_zoom
        self.translate = (width / 2, height / 2)

    def point(self, lon: float, lat: float):
        x, y = self._transformer.transform(lon, lat)
        cx, cy = self._center
        tx, ty = self.translate
        k = self.scale / EARTH_RADIUS
        return (tx + k * (x - cx), ty - k * (y - cy))

    def project(self, geom: Optional[BaseGeometry]) -> Optional[BaseGeometry]:
        """Projects lon/lat geometry to screen space. Degenerate input gives None."""
        if not isinstance(geom, BaseGeometry) or geom.is_empty:
            return None

        projected = shapely_transform(self._transformer.transform, geom)
        k = self.scale / EARTH_RADIUS
        cx, cy = self._center
        tx, ty = self.translate
        projected = affinity.affine_transform(projected, [k, 0, 0, -k, tx - k * cx, ty + k * cy])

        if projected.is_empty or not all(math.isfinite(v) for v in projected.bounds):
            return None
        return projected

    def path(self, geom: Optional[BaseGeometry]) -> Optional[str]:
        return svg_path(self.project(geom))
