"""
World topology reading.

The TopoJSON document is checked for the shape the map relies on (a
Topology holding the requested object, well-formed arcs and transform),
then handed to geopandas, whose TopoJSON driver does the arc decoding.
Anything malformed surfaces as TopologyError.
"""

import io
import logging
from typing import Any, Dict

import geopandas as gpd

from .errors import TopologyError

logger = logging.getLogger(__name__)

ARC_GEOMETRIES = ("LineString", "MultiLineString", "Polygon", "MultiPolygon")
POINT_GEOMETRIES = ("Point", "MultiPoint")


def _check_pair(value: Any, what: str) -> None:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise TopologyError(f"Topology {what} must be a pair of numbers")
    if not all(isinstance(v, (int, float)) for v in value):
        raise TopologyError(f"Topology {what} must be a pair of numbers")


def _check_member(member: Any, arc_count: int) -> None:
    if not isinstance(member, dict):
        raise TopologyError(f"Topology geometry must be an object: {member!r}")

    kind = member.get("type")
    if kind is None:
        return
    if kind in POINT_GEOMETRIES:
        if "coordinates" not in member:
            raise TopologyError(f"{kind} {member.get('id')} has no coordinates")
        return
    if kind not in ARC_GEOMETRIES:
        raise TopologyError(f"Unsupported geometry type: {kind}")
    if not isinstance(member.get("arcs"), list):
        raise TopologyError(f"{kind} {member.get('id')} has no arcs")

    stack = list(member["arcs"])
    while stack:
        item = stack.pop()
        if isinstance(item, list):
            stack.extend(item)
        elif not isinstance(item, int) or not -arc_count <= item < arc_count:
            raise TopologyError(f"Arc index {item!r} out of range in {member.get('id')}")


def validate_topology(topology: Any, object_name: str) -> None:
    """Raises TopologyError unless `topology` can be read as `object_name` features."""
    if not isinstance(topology, dict) or topology.get("type") != "Topology":
        raise TopologyError("Not a TopoJSON Topology")

    arcs = topology.get("arcs")
    if not isinstance(arcs, list):
        raise TopologyError("Topology has no arcs")

    transform = topology.get("transform")
    if transform is not None:
        if not isinstance(transform, dict):
            raise TopologyError("Topology transform must be an object")
        _check_pair(transform.get("scale"), "transform scale")
        _check_pair(transform.get("translate"), "transform translate")

    objects = topology.get("objects")
    if not isinstance(objects, dict) or object_name not in objects:
        raise TopologyError(f"Topology has no '{object_name}' object")

    obj = objects[object_name]
    if not isinstance(obj, dict):
        raise TopologyError(f"Topology object '{object_name}' is malformed")
    if obj.get("type") == "GeometryCollection":
        members = obj.get("geometries")
        if not isinstance(members, list):
            raise TopologyError(f"'{object_name}' has no geometries")
    else:
        members = [obj]

    for member in members:
        _check_member(member, len(arcs))


def read_countries(raw: bytes, object_name: str) -> gpd.GeoDataFrame:
    """Reads one topology object as a GeoDataFrame with `id`, `name` and `geometry`."""
    try:
        frame = gpd.read_file(io.BytesIO(raw), layer=object_name)
    except (RuntimeError, ValueError, OSError) as e:
        raise TopologyError(f"Could not read '{object_name}' from topology: {e}") from e

    for column in ("id", "name"):
        if column not in frame.columns:
            frame[column] = None
    frame = frame[["id", "name", "geometry"]]
    if frame.crs is None:
        frame = frame.set_crs("EPSG:4326")

    logger.info(f"Read {len(frame)} features from '{object_name}'")
    return frame
