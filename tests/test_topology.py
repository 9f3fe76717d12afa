from __future__ import annotations

import copy
import json

import pytest

from travels.errors import TopologyError
from travels.render import pad_id
from travels.topology import read_countries, validate_topology

from .conftest import TOPOLOGY


def _broken(edit) -> dict:
    topology = copy.deepcopy(TOPOLOGY)
    edit(topology)
    return topology


def _members(topology: dict) -> list:
    return topology["objects"]["countries"]["geometries"]


def test_valid_topology_passes() -> None:
    validate_topology(TOPOLOGY, "countries")


@pytest.mark.parametrize(
    "edit",
    [
        lambda t: _members(t)[0].pop("arcs"),
        lambda t: t["transform"].pop("scale"),
        lambda t: t.update(transform={"scale": [1], "translate": [0, 0]}),
        lambda t: _members(t)[1].update(arcs=[[42]]),
        lambda t: _members(t)[1].update(arcs=[["0"]]),
        lambda t: _members(t)[0].update(type="Circle"),
        lambda t: t.pop("arcs"),
        lambda t: t["objects"]["countries"].pop("geometries"),
    ],
)
def test_malformed_topology_is_rejected(edit) -> None:
    with pytest.raises(TopologyError):
        validate_topology(_broken(edit), "countries")


def test_reversed_arc_index_in_range_is_accepted() -> None:
    topology = _broken(lambda t: _members(t)[0].update(arcs=[[~0]]))
    validate_topology(topology, "countries")


def test_missing_object_raises() -> None:
    with pytest.raises(TopologyError):
        validate_topology(TOPOLOGY, "land")


def test_non_topology_raises() -> None:
    with pytest.raises(TopologyError):
        validate_topology({"type": "FeatureCollection", "features": []}, "countries")


def test_reads_countries_with_ids_and_names() -> None:
    frame = read_countries(json.dumps(TOPOLOGY).encode(), "countries")

    assert list(frame.columns) == ["id", "name", "geometry"]
    by_id = {pad_id(raw_id): (name, geom) for raw_id, name, geom in zip(frame["id"], frame["name"], frame.geometry)}
    assert {"380", "840", "250", "032"} <= set(by_id)

    name, italy = by_id["380"]
    assert name == "Italy"
    assert italy.bounds == pytest.approx((10.0, 40.0, 14.0, 44.0))
    assert by_id["250"][1].geom_type == "MultiPolygon"
    assert frame.crs is not None


def test_unreadable_topology_raises() -> None:
    with pytest.raises(TopologyError):
        read_countries(b"this is not topojson", "countries")
