from __future__ import annotations

from travels.models import Classification
from travels.render import pad_id
from travels.view import MapView


def _classes(node) -> set:
    value = node.get("class") or []
    return set(value.split() if isinstance(value, str) else value)


def test_pad_id() -> None:
    assert pad_id(32) == "032"
    assert pad_id(32.0) == "032"
    assert pad_id("840") == "840"
    assert pad_id(None) is None
    assert pad_id(float("nan")) is None


def test_every_feature_with_geometry_is_drawn(view: MapView) -> None:
    state = view.state.render_state
    assert set(state) == {"380", "840", "250", "032"}
    assert len(view.surface.children(view.group)) == 4


def test_countries_are_classified_and_styled(view: MapView) -> None:
    state = view.state.render_state

    italy = state["380"]
    assert italy.classification is Classification.HOME
    assert italy.style.fill == "#4a9d4a"
    assert italy.style.hachure_angle == 45

    usa = state["840"]
    assert usa.classification is Classification.VISITED
    assert usa.style.fill == "#cc4422"
    assert usa.style.hachure_angle == 60

    for key in ("250", "032"):
        assert state[key].classification is Classification.DEFAULT
        assert state[key].style.fill == "#eeeeee"


def test_interactive_countries_get_fill_and_border_layers(view: MapView) -> None:
    node = view.state.render_state["840"].node
    assert node.name == "g"
    assert _classes(node) == {"country", "visited"}
    assert node["data-code"] == "USA"
    assert "cursor: pointer" in node["style"]

    layers = view.surface.children(node)
    assert [layer.name for layer in layers] == ["g", "path"]
    hachure = layers[0].find("path")
    assert hachure["fill"] == "none"
    assert hachure["stroke"] == "#cc4422"
    assert hachure["d"].startswith("M")
    assert layers[1]["fill"] == "none"
    assert layers[1]["stroke"] == "#aa3311"


def test_plain_countries_are_single_paths(view: MapView) -> None:
    node = view.state.render_state["250"].node
    assert node.name == "path"
    assert _classes(node) == {"country"}
    assert node["fill"] == "#eeeeee"
    assert node["stroke"] == "#cccccc"
    assert node["data-code"] == "FRA"


def test_rerender_replaces_nodes_and_keeps_strokes(view: MapView) -> None:
    before = view.state.render_state["380"].node.find("g").find("path")["d"]

    view.render()

    assert len(view.surface.children(view.group)) == 4
    after = view.state.render_state["380"].node.find("g").find("path")["d"]
    assert after == before
    assert len(view.group.find_all(attrs={"data-code": "ITA"})) == 1
