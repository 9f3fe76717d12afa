from __future__ import annotations

from travels.interaction import ViewTransform
from travels.reactor import Debouncer, RenderQueue
from travels.theme import DARK
from travels.view import MapView

from .conftest import FakeScheduler


def test_debouncer_collapses_bursts(scheduler: FakeScheduler) -> None:
    calls = []
    debounced = Debouncer(scheduler, 0.25, lambda: calls.append(scheduler.now()))

    for _ in range(3):
        debounced()
        scheduler.advance(0.1)
    assert calls == []
    assert debounced.pending

    scheduler.advance(0.2)
    assert len(calls) == 1
    assert not debounced.pending


def test_debouncer_cancel(scheduler: FakeScheduler) -> None:
    calls = []
    debounced = Debouncer(scheduler, 0.25, lambda: calls.append(1))
    debounced()
    debounced.cancel()
    scheduler.advance(1)
    assert calls == []


def test_render_queue_serves_requests_made_during_a_render() -> None:
    calls = []

    def render() -> None:
        calls.append(queue.running)
        if len(calls) == 1:
            # Two requests while running collapse into one follow-up pass
            queue.request()
            queue.request()

    queue = RenderQueue(render)
    queue.request()

    assert calls == [True, True]
    assert not queue.running


def test_resize_burst_renders_once(view: MapView, scheduler: FakeScheduler, monkeypatch) -> None:
    renders = []
    original = view.engine.render

    def counting_render(*args, **kwargs):
        renders.append(1)
        return original(*args, **kwargs)

    monkeypatch.setattr(view.engine, "render", counting_render)
    view.zoom.scale_to(2)

    view.on_resize(800, 400)
    view.on_resize(700, 350)
    view.on_resize(600, 300)
    scheduler.advance(0.1)
    assert renders == []

    scheduler.advance(0.3)

    assert len(renders) == 1
    assert view.svg["viewBox"] == "0 0 600 300"
    assert view.svg["width"] == "600"
    assert (view.state.width, view.state.height) == (600, 300)
    assert view.projection.scale == 600 / 5.5
    assert view.state.transform == ViewTransform.identity()
    assert set(view.state.render_state) == {"380", "840", "250", "032"}


def test_theme_change_recolors_and_keeps_zoom(view: MapView) -> None:
    view.zoom.scale_to(2)

    view.page.set_color_scheme(DARK)

    assert view.state.scheme == DARK
    assert view.state.transform.k == 2
    assert view.group["transform"].endswith("scale(2)")
    usa = view.state.render_state["840"]
    assert usa.style.fill == "#ff8855"
    assert usa.node.find("g").find("path")["stroke"] == "#ff8855"
    assert view.state.render_state["250"].node["fill"] == "#222222"
    # Interactions are rebound to the new nodes
    assert view.page.listeners("country:840", "click") == 1
