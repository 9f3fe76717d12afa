from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Callable, Dict, List

import pytest

from travels.config import MapConfig
from travels.loader import WorldData
from travels.page import Page, render_page_template
from travels.topology import read_countries
from travels.view import MapView

ROOT = Path(__file__).resolve().parents[1]

CSS = """
/* site palette */
:root {
  --color-site-background: #ffffff;
  --color-site-background-accented: #eeeeee;
  --color-box-borders: #cccccc;
  --color-links: #cc4422;
  --color-links-hover: #aa3311;
}
@media (prefers-color-scheme: dark) {
  :root {
    --color-site-background: #111111;
    --color-site-background-accented: #222222;
    --color-links: #ff8855;
  }
}
"""


def _square(x: int, y: int, size: int) -> List[List[int]]:
    # Delta encoded ring; with an identity transform the first point is absolute
    return [[x, y], [size, 0], [0, size], [-size, 0], [0, -size]]


TOPOLOGY: Dict[str, Any] = {
    "type": "Topology",
    "transform": {"scale": [1, 1], "translate": [0, 0]},
    "objects": {
        "countries": {
            "type": "GeometryCollection",
            "geometries": [
                {"type": "Polygon", "id": "380", "properties": {"name": "Italy"}, "arcs": [[0]]},
                {"type": "Polygon", "id": "840", "properties": {"name": "United States"}, "arcs": [[1]]},
                {"type": "MultiPolygon", "id": "250", "properties": {"name": "France"}, "arcs": [[[2]], [[3]]]},
                {"type": "Polygon", "id": 32, "properties": {"name": "Argentina"}, "arcs": [[4]]},
                {"type": None, "id": "010", "properties": {"name": "Antarctica"}},
            ],
        }
    },
    "arcs": [
        _square(10, 40, 4),
        _square(-100, 30, 10),
        _square(0, 44, 5),
        _square(-55, 2, 3),
        _square(-65, -40, 10),
    ],
}

CODES = {"380": "ITA", "840": "USA", "250": "FRA", "032": "ARG", "010": "ATA"}

EXAMPLE_PAYLOAD = {
    "settings": {"defaultZoom": 1, "centerLon": 0, "centerLat": 0},
    "countries": {
        "ITA": {"name": "Italy", "home": True},
        "USA": {"name": "United States", "visited": True},
        "FRA": {"name": "France"},
    },
}


class FakeHandle:
    def __init__(self, when: float, callback: Callable[[], Any]) -> None:
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Deterministic stand-in for the asyncio timer scheduler."""

    def __init__(self) -> None:
        self.time = 0.0
        self._timers: List[FakeHandle] = []

    def now(self) -> float:
        return self.time

    def call_later(self, delay: float, callback: Callable[[], Any]) -> FakeHandle:
        handle = FakeHandle(self.time + delay, callback)
        self._timers.append(handle)
        return handle

    @property
    def pending(self) -> int:
        return len([h for h in self._timers if not h.cancelled])

    def advance(self, seconds: float) -> None:
        end = self.time + seconds
        while True:
            due = [h for h in self._timers if not h.cancelled and h.when <= end]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self._timers.remove(handle)
            self.time = max(self.time, handle.when)
            handle.callback()
        self.time = end
        self._timers = [h for h in self._timers if not h.cancelled]


def make_loader(world):
    async def _load(cfg):
        return world

    return _load


@pytest.fixture()
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture()
def cfg() -> MapConfig:
    return MapConfig()


@pytest.fixture()
def world() -> WorldData:
    return WorldData(numeric_to_alpha3=dict(CODES), features=read_countries(json.dumps(TOPOLOGY).encode(), "countries"))


@pytest.fixture()
def page(cfg: MapConfig) -> Page:
    return Page.from_html(render_page_template(EXAMPLE_PAYLOAD, CSS, cfg), cfg)


@pytest.fixture()
def view(page: Page, cfg: MapConfig, scheduler: FakeScheduler, world: WorldData) -> MapView:
    map_view = MapView(page, cfg, scheduler=scheduler, loader=make_loader(world))
    assert asyncio.run(map_view.start())
    return map_view
