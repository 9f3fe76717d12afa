"""
Travels map component.

Startup runs one way: read the payload, mount the SVG, load the world data,
render, bind interactions. After that the map is idle and only reacts to
events: resize (debounced), color-scheme change, zoom controls, pointer
events on countries and modal dismissal.

Resize and theme change both rebuild every country node. A resize also
refits the projection to the new container and resets the zoom to the
identity, because the zoom baseline moved. A theme change keeps the current
zoom.
"""

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

from pyproj.exceptions import ProjError
from shapely.errors import ShapelyError

from .config import MapConfig
from .errors import PayloadError
from .interaction import InteractionLayer, PointerEvent, ViewTransform, ZoomBehavior
from .loader import WorldData, load_world
from .models import TravelsData
from .page import Page
from .presenter import ModalPresenter, ModalState, Tooltip
from .projection import NaturalEarthProjection
from .reactor import Debouncer, RenderQueue, Scheduler
from .render import RenderEngine, RenderState
from .surface import SoupSurface
from .theme import LIGHT, ThemeColors, ThemeResolver

logger = logging.getLogger(__name__)

Loader = Callable[[MapConfig], Awaitable[Optional[WorldData]]]


@dataclass
class MapViewState:
    """
    Everything the map shares between callbacks. Each field has one writer:
    colors/scheme - theme reactor, world - loader (once), transform - zoom,
    render_state - render engine, modal - presenter, width/height - resize.
    """

    data: TravelsData
    colors: ThemeColors
    width: int
    height: int
    scheme: str = LIGHT
    world: Optional[WorldData] = None
    transform: ViewTransform = field(default_factory=ViewTransform.identity)
    render_state: RenderState = field(default_factory=dict)
    modal: ModalState = field(default_factory=ModalState)


class MapView:
    def __init__(
        self,
        page: Page,
        cfg: Optional[MapConfig] = None,
        scheduler: Optional[Scheduler] = None,
        theme: Optional[ThemeResolver] = None,
        scheme: str = LIGHT,
        loader: Optional[Loader] = None,
    ) -> None:
        self.page = page
        self.cfg = cfg or MapConfig()
        self.scheduler = scheduler or Scheduler()
        self.theme = theme or ThemeResolver(page.stylesheet_text())
        self.initial_scheme = scheme
        self._loader = loader

        self.state: Optional[MapViewState] = None
        self.surface = SoupSurface(page.soup)
        self.svg = None
        self.group = None
        self.projection: Optional[NaturalEarthProjection] = None
        self.engine: Optional[RenderEngine] = None
        self.zoom: Optional[ZoomBehavior] = None
        self.tooltip = Tooltip(page, self.cfg.TOOLTIP_OFFSET)
        self.presenter = ModalPresenter(page)
        self.interactions = InteractionLayer(page, self.surface, self.tooltip, self.presenter)
        self.queue = RenderQueue(self._render_now)
        self.debounced_resize = Debouncer(
            self.scheduler, self.cfg.RESIZE_DEBOUNCE_MS / 1000, self._apply_resize
        )

    # --- startup ---
    async def start(self) -> bool:
        """Mounts and renders the map. Returns False (after logging) when it can't."""
        try:
            data = TravelsData.from_page(self.page.soup)
        except PayloadError as e:
            logger.error(f"❌ Travels payload unusable: {e}")
            return False

        width, height = self.page.container_size()
        self.state = MapViewState(
            data=data,
            colors=self.theme.resolve(self.initial_scheme),
            width=width,
            height=height,
            scheme=self.initial_scheme,
        )
        self.presenter.state = self.state.modal

        try:
            self._mount()
        except (ProjError, ValueError) as e:
            logger.error(f"❌ Could not set up the map projection: {e}")
            self._unmount()
            return False

        loader = self._loader or load_world
        world = await loader(self.cfg)
        if world is None:
            logger.error("Map data unavailable, leaving the map container empty.")
            self._unmount()
            return False

        self.state.world = world
        try:
            self.queue.request()
        except (ProjError, ShapelyError, ValueError) as e:
            logger.error(f"❌ Map render failed: {e}")
            self.interactions.unbind()
            self.state.world = None
            self.state.render_state = {}
            self._unmount()
            return False
        self._wire()
        logger.info(f"Travels map ready: {len(self.state.render_state)} countries drawn.")
        return True

    def _mount(self) -> None:
        state = self.state
        self.svg = self.surface.create_svg(self.page.container, state.width, state.height)
        self.group = self.surface.create_group(self.svg)
        self.projection = NaturalEarthProjection(
            state.width, state.height, state.data.settings, self.cfg.SCALE_DIVISOR
        )
        self.engine = RenderEngine(self.cfg, self.projection)
        self.zoom = ZoomBehavior(
            self.scheduler,
            self._on_zoom,
            (state.width, state.height),
            extent=self.cfg.SCALE_EXTENT,
            duration_ms=self.cfg.TRANSITION_MS,
            frame_ms=self.cfg.FRAME_MS,
        )

    def _unmount(self) -> None:
        if self.svg is not None:
            self.svg.decompose()
        self.svg = self.group = None

    def _wire(self) -> None:
        page = self.page
        self.zoom.attach(page, page.container.get("id"))
        page.on("zoom-in", "click", lambda _e: self.zoom.scale_by(self.cfg.ZOOM_IN_FACTOR))
        page.on("zoom-out", "click", lambda _e: self.zoom.scale_by(self.cfg.ZOOM_OUT_FACTOR))
        page.on("zoom-reset", "click", lambda _e: self.zoom.reset())
        self.presenter.wire()
        page.on("window", "resize", lambda _e: self.debounced_resize())
        page.on("color-scheme", "change", self.on_color_scheme_change)

    # --- rendering ---
    def _render_now(self) -> None:
        self.interactions.unbind()
        self.tooltip.hide()
        self.state.render_state = self.engine.render(self.state, self.surface, self.group)
        self.interactions.bind(self.state.render_state)

    def render(self) -> None:
        if self.state is None or self.state.world is None:
            return
        self.queue.request()

    def _on_zoom(self, transform: ViewTransform) -> None:
        self.state.transform = transform
        self.surface.set_attributes(self.group, {"transform": transform.to_svg()})

    # --- reactors ---
    def on_resize(self, width: int, height: int) -> None:
        self.page.resize(width, height)

    def _apply_resize(self) -> None:
        width, height = self.page.container_size()
        self.state.width, self.state.height = width, height
        self.surface.set_attributes(
            self.svg, {"width": width, "height": height, "viewBox": f"0 0 {width} {height}"}
        )
        self.projection.fit(width, height)
        self.zoom.set_size(width, height)
        self.zoom.reset(animate=False)
        logger.debug(f"Resized map to {width}x{height}")
        self.render()

    def on_color_scheme_change(self, scheme: str) -> None:
        self.state.scheme = scheme
        self.state.colors = self.theme.resolve(scheme)
        logger.debug(f"Color scheme changed to {scheme}")
        self.render()

    # --- pointer input ---
    def dispatch_pointer(self, country_id: str, kind: str, event: Optional[PointerEvent] = None) -> int:
        return self.page.dispatch(InteractionLayer.target_for(country_id), kind, event or PointerEvent())

    def svg_markup(self) -> str:
        return str(self.svg) if self.svg is not None else ""
