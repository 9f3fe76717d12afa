import logging
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, List, Optional, Tuple

from .reactor import Scheduler
from .render import RenderedCountry, RenderState
from .surface import DrawSurface

logger = logging.getLogger(__name__)

POINTER_EVENTS = ("pointerenter", "pointermove", "pointerleave", "click")


@dataclass(frozen=True)
class PointerEvent:
    page_x: float = 0.0
    page_y: float = 0.0


@dataclass(frozen=True)
class GestureEvent:
    """Wheel, pinch or drag over the map surface. x/y is the anchor in screen pixels."""

    delta_y: float = 0.0
    factor: float = 1.0
    dx: float = 0.0
    dy: float = 0.0
    x: Optional[float] = None
    y: Optional[float] = None

    @property
    def point(self) -> Optional[Tuple[float, float]]:
        if self.x is None or self.y is None:
            return None
        return (self.x, self.y)


@dataclass(frozen=True)
class ViewTransform:
    """Pan/zoom applied to the drawing group: screen = k * point + (x, y)."""

    k: float = 1.0
    x: float = 0.0
    y: float = 0.0

    @classmethod
    def identity(cls) -> "ViewTransform":
        return cls(1.0, 0.0, 0.0)

    @property
    def is_identity(self) -> bool:
        return self == ViewTransform.identity()

    def scaled_about(self, k: float, point: Tuple[float, float]) -> "ViewTransform":
        """Rescales to `k` keeping `point` (screen coordinates) fixed."""
        px, py = point
        # The map location currently under `point`
        lx, ly = (px - self.x) / self.k, (py - self.y) / self.k
        return ViewTransform(k, px - lx * k, py - ly * k)

    def translated(self, dx: float, dy: float) -> "ViewTransform":
        return ViewTransform(self.k, self.x + dx, self.y + dy)

    def interpolate(self, other: "ViewTransform", t: float) -> "ViewTransform":
        return ViewTransform(
            self.k + (other.k - self.k) * t,
            self.x + (other.x - self.x) * t,
            self.y + (other.y - self.y) * t,
        )

    def to_svg(self) -> str:
        return f"translate({self.x:g},{self.y:g}) scale({self.k:g})"


def ease_cubic(t: float) -> float:
    """Cubic in-out easing."""
    t *= 2
    if t <= 1:
        return t * t * t / 2
    t -= 2
    return (t * t * t + 2) / 2


class Transition:
    """Animates between two transforms over `duration` seconds, one frame per tick."""

    def __init__(
        self,
        scheduler: Scheduler,
        start: ViewTransform,
        end: ViewTransform,
        duration: float,
        frame: float,
        on_frame: Callable[[ViewTransform], Any],
    ) -> None:
        self.scheduler = scheduler
        self.start = start
        self.end = end
        self.duration = duration
        self.frame = frame
        self.on_frame = on_frame
        self.done = False
        self._t0 = 0.0
        self._handle = None

    def run(self) -> "Transition":
        self._t0 = self.scheduler.now()
        if self.duration <= 0:
            self._finish()
        else:
            self._handle = self.scheduler.call_later(self.frame, self._tick)
        return self

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self.done = True

    def _tick(self) -> None:
        self._handle = None
        if self.done:
            return
        t = (self.scheduler.now() - self._t0) / self.duration
        if t >= 1:
            self._finish()
            return
        self.on_frame(self.start.interpolate(self.end, ease_cubic(t)))
        self._handle = self.scheduler.call_later(self.frame, self._tick)

    def _finish(self) -> None:
        self.done = True
        # Land on the exact target, not an interpolated approximation
        self.on_frame(self.end)


class ZoomBehavior:
    """
    Pan/zoom state for the map surface.

    Gestures (wheel, pinch, drag) apply immediately; the zoom controls run as
    short animated transitions. The scale never leaves `extent`.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        on_zoom: Callable[[ViewTransform], Any],
        size: Tuple[float, float],
        extent: Tuple[float, float] = (0.5, 8.0),
        duration_ms: int = 300,
        frame_ms: int = 16,
    ) -> None:
        self.scheduler = scheduler
        self.on_zoom = on_zoom
        self.size = size
        self.extent = extent
        self.duration = duration_ms / 1000
        self.frame = frame_ms / 1000
        self.transform = ViewTransform.identity()
        self._transition: Optional[Transition] = None

    @property
    def center(self) -> Tuple[float, float]:
        return (self.size[0] / 2, self.size[1] / 2)

    @property
    def transitioning(self) -> bool:
        return self._transition is not None and not self._transition.done

    def set_size(self, width: float, height: float) -> None:
        self.size = (width, height)

    def clamp(self, k: float) -> float:
        lo, hi = self.extent
        return max(lo, min(hi, k))

    def _apply(self, transform: ViewTransform) -> None:
        self.transform = transform
        self.on_zoom(transform)

    def interrupt(self) -> None:
        if self._transition is not None:
            self._transition.cancel()
            self._transition = None

    # --- gestures ---
    def scale_to(self, k: float, point: Optional[Tuple[float, float]] = None) -> None:
        self.interrupt()
        self._apply(self.transform.scaled_about(self.clamp(k), point or self.center))

    def wheel(self, delta_y: float, point: Optional[Tuple[float, float]] = None) -> None:
        """Scroll zoom: 500 pixels of wheel movement double or halve the scale."""
        self.scale_to(self.transform.k * 2 ** (-delta_y * 0.002), point)

    def pinch(self, factor: float, point: Optional[Tuple[float, float]] = None) -> None:
        self.scale_to(self.transform.k * factor, point)

    def drag(self, dx: float, dy: float) -> None:
        self.interrupt()
        self._apply(self.transform.translated(dx, dy))

    # --- controls ---
    def transition_to(self, target: ViewTransform, animate: bool = True) -> None:
        self.interrupt()
        if not animate:
            self._apply(target)
            return
        self._transition = Transition(
            self.scheduler, self.transform, target, self.duration, self.frame, self._apply
        ).run()

    def scale_by(self, factor: float, animate: bool = True) -> None:
        k = self.clamp(self.transform.k * factor)
        self.transition_to(self.transform.scaled_about(k, self.center), animate)

    def reset(self, animate: bool = True) -> None:
        self.transition_to(ViewTransform.identity(), animate)

    def attach(self, page, target: str) -> None:
        """Routes wheel, pinch and drag gestures on `target` to this behaviour."""
        page.on(target, "wheel", lambda e: self.wheel(e.delta_y, e.point))
        page.on(target, "pinch", lambda e: self.pinch(e.factor, e.point))
        page.on(target, "drag", lambda e: self.drag(e.dx, e.dy))


class InteractionLayer:
    """Hover, tooltip and click wiring for visited and home countries."""

    def __init__(self, page, surface: DrawSurface, tooltip, presenter) -> None:
        self.page = page
        self.surface = surface
        self.tooltip = tooltip
        self.presenter = presenter
        self._targets: List[str] = []

    @staticmethod
    def target_for(country_id: str) -> str:
        return f"country:{country_id}"

    def bind(self, render_state: RenderState) -> int:
        """Attaches pointer handlers; unvisited countries stay inert."""
        self.unbind()
        for entry in render_state.values():
            if not entry.interactive:
                continue
            target = self.target_for(entry.country_id)
            self.page.on(target, "pointerenter", partial(self._enter, entry))
            self.page.on(target, "pointermove", self._move)
            self.page.on(target, "pointerleave", self._leave)
            self.page.on(target, "click", partial(self._click, entry))
            self._targets.append(target)
        return len(self._targets)

    def unbind(self) -> None:
        for target in self._targets:
            self.page.off(target)
        self._targets = []

    def _enter(self, entry: RenderedCountry, event: PointerEvent) -> None:
        self.tooltip.show(event, entry.record, entry.is_home)
        # Keep the hovered border above overlapping neighbours
        self.surface.raise_to_top(entry.node)

    def _move(self, event: PointerEvent) -> None:
        self.tooltip.move(event)

    def _leave(self, event: PointerEvent) -> None:
        self.tooltip.hide()

    def _click(self, entry: RenderedCountry, event: PointerEvent) -> None:
        self.tooltip.hide()
        self.presenter.open_modal(entry.alpha3, entry.record)
