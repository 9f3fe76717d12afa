import json
import logging
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from string import Template
from typing import Any, Callable, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from .config import MapConfig
from .errors import PageError
from .models import PAYLOAD_ELEMENT_ID

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyEvent:
    key: str


def parse_style(style: str) -> Dict[str, str]:
    props = {}
    for decl in (style or "").split(";"):
        if ":" not in decl:
            continue
        name, value = decl.split(":", 1)
        props[name.strip()] = value.strip()
    return props


def format_style(props: Dict[str, str]) -> str:
    return "; ".join(f"{k}: {v}" for k, v in props.items())


class Page:
    """
    The document the map lives in, plus a small event registry.

    Targets are element ids (`zoom-in`, and `travels-map` for wheel, pinch
    and drag gestures on the map), the modal parts (`modal-backdrop`,
    `modal-close`), `document`, `window`, `color-scheme` and one
    `country:<id>` per interactive country.
    """

    def __init__(self, soup: BeautifulSoup, cfg: Optional[MapConfig] = None) -> None:
        self.soup = soup
        self.cfg = cfg or MapConfig()

        self.container = self._require("travels-map")
        self.modal = self._require("country-modal")
        self.modal_title = self._require("modal-country-name")
        self.modal_trips = self._require("modal-trips")
        self.backdrop = self._require_in(self.modal, ".modal-backdrop")
        self.close_button = self._require_in(self.modal, ".modal-close")
        self.zoom_in = self._require("zoom-in")
        self.zoom_out = self._require("zoom-out")
        self.zoom_reset = self._require("zoom-reset")
        self.payload = self._require(PAYLOAD_ELEMENT_ID)

        self._listeners: Dict[Tuple[str, str], List[Callable]] = defaultdict(list)

    @classmethod
    def from_html(cls, html: str, cfg: Optional[MapConfig] = None) -> "Page":
        return cls(BeautifulSoup(html, "html.parser"), cfg)

    @classmethod
    def from_file(cls, path: Path, cfg: Optional[MapConfig] = None) -> "Page":
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_html(f.read(), cfg)

    def _require(self, element_id: str) -> Tag:
        node = self.soup.find(id=element_id)
        if node is None:
            raise PageError(f"Page has no #{element_id} element")
        return node

    def _require_in(self, parent: Tag, selector: str) -> Tag:
        node = parent.select_one(selector)
        if node is None:
            raise PageError(f"#{parent.get('id')} has no {selector} element")
        return node

    @property
    def body(self) -> Tag:
        return self.soup.body or self.soup

    # --- layout ---
    def container_size(self) -> Tuple[int, int]:
        try:
            width = int(self.container.get("data-width") or self.cfg.DEFAULT_WIDTH)
            height = int(self.container.get("data-height") or self.cfg.DEFAULT_HEIGHT)
        except ValueError:
            logger.warning("Invalid container size attributes, using defaults")
            width, height = self.cfg.DEFAULT_WIDTH, self.cfg.DEFAULT_HEIGHT
        return width, height

    def resize(self, width: int, height: int) -> None:
        """Sets the container size and fires a window resize event."""
        self.container["data-width"] = str(width)
        self.container["data-height"] = str(height)
        self.dispatch("window", "resize", (width, height))

    def stylesheet_text(self) -> str:
        return "\n".join(style.string or "" for style in self.soup.find_all("style"))

    # --- inline styles ---
    def get_style(self, node: Tag, prop: str) -> Optional[str]:
        return parse_style(node.get("style", "")).get(prop)

    def set_style(self, node: Tag, prop: str, value: Optional[str]) -> None:
        """Sets one inline style property; a None value removes it."""
        props = parse_style(node.get("style", ""))
        if value is None:
            props.pop(prop, None)
        else:
            props[prop] = value
        if props:
            node["style"] = format_style(props)
        else:
            node.attrs.pop("style", None)

    @property
    def scroll_locked(self) -> bool:
        return self.get_style(self.body, "overflow") == "hidden"

    # --- events ---
    def on(self, target: str, event: str, handler: Callable[[Any], Any]) -> None:
        self._listeners[(target, event)].append(handler)

    def off(self, target: str) -> None:
        for key in [k for k in self._listeners if k[0] == target]:
            del self._listeners[key]

    def listeners(self, target: str, event: str) -> int:
        return len(self._listeners.get((target, event), []))

    def dispatch(self, target: str, event: str, payload: Any = None) -> int:
        """Calls the handlers registered for (target, event); returns how many ran."""
        handlers = list(self._listeners.get((target, event), []))
        for handler in handlers:
            handler(payload)
        return len(handlers)

    def click(self, target: str) -> int:
        return self.dispatch(target, "click")

    def keydown(self, key: str) -> int:
        return self.dispatch("document", "keydown", KeyEvent(key))

    def set_color_scheme(self, scheme: str) -> int:
        return self.dispatch("color-scheme", "change", scheme)

    def html(self) -> str:
        return str(self.soup)


def render_page_template(payload: Dict[str, Any], css: str = "", cfg: Optional[MapConfig] = None) -> str:
    """Fills the bundled page template with a travels payload and stylesheet."""
    cfg = cfg or MapConfig()
    with open(cfg.TEMPLATE_FILE, "r", encoding="utf-8") as f:
        template = Template(f.read())
    # A literal "</" would end the <script> element early
    data = json.dumps(payload, ensure_ascii=False).replace("</", "<\\/")
    return template.substitute(
        css=css,
        payload=data,
        width=cfg.DEFAULT_WIDTH,
        height=cfg.DEFAULT_HEIGHT,
    )
