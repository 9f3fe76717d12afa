import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Tuple

logger = logging.getLogger(__name__)

LIGHT = "light"
DARK = "dark"

# Home keeps its own green in both schemes
HOME_COLOR = "#4a9d4a"
HOME_STROKE_COLOR = "#3d823d"

# CSS custom property -> ThemeColors field
PROPERTY_MAP = {
    "land": "--color-site-background-accented",
    "land_stroke": "--color-box-borders",
    "visited": "--color-links",
    "visited_stroke": "--color-links-hover",
    "water": "--color-site-background",
}

FALLBACKS = {
    "land": "#ececec",
    "land_stroke": "#d4d4d4",
    "visited": "#3a6fd8",
    "visited_stroke": "#2a55ab",
    "water": "#ffffff",
}

COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
MEDIA_DARK_RE = re.compile(r"@media[^{]*prefers-color-scheme\s*:\s*dark[^{]*\{")
ROOT_RULE_RE = re.compile(r":root\s*\{([^}]*)\}")
PROPERTY_RE = re.compile(r"(--[\w-]+)\s*:\s*([^;]+)")


@dataclass(frozen=True)
class ThemeColors:
    land: str
    land_stroke: str
    visited: str
    visited_stroke: str
    water: str
    home: str = HOME_COLOR
    home_stroke: str = HOME_STROKE_COLOR


def _block_end(css: str, start: int) -> int:
    """Index just past the brace closing the block opened right before `start`."""
    depth = 1
    i = start
    while i < len(css) and depth:
        if css[i] == "{":
            depth += 1
        elif css[i] == "}":
            depth -= 1
        i += 1
    return i


def _split_dark(css: str) -> Tuple[str, List[str]]:
    """Separates `prefers-color-scheme: dark` media blocks from the rest."""
    base, dark = [], []
    pos = 0
    for match in MEDIA_DARK_RE.finditer(css):
        if match.start() < pos:
            continue
        end = _block_end(css, match.end())
        base.append(css[pos : match.start()])
        dark.append(css[match.end() : end - 1])
        pos = end
    base.append(css[pos:])
    return "".join(base), dark


def _root_properties(css: str) -> Dict[str, str]:
    props = {}
    for body in ROOT_RULE_RE.findall(css):
        for name, value in PROPERTY_RE.findall(body):
            props[name] = value.strip()
    return props


class ThemeResolver:
    """Resolves map colors from a stylesheet's CSS custom properties."""

    def __init__(self, css_text: str = "") -> None:
        base, dark_blocks = _split_dark(COMMENT_RE.sub("", css_text or ""))
        self._light = _root_properties(base)
        self._dark = dict(self._light)
        for block in dark_blocks:
            self._dark.update(_root_properties(block))

    def properties(self, scheme: str = LIGHT) -> Dict[str, str]:
        return dict(self._dark if scheme == DARK else self._light)

    def resolve(self, scheme: str = LIGHT) -> ThemeColors:
        props = self.properties(scheme)
        values = {}
        for field_name, prop in PROPERTY_MAP.items():
            value = props.get(prop)
            if not value:
                logger.debug(f"{prop} not set for {scheme} scheme, using {FALLBACKS[field_name]}")
                value = FALLBACKS[field_name]
            values[field_name] = value
        return ThemeColors(**values)
