import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple

PACKAGE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = PACKAGE_DIR.parent


# --- CONFIGURATION ---
@dataclass
class MapConfig:
    # Data sources (URL or local path)
    CODES_URL: str = str(PROJECT_ROOT / "data" / "country-codes.json")
    TOPOLOGY_URL: str = "https://cdn.jsdelivr.net/npm/world-atlas@2/countries-110m.json"
    TOPOLOGY_OBJECT: str = "countries"
    # ISO 3166 list used to build the numeric -> alpha-3 mapping
    COUNTRY_CODES_SOURCE_URL: str = "https://raw.githubusercontent.com/lukes/ISO-3166-Countries-with-Regional-Codes/master/all/all.json"

    # Input/Output Paths
    OUTPUT_DIR: Path = PROJECT_ROOT / "maps"
    TEMPLATE_FILE: Path = PACKAGE_DIR / "templates" / "page.html"
    HTML_FILE: str = "travels-map.html"
    SVG_FILE: str = "travels-map.svg"
    CODES_FILE: str = "country-codes.json"

    # Container size used when the page does not declare one
    DEFAULT_WIDTH: int = 960
    DEFAULT_HEIGHT: int = 500

    # Base projection scale is width / SCALE_DIVISOR * defaultZoom
    SCALE_DIVISOR: float = 5.5

    # --- ZOOM ---
    SCALE_EXTENT: Tuple[float, float] = (0.5, 8.0)
    ZOOM_IN_FACTOR: float = 1.5
    ZOOM_OUT_FACTOR: float = 0.67
    TRANSITION_MS: int = 300
    FRAME_MS: int = 16

    RESIZE_DEBOUNCE_MS: int = 250

    # --- SKETCH STYLE ---
    HACHURE_GAP: float = 4
    FILL_WEIGHT: float = 0.5
    ROUGHNESS: float = 0.4
    BOWING: float = 0.2
    VISITED_HACHURE_ANGLE: float = 60
    HOME_HACHURE_ANGLE: float = 45
    DEFAULT_STROKE_WIDTH: float = 0.5
    BORDER_STROKE_WIDTH: float = 1

    # Tooltip sits right of and above the pointer
    TOOLTIP_OFFSET: Tuple[int, int] = (10, -30)

    # --- HTTP ---
    REQUEST_TIMEOUT: int = 15
    MAX_RETRIES: int = 3
    HEADERS: dict = field(
        default_factory=lambda: {"User-Agent": "travels-map/0.1", "Accept": "application/json"}
    )

    # --- RASTER PREVIEW ---
    IMG_WIDTH_INCHES: float = 12
    DPI: int = 200
    WEBP_QUALITY: int = 90
    # 0.25 means the PNG is a quarter of the WebP size
    PNG_SCALE_FACTOR: float = 0.25

    @classmethod
    def from_env(cls) -> "MapConfig":
        """Builds a config, letting TRAVELS_* environment variables override sources."""
        cfg = cls()
        cfg.CODES_URL = os.environ.get("TRAVELS_CODES_URL", cfg.CODES_URL)
        cfg.TOPOLOGY_URL = os.environ.get("TRAVELS_TOPOLOGY_URL", cfg.TOPOLOGY_URL)
        output_dir = os.environ.get("TRAVELS_OUTPUT_DIR")
        if output_dir:
            cfg.OUTPUT_DIR = Path(output_dir)
        return cfg
