import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup

from .errors import PayloadError

logger = logging.getLogger(__name__)

PAYLOAD_ELEMENT_ID = "travels-data"


class Classification(Enum):
    HOME = "home"
    VISITED = "visited"
    DEFAULT = "default"

    @property
    def interactive(self) -> bool:
        return self is not Classification.DEFAULT


@dataclass(frozen=True)
class TripEntry:
    dates: str
    cities: Tuple[str, ...] = ()
    notes: Optional[str] = None


@dataclass(frozen=True)
class CountryRecord:
    code: str
    name: str
    visited: bool = False
    home: bool = False
    trips: Tuple[TripEntry, ...] = ()


@dataclass(frozen=True)
class MapSettings:
    default_zoom: float = 1.0
    center_lon: float = 0.0
    center_lat: float = 0.0


def _parse_trip(code: str, raw: Any) -> TripEntry:
    if not isinstance(raw, dict) or "dates" not in raw:
        raise PayloadError(f"Trip for {code} needs a 'dates' field: {raw!r}")
    cities = raw.get("cities") or []
    return TripEntry(
        dates=str(raw["dates"]),
        cities=tuple(str(c) for c in cities),
        notes=raw.get("notes") or None,
    )


def _parse_country(code: str, raw: Any) -> CountryRecord:
    if not isinstance(raw, dict) or not raw.get("name"):
        raise PayloadError(f"Country {code} needs a 'name' field")
    return CountryRecord(
        code=code,
        name=str(raw["name"]),
        visited=bool(raw.get("visited", False)),
        home=bool(raw.get("home", False)),
        trips=tuple(_parse_trip(code, t) for t in raw.get("trips") or []),
    )


@dataclass(frozen=True)
class TravelsData:
    """Country dataset keyed by ISO 3166 alpha-3 code, plus map settings."""

    countries: Dict[str, CountryRecord] = field(default_factory=dict)
    settings: MapSettings = field(default_factory=MapSettings)

    @classmethod
    def from_payload(cls, payload: Any) -> "TravelsData":
        if not isinstance(payload, dict) or not isinstance(payload.get("countries"), dict):
            raise PayloadError("Payload needs a 'countries' object")

        countries = {
            code: _parse_country(code, raw) for code, raw in payload["countries"].items()
        }

        raw_settings = payload.get("settings") or {}
        try:
            settings = MapSettings(
                default_zoom=float(raw_settings.get("defaultZoom", 1.0)),
                center_lon=float(raw_settings.get("centerLon", 0.0)),
                center_lat=float(raw_settings.get("centerLat", 0.0)),
            )
        except (TypeError, ValueError) as e:
            raise PayloadError(f"Invalid map settings: {e}") from e

        data = cls(countries=countries, settings=settings)
        homes = data.home_codes()
        if len(homes) > 1:
            logger.warning(f"More than one home country in dataset: {', '.join(homes)}")
        return data

    @classmethod
    def from_json(cls, text: str) -> "TravelsData":
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise PayloadError(f"Travels payload is not valid JSON: {e}") from e
        return cls.from_payload(payload)

    @classmethod
    def from_page(cls, soup: BeautifulSoup, element_id: str = PAYLOAD_ELEMENT_ID) -> "TravelsData":
        """Reads the JSON payload embedded in <script id="travels-data">."""
        script = soup.find(id=element_id)
        if script is None:
            raise PayloadError(f"No #{element_id} element in page")
        return cls.from_json(script.string or "")

    def get(self, code: Optional[str]) -> Optional[CountryRecord]:
        if not code:
            return None
        return self.countries.get(code)

    def home_codes(self) -> List[str]:
        return [code for code, record in self.countries.items() if record.home]


def classify(record: Optional[CountryRecord]) -> Classification:
    """Every country falls into exactly one class, home taking precedence."""
    if record is None:
        return Classification.DEFAULT
    if record.home:
        return Classification.HOME
    if record.visited:
        return Classification.VISITED
    return Classification.DEFAULT
