from .config import MapConfig
from .models import Classification, CountryRecord, MapSettings, TravelsData, TripEntry
from .page import Page, render_page_template
from .view import MapView, MapViewState

__all__ = [
    "Classification",
    "CountryRecord",
    "MapConfig",
    "MapSettings",
    "MapView",
    "MapViewState",
    "Page",
    "TravelsData",
    "TripEntry",
    "render_page_template",
]
