import logging
from dataclasses import dataclass
from typing import Optional

from .models import CountryRecord

logger = logging.getLogger(__name__)

HOME_MESSAGE = "This is where I'm from!"
NO_TRIPS_MESSAGE = "Just passing through, no specific trips recorded."


@dataclass
class ModalState:
    selected: Optional[str] = None
    visible: bool = False


class Tooltip:
    """Floating country label that follows the pointer."""

    def __init__(self, page, offset=(10, -30)) -> None:
        self.page = page
        self.offset = offset
        self.node = None

    @property
    def visible(self) -> bool:
        return self.node is not None and self.page.get_style(self.node, "display") != "none"

    @property
    def text(self) -> str:
        return self.node.get_text() if self.node is not None else ""

    def _position(self, event) -> None:
        dx, dy = self.offset
        self.page.set_style(self.node, "left", f"{event.page_x + dx:g}px")
        self.page.set_style(self.node, "top", f"{event.page_y + dy:g}px")

    def show(self, event, record: Optional[CountryRecord], is_home: bool = False) -> None:
        if self.node is None:
            self.node = self.page.soup.new_tag("div", attrs={"class": "country-tooltip"})
            self.page.body.append(self.node)

        self.node.string = record.name if record is not None else ""
        self.node["class"] = ["country-tooltip", "home"] if is_home else ["country-tooltip"]
        self._position(event)
        self.page.set_style(self.node, "display", "block")

    def move(self, event) -> None:
        if self.visible:
            self._position(event)

    def hide(self) -> None:
        if self.node is not None:
            self.page.set_style(self.node, "display", "none")


class ModalPresenter:
    """Trip details overlay for a clicked country."""

    def __init__(self, page, state: Optional[ModalState] = None) -> None:
        self.page = page
        self.state = state or ModalState()

    def wire(self) -> None:
        """Backdrop click, close button and Escape all dismiss the modal."""
        self.page.on("modal-backdrop", "click", lambda _event: self.close_modal())
        self.page.on("modal-close", "click", lambda _event: self.close_modal())
        self.page.on("document", "keydown", self._on_keydown)

    def _on_keydown(self, event) -> None:
        if getattr(event, "key", None) == "Escape" and self.state.visible:
            self.close_modal()

    def _trip_block(self, trip):
        soup = self.page.soup
        item = soup.new_tag("div", attrs={"class": "trip-item"})

        dates = soup.new_tag("div", attrs={"class": "trip-dates"})
        dates.string = trip.dates
        item.append(dates)

        if trip.cities:
            cities = soup.new_tag("div", attrs={"class": "trip-cities"})
            cities.string = ", ".join(trip.cities)
            item.append(cities)

        if trip.notes:
            notes = soup.new_tag("div", attrs={"class": "trip-notes"})
            notes.string = trip.notes
            item.append(notes)
        return item

    def open_modal(self, country_code: Optional[str], record: Optional[CountryRecord]) -> None:
        """Fills title and trips for the country and shows the modal, replacing any open one."""
        soup = self.page.soup
        title = self.page.modal_title
        trips = self.page.modal_trips

        if record is None:
            logger.warning(f"No travel record for {country_code}, showing placeholder")

        title.clear()
        title.append(record.name if record is not None else str(country_code or ""))
        if record is not None and record.home:
            badge = soup.new_tag("span", attrs={"class": "home-badge"})
            badge.string = "Home"
            title.append(badge)

        trips.clear()
        if record is not None and record.trips:
            for trip in record.trips:
                trips.append(self._trip_block(trip))
        else:
            message = soup.new_tag("p", attrs={"class": "no-trips"})
            message.string = HOME_MESSAGE if record is not None and record.home else NO_TRIPS_MESSAGE
            trips.append(message)

        self.page.modal["aria-hidden"] = "false"
        self.page.set_style(self.page.body, "overflow", "hidden")
        self.state.selected = country_code
        self.state.visible = True

    def close_modal(self) -> None:
        if not self.state.visible:
            return
        self.page.modal["aria-hidden"] = "true"
        self.page.set_style(self.page.body, "overflow", None)
        self.state.selected = None
        self.state.visible = False
