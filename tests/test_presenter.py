from __future__ import annotations

import pytest

from travels.models import CountryRecord, TripEntry
from travels.page import Page
from travels.presenter import HOME_MESSAGE, NO_TRIPS_MESSAGE, ModalPresenter

USA = CountryRecord(
    code="USA",
    name="United States",
    visited=True,
    trips=(
        TripEntry(dates="June 2019", cities=("Boston", "New York"), notes="Conference"),
        TripEntry(dates="May 2023"),
    ),
)
ITALY = CountryRecord(code="ITA", name="Italy", visited=True, home=True)


@pytest.fixture()
def presenter(page: Page) -> ModalPresenter:
    modal = ModalPresenter(page)
    modal.wire()
    return modal


def test_trips_are_listed_in_order(presenter: ModalPresenter, page: Page) -> None:
    presenter.open_modal("USA", USA)

    items = page.modal_trips.select(".trip-item")
    assert [item.select_one(".trip-dates").get_text() for item in items] == ["June 2019", "May 2023"]
    assert items[0].select_one(".trip-cities").get_text() == "Boston, New York"
    assert items[0].select_one(".trip-notes").get_text() == "Conference"
    assert items[1].select_one(".trip-cities") is None
    assert items[1].select_one(".trip-notes") is None
    assert page.modal_title.get_text() == "United States"


def test_home_without_trips_shows_badge_and_message(presenter: ModalPresenter, page: Page) -> None:
    presenter.open_modal("ITA", ITALY)

    assert page.modal_title.select_one(".home-badge").get_text() == "Home"
    assert page.modal_trips.select_one("p.no-trips").get_text() == HOME_MESSAGE


def test_unknown_country_degrades_to_placeholder(presenter: ModalPresenter, page: Page) -> None:
    presenter.open_modal("XKX", None)

    assert page.modal_title.get_text() == "XKX"
    assert page.modal_trips.get_text() == NO_TRIPS_MESSAGE
    assert presenter.state.visible


def test_text_is_not_interpreted_as_markup(presenter: ModalPresenter, page: Page) -> None:
    record = CountryRecord(
        code="FRA",
        name="<i>France</i>",
        visited=True,
        trips=(TripEntry(dates="2020", notes="<script>alert(1)</script>"),),
    )
    presenter.open_modal("FRA", record)

    assert page.modal_title.find("i") is None
    assert page.modal_trips.find("script") is None
    assert "&lt;script&gt;" in str(page.modal_trips)
    assert page.modal_title.get_text() == "<i>France</i>"


def test_reopening_replaces_content(presenter: ModalPresenter, page: Page) -> None:
    presenter.open_modal("USA", USA)
    presenter.open_modal("ITA", ITALY)

    assert page.modal_trips.select(".trip-item") == []
    assert page.modal_title.get_text() == "ItalyHome"
    assert presenter.state.selected == "ITA"


def test_dismissal_paths(presenter: ModalPresenter, page: Page) -> None:
    for dismiss in (
        lambda: page.click("modal-backdrop"),
        lambda: page.click("modal-close"),
        lambda: page.keydown("Escape"),
    ):
        presenter.open_modal("USA", USA)
        assert page.scroll_locked
        dismiss()
        assert not presenter.state.visible
        assert page.modal["aria-hidden"] == "true"
        assert not page.scroll_locked


def test_other_keys_do_not_close(presenter: ModalPresenter, page: Page) -> None:
    presenter.open_modal("USA", USA)
    page.keydown("Enter")
    assert presenter.state.visible


def test_scroll_lock_stays_balanced(presenter: ModalPresenter, page: Page) -> None:
    presenter.open_modal("USA", USA)
    presenter.open_modal("ITA", ITALY)
    presenter.close_modal()
    assert not page.scroll_locked

    # Closing again is a no-op
    presenter.close_modal()
    page.keydown("Escape")
    assert not page.scroll_locked
    assert page.modal["aria-hidden"] == "true"
    assert page.get_style(page.body, "overflow") is None
