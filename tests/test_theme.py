from __future__ import annotations

from travels.theme import DARK, FALLBACKS, HOME_COLOR, LIGHT, ThemeResolver

from .conftest import CSS


def test_light_scheme_reads_root_properties() -> None:
    colors = ThemeResolver(CSS).resolve(LIGHT)
    assert colors.land == "#eeeeee"
    assert colors.land_stroke == "#cccccc"
    assert colors.visited == "#cc4422"
    assert colors.visited_stroke == "#aa3311"
    assert colors.water == "#ffffff"


def test_dark_scheme_overrides_and_inherits() -> None:
    colors = ThemeResolver(CSS).resolve(DARK)
    assert colors.visited == "#ff8855"
    assert colors.water == "#111111"
    # Not overridden in the dark block
    assert colors.land_stroke == "#cccccc"


def test_home_color_is_fixed_across_schemes() -> None:
    resolver = ThemeResolver(CSS)
    assert resolver.resolve(LIGHT).home == resolver.resolve(DARK).home == HOME_COLOR


def test_missing_properties_fall_back() -> None:
    colors = ThemeResolver("body { color: red; }").resolve(DARK)
    assert colors.visited == FALLBACKS["visited"]
    assert colors.land == FALLBACKS["land"]


def test_commented_out_properties_are_ignored() -> None:
    css = ":root { /* --color-links: #000000; */ --color-links-hover: #123456; }"
    colors = ThemeResolver(css).resolve(LIGHT)
    assert colors.visited == FALLBACKS["visited"]
    assert colors.visited_stroke == "#123456"
