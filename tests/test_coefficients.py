import pandas as pd
import pytest

from railnorm.core.config import LEGACY_VL10_ALIASES, EngineConfig, TieBreak
from railnorm.core.models import CoefficientTable, RouteRecord
from railnorm.engine import coefficient_frame, resolve_cell, resolve_coefficient, round_half_up


@pytest.mark.parametrize(
    "value, expected",
    [(12.5, 13), (2.5, 3), (83.333, 83), (7.0, 7), (6.49, 6), (20.8333, 21)],
)
def test_round_half_up_rounds_halves_away_from_zero(value, expected):
    assert round_half_up(value) == expected


def test_exact_key_is_used(dema_route):
    assert resolve_coefficient("vl10u", 14.0, dema_route) == 68.4
    assert resolve_coefficient("2es6", 8.0, dema_route) == 78.85


def test_nearest_tie_prefers_lower_key(dema_route):
    # {6: 89.5, 8: 78.85}, load 7 is equally close to 6 and 8
    assert resolve_coefficient("2es6", 7.0, dema_route) == 89.5
    assert resolve_coefficient("2es6", 6.6, dema_route) == 89.5


def test_nearest_tie_can_prefer_higher_key(dema_route):
    cfg = EngineConfig(tie_break=TieBreak.HIGHER)
    assert resolve_coefficient("2es6", 7.0, dema_route, config=cfg) == 78.85


def test_nearest_without_tie(dema_route):
    # keys 6, 14, 21: 12 is closest to 14, 83 is closest to 21
    assert resolve_coefficient("vl10u", 12.0, dema_route) == 68.4
    assert resolve_coefficient("vl10u", 5000 / 60, dema_route) == 72.45


def test_half_way_load_rounds_up_before_lookup():
    route = RouteRecord(
        id="r",
        name="R",
        distance_km=10,
        coefficients={"vl10": CoefficientTable(axle_loads={12: 80.0, 13: 75.0})},
    )
    assert resolve_coefficient("vl10", 12.5, route) == 75.0
    assert resolve_coefficient("vl10", 12.49, route) == 80.0


def test_absent_table_returns_none(dema_route, kinel_route):
    assert resolve_coefficient("vl10k", 10.0, dema_route) is None
    assert resolve_coefficient("vl10u", 10.0, kinel_route) is None


def test_annotations_are_never_axle_loads():
    table = CoefficientTable.from_mapping({"one": 5200, "smet": 6000})
    route = RouteRecord(id="r", name="R", distance_km=10, coefficients={"vl10": table})
    assert table.is_empty
    assert resolve_coefficient("vl10", 10.0, route) is None


def test_alias_is_only_used_when_configured(kinel_route):
    assert resolve_coefficient("vl10u", 10.0, kinel_route) is None

    cfg = EngineConfig().with_aliases(LEGACY_VL10_ALIASES)
    assert resolve_coefficient("vl10u", 10.0, kinel_route, config=cfg) == 71.8
    # no inference from the type name
    assert resolve_coefficient("vl10k", 10.0, kinel_route, config=cfg) is None


def test_own_table_wins_over_alias():
    route = RouteRecord(
        id="r",
        name="R",
        distance_km=10,
        coefficients={
            "vl10": CoefficientTable(axle_loads={10: 1.0}),
            "vl10u": CoefficientTable(axle_loads={10: 2.0}),
        },
    )
    cfg = EngineConfig().with_aliases(LEGACY_VL10_ALIASES)
    assert resolve_coefficient("vl10u", 10.0, route, config=cfg) == 2.0


@pytest.mark.parametrize("load", [0, -3.5, float("nan")])
def test_non_positive_axle_load_is_rejected(dema_route, load):
    with pytest.raises(ValueError):
        resolve_coefficient("vl10u", load, dema_route)


def test_resolution_is_deterministic(dema_route):
    first = resolve_cell("2es6", 7.0, dema_route)
    assert first == (6, 89.5)
    assert all(resolve_cell("2es6", 7.0, dema_route) == first for _ in range(5))


def test_coefficient_frame_layout(dema_route):
    frame, cell = coefficient_frame(dema_route, highlight=("2es6", 7.0))

    assert list(frame.columns) == [6, 8, 14, 21]
    assert set(frame.index) == {"vl10u", "2es6"}
    assert frame.loc["2es6", 8] == 78.85
    assert pd.isna(frame.loc["2es6", 14])
    assert cell == ("2es6", 6)


def test_coefficient_frame_highlight_follows_alias(kinel_route):
    cfg = EngineConfig().with_aliases(LEGACY_VL10_ALIASES)
    _, cell = coefficient_frame(kinel_route, highlight=("vl10u", 11.6), config=cfg)
    assert cell == ("vl10", 12)

    _, missing = coefficient_frame(kinel_route, highlight=("vl10u", 11.6))
    assert missing is None
