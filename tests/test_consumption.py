import pytest

from railnorm.core.models import (
    CalculationRequest,
    ComputationError,
    ComputationResult,
    ErrorKind,
    LocomotiveUnit,
    TrainComposition,
)
from railnorm.engine import axle_load, compute, energy_consumption_kwh, train_length_m

from conftest import DEMA_ID, KINEL_ID


def _request(**overrides):
    params = dict(locomotive_type="vl10u", train_weight_t=5000, axle_count=240, route_id=DEMA_ID)
    params.update(overrides)
    return CalculationRequest.simple(**params)


# ── formulas ──────────────────────────────────────────────────────────────────

def test_energy_formula_is_exact():
    assert energy_consumption_kwh(5000, 72.45, 233) == pytest.approx(84.40425)


def test_axle_load_division():
    assert axle_load(5000, 60) == pytest.approx(83.3333, rel=1e-4)
    with pytest.raises(ValueError):
        axle_load(5000, 0)


def test_train_length_sums_active_and_cold_units():
    comp = TrainComposition.uniform("vl10u", 2, cold_count=1, conditional_wagons=50)
    assert train_length_m(comp) == 32 * 3 + 50 * 14

    mixed = TrainComposition(
        locomotives=(LocomotiveUnit("2es6"), LocomotiveUnit("vl10k", False)),
        conditional_wagons=10,
    )
    assert train_length_m(mixed) == 34 + 30 + 10 * 14


@pytest.mark.parametrize("wagons", [None, 0])
def test_train_length_absent_without_conditional_wagons(wagons):
    comp = TrainComposition.uniform("vl10u", 1, conditional_wagons=wagons)
    assert train_length_m(comp) is None


def test_train_length_is_idempotent():
    comp = TrainComposition.uniform("2es6", 1, cold_count=2, conditional_wagons=57)
    assert train_length_m(comp) == train_length_m(comp) == 34 * 3 + 57 * 14


# ── compute: success ──────────────────────────────────────────────────────────

def test_compute_reference_example(catalog):
    result = compute(_request(), catalog)

    assert isinstance(result, ComputationResult)
    assert result.ok
    assert result.coefficient_used == 72.45
    assert result.energy_consumption_kwh == pytest.approx(84.40425)
    assert result.axle_load == pytest.approx(5000 / 240)
    assert result.distance_km == 233
    assert result.locomotive_type == "vl10u"
    assert result.train_length_m is None


def test_compute_rounds_axle_load_before_lookup(catalog):
    # 5000 / 60 = 83.33 → 83 → nearest key 21
    result = compute(_request(axle_count=60), catalog)
    assert result.coefficient_used == 72.45
    assert result.axle_load == pytest.approx(83.3333, rel=1e-4)


def test_compute_uses_first_active_locomotive(catalog):
    comp = TrainComposition(
        locomotives=(LocomotiveUnit("vl10u", False), LocomotiveUnit("2es6"), LocomotiveUnit("vl10u")),
    )
    request = CalculationRequest(composition=comp, train_weight_t=700, axle_count=100, route_id=DEMA_ID)
    result = compute(request, catalog)

    assert result.locomotive_type == "2es6"
    assert result.coefficient_used == 89.5
    assert result.energy_consumption_kwh == pytest.approx(700 * 89.5 * 233 / 1_000_000)


def test_compute_reports_train_length(catalog):
    result = compute(_request(locomotive_count=2, cold_count=1, conditional_wagons=50), catalog)
    assert result.train_length_m == 796


def test_max_weight_exceeded_is_advisory(catalog):
    result = compute(_request(train_weight_t=5500), catalog)

    assert result.ok
    assert result.max_weight_exceeded is True
    assert result.max_weight_tons == 5200
    assert result.energy_consumption_kwh > 0


def test_max_weight_within_limit(catalog):
    result = compute(_request(train_weight_t=5000), catalog)
    assert result.max_weight_exceeded is False
    assert result.max_weight_tons == 5200


def test_no_max_weight_on_route(catalog):
    result = compute(_request(locomotive_type="vl10", route_id=KINEL_ID, axle_count=500), catalog)
    assert result.ok
    assert result.max_weight_tons is None
    assert result.max_weight_exceeded is False


def test_compute_is_deterministic_and_leaves_catalog_alone(catalog):
    before = catalog.ids()
    assert compute(_request(), catalog) == compute(_request(), catalog)
    assert catalog.ids() == before


# ── compute: typed errors ─────────────────────────────────────────────────────

def _kind(outcome):
    assert isinstance(outcome, ComputationError)
    assert outcome.ok is False
    return outcome.kind


def test_zero_axle_count(catalog):
    assert _kind(compute(_request(axle_count=0), catalog)) is ErrorKind.ZERO_AXLE_COUNT


def test_no_active_locomotive(catalog):
    all_cold = _request(locomotive_count=0, cold_count=2)
    assert _kind(compute(all_cold, catalog)) is ErrorKind.NO_ACTIVE_LOCOMOTIVE

    empty = CalculationRequest(
        composition=TrainComposition(), train_weight_t=5000, axle_count=240, route_id=DEMA_ID
    )
    assert _kind(compute(empty, catalog)) is ErrorKind.NO_ACTIVE_LOCOMOTIVE


def test_no_active_locomotive_is_checked_first(catalog):
    request = _request(locomotive_count=0, cold_count=1, axle_count=0, route_id="nowhere")
    assert _kind(compute(request, catalog)) is ErrorKind.NO_ACTIVE_LOCOMOTIVE


def test_route_not_found(catalog):
    err = compute(_request(route_id="nowhere"), catalog)
    assert _kind(err) is ErrorKind.ROUTE_NOT_FOUND
    assert err.details["route_id"] == "nowhere"


def test_unknown_locomotive(catalog):
    assert _kind(compute(_request(locomotive_type="te33a"), catalog)) is ErrorKind.UNKNOWN_LOCOMOTIVE


def test_unknown_cold_unit_only_matters_for_length(catalog):
    units = (LocomotiveUnit("vl10u"), LocomotiveUnit("te33a", False))
    no_length = CalculationRequest(
        composition=TrainComposition(locomotives=units), train_weight_t=5000, axle_count=240, route_id=DEMA_ID
    )
    result = compute(no_length, catalog)
    assert result.ok
    assert result.train_length_m is None

    with_length = CalculationRequest(
        composition=TrainComposition(locomotives=units, conditional_wagons=10),
        train_weight_t=5000,
        axle_count=240,
        route_id=DEMA_ID,
    )
    err = compute(with_length, catalog)
    assert _kind(err) is ErrorKind.UNKNOWN_LOCOMOTIVE
    assert err.details["types"] == ["te33a"]


@pytest.mark.parametrize("weight", [0, -100, float("nan"), "heavy"])
def test_invalid_weight(catalog, weight):
    assert _kind(compute(_request(train_weight_t=weight), catalog)) is ErrorKind.INVALID_INPUT


def test_negative_axle_count(catalog):
    assert _kind(compute(_request(axle_count=-10), catalog)) is ErrorKind.INVALID_INPUT


def test_no_coefficient_without_alias(catalog):
    err = compute(_request(route_id=KINEL_ID), catalog)
    assert _kind(err) is ErrorKind.NO_COEFFICIENT_FOR_LOAD
    assert err.details["locomotive_type"] == "vl10u"
