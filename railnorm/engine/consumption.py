# railnorm/engine/consumption.py
# -*- coding: utf-8 -*-
"""
Energy consumption norm for one train on one route
==================================================

Purpose
-------
Deterministically compute the electric energy norm (kWh) for a freight train,
given:
- the train composition (active and cold locomotives, conditional wagons),
- the train weight (t) and axle count,
- a route from the RouteCatalog (distance + coefficient tables).

Formula
-------
    axle_load = weight_t / axle_count
    energy    = weight_t × coefficient × distance_km / 10 000 / 100

Representative locomotive
-------------------------
Multi-locomotive trains are not modelled per locomotive: the first *active*
locomotive in composition order drives the coefficient lookup and the max
weight check. Cold locomotives only add length, so their types are checked
only when a length is computed.

Failure model
-------------
`compute` never raises for caller input. It returns a `ComputationError`
whose `kind` tells the caller what to re-prompt:
    NO_ACTIVE_LOCOMOTIVE, UNKNOWN_LOCOMOTIVE, ZERO_AXLE_COUNT, INVALID_INPUT,
    ROUTE_NOT_FOUND, NO_COEFFICIENT_FOR_LOAD.
Exceeding the route's max weight is an advisory flag on a successful result.

Public API
----------
- axle_load(train_weight_t, axle_count) -> float
- energy_consumption_kwh(train_weight_t, coefficient, distance_km, *, config=None) -> float
- train_length_m(composition, *, config=None) -> Optional[float]
- compute(request, catalog, *, config=None) -> ComputationResult | ComputationError
"""

from __future__ import annotations

import math
from typing import Optional, Union

from railnorm.core.config import EngineConfig, get_engine_config
from railnorm.core.models import (
      CalculationRequest
    , ComputationError
    , ComputationResult
    , ErrorKind
    , TrainComposition
)
from railnorm.core.types import Number
from railnorm.engine.coefficients import resolve_coefficient
from railnorm.infra.logging import get_logger
from railnorm.rolling_stock.locomotives import LOCOMOTIVE_SPECS, get_locomotive_spec
from railnorm.routes.catalog import RouteCatalog

_log = get_logger(__name__)

Outcome = Union[ComputationResult, ComputationError]


# ────────────────────────────────────────────────────────────────────────────────
# Formulas
# ────────────────────────────────────────────────────────────────────────────────
def axle_load(
      train_weight_t: Number
    , axle_count: int
) -> float:
    """
    Tons per axle. Raises ValueError for axle_count <= 0.
    """
    if axle_count <= 0:
        raise ValueError(f"axle_count must be > 0, got {axle_count!r}")
    return float(train_weight_t) / int(axle_count)


def energy_consumption_kwh(
      train_weight_t: Number
    , coefficient: Number
    , distance_km: Number
    , *
    , config: Optional[EngineConfig] = None
) -> float:
    cfg = config or get_engine_config()
    return float(train_weight_t) * float(coefficient) * float(distance_km) / cfg.energy_scale


def train_length_m(
      composition: TrainComposition
    , *
    , config: Optional[EngineConfig] = None
) -> Optional[float]:
    """
    Σ active lengths + Σ cold lengths + conditional_wagons × wagon unit length.

    Returns None when no conditional wagons are given (the length is not shown).

    Raises
    ------
    KeyError
        If a locomotive type is not in the reference table.
    """
    cfg = config or get_engine_config()
    wagons = composition.conditional_wagons
    if wagons is None or wagons <= 0:
        return None

    active_m = sum(get_locomotive_spec(u.type).length_m for u in composition.active)
    cold_m = sum(get_locomotive_spec(u.type).length_m for u in composition.cold)
    return float(active_m + cold_m + wagons * cfg.wagon_unit_length_m)


# ────────────────────────────────────────────────────────────────────────────────
# Main computation
# ────────────────────────────────────────────────────────────────────────────────
def _fail(kind: ErrorKind, message: str, **details) -> ComputationError:
    _log.info("compute: %s (%s) %s", kind.value, message, details or "")
    return ComputationError(kind=kind, message=message, details=details)


def _compute(
      request: CalculationRequest
    , catalog: RouteCatalog
    , cfg: EngineConfig
) -> Outcome:
    composition = request.composition

    representative = composition.representative()
    if representative is None:
        return _fail(
              ErrorKind.NO_ACTIVE_LOCOMOTIVE
            , "Train composition has no active locomotive."
            , locomotives=len(composition.locomotives)
        )

    # Other units matter only when the train length is computed.
    wagons = composition.conditional_wagons
    checked = composition.locomotives if wagons is not None and wagons > 0 else (representative,)
    unknown = sorted({u.type for u in checked if u.type not in LOCOMOTIVE_SPECS})
    if unknown:
        return _fail(
              ErrorKind.UNKNOWN_LOCOMOTIVE
            , "Locomotive type not in the reference table."
            , types=unknown
        )

    if request.axle_count == 0:
        return _fail(ErrorKind.ZERO_AXLE_COUNT, "Axle count must not be zero.")

    weight = float(request.train_weight_t)
    if not math.isfinite(weight) or weight <= 0 or request.axle_count < 0:
        return _fail(
              ErrorKind.INVALID_INPUT
            , "Train weight must be positive and axle count non-negative."
            , train_weight_t=request.train_weight_t
            , axle_count=request.axle_count
        )

    route = catalog.lookup(request.route_id)
    if route is None:
        return _fail(ErrorKind.ROUTE_NOT_FOUND, "Unknown route.", route_id=request.route_id)

    loco_type = representative.type
    load = axle_load(weight, request.axle_count)
    coefficient = resolve_coefficient(loco_type, load, route, config=cfg)
    if coefficient is None:
        return _fail(
              ErrorKind.NO_COEFFICIENT_FOR_LOAD
            , "Route has no coefficient for this locomotive."
            , route_id=route.id
            , locomotive_type=loco_type
            , axle_load=load
        )

    energy = energy_consumption_kwh(weight, coefficient, route.distance_km, config=cfg)

    max_weight = route.max_weight_by_locomotive.get(loco_type)
    exceeded = max_weight is not None and weight > max_weight
    if exceeded:
        _log.warning(
            "compute: train weight %.1f t exceeds max %d t for %s on '%s' (advisory).",
            weight, max_weight, loco_type, route.id,
        )

    result = ComputationResult(
          energy_consumption_kwh=energy
        , axle_load=load
        , coefficient_used=coefficient
        , train_length_m=train_length_m(composition, config=cfg)
        , max_weight_tons=max_weight
        , max_weight_exceeded=exceeded
        , locomotive_type=loco_type
        , route_id=route.id
        , train_weight_t=weight
        , axle_count=int(request.axle_count)
        , distance_km=route.distance_km
    )
    _log.debug(
        "compute.result: route=%s loco=%s weight=%.1f axles=%d load=%.3f coeff=%s km=%d → %.4f kWh",
        route.id, loco_type, weight, request.axle_count, load, coefficient, route.distance_km, energy,
    )
    return result


def compute(
      request: CalculationRequest
    , catalog: RouteCatalog
    , *
    , config: Optional[EngineConfig] = None
) -> Outcome:
    """
    Compute the energy norm for `request` against `catalog`.

    Parameters
    ----------
    request : CalculationRequest
    catalog : RouteCatalog
        Read-only; never modified.
    config : Optional[EngineConfig]
        Defaults to the global engine config.

    Returns
    -------
    ComputationResult | ComputationError
        Check `.ok`. Nothing raises past this function.
    """
    cfg = config or get_engine_config()
    try:
        return _compute(request, catalog, cfg)
    except (TypeError, ValueError, KeyError, ArithmeticError) as e:
        _log.error("compute: unexpected failure for %r", request, exc_info=True)
        return ComputationError(
              kind=ErrorKind.INVALID_INPUT
            , message=f"Invalid input: {e}"
            , details={"route_id": getattr(request, "route_id", None)}
        )
