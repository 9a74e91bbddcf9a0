# railnorm/engine/coefficients.py
# -*- coding: utf-8 -*-
"""
Coefficient resolution (axle load → empirical coefficient)
==========================================================

Purpose
-------
Given a locomotive type, an axle load and a route, find the energy
coefficient the route table prescribes:

1) pick the locomotive's table (or the table of an explicitly configured
   compatibility alias, never inferred from the type name),
2) round the axle load half-up to an integer target,
3) exact key → value,
4) else nearest key by |key - target|, ties settled by `EngineConfig.tie_break`,
5) no axle-load keys → None.

Annotation values ('one', 'smet') live in a separate field of the table and
can never be picked as an axle load.

Public API
----------
- round_half_up(value) -> int
- select_table(locomotive_type, route, *, config=None) -> Optional[CoefficientTable]
- resolve_coefficient(locomotive_type, axle_load, route, *, config=None) -> Optional[float]
- resolve_cell(locomotive_type, axle_load, route, *, config=None) -> Optional[Tuple[int, float]]
- coefficient_frame(route, *, highlight=None, config=None) -> (pd.DataFrame, Optional[Tuple[str, int]])

Logging
-------
DEBUG only; this runs on every input change.
"""

from __future__ import annotations

import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Tuple

import pandas as pd

from railnorm.core.config import EngineConfig, get_engine_config
from railnorm.core.models import CoefficientTable, RouteRecord
from railnorm.core.types import Number
from railnorm.infra.logging import get_logger

_log = get_logger(__name__)


# ────────────────────────────────────────────────────────────────────────────────
# Rounding
# ────────────────────────────────────────────────────────────────────────────────
def round_half_up(value: Number) -> int:
    """
    Round to the nearest integer, halves away from zero (12.5 → 13).

    Python's round() uses banker's rounding (12.5 → 12), which would move
    half-way axle loads to a different table column.
    """
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# ────────────────────────────────────────────────────────────────────────────────
# Table selection
# ────────────────────────────────────────────────────────────────────────────────
def select_table(
      locomotive_type: str
    , route: RouteRecord
    , *
    , config: Optional[EngineConfig] = None
) -> Optional[CoefficientTable]:
    """
    The route's table for `locomotive_type`, or for its configured alias.
    """
    cfg = config or get_engine_config()

    table = route.coefficients.get(locomotive_type)
    if table is not None:
        return table

    alias = cfg.alias_for(locomotive_type)
    if alias is not None and alias in route.coefficients:
        _log.debug(
            "select_table: route '%s' has no '%s' table → using alias '%s'.",
            route.id, locomotive_type, alias,
        )
        return route.coefficients[alias]

    _log.debug("select_table: route '%s' has no table for '%s'.", route.id, locomotive_type)
    return None


# ────────────────────────────────────────────────────────────────────────────────
# Resolution
# ────────────────────────────────────────────────────────────────────────────────
def resolve_cell(
      locomotive_type: str
    , axle_load: Number
    , route: RouteRecord
    , *
    , config: Optional[EngineConfig] = None
) -> Optional[Tuple[int, float]]:
    """
    Resolve the (axle-load key, coefficient) pair used for `axle_load`.

    Raises
    ------
    ValueError
        If axle_load is not a finite positive number.
    """
    axle_load = float(axle_load)
    if not math.isfinite(axle_load) or axle_load <= 0:
        raise ValueError(f"axle_load must be a finite number > 0, got {axle_load!r}")

    cfg = config or get_engine_config()
    table = select_table(locomotive_type, route, config=cfg)
    if table is None or table.is_empty:
        return None

    target = round_half_up(axle_load)
    exact = table.exact(target)
    if exact is not None:
        _log.debug("resolve_cell: %s @ %.3f t/axle → exact key %d = %s", locomotive_type, axle_load, target, exact)
        return target, exact

    key = table.nearest_key(target, cfg.tie_break)
    if key is None:
        return None
    _log.debug(
        "resolve_cell: %s @ %.3f t/axle → no key %d, nearest %d = %s (tie_break=%s)",
        locomotive_type, axle_load, target, key, table.axle_loads[key], cfg.tie_break.value,
    )
    return key, table.axle_loads[key]


def resolve_coefficient(
      locomotive_type: str
    , axle_load: Number
    , route: RouteRecord
    , *
    , config: Optional[EngineConfig] = None
) -> Optional[float]:
    """
    Coefficient for `locomotive_type` at `axle_load` on `route`, or None.

    Deterministic and side-effect free for identical inputs.
    """
    cell = resolve_cell(locomotive_type, axle_load, route, config=config)
    return None if cell is None else cell[1]


# ────────────────────────────────────────────────────────────────────────────────
# Tabular view (for rendering a table with the resolved cell highlighted)
# ────────────────────────────────────────────────────────────────────────────────
def coefficient_frame(
      route: RouteRecord
    , *
    , highlight: Optional[Tuple[str, Number]] = None
    , config: Optional[EngineConfig] = None
) -> Tuple[pd.DataFrame, Optional[Tuple[str, int]]]:
    """
    Route coefficients as a DataFrame (index = locomotive type, columns = axle load).

    Parameters
    ----------
    route : RouteRecord
    highlight : Optional[(locomotive_type, axle_load)]
        When given, the cell that `resolve_coefficient` would use is returned
        as (row label, column label) next to the frame.

    Returns
    -------
    (frame, cell_or_None)
        Missing cells are NaN. The cell row is the table actually used, so an
        aliased type points at its base type's row.
    """
    cfg = config or get_engine_config()

    rows = {
          loco: dict(table.axle_loads)
        for loco, table in route.coefficients.items()
        if not table.is_empty
    }
    frame = pd.DataFrame.from_dict(rows, orient="index")
    if not frame.empty:
        frame = frame.reindex(sorted(frame.columns), axis=1)
    frame.index.name = "locomotive"
    frame.columns.name = "axle_load"

    cell: Optional[Tuple[str, int]] = None
    if highlight is not None:
        loco, load = highlight
        resolved = resolve_cell(loco, load, route, config=cfg)
        if resolved is not None:
            row = loco if loco in route.coefficients else cfg.alias_for(loco)
            cell = (row, resolved[0])

    return frame, cell
