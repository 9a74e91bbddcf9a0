# railnorm/app/batch.py
# -*- coding: utf-8 -*-
"""
Batch evaluation of many trains (pandas)
========================================

Purpose
-------
Run `compute` for every row of a trains table and append the outcome columns.
Used by `scripts/bulk_calculate.py` for CSV → CSV runs.

Input columns (case-insensitive, aliases accepted)
--------------------------------------------------
- locomotive          (loco, locomotive_type)      label or type id
- locomotive_count    (count, locos)               default 1
- cold_count          (cold)                       default 0
- train_weight_t      (weight, train_weight)
- axle_count          (axles)
- route_id            (route)
- conditional_wagons  (cond_wagons)                optional

Output columns added
--------------------
energy_kwh, axle_load, coefficient, train_length_m, max_weight_t,
max_weight_exceeded, error   (error = ErrorKind value, empty on success)

Notes
-----
- A bad row never stops the batch; it gets `error` filled instead.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd

from railnorm.core.config import EngineConfig, get_engine_config
from railnorm.core.models import CalculationRequest, ErrorKind
from railnorm.core.types import StrPath
from railnorm.engine import compute
from railnorm.infra.logging import get_logger
from railnorm.rolling_stock.locomotives import normalize_locomotive_label
from railnorm.routes.catalog import RouteCatalog

_log = get_logger(__name__)

INPUT_COLUMNS = [
      "locomotive"
    , "locomotive_count"
    , "cold_count"
    , "train_weight_t"
    , "axle_count"
    , "route_id"
    , "conditional_wagons"
]

OUTPUT_COLUMNS = [
      "energy_kwh"
    , "axle_load"
    , "coefficient"
    , "train_length_m"
    , "max_weight_t"
    , "max_weight_exceeded"
    , "error"
]

_ALIASES: Dict[str, tuple] = {
      "locomotive": ("locomotive", "loco", "locomotive_type")
    , "locomotive_count": ("locomotive_count", "count", "locos")
    , "cold_count": ("cold_count", "cold")
    , "train_weight_t": ("train_weight_t", "weight", "train_weight")
    , "axle_count": ("axle_count", "axles")
    , "route_id": ("route_id", "route")
    , "conditional_wagons": ("conditional_wagons", "cond_wagons")
}

_NUMERIC = ("locomotive_count", "cold_count", "train_weight_t", "axle_count", "conditional_wagons")


# ────────────────────────────────────────────────────────────────────────────────
# Input normalization
# ────────────────────────────────────────────────────────────────────────────────

def normalize_columns(df_raw: pd.DataFrame) -> pd.DataFrame:
    """
    Map aliased/case-variant headers onto INPUT_COLUMNS. Missing optional
    columns are filled with their defaults; numeric columns are coerced.

    Raises
    ------
    ValueError
        If one of locomotive / train_weight_t / axle_count / route_id is missing.
    """
    cols_map = {str(c).lower().strip(): c for c in df_raw.columns}
    data: Dict[str, Any] = {}
    for canonical, aliases in _ALIASES.items():
        src = next((cols_map[a] for a in aliases if a in cols_map), None)
        if src is not None:
            data[canonical] = df_raw[src]

    missing = [c for c in ("locomotive", "train_weight_t", "axle_count", "route_id") if c not in data]
    if missing:
        raise ValueError(f"Trains table is missing required columns: {missing}")

    df = pd.DataFrame(data, index=df_raw.index)
    if "locomotive_count" not in df:
        df["locomotive_count"] = 1
    if "cold_count" not in df:
        df["cold_count"] = 0
    if "conditional_wagons" not in df:
        df["conditional_wagons"] = float("nan")

    for col in _NUMERIC:
        df[col] = pd.to_numeric(df[col], errors="coerce")
    df["locomotive"] = df["locomotive"].astype(str).str.strip()
    df["route_id"] = df["route_id"].astype(str).str.strip()
    return df[INPUT_COLUMNS]


def load_trains_csv(csv_path: StrPath) -> pd.DataFrame:
    """
    Read a trains CSV and normalize its columns.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    """
    path = Path(csv_path)
    if not path.is_file():
        raise FileNotFoundError(f"Trains CSV not found: {path}")

    df = normalize_columns(pd.read_csv(path))
    _log.info("load_trains_csv: loaded %d rows from '%s'.", len(df), path)
    return df


# ────────────────────────────────────────────────────────────────────────────────
# Evaluation
# ────────────────────────────────────────────────────────────────────────────────

def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def _as_count(value: Any, column: str) -> int:
    """Whole-number count, ValueError for fractions and non-finite values."""
    number = float(value)
    if not number.is_integer():
        raise ValueError(f"{column} must be a whole number, got {value!r}")
    return int(number)


def _opt_int(value: Any, default: Optional[int], column: str) -> Optional[int]:
    if _is_empty(value):
        return default
    return _as_count(value, column)


def _row_request(row: Mapping[str, Any]) -> CalculationRequest:
    label = str(row["locomotive"])
    weight = float(row["train_weight_t"])
    axles = row["axle_count"]
    if _is_empty(axles):
        raise ValueError("axle_count is empty")
    return CalculationRequest.simple(
          locomotive_type=normalize_locomotive_label(label) or label
        , train_weight_t=weight
        , axle_count=_as_count(axles, "axle_count")
        , route_id=str(row["route_id"])
        , locomotive_count=_opt_int(row["locomotive_count"], 1, "locomotive_count")
        , cold_count=_opt_int(row["cold_count"], 0, "cold_count")
        , conditional_wagons=_opt_int(row["conditional_wagons"], None, "conditional_wagons")
    )


def _empty_outcome(error: str) -> Dict[str, Any]:
    return {
          "energy_kwh": None
        , "axle_load": None
        , "coefficient": None
        , "train_length_m": None
        , "max_weight_t": None
        , "max_weight_exceeded": False
        , "error": error
    }


def evaluate_frame(
      df: pd.DataFrame
    , catalog: RouteCatalog
    , *
    , config: Optional[EngineConfig] = None
) -> pd.DataFrame:
    """
    Evaluate every train row against `catalog`.

    Parameters
    ----------
    df : pd.DataFrame
        Trains table (raw or already normalized).
    catalog : RouteCatalog
    config : Optional[EngineConfig]

    Returns
    -------
    pd.DataFrame
        INPUT_COLUMNS + OUTPUT_COLUMNS, one row per input row.
    """
    cfg = config or get_engine_config()
    trains = normalize_columns(df)

    rows: List[Dict[str, Any]] = []
    for row in trains.to_dict("records"):
        try:
            request = _row_request(row)
        except (TypeError, ValueError) as e:
            _log.warning("evaluate_frame: bad row %s (%s)", row, e)
            rows.append(_empty_outcome(ErrorKind.INVALID_INPUT.value))
            continue

        outcome = compute(request, catalog, config=cfg)
        if not outcome.ok:
            rows.append(_empty_outcome(outcome.kind.value))
            continue
        rows.append({
              "energy_kwh": outcome.energy_consumption_kwh
            , "axle_load": outcome.axle_load
            , "coefficient": outcome.coefficient_used
            , "train_length_m": outcome.train_length_m
            , "max_weight_t": outcome.max_weight_tons
            , "max_weight_exceeded": outcome.max_weight_exceeded
            , "error": ""
        })

    out = pd.concat(
          [trains.reset_index(drop=True), pd.DataFrame(rows, columns=OUTPUT_COLUMNS)]
        , axis=1
    )
    n_err = int((out["error"] != "").sum())
    _log.info("evaluate_frame: %d trains evaluated, %d with errors.", len(out), n_err)
    return out
