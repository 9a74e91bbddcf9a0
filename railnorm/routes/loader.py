# railnorm/routes/loader.py
# -*- coding: utf-8 -*-
"""
Route files loader (markdown + JSON) → RouteCatalog
===================================================

Purpose
-------
Staged ingestion of route data from a local directory:

    ingest (read *.md / *.json) → parse → validate → build immutable catalog

Nothing here runs inside the engine: the catalog is handed over only once it
is complete.

JSON record shape
-----------------
{
  "name":          str,
  "id":            str,             # optional, derived from name otherwise
  "distance_km":   int,             # > 0   (alias: "distance")
  "travel_time_h": float,           # optional (alias: "travelTime")
  "max_weight":    int,             # optional route-wide max weight (alias: "maxWeight")
  "max_weight_by_locomotive": {"vl10": 5200},     # optional
  "coefficients":  {"vl10": {"6": 89.5, "7": 84.1, "one": 5200, "smet": 6000}}
}

A file may hold one record, a list of records, or {"routes": [...]}.
Numeric coefficient keys become axle loads; anything else becomes an
annotation. Locomotive keys are normalized ('es6' → '2es6').

Public API
----------
- parse_route_json(data, source=None) -> Optional[RouteRecord]
- load_route_file(path) -> List[RouteRecord]
- load_route_records(directory) -> List[RouteRecord]
- build_catalog(directory=None) -> RouteCatalog

Notes
-----
- Unreadable or malformed files are logged and skipped; loading never raises
  for bad content. A missing directory yields an empty catalog (WARNING).
"""

from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from railnorm.core.config import get_catalog_paths
from railnorm.core.errors import RouteParseError
from railnorm.core.models import CoefficientTable, RouteRecord
from railnorm.core.types import StrPath
from railnorm.infra.logging import get_logger
from railnorm.rolling_stock.locomotives import normalize_locomotive_label
from railnorm.routes.catalog import RouteCatalog
from railnorm.routes.markdown_parser import parse_route_markdown, route_id_from_name

_log = get_logger(__name__)

__all__ = ["parse_route_json", "load_route_file", "load_route_records", "build_catalog"]

_SUFFIXES = (".md", ".json")


# ────────────────────────────────────────────────────────────────────────────────
# Helpers (normalization & coercion)
# ────────────────────────────────────────────────────────────────────────────────
def _first(data: Mapping[str, Any], *keys: str) -> Any:
    for k in keys:
        if data.get(k) is not None:
            return data[k]
    return None


def _as_int(x: Any) -> Optional[int]:
    """Integer coercion; floats with a fractional part are rejected."""
    if x is None or isinstance(x, bool):
        return None
    try:
        f = float(x)
    except (TypeError, ValueError):
        return None
    return int(f) if f.is_integer() else None


def _as_float(x: Any) -> Optional[float]:
    if x is None or isinstance(x, bool):
        return None
    try:
        f = float(x)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def _norm_coefficients(raw: Any, *, source: Optional[str]) -> Dict[str, CoefficientTable]:
    tables: Dict[str, CoefficientTable] = {}
    if not isinstance(raw, Mapping):
        return tables
    for label, values in raw.items():
        loco = normalize_locomotive_label(str(label))
        if loco is None:
            _log.warning("loader: %s → unknown locomotive key %r ignored.", source or "<json>", label)
            continue
        if not isinstance(values, Mapping):
            continue
        try:
            tables[loco] = CoefficientTable.from_mapping(values)
        except (TypeError, ValueError) as e:
            raise RouteParseError(f"Bad coefficient table for '{label}': {e}") from e
    return tables


# ────────────────────────────────────────────────────────────────────────────────
# JSON records
# ────────────────────────────────────────────────────────────────────────────────
def parse_route_json(
      data: Mapping[str, Any]
    , source: Optional[str] = None
) -> Optional[RouteRecord]:
    """
    Normalize one JSON route record. Returns None when name or distance are
    missing; raises RouteParseError when the coefficient table is malformed.
    """
    if not isinstance(data, Mapping):
        return None

    name = str(data.get("name") or "").strip()
    distance = _as_int(_first(data, "distance_km", "distance"))
    if not name or distance is None:
        _log.info("loader: %s → record without name or distance skipped.", source or "<json>")
        return None

    travel = _first(data, "travel_time_h", "travelTime")
    travel_h = _as_float(travel)
    if travel is not None and travel_h is None:
        _log.warning("loader: %s → '%s' has unreadable travel time %r; skipped.", source or "<json>", name, travel)
        return None
    coefficients = _norm_coefficients(data.get("coefficients"), source=source)

    max_weights: Dict[str, int] = {}
    raw_weights = data.get("max_weight_by_locomotive") or {}
    if not isinstance(raw_weights, Mapping):
        _log.warning("loader: %s → '%s' max_weight_by_locomotive is not a mapping; ignored.", source or "<json>", name)
        raw_weights = {}
    for label, value in raw_weights.items():
        loco = normalize_locomotive_label(str(label))
        weight = _as_int(value)
        if loco is not None and weight is not None:
            max_weights[loco] = weight
    for loco, table in coefficients.items():
        one = _as_int(table.annotations.get("one"))
        if one is not None:
            max_weights.setdefault(loco, one)
    route_max = _as_int(_first(data, "max_weight", "maxWeight"))
    if route_max is not None:
        for loco in coefficients:
            max_weights.setdefault(loco, route_max)

    return RouteRecord(
          id=str(data.get("id") or route_id_from_name(name))
        , name=name
        , distance_km=distance
        , travel_time_h=travel_h
        , max_weight_by_locomotive=max_weights
        , coefficients=coefficients
        , description=str(data.get("description") or (f"Route file {source}" if source else ""))
        , source=source
    )


# ────────────────────────────────────────────────────────────────────────────────
# Files
# ────────────────────────────────────────────────────────────────────────────────
def load_route_file(path: StrPath) -> List[RouteRecord]:
    """
    Parse one route file. Returns [] (logged) when the file cannot be used.
    """
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        _log.error("loader: cannot read '%s': %s", p, e)
        return []

    if p.suffix.lower() == ".json":
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            _log.error("loader: failed to parse '%s': %s", p, e)
            return []
        if isinstance(payload, Mapping) and isinstance(payload.get("routes"), list):
            payload = payload["routes"]
        items = payload if isinstance(payload, list) else [payload]
        records = []
        for i, item in enumerate(items):
            try:
                records.append(parse_route_json(item, source=p.name))
            except RouteParseError as e:
                _log.error("loader: '%s' record #%d skipped: %s", p.name, i, e)
    else:
        records = [parse_route_markdown(text, source=p.name)]

    out = [r for r in records if r is not None]
    if not out:
        _log.warning("loader: '%s' produced no route.", p.name)
    return out


def load_route_records(directory: StrPath) -> List[RouteRecord]:
    """
    Read every *.md / *.json file under `directory` (sorted by name).
    """
    base = Path(directory)
    if not base.is_dir():
        _log.warning("loader: routes directory '%s' not found; no routes loaded.", base)
        return []

    files = sorted(p for p in base.iterdir() if p.is_file() and p.suffix.lower() in _SUFFIXES)
    _log.info("loader: %d route files found in '%s'.", len(files), base)

    records: List[RouteRecord] = []
    for fp in files:
        loaded = load_route_file(fp)
        for r in loaded:
            _log.debug("loader: ✓ %s → '%s' (%d km)", fp.name, r.name, r.distance_km)
        records.extend(loaded)
    return records


def build_catalog(directory: Optional[StrPath] = None) -> RouteCatalog:
    """
    Full pipeline: ingest → validate → immutable RouteCatalog.
    """
    base = Path(directory) if directory is not None else get_catalog_paths().routes_dir
    return RouteCatalog.from_records(load_route_records(base))
