# railnorm/routes/markdown_parser.py
# -*- coding: utf-8 -*-
"""
Route markdown parser
=====================

Purpose
-------
Turn route source documents into `RouteRecord`s. Three layouts are accepted:

1) Route file (one route per document)::

       # Абдулино - Дема
       - 233 км
       - 3,45 часа
       - Допустимый вес: 6000 т

       | нагрузка на ось |        |          | ... |
       | Один | СМЕТ | Серия | 6 | 7 | 8 | ... | 23 |
       | 5200 | 6000 | ВЛ10  | 89.5 | 84.1 | ... |

   The first two cells of a data row are the 'one' (single locomotive) and
   'smet' max weights; the third is the locomotive series; the remaining
   cells line up with the axle-load header row.

2) Compact custom table (one or several routes per text)::

       # Кинель - Абдулино
       ## 165 км
       | нагрузка на ось | 6 | 7 | 8 | 9 |
       | ВЛ10У | 90.1 | 85.0 | - | 77.3 |

3) Simple lines without coefficients::

       Сызрань - Абдулино | 318

Notes
-----
- Locomotive labels are normalized with `normalize_locomotive_label`.
- 'one' / 'smet' go to `CoefficientTable.annotations`, never to axle loads.
- The per-locomotive max weight is the 'one' value, else the route-wide
  'Допустимый вес'.
- A route without a name or with distance ≤ 0 yields None (logged).
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from railnorm.core.models import CoefficientTable, RouteRecord
from railnorm.infra.logging import get_logger
from railnorm.rolling_stock.locomotives import normalize_locomotive_label

_log = get_logger(__name__)

_DISTANCE_BULLET = re.compile(r"^-\s*(\d+)\s*км", re.IGNORECASE)
_DISTANCE_HEADING = re.compile(r"^##\s*(\d+)\s*км", re.IGNORECASE)
_TRAVEL_TIME = re.compile(r"^-\s*(\d+(?:[,.]\d+)?)\s*час", re.IGNORECASE)
_MAX_WEIGHT = re.compile(r"^-\s*Допустимый вес:\s*(\d+)\s*т", re.IGNORECASE)
_AXLE_HEADER_RANGE = range(6, 24)

_ONE = "one"
_SMET = "smet"


# ────────────────────────────────────────────────────────────────────────────────
# Helpers
# ────────────────────────────────────────────────────────────────────────────────
def route_id_from_name(name: str) -> str:
    """
    'Абдулино - Дема (чет)' → 'абдулино-дема-чет'
    """
    rid = re.sub(r"[^a-zа-яё0-9]", "-", str(name).lower())
    rid = re.sub(r"-+", "-", rid)
    return rid.strip("-")


def _cells(line: str) -> List[str]:
    return [c.strip() for c in line.strip().strip("|").split("|") if c.strip()]


def _to_float(cell: str) -> Optional[float]:
    """Finite float or None ("nan", "inf" and text are unreadable)."""
    try:
        value = float(cell.replace(",", ".").replace(" ", ""))
    except (AttributeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def _to_int(cell: str) -> Optional[int]:
    text = str(cell).strip()
    return int(text) if text.isdigit() else None


@dataclass
class _Draft:
    """Mutable accumulator while reading one route."""

    name: str = ""
    distance_km: int = 0
    travel_time_h: Optional[float] = None
    route_max_weight: Optional[int] = None
    loads: Dict[str, Dict[int, float]] = field(default_factory=dict)
    notes: Dict[str, Dict[str, float]] = field(default_factory=dict)
    axle_header: List[Tuple[int, int]] = field(default_factory=list)  # (cell index, axle load)
    in_table: bool = False
    compact: bool = False


# ────────────────────────────────────────────────────────────────────────────────
# Table rows
# ────────────────────────────────────────────────────────────────────────────────
def _is_table_header(cells: List[str]) -> bool:
    first = cells[0].lower() if cells else ""
    return "нагрузка" in first or "max вес" in first


def _compact_header(cells: List[str]) -> List[Tuple[int, int]]:
    """
    '| нагрузка на ось | 6 | 7 | ... |' → [(1, 6), (2, 7), ...]
    """
    return [(i, v) for i, v in ((i, _to_int(c)) for i, c in enumerate(cells) if i > 0) if v is not None]


def _is_axle_header(cells: List[str]) -> bool:
    lowered = [c.lower() for c in cells]
    has_one = any("один" in c for c in lowered)
    has_smet = any("смет" in c for c in lowered)
    has_loads = any((_to_int(c) or 0) in _AXLE_HEADER_RANGE for c in cells)
    return has_one and has_smet and has_loads


def _read_cell(draft: _Draft, loco: str, what: str, cell: str) -> Optional[float]:
    value = _to_float(cell)
    if value is None and cell.strip("- "):
        _log.warning(
            "markdown_parser: '%s' %s → unreadable %s cell %r ignored.",
            draft.name or "<text>", loco, what, cell,
        )
    return value


def _merge_row(draft: _Draft, loco: str, loads: Dict[int, float], notes: Dict[str, float]) -> None:
    if not loads and not notes:
        _log.warning("markdown_parser: '%s' %s → row without usable values dropped.", draft.name or "<text>", loco)
        return
    draft.loads.setdefault(loco, {}).update(loads)
    draft.notes.setdefault(loco, {}).update(notes)


def _read_full_row(draft: _Draft, cells: List[str]) -> None:
    if len(cells) < 3:
        return
    loco = normalize_locomotive_label(cells[2])
    if loco is None:
        return

    notes: Dict[str, float] = {}
    for key, cell in ((_ONE, cells[0]), (_SMET, cells[1])):
        value = _read_cell(draft, loco, key, cell)
        if value is not None:
            notes[key] = value

    loads: Dict[int, float] = {}
    for idx, load in draft.axle_header:
        if idx < len(cells) and idx >= 3:
            coeff = _read_cell(draft, loco, f"axle load {load}", cells[idx])
            if coeff is not None and coeff > 0:
                loads[load] = coeff
    _merge_row(draft, loco, loads, notes)


def _read_compact_row(draft: _Draft, cells: List[str]) -> None:
    loco = normalize_locomotive_label(cells[0])
    if loco is None:
        return
    loads: Dict[int, float] = {}
    for idx, load in draft.axle_header:
        if idx < len(cells):
            coeff = _read_cell(draft, loco, f"axle load {load}", cells[idx])
            if coeff is not None and coeff > 0:
                loads[load] = coeff
    _merge_row(draft, loco, loads, {})


def _read_table_line(draft: _Draft, line: str) -> None:
    cells = _cells(line)
    if not cells or set("".join(cells)) <= set("-: "):
        return  # markdown separator row

    if not draft.in_table:
        if _is_table_header(cells):
            draft.in_table = True
            compact = _compact_header(cells)
            if compact:
                draft.compact = True
                draft.axle_header = compact
        return

    if _is_axle_header(cells):
        draft.axle_header = [(i, v) for i, v in ((i, _to_int(c)) for i, c in enumerate(cells)) if v is not None]
        draft.compact = False
        return

    if draft.compact:
        _read_compact_row(draft, cells)
    elif draft.axle_header:
        _read_full_row(draft, cells)


# ────────────────────────────────────────────────────────────────────────────────
# Draft → record
# ────────────────────────────────────────────────────────────────────────────────
def _finish(draft: _Draft, source: Optional[str]) -> Optional[RouteRecord]:
    if not draft.name or draft.distance_km <= 0:
        _log.info(
            "markdown_parser: %s → missing name or distance (name=%r, distance=%s); skipped.",
            source or "<text>", draft.name, draft.distance_km,
        )
        return None

    coefficients: Dict[str, CoefficientTable] = {}
    max_weights: Dict[str, int] = {}
    for loco in sorted(set(draft.loads) | set(draft.notes)):
        loads = draft.loads.get(loco) or {}
        notes = draft.notes.get(loco) or {}
        if not loads and not notes:
            continue
        coefficients[loco] = CoefficientTable(axle_loads=loads, annotations=notes)
        if _ONE in notes:
            max_weights[loco] = int(notes[_ONE])

    if draft.route_max_weight is not None:
        for loco in coefficients:
            max_weights.setdefault(loco, draft.route_max_weight)

    record = RouteRecord(
          id=route_id_from_name(draft.name)
        , name=draft.name
        , distance_km=draft.distance_km
        , travel_time_h=draft.travel_time_h
        , max_weight_by_locomotive=max_weights
        , coefficients=coefficients
        , description=f"Route file {source}" if source else "Custom route"
        , source=source
    )
    _log.debug(
        "markdown_parser: %s → '%s' (%d km, %s h), tables=%s",
        source or "<text>", record.name, record.distance_km, record.travel_time_h,
        {k: len(t.axle_loads) for k, t in coefficients.items()},
    )
    return record


def _read_line(draft: _Draft, line: str) -> None:
    if line.startswith("##"):
        m = _DISTANCE_HEADING.match(line)
        if m:
            draft.distance_km = int(m.group(1))
    elif line.startswith("-"):
        m = _DISTANCE_BULLET.match(line)
        if m:
            draft.distance_km = int(m.group(1))
        m = _TRAVEL_TIME.match(line)
        if m:
            draft.travel_time_h = float(m.group(1).replace(",", "."))
        m = _MAX_WEIGHT.match(line)
        if m:
            draft.route_max_weight = int(m.group(1))
    elif line.startswith("|"):
        _read_table_line(draft, line)


# ────────────────────────────────────────────────────────────────────────────────
# Public API
# ────────────────────────────────────────────────────────────────────────────────
def parse_route_markdown(
      text: str
    , source: Optional[str] = None
) -> Optional[RouteRecord]:
    """
    Parse a single-route document. The last '# Title' wins as the name.
    """
    draft = _Draft()
    for raw in text.splitlines():
        line = raw.strip()
        if line.startswith("#") and not line.startswith("##"):
            draft.name = line.lstrip("#").strip()
        else:
            _read_line(draft, line)
    return _finish(draft, source)


def parse_simple_line(line: str) -> Optional[RouteRecord]:
    """
    'Name | 233' → RouteRecord without coefficients, else None.
    """
    text = line.strip()
    if not text or text.startswith("#") or text.startswith("|"):
        return None
    parts = [p.strip() for p in text.split("|")]
    if len(parts) != 2 or not parts[0]:
        return None
    distance = _to_int(parts[1])
    if distance is None or distance <= 0:
        return None
    return RouteRecord(
          id=route_id_from_name(parts[0])
        , name=parts[0]
        , distance_km=distance
        , description="Custom route"
    )


def parse_routes_text(
      text: str
    , source: Optional[str] = None
) -> List[RouteRecord]:
    """
    Parse free text holding several routes.

    Top-level '# Title' lines start a new route; 'name | distance' lines are
    read as simple routes. Routes missing a name or distance are dropped.
    """
    routes: List[RouteRecord] = []
    draft: Optional[_Draft] = None

    for raw in text.splitlines():
        line = raw.strip()
        if line.startswith("#") and not line.startswith("##"):
            if draft is not None:
                record = _finish(draft, source)
                if record is not None:
                    routes.append(record)
            draft = _Draft(name=line.lstrip("#").strip())
            continue

        simple = parse_simple_line(line)
        if simple is not None:
            routes.append(simple)
            continue

        if draft is not None:
            _read_line(draft, line)

    if draft is not None:
        record = _finish(draft, source)
        if record is not None:
            routes.append(record)

    _log.info("markdown_parser: parsed %d routes from %s.", len(routes), source or "text")
    return routes
