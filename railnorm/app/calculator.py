# railnorm/app/calculator.py
# -*- coding: utf-8 -*-
"""
Calculator facade (what a form or CLI talks to)
===============================================

Wraps the pure engine with the caller-side concerns:
- advisory axle-load bounds (5–25 t/axle by default); these are warnings,
  the engine still computes outside them,
- calculation history (SQLite, latest N kept),
- user custom routes parsed from text and overlaid on the file catalog.

The engine catalog is never mutated: adding custom routes swaps in a new
merged `RouteCatalog`.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from railnorm.core.config import EngineConfig, get_engine_config
from railnorm.core.models import (
      CalculationRequest
    , ComputationError
    , ComputationResult
    , RouteRecord
)
from railnorm.core.types import HistoryPayload, Number, StrPath
from railnorm.engine import Outcome, compute
from railnorm.infra import database_manager as db
from railnorm.infra.logging import get_logger
from railnorm.rolling_stock.locomotives import LOCOMOTIVE_SPECS
from railnorm.routes.catalog import RouteCatalog
from railnorm.routes.markdown_parser import parse_routes_text, route_id_from_name

_log = get_logger(__name__)

CUSTOM_ROUTE_PREFIX = "custom-"


# ────────────────────────────────────────────────────────────────────────────────
# Advisory validation
# ────────────────────────────────────────────────────────────────────────────────

def advisory_warnings(
      train_weight_t: Number
    , axle_count: int
    , *
    , config: Optional[EngineConfig] = None
) -> List[str]:
    """
    Form-level axle-load sanity check. Never blocks a computation.
    """
    cfg = config or get_engine_config()
    if not axle_count or axle_count <= 0 or not train_weight_t:
        return []
    load = float(train_weight_t) / int(axle_count)
    if load > cfg.max_axle_load_t:
        return [f"Axle load {load:.2f} t/axle exceeds {cfg.max_axle_load_t:g} t/axle."]
    if load < cfg.min_axle_load_t:
        return [f"Axle load {load:.2f} t/axle is below {cfg.min_axle_load_t:g} t/axle."]
    return []


# ────────────────────────────────────────────────────────────────────────────────
# Outcome carrier
# ────────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CalculationOutcome:
    """
    Engine outcome plus caller-side warnings.

    `warnings` are advisory (axle-load bounds, max weight exceeded); a hard
    failure is `outcome` being a ComputationError.
    """

    request: CalculationRequest
    outcome: Outcome
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return bool(self.outcome.ok)

    def to_dict(self) -> Dict[str, Any]:
        return {
              "request": self.request.to_dict()
            , "outcome": self.outcome.to_dict()
            , "warnings": list(self.warnings)
        }


# ────────────────────────────────────────────────────────────────────────────────
# Calculator
# ────────────────────────────────────────────────────────────────────────────────

class Calculator:
    """
    Stateful front for one user session.

    Parameters
    ----------
    catalog : RouteCatalog
        Routes loaded from files.
    config : Optional[EngineConfig]
    db_path : Optional[path]
        When given, history and custom routes are persisted there and custom
        routes stored earlier are loaded on start.
    """

    def __init__(
        self
        , catalog: RouteCatalog
        , *
        , config: Optional[EngineConfig] = None
        , db_path: Optional[StrPath] = None
    ) -> None:
        self.config = config or get_engine_config()
        self.db_path = Path(db_path) if db_path is not None else None
        self._file_catalog = catalog
        self._custom: Dict[str, RouteRecord] = {}
        self._catalog = catalog

        if self.db_path is not None:
            with db.db_session(self.db_path) as conn:
                stored = db.load_custom_routes(conn)
            if stored:
                self._set_custom(stored)
                _log.info("Calculator: restored %d custom routes from '%s'.", len(stored), self.db_path)

    # ── catalog ───────────────────────────────────────────────────────────────
    @property
    def catalog(self) -> RouteCatalog:
        return self._catalog

    def _set_custom(self, records: List[RouteRecord]) -> None:
        for r in records:
            self._custom[r.id] = r
        self._catalog = self._file_catalog.merged_with(self._custom.values())

    def custom_routes(self) -> List[RouteRecord]:
        return list(self._custom.values())

    def add_custom_routes(
        self
        , text: str
        , *
        , persist: bool = True
    ) -> List[RouteRecord]:
        """
        Parse routes from free text and make them available for lookup.

        Ids are prefixed with 'custom-' so they never shadow file routes.
        Returns the routes added (empty when nothing could be parsed).
        """
        parsed = parse_routes_text(text, source=None)
        records = [
              dataclasses.replace(r, id=CUSTOM_ROUTE_PREFIX + route_id_from_name(r.name))
            for r in parsed
        ]
        if not records:
            _log.warning("Calculator: no routes recognised in custom text.")
            return []

        self._set_custom(records)
        if persist and self.db_path is not None:
            with db.db_session(self.db_path) as conn:
                for r in records:
                    db.upsert_custom_route(conn, r)
        _log.info("Calculator: %d custom routes added.", len(records))
        return records

    # ── computation ───────────────────────────────────────────────────────────
    def calculate(
        self
        , request: CalculationRequest
    ) -> CalculationOutcome:
        warnings = advisory_warnings(request.train_weight_t, request.axle_count, config=self.config)
        outcome = compute(request, self._catalog, config=self.config)
        if isinstance(outcome, ComputationResult) and outcome.max_weight_exceeded:
            warnings.append(
                f"Train weight {outcome.train_weight_t:g} t exceeds the route limit "
                f"of {outcome.max_weight_tons} t for this locomotive."
            )
        return CalculationOutcome(request=request, outcome=outcome, warnings=warnings)

    # ── history ───────────────────────────────────────────────────────────────
    def _history_payload(self, result: CalculationOutcome) -> HistoryPayload:
        outcome = result.outcome
        route = self._catalog.lookup(outcome.route_id)
        spec = LOCOMOTIVE_SPECS.get(outcome.locomotive_type)
        return {
              "date": datetime.now().isoformat(timespec="seconds")
            , "route_name": route.name if route is not None else outcome.route_id
            , "locomotive_name": spec.display_name if spec is not None else outcome.locomotive_type
            , **result.to_dict()
        }

    def save_to_history(
        self
        , result: CalculationOutcome
    ) -> int:
        """
        Store a successful outcome. Raises ValueError for failed outcomes or
        when the calculator has no database.
        """
        if isinstance(result.outcome, ComputationError):
            raise ValueError("Only successful calculations can be saved to history.")
        if self.db_path is None:
            raise ValueError("Calculator was created without a db_path.")
        with db.db_session(self.db_path) as conn:
            return db.add_history_entry(conn, self._history_payload(result))

    def history(self) -> List[HistoryPayload]:
        if self.db_path is None:
            return []
        with db.db_session(self.db_path) as conn:
            return db.list_history(conn)

    def clear_history(self) -> int:
        if self.db_path is None:
            return 0
        with db.db_session(self.db_path) as conn:
            return db.clear_history(conn)
