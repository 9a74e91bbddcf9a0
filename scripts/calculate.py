#!/usr/bin/env python3
# scripts/calculate.py
# -*- coding: utf-8 -*-

from __future__ import annotations

# --- path bootstrap (must be the first lines of the file) ---
from pathlib import Path
import sys
ROOT = Path(__file__).resolve().parents[1]  # repo root (one level above /scripts)
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
# ------------------------------------------------------------

import argparse
import json
import logging
from dataclasses import replace

from railnorm.app.calculator import Calculator
from railnorm.app.report import format_result_report
from railnorm.core.config import (
      LEGACY_VL10_ALIASES
    , TieBreak
    , get_catalog_paths
    , get_engine_config
    , get_history_defaults
)
from railnorm.core.models import CalculationRequest
from railnorm.infra.logging import init_logging
from railnorm.rolling_stock.locomotives import get_locomotive_spec, normalize_locomotive_label
from railnorm.routes.loader import build_catalog
from railnorm.routes.markdown_parser import route_id_from_name

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_COMPUTATION_ERROR = 2


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        description="Compute the electric energy norm for one freight train on one route and print JSON."
    )
    p.add_argument("--route", required=True, help="Route id (e.g. 'абдулино-дема') or route name.")
    p.add_argument("--locomotive", required=True, help="Locomotive type or label (vl10u, 'ВЛ10У', 2ЭС6, ...).")
    p.add_argument("--weight", type=float, required=True, help="Train weight in tonnes.")
    p.add_argument("--axles", type=int, required=True, help="Axle count of the train.")
    p.add_argument("--locomotive-count", type=int, default=1, help="Active locomotives. Default: 1")
    p.add_argument("--cold-count", type=int, default=0, help="Cold (towed) locomotives. Default: 0")
    p.add_argument("--wagon-count", type=int, default=None, help="Physical wagons (informational).")
    p.add_argument(
          "--conditional-wagons"
        , type=int
        , default=None
        , help="Conditional wagons; when > 0 the train length is reported."
    )

    # ── Engine options ─────────────────────────────────────────────────────────
    p.add_argument(
          "--tie-break"
        , default=get_engine_config().tie_break.value
        , choices=[t.value for t in TieBreak]
        , help="Which key wins when two axle loads are equally close. Default: lower"
    )
    p.add_argument(
          "--legacy-vl10-alias"
        , action="store_true"
        , help="Use the ВЛ10 table for ВЛ10У when a route has no ВЛ10У row."
    )

    # ── Data paths ─────────────────────────────────────────────────────────────
    p.add_argument(
          "--routes-dir"
        , type=Path
        , default=get_catalog_paths().routes_dir
        , help=f"Directory with route *.md / *.json files. Default: {get_catalog_paths().routes_dir}"
    )
    p.add_argument("--custom-routes", type=Path, default=None, help="Text file with extra routes to add.")

    # DB params
    p.add_argument(
          "--db-path"
        , type=Path
        , default=get_history_defaults().db_path
        , help=f"SQLite path for history/custom routes. Default: {get_history_defaults().db_path}"
    )
    p.add_argument("--save-history", action="store_true", help="Store a successful result in the history.")

    # UX
    p.add_argument("--report", type=Path, default=None, help="Write the text report to this path.")
    p.add_argument("--pretty", action="store_true", help="Pretty-print JSON.")
    p.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return p


def _resolve_route_id(calculator: Calculator, route: str) -> str:
    if route in calculator.catalog:
        return route
    by_name = route_id_from_name(route)
    if by_name in calculator.catalog:
        return by_name
    return route


def main(argv=None) -> int:
    args = _build_parser().parse_args(argv)

    init_logging(level=args.log_level, force=True, write_output=False)

    config = replace(get_engine_config(), tie_break=TieBreak(args.tie_break))
    if args.legacy_vl10_alias:
        config = config.with_aliases(LEGACY_VL10_ALIASES)

    uses_db = bool(args.save_history or args.custom_routes)
    calculator = Calculator(
          build_catalog(args.routes_dir)
        , config=config
        , db_path=args.db_path if uses_db else None
    )
    if args.custom_routes is not None:
        calculator.add_custom_routes(args.custom_routes.read_text(encoding="utf-8"))

    locomotive = normalize_locomotive_label(args.locomotive) or args.locomotive
    request = CalculationRequest.simple(
          locomotive_type=locomotive
        , train_weight_t=args.weight
        , axle_count=args.axles
        , route_id=_resolve_route_id(calculator, args.route)
        , locomotive_count=args.locomotive_count
        , cold_count=args.cold_count
        , wagon_count=args.wagon_count
        , conditional_wagons=args.conditional_wagons
    )
    outcome = calculator.calculate(request)
    for w in outcome.warnings:
        log.warning(w)

    if outcome.ok:
        if args.save_history:
            calculator.save_to_history(outcome)
        if args.report is not None:
            result = outcome.outcome
            report = format_result_report(
                  result
                , calculator.catalog.require(result.route_id)
                , get_locomotive_spec(result.locomotive_type)
                , request=request
            )
            args.report.parent.mkdir(parents=True, exist_ok=True)
            args.report.write_text(report + "\n", encoding="utf-8")
            log.info("Report written to '%s'.", args.report)

    payload = outcome.to_dict()
    if args.pretty:
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        print(json.dumps(payload, ensure_ascii=False, separators=(",", ":")))
    return EXIT_OK if outcome.ok else EXIT_COMPUTATION_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
