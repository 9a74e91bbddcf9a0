# railnorm/rolling_stock/locomotives.py
# -*- coding: utf-8 -*-
"""
Locomotive reference table: type id, display name and physical length.

This module centralizes the *static* locomotive vocabulary used to:
- normalize locomotive labels found in route files ('ВЛ10У', 'VL10U', '2ЭС6'),
- validate the locomotive types a caller puts into a train composition,
- compute train length (the only use of `length_m`).

Notes
-----
• Lengths are per locomotive unit as printed in the reference data.
• The table is immutable for the lifetime of the process; extend it here.
"""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import List, Mapping, Optional

from railnorm.core.models import LocomotiveSpec
from railnorm.infra.logging import get_logger

_log = get_logger(__name__)

# ────────────────────────────────────────────────────────────────────────────────
# Reference table
# ────────────────────────────────────────────────────────────────────────────────
LOCOMOTIVE_SPECS: Mapping[str, LocomotiveSpec] = MappingProxyType({
    "vl10":   LocomotiveSpec(type="vl10",   display_name="ВЛ10",   length_m=32.0),
    "vl10u":  LocomotiveSpec(type="vl10u",  display_name="ВЛ10У",  length_m=32.0),
    "vl10k":  LocomotiveSpec(type="vl10k",  display_name="ВЛ10К",  length_m=30.0),
    "vl10uk": LocomotiveSpec(type="vl10uk", display_name="ВЛ10УК", length_m=32.0),
    "2es6":   LocomotiveSpec(type="2es6",   display_name="2ЭС6",   length_m=34.0),
})

# Label spellings → type id. Longest labels first: 'ВЛ10УК' contains 'ВЛ10У'.
_LABEL_PATTERNS = (
      ("vl10uk", re.compile(r"(ВЛ|VL)\s*-?\s*10\s*(УК|UK)", re.IGNORECASE))
    , ("vl10u",  re.compile(r"(ВЛ|VL)\s*-?\s*10\s*(У|U)", re.IGNORECASE))
    , ("vl10k",  re.compile(r"(ВЛ|VL)\s*-?\s*10\s*(К|K)", re.IGNORECASE))
    , ("vl10",   re.compile(r"(ВЛ|VL)\s*-?\s*10", re.IGNORECASE))
    , ("2es6",   re.compile(r"(2?\s*(ЭС|ES)\s*6)", re.IGNORECASE))
)

__all__ = [
    "LOCOMOTIVE_SPECS",
    "list_locomotive_types",
    "get_locomotive_spec",
    "is_known_locomotive",
    "normalize_locomotive_label",
]

# ────────────────────────────────────────────────────────────────────────────────
# Tiny helper API
# ────────────────────────────────────────────────────────────────────────────────

def list_locomotive_types() -> List[str]:
    """
    Return available type ids (stable order for CLI help/UX).
    """
    return list(LOCOMOTIVE_SPECS.keys())


def is_known_locomotive(locomotive_type: str) -> bool:
    return locomotive_type in LOCOMOTIVE_SPECS


def get_locomotive_spec(locomotive_type: str) -> LocomotiveSpec:
    """
    Return the reference entry for a type id.
    Raises KeyError if unknown.
    """
    try:
        return LOCOMOTIVE_SPECS[locomotive_type]
    except KeyError:
        _log.error("locomotives: unknown locomotive type=%s", locomotive_type)
        raise KeyError(f"Unknown locomotive type: {locomotive_type}") from None


def normalize_locomotive_label(label: str) -> Optional[str]:
    """
    Map a free-form label from a route table to a type id.

        'ВЛ10'   -> 'vl10'        'ВЛ10У'  -> 'vl10u'
        'ВЛ10К'  -> 'vl10k'       'ВЛ10УК' -> 'vl10uk'
        '2ЭС6'   -> '2es6'        'es6'    -> '2es6'

    Type ids themselves pass through. Returns None for anything else.
    """
    if label is None:
        return None
    text = str(label).strip()
    if not text:
        return None
    if text.lower() in LOCOMOTIVE_SPECS:
        return text.lower()
    for type_id, pattern in _LABEL_PATTERNS:
        if pattern.search(text):
            return type_id
    _log.debug("locomotives: label %r does not match any known type", text)
    return None


# ────────────────────────────────────────────────────────────────────────────────
# CLI / smoke test
# ────────────────────────────────────────────────────────────────────────────────

def main(argv: List[str] | None = None) -> int:
    """
    Small CLI / smoke test for the locomotive table.

    Examples
    --------
    python -m railnorm.rolling_stock.locomotives
    python -m railnorm.rolling_stock.locomotives --label "ВЛ10УК"
    """
    import argparse
    import json

    from railnorm.infra.logging import init_logging

    parser = argparse.ArgumentParser(
        description="Locomotive reference table: list entries or normalize a label."
    )
    parser.add_argument(
          "--label"
        , default=None
        , help="Free-form locomotive label to normalize (e.g. 'ВЛ10У')."
    )
    parser.add_argument(
          "--log-level"
        , default="INFO"
        , choices=["DEBUG", "INFO", "WARNING", "ERROR"]
        , help="Logging level for this smoke test."
    )

    args = parser.parse_args(argv)

    init_logging(
          level=args.log_level
        , force=True
        , write_output=False
    )

    if args.label is not None:
        type_id = normalize_locomotive_label(args.label)
        payload = {
              "label": args.label
            , "type": type_id
            , "spec": None if type_id is None else vars(get_locomotive_spec(type_id))
        }
    else:
        payload = {k: vars(v) for k, v in LOCOMOTIVE_SPECS.items()}

    print(json.dumps(payload, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
