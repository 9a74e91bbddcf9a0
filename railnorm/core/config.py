# railnorm/core/config.py
# -*- coding: utf-8 -*-

"""
Core configuration models and globals.

This module centralizes *pure* configuration structures that are
independent of any specific infrastructure (DB, files, CLI).

It is meant to be safe to import from anywhere.

Current contents
----------------
- TieBreak: policy for equally-close axle-load keys
- EngineConfig: constants and policies used by the consumption engine
- CatalogPaths: where route files live by default
- HistoryDefaults: SQLite history store defaults
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Mapping


# ────────────────────────────────────────────────────────────────────────────────
# Coefficient resolution policies
# ────────────────────────────────────────────────────────────────────────────────

class TieBreak(str, Enum):
    """
    Which key wins when two axle-load keys are equally close to the target.
    """

    LOWER = "lower"
    HIGHER = "higher"


LEGACY_VL10_ALIASES: Mapping[str, str] = MappingProxyType({"vl10u": "vl10"})
"""Older route files only carried a ВЛ10 table; ВЛ10У trains used it."""


def _empty_aliases() -> Mapping[str, str]:
    return MappingProxyType({})


# ────────────────────────────────────────────────────────────────────────────────
# Engine configuration
# ────────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class EngineConfig:
    """
    Constants and policies for the consumption engine.

    Attributes
    ----------
    wagon_unit_length_m : float
        Length of one conditional wagon (m).
    energy_scale : float
        Divisor of weight × coefficient × distance. The reference tables are
        expressed so that dividing by 10 000 and then by 100 gives kWh.
    tie_break : TieBreak
        Nearest-key policy when two axle loads are equally close.
    compatibility_aliases : Mapping[str, str]
        locomotive type → type whose table is used when the route has no table
        of its own. Empty by default (no cross-type fallback).
    min_axle_load_t, max_axle_load_t : float
        Advisory bounds checked by callers; the engine still computes outside them.
    """

    wagon_unit_length_m: float = 14.0
    energy_scale: float = 1_000_000.0
    tie_break: TieBreak = TieBreak.LOWER
    compatibility_aliases: Mapping[str, str] = field(default_factory=_empty_aliases)
    min_axle_load_t: float = 5.0
    max_axle_load_t: float = 25.0

    def with_aliases(
        self
        , aliases: Mapping[str, str]
    ) -> "EngineConfig":
        """
        Return a copy using the given compatibility alias table.
        """
        return replace(self, compatibility_aliases=MappingProxyType(dict(aliases)))

    def alias_for(
        self
        , locomotive_type: str
    ) -> str | None:
        return self.compatibility_aliases.get(locomotive_type)


# ────────────────────────────────────────────────────────────────────────────────
# Paths & persistence defaults
# ────────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CatalogPaths:
    """
    Default locations for route data.

    Attributes
    ----------
    routes_dir : Path
        Directory scanned for `*.md` / `*.json` route files.
    """

    routes_dir: Path = Path("data/routes")


@dataclass(frozen=True)
class HistoryDefaults:
    """
    Defaults for the calculation history store.

    Attributes
    ----------
    db_path : Path
        SQLite file used for history and custom routes.
    max_items : int
        Only the latest N calculations are kept.
    """

    db_path: Path = Path("data/processed/railnorm.sqlite")
    max_items: int = 10


# ────────────────────────────────────────────────────────────────────────────────
# Singleton-style instances
# ────────────────────────────────────────────────────────────────────────────────

# Global, immutable configuration objects used as defaults.
ENGINE_CONFIG = EngineConfig()
CATALOG_PATHS = CatalogPaths()
HISTORY_DEFAULTS = HistoryDefaults()


def get_engine_config() -> EngineConfig:
    """
    Return the global engine configuration.

    Provided as a function in case this ever needs to become dynamic
    (e.g. loaded from a file or environment variables) without changing
    call sites.
    """
    return ENGINE_CONFIG


def get_catalog_paths() -> CatalogPaths:
    return CATALOG_PATHS


def get_history_defaults() -> HistoryDefaults:
    """
    Return the global history store defaults.
    """
    return HISTORY_DEFAULTS
