from __future__ import annotations

# ── coefficient resolution ──────────────────────────────────────────────────────
from .coefficients import (
      round_half_up
    , select_table
    , resolve_cell
    , resolve_coefficient
    , coefficient_frame
)

# ── consumption (public API) ────────────────────────────────────────────────────
from .consumption import (
      Outcome
    , axle_load
    , energy_consumption_kwh
    , train_length_m
    , compute
)

__all__ = [
    # coefficients
      "round_half_up", "select_table", "resolve_cell", "resolve_coefficient",
      "coefficient_frame",
    # consumption
      "Outcome", "axle_load", "energy_consumption_kwh", "train_length_m", "compute",
]
