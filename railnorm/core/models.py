# railnorm/core/models.py
# -*- coding: utf-8 -*-

"""
Core domain models (pure, frozen dataclasses).

These are small, shared structures used across the project:
    - LocomotiveSpec: static reference entry (type, display name, length)
    - CoefficientTable: axle-load coefficients + named annotations, kept apart
    - RouteRecord: one validated route with its coefficient tables
    - LocomotiveUnit / TrainComposition: what the caller attached to the train
    - CalculationRequest: full input of one computation
    - ComputationResult / ComputationError: the two engine outcomes

This module has:
    - no database imports
    - no file parsing
    - no logging side effects

It is safe to import from anywhere.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from railnorm.core.config import TieBreak
from railnorm.core.errors import RouteValidationError
from railnorm.core.types import AnnotationTable, AxleLoadTable


def _frozen(mapping: Mapping[Any, Any]) -> Mapping[Any, Any]:
    return MappingProxyType(dict(mapping))


# ────────────────────────────────────────────────────────────────────────────────
# Locomotives
# ────────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class LocomotiveSpec:
    """
    A locomotive class from the static reference table.

    Attributes
    ----------
    type : str
        Normalized type id (e.g. 'vl10', '2es6').
    display_name : str
        Human-readable name (e.g. 'ВЛ10').
    length_m : float
        Physical length in meters, used only for train length.
    """

    type: str
    display_name: str
    length_m: float


# ────────────────────────────────────────────────────────────────────────────────
# Coefficient table (tagged: axle loads vs annotations)
# ────────────────────────────────────────────────────────────────────────────────

def _is_int_key(key: Any) -> bool:
    if isinstance(key, bool):
        return False
    if isinstance(key, int):
        return True
    if isinstance(key, float):
        return key.is_integer()
    if isinstance(key, str):
        return key.strip().lstrip("-").isdigit()
    return False


@dataclass(frozen=True)
class CoefficientTable:
    """
    Energy coefficients of one locomotive type on one route.

    Attributes
    ----------
    axle_loads : Mapping[int, float]
        Axle load (t/axle) → positive coefficient. Keys need not be contiguous.
    annotations : Mapping[str, float]
        Auxiliary named values printed in the same source row, such as the
        'one' (single locomotive) and 'smet' max weights. Never used as
        axle-load keys.
    """

    axle_loads: AxleLoadTable = field(default_factory=dict)
    annotations: AnnotationTable = field(default_factory=dict)

    def __post_init__(self) -> None:
        loads: Dict[int, float] = {}
        for key, value in self.axle_loads.items():
            if not _is_int_key(key):
                raise ValueError(f"Axle-load key must be an integer, got {key!r}")
            coeff = float(value)
            if not math.isfinite(coeff) or coeff <= 0:
                raise ValueError(f"Coefficient for axle load {key} must be positive, got {value!r}")
            loads[int(key)] = coeff
        notes = {str(k): float(v) for k, v in self.annotations.items()}
        for name, value in notes.items():
            if not math.isfinite(value):
                raise ValueError(f"Annotation '{name}' must be finite, got {value!r}")
        object.__setattr__(self, "axle_loads", _frozen(dict(sorted(loads.items()))))
        object.__setattr__(self, "annotations", _frozen(notes))

    @classmethod
    def from_mapping(
        cls
        , raw: Mapping[Any, Any]
    ) -> "CoefficientTable":
        """
        Split a legacy mixed mapping ({6: 89.5, 'one': 5200, ...}) into the
        two typed fields.
        """
        loads: Dict[int, float] = {}
        notes: Dict[str, float] = {}
        for key, value in raw.items():
            if value is None:
                continue
            if _is_int_key(key):
                loads[int(key)] = float(value)
            else:
                notes[str(key).strip().lower()] = float(value)
        return cls(axle_loads=loads, annotations=notes)

    @property
    def is_empty(self) -> bool:
        return not self.axle_loads

    def numeric_keys(self) -> List[int]:
        return list(self.axle_loads.keys())

    def exact(
        self
        , axle_load: int
    ) -> Optional[float]:
        return self.axle_loads.get(axle_load)

    def nearest_key(
        self
        , target: int
        , tie_break: TieBreak = TieBreak.LOWER
    ) -> Optional[int]:
        """
        Key minimizing |key - target|; equally-close keys are settled by
        `tie_break`. None when the table has no axle-load keys.
        """
        if not self.axle_loads:
            return None
        if tie_break is TieBreak.HIGHER:
            return min(self.axle_loads, key=lambda k: (abs(k - target), -k))
        return min(self.axle_loads, key=lambda k: (abs(k - target), k))

    def nearest(
        self
        , target: int
        , tie_break: TieBreak = TieBreak.LOWER
    ) -> Optional[float]:
        key = self.nearest_key(target, tie_break)
        return None if key is None else self.axle_loads[key]

    def to_dict(self) -> Dict[str, Any]:
        return {
              "axle_loads": {str(k): v for k, v in self.axle_loads.items()}
            , "annotations": dict(self.annotations)
        }


# ────────────────────────────────────────────────────────────────────────────────
# Route record
# ────────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RouteRecord:
    """
    One route, read-only after ingestion.

    Attributes
    ----------
    id : str
        Stable identifier derived from the name.
    name : str
        Route name (e.g. 'Абдулино - Дема').
    distance_km : int
        Route length, must be > 0.
    travel_time_h : Optional[float]
        Scheduled travel time in hours, ≥ 0 when known.
    max_weight_by_locomotive : Mapping[str, int]
        locomotive type → max train weight (t). Advisory only.
    coefficients : Mapping[str, CoefficientTable]
        locomotive type → coefficient table.
    description : str
        Free text (where the record came from).
    source : Optional[str]
        Originating file name, if any.
    """

    id: str
    name: str
    distance_km: int
    travel_time_h: Optional[float] = None
    max_weight_by_locomotive: Mapping[str, int] = field(default_factory=dict)
    coefficients: Mapping[str, CoefficientTable] = field(default_factory=dict)
    description: str = ""
    source: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "max_weight_by_locomotive", _frozen(self.max_weight_by_locomotive))
        object.__setattr__(self, "coefficients", _frozen(self.coefficients))

    def validate(self) -> "RouteRecord":
        """
        Raise RouteValidationError unless name, distance and travel time are usable.
        """
        if not self.id or not str(self.id).strip():
            raise RouteValidationError("Route id is empty.")
        if not self.name or not str(self.name).strip():
            raise RouteValidationError(f"Route '{self.id}' has no name.")
        if isinstance(self.distance_km, bool) or not isinstance(self.distance_km, int):
            raise RouteValidationError(
                f"Route '{self.id}' distance must be an integer, got {self.distance_km!r}."
            )
        if self.distance_km <= 0:
            raise RouteValidationError(f"Route '{self.id}' has non-positive distance {self.distance_km}.")
        travel = self.travel_time_h
        if travel is not None and (
            isinstance(travel, bool)
            or not isinstance(travel, (int, float))
            or not math.isfinite(travel)
            or travel < 0
        ):
            raise RouteValidationError(f"Route '{self.id}' has invalid travel time {self.travel_time_h!r}.")
        return self

    @property
    def has_coefficients(self) -> bool:
        return any(not t.is_empty for t in self.coefficients.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
              "id": self.id
            , "name": self.name
            , "distance_km": self.distance_km
            , "travel_time_h": self.travel_time_h
            , "max_weight_by_locomotive": dict(self.max_weight_by_locomotive)
            , "coefficients": {k: t.to_dict() for k, t in self.coefficients.items()}
            , "description": self.description
            , "source": self.source
        }

    @classmethod
    def from_dict(
        cls
        , data: Mapping[str, Any]
    ) -> "RouteRecord":
        """
        Inverse of `to_dict` (used by the custom-routes store).
        """
        coefficients = {
              str(loco): CoefficientTable(
                    axle_loads={int(k): float(v) for k, v in (table.get("axle_loads") or {}).items()}
                  , annotations=table.get("annotations") or {}
              )
            for loco, table in (data.get("coefficients") or {}).items()
        }
        travel = data.get("travel_time_h")
        return cls(
              id=str(data["id"])
            , name=str(data["name"])
            , distance_km=int(data["distance_km"])
            , travel_time_h=None if travel is None else float(travel)
            , max_weight_by_locomotive={
                  str(k): int(v) for k, v in (data.get("max_weight_by_locomotive") or {}).items()
              }
            , coefficients=coefficients
            , description=str(data.get("description") or "")
            , source=data.get("source")
        )


# ────────────────────────────────────────────────────────────────────────────────
# Train composition & request
# ────────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class LocomotiveUnit:
    """
    One locomotive attached to the train.

    `active=False` marks a cold (towed, non-tractive) locomotive: it adds
    length but never drives the coefficient lookup.
    """

    type: str
    active: bool = True


@dataclass(frozen=True)
class TrainComposition:
    """
    Locomotives (in composition order) plus wagon counts.

    Attributes
    ----------
    locomotives : Tuple[LocomotiveUnit, ...]
    wagon_count : Optional[int]
        Physical wagons, informational.
    conditional_wagons : Optional[int]
        Normalized wagon-length units used for train length.
    """

    locomotives: Tuple[LocomotiveUnit, ...] = ()
    wagon_count: Optional[int] = None
    conditional_wagons: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "locomotives", tuple(self.locomotives))

    @classmethod
    def uniform(
        cls
        , locomotive_type: str
        , count: int = 1
        , *
        , cold_count: int = 0
        , wagon_count: Optional[int] = None
        , conditional_wagons: Optional[int] = None
    ) -> "TrainComposition":
        """
        `count` active locomotives of one type followed by `cold_count` cold ones.
        """
        units = [LocomotiveUnit(locomotive_type, True) for _ in range(max(0, int(count)))]
        units += [LocomotiveUnit(locomotive_type, False) for _ in range(max(0, int(cold_count)))]
        return cls(
              locomotives=tuple(units)
            , wagon_count=wagon_count
            , conditional_wagons=conditional_wagons
        )

    @property
    def active(self) -> Tuple[LocomotiveUnit, ...]:
        return tuple(u for u in self.locomotives if u.active)

    @property
    def cold(self) -> Tuple[LocomotiveUnit, ...]:
        return tuple(u for u in self.locomotives if not u.active)

    def representative(self) -> Optional[LocomotiveUnit]:
        """
        First active locomotive in composition order, or None.
        """
        for unit in self.locomotives:
            if unit.active:
                return unit
        return None


@dataclass(frozen=True)
class CalculationRequest:
    """
    Everything one computation needs from the caller.
    """

    composition: TrainComposition
    train_weight_t: float
    axle_count: int
    route_id: str

    @classmethod
    def simple(
        cls
        , *
        , locomotive_type: str
        , train_weight_t: float
        , axle_count: int
        , route_id: str
        , locomotive_count: int = 1
        , cold_count: int = 0
        , wagon_count: Optional[int] = None
        , conditional_wagons: Optional[int] = None
    ) -> "CalculationRequest":
        return cls(
              composition=TrainComposition.uniform(
                    locomotive_type
                  , locomotive_count
                  , cold_count=cold_count
                  , wagon_count=wagon_count
                  , conditional_wagons=conditional_wagons
              )
            , train_weight_t=train_weight_t
            , axle_count=axle_count
            , route_id=route_id
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
              "locomotives": [asdict(u) for u in self.composition.locomotives]
            , "wagon_count": self.composition.wagon_count
            , "conditional_wagons": self.composition.conditional_wagons
            , "train_weight_t": self.train_weight_t
            , "axle_count": self.axle_count
            , "route_id": self.route_id
        }


# ────────────────────────────────────────────────────────────────────────────────
# Engine outcomes
# ────────────────────────────────────────────────────────────────────────────────

class ErrorKind(str, Enum):
    """
    Recoverable failure variants returned by the engine.
    """

    ROUTE_NOT_FOUND = "route_not_found"
    NO_ACTIVE_LOCOMOTIVE = "no_active_locomotive"
    UNKNOWN_LOCOMOTIVE = "unknown_locomotive"
    ZERO_AXLE_COUNT = "zero_axle_count"
    INVALID_INPUT = "invalid_input"
    NO_COEFFICIENT_FOR_LOAD = "no_coefficient_for_load"


@dataclass(frozen=True)
class ComputationResult:
    """
    Successful computation. `max_weight_exceeded` is advisory, not a failure.
    """

    energy_consumption_kwh: float
    axle_load: float
    coefficient_used: float
    train_length_m: Optional[float] = None
    max_weight_tons: Optional[int] = None
    max_weight_exceeded: bool = False
    locomotive_type: str = ""
    route_id: str = ""
    train_weight_t: float = 0.0
    axle_count: int = 0
    distance_km: int = 0

    ok = True

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["ok"] = True
        return out


@dataclass(frozen=True)
class ComputationError:
    """
    Typed failure. The engine state is unaffected; callers re-prompt.
    """

    kind: ErrorKind
    message: str
    details: Mapping[str, Any] = field(default_factory=dict)

    ok = False

    def to_dict(self) -> Dict[str, Any]:
        return {
              "ok": False
            , "error": self.kind.value
            , "message": self.message
            , "details": dict(self.details)
        }

