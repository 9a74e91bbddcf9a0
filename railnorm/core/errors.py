# railnorm/core/errors.py
# -*- coding: utf-8 -*-

"""
Exceptions raised outside the engine boundary.

The consumption engine itself never raises for caller-input problems; it
returns a typed `ComputationError` (see `railnorm.core.models`). These
exceptions belong to the ingestion and catalog layers.
"""

from __future__ import annotations


class RailnormError(Exception):
    """Base class for all project exceptions."""


class RouteValidationError(RailnormError, ValueError):
    """A route record is missing its name or has a non-positive distance."""


class RouteParseError(RailnormError, ValueError):
    """A route source document could not be parsed at all."""


class RouteNotFound(RailnormError, KeyError):
    """Route id absent from the catalog."""

    def __init__(self, route_id: str) -> None:
        super().__init__(route_id)
        self.route_id = route_id

    def __str__(self) -> str:
        return f"Unknown route id: {self.route_id!r}"
