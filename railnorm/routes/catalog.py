# railnorm/routes/catalog.py
# -*- coding: utf-8 -*-
"""
Route catalog (immutable, built once)
=====================================

Purpose
-------
Hold the fully-resolved route table and answer `lookup(route_id)`.

The catalog is the last stage of the ingestion pipeline
(ingest → validate → build catalog). It is constructed from a complete
collection of records and exposes read-only access afterwards; there is no
partial population. Overlaying more routes (e.g. user custom routes) returns
a *new* catalog.

Validation
----------
Every record goes through `RouteRecord.validate()`. Invalid records (missing
name, non-positive distance) are logged and left out, so they surface later
as "route not found" instead of crashing anything.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional

from railnorm.core.errors import RouteNotFound, RouteValidationError
from railnorm.core.models import RouteRecord
from railnorm.infra.logging import get_logger

_log = get_logger(__name__)


class RouteCatalog:
    """
    Read-only mapping route id → RouteRecord.

    Use `RouteCatalog.from_records(...)`; the constructor expects records that
    were already validated.
    """

    __slots__ = ("_routes",)

    def __init__(self, routes: Mapping[str, RouteRecord] | None = None) -> None:
        self._routes: Mapping[str, RouteRecord] = MappingProxyType(dict(routes or {}))

    # ── construction ──────────────────────────────────────────────────────────
    @classmethod
    def from_records(
        cls
        , records: Iterable[RouteRecord]
    ) -> "RouteCatalog":
        """
        Validate `records` and build a catalog.

        - invalid records are skipped (WARNING),
        - duplicated ids keep the first record (WARNING).
        """
        routes: Dict[str, RouteRecord] = {}
        skipped = 0
        for record in records:
            try:
                record.validate()
            except RouteValidationError as e:
                skipped += 1
                _log.warning("RouteCatalog: skipping invalid route from %s: %s", record.source or "<memory>", e)
                continue
            if record.id in routes:
                skipped += 1
                _log.warning(
                    "RouteCatalog: duplicate route id '%s' (from %s) ignored; keeping %s.",
                    record.id, record.source or "<memory>", routes[record.id].source or "<memory>",
                )
                continue
            routes[record.id] = record

        _log.info("RouteCatalog: built with %d routes (%d skipped).", len(routes), skipped)
        return cls(routes)

    def merged_with(
        self
        , records: Iterable[RouteRecord]
    ) -> "RouteCatalog":
        """
        New catalog with `records` added on top; same id → the new record wins.
        This catalog is left untouched.
        """
        extra = RouteCatalog.from_records(records)
        merged = dict(self._routes)
        merged.update(extra._routes)
        return RouteCatalog(merged)

    # ── read access ───────────────────────────────────────────────────────────
    def lookup(
        self
        , route_id: str
    ) -> Optional[RouteRecord]:
        """
        Pure read; never triggers loading. None when the id is unknown.
        """
        return self._routes.get(route_id)

    def require(
        self
        , route_id: str
    ) -> RouteRecord:
        record = self._routes.get(route_id)
        if record is None:
            raise RouteNotFound(route_id)
        return record

    def ids(self) -> List[str]:
        return list(self._routes.keys())

    def records(self) -> List[RouteRecord]:
        return list(self._routes.values())

    def as_mapping(self) -> Mapping[str, RouteRecord]:
        return self._routes

    def __contains__(self, route_id: object) -> bool:
        return route_id in self._routes

    def __len__(self) -> int:
        return len(self._routes)

    def __iter__(self) -> Iterator[str]:
        return iter(self._routes)

    def __repr__(self) -> str:
        return f"RouteCatalog({len(self._routes)} routes)"
