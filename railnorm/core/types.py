# railnorm/core/types.py
# -*- coding: utf-8 -*-

"""
Shared type aliases.

Kept in one dependency-free module so every layer can import them.

Contents
--------
- StrPath: str or pathlib.Path
- Number: int or float
- AxleLoadTable / AnnotationTable: the two halves of a coefficient row
- HistoryPayload: one stored calculation (JSON-serializable dict)
"""

from __future__ import annotations

from pathlib import Path
from typing import (
      Any
    , Dict
    , Mapping
    , Union
)


StrPath = Union[str, Path]
"""Path representation accepted by the IO helpers (string or Path)."""

Number = Union[int, float]

AxleLoadTable = Mapping[int, float]
"""Axle load (t/axle) → energy coefficient."""

AnnotationTable = Mapping[str, float]
"""Named values printed next to a coefficient row (e.g. 'one', 'smet')."""

HistoryPayload = Dict[str, Any]
