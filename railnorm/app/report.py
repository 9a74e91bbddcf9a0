# railnorm/app/report.py
# -*- coding: utf-8 -*-
"""
Plain-text and markdown exports.

- format_result_report: the text file a user downloads after a calculation
  (parameters, results to 2 decimals, the formula with numbers filled in).
- export_routes_markdown: custom routes in the compact table format, which
  `parse_routes_text` reads back.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional

from railnorm.core.models import (
      CalculationRequest
    , ComputationResult
    , LocomotiveSpec
    , RouteRecord
)
from railnorm.rolling_stock.locomotives import LOCOMOTIVE_SPECS

REPORT_TITLE = "=== Калькулятор норм расхода электроэнергии ==="
EXPORT_TITLE = "# Пользовательские маршруты"
EXPORT_AXLE_LOADS = range(6, 15)


def _num(value: float) -> str:
    return f"{value:g}"


def format_result_report(
      result: ComputationResult
    , route: RouteRecord
    , locomotive: LocomotiveSpec
    , *
    , when: Optional[datetime] = None
    , request: Optional[CalculationRequest] = None
) -> str:
    """
    Render one successful computation as a text report.

    Parameters
    ----------
    result : ComputationResult
    route : RouteRecord
        The route the result was computed on.
    locomotive : LocomotiveSpec
        The representative locomotive.
    when : Optional[datetime]
        Timestamp printed in the header (defaults to now).
    request : Optional[CalculationRequest]
        When given, locomotive and wagon counts are printed too.
    """
    stamp = (when or datetime.now()).strftime("%d.%m.%Y, %H:%M:%S")
    weight = _num(result.train_weight_t)

    lines: List[str] = [
          REPORT_TITLE
        , f"Дата: {stamp}"
        , ""
        , "Параметры расчета:"
        , f"- Локомотив: {locomotive.display_name}"
    ]
    if request is not None:
        active = len(request.composition.active)
        cold = len(request.composition.cold)
        lines.append(f"- Количество локомотивов: {active}")
        if cold:
            lines.append(f"- Локомотивов в холодном состоянии: {cold}")
    lines += [
          f"- Вес поезда: {weight} т"
        , f"- Количество осей: {result.axle_count}"
        , f"- Маршрут: {route.name} ({route.distance_km} км)"
    ]
    if request is not None and request.composition.wagon_count:
        lines.append(f"- Количество вагонов: {request.composition.wagon_count}")

    lines += [
          ""
        , "Результаты:"
        , f"- Нагрузка на ось: {result.axle_load:.2f} т/ось"
        , f"- Коэффициент энергопотребления: {_num(result.coefficient_used)}"
        , f"- Норма расхода за поездку: {result.energy_consumption_kwh:.2f} кВт⋅ч"
    ]
    if result.train_length_m is not None:
        lines.append(f"- Длина состава: {_num(result.train_length_m)} м")
    if result.max_weight_exceeded:
        lines.append(f"- Превышен допустимый вес: {result.max_weight_tons} т")

    lines += [
          ""
        , "Формула расчета:"
        , "(Вес × Коэффициент × Расстояние) / 10000 / 100"
        , (
            f"({weight} × {_num(result.coefficient_used)} × {route.distance_km}) / 10000 / 100"
            f" = {result.energy_consumption_kwh:.2f} кВт⋅ч"
          )
    ]
    return "\n".join(lines)


def export_routes_markdown(
      records: Iterable[RouteRecord]
    , *
    , when: Optional[datetime] = None
) -> str:
    """
    Compact markdown for a set of routes; missing cells are written as '-'.
    Routes without coefficients are exported as name and distance only.
    """
    stamp = (when or datetime.now()).strftime("%d.%m.%Y, %H:%M:%S")
    out: List[str] = [EXPORT_TITLE, f"Экспортировано: {stamp}", ""]

    header = "| нагрузка на ось | " + " | ".join(str(a) for a in EXPORT_AXLE_LOADS) + " |"
    for record in records:
        out += [f"# {record.name}", f"## {record.distance_km} км", ""]
        tables = [(loco, t) for loco, t in record.coefficients.items() if not t.is_empty]
        if tables:
            out.append(header)
            for loco, table in tables:
                spec = LOCOMOTIVE_SPECS.get(loco)
                label = spec.display_name if spec is not None else loco
                cells = [
                      _num(table.axle_loads[a]) if a in table.axle_loads else "-"
                    for a in EXPORT_AXLE_LOADS
                ]
                out.append(f"| {label} | " + " | ".join(cells) + " |")
        out.append("")
    return "\n".join(out)
