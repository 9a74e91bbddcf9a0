from datetime import datetime

from railnorm.app.report import export_routes_markdown, format_result_report
from railnorm.core.models import CalculationRequest, CoefficientTable, RouteRecord
from railnorm.engine import compute
from railnorm.rolling_stock.locomotives import get_locomotive_spec
from railnorm.routes.markdown_parser import parse_routes_text

from conftest import DEMA_ID

WHEN = datetime(2025, 1, 2, 3, 4, 5)


def test_result_report(catalog, dema_route):
    request = CalculationRequest.simple(
        locomotive_type="vl10u",
        train_weight_t=5000,
        axle_count=240,
        route_id=DEMA_ID,
        cold_count=1,
        wagon_count=60,
        conditional_wagons=70,
    )
    result = compute(request, catalog)

    text = format_result_report(result, dema_route, get_locomotive_spec("vl10u"), when=WHEN, request=request)
    lines = text.splitlines()

    assert lines[0] == "=== Калькулятор норм расхода электроэнергии ==="
    assert "Дата: 02.01.2025, 03:04:05" in lines
    assert "- Локомотив: ВЛ10У" in lines
    assert "- Количество локомотивов: 1" in lines
    assert "- Локомотивов в холодном состоянии: 1" in lines
    assert "- Количество вагонов: 60" in lines
    assert "- Маршрут: Абдулино - Дема (233 км)" in lines
    assert "- Нагрузка на ось: 20.83 т/ось" in lines
    assert "- Норма расхода за поездку: 84.40 кВт⋅ч" in lines
    assert "- Длина состава: 1044 м" in lines
    assert lines[-1] == "(5000 × 72.45 × 233) / 10000 / 100 = 84.40 кВт⋅ч"


def test_result_report_without_request(catalog, dema_route):
    request = CalculationRequest.simple(
        locomotive_type="vl10u", train_weight_t=5000, axle_count=240, route_id=DEMA_ID
    )
    text = format_result_report(compute(request, catalog), dema_route, get_locomotive_spec("vl10u"), when=WHEN)

    assert "Количество локомотивов" not in text
    assert "Длина состава" not in text


def test_routes_export_reads_back():
    routes = [
        RouteRecord(
            id="custom-a-b",
            name="А - Б",
            distance_km=120,
            coefficients={"2es6": CoefficientTable(axle_loads={6: 89.5, 8: 78.85})},
        ),
        RouteRecord(id="custom-c-d", name="В - Г", distance_km=98),
    ]

    text = export_routes_markdown(routes, when=WHEN)

    assert "| 2ЭС6 | 89.5 | - | 78.85 | - | - | - | - | - | - |" in text.splitlines()
    parsed = {r.name: r for r in parse_routes_text(text)}
    assert set(parsed) == {"А - Б", "В - Г"}
    assert dict(parsed["А - Б"].coefficients["2es6"].axle_loads) == {6: 89.5, 8: 78.85}
    assert parsed["В - Г"].distance_km == 98
    assert not parsed["В - Г"].has_coefficients
