import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from railnorm.core.models import CoefficientTable, RouteRecord
from railnorm.routes.catalog import RouteCatalog


DEMA_ID = "абдулино-дема"
KINEL_ID = "кинель-абдулино"


@pytest.fixture
def dema_route():
    """Route with a ВЛ10У table (with annotations) and a sparse 2ЭС6 table."""
    return RouteRecord(
        id=DEMA_ID,
        name="Абдулино - Дема",
        distance_km=233,
        travel_time_h=3.45,
        max_weight_by_locomotive={"vl10u": 5200},
        coefficients={
            "vl10u": CoefficientTable(
                axle_loads={6: 112.4, 14: 68.4, 21: 72.45},
                annotations={"one": 5200, "smet": 6000},
            ),
            "2es6": CoefficientTable(axle_loads={6: 89.5, 8: 78.85}),
        },
        source="abdulino-dema.md",
    )


@pytest.fixture
def kinel_route():
    """Route that only carries a ВЛ10 table."""
    return RouteRecord(
        id=KINEL_ID,
        name="Кинель - Абдулино",
        distance_km=165,
        coefficients={"vl10": CoefficientTable(axle_loads={10: 71.8, 12: 64.9})},
    )


@pytest.fixture
def catalog(dema_route, kinel_route):
    return RouteCatalog.from_records([dema_route, kinel_route])


ROUTE_FILE_MD = """\
# Абдулино - Дема
- 233 км
- 3,45 часа
- Допустимый вес: 6000 т

| нагрузка на ось |  |  |  |  |  |
|---|---|---|---|---|---|
| Один | СМЕТ | Серия | 6 | 7 | 8 |
| 5200 | 6000 | ВЛ10У | 89.5 | 84.1 | 78.85 |
| 6300 | 7100 | 2ЭС6 | 86.0 | - | 75.2 |
"""

COMPACT_MD = """\
# Кинель - Абдулино
## 165 км

| нагрузка на ось | 6 | 7 | 8 | 9 |
|---|---|---|---|---|
| ВЛ10У | 90.1 | 85.0 | - | 77.3 |
"""


@pytest.fixture
def route_file_md():
    return ROUTE_FILE_MD


@pytest.fixture
def compact_md():
    return COMPACT_MD


@pytest.fixture
def routes_dir(tmp_path):
    """Directory with one markdown, one compact markdown and one JSON route file."""
    d = tmp_path / "routes"
    d.mkdir()
    (d / "abdulino-dema.md").write_text(ROUTE_FILE_MD, encoding="utf-8")
    (d / "kinel-abdulino.md").write_text(COMPACT_MD, encoding="utf-8")
    (d / "syzran-abdulino.json").write_text(
        '{"name": "Сызрань - Абдулино", "distance_km": 318, "travel_time_h": 5.1,'
        ' "max_weight": 6000,'
        ' "coefficients": {"ВЛ10": {"6": 118.0, "10": 85.2, "one": 5000, "smet": 5800}}}',
        encoding="utf-8",
    )
    return d
