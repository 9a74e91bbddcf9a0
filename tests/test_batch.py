import pandas as pd
import pytest

from railnorm.app.batch import OUTPUT_COLUMNS, evaluate_frame, load_trains_csv

from conftest import DEMA_ID, KINEL_ID


def test_evaluate_frame(catalog):
    trains = pd.DataFrame(
        {
            "Loco": ["ВЛ10У", "vl10u", "2ЭС6", "vl10"],
            "Weight": [5000, 5000, 700, 5000],
            "Axles": [240, 0, 100, 500],
            "Route": [DEMA_ID, DEMA_ID, DEMA_ID, KINEL_ID],
            "conditional_wagons": [50, None, None, None],
        }
    )

    out = evaluate_frame(trains, catalog)

    assert list(out.columns[-len(OUTPUT_COLUMNS):]) == OUTPUT_COLUMNS
    assert len(out) == 4
    assert out.loc[0, "energy_kwh"] == pytest.approx(84.40425)
    assert out.loc[0, "train_length_m"] == 32 + 50 * 14
    assert out.loc[0, "error"] == ""
    assert out.loc[1, "error"] == "zero_axle_count"
    assert out.loc[2, "coefficient"] == 89.5
    assert out.loc[3, "coefficient"] == 71.8
    assert not out.loc[3, "max_weight_exceeded"]


def test_bad_rows_do_not_stop_the_batch(catalog):
    trains = pd.DataFrame(
        {
            "locomotive": ["vl10u", "te33a", "vl10u"],
            "train_weight_t": [5000, 5000, None],
            "axle_count": [240, 240, 240],
            "route_id": ["nowhere", DEMA_ID, DEMA_ID],
        }
    )

    out = evaluate_frame(trains, catalog)

    assert list(out["error"]) == ["route_not_found", "unknown_locomotive", "invalid_input"]
    assert out["energy_kwh"].isna().all()


def test_fractional_axle_count_is_invalid_input(catalog):
    trains = pd.DataFrame(
        {
            "locomotive": ["vl10u", "vl10u", "vl10u"],
            "train_weight_t": [5000, 5000, 5000],
            "axle_count": [240.9, 240.0, 240],
            "route_id": [DEMA_ID, DEMA_ID, DEMA_ID],
            "conditional_wagons": [None, 1.5, None],
        }
    )

    out = evaluate_frame(trains, catalog)

    assert list(out["error"]) == ["invalid_input", "invalid_input", ""]
    assert out.loc[2, "energy_kwh"] == pytest.approx(84.40425)


def test_missing_required_column(catalog):
    with pytest.raises(ValueError):
        evaluate_frame(pd.DataFrame({"locomotive": ["vl10u"]}), catalog)


def test_load_trains_csv(tmp_path):
    path = tmp_path / "trains.csv"
    path.write_text(
        "LOCOMOTIVE,Train_Weight,AXLES,route,cold\nВЛ10У,5000,240,абдулино-дема,1\n",
        encoding="utf-8",
    )

    df = load_trains_csv(path)

    assert list(df.columns) == [
        "locomotive",
        "locomotive_count",
        "cold_count",
        "train_weight_t",
        "axle_count",
        "route_id",
        "conditional_wagons",
    ]
    assert df.loc[0, "locomotive"] == "ВЛ10У"
    assert df.loc[0, "locomotive_count"] == 1
    assert df.loc[0, "cold_count"] == 1
    assert df.loc[0, "train_weight_t"] == 5000


def test_load_trains_csv_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_trains_csv(tmp_path / "nope.csv")
