import sqlite3

import pytest

from railnorm.infra.database_manager import (
    add_history_entry,
    clear_history,
    db_session,
    list_history,
    load_custom_routes,
    upsert_custom_route,
)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "nested" / "railnorm.sqlite"


def test_history_keeps_latest_items_newest_first(db_path):
    with db_session(db_path) as conn:
        for i in range(12):
            add_history_entry(conn, {"n": i})

    with db_session(db_path) as conn:
        items = list_history(conn)

    assert [item["n"] for item in items] == list(range(11, 1, -1))
    assert all("id" in item and "inserted_at" in item for item in items)


def test_history_limit_is_configurable(db_path):
    with db_session(db_path) as conn:
        for i in range(5):
            add_history_entry(conn, {"n": i}, max_items=3)
        assert [item["n"] for item in list_history(conn)] == [4, 3, 2]


def test_clear_history(db_path):
    with db_session(db_path) as conn:
        add_history_entry(conn, {"n": 1})
        add_history_entry(conn, {"n": 2})
        assert clear_history(conn) == 2
        assert list_history(conn) == []


def test_session_rolls_back_on_error(db_path):
    with pytest.raises(sqlite3.OperationalError):
        with db_session(db_path) as conn:
            add_history_entry(conn, {"n": 1})
            conn.execute("SELECT * FROM no_such_table")

    with db_session(db_path) as conn:
        assert list_history(conn) == []


def test_custom_routes_upsert_and_load(db_path, dema_route, kinel_route):
    with db_session(db_path) as conn:
        upsert_custom_route(conn, dema_route)
        upsert_custom_route(conn, kinel_route)
        upsert_custom_route(conn, dema_route)

    with db_session(db_path) as conn:
        routes = load_custom_routes(conn)

    assert [r.id for r in routes] == [dema_route.id, kinel_route.id]
    assert routes[0] == dema_route
