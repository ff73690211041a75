import json
import sqlite3
from datetime import datetime, timedelta, timezone

from db import database
from utils import dictionary
from utils.cangjie import decompose_code

T = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def test_decompose_code_maps_each_letter():
    assert decompose_code("ab") == [
        {"letter": "A", "glyph": "日", "name": "sun"},
        {"letter": "B", "glyph": "月", "name": "moon"},
    ]
    assert decompose_code("A1")[1] == {"letter": "1", "glyph": "?", "name": "Unknown component"}
    assert decompose_code("") == []


def test_lookup_caches_for_a_day(tutor_home, monkeypatch):
    calls = []

    def fake_fetch(char):
        calls.append(char)
        return {"definitions": ["sun"], "codes": ["A"]}

    monkeypatch.setattr(dictionary, "fetch_entry", fake_fetch)
    with database.get_conn() as conn:
        assert dictionary.lookup(conn, "日", now=T) == {"definitions": ["sun"], "codes": ["A"]}
        dictionary.lookup(conn, "日", now=T + timedelta(hours=23))
        assert calls == ["日"]
        dictionary.lookup(conn, "日", now=T + timedelta(hours=25))
        assert calls == ["日", "日"]


def test_corrupt_cache_row_is_a_miss(tutor_home):
    with database.get_conn() as conn:
        conn.execute(
            "INSERT INTO dictionary_cache (char, payload, fetched_at) VALUES (?, ?, ?)",
            ("月", "{broken", T.isoformat()),
        )
        conn.commit()
        entry = dictionary.lookup(conn, "月", now=T)
    assert entry["definitions"] == ["moon", "month"]


def test_cache_failures_never_raise(tutor_home):
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    entry = dictionary.lookup(conn, "水", now=T)
    assert entry["codes"] == ["E"]
    assert dictionary.lookup(conn, "𠀋", now=T) == {}


def test_describe_reports_missing_data(tutor_home):
    with database.get_conn() as conn:
        detail = dictionary.describe(conn, "𠀋")
        assert detail["available"] is False
        assert detail["decomposition"] == []
        known = dictionary.describe(conn, "明")
    assert known["available"] is True
    assert known["code"] == "AB"
    assert [part["glyph"] for part in known["decomposition"]] == ["日", "月"]
    cached = json.loads(
        sqlite3.connect(database.DB_PATH).execute(
            "SELECT payload FROM dictionary_cache WHERE char = ?", ("明",)
        ).fetchone()[0]
    )
    assert cached["codes"] == ["AB"]
