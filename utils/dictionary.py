from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger

from utils.cangjie import decompose_code

CACHE_HOURS = 24
_DATASET_CACHE: Optional[Dict[str, Dict[str, Any]]] = None
_DATASET_PATH = Path(__file__).resolve().parents[1] / "data" / "dictionary.json"


def load_dictionary_dataset() -> Dict[str, Dict[str, Any]]:
    """Load the bundled dictionary from disk once and return it."""
    global _DATASET_CACHE
    if _DATASET_CACHE is None:
        try:
            with _DATASET_PATH.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning(f"Dictionary dataset unavailable: {exc}")
            payload = {}
        _DATASET_CACHE = payload.get("entries", {}) if isinstance(payload, dict) else {}
    return _DATASET_CACHE


def fetch_entry(char: str) -> Dict[str, Any]:
    """Sparse record of readings, definitions and codes for one character, or {}."""
    entry = load_dictionary_dataset().get(char)
    if not isinstance(entry, dict):
        return {}
    return {key: value for key, value in entry.items() if value}


def read_cached(conn: sqlite3.Connection, char: str, now: datetime, max_age: timedelta) -> Optional[Dict[str, Any]]:
    try:
        row = conn.execute(
            "SELECT payload, fetched_at FROM dictionary_cache WHERE char = ?", (char,)
        ).fetchone()
        if not row:
            return None
        fetched_at = datetime.fromisoformat(row["fetched_at"])
        if now - fetched_at > max_age:
            return None
        payload = json.loads(row["payload"])
    except (sqlite3.Error, ValueError, TypeError) as exc:
        logger.warning(f"Dictionary cache read failed for {char!r}: {exc}")
        return None
    return payload if isinstance(payload, dict) else None


def write_cached(conn: sqlite3.Connection, char: str, payload: Dict[str, Any], now: datetime) -> None:
    try:
        conn.execute(
            """
            INSERT INTO dictionary_cache (char, payload, fetched_at) VALUES (?, ?, ?)
            ON CONFLICT(char) DO UPDATE SET
                payload = excluded.payload,
                fetched_at = excluded.fetched_at
            """,
            (char, json.dumps(payload, ensure_ascii=False), now.isoformat()),
        )
        conn.commit()
    except (sqlite3.Error, TypeError, ValueError) as exc:
        logger.warning(f"Dictionary cache write failed for {char!r}: {exc}")


def lookup(
    conn: sqlite3.Connection,
    char: str,
    now: Optional[datetime] = None,
    cache_hours: float = CACHE_HOURS,
) -> Dict[str, Any]:
    """Look a character up through the cache; never raises on cache trouble."""
    now = now or datetime.now(timezone.utc)
    max_age = timedelta(hours=cache_hours)
    cached = read_cached(conn, char, now, max_age)
    if cached is not None:
        return cached
    entry = fetch_entry(char)
    if entry:
        write_cached(conn, char, entry, now)
    return entry


def describe(conn: sqlite3.Connection, char: str, code: str = "", cache_hours: float = CACHE_HOURS) -> Dict[str, Any]:
    """Detail view payload: dictionary entry plus Cangjie decomposition."""
    entry = lookup(conn, char, cache_hours=cache_hours)
    codes = entry.get("codes") or []
    code = code or (codes[0] if codes else "")
    return {
        "char": char,
        "entry": entry,
        "available": bool(entry),
        "code": code,
        "decomposition": decompose_code(code),
    }
