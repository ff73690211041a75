# SQL schema for the Cangjie tutor database

SCHEMA_VERSION = 1

SCHEMA_SQL = """
-- Serialized blobs (profile collection, legacy progress)
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);

-- Dictionary lookups, fresh for a fixed window keyed by character
CREATE TABLE IF NOT EXISTS dictionary_cache (
    char TEXT PRIMARY KEY,
    payload TEXT NOT NULL,
    fetched_at TEXT NOT NULL
);
"""

INDEXES_SQL = """
CREATE INDEX IF NOT EXISTS idx_dictionary_cache_fetched ON dictionary_cache (fetched_at);
"""
