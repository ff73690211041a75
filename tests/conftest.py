from pathlib import Path

import pytest

import config
from db import database
from routes import deps
from utils import dictionary


@pytest.fixture
def tutor_home(tmp_path, monkeypatch) -> Path:
    """Point config and database at a throwaway directory and create the schema."""
    config_dir = tmp_path / ".cangjie-tutor"
    config_dir.mkdir()
    monkeypatch.setattr(config, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(config, "CONFIG_PATH", config_dir / "config.toml")
    monkeypatch.setattr(database, "DB_PATH", config_dir / "tutor.db")
    monkeypatch.setattr(dictionary, "_DATASET_CACHE", None)
    for name in ("TUTOR_PORT", "PASSING_ACCURACY", "HISTORY_LIMIT", "CATALOG_PATH", "DICTIONARY_CACHE_HOURS"):
        monkeypatch.delenv(name, raising=False)
    database.init_db()
    deps.reset_evaluator()
    yield config_dir
    deps.reset_evaluator()
