from pathlib import Path

import config


def _point_config(tmp_path: Path, monkeypatch) -> Path:
    config_dir = tmp_path / ".cangjie-tutor"
    config_path = config_dir / "config.toml"
    monkeypatch.setattr(config, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(config, "CONFIG_PATH", config_path)
    for name in ("TUTOR_PORT", "PASSING_ACCURACY", "HISTORY_LIMIT", "CATALOG_PATH", "DICTIONARY_CACHE_HOURS"):
        monkeypatch.delenv(name, raising=False)
    return config_path


def test_load_config_copies_example_on_first_run(tmp_path, monkeypatch):
    config_path = _point_config(tmp_path, monkeypatch)

    loaded = config.load_config()

    assert config_path.exists()
    assert loaded["progress"]["passing_accuracy"] == 0.85
    assert loaded["progress"]["history_limit"] == 25
    assert loaded["dictionary"]["cache_hours"] == 24
    assert loaded["catalog"]["path"] is None


def test_env_overrides_file_values(tmp_path, monkeypatch):
    config_path = _point_config(tmp_path, monkeypatch)
    config_path.parent.mkdir()
    config_path.write_text("[server]\nport = 4000\n\n[progress]\nhistory_limit = 10\n", encoding="utf-8")
    monkeypatch.setenv("TUTOR_PORT", "5050")

    loaded = config.load_config()

    assert loaded["server"]["port"] == 5050
    assert loaded["progress"]["history_limit"] == 10
    assert config.get_config_value("progress", "default_profile_name") == "Learner"
