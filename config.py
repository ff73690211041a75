import tomllib
import shutil
from pathlib import Path
from typing import Any, Dict, Optional
from dotenv import load_dotenv
import os

CONFIG_DIR = Path.home() / ".cangjie-tutor"
CONFIG_PATH = CONFIG_DIR / "config.toml"
PROJECT_CONFIG_EXAMPLE = Path(__file__).parent / "config.toml"

def load_config() -> Dict[str, Any]:
    """Load config from ~/.cangjie-tutor/config.toml, copy example if missing, load .env overrides."""
    load_dotenv()
    if not CONFIG_PATH.exists():
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        shutil.copy(PROJECT_CONFIG_EXAMPLE, CONFIG_PATH)
    with open(CONFIG_PATH, "rb") as f:
        config = tomllib.load(f)

    server_cfg = config.get("server", {})
    config["server"] = {
        "host": os.getenv("TUTOR_HOST", server_cfg.get("host", "127.0.0.1")),
        "port": int(os.getenv("TUTOR_PORT", server_cfg.get("port", 3000))),
    }
    progress_cfg = config.get("progress", {})
    config["progress"] = {
        "passing_accuracy": float(os.getenv(
            "PASSING_ACCURACY", progress_cfg.get("passing_accuracy", 0.85)
        )),
        "history_limit": int(os.getenv("HISTORY_LIMIT", progress_cfg.get("history_limit", 25))),
        "default_profile_name": progress_cfg.get("default_profile_name") or "Learner",
    }
    catalog_cfg = config.get("catalog", {})
    config["catalog"] = {
        "path": os.getenv("CATALOG_PATH", catalog_cfg.get("path", "")) or None,
    }
    dictionary_cfg = config.get("dictionary", {})
    config["dictionary"] = {
        "cache_hours": float(os.getenv(
            "DICTIONARY_CACHE_HOURS", dictionary_cfg.get("cache_hours", 24)
        )),
    }
    return config

def get_config_value(section: str, key: str, default: Optional[Any] = None) -> Any:
    """Get nested config value, e.g., get_config_value('progress', 'history_limit')."""
    config = load_config()
    value = config.get(section, {}).get(key, default)
    return value
