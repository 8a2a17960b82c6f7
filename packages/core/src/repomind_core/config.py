import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "base_url": "http://localhost:8080",
    "timeout": 60,
    "cookie_name": "JSESSIONID",
    "state_dir": "~/.repomind",  # durable state lives in <state_dir>/state.db
    "audit_poll_interval": 5,
    "audit_page_size": 20,
}


def load_config(config_path: str = ".repomind.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .repomind.yml in the current directory
      3. REPOMIND_API_URL for the backend origin
      4. CLI argument overrides
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        if not isinstance(file_config, dict):
            raise ValueError(f"{config_path} must contain a mapping, got {type(file_config).__name__}")
        config.update(file_config)

    api_url = os.environ.get("REPOMIND_API_URL")
    if api_url:
        config["base_url"] = api_url

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Resolve credentials from environment variables
    config["session_cookie"] = os.environ.get("REPOMIND_SESSION")

    return config


def state_paths(config: dict, session_key: str) -> tuple[Path, Path]:
    """Return (durable_db, session_db) paths under the configured state directory.

    ``session_key`` scopes the session database; the CLI passes the parent
    shell's pid so each terminal gets its own conversation.
    """
    state_dir = Path(config["state_dir"]).expanduser()
    return state_dir / "state.db", state_dir / "sessions" / f"{session_key}.db"
