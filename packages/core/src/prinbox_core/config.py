import os
from datetime import timedelta
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "organization": "",
    "usernames": [],
    "current_user": None,  # None = ask GitHub who the token belongs to
    "store": "file",  # memory | file | sqlite | gist
    "store_path": None,  # None = backend default (~/.prinbox or .prinbox.db)
    "gist_id": None,
    "own_review_tolerance_seconds": 10,
    "sort": "updated",
    "group": "repository",
    "unread_only": True,
    "show_drafts": False,
}


def load_config(config_path: str = ".prinbox.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .prinbox.yml in the current directory
      3. CLI argument overrides
    """
    config = {**DEFAULT_CONFIG, "usernames": list(DEFAULT_CONFIG["usernames"])}

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    config["github_token"] = os.environ.get("GITHUB_TOKEN")

    return config


def own_review_tolerance(config: dict) -> timedelta:
    """The own-review suppression window from config, in seconds."""
    seconds = config.get("own_review_tolerance_seconds")
    if seconds is None:
        seconds = DEFAULT_CONFIG["own_review_tolerance_seconds"]
    seconds = float(seconds)
    if seconds < 0:
        raise ValueError(f"own_review_tolerance_seconds must be >= 0, got {seconds}")
    return timedelta(seconds=seconds)
