import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "model": "anthropic",
    "model_name": None,  # provider model id; None uses the provider default
    "max_search_chars": 5000,  # longer SEARCH text is kept but warned about
    "max_replace_chars": 10000,
    "preview_chars": 200,  # excerpt length inside invalid-block diagnostics
    "repo_map_limit": 300,
    "mention": "@devwif",
}


def load_config(config_path: str = ".revguard.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .revguard.yml in the current directory
      3. CLI argument overrides
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Resolve credentials from environment variables
    config["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")
    config["openai_api_key"] = os.environ.get("OPENAI_API_KEY")

    return config


def get_limit(config: Optional[dict], key: str) -> int:
    """Return an integer setting from ``config``, falling back to the built-in default."""
    if config and config.get(key) is not None:
        return int(config[key])
    return int(DEFAULT_CONFIG[key])
