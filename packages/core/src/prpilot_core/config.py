import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "model": "openai",
    # GitHub login that review requests must name; also the bot's own identity in most setups.
    "actor_login": None,
    "mention": "@AsanaPRBot",
    "processed_tag": "AsanaAI Processed",
    "introduction": "👋 Hi, I'm **AsanaPRBot**, your assistant for concise PR reviews.",
    "max_diff_chars": 60000,
    "max_comment_chars": 2000,
    "ledger": "sqlite",  # sqlite | redis | memory
    "ledger_path": ".prpilot.db",
    "redis_key": "processedEvents",
    "host": "0.0.0.0",
    "port": 3000,
}

_ENV_CREDENTIALS = {
    "github_token": "GITHUB_TOKEN",
    "openai_api_key": "OPENAI_API_KEY",
    "anthropic_api_key": "ANTHROPIC_API_KEY",
    "asana_token": "ASANA_PERSONAL_ACCESS_TOKEN",
    "webhook_secret": "WEBHOOK_SECRET",
}


def load_config(config_path: str = ".prpilot.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .prpilot.yml in the current directory
      3. CLI argument overrides
    Credentials are always read from the environment, never from the file.
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

    for key, env_var in _ENV_CREDENTIALS.items():
        config[key] = os.environ.get(env_var)

    redis_url = os.environ.get("REDIS_URL")
    if redis_url:
        config["redis_url"] = redis_url

    return config
