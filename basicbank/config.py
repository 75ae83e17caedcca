"""Application configuration read from app.env and the environment."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import dotenv_values

_FIELDS = {
    "DB_DRIVER": "db_driver",
    "DB_SOURCE": "db_source",
    "SERVER_ADDRESS": "server_address",
}


@dataclass(frozen=True)
class Config:
    """Settings the application needs to start."""

    db_driver: str = ""
    db_source: str = ""
    server_address: str = ""


def load_config(path):
    """Load ``app.env`` from directory ``path``; set environment variables take precedence."""
    config_file = Path(path) / "app.env"
    if not config_file.is_file():
        raise FileNotFoundError(f'Config File "app" Not Found in "[{Path(path).resolve()}]"')

    file_values = {
        key.upper(): ("" if value is None else value)
        for key, value in dotenv_values(config_file).items()
    }

    settings = {}
    for key, field in _FIELDS.items():
        env_value = os.environ.get(key)
        settings[field] = env_value if env_value else file_values.get(key, "")
    return Config(**settings)