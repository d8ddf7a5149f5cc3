"""Configuration loading for the back-office duplicate detection wiring."""

from __future__ import annotations

import logging
import os

import yaml

CONFIG_PATH = os.path.join(os.path.dirname(__file__), "config.yaml")

DEFAULTS = {
    "database": {"url": None},
    "cache": {"redis_url": None, "policy_ttl": 60},
    "detection": {"max_workers": 1},
    "logging": {"level": "INFO"},
}


def load_config(path: str | None = None) -> dict:
    """Load the YAML config, fill missing sections, apply env overrides.

    ``DATABASE_URL`` and ``REDIS_URL`` take precedence over the file.
    """
    with open(path or CONFIG_PATH) as f:
        loaded = yaml.safe_load(f) or {}

    config = {section: dict(values) for section, values in DEFAULTS.items()}
    for section, values in loaded.items():
        if isinstance(values, dict):
            config.setdefault(section, {}).update(values)
        else:
            config[section] = values

    if os.environ.get("DATABASE_URL"):
        config["database"]["url"] = os.environ["DATABASE_URL"]
    if os.environ.get("REDIS_URL"):
        config["cache"]["redis_url"] = os.environ["REDIS_URL"]
    return config


def configure_logging(config: dict) -> None:
    level = str(config.get("logging", {}).get("level", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
