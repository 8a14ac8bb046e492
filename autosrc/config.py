"""Centralized config loading — read once at import time."""

from pathlib import Path

import yaml
from dotenv import find_dotenv, load_dotenv

# Load .env from the directory autosrc is run in
load_dotenv(find_dotenv(usecwd=True))

CONFIG_PATH = Path(__file__).resolve().parent / "config.yaml"

_config = yaml.safe_load(CONFIG_PATH.read_text())

CREDENTIAL_ENV_VARS = {
    "anthropic": "ANTHROPIC_API_KEY",
    "google": "GOOGLE_API_KEY",
}


def get_config() -> dict:
    """Return the loaded config dictionary."""
    return _config
