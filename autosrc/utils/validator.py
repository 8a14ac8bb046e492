"""Startup validation — credential and specification checks before the loop starts."""

import json
import os
from pathlib import Path
from typing import Any

from autosrc.errors import MissingCredentialError, ParseError


def check_credentials(config: dict) -> str:
    """Return the API key for the configured provider.

    Raises MissingCredentialError if the provider is unknown or its
    environment variable is unset or blank.
    """
    from autosrc.config import CREDENTIAL_ENV_VARS

    provider = config.get("provider", "anthropic")
    env_var = CREDENTIAL_ENV_VARS.get(provider)
    if env_var is None:
        raise MissingCredentialError(
            f"Unknown provider '{provider}'. Must be one of: {sorted(CREDENTIAL_ENV_VARS)}"
        )
    key = os.environ.get(env_var, "")
    if not key.strip():
        raise MissingCredentialError(f"{env_var} environment variable is required")
    return key


def load_spec(spec_path: str | Path) -> Any:
    """Read and decode the specification document.

    The content is opaque to autosrc; only JSON well-formedness is checked.
    Raises OSError if unreadable and ParseError if not UTF-8 JSON.
    """
    try:
        raw = Path(spec_path).read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ParseError(f"Specification {spec_path} is not valid UTF-8: {exc}") from exc
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Specification {spec_path} is not valid JSON: {exc}") from exc
