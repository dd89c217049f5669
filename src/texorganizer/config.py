"""Settings-file loader.

Reads organizer settings from a YAML file with ``${ENV_VAR}`` interpolation,
so a project can pin e.g. ``compiler: ${TEXBIN}/lualatex``.  Variables from a
``.env`` file in the working directory are loaded first.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .models import OrganizerConfig

load_dotenv()

# ---------------------------------------------------------------------------
# YAML loading with ${ENV_VAR} interpolation
# ---------------------------------------------------------------------------

_ENV_RE = re.compile(r"\$\{([^}]+)\}")


def _resolve_env_vars(value: Any) -> Any:
    """Recursively resolve ``${ENV_VAR}`` references in strings."""
    if isinstance(value, str):
        def _replace(m: re.Match) -> str:
            return os.environ.get(m.group(1), "")
        return _ENV_RE.sub(_replace, value)
    if isinstance(value, dict):
        return {k: _resolve_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve_env_vars(v) for v in value]
    return value


def load_settings(config_path: str | Path) -> dict[str, Any]:
    """Load a settings mapping from YAML, with environment variables resolved."""
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")

    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Settings file {path} must contain a mapping, got {type(raw).__name__}")
    return _resolve_env_vars(raw)


def load_config(config_path: str | Path) -> OrganizerConfig:
    """Load an ``OrganizerConfig`` from a YAML file."""
    return OrganizerConfig.model_validate(load_settings(config_path))
