"""
Settings store for the default tunables.

Resolution order (later wins):
  1. TrialConfig field defaults
  2. YAML settings file, under a top-level `packetdict:` mapping
  3. PACKETDICT_<FIELD> environment variables
  4. explicit keyword overrides (e.g. from the CLI)

Values are validated by TrialConfig; bad values raise pydantic.ValidationError.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .config import TrialConfig

logger = logging.getLogger(__name__)

ENV_PREFIX = "PACKETDICT_"
SETTINGS_SECTION = "packetdict"


def load_settings(
    path: Optional[Path | str] = None,
    *,
    env: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> TrialConfig:
    """Build a TrialConfig from the settings file, environment and overrides."""
    values: Dict[str, Any] = {}

    if path is not None:
        values.update(_read_yaml_section(Path(path)))

    values.update(_env_values(os.environ if env is None else env))

    for key, value in overrides.items():
        if value is not None:
            values[key] = value

    unknown = sorted(k for k in values if k not in TrialConfig.model_fields)
    if unknown:
        raise ValueError(f"Unknown settings: {', '.join(unknown)}")

    return TrialConfig(**values)


# === Helpers ===


def _read_yaml_section(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        try:
            doc = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Settings file {path} is not valid YAML: {e}") from e
    if not isinstance(doc, dict):
        raise ValueError(f"Settings file {path} must contain a mapping")
    section = doc.get(SETTINGS_SECTION, {})
    if not isinstance(section, dict):
        raise ValueError(f"Settings file {path}: `{SETTINGS_SECTION}` must be a mapping")
    logger.debug("Loaded %d settings from %s", len(section), path)
    return dict(section)


def _env_values(env: Mapping[str, str]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for name in TrialConfig.model_fields:
        raw = env.get(ENV_PREFIX + name.upper())
        if raw is not None and raw != "":
            out[name] = raw
    return out
