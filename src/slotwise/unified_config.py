"""Unified configuration loader.

A single YAML file (slotwise_config.yaml) holds the user's scheduling
preferences, per-task-type rules, protected time and engine settings.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from .preferences import ProtectedSlot, SchedulingRule, UserSchedulingPreferences
from .scheduler.config import EngineConfig

DEFAULT_CONFIG_NAME = "slotwise_config.yaml"


class UnifiedConfig(BaseModel):
    """Everything slotwise reads from its config file."""

    user_id: str = ""
    preferences: UserSchedulingPreferences = Field(default_factory=UserSchedulingPreferences)
    rules: list[SchedulingRule] = Field(default_factory=list[SchedulingRule])
    # None means "use the built-in defaults"; [] means no protected time
    protected_slots: list[ProtectedSlot] | None = None
    scheduler: EngineConfig = Field(default_factory=EngineConfig)


def load_unified_config(config_path: Path | str) -> UnifiedConfig:
    """Load unified configuration from YAML file.

    Args:
        config_path: Path to slotwise_config.yaml file

    Returns:
        UnifiedConfig with defaults for every missing section

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If the file is empty or not a mapping
        pydantic.ValidationError: If a section is malformed
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with config_path.open() as f:
        data: dict[str, Any] | None = yaml.safe_load(f)

    if not data:
        raise ValueError("Empty configuration file")
    if not isinstance(data, dict):
        raise ValueError("Configuration must be a mapping")

    unknown = set(data) - set(UnifiedConfig.model_fields)
    if unknown:
        raise ValueError(f"Unknown configuration section(s): {', '.join(sorted(unknown))}")

    return UnifiedConfig.model_validate(data)
