"""State shared between the CLI callback and the command it runs."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass
class CliContext:
    config_path: Path | None = None


_context = CliContext()


def get_config_path() -> Path | None:
    """Config file given with --config, or None to search for one."""
    return _context.config_path


def set_config_path(path: Path | None) -> None:
    _context.config_path = path
