"""Shared CLI helpers."""

from pathlib import Path
from typing import Any, Optional

from rich.console import Console

from ..config import AuditConfig, load_config

console = Console()
err_console = Console(stderr=True)


def resolve_config(config: Optional[Path] = None, **options: Any) -> AuditConfig:
    """Build configuration from CLI options.

    Flags left at their "not given" value (None or False) do not override
    values from config files or the environment.
    """
    overrides = {key: value for key, value in options.items() if value not in (None, False, [])}
    return load_config(config_file=config, **overrides)
