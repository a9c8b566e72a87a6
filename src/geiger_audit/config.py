"""Configuration loading and management for Geiger Audit.

This module provides configuration discovery and validation. Configuration
sources are merged in priority order:
    1. Defaults (defined in AuditConfig)
    2. Global config (~/.geiger-audit.toml)
    3. Project config (./geiger-audit.toml)
    4. Explicit config file (--config)
    5. Environment variables (GEIGER_* prefix)
    6. CLI overrides (passed as kwargs)

Example:
    >>> config = load_config(verbose=True, extra_deps="dev")
    >>> config.verbosity
    'verbose'
    >>> config.extra_deps
    'dev'
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional, get_args, get_type_hints

from .exceptions import ConfigurationError, GeigerAuditError, InvalidConfigError, InvalidPathError

# Type aliases for clarity
Verbosity = Literal["quiet", "normal", "verbose"]
ExtraDepsName = Literal["none", "build", "dev", "all"]
CharsetName = Literal["utf8", "ascii"]
PrefixName = Literal["indent", "depth", "none"]
OutputFormatName = Literal["table", "json"]


@dataclass(frozen=True)
class AuditConfig:
    """Configuration for one audit run.

    All fields have sensible defaults. Users typically override only a few
    fields via CLI flags or config file.

    Attributes:
        Scanning:
            include_tests: Count unsafe usage inside #[test] fns and #[cfg(test)] mods
            allow_partial_results: Log and skip files that fail to scan instead of aborting

        Dependency graph:
            extra_deps: Which non-normal dependency kinds to include (none/build/dev/all)
            all_targets: Do not filter dependencies by target platform
            target: Target triple to filter platform-specific dependencies for
                (None = host triple)

        Build:
            features: Space or comma separated features to activate
            all_features: Activate all available features
            no_default_features: Do not activate the `default` feature
            no_build: Skip build introspection and rescan packages while rendering
            offline / frozen / locked: Forwarded to every cargo invocation
            cargo / rustc: Executables to run
            build_timeout_seconds: Upper bound for a single cargo invocation
                (0 = unlimited)

        Output control:
            charset: Tree vine glyphs (utf8/ascii)
            prefix: Tree line prefix (indent/depth/none)
            show_all: Re-expand packages that were already displayed
            invert: Walk reverse dependencies
            format_pattern: Package format pattern ({p}, {l}, {r})
            output_format: table or json
            compact: Print (functions, exprs, impls, traits, methods) instead of the table
            verbosity: Logging verbosity level
    """

    # Scanning
    include_tests: bool = False
    allow_partial_results: bool = False

    # Dependency graph
    extra_deps: ExtraDepsName = "none"
    all_targets: bool = False
    target: Optional[str] = None

    # Build
    features: list[str] = field(default_factory=list)
    all_features: bool = False
    no_default_features: bool = False
    no_build: bool = False
    offline: bool = False
    frozen: bool = False
    locked: bool = False
    cargo: str = "cargo"
    rustc: str = "rustc"
    build_timeout_seconds: int = 0

    # Output control
    charset: CharsetName = "utf8"
    prefix: PrefixName = "indent"
    show_all: bool = False
    invert: bool = False
    format_pattern: str = "{p}"
    output_format: OutputFormatName = "table"
    compact: bool = False
    verbosity: Verbosity = "normal"

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        literal_fields = {
            "extra_deps": ExtraDepsName,
            "charset": CharsetName,
            "prefix": PrefixName,
            "output_format": OutputFormatName,
            "verbosity": Verbosity,
        }
        for field_name, literal in literal_fields.items():
            value = getattr(self, field_name)
            allowed = get_args(literal)
            if value not in allowed:
                raise InvalidConfigError(
                    field_name, value, f"expected one of: {', '.join(allowed)}"
                )

        if self.build_timeout_seconds < 0:
            raise InvalidConfigError(
                "build_timeout_seconds", self.build_timeout_seconds, "must be non-negative"
            )
        if not self.format_pattern:
            raise InvalidConfigError("format_pattern", self.format_pattern, "must not be empty")
        if self.all_targets and self.target:
            raise InvalidConfigError(
                "target", self.target, "cannot be combined with all_targets"
            )

    @property
    def cargo_global_flags(self) -> list[str]:
        """Flags forwarded to every cargo invocation."""
        flags = []
        if self.offline:
            flags.append("--offline")
        if self.frozen:
            flags.append("--frozen")
        if self.locked:
            flags.append("--locked")
        return flags

    @property
    def feature_flags(self) -> list[str]:
        """Feature selection flags shared by cargo metadata and cargo check."""
        flags = []
        if self.features:
            flags.extend(["--features", ",".join(self.features)])
        if self.all_features:
            flags.append("--all-features")
        if self.no_default_features:
            flags.append("--no-default-features")
        return flags


def load_config(config_file: Optional[Path] = None, **overrides) -> AuditConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags). ``None``
            values are ignored so unset CLI options never mask file config.

    Returns:
        Validated AuditConfig instance

    Raises:
        ConfigurationError: If a config file is invalid or missing
        InvalidConfigError: If a value fails validation
    """
    merged: dict = {}

    # 1. Global config
    global_config = Path.home() / ".geiger-audit.toml"
    if global_config.exists():
        try:
            merged.update(_load_toml_file(global_config))
        except GeigerAuditError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Invalid global config '{global_config}': {e}")

    # 2. Project config
    project_config = Path.cwd() / "geiger-audit.toml"
    if project_config.exists():
        try:
            merged.update(_load_toml_file(project_config))
        except GeigerAuditError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Invalid project config '{project_config}': {e}")

    # 3. Explicit config file
    if config_file is not None:
        if not config_file.exists():
            raise InvalidPathError(config_file, "config file not found")
        try:
            merged.update(_load_toml_file(config_file))
        except GeigerAuditError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Invalid config file '{config_file}': {e}")

    # 4. Environment variables
    merged.update(_load_env_vars())

    # 5. CLI overrides
    if "verbose" in overrides:
        if overrides["verbose"]:
            overrides["verbosity"] = "verbose"
        del overrides["verbose"]
    if "quiet" in overrides:
        if overrides["quiet"]:
            overrides["verbosity"] = "quiet"
        del overrides["quiet"]

    merged.update({k: v for k, v in overrides.items() if v is not None})

    # TOML allows `features = "a b"`; normalise to a list
    if isinstance(merged.get("features"), str):
        merged["features"] = _split_features(merged["features"])

    try:
        return AuditConfig(**merged)
    except TypeError as e:
        # Unknown field in config
        raise ConfigurationError(f"Invalid configuration: {e}")


def _split_features(raw: str) -> list[str]:
    return [f for f in raw.replace(",", " ").split() if f]


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from GEIGER_* environment variables.

    Every AuditConfig field can be set as GEIGER_<FIELD_NAME>, e.g.
    GEIGER_INCLUDE_TESTS=1 or GEIGER_EXTRA_DEPS=all. Lists (features) are
    space or comma separated.

    Returns:
        Dict of field_name -> parsed_value for any GEIGER_* vars found.
    """
    type_hints = get_type_hints(AuditConfig)

    result: dict[str, Any] = {}

    for field_name in AuditConfig.__dataclass_fields__:
        env_key = f"GEIGER_{field_name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint, field_name)
            if parsed is not None:
                result[field_name] = parsed
        except ValueError as e:
            raise InvalidConfigError(field_name, env_value, f"{env_key}: {e}")

    return result


def _parse_env_value(value: str, type_hint: Any, field_name: str) -> Any:
    """Parse environment variable string to the correct type.

    Args:
        value: Raw string from environment
        type_hint: Type annotation from dataclass
        field_name: Field name for error messages

    Returns:
        Parsed value or None if can't parse

    Raises:
        ValueError: If value can't be parsed to expected type
    """
    origin = getattr(type_hint, "__origin__", None)

    # Handle Optional[X] which is Union[X, None]
    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none_types = [t for t in args if t is not type(None)]
        if non_none_types:
            type_hint = non_none_types[0]
            origin = getattr(type_hint, "__origin__", None)

    if origin is list or type_hint is list:
        return _split_features(value)

    # Bool: accept true/false/1/0/yes/no
    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    # String (including Literal types like Verbosity)
    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict.

    Raises:
        GeigerAuditError: If tomllib/tomli not available
        Exception: If TOML parsing fails
    """
    try:
        # Python 3.11+ has tomllib in stdlib
        import tomllib
    except ModuleNotFoundError:
        try:
            # Fallback to tomli for Python 3.9-3.10
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise GeigerAuditError(
                "TOML support requires Python 3.11+ or 'tomli' package. "
                "Install with: pip install tomli"
            )

    with open(path, "rb") as f:
        return tomllib.load(f)
