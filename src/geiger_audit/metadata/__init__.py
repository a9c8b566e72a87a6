"""Package resolution: cargo metadata, package ids and platform filters."""

from .cargo import load_cargo_metadata, parse_metadata, rustc_cfgs, rustc_host
from .models import (
    CargoMetadata,
    DepKind,
    DepKindInfo,
    Package,
    PackageId,
    PackageSet,
    Resolve,
    ResolvedDep,
)
from .platform import Cfg, Platform, parse_cfg_expr

__all__ = [
    "load_cargo_metadata",
    "parse_metadata",
    "rustc_cfgs",
    "rustc_host",
    "CargoMetadata",
    "DepKind",
    "DepKindInfo",
    "Package",
    "PackageId",
    "PackageSet",
    "Resolve",
    "ResolvedDep",
    "Cfg",
    "Platform",
    "parse_cfg_expr",
]
