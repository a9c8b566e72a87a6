"""Query cargo and rustc via subprocess.

``cargo metadata`` is the package resolver: it returns every package of the
resolved graph, their manifests and the resolved dependency edges. Its
resolution algorithm is treated as a black box.
"""

from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import Any, Optional

from ..config import AuditConfig
from ..exceptions import MetadataError
from ..logging_config import get_logger
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
from .platform import Cfg

logger = get_logger(__name__)


def _run(cmd: list[str], cwd: Optional[Path] = None) -> str:
    logger.info("Running: %s", " ".join(cmd))
    try:
        result = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd else None,
            capture_output=True,
            text=True,
        )
    except OSError as e:
        raise MetadataError(str(e), command=cmd)
    if result.returncode != 0:
        raise MetadataError(result.stderr.strip() or f"exit code {result.returncode}", command=cmd)
    return result.stdout


def metadata_command(config: AuditConfig, manifest_path: Optional[Path] = None) -> list[str]:
    cmd = [config.cargo, "metadata", "--format-version", "1"]
    cmd.extend(config.feature_flags)
    cmd.extend(config.cargo_global_flags)
    if manifest_path is not None:
        cmd.extend(["--manifest-path", str(manifest_path)])
    return cmd


def load_cargo_metadata(config: AuditConfig, manifest_path: Optional[Path] = None) -> CargoMetadata:
    """Run ``cargo metadata`` and parse its output.

    Raises:
        MetadataError: cargo failed or printed something that is not metadata
    """
    cmd = metadata_command(config, manifest_path)
    raw = _run(cmd)
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MetadataError(f"invalid JSON from cargo metadata: {e}", command=cmd)
    return parse_metadata(data)


def _package_id(entry: dict[str, Any]) -> PackageId:
    return PackageId(
        name=entry["name"],
        version=entry["version"],
        source=entry.get("source"),
        repr=entry["id"],
    )


def parse_metadata(data: dict[str, Any]) -> CargoMetadata:
    """Build CargoMetadata from the decoded ``cargo metadata`` JSON document."""
    try:
        packages = PackageSet()
        for entry in data["packages"]:
            packages.add(
                Package(
                    id=_package_id(entry),
                    manifest_path=Path(entry["manifest_path"]),
                    description=entry.get("description"),
                    license=entry.get("license"),
                    repository=entry.get("repository"),
                    authors=tuple(entry.get("authors") or ()),
                )
            )

        resolve = Resolve()
        raw_resolve = data.get("resolve")
        if raw_resolve is None:
            raise MetadataError("cargo metadata was run with --no-deps")
        for node in raw_resolve["nodes"]:
            node_id = packages.by_repr(node["id"])
            deps = []
            for dep in node.get("deps", []):
                if "dep_kinds" not in dep:
                    raise MetadataError("cargo is too old to report dependency kinds (need 1.41+)")
                kinds = tuple(
                    DepKindInfo(DepKind.from_metadata(k.get("kind")), k.get("target"))
                    for k in dep["dep_kinds"]
                )
                deps.append(ResolvedDep(packages.by_repr(dep["pkg"]), kinds))
            resolve.deps[node_id] = deps
        if raw_resolve.get("root"):
            resolve.root = packages.by_repr(raw_resolve["root"])

        return CargoMetadata(
            packages=packages,
            resolve=resolve,
            workspace_root=Path(data["workspace_root"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise MetadataError(f"unexpected cargo metadata layout: {e!r}")


def rustc_host(rustc: str = "rustc") -> str:
    """Return the host target triple reported by ``rustc -vV``."""
    output = _run([rustc, "-vV"])
    for line in output.splitlines():
        if line.startswith("host:"):
            return line.split(":", 1)[1].strip()
    raise MetadataError("rustc -vV did not report a host triple", command=[rustc, "-vV"])


def rustc_cfgs(rustc: str = "rustc", target: Optional[str] = None) -> Optional[list[Cfg]]:
    """Return the active cfg set for ``target``, or None if rustc cannot tell.

    A missing cfg set only makes cfg(...) dependency filters fail closed, so
    a failing rustc is logged rather than raised.
    """
    cmd = [rustc, "--print=cfg"]
    if target:
        cmd.extend(["--target", target])
    try:
        output = _run(cmd)
    except MetadataError as e:
        logger.warning("Could not query cfg values, cfg(...) dependencies will be skipped: %s", e)
        return None
    return [Cfg.parse(line) for line in output.splitlines() if line.strip()]
