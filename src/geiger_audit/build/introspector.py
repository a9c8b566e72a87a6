"""Resolve the set of source files a real build compiles.

Runs ``cargo clean`` and then a non-incremental ``cargo check`` with every
rustc invocation routed through the wrapper. Afterwards the dep-info files in
every recorded output directory name the complete set of sources.

Every run rebuilds the whole dependency graph. Partial rebuilds would leave
units unobserved, so the cost is accepted.
"""

from __future__ import annotations

import os
import stat
import subprocess
import sys
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Optional

from ..config import AuditConfig
from ..exceptions import BuildOrchestrationError, CanonicalizeError, DepInfoIOError
from ..logging_config import get_logger
from .collector import CollectorServer, InvocationCollector
from .dep_info import parse_dep_info
from .used_set import BuildUsedSet

logger = get_logger(__name__)

WRAPPER_MODULE = "geiger_audit.build.wrapper"
DEP_INFO_SUFFIX = ".d"


def _manifest_args(manifest_path: Optional[Path]) -> list[str]:
    return ["--manifest-path", str(manifest_path)] if manifest_path is not None else []


def clean_command(config: AuditConfig, manifest_path: Optional[Path] = None) -> list[str]:
    cmd = [config.cargo, "clean"]
    if config.target:
        cmd.extend(["--target", config.target])
    cmd.extend(config.cargo_global_flags)
    cmd.extend(_manifest_args(manifest_path))
    return cmd


def check_command(config: AuditConfig, manifest_path: Optional[Path] = None) -> list[str]:
    cmd = [config.cargo, "check"]
    cmd.extend(config.feature_flags)
    if config.target:
        cmd.extend(["--target", config.target])
    cmd.extend(config.cargo_global_flags)
    cmd.extend(_manifest_args(manifest_path))
    return cmd


def run_cargo(
    cmd: list[str],
    cwd: Path,
    env: Optional[dict[str, str]] = None,
    timeout_seconds: int = 0,
) -> None:
    """Run one cargo command.

    Raises:
        BuildOrchestrationError: cargo could not be started, timed out or failed
    """
    logger.info("Running: %s", " ".join(cmd))
    try:
        result = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            capture_output=True,
            text=True,
            timeout=timeout_seconds or None,
        )
    except subprocess.TimeoutExpired:
        raise BuildOrchestrationError(cmd, f"timed out after {timeout_seconds}s")
    except OSError as e:
        raise BuildOrchestrationError(cmd, str(e))

    if result.stderr:
        logger.debug("cargo stderr:\n%s", result.stderr.rstrip())
    if result.returncode != 0:
        tail = "\n".join(result.stderr.strip().splitlines()[-20:])
        raise BuildOrchestrationError(cmd, tail or f"exit code {result.returncode}")


def write_wrapper_script(directory: Path) -> Path:
    """Write an executable RUSTC_WRAPPER that runs the wrapper module."""
    if os.name == "nt":
        script = directory / "geiger-rustc-wrapper.cmd"
        script.write_text(f'@"{sys.executable}" -m {WRAPPER_MODULE} %*\r\n')
    else:
        script = directory / "geiger-rustc-wrapper"
        script.write_text(f'#!/bin/sh\nexec "{sys.executable}" -m {WRAPPER_MODULE} "$@"\n')
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return script


def _dep_info_files(out_dir: Path) -> list[Path]:
    def _raise(error: OSError) -> None:
        raise DepInfoIOError(Path(error.filename or out_dir), str(error))

    found = []
    for dirpath, _dirnames, filenames in os.walk(out_dir, onerror=_raise):
        found.extend(Path(dirpath) / name for name in filenames if name.endswith(DEP_INFO_SUFFIX))
    return sorted(found)


def collect_dep_info_paths(workspace_root: Path, out_dirs: Iterable[Path]) -> set[Path]:
    """Canonical paths of every dependency named by dep-info files in ``out_dirs``.

    Relative dependency paths are taken relative to ``workspace_root``.

    Raises:
        DepInfoIOError: An output directory or dep-info file cannot be read
        DepInfoParseError: A dep-info file is malformed
        CanonicalizeError: A dependency path does not exist
    """
    paths: set[Path] = set()
    for out_dir in sorted(out_dirs):
        for dep_info in _dep_info_files(out_dir):
            for _target, deps in parse_dep_info(dep_info):
                for dep in deps:
                    raw_path = workspace_root / dep
                    try:
                        paths.add(raw_path.resolve(strict=True))
                    except OSError as e:
                        raise CanonicalizeError(raw_path, str(e))
    return paths


def resolve_build_used_files(
    workspace_root: Path,
    config: AuditConfig,
    manifest_path: Optional[Path] = None,
) -> BuildUsedSet:
    """Clean, rebuild under observation and return the build-used file set.

    Raises:
        BuildIntrospectionError: Any failure; there is no partial result
    """
    run_cargo(clean_command(config, manifest_path), workspace_root, timeout_seconds=config.build_timeout_seconds)

    collector = InvocationCollector()
    with tempfile.TemporaryDirectory(prefix="geiger-audit-") as tmp, CollectorServer(collector) as server:
        env = dict(os.environ)
        env.update(server.env)
        env["RUSTC_WRAPPER"] = str(write_wrapper_script(Path(tmp)))
        env["CARGO_INCREMENTAL"] = "0"
        if config.rustc != "rustc":
            env["RUSTC"] = config.rustc

        try:
            run_cargo(
                check_command(config, manifest_path),
                workspace_root,
                env=env,
                timeout_seconds=config.build_timeout_seconds,
            )
        except BuildOrchestrationError:
            first_error = collector.first_error
            if first_error is not None:
                raise first_error from None
            raise

    first_error = collector.first_error
    if first_error is not None:
        raise first_error

    rs_files, out_dirs = collector.snapshot()
    logger.info("Build used %d entry file(s) across %d output dir(s)", len(rs_files), len(out_dirs))
    return BuildUsedSet(collect_dep_info_paths(workspace_root, out_dirs) | rs_files)
