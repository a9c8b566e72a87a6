"""Scan every source file of every package in the dependency graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..build.used_set import BuildUsedSet
from ..exceptions import FileReadError, ScanFileError
from ..graph.models import Graph
from ..logging_config import get_logger
from ..metadata.models import Package, PackageId, PackageSet
from .counters import PackageCounters
from .files import find_rs_files_in_dir
from .safety_scanner import find_unsafe_in_file
from .treesitter_parser import RustParser

logger = get_logger(__name__)


@dataclass
class GeigerContext:
    """Per-package scan results plus the build-used set they were checked against."""

    pack_id_to_counters: dict[PackageId, PackageCounters] = field(default_factory=dict)
    files_scanned: dict[PackageId, int] = field(default_factory=dict)
    failed_files: dict[Path, ScanFileError] = field(default_factory=dict)
    build_used: BuildUsedSet = field(default_factory=BuildUsedSet)


def find_unsafe_in_packages(
    graph: Graph,
    packages: PackageSet,
    build_used: BuildUsedSet,
    include_tests: bool = False,
    allow_partial_results: bool = False,
    parser: Optional[RustParser] = None,
) -> GeigerContext:
    """Scan all packages of ``graph`` and split counters by build usage.

    A file counts as used when its canonical path is in ``build_used`` as it
    was before scanning started. Every scanned path that is in the set gets
    its usage counter incremented.

    Raises:
        ScanFileError: A file failed to scan and partial results are not allowed
    """
    parser = parser or RustParser()
    used_before_scan = build_used.snapshot()
    ctx = GeigerContext(build_used=build_used)

    for package_id in sorted(graph.package_ids()):
        package = packages.get_one(package_id)
        try:
            for path in find_rs_files_in_dir(package.root):
                _scan_one(ctx, package, path, used_before_scan, include_tests, allow_partial_results, parser)
        except FileReadError as e:
            if not allow_partial_results:
                raise
            logger.warning("Failed to list files of %s: %s", package_id, e)
            ctx.failed_files[e.filepath] = e

    return ctx


def _scan_one(
    ctx: GeigerContext,
    package: Package,
    path: Path,
    used_before_scan: frozenset[Path],
    include_tests: bool,
    allow_partial_results: bool,
    parser: RustParser,
) -> None:
    used_by_build = path in used_before_scan
    if used_by_build:
        logger.debug("Used in build: %s", path)
        ctx.build_used.mark_scanned(path)
    else:
        logger.debug("Not used in build: %s", path)

    try:
        file_counters = find_unsafe_in_file(path, include_tests, parser)
    except ScanFileError as e:
        if not allow_partial_results:
            raise
        logger.warning("Failed to scan file, skipping: %s", e)
        ctx.failed_files[path] = e
        return

    current = ctx.pack_id_to_counters.get(package.id, PackageCounters())
    ctx.pack_id_to_counters[package.id] = current.add_file(file_counters, used_by_build)
    ctx.files_scanned[package.id] = ctx.files_scanned.get(package.id, 0) + 1


def scan_package(
    package: Package, include_tests: bool = False, parser: Optional[RustParser] = None
) -> Optional[PackageCounters]:
    """Scan one package without build information (raw mode).

    Every file lands in ``not_used``. Files that fail to scan are logged and
    skipped. Returns None when the package has no scannable files.
    """
    parser = parser or RustParser()
    counters: Optional[PackageCounters] = None
    for path in find_rs_files_in_dir(package.root):
        try:
            file_counters = find_unsafe_in_file(path, include_tests, parser)
        except ScanFileError as e:
            logger.warning("Failed to scan file, skipping: %s", e)
            continue
        counters = (counters or PackageCounters()).add_file(file_counters, used_by_build=False)
    return counters
