"""Public API for Geiger Audit.

This module provides the main entry point for auditing. Users should call
audit() instead of wiring the metadata, graph, build and scanning stages
together by hand.

Example:
    >>> from geiger_audit import audit
    >>>
    >>> # Audit the package in the current directory
    >>> result = audit()
    >>>
    >>> # With customization
    >>> result = audit(
    ...     manifest_path=Path("/path/to/Cargo.toml"),
    ...     extra_deps="all",
    ...     allow_partial_results=True,
    ... )
    >>> result.safety_report().to_json()
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from .build import BuildUsedSet, resolve_build_used_files
from .config import AuditConfig, load_config
from .exceptions import PackageNotFoundError
from .graph import ExtraDeps, build_graph
from .logging_config import get_logger, setup_logging
from .metadata import CargoMetadata, PackageId, load_cargo_metadata, rustc_cfgs, rustc_host
from .report import AuditResult, build_report
from .scanning import find_unsafe_in_packages

logger = get_logger(__name__)


def audit(
    manifest_path: Optional[Path] = None,
    package: Optional[str] = None,
    config_file: Optional[Path] = None,
    log_file: Optional[Path] = None,
    **overrides,
) -> AuditResult:
    """Audit a cargo project for unsafe usage.

    This is the main entry point for Geiger Audit. It orchestrates the
    full pipeline:
    1. Load configuration (auto-discover TOML + apply overrides)
    2. Resolve packages with ``cargo metadata``
    3. Build the dependency graph for the target platform
    4. Run the observed build to learn which files are compiled
    5. Scan every package and aggregate the report

    Args:
        manifest_path: Path to Cargo.toml (default: cargo's own discovery)
        package: Package to use as the root of the tree (name, name@version)
        config_file: Optional explicit config file path
        log_file: Optional file that also receives log records
        **overrides: Configuration overrides (e.g., include_tests=True)

    Returns:
        AuditResult holding the graph and the SafetyReport. In ``no_build``
        mode the report is None and counters are computed on demand.

    Raises:
        GeigerAuditError: If configuration, resolution, the build or a
            scan (outside partial mode) fails
    """
    verbosity = "verbose" if overrides.get("verbose") else "normal"
    if overrides.get("quiet"):
        verbosity = "quiet"
    setup_logging(
        verbose=(verbosity == "verbose"), quiet=(verbosity == "quiet"), log_file=log_file
    )

    config = load_config(config_file=config_file, **overrides)
    logger.debug(f"Configuration loaded: {config.verbosity} mode")
    return run_audit(config, manifest_path=manifest_path, package=package)


def select_root(metadata: CargoMetadata, package: Optional[str]) -> PackageId:
    """The package the tree starts at: ``package`` or the workspace's root package."""
    if package:
        return metadata.packages.find(package)
    if metadata.resolve.root is None:
        raise PackageNotFoundError("<root package of a virtual workspace, use --package>")
    return metadata.resolve.root


def run_audit(
    config: AuditConfig,
    manifest_path: Optional[Path] = None,
    package: Optional[str] = None,
) -> AuditResult:
    """Run the audit pipeline with an already loaded configuration."""
    metadata = load_cargo_metadata(config, manifest_path)
    root = select_root(metadata, package)
    # The graph always grows from the workspace root so an inverted tree
    # shows every dependent of ``root``
    graph_root = metadata.resolve.root or root

    target: Optional[str] = None
    cfgs = None
    if not config.all_targets:
        target = config.target or rustc_host(config.rustc)
        cfgs = rustc_cfgs(config.rustc, config.target)

    graph = build_graph(
        metadata.resolve,
        metadata.packages,
        graph_root,
        target=target,
        cfgs=cfgs,
        extra_deps=ExtraDeps(config.extra_deps),
    )
    if root not in graph:
        raise PackageNotFoundError(root.key)
    logger.info(f"Dependency graph: {len(graph)} packages, {graph.edge_count} edges")

    if config.no_build:
        return AuditResult(root, graph, metadata.packages, include_tests=config.include_tests)

    build_used: BuildUsedSet = resolve_build_used_files(
        metadata.workspace_root, config, manifest_path
    )
    context = find_unsafe_in_packages(
        graph,
        metadata.packages,
        build_used,
        include_tests=config.include_tests,
        allow_partial_results=config.allow_partial_results,
    )
    report = build_report(graph, metadata.packages, context)
    logger.info(
        f"Scanned {sum(context.files_scanned.values())} files in {len(report.packages)} packages"
    )
    return AuditResult(
        root,
        graph,
        metadata.packages,
        report=report,
        include_tests=config.include_tests,
        files_scanned=sum(context.files_scanned.values()),
    )
