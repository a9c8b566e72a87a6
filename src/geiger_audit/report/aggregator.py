"""Turn per-package scan results into a SafetyReport."""

from __future__ import annotations

from pathlib import Path

from ..build.used_set import BuildUsedSet
from ..graph.models import Graph
from ..logging_config import get_logger
from ..metadata.models import PackageSet
from ..scanning.counters import PackageCounters
from ..scanning.packages import GeigerContext
from .models import ReportEntry, SafetyReport

logger = get_logger(__name__)


def list_files_used_but_not_scanned(build_used: BuildUsedSet) -> set[Path]:
    """Files the build compiled that no package scan reached, each logged as a warning."""
    missing = build_used.not_scanned()
    for path in sorted(missing):
        logger.warning("Dependency file was never scanned: %s", path)
    return missing


def build_report(graph: Graph, packages: PackageSet, context: GeigerContext) -> SafetyReport:
    """Build the report for every package in ``graph``.

    Packages without a single scanned file go to ``packages_without_metrics``
    rather than getting a zero-valued entry.
    """
    report = SafetyReport()
    for package_id in sorted(graph.package_ids()):
        package = packages.get_one(package_id)
        counters = context.pack_id_to_counters.get(package_id)
        if counters is None or context.files_scanned.get(package_id, 0) == 0:
            report.packages_without_metrics.add(package_id.key)
            continue
        report.packages[package_id.key] = ReportEntry(package, counters)

    report.used_but_not_scanned = list_files_used_but_not_scanned(context.build_used)
    return report


def unsafe_totals(report: SafetyReport) -> PackageCounters:
    """Sum the counters of every package in the report."""
    total = PackageCounters()
    for entry in report.packages.values():
        total = total + entry.unsafety
    return total
