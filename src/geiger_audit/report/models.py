"""The externally observable audit result."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from ..graph.models import Graph
from ..metadata.models import Package, PackageId, PackageSet
from ..scanning.counters import PackageCounters
from ..scanning.packages import scan_package


@dataclass(frozen=True)
class ReportEntry:
    """One scanned package: its metadata and its unsafe usage."""

    package: Package
    unsafety: PackageCounters

    def to_dict(self) -> dict[str, Any]:
        return {"package": self.package.to_dict(), "unsafety": self.unsafety.to_dict()}


@dataclass
class SafetyReport:
    """Per-package unsafe usage plus the two consistency signals.

    ``packages_without_metrics`` holds packages where no file was scanned,
    which is distinct from a package confirmed to contain no unsafe code.
    ``used_but_not_scanned`` holds files the build compiled but the scanner
    never reached.
    """

    packages: dict[str, ReportEntry] = field(default_factory=dict)
    packages_without_metrics: set[str] = field(default_factory=set)
    used_but_not_scanned: set[Path] = field(default_factory=set)

    def to_dict(self) -> dict[str, Any]:
        return {
            "packages": [self.packages[key].to_dict() for key in sorted(self.packages)],
            "packages_without_metrics": sorted(self.packages_without_metrics),
            "used_but_not_scanned": sorted(str(p) for p in self.used_but_not_scanned),
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)


@dataclass
class AuditResult:
    """Everything a formatter needs: the graph to walk and where counters come from.

    Without build introspection (``report`` is None) counters are computed by
    rescanning each package the first time it is rendered, with every file
    counted as not used by the build.
    """

    root: PackageId
    graph: Graph
    packages: PackageSet
    report: Optional[SafetyReport] = None
    include_tests: bool = False
    files_scanned: int = 0
    _raw_counters: dict[PackageId, Optional[PackageCounters]] = field(
        default_factory=dict, init=False, repr=False
    )

    @property
    def raw(self) -> bool:
        return self.report is None

    def counters_for(self, package_id: PackageId) -> Optional[PackageCounters]:
        """Counters of one package, or None if it has no scanned files."""
        if self.report is not None:
            entry = self.report.packages.get(package_id.key)
            return entry.unsafety if entry is not None else None
        if package_id not in self._raw_counters:
            package = self.packages.get_one(package_id)
            self._raw_counters[package_id] = scan_package(package, self.include_tests)
        return self._raw_counters[package_id]

    def safety_report(self) -> SafetyReport:
        """The build-aware report, or one assembled from live rescans."""
        if self.report is not None:
            return self.report
        report = SafetyReport()
        for package_id in sorted(self.graph.package_ids()):
            counters = self.counters_for(package_id)
            if counters is None:
                report.packages_without_metrics.add(package_id.key)
            else:
                report.packages[package_id.key] = ReportEntry(
                    self.packages.get_one(package_id), counters
                )
        return report
