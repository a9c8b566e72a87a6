"""Tests for JSON report output."""

import json

from geiger_audit.formatters import JsonFormatter, get_formatter
from geiger_audit.formatters.tree import PrintConfig
from geiger_audit.graph import build_graph
from geiger_audit.metadata.models import DepKind
from geiger_audit.report import AuditResult, ReportEntry, SafetyReport
from geiger_audit.scanning import Count, CounterBlock, PackageCounters


def test_json_report(make_package, make_resolve, tmp_path):
    app, dep = make_package("app", license="MIT"), make_package("dep")
    package_set, resolve = make_resolve([app, dep], [(app, dep, DepKind.NORMAL)])
    graph = build_graph(resolve, package_set, app.id)
    counters = PackageCounters(used=CounterBlock(methods=Count(safe=1, unsafe=2)))
    report = SafetyReport(
        packages={app.id.key: ReportEntry(app, counters)},
        packages_without_metrics={dep.id.key},
        used_but_not_scanned={tmp_path / "b.rs", tmp_path / "a.rs"},
    )
    result = AuditResult(root=app.id, graph=graph, packages=package_set, report=report)

    data = json.loads(JsonFormatter().format(result, PrintConfig()))

    assert data["packages_without_metrics"] == [dep.id.key]
    assert data["used_but_not_scanned"] == [str(tmp_path / "a.rs"), str(tmp_path / "b.rs")]
    (entry,) = data["packages"]
    assert entry["package"]["name"] == "app"
    assert entry["package"]["license"] == "MIT"
    assert entry["unsafety"]["used"]["methods"] == {"safe": 1, "unsafe": 2}
    assert entry["unsafety"]["not_used"]["methods"] == {"safe": 0, "unsafe": 0}


def test_get_formatter_json():
    assert isinstance(get_formatter("json"), JsonFormatter)
