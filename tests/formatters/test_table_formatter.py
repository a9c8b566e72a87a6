"""Tests for the tree-shaped unsafe usage table."""

import pytest

from geiger_audit.formatters import get_formatter
from geiger_audit.formatters.symbols import ASCII_SYMBOLS
from geiger_audit.formatters.table_formatter import (
    COMPACT_HEADER,
    RADIOACTIVE,
    TableFormatter,
    compact_row,
    table_row,
    table_row_empty,
)
from geiger_audit.formatters.tree import PrintConfig
from geiger_audit.graph import build_graph
from geiger_audit.metadata.models import DepKind
from geiger_audit.report import AuditResult, ReportEntry, SafetyReport
from geiger_audit.scanning import Count, CounterBlock, PackageCounters

UNSAFE_FN = CounterBlock(functions=Count(safe=2, unsafe=1), exprs=Count(safe=10, unsafe=4))
SAFE_FN = CounterBlock(functions=Count(safe=3))


@pytest.fixture
def tree(make_package, make_resolve):
    packages = {name: make_package(name) for name in ("app", "danger", "nometrics")}
    package_set, resolve = make_resolve(
        list(packages.values()),
        [
            (packages["app"], packages["danger"], DepKind.NORMAL),
            (packages["app"], packages["nometrics"], DepKind.NORMAL),
        ],
    )
    graph = build_graph(resolve, package_set, packages["app"].id)
    return packages, package_set, graph


@pytest.fixture
def result(tree):
    packages, package_set, graph = tree
    report = SafetyReport(
        packages={
            packages["app"].id.key: ReportEntry(packages["app"], PackageCounters(used=SAFE_FN)),
            packages["danger"].id.key: ReportEntry(
                packages["danger"], PackageCounters(used=UNSAFE_FN, not_used=UNSAFE_FN)
            ),
        },
        packages_without_metrics={packages["nometrics"].id.key},
    )
    return AuditResult(root=packages["app"].id, graph=graph, packages=package_set, report=report)


class TestRows:
    def test_row_shows_used_over_total(self):
        row = table_row(PackageCounters(used=UNSAFE_FN, not_used=UNSAFE_FN))
        assert row.split() == ["1/2", "4/8", "0/0", "0/0", "0/0"]
        assert len(row) == len(table_row_empty()) - 4

    def test_compact_row(self):
        assert compact_row(UNSAFE_FN) == "(1, 4, 0, 0, 0)"


class TestTableFormatter:
    def test_table(self, result):
        text = TableFormatter().format(result, PrintConfig(symbols=ASCII_SYMBOLS))
        lines = text.splitlines()

        assert lines[1].startswith("Functions  Expressions  Impls  Traits  Methods  Dependency")
        app, danger, nometrics = lines[3:6]
        assert app.split() == ["0/0", "0/0", "0/0", "0/0", "0/0", "app", "v1.0.0"]
        assert RADIOACTIVE in danger
        assert danger.endswith("|-- danger v1.0.0")
        assert nometrics == f"{table_row_empty()}`-- nometrics v1.0.0"

    def test_unsafe_rows_are_red(self, result):
        lines = TableFormatter().lines(result, PrintConfig())
        danger = lines[4]
        assert any(span.style == "bold red" for span in danger.spans)
        assert all(span.style != "bold red" for span in lines[3].spans)

    def test_compact(self, result):
        text = TableFormatter().format(result, PrintConfig(compact=True, symbols=ASCII_SYMBOLS))
        lines = text.splitlines()
        assert lines[1] == COMPACT_HEADER
        assert lines[3] == "app v1.0.0 (0, 0, 0, 0, 0) "
        assert lines[4] == f"|-- danger v1.0.0 (1, 4, 0, 0, 0) {RADIOACTIVE}"

    def test_footer_for_unscanned_files(self, result, tmp_path):
        result.report.used_but_not_scanned = {tmp_path / "gen.rs"}
        text = TableFormatter().format(result, PrintConfig())
        assert text.splitlines()[-1].startswith("1 file(s) used by the build were never scanned")

    def test_raw_mode_counts_every_file(self, tree, monkeypatch):
        packages, package_set, graph = tree
        raw_counters = {
            "app": PackageCounters(not_used=SAFE_FN),
            "danger": PackageCounters(not_used=UNSAFE_FN),
            "nometrics": None,
        }
        scanned = []

        def fake_scan(package, include_tests=False, parser=None):
            scanned.append(package.id.name)
            return raw_counters[package.id.name]

        monkeypatch.setattr("geiger_audit.report.models.scan_package", fake_scan)
        result = AuditResult(root=packages["app"].id, graph=graph, packages=package_set)

        formatter = TableFormatter()
        lines = formatter.lines(result, PrintConfig())
        formatter.lines(result, PrintConfig())

        assert sorted(scanned) == ["app", "danger", "nometrics"]
        assert lines[4].plain.split()[:2] == ["0/1", "0/4"]
        assert any(span.style == "bold red" for span in lines[4].spans)


def test_get_formatter():
    assert isinstance(get_formatter("table"), TableFormatter)
    with pytest.raises(ValueError):
        get_formatter("html")
