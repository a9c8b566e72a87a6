"""End-to-end tests for scanning plus report aggregation."""

import pytest

pytest.importorskip("tree_sitter_rust")

from geiger_audit.build.used_set import BuildUsedSet  # noqa: E402
from geiger_audit.formatters.tree import (  # noqa: E402
    ExtraDepsGroupLine,
    PackageLine,
    PrintConfig,
    walk_dependency_tree,
)
from geiger_audit.graph import ExtraDeps, build_graph  # noqa: E402
from geiger_audit.metadata.models import DepKind  # noqa: E402
from geiger_audit.report import (  # noqa: E402
    AuditResult,
    build_report,
    list_files_used_but_not_scanned,
    unsafe_totals,
)
from geiger_audit.scanning import Count, find_unsafe_in_packages  # noqa: E402


@pytest.fixture
def workspace(write_crate, make_package, make_resolve):
    """root -> a (normal), root -> b (dev); only a contains unsafe code."""
    roots = {
        "root": write_crate("root", {"src/main.rs": "fn main() { let x = 1; }\n"}),
        "a": write_crate("a", {"src/lib.rs": "pub unsafe fn danger() {}\n"}),
        "b": write_crate("b", {"src/lib.rs": "pub fn fine() {}\n"}),
    }
    packages = {name: make_package(name, "0.1.0", root=path, source=None) for name, path in roots.items()}
    package_set, resolve = make_resolve(
        list(packages.values()),
        [
            (packages["root"], packages["a"], DepKind.NORMAL),
            (packages["root"], packages["b"], DepKind.DEV),
        ],
        root=packages["root"],
    )
    graph = build_graph(resolve, package_set, packages["root"].id, extra_deps=ExtraDeps.ALL)
    files = {name: (path / "src" / ("main.rs" if name == "root" else "lib.rs")).resolve() for name, path in roots.items()}
    return packages, package_set, graph, files


class TestBuildReport:
    def test_unsafe_function_in_used_file(self, workspace):
        packages, package_set, graph, files = workspace
        build_used = BuildUsedSet(files.values())

        context = find_unsafe_in_packages(graph, package_set, build_used)
        report = build_report(graph, package_set, context)

        a = report.packages[packages["a"].id.key]
        assert a.unsafety.used.functions == Count(safe=0, unsafe=1)
        assert a.unsafety.not_used.functions == Count()
        assert report.packages[packages["b"].id.key].unsafety.used.functions == Count(1, 0)
        assert report.packages_without_metrics == set()
        assert report.used_but_not_scanned == set()
        assert unsafe_totals(report).used.functions == Count(safe=2, unsafe=1)

        lines = walk_dependency_tree(packages["root"].id, graph, PrintConfig())
        assert [
            line.id.name if isinstance(line, PackageLine) else line.header for line in lines
        ] == ["root", "a", "[dev-dependencies]", "b"]
        assert isinstance(lines[2], ExtraDepsGroupLine)

    def test_unused_files_land_in_not_used(self, workspace):
        packages, package_set, graph, files = workspace
        build_used = BuildUsedSet([files["root"], files["b"]])

        context = find_unsafe_in_packages(graph, package_set, build_used)
        report = build_report(graph, package_set, context)

        a = report.packages[packages["a"].id.key].unsafety
        assert a.used.functions == Count()
        assert a.not_used.functions == Count(0, 1)

    def test_used_file_outside_every_package(self, workspace, tmp_path):
        _, package_set, graph, files = workspace
        stray = tmp_path / "generated.rs"
        stray.write_text("fn generated() {}\n")
        build_used = BuildUsedSet([*files.values(), stray.resolve()])

        context = find_unsafe_in_packages(graph, package_set, build_used)
        report = build_report(graph, package_set, context)

        assert report.used_but_not_scanned == {stray.resolve()}

    def test_package_without_files_has_no_metrics(self, workspace):
        packages, package_set, graph, files = workspace
        files["b"].unlink()

        context = find_unsafe_in_packages(graph, package_set, BuildUsedSet())
        report = build_report(graph, package_set, context)

        assert report.packages_without_metrics == {packages["b"].id.key}
        assert packages["b"].id.key not in report.packages

    def test_report_json_is_deterministic(self, workspace):
        _, package_set, graph, files = workspace
        context = find_unsafe_in_packages(graph, package_set, BuildUsedSet(files.values()))
        report = build_report(graph, package_set, context)

        data = report.to_dict()
        assert [p["package"]["name"] for p in data["packages"]] == ["a", "b", "root"]
        assert data["packages"][0]["unsafety"]["used"]["functions"] == {"safe": 0, "unsafe": 1}
        assert report.to_json() == report.to_json()


class TestUsedButNotScanned:
    def test_logs_each_missing_file(self, tmp_path, caplog):
        missing = tmp_path / "missing.rs"
        build_used = BuildUsedSet([missing])
        with caplog.at_level("WARNING"):
            assert list_files_used_but_not_scanned(build_used) == {missing}
        assert str(missing) in caplog.text


class TestRawAuditResult:
    def test_counters_from_live_scan(self, workspace):
        packages, package_set, graph, _ = workspace
        result = AuditResult(root=packages["root"].id, graph=graph, packages=package_set)

        assert result.raw
        counters = result.counters_for(packages["a"].id)
        assert counters.used.functions == Count()
        assert counters.not_used.functions == Count(0, 1)

        report = result.safety_report()
        assert set(report.packages) == {p.id.key for p in packages.values()}
        assert report.used_but_not_scanned == set()
