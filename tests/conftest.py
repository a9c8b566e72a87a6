"""Shared test fixtures for Geiger Audit tests."""

from pathlib import Path
from typing import Optional

import pytest

from geiger_audit.metadata.models import (
    CRATES_IO_SOURCE,
    DepKind,
    DepKindInfo,
    Package,
    PackageId,
    PackageSet,
    Resolve,
    ResolvedDep,
)


def pytest_addoption(parser):
    """Add --run-slow option for slow tests."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="run slow tests",
    )


def pytest_configure(config):
    """Configure slow marker."""
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given."""
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


@pytest.fixture
def make_package():
    """Factory for in-memory packages; the root defaults to a fake registry path."""

    def _make(
        name: str,
        version: str = "1.0.0",
        root: Optional[Path] = None,
        source: Optional[str] = CRATES_IO_SOURCE,
        license: Optional[str] = None,
        repository: Optional[str] = None,
    ) -> Package:
        root = root if root is not None else Path(f"/registry/{name}-{version}")
        package_id = PackageId(name, version, source, repr=f"{name} {version} ({source or root})")
        return Package(
            id=package_id,
            manifest_path=root / "Cargo.toml",
            license=license,
            repository=repository,
        )

    return _make


@pytest.fixture
def make_resolve():
    """Factory building (PackageSet, Resolve) from packages and (src, dst, kind[, target]) edges."""

    def _make(packages: list, edges: list, root: Optional[Package] = None):
        package_set = PackageSet(packages)
        resolve = Resolve(root=root.id if root is not None else None)
        for package in packages:
            resolve.deps[package.id] = []
        for edge in edges:
            source, target, kind = edge[0], edge[1], edge[2]
            platform = edge[3] if len(edge) > 3 else None
            resolve.deps[source.id].append(
                ResolvedDep(target.id, (DepKindInfo(kind, platform),))
            )
        return package_set, resolve

    return _make


@pytest.fixture
def write_crate(tmp_path):
    """Write a crate directory with a Cargo.toml and the given source files."""

    def _write(name: str, files: dict) -> Path:
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        (root / "Cargo.toml").write_text(f'[package]\nname = "{name}"\nversion = "0.1.0"\n')
        for relative, content in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        return root

    return _write
