"""Resolved package data as produced by the package manager.

Ontology:
  PackageId  - identity of a resolved package (name, version, source)
  Package    - immutable metadata + root directory, owned by the PackageSet
  Resolve    - resolved dependency edges between package ids
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from ..exceptions import PackageNotFoundError

CRATES_IO_SOURCE = "registry+https://github.com/rust-lang/crates.io-index"

_VERSION_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)(?:-([0-9A-Za-z.-]+))?(?:\+.*)?$")


def version_key(version: str) -> tuple:
    """Semantic-version ordering key: 1.0.0-alpha < 1.0.0 < 1.0.1."""
    match = _VERSION_RE.match(version)
    if match is None:
        return (float("inf"), version)
    major, minor, patch, pre = match.groups()
    if pre is None:
        pre_key: tuple = (1,)
    else:
        parts = tuple((0, int(p), "") if p.isdigit() else (1, 0, p) for p in pre.split("."))
        pre_key = (0, parts)
    return (int(major), int(minor), int(patch), pre_key)


class DepKind(Enum):
    """Dependency kind of a resolved edge, in display order."""

    NORMAL = "normal"
    BUILD = "build"
    DEV = "dev"

    @classmethod
    def from_metadata(cls, raw: Optional[str]) -> DepKind:
        # cargo metadata encodes normal dependencies as null
        if raw is None:
            return cls.NORMAL
        return cls(raw)


@dataclass(frozen=True)
class PackageId:
    """Identity of one resolved package.

    ``repr`` is the resolver's opaque id string; equality and ordering use
    (name, semver, source) so sorted siblings read naturally.
    """

    name: str
    version: str
    source: Optional[str] = None
    repr: str = field(default="", compare=False)

    def sort_key(self) -> tuple:
        return (self.name, version_key(self.version), self.source or "")

    def __lt__(self, other: PackageId) -> bool:
        return self.sort_key() < other.sort_key()

    def __le__(self, other: PackageId) -> bool:
        return self.sort_key() <= other.sort_key()

    def __gt__(self, other: PackageId) -> bool:
        return self.sort_key() > other.sort_key()

    def __ge__(self, other: PackageId) -> bool:
        return self.sort_key() >= other.sort_key()

    @property
    def key(self) -> str:
        """Stable string key used in reports."""
        return self.repr or f"{self.name} {self.version} ({self.source or 'path'})"

    def __str__(self) -> str:
        return f"{self.name} v{self.version}"


@dataclass(frozen=True)
class Package:
    """A resolved package: identity, root directory and manifest metadata."""

    id: PackageId
    manifest_path: Path
    description: Optional[str] = None
    license: Optional[str] = None
    repository: Optional[str] = None
    authors: tuple[str, ...] = ()

    @property
    def root(self) -> Path:
        return self.manifest_path.parent

    @property
    def is_crates_io(self) -> bool:
        return self.id.source == CRATES_IO_SOURCE

    def to_dict(self) -> dict:
        return {
            "id": self.id.key,
            "name": self.id.name,
            "version": self.id.version,
            "source": self.id.source,
            "root": str(self.root),
            "description": self.description,
            "license": self.license,
            "repository": self.repository,
            "authors": list(self.authors),
        }


@dataclass(frozen=True)
class DepKindInfo:
    """One way a dependency is declared: its kind and optional platform."""

    kind: DepKind
    target: Optional[str] = None


@dataclass(frozen=True)
class ResolvedDep:
    """A resolved dependency of a package and every kind it is declared with."""

    package: PackageId
    kinds: tuple[DepKindInfo, ...]


class PackageSet(Mapping):
    """Arena of resolved packages, keyed by PackageId."""

    def __init__(self, packages: Optional[list[Package]] = None) -> None:
        self._packages: dict[PackageId, Package] = {}
        self._by_repr: dict[str, PackageId] = {}
        for package in packages or []:
            self.add(package)

    def add(self, package: Package) -> None:
        self._packages[package.id] = package
        if package.id.repr:
            self._by_repr[package.id.repr] = package.id

    def __getitem__(self, package_id: PackageId) -> Package:
        return self._packages[package_id]

    def __iter__(self) -> Iterator[PackageId]:
        return iter(self._packages)

    def __len__(self) -> int:
        return len(self._packages)

    def get_one(self, package_id: PackageId) -> Package:
        """Look up a package, raising PackageNotFoundError if unknown."""
        try:
            return self._packages[package_id]
        except KeyError:
            raise PackageNotFoundError(package_id.key)

    def by_repr(self, raw_id: str) -> PackageId:
        try:
            return self._by_repr[raw_id]
        except KeyError:
            raise PackageNotFoundError(raw_id)

    def find(self, spec: str) -> PackageId:
        """Resolve a package spec: ``name``, ``name@version``, ``name:version`` or a raw id.

        Raises:
            PackageNotFoundError: No package, or more than one, matches.
        """
        if spec in self._by_repr:
            return self._by_repr[spec]
        name, _, version = spec.replace(":", "@").partition("@")
        matches = [
            pid
            for pid in self._packages
            if pid.name == name and (not version or pid.version == version)
        ]
        if len(matches) != 1:
            raise PackageNotFoundError(spec)
        return matches[0]


@dataclass
class Resolve:
    """Resolved dependency edges: package id -> resolved dependencies."""

    deps: dict[PackageId, list[ResolvedDep]] = field(default_factory=dict)
    root: Optional[PackageId] = None

    def deps_of(self, package_id: PackageId) -> list[ResolvedDep]:
        return self.deps.get(package_id, [])


@dataclass
class CargoMetadata:
    """Everything consumed from the package resolver for one workspace."""

    packages: PackageSet
    resolve: Resolve
    workspace_root: Path
