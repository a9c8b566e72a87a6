"""Safe/unsafe counters collected by the scanner and summed per package."""

from __future__ import annotations

from dataclasses import dataclass, field, fields


@dataclass(frozen=True)
class Count:
    """Number of safe and unsafe items of one syntactic category."""

    safe: int = 0
    unsafe: int = 0

    def counted(self, is_unsafe: bool) -> Count:
        """Return a copy with one more safe or unsafe item."""
        if is_unsafe:
            return Count(self.safe, self.unsafe + 1)
        return Count(self.safe + 1, self.unsafe)

    def __add__(self, other: Count) -> Count:
        return Count(self.safe + other.safe, self.unsafe + other.unsafe)

    def to_dict(self) -> dict[str, int]:
        return {"safe": self.safe, "unsafe": self.unsafe}


@dataclass(frozen=True)
class CounterBlock:
    """Unsafe usage metrics for the five tracked categories."""

    functions: Count = field(default_factory=Count)
    exprs: Count = field(default_factory=Count)
    item_impls: Count = field(default_factory=Count)
    item_traits: Count = field(default_factory=Count)
    methods: Count = field(default_factory=Count)

    def has_unsafe(self) -> bool:
        return any(getattr(self, f.name).unsafe > 0 for f in fields(self))

    def __add__(self, other: CounterBlock) -> CounterBlock:
        return CounterBlock(
            **{f.name: getattr(self, f.name) + getattr(other, f.name) for f in fields(self)}
        )

    def to_dict(self) -> dict[str, dict[str, int]]:
        return {f.name: getattr(self, f.name).to_dict() for f in fields(self)}


# Category names in display order, shared by the table and JSON output
CATEGORIES: tuple[str, ...] = tuple(f.name for f in fields(CounterBlock))


@dataclass(frozen=True)
class PackageCounters:
    """Counters of one package, split by whether the build used the file."""

    used: CounterBlock = field(default_factory=CounterBlock)
    not_used: CounterBlock = field(default_factory=CounterBlock)

    def add_file(self, counters: CounterBlock, used_by_build: bool) -> PackageCounters:
        if used_by_build:
            return PackageCounters(self.used + counters, self.not_used)
        return PackageCounters(self.used, self.not_used + counters)

    def __add__(self, other: PackageCounters) -> PackageCounters:
        return PackageCounters(self.used + other.used, self.not_used + other.not_used)

    def to_dict(self) -> dict[str, dict]:
        return {"used": self.used.to_dict(), "not_used": self.not_used.to_dict()}
