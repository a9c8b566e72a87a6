"""Package resolution and dependency graph exceptions."""

from typing import Optional, Sequence

from .base import GeigerAuditError


class ResolutionError(GeigerAuditError):
    """Base class for package resolution errors."""

    pass


class MetadataError(ResolutionError):
    """Raised when cargo metadata or rustc cannot be run or returns garbage."""

    def __init__(self, reason: str, command: Optional[Sequence[str]] = None):
        details = {"reason": reason}
        if command:
            details["command"] = " ".join(command)
        super().__init__("Failed to resolve package metadata", details=details)
        self.reason = reason
        self.command = list(command) if command else []


class PackageNotFoundError(ResolutionError):
    """Raised when a package spec or id does not name a resolved package."""

    def __init__(self, spec: str):
        super().__init__(f"Package not found: {spec}", details={"spec": spec})
        self.spec = spec


class GraphError(ResolutionError):
    """Raised when the resolve references a package missing from the package set."""

    def __init__(self, package_id: str, reason: str):
        super().__init__(
            f"Cannot build dependency graph at {package_id}",
            details={"package": package_id, "reason": reason},
        )
        self.package_id = package_id
        self.reason = reason
