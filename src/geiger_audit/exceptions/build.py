"""Build introspection exceptions.

Every error in this module is fatal to the whole run: without a complete
build pass there is no trustworthy set of build-used files.
"""

from pathlib import Path
from typing import Sequence

from .base import GeigerAuditError


class BuildIntrospectionError(GeigerAuditError):
    """Base class for errors raised while resolving the build-used file set."""

    pass


class BuildOrchestrationError(BuildIntrospectionError):
    """Raised when cargo itself fails (clean or check)."""

    def __init__(self, command: Sequence[str], reason: str):
        super().__init__(
            f"Build failed: {' '.join(command)}",
            details={"reason": reason},
        )
        self.command = list(command)
        self.reason = reason


class MalformedInvocationError(BuildIntrospectionError):
    """Raised when an intercepted compiler invocation lacks an expected argument."""

    def __init__(self, command: Sequence[str], missing: str):
        super().__init__(
            f"Expected {missing} in compiler invocation",
            details={"command": " ".join(command)},
        )
        self.command = list(command)
        self.missing = missing


class CollectorStateError(BuildIntrospectionError):
    """Raised when the shared interception state was poisoned by an earlier failure."""

    def __init__(self, reason: str):
        super().__init__("Invocation collector state is unusable", details={"reason": reason})
        self.reason = reason


class CanonicalizeError(BuildIntrospectionError):
    """Raised when a path seen during the build cannot be canonicalized."""

    def __init__(self, path: Path, reason: str):
        super().__init__(
            f"Cannot canonicalize path: {path}",
            details={"path": str(path), "reason": reason},
        )
        self.path = path
        self.reason = reason


class DepInfoIOError(BuildIntrospectionError):
    """Raised when an output directory or dep-info file cannot be read."""

    def __init__(self, path: Path, reason: str):
        super().__init__(
            f"Cannot read build output: {path}",
            details={"path": str(path), "reason": reason},
        )
        self.path = path
        self.reason = reason


class DepInfoParseError(BuildIntrospectionError):
    """Raised when a rustc dep-info (.d) file is malformed."""

    def __init__(self, path: Path, reason: str):
        super().__init__(
            f"Failed to parse dep-info file: {path}",
            details={"path": str(path), "reason": reason},
        )
        self.path = path
        self.reason = reason
