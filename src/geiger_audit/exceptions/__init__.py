"""Exception hierarchy for Geiger Audit."""

from .base import GeigerAuditError
from .build import (
    BuildIntrospectionError,
    BuildOrchestrationError,
    CanonicalizeError,
    CollectorStateError,
    DepInfoIOError,
    DepInfoParseError,
    MalformedInvocationError,
)
from .config import (
    ConfigurationError,
    InvalidConfigError,
    InvalidPathError,
)
from .resolution import (
    GraphError,
    MetadataError,
    PackageNotFoundError,
    ResolutionError,
)
from .scan import (
    EncodingScanError,
    FileReadError,
    ScanFileError,
    SyntaxScanError,
)

__all__ = [
    "GeigerAuditError",
    "ScanFileError",
    "FileReadError",
    "EncodingScanError",
    "SyntaxScanError",
    "BuildIntrospectionError",
    "BuildOrchestrationError",
    "MalformedInvocationError",
    "CollectorStateError",
    "CanonicalizeError",
    "DepInfoIOError",
    "DepInfoParseError",
    "ResolutionError",
    "MetadataError",
    "PackageNotFoundError",
    "GraphError",
    "ConfigurationError",
    "InvalidConfigError",
    "InvalidPathError",
]
