"""Per-file scan exceptions: reading, decoding and parsing source files.

These are the only errors the caller may choose to log and skip
(``allow_partial_results``); everything else aborts the run.
"""

from pathlib import Path

from .base import GeigerAuditError


class ScanFileError(GeigerAuditError):
    """Base class for errors raised while scanning a single source file."""

    kind = "scan"

    def __init__(self, filepath: Path, reason: str):
        super().__init__(
            f"Failed to scan file: {filepath}",
            details={"filepath": str(filepath), "kind": self.kind, "reason": reason},
        )
        self.filepath = filepath
        self.reason = reason


class FileReadError(ScanFileError):
    """Raised when a source file or directory cannot be read or canonicalized."""

    kind = "io"


class EncodingScanError(ScanFileError):
    """Raised when a source file is not valid UTF-8."""

    kind = "encoding"


class SyntaxScanError(ScanFileError):
    """Raised when a source file cannot be parsed."""

    kind = "syntax"
