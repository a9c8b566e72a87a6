"""Exit codes and small terminal helpers for the geiger-audit CLI."""

import time
from dataclasses import dataclass

from ..exceptions import (
    BuildIntrospectionError,
    ConfigurationError,
    GeigerAuditError,
    InvalidPathError,
    PackageNotFoundError,
    ResolutionError,
    ScanFileError,
)

# ---------------------------------------------------------------------------
# Exit Codes (semantic, CI-friendly)
# ---------------------------------------------------------------------------


class ExitCode:
    """Semantic exit codes for CI observability.

    Ranges:
      0: Success
      1-9: Audit failures (scan, build or dependency resolution)
      80-89: User errors (bad input)
      100+: Internal errors
    """

    SUCCESS = 0
    SCAN_ERROR = 2
    BUILD_ERROR = 3
    RESOLUTION_ERROR = 4
    CONFIG_ERROR = 81
    PATH_NOT_FOUND = 82
    INTERNAL_ERROR = 100


def exit_code_for(error: GeigerAuditError) -> int:
    """Map an audit error onto its exit code."""
    if isinstance(error, BuildIntrospectionError):
        return ExitCode.BUILD_ERROR
    if isinstance(error, ScanFileError):
        return ExitCode.SCAN_ERROR
    if isinstance(error, (InvalidPathError, PackageNotFoundError)):
        return ExitCode.PATH_NOT_FOUND
    if isinstance(error, ConfigurationError):
        return ExitCode.CONFIG_ERROR
    if isinstance(error, ResolutionError):
        return ExitCode.RESOLUTION_ERROR
    return ExitCode.INTERNAL_ERROR


# ---------------------------------------------------------------------------
# Timing
# ---------------------------------------------------------------------------


@dataclass
class AuditTimer:
    """Track audit timing for display."""

    start_time: float
    package_count: int = 0
    file_count: int = 0

    @classmethod
    def start(cls) -> "AuditTimer":
        return cls(start_time=time.perf_counter())

    def elapsed(self) -> float:
        return time.perf_counter() - self.start_time

    def summary_line(self) -> str:
        """Generate timing summary: '✓ Audited 12 packages (340 files) in 41.3s'"""
        files = f" ({self.file_count} files)" if self.file_count else ""
        return f"✓ Audited {self.package_count} packages{files} in {self.elapsed():.1f}s"
