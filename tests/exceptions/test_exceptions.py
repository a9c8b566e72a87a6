"""Tests for the exception hierarchy and CLI exit code mapping."""

from pathlib import Path

import pytest

from geiger_audit.cli._ux import ExitCode, exit_code_for
from geiger_audit.exceptions import (
    BuildIntrospectionError,
    BuildOrchestrationError,
    CanonicalizeError,
    CollectorStateError,
    ConfigurationError,
    DepInfoIOError,
    DepInfoParseError,
    EncodingScanError,
    FileReadError,
    GeigerAuditError,
    GraphError,
    InvalidConfigError,
    InvalidPathError,
    MalformedInvocationError,
    MetadataError,
    PackageNotFoundError,
    ResolutionError,
    ScanFileError,
    SyntaxScanError,
)


class TestHierarchy:
    """Every error is a GeigerAuditError and falls in one family."""

    @pytest.mark.parametrize(
        "error, family",
        [
            (FileReadError(Path("a.rs"), "denied"), ScanFileError),
            (EncodingScanError(Path("a.rs"), "bad byte"), ScanFileError),
            (SyntaxScanError(Path("a.rs"), "line 1"), ScanFileError),
            (BuildOrchestrationError(["cargo", "check"], "exit 101"), BuildIntrospectionError),
            (MalformedInvocationError(["rustc"], "--out-dir key"), BuildIntrospectionError),
            (CollectorStateError("poisoned"), BuildIntrospectionError),
            (CanonicalizeError(Path("x.rs"), "missing"), BuildIntrospectionError),
            (DepInfoIOError(Path("x.d"), "denied"), BuildIntrospectionError),
            (DepInfoParseError(Path("x.d"), "dangling escape"), BuildIntrospectionError),
            (MetadataError("boom"), ResolutionError),
            (PackageNotFoundError("serde"), ResolutionError),
            (GraphError("serde 1.0.0", "missing"), ResolutionError),
            (InvalidConfigError("charset", "x", "bad"), ConfigurationError),
            (InvalidPathError(Path("c.toml"), "missing"), ConfigurationError),
        ],
    )
    def test_family(self, error, family):
        assert isinstance(error, family)
        assert isinstance(error, GeigerAuditError)

    def test_scan_error_names_file(self):
        """The failing file is part of the message and kept as an attribute."""
        error = SyntaxScanError(Path("src/lib.rs"), "syntax error at line 3, column 1")
        assert error.filepath == Path("src/lib.rs")
        assert "src/lib.rs" in str(error)
        assert "line 3" in str(error)

    def test_build_error_keeps_command(self):
        error = BuildOrchestrationError(["cargo", "check", "--offline"], "exit 101")
        assert error.command == ["cargo", "check", "--offline"]
        assert "exit 101" in str(error)

    def test_malformed_invocation_names_missing_part(self):
        error = MalformedInvocationError(["rustc", "--crate-name", "x"], "--out-dir key")
        assert error.missing == "--out-dir key"
        assert "--out-dir key" in str(error)


class TestExitCodes:
    @pytest.mark.parametrize(
        "error, code",
        [
            (SyntaxScanError(Path("a.rs"), "x"), ExitCode.SCAN_ERROR),
            (DepInfoParseError(Path("x.d"), "x"), ExitCode.BUILD_ERROR),
            (BuildOrchestrationError(["cargo"], "x"), ExitCode.BUILD_ERROR),
            (PackageNotFoundError("serde"), ExitCode.PATH_NOT_FOUND),
            (InvalidPathError(Path("c.toml"), "missing"), ExitCode.PATH_NOT_FOUND),
            (InvalidConfigError("charset", "x", "bad"), ExitCode.CONFIG_ERROR),
            (MetadataError("boom"), ExitCode.RESOLUTION_ERROR),
            (GraphError("serde 1.0.0", "missing"), ExitCode.RESOLUTION_ERROR),
        ],
    )
    def test_mapping(self, error, code):
        assert exit_code_for(error) == code
