"""Tests for package display patterns."""

from pathlib import Path

import pytest

from geiger_audit.exceptions import InvalidConfigError
from geiger_audit.formatters.pattern import Pattern, Placeholder


class TestTryBuild:
    def test_chunks(self):
        assert Pattern.try_build("{p} ({l})").chunks == (
            Placeholder("p"),
            " (",
            Placeholder("l"),
            ")",
        )

    def test_escaped_braces(self):
        assert Pattern.try_build("{{{r}}}").chunks == ("{", Placeholder("r"), "}")

    @pytest.mark.parametrize("text", ["{x}", "{p", "p}", "{}"])
    def test_invalid(self, text):
        with pytest.raises(InvalidConfigError) as exc_info:
            Pattern.try_build(text)
        assert exc_info.value.key == "format"


class TestDisplay:
    def test_registry_package(self, make_package):
        package = make_package("libc", "0.2.150", license="MIT OR Apache-2.0")
        assert Pattern.try_build("{p} {l}").display(package) == "libc v0.2.150 MIT OR Apache-2.0"

    def test_path_package_shows_root(self, make_package):
        package = make_package("app", "0.1.0", root=Path("/ws/app"), source=None)
        assert Pattern.try_build("{p}").display(package) == f"app v0.1.0 ({Path('/ws/app')})"

    def test_git_package_shows_source(self, make_package):
        source = "git+https://github.com/example/dep#abc123"
        package = make_package("dep", "0.3.0", source=source)
        assert Pattern.try_build("{p}").display(package) == f"dep v0.3.0 ({source})"

    def test_missing_fields_are_empty(self, make_package):
        package = make_package("x")
        assert Pattern.try_build("[{l}|{r}]").display(package) == "[|]"
