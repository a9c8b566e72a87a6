"""Reader for rustc dep-info (``.d``) files.

A dep-info file is a makefile fragment: ``target: dep1 dep2 ...``. Spaces
inside a path are escaped with a trailing backslash on the preceding token.
"""

from __future__ import annotations

from pathlib import Path

from ..exceptions import DepInfoIOError, DepInfoParseError

DepInfo = list[tuple[str, list[str]]]


def parse_dep_info_text(text: str, path: Path = Path("<memory>")) -> DepInfo:
    """Parse dep-info content into (target, [dependency, ...]) pairs.

    Lines without ``": "`` carry no dependencies and are ignored.

    Raises:
        DepInfoParseError: A line ends in a dangling ``\\`` continuation
    """
    entries: DepInfo = []
    for line in text.splitlines():
        pos = line.find(": ")
        if pos < 0:
            continue
        target = line[:pos]
        tokens = iter(line[pos + 2 :].split())
        deps = []
        for token in tokens:
            dep = token
            while dep.endswith("\\"):
                following = next(tokens, None)
                if following is None:
                    raise DepInfoParseError(path, "malformed dep-info format, trailing \\")
                dep = dep[:-1] + " " + following
            deps.append(dep)
        entries.append((target, deps))
    return entries


def parse_dep_info(path: Path) -> DepInfo:
    """Read and parse one ``.d`` file.

    Raises:
        DepInfoIOError: The file cannot be read
        DepInfoParseError: The file is malformed
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DepInfoIOError(path, str(e))
    return parse_dep_info_text(text, path)
