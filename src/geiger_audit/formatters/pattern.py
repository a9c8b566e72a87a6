"""Package name display patterns such as ``{p} {l}``."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from ..exceptions import InvalidConfigError
from ..metadata.models import Package

_PLACEHOLDERS = {"p": "package", "l": "license", "r": "repository"}


@dataclass(frozen=True)
class Placeholder:
    name: str


Chunk = Union[str, Placeholder]


@dataclass(frozen=True)
class Pattern:
    """A parsed display pattern.

    ``{p}`` is the package name, version and non-registry source, ``{l}`` the
    license, ``{r}`` the repository. ``{{`` and ``}}`` are literal braces.
    """

    chunks: tuple[Chunk, ...]

    @classmethod
    def try_build(cls, text: str) -> Pattern:
        """Parse ``text``.

        Raises:
            InvalidConfigError: Unknown placeholder or unbalanced brace
        """
        chunks: list[Chunk] = []
        literal: list[str] = []
        i = 0
        while i < len(text):
            ch = text[i]
            if ch in "{}" and text[i : i + 2] == ch * 2:
                literal.append(ch)
                i += 2
                continue
            if ch == "}":
                raise InvalidConfigError("format", text, f"unmatched '}}' at offset {i}")
            if ch == "{":
                end = text.find("}", i)
                if end < 0:
                    raise InvalidConfigError("format", text, f"unclosed '{{' at offset {i}")
                name = text[i + 1 : end]
                if name not in _PLACEHOLDERS:
                    raise InvalidConfigError("format", text, f"unsupported pattern '{{{name}}}'")
                if literal:
                    chunks.append("".join(literal))
                    literal = []
                chunks.append(Placeholder(name))
                i = end + 1
                continue
            literal.append(ch)
            i += 1
        if literal:
            chunks.append("".join(literal))
        return cls(tuple(chunks))

    def display(self, package: Package) -> str:
        parts = []
        for chunk in self.chunks:
            if isinstance(chunk, str):
                parts.append(chunk)
            elif chunk.name == "p":
                parts.append(_package_label(package))
            elif chunk.name == "l":
                parts.append(package.license or "")
            else:
                parts.append(package.repository or "")
        return "".join(parts)


def _package_label(package: Package) -> str:
    label = str(package.id)
    if package.is_crates_io:
        return label
    if package.id.source is None:
        return f"{label} ({package.root})"
    return f"{label} ({package.id.source})"
