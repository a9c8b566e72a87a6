"""Target platform filters for platform-specific dependencies.

A dependency's platform is either a target triple (``x86_64-pc-windows-gnu``)
or a cfg expression (``cfg(all(unix, target_arch = "x86_64"))``). Cfg
expressions are evaluated against the cfg set printed by
``rustc --print=cfg`` for the audited target.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional, Union

from ..exceptions import InvalidConfigError


@dataclass(frozen=True)
class Cfg:
    """A single cfg atom: ``unix`` or ``target_os = "linux"``."""

    name: str
    value: Optional[str] = None

    @classmethod
    def parse(cls, line: str) -> Cfg:
        """Parse one line of ``rustc --print=cfg`` output."""
        name, sep, value = line.strip().partition("=")
        if not sep:
            return cls(name.strip())
        value = value.strip()
        if len(value) < 2 or not (value.startswith('"') and value.endswith('"')):
            raise InvalidConfigError("cfg", line, "expected key=\"value\"")
        return cls(name.strip(), value[1:-1])


@dataclass(frozen=True)
class CfgValue:
    cfg: Cfg

    def matches(self, cfgs: frozenset[Cfg]) -> bool:
        return self.cfg in cfgs


@dataclass(frozen=True)
class CfgNot:
    expr: CfgExpr

    def matches(self, cfgs: frozenset[Cfg]) -> bool:
        return not self.expr.matches(cfgs)


@dataclass(frozen=True)
class CfgAll:
    exprs: tuple[CfgExpr, ...]

    def matches(self, cfgs: frozenset[Cfg]) -> bool:
        return all(e.matches(cfgs) for e in self.exprs)


@dataclass(frozen=True)
class CfgAny:
    exprs: tuple[CfgExpr, ...]

    def matches(self, cfgs: frozenset[Cfg]) -> bool:
        return any(e.matches(cfgs) for e in self.exprs)


CfgExpr = Union[CfgValue, CfgNot, CfgAll, CfgAny]

_TOKEN_RE = re.compile(r'\s*(?:(?P<ident>[A-Za-z_][A-Za-z0-9_]*)|(?P<string>"[^"]*")|(?P<punct>[(),=]))')


def _tokenize(text: str) -> list[str]:
    tokens = []
    pos = 0
    text = text.rstrip()
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            raise InvalidConfigError("cfg", text, f"unexpected character at offset {pos}")
        tokens.append(match.group(match.lastgroup))
        pos = match.end()
    return tokens


class _CfgParser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.tokens = _tokenize(text)
        self.pos = 0

    def _peek(self) -> Optional[str]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _next(self) -> str:
        token = self._peek()
        if token is None:
            raise InvalidConfigError("cfg", self.text, "unexpected end of expression")
        self.pos += 1
        return token

    def _expect(self, expected: str) -> None:
        token = self._next()
        if token != expected:
            raise InvalidConfigError("cfg", self.text, f"expected '{expected}', got '{token}'")

    def parse(self) -> CfgExpr:
        expr = self._expr()
        if self._peek() is not None:
            raise InvalidConfigError("cfg", self.text, f"trailing token '{self._peek()}'")
        return expr

    def _expr(self) -> CfgExpr:
        ident = self._next()
        if not (ident[0].isalpha() or ident[0] == "_"):
            raise InvalidConfigError("cfg", self.text, f"expected identifier, got '{ident}'")
        if self._peek() == "(" and ident in ("all", "any", "not"):
            self._next()
            exprs = self._list()
            if ident == "not":
                if len(exprs) != 1:
                    raise InvalidConfigError("cfg", self.text, "not() takes exactly one argument")
                return CfgNot(exprs[0])
            return CfgAll(tuple(exprs)) if ident == "all" else CfgAny(tuple(exprs))
        if self._peek() == "=":
            self._next()
            value = self._next()
            if not value.startswith('"'):
                raise InvalidConfigError("cfg", self.text, f"expected string, got '{value}'")
            return CfgValue(Cfg(ident, value[1:-1]))
        return CfgValue(Cfg(ident))

    def _list(self) -> list[CfgExpr]:
        exprs: list[CfgExpr] = []
        while self._peek() != ")":
            exprs.append(self._expr())
            if self._peek() == ",":
                self._next()
            elif self._peek() != ")":
                raise InvalidConfigError("cfg", self.text, "expected ',' or ')'")
        self._expect(")")
        return exprs


def parse_cfg_expr(text: str) -> CfgExpr:
    """Parse the inside of ``cfg(...)``."""
    return _CfgParser(text).parse()


@dataclass(frozen=True)
class Platform:
    """A dependency platform constraint: a target triple or a cfg expression."""

    triple: Optional[str] = None
    cfg: Optional[CfgExpr] = None

    @classmethod
    def parse(cls, spec: str) -> Platform:
        spec = spec.strip()
        if spec.startswith("cfg(") and spec.endswith(")"):
            return cls(cfg=parse_cfg_expr(spec[4:-1]))
        return cls(triple=spec)

    def matches(self, target: str, cfgs: Optional[Iterable[Cfg]]) -> bool:
        """Check the constraint against a target triple and its cfg set.

        Without a cfg set (rustc unavailable) a cfg expression never matches.
        """
        if self.triple is not None:
            return self.triple == target
        if self.cfg is None or cfgs is None:
            return False
        return self.cfg.matches(frozenset(cfgs))
