"""Glyph tables for drawing tree vines."""

from dataclasses import dataclass
from enum import Enum


class Charset(str, Enum):
    UTF8 = "utf8"
    ASCII = "ascii"


@dataclass(frozen=True)
class Symbols:
    down: str
    tee: str
    ell: str
    right: str


UTF8_SYMBOLS = Symbols(down="│", tee="├", ell="└", right="─")

ASCII_SYMBOLS = Symbols(down="|", tee="|", ell="`", right="-")


def get_tree_symbols(charset: Charset) -> Symbols:
    if charset is Charset.ASCII:
        return ASCII_SYMBOLS
    return UTF8_SYMBOLS
