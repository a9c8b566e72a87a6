"""Source file discovery inside package root directories."""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

from ..exceptions import FileReadError

SOURCE_EXTENSION = ".rs"
MANIFEST_NAME = "Cargo.toml"


def is_source_file(path: Path) -> bool:
    return path.suffix == SOURCE_EXTENSION and path.is_file()


def find_rs_files_in_dir(root: Path) -> Iterator[Path]:
    """Yield canonical paths of every ``.rs`` file below ``root``.

    Directories below ``root`` that hold their own Cargo.toml are separate
    packages and are not descended into. Files are yielded in sorted order
    so repeated scans visit them identically.

    Raises:
        FileReadError: A directory cannot be listed or a path cannot be
            canonicalized.
    """

    def _raise(error: OSError) -> None:
        raise FileReadError(Path(error.filename or root), str(error))

    candidates: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
        current = Path(dirpath)
        dirnames[:] = [
            d for d in dirnames if not (current / d / MANIFEST_NAME).is_file()
        ]
        candidates.extend(
            current / name for name in filenames if is_source_file(current / name)
        )
    # os.walk lists a directory's files before its subdirectories
    for candidate in sorted(candidates):
        try:
            yield candidate.resolve(strict=True)
        except OSError as e:
            raise FileReadError(candidate, f"cannot canonicalize: {e}")
