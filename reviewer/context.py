"""Collect a source tree into a single block of prompt context."""

import os
from pathlib import Path
from typing import Iterator, Union

from reviewer.errors import ReviewError


def iter_source_files(root: Union[str, Path]) -> Iterator[Path]:
    """Yield every file under root, depth first, in sorted name order.

    Nothing is skipped: hidden directories, build output and binary files
    are all included.
    """
    try:
        with os.scandir(root) as it:
            entries = sorted(it, key=lambda entry: entry.name)
    except OSError as e:
        raise ReviewError(f"Cannot read source directory {root}: {e.strerror or e}")

    for entry in entries:
        if entry.is_dir(follow_symlinks=False):
            yield from iter_source_files(entry.path)
        else:
            yield Path(entry.path)


def collect_context(root: Union[str, Path]) -> str:
    """Concatenate the contents of every file under root, blank-line separated."""
    contents = []
    for path in iter_source_files(root):
        try:
            contents.append(path.read_text(encoding="utf-8", errors="replace"))
        except OSError as e:
            raise ReviewError(f"Cannot read {path}: {e.strerror or e}")
    return "\n\n".join(contents)
