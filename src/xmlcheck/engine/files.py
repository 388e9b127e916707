"""Glob expansion with ignore patterns."""

from __future__ import annotations

import glob
from fnmatch import fnmatch
from pathlib import Path, PurePath
from typing import Iterable, List, Sequence, Set

from ..exceptions import PatternError


def expand_patterns(
    patterns: Sequence[str],
    *,
    root: Path = Path("."),
    exclude: Iterable[str] = (),
) -> List[Path]:
    """Expand *patterns* relative to *root* into a list of files.

    Patterns starting with ``!`` are treated as additional ignore patterns.
    Each pattern's matches are sorted; files matched by several patterns are
    listed once, at their first occurrence. Returned paths are relative to
    *root* unless the pattern itself was absolute.
    """

    includes: List[str] = []
    ignores: List[str] = list(exclude)
    for pattern in patterns:
        if not pattern.strip():
            raise PatternError("empty file pattern")
        if pattern.startswith("!"):
            negated = pattern[1:]
            if not negated.strip():
                raise PatternError("empty ignore pattern '!'")
            ignores.append(negated)
        else:
            includes.append(pattern)
    if not includes:
        raise PatternError("no file patterns given")

    root = Path(root)
    seen: Set[str] = set()
    files: List[Path] = []
    for pattern in includes:
        for match in sorted(glob.glob(pattern, root_dir=root, recursive=True)):
            candidate = Path(match)
            key = candidate.as_posix()
            if key in seen or _is_ignored(candidate, ignores):
                continue
            if not (root / candidate).is_file():
                continue
            seen.add(key)
            files.append(candidate)
    return files


def _is_ignored(path: PurePath, ignores: Sequence[str]) -> bool:
    posix = path.as_posix()
    return any(fnmatch(posix, pattern) for pattern in ignores)
