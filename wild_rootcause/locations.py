"""
wild_rootcause/locations.py
═══════════════════════════

Persistent source positions and the in-source file classifier.

A :class:`SourceLocation` is the value the AST walk attaches to Atoms,
root diagnostics and their notes.  Locations may be *invalid* (no file or
no line, e.g. for implicit declarations or type arguments); an invalid
location is a normal state and is rendered as ``null`` in every report.

A :class:`FileClassifier` decides whether a file is project-owned,
human-editable source (as opposed to a system header or generated code).
It backs the ``rootsInSource`` / ``indirectInSource`` classification of
the attribution index.
"""

from __future__ import annotations

import fnmatch
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

# Header prefixes that are never project source.
DEFAULT_SYSTEM_PREFIXES: Tuple[str, ...] = (
    "/usr/include",
    "/usr/lib",
    "/usr/local/include",
    "/opt/homebrew/include",
    "/Library/Developer",
)


# ═════════════════════════════════════════════════════════════════════════
#  SOURCE LOCATION
# ═════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, order=True)
class SourceLocation:
    """
    A persistent position in a source file.

    Attributes
    ----------
    file : str
        Path of the file as reported by the front end; empty if unknown.
    line : int
        1-based line number; ``0`` if unknown.
    col_start : int
        1-based start column; ``0`` if unknown.
    col_end : int
        1-based end column; ``0`` if unknown.
    """
    file: str = ""
    line: int = 0
    col_start: int = 0
    col_end: int = 0

    @property
    def valid(self) -> bool:
        return bool(self.file) and self.line > 0

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.col_start}:{self.col_end}"

    def to_dict(self) -> Dict[str, Any]:
        """The ``file/line/colstart/colend`` object used by aggregator dumps."""
        return {
            "file": self.file,
            "line": self.line,
            "colstart": self.col_start,
            "colend": self.col_end,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> SourceLocation:
        """Accept ``colstart`` or ``col_start`` spellings; ``null`` means unknown."""
        file = raw.get("file")
        return cls(
            file="" if file is None else str(file),
            line=_coordinate(raw, "line"),
            col_start=_coordinate(raw, "colstart", "col_start"),
            col_end=_coordinate(raw, "colend", "col_end"),
        )


def _coordinate(raw: Mapping[str, Any], *keys: str) -> int:
    for key in keys:
        if key in raw:
            value = raw[key]
            if value is None:
                return 0
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{key} must be an integer, got {value!r}")
            return value
    return 0


def valid_or_none(loc: Optional[SourceLocation]) -> Optional[SourceLocation]:
    """Collapse absent and invalid locations to ``None``."""
    if loc is None or not loc.valid:
        return None
    return loc


def location_json(loc: Optional[SourceLocation]) -> Optional[str]:
    """Report representation of a location: its string form, or ``None``."""
    loc = valid_or_none(loc)
    return str(loc) if loc is not None else None


# ═════════════════════════════════════════════════════════════════════════
#  FILE CLASSIFIER
# ═════════════════════════════════════════════════════════════════════════

def _normalise(path: str) -> str:
    return os.path.normpath(os.path.abspath(os.path.expanduser(path)))


@dataclass
class FileClassifier:
    """
    Accepts files that belong to the project being converted.

    A file is accepted when it is not under a system prefix, does not
    match any generated-file glob, and (if ``base_dirs`` is non-empty)
    lies under one of the base directories.

    Instances are callable so that they can be passed anywhere a plain
    ``Callable[[str], bool]`` is expected.
    """
    base_dirs: Tuple[str, ...] = ()
    system_prefixes: Tuple[str, ...] = DEFAULT_SYSTEM_PREFIXES
    generated_globs: Tuple[str, ...] = ()
    _cache: Dict[str, bool] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        self.base_dirs = tuple(_normalise(d) for d in self.base_dirs)
        self.system_prefixes = tuple(_normalise(p) for p in self.system_prefixes)

    @classmethod
    def accept_all(cls) -> FileClassifier:
        """A classifier that accepts every non-empty file name."""
        return cls(system_prefixes=())

    def is_system_header(self, path: str) -> bool:
        norm = _normalise(path)
        return any(_is_under(norm, p) for p in self.system_prefixes)

    def is_generated(self, path: str) -> bool:
        base = os.path.basename(path)
        return any(
            fnmatch.fnmatch(path, g) or fnmatch.fnmatch(base, g)
            for g in self.generated_globs
        )

    def __call__(self, path: str) -> bool:
        if not path:
            return False
        cached = self._cache.get(path)
        if cached is not None:
            return cached
        result = self._classify(path)
        self._cache[path] = result
        return result

    def _classify(self, path: str) -> bool:
        if self.is_system_header(path):
            logger.debug("Rejecting system header %s", path)
            return False
        if self.is_generated(path):
            logger.debug("Rejecting generated file %s", path)
            return False
        if not self.base_dirs:
            return True
        norm = _normalise(path)
        return any(_is_under(norm, d) for d in self.base_dirs)


def _is_under(path: str, directory: str) -> bool:
    try:
        return os.path.commonpath([path, directory]) == directory
    except ValueError:
        # Different drives on Windows.
        return False


def classifier_from_dirs(
    base_dirs: Iterable[str],
    generated_globs: Iterable[str] = (),
) -> FileClassifier:
    return FileClassifier(
        base_dirs=tuple(base_dirs),
        generated_globs=tuple(generated_globs),
    )


__all__ = [
    "DEFAULT_SYSTEM_PREFIXES",
    "SourceLocation",
    "FileClassifier",
    "valid_or_none",
    "location_json",
    "classifier_from_dirs",
]
