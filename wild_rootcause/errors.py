"""
wild_rootcause/errors.py
════════════════════════

Exception hierarchy for the root-cause attribution core.

    ┌──────────────────────────────────────────────────────────────┐
    │  RootCauseError (base)                                       │
    │  ├── InconsistentClassification — broken writer invariant    │
    │  ├── SnapshotError              — malformed solver snapshot  │
    │  └── ConfigError                — invalid report settings    │
    └──────────────────────────────────────────────────────────────┘

``InconsistentClassification`` signals a programmer error in the writer
phase (an Atom marked both root and indirect, a diagnostic requested for
a non-root).  It is never caught inside the core.
"""

from __future__ import annotations

from typing import Optional


class RootCauseError(Exception):
    """Base exception for all wild_rootcause errors."""
    pass


class InconsistentClassification(RootCauseError):
    """Raised when the root / indirect classification of an Atom is violated."""

    def __init__(self, message: str, atom: Optional[int] = None) -> None:
        self.atom = atom
        if atom is not None:
            message = f"atom {atom}: {message}"
        super().__init__(message)


class SnapshotError(RootCauseError):
    """Raised when a solver snapshot cannot be mapped onto an index."""

    def __init__(self, message: str, where: str = "") -> None:
        self.where = where
        if where:
            message = f"{where}: {message}"
        super().__init__(message)


class ConfigError(RootCauseError):
    """Raised for invalid report configuration values."""
    pass


__all__ = [
    "RootCauseError",
    "InconsistentClassification",
    "SnapshotError",
    "ConfigError",
]
