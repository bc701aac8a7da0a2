"""
wild_rootcause/aggregators.py
═════════════════════════════

Side reports collected while explaining WILD pointers.

Each aggregator is its own record type with its own ``add_*`` operations
and a JSON export; there is no shared base class.  The
common export surface is spelled out by :class:`RootCauseAggregator`, a
structural protocol.

    ┌──────────────────────┬──────────────────────────────────────────┐
    │ CastInfoAggregator   │ invalid casts grouped by (dst, src) type  │
    │ VoidInfoAggregator   │ void-typed declarations and their kind    │
    │ MacroInfoAggregator  │ locations hidden behind macro expansions  │
    └──────────────────────┴──────────────────────────────────────────┘

Dump format: a JSON array; locations are ``{"file", "line", "colstart",
"colend"}`` objects.
"""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Protocol, Union

from .locations import SourceLocation

logger = logging.getLogger(__name__)


class RootCauseAggregator(Protocol):
    """What every aggregator exposes to the driver."""

    def to_json(self) -> List[Dict[str, Any]]: ...

    def dump_stats(self, path: Union[str, Path]) -> None: ...


def _write_json(path: Union[str, Path], data: List[Dict[str, Any]]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(data, indent=2), encoding="utf-8")
    logger.info("Wrote %d records to %s", len(data), p)


# ═════════════════════════════════════════════════════════════════════════
#  CASTS
# ═════════════════════════════════════════════════════════════════════════

@dataclass
class CastInfo:
    dst: str
    src: str
    locations: List[SourceLocation] = field(default_factory=list)


@dataclass
class CastInfoAggregator:
    """Invalid casts, one record per distinct ``(dst, src)`` type pair."""
    data: List[CastInfo] = field(default_factory=list)

    def add_cast_info(self, dst: str, src: str, location: SourceLocation) -> None:
        for info in self.data:
            if info.dst == dst and info.src == src:
                info.locations.append(location)
                return
        self.data.append(CastInfo(dst, src, [location]))

    def to_json(self) -> List[Dict[str, Any]]:
        return [
            {
                "Dst": info.dst,
                "Src": info.src,
                "Locs": [loc.to_dict() for loc in info.locations],
            }
            for info in self.data
        ]

    def dump_stats(self, path: Union[str, Path]) -> None:
        _write_json(path, self.to_json())


# ═════════════════════════════════════════════════════════════════════════
#  VOID DECLARATIONS
# ═════════════════════════════════════════════════════════════════════════

class VoidKind(enum.Enum):
    """Where a ``void *`` declaration appears."""
    LOCAL = "Local"
    PARAM = "Param"
    RETURN = "Return"
    MEMBER = "Member"
    GLOBAL = "Global"
    TYPEDEF = "Typedef"
    UNKNOWN = "Unknown"


@dataclass
class VoidInfo:
    location: SourceLocation
    name: str
    kind: VoidKind = VoidKind.UNKNOWN
    generic: bool = False


@dataclass
class VoidInfoAggregator:
    """Void-typed declarations, deduplicated by location."""
    data: List[VoidInfo] = field(default_factory=list)

    def add_void_info(self, location: SourceLocation, name: str) -> None:
        for info in self.data:
            if info.location == location:
                return
        self.data.append(VoidInfo(location, name))

    def update_type(
        self, location: SourceLocation, kind: VoidKind, name: str = ""
    ) -> None:
        """
        Set the kind of every still-unknown declaration at *location*.

        Typedefs often have no usable location at the point they are first
        seen; if nothing matched and *kind* is ``TYPEDEF``, the first
        unknown entry with an invalid location and the same name takes the
        kind (and *location*, if valid).
        """
        found = False
        for info in self.data:
            if (info.location == location and info.kind is VoidKind.UNKNOWN
                    and location.valid):
                info.kind = kind
                found = True
        if found or kind is not VoidKind.TYPEDEF:
            return
        for info in self.data:
            if (not info.location.valid and info.name == name
                    and info.kind is VoidKind.UNKNOWN):
                info.kind = kind
                if location.valid:
                    info.location = location
                return

    def update_generic(self, location: SourceLocation, generic: bool) -> None:
        for info in self.data:
            if info.location == location:
                info.generic = generic
                return

    def to_json(self) -> List[Dict[str, Any]]:
        out: List[Dict[str, Any]] = []
        for info in self.data:
            rec = info.location.to_dict()
            rec.update(type=info.kind.value, name=info.name, generic=info.generic)
            out.append(rec)
        return out

    def dump_stats(self, path: Union[str, Path]) -> None:
        _write_json(path, self.to_json())


# ═════════════════════════════════════════════════════════════════════════
#  MACROS
# ═════════════════════════════════════════════════════════════════════════

@dataclass
class MacroInfoAggregator:
    """Locations of roots that are only visible through a macro expansion."""
    data: List[SourceLocation] = field(default_factory=list)

    def add_macro_info(self, locations: Iterable[SourceLocation]) -> None:
        self.data.extend(locations)

    def to_json(self) -> List[Dict[str, Any]]:
        return [loc.to_dict() for loc in self.data]

    def dump_stats(self, path: Union[str, Path]) -> None:
        _write_json(path, self.to_json())


__all__ = [
    "RootCauseAggregator",
    "CastInfo",
    "CastInfoAggregator",
    "VoidKind",
    "VoidInfo",
    "VoidInfoAggregator",
    "MacroInfoAggregator",
]
