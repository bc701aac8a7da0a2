"""
wild_rootcause/summary.py
═════════════════════════

Reason-bucketed summary of WILD pointers.

Roots are grouped by the ``reason`` of their diagnostic.  For every
bucket the summary reports how many roots it holds, how many of them are
in project source, how many indirect Atoms the bucket explains, and the
fractional score of the in-source part of that set.  Buckets are ordered
by reason string so that repeated runs produce identical output.

Usage::

    summary = summarize(index)
    for bucket in summary.buckets:
        print(bucket.reason, bucket.count, bucket.in_source_score)
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, List, Set, Tuple

from .attribution import Atom, AttributionIndex
from .scoring import atom_score

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReasonBucket:
    """Aggregated numbers for all roots sharing one reason."""
    reason: str
    count: int
    in_source_count: int
    total_indirect_count: int
    in_source_indirect_count: int
    in_source_score: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            self.reason: {
                "Num": self.count,
                "InSrcNum": self.in_source_count,
                "TotalIndirect": self.total_indirect_count,
                "InSrcIndirect": self.in_source_indirect_count,
                "InSrcScore": self.in_source_score,
            }
        }


@dataclass(frozen=True)
class WildPointerSummary:
    """Program-wide WILD pointer numbers plus the per-reason buckets."""
    indirect_count: int
    in_source_indirect_count: int
    root_count: int
    in_source_root_count: int
    buckets: Tuple[ReasonBucket, ...]

    def bucket(self, reason: str) -> ReasonBucket:
        for b in self.buckets:
            if b.reason == reason:
                return b
        raise KeyError(reason)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "WildPtrInfo": {
                "InDirectWildPtrNum": self.indirect_count,
                "InSrcInDirectWildPtrNum": self.in_source_indirect_count,
                "DirectWildPtrs": {
                    "Num": self.root_count,
                    "InSrcNum": self.in_source_root_count,
                    "Reasons": [b.to_dict() for b in self.buckets],
                },
            }
        }


def summarize(index: AttributionIndex) -> WildPointerSummary:
    """Build the reason-bucketed summary of *index*.  Pure read."""
    roots = index.roots
    roots_in_source = index.roots_in_source
    indirect = index.indirect
    indirect_in_source = index.indirect_in_source

    by_reason: Dict[str, Set[Atom]] = defaultdict(set)
    for root in roots:
        by_reason[index.diagnostic_of(root).reason].add(root)

    buckets: List[ReasonBucket] = []
    for reason in sorted(by_reason):
        members = by_reason[reason]
        affected = index.transitive_effects(members) & indirect
        affected_in_source = affected & indirect_in_source
        buckets.append(
            ReasonBucket(
                reason=reason,
                count=len(members),
                in_source_count=len(members & roots_in_source),
                total_indirect_count=len(affected),
                in_source_indirect_count=len(affected_in_source),
                in_source_score=atom_score(index, affected_in_source),
            )
        )

    logger.info(
        "Summarised %d roots into %d reason buckets", len(roots), len(buckets)
    )
    return WildPointerSummary(
        indirect_count=len(indirect),
        in_source_indirect_count=len(indirect_in_source),
        root_count=len(roots),
        in_source_root_count=len(roots_in_source),
        buckets=tuple(buckets),
    )


__all__ = ["ReasonBucket", "WildPointerSummary", "summarize"]
