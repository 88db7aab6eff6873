# catalog_import/reconcile/matching.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Tuple


class MatchStatus(str, Enum):
    MATCHED = "matched"
    NO_MATCH = "no_match"
    AMBIGUOUS = "ambiguous"


@dataclass(frozen=True)
class Match:
    """Outcome of a best-effort lookup; keeps 'nothing found' apart from 'too many found'."""
    status: MatchStatus
    value: Any = None
    candidates: Tuple[Any, ...] = ()

    @classmethod
    def matched(cls, value: Any) -> "Match":
        return cls(MatchStatus.MATCHED, value, (value,))

    @classmethod
    def no_match(cls) -> "Match":
        return cls(MatchStatus.NO_MATCH)

    @classmethod
    def ambiguous(cls, candidates) -> "Match":
        return cls(MatchStatus.AMBIGUOUS, None, tuple(candidates))

    @property
    def ok(self) -> bool:
        return self.status is MatchStatus.MATCHED

    @property
    def needs_review(self) -> bool:
        return self.status is MatchStatus.AMBIGUOUS


def from_candidates(candidates) -> Match:
    """Distinct candidates -> MATCHED (exactly one), NO_MATCH or AMBIGUOUS."""
    uniq = []
    for c in candidates or []:
        if c and c not in uniq:
            uniq.append(c)
    if not uniq:
        return Match.no_match()
    if len(uniq) == 1:
        return Match.matched(uniq[0])
    return Match.ambiguous(uniq)
