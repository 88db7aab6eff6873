# catalog_import/sync/report.py
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List

from catalog_import.reconcile.matching import Match

# keep the error list bounded; the console already has every line
MAX_ERRORS = 500


@dataclass
class ImportReport:
    """Counters and review items for one run. Printed at the end, returned by the API."""
    name: str = "import"
    created: int = 0
    updated: int = 0
    failed: int = 0
    partial: int = 0
    skipped: Counter = field(default_factory=Counter)
    image_matches: Counter = field(default_factory=Counter)
    media_matches: Counter = field(default_factory=Counter)
    unknown_dimensions: Counter = field(default_factory=Counter)
    review: List[Dict[str, Any]] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def imported(self) -> int:
        return self.created + self.updated

    def skip(self, reason: str, key: str | None = None) -> None:
        self.skipped[reason] += 1
        if key and reason in ("orphan_group",):
            self.flag(key, reason)

    def error(self, key: Any, message: str) -> None:
        if len(self.errors) < MAX_ERRORS:
            self.errors.append({"key": str(key), "error": message})

    def flag(self, key: Any, reason: str, **details: Any) -> None:
        """Something a human has to look at after the run."""
        self.review.append({"key": str(key), "reason": reason, **details})

    def record_image(self, key: Any, value: str, match: Match) -> None:
        self.image_matches[match.status.value] += 1
        if match.needs_review:
            self.flag(key, "ambiguous_option_image", value=value, candidates=list(match.candidates))

    def record_media(self, key: Any, match: Match) -> None:
        self.media_matches[match.status.value] += 1
        if match.needs_review:
            self.flag(key, "ambiguous_media_row", candidates=list(match.candidates))

    def summary(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "imported": self.imported,
            "created": self.created,
            "updated": self.updated,
            "failed": self.failed,
            "partial": self.partial,
            "skipped": dict(self.skipped),
            "image_matches": dict(self.image_matches),
            "media_matches": dict(self.media_matches),
            "unknown_dimensions": dict(self.unknown_dimensions),
            "needs_review": len(self.review),
            "errors": len(self.errors),
        }

    def as_dict(self) -> Dict[str, Any]:
        out = self.summary()
        out["review"] = list(self.review)
        out["error_list"] = list(self.errors)
        return out
