"""Data models for sync results."""

from dataclasses import dataclass, field
from datetime import datetime, timezone


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SyncResult:
    """Outcome of reconciling one source."""

    source: str
    added: int = 0
    updated: int = 0
    deleted: int = 0
    evicted: int = 0
    unchanged: int = 0
    dropped: int = 0
    skipped: bool = False
    error: str | None = None

    @property
    def writes(self) -> int:
        return self.added + self.updated + self.deleted + self.evicted

    @property
    def failed(self) -> bool:
        return self.error is not None

    def as_dict(self) -> dict:
        return {
            "source": self.source,
            "added": self.added,
            "updated": self.updated,
            "deleted": self.deleted,
            "evicted": self.evicted,
            "unchanged": self.unchanged,
            "dropped": self.dropped,
            "skipped": self.skipped,
            "error": self.error,
        }


@dataclass
class RunReport:
    """Per-source results of one sync run."""

    results: list[SyncResult] = field(default_factory=list)
    started_at: datetime = field(default_factory=_utc_now)
    finished_at: datetime | None = None

    @property
    def failures(self) -> list[SyncResult]:
        return [r for r in self.results if r.failed]

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def totals(self) -> dict[str, int]:
        """Counts summed across sources."""
        return {
            "added": sum(r.added for r in self.results),
            "updated": sum(r.updated for r in self.results),
            "deleted": sum(r.deleted for r in self.results),
            "evicted": sum(r.evicted for r in self.results),
            "unchanged": sum(r.unchanged for r in self.results),
            "dropped": sum(r.dropped for r in self.results),
            "skipped": sum(1 for r in self.results if r.skipped),
            "failed": len(self.failures),
        }

    def result_for(self, source: str) -> SyncResult | None:
        for result in self.results:
            if result.source == source:
                return result
        return None
