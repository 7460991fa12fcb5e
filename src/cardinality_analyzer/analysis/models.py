"""
Cycle-scoped data models for the usage analysis.

Nothing here outlives one analysis cycle.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


@dataclass(frozen=True)
class CardinalityEntry:
    name: str
    series_count: int


@dataclass(frozen=True)
class CardinalityTopList:
    """A tenant's highest-cardinality metric names, in backend order."""

    tenant: str
    entries: tuple[CardinalityEntry, ...] = ()

    @property
    def names(self) -> list[str]:
        return [entry.name for entry in self.entries]

    def __len__(self) -> int:
        return len(self.entries)

    @classmethod
    def from_response(cls, tenant: str, data: dict[str, Any]) -> CardinalityTopList:
        """
        Parse a label_values cardinality response.

        Example input:
            {
                "label_values_count_total": 2,
                "labels": [
                    {
                        "label_name": "__name__",
                        "cardinality": [
                            {"label_value": "http_requests_total", "series_count": 1200},
                            {"label_value": "up", "series_count": 40}
                        ]
                    }
                ]
            }

        Raises:
            KeyError, TypeError, ValueError: If the document is malformed
        """
        entries = [
            CardinalityEntry(
                name=str(item["label_value"]),
                series_count=int(item["series_count"]),
            )
            for label in data["labels"]
            for item in label["cardinality"]
        ]
        return cls(tenant=tenant, entries=tuple(entries))


class UsageReason(StrEnum):
    DASHBOARD = "dashboard"
    ALERT = "alert"
    UNUSED = "unused"


@dataclass(frozen=True)
class UsageRecord:
    """Classification of one metric for one tenant."""

    tenant: str
    metric: str
    in_use: bool
    reason: UsageReason = UsageReason.UNUSED
    alert_uid: str | None = None


@dataclass
class CycleReport:
    """Outcome of one analysis cycle."""

    tenants: list[str] = field(default_factory=list)
    processed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    records: list[UsageRecord] = field(default_factory=list)

    def records_for(self, tenant: str) -> list[UsageRecord]:
        return [r for r in self.records if r.tenant == tenant]

    def to_dict(self) -> dict[str, Any]:
        return {
            "tenants": len(self.tenants),
            "processed": len(self.processed),
            "failed": len(self.failed),
            "metrics": len(self.records),
            "in_use": sum(1 for r in self.records if r.in_use),
        }
