"""
Grafana alerting data models.

Parsed from the provisioning API (``/api/v1/provisioning/alert-rules``) and
the datasource listing (``/api/datasources``).
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Iterable


@dataclass(frozen=True)
class AlertRuleQuery:
    """One entry of an alert rule's ``data`` list."""

    datasource_uid: str | None = None
    expr: str | None = None

    @property
    def has_expression(self) -> bool:
        return bool(self.expr)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AlertRuleQuery:
        """
        Parse a query entry.

        Example input:
            {
                "refId": "A",
                "datasourceUid": "mimir-team-a",
                "model": {"expr": "rate(http_requests_total[5m])"}
            }
        """
        model = data.get("model") or {}
        return cls(
            datasource_uid=data.get("datasourceUid"),
            expr=model.get("expr"),
        )


@dataclass(frozen=True)
class Alert:
    """Provisioned Grafana alert rule."""

    id: int
    uid: str
    title: str
    queries: tuple[AlertRuleQuery, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Alert:
        return cls(
            id=data["id"],
            uid=data["uid"],
            title=data["title"],
            queries=tuple(AlertRuleQuery.from_dict(q) for q in data.get("data") or []),
        )


@dataclass(frozen=True)
class Datasource:
    """Grafana datasource; only identity and display name are used."""

    id: int
    uid: str
    name: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Datasource:
        return cls(id=data["id"], uid=data["uid"], name=data["name"])

    def belongs_to(self, tenant: str) -> bool:
        """
        Tenant association by substring of the display name.

        ``"team-a"`` belongs to ``"Mimir - team-a (prod)"``, and so does
        ``"a"``.
        """
        return tenant in self.name


@dataclass(frozen=True)
class AlertSet:
    """Alerts and datasources shared by every tenant of one cycle."""

    alerts: tuple[Alert, ...] = ()
    datasources: tuple[Datasource, ...] = ()

    def __len__(self) -> int:
        return len(self.alerts)


def filter_alert_rules(alerts: Iterable[Alert]) -> list[Alert]:
    """
    Keep only queries with an expression, then drop alerts left without any.

    Order of the remaining alerts and queries is preserved.
    """
    kept: list[Alert] = []
    for alert in alerts:
        queries = tuple(q for q in alert.queries if q.has_expression)
        if not queries:
            continue
        kept.append(replace(alert, queries=queries))
    return kept
