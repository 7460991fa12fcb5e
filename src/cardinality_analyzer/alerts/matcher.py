"""
Literal, token-bounded metric name matching.
"""

from __future__ import annotations

import re


class MetricMatcher:
    """
    Finds a metric name as a whole token inside a query expression.

    The name is escaped, so ``cpu.load`` only matches the literal text and
    ``req(total)`` is not read as a group. The match may not be preceded or
    followed by a word character: ``http_requests_total`` does not match
    inside ``http_requests_total_count`` but does match in
    ``rate(http_requests_total[5m])``.

    Boundaries are lookarounds on ``\\w`` rather than ``\\b``: names ending
    in punctuation (``req(total)``) still match inside ``sum(req(total))``.
    """

    def __init__(self, literal: str) -> None:
        if not literal:
            raise ValueError("metric name must not be empty")
        self.literal = literal
        self._pattern = re.compile(rf"(?<!\w){re.escape(literal)}(?!\w)")

    @property
    def pattern(self) -> str:
        return self._pattern.pattern

    def matches(self, text: str | None) -> bool:
        if not text:
            return False
        return self._pattern.search(text) is not None

    def __repr__(self) -> str:
        return f"MetricMatcher({self.literal!r})"
