# backend/rentmarket/domain/analytics_math.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Iterable


@dataclass(frozen=True)
class PeriodWindow:
    """
    Two adjacent windows of `days` length ending at `now`:
      current  = [now - P, now]
      previous = [now - 2P, now - P)
    """

    now: datetime
    days: int

    @property
    def current_start(self) -> datetime:
        return self.now - timedelta(days=self.days)

    @property
    def previous_start(self) -> datetime:
        return self.now - timedelta(days=self.days * 2)

    @property
    def previous_end(self) -> datetime:
        return self.current_start

    @property
    def month_start(self) -> datetime:
        return self.now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def conversion_rate(inquiries: int, views: int) -> float:
    if views <= 0:
        return 0.0
    return float(inquiries) / float(views) * 100.0


def growth_pct(current: int, previous: int) -> float:
    # previous == 0 always yields 0, even when current > 0
    if previous <= 0:
        return 0.0
    return float(current - previous) / float(previous) * 100.0


def round1(value: float) -> float:
    return round(float(value), 1)


def with_percentages(groups: Iterable[tuple[Any, int]], total: int) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for key, count in groups:
        pct = (float(count) / float(total) * 100.0) if total > 0 else 0.0
        out.append({"key": key, "count": int(count), "percentage": pct})
    return out


def top_groups(counts: Iterable[tuple[Any, int]], limit: int | None = None) -> list[tuple[Any, int]]:
    """
    Sort (key, count) pairs by count descending. Ties keep key order so output is deterministic.
    """
    rows = sorted(((k, int(c)) for k, c in counts), key=lambda kc: (-kc[1], str(kc[0])))
    if limit is not None:
        rows = rows[: int(limit)]
    return rows
