"""Normalise analytics payloads into one shape for dashboard rendering.

Older and newer analytics responses disagree on how ``totals`` and ``charts``
are laid out (mapping vs. list of records). Everything here accepts either,
drops what it cannot use and never raises, so a partial payload still renders.
"""
from __future__ import annotations

import math
import re
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Union

MISSING_VALUE = "—"


@dataclass
class NormalizedTotal:
    id: str
    label: str
    value: Union[int, float, str]
    change: Optional[float] = None
    direction: str = "flat"


@dataclass
class ChartPoint:
    label: str
    value: Union[int, float]


@dataclass
class NormalizedChart:
    id: str
    title: str
    points: List[ChartPoint] = field(default_factory=list)


@dataclass
class NormalizedTrend:
    id: str
    metric: str
    change: Optional[float] = None
    direction: str = "flat"
    description: Optional[str] = None


@dataclass
class LeaderboardRow:
    id: str
    label: str
    category: Optional[str]
    count: int
    share: float
    percent: float
    last_example: Optional[str] = None
    last_mentioned_at: Optional[str] = None


def format_label(raw: str) -> str:
    """``totalUserMessages`` -> ``Total User Messages``; ``avg_response-time`` -> ``Avg Response Time``."""
    text = re.sub(r"[_-]", " ", str(raw))
    text = re.sub(r"([a-z])([A-Z])", r"\1 \2", text)
    return re.sub(r"\b\w", lambda match: match.group(0).upper(), text)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _finite_float(value: Any) -> Optional[float]:
    if not _is_number(value):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


def _text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value:
        return value
    return None


def change_direction(change: Any) -> str:
    if not _is_number(change):
        return "flat"
    if change > 0:
        return "up"
    if change < 0:
        return "down"
    return "flat"


def _total_entry(entry: Any, fallback_key: str, index: int) -> NormalizedTotal:
    base_id = f"total-{index}"
    if isinstance(entry, str) or _is_number(entry):
        key = fallback_key or base_id
        return NormalizedTotal(id=key, label=format_label(key), value=entry)

    record = entry if isinstance(entry, dict) else {}
    value = record.get("value")
    if not (isinstance(value, str) or _is_number(value)):
        value = MISSING_VALUE
    change = record.get("change") if _is_number(record.get("change")) else None
    entry_id = _text(record.get("id")) or fallback_key or base_id
    label = _text(record.get("label")) or format_label(fallback_key or _text(record.get("id")) or base_id)
    return NormalizedTotal(id=entry_id, label=label, value=value, change=change, direction=change_direction(change))


def normalize_totals(totals: Any) -> List[NormalizedTotal]:
    if isinstance(totals, list):
        normalized = []
        for index, item in enumerate(totals):
            record = item if isinstance(item, dict) else {}
            key = _text(record.get("id")) or _text(record.get("label")) or f"total-{index}"
            normalized.append(_total_entry(item, key, index))
        return normalized
    if isinstance(totals, dict):
        return [_total_entry(entry, str(key), index) for index, (key, entry) in enumerate(totals.items())]
    return []


def _chart_points(points: Any) -> List[ChartPoint]:
    if not isinstance(points, list):
        return []
    return [
        ChartPoint(label=point["label"], value=point["value"])
        for point in points
        if isinstance(point, dict) and isinstance(point.get("label"), str) and _is_number(point.get("value"))
    ]


def normalize_charts(charts: Any) -> List[NormalizedChart]:
    normalized: List[NormalizedChart] = []
    if isinstance(charts, list):
        for index, chart in enumerate(charts):
            if not isinstance(chart, dict):
                continue
            points = chart.get("points") if chart.get("points") is not None else chart.get("data")
            chart_id = _text(chart.get("id")) or _text(chart.get("name")) or _text(chart.get("title")) or f"chart-{index}"
            title = (
                _text(chart.get("title"))
                or _text(chart.get("name"))
                or format_label(_text(chart.get("id")) or f"Chart {index + 1}")
            )
            normalized.append(NormalizedChart(id=chart_id, title=title, points=_chart_points(points)))
    elif isinstance(charts, dict):
        for key, points in charts.items():
            normalized.append(NormalizedChart(id=str(key), title=format_label(str(key)), points=_chart_points(points)))
    return [chart for chart in normalized if chart.points]


def normalize_trends(trends: Any, totals: List[NormalizedTotal]) -> List[NormalizedTrend]:
    if isinstance(trends, list) and trends:
        normalized = []
        for index, trend in enumerate(trends):
            record = trend if isinstance(trend, dict) else {}
            change = record.get("change") if _is_number(record.get("change")) else None
            direction = record.get("direction")
            if direction not in {"up", "down", "flat"}:
                direction = change_direction(change)
            normalized.append(
                NormalizedTrend(
                    id=_text(record.get("id")) or _text(record.get("metric")) or _text(record.get("label")) or f"trend-{index}",
                    metric=(
                        _text(record.get("metric"))
                        or _text(record.get("label"))
                        or _text(record.get("title"))
                        or format_label(_text(record.get("id")) or f"Metric {index + 1}")
                    ),
                    change=change,
                    direction=direction,
                    description=_text(record.get("description")),
                )
            )
        return normalized

    return [
        NormalizedTrend(id=f"trend-{total.id}", metric=total.label, change=total.change, direction=total.direction)
        for total in totals
        if total.change is not None
    ]


def normalize_leaderboard(rows: Any) -> List[LeaderboardRow]:
    if not isinstance(rows, list):
        return []
    normalized: List[LeaderboardRow] = []
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            continue
        count = _finite_float(row.get("count"))
        if count is None:
            continue
        share = _finite_float(row.get("share")) or 0.0
        row_id = _text(row.get("id")) or f"entry-{index}"
        normalized.append(
            LeaderboardRow(
                id=row_id,
                label=_text(row.get("label")) or format_label(row_id),
                category=_text(row.get("category")),
                count=int(count),
                share=share,
                percent=round(share * 100, 1),
                last_example=_text(row.get("lastExample")),
                last_mentioned_at=_text(row.get("lastMentionedAt")) or _text(row.get("lastMentionAt")),
            )
        )
    normalized.sort(key=lambda item: item.count, reverse=True)
    return normalized


def _highlights(highlights: Any) -> List[Dict[str, str]]:
    if not isinstance(highlights, list):
        return []
    normalized = []
    for index, item in enumerate(highlights):
        if not isinstance(item, dict) or not _text(item.get("title")):
            continue
        normalized.append(
            {
                "id": _text(item.get("id")) or f"highlight-{index}",
                "title": item["title"],
                "description": _text(item.get("description")) or "",
            }
        )
    return normalized


def normalize_summary(payload: Any) -> Dict[str, Any]:
    """Convert any analytics payload into the canonical dashboard view model."""
    summary = payload if isinstance(payload, dict) else {}
    totals = normalize_totals(summary.get("totals"))
    return {
        "totals": [asdict(total) for total in totals],
        "charts": [asdict(chart) for chart in normalize_charts(summary.get("charts"))],
        "trends": [asdict(trend) for trend in normalize_trends(summary.get("trends"), totals)],
        "concerns": [asdict(row) for row in normalize_leaderboard(summary.get("concerns"))],
        "conditions": [asdict(row) for row in normalize_leaderboard(summary.get("conditions"))],
        "highlights": _highlights(summary.get("highlights")),
        "timeframe": _text(summary.get("timeframe")),
        "updatedAt": _text(summary.get("updatedAt")),
    }


__all__ = [
    "ChartPoint",
    "LeaderboardRow",
    "NormalizedChart",
    "NormalizedTotal",
    "NormalizedTrend",
    "change_direction",
    "format_label",
    "normalize_charts",
    "normalize_leaderboard",
    "normalize_summary",
    "normalize_totals",
    "normalize_trends",
]
