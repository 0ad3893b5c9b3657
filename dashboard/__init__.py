"""Analytics blueprint exposing chat usage metrics for the HealthMate dashboard."""
from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Dict, List, Optional

from flask import Blueprint, current_app, jsonify

from analytics import ChatAnalytics
from presentation import normalize_summary

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/analytics")


def _analytics() -> ChatAnalytics:
    return current_app.extensions["analytics"]


def _round1(value: float) -> float:
    return round(float(value), 1)


def _chart_label(iso_timestamp: Optional[str], index: int) -> str:
    try:
        moment = datetime.fromisoformat((iso_timestamp or "").replace("Z", "+00:00"))
    except ValueError:
        return f"Chat {index + 1}"
    hour = moment.hour % 12 or 12
    meridiem = "AM" if moment.hour < 12 else "PM"
    return f"{moment:%b} {moment.day}, {hour}:{moment:%M} {meridiem}"


def percentage_change(latest: float, earliest: float) -> Optional[float]:
    if not math.isfinite(latest) or not math.isfinite(earliest) or earliest == 0:
        return None
    return ((latest - earliest) / abs(earliest)) * 100


def trend_direction(change: Optional[float]) -> str:
    if change is None or abs(change) < 0.0001:
        return "flat"
    return "up" if change > 0 else "down"


def _interaction_tokens(interaction: Dict[str, Any]) -> int:
    return (interaction.get("promptTokens") or 0) + (interaction.get("completionTokens") or 0)


def _totals(summary: Dict[str, Any]) -> List[Dict[str, Any]]:
    totals = summary["totals"]
    averages = summary["averages"]
    rows = [
        {"id": "total-requests", "label": "Total Chats", "value": totals["requests"]},
        {"id": "total-user-messages", "label": "User Messages", "value": totals["userMessages"]},
        {"id": "total-assistant-replies", "label": "Assistant Replies", "value": totals["assistantReplies"]},
    ]
    if totals["promptTokens"] > 0:
        rows.append({"id": "total-prompt-tokens", "label": "Prompt Tokens", "value": totals["promptTokens"]})
    if totals["completionTokens"] > 0:
        rows.append({"id": "total-completion-tokens", "label": "Completion Tokens", "value": totals["completionTokens"]})
    rows.extend(
        [
            {"id": "avg-response-time", "label": "Avg Response Time (ms)", "value": _round1(averages["responseTimeMs"])},
            {"id": "avg-prompt-tokens", "label": "Avg Prompt Tokens", "value": _round1(averages["promptTokens"])},
            {"id": "avg-completion-tokens", "label": "Avg Completion Tokens", "value": _round1(averages["completionTokens"])},
        ]
    )
    return rows


def _charts(chronological: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    labels = [_chart_label(item.get("timestamp"), index) for index, item in enumerate(chronological)]
    series = [
        (
            "response-time",
            "Response Time (ms)",
            [{"label": label, "value": item["responseTimeMs"]} for label, item in zip(labels, chronological)],
        ),
        (
            "token-usage",
            "Total Tokens per Chat",
            [
                {"label": label, "value": _interaction_tokens(item)}
                for label, item in zip(labels, chronological)
                if _interaction_tokens(item) > 0
            ],
        ),
        (
            "user-messages",
            "User Messages per Chat",
            [
                {"label": label, "value": item["userMessages"]}
                for label, item in zip(labels, chronological)
                if item["userMessages"] > 0
            ],
        ),
    ]
    return [{"id": chart_id, "title": title, "points": points} for chart_id, title, points in series if points]


def _trends(chronological: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    if len(chronological) < 2:
        return []
    earliest, latest = chronological[0], chronological[-1]
    trends: List[Dict[str, Any]] = []

    response_change = percentage_change(latest["responseTimeMs"], earliest["responseTimeMs"])
    if response_change is not None:
        direction = trend_direction(response_change)
        trends.append(
            {
                "id": "response-time-trend",
                "metric": "Response time",
                "change": _round1(response_change),
                "direction": direction,
                "description": {
                    "down": "Responses are faster than at the start of this window.",
                    "up": "Responses have slowed compared to earlier chats.",
                }.get(direction, "Response times are steady."),
            }
        )

    token_change = percentage_change(_interaction_tokens(latest), _interaction_tokens(earliest))
    if token_change is not None:
        direction = trend_direction(token_change)
        trends.append(
            {
                "id": "token-usage-trend",
                "metric": "Token usage",
                "change": _round1(token_change),
                "direction": direction,
                "description": {
                    "down": "Token usage is decreasing per interaction.",
                    "up": "Later chats are using more tokens.",
                }.get(direction, "Token usage is steady across chats."),
            }
        )
    return trends


def _leaderboard_rows(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [
        {
            "id": row["id"],
            "label": row["label"],
            "category": row["category"],
            "description": row["description"],
            "guidance": row["guidance"],
            "count": row["count"],
            "share": row["share"] or 0,
            "lastExample": row["lastExample"],
            "lastMentionedAt": row["lastMentionAt"],
        }
        for row in rows
    ]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _share_percent(share: float) -> float:
    return _round_half_up((share or 0) * 1000) / 10


def _highlights(
    summary: Dict[str, Any],
    concerns: List[Dict[str, Any]],
    conditions: List[Dict[str, Any]],
) -> List[Dict[str, str]]:
    totals = summary["totals"]
    if totals["requests"]:
        total_tokens = totals["promptTokens"] + totals["completionTokens"]
        highlights = [
            {
                "id": "avg-response-highlight",
                "title": "Consistent response time",
                "description": (
                    f"Average response time {_round_half_up(summary['averages']['responseTimeMs'])} ms "
                    f"across {totals['requests']} chats."
                ),
            },
            {
                "id": "token-highlight",
                "title": "Token usage",
                "description": f"{total_tokens} total tokens processed so far.",
            },
        ]
    else:
        highlights = [
            {
                "id": "no-activity",
                "title": "No conversations yet",
                "description": "Start chatting with HealthMate to see engagement analytics here.",
            }
        ]

    if concerns:
        top = concerns[0]
        percent = _share_percent(top["share"])
        if top["lastExample"]:
            description = (
                f"Mentioned {top['count']} times ({percent:g}% of user messages). "
                f"Recent example: “{top['lastExample']}”."
            )
        else:
            description = f"Mentioned {top['count']} times ({percent:g}% of user messages) in recent chats."
        highlights.insert(0, {"id": f"top-concern-{top['id']}", "title": f"{top['label']} is trending", "description": description})

    if conditions:
        top = conditions[0]
        percent = _share_percent(top["share"])
        if top["lastExample"]:
            description = (
                f"Logged {top['count']} times ({percent:g}% of user messages). "
                f"Sample context: “{top['lastExample']}”."
            )
        else:
            description = f"Logged {top['count']} times ({percent:g}% of user messages) in recent chats."
        highlights.insert(
            0,
            {"id": f"top-condition-{top['id']}", "title": f"{top['label']} frequently mentioned", "description": description},
        )

    return highlights


def build_dashboard_payload(summary: Dict[str, Any]) -> Dict[str, Any]:
    """Shape a :meth:`ChatAnalytics.build_summary` snapshot into chart-ready JSON."""
    chronological = list(reversed(summary["recent"]))
    concerns = _leaderboard_rows(summary["commonConcerns"])
    conditions = _leaderboard_rows(summary["commonConditions"])

    if not chronological:
        timeframe = None
    elif len(chronological) == 1:
        timeframe = "Most recent interaction"
    else:
        timeframe = f"Last {len(chronological)} interactions"

    payload: Dict[str, Any] = {
        "totals": _totals(summary),
        "charts": _charts(chronological),
        "trends": _trends(chronological),
        "updatedAt": summary["lastInteractionAt"],
        "highlights": _highlights(summary, concerns, conditions),
        "concerns": concerns,
        "conditions": conditions,
    }
    if timeframe:
        payload["timeframe"] = timeframe
    return payload


@dashboard_bp.route("/summary", methods=["GET"])
def summary():
    payload = build_dashboard_payload(_analytics().build_summary())
    return jsonify({"success": True, **payload})


@dashboard_bp.route("/dashboard", methods=["GET"])
def dashboard():
    payload = build_dashboard_payload(_analytics().build_summary())
    return jsonify({"success": True, **normalize_summary(payload)})


__all__ = ["build_dashboard_payload", "dashboard_bp", "percentage_change", "trend_direction"]
