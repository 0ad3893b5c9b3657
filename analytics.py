"""In-process chat usage analytics for HealthMate.

A :class:`ChatAnalytics` instance is created once per Flask application and
holds every counter for the lifetime of the process. Nothing is persisted and
nothing is ever reset; restarting the process starts from zero.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from taxonomy import CONCERNS, CONDITIONS, TaxonomyEntry

RECENT_LIMIT = 25
EXAMPLE_MAX_LENGTH = 160


@dataclass
class CategoryStat:
    count: int = 0
    last_example: Optional[str] = None
    last_mention_at: Optional[datetime] = None


@dataclass
class InteractionRecord:
    timestamp: datetime
    user_messages: int
    prompt_tokens: Optional[int]
    completion_tokens: Optional[int]
    response_time_ms: float


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def isoformat(value: Optional[datetime]) -> Optional[str]:
    """Render a timestamp the way browsers do: UTC, milliseconds, ``Z`` suffix."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def truncate_example(text: str) -> str:
    trimmed = text.strip()
    if len(trimmed) > EXAMPLE_MAX_LENGTH:
        return f"{trimmed[:EXAMPLE_MAX_LENGTH - 3]}..."
    return trimmed


class ChatAnalytics:
    """Process-lifetime counters, recent history and keyword tallies."""

    def __init__(
        self,
        concerns: Sequence[TaxonomyEntry] = CONCERNS,
        conditions: Sequence[TaxonomyEntry] = CONDITIONS,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._lock = threading.Lock()
        self._clock = clock
        self.concerns = tuple(concerns)
        self.conditions = tuple(conditions)

        self.total_requests = 0
        self.total_user_messages = 0
        self.total_assistant_replies = 0
        self.total_prompt_tokens = 0
        self.total_completion_tokens = 0
        self.total_response_time_ms = 0.0
        self.last_interaction_at: Optional[datetime] = None

        self.recent: List[InteractionRecord] = []
        self.concern_stats: Dict[str, CategoryStat] = {entry.id: CategoryStat() for entry in self.concerns}
        self.condition_stats: Dict[str, CategoryStat] = {entry.id: CategoryStat() for entry in self.conditions}

    def record_turn(
        self,
        user_messages: int,
        user_message_texts: Iterable[str] = (),
        prompt_tokens: Optional[int] = None,
        completion_tokens: Optional[int] = None,
        response_time_ms: float = 0,
    ) -> None:
        """Record one successfully completed chat turn.

        Must only be called after the upstream completion succeeded; failed
        calls never touch these counters.
        """
        texts = list(user_message_texts or ())

        with self._lock:
            timestamp = self._clock()

            self.total_requests += 1
            self.total_assistant_replies += 1
            self.total_user_messages += user_messages or 0
            self.total_prompt_tokens += prompt_tokens or 0
            self.total_completion_tokens += completion_tokens or 0
            self.total_response_time_ms += response_time_ms or 0
            self.last_interaction_at = timestamp

            if texts:
                self._classify_unlocked(texts, timestamp)

            self.recent.insert(
                0,
                InteractionRecord(
                    timestamp=timestamp,
                    user_messages=user_messages or 0,
                    prompt_tokens=prompt_tokens,
                    completion_tokens=completion_tokens,
                    response_time_ms=response_time_ms or 0,
                ),
            )
            del self.recent[RECENT_LIMIT:]

    def classify_messages(self, texts: Iterable[str], timestamp: Optional[datetime] = None) -> None:
        """Tally concern and condition mentions for one batch of user messages."""
        with self._lock:
            self._classify_unlocked(list(texts or ()), timestamp or self._clock())

    def _classify_unlocked(self, texts: List[str], timestamp: datetime) -> None:
        for text in texts:
            if not isinstance(text, str) or not text.strip():
                continue
            for entries, stats in ((self.concerns, self.concern_stats), (self.conditions, self.condition_stats)):
                for entry in entries:
                    if not entry.matches(text):
                        continue
                    stat = stats[entry.id]
                    stat.count += 1
                    stat.last_example = truncate_example(text)
                    stat.last_mention_at = timestamp

    def _average(self, total: float) -> float:
        return total / self.total_requests if self.total_requests > 0 else 0

    def _leaderboard(self, entries: Sequence[TaxonomyEntry], stats: Dict[str, CategoryStat]) -> List[Dict[str, Any]]:
        rows: List[Dict[str, Any]] = []
        for entry in entries:
            stat = stats[entry.id]
            if stat.count <= 0:
                continue
            rows.append(
                {
                    "id": entry.id,
                    "label": entry.label,
                    "category": entry.category,
                    "description": entry.description,
                    "guidance": entry.guidance,
                    "count": stat.count,
                    "share": stat.count / self.total_user_messages if self.total_user_messages > 0 else 0,
                    "lastExample": stat.last_example,
                    "lastMentionAt": isoformat(stat.last_mention_at),
                }
            )
        rows.sort(key=lambda row: row["count"], reverse=True)
        return rows

    def build_summary(self) -> Dict[str, Any]:
        """Snapshot of the counters with derived averages, shares and leaderboards."""
        with self._lock:
            return {
                "totals": {
                    "requests": self.total_requests,
                    "userMessages": self.total_user_messages,
                    "assistantReplies": self.total_assistant_replies,
                    "promptTokens": self.total_prompt_tokens,
                    "completionTokens": self.total_completion_tokens,
                },
                "averages": {
                    "promptTokens": self._average(self.total_prompt_tokens),
                    "completionTokens": self._average(self.total_completion_tokens),
                    "responseTimeMs": self._average(self.total_response_time_ms),
                },
                "lastInteractionAt": isoformat(self.last_interaction_at),
                "recent": [
                    {
                        "timestamp": isoformat(record.timestamp),
                        "userMessages": record.user_messages,
                        "promptTokens": record.prompt_tokens,
                        "completionTokens": record.completion_tokens,
                        "responseTimeMs": record.response_time_ms,
                    }
                    for record in self.recent
                ],
                "commonConcerns": self._leaderboard(self.concerns, self.concern_stats),
                "commonConditions": self._leaderboard(self.conditions, self.condition_stats),
            }


__all__ = [
    "CategoryStat",
    "ChatAnalytics",
    "InteractionRecord",
    "RECENT_LIMIT",
    "isoformat",
    "truncate_example",
]
