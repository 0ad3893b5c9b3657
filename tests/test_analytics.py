from datetime import datetime, timedelta, timezone

import pytest

from analytics import RECENT_LIMIT, ChatAnalytics, isoformat, truncate_example


class StepClock:
    def __init__(self, start=datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self):
        value = self.current
        self.current = self.current + timedelta(minutes=1)
        return value


def test_fresh_context_summary_is_zeroed():
    summary = ChatAnalytics().build_summary()
    assert summary["totals"] == {
        "requests": 0,
        "userMessages": 0,
        "assistantReplies": 0,
        "promptTokens": 0,
        "completionTokens": 0,
    }
    assert summary["averages"] == {"promptTokens": 0, "completionTokens": 0, "responseTimeMs": 0}
    assert summary["lastInteractionAt"] is None
    assert summary["recent"] == []
    assert summary["commonConcerns"] == []
    assert summary["commonConditions"] == []


def test_three_turn_scenario():
    analytics = ChatAnalytics()
    analytics.record_turn(1, prompt_tokens=10, completion_tokens=20, response_time_ms=100)
    analytics.record_turn(2, prompt_tokens=5, completion_tokens=15, response_time_ms=200)
    analytics.record_turn(1, prompt_tokens=0, completion_tokens=0, response_time_ms=300)

    summary = analytics.build_summary()
    assert summary["totals"]["requests"] == 3
    assert summary["totals"]["assistantReplies"] == 3
    assert summary["totals"]["userMessages"] == 4
    assert summary["averages"]["responseTimeMs"] == pytest.approx(200)
    assert summary["averages"]["promptTokens"] == pytest.approx(5)
    assert summary["averages"]["completionTokens"] == pytest.approx(35 / 3)


def test_missing_token_counts_are_treated_as_zero():
    analytics = ChatAnalytics()
    analytics.record_turn(1, response_time_ms=50)
    analytics.record_turn(1, prompt_tokens=None, completion_tokens=8, response_time_ms=150)

    summary = analytics.build_summary()
    assert summary["totals"]["promptTokens"] == 0
    assert summary["totals"]["completionTokens"] == 8
    assert summary["recent"][1]["promptTokens"] is None
    assert summary["averages"]["responseTimeMs"] == pytest.approx(100)


def test_recent_buffer_is_bounded_and_newest_first():
    analytics = ChatAnalytics(clock=StepClock())
    for index in range(RECENT_LIMIT + 5):
        analytics.record_turn(1, response_time_ms=index)

    recent = analytics.build_summary()["recent"]
    assert len(recent) == RECENT_LIMIT
    assert [item["responseTimeMs"] for item in recent] == list(range(RECENT_LIMIT + 4, 4, -1))
    assert recent[0]["timestamp"] > recent[-1]["timestamp"]
    assert analytics.total_requests == RECENT_LIMIT + 5


def test_timestamps_are_rendered_as_iso_strings():
    clock = StepClock()
    analytics = ChatAnalytics(clock=clock)
    analytics.record_turn(1, ["I have a headache"], response_time_ms=10)

    summary = analytics.build_summary()
    assert summary["lastInteractionAt"] == "2024-03-01T09:30:00.000Z"
    assert summary["recent"][0]["timestamp"] == "2024-03-01T09:30:00.000Z"
    assert summary["commonConcerns"][0]["lastMentionAt"] == "2024-03-01T09:30:00.000Z"


def test_chest_pain_increments_only_chest_discomfort():
    analytics = ChatAnalytics()
    message = "I've had chest pain since this morning"
    analytics.classify_messages([message])

    for entry_id, stat in {**analytics.concern_stats, **analytics.condition_stats}.items():
        if entry_id == "chest-discomfort":
            assert stat.count == 1
            assert stat.last_example == message
        else:
            assert stat.count == 0
            assert stat.last_example is None


def test_one_message_can_match_several_concerns():
    analytics = ChatAnalytics()
    analytics.record_turn(1, ["I have chest pain and shortness of breath"], response_time_ms=10)

    assert analytics.concern_stats["chest-discomfort"].count == 1
    assert analytics.concern_stats["breathing-difficulty"].count == 1


def test_concern_and_condition_tallied_independently():
    analytics = ChatAnalytics()
    analytics.classify_messages(["My asthma flared up and now I am wheezing"])

    assert analytics.concern_stats["breathing-difficulty"].count == 1
    assert analytics.condition_stats["asthma"].count == 1


def test_unmatched_and_blank_messages_leave_stats_unchanged():
    analytics = ChatAnalytics()
    analytics.classify_messages(["What time does the pharmacy open?", "", "   ", None])
    analytics.record_turn(1, [], response_time_ms=5)

    assert all(stat.count == 0 for stat in analytics.concern_stats.values())
    assert all(stat.count == 0 for stat in analytics.condition_stats.values())


def test_counts_are_per_message_within_a_turn():
    clock = StepClock()
    analytics = ChatAnalytics(clock=clock)
    analytics.record_turn(2, ["I feel dizzy", "Still dizzy after lunch"], response_time_ms=10)

    stat = analytics.concern_stats["dizziness"]
    assert stat.count == 2
    assert stat.last_example == "Still dizzy after lunch"
    assert stat.last_mention_at == datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)


def test_long_examples_are_truncated():
    analytics = ChatAnalytics()
    message = "I have a persistent cough " + "and it keeps going " * 20
    analytics.classify_messages([message])

    example = analytics.concern_stats["cough-cold-symptoms"].last_example
    assert len(example) == 160
    assert example.endswith("...")
    assert example[:157] == message.strip()[:157]


@pytest.mark.parametrize(
    "text,expected",
    [
        ("  short note  ", "short note"),
        ("x" * 160, "x" * 160),
        ("y" * 161, "y" * 157 + "..."),
    ],
)
def test_truncate_example(text, expected):
    assert truncate_example(text) == expected


def test_leaderboards_exclude_zero_counts_and_sort_descending():
    analytics = ChatAnalytics()
    analytics.record_turn(
        4,
        [
            "I have a fever",
            "The fever came back with chills",
            "Also a headache",
            "and the fever again",
        ],
        response_time_ms=20,
    )

    concerns = analytics.build_summary()["commonConcerns"]
    assert [row["id"] for row in concerns] == ["fever", "headache"]
    assert [row["count"] for row in concerns] == [3, 1]
    assert concerns[0]["share"] == pytest.approx(0.75)
    assert concerns[0]["label"] == "Fever"
    assert concerns[0]["guidance"]


def test_share_is_zero_without_user_messages():
    analytics = ChatAnalytics()
    analytics.classify_messages(["I keep getting migraines"])

    conditions = analytics.build_summary()["commonConditions"]
    assert conditions[0]["id"] == "migraine"
    assert conditions[0]["share"] == 0


def test_isoformat_handles_naive_and_missing_values():
    assert isoformat(None) is None
    assert isoformat(datetime(2024, 1, 2, 3, 4, 5, 678000)) == "2024-01-02T03:04:05.678Z"
