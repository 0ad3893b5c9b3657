import pytest

from dashboard import build_dashboard_payload, percentage_change, trend_direction


def _summary(response_time_ms=0.0, concerns=None, conditions=None, requests=1):
    return {
        "totals": {
            "requests": requests,
            "userMessages": 16,
            "assistantReplies": requests,
            "promptTokens": 0,
            "completionTokens": 0,
        },
        "averages": {"promptTokens": 0, "completionTokens": 0, "responseTimeMs": response_time_ms},
        "lastInteractionAt": None,
        "recent": [],
        "commonConcerns": concerns or [],
        "commonConditions": conditions or [],
    }


def _row(entry_id, share, count=1, example=None):
    return {
        "id": entry_id,
        "label": entry_id.title(),
        "category": "general",
        "description": "",
        "guidance": "",
        "count": count,
        "share": share,
        "lastExample": example,
        "lastMentionAt": None,
    }


def _highlight(payload, highlight_id):
    return next(item for item in payload["highlights"] if item["id"] == highlight_id)


@pytest.mark.parametrize(
    "response_time_ms,expected",
    [(2.5, "3 ms"), (3.5, "4 ms"), (2.49, "2 ms")],
)
def test_average_response_highlight_rounds_half_up(response_time_ms, expected):
    payload = build_dashboard_payload(_summary(response_time_ms=response_time_ms))
    assert f"Average response time {expected} " in _highlight(payload, "avg-response-highlight")["description"]


def test_share_percent_rounds_half_up():
    payload = build_dashboard_payload(_summary(concerns=[_row("fever", 0.0625)]))
    assert _highlight(payload, "top-concern-fever")["description"] == (
        "Mentioned 1 times (6.3% of user messages) in recent chats."
    )


def test_whole_share_percent_has_no_decimal():
    payload = build_dashboard_payload(
        _summary(conditions=[_row("asthma", 1.0, count=16, example="wheezing again")])
    )
    assert _highlight(payload, "top-condition-asthma")["description"] == (
        "Logged 16 times (100% of user messages). Sample context: “wheezing again”."
    )


def test_percentage_change_and_direction():
    assert percentage_change(150, 100) == pytest.approx(50.0)
    assert percentage_change(5, 0) is None
    assert trend_direction(None) == "flat"
    assert trend_direction(0.00001) == "flat"
    assert trend_direction(-3) == "down"
