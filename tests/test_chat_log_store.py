import json

import pytest

from chat_log_store import ChatLogStore


def test_append_creates_directory_and_drops_unset_fields(tmp_path):
    store = ChatLogStore(str(tmp_path / "data" / "chat-logs.json"))
    record = store.append(
        {
            "timestamp": "2024-01-01T00:00:00.000Z",
            "messageCount": 2,
            "model": None,
            "status": "failure",
            "errorMessage": "boom",
        }
    )

    assert "model" not in record
    with open(tmp_path / "data" / "chat-logs.json", "r", encoding="utf-8") as fh:
        assert json.load(fh) == [record]


def test_entries_are_appended_in_order(tmp_path):
    store = ChatLogStore(str(tmp_path / "chat-logs.json"))
    for index in range(4):
        store.append({"messageCount": index, "status": "success"})

    assert [entry["messageCount"] for entry in store.list_entries()] == [0, 1, 2, 3]
    assert [entry["messageCount"] for entry in store.list_entries(2)] == [2, 3]
    assert [entry["messageCount"] for entry in store.list_entries(0)] == [0, 1, 2, 3]


def test_missing_or_corrupt_file_reads_as_empty(tmp_path):
    path = tmp_path / "chat-logs.json"
    store = ChatLogStore(str(path))
    assert store.list_entries() == []

    path.write_text("{not json", encoding="utf-8")
    assert store.list_entries() == []

    path.write_text(json.dumps({"unexpected": "object"}), encoding="utf-8")
    assert store.list_entries() == []


def test_append_refuses_to_overwrite_truncated_log(tmp_path):
    path = tmp_path / "chat-logs.json"
    truncated = '[{"messageCount": 1, "status": "success"}, {"messageCount": 2,'
    path.write_text(truncated, encoding="utf-8")
    store = ChatLogStore(str(path))

    with pytest.raises(json.JSONDecodeError):
        store.append({"messageCount": 3, "status": "success"})

    assert path.read_text(encoding="utf-8") == truncated


def test_append_refuses_to_overwrite_non_array_log(tmp_path):
    path = tmp_path / "chat-logs.json"
    original = json.dumps({"unexpected": "object"})
    path.write_text(original, encoding="utf-8")
    store = ChatLogStore(str(path))

    with pytest.raises(ValueError):
        store.append({"messageCount": 1, "status": "success"})

    assert path.read_text(encoding="utf-8") == original
