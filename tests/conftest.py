from typing import Any, Dict, List, Optional

import pytest

from analytics import ChatAnalytics
from app import create_app
from chat_log_store import ChatLogStore
from chatbot import ChatCompletion
from config import Settings


class FakeChatClient:
    def __init__(self, reply: str = "Please rest and stay hydrated.", usage: Optional[Dict[str, Any]] = None):
        self.reply = reply
        self.usage = usage if usage is not None else {"prompt_tokens": 12, "completion_tokens": 30, "total_tokens": 42}
        self.error: Optional[Exception] = None
        self.calls: List[List[Dict[str, str]]] = []

    def complete(self, messages):
        self.calls.append(list(messages))
        if self.error is not None:
            raise self.error
        return ChatCompletion(reply=self.reply, model="llama-3.1-8b-instant", usage=dict(self.usage))


@pytest.fixture()
def fake_chat_client():
    return FakeChatClient()


@pytest.fixture()
def app_client(tmp_path, fake_chat_client):
    settings = Settings(env="test", chat_log_file=str(tmp_path / "chat-logs.json"))
    app = create_app(
        settings,
        chat_client=fake_chat_client,
        analytics=ChatAnalytics(),
        chat_log_store=ChatLogStore(settings.chat_log_file),
    )

    with app.test_client() as client:
        yield app, client
