"""Groq-backed health guidance chat for the Flask API."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import groq

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 2000
ALLOWED_ROLES = ("user", "assistant")
DEFAULT_TEMPERATURE = 0.4
DEFAULT_MAX_TOKENS = 768

SYSTEM_PROMPT = """You are HealthMate, an AI health companion that offers general guidance only.
- Always include a brief safety disclaimer that you are not a doctor.
- Encourage consulting licensed healthcare professionals for diagnosis and treatment.
- Structure your answers with concise sections:
  1. Summary of what you understood.
  2. Possible causes or factors (if relevant).
  3. Suggested next steps, self-care tips, and when to seek urgent care.
- Alert the user to seek emergency care immediately if you detect life-threatening symptoms (e.g., chest pain, difficulty breathing, severe bleeding, stroke symptoms).
- Keep the overall response under 180 words unless the user explicitly asks for more detail.
- Base each reply on the full conversation so far and acknowledge follow-up questions concisely.
- When the conversation begins (your first reply), open with exactly: "Hi, I'm HealthMate. Describe your symptoms or health concern and I'll share general guidance. I'm not a doctor, so always consult a healthcare professional for diagnosis or emergencies."
- If the user asks about topics unrelated to their health (e.g., math, puzzles, coding), firmly refuse to engage with that topic and reply verbatim with: "I'm happy to help with health-related questions, but HealthMate only provides general health guidance. Please share your symptoms or health concern so I can assist." Do not add additional information about solving the non-health request.
- Respect privacy: do not ask for identifying details beyond health-related context.""".strip()


class ChatServiceError(RuntimeError):
    """Upstream chat completion failed; carries the HTTP status to report."""

    def __init__(self, message: str, status_code: int = 500, error_type: str = "ChatServiceError") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_type = error_type


@dataclass
class ChatCompletion:
    reply: str
    model: str
    usage: Dict[str, Any] = field(default_factory=dict)

    @property
    def prompt_tokens(self) -> Optional[int]:
        return self.usage.get("prompt_tokens")

    @property
    def completion_tokens(self) -> Optional[int]:
        return self.usage.get("completion_tokens")

    @property
    def total_tokens(self) -> Optional[int]:
        return self.usage.get("total_tokens")


def validate_chat_payload(payload: Any) -> Tuple[List[Dict[str, str]], Dict[str, Any]]:
    """Return ``(messages, errors)``; ``errors`` is empty when the body is usable."""
    form_errors: List[str] = []
    field_errors: Dict[str, List[str]] = {}

    raw_messages = payload.get("messages") if isinstance(payload, dict) else None
    if not isinstance(raw_messages, list):
        field_errors["messages"] = ["Expected a list of chat messages."]
        return [], {"formErrors": form_errors, "fieldErrors": field_errors}
    if not raw_messages:
        field_errors["messages"] = ["Please include at least one message in the conversation."]
        return [], {"formErrors": form_errors, "fieldErrors": field_errors}

    messages: List[Dict[str, str]] = []
    for index, item in enumerate(raw_messages):
        key = f"messages.{index}"
        if not isinstance(item, dict):
            field_errors.setdefault(key, []).append("Expected an object with role and content.")
            continue
        role = item.get("role")
        content = item.get("content")
        if role not in ALLOWED_ROLES:
            field_errors.setdefault(f"{key}.role", []).append("Role must be 'user' or 'assistant'.")
        if not isinstance(content, str):
            field_errors.setdefault(f"{key}.content", []).append("Message content must be a string.")
        elif len(content) < 1:
            field_errors.setdefault(f"{key}.content", []).append("Message content must include at least one character.")
        elif len(content) > MAX_MESSAGE_LENGTH:
            field_errors.setdefault(f"{key}.content", []).append("Message is too long. Try summarizing your question.")
        else:
            messages.append({"role": role, "content": content})

    if field_errors:
        return [], {"formErrors": form_errors, "fieldErrors": field_errors}
    return messages, {}


def _usage_dict(usage: Any) -> Dict[str, Any]:
    if usage is None:
        return {}
    return {
        key: getattr(usage, key)
        for key in ("prompt_tokens", "completion_tokens", "total_tokens")
        if getattr(usage, key, None) is not None
    }


class GroqChatClient:
    """Thin wrapper over the Groq chat completions API."""

    def __init__(
        self,
        api_key: str,
        model: str,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        client: Optional[groq.Groq] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client = client

    def _get_client(self) -> groq.Groq:
        if self._client is None:
            if not self.api_key:
                raise ChatServiceError(
                    "GROQ_API_KEY is required to call the Groq API",
                    status_code=503,
                    error_type="ConfigurationError",
                )
            self._client = groq.Groq(api_key=self.api_key)
        return self._client

    def complete(self, messages: Sequence[Dict[str, str]]) -> ChatCompletion:
        client = self._get_client()
        try:
            completion = client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                messages=[{"role": "system", "content": SYSTEM_PROMPT}, *messages],
            )
        except groq.APIError as exc:
            status_code = getattr(exc, "status_code", None) or 500
            logger.warning("Groq chat completion failed (%s): %s", status_code, exc)
            raise ChatServiceError(getattr(exc, "message", None) or str(exc), status_code, type(exc).__name__) from exc

        choices = completion.choices or []
        content = choices[0].message.content if choices and choices[0].message else None
        reply = (content or "").strip()
        if not reply:
            raise ChatServiceError(
                "The assistant returned an empty response. Please try again.",
                status_code=502,
                error_type="EmptyReply",
            )

        return ChatCompletion(reply=reply, model=completion.model or self.model, usage=_usage_dict(completion.usage))


__all__ = [
    "ChatCompletion",
    "ChatServiceError",
    "GroqChatClient",
    "SYSTEM_PROMPT",
    "validate_chat_payload",
]
