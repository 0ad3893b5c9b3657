"""Flask application entry point for the HealthMate health guidance chat."""
from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from flask import Flask, current_app, jsonify, request
from flask_cors import CORS

from analytics import ChatAnalytics, isoformat
from chat_log_store import STATUS_FAILURE, STATUS_SUCCESS, ChatLogStore
from chatbot import ChatServiceError, GroqChatClient, validate_chat_payload
from config import Settings, load_settings
from dashboard import dashboard_bp

logger = logging.getLogger(__name__)


def _append_chat_log(entry: Dict[str, Any]) -> None:
    try:
        current_app.extensions["chat_log_store"].append(entry)
    except (OSError, TypeError, ValueError) as exc:
        logger.warning("Failed to persist chat log entry: %s", exc)


def _log_failure(message_count: int, error_message: str) -> None:
    _append_chat_log(
        {
            "timestamp": isoformat(datetime.now(timezone.utc)),
            "messageCount": message_count,
            "status": STATUS_FAILURE,
            "errorMessage": error_message,
        }
    )


def create_app(
    settings: Optional[Settings] = None,
    chat_client: Any = None,
    analytics: Optional[ChatAnalytics] = None,
    chat_log_store: Optional[ChatLogStore] = None,
) -> Flask:
    settings = settings or load_settings()

    app = Flask(__name__)
    app.config["APP_ENV"] = settings.env
    app.config["CHAT_HISTORY_LIMIT"] = settings.chat_history_limit
    app.config["TESTING"] = settings.env == "test"
    CORS(app, origins=[settings.frontend_origin])

    app.extensions["analytics"] = analytics or ChatAnalytics()
    app.extensions["chat_log_store"] = chat_log_store or ChatLogStore(settings.chat_log_file)
    app.extensions["chat_client"] = chat_client or GroqChatClient(settings.groq_api_key, settings.groq_model)
    app.register_blueprint(dashboard_bp)

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok", "env": current_app.config["APP_ENV"]})

    @app.route("/api/chat", methods=["POST"])
    def chat():
        started_at = time.perf_counter()
        payload = request.get_json(force=True, silent=True) or {}
        messages, errors = validate_chat_payload(payload)
        if errors:
            return jsonify({"success": False, "error": "Invalid request body.", "details": errors}), 400

        limited_messages = messages[-current_app.config["CHAT_HISTORY_LIMIT"]:]
        try:
            completion = current_app.extensions["chat_client"].complete(limited_messages)
        except ChatServiceError as exc:
            _log_failure(len(messages), str(exc))
            return jsonify({"success": False, "error": str(exc), "type": exc.error_type}), exc.status_code
        except Exception as exc:
            _log_failure(len(messages), str(exc) or type(exc).__name__)
            raise

        response_time_ms = (time.perf_counter() - started_at) * 1000
        user_messages = [message["content"] for message in limited_messages if message["role"] == "user"]

        current_app.extensions["analytics"].record_turn(
            user_messages=len(user_messages),
            user_message_texts=user_messages,
            prompt_tokens=completion.prompt_tokens,
            completion_tokens=completion.completion_tokens,
            response_time_ms=response_time_ms,
        )

        _append_chat_log(
            {
                "timestamp": isoformat(datetime.now(timezone.utc)),
                "messageCount": len(messages),
                "model": completion.model,
                "promptTokens": completion.prompt_tokens,
                "completionTokens": completion.completion_tokens,
                "totalTokens": completion.total_tokens,
                "status": STATUS_SUCCESS,
            }
        )

        return jsonify(
            {
                "success": True,
                "reply": completion.reply,
                "model": completion.model,
                "usage": completion.usage,
            }
        )

    @app.route("/api/chat/logs", methods=["GET"])
    def chat_logs():
        raw_limit = request.args.get("limit")
        limit = None
        if raw_limit is not None:
            try:
                limit = int(raw_limit)
            except ValueError:
                return jsonify({"success": False, "error": "limit must be a non-negative integer."}), 400
            if limit < 0:
                return jsonify({"success": False, "error": "limit must be a non-negative integer."}), 400
        entries = current_app.extensions["chat_log_store"].list_entries(limit)
        return jsonify({"success": True, "logs": entries})

    @app.errorhandler(404)
    def handle_not_found(_):
        return jsonify({"success": False, "error": "Endpoint not found."}), 404

    @app.errorhandler(500)
    def handle_server_error(error):
        logger.exception("Unexpected error: %s", error)
        return jsonify({"success": False, "error": "Internal server error"}), 500

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    _settings = load_settings()
    if not _settings.groq_api_key:
        logger.warning("GROQ_API_KEY is not set; /api/chat will answer 503 until it is configured.")
    logger.info("HealthMate backend running on http://localhost:%s", _settings.port)
    create_app(_settings).run(host="0.0.0.0", port=_settings.port, debug=_settings.env == "development")
