from __future__ import annotations

import json
import logging
from typing import Any

import requests

from libs.core.exceptions import GatewayError
from libs.core.settings import Settings, get_settings
from .llm_client import ChatRequest, ChatResponse, ModelGateway

UNAVAILABLE_MESSAGE = "AI service is temporarily unavailable. Please try again later."
MAX_ERROR_BODY = 200


def error_message(status: int, body: str) -> str:
    """Derive a readable message from a failed API response."""
    try:
        data: Any = json.loads(body) if body else None
    except ValueError:
        data = None
    if isinstance(data, dict):
        err = data.get("error")
        message = err.get("message") if isinstance(err, dict) else err
        if isinstance(message, str) and message.strip():
            return f"AI API error ({status}): {message.strip()}"
    # Serverless gateways answer crashes with an opaque 500 page
    if status == 500:
        return UNAVAILABLE_MESSAGE
    snippet = (body or "").strip()
    if len(snippet) > MAX_ERROR_BODY:
        snippet = snippet[:MAX_ERROR_BODY] + "…"
    return f"AI API error ({status}): {snippet}" if snippet else f"AI API error ({status})"


class ChatCompletionGateway(ModelGateway):
    """Gateway to an OpenAI-compatible ``/chat/completions`` endpoint.

    One POST per call. Failures raise :class:`GatewayError` and are never
    retried here; callers own any retry policy.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        session: requests.Session | None = None,
        timeout: float | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.session = session or requests.Session()
        self.timeout = timeout if timeout is not None else float(
            getattr(self.settings, "ai_timeout", 60.0)
        )
        self.logger = logging.getLogger(__name__)
        self._log_payloads: bool = bool(getattr(self.settings, "ai_log_payloads", False))
        base_url = str(getattr(self.settings, "ai_base_url", "")).rstrip("/")
        self.url = f"{base_url}/chat/completions"
        self.session.headers.update(
            {
                "Authorization": f"Bearer {getattr(self.settings, 'ai_api_key', '')}",
                "Content-Type": "application/json",
            }
        )

    def call_model(self, request: ChatRequest) -> ChatResponse:
        payload = request.payload()
        _lvl = logging.INFO if self._log_payloads else logging.DEBUG
        self.logger.log(
            _lvl,
            "AI request | model=%s | input=%s",
            request.model,
            json.dumps(payload, ensure_ascii=False, default=str),
        )

        try:
            resp = self.session.post(self.url, json=payload, timeout=self.timeout)
        except requests.Timeout as exc:
            self.logger.warning("AI request timed out | model=%s", request.model)
            raise GatewayError(f"AI request timed out after {self.timeout:g}s") from exc
        except requests.RequestException as exc:
            self.logger.warning("AI request failed | model=%s | error=%s", request.model, exc)
            raise GatewayError(f"AI request failed: {exc}") from exc

        if not 200 <= resp.status_code < 300:
            message = error_message(resp.status_code, resp.text)
            self.logger.error(
                "AI request rejected | model=%s | status=%s | error=%s",
                request.model,
                resp.status_code,
                message,
            )
            raise GatewayError(message, status=resp.status_code)

        try:
            data = resp.json()
        except ValueError as exc:
            raise GatewayError("AI response was not valid JSON") from exc
        self.logger.log(
            _lvl,
            "AI raw response | model=%s | raw=%s",
            request.model,
            json.dumps(data, ensure_ascii=False, default=str),
        )
        return ChatResponse.model_validate(data)


__all__ = ["ChatCompletionGateway", "error_message", "UNAVAILABLE_MESSAGE"]
