import json
from types import SimpleNamespace

import pytest
import requests

from libs.core import GatewayError
from libs.llm import ChatCompletionGateway, ChatMessage, ChatRequest
from libs.llm.chat_gateway import UNAVAILABLE_MESSAGE, error_message


# Stub settings with fake credentials
class DummySettings(SimpleNamespace):
    ai_api_key: str = "token"
    ai_base_url: str = "https://ai.example.com/api/v1/"
    ai_timeout: float = 5.0
    ai_log_payloads: bool = False


def make_gateway() -> ChatCompletionGateway:
    return ChatCompletionGateway(settings=DummySettings())


def make_request() -> ChatRequest:
    return ChatRequest(
        model="m",
        messages=[ChatMessage(role="user", content="hi")],
        temperature=0.3,
    )


class Resp:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text or payload is None else json.dumps(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def test_gateway_posts_to_chat_completions(monkeypatch):
    gateway = make_gateway()
    seen = {}

    def fake_post(url, json, timeout):
        seen.update(url=url, json=json, timeout=timeout)
        return Resp(payload={"id": "r1", "choices": [{"message": {"content": "{}"}}]})

    monkeypatch.setattr(gateway.session, "post", fake_post)
    response = gateway.call_model(make_request())

    assert response.id == "r1"
    assert seen["url"] == "https://ai.example.com/api/v1/chat/completions"
    assert seen["timeout"] == 5.0
    assert seen["json"]["model"] == "m"
    assert "max_tokens" not in seen["json"]
    assert gateway.session.headers["Authorization"] == "Bearer token"


def test_gateway_timeout(monkeypatch):
    gateway = make_gateway()

    def fake_post(url, json, timeout):
        raise requests.Timeout()

    monkeypatch.setattr(gateway.session, "post", fake_post)
    with pytest.raises(GatewayError) as exc:
        gateway.call_model(make_request())
    assert str(exc.value) == "AI request timed out after 5s"


def test_gateway_structured_error(monkeypatch):
    gateway = make_gateway()
    body = {"error": {"message": "Rate limit exceeded"}}
    monkeypatch.setattr(
        gateway.session, "post", lambda url, json, timeout: Resp(429, payload=body)
    )
    with pytest.raises(GatewayError) as exc:
        gateway.call_model(make_request())
    assert str(exc.value) == "AI API error (429): Rate limit exceeded"
    assert exc.value.status == 429


def test_gateway_invalid_json_body(monkeypatch):
    gateway = make_gateway()
    monkeypatch.setattr(
        gateway.session, "post", lambda url, json, timeout: Resp(200, text="<html>")
    )
    with pytest.raises(GatewayError):
        gateway.call_model(make_request())


def test_error_message_opaque_500():
    assert error_message(500, "<html>Internal error</html>") == UNAVAILABLE_MESSAGE


def test_error_message_string_error_field():
    assert error_message(400, '{"error": "bad model"}') == "AI API error (400): bad model"


def test_error_message_truncates_raw_body():
    message = error_message(503, "x" * 500)
    assert message == "AI API error (503): " + "x" * 200 + "…"


def test_error_message_empty_body():
    assert error_message(404, "") == "AI API error (404)"


def test_response_without_content():
    from libs.llm import ChatResponse

    with pytest.raises(GatewayError):
        ChatResponse.model_validate({"choices": []}).content()
