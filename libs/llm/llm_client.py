from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from libs.core.exceptions import GatewayError

Role = Literal["system", "user", "assistant"]


class ChatMessage(BaseModel):
    role: Role
    # Plain text, or a list of content parts for multimodal input
    content: Union[str, List[Dict[str, Any]]]


class ChatRequest(BaseModel):
    model: str
    messages: List[ChatMessage]
    temperature: float = 0.7
    max_tokens: Optional[int] = None
    response_format: Optional[Dict[str, Any]] = None

    def payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ChatChoice(BaseModel):
    index: int = 0
    message: Dict[str, Any] = Field(default_factory=dict)
    finish_reason: Optional[str] = None


class ChatResponse(BaseModel):
    id: str = ""
    model: str = ""
    choices: List[ChatChoice] = Field(default_factory=list)
    usage: Dict[str, Any] = Field(default_factory=dict)

    def content(self) -> str:
        """Return the first choice's message content."""
        if not self.choices:
            raise GatewayError("No content in AI response")
        text = self.choices[0].message.get("content")
        if not isinstance(text, str) or not text.strip():
            raise GatewayError("No content in AI response")
        return text

    def parse_json(self) -> Any:
        """Parse the first choice's content as JSON."""
        text = self.content()
        try:
            return json.loads(text)
        except ValueError:
            cleaned = _clean_json_text(text)
            try:
                return json.loads(cleaned)
            except ValueError as exc:
                preview = (cleaned[:200] + "…") if len(cleaned) > 200 else cleaned
                raise GatewayError(
                    f"Failed to parse JSON from AI response. Preview: {preview}"
                ) from exc


def _clean_json_text(text: str) -> str:
    """Strip Markdown code fences or surrounding prose around a JSON object."""
    s = text.strip()
    if s.startswith("```"):
        lines = s.splitlines()
        closing = next(
            (i for i, line in enumerate(lines[1:], start=1) if line.strip().startswith("```")),
            None,
        )
        if closing is not None:
            s = "\n".join(lines[1:closing]).strip()
    if s.startswith("{") and s.endswith("}"):
        return s
    start, end = s.find("{"), s.rfind("}")
    if start != -1 and end > start:
        return s[start : end + 1]
    return s


def json_schema_format(name: str, schema: Dict[str, Any]) -> Dict[str, Any]:
    """Build a strict ``response_format`` block for ``schema``."""
    return {
        "type": "json_schema",
        "json_schema": {"name": name, "strict": True, "schema": schema},
    }


class ModelGateway(ABC):
    """Abstract interface to a chat-completion style model."""

    @abstractmethod
    def call_model(self, request: ChatRequest) -> ChatResponse:
        """Send ``request`` once and return the parsed response."""


__all__ = [
    "ChatMessage",
    "ChatRequest",
    "ChatChoice",
    "ChatResponse",
    "ModelGateway",
    "json_schema_format",
]
