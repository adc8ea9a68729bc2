"""Gateway to the chat-completion model used for enrichment."""

from .llm_client import (
    ChatMessage,
    ChatRequest,
    ChatResponse,
    ModelGateway,
    json_schema_format,
)
from .chat_gateway import ChatCompletionGateway

__all__ = [
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "ModelGateway",
    "ChatCompletionGateway",
    "json_schema_format",
]
