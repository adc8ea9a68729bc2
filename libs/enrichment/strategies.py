"""Enrichment strategies: one fixed prompt and JSON schema per task.

Every strategy sends a single request through a :class:`ModelGateway` and
maps the parsed JSON onto a result model. Array fields the model leaves
out become empty lists; scalar fields pass through as given (``None`` when
absent). Strategies hold no state between calls.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, List, TypeVar

import pydantic

from libs.core.exceptions import GatewayError, ValidationError
from libs.core.models import ImageAnalysis, ImprovedText, TextMetadata, UrlSummary
from libs.llm import ChatMessage, ChatRequest, ModelGateway, json_schema_format
from .prompts import PromptBook

T = TypeVar("T", bound=pydantic.BaseModel)

_STRING_ARRAY = {"type": "array", "items": {"type": "string"}}
_SENTIMENT = {"type": "string", "enum": ["negative", "neutral", "positive"]}


def _object_schema(properties: Dict[str, Any], required: List[str]) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": properties,
        "required": required,
        "additionalProperties": False,
    }


def _strings(data: Dict[str, Any], key: str) -> List[str]:
    value = data.get(key)
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None]


class EnrichmentStrategy(ABC, Generic[T]):
    """Base class shared by all enrichment tasks."""

    name: str
    prompt_section: str
    temperature: float = 0.7
    schema: Dict[str, Any]

    def __init__(self, gateway: ModelGateway, prompts: PromptBook, model: str) -> None:
        self.gateway = gateway
        self.prompts = prompts
        self.model = model

    def messages(self, value: str) -> List[ChatMessage]:
        return [
            ChatMessage(role="system", content=self.prompts.system(self.prompt_section)),
            ChatMessage(role="user", content=self.prompts.user(self.prompt_section, text=value)),
        ]

    def build_request(self, value: str) -> ChatRequest:
        return ChatRequest(
            model=self.model,
            messages=self.messages(value),
            temperature=self.temperature,
            response_format=json_schema_format(self.name, self.schema),
        )

    def run(self, value: str) -> T:
        if not value or not value.strip():
            raise ValidationError(f"{self.prompt_section} input cannot be empty")
        data = self.gateway.call_model(self.build_request(value)).parse_json()
        if not isinstance(data, dict):
            raise GatewayError("AI response JSON was not an object")
        try:
            return self.convert(data)
        except pydantic.ValidationError as exc:
            raise GatewayError(f"AI response did not match the {self.name} schema") from exc

    __call__ = run

    @abstractmethod
    def convert(self, data: Dict[str, Any]) -> T:
        """Map parsed model output onto the result type."""


class ImproveText(EnrichmentStrategy[ImprovedText]):
    name = "improve_entry_response"
    prompt_section = "improve"
    temperature = 0.7
    schema = _object_schema(
        {
            "improved_text": {"type": "string"},
            "quality_score": {"type": "number", "minimum": 0, "maximum": 1},
            "tags": _STRING_ARRAY,
            "entities": _STRING_ARRAY,
            "sentiment": _SENTIMENT,
        },
        ["improved_text", "quality_score", "tags", "entities", "sentiment"],
    )

    def convert(self, data: Dict[str, Any]) -> ImprovedText:
        return ImprovedText(
            improved_text=data.get("improved_text"),
            quality_score=data.get("quality_score"),
            tags=_strings(data, "tags"),
            entities=_strings(data, "entities"),
            sentiment=data.get("sentiment"),
        )


class ExtractTextMetadata(EnrichmentStrategy[TextMetadata]):
    name = "text_metadata_response"
    prompt_section = "text_metadata"
    temperature = 0.3
    schema = _object_schema(
        {
            "tags": _STRING_ARRAY,
            "entities": _STRING_ARRAY,
            "topics": _STRING_ARRAY,
            "keywords": _STRING_ARRAY,
            "summary": {"type": "string"},
            "sentiment": _SENTIMENT,
            "category": {"type": "string"},
        },
        ["tags", "entities", "topics", "keywords", "summary", "sentiment"],
    )

    def convert(self, data: Dict[str, Any]) -> TextMetadata:
        return TextMetadata(
            tags=_strings(data, "tags"),
            entities=_strings(data, "entities"),
            topics=_strings(data, "topics"),
            keywords=_strings(data, "keywords"),
            summary=data.get("summary"),
            sentiment=data.get("sentiment"),
            category=data.get("category"),
        )


class ExtractImageMetadata(EnrichmentStrategy[ImageAnalysis]):
    name = "image_metadata_response"
    prompt_section = "image_metadata"
    temperature = 0.3
    schema = _object_schema(
        {
            "tags": _STRING_ARRAY,
            "description": {"type": "string"},
            "objects": _STRING_ARRAY,
            "scene": {"type": "string"},
            "mood": {"type": "string"},
            "colors": _STRING_ARRAY,
            "category": {"type": "string"},
        },
        ["tags", "description", "objects", "scene"],
    )

    def messages(self, value: str) -> List[ChatMessage]:
        return [
            ChatMessage(role="system", content=self.prompts.system(self.prompt_section)),
            ChatMessage(
                role="user",
                content=[
                    {"type": "text", "text": self.prompts.user(self.prompt_section)},
                    {"type": "image_url", "image_url": {"url": value}},
                ],
            ),
        ]

    def convert(self, data: Dict[str, Any]) -> ImageAnalysis:
        return ImageAnalysis(
            tags=_strings(data, "tags"),
            description=data.get("description"),
            objects=_strings(data, "objects"),
            scene=data.get("scene"),
            mood=data.get("mood"),
            colors=_strings(data, "colors"),
            category=data.get("category"),
        )


class SummarizeUrl(EnrichmentStrategy[UrlSummary]):
    name = "url_summary_response"
    prompt_section = "url_summary"
    temperature = 0.6
    schema = _object_schema(
        {
            "tldr": {"type": "string"},
            "key_points": _STRING_ARRAY,
            "quotes": {
                "type": "array",
                "items": _object_schema({"text": {"type": "string"}}, ["text"]),
            },
            "tags": _STRING_ARRAY,
        },
        ["tldr", "key_points", "quotes", "tags"],
    )

    def convert(self, data: Dict[str, Any]) -> UrlSummary:
        quotes = data.get("quotes")
        if not isinstance(quotes, list):
            quotes = []
        return UrlSummary(
            summary=data.get("tldr", data.get("summary")),
            key_points=_strings(data, "key_points"),
            quotes=[q for q in quotes if isinstance(q, dict) and q.get("text")],
            tags=_strings(data, "tags"),
        )


class Enrichment:
    """The four strategies wired to one gateway and prompt book."""

    def __init__(
        self,
        gateway: ModelGateway,
        text_model: str,
        vision_model: str,
        prompts: PromptBook | None = None,
    ) -> None:
        prompts = prompts or PromptBook()
        self.improve = ImproveText(gateway, prompts, text_model)
        self.text_metadata = ExtractTextMetadata(gateway, prompts, text_model)
        self.image_metadata = ExtractImageMetadata(gateway, prompts, vision_model)
        self.summarize_url = SummarizeUrl(gateway, prompts, text_model)


__all__ = [
    "EnrichmentStrategy",
    "ImproveText",
    "ExtractTextMetadata",
    "ExtractImageMetadata",
    "SummarizeUrl",
    "Enrichment",
]
