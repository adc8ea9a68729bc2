import json
from unittest.mock import MagicMock

import pytest

from libs.core import GatewayError, ValidationError
from libs.enrichment import (
    Enrichment,
    ExtractImageMetadata,
    ExtractTextMetadata,
    ImproveText,
    PromptBook,
    PromptsError,
    SummarizeUrl,
)
from libs.llm import ChatResponse


def reply(payload) -> ChatResponse:
    content = payload if isinstance(payload, str) else json.dumps(payload)
    return ChatResponse.model_validate(
        {"choices": [{"message": {"role": "assistant", "content": content}}]}
    )


def make(strategy_cls, payload, model="text-model"):
    gateway = MagicMock()
    gateway.call_model.return_value = reply(payload)
    return strategy_cls(gateway, PromptBook(), model), gateway


def test_text_metadata_without_category_defaults_arrays():
    strategy, _ = make(ExtractTextMetadata, {"summary": "s", "sentiment": "neutral"})
    result = strategy("Had lunch with Sam")
    assert result.category is None
    assert result.tags == []
    assert result.entities == []
    assert result.topics == []
    assert result.keywords == []
    assert result.sentiment == "neutral"


def test_text_metadata_request_shape():
    strategy, gateway = make(ExtractTextMetadata, {"tags": ["x"]})
    strategy("Had lunch with Sam")

    request = gateway.call_model.call_args.args[0]
    assert request.model == "text-model"
    assert request.temperature == 0.3
    assert [m.role for m in request.messages] == ["system", "user"]
    assert request.messages[1].content == "Had lunch with Sam"
    fmt = request.response_format
    assert fmt["type"] == "json_schema"
    assert fmt["json_schema"]["name"] == "text_metadata_response"
    assert fmt["json_schema"]["strict"] is True
    assert "category" not in fmt["json_schema"]["schema"]["required"]


def test_improve_text_maps_fields():
    strategy, gateway = make(
        ImproveText,
        {
            "improved_text": "Cleaner.",
            "quality_score": 0.8,
            "tags": ["a"],
            "entities": [],
            "sentiment": "positive",
        },
    )
    result = strategy("cleaner text please")
    assert result.improved_text == "Cleaner."
    assert result.quality_score == 0.8
    assert result.sentiment == "positive"
    assert gateway.call_model.call_args.args[0].temperature == 0.7


def test_image_metadata_sends_image_part():
    strategy, gateway = make(
        ExtractImageMetadata,
        {"tags": ["sea"], "description": "A beach", "objects": ["sand"], "scene": "coast"},
        model="vision-model",
    )
    result = strategy("https://cdn.example.com/1.jpg")
    assert result.description == "A beach"
    assert result.colors == []
    assert result.mood is None

    request = gateway.call_model.call_args.args[0]
    assert request.model == "vision-model"
    parts = request.messages[1].content
    assert parts[0]["type"] == "text"
    assert parts[1] == {"type": "image_url", "image_url": {"url": "https://cdn.example.com/1.jpg"}}


def test_url_summary_maps_tldr_and_filters_quotes():
    strategy, _ = make(
        SummarizeUrl,
        {
            "tldr": "In short.",
            "key_points": ["one", "two"],
            "quotes": [{"text": "said"}, {"text": ""}, "bare"],
            "tags": ["news"],
        },
    )
    result = strategy("long article body")
    assert result.summary == "In short."
    assert result.key_points == ["one", "two"]
    assert [q.text for q in result.quotes] == ["said"]


def test_fenced_json_is_accepted():
    strategy, _ = make(ExtractTextMetadata, '```json\n{"tags": ["x"]}\n```')
    assert strategy("text").tags == ["x"]


def test_unparseable_reply_raises_gateway_error():
    strategy, _ = make(ExtractTextMetadata, "I cannot help with that")
    with pytest.raises(GatewayError) as exc:
        strategy("text")
    assert "Failed to parse JSON" in str(exc.value)


def test_non_object_reply_raises_gateway_error():
    strategy, _ = make(ExtractTextMetadata, [1, 2])
    with pytest.raises(GatewayError):
        strategy("text")


def test_invalid_enum_raises_gateway_error():
    strategy, _ = make(ImproveText, {"improved_text": "x", "sentiment": "ecstatic"})
    with pytest.raises(GatewayError):
        strategy("text")


def test_empty_input_is_rejected_before_calling_model():
    strategy, gateway = make(ImproveText, {})
    with pytest.raises(ValidationError):
        strategy("   ")
    gateway.call_model.assert_not_called()


def test_enrichment_wires_models():
    enrichment = Enrichment(MagicMock(), "text-model", "vision-model")
    assert enrichment.improve.model == "text-model"
    assert enrichment.summarize_url.model == "text-model"
    assert enrichment.image_metadata.model == "vision-model"


def test_missing_prompts_file(tmp_path):
    with pytest.raises(PromptsError):
        PromptBook(tmp_path / "missing.yaml")


def test_missing_prompt_section(tmp_path):
    path = tmp_path / "prompts.yaml"
    path.write_text("improve:\n  system: hi\n", encoding="utf-8")
    book = PromptBook(path)
    assert book.system("improve") == "hi"
    with pytest.raises(PromptsError):
        book.user("improve", text="x")


def test_out_of_range_quality_score_is_a_gateway_error():
    strategy, _ = make(
        ImproveText,
        {"improved_text": "x", "quality_score": 8, "tags": [], "entities": [], "sentiment": "neutral"},
    )
    with pytest.raises(GatewayError):
        strategy("text")


def test_improve_schema_bounds_quality_score():
    strategy, gateway = make(ImproveText, {"improved_text": "x", "quality_score": 0.5})
    strategy("text")
    schema = gateway.call_model.call_args.args[0].response_format["json_schema"]["schema"]
    assert schema["properties"]["quality_score"]["minimum"] == 0
    assert schema["properties"]["quality_score"]["maximum"] == 1
