"""Unit tests for response envelope normalization."""

import json

import pytest

from pipeline.core.exceptions import EmptyOutputError, MalformedJsonError
from pipeline.models.dto import ResourceKind
from pipeline.processors.response_normalizer import extract_text, normalize
from pipeline.schemas import PLAN_SUMMARY_SCHEMA

PAYLOAD = {"quick_summary": "Full basement, 9ft walls", "porch_count": 1}


def _nested(text: str) -> dict:
    return {
        "id": "resp_1",
        "status": "completed",
        "output": [
            {"type": "reasoning", "summary": []},
            {
                "type": "message",
                "content": [{"type": "output_text", "text": text}],
            },
        ],
    }


class TestExtractText:
    """Tests for the text location strategies."""

    def test_convenience_field_first(self):
        envelope = {"output_text": "a", "choices": [{"message": {"content": "b"}}]}

        assert extract_text(envelope) == "a"

    def test_blank_convenience_field_falls_through(self):
        envelope = _nested("nested")
        envelope["output_text"] = "   "

        assert extract_text(envelope) == "nested"

    def test_chat_completion_choices(self):
        envelope = {"choices": [{"message": {"role": "assistant", "content": "c"}}]}

        assert extract_text(envelope) == "c"

    def test_top_level_content(self):
        assert extract_text({"content": "d"}) == "d"

    def test_nothing_found(self):
        assert extract_text({"output": [{"content": [{"type": "image"}]}]}) is None


class TestNormalize:
    """Tests for normalize."""

    def test_flat_and_nested_envelopes_are_equivalent(self):
        text = json.dumps(PAYLOAD)
        flat = normalize({"output_text": text}, ResourceKind.IMAGE)
        nested = normalize(_nested(text), ResourceKind.IMAGE)

        assert flat.structured == nested.structured == PAYLOAD
        assert flat.raw_text == nested.raw_text == text

    def test_carries_source_kind_and_page_count(self):
        result = normalize(
            {"output_text": "{}"}, ResourceKind.PAGINATED_DOCUMENT, page_count=2
        )

        assert result.source_kind is ResourceKind.PAGINATED_DOCUMENT
        assert result.page_count == 2

    def test_malformed_json_raises(self):
        with pytest.raises(MalformedJsonError) as exc_info:
            normalize({"output_text": "{not json"}, ResourceKind.IMAGE)

        assert exc_info.value.message == "Could not parse JSON output."
        assert exc_info.value.error_code == "MALFORMED_JSON"

    def test_non_object_json_raises(self):
        with pytest.raises(MalformedJsonError):
            normalize({"output_text": "[1, 2]"}, ResourceKind.IMAGE)

    def test_empty_envelope_raises(self):
        with pytest.raises(EmptyOutputError) as exc_info:
            normalize({"status": "incomplete", "output": []}, ResourceKind.IMAGE)

        assert exc_info.value.details["status"] == "incomplete"

    def test_refusal_is_reported(self):
        envelope = {
            "output": [
                {"content": [{"type": "refusal", "refusal": "I can't help with that."}]}
            ]
        }

        with pytest.raises(EmptyOutputError) as exc_info:
            normalize(envelope, ResourceKind.IMAGE)

        assert exc_info.value.details["refusal"] == "I can't help with that."

    def test_partial_object_accepted_without_strict_validation(self):
        result = normalize(
            {"output_text": '{"quick_summary":"ok"}'},
            ResourceKind.IMAGE,
            schema=PLAN_SUMMARY_SCHEMA,
        )

        assert result.structured == {"quick_summary": "ok"}

    def test_strict_validation_rejects_partial_object(self):
        with pytest.raises(MalformedJsonError) as exc_info:
            normalize(
                {"output_text": '{"quick_summary":"ok"}'},
                ResourceKind.IMAGE,
                schema=PLAN_SUMMARY_SCHEMA,
                strict_validation=True,
            )

        assert exc_info.value.details["violations"]
