"""
Normalize provider response envelopes into a single parsed JSON value.

Backends place the model text in different spots depending on API version
(a convenience `output_text` field, nested output content blocks, chat
completion choices). Each location is a small pure strategy; the first one
that yields text wins. Parsing failures are reported as-is, never repaired.
"""

import json
import logging
from typing import Any, Callable, Optional

from pipeline.core.exceptions import EmptyOutputError, MalformedJsonError
from pipeline.models.dto import ExtractionResult, ResourceKind
from pipeline.schemas.base import ExtractionSchema

logger = logging.getLogger(__name__)

TextStrategy = Callable[[dict[str, Any]], Optional[str]]

_TEXT_CONTENT_TYPES = {"output_text", "text"}


def _non_empty(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _from_output_text(envelope: dict[str, Any]) -> Optional[str]:
    return _non_empty(envelope.get("output_text"))


def _from_output_items(envelope: dict[str, Any]) -> Optional[str]:
    output = envelope.get("output")
    if not isinstance(output, list):
        return None
    for item in output:
        if not isinstance(item, dict):
            continue
        content = item.get("content")
        if not isinstance(content, list):
            continue
        for part in content:
            if isinstance(part, dict) and part.get("type") in _TEXT_CONTENT_TYPES:
                text = _non_empty(part.get("text"))
                if text:
                    return text
    return None


def _from_chat_choices(envelope: dict[str, Any]) -> Optional[str]:
    choices = envelope.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first_choice = choices[0]
    if not isinstance(first_choice, dict):
        return None
    message = first_choice.get("message")
    if isinstance(message, dict):
        text = _non_empty(message.get("content"))
        if text:
            return text
    return _non_empty(first_choice.get("text"))


def _from_content_field(envelope: dict[str, Any]) -> Optional[str]:
    # Some providers include direct top-level content
    return _non_empty(envelope.get("content"))


EXTRACTION_STRATEGIES: tuple[TextStrategy, ...] = (
    _from_output_text,
    _from_output_items,
    _from_chat_choices,
    _from_content_field,
)


def extract_text(
    envelope: dict[str, Any],
    strategies: tuple[TextStrategy, ...] = EXTRACTION_STRATEGIES,
) -> Optional[str]:
    """Run strategies in order and return the first textual payload found."""
    for strategy in strategies:
        text = strategy(envelope)
        if text is not None:
            return text
    return None


def find_refusal(envelope: dict[str, Any]) -> Optional[str]:
    """Return the model's refusal message, if the envelope carries one."""
    for item in envelope.get("output") or []:
        if not isinstance(item, dict):
            continue
        for part in item.get("content") or []:
            if isinstance(part, dict) and part.get("type") == "refusal":
                return _non_empty(part.get("refusal"))
    return None


def parse_json_text(text: str) -> dict[str, Any]:
    """Parse model text as a JSON object.

    Raises:
        MalformedJsonError: Text is not JSON or not an object
    """
    try:
        value = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedJsonError(
            details={"reason": str(e), "raw_length": len(text)}
        ) from e
    if not isinstance(value, dict):
        raise MalformedJsonError(
            "Model output is not a JSON object",
            details={"json_type": type(value).__name__},
        )
    return value


def normalize(
    envelope: dict[str, Any],
    source_kind: ResourceKind,
    *,
    schema: Optional[ExtractionSchema] = None,
    strict_validation: bool = False,
    page_count: int = 0,
) -> ExtractionResult:
    """Turn a response envelope into an ExtractionResult.

    Args:
        envelope: Decoded backend response
        source_kind: Kind of the analysed resource
        schema: Output contract, used when `strict_validation` is on
        strict_validation: Reject values that do not conform to `schema`
        page_count: Raster pages sent with the request

    Raises:
        EmptyOutputError: No text in any recognized location
        MalformedJsonError: Text is not a JSON object, or violates the schema
    """
    text = extract_text(envelope)
    if text is None:
        refusal = find_refusal(envelope)
        if refusal:
            raise EmptyOutputError(
                "Model refused to produce output", details={"refusal": refusal}
            )
        raise EmptyOutputError(
            details={"status": envelope.get("status"), "keys": sorted(envelope)}
        )

    structured = parse_json_text(text)

    if strict_validation and schema is not None:
        violations = schema.validate(structured)
        if violations:
            logger.warning(
                "Model output violates schema %s: %d issue(s)",
                schema.name,
                len(violations),
            )
            raise MalformedJsonError(
                "Model output does not match the extraction schema",
                details={"violations": violations[:10]},
            )

    return ExtractionResult(
        source_kind=source_kind,
        structured=structured,
        raw_text=text,
        page_count=page_count,
    )
