"""
Declarative description of the structured output expected from the model.

Fields are plain data (name, type, required flag, default), so strictness
decisions live in the schema definition rather than in code paths.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional

import jsonschema

FieldType = Literal["string", "integer", "number", "boolean", "object", "array"]


@dataclass(frozen=True)
class SchemaField:
    name: str
    type: FieldType = "string"
    required: bool = True
    default: Any = None
    description: Optional[str] = None
    fields: tuple["SchemaField", ...] = ()  # for objects
    item_type: FieldType = "string"  # for arrays
    additional_properties: bool = False  # for objects

    def to_json_schema(self) -> dict[str, Any]:
        if self.type == "object":
            schema = _object_schema(self.fields, self.additional_properties)
        elif self.type == "array":
            schema = {"type": "array", "items": {"type": self.item_type}}
        else:
            schema = {"type": self.type}
        if self.description:
            schema["description"] = self.description
        return schema


def _object_schema(
    fields: tuple[SchemaField, ...], additional_properties: bool
) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {f.name: f.to_json_schema() for f in fields},
        "required": [f.name for f in fields if f.required],
        "additionalProperties": additional_properties,
    }


@dataclass(frozen=True)
class ExtractionSchema:
    """A named, versioned output contract.

    Attributes:
        name: Schema name sent to the backend's structured-output option
        version: Bumped whenever fields change
        fields: Top-level fields
        strict: Ask the backend to enforce the schema exactly
        additional_properties: Whether unknown top-level keys are allowed
    """

    name: str
    version: str
    fields: tuple[SchemaField, ...]
    strict: bool = True
    additional_properties: bool = False
    _field_index: dict[str, SchemaField] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        self._field_index.update({f.name: f for f in self.fields})

    def get_field(self, name: str) -> SchemaField:
        return self._field_index[name]

    def to_json_schema(self) -> dict[str, Any]:
        return _object_schema(self.fields, self.additional_properties)

    def to_response_format(self) -> dict[str, Any]:
        """Structured-output format block for the Responses API."""
        return {
            "type": "json_schema",
            "name": self.name,
            "strict": self.strict,
            "schema": self.to_json_schema(),
        }

    def validate(self, value: Any) -> list[str]:
        """Return human-readable schema violations (empty when conforming)."""
        validator = jsonschema.Draft202012Validator(self.to_json_schema())
        errors = sorted(
            validator.iter_errors(value),
            key=lambda e: [str(p) for p in e.absolute_path],
        )
        return [
            f"{'/'.join(str(p) for p in error.absolute_path) or '<root>'}: {error.message}"
            for error in errors
        ]
