from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from jsonschema import Draft7Validator

from .errors import ValidationError

_ID = {"type": ["string", "integer"]}
_TIMESTAMP = {"type": "string", "minLength": 1}
_OPTIONAL_TEXT = {"type": ["string", "null"]}

CATEGORY_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Category",
    "type": "object",
    "required": ["id", "name", "order", "createdAt", "updatedAt"],
    "properties": {
        "id": _ID,
        "name": {"type": "string"},
        "description": _OPTIONAL_TEXT,
        "order": {"type": "integer"},
        "createdAt": _TIMESTAMP,
        "updatedAt": _TIMESTAMP,
    },
}

SECTION_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Section",
    "type": "object",
    "required": ["id", "categoryId", "content", "order", "createdAt", "updatedAt"],
    "properties": {
        "id": _ID,
        "categoryId": _ID,
        "title": _OPTIONAL_TEXT,
        "content": {"type": "string"},
        "description": _OPTIONAL_TEXT,
        "order": {"type": "integer"},
        "isDefault": {"type": ["boolean", "null"]},
        "createdAt": _TIMESTAMP,
        "updatedAt": _TIMESTAMP,
    },
}

COMPILE_RESPONSE_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "CompileResponse",
    "type": "object",
    "required": ["prompt"],
    "properties": {"prompt": {"type": "string"}},
}


@dataclass(frozen=True)
class SchemaValidationResult:
    ok: bool
    errors: List[str]


def validate_doc(doc: Any, schema: Dict[str, Any]) -> SchemaValidationResult:
    validator = Draft7Validator(schema)
    errors = sorted(validator.iter_errors(doc), key=lambda e: [str(p) for p in e.path])
    if errors:
        rendered = []
        for e in errors:
            path = "/" + "/".join(str(p) for p in e.path) if e.path else "/"
            rendered.append(f"{path}: {e.message}")
        return SchemaValidationResult(ok=False, errors=rendered)
    return SchemaValidationResult(ok=True, errors=[])


def require_valid(doc: Any, schema: Dict[str, Any], *, what: str) -> None:
    """Fail closed: raise ValidationError when a boundary payload does not match its schema."""
    result = validate_doc(doc, schema)
    if not result.ok:
        raise ValidationError(f"malformed {what}: " + "; ".join(result.errors))
