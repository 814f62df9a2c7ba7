"""Equality filters keyed by a single field."""

from __future__ import annotations

from typing import Any, Dict

from bson import ObjectId

IDENTITY_FIELD = "_id"


def to_object_id(value: Any) -> ObjectId:
    """Parse ``value`` into an ``ObjectId``; raises ``bson.errors.InvalidId``."""

    if isinstance(value, ObjectId):
        return value
    return ObjectId(value)


def field_match(field: str, value: Any) -> Dict[str, Any]:
    """Build ``{field: value}``, coercing the value when matching on ``_id``."""

    if field == IDENTITY_FIELD:
        value = to_object_id(value)
    return {field: value}


def identity_match(document_id: Any) -> Dict[str, Any]:
    return {IDENTITY_FIELD: to_object_id(document_id)}
