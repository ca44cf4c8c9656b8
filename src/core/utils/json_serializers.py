"""Fallback serializer for ``json.dumps(default=...)``."""

import base64
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any
from uuid import UUID

from pydantic import BaseModel


def _serialize_known_type(obj: Any) -> tuple[bool, Any]:
    """Try to serialize by known type. Returns (handled, result)."""
    if isinstance(obj, (datetime, date)):
        return True, obj.isoformat()
    if isinstance(obj, Decimal):
        return True, float(obj)
    if isinstance(obj, (Path, UUID)):
        return True, str(obj)
    if isinstance(obj, (bytes, bytearray)):
        try:
            return True, bytes(obj).decode("utf-8")
        except UnicodeDecodeError:
            return True, base64.b64encode(bytes(obj)).decode("ascii")
    if isinstance(obj, BaseModel):
        return True, obj.model_dump(mode="json")
    if isinstance(obj, (set, frozenset)):
        return True, sorted(obj, key=str)
    return False, None


def json_serializer(obj: Any) -> Any:
    """
    Type-preserving JSON fallback used by log formatters and JsonCodec.

    - datetime/date -> ISO 8601 string
    - Decimal -> float
    - bytes -> UTF-8 text, or base64 when not valid UTF-8
    - pydantic models -> their JSON-mode dump
    - Enums -> value
    - Everything else -> string

    Args:
        obj: Object json.dumps could not encode

    Returns:
        JSON-serializable representation
    """
    handled, result = _serialize_known_type(obj)
    if handled:
        return result
    if hasattr(obj, "value"):
        return obj.value
    if hasattr(obj, "__dict__"):
        return obj.__dict__
    return str(obj)


__all__ = ["json_serializer"]
