"""
Pluggable byte codecs for message payloads.

A Decoder turns received bytes into a typed value; an Encoder writes a
typed value into a caller-owned reusable buffer. Codecs signal failure by
raising; the adapters wrap anything they raise in CodecError and never
retry it, since decoding the same bytes again reproduces the same failure.
"""

import json
from typing import Any, Generic, Protocol, TypeVar

from pydantic import BaseModel

from core.utils.json_serializers import json_serializer

M_co = TypeVar("M_co", covariant=True)
M_contra = TypeVar("M_contra", contravariant=True)
ModelT = TypeVar("ModelT", bound=BaseModel)


class Decoder(Protocol[M_co]):
    def decode(self, data: bytes) -> M_co:
        """Decode bytes into a value, raising on malformed input."""
        ...


class Encoder(Protocol[M_contra]):
    def encode(self, value: M_contra, buffer: bytearray) -> None:
        """Append the encoded value to ``buffer``, raising on failure."""
        ...


class BytesCodec:
    """Identity codec: payloads stay raw bytes."""

    def decode(self, data: bytes) -> bytes:
        return bytes(data)

    def encode(self, value: bytes, buffer: bytearray) -> None:
        buffer.extend(value)


class StringCodec:
    """Text payloads in a fixed encoding (UTF-8 by default)."""

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def decode(self, data: bytes) -> str:
        return bytes(data).decode(self.encoding)

    def encode(self, value: str, buffer: bytearray) -> None:
        buffer.extend(value.encode(self.encoding))


class JsonCodec:
    """JSON payloads; non-native types go through the shared type-safe serializer."""

    def decode(self, data: bytes) -> Any:
        return json.loads(data)

    def encode(self, value: Any, buffer: bytearray) -> None:
        buffer.extend(json.dumps(value, default=json_serializer).encode("utf-8"))


class PydanticCodec(Generic[ModelT]):
    """Payloads validated against a pydantic model."""

    def __init__(self, model: type[ModelT]):
        self.model = model

    def decode(self, data: bytes) -> ModelT:
        return self.model.model_validate_json(data)

    def encode(self, value: ModelT, buffer: bytearray) -> None:
        buffer.extend(value.model_dump_json().encode("utf-8"))


__all__ = [
    "Decoder",
    "Encoder",
    "BytesCodec",
    "StringCodec",
    "JsonCodec",
    "PydanticCodec",
]
