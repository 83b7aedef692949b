"""Normalize the opaque provider output into a single image URL."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Optional, Union

from modules.pipelines.errors import UnrecognizedResponseShape

# Mapping keys probed in order.
_MAPPING_FIELDS = ("output", "image", "images", "url")


@dataclass(slots=True)
class TextResponse:
    value: str


@dataclass(slots=True)
class SequenceResponse:
    items: Sequence[Any]


@dataclass(slots=True)
class MappingResponse:
    fields: Mapping[str, Any]


@dataclass(slots=True)
class FileResponse:
    """An SDK file handle exposing a ``url`` attribute."""

    handle: Any


@dataclass(slots=True)
class UnknownResponse:
    raw: Any


ResponseShape = Union[TextResponse, SequenceResponse, MappingResponse, FileResponse, UnknownResponse]


def classify_response(raw: Any) -> ResponseShape:
    """Tag ``raw`` with the first shape it matches."""
    if isinstance(raw, str):
        return TextResponse(raw)
    if isinstance(raw, Sequence) and not isinstance(raw, (bytes, bytearray)):
        return SequenceResponse(raw)
    if isinstance(raw, Mapping):
        return MappingResponse(raw)
    if isinstance(getattr(raw, "url", None), str):
        return FileResponse(raw)
    return UnknownResponse(raw)


def _as_url(value: Any) -> Optional[str]:
    """Return a usable URL from a string or url-bearing handle."""
    if isinstance(value, str):
        return value.strip() or None
    url = getattr(value, "url", None)
    if isinstance(url, str):
        return url.strip() or None
    return None


def _first(value: Any) -> Any:
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return value[0] if len(value) else None
    return None


def _probe_mapping(fields: Mapping[str, Any]) -> Optional[str]:
    for key in _MAPPING_FIELDS:
        if key not in fields:
            continue
        value = fields[key]
        if key == "images":
            url = _as_url(_first(value))
        elif key == "output":
            url = _as_url(value) or _as_url(_first(value))
        else:
            url = _as_url(value)
        if url:
            return url
    return None


def extract_image_url(raw: Any, model: str) -> str:
    """Return the image URL held by ``raw`` or raise UnrecognizedResponseShape."""
    shape = classify_response(raw)
    url: Optional[str] = None
    if isinstance(shape, TextResponse):
        url = _as_url(shape.value)
    elif isinstance(shape, SequenceResponse):
        if len(shape.items):
            url = _as_url(shape.items[0])
    elif isinstance(shape, MappingResponse):
        url = _probe_mapping(shape.fields)
    elif isinstance(shape, FileResponse):
        url = _as_url(shape.handle)

    if not url:
        raise UnrecognizedResponseShape(
            f"Failed to generate image or unexpected output format from model '{model}'."
        )
    return url
