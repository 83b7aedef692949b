"""Utility helpers for image size strings."""

from __future__ import annotations

from typing import Tuple


def parse_size(text: str) -> Tuple[int, int]:
    """Split a ``"WIDTHxHEIGHT"`` string into positive integers."""
    parts = str(text).strip().lower().split("x")
    if len(parts) != 2:
        raise ValueError(f"Invalid size string: {text!r}")
    try:
        width, height = int(parts[0]), int(parts[1])
    except ValueError as exc:
        raise ValueError(f"Invalid size string: {text!r}") from exc
    if width <= 0 or height <= 0:
        raise ValueError(f"Size must be positive: {text!r}")
    return width, height


def format_size(width: int, height: int) -> str:
    return f"{width}x{height}"


def aspect_ratio(width: int, height: int) -> float:
    return width / height


def pixel_count(width: int, height: int) -> int:
    return width * height
