"""Model dispatch and payload normalization for hosted text-to-image models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from config.settings import ModelSpec, SizeMode
from modules.pipelines.errors import InvalidModel, InvalidSize, MissingPrompt
from modules.utils.image_utils import aspect_ratio, format_size, parse_size, pixel_count


@dataclass(slots=True)
class DimensionPayload:
    """Payload for models that accept arbitrary width and height."""

    prompt: str
    negative_prompt: Optional[str]
    width: int
    height: int

    def to_input(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"prompt": self.prompt}
        if self.negative_prompt:
            data["negative_prompt"] = self.negative_prompt
        data["width"] = self.width
        data["height"] = self.height
        return data


@dataclass(slots=True)
class SizePayload:
    """Payload for models that only accept a size from a fixed table."""

    prompt: str
    negative_prompt: Optional[str]
    size: str

    def to_input(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"prompt": self.prompt}
        if self.negative_prompt:
            data["negative_prompt"] = self.negative_prompt
        data["size"] = self.size
        return data


ProviderPayload = Union[DimensionPayload, SizePayload]


class ModelRegistry:
    """Ordered lookup of supported models."""

    def __init__(self, specs: Iterable[ModelSpec]) -> None:
        self._specs: Dict[str, ModelSpec] = {}
        for spec in specs:
            self._specs[spec.name] = spec
        if not self._specs:
            raise ValueError("At least one model must be configured")

    @property
    def default(self) -> ModelSpec:
        return next(iter(self._specs.values()))

    def names(self) -> List[str]:
        return list(self._specs)

    def specs(self) -> List[ModelSpec]:
        return list(self._specs.values())

    def get(self, name: Optional[str]) -> ModelSpec:
        """Return the spec for ``name`` or raise InvalidModel."""
        key = (name or "").strip()
        try:
            return self._specs[key]
        except KeyError:
            supported = ", ".join(self._specs)
            raise InvalidModel(
                f"Unsupported model '{name}'. Supported models: {supported}."
            ) from None


def size_distance(
    candidate: str,
    width: int,
    height: int,
    aspect_weight: float = 3.0,
    pixel_scale: float = 1_000_000.0,
) -> float:
    """Weighted distance between a ``"WxH"`` candidate and the requested size."""
    cand_w, cand_h = parse_size(candidate)
    ratio_delta = abs(aspect_ratio(cand_w, cand_h) - aspect_ratio(width, height))
    pixel_delta = abs(pixel_count(cand_w, cand_h) - pixel_count(width, height))
    return aspect_weight * ratio_delta + pixel_delta / pixel_scale


def nearest_size(
    width: int,
    height: int,
    allowed: Sequence[str],
    aspect_weight: float = 3.0,
    pixel_scale: float = 1_000_000.0,
) -> str:
    """Pick the allowed size closest to ``width`` x ``height``.

    An exact ``"WxH"`` entry is returned verbatim. Otherwise the candidate with
    the smallest :func:`size_distance` wins and ties go to the earliest entry.
    """
    if not allowed:
        raise ValueError("Allowed size table is empty")

    requested = format_size(width, height)
    if requested in allowed:
        return requested

    best = allowed[0]
    best_distance = size_distance(best, width, height, aspect_weight, pixel_scale)
    for candidate in allowed[1:]:
        distance = size_distance(candidate, width, height, aspect_weight, pixel_scale)
        if distance < best_distance:
            best, best_distance = candidate, distance
    return best


def _validate_dimension(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidSize(f"{name} must be a positive integer, got {value!r}.")
    return value


def resolve_payload(
    model: Optional[str],
    prompt: Optional[str],
    negative_prompt: Optional[str],
    width: int,
    height: int,
    registry: ModelRegistry,
) -> ProviderPayload:
    """Build the provider payload for ``model``; no I/O is performed."""
    if prompt is None or not prompt.strip():
        raise MissingPrompt("Prompt is required.")
    spec = registry.get(model)
    width = _validate_dimension("width", width)
    height = _validate_dimension("height", height)
    negative = negative_prompt.strip() if negative_prompt else None

    if spec.size_mode is SizeMode.ENUMERATED:
        size = nearest_size(
            width,
            height,
            spec.allowed_sizes,
            aspect_weight=spec.aspect_weight,
            pixel_scale=spec.pixel_scale,
        )
        return SizePayload(prompt=prompt, negative_prompt=negative or None, size=size)

    return DimensionPayload(
        prompt=prompt,
        negative_prompt=negative or None,
        width=width,
        height=height,
    )
