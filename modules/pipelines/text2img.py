"""Text-to-image service backed by a hosted model provider."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

from config.settings import AppConfig
from modules.pipelines.dispatch import ModelRegistry, SizePayload, resolve_payload
from modules.pipelines.response import extract_image_url
from modules.providers.replicate_provider import ReplicateProvider

logger = logging.getLogger(__name__)


class ImageProvider(Protocol):
    """Anything that can run a hosted model and return its raw output."""

    def run(self, reference: str, payload: Dict[str, Any]) -> Any:
        ...


@dataclass(slots=True)
class PromptRequest:
    """Request data for text-to-image generation."""

    prompt: str
    negative_prompt: Optional[str] = None
    width: int = 512
    height: int = 512
    model: Optional[str] = None


@dataclass(slots=True)
class ImageResult:
    """Result payload produced by the text-to-image service."""

    image_url: str
    prompt: str
    negative_prompt: Optional[str]
    width: int
    height: int
    model: str
    size: Optional[str] = None


class Text2ImageService:
    """Facade around the payload dispatcher and the hosted provider."""

    def __init__(
        self,
        config: AppConfig,
        provider: Optional[ImageProvider] = None,
        registry: Optional[ModelRegistry] = None,
    ) -> None:
        self.config = config
        self.registry = registry or ModelRegistry(config.models)
        self._provider = provider

    def _ensure_provider(self) -> ImageProvider:
        if self._provider is None:
            self._provider = ReplicateProvider(self.config.replicate_api_token)
        return self._provider

    def models(self) -> List[str]:
        """Return supported model selectors, default first."""
        names = self.registry.names()
        default = self.default_model()
        return [default] + [name for name in names if name != default]

    def default_model(self) -> str:
        configured = self.config.default_model
        if configured in self.registry.names():
            return configured
        return self.registry.default.name

    def generate(self, request: PromptRequest) -> ImageResult:
        """Generate an image from text prompt and return its URL."""
        model = request.model or self.default_model()
        payload = resolve_payload(
            model,
            request.prompt,
            request.negative_prompt,
            request.width,
            request.height,
            self.registry,
        )
        spec = self.registry.get(model)
        logger.info(
            "Received request for image generation: model=%s prompt=%r size=%sx%s",
            spec.name,
            request.prompt,
            request.width,
            request.height,
        )

        output = self._ensure_provider().run(spec.reference, payload.to_input())
        image_url = extract_image_url(output, spec.name)

        return ImageResult(
            image_url=image_url,
            prompt=request.prompt,
            negative_prompt=payload.negative_prompt,
            width=request.width,
            height=request.height,
            model=spec.name,
            size=payload.size if isinstance(payload, SizePayload) else None,
        )
