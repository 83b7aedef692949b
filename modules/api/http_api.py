"""HTTP boundary for image generation.

``POST /api/generate-image`` accepts ``{prompt, negative_prompt?, width?,
height?, model?}`` and answers ``{"imageUrl": ...}`` or ``{"error": ...}``
with 400 for invalid input and 500 for configuration or provider failures.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from config.settings import AppConfig
from modules.pipelines.errors import GenerationError, ProviderCallFailed
from modules.pipelines.text2img import PromptRequest, Text2ImageService

logger = logging.getLogger(__name__)


class GenerateImageRequest(BaseModel):
    """Inbound JSON body."""

    prompt: Optional[str] = None
    negative_prompt: Optional[str] = None
    width: int = Field(default=512, gt=0)
    height: int = Field(default=512, gt=0)
    model: Optional[str] = None


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def create_api(config: AppConfig, service: Optional[Text2ImageService] = None) -> FastAPI:
    """Build the FastAPI application exposing the generation endpoint."""
    text_service = service or Text2ImageService(config)
    api = FastAPI(title="AI Image Gallery")

    @api.exception_handler(RequestValidationError)
    async def _on_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = "; ".join(
            f"{'.'.join(str(part) for part in err.get('loc', ()) if part != 'body')}: {err.get('msg')}"
            for err in exc.errors()
        )
        return _error(f"Invalid request: {details}", 400)

    @api.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @api.get("/api/models")
    def list_models() -> dict:
        registry = text_service.registry
        return {
            "default": text_service.default_model(),
            "models": [
                {
                    "id": spec.name,
                    "sizeMode": spec.size_mode.value,
                    "allowedSizes": list(spec.allowed_sizes),
                }
                for spec in registry.specs()
            ],
        }

    @api.post("/api/generate-image")
    async def generate_image(body: GenerateImageRequest) -> JSONResponse:
        request = PromptRequest(
            prompt=body.prompt or "",
            negative_prompt=body.negative_prompt,
            width=body.width,
            height=body.height,
            model=body.model,
        )
        loop = asyncio.get_running_loop()
        # The provider call keeps running in its worker thread after a timeout.
        try:
            result = await asyncio.wait_for(
                loop.run_in_executor(None, functools.partial(text_service.generate, request)),
                timeout=config.request_timeout,
            )
        except asyncio.TimeoutError:
            error = ProviderCallFailed(
                f"Failed to generate image: timed out after {config.request_timeout:g}s"
            )
            logger.error(error.message)
            return _error(error.message, error.status_code)
        except GenerationError as exc:
            logger.warning("Image generation rejected: %s", exc.message)
            return _error(exc.message, exc.status_code)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected error during image generation")
            return _error(f"Failed to generate image: {exc}", 500)

        return JSONResponse({"imageUrl": result.image_url})

    return api
