"""Configuration helpers for the AI Image Gallery project."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Optional


class SizeMode(str, Enum):
    """How a model expects the output size to be expressed."""

    DIMENSIONS = "dimensions"
    ENUMERATED = "enumerated"


@dataclass(slots=True, frozen=True)
class ModelSpec:
    """A supported hosted model and the way its payload is shaped."""

    name: str
    reference: str
    size_mode: SizeMode = SizeMode.DIMENSIONS
    allowed_sizes: tuple[str, ...] = ()
    aspect_weight: float = 3.0
    pixel_scale: float = 1_000_000.0
    label: str = ""

    @property
    def display_name(self) -> str:
        return self.label or self.name


SDXL_REFERENCE = (
    "stability-ai/sdxl:c221b2b8ef527988fb59bf24a8b97c4561f1c671f73bd389f86650ce26a4eda4"
)
RECRAFT_REFERENCE = "recraft-ai/recraft-v3"
RECRAFT_SIZES: tuple[str, ...] = (
    "1024x1024",
    "1365x1024",
    "1024x1365",
    "1536x1024",
    "1024x1536",
    "1820x1024",
    "1024x1820",
    "1024x2048",
    "2048x1024",
    "1434x1024",
    "1024x1434",
    "1024x1280",
    "1280x1024",
    "1024x1707",
    "1707x1024",
)


def default_models() -> tuple[ModelSpec, ...]:
    """Built-in models; the first entry is the default selector."""
    return (
        ModelSpec(name="sdxl", reference=SDXL_REFERENCE, label="Stable Diffusion XL"),
        ModelSpec(
            name="recraft-v3",
            reference=RECRAFT_REFERENCE,
            size_mode=SizeMode.ENUMERATED,
            allowed_sizes=RECRAFT_SIZES,
            label="Recraft V3",
        ),
    )


@dataclass(slots=True)
class AppConfig:
    """Centralized application configuration."""

    replicate_api_token: Optional[str] = None
    models: tuple[ModelSpec, ...] = field(default_factory=default_models)
    default_model: Optional[str] = None
    default_width: int = 512
    default_height: int = 512
    resolution_choices: tuple[str, ...] = (
        "512x512",
        "1024x1024",
        "1280x720",
        "720x1280",
        "1920x1080",
    )
    history_storage_key: str = "ai-image-gallery"
    # BrowserState encryption key; must stay stable across restarts to read stored history.
    history_secret: str = "ai-image-gallery-history"
    history_quota_bytes: Optional[int] = 5_000_000
    history_limit: Optional[int] = None
    gallery_page_size: int = 8
    request_timeout: float = 120.0
    host: str = "127.0.0.1"
    port: int = 7860
    log_dir: Path = Path("logs")
    metadata: dict[str, Any] = field(default_factory=dict)

    def model_names(self) -> list[str]:
        """Return the configured model selectors in enumeration order."""
        return [spec.name for spec in self.models]

    def model_label(self, name: Optional[str]) -> str:
        """Human-readable model name; unknown selectors are shown as-is."""
        if not name:
            return "Unknown Model"
        for spec in self.models:
            if spec.name == name:
                return spec.display_name
        return name


def _load_env_file(path: Path) -> None:
    """Populate environment variables from a simple KEY=VALUE .env file."""
    if not path.exists():
        return

    for line in path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        os.environ[key.strip()] = value.strip()


def _env_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw in (None, ""):
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _env_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if raw in (None, ""):
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def _env_sizes(name: str) -> Optional[tuple[str, ...]]:
    raw = os.getenv(name)
    if not raw:
        return None
    sizes = tuple(item.strip() for item in raw.split(",") if item.strip())
    return sizes or None


def _configure_models() -> tuple[ModelSpec, ...]:
    """Apply environment overrides to the built-in model table."""
    aspect_weight = _env_float("SIZE_ASPECT_WEIGHT")
    recraft_sizes = _env_sizes("RECRAFT_ALLOWED_SIZES")
    references = {
        "sdxl": os.getenv("SDXL_MODEL_VERSION"),
        "recraft-v3": os.getenv("RECRAFT_MODEL_VERSION"),
    }

    configured: list[ModelSpec] = []
    for spec in default_models():
        changes: dict[str, Any] = {}
        if references.get(spec.name):
            changes["reference"] = references[spec.name]
        if spec.size_mode is SizeMode.ENUMERATED:
            if recraft_sizes and spec.name == "recraft-v3":
                changes["allowed_sizes"] = recraft_sizes
            if aspect_weight is not None:
                changes["aspect_weight"] = aspect_weight
        configured.append(replace(spec, **changes) if changes else spec)
    return tuple(configured)


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Return an AppConfig instance with environment-aware settings."""
    env_path = Path(config_path) if config_path else Path(".env")
    _load_env_file(env_path)

    models = _configure_models()
    names = [spec.name for spec in models]
    default_model = os.getenv("DEFAULT_MODEL")
    if default_model not in names:
        default_model = names[0]

    config = AppConfig(
        replicate_api_token=os.getenv("REPLICATE_API_TOKEN") or None,
        models=models,
        default_model=default_model,
        history_storage_key=os.getenv("HISTORY_STORAGE_KEY", "ai-image-gallery"),
        history_secret=os.getenv("HISTORY_STORAGE_SECRET") or "ai-image-gallery-history",
        history_limit=_env_int("HISTORY_LIMIT"),
        host=os.getenv("HOST", "127.0.0.1"),
        log_dir=Path(os.getenv("LOG_DIR", "logs")),
    )

    timeout = _env_float("REQUEST_TIMEOUT")
    if timeout is not None and timeout > 0:
        config.request_timeout = timeout
    port = _env_int("PORT")
    if port is not None:
        config.port = port
    page_size = _env_int("GALLERY_PAGE_SIZE")
    if page_size is not None and page_size > 0:
        config.gallery_page_size = page_size

    config.metadata["env_file"] = str(env_path)
    return config
