"""Text2ImageService 单元测试。"""

from __future__ import annotations

import pytest

from config.settings import AppConfig
from modules.pipelines import text2img
from modules.pipelines.errors import (
    InvalidModel,
    MissingPrompt,
    ProviderCallFailed,
    ProviderUnavailable,
    UnrecognizedResponseShape,
)


class DummyProvider:
    """模拟 Replicate 调用，记录输入参数。"""

    def __init__(self, output=None, error: Exception | None = None) -> None:
        self.output = ["http://x/img.png"] if output is None else output
        self.error = error
        self.calls: list[tuple[str, dict]] = []

    def run(self, reference: str, payload: dict):
        self.calls.append((reference, payload))
        if self.error is not None:
            raise self.error
        return self.output


def build_service(provider: DummyProvider, config: AppConfig | None = None) -> text2img.Text2ImageService:
    return text2img.Text2ImageService(config or AppConfig(), provider=provider)


def test_generate_returns_image_result():
    provider = DummyProvider()
    service = build_service(provider)

    result = service.generate(text2img.PromptRequest(prompt="a red fox", negative_prompt="blurry"))

    assert result.image_url == "http://x/img.png"
    assert result.model == "sdxl"
    assert (result.width, result.height) == (512, 512)
    assert result.size is None
    reference, payload = provider.calls[0]
    assert reference.startswith("stability-ai/sdxl:")
    assert payload == {"prompt": "a red fox", "negative_prompt": "blurry", "width": 512, "height": 512}


def test_generate_snaps_size_for_enumerated_model():
    provider = DummyProvider(output={"url": "http://x/recraft.webp"})
    service = build_service(provider)

    result = service.generate(
        text2img.PromptRequest(prompt="poster", width=1920, height=1080, model="recraft-v3")
    )

    assert result.image_url == "http://x/recraft.webp"
    assert result.size == "1820x1024"
    assert provider.calls[0] == ("recraft-ai/recraft-v3", {"prompt": "poster", "size": "1820x1024"})


def test_invalid_model_issues_no_provider_call():
    provider = DummyProvider()
    service = build_service(provider)

    with pytest.raises(InvalidModel):
        service.generate(text2img.PromptRequest(prompt="cat", model="midjourney"))
    assert provider.calls == []


def test_missing_prompt_issues_no_provider_call():
    provider = DummyProvider()
    service = build_service(provider)

    with pytest.raises(MissingPrompt):
        service.generate(text2img.PromptRequest(prompt="   "))
    assert provider.calls == []


def test_provider_errors_propagate():
    provider = DummyProvider(error=ProviderCallFailed("Failed to generate image: boom"))
    service = build_service(provider)

    with pytest.raises(ProviderCallFailed):
        service.generate(text2img.PromptRequest(prompt="cat"))


def test_unexpected_output_is_rejected():
    service = build_service(DummyProvider(output={"status": "failed"}))

    with pytest.raises(UnrecognizedResponseShape):
        service.generate(text2img.PromptRequest(prompt="cat"))


def test_default_provider_requires_token():
    service = text2img.Text2ImageService(AppConfig(replicate_api_token=None))

    with pytest.raises(ProviderUnavailable):
        service.generate(text2img.PromptRequest(prompt="cat"))


def test_models_puts_configured_default_first():
    service = build_service(DummyProvider(), AppConfig(default_model="recraft-v3"))

    assert service.models() == ["recraft-v3", "sdxl"]
    result = service.generate(text2img.PromptRequest(prompt="cat", width=1024, height=1024))
    assert result.model == "recraft-v3"
    assert result.size == "1024x1024"


def test_result_reports_canonical_model_name():
    provider = DummyProvider()
    service = build_service(provider)

    result = service.generate(text2img.PromptRequest(prompt="a red fox", model=" sdxl "))

    assert result.model == "sdxl"
