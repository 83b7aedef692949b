"""Replicate-hosted model invocation."""

from __future__ import annotations

import importlib
import logging
from typing import Any, Callable, Dict, Optional

from modules.pipelines.errors import ProviderCallFailed, ProviderUnavailable

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], Any]


def _default_client_factory(api_token: str) -> Any:
    try:
        replicate_module = importlib.import_module("replicate")
    except ImportError as exc:
        raise ProviderUnavailable(f"Could not import replicate: {exc}") from exc
    return replicate_module.Client(api_token=api_token)


class ReplicateProvider:
    """Thin wrapper that runs a model on Replicate and returns its raw output."""

    def __init__(
        self,
        api_token: Optional[str],
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        self.api_token = api_token
        self._client_factory = client_factory or _default_client_factory
        self._client: Any = None

    @property
    def available(self) -> bool:
        return bool(self.api_token)

    def _ensure_client(self) -> Any:
        if not self.api_token:
            raise ProviderUnavailable("Replicate API token not configured.")
        if self._client is None:
            self._client = self._client_factory(self.api_token)
        return self._client

    def run(self, reference: str, payload: Dict[str, Any]) -> Any:
        """Run ``reference`` with ``payload`` as model input."""
        client = self._ensure_client()
        logger.info("Calling Replicate model %s with input %s", reference, payload)
        try:
            output = client.run(reference, input=payload, use_file_output=False)
        except Exception as exc:  # noqa: BLE001
            logger.error("Replicate call to %s failed: %s", reference, exc)
            raise ProviderCallFailed(f"Failed to generate image: {exc}") from exc
        logger.debug("Replicate output for %s: %r", reference, output)
        return output
