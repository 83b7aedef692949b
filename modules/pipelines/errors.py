"""Error kinds raised while turning a prompt into an image URL."""

from __future__ import annotations


class GenerationError(Exception):
    """Base class for failures surfaced to the requester as ``{error}``."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MissingPrompt(GenerationError):
    """The prompt is absent or only whitespace."""

    status_code = 400


class InvalidModel(GenerationError):
    """The model selector is not one of the supported identifiers."""

    status_code = 400


class InvalidSize(GenerationError):
    """Width or height is not a positive integer."""

    status_code = 400


class ProviderUnavailable(GenerationError):
    """Provider credentials or client library are missing."""


class ProviderCallFailed(GenerationError):
    """The provider call raised or did not finish in time."""


class UnrecognizedResponseShape(GenerationError):
    """The provider answered with something that holds no usable image URL."""
