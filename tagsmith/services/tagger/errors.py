"""Exceptions raised by the tagging service."""

from tagsmith.services.llm.client import EmptyResponseError, TransportError


class TaggerError(Exception):
    """Base class for tagging errors."""


class ConfigurationError(TaggerError):
    """Run cannot start (missing credentials, empty batch)."""


class ExtractionError(TaggerError):
    """Two-stage extraction failed for a document."""


class MalformedOutputError(ExtractionError):
    """Model output could not be parsed as a JSON object."""


__all__ = [
    "TaggerError",
    "ConfigurationError",
    "ExtractionError",
    "MalformedOutputError",
    "TransportError",
    "EmptyResponseError",
]
