"""Exception hierarchy."""

from __future__ import annotations


class PIIError(Exception):
    """Base class for all pii-anonymizer errors."""


class ConfigurationError(PIIError, ValueError):
    """Invalid or unsupported operator / analyzer configuration."""


class InvalidSpanError(PIIError, ValueError):
    """Spans handed to the anonymizer do not fit the text they claim to describe."""


class RecognizerError(PIIError):
    """A recognizer backend failed (load error, inference timeout, ...)."""
