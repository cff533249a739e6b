from __future__ import annotations


class TranslationError(RuntimeError):
    """Base class for every failure the translation layer reports."""

    status_code = 500


class ValidationError(TranslationError):
    # caller must correct the input
    status_code = 400


class ProviderError(TranslationError):
    # upstream rejected the call or answered with something unusable
    status_code = 502


class TransportError(TranslationError):
    status_code = 502


class UnsupportedConfigurationError(TranslationError):
    status_code = 500
