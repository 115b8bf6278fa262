"""
AI Service Exceptions

This module contains exception classes for the AI service and the
translation pipeline around it.
Separated to avoid circular imports between service.py and providers.py.
"""


class TranslationError(Exception):
    """Translation service error with optional code and details."""

    def __init__(self, message: str, code: str = None, details: dict = None):
        super().__init__(message)
        self.code = code
        self.details = details or {}


class ProviderError(TranslationError):
    """The upstream translation backend failed or answered badly."""


class OverloadedError(ProviderError):
    """Rate limit or overload signal; safe to retry after a pause."""


class AuthError(ProviderError):
    """Missing or rejected credentials."""


class ConnectivityError(ProviderError):
    """The provider endpoint could not be reached."""


class NoModelsError(ProviderError):
    """Model discovery returned nothing usable."""


class MalformedResponseError(ProviderError):
    """The provider answer could not be turned into JSON of the right shape."""


class ArchiveError(TranslationError):
    """The uploaded file is not a readable zip/jar container."""


class MalformedInputError(TranslationError):
    """A language file inside the archive is not valid JSON."""


class TranslationStopped(TranslationError):
    """Raised when the operator stops a run; not a failure."""

    def __init__(self, message: str = "Translation stopped by user."):
        super().__init__(message, code="stopped")
