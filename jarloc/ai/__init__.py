"""
AI Module

This module provides AI translation services and related utilities:
- service: AIService (model discovery, one-chunk translation)
- providers: HTTP calls for each provider
- exceptions: error hierarchy shared by the whole package
"""

from jarloc.ai.exceptions import (
    TranslationError,
    ProviderError,
    OverloadedError,
    AuthError,
    ConnectivityError,
    NoModelsError,
    MalformedResponseError,
    ArchiveError,
    MalformedInputError,
    TranslationStopped,
)

__all__ = [
    'TranslationError',
    'ProviderError',
    'OverloadedError',
    'AuthError',
    'ConnectivityError',
    'NoModelsError',
    'MalformedResponseError',
    'ArchiveError',
    'MalformedInputError',
    'TranslationStopped',
]
