"""
AI Translation Service Module

This module provides the main AI service for translation:
- AIService class: model discovery and one-chunk translation
- Configuration validation

For provider-specific API implementations, see ai/providers.py
"""

from typing import Any, Dict, List, Optional

from jarloc.config import (
    BUILTIN_PROVIDERS,
    BUILTIN_PROVIDER_DISPLAY_NAMES,
    DEFAULT_SYSTEM_MESSAGE,
    OPENAI_COMPATIBLE_PROVIDERS,
    get_prompt,
    load_config,
)
from jarloc.logger import get_logger
from jarloc import language_codes as lc
from jarloc.ai import providers
from jarloc.ai.exceptions import AuthError, NoModelsError, TranslationError
from jarloc.translation.parsing import parse_json_response

logger = get_logger(__name__)


def validate_ai_config(config: Dict[str, Any], provider: Optional[str] = None) -> None:
    """
    Validate that a provider is known and has what it needs to be called.

    Raises:
        TranslationError: If configuration is invalid or missing, with code and details.
    """
    provider = provider or config.get('ai_provider', 'gemini')
    if provider not in BUILTIN_PROVIDERS:
        raise TranslationError(
            f"Unknown provider '{provider}'",
            code="unknown_provider",
            details={"provider": provider},
        )

    provider_config = config.get(provider) or {}
    if provider != "local" and not provider_config.get('api_key'):
        raise AuthError(
            f"{BUILTIN_PROVIDER_DISPLAY_NAMES[provider]} API key not configured. Please set it in Settings.",
            code="ai_config_missing",
            details={"provider": provider, "missing_field": "api_key"},
        )
    if provider == "local" and not provider_config.get('api_url'):
        raise TranslationError(
            "Local LLM URL not configured",
            code="ai_config_missing",
            details={"provider": provider, "missing_field": "api_url"},
        )


class AIService:
    """
    Translation backend facade.

    Holds the credentials of one provider and exposes the two operations the
    orchestrator needs: `discover_models()` and `translate()`.
    """

    def __init__(self, provider: Optional[str] = None, config: Optional[Dict[str, Any]] = None):
        self.config = config if config is not None else load_config()
        self.provider = provider or self.config.get('ai_provider', 'gemini')
        if self.provider not in BUILTIN_PROVIDERS:
            raise TranslationError(f"Unsupported AI provider: {self.provider}", code="unknown_provider")
        self.translation_config = self.config.get('translation', {})
        logger.info(f"Initialized AI service with provider: {self.provider}")

    @property
    def credentials(self) -> Dict[str, Any]:
        return self.config.get(self.provider) or {}

    @property
    def display_name(self) -> str:
        return BUILTIN_PROVIDER_DISPLAY_NAMES.get(self.provider, self.provider)

    def _get_system_message(self, default: str = DEFAULT_SYSTEM_MESSAGE) -> str:
        """Get system message from config or use default."""
        return self.translation_config.get('system_message', default)

    def discover_models(self) -> List[str]:
        """
        List models available with the current credentials.

        Raises:
            AuthError: missing or rejected credentials
            ConnectivityError: endpoint unreachable
            NoModelsError: nothing usable was returned
        """
        logger.info(f"Connecting to {self.display_name}...")
        if self.provider == 'gemini':
            models = providers.discover_gemini_models(self.credentials)
        elif self.provider == 'local':
            models = providers.discover_local_models(self.credentials)
        else:
            models = providers.discover_openai_compatible_models(self.provider, self.credentials)

        if not models:
            raise NoModelsError("No available models were found.", code="no_models")

        logger.info(f"Connected. {len(models)} models found.")
        return models

    def build_prompt(self, payload_text: str, target_language: str) -> str:
        """Build the chunk translation prompt using the configured template."""
        template = get_prompt('json_translation_prompt')['prompt']
        return template.format(
            target_language_code=target_language,
            target_language_name=lc.get_language_name(target_language) or target_language,
            payload=payload_text,
        )

    def translate(self, model: str, payload_text: str, target_language: str) -> Any:
        """
        Translate one serialized JSON chunk.

        Returns:
            The parsed JSON value of the model answer

        Raises:
            ProviderError (or a subclass) on upstream failure or unparseable output
        """
        prompt = self.build_prompt(payload_text, target_language)
        temperature = self.translation_config.get('temperature', 0.1)
        logger.debug(f"Input to AI (prompt):\n{prompt}")

        if self.provider == 'gemini':
            response_text = providers.call_gemini_api(self.credentials, model, prompt, temperature)
        else:
            response_text = providers.call_openai_compatible_api(
                self.provider,
                self.credentials,
                model,
                prompt,
                system_message=self._get_system_message(),
                temperature=temperature,
                json_mode=self.provider in OPENAI_COMPATIBLE_PROVIDERS,
            )

        logger.debug(f"Output from AI (response):\n{response_text}")
        return parse_json_response(response_text)
