"""
AI Provider API Implementations

This module contains the API call implementations for each provider:
- Gemini
- OpenAI-compatible hosts (Groq, DeepSeek, OpenRouter)
- Local OpenAI-compatible servers (Ollama, LM Studio, ...)

Each provider has a discovery function returning model ids and a call
function returning the raw text of the model answer. `credentials` is the
provider's section of the configuration (api_key, api_url, timeout, ...).
"""

from typing import Any, Dict, List

import httpx

from jarloc.logger import get_logger
from jarloc.ai.exceptions import (
    AuthError,
    ConnectivityError,
    OverloadedError,
    ProviderError,
)

logger = get_logger(__name__)


def get_httpx_timeout(timeout_config: Any) -> httpx.Timeout:
    """
    Convert timeout configuration to httpx.Timeout object.

    Args:
        timeout_config: Either a number (total timeout) or a dict with
            connect, write, read, pool keys

    Returns:
        httpx.Timeout object
    """
    if isinstance(timeout_config, dict):
        return httpx.Timeout(
            connect=timeout_config.get('connect', 10.0),
            write=timeout_config.get('write', 60.0),
            read=timeout_config.get('read', 120.0),
            pool=timeout_config.get('pool', 10.0),
        )
    else:
        timeout_value = float(timeout_config) if timeout_config else 120.0
        return httpx.Timeout(
            connect=10.0,
            write=60.0,
            read=timeout_value,
            pool=10.0,
        )


def make_client(timeout_config: Any) -> httpx.Client:
    """HTTP client used by every provider call."""
    return httpx.Client(timeout=get_httpx_timeout(timeout_config))


def _error_text(response: httpx.Response) -> str:
    try:
        error_json = response.json()
        if isinstance(error_json, dict) and "error" in error_json:
            error_detail = error_json["error"]
            if isinstance(error_detail, dict):
                return error_detail.get("message", str(error_detail))
            return str(error_detail)
    except ValueError:
        pass
    return response.text[:500] if response.text else response.reason_phrase


def handle_http_error(e: httpx.HTTPStatusError, provider: str):
    """Raise the exception matching an HTTP error status."""
    status_code = e.response.status_code
    error_text = _error_text(e.response)
    message = f"{provider} API error ({status_code}): {error_text}"
    details = {"provider": provider, "status": status_code}

    if status_code in (401, 403):
        raise AuthError(message, code="auth_failed", details=details)
    if status_code == 429 or "overloaded" in error_text.lower():
        raise OverloadedError(message, code="overloaded", details=details)
    raise ProviderError(message, code="provider_error", details=details)


def _require_api_key(credentials: Dict[str, Any], provider: str) -> str:
    api_key = (credentials or {}).get('api_key', '')
    if not api_key or api_key == "YOUR_API_KEY_HERE":
        raise AuthError(
            f"{provider} API key not configured. Please paste your API key first.",
            code="ai_config_missing",
            details={"provider": provider, "missing_field": "api_key"},
        )
    return api_key


def _request_json(provider: str, credentials: Dict[str, Any], method: str, url: str, **kwargs) -> Any:
    """Send one request and return the decoded JSON body, mapping transport failures."""
    try:
        with make_client(credentials.get('timeout', 120)) as client:
            response = client.request(method, url, **kwargs)
            response.raise_for_status()
            return response.json()
    except httpx.HTTPStatusError as e:
        logger.error(f"{provider} API HTTP error: {e.response.status_code} - {e.response.text[:500]}")
        handle_http_error(e, provider)
    except httpx.TimeoutException:
        raise ProviderError(f"{provider} API request timeout", code="timeout")
    except httpx.TransportError as e:
        raise ConnectivityError(
            f"Could not connect to {provider} at {url}: {e}",
            code="unreachable",
            details={"provider": provider},
        )
    except ValueError as e:
        raise ProviderError(f"{provider} returned a non-JSON body: {e}")


# ============================================================
# Gemini
# ============================================================

def discover_gemini_models(credentials: Dict[str, Any]) -> List[str]:
    """List Gemini models that support generateContent."""
    api_key = _require_api_key(credentials, "Gemini")
    api_url = credentials.get('api_url', 'https://generativelanguage.googleapis.com/v1beta')

    data = _request_json("Gemini", credentials, "GET", f"{api_url}/models", params={"key": api_key})
    if isinstance(data, dict) and data.get("error"):
        raise ProviderError(f"Gemini API error: {data['error'].get('message', data['error'])}")

    models = [
        m.get("name", "").replace("models/", "")
        for m in (data or {}).get("models", [])
        if "generateContent" in m.get("supportedGenerationMethods", [])
    ]
    return sorted(m for m in models if m)


def call_gemini_api(credentials: Dict[str, Any], model: str, prompt: str, temperature: float = 0.1) -> str:
    """Call Gemini API."""
    api_key = _require_api_key(credentials, "Gemini")
    api_url = credentials.get('api_url', 'https://generativelanguage.googleapis.com/v1beta')

    body = {
        "contents": [{
            "parts": [{
                "text": prompt
            }]
        }],
        "generationConfig": {
            "temperature": temperature,
            "maxOutputTokens": 8192,
        }
    }

    logger.debug(f"Calling Gemini API: {model}")
    result = _request_json(
        "Gemini", credentials, "POST", f"{api_url}/models/{model}:generateContent",
        params={"key": api_key}, json=body,
    )

    if isinstance(result, dict) and result.get("error"):
        error = result["error"]
        message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
        if "overloaded" in message.lower():
            raise OverloadedError(f"Gemini API error: {message}", code="overloaded")
        raise ProviderError(f"Gemini API error: {message}")

    try:
        return result['candidates'][0]['content']['parts'][0]['text']
    except (KeyError, IndexError, TypeError):
        raise ProviderError("The model did not generate a response.", code="empty_response")


# ============================================================
# OpenAI-compatible (Groq, DeepSeek, OpenRouter, local servers)
# ============================================================

def _openai_headers(provider: str, credentials: Dict[str, Any], api_key: str = "") -> Dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    if provider == "openrouter":
        headers["HTTP-Referer"] = credentials.get("referer", "https://jarloc.app")
        headers["X-Title"] = credentials.get("title", "JarLoc")
    return headers


def discover_openai_compatible_models(provider: str, credentials: Dict[str, Any]) -> List[str]:
    """
    List models of an OpenAI-compatible host.

    Some hosts reject /models for keys that can still chat, so any failure other
    than auth or connectivity falls back to the configured default model.
    """
    api_key = _require_api_key(credentials, provider)
    api_url = credentials.get('api_url', '').rstrip('/')
    default_model = credentials.get('default_model', '')

    try:
        data = _request_json(
            provider, credentials, "GET", f"{api_url}/models",
            headers=_openai_headers(provider, credentials, api_key),
        )
    except (AuthError, ConnectivityError):
        raise
    except ProviderError as e:
        logger.warning(f"Error fetching models for {provider}: {e}")
        return [default_model] if default_model else []

    if isinstance(data, dict) and isinstance(data.get("data"), list):
        return sorted(m["id"] for m in data["data"] if isinstance(m, dict) and m.get("id"))
    return [default_model] if default_model else []


def discover_local_models(credentials: Dict[str, Any]) -> List[str]:
    """List models served by a local OpenAI-compatible server."""
    api_url = credentials.get('api_url', 'http://localhost:11434/v1').rstrip('/')
    data = _request_json("Local LLM", credentials, "GET", f"{api_url}/models")

    if isinstance(data, dict) and isinstance(data.get("data"), list):
        return sorted(m["id"] for m in data["data"] if isinstance(m, dict) and m.get("id"))
    raise ProviderError("Unknown response format from the local server.", code="unknown_format")


def call_openai_compatible_api(
    provider: str,
    credentials: Dict[str, Any],
    model: str,
    prompt: str,
    system_message: str,
    temperature: float = 0.1,
    json_mode: bool = True,
) -> str:
    """Call a chat/completions endpoint and return the text of the first choice."""
    api_key = _require_api_key(credentials, provider) if provider != "local" else ""
    api_url = credentials.get('api_url', '').rstrip('/')

    body = {
        "model": model,
        "messages": [
            {"role": "system", "content": system_message},
            {"role": "user", "content": prompt},
        ],
        "temperature": temperature,
    }
    if json_mode:
        body["response_format"] = {"type": "json_object"}

    logger.debug(f"Calling {provider} API (model: {model}, url: {api_url})...")
    result = _request_json(
        provider, credentials, "POST", f"{api_url}/chat/completions",
        headers=_openai_headers(provider, credentials, api_key), json=body,
    )

    try:
        content = result['choices'][0]['message']['content']
    except (KeyError, IndexError, TypeError):
        content = None
    if not content:
        raise ProviderError(f"{provider} did not generate a response.", code="empty_response")

    logger.debug(f"Received {len(content)} chars from {provider}")
    return content
