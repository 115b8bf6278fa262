"""
Lenient JSON parsing for provider responses.

Models frequently wrap JSON in markdown fences, add a sentence around it or
stop before the final closing brace. Parsing tries, in order:
1. Strict JSON after stripping fences
2. JSON5 (trailing commas, single quotes, comments)
3. JSON5 with a closing brace appended
4. Bracket-matched extraction of the first object/array
"""

import json
import re
from typing import Any, Optional

import json5

from jarloc.ai.exceptions import MalformedResponseError, MalformedInputError
from jarloc.logger import get_logger

logger = get_logger(__name__)

_FENCE_START = re.compile(r'^```(?:json)?\s*')
_FENCE_END = re.compile(r'```$')


def strip_markdown_fences(text: str) -> str:
    """Remove a leading ```json / ``` fence and a trailing ``` fence."""
    text = text.strip()
    text = _FENCE_START.sub('', text)
    text = _FENCE_END.sub('', text)
    return text.strip()


def _match_brackets(text: str, opening: str, closing: str) -> Optional[str]:
    """
    Extract the first balanced `opening ... closing` span, ignoring brackets
    inside string literals.
    """
    depth = 0
    start = -1
    in_string = False
    escape_next = False

    for i, char in enumerate(text):
        if escape_next:
            escape_next = False
            continue

        if char == '\\':
            escape_next = True
            continue

        if char == '"':
            in_string = not in_string
            continue

        if in_string:
            continue

        if char == opening:
            if depth == 0:
                start = i
            depth += 1
        elif char == closing and depth:
            depth -= 1
            if depth == 0 and start >= 0:
                return text[start:i + 1]

    return None


def match_json_object(text: str) -> Optional[str]:
    """Extract a JSON object from mixed text using bracket matching."""
    if not text:
        return None
    return _match_brackets(text, '{', '}')


def match_json_array(text: str) -> Optional[str]:
    """Extract a JSON array from mixed text using bracket matching."""
    if not text:
        return None
    return _match_brackets(text, '[', ']')


def _try_parse(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    return json5.loads(text)


def parse_json_response(text: str) -> Any:
    """
    Parse a provider response into a JSON value.

    Raises:
        MalformedResponseError: if every strategy fails
    """
    if not text or not text.strip():
        raise MalformedResponseError("Empty response from provider")

    clean_text = strip_markdown_fences(text)

    try:
        return _try_parse(clean_text)
    except ValueError:
        pass

    if not clean_text.endswith('}'):
        try:
            result = json5.loads(clean_text + '}')
            logger.debug("Parsed response after appending a closing brace")
            return result
        except ValueError:
            pass

    for extracted in (match_json_object(clean_text), match_json_array(clean_text)):
        if extracted:
            try:
                return _try_parse(extracted)
            except ValueError:
                continue

    logger.warning(f"Could not parse provider response: {clean_text[:200]}")
    raise MalformedResponseError(
        "Provider returned text that is not valid JSON",
        code="malformed_response",
        details={"preview": clean_text[:500]},
    )


def parse_lang_file(content: str, path: str = "") -> Any:
    """
    Parse a language file from an archive. Minecraft tolerates comments and
    trailing commas in some packs, so JSON5 is the fallback.

    Raises:
        MalformedInputError: if the content is neither JSON nor JSON5
    """
    try:
        return _try_parse(content)
    except ValueError as e:
        raise MalformedInputError(
            f"Language file {path or '<memory>'} is not valid JSON: {e}",
            code="malformed_input",
            details={"path": path},
        )
