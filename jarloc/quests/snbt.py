"""
FTB Quests SNBT text extraction.

Quest chapters are SNBT documents where titles, subtitles and description
lines are literal strings. Each literal is replaced by a `{quest...}` lang key
so the text can be translated through a regular language file, and the
original text is returned as a key -> text table.
"""

import re
from dataclasses import dataclass, field
from typing import Dict

# title: "Text"  or  subtitle: "Text"
_SIMPLE_FIELD_RE = re.compile(r'(title|subtitle)\s*:\s*"((?:[^"\\]|\\.)*)"')
# description: [ "Line 1", "Line 2" ]
_DESCRIPTION_BLOCK_RE = re.compile(r'description\s*:\s*\[([\s\S]*?)\]')
# Matches "" too, so an empty line never pairs with the next line's quote
_STRING_RE = re.compile(r'"((?:[^"\\]|\\.)*)"')


@dataclass
class SnbtResult:
    """Rewritten document plus the extracted lang keys."""
    snbt: str
    keys: Dict[str, str] = field(default_factory=dict)


def generate_hash(text: str) -> str:
    """
    Short deterministic id for a text.

    31-multiplier rolling hash over UTF-16 code units, wrapped to a signed
    32-bit integer; the hex of its absolute value, cut to 8 characters.

    Examples:
        >>> generate_hash("a")
        '61'
        >>> generate_hash("ab")
        'c21'
    """
    value = 0
    data = text.encode("utf-16-le")
    for i in range(0, len(data), 2):
        code_unit = data[i] | (data[i + 1] << 8)
        value = ((value << 5) - value + code_unit) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return format(abs(value), "x")[:8]


def is_placeholder(text: str) -> bool:
    return text.startswith("{") and text.endswith("}")


def make_quest_key(chapter_name: str, field_name: str, text: str) -> str:
    return f"quest.{chapter_name}.{field_name}.{generate_hash(text)}"


def process_snbt(content: str, chapter_name: str) -> SnbtResult:
    """
    Extract quest text from one chapter and rewrite it to lang keys.

    Values already in `{...}` form and blank values are left untouched, so
    running this on its own output extracts nothing.
    """
    translations: Dict[str, str] = {}

    def replace_simple(match: re.Match) -> str:
        field_name, text = match.group(1), match.group(2)
        if is_placeholder(text) or not text.strip():
            return match.group(0)

        lang_key = make_quest_key(chapter_name, field_name, text)
        translations[lang_key] = text
        return f'{field_name}: "{{{lang_key}}}"'

    def replace_description(match: re.Match) -> str:
        def replace_line(str_match: re.Match) -> str:
            text = str_match.group(1)
            if is_placeholder(text) or not text.strip():
                return str_match.group(0)

            lang_key = make_quest_key(chapter_name, "desc", text)
            translations[lang_key] = text
            return f'"{{{lang_key}}}"'

        new_inner = _STRING_RE.sub(replace_line, match.group(1))
        if new_inner == match.group(1):
            return match.group(0)
        return f"description: [{new_inner}]"

    modified = _SIMPLE_FIELD_RE.sub(replace_simple, content)
    modified = _DESCRIPTION_BLOCK_RE.sub(replace_description, modified)

    return SnbtResult(snbt=modified, keys=translations)
