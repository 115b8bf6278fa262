"""
Language code mappings and utilities.

Minecraft Language File Naming Convention:
Language files live at `assets/<namespace>/lang/<code>.json` where `<code>` is
lowercase `language_region`. A bare two-letter target code is doubled to build
the file code. For example:
- Target 'es' maps to filename 'es_es.json'
- Target 'pt_br' maps to filename 'pt_br.json'
The get_language_file_name() function handles this mapping automatically.
"""

from typing import Optional, Dict

SOURCE_LANGUAGE_CODE = 'en_us'

# ISO 639-1 language codes (2-letter) commonly used as translation targets
LANGUAGE_NAMES = {
    'ar': 'Arabic',
    'cs': 'Czech',
    'da': 'Danish',
    'de': 'German',
    'el': 'Greek',
    'en': 'English',
    'es': 'Spanish',
    'fi': 'Finnish',
    'fr': 'French',
    'he': 'Hebrew',
    'hu': 'Hungarian',
    'id': 'Indonesian',
    'it': 'Italian',
    'ja': 'Japanese',
    'ko': 'Korean',
    'nl': 'Dutch',
    'no': 'Norwegian',
    'pl': 'Polish',
    'pt': 'Portuguese',
    'ro': 'Romanian',
    'ru': 'Russian',
    'sv': 'Swedish',
    'th': 'Thai',
    'tr': 'Turkish',
    'uk': 'Ukrainian',
    'vi': 'Vietnamese',
    'zh': 'Chinese',
}

# Game locale codes with a region that differs from the language
REGIONAL_NAMES = {
    'es_mx': 'Spanish (Mexico)',
    'es_ar': 'Spanish (Argentina)',
    'pt_br': 'Portuguese (Brazil)',
    'zh_cn': 'Chinese (Simplified)',
    'zh_tw': 'Chinese (Traditional)',
    'en_gb': 'English (United Kingdom)',
}


def get_lang_file_code(target_language: str) -> str:
    """
    Get the locale code used in language file names.

    Examples:
        >>> get_lang_file_code('es')
        'es_es'
        >>> get_lang_file_code('pt_br')
        'pt_br'
    """
    if len(target_language) == 2:
        return f"{target_language}_{target_language}"
    return target_language


def get_language_file_name(target_language: str) -> str:
    """
    Get the expected filename for a target language.

    Examples:
        >>> get_language_file_name('fr')
        'fr_fr.json'
    """
    return f"{get_lang_file_code(target_language)}.json"


def get_language_name(code: str) -> Optional[str]:
    """
    Get the display name for a language code.

    Returns:
        Language name or None if unknown
    """
    if not code:
        return None
    normalized = code.lower().replace('-', '_')
    if normalized in REGIONAL_NAMES:
        return REGIONAL_NAMES[normalized]
    return LANGUAGE_NAMES.get(normalized.split('_')[0])


def is_lang_file(path: str) -> bool:
    """Whether an archive entry is a JSON language file."""
    return '/lang/' in path and path.endswith('.json')


def get_all_language_codes() -> Dict[str, str]:
    """Get all known language codes mapped to their names."""
    codes = dict(LANGUAGE_NAMES)
    codes.update(REGIONAL_NAMES)
    return codes
