"""
Incremental translation: only send the keys an existing translation lacks.
"""

from typing import Dict, Optional


def missing_keys(source: Dict[str, str], existing: Optional[Dict[str, str]]) -> Dict[str, str]:
    """
    Return the part of `source` whose keys are absent from `existing`.

    Matching is by exact key; values are never compared.

    Example:
        >>> missing_keys({"a": "Hello", "b": "World"}, {"a": "Hola"})
        {'b': 'World'}
    """
    if not existing:
        return dict(source)
    return {key: value for key, value in source.items() if key not in existing}


def merge_translation(existing: Optional[Dict[str, str]], translated: Dict[str, str]) -> Dict[str, str]:
    """Lay newly translated keys over the existing translation without mutating it."""
    merged = dict(existing or {})
    merged.update(translated)
    return merged
