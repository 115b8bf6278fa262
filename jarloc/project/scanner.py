"""
Archive scanner for detecting language files and quest chapters.

This module provides utilities to:
- Detect FTB Quests modpacks
- List language files inside a mod
- Pick the source (en_us) language file
- Load an existing translation for the target language
"""

from pathlib import PurePosixPath
from typing import Dict, List, Optional

import jarloc.language_codes as lc
from jarloc.ai.exceptions import MalformedInputError
from jarloc.logger import get_logger
from jarloc.translation.parsing import parse_lang_file

logger = get_logger(__name__)

QUEST_CHAPTERS_DIR = "config/ftbquests/quests/chapters/"


def is_ftb_modpack(archive) -> bool:
    """Whether the archive ships FTB Quests chapters."""
    return any(QUEST_CHAPTERS_DIR in path for path in archive.list_entries())


def list_quest_chapters(archive) -> List[str]:
    return [
        path for path in archive.list_entries()
        if QUEST_CHAPTERS_DIR in path and path.endswith(".snbt")
    ]


def list_lang_files(archive) -> List[str]:
    """All JSON language files in the archive."""
    return [path for path in archive.list_entries() if lc.is_lang_file(path)]


def find_source_lang_path(archive) -> Optional[str]:
    """
    Locate the language file to translate from.

    Prefers an `en_us` file; otherwise falls back to any language file.
    When several match, the last one in archive order is used.
    """
    lang_files = list_lang_files(archive)
    source_files = [path for path in lang_files if lc.SOURCE_LANGUAGE_CODE in path]
    candidates = source_files or lang_files
    if not candidates:
        return None
    return candidates[-1]


def _find_lang_file_named(lang_files: List[str], file_name: str) -> Optional[str]:
    matches = [path for path in lang_files if PurePosixPath(path).name.lower() == file_name]
    return matches[-1] if matches else None


def find_existing_translation_path(archive, target_language: str) -> Optional[str]:
    """Path of a translation already shipped for the target language, if any."""
    lang_files = list_lang_files(archive)
    path = _find_lang_file_named(lang_files, lc.get_language_file_name(target_language).lower())
    if path is None and len(target_language) == 2:
        path = _find_lang_file_named(lang_files, f"{target_language.lower()}.json")
    return path


def get_existing_translation(archive, target_language: str) -> Optional[Dict[str, str]]:
    """
    Load the translation the archive already ships for the target language.

    Unreadable files are logged and treated as absent.
    """
    path = find_existing_translation_path(archive, target_language)
    if path is None:
        return None

    try:
        existing = parse_lang_file(archive.read_entry(path), path)
    except MalformedInputError as e:
        logger.warning(f"Error reading existing translation: {e}")
        return None

    if not isinstance(existing, dict):
        logger.warning(f"Existing translation {path} is not a JSON object; ignoring it")
        return None

    logger.info(f"Found existing translation {path} ({len(existing)} keys)")
    return existing
