"""
Modpack quest extraction.

Walks every FTB Quests chapter in a modpack archive, rewrites its text to
lang keys and collects one combined key -> text table.
"""

from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Dict

from jarloc.logger import get_logger
from jarloc.project.scanner import list_quest_chapters
from jarloc.quests.snbt import process_snbt
from jarloc.translation.events import emit_log

logger = get_logger(__name__)

# Virtual path shown for the extracted quest text
QUEST_LANG_PATH = "ftbquests/lang/en_us.json"


@dataclass
class ModpackExtraction:
    """Result of extracting quest text from a modpack."""
    overrides: Dict[str, str] = field(default_factory=dict)  # path -> rewritten SNBT
    lang_json: Dict[str, str] = field(default_factory=dict)  # lang key -> source text
    count: int = 0  # chapters that produced at least one key


def process_modpack(archive, sink=None) -> ModpackExtraction:
    """
    Extract quest text from every chapter file in the archive.

    Each chapter that yields text is reported to `sink` (when given).
    """
    extraction = ModpackExtraction()

    for path in list_quest_chapters(archive):
        chapter_name = PurePosixPath(path).stem
        result = process_snbt(archive.read_entry(path), chapter_name)

        if not result.keys:
            logger.debug(f"No quest text in {path}")
            continue

        extraction.count += 1
        extraction.lang_json.update(result.keys)
        extraction.overrides[path] = result.snbt
        emit_log(sink, f"Processed: {chapter_name} ({len(result.keys)} texts)")

    logger.info(
        f"Quest extraction finished: {extraction.count} chapters, {len(extraction.lang_json)} texts"
    )
    return extraction
