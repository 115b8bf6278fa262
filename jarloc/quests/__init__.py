"""FTB Quests text extraction."""

from jarloc.quests.snbt import SnbtResult, generate_hash, process_snbt
from jarloc.quests.modpack import ModpackExtraction, process_modpack
