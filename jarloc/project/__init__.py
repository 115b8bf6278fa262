"""
Project module - Archive inspection and resource pack output

This module provides:
- scanner: language file and quest chapter detection
- generator: resource pack building and merging
"""

from jarloc.project.scanner import (
    is_ftb_modpack,
    list_lang_files,
    find_source_lang_path,
    get_existing_translation,
)

from jarloc.project.generator import (
    build_mod_pack,
    build_modpack_pack,
    merge_packs,
    download_name,
)
