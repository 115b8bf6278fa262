"""
Resource pack generation.

Builds the zip files handed back to the user:
- a resource pack for one translated mod
- a modpack overlay (rewritten quest chapters + KubeJS lang file)
- the merged download of a whole batch, optionally on top of base packs
"""

import json
import re
from pathlib import PurePosixPath
from typing import Any, Dict, List, Optional, Tuple

import jarloc.language_codes as lc
from jarloc.ai.exceptions import ArchiveError
from jarloc.config import DEFAULT_CONFIG
from jarloc.logger import get_logger
from jarloc.packaging.archive import ZipArchive

logger = get_logger(__name__)

PACK_META_PATH = "pack.mcmeta"
FALLBACK_LANG_DIR = "assets/translated_mod/lang"
MODPACK_LANG_DIR = "kubejs/assets/kubejs/lang"
DEFAULT_PACK_FORMAT = DEFAULT_CONFIG["translation"]["pack_format"]


def build_pack_meta(description: str, pack_format: int = DEFAULT_PACK_FORMAT) -> str:
    return json.dumps({
        "pack": {
            "pack_format": pack_format,
            "description": description,
        }
    }, indent=2, ensure_ascii=False)


def serialize_translation(translation: Any) -> str:
    return json.dumps(translation, indent=2, ensure_ascii=False)


def resolve_output_lang_path(source_lang_path: Optional[str], target_language: str) -> str:
    """
    Where the translated language file goes.

    Keeps the source file's directory (`assets/<namespace>/lang/`) when the
    path has at least three segments including `lang`.

    Examples:
        >>> resolve_output_lang_path('assets/create/lang/en_us.json', 'es')
        'assets/create/lang/es_es.json'
        >>> resolve_output_lang_path(None, 'de')
        'assets/translated_mod/lang/de_de.json'
    """
    file_name = lc.get_language_file_name(target_language)
    if source_lang_path:
        parts = source_lang_path.split("/")
        if len(parts) >= 3 and "lang" in parts:
            parts[-1] = file_name
            return "/".join(parts)
    return f"{FALLBACK_LANG_DIR}/{file_name}"


def modpack_lang_path(target_language: str) -> str:
    return f"{MODPACK_LANG_DIR}/{lc.get_language_file_name(target_language)}"


def build_mod_pack(
    source_lang_path: Optional[str],
    translation: Any,
    target_language: str,
    mod_name: str = "",
    pack_format: int = DEFAULT_PACK_FORMAT,
) -> bytes:
    """Resource pack holding the translated language file of one mod."""
    archive = ZipArchive(name=mod_name)
    archive.write_entry(
        resolve_output_lang_path(source_lang_path, target_language),
        serialize_translation(translation),
    )
    archive.write_entry(
        PACK_META_PATH,
        build_pack_meta(f"AI translation ({target_language}) by JarLoc: {mod_name}", pack_format),
    )
    return archive.generate()


def build_modpack_pack(
    overrides: Dict[str, str],
    translation: Any,
    target_language: str,
    pack_format: int = DEFAULT_PACK_FORMAT,
) -> bytes:
    """Overlay for a modpack: rewritten chapters at their paths plus the lang file."""
    archive = ZipArchive(name="modpack")
    for path, content in overrides.items():
        archive.write_entry(path, content)
    archive.write_entry(modpack_lang_path(target_language), serialize_translation(translation))
    archive.write_entry(
        PACK_META_PATH,
        build_pack_meta(f"Modpack translation ({target_language}) by JarLoc", pack_format),
    )
    return archive.generate()


def merge_packs(
    packages: List[Tuple[str, bytes]],
    target_language: str,
    base_packs: Optional[List[Tuple[str, bytes]]] = None,
    pack_format: int = DEFAULT_PACK_FORMAT,
) -> Tuple[Optional[bytes], List[str]]:
    """
    Merge base packs and translated packages into one resource pack.

    Base packs go in first so translations override them. Each package's own
    pack.mcmeta is skipped and replaced by one unified file.

    Args:
        packages: (name, zip bytes) of each translated item
        target_language: Target language code
        base_packs: (name, zip bytes) of existing packs to merge under the result

    Returns:
        Tuple of (zip bytes or None if nothing was merged, list of error messages)
    """
    master = ZipArchive(name="merged")
    errors: List[str] = []
    merged_bases = 0
    merged_items = 0

    for name, data in base_packs or []:
        try:
            with ZipArchive.from_bytes(data, name=name) as pack:
                for path in pack.list_entries():
                    master.write_entry(path, pack.read_bytes(path))
            merged_bases += 1
        except ArchiveError as e:
            logger.error(f"Error merging base pack {name}: {e}")
            errors.append(f"Could not read base pack {name}")

    for name, data in packages:
        try:
            with ZipArchive.from_bytes(data, name=name) as pack:
                for path in pack.list_entries():
                    if path == PACK_META_PATH:
                        continue
                    master.write_entry(path, pack.read_bytes(path))
            merged_items += 1
        except ArchiveError as e:
            logger.error(f"Error merging {name}: {e}")
            errors.append(f"Could not merge {name}")

    if merged_items == 0 and merged_bases == 0:
        return None, errors

    master.write_entry(
        PACK_META_PATH,
        build_pack_meta(
            f"Merged pack ({target_language}) by JarLoc - {merged_bases} bases + {merged_items} translations",
            pack_format,
        ),
    )
    logger.info(f"Merged {merged_bases} base packs and {merged_items} translations")
    return master.generate(), errors


def download_name(source_name: str, target_language: str, modpack: bool = False) -> str:
    """
    File name offered for a download.

    Examples:
        >>> download_name('create-1.20.jar', 'es')
        'JarLoc_create-1.20_ES.zip'
    """
    if modpack:
        return f"JarLoc_Modpack_{target_language.upper()}.zip"
    stem = re.sub(r"\.(jar|zip)$", "", PurePosixPath(source_name).name)
    return f"JarLoc_{stem}_{target_language.upper()}.zip"
