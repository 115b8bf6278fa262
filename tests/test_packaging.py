import io
import json
import zipfile

import pytest

import jarloc.language_codes as lc
from jarloc.ai.exceptions import ArchiveError
from jarloc.packaging.archive import ZipArchive
from jarloc.project import generator, scanner
from jarloc.quests.modpack import process_modpack
from jarloc.translation.events import EventLog


def _zip(entries) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for path, content in entries.items():
            zf.writestr(path, content)
    return buffer.getvalue()


def _read_zip(data: bytes):
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        return {name: zf.read(name).decode("utf-8") for name in zf.namelist()}


# ---------------------------------------------------------------- archive

def test_archive_rejects_non_zip_data():
    with pytest.raises(ArchiveError) as exc_info:
        ZipArchive.from_bytes(b"plain text", name="mod.jar")
    assert exc_info.value.code == "invalid_archive"
    assert "mod.jar" in str(exc_info.value)


def test_archive_lists_files_and_reads_text_with_bom():
    data = _zip({
        "assets/": "",
        "assets/mod/lang/en_us.json": "\ufeff{\"a\": \"b\"}".encode("utf-8"),
    })
    with ZipArchive.from_bytes(data) as archive:
        assert archive.list_entries() == ["assets/mod/lang/en_us.json"]
        assert "assets/mod/lang/en_us.json" in archive
        assert "missing.json" not in archive
        assert archive.read_entry("assets/mod/lang/en_us.json") == '{"a": "b"}'


def test_archive_written_entries_override_and_generate():
    archive = ZipArchive(_zip({"a.txt": "old", "b.txt": "keep"}))
    archive.write_entry("a.txt", "new")
    archive.write_entry("c.bin", b"\x00\x01")

    files = zipfile.ZipFile(io.BytesIO(archive.generate()))
    assert sorted(files.namelist()) == ["a.txt", "b.txt", "c.bin"]
    assert files.read("a.txt") == b"new"
    assert files.read("c.bin") == b"\x00\x01"


# ---------------------------------------------------------------- scanner

def test_find_source_lang_path_prefers_last_en_us():
    archive = ZipArchive(_zip({
        "assets/a/lang/en_us.json": "{}",
        "assets/a/lang/de_de.json": "{}",
        "assets/b/lang/en_us.json": "{}",
    }))
    assert scanner.find_source_lang_path(archive) == "assets/b/lang/en_us.json"


def test_find_source_lang_path_falls_back_to_any_lang_file():
    archive = ZipArchive(_zip({"assets/a/lang/ru_ru.json": "{}", "assets/a/lang/readme.txt": ""}))
    assert scanner.list_lang_files(archive) == ["assets/a/lang/ru_ru.json"]
    assert scanner.find_source_lang_path(archive) == "assets/a/lang/ru_ru.json"


def test_find_source_lang_path_none_without_lang_files():
    archive = ZipArchive(_zip({"META-INF/MANIFEST.MF": ""}))
    assert scanner.find_source_lang_path(archive) is None


def test_existing_translation_matches_file_name_exactly():
    archive = ZipArchive(_zip({
        "assets/a/lang/en_us.json": "{}",
        "assets/a/lang/les_es.json": json.dumps({"x": "wrong"}),
        "assets/a/lang/es_es.json": json.dumps({"x": "right"}),
    }))
    assert scanner.find_existing_translation_path(archive, "es") == "assets/a/lang/es_es.json"
    assert scanner.get_existing_translation(archive, "es") == {"x": "right"}


def test_existing_translation_short_code_fallback():
    archive = ZipArchive(_zip({"assets/a/lang/es.json": json.dumps({"x": "y"})}))
    assert scanner.get_existing_translation(archive, "es") == {"x": "y"}


def test_unreadable_existing_translation_is_ignored():
    archive = ZipArchive(_zip({"assets/a/lang/es_es.json": "not json"}))
    assert scanner.get_existing_translation(archive, "es") is None

    archive = ZipArchive(_zip({"assets/a/lang/es_es.json": "[1, 2]"}))
    assert scanner.get_existing_translation(archive, "es") is None


def test_is_ftb_modpack():
    assert scanner.is_ftb_modpack(ZipArchive(_zip({
        "overrides/config/ftbquests/quests/chapters/a.snbt": "{}",
    })))
    assert not scanner.is_ftb_modpack(ZipArchive(_zip({"assets/a/lang/en_us.json": "{}"})))


# ---------------------------------------------------------------- modpack

def test_process_modpack_collects_chapters_with_text():
    archive = ZipArchive(_zip({
        "config/ftbquests/quests/chapters/getting_started.snbt": 'title: "Start"',
        "config/ftbquests/quests/chapters/empty.snbt": "{ }",
        "config/ftbquests/quests/chapter_groups.snbt": 'title: "Ignored"',
    }))

    sink = EventLog()
    extraction = process_modpack(archive, sink=sink)

    assert extraction.count == 1
    assert list(extraction.overrides) == ["config/ftbquests/quests/chapters/getting_started.snbt"]
    assert list(extraction.lang_json.values()) == ["Start"]
    assert list(extraction.lang_json)[0].startswith("quest.getting_started.title.")
    assert sink.messages() == ["Processed: getting_started (1 texts)"]


# ---------------------------------------------------------------- generator

@pytest.mark.parametrize("source, target, expected", [
    ("assets/create/lang/en_us.json", "es", "assets/create/lang/es_es.json"),
    ("assets/create/lang/en_us.json", "pt_br", "assets/create/lang/pt_br.json"),
    ("en_us.json", "de", "assets/translated_mod/lang/de_de.json"),
    (None, "fr", "assets/translated_mod/lang/fr_fr.json"),
])
def test_resolve_output_lang_path(source, target, expected):
    assert generator.resolve_output_lang_path(source, target) == expected


def test_build_mod_pack_contents():
    data = generator.build_mod_pack(
        "assets/create/lang/en_us.json", {"a": "¡Hola!"}, "es", "create.jar",
    )
    files = zipfile.ZipFile(io.BytesIO(data))

    assert json.loads(files.read("assets/create/lang/es_es.json").decode("utf-8")) == {"a": "¡Hola!"}
    meta = json.loads(files.read("pack.mcmeta"))
    assert meta["pack"]["pack_format"] == 15
    assert "create.jar" in meta["pack"]["description"]
    assert sorted(files.namelist()) == ["assets/create/lang/es_es.json", "pack.mcmeta"]


def test_build_modpack_pack_contents():
    files = _read_zip(generator.build_modpack_pack(
        {"config/ftbquests/quests/chapters/a.snbt": 'title: "{quest.a.title.1}"'},
        {"quest.a.title.1": "Hola"},
        "es",
    ))
    assert generator.modpack_lang_path("es") == "kubejs/assets/kubejs/lang/es_es.json"
    assert json.loads(files["kubejs/assets/kubejs/lang/es_es.json"]) == {"quest.a.title.1": "Hola"}
    assert "config/ftbquests/quests/chapters/a.snbt" in files
    assert "pack.mcmeta" in files


def test_merge_packs_reports_unreadable_packages():
    good = generator.build_mod_pack("assets/a/lang/en_us.json", {"a": "b"}, "es", "a.jar")
    data, errors = generator.merge_packs([("a.jar", good), ("bad.jar", b"nope")], "es")

    files = _read_zip(data)
    assert "assets/a/lang/es_es.json" in files
    assert errors == ["Could not merge bad.jar"]


def test_merge_packs_with_nothing_returns_none():
    assert generator.merge_packs([], "es") == (None, [])


def test_download_name():
    assert generator.download_name("create-1.20.jar", "es") == "JarLoc_create-1.20_ES.zip"
    assert generator.download_name("pack.zip", "pt_br", modpack=True) == "JarLoc_Modpack_PT_BR.zip"


def test_language_file_name():
    assert lc.get_language_file_name("es") == "es_es.json"
    assert lc.get_language_file_name("zh_cn") == "zh_cn.json"
    assert lc.is_lang_file("assets/a/lang/en_us.json")
    assert not lc.is_lang_file("assets/a/lang/en_us.lang")
