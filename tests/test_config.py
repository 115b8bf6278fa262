import json

import jarloc.config as config


def test_load_config_without_file_returns_defaults(_isolated_config):
    loaded = config.load_config()
    assert loaded == config.DEFAULT_CONFIG
    loaded["gemini"]["api_key"] = "changed"
    assert config.DEFAULT_CONFIG["gemini"]["api_key"] == ""


def test_initialize_app_creates_default_file(_isolated_config):
    config.initialize_app()
    stored = json.loads(config.CONFIG_FILE.read_text(encoding="utf-8"))
    assert stored["translation"]["chunk_size"] == 25
    assert stored["translation"]["large_file_threshold"] == 15000


def test_partial_file_is_merged_over_defaults(_isolated_config):
    config.save_config({"target_language": "de", "translation": {"chunk_size": 5}})

    loaded = config.load_config()

    assert loaded["target_language"] == "de"
    assert loaded["translation"]["chunk_size"] == 5
    assert loaded["translation"]["retry_delay"] == 2.0
    assert loaded["gemini"]["api_url"].startswith("https://")


def test_corrupt_file_falls_back_to_defaults(_isolated_config):
    _isolated_config.mkdir(parents=True, exist_ok=True)
    config.CONFIG_FILE.write_text("{ not json", encoding="utf-8")
    assert config.load_config() == config.DEFAULT_CONFIG


def test_get_translation_settings_fills_defaults():
    settings = config.get_translation_settings({"translation": {"max_retries": 7}})
    assert settings["max_retries"] == 7
    assert settings["pause_poll_interval"] == 0.5
    assert settings["courtesy_delay"] == 1.0


def test_get_prompt_has_placeholders():
    prompt = config.get_prompt()["prompt"]
    for field in ("{target_language_code}", "{target_language_name}", "{payload}"):
        assert field in prompt
