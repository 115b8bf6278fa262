import copy
import io
import json
import zipfile

import pytest

import jarloc.ai.providers as providers
from jarloc.config import DEFAULT_CONFIG
from jarloc.web import create_app
from jarloc.web import tasks
from jarloc.translation.orchestrator import STATUS_DONE


def _mod_jar(lang) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        zf.writestr("assets/demo/lang/en_us.json", json.dumps(lang))
    return buffer.getvalue()


class _EchoProvider:
    def translate(self, model, payload_text, target_language):
        return {key: f"[{target_language}] {value}" for key, value in json.loads(payload_text).items()}


@pytest.fixture
def session():
    session = tasks.reset_session(copy.deepcopy(DEFAULT_CONFIG))
    session.orchestrator.courtesy_delay = 0
    session.orchestrator.poll_interval = 0.01
    yield session
    session.orchestrator.stop()
    session.join(timeout=5)


@pytest.fixture
def client(session):
    app = create_app()
    app.config["TESTING"] = True
    return app.test_client()


def _upload(client, name="demo.jar", data=None):
    data = data if data is not None else _mod_jar({"item.demo.gem": "Gem"})
    return client.post(
        "/api/files",
        data={"files": (io.BytesIO(data), name)},
        content_type="multipart/form-data",
    )


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json()["status"] == "ok"


def test_connect_lists_models_and_selects_default(client, session, monkeypatch):
    monkeypatch.setattr(providers, "discover_gemini_models", lambda credentials: ["gemini-2.0-flash", "other"])

    response = client.post("/api/connect", json={"provider": "gemini", "api_key": "secret"})

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["models"] == ["gemini-2.0-flash", "other"]
    assert payload["model"] == "gemini-2.0-flash"
    assert session.orchestrator.provider is session.service


def test_connect_without_key_is_rejected(client):
    response = client.post("/api/connect", json={"provider": "groq"})
    assert response.status_code == 400
    assert response.get_json()["code"] == "ai_config_missing"


def test_upload_skips_unsupported_files(client):
    response = _upload(client, name="notes.txt", data=b"hello")
    payload = response.get_json()
    assert payload["jobs"] == []
    assert payload["skipped"] == ["notes.txt"]


def test_start_requires_connection(client):
    _upload(client)
    response = client.post("/api/translate", json={})
    assert response.status_code == 400
    assert response.get_json()["code"] == "not_connected"


def test_full_translation_flow(client, session):
    session.orchestrator.provider = _EchoProvider()
    session.orchestrator.set_model("echo")

    assert _upload(client).status_code == 200
    lang_files = client.get("/api/files/0/lang-files").get_json()
    assert lang_files["source"] == "assets/demo/lang/en_us.json"

    response = client.put("/api/run-settings", json={"target_language": "fr"})
    assert response.get_json()["target_language"] == "fr"

    response = client.post("/api/translate", json={})
    assert response.status_code == 202
    session.join(timeout=5)

    status = client.get("/api/status").get_json()
    assert status["state"] == "idle"
    assert status["jobs"][0]["status"] == STATUS_DONE
    assert status["next"] == len(status["events"])
    later = client.get(f"/api/status?since={status['next']}").get_json()
    assert later["events"] == []

    download = client.get("/api/files/0/download")
    assert download.status_code == 200
    assert "JarLoc_demo_FR.zip" in download.headers["Content-Disposition"]
    with zipfile.ZipFile(io.BytesIO(download.data)) as zf:
        assert json.loads(zf.read("assets/demo/lang/fr_fr.json")) == {"item.demo.gem": "[fr] Gem"}

    merged = client.get("/api/download")
    assert merged.status_code == 200

    assert client.delete("/api/files").status_code == 200
    assert client.get("/api/status").get_json()["jobs"] == []


def test_controls_when_idle(client):
    assert client.post("/api/translate/pause").status_code == 400
    assert client.post("/api/translate/resume").status_code == 400
    assert client.post("/api/translate/stop").status_code == 400


def test_download_before_translation(client):
    _upload(client)
    assert client.get("/api/files/0/download").status_code == 404
    assert client.get("/api/download").status_code == 404


def test_settings_roundtrip_masks_keys(client):
    response = client.put("/api/settings/", json={"config": {
        "ai_provider": "groq",
        "groq": {"api_key": "gsk_secret"},
        "translation": {"chunk_size": 10},
    }})
    assert response.status_code == 200

    settings = client.get("/api/settings/").get_json()["config"]
    assert settings["ai_provider"] == "groq"
    assert settings["groq"]["api_key"] == "********"
    assert settings["translation"]["chunk_size"] == 10
    assert tasks.get_session().orchestrator.chunk_size == 10


def test_settings_validation(client):
    response = client.put("/api/settings/", json={"config": {"log_mode": "verbose"}})
    assert response.status_code == 400
    response = client.put("/api/settings/", json={"config": {"translation": {"chunk_size": 0}}})
    assert response.status_code == 400


def test_translate_content_route(client, session):
    session.orchestrator.provider = _EchoProvider()
    session.orchestrator.set_model("echo")

    response = client.post("/api/translate/content", json={
        "content": '{"a": "Hello", "b": "World"}',
        "existing": {"a": "Hola"},
    })

    assert response.status_code == 200
    assert response.get_json()["result"] == {"a": "Hola", "b": "[es] World"}


def test_translate_content_route_rejects_bad_input(client, session):
    assert client.post("/api/translate/content", json={}).status_code == 400

    response = client.post("/api/translate/content", json={"content": "{}"})
    assert response.status_code == 400
    assert response.get_json()["code"] == "not_connected"

    session.orchestrator.provider = _EchoProvider()
    session.orchestrator.set_model("echo")
    response = client.post("/api/translate/content", json={"content": "{{{ nope"})
    assert response.status_code == 400
    assert response.get_json()["code"] == "malformed_input"
