"""Translation API routes."""

from __future__ import annotations

import io
from typing import Any, Dict

from flask import Blueprint, jsonify, request, send_file

import jarloc.language_codes as lc
from jarloc.ai.exceptions import ArchiveError, TranslationError, TranslationStopped
from jarloc.logger import get_logger
from jarloc.packaging.archive import ZipArchive
from jarloc.project.generator import download_name
from jarloc.project.scanner import find_source_lang_path, list_lang_files
from jarloc.web.tasks import get_session

translation_bp = Blueprint("translation", __name__)
logger = get_logger(__name__)

ALLOWED_EXTENSIONS = (".jar", ".zip")


def _error_response(e: TranslationError, status: int = 400):
    payload = {"error": str(e), "code": e.code or "translation_error"}
    if e.details:
        payload["details"] = e.details
    return jsonify(payload), status


@translation_bp.get("/languages")
def list_languages():
    return jsonify({"languages": lc.get_all_language_codes()})


@translation_bp.post("/connect")
def connect_provider():
    """Connect to a provider and list its models."""
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    provider = data.get("provider")
    if not provider:
        return jsonify({"error": "provider is required"}), 400

    session = get_session()
    try:
        models = session.connect(
            provider,
            api_key=data.get("api_key"),
            api_url=data.get("api_url"),
            save=bool(data.get("save", False)),
        )
    except TranslationError as e:
        logger.warning("Connection to %s failed: %s", provider, e)
        return _error_response(e)

    return jsonify({"provider": provider, "models": models, "model": session.orchestrator.settings.model})


@translation_bp.get("/models")
def list_models():
    session = get_session()
    return jsonify({"models": session.models, "model": session.orchestrator.settings.model})


@translation_bp.put("/run-settings")
def update_run_settings():
    """Change model or target language; a running job picks them up at the next chunk."""
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    session = get_session()
    orchestrator = session.orchestrator

    model = data.get("model")
    if model:
        if session.models and model not in session.models:
            return jsonify({"error": f"Unknown model: {model}"}), 400
        orchestrator.set_model(model)

    target_language = data.get("target_language")
    if target_language:
        if not isinstance(target_language, str) or not target_language.strip():
            return jsonify({"error": "Invalid target language"}), 400
        orchestrator.set_target_language(target_language.strip())

    return jsonify({
        "model": orchestrator.settings.model,
        "target_language": orchestrator.settings.target_language,
    })


@translation_bp.post("/files")
def upload_files():
    """Queue uploaded .jar/.zip files as translation jobs."""
    files = request.files.getlist("files")
    if not files:
        return jsonify({"error": "No files uploaded"}), 400

    session = get_session()
    skipped = []
    for storage in files:
        name = storage.filename or "upload.jar"
        if not name.lower().endswith(ALLOWED_EXTENSIONS):
            skipped.append(name)
            continue
        session.orchestrator.submit(name, storage.read())

    return jsonify({
        "jobs": [job.to_dict() for job in session.orchestrator.jobs],
        "skipped": skipped,
    })


@translation_bp.post("/base-packs")
def upload_base_packs():
    files = request.files.getlist("files")
    if not files:
        return jsonify({"error": "No files uploaded"}), 400

    session = get_session()
    for storage in files:
        session.base_packs.append((storage.filename or "base.zip", storage.read()))
    return jsonify({"base_packs": [name for name, _ in session.base_packs]})


@translation_bp.delete("/files")
def clear_files():
    try:
        get_session().clear()
    except TranslationError as e:
        return _error_response(e, 409)
    return jsonify({"status": "cleared"})


@translation_bp.get("/files/<int:index>/lang-files")
def list_job_lang_files(index: int):
    """List the language files of one uploaded archive."""
    jobs = get_session().orchestrator.jobs
    if index < 0 or index >= len(jobs):
        return jsonify({"error": "File not found"}), 404

    job = jobs[index]
    try:
        with ZipArchive.from_bytes(job.data, name=job.name) as archive:
            return jsonify({
                "lang_files": list_lang_files(archive),
                "source": find_source_lang_path(archive),
            })
    except ArchiveError as e:
        return _error_response(e)


@translation_bp.post("/translate")
def start_translation():
    """Start translating every queued file (single mode when only one)."""
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    session = get_session()
    try:
        started = session.start(lang_path=data.get("lang_path"))
    except TranslationError as e:
        return _error_response(e)

    if not started:
        return jsonify({"error": "A translation run is already in progress"}), 409
    return jsonify({"status": "started", "jobs": len(session.orchestrator.jobs)}), 202


@translation_bp.post("/translate/content")
def translate_content():
    """
    Translate a language file edited by hand.

    Body: {"content": "<JSON text>", "existing": {...}}. Only keys missing
    from `existing` are sent to the provider. Blocks until done; pause and
    stop work as for a file run.
    """
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    content = data.get("content")
    if not isinstance(content, str) or not content.strip():
        return jsonify({"error": "content is required"}), 400
    existing = data.get("existing")
    if existing is not None and not isinstance(existing, dict):
        return jsonify({"error": "existing must be a JSON object"}), 400

    try:
        result = get_session().translate_content(content, existing)
    except TranslationStopped as e:
        return _error_response(e, 409)
    except TranslationError as e:
        status = 409 if e.code == "busy" else 400
        return _error_response(e, status)
    except RuntimeError as e:
        # Lost the race against a run started meanwhile
        return jsonify({"error": str(e), "code": "busy"}), 409

    return jsonify({"result": result})


@translation_bp.post("/translate/pause")
def pause_translation():
    if get_session().orchestrator.pause():
        return jsonify({"state": "paused"})
    return jsonify({"error": "Nothing is running"}), 400


@translation_bp.post("/translate/resume")
def resume_translation():
    session = get_session()
    if session.resume():
        return jsonify({"state": session.orchestrator.state})
    return jsonify({"error": "Translation is not paused"}), 400


@translation_bp.post("/translate/stop")
def stop_translation():
    if get_session().orchestrator.stop():
        return jsonify({"state": "stopped"})
    return jsonify({"error": "Nothing is running"}), 400


@translation_bp.get("/status")
def get_status():
    """Return run state, per-file status and events after `since`."""
    try:
        since = max(int(request.args.get("since", 0)), 0)
    except ValueError:
        since = 0
    return jsonify(get_session().status(since))


@translation_bp.get("/files/<int:index>/download")
def download_job(index: int):
    session = get_session()
    jobs = session.orchestrator.jobs
    if index < 0 or index >= len(jobs) or jobs[index].package is None:
        return jsonify({"error": "No translation available for this file"}), 404

    job = jobs[index]
    return send_file(
        io.BytesIO(job.package),
        mimetype="application/zip",
        as_attachment=True,
        download_name=download_name(job.name, session.orchestrator.settings.target_language, job.is_modpack),
    )


@translation_bp.get("/download")
def download_merged():
    """Merge every finished translation (on top of base packs) into one pack."""
    session = get_session()
    orchestrator = session.orchestrator
    data = orchestrator.build_batch_download(session.base_packs)
    if data is None:
        return jsonify({"error": "Nothing to download yet"}), 404

    target_language = orchestrator.settings.target_language
    return send_file(
        io.BytesIO(data),
        mimetype="application/zip",
        as_attachment=True,
        download_name=f"JarLoc_Batch_{target_language.upper()}.zip",
    )
