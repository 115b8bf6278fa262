"""Settings management API routes."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

from flask import Blueprint, jsonify, request

import jarloc.config as config
from jarloc.config import BUILTIN_PROVIDERS, BUILTIN_PROVIDER_DISPLAY_NAMES
from jarloc.logger import get_logger, LOG_FILE, _clear_log_mode_cache
from jarloc.web.tasks import get_session, reset_session

settings_bp = Blueprint("settings", __name__)
logger = get_logger(__name__)

LOG_MODES = ("off", "info", "debug")
TOP_LEVEL_KEYS = ("ai_provider", "target_language", "log_mode")


@settings_bp.get("/")
def get_settings():
    """Return current configuration with API keys masked."""
    current_config = config.load_config()
    for provider in BUILTIN_PROVIDERS:
        provider_config = current_config.get(provider) or {}
        if provider_config.get("api_key"):
            provider_config["api_key"] = "********"

    return jsonify({
        "config": current_config,
        "meta": {
            "builtin_providers": [
                {"id": p, "name": BUILTIN_PROVIDER_DISPLAY_NAMES[p]}
                for p in BUILTIN_PROVIDERS
            ],
            "log_modes": list(LOG_MODES),
        },
    })


@settings_bp.put("/")
def update_settings():
    """Update system configuration."""
    data = request.get_json(silent=True)
    if not data or "config" not in data:
        return jsonify({"error": "Missing 'config' in request body"}), 400

    new_config = data["config"]
    validation_error = validate_config(new_config)
    if validation_error:
        return jsonify({"error": validation_error}), 400

    if get_session().is_running:
        return jsonify({"error": "Cannot change settings while a translation is running"}), 409

    current_config = config.load_config()

    # Merge provider sections so fields missing from the request survive
    for provider in BUILTIN_PROVIDERS:
        if isinstance(new_config.get(provider), dict):
            current_config[provider].update(new_config[provider])

    if isinstance(new_config.get("translation"), dict):
        current_config["translation"].update(new_config["translation"])

    for key in TOP_LEVEL_KEYS:
        if key in new_config:
            current_config[key] = new_config[key]

    try:
        config.save_config(current_config)
    except OSError:
        return jsonify({"error": "Failed to save settings"}), 500

    # New log mode and translation settings take effect immediately
    _clear_log_mode_cache()
    reset_session(current_config)

    logger.info("Settings updated successfully")
    return jsonify({"message": "Settings updated successfully"})


@settings_bp.delete("/logs")
def clear_logs():
    """Delete all log files to free up disk space."""
    log_file = Path(LOG_FILE)
    deleted_count = 0
    try:
        log_dir = log_file.parent
        if log_dir.exists():
            for log_path in log_dir.glob("*.log"):
                log_path.unlink()
                deleted_count += 1
    except OSError as e:
        logger.error(f"Failed to delete logs: {e}")
        return jsonify({"error": "Failed to delete logs"}), 500

    if deleted_count > 0:
        return jsonify({"message": f"Successfully deleted {deleted_count} log file(s)"})
    return jsonify({"message": "No log files found to delete"})


def validate_config(config_dict: Dict[str, Any]) -> str | None:
    """Validate configuration structure and return error message if invalid."""
    if not isinstance(config_dict, dict):
        return "Configuration must be an object"

    provider = config_dict.get("ai_provider")
    if provider is not None and provider not in BUILTIN_PROVIDERS:
        return f"Invalid AI provider: {provider}"

    log_mode = config_dict.get("log_mode")
    if log_mode is not None and log_mode not in LOG_MODES:
        return f"Invalid log mode: {log_mode}"

    translation = config_dict.get("translation")
    if translation is not None:
        if not isinstance(translation, dict):
            return "translation must be an object"
        chunk_size = translation.get("chunk_size")
        if chunk_size is not None and (not isinstance(chunk_size, int) or chunk_size < 1):
            return "chunk_size must be a positive integer"

    return None
