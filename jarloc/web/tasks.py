"""
Background translation session for the web interface.

One session per process: the uploaded files, the connected provider and the
orchestrator worker thread. Routes only talk to the session through the
helpers below.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional, Tuple

from jarloc.ai.exceptions import TranslationError
from jarloc.ai.service import AIService, validate_ai_config
from jarloc.config import load_config, save_config
from jarloc.logger import get_logger
from jarloc.translation.events import EventLog, emit_log
from jarloc.translation.orchestrator import Orchestrator

logger = get_logger(__name__)


class TranslationSession:
    """Uploaded files, provider connection and worker thread of one user session."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config if config is not None else load_config()
        self.events = EventLog()
        self.service: Optional[AIService] = None
        self.models: List[str] = []
        self.base_packs: List[Tuple[str, bytes]] = []
        self.orchestrator = Orchestrator.from_config(None, self.config, sink=self.events)
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def connect(
        self,
        provider: str,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        save: bool = False,
    ) -> List[str]:
        """
        Validate credentials by listing the provider's models.

        The first model (or the configured default, when listed) becomes the
        active model.
        """
        provider_config = dict(self.config.get(provider) or {})
        if api_key is not None:
            provider_config["api_key"] = api_key.strip()
        if api_url:
            provider_config["api_url"] = api_url.strip()
        self.config[provider] = provider_config

        validate_ai_config(self.config, provider)
        service = AIService(provider, self.config)
        models = service.discover_models()

        self.service = service
        self.models = models
        self.orchestrator.provider = service
        default_model = provider_config.get("default_model")
        self.orchestrator.set_model(default_model if default_model in models else models[0])
        self.config["ai_provider"] = provider
        if save:
            save_config(self.config)

        emit_log(self.events, f"Connected to {service.display_name}. {len(models)} models found.", "success")
        return models

    def start(self, lang_path: Optional[str] = None) -> bool:
        """Launch a run on a daemon thread; False if one is already running."""
        with self._lock:
            if self.is_running:
                return False
            if self.orchestrator.provider is None:
                raise TranslationError("Connect to a provider first.", code="not_connected")
            if not self.orchestrator.jobs:
                raise TranslationError("No files to translate.", code="no_files")

            self._thread = threading.Thread(
                target=self._run,
                args=(lang_path,),
                name="translation-run",
                daemon=True,
            )
            self._thread.start()
            logger.info("Translation run started (%s files)", len(self.orchestrator.jobs))
            return True

    def translate_content(self, content: str, existing: Optional[Dict[str, str]] = None) -> Any:
        """Translate editor content in the calling thread."""
        if self.orchestrator.provider is None:
            raise TranslationError("Connect to a provider first.", code="not_connected")
        if self.is_running or self.orchestrator.is_running:
            raise TranslationError("A translation run is already in progress.", code="busy")
        return self.orchestrator.translate_content(content, existing)

    def join(self, timeout: Optional[float] = None) -> None:
        thread = self._thread
        if thread is not None:
            thread.join(timeout)

    def resume(self) -> bool:
        """Resume a paused run, or start a new one when the worker already finished."""
        resumed = self.orchestrator.resume()
        if resumed and self.orchestrator.jobs and not (self.is_running or self.orchestrator.is_running):
            self.start()
        return resumed

    def clear(self) -> None:
        if self.is_running:
            raise TranslationError("Stop the current run before clearing files.", code="busy")
        self.orchestrator.clear()
        self.base_packs.clear()
        self.events.clear()

    def status(self, since: int = 0) -> Dict[str, Any]:
        events, next_index = self.events.read(since)
        return {
            "state": self.orchestrator.state,
            "running": self.is_running,
            "provider": self.service.provider if self.service else None,
            "model": self.orchestrator.settings.model,
            "target_language": self.orchestrator.settings.target_language,
            "models": self.models,
            "jobs": [job.to_dict() for job in self.orchestrator.jobs],
            "base_packs": [name for name, _ in self.base_packs],
            "events": [event.to_dict() for event in events],
            "next": next_index,
        }

    def _run(self, lang_path: Optional[str]) -> None:
        """Worker function executed in a background thread."""
        try:
            self.orchestrator.run(lang_path=lang_path)
        except Exception as exc:
            logger.exception("Translation run failed: %s: %s", type(exc).__name__, exc)
            emit_log(self.events, f"Error: {exc}", "error")


_session: Optional[TranslationSession] = None
_session_lock = threading.Lock()


def get_session() -> TranslationSession:
    """Return the process-wide session, creating it on first use."""
    global _session
    with _session_lock:
        if _session is None:
            _session = TranslationSession()
        return _session


def reset_session(config: Optional[Dict[str, Any]] = None) -> TranslationSession:
    """Replace the session (used when the configuration changes and by tests)."""
    global _session
    with _session_lock:
        if _session is not None and _session.is_running:
            _session.orchestrator.stop()
        _session = TranslationSession(config)
        return _session
