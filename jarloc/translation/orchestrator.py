"""
Translation Orchestrator Module

Main Orchestrator class that coordinates the translation workflow:
- Sequence one (single mode) or many (batch mode) archive jobs
- Reduce each payload to the keys an existing translation lacks
- Split oversized payloads into chunks and translate them one at a time
- Pause, resume and stop cooperatively at every chunk boundary
- Auto-pause on provider failures and retry the same chunk after resume
- Package translated results as resource packs

There is exactly one worker: chunks and items are processed strictly in
submission order and progress is reported in that same order.
"""

import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from jarloc.ai.exceptions import (
    ArchiveError,
    MalformedInputError,
    MalformedResponseError,
    TranslationError,
    TranslationStopped,
)
from jarloc.config import DEFAULT_CHUNK_SIZE, LARGE_FILE_THRESHOLD, get_translation_settings
from jarloc.logger import get_logger
from jarloc.packaging.archive import ZipArchive
from jarloc.project import generator
from jarloc.project.scanner import (
    find_source_lang_path,
    get_existing_translation,
    is_ftb_modpack,
)
from jarloc.quests.modpack import QUEST_LANG_PATH, process_modpack
from jarloc.translation.chunks import (
    is_large_payload,
    merge_json,
    serialize_payload,
    shape_of,
    split_json,
)
from jarloc.translation.events import (
    KIND_CHUNK,
    KIND_ITEM,
    KIND_STATE,
    EventLog,
    TranslationEvent,
    emit_log,
)
from jarloc.translation.incremental import merge_translation, missing_keys
from jarloc.translation.parsing import parse_lang_file
from jarloc.translation.retry import call_with_retry

logger = get_logger(__name__)

# Run-state
RUN_IDLE = "idle"
RUN_RUNNING = "running"
RUN_PAUSED = "paused"
RUN_STOPPED = "stopped"

# Item status
STATUS_PENDING = "pending"
STATUS_TRANSLATING = "translating"
STATUS_DONE = "done"
STATUS_WARNING = "warning"
STATUS_ERROR = "error"

RUNNABLE_STATUSES = (STATUS_PENDING, STATUS_ERROR)


class RunControl:
    """
    Run-state cell shared by the worker and any controller thread.

    Every read and write goes through one condition variable, so a pause or
    stop request is visible to the worker at its next suspension point.
    """

    def __init__(self):
        self._state = RUN_IDLE
        self._cond = threading.Condition()

    @property
    def state(self) -> str:
        with self._cond:
            return self._state

    def set(self, state: str, only_from: Optional[Tuple[str, ...]] = None) -> bool:
        """Set the state; with `only_from`, only when the current state is one of them."""
        with self._cond:
            if only_from is not None and self._state not in only_from:
                return False
            self._state = state
            self._cond.notify_all()
            return True

    def wait_while_paused(self, poll_interval: float) -> str:
        """Block while paused; return the state that ended the wait."""
        with self._cond:
            while self._state == RUN_PAUSED:
                self._cond.wait(timeout=poll_interval)
            return self._state

    def sleep(self, seconds: float, poll_interval: float) -> str:
        """Sleep up to `seconds`, waking early on stop."""
        deadline = time.monotonic() + seconds
        with self._cond:
            while self._state != RUN_STOPPED:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self._cond.wait(timeout=min(poll_interval, remaining))
            return self._state


class RunSettings:
    """
    Live model/target selection. The model is read at every chunk; the target
    language is fixed per payload when its chunking starts.
    """

    def __init__(self, model: Optional[str], target_language: str):
        self._lock = threading.Lock()
        self._model = model
        self._target_language = target_language

    @property
    def model(self) -> Optional[str]:
        with self._lock:
            return self._model

    @model.setter
    def model(self, value: Optional[str]) -> None:
        with self._lock:
            self._model = value

    @property
    def target_language(self) -> str:
        with self._lock:
            return self._target_language

    @target_language.setter
    def target_language(self, value: str) -> None:
        with self._lock:
            self._target_language = value


@dataclass
class ChunkCursor:
    """Chunks of one payload and the translated parts so far."""
    payload_text: str
    target_language: str
    chunks: List[Any]
    shape: Optional[str] = None  # None: single opaque chunk
    parts: List[Any] = field(default_factory=list)

    def matches(self, payload_text: str, target_language: str) -> bool:
        return self.payload_text == payload_text and self.target_language == target_language

    @property
    def index(self) -> int:
        """Index of the next chunk to translate."""
        return len(self.parts)


@dataclass
class TranslationJob:
    """One submitted archive and everything produced for it."""
    name: str
    data: bytes = field(repr=False)
    status: str = STATUS_PENDING
    source: Any = field(default=None, repr=False)
    result: Any = field(default=None, repr=False)
    package: Optional[bytes] = field(default=None, repr=False)
    error: Optional[str] = None
    is_modpack: bool = False
    lang_path: Optional[str] = None
    cursor: Optional[ChunkCursor] = field(default=None, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status,
            "error": self.error,
            "is_modpack": self.is_modpack,
            "lang_path": self.lang_path,
            "has_result": self.package is not None,
            "translated_keys": len(self.result) if isinstance(self.result, (dict, list)) else 0,
        }


class Orchestrator:
    """
    Runs translation jobs against a provider.

    `provider` is any object with `translate(model, payload_text, target_language)`
    returning parsed JSON (see `jarloc.ai.service.AIService`). `sink` is any
    object with `emit(event)`.
    """

    def __init__(
        self,
        provider,
        model: Optional[str] = None,
        target_language: str = "es",
        sink=None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        large_file_threshold: int = LARGE_FILE_THRESHOLD,
        max_retries: int = 3,
        retry_delay: float = 2.0,
        poll_interval: float = 0.5,
        courtesy_delay: float = 1.0,
        pack_format: int = generator.DEFAULT_PACK_FORMAT,
    ):
        self.provider = provider
        self.sink = sink if sink is not None else EventLog()
        self.settings = RunSettings(model, target_language)
        self.control = RunControl()
        self.chunk_size = chunk_size
        self.large_file_threshold = large_file_threshold
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.poll_interval = poll_interval
        self.courtesy_delay = courtesy_delay
        self.pack_format = pack_format

        self._jobs: List[TranslationJob] = []
        self._jobs_lock = threading.Lock()
        self._run_lock = threading.Lock()

    @classmethod
    def from_config(cls, provider, config: Dict[str, Any], **overrides) -> "Orchestrator":
        """Build an orchestrator from the `translation` section of the config."""
        settings = get_translation_settings(config)
        kwargs = {
            "target_language": config.get("target_language", "es"),
            "chunk_size": settings["chunk_size"],
            "large_file_threshold": settings["large_file_threshold"],
            "max_retries": settings["max_retries"],
            "retry_delay": settings["retry_delay"],
            "poll_interval": settings["pause_poll_interval"],
            "courtesy_delay": settings["courtesy_delay"],
            "pack_format": settings["pack_format"],
        }
        kwargs.update(overrides)
        return cls(provider, **kwargs)

    # ------------------------------------------------------------------ #
    # Controls
    # ------------------------------------------------------------------ #

    @property
    def state(self) -> str:
        return self.control.state

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    def pause(self) -> bool:
        if self.control.set(RUN_PAUSED, only_from=(RUN_RUNNING,)):
            self._emit_state(RUN_PAUSED)
            self._log("Paused.", "warning")
            return True
        return False

    def resume(self) -> bool:
        """
        Leave the paused state. With no run in progress the state drops to
        idle and the caller starts a new run, which picks up pending and
        errored items.
        """
        target = RUN_RUNNING if self.is_running else RUN_IDLE
        if self.control.set(target, only_from=(RUN_PAUSED,)):
            self._emit_state(target)
            self._log("Resumed.")
            return True
        return False

    def stop(self) -> bool:
        if self.control.set(RUN_STOPPED, only_from=(RUN_RUNNING, RUN_PAUSED)):
            self._emit_state(RUN_STOPPED)
            self._log("Stop requested.", "warning")
            return True
        return False

    def set_model(self, model: str) -> None:
        """Switch model; takes effect at the next chunk."""
        self.settings.model = model
        self._log(f"Model set to {model}.")

    def set_target_language(self, target_language: str) -> None:
        self.settings.target_language = target_language

    # ------------------------------------------------------------------ #
    # Jobs
    # ------------------------------------------------------------------ #

    @property
    def jobs(self) -> List[TranslationJob]:
        with self._jobs_lock:
            return list(self._jobs)

    def submit(self, name: str, data: bytes) -> TranslationJob:
        job = TranslationJob(name=name, data=data)
        with self._jobs_lock:
            self._jobs.append(job)
            count = len(self._jobs)
        self._log(f"Added {name} ({count} files queued).")
        return job

    def clear(self) -> None:
        if self.is_running:
            raise RuntimeError("Cannot clear jobs while a run is in progress")
        with self._jobs_lock:
            self._jobs.clear()
        self.control.set(RUN_IDLE)
        self._emit_state(RUN_IDLE)

    def results(self) -> List[TranslationJob]:
        """Finished jobs in submission order."""
        return [job for job in self.jobs if job.status == STATUS_DONE]

    def build_batch_download(self, base_packs: Optional[List[Tuple[str, bytes]]] = None) -> Optional[bytes]:
        """Merge every finished job (and optional base packs) into one resource pack."""
        packages = [(job.name, job.package) for job in self.results() if job.package]
        if base_packs:
            self._log(f"Merging {len(base_packs)} base packs...")
        data, errors = generator.merge_packs(
            packages, self.settings.target_language, base_packs, self.pack_format
        )
        for message in errors:
            self._log(message, "error")
        return data

    # ------------------------------------------------------------------ #
    # Runs
    # ------------------------------------------------------------------ #

    def run(self, lang_path: Optional[str] = None) -> List[TranslationJob]:
        """Single mode for exactly one job, batch mode otherwise."""
        if len(self.jobs) == 1:
            self.run_single(0, lang_path=lang_path)
        else:
            self.run_batch()
        return self.jobs

    def run_batch(self) -> List[TranslationJob]:
        """Process every pending or errored job in submission order."""
        with self._running():
            jobs = self.jobs
            self._log(f"Batch mode: {len(jobs)} files.")

            for index, job in enumerate(jobs):
                if not self._checkpoint():
                    break
                if job.status not in RUNNABLE_STATUSES:
                    continue

                self._set_status(index, job, STATUS_TRANSLATING)
                try:
                    self._process_job(index, job)
                except TranslationStopped as e:
                    self._set_status(index, job, STATUS_PENDING)
                    self._log(str(e), "warning", item_index=index, item_name=job.name)
                    break
                except (ArchiveError, MalformedInputError) as e:
                    job.error = str(e)
                    self._set_status(index, job, STATUS_ERROR, f"[Batch] Error in {job.name}: {e}", "error")
                except Exception as e:
                    logger.exception(f"Unexpected failure while translating {job.name}")
                    job.error = f"{type(e).__name__}: {e}"
                    self._set_status(index, job, STATUS_ERROR, f"[Batch] Error in {job.name}: {e}", "error")
                    self._auto_pause("[Batch] Process PAUSED by error. Review and press Resume.")

                if any(j.status in RUNNABLE_STATUSES for j in jobs[index + 1:]):
                    self._courtesy_wait()

        return self.jobs

    def run_single(self, index: int = 0, lang_path: Optional[str] = None) -> TranslationJob:
        """
        Translate one job. `lang_path` picks a specific language file inside
        the archive instead of the detected source file.
        """
        job = self.jobs[index]
        with self._running():
            self._log(
                f"Starting translation to {self.settings.target_language} with {self.settings.model}...",
                item_index=index, item_name=job.name,
            )
            self._set_status(index, job, STATUS_TRANSLATING)
            try:
                self._process_job(index, job, lang_path=lang_path)
            except TranslationStopped as e:
                self._set_status(index, job, STATUS_PENDING, str(e), "warning")
            except (ArchiveError, MalformedInputError) as e:
                job.error = str(e)
                self._set_status(index, job, STATUS_ERROR, f"Error: {e}", "error")
            except Exception as e:
                logger.exception(f"Unexpected failure while translating {job.name}")
                job.error = f"{type(e).__name__}: {e}"
                self._set_status(index, job, STATUS_ERROR, f"Error: {e}", "error")
        return job

    def translate_content(self, content: str, existing: Optional[Dict[str, str]] = None) -> Any:
        """
        Translate a language file given as JSON text (e.g. edited by hand).

        Raises:
            MalformedInputError: content is not JSON
            TranslationStopped: the run was stopped before finishing
        """
        source = parse_lang_file(content)
        with self._running():
            self._log(
                f"Starting translation to {self.settings.target_language} with {self.settings.model}..."
            )
            try:
                result = self.translate_document(source, existing)
            except TranslationStopped as e:
                self._log(str(e), "warning")
                raise
            self._log("Translation completed successfully.", "success")
            return result

    # ------------------------------------------------------------------ #
    # Processing
    # ------------------------------------------------------------------ #

    def translate_document(
        self,
        source: Any,
        existing: Optional[Dict[str, str]] = None,
        job: Optional[TranslationJob] = None,
        target_language: Optional[str] = None,
    ) -> Any:
        """
        Translate a parsed language document, reusing `existing` when given.

        Only keys missing from `existing` are sent; when none are missing the
        provider is not called at all.
        """
        incremental = existing is not None and isinstance(source, dict)
        payload = source

        if incremental:
            payload = missing_keys(source, existing)
            if not payload:
                self._log("All keys are already translated! Nothing new to do.", "success")
                return dict(existing)
            self._log(f"Found {len(payload)} new/missing keys to translate.")

        if isinstance(payload, (dict, list)) and not payload:
            return type(payload)()

        translated = self._translate_payload(payload, job, target_language)

        if incremental:
            self._log("Incremental translation completed and merged.", "success")
            return merge_translation(existing, translated)
        return translated

    def _process_job(self, index: int, job: TranslationJob, lang_path: Optional[str] = None) -> None:
        target_language = self.settings.target_language

        with ZipArchive.from_bytes(job.data, name=job.name) as archive:
            if is_ftb_modpack(archive):
                job.is_modpack = True
                self._log(f"Modpack detected (FTB Quests): {job.name}. Extracting quest text...",
                          item_index=index, item_name=job.name)
                extraction = process_modpack(archive, sink=self.sink)
                if extraction.count == 0:
                    self._set_status(index, job, STATUS_WARNING,
                                     f"No quests found to translate in {job.name}.", "warning")
                    return

                self._log(
                    f"Extraction completed. {extraction.count} files processed. "
                    f"{len(extraction.lang_json)} texts extracted.",
                    item_index=index, item_name=job.name,
                )
                job.lang_path = QUEST_LANG_PATH
                job.source = extraction.lang_json
                job.result = self.translate_document(extraction.lang_json, job=job, target_language=target_language)
                job.package = generator.build_modpack_pack(
                    extraction.overrides, job.result, target_language, self.pack_format
                )
            else:
                path = lang_path or find_source_lang_path(archive)
                if path is None or path not in archive:
                    self._set_status(index, job, STATUS_WARNING,
                                     f"No language file found in {job.name}.", "warning")
                    return

                job.lang_path = path
                self._log(f"Translating: {job.name}", item_index=index, item_name=job.name)
                source = parse_lang_file(archive.read_entry(path), path)
                job.source = source

                existing = get_existing_translation(archive, target_language)
                if existing is not None:
                    self._log("Found an existing translation. Checking for missing keys...",
                              item_index=index, item_name=job.name)

                job.result = self.translate_document(source, existing, job=job, target_language=target_language)
                job.package = generator.build_mod_pack(
                    path, job.result, target_language, job.name, self.pack_format
                )

        job.error = None
        self._set_status(index, job, STATUS_DONE, f"{job.name}: translation completed.", "success")

    def _translate_payload(
        self,
        payload: Any,
        job: Optional[TranslationJob] = None,
        target_language: Optional[str] = None,
    ) -> Any:
        """
        Translate a payload chunk by chunk.

        The cursor only advances when a chunk succeeds. A failure the retry
        policy could not absorb pauses the run and the same chunk is tried
        again after resume. A job keeps its cursor across a stop, so the next
        run continues from the first untranslated chunk, as long as neither the
        payload nor the target language changed. Every chunk of a payload is
        sent with the cursor's target language.
        """
        payload_text = serialize_payload(payload)
        target_language = target_language or self.settings.target_language

        cursor = None
        if job is not None and job.cursor is not None:
            if job.cursor.matches(payload_text, target_language):
                cursor = job.cursor
                self._log(f"Resuming at part {cursor.index + 1} of {len(cursor.chunks)}.")
            else:
                self._log("Source or target language changed since the last run. Starting over.", "warning")
                job.cursor = None

        if cursor is None:
            chunk_set = None
            if is_large_payload(payload_text, self.large_file_threshold):
                chunk_set = split_json(payload, self.chunk_size)
            if chunk_set is not None:
                cursor = ChunkCursor(payload_text, target_language, chunk_set.chunks, chunk_set.shape)
            else:
                cursor = ChunkCursor(payload_text, target_language, [payload])
            if job is not None:
                job.cursor = cursor

        total = len(cursor.chunks)
        while cursor.index < total:
            if not self._checkpoint():
                raise TranslationStopped()

            number = cursor.index + 1
            if total > 1:
                self._log(f"Translating part {number} of {total}...")

            try:
                part = self._translate_chunk(cursor.chunks[cursor.index], cursor.target_language)
            except TranslationError as e:
                self._log(f"Error in part {number}: {e}", "error")
                self._auto_pause("Paused by error. Review and press Resume to retry this part.")
                continue

            cursor.parts.append(part)
            self.sink.emit(TranslationEvent(
                kind=KIND_CHUNK,
                item_name=job.name if job else None,
                chunk_index=number,
                total_chunks=total,
            ))

            if total > 1 and cursor.index < total:
                self._courtesy_wait()

        if job is not None:
            job.cursor = None

        if cursor.shape is None:
            return cursor.parts[0]
        return merge_json(cursor.parts, cursor.shape)

    def _translate_chunk(self, chunk: Any, target_language: str) -> Any:
        chunk_text = serialize_payload(chunk)
        # Read live so a model switch applies to the next chunk
        model = self.settings.model

        result = call_with_retry(
            lambda: self.provider.translate(model, chunk_text, target_language),
            max_attempts=self.max_retries,
            base_delay=self.retry_delay,
        )

        expected = shape_of(chunk)
        if expected is not None and shape_of(result) != expected:
            raise MalformedResponseError(
                f"Expected a JSON {expected} but the provider returned {type(result).__name__}",
                code="shape_mismatch",
            )
        return result

    # ------------------------------------------------------------------ #
    # Suspension points
    # ------------------------------------------------------------------ #

    def _checkpoint(self) -> bool:
        """Wait out a pause; False when the run was stopped."""
        state = self.control.state
        if state == RUN_PAUSED:
            logger.info("Paused; waiting for resume or stop")
            state = self.control.wait_while_paused(self.poll_interval)
        return state != RUN_STOPPED

    def _courtesy_wait(self) -> None:
        if self.courtesy_delay > 0:
            self.control.sleep(self.courtesy_delay, self.poll_interval)

    def _auto_pause(self, message: str) -> bool:
        """Pause a running run; the message is only logged when it actually pauses."""
        if self.control.set(RUN_PAUSED, only_from=(RUN_RUNNING,)):
            self._emit_state(RUN_PAUSED)
            self._log(message, "error")
            return True
        return False

    @contextmanager
    def _running(self):
        if not self._run_lock.acquire(blocking=False):
            raise RuntimeError("A translation run is already in progress")
        try:
            if not self.settings.model:
                raise TranslationError("No model selected. Connect to a provider first.", code="no_model")
            self.control.set(RUN_RUNNING)
            self._emit_state(RUN_RUNNING)
            yield
        finally:
            if self.control.set(RUN_IDLE, only_from=(RUN_RUNNING, RUN_STOPPED)):
                self._emit_state(RUN_IDLE)
            self._run_lock.release()

    # ------------------------------------------------------------------ #
    # Events
    # ------------------------------------------------------------------ #

    def _log(self, message: str, level: str = "info", **fields) -> None:
        emit_log(self.sink, message, level, **fields)

    def _emit_state(self, state: str) -> None:
        self.sink.emit(TranslationEvent(kind=KIND_STATE, status=state, message=f"Run state: {state}"))

    def _set_status(
        self,
        index: int,
        job: TranslationJob,
        status: str,
        message: str = "",
        level: str = "info",
    ) -> None:
        job.status = status
        self.sink.emit(TranslationEvent(
            kind=KIND_ITEM,
            item_index=index,
            item_name=job.name,
            status=status,
            message=message,
            level=level,
        ))
        if message:
            self._log(message, level, item_index=index, item_name=job.name)
