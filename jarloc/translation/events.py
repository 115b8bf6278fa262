"""
Translation Event Data Classes

Events emitted by the orchestrator and the modpack extractor. A sink is any
object with an `emit(event)` method; `EventLog` is the in-memory one used by
the web layer and the tests.
"""

import threading
import time
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Tuple

from jarloc.logger import get_logger

logger = get_logger(__name__)

KIND_LOG = "log"
KIND_STATE = "state"
KIND_ITEM = "item"
KIND_CHUNK = "chunk"

_LEVELS = {
    "info": 20,
    "success": 20,
    "warning": 30,
    "error": 40,
}


@dataclass
class TranslationEvent:
    """One log line or progress update."""
    kind: str
    message: str = ""
    level: str = "info"            # info|success|warning|error
    item_index: Optional[int] = None
    item_name: Optional[str] = None
    status: Optional[str] = None   # item status or run-state, depending on kind
    chunk_index: Optional[int] = None  # 1-indexed
    total_chunks: Optional[int] = None
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class EventLog:
    """
    Thread-safe event collector.

    Events are numbered from 0 in emission order. Trimming past `max_events`
    drops the oldest ones but never renumbers the rest, so a `since` cursor
    handed to a client stays valid.
    """

    def __init__(self, max_events: int = 5000):
        self.max_events = max_events
        self._events: List[TranslationEvent] = []
        self._dropped = 0
        self._lock = threading.Lock()

    def emit(self, event: TranslationEvent) -> None:
        with self._lock:
            self._events.append(event)
            excess = len(self._events) - self.max_events
            if excess > 0:
                del self._events[:excess]
                self._dropped += excess

    def read(self, since: int = 0) -> Tuple[List[TranslationEvent], int]:
        """Events numbered `since` or later, and the number to pass next time."""
        with self._lock:
            selected = self._events[max(since - self._dropped, 0):]
            return selected, self._dropped + len(self._events)

    def events(self, kind: Optional[str] = None, since: int = 0) -> List[TranslationEvent]:
        selected, _ = self.read(since)
        if kind is None:
            return selected
        return [e for e in selected if e.kind == kind]

    def messages(self) -> List[str]:
        return [e.message for e in self.events(KIND_LOG)]

    def clear(self) -> None:
        with self._lock:
            self._dropped += len(self._events)
            self._events.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)


def emit_log(sink, message: str, level: str = "info", **fields) -> None:
    """Emit a log event and mirror it to the module logger."""
    logger.log(_LEVELS.get(level, 20), message)
    if sink is not None:
        sink.emit(TranslationEvent(kind=KIND_LOG, message=message, level=level, **fields))
