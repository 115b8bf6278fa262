"""
Translation module - Core translation functionality

This module provides:
- chunks: splitting oversized payloads and merging translated parts
- incremental: reuse of an existing translation
- retry: overload-aware retry policy
- parsing: lenient decoding of model output
- events: progress/log events and the in-memory event log

The Orchestrator lives in jarloc.translation.orchestrator.
"""

from jarloc.translation.parsing import parse_json_response, parse_lang_file
from jarloc.translation.chunks import ChunkSet, split_json, merge_json
from jarloc.translation.incremental import missing_keys, merge_translation
from jarloc.translation.retry import call_with_retry, is_overload_error
from jarloc.translation.events import EventLog, TranslationEvent
