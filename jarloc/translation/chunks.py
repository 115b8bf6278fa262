"""
Chunk split/merge for oversized translation payloads.

A payload is split by entry count, never inside a key/value pair or list
element, and `merge_json` is the exact inverse of `split_json` for
well-formed provider output.
"""

import json
from dataclasses import dataclass, field
from typing import Any, List, Optional

from jarloc.config import DEFAULT_CHUNK_SIZE, LARGE_FILE_THRESHOLD

SHAPE_LIST = "list"
SHAPE_MAPPING = "mapping"


@dataclass
class ChunkSet:
    """Ordered chunks of one payload and how to put them back together."""
    shape: str
    chunks: List[Any] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.chunks)


def serialize_payload(value: Any) -> str:
    """Serialize a payload the way it is sent to providers."""
    return json.dumps(value, indent=2, ensure_ascii=False)


def is_large_payload(text: str, threshold: int = LARGE_FILE_THRESHOLD) -> bool:
    """Whether a serialized payload should be split before translation."""
    return len(text) > threshold


def split_json(value: Any, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Optional[ChunkSet]:
    """
    Split a mapping or list into ordered chunks of at most `chunk_size` entries.

    Args:
        value: Parsed JSON payload
        chunk_size: Maximum keys (mapping) or elements (list) per chunk

    Returns:
        ChunkSet, or None when `value` is neither a mapping nor a list

    Example:
        >>> split_json({"a": 1, "b": 2, "c": 3}, 2).chunks
        [{'a': 1, 'b': 2}, {'c': 3}]
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be at least 1, got {chunk_size}")

    if isinstance(value, list):
        chunks = [value[i:i + chunk_size] for i in range(0, len(value), chunk_size)]
        return ChunkSet(shape=SHAPE_LIST, chunks=chunks)

    if isinstance(value, dict):
        keys = list(value.keys())
        chunks = []
        for i in range(0, len(keys), chunk_size):
            chunks.append({key: value[key] for key in keys[i:i + chunk_size]})
        return ChunkSet(shape=SHAPE_MAPPING, chunks=chunks)

    return None


def merge_json(parts: List[Any], shape: str) -> Any:
    """
    Reassemble translated chunks.

    Mapping chunks are unioned in order; a key repeated by a later chunk
    overwrites the earlier value. List chunks are concatenated.
    """
    if shape == SHAPE_LIST:
        merged_list: List[Any] = []
        for part in parts:
            merged_list.extend(part)
        return merged_list

    if shape == SHAPE_MAPPING:
        merged = {}
        for part in parts:
            merged.update(part)
        return merged

    raise ValueError(f"Unknown chunk shape: {shape!r}")


def shape_of(value: Any) -> Optional[str]:
    """Return the chunk shape of a parsed value, or None for scalars."""
    if isinstance(value, list):
        return SHAPE_LIST
    if isinstance(value, dict):
        return SHAPE_MAPPING
    return None
