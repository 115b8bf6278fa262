import pytest

from jarloc.translation.chunks import (
    SHAPE_LIST,
    SHAPE_MAPPING,
    is_large_payload,
    merge_json,
    serialize_payload,
    shape_of,
    split_json,
)


def test_split_mapping_keeps_key_order_and_chunk_size():
    value = {f"key.{i}": f"Value {i}" for i in range(60)}
    chunk_set = split_json(value, 25)

    assert chunk_set.shape == SHAPE_MAPPING
    assert [len(c) for c in chunk_set.chunks] == [25, 25, 10]
    assert list(chunk_set.chunks[0])[0] == "key.0"
    assert list(chunk_set.chunks[2])[-1] == "key.59"


def test_split_then_merge_restores_mapping():
    value = {f"k{i}": str(i) for i in range(7)}
    chunk_set = split_json(value, 3)
    assert merge_json(chunk_set.chunks, chunk_set.shape) == value
    assert list(merge_json(chunk_set.chunks, chunk_set.shape)) == list(value)


def test_split_and_merge_list():
    value = list(range(10))
    chunk_set = split_json(value, 4)

    assert chunk_set.shape == SHAPE_LIST
    assert chunk_set.chunks == [[0, 1, 2, 3], [4, 5, 6, 7], [8, 9]]
    assert merge_json(chunk_set.chunks, SHAPE_LIST) == value


def test_split_scalar_returns_none():
    assert split_json("just text", 5) is None
    assert split_json(42, 5) is None


def test_split_empty_containers():
    assert len(split_json({}, 5)) == 0
    assert merge_json([], SHAPE_MAPPING) == {}
    assert merge_json([], SHAPE_LIST) == []


def test_split_rejects_non_positive_chunk_size():
    with pytest.raises(ValueError):
        split_json({"a": "b"}, 0)


def test_merge_mapping_later_duplicate_wins():
    assert merge_json([{"a": "1", "b": "2"}, {"a": "3"}], SHAPE_MAPPING) == {"a": "3", "b": "2"}


def test_merge_unknown_shape():
    with pytest.raises(ValueError):
        merge_json([{}], "tree")


def test_is_large_payload_uses_strict_threshold():
    assert not is_large_payload("x" * 10, threshold=10)
    assert is_large_payload("x" * 11, threshold=10)


def test_serialize_payload_keeps_unicode():
    text = serialize_payload({"greeting": "¡Hola, señor!"})
    assert "¡Hola, señor!" in text
    assert text.startswith("{\n  ")


def test_shape_of():
    assert shape_of({}) == SHAPE_MAPPING
    assert shape_of([]) == SHAPE_LIST
    assert shape_of("x") is None
