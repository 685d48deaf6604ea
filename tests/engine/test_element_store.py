from __future__ import annotations

import json

import pytest

from stackview.engine.element import ABSENT, NaturalKey, is_clickable, is_labeled
from stackview.engine.element_store import (
    ElementStore,
    find_by_key,
    parse_collection,
    remove_elements,
    replace_element,
)
from stackview.engine.errors import ElementNotFoundError, MalformedInputError


pytestmark = pytest.mark.engine


def _rows():
    return [
        {"bounds": "[0,0][10,10]", "text": "a", "resource_id": "id/a"},
        {"bounds": "[0,0][20,20]", "text": "b", "resource_id": "id/b"},
        {"bounds": "[0,0][30,30]", "text": "c", "resource_id": "id/c"},
    ]


def test_natural_key_is_strict():
    with_empty = {"bounds": "[0,0][1,1]", "text": ""}
    without = {"bounds": "[0,0][1,1]"}
    assert NaturalKey.of(without).text is ABSENT
    assert NaturalKey.of(with_empty) != NaturalKey.of(without)
    assert NaturalKey.of({"text": 1}) != NaturalKey.of({"text": "1"})
    assert NaturalKey.of({"text": 1}) != NaturalKey.of({"text": True})
    assert NaturalKey.of(dict(with_empty, class_name="x")) == NaturalKey.of(with_empty)
    assert len({NaturalKey.of(with_empty), NaturalKey.of(dict(with_empty))}) == 1


def test_clickable_and_labeled_flags():
    assert is_clickable({"is_clickable": True})
    assert is_clickable({"is_clickable": "TRUE"})
    assert not is_clickable({})
    assert not is_clickable({"is_clickable": 1})
    assert is_labeled({"information": " note "})
    assert not is_labeled({"information": "   "})
    assert not is_labeled({})


def test_find_by_key_on_text_and_list():
    rows = _rows()
    key = NaturalKey.of(rows[1])
    assert find_by_key(rows, key) == rows[1]
    assert find_by_key(json.dumps(rows), key) == rows[1]
    assert find_by_key(rows, NaturalKey(bounds="[9,9][9,9]")) is None


def test_replace_keeps_positions_and_length():
    rows = _rows()
    out = replace_element(rows, NaturalKey.of(rows[1]), {"bounds": "[1,1][2,2]", "text": "new"})
    assert len(out) == 3
    assert out[0] == rows[0]
    assert out[1] == {"bounds": "[1,1][2,2]", "text": "new"}
    assert out[2] == rows[2]
    assert rows[1]["text"] == "b"


def test_replace_missing_key_raises_not_found():
    with pytest.raises(ElementNotFoundError) as exc:
        replace_element(_rows(), NaturalKey(text="nope"), {})
    assert exc.value.code == "not_found"
    assert str(exc.value) == "Could not find element to update."


def test_remove_with_no_match_leaves_collection_unchanged():
    rows = _rows()
    out = remove_elements(rows, NaturalKey(text="zzz"))
    assert out == rows


def test_malformed_source_fails_whole_operation():
    with pytest.raises(MalformedInputError):
        remove_elements("[{", NaturalKey(text="a"))
    with pytest.raises(MalformedInputError):
        parse_collection('{"elements": []}')


def test_duplicate_keys_replace_first_and_remove_all():
    dup = {"bounds": "[0,0][5,5]", "text": "same", "resource_id": "id/same"}
    rows = [dict(dup), {"text": "other"}, dict(dup, class_name="second")]
    key = NaturalKey.of(dup)

    replaced = replace_element(rows, key, {"text": "patched"})
    assert replaced[0] == {"text": "patched"}
    assert replaced[2]["class_name"] == "second"

    assert remove_elements(rows, key) == [{"text": "other"}]


def test_store_events_and_cached_counts():
    store = ElementStore(_rows() + [{"bounds": "[0,0][1,1]", "is_clickable": True, "information": "x"}])
    seen = []
    store.add_listener(lambda ev, data: seen.append((ev, data["reason"])))

    assert store.counts() == {"total": 4, "clickable": 1, "labeled": 1}
    committed = store.replace(NaturalKey.of(_rows()[0]), {"text": "a2", "information": "labelled"})
    assert committed == {"text": "a2", "information": "labelled"}
    assert store.counts()["labeled"] == 2
    assert store.revision == 1

    assert store.remove(NaturalKey(text="missing")) == 0
    assert store.revision == 1
    assert store.remove(NaturalKey.of(committed)) == 1
    assert len(store) == 3
    assert seen == [("elements_changed", "replace"), ("elements_changed", "remove")]


def test_store_replace_on_duplicates_returns_first_position():
    dup = {"bounds": "[0,0][5,5]", "text": "same"}
    store = ElementStore([{"text": "head"}, dict(dup), dict(dup)])
    out = store.replace(NaturalKey.of(dup), {"text": "fixed"})
    assert out == {"text": "fixed"}
    assert store.elements[1] == {"text": "fixed"}
    assert store.elements[2] == dup


def test_store_json_round_trip():
    store = ElementStore.from_json(json.dumps(_rows()))
    assert json.loads(store.to_json()) == _rows()
    with pytest.raises(MalformedInputError):
        store.set_json("not json")
    assert len(store) == 3
