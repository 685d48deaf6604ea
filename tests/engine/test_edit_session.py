from __future__ import annotations

import json

import pytest

from stackview.engine.edit_session import DraftState, EditSession, parse_draft
from stackview.engine.element_store import ElementStore
from stackview.engine.errors import InvalidDraftError


pytestmark = pytest.mark.engine


def _store():
    return ElementStore(
        [
            {"bounds": "[0,0][10,10]", "text": "ok", "resource_id": "id/ok"},
            {"bounds": "[0,0][20,20]", "text": "cancel", "resource_id": "id/cancel", "information": "old"},
        ]
    )


def test_open_seeds_draft_and_information():
    store = _store()
    session = EditSession(store)
    session.open(store.elements[1])
    assert session.state == DraftState.CLEAN
    assert json.loads(session.draft_text) == store.elements[1]
    assert session.information == "old"


def test_dirty_tracks_difference_from_snapshot():
    store = _store()
    session = EditSession(store)
    session.open(store.elements[0])
    original = session.draft_text
    session.edit_information("note")
    assert session.dirty
    session.edit_information("")
    assert not session.dirty
    session.edit(original + " ")
    assert session.dirty


def test_invalid_json_leaves_store_untouched():
    store = _store()
    before = store.snapshot()
    session = EditSession(store)
    session.open(store.elements[0])
    session.edit("{not json")
    result = session.commit()
    assert result.status == "invalid_json"
    assert result.message == "Invalid JSON format in highlight field!"
    assert store.elements == before
    assert session.dirty


def test_information_is_trimmed_or_dropped():
    store = _store()
    session = EditSession(store)
    session.open(store.elements[0])
    session.edit_information("  primary action  ")
    result = session.commit()
    assert result.ok
    assert result.message == "Element updated successfully!"
    assert store.elements[0]["information"] == "primary action"
    assert session.state == DraftState.CLEAN

    session.open(store.elements[1])
    session.edit_information("   ")
    assert session.commit().ok
    assert "information" not in store.elements[1]


def test_edited_key_fields_replace_original_entry():
    store = _store()
    session = EditSession(store)
    session.open(store.elements[0])
    draft = json.loads(session.draft_text)
    draft.update({"bounds": "[1,1][2,2]", "text": "renamed", "resource_id": "id/new"})
    session.edit(json.dumps(draft))
    result = session.commit()
    assert result.ok
    assert len(store) == 2
    assert store.elements[0]["text"] == "renamed"
    assert store.elements[1]["text"] == "cancel"
    # The draft now follows the committed element.
    assert session.element == store.elements[0]
    assert session.key.text == "renamed"


def test_vanished_element_reports_not_found():
    store = _store()
    session = EditSession(store)
    session.open(store.elements[0])
    store.set_all([store.elements[1]])
    session.edit_information("late")
    result = session.commit()
    assert result.status == "not_found"
    assert result.message == "Could not find element to update."
    assert len(store) == 1


def test_close_discards_draft():
    store = _store()
    session = EditSession(store)
    session.open(store.elements[0])
    session.edit_information("x")
    session.close()
    assert session.state == DraftState.CLOSED
    assert session.commit().status == "closed"
    assert "information" not in store.elements[0]


def test_parse_draft_rejects_non_objects():
    with pytest.raises(InvalidDraftError):
        parse_draft("[1, 2]")
    assert parse_draft('{"a": 1}') == {"a": 1}
