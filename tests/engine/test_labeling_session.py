from __future__ import annotations

import json

import numpy as np
import pytest

from stackview.core.notify import NotificationCenter
from stackview.engine.element import NaturalKey
from stackview.labeling import LabelingSession


pytestmark = pytest.mark.engine


@pytest.fixture
def session(clock, scenario_elements):
    s = LabelingSession(notifications=NotificationCenter(timeout_s=3.0, clock=clock))
    s.load_elements(scenario_elements, screen_name="home")
    yield s
    s.close()


def _aim(session: LabelingSession, x: float, y: float) -> None:
    session.camera.position = np.array([x, y, 1000.0])
    session.camera.target = np.array([x, y, 0.0])
    session.camera.up = np.array([0.0, 1.0, 0.0])
    session.picker.set_pointer_ndc(0.0, 0.0)


def _select_inner(session: LabelingSession):
    _aim(session, -510.0, 1180.0)
    return session.click()


def test_load_frames_camera_on_scene(session):
    framing = session.builder.last_build.framing
    assert np.allclose(session.camera.target, framing.center)
    assert session.element_count == 2
    assert session.counts() == {"total": 2, "clickable": 1, "labeled": 0, "rendered": 2}


def test_click_selects_and_highlights(session, scenario_elements):
    result = _select_inner(session)
    assert result is not None
    assert session.selected == scenario_elements[1]
    vol = session.arena.current.by_key(NaturalKey.of(scenario_elements[1]))
    assert vol.style == "highlighted"

    session.picker.set_pointer_ndc(0.99, -0.99)
    session.click()
    assert session.selected is None
    assert all(v.style != "highlighted" for v in session.arena.current)


def test_commit_rebuilds_once_with_committed_element_highlighted(session):
    _select_inner(session)
    draft = json.loads(session.editor.draft_text)
    draft["text"] = "Sign in"
    session.edit_draft(json.dumps(draft))
    session.edit_information(" login button ")

    generation = session.arena.current.generation
    result = session.commit_draft()

    assert result.ok
    assert session.arena.current.generation == generation + 1
    committed = session.store.elements[1]
    assert committed["text"] == "Sign in"
    assert committed["information"] == "login button"
    vol = session.arena.current.by_key(NaturalKey.of(committed))
    assert vol.style == "highlighted"
    assert session.notifications.message() == "Element updated successfully!"


def test_commit_with_invalid_draft_notifies(session):
    _select_inner(session)
    before = session.store.snapshot()
    session.edit_draft("{")
    result = session.commit_draft()
    assert result.status == "invalid_json"
    assert session.store.elements == before
    assert session.notifications.current().level == "error"


def test_delete_key_removes_selection(session, scenario_elements):
    assert not session.on_key("q")
    _select_inner(session)
    assert session.on_key("Q")
    assert session.selected is None
    assert len(session.store) == 1
    assert session.store.elements[0] == scenario_elements[0]
    assert session.element_count == 1


def test_delete_key_is_released_on_close(session):
    _select_inner(session)
    session.close()
    assert not session.on_key("q")
    assert len(session.arena.current) == 0
    assert len(session.picker.volumes) == 0


def test_malformed_list_changes_nothing(session, clock):
    before = session.store.snapshot()
    assert not session.set_elements_json("[{")
    assert session.notifications.message() == "Invalid JSON format!"
    assert session.store.elements == before
    clock.advance(3.5)
    assert session.notifications.message() == ""


def test_screen_payload_round_trip(session):
    payload = {
        "screenId": "login",
        "elements": [{"bounds": "[0,0][5,5]", "text": "x", "information": "note"}, {"text": "no bounds"}],
    }
    assert session.set_elements_json(json.dumps(payload))
    assert session.screen_name == "login"
    assert session.export() == payload
    assert session.element_count == 1
    assert session.counts()["total"] == 2


def test_reload_keeps_selection_only_when_still_present(session, scenario_elements):
    _select_inner(session)
    session.load_elements(scenario_elements)
    assert session.selected == scenario_elements[1]
    session.load_elements([scenario_elements[0]])
    assert session.selected is None


def test_save_export_writes_named_file(session, tmp_path):
    path = session.save_export(str(tmp_path))
    assert path is not None
    assert path.endswith("home.json")
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    assert data["screenId"] == "home"
    assert len(data["elements"]) == 2
    assert session.notifications.message() == "JSON exported successfully!"


def test_hover_is_picked_again_after_rebuild(session, scenario_elements):
    session.auto_frame = False
    _aim(session, -510.0, 1180.0)
    first = session.frame()
    assert first is not None and first.current is not None

    # What the viewport does after every scene refresh.
    session.add_refresh_listener(lambda _build, _framed: session.frame())
    session.load_elements(list(scenario_elements) + [{"bounds": "[900,2000][950,2050]"}])

    hovered = session.picker.hovered
    assert hovered is not None
    assert hovered.generation == session.arena.current.generation
    assert hovered.element["bounds"] == "[10,10][50,30]"
    assert first.current.disposed
