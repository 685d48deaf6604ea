from __future__ import annotations

import json

import pytest

from stackview.engine.errors import MalformedInputError
from stackview.screens.io import (
    dumps_payload,
    export_filename,
    export_payload,
    load_payload_file,
    parse_payload,
    save_export,
)


pytestmark = pytest.mark.screens


def test_bare_array_has_no_screen_id():
    payload = parse_payload('[{"text": "a"}]')
    assert payload.elements == [{"text": "a"}]
    assert payload.screen_id is None


def test_screen_object_extracts_name():
    payload = parse_payload(json.dumps({"screenId": "home", "elements": [{"text": "a"}]}))
    assert payload.screen_id == "home"
    assert payload.elements == [{"text": "a"}]


@pytest.mark.parametrize(
    "text",
    ["{", '{"screenId": "", "elements": []}', '{"screenId": "x", "elements": {}}', '"just text"', "42"],
)
def test_rejected_payloads(text):
    with pytest.raises(MalformedInputError):
        parse_payload(text)


def test_export_defaults():
    assert export_payload([]) == {"screenId": "unnamed_screen", "elements": []}
    assert export_filename("") == "ui-elements.json"
    assert export_filename("login") == "login.json"


def test_export_then_import_preserves_screen(tmp_path):
    original = {"screenId": "checkout", "elements": [{"bounds": "[0,0][1,1]", "text": "Pay", "is_clickable": True}]}
    imported = parse_payload(json.dumps(original))
    text = dumps_payload(imported.elements, imported.screen_id)
    assert json.loads(text) == original

    path = save_export(str(tmp_path / "out"), imported.elements, imported.screen_id)
    assert path.endswith("checkout.json")
    again = load_payload_file(path)
    assert again.screen_id == "checkout"
    assert again.elements == original["elements"]


def test_load_payload_file_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_payload_file(str(tmp_path / "nope.json"))
