from __future__ import annotations

import io
import json
import zipfile

import pytest
from PIL import Image


def png_bytes(width: int = 4, height: int = 8) -> bytes:
    buf = io.BytesIO()
    Image.new("RGBA", (width, height), (200, 40, 40, 255)).save(buf, format="PNG")
    return buf.getvalue()


def _screen_json(screen_id: str = "", count: int = 1) -> str:
    elements = [{"bounds": f"[0,0][{10 * (i + 1)},{10 * (i + 1)}]", "text": f"e{i}"} for i in range(count)]
    if screen_id:
        return json.dumps({"screenId": screen_id, "elements": elements})
    return json.dumps(elements)


@pytest.fixture
def png():
    return png_bytes()


@pytest.fixture
def screen_json():
    return _screen_json


@pytest.fixture
def screens_zip(tmp_path):
    path = tmp_path / "screens.zip"
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr("2.json", _screen_json(count=2))
        zf.writestr("2.png", png_bytes())
        zf.writestr("10.json", _screen_json("settings", count=3))
        zf.writestr("10.png", png_bytes())
        zf.writestr("1.json", _screen_json("home"))
        zf.writestr("1.png", png_bytes())
        zf.writestr("nested/4.json", _screen_json())
        zf.writestr("nested/4.png", png_bytes())
        zf.writestr("3.json", _screen_json())
        zf.writestr("7.png", png_bytes())
        zf.writestr("abc.json", _screen_json())
        zf.writestr("abc.png", png_bytes())
        zf.writestr("notes.txt", "ignored")
    return path
