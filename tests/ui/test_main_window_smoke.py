from __future__ import annotations

import importlib.util

import pytest


HAS_PYSIDE6 = importlib.util.find_spec("PySide6") is not None

pytestmark = pytest.mark.ui


@pytest.mark.skipif(not HAS_PYSIDE6, reason="PySide6 not available")
def test_main_window_exposes_actions():
    from stackview.ui.main_window import MainWindow

    required = [
        "action_apply_json",
        "action_save_draft",
        "action_delete",
        "action_close_draft",
        "action_load_zip",
        "action_export",
        "_shortcut_allowed",
        "_sync_screen",
    ]
    for name in required:
        assert hasattr(MainWindow, name), f"Missing method: {name}"


@pytest.mark.skipif(not HAS_PYSIDE6, reason="PySide6 not available")
def test_viewport_refreshes_hover_after_scene_and_camera_changes():
    from stackview.ui.viewport_pyvista import ViewportPyVista

    for name in ("_refresh_hover", "_on_scene_refresh", "_on_end_interaction_vtk", "pull_camera", "push_camera"):
        assert hasattr(ViewportPyVista, name), f"Missing method: {name}"


@pytest.mark.skipif(not HAS_PYSIDE6, reason="PySide6 not available")
def test_placeholder_screenshot_has_no_pixmap():
    from stackview.screens.screenshot import PLACEHOLDER
    from stackview.ui.main_window import pixmap_from_screenshot

    assert pixmap_from_screenshot(PLACEHOLDER) is None


@pytest.mark.skipif(not HAS_PYSIDE6, reason="PySide6 not available")
def test_total_counts_rendered_elements(mixed_elements):
    from stackview.labeling import LabelingSession
    from stackview.ui.main_window import counts_text

    session = LabelingSession()
    session.load_elements(mixed_elements)
    text = counts_text(session.counts())
    session.close()
    assert text.startswith("Total elements: 3 |")
    assert "5 in list" in text
