from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from .element import INFORMATION, NaturalKey, dump_element, information_of
from .element_store import ElementStore
from .errors import ElementNotFoundError, InvalidDraftError

LOGGER = logging.getLogger(__name__)


class DraftState(str, Enum):
    CLOSED = "closed"
    CLEAN = "clean"
    DIRTY = "dirty"


@dataclass(frozen=True)
class CommitResult:
    status: str
    message: str
    element: Optional[Dict[str, Any]] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


def parse_draft(text: str) -> Dict[str, Any]:
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise InvalidDraftError("Invalid JSON format in highlight field!", details={"error": str(e)}) from e
    if not isinstance(data, dict):
        raise InvalidDraftError("Invalid JSON format in highlight field!", details={"type": type(data).__name__})
    return data


class EditSession:
    """Single editable draft of the selected element.

    The draft remembers the natural key of the element it was opened on;
    ``commit`` replaces that entry even when the draft edits bounds, text or
    resource_id.
    """

    def __init__(self, store: ElementStore, logger: Optional[logging.Logger] = None):
        self.store = store
        self.logger = logger or LOGGER
        self.state = DraftState.CLOSED
        self.element: Optional[Dict[str, Any]] = None
        self.key: Optional[NaturalKey] = None
        self.draft_text = ""
        self.information = ""
        self._snapshot_text = ""
        self._snapshot_info = ""

    @property
    def is_open(self) -> bool:
        return self.state != DraftState.CLOSED

    @property
    def dirty(self) -> bool:
        return self.state == DraftState.DIRTY

    def open(self, element: Mapping[str, Any]) -> None:
        self.element = dict(element)
        self.key = NaturalKey.of(element)
        self._snapshot_text = dump_element(element)
        self._snapshot_info = information_of(element)
        self.draft_text = self._snapshot_text
        self.information = self._snapshot_info
        self.state = DraftState.CLEAN

    def edit(self, raw_text: str) -> None:
        if not self.is_open:
            return
        self.draft_text = str(raw_text)
        self._update_dirty()

    def edit_information(self, text: str) -> None:
        if not self.is_open:
            return
        self.information = str(text)
        self._update_dirty()

    def _update_dirty(self) -> None:
        changed = self.draft_text != self._snapshot_text or self.information != self._snapshot_info
        self.state = DraftState.DIRTY if changed else DraftState.CLEAN

    def commit(self) -> CommitResult:
        if not self.is_open or self.key is None:
            return CommitResult(status="closed", message="No element selected.")
        try:
            edited = parse_draft(self.draft_text)
        except InvalidDraftError as e:
            self.logger.warning("Draft rejected: %s", e.details.get("error", e))
            return CommitResult(status=e.code, message=str(e))

        info = self.information.strip()
        if info:
            edited[INFORMATION] = info
        else:
            edited.pop(INFORMATION, None)

        try:
            committed = self.store.replace(self.key, edited)
        except ElementNotFoundError as e:
            self.logger.warning("Commit target vanished: %s", e.details.get("key"))
            return CommitResult(status=e.code, message=str(e))

        self.open(committed)
        return CommitResult(status="ok", message="Element updated successfully!", element=committed)

    def close(self) -> None:
        self.state = DraftState.CLOSED
        self.element = None
        self.key = None
        self.draft_text = ""
        self.information = ""
        self._snapshot_text = ""
        self._snapshot_info = ""
