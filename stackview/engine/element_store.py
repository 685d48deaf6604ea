from __future__ import annotations

import copy
import json
import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from stackview.core.audit import emit_audit

from .element import NaturalKey, is_clickable, is_labeled
from .errors import ElementNotFoundError, MalformedInputError

LOGGER = logging.getLogger(__name__)

Element = Dict[str, Any]
Collection = Union[str, Sequence[Mapping[str, Any]]]


def parse_collection(text: str) -> List[Element]:
    """Parse a bare JSON array of element objects."""
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise MalformedInputError(f"Element list is not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise MalformedInputError("Element list must be a JSON array.", details={"type": type(data).__name__})
    return [dict(row) if isinstance(row, dict) else row for row in data]


def _coerce(collection: Collection) -> List[Any]:
    if isinstance(collection, str):
        return parse_collection(collection)
    if collection is None:
        raise MalformedInputError("No element collection given.")
    return list(collection)


def find_by_key(collection: Collection, key: NaturalKey) -> Optional[Element]:
    for row in _coerce(collection):
        if key.matches(row):
            return row
    return None


def index_of(collection: Collection, key: NaturalKey) -> int:
    for idx, row in enumerate(_coerce(collection)):
        if key.matches(row):
            return idx
    return -1


def replace_element(collection: Collection, key: NaturalKey, new_element: Mapping[str, Any]) -> List[Any]:
    """Return a copy with the first element matching ``key`` replaced.

    Duplicated keys are indistinguishable; only the first match is touched.
    """
    rows = _coerce(collection)
    idx = index_of(rows, key)
    if idx < 0:
        raise ElementNotFoundError("Could not find element to update.", details={"key": repr(key)})
    rows[idx] = dict(new_element)
    return rows


def remove_elements(collection: Collection, key: NaturalKey) -> List[Any]:
    """Return a copy without any element matching ``key``."""
    rows = _coerce(collection)
    return [row for row in rows if not key.matches(row)]


class ElementStore:
    """Authoritative, ordered element collection.

    Mutations happen in place and bump ``revision``; listeners are called
    with ``(event, payload)`` after every mutation. Counts are cached and
    only recomputed when the collection changes.
    """

    def __init__(self, elements: Optional[Iterable[Mapping[str, Any]]] = None, logger: Optional[logging.Logger] = None):
        self.logger = logger or LOGGER
        self._elements: List[Any] = [dict(e) if isinstance(e, Mapping) else e for e in (elements or [])]
        self.revision = 0
        self._listeners: List[Callable[[str, dict], None]] = []
        self._counts: Dict[str, int] = {}
        self._recount()

    @staticmethod
    def from_json(text: str) -> "ElementStore":
        return ElementStore(parse_collection(text))

    # ---------------- events ----------------
    def add_listener(self, callback: Callable[[str, dict], None]) -> None:
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[str, dict], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _changed(self, reason: str, **payload) -> None:
        self.revision += 1
        self._recount()
        emit_audit("elements_changed", logger=self.logger, reason=reason, revision=self.revision, **payload)
        data = {"reason": reason, "revision": self.revision}
        data.update(payload)
        for cb in list(self._listeners):
            cb("elements_changed", data)

    # ---------------- queries ----------------
    @property
    def elements(self) -> List[Any]:
        return list(self._elements)

    def snapshot(self) -> List[Any]:
        return copy.deepcopy(self._elements)

    def __len__(self) -> int:
        return len(self._elements)

    def __iter__(self):
        return iter(list(self._elements))

    def find(self, key: NaturalKey) -> Optional[Element]:
        return find_by_key(self._elements, key)

    def contains(self, key: NaturalKey) -> bool:
        return index_of(self._elements, key) >= 0

    def counts(self) -> Dict[str, int]:
        return dict(self._counts)

    def _recount(self) -> None:
        rows = [row for row in self._elements if isinstance(row, Mapping)]
        self._counts = {
            "total": len(self._elements),
            "clickable": sum(1 for row in rows if is_clickable(row)),
            "labeled": sum(1 for row in rows if is_labeled(row)),
        }

    def to_json(self) -> str:
        return json.dumps(self._elements, indent=2, ensure_ascii=False)

    # ---------------- mutations ----------------
    def replace(self, key: NaturalKey, new_element: Mapping[str, Any]) -> Element:
        idx = index_of(self._elements, key)
        self._elements = replace_element(self._elements, key, new_element)
        self.logger.info("Element %d replaced (%d elements)", idx, len(self._elements))
        self._changed("replace", index=idx)
        return self._elements[idx]

    def remove(self, key: NaturalKey) -> int:
        before = len(self._elements)
        rows = remove_elements(self._elements, key)
        removed = before - len(rows)
        if removed == 0:
            self.logger.info("Remove matched no element")
            return 0
        self._elements = rows
        self.logger.info("Removed %d element(s)", removed)
        self._changed("remove", removed=removed)
        return removed

    def append(self, element: Mapping[str, Any]) -> None:
        self._elements.append(dict(element))
        self._changed("append")

    def set_all(self, elements: Iterable[Mapping[str, Any]]) -> None:
        self._elements = [dict(e) if isinstance(e, Mapping) else e for e in elements]
        self._changed("set_all", total=len(self._elements))

    def set_json(self, text: str) -> None:
        """Swap the collection for a parsed JSON array; nothing changes on error."""
        self.set_all(parse_collection(text))
