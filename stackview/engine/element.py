from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping, Tuple

BOUNDS = "bounds"
TEXT = "text"
RESOURCE_ID = "resource_id"
CLASS_NAME = "class_name"
CONTENT_DESCRIPTION = "content_description"
IS_CLICKABLE = "is_clickable"
INFORMATION = "information"

KEY_FIELDS = (BOUNDS, TEXT, RESOURCE_ID)


class _Absent:
    """Marker for a key field missing from the element."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


ABSENT = _Absent()


def _token(value: Any) -> Tuple[str, ...]:
    # Type name participates so that 1, 1.0, True and "1" never compare equal.
    if value is ABSENT:
        return ("absent",)
    return (type(value).__name__, json.dumps(value, sort_keys=True, ensure_ascii=False))


@dataclass(frozen=True, eq=False)
class NaturalKey:
    """Identity of an element: strict equality over (bounds, text, resource_id)."""

    bounds: Any = ABSENT
    text: Any = ABSENT
    resource_id: Any = ABSENT

    @staticmethod
    def of(element: Mapping[str, Any]) -> "NaturalKey":
        return NaturalKey(
            bounds=element.get(BOUNDS, ABSENT),
            text=element.get(TEXT, ABSENT),
            resource_id=element.get(RESOURCE_ID, ABSENT),
        )

    def _tokens(self) -> Tuple[Tuple[str, ...], ...]:
        return (_token(self.bounds), _token(self.text), _token(self.resource_id))

    def matches(self, element: Mapping[str, Any]) -> bool:
        return isinstance(element, Mapping) and NaturalKey.of(element) == self

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NaturalKey):
            return NotImplemented
        return self._tokens() == other._tokens()

    def __hash__(self) -> int:
        return hash(self._tokens())


def is_clickable(element: Mapping[str, Any]) -> bool:
    value = element.get(IS_CLICKABLE, False)
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


def information_of(element: Mapping[str, Any]) -> str:
    value = element.get(INFORMATION)
    if value is None:
        return ""
    return str(value)


def is_labeled(element: Mapping[str, Any]) -> bool:
    return bool(information_of(element).strip())


def dump_element(element: Mapping[str, Any]) -> str:
    return json.dumps(dict(element), indent=2, ensure_ascii=False)
