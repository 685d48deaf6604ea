from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List

LOGGER = logging.getLogger(__name__)

KeyHandler = Callable[[str], bool]


@dataclass(eq=False)
class Subscription:
    bindings: "KeyBindings"
    key: str
    handler: KeyHandler
    active: bool = True

    def unsubscribe(self) -> None:
        if self.active:
            self.bindings._remove(self)
            self.active = False


def _normalize(key: str) -> str:
    return str(key or "").strip().lower()


class KeyBindings:
    """Explicit key-to-handler registry.

    Owners subscribe and keep the returned Subscription; handlers return
    True when they consumed the key.
    """

    def __init__(self):
        self._handlers: Dict[str, List[Subscription]] = {}

    def subscribe(self, key: str, handler: KeyHandler) -> Subscription:
        sub = Subscription(bindings=self, key=_normalize(key), handler=handler)
        self._handlers.setdefault(sub.key, []).append(sub)
        return sub

    def _remove(self, sub: Subscription) -> None:
        rows = self._handlers.get(sub.key, [])
        if sub in rows:
            rows.remove(sub)
        if not rows:
            self._handlers.pop(sub.key, None)

    def dispatch(self, key: str) -> bool:
        token = _normalize(key)
        for sub in list(self._handlers.get(token, [])):
            if sub.handler(token):
                LOGGER.debug("Key %r handled", token)
                return True
        return False

    def bound_keys(self) -> List[str]:
        return sorted(self._handlers)
