from __future__ import annotations

from typing import Any, Dict, Mapping


class StackViewError(RuntimeError):
    """Controlled error type for element, draft and archive operations."""

    default_code = "stackview_error"

    def __init__(self, message: str, *, code: str | None = None, details: Mapping[str, Any] | None = None):
        super().__init__(str(message))
        self.code = str(code or self.default_code)
        self.details: Dict[str, Any] = dict(details or {})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": str(self),
            "details": dict(self.details),
        }


class MalformedInputError(StackViewError):
    default_code = "malformed_input"


class ElementNotFoundError(StackViewError):
    default_code = "not_found"


class InvalidDraftError(StackViewError):
    default_code = "invalid_json"


class ArchiveError(StackViewError):
    default_code = "archive_error"
