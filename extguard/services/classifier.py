from __future__ import annotations

from enum import Enum

from extguard.results import Err, ErrorKind, Ok, Result

MAX_EXTENSION_LENGTH = 20


class ValidationReason(str, Enum):
    EMPTY_INPUT = "empty_input"
    TRAILING_DOT = "trailing_dot"
    TOO_LONG = "too_long"

    @property
    def message(self) -> str:
        return _MESSAGES[self]


_MESSAGES = {
    ValidationReason.EMPTY_INPUT: "Please enter a file name.",
    ValidationReason.TRAILING_DOT: "Please enter a valid file name.",
    ValidationReason.TOO_LONG: f"Extensions can be at most {MAX_EXTENSION_LENGTH} characters.",
}


def normalize_extension(value: str) -> str:
    """Trim and lowercase an extension token. Applied at every read/write boundary."""
    return value.strip().lower()


def _invalid(reason: ValidationReason) -> Err:
    return Err(kind=ErrorKind.VALIDATION, message=reason.message, reason=reason)


def classify(raw: str | None) -> Result[str]:
    """
    Extract the extension from a file name or bare extension.

    ``archive.tar.gz`` yields ``gz``; ``EXE`` yields ``exe``. A value with no
    dot is taken as the extension itself.
    """
    trimmed = (raw or "").strip()
    if not trimmed:
        return _invalid(ValidationReason.EMPTY_INPUT)

    if "." in trimmed:
        candidate = trimmed.rsplit(".", 1)[1]
        if not candidate:
            return _invalid(ValidationReason.TRAILING_DOT)
    else:
        candidate = trimmed

    candidate = candidate.lower()
    if len(candidate) > MAX_EXTENSION_LENGTH:
        return _invalid(ValidationReason.TOO_LONG)

    return Ok(candidate)
