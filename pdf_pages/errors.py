"""Error taxonomy for the page assembly core.

Every failure is raised at the point of detection and carries a human readable
message naming the violated constraint. Callers map these to user-facing
responses; nothing here knows about HTTP.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass
class PdfToolError(Exception):
    message: str

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.message


class ParseError(PdfToolError):
    """Input bytes are not a structurally valid PDF."""


class PasswordError(PdfToolError):
    """The document is encrypted and the supplied password does not open it."""


class ValidationError(PdfToolError):
    """Caller-supplied options or inputs violate an invariant."""


class RangeError(ValidationError):
    pass


class EmptySelectionError(ValidationError):
    pass


class AllPagesRemovedError(ValidationError):
    pass


class PageBudgetExceededError(ValidationError):
    pass


class FileTooLargeError(ValidationError):
    pass


class InvalidFormatError(ValidationError):
    pass


class EmptyDocumentError(ValidationError):
    pass


class NoValidFilesError(ValidationError):
    pass


class PageIndexError(ValidationError):
    pass


class UnsupportedOperationError(ValidationError):
    pass


class OutputError(PdfToolError):
    """Post-condition failure after assembly."""


class EmptyOutputError(OutputError):
    pass


class OutputTooLargeError(OutputError):
    pass
