"""Exception types raised by the note store and the operation surface."""

from __future__ import annotations

REFUSAL_MESSAGE = (
    "Refusing to store unapproved text. Ask the user to confirm verbatim text before storing."
)


class ThreadkeeperError(Exception):
    """Base class for threadkeeper errors."""


class ApprovalDenied(ThreadkeeperError):
    """A write was attempted without the caller's approval flag set."""

    def __init__(self, message: str = REFUSAL_MESSAGE) -> None:
        super().__init__(message)


class MalformedRecordError(ThreadkeeperError, ValueError):
    """A line in the store file could not be decoded into an entry."""

    def __init__(self, message: str, line_number: int) -> None:
        super().__init__(message)
        self.line_number = line_number
