"""Error taxonomy shared by the eligibility checker, draw engine and stores."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Recoverable conditions surfaced to callers as user-facing messages."""

    NOT_STARTED = "NotStarted"
    ENDED = "Ended"
    NOT_INVITED = "NotInvited"
    NAME_MISMATCH = "NameMismatch"
    NO_CHANCES_LEFT = "NoChancesLeft"
    USER_NOT_FOUND = "UserNotFound"
    STORE_UNAVAILABLE = "StoreUnavailable"
    NOT_CONFIGURED = "NotConfigured"
    PRIZE_NOT_FOUND = "PrizeNotFound"

    @property
    def message(self) -> str:
        """Default user-facing text for this kind."""
        return _MESSAGES[self]


_MESSAGES = {
    ErrorKind.NOT_STARTED: "The event has not started yet.",
    ErrorKind.ENDED: "The event has ended.",
    ErrorKind.NOT_INVITED: "You are not on the invitation list, please contact the organizer.",
    ErrorKind.NAME_MISMATCH: "The name does not match the registered phone number.",
    ErrorKind.NO_CHANCES_LEFT: "You have used all of your draw chances.",
    ErrorKind.USER_NOT_FOUND: "Participant not found.",
    ErrorKind.STORE_UNAVAILABLE: "The lottery data could not be saved or loaded, please retry.",
    ErrorKind.NOT_CONFIGURED: "No lottery event has been configured.",
    ErrorKind.PRIZE_NOT_FOUND: "Prize not found.",
}


class LotteryError(Exception):
    """Raised when a lottery operation is refused.

    Attributes
    ----------
    kind : ErrorKind
        Machine readable reason for the refusal.
    message : str
        User-facing text, defaulting to ``kind.message``.
    """

    def __init__(self, kind: ErrorKind, message: Optional[str] = None) -> None:
        self.kind = kind
        self.message = message or kind.message
        super().__init__(self.message)


class StoreUnavailableError(LotteryError):
    """Raised when the configuration store cannot read or persist a document.

    Callers must treat the intended mutation as not applied and retry or
    report the failure.
    """

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(ErrorKind.STORE_UNAVAILABLE, message)


__all__ = ["ErrorKind", "LotteryError", "StoreUnavailableError"]
