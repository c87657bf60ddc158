"""Rules deciding whether a participant may attempt a draw."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from ..db.utils import as_utc
from .config import (
    LotteryConfig,
    Participant,
    ParticipantType,
    PUBLIC_DEFAULT_CHANCES,
)
from .errors import ErrorKind

logger = logging.getLogger(__name__)


@dataclass
class EligibilityResult:
    """Outcome of :func:`check_eligibility`.

    Attributes
    ----------
    eligible : bool
        ``True`` when the participant may draw right now.
    reason : Optional[ErrorKind]
        Why the participant may not draw; ``None`` when eligible.
    user : Optional[Participant]
        Resolved participant. Present for eligible results and for the soft
        ``NO_CHANCES_LEFT`` failure so callers can still show history.
    registered : bool
        ``True`` when the participant was auto-registered by this check and
        the configuration must be persisted.
    """

    eligible: bool
    reason: Optional[ErrorKind] = None
    user: Optional[Participant] = None
    registered: bool = False

    @property
    def message(self) -> str:
        return "Verified." if self.reason is None else self.reason.message

    @property
    def known_user(self) -> bool:
        """Distinguishes "not eligible but known" from "not eligible, unknown"."""
        return self.user is not None


def check_window(config: LotteryConfig, now: datetime) -> Optional[ErrorKind]:
    """Return the time-window failure for ``now`` or ``None`` if inside it.

    Both ends of the window are inclusive. A naive ``now`` is taken as UTC.
    """
    now = as_utc(now)
    if now < config.start_time:
        return ErrorKind.NOT_STARTED
    if now > config.end_time:
        return ErrorKind.ENDED
    return None


def check_eligibility(
    config: LotteryConfig,
    phone: str,
    name: Optional[str] = None,
    *,
    now: Optional[datetime] = None,
) -> EligibilityResult:
    """Decide whether ``phone`` may attempt a draw against ``config``.

    Checks run in order and stop at the first failure:

    1. the event has started,
    2. the event has not ended,
    3. the participant is resolved: PRIVATE mode requires an allowlist entry
       whose name matches ``name`` when one is given; PUBLIC mode
       auto-registers unknown phones with one chance,
    4. the participant has a chance left.

    Parameters
    ----------
    config : LotteryConfig
        Freshly loaded configuration. Auto-registration mutates it in place;
        persisting it is the caller's job when ``registered`` is set.
    phone : str
        Participant phone number.
    name : Optional[str], default: None
        Participant name; only compared when non-empty.
    now : Optional[datetime], default: None
        Current time; defaults to the wall clock in UTC.

    Raises
    ------
    ValueError
        If ``phone`` is empty.
    """
    if not phone or not phone.strip():
        raise ValueError("phone must not be empty")

    current = as_utc(now) if now is not None else datetime.now(timezone.utc)
    window_failure = check_window(config, current)
    if window_failure is not None:
        return EligibilityResult(eligible=False, reason=window_failure)

    user = config.get_user(phone)
    registered = False

    if config.participant_type is ParticipantType.PRIVATE:
        if user is None:
            return EligibilityResult(eligible=False, reason=ErrorKind.NOT_INVITED)
        if name and user.name != name:
            return EligibilityResult(eligible=False, reason=ErrorKind.NAME_MISMATCH)
    elif user is None:
        user = config.add_user(
            Participant(
                phone=phone,
                name=name or "",
                total_chances=PUBLIC_DEFAULT_CHANCES,
                used_chances=0,
            )
        )
        registered = True
        logger.info(f"Auto-registered participant {phone} in lottery {config.id}")

    if not user.has_chances_left:
        return EligibilityResult(
            eligible=False,
            reason=ErrorKind.NO_CHANCES_LEFT,
            user=user,
            registered=registered,
        )
    return EligibilityResult(eligible=True, user=user, registered=registered)


__all__ = ["EligibilityResult", "check_eligibility", "check_window"]
