"""Named organizer edits applied to a loaded configuration.

Each prize edit touches one field so that the coupling between
``total_count`` and ``remaining_count`` is handled in exactly one place
(:func:`update_prize_count`).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..db.utils import as_utc
from .config import LotteryConfig, Participant, ParticipantType, Prize
from .errors import ErrorKind, LotteryError
from .utils import generate_id

DEFAULT_PRIZE_LEVEL = "New prize"
DEFAULT_PRIZE_PROBABILITY = 10.0


@dataclass(frozen=True)
class LotteryStats:
    """Dashboard counters of a configuration."""

    total_users: int
    draw_count: int
    remaining_prizes: int
    total_prizes: int


def _get_prize(config: LotteryConfig, prize_id: str) -> Prize:
    prize = config.get_prize(prize_id)
    if prize is None:
        raise LotteryError(ErrorKind.PRIZE_NOT_FOUND, f"Prize '{prize_id}' not found.")
    return prize


def add_or_update_user(
    config: LotteryConfig, phone: str, name: str, total_chances: int
) -> Participant:
    """Register ``phone`` or update its name and granted chances.

    Used chances of an existing participant are preserved; lowering the
    grant below what was already used is rejected.
    """
    phone = phone.strip() if phone else ""
    if not phone:
        raise ValueError("phone must not be empty")
    if total_chances < 0:
        raise ValueError("total_chances must not be negative")

    user = config.get_user(phone)
    if user is None:
        return config.add_user(
            Participant(phone=phone, name=name, total_chances=total_chances)
        )
    if total_chances < user.used_chances:
        raise ValueError(
            f"Participant '{phone}' already used {user.used_chances} chances"
        )
    user.name = name
    user.total_chances = total_chances
    return user


def remove_user(config: LotteryConfig, phone: str) -> bool:
    """Remove ``phone`` from the registry. Draw records are kept."""
    return config.users.pop(phone, None) is not None


def add_prize(
    config: LotteryConfig,
    *,
    name: str,
    level: str = DEFAULT_PRIZE_LEVEL,
    probability: float = DEFAULT_PRIZE_PROBABILITY,
    total_count: int = 1,
    description: str = "",
) -> Prize:
    """Append a new prize with full inventory to the end of the pool."""
    prize = Prize(
        id=generate_id("prize", {p.id for p in config.prizes}),
        level=level,
        name=name,
        description=description,
        probability=float(probability),
        total_count=total_count,
        remaining_count=total_count,
    )
    prize.validate()
    config.prizes.append(prize)
    return prize


def remove_prize(config: LotteryConfig, prize_id: str) -> Prize:
    prize = _get_prize(config, prize_id)
    config.prizes.remove(prize)
    return prize


def update_prize_level(config: LotteryConfig, prize_id: str, level: str) -> Prize:
    prize = _get_prize(config, prize_id)
    prize.level = level
    return prize


def update_prize_name(config: LotteryConfig, prize_id: str, name: str) -> Prize:
    # Existing draw records keep the name captured when they were drawn.
    prize = _get_prize(config, prize_id)
    prize.name = name
    return prize


def update_prize_description(
    config: LotteryConfig, prize_id: str, description: str
) -> Prize:
    prize = _get_prize(config, prize_id)
    prize.description = description
    return prize


def update_prize_probability(
    config: LotteryConfig, prize_id: str, probability: float
) -> Prize:
    if not 0 <= probability <= 100:
        raise ValueError(f"probability must be within 0-100, got {probability}")
    prize = _get_prize(config, prize_id)
    prize.probability = float(probability)
    return prize


def update_prize_count(config: LotteryConfig, prize_id: str, total_count: int) -> Prize:
    """Set the granted inventory and reset the remaining inventory to it."""
    if total_count < 0:
        raise ValueError("total_count must not be negative")
    prize = _get_prize(config, prize_id)
    prize.total_count = total_count
    prize.remaining_count = total_count
    return prize


def update_details(
    config: LotteryConfig,
    *,
    title: Optional[str] = None,
    description: Optional[str] = None,
    start_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None,
    participant_type: Optional[ParticipantType] = None,
    theme_color: Optional[str] = None,
) -> LotteryConfig:
    """Apply the supplied event-level fields, leaving the rest untouched."""
    new_start = as_utc(start_time) if start_time is not None else config.start_time
    new_end = as_utc(end_time) if end_time is not None else config.end_time
    if new_start >= new_end:
        raise ValueError("start_time must be earlier than end_time")

    if title is not None:
        config.title = title
    if description is not None:
        config.description = description
    config.start_time = new_start
    config.end_time = new_end
    if participant_type is not None:
        config.participant_type = participant_type
    if theme_color is not None:
        config.theme_color = theme_color
    return config


def compute_stats(config: LotteryConfig) -> LotteryStats:
    return LotteryStats(
        total_users=len(config.users),
        draw_count=len(config.draw_records),
        remaining_prizes=sum(p.remaining_count for p in config.prizes),
        total_prizes=sum(p.total_count for p in config.prizes),
    )


__all__ = [
    "LotteryStats",
    "add_or_update_user",
    "add_prize",
    "compute_stats",
    "remove_prize",
    "remove_user",
    "update_details",
    "update_prize_count",
    "update_prize_description",
    "update_prize_level",
    "update_prize_name",
    "update_prize_probability",
]
