"""Data model of a lottery configuration document and its JSON codec."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from ..db.utils import as_utc, dt_iso, parse_timestamp
from .utils import generate_id

NO_PRIZE_NAME = "no prize"
"""Prize name recorded on draws that did not win anything."""

PUBLIC_DEFAULT_CHANCES = 1
"""Chances granted to a participant auto-registered in PUBLIC mode."""

DEFAULT_THEME_COLOR = "#FF416C"

MAX_PROBABILITY = 100.0


class ParticipantType(str, Enum):
    """Whether any phone may self-register or only pre-listed phones may draw."""

    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"


def _require(data: Mapping[str, Any], key: str, owner: str) -> Any:
    try:
        return data[key]
    except KeyError as exc:
        raise ValueError(f"{owner} is missing required field '{key}'") from exc


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{name} must be a number, got {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"{name} must be a whole number, got {value!r}")
    return int(value)


def _as_number(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{name} must be a number, got {value!r}")
    return float(value)


@dataclass
class Prize:
    """A prize in the weighted pool.

    Attributes
    ----------
    id : str
        Stable identifier, unique within the configuration.
    level : str
        Display tier such as ``"First Prize"``.
    name : str
        Display name, copied onto draw records at draw time.
    probability : float
        Weight in percentage points out of 100.
    total_count : int
        Inventory granted by the organizer.
    remaining_count : int
        Inventory still redeemable, ``0 <= remaining_count <= total_count``.
    description : str
        Free form description.
    """

    id: str
    level: str
    name: str
    probability: float
    total_count: int
    remaining_count: int
    description: str = ""

    @property
    def awarded_count(self) -> int:
        """Number of units already won."""
        return self.total_count - self.remaining_count

    @property
    def in_stock(self) -> bool:
        return self.remaining_count > 0

    def validate(self) -> None:
        """Raise :class:`ValueError` when the prize breaks a data-model rule."""
        if not self.id:
            raise ValueError("Prize id must not be empty")
        if not 0 <= self.probability <= MAX_PROBABILITY:
            raise ValueError(
                f"Prize '{self.id}' probability must be within 0-100, got {self.probability}"
            )
        if self.total_count < 0:
            raise ValueError(f"Prize '{self.id}' total_count must not be negative")
        if self.remaining_count < 0:
            raise ValueError(f"Prize '{self.id}' remaining_count must not be negative")
        if self.remaining_count > self.total_count:
            raise ValueError(
                f"Prize '{self.id}' remaining_count exceeds total_count"
            )

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "level": self.level,
            "name": self.name,
            "description": self.description,
            "probability": self.probability,
            "totalCount": self.total_count,
            "remainingCount": self.remaining_count,
        }

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "Prize":
        total = _as_int(_require(data, "totalCount", "Prize"), "totalCount")
        return cls(
            id=str(_require(data, "id", "Prize")),
            level=str(data.get("level", "")),
            name=str(data.get("name", "")),
            description=str(data.get("description", "")),
            probability=_as_number(_require(data, "probability", "Prize"), "probability"),
            total_count=total,
            remaining_count=_as_int(data.get("remainingCount", total), "remainingCount"),
        )


@dataclass
class Participant:
    """A registered participant, keyed by phone number."""

    phone: str
    name: str = ""
    total_chances: int = PUBLIC_DEFAULT_CHANCES
    used_chances: int = 0

    @property
    def remaining_chances(self) -> int:
        return max(self.total_chances - self.used_chances, 0)

    @property
    def has_chances_left(self) -> bool:
        return self.used_chances < self.total_chances

    def validate(self) -> None:
        if not self.phone or not self.phone.strip():
            raise ValueError("Participant phone must not be empty")
        if self.total_chances < 0:
            raise ValueError(f"Participant '{self.phone}' total_chances must not be negative")
        if self.used_chances < 0:
            raise ValueError(f"Participant '{self.phone}' used_chances must not be negative")
        if self.used_chances > self.total_chances:
            raise ValueError(
                f"Participant '{self.phone}' used_chances exceeds total_chances"
            )

    def to_json(self) -> dict[str, Any]:
        return {
            "phone": self.phone,
            "name": self.name,
            "totalChances": self.total_chances,
            "usedChances": self.used_chances,
        }

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "Participant":
        return cls(
            phone=str(_require(data, "phone", "Participant")),
            name=str(data.get("name") or ""),
            total_chances=_as_int(
                data.get("totalChances", PUBLIC_DEFAULT_CHANCES), "totalChances"
            ),
            used_chances=_as_int(data.get("usedChances", 0), "usedChances"),
        )


@dataclass(frozen=True)
class DrawRecord:
    """Immutable log entry written for every draw.

    ``prize_name`` is a snapshot taken at draw time so that later prize edits
    do not rewrite history. ``prize_id`` is ``None`` when nothing was won.
    """

    id: str
    timestamp: datetime
    user_phone: str
    prize_id: Optional[str]
    prize_name: str

    @property
    def is_win(self) -> bool:
        return self.prize_id is not None

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": dt_iso(self.timestamp),
            "userPhone": self.user_phone,
            "prizeId": self.prize_id,
            "prizeName": self.prize_name,
        }

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "DrawRecord":
        prize_id = data.get("prizeId")
        return cls(
            id=str(_require(data, "id", "DrawRecord")),
            timestamp=parse_timestamp(_require(data, "timestamp", "DrawRecord")),
            user_phone=str(_require(data, "userPhone", "DrawRecord")),
            prize_id=None if prize_id is None else str(prize_id),
            prize_name=str(data.get("prizeName") or NO_PRIZE_NAME),
        )


@dataclass
class LotteryConfig:
    """The aggregate root and single unit of persistence.

    Every mutation of a configuration (admin edit, auto-registration, draw)
    is applied to a freshly loaded instance and written back as a whole.

    Attributes
    ----------
    id : str
        Configuration identifier.
    title, description : str
        Display text of the event.
    start_time, end_time : datetime
        Inclusive draw window, timezone-aware.
    participant_type : ParticipantType
        PUBLIC allows self-registration, PRIVATE requires an allowlist entry.
    prizes : list[Prize]
        Prize pool in configured order; the order drives the weighted walk.
    users : dict[str, Participant]
        Registry keyed by phone, in registration order.
    draw_records : list[DrawRecord]
        Draw log, newest first.
    theme_color : str
        Accent color used by the participant page.
    """

    id: str
    title: str
    start_time: datetime
    end_time: datetime
    participant_type: ParticipantType = ParticipantType.PRIVATE
    description: str = ""
    prizes: list[Prize] = field(default_factory=list)
    users: dict[str, Participant] = field(default_factory=dict)
    draw_records: list[DrawRecord] = field(default_factory=list)
    theme_color: str = DEFAULT_THEME_COLOR

    def __post_init__(self) -> None:
        self.start_time = as_utc(self.start_time)
        self.end_time = as_utc(self.end_time)

    @classmethod
    def create(
        cls,
        title: str,
        *,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
        participant_type: ParticipantType = ParticipantType.PRIVATE,
        description: str = "",
        prizes: Optional[Iterable[Prize]] = None,
        users: Optional[Iterable[Participant]] = None,
        theme_color: str = DEFAULT_THEME_COLOR,
    ) -> "LotteryConfig":
        """Build a new configuration with a generated id.

        The window defaults to a day starting now.
        """
        start = start_time or datetime.now(timezone.utc)
        config = cls(
            id=generate_id("lottery"),
            title=title,
            description=description,
            start_time=start,
            end_time=end_time or start + timedelta(days=1),
            participant_type=participant_type,
            prizes=list(prizes or []),
            theme_color=theme_color,
        )
        for user in users or []:
            config.add_user(user)
        return config

    # -------- registry --------
    def get_user(self, phone: str) -> Optional[Participant]:
        return self.users.get(phone)

    def add_user(self, user: Participant) -> Participant:
        """Insert ``user`` into the registry, replacing any entry with the same phone."""
        self.users[user.phone] = user
        return user

    # -------- prizes --------
    def get_prize(self, prize_id: str) -> Optional[Prize]:
        for prize in self.prizes:
            if prize.id == prize_id:
                return prize
        return None

    def available_prizes(self) -> list[Prize]:
        """Prizes with remaining inventory, in configured order."""
        return [p for p in self.prizes if p.in_stock]

    def total_probability(self) -> float:
        return sum(p.probability for p in self.prizes)

    def probability_warnings(self) -> list[str]:
        """Return advisory warnings about the prize pool.

        A total over 100 is allowed; the draw walk simply never reaches the
        trailing share of the pool for high rolls.
        """
        warnings: list[str] = []
        total = self.total_probability()
        if total > MAX_PROBABILITY:
            warnings.append(
                f"Total prize probability is {total:g}%, which exceeds 100%; "
                "prizes late in the list may be unreachable."
            )
        return warnings

    # -------- draw log --------
    def records_for(self, phone: str) -> list[DrawRecord]:
        """Draw records of ``phone``, newest first."""
        return [r for r in self.draw_records if r.user_phone == phone]

    def records_for_prize(self, prize_id: str) -> list[DrawRecord]:
        return [r for r in self.draw_records if r.prize_id == prize_id]

    # -------- validation --------
    def validate(self) -> None:
        """Raise :class:`ValueError` when the configuration breaks a data-model rule.

        Probability totals over 100 are reported by
        :meth:`probability_warnings` instead of failing here.
        """
        if not self.id:
            raise ValueError("Configuration id must not be empty")
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be earlier than end_time")
        seen: set[str] = set()
        for prize in self.prizes:
            prize.validate()
            if prize.id in seen:
                raise ValueError(f"Duplicate prize id '{prize.id}'")
            seen.add(prize.id)
        for phone, user in self.users.items():
            user.validate()
            if phone != user.phone:
                raise ValueError(f"Registry key '{phone}' does not match participant phone")

    # -------- serialization --------
    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "startTime": dt_iso(self.start_time),
            "endTime": dt_iso(self.end_time),
            "participantType": self.participant_type.value,
            "prizes": [p.to_json() for p in self.prizes],
            "allowedUsers": [u.to_json() for u in self.users.values()],
            "drawRecords": [r.to_json() for r in self.draw_records],
            "themeColor": self.theme_color,
        }

    def to_json_str(self, **kwargs: Any) -> str:
        kwargs.setdefault("ensure_ascii", False)
        return json.dumps(self.to_json(), **kwargs)

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "LotteryConfig":
        """Decode a configuration document.

        The first registry entry wins when a phone appears more than once,
        matching how lookups resolved such documents before they were
        deduplicated.
        """
        if not isinstance(data, Mapping):
            raise ValueError("Lottery configuration must be a JSON object")
        try:
            participant_type = ParticipantType(
                data.get("participantType", ParticipantType.PRIVATE.value)
            )
        except ValueError as exc:
            raise ValueError(
                f"Unknown participantType {data.get('participantType')!r}"
            ) from exc

        users: dict[str, Participant] = {}
        for item in data.get("allowedUsers") or []:
            user = Participant.from_json(item)
            users.setdefault(user.phone, user)

        return cls(
            id=str(_require(data, "id", "LotteryConfig")),
            title=str(data.get("title", "")),
            description=str(data.get("description", "")),
            start_time=parse_timestamp(_require(data, "startTime", "LotteryConfig")),
            end_time=parse_timestamp(_require(data, "endTime", "LotteryConfig")),
            participant_type=participant_type,
            prizes=[Prize.from_json(p) for p in data.get("prizes") or []],
            users=users,
            draw_records=[DrawRecord.from_json(r) for r in data.get("drawRecords") or []],
            theme_color=str(data.get("themeColor") or DEFAULT_THEME_COLOR),
        )

    @classmethod
    def from_json_str(cls, payload: str) -> "LotteryConfig":
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Lottery configuration is not valid JSON: {exc}") from exc
        return cls.from_json(data)

    def copy(self) -> "LotteryConfig":
        """Return an independent deep copy via the JSON codec."""
        return type(self).from_json(self.to_json())


__all__ = [
    "DEFAULT_THEME_COLOR",
    "DrawRecord",
    "LotteryConfig",
    "NO_PRIZE_NAME",
    "PUBLIC_DEFAULT_CHANCES",
    "Participant",
    "ParticipantType",
    "Prize",
]
