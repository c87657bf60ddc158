"""Eligibility rules, weighted draw engine and data model of a lottery."""

from .config import (
    DrawRecord,
    LotteryConfig,
    NO_PRIZE_NAME,
    PUBLIC_DEFAULT_CHANCES,
    Participant,
    ParticipantType,
    Prize,
)
from .eligibility import EligibilityResult, check_eligibility, check_window
from .engine import DrawEngine, DrawOutcome, draw_roll, select_prize
from .errors import ErrorKind, LotteryError, StoreUnavailableError

__all__ = [
    "DrawEngine",
    "DrawOutcome",
    "DrawRecord",
    "EligibilityResult",
    "ErrorKind",
    "LotteryConfig",
    "LotteryError",
    "NO_PRIZE_NAME",
    "PUBLIC_DEFAULT_CHANCES",
    "Participant",
    "ParticipantType",
    "Prize",
    "StoreUnavailableError",
    "check_eligibility",
    "check_window",
    "draw_roll",
    "select_prize",
]
