"""Operations exposed to the admin and participant front ends.

Every mutating workflow follows the same sequence while holding the lock of
the configuration document: load the latest copy from the store, apply the
change to that copy, and write the whole document back. A failed write
raises :class:`~luckygen.lottery.errors.StoreUnavailableError`, in which
case the change must be treated as not applied.

The lock serializes workflows within one process only; two processes
sharing a store can still interleave their read-modify-write sequences.
"""

from __future__ import annotations

import hmac
import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Optional, TypeVar

from .lottery import admin
from .lottery.admin import LotteryStats
from .lottery.config import DrawRecord, LotteryConfig, ParticipantType, Participant, Prize
from .lottery.eligibility import EligibilityResult, check_eligibility as _check_eligibility
from .lottery.eligibility import check_window
from .lottery.engine import DrawEngine, DrawOutcome
from .lottery.errors import ErrorKind, LotteryError
from .settings import Settings
from .store.base import ConfigStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

_LOCKS: dict[str, threading.Lock] = {}
_LOCKS_GUARD = threading.Lock()

_DEFAULT_ENGINE = DrawEngine()


def _document_lock(store: ConfigStore) -> threading.Lock:
    with _LOCKS_GUARD:
        return _LOCKS.setdefault(store.key, threading.Lock())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _require_config(store: ConfigStore) -> LotteryConfig:
    config = store.load()
    if config is None:
        raise LotteryError(ErrorKind.NOT_CONFIGURED)
    return config


def _update(store: ConfigStore, mutate: Callable[[LotteryConfig], T]) -> T:
    """Apply ``mutate`` to the latest document and persist it."""
    with _document_lock(store):
        config = _require_config(store)
        result = mutate(config)
        store.save(config)
        return result


def open_store(settings: Optional[Settings] = None) -> ConfigStore:
    """Create the store described by ``settings``.

    A remote backend is used when ``api_base`` is configured, otherwise the
    SQL database at ``db_url``.
    """
    from .store.http import HttpConfigStore
    from .store.sql import SqlConfigStore

    settings = settings or Settings.from_env()
    if settings.api_base:
        return HttpConfigStore(
            settings.api_base,
            key=settings.document_key,
            timeout=settings.api_timeout,
        )
    return SqlConfigStore.from_url(settings.db_url, key=settings.document_key)


# -------- participant operations --------
def load_config(store: ConfigStore) -> Optional[LotteryConfig]:
    """Return the current configuration, or ``None`` when none exists."""
    return store.load()


def refresh(store: ConfigStore) -> Optional[LotteryConfig]:
    """Reload the configuration.

    Front ends that show live inventory call this on their own timer; there
    is no background synchronization.
    """
    return load_config(store)


def check_eligibility(
    store: ConfigStore,
    phone: str,
    name: str = "",
    *,
    now: Optional[datetime] = None,
) -> EligibilityResult:
    """Check whether ``phone`` may draw, persisting a PUBLIC auto-registration.

    Parameters
    ----------
    store : ConfigStore
        Store holding the configuration.
    phone : str
        Participant phone number.
    name : str, default: ""
        Participant name, compared against the allowlist in PRIVATE mode.
    now : Optional[datetime], default: None
        Current time override.

    Returns
    -------
    EligibilityResult
        ``reason`` is ``NOT_CONFIGURED`` when the store holds no document.

    Raises
    ------
    StoreUnavailableError
        If loading fails, or if saving an auto-registered participant fails.
    """
    with _document_lock(store):
        config = store.load()
        if config is None:
            return EligibilityResult(eligible=False, reason=ErrorKind.NOT_CONFIGURED)

        result = _check_eligibility(config, phone, name, now=now or _utcnow())
        if result.registered:
            store.save(config)
        return result


def perform_draw(
    store: ConfigStore,
    phone: str,
    *,
    engine: Optional[DrawEngine] = None,
    roll: Optional[float] = None,
    now: Optional[datetime] = None,
) -> DrawOutcome:
    """Run one draw for ``phone`` and persist the updated configuration.

    The time window is checked again on the freshly loaded document because
    it may have changed since the caller's eligibility check. The engine
    then re-checks registration and remaining chances.

    Parameters
    ----------
    store : ConfigStore
        Store holding the configuration.
    phone : str
        Participant phone number.
    engine : Optional[DrawEngine], default: None
        Engine override, e.g. one with a seeded random source.
    roll : Optional[float], default: None
        Fixed roll in ``[0, 100)``.
    now : Optional[datetime], default: None
        Current time override, also used as the record timestamp.

    Returns
    -------
    DrawOutcome
        The persisted draw record and the won prize, if any.

    Raises
    ------
    LotteryError
        ``NOT_CONFIGURED``, ``NOT_STARTED``, ``ENDED``, ``USER_NOT_FOUND`` or
        ``NO_CHANCES_LEFT``; nothing is written in these cases.
    StoreUnavailableError
        If the document cannot be loaded or the result cannot be saved. The
        draw must then be treated as not having happened.
    """
    active_engine = engine or _DEFAULT_ENGINE
    with _document_lock(store):
        config = _require_config(store)
        current = now or _utcnow()
        window_failure = check_window(config, current)
        if window_failure is not None:
            raise LotteryError(window_failure)

        outcome = active_engine.perform_draw(config, phone, roll=roll, now=current)
        store.save(config)
        return outcome


def user_history(store: ConfigStore, phone: str) -> list[DrawRecord]:
    """Draw records of ``phone``, newest first."""
    config = store.load()
    if config is None:
        return []
    return config.records_for(phone)


# -------- admin operations --------
def authenticate_admin(password: str, settings: Optional[Settings] = None) -> bool:
    """Return ``True`` when ``password`` matches the configured admin password."""
    settings = settings or Settings.from_env()
    expected = settings.admin_password
    if not expected or not password:
        return False
    return hmac.compare_digest(password.encode("utf-8"), expected.encode("utf-8"))


def initialize_lottery(store: ConfigStore, config: LotteryConfig) -> LotteryConfig:
    """Validate ``config`` and store it, replacing any existing document.

    Probability totals over 100 are logged as warnings, not rejected.
    """
    config.validate()
    for warning in config.probability_warnings():
        logger.warning(f"Lottery {config.id}: {warning}")
    with _document_lock(store):
        store.save(config)
    logger.info(f"Initialized lottery {config.id} ({len(config.prizes)} prizes)")
    return config


def reset_lottery(store: ConfigStore) -> None:
    """Discard the whole configuration document."""
    with _document_lock(store):
        store.clear()
    logger.info(f"Reset lottery document '{store.key}'")


def update_details(
    store: ConfigStore,
    *,
    title: Optional[str] = None,
    description: Optional[str] = None,
    start_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None,
    participant_type: Optional[ParticipantType] = None,
    theme_color: Optional[str] = None,
) -> LotteryConfig:
    """Change event-level fields on the latest document."""
    return _update(
        store,
        lambda config: admin.update_details(
            config,
            title=title,
            description=description,
            start_time=start_time,
            end_time=end_time,
            participant_type=participant_type,
            theme_color=theme_color,
        ),
    )


def add_or_update_user(
    store: ConfigStore, phone: str, name: str, total_chances: int
) -> Participant:
    return _update(
        store, lambda config: admin.add_or_update_user(config, phone, name, total_chances)
    )


def remove_user(store: ConfigStore, phone: str) -> bool:
    """Remove a participant; the document is only written when one was removed."""
    with _document_lock(store):
        config = _require_config(store)
        removed = admin.remove_user(config, phone)
        if removed:
            store.save(config)
        return removed


def add_prize(
    store: ConfigStore,
    *,
    name: str,
    level: str = admin.DEFAULT_PRIZE_LEVEL,
    probability: float = admin.DEFAULT_PRIZE_PROBABILITY,
    total_count: int = 1,
    description: str = "",
) -> Prize:
    def mutate(config: LotteryConfig) -> Prize:
        prize = admin.add_prize(
            config,
            name=name,
            level=level,
            probability=probability,
            total_count=total_count,
            description=description,
        )
        for warning in config.probability_warnings():
            logger.warning(f"Lottery {config.id}: {warning}")
        return prize

    return _update(store, mutate)


def remove_prize(store: ConfigStore, prize_id: str) -> Prize:
    return _update(store, lambda config: admin.remove_prize(config, prize_id))


def update_prize_level(store: ConfigStore, prize_id: str, level: str) -> Prize:
    return _update(store, lambda config: admin.update_prize_level(config, prize_id, level))


def update_prize_name(store: ConfigStore, prize_id: str, name: str) -> Prize:
    return _update(store, lambda config: admin.update_prize_name(config, prize_id, name))


def update_prize_description(store: ConfigStore, prize_id: str, description: str) -> Prize:
    return _update(
        store, lambda config: admin.update_prize_description(config, prize_id, description)
    )


def update_prize_probability(store: ConfigStore, prize_id: str, probability: float) -> Prize:
    def mutate(config: LotteryConfig) -> Prize:
        prize = admin.update_prize_probability(config, prize_id, probability)
        for warning in config.probability_warnings():
            logger.warning(f"Lottery {config.id}: {warning}")
        return prize

    return _update(store, mutate)


def update_prize_count(store: ConfigStore, prize_id: str, total_count: int) -> Prize:
    return _update(
        store, lambda config: admin.update_prize_count(config, prize_id, total_count)
    )


def lottery_stats(store: ConfigStore) -> LotteryStats:
    return admin.compute_stats(_require_config(store))


__all__ = [
    "add_or_update_user",
    "add_prize",
    "authenticate_admin",
    "check_eligibility",
    "initialize_lottery",
    "load_config",
    "lottery_stats",
    "open_store",
    "perform_draw",
    "refresh",
    "remove_prize",
    "remove_user",
    "reset_lottery",
    "update_details",
    "update_prize_count",
    "update_prize_description",
    "update_prize_level",
    "update_prize_name",
    "update_prize_probability",
    "user_history",
]
