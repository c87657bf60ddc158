"""Weighted prize selection and the state changes of a single draw."""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from ..db.utils import as_utc
from .config import NO_PRIZE_NAME, DrawRecord, LotteryConfig, Prize
from .errors import ErrorKind, LotteryError
from .utils import generate_id

logger = logging.getLogger(__name__)

ROLL_CEILING = 100.0
_MAX_ROLL = math.nextafter(ROLL_CEILING, 0.0)


@dataclass(frozen=True)
class DrawOutcome:
    """Result of one draw.

    Attributes
    ----------
    record : DrawRecord
        Log entry prepended to the configuration's draw records.
    prize : Optional[Prize]
        Prize won, with its inventory already decremented; ``None`` when
        nothing was won.
    """

    record: DrawRecord
    prize: Optional[Prize]

    @property
    def won(self) -> bool:
        return self.prize is not None


def draw_roll(rng: Optional[random.Random] = None) -> float:
    """Return a uniform random value in ``[0, 100)``."""
    source = rng if rng is not None else random
    # random() * 100 can round up to exactly 100.0 for values just below 1.
    return min(source.random() * ROLL_CEILING, _MAX_ROLL)


def select_prize(prizes: Iterable[Prize], roll: float) -> Optional[Prize]:
    """Pick the prize for ``roll`` by walking cumulative probabilities.

    Prizes without inventory or with a non-positive weight are skipped,
    the rest are visited in configured order, and the first prize whose
    cumulative probability reaches ``roll`` wins. Probabilities are points
    out of 100 and are never normalized, so a pool totalling less than 100
    leaves a no-win share and a pool totalling more than 100 leaves its tail
    unreachable for high rolls. A weightless prize is never selected, even
    by a roll of exactly 0 at the head of the pool.

    Parameters
    ----------
    prizes : Iterable[Prize]
        Prize pool in configured order.
    roll : float
        Value in ``[0, 100)``.

    Returns
    -------
    Optional[Prize]
        The winning prize, or ``None`` for no prize.

    Raises
    ------
    ValueError
        If ``roll`` is outside ``[0, 100)``.
    """
    if not 0 <= roll < ROLL_CEILING:
        raise ValueError(f"roll must be within [0, 100), got {roll}")

    cumulative = 0.0
    for prize in prizes:
        if not prize.in_stock or prize.probability <= 0:
            continue
        cumulative += prize.probability
        if roll <= cumulative:
            return prize
    return None


class DrawEngine:
    """Performs draws against an in-memory configuration.

    The engine is the only code that changes chance counters and prize
    inventory. It does not persist anything; callers write the whole
    configuration back after a successful draw.
    """

    def __init__(
        self,
        *,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """Create a draw engine.

        Parameters
        ----------
        rng : Optional[random.Random], default: None
            Random source for rolls; the module-level generator when omitted.
        clock : Optional[Callable[[], datetime]], default: None
            Supplies draw record timestamps; UTC wall clock when omitted.
        """
        self._rng = rng
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def perform_draw(
        self,
        config: LotteryConfig,
        phone: str,
        *,
        roll: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> DrawOutcome:
        """Consume one chance of ``phone`` and select a prize.

        Parameters
        ----------
        config : LotteryConfig
            Freshly loaded configuration, mutated in place.
        phone : str
            Phone of a registered participant.
        roll : Optional[float], default: None
            Fixed roll in ``[0, 100)``; drawn from the engine's random
            source when omitted.
        now : Optional[datetime], default: None
            Timestamp for the draw record.

        Returns
        -------
        DrawOutcome
            The appended record and the won prize, if any.

        Raises
        ------
        LotteryError
            ``USER_NOT_FOUND`` when ``phone`` is not registered and
            ``NO_CHANCES_LEFT`` when its chances are used up. The
            configuration is left untouched in both cases.
        """
        user = config.get_user(phone)
        if user is None:
            logger.warning(f"Draw refused for unknown participant {phone}")
            raise LotteryError(ErrorKind.USER_NOT_FOUND)
        if not user.has_chances_left:
            logger.warning(f"Draw refused for {phone}: no chances left")
            raise LotteryError(ErrorKind.NO_CHANCES_LEFT)

        value = draw_roll(self._rng) if roll is None else roll
        prize = select_prize(config.prizes, value)

        user.used_chances += 1
        if prize is not None:
            prize.remaining_count -= 1

        record = DrawRecord(
            id=generate_id("draw", {r.id for r in config.draw_records}),
            timestamp=as_utc(now if now is not None else self._clock()),
            user_phone=phone,
            prize_id=prize.id if prize is not None else None,
            prize_name=prize.name if prize is not None else NO_PRIZE_NAME,
        )
        config.draw_records.insert(0, record)

        logger.info(
            f"Draw {record.id} for {phone}: roll={value:.4f} "
            f"prize={record.prize_id or '-'} "
            f"chances={user.used_chances}/{user.total_chances}"
        )
        return DrawOutcome(record=record, prize=prize)


__all__ = ["DrawEngine", "DrawOutcome", "draw_roll", "select_prize"]
