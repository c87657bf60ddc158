from __future__ import annotations

import random
import unittest
from datetime import datetime, timedelta, timezone

from luckygen.lottery import (
    DrawEngine,
    ErrorKind,
    LotteryConfig,
    LotteryError,
    NO_PRIZE_NAME,
    Participant,
    ParticipantType,
    Prize,
    check_eligibility,
    draw_roll,
    select_prize,
)

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)


def prize(prize_id: str, probability: float, remaining: int, total=None) -> Prize:
    return Prize(
        id=prize_id,
        level=prize_id.upper(),
        name=f"{prize_id} name",
        probability=probability,
        total_count=remaining if total is None else total,
        remaining_count=remaining,
    )


def make_config(prizes, participant_type=ParticipantType.PUBLIC) -> LotteryConfig:
    return LotteryConfig(
        id="lottery-engine",
        title="Engine",
        start_time=NOW - timedelta(days=1),
        end_time=NOW + timedelta(days=1),
        participant_type=participant_type,
        prizes=prizes,
    )


class SelectPrizeTests(unittest.TestCase):
    def setUp(self) -> None:
        self.pool = [prize("p1", 30, 1), prize("p2", 20, 5)]

    def test_roll_within_first_band_wins_first(self) -> None:
        self.assertEqual(select_prize(self.pool, 15).id, "p1")

    def test_band_edges_are_inclusive(self) -> None:
        self.assertEqual(select_prize(self.pool, 30).id, "p1")
        self.assertEqual(select_prize(self.pool, 30.0001).id, "p2")
        self.assertEqual(select_prize(self.pool, 50).id, "p2")

    def test_roll_past_total_wins_nothing(self) -> None:
        self.assertIsNone(select_prize(self.pool, 50.0001))
        self.assertIsNone(select_prize(self.pool, 99.999))

    def test_empty_pool_wins_nothing(self) -> None:
        self.assertIsNone(select_prize([], 0))

    def test_out_of_stock_prizes_are_skipped(self) -> None:
        pool = [prize("p1", 30, 0, total=1), prize("p2", 20, 5)]
        # The band of p2 now starts at zero.
        self.assertEqual(select_prize(pool, 15).id, "p2")
        self.assertIsNone(select_prize(pool, 25))

    def test_zero_weight_prize_is_never_selected(self) -> None:
        pool = [prize("zero", 0, 3), prize("p2", 20, 5)]
        self.assertEqual(select_prize(pool, 0).id, "p2")

    def test_overweight_pool_leaves_tail_unreachable(self) -> None:
        pool = [prize("a", 80, 1), prize("b", 80, 1)]
        self.assertEqual(select_prize(pool, 79).id, "a")
        self.assertEqual(select_prize(pool, 99.5).id, "b")
        # Once "a" is exhausted, "b" takes over the low band.
        pool[0].remaining_count = 0
        self.assertEqual(select_prize(pool, 10).id, "b")

    def test_selection_is_deterministic_for_fixed_roll(self) -> None:
        pool = [prize("a", 12.5, 3), prize("b", 7.5, 3), prize("c", 40, 3)]
        rolls = [0, 5, 12.5, 12.6, 20, 20.1, 59.9, 60, 60.1, 99]
        first = [getattr(select_prize(pool, r), "id", None) for r in rolls]
        second = [getattr(select_prize(pool, r), "id", None) for r in rolls]
        self.assertEqual(first, second)
        self.assertEqual(first, ["a", "a", "a", "b", "b", "c", "c", "c", None, None])

    def test_roll_outside_range_raises(self) -> None:
        for roll in (-0.1, 100, 150):
            with self.subTest(roll=roll), self.assertRaises(ValueError):
                select_prize(self.pool, roll)


class DrawRollTests(unittest.TestCase):
    def test_rolls_stay_in_half_open_range(self) -> None:
        rng = random.Random(7)
        for _ in range(2000):
            value = draw_roll(rng)
            self.assertGreaterEqual(value, 0)
            self.assertLess(value, 100)

    def test_roll_never_reaches_ceiling(self) -> None:
        class AlmostOne:
            def random(self) -> float:
                return 0.9999999999999999

        self.assertLess(draw_roll(AlmostOne()), 100)  # type: ignore[arg-type]


class DrawEngineTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = DrawEngine(clock=lambda: NOW)

    def test_spec_example_public_flow(self) -> None:
        config = make_config([prize("P1", 30, 1), prize("P2", 20, 5)])
        phone = "13800000000"

        eligibility = check_eligibility(config, phone, now=NOW)
        self.assertTrue(eligibility.eligible)
        self.assertEqual(eligibility.user.total_chances, 1)
        self.assertEqual(eligibility.user.used_chances, 0)

        outcome = self.engine.perform_draw(config, phone, roll=15)
        self.assertTrue(outcome.won)
        self.assertEqual(outcome.prize.id, "P1")
        self.assertEqual(config.get_prize("P1").remaining_count, 0)
        self.assertEqual(config.get_user(phone).used_chances, 1)
        self.assertEqual(outcome.record.prize_id, "P1")
        self.assertEqual(outcome.record.prize_name, "P1 name")
        self.assertEqual(outcome.record.timestamp, NOW)
        self.assertIs(config.draw_records[0], outcome.record)

        with self.assertRaises(LotteryError) as ctx:
            self.engine.perform_draw(config, phone, roll=15)
        self.assertEqual(ctx.exception.kind, ErrorKind.NO_CHANCES_LEFT)
        self.assertEqual(
            check_eligibility(config, phone, now=NOW).reason, ErrorKind.NO_CHANCES_LEFT
        )

    def test_no_prize_still_consumes_chance(self) -> None:
        config = make_config([prize("a", 25, 2), prize("b", 15, 2)])
        config.add_user(Participant(phone="1", total_chances=2))

        outcome = self.engine.perform_draw(config, "1", roll=85)

        self.assertFalse(outcome.won)
        self.assertIsNone(outcome.prize)
        self.assertIsNone(outcome.record.prize_id)
        self.assertEqual(outcome.record.prize_name, NO_PRIZE_NAME)
        self.assertEqual([p.remaining_count for p in config.prizes], [2, 2])
        self.assertEqual(config.get_user("1").used_chances, 1)

    def test_unknown_user_raises_without_mutation(self) -> None:
        config = make_config([prize("a", 50, 2)])
        before = config.to_json()
        with self.assertRaises(LotteryError) as ctx:
            self.engine.perform_draw(config, "missing", roll=1)
        self.assertEqual(ctx.exception.kind, ErrorKind.USER_NOT_FOUND)
        self.assertEqual(config.to_json(), before)

    def test_exhausted_participant_is_idempotent(self) -> None:
        config = make_config([prize("a", 50, 2)])
        config.add_user(Participant(phone="1", total_chances=1, used_chances=1))
        before = config.to_json()
        for _ in range(3):
            with self.assertRaises(LotteryError) as ctx:
                self.engine.perform_draw(config, "1")
            self.assertEqual(ctx.exception.kind, ErrorKind.NO_CHANCES_LEFT)
        self.assertEqual(config.to_json(), before)

    def test_invalid_roll_does_not_consume_chance(self) -> None:
        config = make_config([prize("a", 50, 2)])
        config.add_user(Participant(phone="1", total_chances=1))
        with self.assertRaises(ValueError):
            self.engine.perform_draw(config, "1", roll=100)
        self.assertEqual(config.get_user("1").used_chances, 0)
        self.assertEqual(config.draw_records, [])

    def test_records_are_prepended(self) -> None:
        config = make_config([prize("a", 100, 10)])
        config.add_user(Participant(phone="1", total_chances=3))
        ids = [self.engine.perform_draw(config, "1", roll=1).record.id for _ in range(3)]
        self.assertEqual([r.id for r in config.draw_records], list(reversed(ids)))
        self.assertEqual(len(set(ids)), 3)

    def test_seeded_engine_is_reproducible(self) -> None:
        def run(seed: int) -> list:
            config = make_config([prize("a", 10, 50), prize("b", 30, 50)])
            config.add_user(Participant(phone="1", total_chances=40))
            engine = DrawEngine(rng=random.Random(seed), clock=lambda: NOW)
            return [engine.perform_draw(config, "1").record.prize_id for _ in range(40)]

        self.assertEqual(run(42), run(42))


class ConservationTests(unittest.TestCase):
    """Inventory and chance invariants over long random draw sequences."""

    def test_inventory_and_chances_are_conserved(self) -> None:
        for seed in range(5):
            with self.subTest(seed=seed):
                rng = random.Random(seed)
                config = make_config(
                    [prize("gold", 5, 2), prize("silver", 25, 6), prize("bronze", 60, 15)]
                )
                for i in range(12):
                    config.add_user(
                        Participant(phone=f"p{i}", total_chances=rng.randint(0, 6))
                    )
                engine = DrawEngine(rng=rng, clock=lambda: NOW)
                successes = {phone: 0 for phone in config.users}

                for _ in range(300):
                    phone = rng.choice(list(config.users))
                    user = config.get_user(phone)
                    used_before = user.used_chances
                    try:
                        engine.perform_draw(config, phone)
                    except LotteryError as exc:
                        self.assertEqual(exc.kind, ErrorKind.NO_CHANCES_LEFT)
                        self.assertEqual(user.used_chances, used_before)
                        continue
                    successes[phone] += 1
                    self.assertEqual(user.used_chances, used_before + 1)

                for p in config.prizes:
                    self.assertGreaterEqual(p.remaining_count, 0)
                    self.assertEqual(
                        p.total_count - p.remaining_count,
                        len(config.records_for_prize(p.id)),
                    )
                for phone, user in config.users.items():
                    self.assertLessEqual(user.used_chances, user.total_chances)
                    self.assertEqual(user.used_chances, successes[phone])
                    self.assertEqual(len(config.records_for(phone)), successes[phone])

    def test_pool_drains_to_no_prize(self) -> None:
        config = make_config([prize("only", 100, 3)])
        config.add_user(Participant(phone="1", total_chances=5))
        engine = DrawEngine(rng=random.Random(1), clock=lambda: NOW)
        outcomes = [engine.perform_draw(config, "1").won for _ in range(5)]
        self.assertEqual(outcomes, [True, True, True, False, False])
        self.assertEqual(config.prizes[0].remaining_count, 0)


if __name__ == "__main__":
    unittest.main()
