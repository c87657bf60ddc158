import unittest
from datetime import datetime, timedelta, timezone

from luckygen.lottery import (
    DrawEngine,
    ErrorKind,
    LotteryConfig,
    LotteryError,
    Participant,
    ParticipantType,
)
from luckygen.lottery import admin

NOW = datetime(2026, 6, 1, tzinfo=timezone.utc)


class AdminEditTests(unittest.TestCase):
    def setUp(self) -> None:
        self.config = LotteryConfig(
            id="lottery-admin",
            title="Admin",
            start_time=NOW - timedelta(hours=1),
            end_time=NOW + timedelta(hours=1),
        )

    def test_add_prize_uses_defaults_and_full_inventory(self) -> None:
        prize = admin.add_prize(self.config, name="Mug", total_count=4)
        self.assertTrue(prize.id.startswith("prize-"))
        self.assertEqual(prize.level, admin.DEFAULT_PRIZE_LEVEL)
        self.assertEqual(prize.probability, admin.DEFAULT_PRIZE_PROBABILITY)
        self.assertEqual(prize.remaining_count, 4)
        self.assertIs(self.config.prizes[-1], prize)

    def test_add_prize_rejects_invalid_input(self) -> None:
        with self.assertRaises(ValueError):
            admin.add_prize(self.config, name="Bad", probability=120)
        with self.assertRaises(ValueError):
            admin.add_prize(self.config, name="Bad", total_count=-1)
        self.assertEqual(self.config.prizes, [])

    def test_update_prize_fields(self) -> None:
        prize = admin.add_prize(self.config, name="Mug")
        admin.update_prize_level(self.config, prize.id, "Gold")
        admin.update_prize_name(self.config, prize.id, "Golden mug")
        admin.update_prize_description(self.config, prize.id, "Shiny")
        admin.update_prize_probability(self.config, prize.id, 42)
        self.assertEqual(
            (prize.level, prize.name, prize.description, prize.probability),
            ("Gold", "Golden mug", "Shiny", 42.0),
        )

    def test_update_prize_probability_range(self) -> None:
        prize = admin.add_prize(self.config, name="Mug")
        with self.assertRaises(ValueError):
            admin.update_prize_probability(self.config, prize.id, -5)

    def test_update_count_resets_remaining(self) -> None:
        prize = admin.add_prize(self.config, name="Mug", total_count=3)
        prize.remaining_count = 1
        admin.update_prize_count(self.config, prize.id, 10)
        self.assertEqual((prize.total_count, prize.remaining_count), (10, 10))
        with self.assertRaises(ValueError):
            admin.update_prize_count(self.config, prize.id, -1)

    def test_unknown_prize_raises_prize_not_found(self) -> None:
        with self.assertRaises(LotteryError) as ctx:
            admin.update_prize_name(self.config, "nope", "x")
        self.assertEqual(ctx.exception.kind, ErrorKind.PRIZE_NOT_FOUND)
        with self.assertRaises(LotteryError):
            admin.remove_prize(self.config, "nope")

    def test_remove_prize(self) -> None:
        first = admin.add_prize(self.config, name="A")
        second = admin.add_prize(self.config, name="B")
        removed = admin.remove_prize(self.config, first.id)
        self.assertIs(removed, first)
        self.assertEqual(self.config.prizes, [second])

    def test_renaming_prize_keeps_history(self) -> None:
        prize = admin.add_prize(self.config, name="Mug", probability=100)
        self.config.add_user(Participant(phone="1", total_chances=1))
        DrawEngine(clock=lambda: NOW).perform_draw(self.config, "1", roll=1)
        admin.update_prize_name(self.config, prize.id, "Cup")
        self.assertEqual(self.config.draw_records[0].prize_name, "Mug")

    def test_add_or_update_user(self) -> None:
        user = admin.add_or_update_user(self.config, " 100 ", "Ann", 2)
        self.assertEqual(user.phone, "100")
        user.used_chances = 1

        updated = admin.add_or_update_user(self.config, "100", "Anne", 5)
        self.assertIs(updated, user)
        self.assertEqual((updated.name, updated.total_chances, updated.used_chances), ("Anne", 5, 1))
        self.assertEqual(len(self.config.users), 1)

    def test_add_or_update_user_rejects_invalid_grants(self) -> None:
        with self.assertRaises(ValueError):
            admin.add_or_update_user(self.config, "", "Nobody", 1)
        with self.assertRaises(ValueError):
            admin.add_or_update_user(self.config, "1", "Neg", -1)
        user = admin.add_or_update_user(self.config, "2", "Used", 3)
        user.used_chances = 2
        with self.assertRaises(ValueError):
            admin.add_or_update_user(self.config, "2", "Used", 1)
        self.assertEqual(user.total_chances, 3)

    def test_remove_user(self) -> None:
        admin.add_or_update_user(self.config, "1", "A", 1)
        self.assertTrue(admin.remove_user(self.config, "1"))
        self.assertFalse(admin.remove_user(self.config, "1"))

    def test_update_details(self) -> None:
        new_end = NOW + timedelta(days=2)
        admin.update_details(
            self.config,
            title="Renamed",
            end_time=new_end,
            participant_type=ParticipantType.PUBLIC,
        )
        self.assertEqual(self.config.title, "Renamed")
        self.assertEqual(self.config.end_time, new_end)
        self.assertEqual(self.config.participant_type, ParticipantType.PUBLIC)
        with self.assertRaises(ValueError):
            admin.update_details(self.config, start_time=new_end)

    def test_compute_stats(self) -> None:
        admin.add_prize(self.config, name="A", total_count=3, probability=100)
        admin.add_prize(self.config, name="B", total_count=2)
        admin.add_or_update_user(self.config, "1", "A", 2)
        admin.add_or_update_user(self.config, "2", "B", 1)
        DrawEngine(clock=lambda: NOW).perform_draw(self.config, "1", roll=50)

        stats = admin.compute_stats(self.config)
        self.assertEqual(stats.total_users, 2)
        self.assertEqual(stats.draw_count, 1)
        self.assertEqual(stats.total_prizes, 5)
        self.assertEqual(stats.remaining_prizes, 4)


if __name__ == "__main__":
    unittest.main()
