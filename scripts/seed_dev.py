from datetime import datetime, timedelta, timezone

from luckygen.db.engine import get_sessionmaker, make_engine
from luckygen.lottery import LotteryConfig, Participant, ParticipantType, Prize
from luckygen.models import Base
from luckygen.store import SqlConfigStore
from luckygen.workflows import initialize_lottery


def main() -> None:
    """Write a demo lottery document into the development database."""
    engine = make_engine()
    Base.metadata.create_all(engine)
    store = SqlConfigStore(get_sessionmaker(engine))

    now = datetime.now(timezone.utc)
    config = LotteryConfig.create(
        "Annual Gala 2026",
        description="Spin once for a chance at the grand prize.",
        start_time=now - timedelta(hours=1),
        end_time=now + timedelta(days=7),
        participant_type=ParticipantType.PUBLIC,
        prizes=[
            Prize(
                id="prize-grand",
                level="Grand Prize",
                name="Laptop",
                probability=1,
                total_count=1,
                remaining_count=1,
            ),
            Prize(
                id="prize-first",
                level="First Prize",
                name="Headphones",
                probability=9,
                total_count=5,
                remaining_count=5,
            ),
            Prize(
                id="prize-second",
                level="Second Prize",
                name="Coffee voucher",
                probability=30,
                total_count=50,
                remaining_count=50,
            ),
        ],
        users=[
            Participant(phone="13800000001", name="Alice", total_chances=3),
            Participant(phone="13800000002", name="Bob", total_chances=1),
        ],
    )
    initialize_lottery(store, config)
    print(f"Seeded lottery {config.id} under key '{store.key}'")


if __name__ == "__main__":
    main()
