from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .document import LotteryDocument  # noqa: F401

__all__ = [
    "Base",
    "LotteryDocument",
]
