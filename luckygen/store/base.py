from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from ..lottery.config import LotteryConfig
from ..settings import DEFAULT_DOCUMENT_KEY


class ConfigStore(ABC):
    """Holds one lottery configuration document.

    Reads and writes always cover the whole document; ``save`` overwrites
    any previous version (last write wins). Implementations raise
    :class:`~luckygen.lottery.errors.StoreUnavailableError` when the backing
    storage cannot be reached.
    """

    def __init__(self, key: str = DEFAULT_DOCUMENT_KEY) -> None:
        self.key = key

    @abstractmethod
    def load(self) -> Optional[LotteryConfig]:
        """Return a fresh copy of the stored configuration, or ``None``."""

    @abstractmethod
    def save(self, config: LotteryConfig) -> None:
        """Durably persist ``config`` in full."""

    @abstractmethod
    def clear(self) -> None:
        """Discard the stored document."""
