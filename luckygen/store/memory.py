from __future__ import annotations

from typing import Optional

from ..lottery.config import LotteryConfig
from ..settings import DEFAULT_DOCUMENT_KEY
from .base import ConfigStore


class MemoryConfigStore(ConfigStore):
    """Process-local store keeping the serialized document.

    Only the JSON text is retained, so callers never share mutable objects
    with the store and every :meth:`load` returns an independent copy.
    """

    def __init__(
        self,
        initial: Optional[LotteryConfig] = None,
        key: str = DEFAULT_DOCUMENT_KEY,
    ) -> None:
        super().__init__(key)
        self._payload: Optional[str] = None
        if initial is not None:
            self._payload = initial.to_json_str()

    def load(self) -> Optional[LotteryConfig]:
        if self._payload is None:
            return None
        return LotteryConfig.from_json_str(self._payload)

    def save(self, config: LotteryConfig) -> None:
        self._payload = config.to_json_str()

    def clear(self) -> None:
        self._payload = None
