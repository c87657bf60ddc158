from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from ..db.engine import get_sessionmaker, make_engine
from ..lottery.config import LotteryConfig
from ..lottery.errors import StoreUnavailableError
from ..models import LotteryDocument
from ..settings import DEFAULT_DOCUMENT_KEY
from .base import ConfigStore

logger = logging.getLogger(__name__)


class SqlConfigStore(ConfigStore):
    """Store keeping the document as a JSON blob row in ``lottery_documents``."""

    def __init__(
        self,
        session_factory: sessionmaker,
        key: str = DEFAULT_DOCUMENT_KEY,
    ) -> None:
        """Create a store bound to a SQLAlchemy session factory.

        Parameters
        ----------
        session_factory : sessionmaker
            Factory producing sessions on the database that holds the
            ``lottery_documents`` table.
        key : str, default: ``"luckygen_lottery_data"``
            Row key of the document.
        """
        super().__init__(key)
        self._session_factory = session_factory

    @classmethod
    def from_url(
        cls, database_url: Optional[str] = None, key: str = DEFAULT_DOCUMENT_KEY
    ) -> "SqlConfigStore":
        """Create a store on ``database_url`` (``DB_URL`` when omitted)."""
        engine = make_engine(database_url)
        return cls(get_sessionmaker(engine), key=key)

    def load(self) -> Optional[LotteryConfig]:
        try:
            with self._session_factory() as session:
                document = LotteryDocument.get_by_key(session, self.key)
                payload = document.payload if document is not None else None
        except SQLAlchemyError as exc:
            logger.error(f"Failed to load lottery document '{self.key}': {exc}")
            raise StoreUnavailableError(
                f"Failed to load lottery document '{self.key}'"
            ) from exc

        if payload is None:
            return None
        return LotteryConfig.from_json_str(payload)

    def save(self, config: LotteryConfig) -> None:
        payload = config.to_json_str()
        try:
            with self._session_factory.begin() as session:
                document = LotteryDocument.get_by_key(session, self.key)
                if document is None:
                    session.add(LotteryDocument(key=self.key, payload=payload))
                else:
                    document.payload = payload
                    document.updated_at = datetime.now(timezone.utc)
        except SQLAlchemyError as exc:
            logger.error(f"Failed to save lottery document '{self.key}': {exc}")
            raise StoreUnavailableError(
                f"Failed to save lottery document '{self.key}'"
            ) from exc
        logger.debug(f"Saved lottery document '{self.key}' ({len(payload)} bytes)")

    def clear(self) -> None:
        try:
            with self._session_factory.begin() as session:
                session.execute(
                    delete(LotteryDocument).where(LotteryDocument.key == self.key)
                )
        except SQLAlchemyError as exc:
            logger.error(f"Failed to clear lottery document '{self.key}': {exc}")
            raise StoreUnavailableError(
                f"Failed to clear lottery document '{self.key}'"
            ) from exc
