"""Database model holding serialized lottery configuration documents."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text, UniqueConstraint, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from .base import Base


class LotteryDocument(Base):
    """A whole lottery configuration stored as one JSON blob under a key.

    The row is always read and written as a unit; the store layer never
    updates individual fields of the embedded configuration.
    """

    __tablename__ = "lottery_documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    """Primary key."""

    key: Mapped[str] = mapped_column(String(100), nullable=False)
    """Storage key identifying the document."""

    payload: Mapped[str] = mapped_column(Text, nullable=False)
    """JSON text produced by :meth:`LotteryConfig.to_json_str`."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    """Timestamp when the document was first saved."""

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    """Timestamp bumped on every overwrite."""

    __table_args__ = (
        UniqueConstraint("key", name="lottery_documents_key_key"),
    )

    def __init__(
        self,
        *,
        key: str,
        payload: str,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ) -> None:
        self.key = key
        self.payload = payload
        if created_at is not None:
            self.created_at = created_at
        if updated_at is not None:
            self.updated_at = updated_at

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<LotteryDocument(id={id}, key={key}, updated_at={updated})>".format(
            id=self.id,
            key=self.key,
            updated=self.updated_at,
        )

    @classmethod
    def get_by_key(cls, session: Session, key: str) -> Optional["LotteryDocument"]:
        """Return the document stored under ``key`` if it exists."""

        return session.scalar(select(cls).where(cls.key == key))
