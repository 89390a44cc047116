from enum import StrEnum
from sqlalchemy import String, DateTime, ForeignKey, Integer, Text, Index
from sqlalchemy.orm import Mapped, mapped_column

from ..db.base_class import Base
from . import utcnow


class TransactionType(StrEnum):
    EARN = "EARN"
    SPEND = "SPEND"
    ADJUST = "ADJUST"


class PointTransaction(Base):
    """Append-only ledger row. Rows are never updated except to null a reference."""

    __tablename__ = "point_transaction"
    __table_args__ = (Index("ix_point_transaction_kid_id_created_at", "kid_id", "created_at"),)

    # autoincrement id doubles as the commit order of a kid's history
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    kid_id: Mapped[str] = mapped_column(String(36), ForeignKey("kid.id"), index=True, nullable=False)
    type: Mapped[TransactionType] = mapped_column()
    delta: Mapped[int] = mapped_column(Integer, nullable=False)
    task_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("task.id"), index=True)
    redemption_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("redemption.id"), index=True)
    note: Mapped[str] = mapped_column(Text, default="", nullable=False)
    created_at: Mapped["DateTime"] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
