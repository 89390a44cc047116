from typing import TYPE_CHECKING
from sqlalchemy import String, DateTime, ForeignKey, Integer, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from uuid import uuid4
from ..db.base_class import Base
from . import utcnow

if TYPE_CHECKING:
    from .parent import Parent

class Kid(Base):
    __table_args__ = (CheckConstraint("points_balance >= 0", name="ck_kid_points_balance_non_negative"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    parent_id: Mapped[str] = mapped_column(String(36), ForeignKey("parent.id"), index=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String(128), nullable=False)
    # Materialized sum of this kid's ledger; only kidrewards.services.ledger writes it.
    points_balance: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped["DateTime"] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    parent: Mapped["Parent"] = relationship(back_populates="kids")
