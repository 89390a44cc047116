from uuid import uuid4

from sqlalchemy import String, DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from ..db.base_class import Base
from . import utcnow


class Reward(Base):
    __tablename__ = "reward"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid4())
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    cost: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped["DateTime"] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )


class Redemption(Base):
    """Immutable record of one kid redeeming one reward."""

    __tablename__ = "redemption"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid4())
    )

    kid_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("kid.id"),
        index=True,
        nullable=False,
    )

    # nulled when the reward is deleted; name and cost below keep the record readable
    reward_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("reward.id"),
        index=True,
    )

    reward_name: Mapped[str] = mapped_column(String(200), nullable=False)
    cost: Mapped[int] = mapped_column(Integer, nullable=False)

    redeemed_at: Mapped["DateTime"] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
