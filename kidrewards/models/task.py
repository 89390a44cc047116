from enum import StrEnum
from sqlalchemy import String, DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column
from uuid import uuid4

from ..db.base_class import Base
from . import utcnow


class TaskStatus(StrEnum):
    PENDING = "PENDING"
    COMPLETE = "COMPLETE"


class Task(Base):
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    assigned_kid_id: Mapped[str] = mapped_column(String(36), ForeignKey("kid.id"), index=True, nullable=False)
    created_by_parent_id: Mapped[str] = mapped_column(String(36), ForeignKey("parent.id"), index=True, nullable=False)
    status: Mapped[TaskStatus] = mapped_column(default=TaskStatus.PENDING, index=True)
    completed_at: Mapped["DateTime | None"] = mapped_column(DateTime(timezone=True))
    created_at: Mapped["DateTime"] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    @property
    def is_complete(self) -> bool:
        return self.status == TaskStatus.COMPLETE
