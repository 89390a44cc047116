from pydantic import Field
from datetime import datetime
from .common import CamelModel, ORMModel
class TaskCreate(CamelModel):
    title: str
    points: int = Field(0, ge=0)
    assigned_kid_id: str
class TaskUpdate(CamelModel):
    title: str | None = None
    points: int | None = Field(None, ge=0)
class TaskOut(ORMModel):
    id: str
    title: str
    points: int
    assigned_kid_id: str
    created_by_parent_id: str
    status: str
    is_complete: bool
    completed_at: datetime | None = None
    created_at: datetime
