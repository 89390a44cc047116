from datetime import datetime
from .common import CamelModel, ORMModel
class KidCreate(CamelModel):
    display_name: str
class KidOut(ORMModel):
    id: str
    parent_id: str
    display_name: str
    points_balance: int
    created_at: datetime
