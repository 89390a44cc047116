from datetime import datetime
from .common import CamelModel, ORMModel
class PointsOut(CamelModel):
    kid_id: str
    points: int
class TransactionOut(ORMModel):
    id: int
    kid_id: str
    type: str
    delta: int
    task_id: str | None
    redemption_id: str | None
    note: str
    created_at: datetime
class HistoryOut(CamelModel):
    kid_id: str
    items: list[TransactionOut]
    next_before: int | None = None
class AdjustIn(CamelModel):
    kid_id: str
    delta: int
    note: str | None = None
class BalanceCheckOut(CamelModel):
    kid_id: str
    balance: int
    ledger_sum: int
    consistent: bool
