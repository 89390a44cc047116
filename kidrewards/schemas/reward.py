from pydantic import Field
from datetime import datetime
from .common import CamelModel, ORMModel
class RewardCreate(CamelModel):
    name: str
    cost: int = Field(ge=0)
class RewardUpdate(CamelModel):
    name: str | None = None
    cost: int | None = Field(None, ge=0)
class RewardOut(ORMModel):
    id: str
    name: str
    cost: int
class RedemptionOut(ORMModel):
    id: str
    kid_id: str
    reward_id: str | None
    reward_name: str
    cost: int
    redeemed_at: datetime
class RedeemOut(CamelModel):
    kid_id: str
    new_points: int
    redemption: RedemptionOut
