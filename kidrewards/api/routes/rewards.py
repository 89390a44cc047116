from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ...schemas.reward import RewardCreate, RewardOut, RewardUpdate, RedemptionOut, RedeemOut
from ...services.authorization import Principal
from ...services.ledger import get_balance
from ...services.reward_service import (
    list_rewards,
    create_reward,
    update_reward,
    delete_reward,
    redeem,
    list_redemptions,
)
from ..deps import get_db, get_principal, require_parent, require_kid


router = APIRouter()


@router.get("/rewards", response_model=list[RewardOut])
def list_catalog(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    return list_rewards(db)


@router.post("/rewards", response_model=RewardOut, status_code=status.HTTP_201_CREATED)
def create_catalog_reward(
    payload: RewardCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_parent),
):
    return create_reward(db, principal, name=payload.name, cost=payload.cost)


@router.put("/rewards/{reward_id}", response_model=RewardOut)
def edit_reward(
    reward_id: str,
    payload: RewardUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_parent),
):
    return update_reward(db, principal, reward_id=reward_id, name=payload.name, cost=payload.cost)


@router.delete("/rewards/{reward_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_reward(
    reward_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_parent),
):
    delete_reward(db, principal, reward_id=reward_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/rewards/{reward_id}/redeem", response_model=RedeemOut)
def redeem_now(
    reward_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_kid),
):
    red = redeem(db, principal, reward_id)
    return RedeemOut(
        kid_id=red.kid_id,
        new_points=get_balance(db, red.kid_id),
        redemption=RedemptionOut.model_validate(red),
    )


@router.get("/redemptions", response_model=list[RedemptionOut])
def get_redemptions(
    kid_id: Optional[str] = Query(None, alias="kidId"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    """
    Redemptions for the calling kid, or for one of the calling parent's kids.
    """
    return list_redemptions(db, principal, requested_kid_id=kid_id)
