from sqlalchemy.orm import Session
from sqlalchemy import select
import logging

from ..core.exceptions import BadRequest, NotFound
from ..db.session import atomic
from ..models.reward import Reward, Redemption
from ..models.points import TransactionType
from . import ledger
from .authorization import Principal, Role, require_role, resolve_effective_kid

logger = logging.getLogger(__name__)


def _clean_name(name: str | None) -> str:
    name = (name or "").strip()
    if not name:
        raise BadRequest("name is required")
    return name

def _check_cost(cost: int) -> int:
    if cost is None or cost < 0:
        raise BadRequest("cost must be >= 0")
    return cost

def _get_reward(db: Session, reward_id: str) -> Reward:
    reward = db.get(Reward, reward_id)
    if not reward:
        raise NotFound("Reward not found")
    return reward

def list_rewards(db: Session) -> list[Reward]:
    return list(db.execute(select(Reward).order_by(Reward.cost, Reward.name)).scalars())

def create_reward(db: Session, principal: Principal, *, name: str, cost: int) -> Reward:
    require_role(principal, [Role.PARENT])
    r = Reward(name=_clean_name(name), cost=_check_cost(cost))
    with atomic(db):
        db.add(r)
    db.refresh(r)
    logger.info(f"Reward created: id={r.id}, cost={r.cost}")
    return r

def update_reward(db: Session, principal: Principal, *, reward_id: str, name: str | None = None, cost: int | None = None) -> Reward:
    """Edit the catalog entry. Past redemptions keep the name and cost they were made at."""
    require_role(principal, [Role.PARENT])
    reward = _get_reward(db, reward_id)
    with atomic(db):
        if name is not None:
            reward.name = _clean_name(name)
        if cost is not None:
            reward.cost = _check_cost(cost)
    db.refresh(reward)
    logger.info(f"Reward updated: id={reward.id}, name={reward.name}, cost={reward.cost}")
    return reward

def delete_reward(db: Session, principal: Principal, *, reward_id: str) -> None:
    """Remove a reward from the catalog; its redemptions stay with reward_id nulled."""
    require_role(principal, [Role.PARENT])
    reward = _get_reward(db, reward_id)
    with atomic(db):
        detached = ledger.detach_redemptions_for_reward(db, reward.id)
        db.delete(reward)
    logger.info(f"Reward deleted: id={reward_id}, redemptions detached={detached}")

def redeem(db: Session, principal: Principal, reward_id: str) -> Redemption:
    """Spend a kid's points on a reward.

    The balance check, the SPEND entry and the redemption record commit
    together; with too few points nothing is written.
    """
    kid_id = resolve_effective_kid(db, principal, None)
    reward = _get_reward(db, reward_id)
    reward_name, cost = reward.name, reward.cost

    with ledger.kid_lock(kid_id), atomic(db):
        txn = ledger.append_transaction_if_balance_at_least(
            db,
            kid_id=kid_id,
            min_balance=cost,
            type=TransactionType.SPEND,
            delta=-cost,
            note=f"Redeemed reward: {reward_name}",
        )
        red = Redemption(kid_id=kid_id, reward_id=reward.id, reward_name=reward_name, cost=cost)
        db.add(red)
        db.flush()
        txn.redemption_id = red.id
    db.refresh(red)
    logger.info(f"Reward redeemed: reward={reward_id}, kid={kid_id}, cost={cost}, redemption={red.id}")
    return red

def list_redemptions(db: Session, principal: Principal, *, requested_kid_id: str | None = None) -> list[Redemption]:
    kid_id = resolve_effective_kid(db, principal, requested_kid_id)
    q = (
        select(Redemption)
        .where(Redemption.kid_id == kid_id)
        .order_by(Redemption.redeemed_at.desc(), Redemption.id)
    )
    return list(db.execute(q).scalars())
