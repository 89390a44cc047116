from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...schemas.points import AdjustIn, BalanceCheckOut, HistoryOut, PointsOut, TransactionOut
from ...services import ledger
from ...services.authorization import Principal, resolve_effective_kid
from ..deps import get_db, get_principal, require_parent

router = APIRouter()


@router.get("", response_model=PointsOut)
def get_points(
    kid_id: Optional[str] = Query(None, alias="kidId"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    effective_kid_id = resolve_effective_kid(db, principal, kid_id)
    return PointsOut(kid_id=effective_kid_id, points=ledger.get_balance(db, effective_kid_id))


@router.get("/history", response_model=HistoryOut)
def get_points_history(
    kid_id: Optional[str] = Query(None, alias="kidId"),
    limit: int = Query(ledger.DEFAULT_PAGE_SIZE, ge=1, le=ledger.MAX_PAGE_SIZE),
    before: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    effective_kid_id = resolve_effective_kid(db, principal, kid_id)
    page = ledger.get_history(db, effective_kid_id, limit=limit, before_id=before)
    return HistoryOut(
        kid_id=effective_kid_id,
        items=[TransactionOut.model_validate(t) for t in page],
        next_before=page[-1].id if len(page) == limit else None,
    )


@router.post("/adjust", response_model=TransactionOut)
def adjust_points(
    payload: AdjustIn,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_parent),
):
    return ledger.adjust_balance(db, principal, kid_id=payload.kid_id, delta=payload.delta, note=payload.note)


@router.get("/verify", response_model=BalanceCheckOut)
def verify_points(
    kid_id: Optional[str] = Query(None, alias="kidId"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    effective_kid_id = resolve_effective_kid(db, principal, kid_id)
    check = ledger.verify_balance(db, effective_kid_id)
    return BalanceCheckOut(
        kid_id=check.kid_id,
        balance=check.balance,
        ledger_sum=check.ledger_sum,
        consistent=check.consistent,
    )
