"""Points ledger: append-only transactions plus the materialized balance.

``Kid.points_balance`` is only ever changed here, always in the same unit of
work as the ``PointTransaction`` row that explains the change, so for every
kid the balance equals the sum of its ledger deltas.

Functions in this module do not commit. Callers wrap them in
:func:`kidrewards.db.session.atomic` and, for same-kid serialization inside one
process, in :func:`kid_lock`.
"""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator
import logging
import threading

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from ..core.exceptions import BadRequest, InsufficientPoints, UnknownKid
from ..db.session import atomic
from ..models.kid import Kid
from ..models.points import PointTransaction, TransactionType
from ..models.reward import Redemption
from .authorization import Principal, Role, require_role, resolve_effective_kid

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200

_kid_locks: dict[str, threading.Lock] = {}
_kid_locks_guard = threading.Lock()


@contextmanager
def kid_lock(kid_id: str) -> Iterator[None]:
    """Serialize ledger units of work for one kid within this process."""
    with _kid_locks_guard:
        lock = _kid_locks.setdefault(kid_id, threading.Lock())
    with lock:
        yield


def forget_kid_lock(kid_id: str) -> None:
    """Drop the lock of a kid that no longer exists."""
    with _kid_locks_guard:
        _kid_locks.pop(kid_id, None)


def _kid_exists(db: Session, kid_id: str) -> bool:
    return db.execute(select(Kid.id).where(Kid.id == kid_id)).scalar_one_or_none() is not None


def _apply_delta(db: Session, kid_id: str, delta: int, min_balance: int | None) -> None:
    # The balance check and the write are one statement, so a concurrent
    # writer on another connection cannot slip in between them.
    floor = -delta if min_balance is None else max(min_balance, -delta)
    stmt = (
        update(Kid)
        .where(Kid.id == kid_id, Kid.points_balance >= floor)
        .values(points_balance=Kid.points_balance + delta)
        .execution_options(synchronize_session=False)
    )
    if db.execute(stmt).rowcount == 1:
        return
    if not _kid_exists(db, kid_id):
        raise UnknownKid()
    logger.warning(f"Ledger append refused for kid {kid_id}: delta={delta}, required balance>={floor}")
    raise InsufficientPoints()


def _insert(
    db: Session,
    *,
    kid_id: str,
    type: TransactionType,
    delta: int,
    task_id: str | None,
    redemption_id: str | None,
    note: str,
) -> PointTransaction:
    txn = PointTransaction(
        kid_id=kid_id,
        type=type,
        delta=delta,
        task_id=task_id,
        redemption_id=redemption_id,
        note=note or "",
    )
    db.add(txn)
    db.flush()
    return txn


def append_transaction(
    db: Session,
    *,
    kid_id: str,
    type: TransactionType,
    delta: int,
    task_id: str | None = None,
    redemption_id: str | None = None,
    note: str = "",
) -> PointTransaction:
    """Add ``delta`` to the kid's balance and record why.

    The sign of ``delta`` is the caller's business, but a delta that would
    leave a negative balance is refused with :class:`InsufficientPoints`.
    """
    _apply_delta(db, kid_id, delta, None)
    return _insert(db, kid_id=kid_id, type=type, delta=delta, task_id=task_id,
                   redemption_id=redemption_id, note=note)


def append_transaction_if_balance_at_least(
    db: Session,
    *,
    kid_id: str,
    min_balance: int,
    type: TransactionType,
    delta: int,
    task_id: str | None = None,
    redemption_id: str | None = None,
    note: str = "",
) -> PointTransaction:
    """Atomic check-and-append: write only if the balance is at least ``min_balance``.

    On refusal nothing has been written by this call.
    """
    _apply_delta(db, kid_id, delta, min_balance)
    return _insert(db, kid_id=kid_id, type=type, delta=delta, task_id=task_id,
                   redemption_id=redemption_id, note=note)


def get_balance(db: Session, kid_id: str) -> int:
    balance = db.execute(select(Kid.points_balance).where(Kid.id == kid_id)).scalar_one_or_none()
    if balance is None:
        raise UnknownKid()
    return balance


def get_history(
    db: Session,
    kid_id: str,
    *,
    limit: int = DEFAULT_PAGE_SIZE,
    before_id: int | None = None,
) -> list[PointTransaction]:
    """One page of a kid's ledger, newest first.

    Pass the id of the last row of a page as ``before_id`` to get the next one.
    """
    if not _kid_exists(db, kid_id):
        raise UnknownKid()
    limit = max(1, min(limit, MAX_PAGE_SIZE))
    q = select(PointTransaction).where(PointTransaction.kid_id == kid_id)
    if before_id is not None:
        q = q.where(PointTransaction.id < before_id)
    q = q.order_by(PointTransaction.id.desc()).limit(limit)
    return list(db.execute(q).scalars())


def iter_history(db: Session, kid_id: str, *, page_size: int = DEFAULT_PAGE_SIZE) -> Iterator[PointTransaction]:
    before_id = None
    while True:
        page = get_history(db, kid_id, limit=page_size, before_id=before_id)
        yield from page
        if len(page) < page_size:
            return
        before_id = page[-1].id


def ledger_sum(db: Session, kid_id: str) -> int:
    q = select(func.coalesce(func.sum(PointTransaction.delta), 0)).where(PointTransaction.kid_id == kid_id)
    return int(db.execute(q).scalar_one())


@dataclass(frozen=True)
class BalanceCheck:
    kid_id: str
    balance: int
    ledger_sum: int

    @property
    def consistent(self) -> bool:
        return self.balance == self.ledger_sum


def verify_balance(db: Session, kid_id: str) -> BalanceCheck:
    return BalanceCheck(kid_id=kid_id, balance=get_balance(db, kid_id), ledger_sum=ledger_sum(db, kid_id))


def find_inconsistent_kids(db: Session) -> list[BalanceCheck]:
    """Every kid whose materialized balance disagrees with its ledger."""
    sums = (
        select(PointTransaction.kid_id, func.sum(PointTransaction.delta).label("total"))
        .group_by(PointTransaction.kid_id)
        .subquery()
    )
    q = (
        select(Kid.id, Kid.points_balance, func.coalesce(sums.c.total, 0))
        .outerjoin(sums, sums.c.kid_id == Kid.id)
        .where(Kid.points_balance != func.coalesce(sums.c.total, 0))
    )
    return [BalanceCheck(kid_id=k, balance=b, ledger_sum=int(s)) for k, b, s in db.execute(q)]


def adjust_balance(db: Session, principal: Principal, *, kid_id: str | None, delta: int, note: str | None = None) -> PointTransaction:
    """Parent correction of a kid's balance, recorded as an ADJUST entry."""
    require_role(principal, [Role.PARENT])
    effective_kid_id = resolve_effective_kid(db, principal, kid_id)
    if delta == 0:
        raise BadRequest("delta must be non-zero")

    with kid_lock(effective_kid_id), atomic(db):
        txn = append_transaction(
            db,
            kid_id=effective_kid_id,
            type=TransactionType.ADJUST,
            delta=delta,
            note=(note or "").strip() or "Manual adjustment",
        )
    logger.info(f"Adjusted kid {effective_kid_id} by {delta} (txn {txn.id})")
    return txn


def detach_task(db: Session, task_id: str) -> int:
    """Null the task reference on its ledger rows; the rows themselves stay."""
    stmt = (
        update(PointTransaction)
        .where(PointTransaction.task_id == task_id)
        .values(task_id=None)
        .execution_options(synchronize_session=False)
    )
    return db.execute(stmt).rowcount


def detach_redemptions_for_reward(db: Session, reward_id: str) -> int:
    """Null the reward reference on its redemptions; they keep their name and cost snapshot."""
    stmt = (
        update(Redemption)
        .where(Redemption.reward_id == reward_id)
        .values(reward_id=None)
        .execution_options(synchronize_session=False)
    )
    return db.execute(stmt).rowcount


def purge_kid(db: Session, kid_id: str) -> int:
    """Drop a kid's whole ledger; only used when the kid itself is deleted."""
    stmt = delete(PointTransaction).where(PointTransaction.kid_id == kid_id).execution_options(synchronize_session=False)
    return db.execute(stmt).rowcount
