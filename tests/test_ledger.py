import threading

import pytest
from sqlalchemy import select, update

from kidrewards.core.exceptions import BadRequest, Forbidden, InsufficientPoints, UnknownKid
from kidrewards.db.session import atomic
from kidrewards.models.kid import Kid
from kidrewards.models.points import PointTransaction, TransactionType
from kidrewards.models.reward import Redemption
from kidrewards.services import ledger
from kidrewards.services.reward_service import create_reward, redeem
from kidrewards.services.task_service import complete_task, create_task, delete_task


def _earn(db, kid_id, delta, note="earned"):
    with atomic(db):
        return ledger.append_transaction(db, kid_id=kid_id, type=TransactionType.EARN, delta=delta, note=note)


def _rows(db, kid_id):
    return list(db.execute(select(PointTransaction).where(PointTransaction.kid_id == kid_id)).scalars())


def test_new_kid_starts_at_zero(db, family) -> None:
    assert ledger.get_balance(db, family.kid_id) == 0
    assert ledger.get_history(db, family.kid_id) == []


def test_append_updates_balance_and_writes_row(db, family) -> None:
    txn = _earn(db, family.kid_id, 40, note="Raked leaves")

    assert txn.id is not None
    assert txn.delta == 40
    assert txn.note == "Raked leaves"
    assert ledger.get_balance(db, family.kid_id) == 40
    assert ledger.verify_balance(db, family.kid_id).consistent


def test_append_refuses_to_persist_negative_balance(db, family) -> None:
    _earn(db, family.kid_id, 10)

    with pytest.raises(InsufficientPoints):
        with atomic(db):
            ledger.append_transaction(db, kid_id=family.kid_id, type=TransactionType.ADJUST, delta=-11)

    assert ledger.get_balance(db, family.kid_id) == 10
    assert len(_rows(db, family.kid_id)) == 1


def test_append_for_unknown_kid(db, family) -> None:
    with pytest.raises(UnknownKid):
        with atomic(db):
            ledger.append_transaction(db, kid_id="ghost", type=TransactionType.EARN, delta=5)
    with pytest.raises(UnknownKid):
        ledger.get_balance(db, "ghost")
    with pytest.raises(UnknownKid):
        ledger.get_history(db, "ghost")


def test_check_and_append_writes_nothing_when_balance_too_low(db, family) -> None:
    _earn(db, family.kid_id, 25)
    history_before = [(t.id, t.delta, t.note) for t in ledger.get_history(db, family.kid_id)]

    with pytest.raises(InsufficientPoints):
        with atomic(db):
            ledger.append_transaction_if_balance_at_least(
                db,
                kid_id=family.kid_id,
                min_balance=30,
                type=TransactionType.SPEND,
                delta=-30,
            )

    assert ledger.get_balance(db, family.kid_id) == 25
    assert [(t.id, t.delta, t.note) for t in ledger.get_history(db, family.kid_id)] == history_before


def test_check_and_append_succeeds_at_exact_balance(db, family) -> None:
    _earn(db, family.kid_id, 30)

    with atomic(db):
        ledger.append_transaction_if_balance_at_least(
            db, kid_id=family.kid_id, min_balance=30, type=TransactionType.SPEND, delta=-30
        )

    assert ledger.get_balance(db, family.kid_id) == 0
    assert ledger.ledger_sum(db, family.kid_id) == 0


def test_history_is_newest_first_and_pages(db, family) -> None:
    for points in range(1, 8):
        _earn(db, family.kid_id, points, note=f"#{points}")

    first = ledger.get_history(db, family.kid_id, limit=3)
    second = ledger.get_history(db, family.kid_id, limit=3, before_id=first[-1].id)
    third = ledger.get_history(db, family.kid_id, limit=3, before_id=second[-1].id)

    assert [t.delta for t in first] == [7, 6, 5]
    assert [t.delta for t in second] == [4, 3, 2]
    assert [t.delta for t in third] == [1]


def test_iter_history_is_restartable(db, family) -> None:
    for points in (5, 10, 15, 20, 25):
        _earn(db, family.kid_id, points)

    once = [t.delta for t in ledger.iter_history(db, family.kid_id, page_size=2)]
    again = [t.delta for t in ledger.iter_history(db, family.kid_id, page_size=2)]

    assert once == again == [25, 20, 15, 10, 5]


def test_history_is_per_kid(db, family) -> None:
    _earn(db, family.kid_id, 5)
    _earn(db, family.other_kid_id, 9)

    assert [t.delta for t in ledger.get_history(db, family.kid_id)] == [5]
    assert [t.delta for t in ledger.get_history(db, family.other_kid_id)] == [9]


def test_inconsistency_is_detected(db, family) -> None:
    _earn(db, family.kid_id, 20)
    assert ledger.find_inconsistent_kids(db) == []

    # simulate a balance written behind the ledger's back
    db.execute(update(Kid).where(Kid.id == family.kid_id).values(points_balance=99))
    db.commit()

    check = ledger.verify_balance(db, family.kid_id)
    assert not check.consistent
    assert (check.balance, check.ledger_sum) == (99, 20)
    assert [c.kid_id for c in ledger.find_inconsistent_kids(db)] == [family.kid_id]


def test_parent_adjustment(db, family) -> None:
    txn = ledger.adjust_balance(db, family.parent, kid_id=family.kid_id, delta=15, note="Birthday bonus")

    assert txn.type == TransactionType.ADJUST
    assert txn.note == "Birthday bonus"
    assert ledger.get_balance(db, family.kid_id) == 15

    ledger.adjust_balance(db, family.parent, kid_id=family.kid_id, delta=-5)
    assert ledger.get_balance(db, family.kid_id) == 10
    assert ledger.get_history(db, family.kid_id)[0].note == "Manual adjustment"


def test_adjustment_rules(db, family) -> None:
    with pytest.raises(Forbidden):
        ledger.adjust_balance(db, family.kid, kid_id=family.kid_id, delta=5)
    with pytest.raises(UnknownKid):
        ledger.adjust_balance(db, family.parent, kid_id=family.other_kid_id, delta=5)
    with pytest.raises(BadRequest):
        ledger.adjust_balance(db, family.parent, kid_id=family.kid_id, delta=0)
    with pytest.raises(InsufficientPoints):
        ledger.adjust_balance(db, family.parent, kid_id=family.kid_id, delta=-1)

    assert ledger.get_history(db, family.kid_id) == []


def test_deleting_a_task_keeps_its_ledger_row(db, family) -> None:
    task = create_task(db, family.parent, title="Feed the cat", points=12, assigned_kid_id=family.kid_id)
    complete_task(db, family.kid, task.id)
    task_id = task.id

    delete_task(db, family.parent, task_id=task_id)

    [row] = ledger.get_history(db, family.kid_id)
    assert row.task_id is None
    assert row.delta == 12
    assert row.note == "Completed task: Feed the cat"
    assert ledger.verify_balance(db, family.kid_id).consistent


def test_balance_check_holds_across_sessions_without_the_process_lock(session_factory, family) -> None:
    with session_factory() as db:
        _earn(db, family.kid_id, 100)

    barrier = threading.Barrier(2)
    results = []

    def spend():
        with session_factory() as db:
            barrier.wait()
            try:
                with atomic(db):
                    ledger.append_transaction_if_balance_at_least(
                        db, kid_id=family.kid_id, min_balance=80, type=TransactionType.SPEND, delta=-80
                    )
                results.append("spent")
            except InsufficientPoints:
                results.append("insufficient")

    threads = [threading.Thread(target=spend) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert sorted(results) == ["insufficient", "spent"]
    with session_factory() as db:
        assert ledger.get_balance(db, family.kid_id) == 20
        assert ledger.verify_balance(db, family.kid_id).consistent


def test_stale_reader_cannot_overspend(session_factory, family) -> None:
    with session_factory() as db:
        _earn(db, family.kid_id, 50)

    with session_factory() as first, session_factory() as second:
        # both sessions have seen a balance of 50
        assert ledger.get_balance(first, family.kid_id) == ledger.get_balance(second, family.kid_id) == 50

        with atomic(first):
            ledger.append_transaction_if_balance_at_least(
                first, kid_id=family.kid_id, min_balance=50, type=TransactionType.SPEND, delta=-50
            )
        with pytest.raises(InsufficientPoints):
            with atomic(second):
                ledger.append_transaction_if_balance_at_least(
                    second, kid_id=family.kid_id, min_balance=50, type=TransactionType.SPEND, delta=-50
                )

    with session_factory() as db:
        assert ledger.get_balance(db, family.kid_id) == 0
        assert len(_rows(db, family.kid_id)) == 2


def test_detaching_redemptions_for_a_reward(db, family) -> None:
    ledger.adjust_balance(db, family.parent, kid_id=family.kid_id, delta=20)
    reward = create_reward(db, family.parent, name="Stickers", cost=10)
    redemption_id = redeem(db, family.kid, reward.id).id

    with atomic(db):
        assert ledger.detach_redemptions_for_reward(db, reward.id) == 1

    kept = db.get(Redemption, redemption_id)
    assert kept.reward_id is None
    assert (kept.reward_name, kept.cost) == ("Stickers", 10)
