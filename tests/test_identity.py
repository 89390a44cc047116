import pytest
from sqlalchemy import select

from kidrewards.core.exceptions import BadRequest, InvalidCredentials, Unauthorized, UnknownKid
from kidrewards.models.kid import Kid
from kidrewards.models.parent import Parent
from kidrewards.services.authorization import KidPrincipal, ParentPrincipal, resolve_principal
from kidrewards.services.identity_service import (
    create_parent,
    issue_kid_session,
    issue_parent_session,
)
from kidrewards.services.seed import DEMO_PASSWORD, seed_demo_data
from kidrewards.services.security import hash_password, verify_password


def test_password_hashing_round_trip() -> None:
    hashed = hash_password("s3cret!")

    assert hashed != "s3cret!"
    assert verify_password("s3cret!", hashed)
    assert not verify_password("wrong", hashed)


def test_passwords_longer_than_bcrypt_limit_are_truncated_consistently() -> None:
    long_password = "x" * 100
    hashed = hash_password(long_password)

    assert verify_password(long_password, hashed)
    assert verify_password("x" * 72, hashed)


def test_parent_login_issues_parent_token(db, family) -> None:
    token = issue_parent_session(db, username="alice", password="alice-pass")

    assert resolve_principal(token) == ParentPrincipal(parent_id=family.parent_id)


def test_wrong_password_and_unknown_user_fail_the_same_way(db, family) -> None:
    with pytest.raises(InvalidCredentials) as wrong_password:
        issue_parent_session(db, username="alice", password="nope")
    with pytest.raises(InvalidCredentials) as unknown_user:
        issue_parent_session(db, username="mallory", password="alice-pass")

    assert wrong_password.value.message == unknown_user.value.message
    assert wrong_password.value.status_code == unknown_user.value.status_code == 401


def test_duplicate_parent_username_is_rejected(db, family) -> None:
    with pytest.raises(BadRequest):
        create_parent(db, username="alice", password="another")


def test_parent_can_open_a_session_for_own_kid(db, family) -> None:
    token, kid = issue_kid_session(db, family.parent, kid_id=family.kid_id)

    assert kid.display_name == "Ava"
    assert resolve_principal(token) == KidPrincipal(kid_id=family.kid_id, parent_id=family.parent_id)


def test_kid_session_for_foreign_or_missing_kid_is_unknown_kid(db, family) -> None:
    with pytest.raises(UnknownKid):
        issue_kid_session(db, family.parent, kid_id=family.other_kid_id)
    with pytest.raises(UnknownKid):
        issue_kid_session(db, family.parent, kid_id="missing")


def test_kid_cannot_mint_kid_sessions(db, family) -> None:
    with pytest.raises(Unauthorized):
        issue_kid_session(db, family.kid, kid_id=family.kid_id)


def test_demo_seed_runs_once(db) -> None:
    seed_demo_data(db)
    seed_demo_data(db)

    parents = db.execute(select(Parent)).scalars().all()
    kids = db.execute(select(Kid)).scalars().all()
    assert sorted(p.username for p in parents) == ["parent1", "parent2"]
    assert sorted(k.display_name for k in kids) == ["Kid 1", "Kid 2"]
    assert len({k.parent_id for k in kids}) == 1
    assert issue_parent_session(db, username="parent1", password=DEMO_PASSWORD)
