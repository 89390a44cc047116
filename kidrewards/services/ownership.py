from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models.kid import Kid


def owner_of(db: Session, kid_id: str) -> str | None:
    return db.execute(select(Kid.parent_id).where(Kid.id == kid_id)).scalar_one_or_none()

def is_owned_by(db: Session, *, kid_id: str, parent_id: str) -> bool:
    return bool(kid_id) and owner_of(db, kid_id) == parent_id

def get_owned_kid(db: Session, *, kid_id: str, parent_id: str) -> Kid | None:
    return db.execute(select(Kid).where(Kid.id == kid_id, Kid.parent_id == parent_id)).scalar_one_or_none()

def list_kids_for_parent(db: Session, *, parent_id: str) -> list[Kid]:
    q = select(Kid).where(Kid.parent_id == parent_id).order_by(Kid.created_at, Kid.id)
    return list(db.execute(q).scalars())
