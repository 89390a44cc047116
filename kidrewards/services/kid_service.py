from sqlalchemy import delete
from sqlalchemy.orm import Session
import logging

from ..core.exceptions import BadRequest, UnknownKid
from ..db.session import atomic
from ..models.kid import Kid
from ..models.reward import Redemption
from ..models.task import Task
from . import ledger
from .ownership import get_owned_kid, list_kids_for_parent

logger = logging.getLogger(__name__)


def _clean_name(display_name: str | None) -> str:
    name = (display_name or "").strip()
    if not name:
        raise BadRequest("displayName is required")
    return name

def list_kids(db: Session, *, parent_id: str) -> list[Kid]:
    return list_kids_for_parent(db, parent_id=parent_id)

def create_kid(db: Session, *, parent_id: str, display_name: str) -> Kid:
    kid = Kid(parent_id=parent_id, display_name=_clean_name(display_name))
    with atomic(db):
        db.add(kid)
    db.refresh(kid)
    logger.info(f"Kid created: id={kid.id}, parent={parent_id}")
    return kid

def rename_kid(db: Session, *, parent_id: str, kid_id: str, display_name: str) -> Kid:
    name = _clean_name(display_name)
    kid = get_owned_kid(db, kid_id=kid_id, parent_id=parent_id)
    if not kid:
        raise UnknownKid()
    with atomic(db):
        kid.display_name = name
    db.refresh(kid)
    logger.info(f"Kid renamed: id={kid.id}, parent={parent_id}")
    return kid

def delete_kid(db: Session, *, parent_id: str, kid_id: str) -> None:
    """Remove a kid with its tasks, redemptions and ledger.

    Tokens already issued for the kid stay valid until they expire; they fail
    with UnknownKid on any ledger access afterwards.
    """
    kid = get_owned_kid(db, kid_id=kid_id, parent_id=parent_id)
    if not kid:
        raise UnknownKid()
    with ledger.kid_lock(kid_id), atomic(db):
        purged = ledger.purge_kid(db, kid_id)
        db.execute(delete(Redemption).where(Redemption.kid_id == kid_id).execution_options(synchronize_session=False))
        db.execute(delete(Task).where(Task.assigned_kid_id == kid_id).execution_options(synchronize_session=False))
        db.delete(kid)
    ledger.forget_kid_lock(kid_id)
    logger.info(f"Kid deleted: id={kid_id}, parent={parent_id}, ledger rows removed={purged}")
