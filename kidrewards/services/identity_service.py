from sqlalchemy.orm import Session
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
import logging
from ..core.exceptions import BadRequest, InvalidCredentials, Unauthorized, UnknownKid
from ..models.parent import Parent
from ..models.kid import Kid
from .authorization import ParentPrincipal, Principal, Role
from .ownership import get_owned_kid
from .security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

_dummy_hash: str | None = None


def _timing_dummy_hash() -> str:
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = hash_password("not-a-real-password")
    return _dummy_hash

def create_parent(db: Session, *, username: str, password: str) -> Parent:
    username = (username or "").strip()
    if not username or not password:
        raise BadRequest("username and password are required")
    if get_by_username(db, username):
        raise BadRequest("Username already registered")
    try:
        parent = Parent(username=username, hashed_password=hash_password(password))
        db.add(parent)
        db.commit()
        db.refresh(parent)
        logger.info(f"Parent created: id={parent.id}, username={parent.username}")
        return parent
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Parent creation raced on username {username}: {e}")
        raise BadRequest("Username already registered")

def get_by_username(db: Session, username: str) -> Parent | None:
    return db.execute(select(Parent).where(Parent.username == username)).scalar_one_or_none()

def authenticate(db: Session, username: str, password: str) -> Parent | None:
    parent = get_by_username(db, (username or "").strip())
    if not parent:
        # same cost as a real check so timing does not reveal unknown usernames
        verify_password(password or "", _timing_dummy_hash())
        return None
    if not verify_password(password or "", parent.hashed_password):
        return None
    return parent

def issue_parent_session(db: Session, *, username: str, password: str) -> str:
    parent = authenticate(db, username, password)
    if not parent:
        logger.warning(f"Parent login failed for username={username!r}")
        raise InvalidCredentials()
    logger.info(f"Parent session issued: parent={parent.id}")
    return create_access_token(parent.id, Role.PARENT)

def issue_kid_session(db: Session, principal: Principal, *, kid_id: str) -> tuple[str, Kid]:
    if not isinstance(principal, ParentPrincipal):
        raise Unauthorized("Kid sessions can only be issued by a parent")
    kid = get_owned_kid(db, kid_id=(kid_id or "").strip(), parent_id=principal.parent_id)
    if not kid:
        logger.warning(f"Kid session refused: parent={principal.parent_id} kid={kid_id}")
        raise UnknownKid()
    token = create_access_token(kid.id, Role.KID, kid_id=kid.id, parent_id=principal.parent_id)
    logger.info(f"Kid session issued: parent={principal.parent_id} kid={kid.id}")
    return token, kid
