from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging
from ...schemas.auth import ParentLoginIn, ParentLoginOut, KidSessionIn, KidSessionOut
from ...services.authorization import Principal
from ...services.identity_service import issue_parent_session, issue_kid_session
from ..deps import get_db, get_principal

logger = logging.getLogger(__name__)

router = APIRouter()
@router.post("/parent/login", response_model=ParentLoginOut)
def parent_login(payload: ParentLoginIn, db: Session = Depends(get_db)):
    token = issue_parent_session(db, username=payload.username, password=payload.password)
    return ParentLoginOut(token=token)

@router.post("/kid-session", response_model=KidSessionOut)
def kid_session(
    payload: KidSessionIn,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    token, kid = issue_kid_session(db, principal, kid_id=payload.kid_id)
    return KidSessionOut(token=token, kid_id=kid.id, display_name=kid.display_name)
