from typing import Generator
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from ..db.session import SessionLocal
from ..services.authorization import Principal, Role, require_role, resolve_principal
bearer_scheme = HTTPBearer(auto_error=False)
def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
def get_principal(credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme)) -> Principal:
    # resolve_principal raises Unauthorized for a missing or invalid token
    return resolve_principal(credentials.credentials if credentials else None)
def require_parent(principal: Principal = Depends(get_principal)) -> Principal:
    return require_role(principal, [Role.PARENT])
def require_kid(principal: Principal = Depends(get_principal)) -> Principal:
    return require_role(principal, [Role.KID])
