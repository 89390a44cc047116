from datetime import datetime, timedelta, timezone
from passlib.context import CryptContext
import jwt
from ..core.config import settings
from ..core.exceptions import Unauthorized
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS)

def _bcrypt_safe(p: str) -> str:
    # Ensure bcrypt compatibility (72-byte limit)
    return p.encode("utf-8")[:72].decode("utf-8", errors="ignore")

def hash_password(p: str) -> str:
    return pwd_context.hash(_bcrypt_safe(p))

def verify_password(p: str, hashed: str) -> bool:
    return pwd_context.verify(_bcrypt_safe(p), hashed)

def create_access_token(
    sub: str,
    role: str,
    *,
    kid_id: str | None = None,
    parent_id: str | None = None,
    minutes: int | None = None,
) -> str:
    exp_min = minutes if minutes is not None else settings.ACCESS_TOKEN_MIN
    now = datetime.now(timezone.utc)
    payload = {"sub": sub, "role": role, "iat": now, "exp": now + timedelta(minutes=exp_min)}
    if kid_id:
        payload["kidId"] = kid_id
    if parent_id:
        payload["parentId"] = parent_id
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Token expired")
    except jwt.PyJWTError:
        raise Unauthorized("Invalid token")
