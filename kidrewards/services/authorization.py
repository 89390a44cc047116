"""Turn bearer tokens into typed principals and enforce role/ownership policy.

Every operation that touches a kid's data goes through
:func:`resolve_effective_kid`; it is the single place where cross-family
access is refused.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Iterable, Union
import logging

from sqlalchemy.orm import Session

from ..core.exceptions import BadRequest, Forbidden, Unauthorized, UnknownKid
from .ownership import is_owned_by
from .security import decode_access_token

logger = logging.getLogger(__name__)


class Role(StrEnum):
    PARENT = "Parent"
    KID = "Kid"


@dataclass(frozen=True)
class ParentPrincipal:
    parent_id: str

    @property
    def role(self) -> Role:
        return Role.PARENT


@dataclass(frozen=True)
class KidPrincipal:
    kid_id: str
    parent_id: str

    @property
    def role(self) -> Role:
        return Role.KID


Principal = Union[ParentPrincipal, KidPrincipal]


def resolve_principal(token: str | None) -> Principal:
    if not token:
        raise Unauthorized("Missing bearer token")
    claims = decode_access_token(token)

    role = claims.get("role")
    sub = claims.get("sub")
    if role == Role.PARENT and sub:
        return ParentPrincipal(parent_id=sub)
    if role == Role.KID:
        kid_id = claims.get("kidId") or sub
        parent_id = claims.get("parentId")
        if not kid_id or not parent_id:
            raise Unauthorized("Invalid token payload")
        return KidPrincipal(kid_id=kid_id, parent_id=parent_id)
    raise Unauthorized("Invalid token payload")


def require_role(principal: Principal, allowed_roles: Iterable[Role]) -> Principal:
    allowed = set(allowed_roles)
    if principal.role not in allowed:
        logger.warning(f"Role {principal.role} refused; allowed: {sorted(allowed)}")
        raise Forbidden(f"Requires role: {', '.join(sorted(allowed))}")
    return principal


def resolve_effective_kid(db: Session, principal: Principal, requested_kid_id: str | None = None) -> str:
    """Return the kid id a request actually operates on.

    A kid always acts on itself and any requested id is ignored. A parent must
    name a kid it owns; a kid owned by someone else is indistinguishable from a
    kid that does not exist.
    """
    if isinstance(principal, KidPrincipal):
        return principal.kid_id

    if not requested_kid_id or not requested_kid_id.strip():
        raise BadRequest("kidId is required for parent")
    kid_id = requested_kid_id.strip()
    if not is_owned_by(db, kid_id=kid_id, parent_id=principal.parent_id):
        logger.warning(f"Parent {principal.parent_id} refused access to kid {kid_id}")
        raise UnknownKid()
    return kid_id
