from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from ...schemas.kid import KidCreate, KidOut
from ...services.authorization import Principal
from ...services.kid_service import list_kids, create_kid, rename_kid, delete_kid
from ..deps import get_db, require_parent


router = APIRouter()


@router.get("", response_model=list[KidOut])
def list_my_kids(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_parent),
):
    return list_kids(db, parent_id=principal.parent_id)


@router.post("", response_model=KidOut, status_code=status.HTTP_201_CREATED)
def add_kid(
    payload: KidCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_parent),
):
    return create_kid(db, parent_id=principal.parent_id, display_name=payload.display_name)


@router.put("/{kid_id}", response_model=KidOut)
def update_kid(
    kid_id: str,
    payload: KidCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_parent),
):
    return rename_kid(db, parent_id=principal.parent_id, kid_id=kid_id, display_name=payload.display_name)


@router.delete("/{kid_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_kid(
    kid_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_parent),
):
    delete_kid(db, parent_id=principal.parent_id, kid_id=kid_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
