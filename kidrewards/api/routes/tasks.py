from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ...schemas.task import TaskCreate, TaskOut, TaskUpdate
from ...services.authorization import Principal
from ...services.task_service import (
    create_task,
    list_tasks,
    update_task,
    delete_task,
    complete_task,
)
from ..deps import get_db, get_principal, require_parent

router = APIRouter()


# ------------------------------------------------------------------------
# Tasks visible to the caller (kid: own tasks; parent: one kid or created)
# ------------------------------------------------------------------------
@router.get("", response_model=list[TaskOut])
def list_visible_tasks(
    kid_id: Optional[str] = Query(None, alias="kidId"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    return list_tasks(db, principal, requested_kid_id=kid_id)


@router.post("", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
def create_kid_task(
    payload: TaskCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_parent),
):
    return create_task(
        db,
        principal,
        title=payload.title,
        points=payload.points,
        assigned_kid_id=payload.assigned_kid_id,
    )


# ------------------------------------------------------------------------
# Edit a pending task
# ------------------------------------------------------------------------
@router.put("/{task_id}", response_model=TaskOut)
def edit_task(
    task_id: str,
    payload: TaskUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_parent),
):
    return update_task(db, principal, task_id=task_id, title=payload.title, points=payload.points)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_task(
    task_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_parent),
):
    delete_task(db, principal, task_id=task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ------------------------------------------------------------------------
# Complete a task (kid for itself, or parent on the kid's behalf)
# ------------------------------------------------------------------------
@router.put("/{task_id}/complete", response_model=TaskOut)
def complete(
    task_id: str,
    kid_id: Optional[str] = Query(None, alias="kidId"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    return complete_task(db, principal, task_id, requested_kid_id=kid_id)
