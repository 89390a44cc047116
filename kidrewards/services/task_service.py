from sqlalchemy import select, update
from sqlalchemy.orm import Session
import logging

from ..core.exceptions import BadRequest, NotFound
from ..db.session import atomic
from ..models.task import Task, TaskStatus
from ..models.points import TransactionType
from ..models import utcnow
from . import ledger
from .authorization import KidPrincipal, Principal, Role, require_role, resolve_effective_kid

logger = logging.getLogger(__name__)


def _clean_title(title: str | None) -> str:
    title = (title or "").strip()
    if not title:
        raise BadRequest("title is required")
    return title

def _check_points(points: int) -> int:
    if points is None or points < 0:
        raise BadRequest("points must be >= 0")
    return points

def _get_parent_task(db: Session, *, parent_id: str, task_id: str) -> Task:
    task = db.execute(
        select(Task).where(Task.id == task_id, Task.created_by_parent_id == parent_id)
    ).scalar_one_or_none()
    if not task:
        raise NotFound("Task not found")
    return task

def _task_status(db: Session, task_id: str) -> TaskStatus | None:
    return db.execute(select(Task.status).where(Task.id == task_id)).scalar_one_or_none()

def create_task(
    db: Session,
    principal: Principal,
    *,
    title: str,
    points: int,
    assigned_kid_id: str | None,
) -> Task:
    require_role(principal, [Role.PARENT])
    kid_id = resolve_effective_kid(db, principal, assigned_kid_id)
    t = Task(
        title=_clean_title(title),
        points=_check_points(points),
        assigned_kid_id=kid_id,
        created_by_parent_id=principal.parent_id,
    )
    with atomic(db):
        db.add(t)
    db.refresh(t)
    logger.info(f"Task created: id={t.id}, kid={kid_id}, points={t.points}")
    return t

def list_tasks(db: Session, principal: Principal, *, requested_kid_id: str | None = None) -> list[Task]:
    """A kid sees its own tasks; a parent sees one kid's tasks or everything it created."""
    q = select(Task)
    if isinstance(principal, KidPrincipal):
        q = q.where(Task.assigned_kid_id == principal.kid_id)
    elif requested_kid_id:
        q = q.where(Task.assigned_kid_id == resolve_effective_kid(db, principal, requested_kid_id))
    else:
        q = q.where(Task.created_by_parent_id == principal.parent_id)
    return list(db.execute(q.order_by(Task.created_at, Task.id)).scalars())

def update_task(
    db: Session,
    principal: Principal,
    *,
    task_id: str,
    title: str | None = None,
    points: int | None = None,
) -> Task:
    require_role(principal, [Role.PARENT])
    task = _get_parent_task(db, parent_id=principal.parent_id, task_id=task_id)

    values = {}
    if title is not None:
        values["title"] = _clean_title(title)
    if points is not None:
        values["points"] = _check_points(points)
    if not values:
        return task

    # A completed task already paid out; editing it would make the ledger note lie.
    with ledger.kid_lock(task.assigned_kid_id), atomic(db):
        changed = db.execute(
            update(Task)
            .where(Task.id == task.id, Task.status == TaskStatus.PENDING)
            .values(**values)
            .execution_options(synchronize_session=False)
        ).rowcount
        if not changed:
            if _task_status(db, task.id) is None:
                raise NotFound("Task not found")
            raise BadRequest("Task is locked after completion and cannot be edited.")
    db.refresh(task)
    logger.info(f"Task updated: id={task.id}, fields={sorted(values)}")
    return task

def delete_task(db: Session, principal: Principal, *, task_id: str) -> None:
    """Delete a task; its ledger rows survive with the task reference nulled."""
    require_role(principal, [Role.PARENT])
    task = _get_parent_task(db, parent_id=principal.parent_id, task_id=task_id)
    with atomic(db):
        detached = ledger.detach_task(db, task.id)
        db.delete(task)
    logger.info(f"Task deleted: id={task_id}, ledger rows detached={detached}")

def complete_task(
    db: Session,
    principal: Principal,
    task_id: str,
    requested_kid_id: str | None = None,
) -> Task:
    """Mark a task complete and award its points exactly once.

    Completing an already complete task returns it unchanged.
    """
    kid_id = resolve_effective_kid(db, principal, requested_kid_id)

    task = db.get(Task, task_id)
    if not task or task.assigned_kid_id != kid_id:
        raise NotFound("Task not found")
    if task.status == TaskStatus.COMPLETE:
        return task

    with ledger.kid_lock(kid_id), atomic(db):
        # Only the request that flips PENDING -> COMPLETE pays out.
        won = db.execute(
            update(Task)
            .where(Task.id == task.id, Task.status == TaskStatus.PENDING)
            .values(status=TaskStatus.COMPLETE, completed_at=utcnow())
            .execution_options(synchronize_session=False)
        ).rowcount == 1
        if won:
            title, points = db.execute(select(Task.title, Task.points).where(Task.id == task.id)).one()
            ledger.append_transaction(
                db,
                kid_id=kid_id,
                type=TransactionType.EARN,
                delta=points,
                task_id=task.id,
                note=f"Completed task: {title}",
            )
        elif _task_status(db, task.id) is None:
            # deleted after it was loaded
            raise NotFound("Task not found")
    db.refresh(task)
    if won:
        logger.info(f"Task completed: id={task.id}, kid={kid_id}, awarded={task.points}")
    return task
