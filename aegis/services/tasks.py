"""Task store. Every query here is scoped to the owning user.

A task that exists but belongs to someone else is reported exactly like a
task that does not exist.
"""
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from aegis.errors import NotFoundError
from aegis.models.task import Task

TASK_NOT_FOUND = "Task not found"


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _owned(db: Session, owner_id: int, status: Optional[str] = None, search: Optional[str] = None) -> Query:
    query = db.query(Task).filter(Task.user_id == owner_id)
    if status:
        query = query.filter(Task.status == status)
    if search:
        pattern = f"%{_escape_like(search)}%"
        query = query.filter(or_(
            Task.title.ilike(pattern, escape="\\"),
            Task.description.ilike(pattern, escape="\\"),
        ))
    return query


def _newest_first(query: Query) -> Query:
    return query.order_by(Task.created_at.desc(), Task.id.desc())


def list_tasks(db: Session, owner_id: int, status: Optional[str] = None,
               search: Optional[str] = None) -> list[Task]:
    return _newest_first(_owned(db, owner_id, status, search)).all()


def paginate_tasks(db: Session, owner_id: int, page: int, limit: int, status: Optional[str] = None,
                   search: Optional[str] = None) -> tuple[list[Task], int]:
    """Return one page of tasks and the total count for the same filter."""
    query = _owned(db, owner_id, status, search)
    total = query.count()
    items = _newest_first(query).offset((page - 1) * limit).limit(limit).all()
    return items, total


def get_task(db: Session, owner_id: int, task_id: int) -> Task:
    task = _owned(db, owner_id).filter(Task.id == task_id).first()
    if task is None:
        raise NotFoundError(TASK_NOT_FOUND)
    return task


def create_task(db: Session, owner_id: int, title: str, description: Optional[str] = None,
                status: Optional[str] = None) -> Task:
    task = Task(
        title=title.strip(),
        description=description or "",
        status=status or "todo",
        user_id=owner_id,
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def update_task(db: Session, owner_id: int, task_id: int, patch: dict) -> Task:
    task = get_task(db, owner_id, task_id)
    for field in ("title", "description", "status"):
        if field in patch:
            setattr(task, field, patch[field])
    db.commit()
    db.refresh(task)
    return task


def delete_task(db: Session, owner_id: int, task_id: int) -> None:
    deleted = _owned(db, owner_id).filter(Task.id == task_id).delete(synchronize_session=False)
    if not deleted:
        raise NotFoundError(TASK_NOT_FOUND)
    db.commit()
