from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from aegis.config import MAX_ROW_ID, PAGE_LIMIT_MAX, PAGE_MAX, SEARCH_MAX_LENGTH
from aegis.database import get_db
from aegis.dependencies.auth import get_current_user
from aegis.schemas.task import TaskCreate, TaskOut, TaskStatus, TaskUpdate
from aegis.schemas.user import UserPublic
from aegis.services import tasks as store
from aegis.utils.response import send_paginated, send_success

# All routes require authentication. Task bodies go out bare, without the
# {success: ...} envelope, because the web client reads them that way.
router = APIRouter(prefix="/api/tasks", tags=["tasks"], dependencies=[Depends(get_current_user)])

TaskId = Annotated[int, Path(gt=0, le=MAX_ROW_ID)]


@router.get("")
def list_tasks(
    status: Optional[TaskStatus] = None,
    search: Annotated[Optional[str], Query(min_length=1, max_length=SEARCH_MAX_LENGTH)] = None,
    page: Annotated[Optional[int], Query(ge=1, le=PAGE_MAX)] = None,
    limit: Annotated[Optional[int], Query(ge=1, le=PAGE_LIMIT_MAX)] = None,
    current: UserPublic = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Plain list by default; paginated envelope when both page and limit are given."""
    filters = {"status": status, "search": search.strip() if search else None}

    if page and limit:
        items, total = store.paginate_tasks(db, current.id, page, limit, **filters)
        data = [TaskOut.model_validate(t).to_json() for t in items]
        return send_paginated(data, page, limit, total)

    return [TaskOut.model_validate(t).to_json() for t in store.list_tasks(db, current.id, **filters)]


@router.post("", status_code=201, response_model=TaskOut)
def create_task(body: TaskCreate, current: UserPublic = Depends(get_current_user), db: Session = Depends(get_db)):
    return store.create_task(db, current.id, body.title, body.description, body.status)


@router.get("/{task_id}", response_model=TaskOut)
def get_task(task_id: TaskId, current: UserPublic = Depends(get_current_user), db: Session = Depends(get_db)):
    return store.get_task(db, current.id, task_id)


@router.put("/{task_id}", response_model=TaskOut)
def update_task(task_id: TaskId, body: TaskUpdate, current: UserPublic = Depends(get_current_user),
                db: Session = Depends(get_db)):
    return store.update_task(db, current.id, task_id, body.changes())


@router.delete("/{task_id}")
def delete_task(task_id: TaskId, current: UserPublic = Depends(get_current_user), db: Session = Depends(get_db)):
    store.delete_task(db, current.id, task_id)
    return send_success(message="Task deleted successfully")
