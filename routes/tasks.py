# routes/tasks.py
from fastapi import APIRouter, Depends

from core.dependencies import get_tasks
from core.security import get_current_user
from models.models import Task, User
from schemas.task_schema import (
    AttachmentRead,
    CommentCreate,
    CommentRead,
    PriorityUpdate,
    StatusUpdate,
    TaskCreate,
    TaskDetail,
    TaskRead,
    TaskUpdate,
)
from schemas.user_schema import UserPublic
from services.task_service import TaskLifecycleEngine

router = APIRouter(tags=["Tasks"])

TASKS_PATH = "/{workspace_id}/projects/{project_id}/tasks"


def _task_read(engine: TaskLifecycleEngine, task: Task) -> TaskRead:
    members = engine.member_ids(task.id)
    return TaskRead(
        **task.model_dump(exclude={"title_key"}),
        assignee_ids=members["assignee"],
        reporter_ids=members["reporter"],
    )


# ==================================================================
#  ✅ Create Task
# ==================================================================
@router.post(TASKS_PATH, response_model=TaskRead, status_code=201)
def create_task(
    workspace_id: int,
    project_id: int,
    data: TaskCreate,
    current_user: User = Depends(get_current_user),
    engine: TaskLifecycleEngine = Depends(get_tasks),
):
    task = engine.create(workspace_id, project_id, current_user.id, data)
    return _task_read(engine, task)


# ==================================================================
#  ✅ Task Detail
# ==================================================================
@router.get(TASKS_PATH + "/{task_id}", response_model=TaskDetail)
def get_task(
    workspace_id: int,
    project_id: int,
    task_id: int,
    current_user: User = Depends(get_current_user),
    engine: TaskLifecycleEngine = Depends(get_tasks),
):
    detail = engine.get_detail(workspace_id, project_id, task_id, current_user.id)
    return TaskDetail(
        task=TaskRead(
            **detail["task"].model_dump(exclude={"title_key"}),
            assignee_ids=detail["assignee_ids"],
            reporter_ids=detail["reporter_ids"],
        ),
        assignees=[UserPublic.model_validate(user) for user in detail["assignees"]],
        reporters=[UserPublic.model_validate(user) for user in detail["reporters"]],
        attachments=[AttachmentRead.model_validate(item) for item in detail["attachments"]],
        comments=[
            CommentRead(
                id=comment.id,
                task_id=comment.task_id,
                text=comment.text,
                timestamp=comment.timestamp,
                user=UserPublic.model_validate(author) if author else None,
            )
            for comment, author in detail["comments"]
        ],
    )


# ==================================================================
#  ✅ Edit Task (owner)
# ==================================================================
@router.put(TASKS_PATH + "/{task_id}", response_model=TaskRead)
def edit_task(
    workspace_id: int,
    project_id: int,
    task_id: int,
    data: TaskUpdate,
    current_user: User = Depends(get_current_user),
    engine: TaskLifecycleEngine = Depends(get_tasks),
):
    task = engine.edit(workspace_id, project_id, task_id, current_user.id, data)
    return _task_read(engine, task)


# ==================================================================
#  ✅ Status / Priority (any collaborator)
# ==================================================================
@router.patch(TASKS_PATH + "/{task_id}/status", response_model=TaskRead)
def update_task_status(
    workspace_id: int,
    project_id: int,
    task_id: int,
    data: StatusUpdate,
    current_user: User = Depends(get_current_user),
    engine: TaskLifecycleEngine = Depends(get_tasks),
):
    task = engine.update_status(workspace_id, project_id, task_id, current_user.id, data.status)
    return _task_read(engine, task)


@router.patch(TASKS_PATH + "/{task_id}/priority", response_model=TaskRead)
def update_task_priority(
    workspace_id: int,
    project_id: int,
    task_id: int,
    data: PriorityUpdate,
    current_user: User = Depends(get_current_user),
    engine: TaskLifecycleEngine = Depends(get_tasks),
):
    task = engine.update_priority(workspace_id, project_id, task_id, current_user.id, data.priority)
    return _task_read(engine, task)


# ==================================================================
#  ✅ Delete Task (cascade comments + attachments)
# ==================================================================
@router.delete(TASKS_PATH + "/{task_id}")
def delete_task(
    workspace_id: int,
    project_id: int,
    task_id: int,
    current_user: User = Depends(get_current_user),
    engine: TaskLifecycleEngine = Depends(get_tasks),
):
    engine.delete(workspace_id, project_id, task_id, current_user.id)
    return {"success": True, "message": "Task deleted successfully"}


# ==================================================================
#  ✅ Comments
# ==================================================================
@router.post(TASKS_PATH + "/{task_id}/comments", response_model=CommentRead, status_code=201)
def add_comment(
    workspace_id: int,
    project_id: int,
    task_id: int,
    data: CommentCreate,
    current_user: User = Depends(get_current_user),
    engine: TaskLifecycleEngine = Depends(get_tasks),
):
    comment = engine.add_comment(workspace_id, project_id, task_id, current_user.id, data.text)
    return CommentRead(
        id=comment.id,
        task_id=comment.task_id,
        text=comment.text,
        timestamp=comment.timestamp,
        user=UserPublic.model_validate(current_user),
    )
