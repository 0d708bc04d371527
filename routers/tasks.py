from fastapi import APIRouter, Depends, Query, status
from typing import Optional

from models import User, Task
from schemas.base import dump
from schemas.task import TaskCreate, TaskUpdate, TaskDetail, task_list_item
from services.task_service import TaskService
from utils.auth import get_current_user
from utils.dependencies import get_task, get_task_service

router = APIRouter()


@router.get("")
async def list_tasks(
    status: Optional[str] = Query(None, description="任务状态筛选，overdue 表示逾期任务"),
    current_user: User = Depends(get_current_user),
    task_service: TaskService = Depends(get_task_service)
):
    """获取任务列表"""
    tasks = task_service.list_for(current_user, status)
    return {"tasks": [task_list_item(task) for task in tasks]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: TaskCreate,
    current_user: User = Depends(get_current_user),
    task_service: TaskService = Depends(get_task_service)
):
    """创建任务"""
    task = task_service.create(task_data, current_user)
    return {"message": "Task created successfully", "task": task_list_item(task)}


@router.get("/{task_id}")
async def get_task_detail(
    current_user: User = Depends(get_current_user),
    task: Task = Depends(get_task),
    task_service: TaskService = Depends(get_task_service)
):
    """获取任务详情"""
    return {"task": dump(TaskDetail, task_service.get(task, current_user))}


@router.put("/{task_id}")
async def update_task(
    task_data: TaskUpdate,
    current_user: User = Depends(get_current_user),
    task: Task = Depends(get_task),
    task_service: TaskService = Depends(get_task_service)
):
    """更新任务（部分更新）"""
    task = task_service.update(task, task_data, current_user)
    return {"message": "Task updated successfully", "task": task_list_item(task)}


@router.delete("/{task_id}")
async def delete_task(
    current_user: User = Depends(get_current_user),
    task: Task = Depends(get_task),
    task_service: TaskService = Depends(get_task_service)
):
    """删除任务"""
    task_service.delete(task, current_user)
    return {"message": "Task deleted successfully"}
