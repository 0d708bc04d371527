from fastapi import APIRouter, Depends, Query
from typing import Optional

from models import User, Notification
from schemas.base import dump, dump_list
from schemas.notification import NotificationResponse
from services.notification_service import NotificationService
from utils.auth import get_current_user
from utils.dependencies import get_notification, get_notification_service

router = APIRouter()


@router.get("")
async def list_notifications(
    status: Optional[str] = Query(None, description="unread 表示只看未读"),
    current_user: User = Depends(get_current_user),
    notification_service: NotificationService = Depends(get_notification_service)
):
    notifications = notification_service.list_for(current_user, status)
    return {"notifications": dump_list(NotificationResponse, notifications)}


# 固定路径需在 /{notification_id} 之前注册
@router.post("/mark-all-as-read")
async def mark_all_as_read(
    current_user: User = Depends(get_current_user),
    notification_service: NotificationService = Depends(get_notification_service)
):
    count = notification_service.mark_all_read(current_user)
    return {"message": "All notifications marked as read", "marked_count": count, "unread_count": 0}


@router.get("/unread-count")
async def unread_count(
    current_user: User = Depends(get_current_user),
    notification_service: NotificationService = Depends(get_notification_service)
):
    return {"unread_count": notification_service.unread_count(current_user)}


@router.get("/{notification_id}")
async def get_notification_detail(
    current_user: User = Depends(get_current_user),
    notification: Notification = Depends(get_notification),
    notification_service: NotificationService = Depends(get_notification_service)
):
    return {"notification": dump(NotificationResponse, notification_service.get(notification, current_user))}


@router.put("/{notification_id}")
async def mark_as_read(
    current_user: User = Depends(get_current_user),
    notification: Notification = Depends(get_notification),
    notification_service: NotificationService = Depends(get_notification_service)
):
    notification = notification_service.mark_read(notification, current_user)
    return {"message": "Notification marked as read", "notification": dump(NotificationResponse, notification)}


@router.delete("/{notification_id}")
async def delete_notification(
    current_user: User = Depends(get_current_user),
    notification: Notification = Depends(get_notification),
    notification_service: NotificationService = Depends(get_notification_service)
):
    notification_service.delete(notification, current_user)
    return {"message": "Notification deleted successfully"}
