"""
Notification Routes
===================

Inbox notifikasi milik user yang sedang login: /api/notifications
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..dependencies import get_current_user, get_service_registry
from ..responses import APIResponse
from ..services import ServiceRegistry

router = APIRouter()


@router.get("/", summary="Get my notifications")
async def get_my_notifications(
    is_read: Optional[bool] = Query(None),
    type: Optional[str] = Query(None),
    priority: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: dict = Depends(get_current_user),
    services: ServiceRegistry = Depends(get_service_registry)
):
    """Belum dibaca dulu, lalu terbaru; pagination menyertakan unread_count"""
    result = await services.notification_service.get_user_notifications(
        user['id'], is_read=is_read, type=type, priority=priority, page=page, per_page=limit
    )
    return APIResponse.paginated(data=result['notifications'], pagination=result['pagination'])


@router.get("/unread-count", summary="Count unread notifications")
async def get_unread_count(
    user: dict = Depends(get_current_user),
    services: ServiceRegistry = Depends(get_service_registry)
):
    count = await services.notification_service.get_unread_count(user['id'])
    return APIResponse.success(data={'count': count})


@router.get("/stats", summary="Notification statistics")
async def get_notification_stats(
    user: dict = Depends(get_current_user),
    services: ServiceRegistry = Depends(get_service_registry)
):
    stats = await services.notification_service.get_statistics(user['id'])
    return APIResponse.success(data=stats)


@router.put("/mark-all-read", summary="Mark all notifications as read")
async def mark_all_as_read(
    user: dict = Depends(get_current_user),
    services: ServiceRegistry = Depends(get_service_registry)
):
    result = await services.notification_service.mark_all_as_read(user['id'])
    return APIResponse.success(data=result, message=f"{result['count']} notifications marked as read")


@router.delete("/clear-read", summary="Delete read notifications")
async def clear_read_notifications(
    user: dict = Depends(get_current_user),
    services: ServiceRegistry = Depends(get_service_registry)
):
    result = await services.notification_service.clear_read_notifications(user['id'])
    return APIResponse.success(data=result, message=f"{result['count']} notifications deleted")


@router.get("/{notification_id}", summary="Get notification")
async def get_notification(
    notification_id: str,
    user: dict = Depends(get_current_user),
    services: ServiceRegistry = Depends(get_service_registry)
):
    notification = await services.notification_service.get_notification(notification_id, user['id'])
    return APIResponse.success(data=notification)


@router.put("/{notification_id}/read", summary="Mark notification as read")
async def mark_as_read(
    notification_id: str,
    user: dict = Depends(get_current_user),
    services: ServiceRegistry = Depends(get_service_registry)
):
    notification = await services.notification_service.mark_as_read(notification_id, user['id'])
    return APIResponse.success(data=notification, message="Notification marked as read")


@router.put("/{notification_id}/unread", summary="Mark notification as unread")
async def mark_as_unread(
    notification_id: str,
    user: dict = Depends(get_current_user),
    services: ServiceRegistry = Depends(get_service_registry)
):
    notification = await services.notification_service.mark_as_unread(notification_id, user['id'])
    return APIResponse.success(data=notification, message="Notification marked as unread")


@router.delete("/{notification_id}", summary="Delete notification")
async def delete_notification(
    notification_id: str,
    user: dict = Depends(get_current_user),
    services: ServiceRegistry = Depends(get_service_registry)
):
    await services.notification_service.delete_notification(notification_id, user['id'])
    return APIResponse.success(message="Notification deleted")
