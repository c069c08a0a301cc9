"""
Notification Schemas
====================
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, Optional
from datetime import datetime

from ..models.enums import NotificationPriority


class NotificationSchema(BaseModel):
    """Representasi notifikasi di inbox user"""
    id: str
    user_id: str
    type: str
    title: str
    message: str
    related_document_type: Optional[str] = None
    related_document_id: Optional[str] = None
    related_document_number: Optional[str] = None
    action_url: Optional[str] = None
    priority: NotificationPriority = NotificationPriority.MEDIUM
    is_read: bool = False
    read_at: Optional[datetime] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None

    model_config = {'use_enum_values': True}


class NotificationCreateSchema(BaseModel):
    """Payload internal untuk membuat notifikasi"""
    user_id: str
    type: str = Field(..., min_length=1, max_length=50)
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    related_document_type: Optional[str] = None
    related_document_id: Optional[str] = None
    related_document_number: Optional[str] = None
    action_url: Optional[str] = None
    priority: NotificationPriority = NotificationPriority.MEDIUM
    metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = {'use_enum_values': True, 'validate_default': True}
