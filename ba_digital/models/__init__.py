"""
BA Digital Models
=================

Semua model SQLAlchemy; diimpor di sini agar Base.metadata mengenal semua tabel.
"""

from .base import Base, BaseModel, generate_uuid
from .enums import (
    Role, DocumentType, DocumentStatus, ApprovalAction, ItemCondition,
    WorkQuality, AttachmentType, NotificationPriority, PaymentStatus
)
from .user import User
from .document import (
    BAPB, BAPBItem, BAPBApproval, BAPBAttachment,
    BAPP, BAPPWorkItem, BAPPApproval, BAPPAttachment
)
from .notification import Notification
from .payment import PaymentLog

__all__ = [
    'Base', 'BaseModel', 'generate_uuid',
    'Role', 'DocumentType', 'DocumentStatus', 'ApprovalAction', 'ItemCondition',
    'WorkQuality', 'AttachmentType', 'NotificationPriority', 'PaymentStatus',
    'User',
    'BAPB', 'BAPBItem', 'BAPBApproval', 'BAPBAttachment',
    'BAPP', 'BAPPWorkItem', 'BAPPApproval', 'BAPPAttachment',
    'Notification', 'PaymentLog',
]
