"""
Integration Domain Services
===========================

Services untuk notifikasi in-app dan blob store file upload
"""

from .notification_service import NotificationService, format_rupiah
from .storage_service import StorageService

__all__ = [
    'NotificationService',
    'StorageService',
    'format_rupiah'
]
