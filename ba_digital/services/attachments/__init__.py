"""
Attachments Domain Services
===========================

Signature dan supporting documents
"""

from .attachment_service import AttachmentService

__all__ = [
    'AttachmentService'
]
