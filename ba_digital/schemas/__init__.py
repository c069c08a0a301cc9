"""
BA Digital Schemas
==================

Pydantic schemas untuk validasi input dan serialisasi output
"""

from .base import BaseSchema
from .bapb import BAPBCreateSchema, BAPBUpdateSchema, BAPBItemCreateSchema
from .bapp import BAPPCreateSchema, BAPPUpdateSchema, BAPPWorkItemCreateSchema
from .approval import ApproveRequestSchema, RejectRequestSchema, RevisionRequestSchema
from .attachment import SignatureUploadSchema, DocumentUploadSchema
from .notification import NotificationSchema, NotificationCreateSchema
from .payment import PaymentRequestSchema

__all__ = [
    'BaseSchema',
    'BAPBCreateSchema', 'BAPBUpdateSchema', 'BAPBItemCreateSchema',
    'BAPPCreateSchema', 'BAPPUpdateSchema', 'BAPPWorkItemCreateSchema',
    'ApproveRequestSchema', 'RejectRequestSchema', 'RevisionRequestSchema',
    'SignatureUploadSchema', 'DocumentUploadSchema',
    'NotificationSchema', 'NotificationCreateSchema',
    'PaymentRequestSchema',
]
