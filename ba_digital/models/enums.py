"""
Enum Values
===========

Nilai enum yang disimpan sebagai string di database.
"""

from enum import Enum


class Role(str, Enum):
    ADMIN = 'admin'
    VENDOR = 'vendor'              # legacy: boleh BAPB dan BAPP
    VENDOR_BARANG = 'vendor_barang'
    VENDOR_JASA = 'vendor_jasa'
    PIC_GUDANG = 'pic_gudang'
    APPROVER = 'approver'


class DocumentType(str, Enum):
    BAPB = 'BAPB'
    BAPP = 'BAPP'


class DocumentStatus(str, Enum):
    DRAFT = 'draft'
    SUBMITTED = 'submitted'
    IN_REVIEW = 'in_review'
    APPROVED = 'approved'
    REJECTED = 'rejected'
    REVISION_REQUIRED = 'revision_required'


class ApprovalAction(str, Enum):
    APPROVED = 'approved'
    REJECTED = 'rejected'
    REVISION_REQUIRED = 'revision_required'


class ItemCondition(str, Enum):
    GOOD = 'good'
    DAMAGED = 'damaged'
    SHORT = 'short'


class WorkQuality(str, Enum):
    EXCELLENT = 'excellent'
    GOOD = 'good'
    ACCEPTABLE = 'acceptable'
    POOR = 'poor'
    REJECTED = 'rejected'


class AttachmentType(str, Enum):
    SIGNATURE = 'signature'
    SUPPORTING_DOC = 'supporting_doc'


class NotificationPriority(str, Enum):
    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'
    URGENT = 'urgent'


class PaymentStatus(str, Enum):
    SUCCESS = 'success'
    FAILED = 'failed'
