"""
BAPP Service
============

Service untuk Berita Acara Pemeriksaan Pekerjaan (vendor jasa). total_progress
dihitung ulang oleh repository setiap kali work items dikirim.
"""

from .document_service import DocumentService
from ...models.enums import Role
from ...schemas import BAPPCreateSchema, BAPPUpdateSchema


class BAPPService(DocumentService):
    """Service untuk BAPP management"""

    create_schema = BAPPCreateSchema
    update_schema = BAPPUpdateSchema
    manager_role = Role.VENDOR_JASA
