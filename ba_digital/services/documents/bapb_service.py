"""
BAPB Service
============

Service untuk Berita Acara Penerimaan Barang (vendor barang)
"""

from .document_service import DocumentService
from ...models.enums import Role
from ...schemas import BAPBCreateSchema, BAPBUpdateSchema


class BAPBService(DocumentService):
    """Service untuk BAPB management"""

    create_schema = BAPBCreateSchema
    update_schema = BAPBUpdateSchema
    manager_role = Role.VENDOR_BARANG
