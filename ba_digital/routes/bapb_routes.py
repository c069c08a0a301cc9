"""
BAPB Routes
===========

Endpoint Berita Acara Penerimaan Barang: /api/bapb
"""

from ..models.enums import DocumentType
from .workflow_routes import build_document_router

router = build_document_router(DocumentType.BAPB)
