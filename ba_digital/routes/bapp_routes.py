"""
BAPP Routes
===========

Endpoint Berita Acara Pemeriksaan Pekerjaan: /api/bapp
"""

from ..models.enums import DocumentType
from .workflow_routes import build_document_router

router = build_document_router(DocumentType.BAPP)
