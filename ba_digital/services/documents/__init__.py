"""
Documents Domain Services
=========================

Repository generik, services BAPB/BAPP dan rendition PDF
"""

from .repository import (
    DocumentKind, DocumentRepository, BAPB_KIND, BAPP_KIND, KINDS, compute_total_progress
)
from .document_service import DocumentService
from .bapb_service import BAPBService
from .bapp_service import BAPPService
from .rendition_service import RenditionService

__all__ = [
    'DocumentKind', 'DocumentRepository', 'BAPB_KIND', 'BAPP_KIND', 'KINDS', 'compute_total_progress',
    'DocumentService', 'BAPBService', 'BAPPService',
    'RenditionService'
]
