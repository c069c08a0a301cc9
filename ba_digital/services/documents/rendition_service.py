"""
Rendition Service
=================

Menyusun input untuk renderer PDF (aggregate dokumen + path file signature)
dan daftar dokumen yang sudah selesai (approved). Menggambar PDF sendiri
dikerjakan oleh renderer yang di-inject.
"""

import inspect
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from ..base import BaseService
from ..exceptions import AuthorizationError, ExternalServiceError, NotFoundError
from ..integration.storage_service import StorageService
from ..roles import is_vendor
from .repository import DocumentRepository
from ...models.enums import AttachmentType, DocumentStatus, DocumentType

# renderer(document_type, aggregate, signatures) -> bytes (boleh async)
Renderer = Callable[[str, Dict[str, Any], Dict[str, Optional[str]]], Union[bytes, Awaitable[bytes]]]


class RenditionService(BaseService):
    """Service untuk PDF rendition dan completed documents"""

    def __init__(self, gateway, repositories: Dict[DocumentType, DocumentRepository],
                 storage: StorageService, renderer: Optional[Renderer] = None):
        super().__init__(gateway)
        self.repositories = repositories
        self.storage = storage
        self.renderer = renderer

    async def assemble(self, document_type: DocumentType, document_id: str,
                       user: Dict[str, Any]) -> Dict[str, Any]:
        """
        Aggregate dokumen plus ``signatures``: signature terbaru vendor dan primary
        reviewer yang sudah di-pin, sebagai absolute path di blob store.
        """
        document_type = DocumentType(document_type)
        repository = self.repositories[document_type]
        document = await repository.find_with_relations(document_id)
        if not document:
            raise NotFoundError(document_type.value, document_id)
        if is_vendor(user.get('role')) and document['vendor_id'] != user['id']:
            raise AuthorizationError(f"Not authorized to access this {document_type.value}")

        reviewer_id = document.get(repository.kind.reviewer_field)
        signatures: Dict[str, Optional[str]] = {'vendor_signature': None, 'reviewer_signature': None}
        # attachments sudah terurut terbaru dulu
        for attachment in document.get('attachments') or []:
            if attachment['file_type'] != AttachmentType.SIGNATURE.value:
                continue
            if attachment['uploaded_by'] == document['vendor_id']:
                key = 'vendor_signature'
            elif reviewer_id and attachment['uploaded_by'] == reviewer_id:
                key = 'reviewer_signature'
            else:
                continue
            if signatures[key] is None:
                signatures[key] = str(self.storage.absolute_path(attachment['file_path']))

        return {**document, 'signatures': signatures}

    async def render(self, document_type: DocumentType, document_id: str,
                     user: Dict[str, Any]) -> Dict[str, Any]:
        """Render PDF; ``{'content': bytes, 'file_name': str}``"""
        if self.renderer is None:
            raise ExternalServiceError('PDF_RENDERER', 'PDF renderer is not configured')

        aggregate = await self.assemble(document_type, document_id, user)
        label = DocumentType(document_type).value
        try:
            content = self.renderer(label, aggregate, aggregate['signatures'])
            if inspect.isawaitable(content):
                content = await content
        except Exception as e:
            self.logger.error(f"Error rendering {label} {document_id}: {e}")
            raise ExternalServiceError('PDF_RENDERER', f"Error generating PDF: {e}") from e

        number = aggregate[self.repositories[DocumentType(document_type)].kind.number_field]
        return {'content': content, 'file_name': f"{label}-{number.replace('/', '-')}.pdf"}

    async def get_completed_documents(self, user: Dict[str, Any]) -> List[Dict[str, Any]]:
        """BAPB dan BAPP approved dalam satu list, ``updated_at`` terbaru dulu"""
        vendor_id = user['id'] if is_vendor(user.get('role')) else None

        documents = []
        for document_type, repository in self.repositories.items():
            rows = await repository.find_by_status(DocumentStatus.APPROVED.value, vendor_id)
            for row in rows:
                documents.append({
                    'id': row['id'],
                    'type': document_type.value,
                    'document_number': row[repository.kind.number_field],
                    'status': row['status'],
                    'vendor': row.get('vendor'),
                    'created_at': row['created_at'],
                    'updated_at': row['updated_at'],
                    'approved_at': row['updated_at'],
                    'items': row.get(repository.kind.items_key) or [],
                })

        documents.sort(key=lambda doc: doc['updated_at'], reverse=True)
        return documents
