"""
Attachment Service
==================

Service untuk upload signature (data URL image) dan dokumen pendukung (base64)
ke blob store, plus attachment row per dokumen.
"""

import base64
import binascii
import re
import time
from pathlib import PurePath
from typing import Any, Dict, List, Optional

from ..base import BaseService
from ..documents.repository import DocumentRepository
from ..exceptions import AuthorizationError, NotFoundError, ValidationError
from ..integration.storage_service import StorageService
from ..roles import Action, can, is_vendor, parse_role
from ...models import User
from ...models.enums import AttachmentType, DocumentType, Role
from ...schemas.validators import SIGNATURE_DATA_URL, validate_signature_data_url

DATA_URL_PREFIX = re.compile(r'^data:([A-Za-z-+/.]+);base64,')


def _decode(payload: str, field: str) -> bytes:
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError('File data is not valid base64', field=field) from e


def _now_ms() -> int:
    return int(time.time() * 1000)


class AttachmentService(BaseService):
    """Service untuk signature dan supporting documents BAPB/BAPP"""

    def __init__(self, gateway, repositories: Dict[DocumentType, DocumentRepository],
                 storage: StorageService):
        super().__init__(gateway)
        self.repositories = repositories
        self.storage = storage

    # ==================== SIGNATURES ====================

    async def upload_signature(self, document_type: DocumentType, document_id: str,
                               user: Dict[str, Any], signature_data: str) -> Dict[str, Any]:
        """Simpan signature sebagai PNG dan catat attachment ``signature``"""
        if not signature_data:
            raise ValidationError('Signature data is required', field='signature_data')
        try:
            validate_signature_data_url(signature_data)
        except ValueError as e:
            raise ValidationError(str(e), field='signature_data') from e

        repository, label = self._repository(document_type)
        document = await self._load(repository, document_id)

        if is_vendor(user.get('role')):
            allowed = document['vendor_id'] == user['id'] and can(user.get('role'), label, Action.SIGN)
        else:
            allowed = can(user.get('role'), label, Action.SIGN)
        if not allowed:
            raise AuthorizationError(f"Not authorized to sign this {label}")

        content = _decode(SIGNATURE_DATA_URL.sub('', signature_data, count=1), 'signature_data')
        file_name = f"{label.lower()}_{document_id}_{user['id']}_{_now_ms()}.png"
        key = await self.storage.save(f"signatures/{file_name}", content)

        attachment = await repository.create_attachment(
            document_id, AttachmentType.SIGNATURE, key, file_name, user['id']
        )
        self.logger.info(f"Signature uploaded for {label} {document_id} by {user['id']}")
        return self._describe(attachment)

    async def list_signatures(self, document_type: DocumentType, document_id: str,
                              user: Dict[str, Any]) -> List[Dict[str, Any]]:
        return await self.list_attachments(document_type, document_id, user, AttachmentType.SIGNATURE.value)

    async def get_signature_status(self, document_type: DocumentType, document_id: str,
                                   user: Dict[str, Any]) -> Dict[str, Any]:
        """Apakah user sudah upload signature untuk dokumen ini"""
        repository, label = self._repository(document_type)
        document = await self._load(repository, document_id)
        signature = await repository.find_signature(document_id, user['id'])
        signatures = await repository.list_attachments(document_id, AttachmentType.SIGNATURE.value)
        return {
            'document_id': document_id,
            'document_type': label,
            'status': document['status'],
            'has_signed': signature is not None,
            'signature': self._describe(signature) if signature else None,
            'total_signatures': len(signatures),
        }

    # ==================== SUPPORTING DOCUMENTS ====================

    async def upload_document(self, document_type: DocumentType, document_id: str, user: Dict[str, Any],
                              file_data: str, file_name: str,
                              file_type: str = AttachmentType.SUPPORTING_DOC.value) -> Dict[str, Any]:
        if not file_data or not file_name:
            raise ValidationError('File data and file name are required')
        try:
            file_type = AttachmentType(file_type).value
        except ValueError as e:
            raise ValidationError(f"Invalid file type: {file_type}", field='file_type') from e

        repository, label = self._repository(document_type)
        document = await self._load(repository, document_id)
        self._check_owner(document, user, label, 'upload documents for')

        content = _decode(DATA_URL_PREFIX.sub('', file_data, count=1), 'file_data')
        original = PurePath(file_name).name
        stem, suffix = PurePath(original).stem, PurePath(original).suffix
        unique_name = f"{stem}_{_now_ms()}{suffix}"
        key = await self.storage.save(f"documents/{unique_name}", content)

        attachment = await repository.create_attachment(document_id, file_type, key, unique_name, user['id'])
        self.logger.info(f"Document {unique_name} uploaded for {label} {document_id}")
        return self._describe(attachment)

    async def list_attachments(self, document_type: DocumentType, document_id: str, user: Dict[str, Any],
                               file_type: Optional[str] = None) -> List[Dict[str, Any]]:
        repository, label = self._repository(document_type)
        document = await self._load(repository, document_id)
        self._check_owner(document, user, label, 'view attachments of')

        rows = await repository.list_attachments(document_id, file_type)
        users = {}
        if rows:
            uploaders, _ = await self.gateway.find_many(
                User, {'id__in': sorted({row['uploaded_by'] for row in rows})}
            )
            users = {u['id']: {'id': u['id'], 'name': u['name'], 'email': u['email'], 'role': u['role']}
                     for u in uploaders}
        return [{**row, 'uploader': users.get(row['uploaded_by'])} for row in rows]

    async def read_attachment(self, document_type: DocumentType, document_id: str,
                              attachment_id: str, user: Dict[str, Any]):
        """Ambil (attachment row, isi file) untuk download"""
        repository, label = self._repository(document_type)
        document = await self._load(repository, document_id)
        self._check_owner(document, user, label, 'download attachments of')

        attachment = await repository.find_attachment(document_id, attachment_id)
        if not attachment:
            raise NotFoundError('Attachment', attachment_id)
        return attachment, await self.storage.read(attachment['file_path'])

    async def delete_attachment(self, document_type: DocumentType, document_id: str,
                                attachment_id: str, user: Dict[str, Any]) -> bool:
        """Hanya uploader atau admin; blob dihapus dulu, lalu row"""
        repository, label = self._repository(document_type)
        attachment = await repository.find_attachment(document_id, attachment_id)
        if not attachment:
            raise NotFoundError('Attachment', attachment_id)
        if attachment['uploaded_by'] != user['id'] and parse_role(user.get('role')) != Role.ADMIN:
            raise AuthorizationError('Not authorized to delete this attachment')

        await self.storage.delete(attachment['file_path'])
        await repository.delete_attachment(attachment_id)
        self.logger.info(f"Attachment {attachment_id} removed from {label} {document_id}")
        return True

    # ==================== HELPERS ====================

    def _repository(self, document_type: DocumentType):
        document_type = DocumentType(document_type)
        return self.repositories[document_type], document_type.value

    @staticmethod
    async def _load(repository: DocumentRepository, document_id: str) -> Dict[str, Any]:
        document = await repository.find(document_id)
        if not document:
            raise NotFoundError(repository.kind.label, document_id)
        return document

    @staticmethod
    def _check_owner(document: Dict[str, Any], user: Dict[str, Any], label: str, verb: str) -> None:
        if is_vendor(user.get('role')) and document['vendor_id'] != user['id']:
            raise AuthorizationError(f"Not authorized to {verb} this {label}")

    @staticmethod
    def _describe(attachment: Dict[str, Any]) -> Dict[str, Any]:
        return {
            'id': attachment['id'],
            'file_path': attachment['file_path'],
            'file_name': attachment['file_name'],
            'file_type': attachment['file_type'],
            'uploaded_by': attachment['uploaded_by'],
            'uploaded_at': attachment.get('created_at'),
        }
