"""
Document Service
================

Orkestrasi level controller untuk satu tipe dokumen: validasi input, ownership,
penomoran, create/update/delete/submit dan listing. ``BAPBService`` dan
``BAPPService`` hanya mengisi schema dan label tipe.
"""

from typing import Any, Dict, Optional, Type

from pydantic import BaseModel as PydanticModel

from ..base import BaseService, validate_input
from ..exceptions import (
    AuthorizationError, BusinessRuleError, ExternalServiceError, NotFoundError,
    PartialWriteError, ValidationError
)
from ..integration.storage_service import StorageService
from ..roles import Action, is_vendor, parse_role, require, roles_for
from ...models.enums import DocumentStatus, Role
from .repository import DocumentRepository

EDITABLE_STATUSES = (DocumentStatus.DRAFT.value, DocumentStatus.REVISION_REQUIRED.value)
# Kolom nullable yang boleh dikosongkan lewat update
CLEARABLE_FIELDS = frozenset({'notes', 'completion_date'})


class DocumentService(BaseService):
    """Base service untuk CRUD dokumen BAPB/BAPP"""

    create_schema: Type[PydanticModel]
    update_schema: Type[PydanticModel]
    # role vendor yang disebut di pesan validate_access
    manager_role: Role

    def __init__(self, gateway, repository: DocumentRepository, state_machine,
                 storage: Optional[StorageService] = None, notification_service=None):
        super().__init__(gateway, notification_service)
        self.repository = repository
        self.state_machine = state_machine
        self.storage = storage

    @property
    def document_type(self):
        return self.repository.kind.document_type

    @property
    def label(self) -> str:
        return self.repository.kind.label

    # ==================== CRUD ====================

    async def create(self, data: Dict[str, Any], user: Dict[str, Any]) -> Dict[str, Any]:
        """Create dokumen draft milik user; nomor dibuat otomatis"""
        require(user, self.document_type, Action.CREATE)
        payload = validate_input(self.create_schema, data).model_dump()
        items_key = self.repository.kind.items_key
        line_items = payload.pop(items_key)

        fields = {
            **payload,
            self.repository.kind.number_field: await self.repository.generate_number(),
            'vendor_id': user['id'],
            'status': DocumentStatus.DRAFT.value,
        }
        document = await self.repository.create_with_children(fields, line_items)

        if not document.get(items_key):
            self.logger.error(f"{self.label} {document['id']} created but no items found")
            raise PartialWriteError(
                f"{self.label} created but items were not saved properly. Please try again.",
                compensated=False,
                details={'document_id': document['id'], 'items_received': len(line_items), 'items_saved': 0}
            )
        return document

    async def get(self, document_id: str, user: Dict[str, Any]) -> Dict[str, Any]:
        document = await self.repository.find_with_relations(document_id)
        if not document:
            raise NotFoundError(self.label, document_id)
        self._check_owner(document, user, 'view')
        document['allowed_actions'] = self.state_machine.allowed_actions(self.document_type, document, user)
        return document

    async def list(self, user: Dict[str, Any], filters: Optional[Dict[str, Any]] = None,
                   page: int = 1, per_page: int = 10) -> Dict[str, Any]:
        """List dokumen; vendor hanya melihat dokumennya sendiri"""
        filters = dict(filters or {})
        if is_vendor(user.get('role')):
            filters['vendor_id'] = user['id']

        page = max(page, 1)
        per_page = max(min(per_page, 100), 1)
        rows, total = await self.repository.list_with_relations(filters, page, per_page)
        return {
            'items': rows,
            'pagination': self._pagination(page, per_page, total)
        }

    async def update(self, document_id: str, data: Dict[str, Any], user: Dict[str, Any]) -> Dict[str, Any]:
        """
        Update dokumen draft/revision_required. Dokumen revision_required kembali
        ke draft dan rejection_reason dihapus dalam update yang sama.
        """
        document = await self._load(document_id)
        self._check_owner(document, user, 'update')
        require(user, self.document_type, Action.UPDATE)
        if document['status'] not in EDITABLE_STATUSES:
            raise BusinessRuleError(
                f"Cannot update {self.label} that is not in draft or revision status",
                rule_code='DOCUMENT_LOCKED', details={'status': document['status']}
            )

        payload = validate_input(self.update_schema, data).model_dump(exclude_unset=True)
        line_items = payload.pop(self.repository.kind.items_key, None)
        # null pada kolom wajib berarti "tidak diubah"
        payload = {
            key: value for key, value in payload.items()
            if value is not None or key in CLEARABLE_FIELDS
        }

        if document['status'] == DocumentStatus.REVISION_REQUIRED.value:
            payload['status'] = DocumentStatus.DRAFT.value
            payload['rejection_reason'] = None

        updated = await self.repository.update_with_children(document_id, payload, line_items)
        self.logger.info(f"{self.label} {document_id} updated by {user['id']}")
        return updated

    async def delete(self, document_id: str, user: Dict[str, Any]) -> bool:
        """Hanya draft; file attachment di blob store ikut dihapus (best-effort)"""
        document = await self._load(document_id)
        self._check_owner(document, user, 'delete')
        require(user, self.document_type, Action.DELETE)
        if document['status'] != DocumentStatus.DRAFT.value:
            raise BusinessRuleError(
                f"Can only delete {self.label} in draft status",
                rule_code='DOCUMENT_LOCKED', details={'status': document['status']}
            )

        attachments = await self.repository.delete(document_id)
        if self.storage:
            for attachment in attachments:
                try:
                    await self.storage.delete(attachment['file_path'])
                except ExternalServiceError as e:
                    self.logger.warning(f"Orphaned file {attachment['file_path']}: {e.message}")
        return True

    # ==================== WORKFLOW ====================

    async def submit(self, document_id: str, user: Dict[str, Any]):
        return await self.state_machine.submit(self.document_type, document_id, user)

    async def get_approval_history(self, document_id: str, user: Dict[str, Any]):
        document = await self._load(document_id)
        self._check_owner(document, user, 'view')
        return await self.repository.get_approval_history(document_id)

    async def get_pending_approvals(self, user: Dict[str, Any]):
        return await self.repository.get_pending_approvals(user['id'], user.get('role'))

    # ==================== ACCESS & STATISTICS ====================

    def validate_access(self, user: Dict[str, Any]) -> Dict[str, Any]:
        allowed = roles_for(self.document_type, Action.CREATE)
        has_access = parse_role(user.get('role')) in allowed
        if has_access:
            message = f"User can manage {self.label}"
        else:
            message = (f"User cannot manage {self.label}. "
                       f"Only {self.manager_role.value} can create/manage {self.label}.")
        return {
            'hasAccess': has_access,
            'userRole': user.get('role'),
            'allowedRoles': sorted(role.value for role in allowed),
            'message': message,
        }

    async def get_statistics_by_vendor_type(self, user: Dict[str, Any]) -> Dict[str, int]:
        if parse_role(user.get('role')) != Role.ADMIN:
            raise AuthorizationError('Access denied. Admin only.', required_role=[Role.ADMIN.value])
        return await self.repository.get_statistics_by_vendor_type()

    async def get_vendor_statistics(self, user: Dict[str, Any], vendor_id: Optional[str] = None) -> Dict[str, Any]:
        """Vendor selalu melihat statistik miliknya; role lain wajib memilih vendor"""
        if is_vendor(user.get('role')):
            vendor_id = user['id']
        elif not vendor_id:
            raise ValidationError('vendor_id is required', field='vendor_id')
        return await self.repository.get_vendor_statistics(vendor_id)

    # ==================== HELPERS ====================

    async def _load(self, document_id: str) -> Dict[str, Any]:
        document = await self.repository.find(document_id)
        if not document:
            raise NotFoundError(self.label, document_id)
        return document

    def _check_owner(self, document: Dict[str, Any], user: Dict[str, Any], verb: str) -> None:
        if is_vendor(user.get('role')) and document['vendor_id'] != user['id']:
            raise AuthorizationError(f"Not authorized to {verb} this {self.label}")
