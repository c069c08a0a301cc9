"""
Approval State Machine
======================

Transisi status dokumen BAPB/BAPP yang digerakkan oleh tabel:

    draft, revision_required --submit--> submitted
    submitted --start_review--> in_review --release_review--> submitted
    submitted, in_review --approve--> approved
    submitted, in_review --reject--> rejected
    submitted, in_review --request_revision--> revision_required

Semua precondition (role, status, owner, duplikasi approval, signature) dicek
sebelum write pertama. Notifikasi adalah side effect best-effort.

Pengecekan ``has_approved`` dan pin primary reviewer adalah read-then-write tanpa
compare-and-swap: dua approval bersamaan oleh user berbeda bisa sama-sama lolos,
dan status terakhir yang ditulis yang menang.
"""

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Optional

from ..base import BaseService
from ..documents.repository import DocumentRepository
from ..exceptions import (
    AuthorizationError, BusinessRuleError, DuplicateApprovalError, InvalidTransitionError,
    NotFoundError, SignatureRequiredError, StoreError, ValidationError
)
from ..roles import Action, can, is_primary_reviewer, require
from ...models.enums import ApprovalAction, DocumentStatus, DocumentType

MISSING_SIGNATURE_WARNING = 'Approved without signature - please upload signature for complete documentation'
SIGNATURE_LOOKUP_WARNING = 'Could not verify signature status'
SIGNATURE_FAILURE_WARNING = 'Signature verification failed - proceeding without signature'


@dataclass(frozen=True)
class Transition:
    name: str
    sources: FrozenSet[DocumentStatus]
    target: DocumentStatus
    action: Action


TRANSITIONS: Dict[str, Transition] = {
    t.name: t for t in (
        Transition('submit', frozenset({DocumentStatus.DRAFT, DocumentStatus.REVISION_REQUIRED}),
                   DocumentStatus.SUBMITTED, Action.SUBMIT),
        Transition('start_review', frozenset({DocumentStatus.SUBMITTED}),
                   DocumentStatus.IN_REVIEW, Action.REVIEW),
        Transition('release_review', frozenset({DocumentStatus.IN_REVIEW}),
                   DocumentStatus.SUBMITTED, Action.REVIEW),
        Transition('approve', frozenset({DocumentStatus.SUBMITTED, DocumentStatus.IN_REVIEW}),
                   DocumentStatus.APPROVED, Action.APPROVE),
        Transition('reject', frozenset({DocumentStatus.SUBMITTED, DocumentStatus.IN_REVIEW}),
                   DocumentStatus.REJECTED, Action.REJECT),
        Transition('request_revision', frozenset({DocumentStatus.SUBMITTED, DocumentStatus.IN_REVIEW}),
                   DocumentStatus.REVISION_REQUIRED, Action.REQUEST_REVISION),
    )
}

# Urutan status untuk pesan error (draft dulu, dst.)
_STATUS_ORDER = [status.value for status in DocumentStatus]


@dataclass
class TransitionResult:
    document: Dict[str, Any]
    warning: Optional[str] = None


class ApprovalStateMachine(BaseService):
    """Validasi precondition dan jalankan transisi status dokumen"""

    def __init__(self, gateway, repositories: Dict[DocumentType, DocumentRepository],
                 notification_service=None):
        super().__init__(gateway, notification_service)
        self.repositories = repositories

    # ==================== QUERIES ====================

    def allowed_actions(self, document_type: DocumentType, document: Dict[str, Any],
                        user: Dict[str, Any]) -> List[str]:
        """Nama transisi yang saat ini boleh dijalankan user untuk dokumen ini"""
        actions = []
        for transition in TRANSITIONS.values():
            if document['status'] not in {status.value for status in transition.sources}:
                continue
            if not can(user.get('role'), document_type, transition.action):
                continue
            if transition.action == Action.SUBMIT and document['vendor_id'] != user['id']:
                continue
            actions.append(transition.name)
        return actions

    # ==================== TRANSITIONS ====================

    async def submit(self, document_type: DocumentType, document_id: str,
                     user: Dict[str, Any]) -> TransitionResult:
        repository, label = self._repository(document_type)
        document = await self._load(repository, document_id)

        if document['vendor_id'] != user['id']:
            raise AuthorizationError(f"Not authorized to submit this {label}")
        require(user, document_type, Action.SUBMIT)
        self._check_status('submit', label, document)

        if await repository.count_items(document_id) == 0:
            raise BusinessRuleError(
                f"{label} must have at least one item. Please add items before submitting.",
                rule_code='ITEMS_REQUIRED', details={'document_id': document_id}
            )

        updated = await repository.update(document_id, {
            'status': DocumentStatus.SUBMITTED.value,
            'rejection_reason': None,
        })
        self.logger.info(f"{label} {document_id} submitted by {user['id']}")

        await self._send_notification('notify_submitted', document_type, updated)
        return TransitionResult(await repository.find_with_relations(document_id))

    async def start_review(self, document_type: DocumentType, document_id: str,
                           user: Dict[str, Any]) -> TransitionResult:
        return await self._simple_move('start_review', document_type, document_id, user)

    async def release_review(self, document_type: DocumentType, document_id: str,
                             user: Dict[str, Any]) -> TransitionResult:
        return await self._simple_move('release_review', document_type, document_id, user)

    async def approve(self, document_type: DocumentType, document_id: str, user: Dict[str, Any],
                      notes: Optional[str] = None) -> TransitionResult:
        """
        Approve dokumen. BAPP wajib punya signature approver (hard block);
        BAPB hanya memberi warning jika signature tidak ada atau lookup gagal.
        """
        repository, label = self._repository(document_type)
        document = await self._load(repository, document_id)

        self._check_status('approve', label, document)
        role = require(user, document_type, Action.APPROVE)

        if await repository.has_approved(document_id, user['id']):
            raise DuplicateApprovalError(label, user['id'])

        warning = None
        if DocumentType(document_type) == DocumentType.BAPP:
            if not await repository.find_signature(document_id, user['id']):
                raise SignatureRequiredError(label)
        else:
            warning = await self._soft_signature_check(repository, document_id, user['id'])

        await repository.create_approval(document_id, user['id'], ApprovalAction.APPROVED, notes)

        values: Dict[str, Any] = {'status': DocumentStatus.APPROVED.value}
        reviewer_field = repository.kind.reviewer_field
        if not document.get(reviewer_field) and is_primary_reviewer(role, document_type):
            values[reviewer_field] = user['id']
        updated = await repository.update(document_id, values)
        self.logger.info(f"{label} {document_id} approved by {user['id']}")

        await self._send_notification('notify_approved', document_type, updated, user.get('name'))
        return TransitionResult(await repository.find_with_relations(document_id), warning)

    async def reject(self, document_type: DocumentType, document_id: str, user: Dict[str, Any],
                     rejection_reason: Optional[str], notes: Optional[str] = None) -> TransitionResult:
        if not rejection_reason or not rejection_reason.strip():
            raise ValidationError('Rejection reason is required', field='rejection_reason')
        return await self._close_review('reject', ApprovalAction.REJECTED, 'notify_rejected',
                                        document_type, document_id, user, rejection_reason.strip(), notes)

    async def request_revision(self, document_type: DocumentType, document_id: str, user: Dict[str, Any],
                               revision_reason: Optional[str], notes: Optional[str] = None) -> TransitionResult:
        if not revision_reason or not revision_reason.strip():
            raise ValidationError('Revision reason is required', field='revision_reason')
        return await self._close_review('request_revision', ApprovalAction.REVISION_REQUIRED,
                                        'notify_revision_required', document_type, document_id, user,
                                        revision_reason.strip(), notes)

    # ==================== HELPERS ====================

    async def _close_review(self, name: str, action: ApprovalAction, event: str,
                            document_type: DocumentType, document_id: str, user: Dict[str, Any],
                            reason: str, notes: Optional[str]) -> TransitionResult:
        repository, label = self._repository(document_type)
        document = await self._load(repository, document_id)

        self._check_status(name, label, document)
        require(user, document_type, TRANSITIONS[name].action)

        await repository.create_approval(document_id, user['id'], action, notes)
        updated = await repository.update(document_id, {
            'status': TRANSITIONS[name].target.value,
            'rejection_reason': reason,
        })
        self.logger.info(f"{label} {document_id} -> {updated['status']} by {user['id']}")

        await self._send_notification(event, document_type, updated, reason)
        return TransitionResult(await repository.find_with_relations(document_id))

    async def _simple_move(self, name: str, document_type: DocumentType, document_id: str,
                           user: Dict[str, Any]) -> TransitionResult:
        repository, label = self._repository(document_type)
        document = await self._load(repository, document_id)

        self._check_status(name, label, document)
        require(user, document_type, TRANSITIONS[name].action)

        await repository.update(document_id, {'status': TRANSITIONS[name].target.value})
        self.logger.info(f"{label} {document_id} {name.replace('_', ' ')} by {user['id']}")
        return TransitionResult(await repository.find_with_relations(document_id))

    async def _soft_signature_check(self, repository: DocumentRepository, document_id: str,
                                    user_id: str) -> Optional[str]:
        try:
            signature = await repository.find_signature(document_id, user_id)
        except StoreError as e:
            self.logger.warning(f"Error checking signature for {document_id}: {e}")
            return SIGNATURE_LOOKUP_WARNING
        except Exception as e:
            self.logger.error(f"Unexpected error during signature check for {document_id}: {e}")
            return SIGNATURE_FAILURE_WARNING
        if not signature:
            self.logger.warning(f"No signature found for user {user_id} on {document_id}")
            return MISSING_SIGNATURE_WARNING
        return None

    def _check_status(self, name: str, label: str, document: Dict[str, Any]) -> None:
        transition = TRANSITIONS[name]
        allowed = {status.value for status in transition.sources}
        if document['status'] not in allowed:
            ordered = [status for status in _STATUS_ORDER if status in allowed]
            raise InvalidTransitionError(label, name, document['status'], ordered)

    def _repository(self, document_type: DocumentType):
        document_type = DocumentType(document_type)
        return self.repositories[document_type], document_type.value

    @staticmethod
    async def _load(repository: DocumentRepository, document_id: str) -> Dict[str, Any]:
        document = await repository.find(document_id)
        if not document:
            raise NotFoundError(repository.kind.label, document_id)
        return document
