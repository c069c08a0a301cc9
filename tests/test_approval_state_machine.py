import pytest

from conftest import SIGNATURE_DATA_URL, bapb_payload, bapp_payload
from ba_digital.models import Notification
from ba_digital.models.enums import DocumentType
from ba_digital.services.approval import MISSING_SIGNATURE_WARNING
from ba_digital.services.exceptions import (
    AuthorizationError, BusinessRuleError, DuplicateApprovalError, InvalidTransitionError,
    NotFoundError, SignatureRequiredError, ValidationError
)

pytestmark = pytest.mark.anyio


@pytest.fixture
async def bapb(registry, users):
    return await registry.bapb_service.create(bapb_payload(), users['vendor_barang'])


@pytest.fixture
async def submitted_bapb(registry, users, bapb):
    result = await registry.approval_state_machine.submit(DocumentType.BAPB, bapb['id'], users['vendor_barang'])
    return result.document


@pytest.fixture
async def submitted_bapp(registry, users):
    document = await registry.bapp_service.create(bapp_payload(), users['vendor_jasa'])
    result = await registry.approval_state_machine.submit(DocumentType.BAPP, document['id'], users['vendor_jasa'])
    return result.document


async def test_submit_moves_draft_and_notifies_reviewers(registry, gateway, users, bapb):
    result = await registry.approval_state_machine.submit(DocumentType.BAPB, bapb['id'], users['vendor_barang'])

    assert result.document['status'] == 'submitted'
    assert result.warning is None

    notifications, _ = await gateway.find_many(Notification, {'type': 'bapb_submitted'})
    recipients = {row['user_id'] for row in notifications}
    assert recipients == {users['pic_gudang']['id'], users['approver']['id'], users['admin']['id']}
    assert notifications[0]['priority'] == 'high'
    assert notifications[0]['related_document_number'] == bapb['bapb_number']


async def test_bapp_submission_only_notifies_approvers(registry, gateway, users, submitted_bapp):
    notifications, _ = await gateway.find_many(Notification, {'type': 'bapp_submitted'})
    assert {row['user_id'] for row in notifications} == {users['approver']['id'], users['admin']['id']}


async def test_submit_requires_owner(registry, users, bapb, make_user):
    other_vendor = await make_user('vendor_barang')

    with pytest.raises(AuthorizationError):
        await registry.approval_state_machine.submit(DocumentType.BAPB, bapb['id'], other_vendor)


async def test_submit_requires_items(registry, gateway, users, bapb):
    await registry.repositories[DocumentType.BAPB].replace_children(bapb['id'], [])

    with pytest.raises(BusinessRuleError) as exc_info:
        await registry.approval_state_machine.submit(DocumentType.BAPB, bapb['id'], users['vendor_barang'])

    assert exc_info.value.rule_code == 'ITEMS_REQUIRED'
    document = await registry.repositories[DocumentType.BAPB].find(bapb['id'])
    assert document['status'] == 'draft'


async def test_submit_twice_is_invalid_transition(registry, users, submitted_bapb):
    with pytest.raises(InvalidTransitionError) as exc_info:
        await registry.approval_state_machine.submit(DocumentType.BAPB, submitted_bapb['id'],
                                                     users['vendor_barang'])

    assert exc_info.value.current_status == 'submitted'
    assert 'draft or revision_required' in exc_info.value.message


async def test_missing_document(registry, users):
    with pytest.raises(NotFoundError):
        await registry.approval_state_machine.approve(DocumentType.BAPB, 'missing', users['pic_gudang'])


async def test_bapb_approve_without_signature_warns(registry, users, submitted_bapb):
    pic = users['pic_gudang']
    result = await registry.approval_state_machine.approve(DocumentType.BAPB, submitted_bapb['id'], pic, 'OK')

    assert result.document['status'] == 'approved'
    assert result.warning == MISSING_SIGNATURE_WARNING
    assert result.document['pic_gudang_id'] == pic['id']
    assert result.document['approvals'][0]['action'] == 'approved'
    assert result.document['approvals'][0]['notes'] == 'OK'


async def test_bapb_approve_with_signature_has_no_warning(registry, users, submitted_bapb):
    pic = users['pic_gudang']
    await registry.attachment_service.upload_signature(DocumentType.BAPB, submitted_bapb['id'], pic,
                                                       SIGNATURE_DATA_URL)

    result = await registry.approval_state_machine.approve(DocumentType.BAPB, submitted_bapb['id'], pic)

    assert result.warning is None


async def test_non_primary_reviewer_does_not_pin(registry, users, submitted_bapb):
    result = await registry.approval_state_machine.approve(
        DocumentType.BAPB, submitted_bapb['id'], users['approver']
    )

    assert result.document['status'] == 'approved'
    assert result.document['pic_gudang_id'] is None


async def test_bapp_approve_requires_signature(registry, gateway, users, submitted_bapp):
    approver = users['approver']

    with pytest.raises(SignatureRequiredError) as exc_info:
        await registry.approval_state_machine.approve(DocumentType.BAPP, submitted_bapp['id'], approver)
    assert '/api/bapp/:id/signature' in exc_info.value.message

    document = await registry.repositories[DocumentType.BAPP].find(submitted_bapp['id'])
    assert document['status'] == 'submitted'

    await registry.attachment_service.upload_signature(DocumentType.BAPP, submitted_bapp['id'], approver,
                                                       SIGNATURE_DATA_URL)
    result = await registry.approval_state_machine.approve(DocumentType.BAPP, submitted_bapp['id'], approver)

    assert result.document['status'] == 'approved'
    assert result.document['direksi_pekerjaan_id'] == approver['id']

    approved, _ = await gateway.find_many(Notification, {'type': 'bapp_approved'})
    assert [row['user_id'] for row in approved] == [users['vendor_jasa']['id']]


async def test_pic_gudang_cannot_approve_bapp(registry, users, submitted_bapp):
    with pytest.raises(AuthorizationError):
        await registry.approval_state_machine.approve(DocumentType.BAPP, submitted_bapp['id'], users['pic_gudang'])


async def test_duplicate_approval_is_rejected(registry, users, submitted_bapb):
    machine = registry.approval_state_machine
    pic = users['pic_gudang']
    document_id = submitted_bapb['id']
    await machine.approve(DocumentType.BAPB, document_id, pic)
    # paksa kembali ke review agar hanya pengecekan duplikasi yang gagal
    await registry.repositories[DocumentType.BAPB].update(document_id, {'status': 'submitted'})

    with pytest.raises(DuplicateApprovalError):
        await machine.approve(DocumentType.BAPB, document_id, pic)


async def test_reject_requires_reason(registry, users, submitted_bapb):
    with pytest.raises(ValidationError):
        await registry.approval_state_machine.reject(DocumentType.BAPB, submitted_bapb['id'],
                                                     users['pic_gudang'], '   ')


async def test_reject_records_reason_and_notifies_vendor(registry, gateway, users, submitted_bapb):
    result = await registry.approval_state_machine.reject(
        DocumentType.BAPB, submitted_bapb['id'], users['pic_gudang'], ' Barang rusak '
    )

    assert result.document['status'] == 'rejected'
    assert result.document['rejection_reason'] == 'Barang rusak'
    assert result.document['approvals'][0]['action'] == 'rejected'

    rows, _ = await gateway.find_many(Notification, {'type': 'bapb_rejected'})
    assert len(rows) == 1
    assert rows[0]['priority'] == 'urgent'
    assert rows[0]['metadata']['rejectionReason'] == 'Barang rusak'


async def test_rejected_document_is_terminal(registry, users, submitted_bapb):
    machine = registry.approval_state_machine
    await machine.reject(DocumentType.BAPB, submitted_bapb['id'], users['pic_gudang'], 'Tidak sesuai')

    with pytest.raises(InvalidTransitionError):
        await machine.submit(DocumentType.BAPB, submitted_bapb['id'], users['vendor_barang'])
    with pytest.raises(InvalidTransitionError):
        await machine.approve(DocumentType.BAPB, submitted_bapb['id'], users['approver'])


async def test_revision_cycle(registry, users, submitted_bapb):
    machine = registry.approval_state_machine
    vendor = users['vendor_barang']

    with pytest.raises(ValidationError):
        await machine.request_revision(DocumentType.BAPB, submitted_bapb['id'], users['pic_gudang'], '')

    result = await machine.request_revision(DocumentType.BAPB, submitted_bapb['id'], users['pic_gudang'],
                                            'Lengkapi foto')
    assert result.document['status'] == 'revision_required'
    assert result.document['rejection_reason'] == 'Lengkapi foto'

    resubmitted = await machine.submit(DocumentType.BAPB, submitted_bapb['id'], vendor)
    assert resubmitted.document['status'] == 'submitted'
    assert resubmitted.document['rejection_reason'] is None


async def test_review_lock_round_trip(registry, users, submitted_bapb):
    machine = registry.approval_state_machine
    pic = users['pic_gudang']

    result = await machine.start_review(DocumentType.BAPB, submitted_bapb['id'], pic)
    assert result.document['status'] == 'in_review'

    with pytest.raises(InvalidTransitionError):
        await machine.start_review(DocumentType.BAPB, submitted_bapb['id'], pic)

    result = await machine.release_review(DocumentType.BAPB, submitted_bapb['id'], pic)
    assert result.document['status'] == 'submitted'


async def test_vendor_cannot_review(registry, users, submitted_bapb):
    with pytest.raises(AuthorizationError):
        await registry.approval_state_machine.start_review(DocumentType.BAPB, submitted_bapb['id'],
                                                           users['vendor_barang'])


async def test_notification_failure_does_not_block_transition(registry, users, bapb, monkeypatch):
    async def broken(*args, **kwargs):
        raise RuntimeError('inbox down')

    monkeypatch.setattr(registry.notification_service, 'notify_submitted', broken)

    result = await registry.approval_state_machine.submit(DocumentType.BAPB, bapb['id'], users['vendor_barang'])

    assert result.document['status'] == 'submitted'


async def test_allowed_actions(registry, users, bapb, submitted_bapp):
    machine = registry.approval_state_machine

    assert machine.allowed_actions(DocumentType.BAPB, bapb, users['vendor_barang']) == ['submit']
    assert machine.allowed_actions(DocumentType.BAPB, bapb, users['pic_gudang']) == []
    assert machine.allowed_actions(DocumentType.BAPP, submitted_bapp, users['approver']) == [
        'start_review', 'approve', 'reject', 'request_revision'
    ]
    assert machine.allowed_actions(DocumentType.BAPP, submitted_bapp, users['pic_gudang']) == []
