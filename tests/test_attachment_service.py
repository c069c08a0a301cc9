import base64
import re

import pytest

from conftest import SIGNATURE_DATA_URL, bapb_payload, bapp_payload
from ba_digital.models.enums import DocumentType
from ba_digital.services.exceptions import (
    AuthorizationError, ExternalServiceError, NotFoundError, ValidationError
)

pytestmark = pytest.mark.anyio

PDF_CONTENT = b'%PDF-1.4 surat jalan'


@pytest.fixture
async def bapb(registry, users):
    return await registry.bapb_service.create(bapb_payload(), users['vendor_barang'])


async def test_upload_signature_stores_png(registry, storage, users, bapb):
    vendor = users['vendor_barang']
    signature = await registry.attachment_service.upload_signature(
        DocumentType.BAPB, bapb['id'], vendor, SIGNATURE_DATA_URL
    )

    assert signature['file_type'] == 'signature'
    assert re.fullmatch(rf"signatures/bapb_{bapb['id']}_{vendor['id']}_\d+\.png", signature['file_path'])
    assert signature['file_name'] == signature['file_path'].split('/', 1)[1]
    assert await storage.read(signature['file_path']) == base64.b64decode('iVBORw0KGgo=')


@pytest.mark.parametrize('payload', [
    'data:image/gif;base64,R0lGODlh',
    'iVBORw0KGgo=',
    'data:image/png;base64,@@not-base64@@',
])
async def test_upload_signature_rejects_bad_payloads(registry, users, bapb, payload):
    with pytest.raises(ValidationError):
        await registry.attachment_service.upload_signature(
            DocumentType.BAPB, bapb['id'], users['vendor_barang'], payload
        )


async def test_signature_requires_data_and_document(registry, users, bapb):
    with pytest.raises(ValidationError):
        await registry.attachment_service.upload_signature(DocumentType.BAPB, bapb['id'], users['admin'], '')
    with pytest.raises(NotFoundError):
        await registry.attachment_service.upload_signature(
            DocumentType.BAPB, 'missing', users['admin'], SIGNATURE_DATA_URL
        )


async def test_signature_authorization(registry, users, bapb, make_user):
    service = registry.attachment_service
    other_vendor = await make_user('vendor_barang')

    with pytest.raises(AuthorizationError):
        await service.upload_signature(DocumentType.BAPB, bapb['id'], other_vendor, SIGNATURE_DATA_URL)

    bapp = await registry.bapp_service.create(bapp_payload(), users['vendor_jasa'])
    with pytest.raises(AuthorizationError):
        await service.upload_signature(DocumentType.BAPP, bapp['id'], users['pic_gudang'], SIGNATURE_DATA_URL)

    assert await service.upload_signature(DocumentType.BAPB, bapb['id'], users['pic_gudang'], SIGNATURE_DATA_URL)


async def test_signature_status(registry, users, bapb):
    service = registry.attachment_service
    pic = users['pic_gudang']

    status = await service.get_signature_status(DocumentType.BAPB, bapb['id'], pic)
    assert status['has_signed'] is False
    assert status['signature'] is None

    await service.upload_signature(DocumentType.BAPB, bapb['id'], users['vendor_barang'], SIGNATURE_DATA_URL)
    uploaded = await service.upload_signature(DocumentType.BAPB, bapb['id'], pic, SIGNATURE_DATA_URL)

    status = await service.get_signature_status(DocumentType.BAPB, bapb['id'], pic)
    assert status['has_signed'] is True
    assert status['signature']['id'] == uploaded['id']
    assert status['total_signatures'] == 2
    assert status['status'] == 'draft'

    signatures = await service.list_signatures(DocumentType.BAPB, bapb['id'], pic)
    assert len(signatures) == 2
    assert {row['uploader']['role'] for row in signatures} == {'vendor_barang', 'pic_gudang'}


async def test_upload_and_download_document(registry, users, bapb):
    service = registry.attachment_service
    vendor = users['vendor_barang']
    file_data = 'data:application/pdf;base64,' + base64.b64encode(PDF_CONTENT).decode()

    attachment = await service.upload_document(DocumentType.BAPB, bapb['id'], vendor, file_data, 'surat jalan.pdf')

    assert attachment['file_type'] == 'supporting_doc'
    assert re.fullmatch(r'documents/surat jalan_\d+\.pdf', attachment['file_path'])

    row, content = await service.read_attachment(DocumentType.BAPB, bapb['id'], attachment['id'], users['admin'])
    assert content == PDF_CONTENT
    assert row['file_name'] == attachment['file_name']

    docs = await service.list_attachments(DocumentType.BAPB, bapb['id'], vendor, 'supporting_doc')
    assert [doc['id'] for doc in docs] == [attachment['id']]
    assert await service.list_attachments(DocumentType.BAPB, bapb['id'], vendor, 'signature') == []


async def test_upload_document_validation(registry, users, bapb, make_user):
    service = registry.attachment_service
    vendor = users['vendor_barang']
    plain = base64.b64encode(PDF_CONTENT).decode()

    with pytest.raises(ValidationError):
        await service.upload_document(DocumentType.BAPB, bapb['id'], vendor, '', 'a.pdf')
    with pytest.raises(ValidationError):
        await service.upload_document(DocumentType.BAPB, bapb['id'], vendor, plain, 'a.pdf', 'invoice')

    other_vendor = await make_user('vendor_barang')
    with pytest.raises(AuthorizationError):
        await service.upload_document(DocumentType.BAPB, bapb['id'], other_vendor, plain, 'a.pdf')
    with pytest.raises(AuthorizationError):
        await service.list_attachments(DocumentType.BAPB, bapb['id'], other_vendor)


async def test_path_traversal_is_flattened(registry, storage, users, bapb):
    plain = base64.b64encode(PDF_CONTENT).decode()
    attachment = await registry.attachment_service.upload_document(
        DocumentType.BAPB, bapb['id'], users['vendor_barang'], plain, '../../etc/passwd'
    )

    assert attachment['file_path'].startswith('documents/passwd_')
    assert await storage.exists(attachment['file_path'])


async def test_delete_attachment_permissions(registry, storage, users, bapb):
    service = registry.attachment_service
    vendor = users['vendor_barang']
    signature = await service.upload_signature(DocumentType.BAPB, bapb['id'], vendor, SIGNATURE_DATA_URL)

    with pytest.raises(AuthorizationError):
        await service.delete_attachment(DocumentType.BAPB, bapb['id'], signature['id'], users['pic_gudang'])

    assert await service.delete_attachment(DocumentType.BAPB, bapb['id'], signature['id'], users['admin']) is True
    assert not await storage.exists(signature['file_path'])

    with pytest.raises(NotFoundError):
        await service.delete_attachment(DocumentType.BAPB, bapb['id'], signature['id'], vendor)


async def test_missing_blob_surfaces_as_storage_error(registry, storage, users, bapb):
    service = registry.attachment_service
    signature = await service.upload_signature(
        DocumentType.BAPB, bapb['id'], users['vendor_barang'], SIGNATURE_DATA_URL
    )
    await storage.delete(signature['file_path'])

    with pytest.raises(ExternalServiceError) as exc_info:
        await service.read_attachment(DocumentType.BAPB, bapb['id'], signature['id'], users['admin'])
    assert exc_info.value.status_code == 404
