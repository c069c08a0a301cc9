import pytest

from conftest import SIGNATURE_DATA_URL, bapb_payload, bapp_payload
from ba_digital.models.enums import DocumentType
from ba_digital.services import RenditionService
from ba_digital.services.exceptions import AuthorizationError, ExternalServiceError, NotFoundError

pytestmark = pytest.mark.anyio


@pytest.fixture
async def approved_bapb(registry, users):
    vendor = users['vendor_barang']
    pic = users['pic_gudang']
    signatures = registry.attachment_service
    document = await registry.bapb_service.create(bapb_payload(), vendor)
    await signatures.upload_signature(DocumentType.BAPB, document['id'], vendor, SIGNATURE_DATA_URL)
    await signatures.upload_signature(DocumentType.BAPB, document['id'], pic, SIGNATURE_DATA_URL)
    await registry.approval_state_machine.submit(DocumentType.BAPB, document['id'], vendor)
    result = await registry.approval_state_machine.approve(DocumentType.BAPB, document['id'], pic)
    return result.document


async def test_assemble_resolves_signatures(registry, storage, users, approved_bapb):
    aggregate = await registry.rendition_service.assemble(DocumentType.BAPB, approved_bapb['id'], users['admin'])

    vendor_path = aggregate['signatures']['vendor_signature']
    reviewer_path = aggregate['signatures']['reviewer_signature']
    assert vendor_path.startswith(str(storage.root))
    assert f"_{users['vendor_barang']['id']}_" in vendor_path
    assert f"_{users['pic_gudang']['id']}_" in reviewer_path
    assert len(aggregate['items']) == 2
    assert aggregate['pic_gudang']['id'] == users['pic_gudang']['id']


async def test_assemble_without_pinned_reviewer(registry, users):
    vendor = users['vendor_jasa']
    document = await registry.bapp_service.create(bapp_payload(), vendor)
    await registry.attachment_service.upload_signature(DocumentType.BAPP, document['id'], users['approver'],
                                                       SIGNATURE_DATA_URL)

    aggregate = await registry.rendition_service.assemble(DocumentType.BAPP, document['id'], vendor)

    assert aggregate['signatures'] == {'vendor_signature': None, 'reviewer_signature': None}


async def test_assemble_scopes_vendor(registry, users, approved_bapb, make_user):
    other_vendor = await make_user('vendor')

    with pytest.raises(AuthorizationError):
        await registry.rendition_service.assemble(DocumentType.BAPB, approved_bapb['id'], other_vendor)
    with pytest.raises(NotFoundError):
        await registry.rendition_service.assemble(DocumentType.BAPB, 'missing', users['admin'])


async def test_render_without_renderer(registry, users, approved_bapb):
    with pytest.raises(ExternalServiceError) as exc_info:
        await registry.rendition_service.render(DocumentType.BAPB, approved_bapb['id'], users['admin'])
    assert exc_info.value.service_name == 'PDF_RENDERER'


async def test_render_with_sync_and_async_renderers(registry, gateway, storage, users, approved_bapb):
    calls = []

    def sync_renderer(label, aggregate, signatures):
        calls.append((label, aggregate['bapb_number'], sorted(signatures)))
        return b'%PDF-sync'

    async def async_renderer(label, aggregate, signatures):
        return b'%PDF-async'

    service = RenditionService(gateway, registry.repositories, storage, renderer=sync_renderer)
    rendered = await service.render(DocumentType.BAPB, approved_bapb['id'], users['admin'])

    assert rendered['content'] == b'%PDF-sync'
    assert rendered['file_name'] == f"BAPB-{approved_bapb['bapb_number'].replace('/', '-')}.pdf"
    assert calls == [('BAPB', approved_bapb['bapb_number'], ['reviewer_signature', 'vendor_signature'])]

    service.renderer = async_renderer
    assert (await service.render(DocumentType.BAPB, approved_bapb['id'], users['admin']))['content'] == b'%PDF-async'


async def test_renderer_failure_is_wrapped(registry, gateway, storage, users, approved_bapb):
    def broken(label, aggregate, signatures):
        raise RuntimeError('font missing')

    service = RenditionService(gateway, registry.repositories, storage, renderer=broken)

    with pytest.raises(ExternalServiceError) as exc_info:
        await service.render(DocumentType.BAPB, approved_bapb['id'], users['admin'])
    assert 'font missing' in exc_info.value.message


async def test_completed_documents(registry, users, approved_bapb, make_user):
    vendor_jasa = users['vendor_jasa']
    approver = users['approver']
    bapp = await registry.bapp_service.create(bapp_payload(), vendor_jasa)
    await registry.attachment_service.upload_signature(DocumentType.BAPP, bapp['id'], approver, SIGNATURE_DATA_URL)
    await registry.approval_state_machine.submit(DocumentType.BAPP, bapp['id'], vendor_jasa)
    await registry.approval_state_machine.approve(DocumentType.BAPP, bapp['id'], approver)
    await registry.bapb_service.create(bapb_payload(), users['vendor_barang'])

    completed = await registry.rendition_service.get_completed_documents(users['admin'])
    assert [(doc['type'], doc['id']) for doc in completed] == [('BAPP', bapp['id']), ('BAPB', approved_bapb['id'])]
    assert completed[0]['document_number'] == bapp['bapp_number']
    assert len(completed[1]['items']) == 2

    own = await registry.rendition_service.get_completed_documents(users['vendor_barang'])
    assert [doc['id'] for doc in own] == [approved_bapb['id']]

    assert await registry.rendition_service.get_completed_documents(await make_user('vendor')) == []
