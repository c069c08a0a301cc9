import base64
import random

import anyio
import jwt
import pytest
from fastapi.testclient import TestClient

from conftest import SIGNATURE_DATA_URL, FakeSleep, bapb_payload, bapp_payload
from ba_digital import create_app
from ba_digital.config import settings
from ba_digital.database import build_engine, create_tables
from ba_digital.models import User
from ba_digital.services import PersistenceGateway, StorageService

ROLES = ('vendor_barang', 'vendor_jasa', 'pic_gudang', 'approver', 'admin')


def render_pdf(label, aggregate, signatures):
    return f"%PDF-1.4 {label} {aggregate['id']}".encode()


class Api:
    """TestClient plus user seed dan helper bearer token per role"""

    def __init__(self, client, users):
        self.client = client
        self.users = users

    def headers(self, role):
        token = jwt.encode({'sub': self.users[role]['id']}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
        return {'Authorization': f"Bearer {token}"}

    def get(self, url, role, **kwargs):
        return self.client.get(url, headers=self.headers(role), **kwargs)

    def post(self, url, role, **kwargs):
        return self.client.post(url, headers=self.headers(role), **kwargs)

    def put(self, url, role, **kwargs):
        return self.client.put(url, headers=self.headers(role), **kwargs)

    def delete(self, url, role, **kwargs):
        return self.client.delete(url, headers=self.headers(role), **kwargs)


@pytest.fixture
def api(tmp_path, monkeypatch):
    database_url = f"sqlite+aiosqlite:///{tmp_path / 'api.db'}"
    monkeypatch.setattr(settings, 'DATABASE_URL', database_url)
    monkeypatch.setattr(settings, 'SECRET_KEY', 'test-secret-key-for-ba-digital-routes')

    async def seed():
        engine = build_engine(database_url)
        await create_tables(engine)
        gateway = PersistenceGateway(engine)
        users = {}
        for role in ROLES:
            users[role] = await gateway.insert(User, {
                'email': f"{role}@example.com",
                'password_hash': 'not-a-real-hash',
                'name': role.replace('_', ' ').title(),
                'role': role,
            })
        await engine.dispose()
        return users

    users = anyio.run(seed)
    app = create_app(registry_options={
        'storage': StorageService(str(tmp_path / 'uploads')),
        'renderer': render_pdf,
        'rng': random.Random(7),
        'sleep': FakeSleep(),
    })
    with TestClient(app) as client:
        yield Api(client, users)


def test_health(api):
    response = api.client.get('/health')
    assert response.status_code == 200
    assert response.json()['status'] == 'healthy'


def test_requires_valid_token(api):
    response = api.client.get('/api/bapb/')
    assert response.status_code == 401
    assert response.json()['message'] == 'Not authorized, no token'
    assert response.json()['request_id']

    response = api.client.get('/api/bapb/', headers={'Authorization': 'Bearer not-a-jwt'})
    assert response.status_code == 401
    assert response.json()['error_code'] == 'AUTHENTICATION_ERROR'


def test_bapb_workflow_end_to_end(api):
    created = api.post('/api/bapb/', 'vendor_barang', json=bapb_payload())
    assert created.status_code == 201
    document = created.json()['data']
    assert document['status'] == 'draft'
    document_id = document['id']

    listed = api.get('/api/bapb/?status=draft', 'vendor_barang')
    assert listed.json()['pagination']['total'] == 1

    submitted = api.post(f"/api/bapb/{document_id}/submit", 'vendor_barang')
    assert submitted.status_code == 200
    assert submitted.json()['data']['status'] == 'submitted'

    pending = api.get('/api/bapb/pending', 'pic_gudang')
    assert [row['id'] for row in pending.json()['data']] == [document_id]

    unread = api.get('/api/notifications/unread-count', 'pic_gudang')
    assert unread.json()['data']['count'] == 1

    signature = api.post(f"/api/bapb/{document_id}/signature", 'pic_gudang',
                         json={'signatureData': SIGNATURE_DATA_URL})
    assert signature.status_code == 201

    status = api.get(f"/api/bapb/{document_id}/signature/status", 'pic_gudang')
    assert status.json()['data']['has_signed'] is True

    approved = api.post(f"/api/bapb/{document_id}/approve", 'pic_gudang', json={'notes': 'Lengkap'})
    assert approved.status_code == 200
    body = approved.json()
    assert body['data']['status'] == 'approved'
    assert 'warning' not in body

    history = api.get(f"/api/bapb/{document_id}/approvals", 'vendor_barang')
    assert [row['action'] for row in history.json()['data']] == ['approved']

    readiness = api.get(f"/api/payments/bapb/{document_id}/readiness", 'admin')
    assert readiness.json()['data']['ready'] is True

    payment = api.post(f"/api/payments/bapb/{document_id}", 'admin', json={'amount': 1500000})
    assert payment.status_code == 200
    assert payment.json()['data']['status'] in ('success', 'failed')

    logs = api.get(f"/api/payments/BAPB/{document_id}/logs", 'admin')
    assert len(logs.json()['data']) == 1

    completed = api.get('/api/documents/completed', 'vendor_barang')
    assert [doc['id'] for doc in completed.json()['data']] == [document_id]


def test_bapb_approval_without_signature_carries_warning(api):
    document_id = api.post('/api/bapb/', 'vendor_barang', json=bapb_payload()).json()['data']['id']
    api.post(f"/api/bapb/{document_id}/submit", 'vendor_barang')

    approved = api.post(f"/api/bapb/{document_id}/approve", 'approver')

    assert approved.status_code == 200
    assert approved.json()['warning'].startswith('Approved without signature')


def test_bapp_approval_requires_signature(api):
    document_id = api.post('/api/bapp/', 'vendor_jasa', json=bapp_payload()).json()['data']['id']
    api.post(f"/api/bapp/{document_id}/submit", 'vendor_jasa')

    response = api.post(f"/api/bapp/{document_id}/approve", 'approver')

    assert response.status_code == 422
    assert response.json()['error_code'] == 'BUSINESS_RULE_ERROR'
    assert 'upload your signature' in response.json()['message']


def test_revision_round_trip(api):
    document_id = api.post('/api/bapp/', 'vendor_jasa', json=bapp_payload()).json()['data']['id']
    api.post(f"/api/bapp/{document_id}/submit", 'vendor_jasa')

    missing_reason = api.post(f"/api/bapp/{document_id}/revision", 'approver', json={'revision_reason': ''})
    assert missing_reason.status_code == 400

    revision = api.post(f"/api/bapp/{document_id}/revision", 'approver',
                        json={'revision_reason': 'Foto progress belum ada'})
    assert revision.json()['data']['status'] == 'revision_required'

    updated = api.put(f"/api/bapp/{document_id}", 'vendor_jasa', json={'notes': 'Foto ditambahkan'})
    assert updated.status_code == 200
    assert updated.json()['data']['status'] == 'draft'
    assert updated.json()['data']['rejection_reason'] is None


def test_error_mapping(api):
    assert api.post('/api/bapb/', 'vendor_jasa', json=bapb_payload()).status_code == 403

    invalid = api.post('/api/bapb/', 'vendor_barang', json=bapb_payload(items=[]))
    assert invalid.status_code == 400
    assert invalid.json()['error_code'] == 'VALIDATION_ERROR'

    assert api.get('/api/bapb/does-not-exist', 'admin').status_code == 404
    assert api.get('/api/payments/bast/some-id/readiness', 'admin').status_code == 400

    document_id = api.post('/api/bapb/', 'vendor_barang', json=bapb_payload()).json()['data']['id']
    api.post(f"/api/bapb/{document_id}/submit", 'vendor_barang')
    locked = api.delete(f"/api/bapb/{document_id}", 'vendor_barang')
    assert locked.status_code == 422


def test_attachment_upload_and_download(api):
    document_id = api.post('/api/bapb/', 'vendor_barang', json=bapb_payload()).json()['data']['id']
    content = b'isi surat jalan'

    uploaded = api.post(f"/api/bapb/{document_id}/attachments", 'vendor_barang', json={
        'fileData': base64.b64encode(content).decode(),
        'fileName': 'surat-jalan.txt',
    })
    assert uploaded.status_code == 201
    attachment_id = uploaded.json()['data']['id']

    listed = api.get(f"/api/bapb/{document_id}/attachments", 'pic_gudang')
    assert listed.json()['data'][0]['uploader']['role'] == 'vendor_barang'

    downloaded = api.get(f"/api/bapb/{document_id}/attachments/{attachment_id}/download", 'admin')
    assert downloaded.status_code == 200
    assert downloaded.content == content

    assert api.delete(f"/api/bapb/{document_id}/attachments/{attachment_id}", 'pic_gudang').status_code == 403
    assert api.delete(f"/api/bapb/{document_id}/attachments/{attachment_id}", 'vendor_barang').status_code == 200


def test_pdf_rendition(api):
    document_id = api.post('/api/bapb/', 'vendor_barang', json=bapb_payload()).json()['data']['id']

    pdf = api.get(f"/api/documents/bapb/{document_id}/pdf", 'admin')
    assert pdf.status_code == 200
    assert pdf.headers['content-type'] == 'application/pdf'
    assert pdf.content.startswith(b'%PDF-1.4 BAPB')

    preview = api.get(f"/api/documents/bapb/{document_id}/preview", 'vendor_barang')
    assert preview.json()['data']['pdf'].startswith('data:application/pdf;base64,')
    assert preview.json()['data']['fileName'].startswith('BAPB-BAPB-')


def test_notifications_inbox(api):
    document_id = api.post('/api/bapb/', 'vendor_barang', json=bapb_payload()).json()['data']['id']
    api.post(f"/api/bapb/{document_id}/submit", 'vendor_barang')

    inbox = api.get('/api/notifications/', 'admin')
    assert inbox.status_code == 200
    assert inbox.json()['pagination']['unread_count'] == 1
    notification_id = inbox.json()['data'][0]['id']

    assert api.get(f"/api/notifications/{notification_id}", 'pic_gudang').status_code == 404
    assert api.put(f"/api/notifications/{notification_id}/read", 'admin').json()['data']['is_read'] is True
    assert api.get('/api/notifications/unread-count', 'admin').json()['data']['count'] == 0

    stats = api.get('/api/notifications/stats', 'admin').json()['data']
    assert stats['by_type'] == {'bapb_submitted': 1}


def test_access_and_statistics(api):
    access = api.get('/api/bapp/validate-access', 'vendor_barang').json()['data']
    assert access['hasAccess'] is False

    assert api.get('/api/bapb/statistics/by-vendor-type', 'approver').status_code == 403
    assert api.get('/api/bapb/statistics/by-vendor-type', 'admin').json()['data']['total'] == 0
    assert api.get('/api/bapb/statistics', 'admin').status_code == 400
    assert api.get('/api/bapb/statistics', 'vendor_barang').json()['data']['total'] == 0
