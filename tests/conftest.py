import random
from datetime import date

import pytest

from ba_digital.database import build_engine, create_tables
from ba_digital.models import User
from ba_digital.services import PersistenceGateway, StorageService, create_service_registry

# PNG header 8 byte, cukup untuk blob signature di tests
SIGNATURE_DATA_URL = 'data:image/png;base64,iVBORw0KGgo='


class FakeSleep:
    """Pengganti asyncio.sleep yang mencatat durasi tanpa menunggu"""

    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.fixture
def anyio_backend():
    return 'asyncio'


@pytest.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def gateway(engine):
    return PersistenceGateway(engine)


@pytest.fixture
def storage(tmp_path):
    return StorageService(str(tmp_path / 'uploads'))


@pytest.fixture
def fake_sleep():
    return FakeSleep()


@pytest.fixture
async def registry(gateway, storage, fake_sleep):
    return create_service_registry(
        gateway, {'payment_success_rate': 0.95},
        storage=storage, rng=random.Random(42), sleep=fake_sleep
    )


@pytest.fixture
async def make_user(gateway):
    counter = {'n': 0}

    async def _make(role, name=None, is_active=True, **extra):
        counter['n'] += 1
        return await gateway.insert(User, {
            'email': f"{role}{counter['n']}@example.com",
            'password_hash': 'not-a-real-hash',
            'name': name or f"{role.replace('_', ' ').title()} {counter['n']}",
            'role': role,
            'is_active': is_active,
            **extra,
        })

    return _make


@pytest.fixture
async def users(make_user):
    return {
        'vendor_barang': await make_user('vendor_barang', company='PT Barang Jaya'),
        'vendor_jasa': await make_user('vendor_jasa', company='CV Jasa Konstruksi'),
        'pic_gudang': await make_user('pic_gudang'),
        'approver': await make_user('approver'),
        'admin': await make_user('admin'),
    }


def bapb_payload(**overrides):
    payload = {
        'order_number': 'PO-2024-001',
        'delivery_date': date(2024, 3, 15).isoformat(),
        'notes': 'Pengiriman tahap 1',
        'items': [
            {'item_name': 'Semen 50kg', 'quantity_ordered': 100, 'quantity_received': 100, 'unit': 'sak'},
            {'item_name': 'Besi 12mm', 'quantity_ordered': 50, 'quantity_received': 48,
             'unit': 'batang', 'condition': 'short'},
        ],
    }
    payload.update(overrides)
    return payload


def bapp_payload(**overrides):
    payload = {
        'contract_number': 'KTR-2024-010',
        'project_name': 'Renovasi Gedung A',
        'project_location': 'Jakarta',
        'start_date': '2024-01-01',
        'end_date': '2024-06-30',
        'work_items': [
            {'work_item_name': 'Pondasi', 'planned_progress': 100, 'actual_progress': 40, 'unit': 'm3'},
            {'work_item_name': 'Struktur', 'planned_progress': 100, 'actual_progress': 60, 'unit': 'm3'},
        ],
    }
    payload.update(overrides)
    return payload
