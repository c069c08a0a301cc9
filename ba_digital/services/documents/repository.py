"""
Document Repository
===================

Repository generik untuk BAPB dan BAPP. Perbedaan antar tipe dokumen (tabel,
field reviewer, prefix nomor, line items) dideskripsikan oleh ``DocumentKind``.

Store tidak punya transaksi lintas statement, jadi setiap write multi-langkah
di sini adalah urutan request independen:

- create: insert dokumen, lalu bulk insert line items; jika items gagal,
  dokumen dihapus kembali (kompensasi) dan ``PartialWriteError(compensated=True)``.
- update: update field, lalu ``replace_children`` (delete semua, insert semua);
  kegagalan di tengah TIDAK dipulihkan (``PartialWriteError(compensated=False)``).
- numbering: count-lalu-format tanpa lock; dua create bersamaan di bulan yang sama
  bisa menghasilkan nomor yang sama.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional, Tuple, Type

from ..exceptions import NotFoundError, PartialWriteError, StoreError
from ..gateway import PersistenceGateway
from ..roles import is_primary_reviewer, is_vendor
from ...models import (
    BAPB, BAPBItem, BAPBApproval, BAPBAttachment,
    BAPP, BAPPWorkItem, BAPPApproval, BAPPAttachment, User
)
from ...models.enums import ApprovalAction, AttachmentType, DocumentStatus, DocumentType

logger = logging.getLogger(__name__)

PENDING_STATUSES = (DocumentStatus.SUBMITTED.value, DocumentStatus.IN_REVIEW.value)

VENDOR_SUMMARY = ('id', 'name', 'email', 'company', 'phone')
REVIEWER_SUMMARY = ('id', 'name', 'email')
APPROVER_SUMMARY = ('id', 'name', 'email', 'role')


@dataclass(frozen=True)
class DocumentKind:
    """Deskripsi satu tipe dokumen untuk repository generik"""
    document_type: DocumentType
    model: Type
    item_model: Type
    approval_model: Type
    attachment_model: Type
    number_field: str
    foreign_key: str
    reviewer_field: str
    reviewer_key: str
    items_key: str
    tracks_progress: bool = False
    # query param -> 'column' atau 'column__op'
    list_filters: Dict[str, str] = field(default_factory=dict)

    @property
    def label(self) -> str:
        return self.document_type.value

    @property
    def prefix(self) -> str:
        return self.document_type.value


BAPB_KIND = DocumentKind(
    document_type=DocumentType.BAPB,
    model=BAPB,
    item_model=BAPBItem,
    approval_model=BAPBApproval,
    attachment_model=BAPBAttachment,
    number_field='bapb_number',
    foreign_key='bapb_id',
    reviewer_field='pic_gudang_id',
    reviewer_key='pic_gudang',
    items_key='items',
    list_filters={
        'status': 'status',
        'vendor_id': 'vendor_id',
        'pic_gudang_id': 'pic_gudang_id',
        'delivery_date_from': 'delivery_date__gte',
        'delivery_date_to': 'delivery_date__lte',
    },
)

BAPP_KIND = DocumentKind(
    document_type=DocumentType.BAPP,
    model=BAPP,
    item_model=BAPPWorkItem,
    approval_model=BAPPApproval,
    attachment_model=BAPPAttachment,
    number_field='bapp_number',
    foreign_key='bapp_id',
    reviewer_field='direksi_pekerjaan_id',
    reviewer_key='direksi_pekerjaan',
    items_key='work_items',
    tracks_progress=True,
    list_filters={
        'status': 'status',
        'vendor_id': 'vendor_id',
        'direksi_pekerjaan_id': 'direksi_pekerjaan_id',
        'project_name': 'project_name__ilike',
        'start_date_from': 'start_date__gte',
        'start_date_to': 'start_date__lte',
        'min_progress': 'total_progress__gte',
        'max_progress': 'total_progress__lte',
    },
)

KINDS: Dict[DocumentType, DocumentKind] = {
    DocumentType.BAPB: BAPB_KIND,
    DocumentType.BAPP: BAPP_KIND,
}


def compute_total_progress(items: Iterable[Dict[str, Any]]) -> Decimal:
    """Rata-rata actual_progress, dibulatkan 2 desimal (half-up); tanpa item = 0.00"""
    values = [Decimal(str(item.get('actual_progress') or 0)) for item in items]
    if not values:
        return Decimal('0.00')
    return (sum(values) / len(values)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


def _summary(user: Optional[Dict[str, Any]], fields: Tuple[str, ...]) -> Optional[Dict[str, Any]]:
    if not user:
        return None
    return {key: user.get(key) for key in fields}


class DocumentRepository:
    """Create/read/update dokumen beserta line items sebagai satu unit logis"""

    def __init__(self, gateway: PersistenceGateway, kind: DocumentKind):
        self.gateway = gateway
        self.kind = kind

    # ==================== NUMBERING & DERIVED FIELDS ====================

    async def generate_number(self, now: Optional[datetime] = None) -> str:
        """``{PREFIX}/{YYYY}/{MM}/{NNNN}``, sequence = jumlah dokumen bulan ini + 1"""
        now = now or datetime.now()
        start = datetime(now.year, now.month, 1)
        if now.month == 12:
            end = datetime(now.year + 1, 1, 1)
        else:
            end = datetime(now.year, now.month + 1, 1)

        count = await self.gateway.count(self.kind.model, {
            'created_at__gte': start,
            'created_at__lt': end,
        })
        return f"{self.kind.prefix}/{now.year:04d}/{now.month:02d}/{count + 1:04d}"

    @staticmethod
    def compute_total_progress(items: Iterable[Dict[str, Any]]) -> Decimal:
        return compute_total_progress(items)

    # ==================== CREATE / UPDATE ====================

    async def create_with_children(self, fields: Dict[str, Any],
                                   line_items: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Insert dokumen lalu line items; hapus dokumen lagi jika items gagal disimpan"""
        label = self.kind.label
        document = dict(fields)
        document.setdefault('status', DocumentStatus.DRAFT.value)
        if self.kind.tracks_progress:
            document['total_progress'] = compute_total_progress(line_items)

        created = await self.gateway.insert(self.kind.model, document)
        document_id = created['id']
        logger.info(f"{label} {created.get(self.kind.number_field)} created ({document_id})")

        if line_items:
            try:
                await self.gateway.insert(self.kind.item_model, self._child_rows(document_id, line_items))
            except StoreError as e:
                logger.warning(f"Failed to create {label} line items, removing {document_id}: {e}")
                try:
                    await self.gateway.delete(self.kind.model, {'id': document_id})
                except StoreError as cleanup_error:
                    logger.error(f"Compensation failed, {label} {document_id} left without items: {cleanup_error}")
                    raise PartialWriteError(
                        f"Failed to create {label} items and could not remove the {label}",
                        compensated=False, details={'document_id': document_id}
                    ) from e
                raise PartialWriteError(
                    f"Failed to create {label} items: {e.message}",
                    compensated=True, details={'document_id': document_id}
                ) from e
        else:
            logger.warning(f"No line items provided for {label} {document_id}")

        return await self.find_with_relations(document_id)

    async def update_with_children(self, document_id: str, fields: Dict[str, Any],
                                   line_items: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
        """
        Update field dokumen; jika ``line_items`` bukan None, seluruh item diganti.
        Tidak ada kompensasi jika penggantian item gagal di tengah jalan.
        """
        values = dict(fields)
        if line_items is not None and self.kind.tracks_progress:
            values['total_progress'] = compute_total_progress(line_items)

        if values:
            await self.update(document_id, values)
        elif not await self.gateway.find(self.kind.model, document_id):
            raise NotFoundError(self.kind.label, document_id)

        if line_items is not None:
            await self.replace_children(document_id, line_items)

        return await self.find_with_relations(document_id)

    async def replace_children(self, document_id: str, line_items: List[Dict[str, Any]]) -> int:
        """
        Delete semua line items lalu insert set pengganti (bukan diff).
        Satu-satunya tempat delete-then-insert yang tidak atomik.
        """
        label = self.kind.label
        try:
            removed = await self.gateway.delete(self.kind.item_model, {self.kind.foreign_key: document_id})
            if line_items:
                await self.gateway.insert(self.kind.item_model, self._child_rows(document_id, line_items))
        except StoreError as e:
            logger.error(f"Replacing {label} line items failed for {document_id}, manual reconciliation needed: {e}")
            raise PartialWriteError(
                f"Failed to replace {label} items: {e.message}",
                compensated=False, details={'document_id': document_id}
            ) from e
        logger.info(f"Replaced {removed} {label} line items with {len(line_items)} for {document_id}")
        return len(line_items)

    async def update(self, document_id: str, values: Dict[str, Any]) -> Dict[str, Any]:
        rows = await self.gateway.update(self.kind.model, values, {'id': document_id})
        if not rows:
            raise NotFoundError(self.kind.label, document_id)
        return rows[0]

    async def delete(self, document_id: str) -> List[Dict[str, Any]]:
        """Hapus dokumen beserta children; mengembalikan attachment yang ikut terhapus"""
        attachments = await self.list_attachments(document_id)
        await self.gateway.delete(self.kind.item_model, {self.kind.foreign_key: document_id})
        await self.gateway.delete(self.kind.attachment_model, {self.kind.foreign_key: document_id})
        await self.gateway.delete(self.kind.approval_model, {self.kind.foreign_key: document_id})
        deleted = await self.gateway.delete(self.kind.model, {'id': document_id})
        if not deleted:
            raise NotFoundError(self.kind.label, document_id)
        logger.info(f"{self.kind.label} {document_id} deleted")
        return attachments

    # ==================== READS ====================

    async def find(self, document_id: str) -> Optional[Dict[str, Any]]:
        return await self.gateway.find(self.kind.model, document_id)

    async def count_items(self, document_id: str) -> int:
        return await self.gateway.count(self.kind.item_model, {self.kind.foreign_key: document_id})

    async def find_with_relations(self, document_id: str) -> Optional[Dict[str, Any]]:
        """Dokumen + vendor, primary reviewer, line items, approvals, attachments"""
        document = await self.gateway.find(self.kind.model, document_id)
        if not document:
            return None

        items, _ = await self.gateway.find_many(
            self.kind.item_model, {self.kind.foreign_key: document_id}, order_by=('created_at',)
        )
        approvals = await self.get_approval_history(document_id)
        attachments = await self.list_attachments(document_id)
        vendor = await self.gateway.find(User, document['vendor_id'])
        reviewer = None
        if document.get(self.kind.reviewer_field):
            reviewer = await self.gateway.find(User, document[self.kind.reviewer_field])

        return {
            **document,
            'document_type': self.kind.label,
            'vendor': _summary(vendor, VENDOR_SUMMARY),
            self.kind.reviewer_key: _summary(reviewer, REVIEWER_SUMMARY),
            self.kind.items_key: items,
            'approvals': approvals,
            'attachments': attachments,
        }

    async def list_with_relations(self, filters: Optional[Dict[str, Any]] = None,
                                  page: int = 1, per_page: int = 10) -> Tuple[List[Dict[str, Any]], int]:
        """List terbaru dulu dengan total exact; filter mengikuti ``kind.list_filters``"""
        page = max(page, 1)
        per_page = max(min(per_page, 100), 1)
        rows, total = await self.gateway.find_many(
            self.kind.model, self._list_filters(filters or {}), order_by=('-created_at',),
            limit=per_page, offset=(page - 1) * per_page, with_count=True
        )
        return await self._attach_summaries(rows), total

    async def find_by_status(self, status: str, vendor_id: Optional[str] = None) -> List[Dict[str, Any]]:
        filters = {'status': status}
        if vendor_id:
            filters['vendor_id'] = vendor_id
        rows, _ = await self.gateway.find_many(self.kind.model, filters, order_by=('-updated_at',))
        return await self._attach_summaries(rows)

    async def get_pending_approvals(self, user_id: str, role: str) -> List[Dict[str, Any]]:
        """
        Dokumen submitted/in_review. Primary reviewer melihat yang belum di-pin atau
        di-pin ke dirinya; vendor melihat miliknya; reviewer lain melihat semua.
        """
        filters: Dict[str, Any] = {'status__in': PENDING_STATUSES}
        any_of = None
        if is_primary_reviewer(role, self.kind.document_type):
            any_of = [
                {f"{self.kind.reviewer_field}__is_null": True},
                {self.kind.reviewer_field: user_id},
            ]
        elif is_vendor(role):
            filters['vendor_id'] = user_id

        rows, _ = await self.gateway.find_many(self.kind.model, filters, any_of=any_of, order_by=('-created_at',))
        return await self._attach_summaries(rows)

    # ==================== APPROVALS ====================

    async def create_approval(self, document_id: str, approver_id: str, action: ApprovalAction,
                              notes: Optional[str] = None) -> Dict[str, Any]:
        return await self.gateway.insert(self.kind.approval_model, {
            self.kind.foreign_key: document_id,
            'approver_id': approver_id,
            'action': ApprovalAction(action).value,
            'notes': notes,
            'approved_at': datetime.now(),
        })

    async def get_approval_history(self, document_id: str) -> List[Dict[str, Any]]:
        """Riwayat approval terbaru dulu, masing-masing dengan ringkasan approver"""
        rows, _ = await self.gateway.find_many(
            self.kind.approval_model, {self.kind.foreign_key: document_id}, order_by=('-approved_at',)
        )
        users = await self._users_by_id(row['approver_id'] for row in rows)
        return [{**row, 'approver': _summary(users.get(row['approver_id']), APPROVER_SUMMARY)} for row in rows]

    async def has_approved(self, document_id: str, approver_id: str) -> bool:
        count = await self.gateway.count(self.kind.approval_model, {
            self.kind.foreign_key: document_id,
            'approver_id': approver_id,
            'action': ApprovalAction.APPROVED.value,
        })
        return count > 0

    # ==================== ATTACHMENTS ====================

    async def create_attachment(self, document_id: str, file_type: AttachmentType, file_path: str,
                                file_name: str, uploaded_by: str) -> Dict[str, Any]:
        return await self.gateway.insert(self.kind.attachment_model, {
            self.kind.foreign_key: document_id,
            'file_type': AttachmentType(file_type).value,
            'file_path': file_path,
            'file_name': file_name,
            'uploaded_by': uploaded_by,
        })

    async def list_attachments(self, document_id: str, file_type: Optional[str] = None) -> List[Dict[str, Any]]:
        filters = {self.kind.foreign_key: document_id}
        if file_type:
            filters['file_type'] = file_type
        rows, _ = await self.gateway.find_many(self.kind.attachment_model, filters, order_by=('-created_at',))
        return rows

    async def find_attachment(self, document_id: str, attachment_id: str) -> Optional[Dict[str, Any]]:
        return await self.gateway.find_one(self.kind.attachment_model, {
            'id': attachment_id,
            self.kind.foreign_key: document_id,
        })

    async def delete_attachment(self, attachment_id: str) -> int:
        return await self.gateway.delete(self.kind.attachment_model, {'id': attachment_id})

    async def find_signature(self, document_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        """Signature terbaru milik user untuk dokumen ini (duplikat ditoleransi)"""
        return await self.gateway.find_one(self.kind.attachment_model, {
            self.kind.foreign_key: document_id,
            'uploaded_by': user_id,
            'file_type': AttachmentType.SIGNATURE.value,
        }, order_by=('-created_at',))

    # ==================== STATISTICS ====================

    async def get_vendor_statistics(self, vendor_id: str) -> Dict[str, Any]:
        """Jumlah dokumen per status; sub-query count dijalankan bersamaan"""
        model = self.kind.model
        total, draft, submitted, approved, rejected = await asyncio.gather(
            self.gateway.count(model, {'vendor_id': vendor_id}),
            self.gateway.count(model, {'vendor_id': vendor_id, 'status': DocumentStatus.DRAFT.value}),
            self.gateway.count(model, {'vendor_id': vendor_id, 'status': DocumentStatus.SUBMITTED.value}),
            self.gateway.count(model, {'vendor_id': vendor_id, 'status': DocumentStatus.APPROVED.value}),
            self.gateway.count(model, {'vendor_id': vendor_id, 'status': DocumentStatus.REJECTED.value}),
        )
        stats: Dict[str, Any] = {
            'total': total,
            'by_status': {
                'draft': draft,
                'submitted': submitted,
                'approved': approved,
                'rejected': rejected,
            },
        }
        if self.kind.tracks_progress:
            rows, _ = await self.gateway.find_many(model, {'vendor_id': vendor_id})
            stats['average_progress'] = compute_total_progress(
                {'actual_progress': row.get('total_progress')} for row in rows
            )
        return stats

    async def get_statistics_by_vendor_type(self) -> Dict[str, int]:
        rows, _ = await self.gateway.find_many(self.kind.model)
        users = await self._users_by_id(row['vendor_id'] for row in rows)
        stats = {'vendor_barang': 0, 'vendor_jasa': 0, 'vendor_legacy': 0, 'total': len(rows)}
        for row in rows:
            role = (users.get(row['vendor_id']) or {}).get('role')
            if role == 'vendor_barang':
                stats['vendor_barang'] += 1
            elif role == 'vendor_jasa':
                stats['vendor_jasa'] += 1
            elif role == 'vendor':
                stats['vendor_legacy'] += 1
        return stats

    # ==================== HELPERS ====================

    def _child_rows(self, document_id: str, line_items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [{**item, self.kind.foreign_key: document_id} for item in line_items]

    def _list_filters(self, filters: Dict[str, Any]) -> Dict[str, Any]:
        translated = {}
        for key, value in filters.items():
            if value is None or value == '' or key not in self.kind.list_filters:
                continue
            target = self.kind.list_filters[key]
            if target.endswith('__ilike'):
                value = f"%{value}%"
            translated[target] = value
        return translated

    async def _users_by_id(self, user_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        ids = sorted({user_id for user_id in user_ids if user_id})
        if not ids:
            return {}
        rows, _ = await self.gateway.find_many(User, {'id__in': ids})
        return {row['id']: row for row in rows}

    async def _attach_summaries(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Tambahkan vendor, primary reviewer dan line items ke setiap row list"""
        if not rows:
            return []
        ids = [row['id'] for row in rows]
        items, _ = await self.gateway.find_many(
            self.kind.item_model, {f"{self.kind.foreign_key}__in": ids}, order_by=('created_at',)
        )
        users = await self._users_by_id(
            [row['vendor_id'] for row in rows] + [row.get(self.kind.reviewer_field) for row in rows]
        )

        grouped: Dict[str, List[Dict[str, Any]]] = {document_id: [] for document_id in ids}
        for item in items:
            grouped[item[self.kind.foreign_key]].append(item)

        return [{
            **row,
            'document_type': self.kind.label,
            'vendor': _summary(users.get(row['vendor_id']), VENDOR_SUMMARY[:4]),
            self.kind.reviewer_key: _summary(users.get(row.get(self.kind.reviewer_field)), REVIEWER_SUMMARY),
            self.kind.items_key: grouped[row['id']],
        } for row in rows]
