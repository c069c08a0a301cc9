"""
Notification Service
====================

Service untuk notifikasi in-app: dispatch event workflow dokumen (fire-and-forget)
dan inbox notifikasi per user.
"""

from typing import Any, Dict, List, Optional
from datetime import datetime
from decimal import Decimal

from ..base import BaseService, json_safe, validate_input
from ..exceptions import NotFoundError
from ..roles import Action, roles_for
from ...models import Notification, User
from ...models.enums import DocumentType, NotificationPriority
from ...schemas import NotificationCreateSchema, NotificationSchema


def format_rupiah(amount: Any) -> str:
    """Format angka gaya id-ID: 1500000.5 -> '1.500.000,5'"""
    value = Decimal(str(amount)).quantize(Decimal('0.01'))
    integer, _, fraction = f"{abs(value):.2f}".partition('.')
    grouped = f"{int(integer):,}".replace(',', '.')
    fraction = fraction.rstrip('0')
    text = f"{grouped},{fraction}" if fraction else grouped
    return f"-{text}" if value < 0 else text


class NotificationService(BaseService):
    """Service untuk Notification management"""

    # ==================== DISPATCH (best-effort) ====================

    async def notify_submitted(self, document_type: DocumentType, document: Dict[str, Any]) -> None:
        """Broadcast ke semua user aktif dengan role reviewer untuk tipe dokumen ini"""
        label = DocumentType(document_type).value
        try:
            recipients, _ = await self.gateway.find_many(User, {
                'role__in': [role.value for role in roles_for(label, Action.APPROVE)],
                'is_active': True,
            })
            recipient_ids = [user['id'] for user in recipients]

            number = self._number(label, document)
            if label == DocumentType.BAPB.value:
                message = f"BAPB {number} telah disubmit dan menunggu pemeriksaan."
                metadata = {
                    'vendorId': document.get('vendor_id'),
                    'orderNumber': document.get('order_number'),
                    'deliveryDate': document.get('delivery_date'),
                }
            else:
                message = f"BAPP {number} untuk proyek \"{document.get('project_name')}\" telah disubmit."
                metadata = {
                    'vendorId': document.get('vendor_id'),
                    'projectName': document.get('project_name'),
                    'totalProgress': document.get('total_progress'),
                }

            await self.create_bulk_notifications(recipient_ids, {
                'type': f"{label.lower()}_submitted",
                'title': f"{label} Baru Menunggu Review",
                'message': message,
                'related_document_type': label,
                'related_document_id': document['id'],
                'related_document_number': number,
                'action_url': f"/{label.lower()}/{document['id']}",
                'priority': NotificationPriority.HIGH,
                'metadata': metadata,
            })
            self.logger.info(f"Notified {len(recipient_ids)} users about {label} submission")
        except Exception as e:
            self.logger.error(f"Error notifying {label} submission: {e}")

    async def notify_approved(self, document_type: DocumentType, document: Dict[str, Any],
                              approver_name: str) -> None:
        label = DocumentType(document_type).value
        try:
            number = self._number(label, document)
            metadata = {'approverName': approver_name, 'approvedAt': datetime.now()}
            if label == DocumentType.BAPB.value:
                message = f"BAPB {number} telah disetujui oleh {approver_name}."
            else:
                message = (f"BAPP {number} untuk proyek \"{document.get('project_name')}\" "
                           f"telah disetujui oleh {approver_name}.")
                metadata.update({
                    'projectName': document.get('project_name'),
                    'totalProgress': document.get('total_progress'),
                })

            await self.create_notification({
                'user_id': document['vendor_id'],
                'type': f"{label.lower()}_approved",
                'title': f"{label} Disetujui",
                'message': message,
                'related_document_type': label,
                'related_document_id': document['id'],
                'related_document_number': number,
                'action_url': f"/{label.lower()}/{document['id']}",
                'priority': NotificationPriority.HIGH,
                'metadata': metadata,
            })
            self.logger.info(f"Notified vendor about {label} approval")
        except Exception as e:
            self.logger.error(f"Error notifying {label} approval: {e}")

    async def notify_rejected(self, document_type: DocumentType, document: Dict[str, Any],
                              rejection_reason: str) -> None:
        label = DocumentType(document_type).value
        try:
            number = self._number(label, document)
            metadata = {'rejectionReason': rejection_reason, 'rejectedAt': datetime.now()}
            if label == DocumentType.BAPP.value:
                metadata['projectName'] = document.get('project_name')

            await self.create_notification({
                'user_id': document['vendor_id'],
                'type': f"{label.lower()}_rejected",
                'title': f"{label} Ditolak",
                'message': f"{label} {number} ditolak. Alasan: {rejection_reason}",
                'related_document_type': label,
                'related_document_id': document['id'],
                'related_document_number': number,
                'action_url': f"/{label.lower()}/{document['id']}",
                'priority': NotificationPriority.URGENT,
                'metadata': metadata,
            })
            self.logger.info(f"Notified vendor about {label} rejection")
        except Exception as e:
            self.logger.error(f"Error notifying {label} rejection: {e}")

    async def notify_revision_required(self, document_type: DocumentType, document: Dict[str, Any],
                                       revision_reason: str) -> None:
        label = DocumentType(document_type).value
        try:
            number = self._number(label, document)
            metadata = {'revisionReason': revision_reason, 'requestedAt': datetime.now()}
            if label == DocumentType.BAPP.value:
                metadata['projectName'] = document.get('project_name')

            await self.create_notification({
                'user_id': document['vendor_id'],
                'type': f"{label.lower()}_revision_required",
                'title': f"{label} Perlu Revisi",
                'message': f"{label} {number} memerlukan revisi. Catatan: {revision_reason}",
                'related_document_type': label,
                'related_document_id': document['id'],
                'related_document_number': number,
                'action_url': f"/{label.lower()}/{document['id']}/edit",
                'priority': NotificationPriority.HIGH,
                'metadata': metadata,
            })
            self.logger.info(f"Notified vendor about {label} revision request")
        except Exception as e:
            self.logger.error(f"Error notifying {label} revision: {e}")

    async def notify_payment_processed(self, vendor_id: str, payment: Dict[str, Any]) -> None:
        """payment: documentType, documentId, documentNumber, amount, transactionId"""
        try:
            document_type = payment['documentType']
            await self.create_notification({
                'user_id': vendor_id,
                'type': 'payment_processed',
                'title': 'Pembayaran Diproses',
                'message': (f"Pembayaran untuk {payment['documentNumber']} sebesar "
                            f"Rp {format_rupiah(payment['amount'])} telah diproses."),
                'related_document_type': document_type,
                'related_document_id': payment['documentId'],
                'related_document_number': payment['documentNumber'],
                'action_url': f"/payment/{document_type.lower()}/{payment['documentId']}",
                'priority': NotificationPriority.HIGH,
                'metadata': {
                    'amount': payment['amount'],
                    'transactionId': payment['transactionId'],
                    'processedAt': datetime.now(),
                },
            })
            self.logger.info("Notified vendor about payment processing")
        except Exception as e:
            self.logger.error(f"Error notifying payment: {e}")

    # ==================== INBOX ====================

    async def create_notification(self, data: Dict[str, Any]) -> Dict[str, Any]:
        payload = validate_input(NotificationCreateSchema, data).model_dump()
        row = await self.gateway.insert(Notification, self._to_row(payload))
        return self._serialize(row)

    async def create_bulk_notifications(self, user_ids: List[str], data: Dict[str, Any]) -> Dict[str, Any]:
        """Satu notifikasi yang sama untuk banyak user dalam satu bulk insert"""
        if not user_ids:
            return {'success': True, 'count': 0}
        rows = [
            self._to_row(validate_input(NotificationCreateSchema, {**data, 'user_id': user_id}).model_dump())
            for user_id in user_ids
        ]
        await self.gateway.insert(Notification, rows)
        return {'success': True, 'count': len(rows)}

    async def get_user_notifications(self, user_id: str, is_read: Optional[bool] = None,
                                     type: Optional[str] = None, priority: Optional[str] = None,
                                     page: int = 1, per_page: int = 20) -> Dict[str, Any]:
        """Inbox user: belum dibaca dulu, lalu terbaru"""
        filters: Dict[str, Any] = {'user_id': user_id}
        if is_read is not None:
            filters['is_read'] = is_read
        if type:
            filters['type'] = type
        if priority:
            filters['priority'] = priority

        result = await self._paginate_query(
            Notification, filters, order_by=('is_read', '-created_at'),
            page=page, per_page=per_page
        )
        pagination = result['pagination']
        pagination['unread_count'] = await self.get_unread_count(user_id)
        return {
            'notifications': [self._serialize(row) for row in result['items']],
            'pagination': pagination
        }

    async def get_unread_count(self, user_id: str) -> int:
        try:
            return await self.gateway.count(Notification, {'user_id': user_id, 'is_read': False})
        except Exception as e:
            self.logger.error(f"Error getting unread count: {e}")
            return 0

    async def get_notification(self, notification_id: str, user_id: str) -> Dict[str, Any]:
        row = await self.gateway.find_one(Notification, {'id': notification_id, 'user_id': user_id})
        if not row:
            raise NotFoundError('Notification', notification_id)
        return self._serialize(row)

    async def mark_as_read(self, notification_id: str, user_id: str) -> Dict[str, Any]:
        return await self._set_read(notification_id, user_id, True)

    async def mark_as_unread(self, notification_id: str, user_id: str) -> Dict[str, Any]:
        return await self._set_read(notification_id, user_id, False)

    async def mark_all_as_read(self, user_id: str) -> Dict[str, Any]:
        rows = await self.gateway.update(
            Notification, {'is_read': True, 'read_at': datetime.now()},
            {'user_id': user_id, 'is_read': False}
        )
        return {'success': True, 'count': len(rows)}

    async def delete_notification(self, notification_id: str, user_id: str) -> Dict[str, Any]:
        deleted = await self.gateway.delete(Notification, {'id': notification_id, 'user_id': user_id})
        if not deleted:
            raise NotFoundError('Notification', notification_id)
        return {'success': True}

    async def clear_read_notifications(self, user_id: str) -> Dict[str, Any]:
        deleted = await self.gateway.delete(Notification, {'user_id': user_id, 'is_read': True})
        return {'success': True, 'count': deleted}

    async def get_statistics(self, user_id: str) -> Dict[str, Any]:
        rows, _ = await self.gateway.find_many(Notification, {'user_id': user_id})
        by_type: Dict[str, int] = {}
        by_priority: Dict[str, int] = {}
        unread = 0
        for row in rows:
            by_type[row['type']] = by_type.get(row['type'], 0) + 1
            by_priority[row['priority']] = by_priority.get(row['priority'], 0) + 1
            if not row['is_read']:
                unread += 1
        return {
            'total': len(rows),
            'unread': unread,
            'read': len(rows) - unread,
            'by_type': by_type,
            'by_priority': by_priority
        }

    # ==================== HELPERS ====================

    async def _set_read(self, notification_id: str, user_id: str, is_read: bool) -> Dict[str, Any]:
        rows = await self.gateway.update(
            Notification,
            {'is_read': is_read, 'read_at': datetime.now() if is_read else None},
            {'id': notification_id, 'user_id': user_id}
        )
        if not rows:
            raise NotFoundError('Notification', notification_id)
        return self._serialize(rows[0])

    @staticmethod
    def _number(label: str, document: Dict[str, Any]) -> Optional[str]:
        return document.get(f"{label.lower()}_number")

    @staticmethod
    def _to_row(payload: Dict[str, Any]) -> Dict[str, Any]:
        row = dict(payload)
        row['metadata'] = json_safe(row.get('metadata') or {})
        row['is_read'] = False
        return row

    @staticmethod
    def _serialize(row: Dict[str, Any]) -> Dict[str, Any]:
        data = dict(row)
        data['metadata'] = data.get('metadata') or {}
        return NotificationSchema.model_validate(data).model_dump()
