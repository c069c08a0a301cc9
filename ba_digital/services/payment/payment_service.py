"""
Payment Service
===============

Service untuk readiness pembayaran dokumen yang sudah approved dan simulasi
settlement lewat stub payment gateway. Tidak ada uang yang benar-benar ditransfer.
"""

import asyncio
import random
import string
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Awaitable, Callable, Dict, Optional

from ..base import BaseService, json_safe
from ..documents.repository import DocumentRepository
from ..exceptions import BusinessRuleError, NotFoundError, ValidationError
from ..roles import Action, require
from ...models import PaymentLog, User
from ...models.enums import DocumentStatus, DocumentType, PaymentStatus

FAILURE_REASONS = (
    'Insufficient funds in system account',
    'Vendor bank account validation failed',
    'Daily transaction limit exceeded',
    'Payment gateway timeout',
    'Vendor account suspended',
)

SIMULATION_NOTE = 'This is a simulated payment - No actual money transferred'

_TXN_ALPHABET = string.ascii_uppercase + string.digits


class PaymentService(BaseService):
    """Service untuk payment readiness, settlement stub dan payment log"""

    def __init__(self, gateway, repositories: Dict[DocumentType, DocumentRepository],
                 notification_service=None, success_rate: float = 0.95,
                 rng: Optional[random.Random] = None,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        super().__init__(gateway, notification_service)
        self.repositories = repositories
        self.success_rate = success_rate
        self.rng = rng or random.Random()
        self.sleep = sleep

    async def check_readiness(self, document_type: DocumentType, document_id: str) -> Dict[str, Any]:
        """Kumpulkan semua blocker pembayaran (bukan hanya yang pertama)"""
        document_type = DocumentType(document_type)
        repository = self.repositories[document_type]
        document = await repository.find(document_id)

        if not document:
            return {
                'ready': False,
                'reason': 'Document not found',
                'blockers': ['Document does not exist'],
            }

        blockers = []
        if document['status'] != DocumentStatus.APPROVED.value:
            blockers.append('Document is not approved')

        paid = await self.gateway.count(PaymentLog, {
            'document_type': document_type.value,
            'document_id': document_id,
            'status': PaymentStatus.SUCCESS.value,
        })
        if paid > 0:
            blockers.append('Payment already processed for this document')

        vendor = await self.gateway.find(User, document['vendor_id'])
        if not vendor or not vendor.get('is_active'):
            blockers.append('Vendor account is inactive or not found')

        return {
            'ready': not blockers,
            'reason': 'Document not ready for payment' if blockers else 'Document ready for payment',
            'blockers': blockers,
            'document': {
                'id': document['id'],
                'number': document.get(repository.kind.number_field),
                'status': document['status'],
                'vendorId': document['vendor_id'],
            },
        }

    async def simulate_settlement(self, request: Dict[str, Any]) -> Dict[str, Any]:
        """
        Stub payment gateway: delay acak 100-500ms, sukses dengan peluang ``success_rate``;
        gagal memilih satu dari lima alasan secara uniform.
        """
        await self.sleep((self.rng.random() * 400 + 100) / 1000)

        now = datetime.now()
        suffix = ''.join(self.rng.choice(_TXN_ALPHABET) for _ in range(9))
        transaction_id = f"TXN-{int(now.timestamp() * 1000)}-{suffix}"

        response = {
            'transactionId': transaction_id,
            'timestamp': now.isoformat(),
            'amount': request.get('amount'),
            'vendorId': request.get('vendorId'),
            'simulationMode': True,
        }

        if self.rng.random() > 1 - self.success_rate:
            response.update({
                'status': PaymentStatus.SUCCESS.value,
                'currency': 'IDR',
                'paymentMethod': 'bank_transfer',
                'estimatedSettlement': (now + timedelta(days=1)).strftime('%Y-%m-%d'),
                'gatewayReference': f"GW-{transaction_id}",
                'vendorName': request.get('vendorName'),
                'description': request.get('description'),
                'metadata': request.get('metadata'),
                'message': 'Payment successfully processed',
            })
        else:
            response.update({
                'status': PaymentStatus.FAILED.value,
                'errorCode': 'PAYMENT_FAILED',
                'errorMessage': self.rng.choice(FAILURE_REASONS),
            })
        return response

    async def process_payment(self, document_type: DocumentType, document_id: str, user: Dict[str, Any],
                              amount: Optional[Decimal] = None, contract_amount: Optional[Decimal] = None,
                              payment_method: str = 'bank_transfer') -> Dict[str, Any]:
        """
        Proses pembayaran dokumen approved. BAPP tanpa ``amount`` dibayar sebesar
        ``contract_amount * total_progress / 100``. Payment log selalu ditulis
        sebelum notifikasi; notifikasi hanya dikirim jika settlement sukses.
        """
        document_type = DocumentType(document_type)
        label = document_type.value
        require(user, document_type, Action.PAY)

        repository = self.repositories[document_type]
        document = await repository.find_with_relations(document_id)
        if not document:
            raise NotFoundError(label, document_id)

        readiness = await self.check_readiness(document_type, document_id)
        if not readiness['ready']:
            raise BusinessRuleError(
                f"{label} is not ready for payment: {', '.join(readiness['blockers'])}",
                rule_code='PAYMENT_NOT_READY', details={'blockers': readiness['blockers']}
            )

        number = document[repository.kind.number_field]
        vendor_name = (document.get('vendor') or {}).get('name') or 'Unknown'
        summary: Dict[str, Any] = {'documentType': label, 'documentNumber': number, 'vendorName': vendor_name}

        if document_type == DocumentType.BAPB:
            if amount is None:
                raise ValidationError('Amount is required for BAPB payment', field='amount')
            pay_amount = Decimal(str(amount))
            description = f"Payment for {number} - {document['order_number']}"
            metadata = {
                'bapbId': document['id'],
                'orderNumber': document['order_number'],
                'deliveryDate': document['delivery_date'],
            }
        else:
            progress = Decimal(str(document.get('total_progress') or 0))
            calculated = None
            if contract_amount is not None:
                calculated = (Decimal(str(contract_amount)) * progress / 100).quantize(
                    Decimal('0.01'), rounding=ROUND_HALF_UP)
            if amount is None and calculated is None:
                raise ValidationError('Amount or contract amount is required for BAPP payment', field='amount')
            pay_amount = Decimal(str(amount)) if amount is not None else calculated
            description = f"Payment for {number} - {document['project_name']} ({progress}% complete)"
            metadata = {
                'bappId': document['id'],
                'contractNumber': document['contract_number'],
                'projectName': document['project_name'],
                'totalProgress': progress,
                'contractAmount': contract_amount,
            }
            summary.update({
                'projectName': document['project_name'],
                'totalProgress': progress,
                'contractAmount': contract_amount,
                'calculatedAmount': calculated,
            })

        result = await self.simulate_settlement(json_safe({
            'documentType': label,
            'documentNumber': number,
            'vendorId': document['vendor_id'],
            'vendorName': vendor_name,
            'amount': pay_amount,
            'description': description,
            'metadata': metadata,
        }))

        await self.gateway.insert(PaymentLog, {
            'document_type': label,
            'document_id': document['id'],
            'document_number': number,
            'vendor_id': document['vendor_id'],
            'amount': pay_amount,
            'payment_method': payment_method,
            'status': result['status'],
            'transaction_id': result['transactionId'],
            'gateway_response': json_safe(result),
            'processed_at': datetime.now(),
        })
        self.logger.info(f"Payment {result['transactionId']} for {label} {number}: {result['status']}")

        if result['status'] == PaymentStatus.SUCCESS.value:
            await self._send_notification('notify_payment_processed', document['vendor_id'], {
                'documentType': label,
                'documentId': document['id'],
                'documentNumber': number,
                'amount': pay_amount,
                'transactionId': result['transactionId'],
            })

        summary.update({
            'amount': pay_amount,
            'transactionId': result['transactionId'],
            'status': result['status'],
            'estimatedSettlement': result.get('estimatedSettlement'),
            'errorCode': result.get('errorCode'),
            'errorMessage': result.get('errorMessage'),
            'simulationNote': SIMULATION_NOTE,
        })
        return summary

    async def get_payment_logs(self, document_type: DocumentType, document_id: str) -> list:
        """Riwayat percobaan pembayaran dokumen, terbaru dulu"""
        rows, _ = await self.gateway.find_many(PaymentLog, {
            'document_type': DocumentType(document_type).value,
            'document_id': document_id,
        }, order_by=('-processed_at',))

        vendor_ids = sorted({row['vendor_id'] for row in rows})
        vendors = {}
        if vendor_ids:
            users, _ = await self.gateway.find_many(User, {'id__in': vendor_ids})
            vendors = {u['id']: {'id': u['id'], 'name': u['name'], 'company': u.get('company'),
                                 'email': u['email']} for u in users}

        return [{
            'id': row['id'],
            'transactionId': row['transaction_id'],
            'amount': row['amount'],
            'paymentMethod': row['payment_method'],
            'status': row['status'],
            'vendor': vendors.get(row['vendor_id']),
            'processedAt': row['processed_at'],
            'gatewayResponse': row['gateway_response'],
        } for row in rows]
