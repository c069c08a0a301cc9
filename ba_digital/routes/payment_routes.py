"""
Payment Routes
==============

Readiness dan simulasi pembayaran dokumen approved: /api/payments
"""

from fastapi import APIRouter, Depends

from ..dependencies import get_current_user, get_document_type, get_service_registry
from ..models.enums import DocumentType
from ..responses import APIResponse
from ..schemas import PaymentRequestSchema
from ..services import ServiceRegistry

router = APIRouter()


@router.get("/{document_type}/{document_id}/readiness", summary="Check payment readiness")
async def check_readiness(
    document_id: str,
    document_type: DocumentType = Depends(get_document_type),
    user: dict = Depends(get_current_user),
    services: ServiceRegistry = Depends(get_service_registry)
):
    readiness = await services.payment_service.check_readiness(document_type, document_id)
    return APIResponse.success(data=readiness)


@router.post("/{document_type}/{document_id}", summary="Process (simulated) payment")
async def process_payment(
    document_id: str,
    body: PaymentRequestSchema,
    document_type: DocumentType = Depends(get_document_type),
    user: dict = Depends(get_current_user),
    services: ServiceRegistry = Depends(get_service_registry)
):
    """Settlement gagal tetap 200 dengan status ``failed`` dan tercatat di payment log"""
    result = await services.payment_service.process_payment(
        document_type, document_id, user,
        amount=body.amount, contract_amount=body.contract_amount, payment_method=body.payment_method
    )
    if result['status'] == 'success':
        message = "Payment processed successfully"
    else:
        message = f"Payment failed: {result['errorMessage']}"
    return APIResponse.success(data=result, message=message)


@router.get("/{document_type}/{document_id}/logs", summary="Payment attempt history")
async def get_payment_logs(
    document_id: str,
    document_type: DocumentType = Depends(get_document_type),
    user: dict = Depends(get_current_user),
    services: ServiceRegistry = Depends(get_service_registry)
):
    logs = await services.payment_service.get_payment_logs(document_type, document_id)
    return APIResponse.success(data=logs)
