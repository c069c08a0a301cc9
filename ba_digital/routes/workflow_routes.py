"""
Document Workflow Routes
========================

Router BAPB dan BAPP identik kecuali tipe dokumennya; ``build_document_router``
membuat satu router per tipe di atas service registry.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, Request, status
from fastapi.responses import Response

from ..dependencies import get_current_user, get_service_registry
from ..models.enums import DocumentType
from ..responses import APIResponse
from ..schemas import (
    ApproveRequestSchema, RejectRequestSchema, RevisionRequestSchema,
    SignatureUploadSchema, DocumentUploadSchema
)
from ..services import ServiceRegistry

PAGING_PARAMS = ('page', 'per_page', 'limit')


def _transition_response(result, message: str):
    return APIResponse.success(data=result.document, message=message, warning=result.warning)


def build_document_router(document_type: DocumentType) -> APIRouter:
    label = document_type.value
    router = APIRouter()

    def service(services: ServiceRegistry):
        return services.document_service(document_type)

    # ==================== CRUD ====================

    @router.post("/", status_code=status.HTTP_201_CREATED, summary=f"Create {label}")
    async def create_document(
        payload: Dict[str, Any] = Body(...),
        user: dict = Depends(get_current_user),
        services: ServiceRegistry = Depends(get_service_registry)
    ):
        document = await service(services).create(payload, user)
        return APIResponse.success(data=document, message=f"{label} created successfully")

    @router.get("/", summary=f"List {label}")
    async def list_documents(
        request: Request,
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1, le=100),
        user: dict = Depends(get_current_user),
        services: ServiceRegistry = Depends(get_service_registry)
    ):
        """Filter lain (status, vendor_id, rentang tanggal, dst.) diteruskan dari query string"""
        filters = {key: value for key, value in request.query_params.items() if key not in PAGING_PARAMS}
        result = await service(services).list(user, filters, page, limit)
        return APIResponse.paginated(data=result['items'], pagination=result['pagination'])

    @router.get("/pending", summary=f"Pending {label} approvals")
    async def get_pending_approvals(
        user: dict = Depends(get_current_user),
        services: ServiceRegistry = Depends(get_service_registry)
    ):
        documents = await service(services).get_pending_approvals(user)
        return APIResponse.success(data=documents)

    @router.get("/statistics", summary=f"{label} statistics per vendor")
    async def get_vendor_statistics(
        vendor_id: Optional[str] = Query(None),
        user: dict = Depends(get_current_user),
        services: ServiceRegistry = Depends(get_service_registry)
    ):
        stats = await service(services).get_vendor_statistics(user, vendor_id)
        return APIResponse.success(data=stats)

    @router.get("/statistics/by-vendor-type", summary=f"{label} statistics by vendor type (admin)")
    async def get_statistics_by_vendor_type(
        user: dict = Depends(get_current_user),
        services: ServiceRegistry = Depends(get_service_registry)
    ):
        stats = await service(services).get_statistics_by_vendor_type(user)
        return APIResponse.success(data=stats)

    @router.get("/validate-access", summary=f"Check whether the user can manage {label}")
    async def validate_access(
        user: dict = Depends(get_current_user),
        services: ServiceRegistry = Depends(get_service_registry)
    ):
        return APIResponse.success(data=service(services).validate_access(user))

    @router.get("/{document_id}", summary=f"Get {label} with items, approvals and attachments")
    async def get_document(
        document_id: str,
        user: dict = Depends(get_current_user),
        services: ServiceRegistry = Depends(get_service_registry)
    ):
        document = await service(services).get(document_id, user)
        return APIResponse.success(data=document)

    @router.put("/{document_id}", summary=f"Update {label} (draft or revision_required)")
    async def update_document(
        document_id: str,
        payload: Dict[str, Any] = Body(...),
        user: dict = Depends(get_current_user),
        services: ServiceRegistry = Depends(get_service_registry)
    ):
        document = await service(services).update(document_id, payload, user)
        return APIResponse.success(data=document, message=f"{label} updated successfully")

    @router.delete("/{document_id}", summary=f"Delete draft {label}")
    async def delete_document(
        document_id: str,
        user: dict = Depends(get_current_user),
        services: ServiceRegistry = Depends(get_service_registry)
    ):
        await service(services).delete(document_id, user)
        return APIResponse.success(message=f"{label} deleted successfully")

    # ==================== WORKFLOW ====================

    @router.post("/{document_id}/submit", summary=f"Submit {label} for review")
    async def submit_document(
        document_id: str,
        user: dict = Depends(get_current_user),
        services: ServiceRegistry = Depends(get_service_registry)
    ):
        result = await service(services).submit(document_id, user)
        return _transition_response(result, f"{label} submitted successfully")

    @router.post("/{document_id}/start-review", summary=f"Mark {label} as in review")
    async def start_review(
        document_id: str,
        user: dict = Depends(get_current_user),
        services: ServiceRegistry = Depends(get_service_registry)
    ):
        result = await services.approval_state_machine.start_review(document_type, document_id, user)
        return _transition_response(result, f"{label} is now in review")

    @router.post("/{document_id}/release-review", summary=f"Return {label} to the review queue")
    async def release_review(
        document_id: str,
        user: dict = Depends(get_current_user),
        services: ServiceRegistry = Depends(get_service_registry)
    ):
        result = await services.approval_state_machine.release_review(document_type, document_id, user)
        return _transition_response(result, f"{label} returned to submitted")

    @router.post("/{document_id}/approve", summary=f"Approve {label}")
    async def approve_document(
        document_id: str,
        body: Optional[ApproveRequestSchema] = None,
        user: dict = Depends(get_current_user),
        services: ServiceRegistry = Depends(get_service_registry)
    ):
        result = await services.approval_state_machine.approve(
            document_type, document_id, user, body.notes if body else None
        )
        return _transition_response(result, f"{label} approved successfully")

    @router.post("/{document_id}/reject", summary=f"Reject {label}")
    async def reject_document(
        document_id: str,
        body: RejectRequestSchema,
        user: dict = Depends(get_current_user),
        services: ServiceRegistry = Depends(get_service_registry)
    ):
        result = await services.approval_state_machine.reject(
            document_type, document_id, user, body.rejection_reason, body.notes
        )
        return _transition_response(result, f"{label} rejected")

    @router.post("/{document_id}/revision", summary=f"Request revision of {label}")
    async def request_revision(
        document_id: str,
        body: RevisionRequestSchema,
        user: dict = Depends(get_current_user),
        services: ServiceRegistry = Depends(get_service_registry)
    ):
        result = await services.approval_state_machine.request_revision(
            document_type, document_id, user, body.revision_reason, body.notes
        )
        return _transition_response(result, f"Revision requested for {label}")

    @router.get("/{document_id}/approvals", summary=f"{label} approval history")
    async def get_approval_history(
        document_id: str,
        user: dict = Depends(get_current_user),
        services: ServiceRegistry = Depends(get_service_registry)
    ):
        history = await service(services).get_approval_history(document_id, user)
        return APIResponse.success(data=history)

    # ==================== SIGNATURES & ATTACHMENTS ====================

    @router.post("/{document_id}/signature", status_code=status.HTTP_201_CREATED,
                 summary=f"Upload signature for {label}")
    async def upload_signature(
        document_id: str,
        body: SignatureUploadSchema,
        user: dict = Depends(get_current_user),
        services: ServiceRegistry = Depends(get_service_registry)
    ):
        attachment = await services.attachment_service.upload_signature(
            document_type, document_id, user, body.signature_data
        )
        return APIResponse.success(data=attachment, message="Signature uploaded successfully")

    @router.get("/{document_id}/signatures", summary=f"List {label} signatures")
    async def list_signatures(
        document_id: str,
        user: dict = Depends(get_current_user),
        services: ServiceRegistry = Depends(get_service_registry)
    ):
        signatures = await services.attachment_service.list_signatures(document_type, document_id, user)
        return APIResponse.success(data=signatures)

    @router.get("/{document_id}/signature/status", summary="Check whether the current user has signed")
    async def get_signature_status(
        document_id: str,
        user: dict = Depends(get_current_user),
        services: ServiceRegistry = Depends(get_service_registry)
    ):
        result = await services.attachment_service.get_signature_status(document_type, document_id, user)
        return APIResponse.success(data=result)

    @router.post("/{document_id}/attachments", status_code=status.HTTP_201_CREATED,
                 summary=f"Upload supporting document for {label}")
    async def upload_attachment(
        document_id: str,
        body: DocumentUploadSchema,
        user: dict = Depends(get_current_user),
        services: ServiceRegistry = Depends(get_service_registry)
    ):
        attachment = await services.attachment_service.upload_document(
            document_type, document_id, user, body.file_data, body.file_name, body.file_type
        )
        return APIResponse.success(data=attachment, message="Document uploaded successfully")

    @router.get("/{document_id}/attachments", summary=f"List {label} attachments")
    async def list_attachments(
        document_id: str,
        file_type: Optional[str] = Query(None),
        user: dict = Depends(get_current_user),
        services: ServiceRegistry = Depends(get_service_registry)
    ):
        attachments = await services.attachment_service.list_attachments(
            document_type, document_id, user, file_type
        )
        return APIResponse.success(data=attachments)

    @router.get("/{document_id}/attachments/{attachment_id}/download", summary="Download attachment file")
    async def download_attachment(
        document_id: str,
        attachment_id: str,
        user: dict = Depends(get_current_user),
        services: ServiceRegistry = Depends(get_service_registry)
    ):
        attachment, content = await services.attachment_service.read_attachment(
            document_type, document_id, attachment_id, user
        )
        return Response(
            content=content,
            media_type='application/octet-stream',
            headers={'Content-Disposition': f'attachment; filename="{attachment["file_name"]}"'}
        )

    @router.delete("/{document_id}/attachments/{attachment_id}", summary="Delete attachment")
    async def delete_attachment(
        document_id: str,
        attachment_id: str,
        user: dict = Depends(get_current_user),
        services: ServiceRegistry = Depends(get_service_registry)
    ):
        await services.attachment_service.delete_attachment(document_type, document_id, attachment_id, user)
        return APIResponse.success(message="Attachment deleted successfully")

    return router
