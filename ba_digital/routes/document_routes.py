"""
Document Routes
===============

Completed documents dan rendition PDF: /api/documents
"""

import base64

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from ..dependencies import get_current_user, get_document_type, get_service_registry
from ..models.enums import DocumentType
from ..responses import APIResponse
from ..services import ServiceRegistry

router = APIRouter()


@router.get("/completed", summary="All approved BAPB and BAPP")
async def get_completed_documents(
    user: dict = Depends(get_current_user),
    services: ServiceRegistry = Depends(get_service_registry)
):
    documents = await services.rendition_service.get_completed_documents(user)
    return APIResponse.success(data=documents, message=f"{len(documents)} completed documents")


@router.get("/{document_type}/{document_id}/pdf", summary="Download document PDF")
async def download_pdf(
    document_id: str,
    document_type: DocumentType = Depends(get_document_type),
    user: dict = Depends(get_current_user),
    services: ServiceRegistry = Depends(get_service_registry)
):
    rendition = await services.rendition_service.render(document_type, document_id, user)
    return Response(
        content=rendition['content'],
        media_type='application/pdf',
        headers={'Content-Disposition': f'attachment; filename="{rendition["file_name"]}"'}
    )


@router.get("/{document_type}/{document_id}/preview", summary="Preview document PDF as base64")
async def preview_pdf(
    document_id: str,
    document_type: DocumentType = Depends(get_document_type),
    user: dict = Depends(get_current_user),
    services: ServiceRegistry = Depends(get_service_registry)
):
    rendition = await services.rendition_service.render(document_type, document_id, user)
    encoded = base64.b64encode(rendition['content']).decode('ascii')
    return APIResponse.success(data={
        'pdf': f"data:application/pdf;base64,{encoded}",
        'fileName': rendition['file_name'],
    })
