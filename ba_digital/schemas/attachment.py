"""
Attachment Schemas
==================

Upload signature (data URL) dan dokumen pendukung (base64)
"""

from pydantic import BaseModel, Field

from ..models.enums import AttachmentType


class SignatureUploadSchema(BaseModel):
    signature_data: str = Field(..., alias='signatureData')

    model_config = {'populate_by_name': True}


class DocumentUploadSchema(BaseModel):
    file_data: str = Field(..., alias='fileData')
    file_name: str = Field(..., alias='fileName', min_length=1, max_length=255)
    file_type: AttachmentType = Field(AttachmentType.SUPPORTING_DOC, alias='fileType')

    model_config = {'populate_by_name': True, 'use_enum_values': True, 'validate_default': True}


