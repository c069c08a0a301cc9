"""
Approval Schemas
================

Body request untuk transisi approval. Alasan reject/revisi dicek non-blank
oleh state machine, bukan oleh schema.
"""

from pydantic import BaseModel, Field
from typing import Optional


class ApproveRequestSchema(BaseModel):
    notes: Optional[str] = None


class RejectRequestSchema(BaseModel):
    rejection_reason: Optional[str] = Field(None, alias='rejectionReason')
    notes: Optional[str] = None

    model_config = {'populate_by_name': True}


class RevisionRequestSchema(BaseModel):
    revision_reason: Optional[str] = Field(None, alias='revisionReason')
    notes: Optional[str] = None

    model_config = {'populate_by_name': True}
