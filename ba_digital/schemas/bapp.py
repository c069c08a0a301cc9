"""
BAPP Schemas
============

Schemas input untuk Berita Acara Pemeriksaan Pekerjaan dan work items
"""

from pydantic import Field, field_validator, model_validator
from typing import List, Optional
from datetime import date
from decimal import Decimal

from .base import BaseSchema
from .validators import validate_percentage
from ..models.enums import WorkQuality


class BAPPWorkItemCreateSchema(BaseSchema):
    """Schema untuk satu item pekerjaan"""
    work_item_name: str = Field(..., min_length=1, max_length=200)
    planned_progress: Decimal = Decimal('0')
    actual_progress: Decimal = Decimal('0')
    unit: str = Field(..., min_length=1, max_length=20)
    quality: WorkQuality = WorkQuality.ACCEPTABLE
    notes: Optional[str] = None

    @field_validator('planned_progress', 'actual_progress')
    @classmethod
    def progress_range(cls, v):
        return validate_percentage(v)


class BAPPCreateSchema(BaseSchema):
    """Schema untuk create BAPP (minimal satu work item)"""
    contract_number: str = Field(..., min_length=1, max_length=50)
    project_name: str = Field(..., min_length=1, max_length=200)
    project_location: str = Field(..., min_length=1, max_length=200)
    start_date: date
    end_date: date
    completion_date: Optional[date] = None
    notes: Optional[str] = None
    work_items: List[BAPPWorkItemCreateSchema] = Field(..., min_length=1)

    @model_validator(mode='after')
    def validate_period(self):
        if self.end_date < self.start_date:
            raise ValueError('End date cannot be before start date')
        return self


class BAPPUpdateSchema(BaseSchema):
    """Schema untuk update BAPP; work_items diisi berarti diganti seluruhnya"""
    contract_number: Optional[str] = Field(None, min_length=1, max_length=50)
    project_name: Optional[str] = Field(None, min_length=1, max_length=200)
    project_location: Optional[str] = Field(None, min_length=1, max_length=200)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    completion_date: Optional[date] = None
    notes: Optional[str] = None
    work_items: Optional[List[BAPPWorkItemCreateSchema]] = Field(None, min_length=1)
