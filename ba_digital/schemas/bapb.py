"""
BAPB Schemas
============

Schemas input untuk Berita Acara Penerimaan Barang dan item-itemnya
"""

from pydantic import Field, field_validator
from typing import List, Optional
from datetime import date
from decimal import Decimal

from .base import BaseSchema
from .validators import validate_non_negative_number
from ..models.enums import ItemCondition


class BAPBItemCreateSchema(BaseSchema):
    """Schema untuk satu item barang"""
    item_name: str = Field(..., min_length=1, max_length=200)
    quantity_ordered: Decimal
    quantity_received: Decimal
    unit: str = Field(..., min_length=1, max_length=20)
    condition: ItemCondition = ItemCondition.GOOD
    notes: Optional[str] = None

    @field_validator('quantity_ordered', 'quantity_received')
    @classmethod
    def quantity_non_negative(cls, v):
        return validate_non_negative_number(v)


class BAPBCreateSchema(BaseSchema):
    """Schema untuk create BAPB (minimal satu item)"""
    order_number: str = Field(..., min_length=1, max_length=50)
    delivery_date: date
    notes: Optional[str] = None
    items: List[BAPBItemCreateSchema] = Field(..., min_length=1)


class BAPBUpdateSchema(BaseSchema):
    """
    Schema untuk update BAPB. ``items`` None berarti item lama dibiarkan;
    jika diisi, seluruh item diganti dengan set baru.
    """
    order_number: Optional[str] = Field(None, min_length=1, max_length=50)
    delivery_date: Optional[date] = None
    notes: Optional[str] = None
    items: Optional[List[BAPBItemCreateSchema]] = Field(None, min_length=1)
