"""
Payment Schemas
===============
"""

from pydantic import BaseModel, Field
from typing import Optional
from decimal import Decimal


class PaymentRequestSchema(BaseModel):
    """
    Request pembayaran. BAPB wajib ``amount``; BAPP boleh hanya ``contract_amount``
    (amount = contract_amount * total_progress / 100).
    """
    amount: Optional[Decimal] = Field(None, gt=0)
    contract_amount: Optional[Decimal] = Field(None, gt=0, alias='contractAmount')
    payment_method: str = Field('bank_transfer', alias='paymentMethod', max_length=30)

    model_config = {'populate_by_name': True}
