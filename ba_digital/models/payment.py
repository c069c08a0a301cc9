from datetime import datetime
from sqlalchemy import Column, String, ForeignKey, DateTime, Numeric, JSON
from .base import Base, generate_uuid


class PaymentLog(Base):
    """Audit trail setiap percobaan settlement (sukses maupun gagal), append-only"""
    __tablename__ = 'payment_logs'

    id = Column(String(36), primary_key=True, default=generate_uuid)

    document_type = Column(String(10), nullable=False, index=True)  # BAPB / BAPP
    document_id = Column(String(36), nullable=False, index=True)
    document_number = Column(String(30))
    vendor_id = Column(String(36), ForeignKey('users.id'), nullable=False, index=True)

    amount = Column(Numeric(15, 2), nullable=False)
    payment_method = Column(String(30), default='bank_transfer', nullable=False)
    status = Column(String(10), nullable=False, index=True)  # success, failed
    transaction_id = Column(String(50), nullable=False)
    gateway_response = Column(JSON)

    processed_at = Column(DateTime, default=datetime.now, nullable=False)

    def __repr__(self):
        return f'<PaymentLog {self.transaction_id} {self.status}>'
