from datetime import datetime
from sqlalchemy import Column, String, ForeignKey, Text, DateTime, Boolean, JSON
from .base import Base, generate_uuid


class Notification(Base):
    """Notifikasi in-app per user (inbox)"""
    __tablename__ = 'notifications'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)

    type = Column(String(50), nullable=False, index=True)  # bapb_submitted, payment_processed, ...
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)

    related_document_type = Column(String(10))
    related_document_id = Column(String(36))
    related_document_number = Column(String(30))
    action_url = Column(String(255))

    priority = Column(String(10), default='medium', nullable=False)
    is_read = Column(Boolean, default=False, nullable=False, index=True)
    read_at = Column(DateTime)

    # 'metadata' dipakai oleh declarative base, jadi atribut python-nya 'meta'
    meta = Column('metadata', JSON)

    created_at = Column(DateTime, default=datetime.now, nullable=False, index=True)

    def __repr__(self):
        return f'<Notification {self.type} -> {self.user_id}>'
