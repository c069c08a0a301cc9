# ba_digital/models/document.py
# Model BAPB (Berita Acara Penerimaan Barang) dan BAPP (Berita Acara Pemeriksaan Pekerjaan)
# beserta line items, approval history dan attachments.

from datetime import datetime
from sqlalchemy import (
    Column, String, ForeignKey, Text, DateTime, Date, Numeric
)
from .base import BaseModel, generate_uuid, Base


# ==================== BAPB ====================

class BAPB(BaseModel):
    """Berita acara penerimaan barang dari vendor barang"""
    __tablename__ = 'bapb'

    # Tidak unique: nomor = jumlah dokumen bulan ini + 1, bisa berulang setelah draft dihapus
    bapb_number = Column(String(30), nullable=False, index=True)

    # Pemilik dokumen (immutable setelah dibuat)
    vendor_id = Column(String(36), ForeignKey('users.id'), nullable=False, index=True)
    # Primary reviewer, di-pin ke PIC gudang pertama yang approve
    pic_gudang_id = Column(String(36), ForeignKey('users.id'), nullable=True, index=True)

    order_number = Column(String(50), nullable=False)
    delivery_date = Column(Date, nullable=False)
    notes = Column(Text)

    status = Column(String(30), default='draft', nullable=False, index=True)
    rejection_reason = Column(Text)

    def __repr__(self):
        return f'<BAPB {self.bapb_number}>'


class BAPBItem(BaseModel):
    """Item barang dalam BAPB"""
    __tablename__ = 'bapb_items'

    bapb_id = Column(String(36), ForeignKey('bapb.id', ondelete='CASCADE'), nullable=False, index=True)

    item_name = Column(String(200), nullable=False)
    quantity_ordered = Column(Numeric(12, 2), nullable=False)
    quantity_received = Column(Numeric(12, 2), nullable=False)
    unit = Column(String(20), nullable=False)
    condition = Column(String(20), default='good', nullable=False)  # good, damaged, short
    notes = Column(Text)


class BAPBApproval(Base):
    """Riwayat approval BAPB (append-only)"""
    __tablename__ = 'bapb_approvals'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    bapb_id = Column(String(36), ForeignKey('bapb.id', ondelete='CASCADE'), nullable=False, index=True)
    approver_id = Column(String(36), ForeignKey('users.id'), nullable=False, index=True)
    action = Column(String(30), nullable=False)  # approved, rejected, revision_required
    notes = Column(Text)
    approved_at = Column(DateTime, default=datetime.now, nullable=False)


class BAPBAttachment(Base):
    """Tanda tangan dan dokumen pendukung BAPB"""
    __tablename__ = 'bapb_attachments'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    bapb_id = Column(String(36), ForeignKey('bapb.id', ondelete='CASCADE'), nullable=False, index=True)
    file_type = Column(String(20), nullable=False)  # signature, supporting_doc
    file_path = Column(String(255), nullable=False)
    file_name = Column(String(255), nullable=False)
    uploaded_by = Column(String(36), ForeignKey('users.id'), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.now, nullable=False)


# ==================== BAPP ====================

class BAPP(BaseModel):
    """Berita acara pemeriksaan progress pekerjaan dari vendor jasa"""
    __tablename__ = 'bapp'

    # Lihat catatan bapb_number
    bapp_number = Column(String(30), nullable=False, index=True)

    vendor_id = Column(String(36), ForeignKey('users.id'), nullable=False, index=True)
    # Primary reviewer, di-pin ke direksi pekerjaan (approver) pertama yang approve
    direksi_pekerjaan_id = Column(String(36), ForeignKey('users.id'), nullable=True, index=True)

    contract_number = Column(String(50), nullable=False)
    project_name = Column(String(200), nullable=False)
    project_location = Column(String(200), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    completion_date = Column(Date)

    # Derived: rata-rata actual_progress work items, dihitung ulang setiap write
    total_progress = Column(Numeric(5, 2), default=0, nullable=False)
    notes = Column(Text)

    status = Column(String(30), default='draft', nullable=False, index=True)
    rejection_reason = Column(Text)

    def __repr__(self):
        return f'<BAPP {self.bapp_number}>'


class BAPPWorkItem(BaseModel):
    """Item pekerjaan dalam BAPP"""
    __tablename__ = 'bapp_work_items'

    bapp_id = Column(String(36), ForeignKey('bapp.id', ondelete='CASCADE'), nullable=False, index=True)

    work_item_name = Column(String(200), nullable=False)
    planned_progress = Column(Numeric(5, 2), default=0, nullable=False)
    actual_progress = Column(Numeric(5, 2), default=0, nullable=False)
    unit = Column(String(20), nullable=False)
    quality = Column(String(20), default='acceptable', nullable=False)
    notes = Column(Text)


class BAPPApproval(Base):
    """Riwayat approval BAPP (append-only)"""
    __tablename__ = 'bapp_approvals'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    bapp_id = Column(String(36), ForeignKey('bapp.id', ondelete='CASCADE'), nullable=False, index=True)
    approver_id = Column(String(36), ForeignKey('users.id'), nullable=False, index=True)
    action = Column(String(30), nullable=False)
    notes = Column(Text)
    approved_at = Column(DateTime, default=datetime.now, nullable=False)


class BAPPAttachment(Base):
    """Tanda tangan dan dokumen pendukung BAPP"""
    __tablename__ = 'bapp_attachments'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    bapp_id = Column(String(36), ForeignKey('bapp.id', ondelete='CASCADE'), nullable=False, index=True)
    file_type = Column(String(20), nullable=False)
    file_path = Column(String(255), nullable=False)
    file_name = Column(String(255), nullable=False)
    uploaded_by = Column(String(36), ForeignKey('users.id'), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
