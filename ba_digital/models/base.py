import uuid
from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import declarative_base
from datetime import datetime

# Declarative base yang dipakai semua model
Base = declarative_base()


def generate_uuid() -> str:
    return str(uuid.uuid4())


# Kolom umum (id opaque + timestamps). Waktu disimpan naive dalam zona waktu server,
# sehingga batas bulan untuk penomoran dihitung dengan jam server.
class BaseModel(Base):
    __abstract__ = True
    id = Column(String(36), primary_key=True, default=generate_uuid)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
