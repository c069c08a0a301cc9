from sqlalchemy import Column, String, Boolean
from .base import BaseModel


class User(BaseModel):
    """User sistem: vendor (pemilik dokumen) maupun reviewer"""
    __tablename__ = 'users'

    email = Column(String(100), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False)

    # Role (lihat enums.Role)
    role = Column(String(20), nullable=False, index=True)

    company = Column(String(150))
    phone = Column(String(20))

    is_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f'<User {self.email} ({self.role})>'
