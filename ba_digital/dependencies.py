"""
API Dependencies
================

FastAPI dependencies untuk BA Digital: current user dari bearer token dan
service registry per request.
"""

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
import jwt

from .config import settings
from .database import get_store_engine
from .models import User
from .models.enums import DocumentType
from .services import PersistenceGateway, ServiceRegistry, create_service_registry
from .services.exceptions import AuthenticationError, ValidationError

# Security
security = HTTPBearer(auto_error=False)


def get_gateway(engine=Depends(get_store_engine)) -> PersistenceGateway:
    return PersistenceGateway(engine)


# Dependency untuk get current user
async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    gateway: PersistenceGateway = Depends(get_gateway)
) -> dict:
    """Verifikasi JWT (claim ``sub`` = user id) dan ambil user aktif"""
    if credentials is None:
        raise AuthenticationError("Not authorized, no token")

    try:
        payload = jwt.decode(credentials.credentials, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.PyJWTError:
        raise AuthenticationError("Not authorized, token failed")

    user_id = payload.get('sub')
    if not user_id:
        raise AuthenticationError("Invalid token payload")

    user = await gateway.find(User, user_id)
    if not user or not user.get('is_active'):
        raise AuthenticationError("User not found or inactive")

    user.pop('password_hash', None)
    return user


# Dependency untuk get service registry
def get_service_registry(
    request: Request,
    gateway: PersistenceGateway = Depends(get_gateway)
) -> ServiceRegistry:
    """Service registry per request; opsi (renderer, rng, sleep) dari app.state"""
    options = getattr(request.app.state, 'registry_options', None) or {}
    return create_service_registry(
        gateway,
        config={
            'upload_root': settings.UPLOAD_ROOT,
            'payment_success_rate': settings.PAYMENT_SUCCESS_RATE,
        },
        **options
    )


def get_document_type(document_type: str) -> DocumentType:
    """Path param ``bapb``/``bapp`` (case-insensitive) ke DocumentType"""
    try:
        return DocumentType(document_type.upper())
    except ValueError:
        raise ValidationError(f"Invalid document type: {document_type}. Must be BAPB or BAPP",
                              field='document_type')
