"""
BA Digital Routes Module
========================

API Routes untuk BA Digital (FastAPI routers, di-include oleh create_app)
"""

from .bapb_routes import router as bapb_router
from .bapp_routes import router as bapp_router
from .notification_routes import router as notification_router
from .payment_routes import router as payment_router
from .document_routes import router as document_router

__all__ = [
    'bapb_router', 'bapp_router', 'notification_router', 'payment_router', 'document_router'
]
