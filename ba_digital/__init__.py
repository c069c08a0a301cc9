"""
BA Digital Application Factory
==============================

Pusat perakitan aplikasi FastAPI menggunakan Application Factory Pattern.
"""

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import time
import uuid
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

# Import semua router dari modulnya masing-masing
from .routes import (
    bapb_router, bapp_router, notification_router, payment_router, document_router
)

from .services.exceptions import (
    ValidationError, NotFoundError, BusinessRuleError, AuthenticationError,
    AuthorizationError, PartialWriteError, ExternalServiceError, BADigitalException
)
from .database import build_engine, create_tables
from .responses import APIResponse
from .config import settings

logger = logging.getLogger(__name__)


def setup_logging():
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )


def setup_middleware(app: FastAPI):
    """Setup semua middleware aplikasi."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
        allow_headers=["*"],
    )
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=settings.ALLOWED_HOSTS
    )

    @app.middleware("http")
    async def add_request_id_and_process_time(request: Request, call_next):
        request_id = str(uuid.uuid4())
        start_time = time.time()

        request.state.request_id = request_id
        response = await call_next(request)

        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)
        response.headers["X-Request-ID"] = request_id
        return response


def _error_response(request: Request, status_code: int, exc: BADigitalException) -> JSONResponse:
    content = APIResponse.error(exc.message, exc.error_code, exc.details)
    content["request_id"] = getattr(request.state, "request_id", None)
    return JSONResponse(status_code=status_code, content=content)


def setup_exception_handlers(app: FastAPI):
    """Setup semua custom exception handlers."""
    @app.exception_handler(ValidationError)
    async def validation_exception_handler(request: Request, exc: ValidationError):
        return _error_response(request, status.HTTP_400_BAD_REQUEST, exc)

    @app.exception_handler(NotFoundError)
    async def not_found_exception_handler(request: Request, exc: NotFoundError):
        return _error_response(request, status.HTTP_404_NOT_FOUND, exc)

    @app.exception_handler(BusinessRuleError)
    async def business_rule_exception_handler(request: Request, exc: BusinessRuleError):
        return _error_response(request, status.HTTP_422_UNPROCESSABLE_ENTITY, exc)

    @app.exception_handler(AuthenticationError)
    async def authentication_exception_handler(request: Request, exc: AuthenticationError):
        return _error_response(request, status.HTTP_401_UNAUTHORIZED, exc)

    @app.exception_handler(AuthorizationError)
    async def authorization_exception_handler(request: Request, exc: AuthorizationError):
        return _error_response(request, status.HTTP_403_FORBIDDEN, exc)

    @app.exception_handler(PartialWriteError)
    async def partial_write_exception_handler(request: Request, exc: PartialWriteError):
        logger.error(f"Partial write ({'compensated' if exc.compensated else 'not compensated'}): {exc.message}")
        response = APIResponse.error(exc.message, exc.error_code, exc.details)
        response['compensated'] = exc.compensated
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=response)

    @app.exception_handler(ExternalServiceError)
    async def external_service_exception_handler(request: Request, exc: ExternalServiceError):
        logger.error(f"External service error: {exc.message}")
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            return _error_response(request, status.HTTP_404_NOT_FOUND, exc)
        return _error_response(request, status.HTTP_502_BAD_GATEWAY, exc)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=APIResponse.error("An unexpected error occurred", "INTERNAL_ERROR")
        )


def setup_routes(app: FastAPI):
    """Daftarkan (include) semua router ke aplikasi."""
    # Endpoint sistem
    @app.get("/health", tags=["System"])
    async def health_check():
        return {"status": "healthy", "timestamp": time.time()}

    @app.get("/", tags=["System"])
    async def root():
        return {"message": "BA Digital API", "version": "1.0.0", "docs": "/docs"}

    # Daftarkan semua router dari modul
    app.include_router(bapb_router, prefix="/api/bapb", tags=["BAPB"])
    app.include_router(bapp_router, prefix="/api/bapp", tags=["BAPP"])
    app.include_router(notification_router, prefix="/api/notifications", tags=["Notifications"])
    app.include_router(payment_router, prefix="/api/payments", tags=["Payments"])
    app.include_router(document_router, prefix="/api/documents", tags=["Documents"])


def create_app(engine: Optional[AsyncEngine] = None, registry_options: Optional[dict] = None) -> FastAPI:
    """
    Application Factory: Membuat dan mengkonfigurasi instance FastAPI.

    ``engine`` dan ``registry_options`` (storage, renderer, rng, sleep) bisa
    di-inject, misalnya dari tests.
    """
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Kode yang dijalankan saat startup
        owns_engine = engine is None
        app.state.engine = engine or build_engine(settings.DATABASE_URL, settings.SQL_ECHO)
        await create_tables(app.state.engine)
        logger.info("BA Digital API starting up")
        yield
        # Kode yang dijalankan saat shutdown
        if owns_engine:
            await app.state.engine.dispose()
        logger.info("BA Digital API shutting down")

    # 1. Buat instance FastAPI
    app = FastAPI(
        title="BA Digital API",
        description="Workflow Berita Acara Penerimaan Barang (BAPB) dan Pemeriksaan Pekerjaan (BAPP)",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.registry_options = registry_options or {}

    # 2. Setup Middleware
    setup_middleware(app)

    # 3. Setup Exception Handlers
    setup_exception_handlers(app)

    # 4. Setup Routes
    setup_routes(app)

    logger.info("FastAPI app created and configured successfully.")
    return app
