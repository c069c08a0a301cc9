from fastapi import Request
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine

from .models import Base


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Buat async engine ke database sesuai URL dari config."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Khusus SQLite (aiosqlite)
        connect_args["check_same_thread"] = False
    return create_async_engine(database_url, connect_args=connect_args, echo=echo)


async def create_tables(engine: AsyncEngine) -> None:
    """Buat semua tabel sesuai metadata models."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def get_store_engine(request: Request) -> AsyncEngine:
    """
    FastAPI dependency untuk engine yang dibuat sekali saat startup (app.state.engine).
    Tidak ada session per request: setiap panggilan gateway memakai transaksinya sendiri.
    """
    return request.app.state.engine
