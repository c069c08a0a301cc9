# manage.py

# Load .env sebelum settings dibaca
from dotenv import load_dotenv
load_dotenv()

import asyncio
import typer
import uvicorn
from typing import Optional
from typing_extensions import Annotated

# Typer CLI untuk tugas administrasi project FastAPI.
cli = typer.Typer(
    help="Manajemen CLI untuk BA Digital API."
)

# --- Database Commands ---

@cli.command()
def init_db():
    """
    Inisialisasi database dan membuat semua tabel.
    Membaca metadata dari semua model di ba_digital.models.
    """
    # Import dependency di dalam fungsi agar tidak dieksekusi saat startup
    from ba_digital.config import settings
    from ba_digital.database import build_engine, create_tables

    async def run_init():
        engine = build_engine(settings.DATABASE_URL, settings.SQL_ECHO)
        try:
            typer.echo("Membuat semua tabel sesuai models...")
            await create_tables(engine)
        finally:
            await engine.dispose()
        typer.secho("✅ Database berhasil diinisialisasi.", fg=typer.colors.GREEN)

    asyncio.run(run_init())

# --- User Management Commands ---

@cli.command()
def create_user(
    name: Annotated[str, typer.Argument(help="Nama user.")],
    email: Annotated[str, typer.Argument(help="Email user (harus unik).")],
    password: Annotated[str, typer.Argument(help="Password user.")],
    role: Annotated[str, typer.Option(help="Role: admin, vendor, vendor_barang, vendor_jasa, pic_gudang, approver.")] = "admin",
    company: Annotated[Optional[str], typer.Option(help="Nama perusahaan (vendor).")] = None
):
    """
    Membuat user baru (default role 'admin').
    """
    import bcrypt
    from ba_digital.config import settings
    from ba_digital.database import build_engine, create_tables
    from ba_digital.models import User
    from ba_digital.models.enums import Role
    from ba_digital.services import PersistenceGateway
    from ba_digital.services.exceptions import StoreError

    try:
        role = Role(role).value
    except ValueError:
        typer.secho(f"🔥 Gagal: role '{role}' tidak dikenal", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    async def add_user():
        engine = build_engine(settings.DATABASE_URL, settings.SQL_ECHO)
        try:
            await create_tables(engine)
            gateway = PersistenceGateway(engine)
            if await gateway.find_one(User, {'email': email}):
                typer.secho(f"🔥 Gagal: email '{email}' sudah terdaftar", fg=typer.colors.RED)
                raise typer.Exit(code=1)
            password_hash = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')
            user = await gateway.insert(User, {
                'name': name,
                'email': email,
                'password_hash': password_hash,
                'role': role,
                'company': company,
                'is_active': True,
            })
            typer.secho(f"✅ User '{user['email']}' ({role}) berhasil dibuat! id={user['id']}", fg=typer.colors.GREEN)
        except StoreError as e:
            typer.secho(f"🔥 Gagal membuat user: {e.message}", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        finally:
            await engine.dispose()

    asyncio.run(add_user())


@cli.command()
def create_token(
    user_id: Annotated[str, typer.Argument(help="ID user yang akan dijadikan claim 'sub'.")],
    expires_hours: Annotated[int, typer.Option(help="Masa berlaku token (jam).")] = 24
):
    """
    Membuat bearer token JWT untuk development/testing.
    """
    from datetime import datetime, timedelta, timezone
    import jwt
    from ba_digital.config import settings

    payload = {'sub': user_id, 'exp': datetime.now(timezone.utc) + timedelta(hours=expires_hours)}
    typer.echo(jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM))


# --- Server Commands ---

@cli.command()
def run(
    host: str = "127.0.0.1",
    port: int = 8000,
    reload: bool = True
):
    """
    Menjalankan development server Uvicorn.
    """
    typer.echo(f"🚀 Menjalankan server di http://{host}:{port}")
    # Menunjuk ke factory 'app' di main.py
    uvicorn.run("main:app", host=host, port=port, reload=reload, factory=True)


if __name__ == "__main__":
    cli()
