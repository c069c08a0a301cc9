"""
Storage Service
===============

Blob store lokal untuk signature dan dokumen pendukung, di-key berdasarkan path
relatif terhadap UPLOAD_ROOT. File I/O dijalankan lewat asyncio.to_thread.
"""

import asyncio
import logging
from pathlib import Path

from ..exceptions import ExternalServiceError, ValidationError

logger = logging.getLogger(__name__)


class StorageService:
    """Simpan, baca dan hapus blob berdasarkan key path"""

    def __init__(self, root: str):
        self.root = Path(root).resolve()

    def absolute_path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if path != self.root and self.root not in path.parents:
            raise ValidationError(f"Invalid storage path: {key}", field='file_path')
        return path

    async def save(self, key: str, content: bytes) -> str:
        path = self.absolute_path(key)

        def write():
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)

        try:
            await asyncio.to_thread(write)
        except OSError as e:
            logger.error(f"Failed to write blob {key}: {e}")
            raise ExternalServiceError('STORAGE', f"Failed to save file: {e}") from e
        logger.info(f"Stored blob {key} ({len(content)} bytes)")
        return key

    async def read(self, key: str) -> bytes:
        path = self.absolute_path(key)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError as e:
            raise ExternalServiceError('STORAGE', f"File not found: {key}", status_code=404) from e
        except OSError as e:
            logger.error(f"Failed to read blob {key}: {e}")
            raise ExternalServiceError('STORAGE', f"Failed to read file: {e}") from e

    async def delete(self, key: str) -> bool:
        """Hapus blob; False jika memang tidak ada"""
        path = self.absolute_path(key)
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            logger.warning(f"Blob {key} already missing on delete")
            return False
        except OSError as e:
            logger.error(f"Failed to delete blob {key}: {e}")
            raise ExternalServiceError('STORAGE', f"Failed to delete file: {e}") from e
        return True

    async def exists(self, key: str) -> bool:
        path = self.absolute_path(key)
        return await asyncio.to_thread(path.is_file)
