"""
Persistence Gateway
===================

Akses row-level ke store relasional melalui async SQLAlchemy Core.

Setiap method berjalan di transaksinya sendiri (satu statement per ``engine.begin()``),
sama seperti store yang hanya bisa diakses lewat network API tanpa transaksi lintas
statement. Urutan write multi-langkah dan kompensasinya adalah tanggung jawab caller.

Row keluar-masuk gateway sebagai ``dict`` dengan key = nama kolom.

Filter berupa dict ``{'field': value}`` atau ``{'field__op': value}`` dengan op:
``eq, ne, gt, gte, lt, lte, in, ilike, is_null``. ``any_of`` adalah list filter dict
yang digabung dengan OR. Ordering berupa list ``'field'`` / ``'-field'`` (descending).
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union
from datetime import datetime
import logging

from sqlalchemy import DateTime, and_, delete, func, insert, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from .exceptions import StoreError
from ..models.base import generate_uuid

logger = logging.getLogger(__name__)

Row = Dict[str, Any]
Filters = Optional[Dict[str, Any]]

_OPERATORS = {
    'eq': lambda column, value: column == value,
    'ne': lambda column, value: column != value,
    'gt': lambda column, value: column > value,
    'gte': lambda column, value: column >= value,
    'lt': lambda column, value: column < value,
    'lte': lambda column, value: column <= value,
    'in': lambda column, value: column.in_(list(value)),
    'ilike': lambda column, value: column.ilike(value),
    'is_null': lambda column, value: column.is_(None) if value else column.is_not(None),
}


class PersistenceGateway:
    """CRUD, filter dan count terhadap tabel-tabel model"""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    # ------------------------------------------------------------------ reads

    async def find(self, model, entity_id: str) -> Optional[Row]:
        """Ambil satu row berdasarkan id; None jika tidak ada"""
        return await self.find_one(model, {'id': entity_id})

    async def find_one(self, model, filters: Filters = None,
                       order_by: Sequence[str] = ()) -> Optional[Row]:
        rows, _ = await self.find_many(model, filters, order_by=order_by, limit=1)
        return rows[0] if rows else None

    async def find_many(self, model, filters: Filters = None, any_of: Optional[List[Dict[str, Any]]] = None,
                        order_by: Sequence[str] = (), limit: Optional[int] = None,
                        offset: Optional[int] = None, with_count: bool = False) -> Tuple[List[Row], Optional[int]]:
        """
        Ambil banyak row. Jika ``with_count`` True, total (tanpa limit/offset)
        dihitung dengan request terpisah dan dikembalikan sebagai elemen kedua.
        """
        table = model.__table__
        query = select(table)
        where = self._where(table, filters, any_of)
        if where is not None:
            query = query.where(where)
        for key in order_by:
            column = table.c[key.lstrip('-')]
            query = query.order_by(column.desc() if key.startswith('-') else column.asc())
        if limit is not None:
            query = query.limit(limit)
        if offset:
            query = query.offset(offset)

        rows = await self._fetch(table.name, query)
        total = await self.count(model, filters, any_of) if with_count else None
        return rows, total

    async def count(self, model, filters: Filters = None,
                    any_of: Optional[List[Dict[str, Any]]] = None) -> int:
        table = model.__table__
        query = select(func.count()).select_from(table)
        where = self._where(table, filters, any_of)
        if where is not None:
            query = query.where(where)
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(query)
                return int(result.scalar() or 0)
        except SQLAlchemyError as e:
            logger.error(f"Count on {table.name} failed: {e}")
            raise StoreError(f"Count on {table.name} failed", details={'table': table.name}) from e

    # ----------------------------------------------------------------- writes

    async def insert(self, model, rows: Union[Row, List[Row]]) -> Union[Row, List[Row]]:
        """
        Insert satu row (dict) atau bulk (list of dict) dalam satu statement.
        Id, timestamps dan default kolom diisi di sisi client sehingga row yang
        dikembalikan identik dengan yang tersimpan.
        """
        table = model.__table__
        single = isinstance(rows, dict)
        prepared = self._prepare_rows(table, [rows] if single else list(rows))
        if not prepared:
            return [] if not single else {}

        try:
            async with self.engine.begin() as conn:
                await conn.execute(insert(table), prepared)
        except SQLAlchemyError as e:
            logger.error(f"Insert into {table.name} failed: {e}")
            raise StoreError(f"Insert into {table.name} failed", details={'table': table.name}) from e

        return prepared[0] if single else prepared

    async def update(self, model, values: Row, filters: Filters) -> List[Row]:
        """Update row yang cocok dengan filter; mengembalikan row hasil update"""
        table = model.__table__
        values = dict(values)
        if 'updated_at' in table.c and 'updated_at' not in values:
            values['updated_at'] = datetime.now()

        query = update(table).values(**values).returning(*table.c)
        where = self._where(table, filters)
        if where is not None:
            query = query.where(where)

        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(query)
                return [dict(row._mapping) for row in result.fetchall()]
        except SQLAlchemyError as e:
            logger.error(f"Update on {table.name} failed: {e}")
            raise StoreError(f"Update on {table.name} failed", details={'table': table.name}) from e

    async def delete(self, model, filters: Filters) -> int:
        """Delete row yang cocok dengan filter; mengembalikan jumlah row terhapus"""
        table = model.__table__
        query = delete(table)
        where = self._where(table, filters)
        if where is not None:
            query = query.where(where)

        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(query)
                return result.rowcount or 0
        except SQLAlchemyError as e:
            logger.error(f"Delete on {table.name} failed: {e}")
            raise StoreError(f"Delete on {table.name} failed", details={'table': table.name}) from e

    # ---------------------------------------------------------------- helpers

    async def _fetch(self, table_name: str, query) -> List[Row]:
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(query)
                return [dict(row._mapping) for row in result.fetchall()]
        except SQLAlchemyError as e:
            logger.error(f"Select on {table_name} failed: {e}")
            raise StoreError(f"Select on {table_name} failed", details={'table': table_name}) from e

    def _where(self, table, filters: Filters = None, any_of: Optional[List[Dict[str, Any]]] = None):
        clauses = self._clauses(table, filters or {})
        if any_of:
            alternatives = [and_(*self._clauses(table, group)) for group in any_of if group]
            if alternatives:
                clauses.append(or_(*alternatives))
        return and_(*clauses) if clauses else None

    def _clauses(self, table, filters: Dict[str, Any]) -> list:
        clauses = []
        for key, value in filters.items():
            field, _, op = key.partition('__')
            op = op or 'eq'
            if field not in table.c:
                raise ValueError(f"Unknown column '{field}' on {table.name}")
            if op not in _OPERATORS:
                raise ValueError(f"Unsupported filter operator '{op}'")
            clauses.append(_OPERATORS[op](table.c[field], value))
        return clauses

    def _prepare_rows(self, table, rows: Iterable[Row]) -> List[Row]:
        now = datetime.now()
        prepared = []
        for row in rows:
            row = dict(row)
            for column in table.c:
                if column.name in row or column.default is None:
                    continue
                if column.default.is_scalar:
                    row[column.name] = column.default.arg
                elif column.name == 'id':
                    row['id'] = generate_uuid()
                elif isinstance(column.type, DateTime):
                    row[column.name] = now
            prepared.append(row)

        # executemany butuh key yang seragam untuk setiap row
        keys = set().union(*(row.keys() for row in prepared)) if prepared else set()
        for row in prepared:
            for key in keys - row.keys():
                row[key] = None
        return prepared
