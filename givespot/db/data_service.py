"""
Table-scoped query façade: the only path services use to reach the database.

Operations are addressed by table and column *name* rather than ORM class so
the listing and session services can express queries the way a hosted
table API would::

    rows = await data.select(
        "items",
        ["id", "price", "charities.name"],
        filters=[Filter.eq("status", "active"), Filter.lte("price", 10)],
        order=Order("created_at", descending=True),
    )

Dotted columns (``"charities.name"``) read the related table through its
foreign key and come back nested: ``{"price": 5.0, "charities": {"name": ...}}``.
All failures surface as :class:`DataServiceError`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from givespot.db.base import Base

# Register every table on Base.metadata
from givespot.models import charity, item  # noqa: F401, E402

logger = logging.getLogger(__name__)

# Error codes
UNIQUE_VIOLATION = "unique_violation"
CONSTRAINT_VIOLATION = "constraint_violation"
BAD_REQUEST = "bad_request"
DATABASE_ERROR = "database_error"

_PG_UNIQUE_VIOLATION = "23505"


class DataServiceError(Exception):
    def __init__(self, message: str, code: str = DATABASE_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


@dataclass(frozen=True)
class Filter:
    column: str
    op: str  # eq | prefix | lte
    value: Any

    @classmethod
    def eq(cls, column: str, value: Any) -> Filter:
        return cls(column, "eq", value)

    @classmethod
    def prefix(cls, column: str, value: str) -> Filter:
        """Case-insensitive "starts with"."""
        return cls(column, "prefix", value)

    @classmethod
    def lte(cls, column: str, value: Any) -> Filter:
        return cls(column, "lte", value)


@dataclass(frozen=True)
class Order:
    column: str
    descending: bool = False


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code == _PG_UNIQUE_VIOLATION:
        return True
    return "unique" in str(orig).lower()


class DataService:
    def __init__(self, session: AsyncSession, metadata: sa.MetaData = Base.metadata) -> None:
        self._session = session
        self._metadata = metadata

    # ── Name resolution ─────────────────────────────────────────────
    def _table(self, name: str) -> sa.Table:
        table = self._metadata.tables.get(name)
        if table is None:
            raise DataServiceError(f"Unknown table {name!r}", code=BAD_REQUEST)
        return table

    @staticmethod
    def _column(table: sa.Table, name: str) -> sa.Column:
        column = table.c.get(name)
        if column is None:
            raise DataServiceError(
                f"Column {name!r} does not exist on {table.name!r}", code=BAD_REQUEST
            )
        return column

    def _check_keys(self, table: sa.Table, record: Mapping[str, Any]) -> None:
        for key in record:
            self._column(table, key)

    @staticmethod
    def _condition(column: sa.Column, flt: Filter):
        if flt.op == "eq":
            return column == flt.value
        if flt.op == "prefix":
            return column.istartswith(str(flt.value), autoescape=True)
        if flt.op == "lte":
            return column <= flt.value
        raise DataServiceError(f"Unsupported filter operator {flt.op!r}", code=BAD_REQUEST)

    # ── Operations ──────────────────────────────────────────────────
    async def select(
        self,
        table: str,
        columns: Sequence[str] | None = None,
        filters: Iterable[Filter] = (),
        order: Order | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        base = self._table(table)
        joined: dict[str, sa.Table] = {}

        def resolve(name: str) -> sa.Column:
            if "." in name:
                related, column = name.split(".", 1)
                other = joined.setdefault(related, self._table(related))
                return self._column(other, column)
            return self._column(base, name)

        names = list(columns) if columns else [c.name for c in base.c]
        labels = [f"c{i}" for i in range(len(names))]
        selected = [resolve(n).label(lbl) for n, lbl in zip(names, labels)]
        conditions = [self._condition(resolve(f.column), f) for f in filters]
        order_by = None
        if order is not None:
            col = resolve(order.column)
            order_by = col.desc() if order.descending else col.asc()

        from_clause: sa.FromClause = base
        for other in joined.values():
            from_clause = from_clause.outerjoin(other)

        stmt = sa.select(*selected).select_from(from_clause).where(*conditions)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        if limit is not None:
            stmt = stmt.limit(limit)

        try:
            result = await self._session.execute(stmt)
            rows = result.mappings().all()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            logger.error("Select on %s failed: %s", table, exc)
            raise DataServiceError(str(exc)) from exc

        out: list[dict[str, Any]] = []
        for row in rows:
            record: dict[str, Any] = {}
            for name, lbl in zip(names, labels):
                if "." in name:
                    related, column = name.split(".", 1)
                    record.setdefault(related, {})[column] = row[lbl]
                else:
                    record[name] = row[lbl]
            out.append(record)
        return out

    async def insert(self, table: str, record: Mapping[str, Any]) -> dict[str, Any]:
        target = self._table(table)
        self._check_keys(target, record)
        stmt = sa.insert(target).values(**record).returning(*target.c)
        try:
            result = await self._session.execute(stmt)
            row = dict(result.mappings().one())
            await self._session.commit()
        except IntegrityError as exc:
            await self._session.rollback()
            code = UNIQUE_VIOLATION if _is_unique_violation(exc) else CONSTRAINT_VIOLATION
            raise DataServiceError(str(exc.orig), code=code) from exc
        except SQLAlchemyError as exc:
            await self._session.rollback()
            logger.error("Insert into %s failed: %s", table, exc)
            raise DataServiceError(str(exc)) from exc
        return row

    async def update(
        self,
        table: str,
        patch: Mapping[str, Any],
        filters: Iterable[Filter],
    ) -> dict[str, Any] | None:
        """Apply *patch* to matching rows; return the first updated row or ``None``."""
        target = self._table(table)
        self._check_keys(target, patch)
        conditions = [self._condition(self._column(target, f.column), f) for f in filters]
        if not conditions:
            raise DataServiceError("Refusing to update without filters", code=BAD_REQUEST)

        stmt = sa.update(target).where(*conditions).values(**patch).returning(*target.c)
        try:
            result = await self._session.execute(stmt)
            rows = result.mappings().all()
            await self._session.commit()
        except IntegrityError as exc:
            await self._session.rollback()
            code = UNIQUE_VIOLATION if _is_unique_violation(exc) else CONSTRAINT_VIOLATION
            raise DataServiceError(str(exc.orig), code=code) from exc
        except SQLAlchemyError as exc:
            await self._session.rollback()
            logger.error("Update of %s failed: %s", table, exc)
            raise DataServiceError(str(exc)) from exc
        return dict(rows[0]) if rows else None

    async def ping(self) -> bool:
        """Round-trip a trivial query; ``False`` when the database is unreachable."""
        try:
            await self._session.execute(sa.text("SELECT 1"))
        except SQLAlchemyError as exc:
            logger.error("Database connection failed: %s", exc)
            return False
        return True
