"""Chain store backed by a relational ``chain_entries`` table (SQLAlchemy Core)."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import (
    Column,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    or_,
    select,
)
from sqlalchemy.engine import Connection, Engine, Row
from sqlalchemy.exc import SQLAlchemyError

from ..errors import EmptyChain, NotFound, StoreError
from ..schemas import ChainEntry
from .base import ChainStore

logger = logging.getLogger(__name__)

metadata = MetaData()

# ``id`` is the chain sequence; the other column names match the legacy
# schema so an existing table can be queried in place.
chain_entries = Table(
    "chain_entries",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("data", Text, nullable=False),
    Column("prevhash", String(128), nullable=True),
    Column("currhash", String(128), nullable=False, unique=True, index=True),
    Column("summaryhash", String(128), nullable=True, unique=True, index=True),
    Column("created", String(64), nullable=False, default=""),
    Column("publickey", String(128), nullable=False, default=""),
    Column("signature", String(128), nullable=False, default=""),
)

_ENTRY_COLUMNS = (
    chain_entries.c.id,
    chain_entries.c.data,
    chain_entries.c.prevhash,
    chain_entries.c.currhash,
    chain_entries.c.summaryhash,
    chain_entries.c.created,
    chain_entries.c.publickey,
    chain_entries.c.signature,
)


def create_schema(engine: Engine) -> None:
    """Create the ``chain_entries`` table when it does not exist."""

    metadata.create_all(engine)


def _row_to_entry(row: Row) -> ChainEntry:
    try:
        return ChainEntry.model_validate(dict(row._mapping))
    except PydanticValidationError as exc:
        raise StoreError(f"Malformed chain row id={row.id}") from exc


def _store_failure(action: str, exc: SQLAlchemyError) -> StoreError:
    """Log the driver error and return a message safe to sign and publish."""
    logger.error("Chain %s failed", action, exc_info=exc)
    return StoreError(f"Chain {action} failed.")


class SqlChainStore(ChainStore):
    """Answer chain queries from a SQL database.

    Args:
        engine: A SQLAlchemy engine or a database URL.

    Each operation runs on its own connection inside one transaction, so a
    multi-statement read (``entries_after``) resolves its anchor and scans the
    remaining rows against the same database state the isolation level
    permits (at least read committed).
    """

    def __init__(self, engine: Engine | str) -> None:
        self.engine = create_engine(engine) if isinstance(engine, str) else engine

    def _resolve(self, conn: Connection, hash_: str) -> ChainEntry:
        hash_col = chain_entries.c
        stmt = (
            select(*_ENTRY_COLUMNS)
            .where(or_(hash_col.currhash == hash_, hash_col.summaryhash == hash_))
            .order_by(hash_col.id.asc())
            .limit(2)
        )
        rows: Sequence[Row] = conn.execute(stmt).fetchall()
        if not rows:
            raise NotFound()
        if len(rows) > 1:
            logger.warning(
                "Hash matches more than one chain entry; using the oldest",
                extra={"hash": hash_, "sequences": [row.id for row in rows]},
            )
        return _row_to_entry(rows[0])

    def entry_by_hash(self, hash_: str) -> ChainEntry:
        try:
            with self.engine.connect() as conn, conn.begin():
                return self._resolve(conn, hash_)
        except SQLAlchemyError as exc:
            raise _store_failure("lookup", exc) from exc

    def last_entry(self) -> tuple[str, str | None]:
        stmt = (
            select(chain_entries.c.currhash, chain_entries.c.summaryhash)
            .order_by(chain_entries.c.id.desc())
            .limit(1)
        )
        try:
            with self.engine.connect() as conn, conn.begin():
                row = conn.execute(stmt).first()
        except SQLAlchemyError as exc:
            raise _store_failure("lookup", exc) from exc
        if row is None:
            raise EmptyChain()
        return row.currhash, row.summaryhash or None

    def entries_after(self, hash_: str) -> list[ChainEntry]:
        try:
            with self.engine.connect() as conn, conn.begin():
                anchor = self._resolve(conn, hash_)
                stmt = (
                    select(*_ENTRY_COLUMNS)
                    .where(chain_entries.c.id > anchor.sequence)
                    .order_by(chain_entries.c.id.asc())
                )
                rows = conn.execute(stmt).fetchall()
        except SQLAlchemyError as exc:
            raise _store_failure("scan", exc) from exc
        return [_row_to_entry(row) for row in rows]

    def all_entries(self) -> list[ChainEntry]:
        stmt = select(*_ENTRY_COLUMNS).order_by(chain_entries.c.id.asc())
        try:
            with self.engine.connect() as conn, conn.begin():
                rows = conn.execute(stmt).fetchall()
        except SQLAlchemyError as exc:
            raise _store_failure("scan", exc) from exc
        return [_row_to_entry(row) for row in rows]
