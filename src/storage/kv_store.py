"""Key-value persistence for liked recipes and feedback.

Two implementations of the same small interface (get / set / delete /
get_by_prefix):
- InMemoryKVStore: process-local dict, for demos and tests
- SqlKVStore: one SQLAlchemy table, SQLite by default, PostgreSQL via DATABASE_URL

Operations are independent and non-transactional; concurrent writes to the same
key are last-write-wins.
"""

import os
import threading
from typing import Any, Optional, Protocol

from sqlalchemy import JSON, Column, MetaData, String, Table, create_engine, delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine

from src.utils.config import config
from src.utils.logger import logger


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def delete(self, key: str) -> None:
        ...

    def get_by_prefix(self, prefix: str) -> list[Any]:
        ...


class InMemoryKVStore:
    """Dict-backed store. Values are returned in key order for prefix scans."""

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def get_by_prefix(self, prefix: str) -> list[Any]:
        with self._lock:
            return [self._data[key] for key in sorted(self._data) if key.startswith(prefix)]


metadata = MetaData()

kv_table = Table(
    "kv_store",
    metadata,
    Column("key", String(255), primary_key=True),
    Column("value", JSON, nullable=False),
)


def _escape_like(prefix: str) -> str:
    return prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqlKVStore:
    """SQLAlchemy-backed store with upsert semantics on set()."""

    def __init__(self, url: Optional[str] = None, engine: Optional[Engine] = None) -> None:
        """Initialize the store and create its table if missing.

        Args:
            url: SQLAlchemy database URL. Defaults to config.database_url.
            engine: Pre-built engine (takes precedence over url).
        """
        if engine is None:
            url = url or config.database_url
            if url.startswith("sqlite:///") and not url.startswith("sqlite:///:memory:"):
                directory = os.path.dirname(url[len("sqlite:///"):])
                if directory:
                    os.makedirs(directory, exist_ok=True)
            engine = create_engine(url)
        self.engine = engine
        metadata.create_all(self.engine)
        logger.info(f"Key-value store ready ({self.engine.dialect.name})")

    def _upsert(self, key: str, value: Any):
        dialect = self.engine.dialect.name
        if dialect == "postgresql":
            stmt = pg_insert(kv_table).values(key=key, value=value)
        elif dialect == "sqlite":
            stmt = sqlite_insert(kv_table).values(key=key, value=value)
        else:
            return None
        return stmt.on_conflict_do_update(index_elements=[kv_table.c.key], set_={"value": value})

    def get(self, key: str) -> Optional[Any]:
        with self.engine.connect() as conn:
            return conn.execute(select(kv_table.c.value).where(kv_table.c.key == key)).scalar_one_or_none()

    def set(self, key: str, value: Any) -> None:
        stmt = self._upsert(key, value)
        with self.engine.begin() as conn:
            if stmt is not None:
                conn.execute(stmt)
            else:
                conn.execute(delete(kv_table).where(kv_table.c.key == key))
                conn.execute(kv_table.insert().values(key=key, value=value))

    def delete(self, key: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(delete(kv_table).where(kv_table.c.key == key))

    def get_by_prefix(self, prefix: str) -> list[Any]:
        query = (
            select(kv_table.c.value)
            .where(kv_table.c.key.like(f"{_escape_like(prefix)}%", escape="\\"))
            .order_by(kv_table.c.key)
        )
        with self.engine.connect() as conn:
            return list(conn.execute(query).scalars())


def create_store() -> KeyValueStore:
    """Build the store selected by configuration."""
    if config.IN_MEMORY_STORE:
        logger.info("Using in-memory key-value store")
        return InMemoryKVStore()
    return SqlKVStore(config.database_url)
