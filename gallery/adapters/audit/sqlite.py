"""SQLite audit store adapter.

Implements AuditingPort using SQLite with aiosqlite for async access.
Keeps an append-only trail of account deletion attempts.
"""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import aiosqlite

from gallery.core.models import AuditActionStatus, DeleteAccountAuditRecord
from gallery.core.ports import AuditingPort

logger = logging.getLogger(__name__)


class SQLiteAuditStore(AuditingPort):
    """SQLite-backed audit trail with connection pooling and async access."""

    def __init__(self, db_path: str, pool_size: int = 5):
        """Initialize SQLite audit store with connection pooling.

        Args:
            db_path: Path to SQLite database file.
            pool_size: Number of connections to maintain in the pool.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._pool: list[aiosqlite.Connection] = []
        self._pool_lock = asyncio.Lock()
        self._pool_size = pool_size
        self._schema_initialized = False

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get a connection from the pool or create a new one."""
        if self._pool:
            return self._pool.pop()
        return await aiosqlite.connect(str(self.db_path))

    async def _return_connection(self, conn: aiosqlite.Connection) -> None:
        """Return a connection to the pool."""
        async with self._pool_lock:
            if len(self._pool) < self._pool_size:
                self._pool.append(conn)
            else:
                await conn.close()

    async def close_pool(self) -> None:
        """Close all pooled connections."""
        async with self._pool_lock:
            for conn in self._pool:
                await conn.close()
            self._pool.clear()

    async def _init_schema(self) -> None:
        """Initialize database schema on first use.

        Only runs once per instance. Subsequent calls are no-ops.
        """
        if self._schema_initialized:
            return

        conn = await self._get_connection()
        try:
            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS audit_records (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    action TEXT NOT NULL,
                    username TEXT NOT NULL,
                    admin_username TEXT NOT NULL,
                    status TEXT NOT NULL,
                    created_at TIMESTAMP NOT NULL
                )
                """
            )
            await conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_audit_username ON audit_records(username)"
            )
            await conn.commit()
            self._schema_initialized = True
        finally:
            await self._return_connection(conn)

    async def save_audit_record(self, record: DeleteAccountAuditRecord) -> None:
        """Append an audit record."""
        await self._init_schema()

        conn = await self._get_connection()
        try:
            await conn.execute(
                """
                INSERT INTO audit_records
                (action, username, admin_username, status, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    record.action,
                    record.username,
                    record.admin_username,
                    record.status.value,
                    record.created_at.isoformat(),
                ),
            )
            await conn.commit()
        finally:
            await self._return_connection(conn)

        logger.debug(
            f"Saved audit record for {record.username}",
            extra={"username": record.username, "status": record.status.value},
        )

    async def get_records(
        self, username: str | None = None, limit: int = 100
    ) -> list[DeleteAccountAuditRecord]:
        """Return audit records, newest first.

        Args:
            username: Only records about this account (optional).
            limit: Maximum number of records to return.
        """
        await self._init_schema()

        conn = await self._get_connection()
        try:
            if username is None:
                cursor = await conn.execute(
                    """
                    SELECT action, username, admin_username, status, created_at
                    FROM audit_records ORDER BY id DESC LIMIT ?
                    """,
                    (limit,),
                )
            else:
                cursor = await conn.execute(
                    """
                    SELECT action, username, admin_username, status, created_at
                    FROM audit_records WHERE username = ? ORDER BY id DESC LIMIT ?
                    """,
                    (username, limit),
                )
            rows = await cursor.fetchall()
            return [self._row_to_record(row) for row in rows]
        finally:
            await self._return_connection(conn)

    @staticmethod
    def _row_to_record(row: tuple[Any, ...]) -> DeleteAccountAuditRecord:
        """Convert a database row to an audit record.

        Raises:
            ValueError: If row contains invalid data.
        """
        action, username, admin_username, status, created_at = row
        try:
            created = datetime.fromisoformat(created_at)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid date format: {e}") from e
        return DeleteAccountAuditRecord(
            username=username,
            admin_username=admin_username,
            status=AuditActionStatus(status),
            created_at=created,
            action=action,
        )
