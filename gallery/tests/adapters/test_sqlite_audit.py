"""Integration tests for the SQLite audit store."""

from datetime import UTC, datetime
from pathlib import Path

import pytest

from gallery.adapters.audit.sqlite import SQLiteAuditStore
from gallery.core.models import AuditActionStatus, DeleteAccountAuditRecord


@pytest.fixture
async def audit_store(tmp_path: Path) -> SQLiteAuditStore:
    """Create a temporary SQLite audit store."""
    store = SQLiteAuditStore(str(tmp_path / "audit" / "audit.db"))
    yield store
    await store.close_pool()


def make_record(username: str, status: AuditActionStatus) -> DeleteAccountAuditRecord:
    return DeleteAccountAuditRecord(
        username=username,
        admin_username="admin",
        status=status,
        created_at=datetime(2024, 3, 1, 12, 0, 0, tzinfo=UTC),
    )


@pytest.mark.asyncio
async def test_saved_records_are_returned_newest_first(
    audit_store: SQLiteAuditStore,
) -> None:
    await audit_store.save_audit_record(make_record("alice", AuditActionStatus.SUCCESS))
    await audit_store.save_audit_record(make_record("bob", AuditActionStatus.FAILURE))

    records = await audit_store.get_records()

    assert [r.username for r in records] == ["bob", "alice"]
    assert records[0].status == AuditActionStatus.FAILURE
    assert records[1].created_at == datetime(2024, 3, 1, 12, 0, 0, tzinfo=UTC)
    assert records[1].action == "DeleteAccount"


@pytest.mark.asyncio
async def test_records_filtered_by_username_and_limited(
    audit_store: SQLiteAuditStore,
) -> None:
    for _ in range(3):
        await audit_store.save_audit_record(make_record("alice", AuditActionStatus.SUCCESS))
    await audit_store.save_audit_record(make_record("bob", AuditActionStatus.SUCCESS))

    assert len(await audit_store.get_records(username="alice")) == 3
    assert len(await audit_store.get_records(username="alice", limit=2)) == 2
    assert await audit_store.get_records(username="carol") == []


@pytest.mark.asyncio
async def test_records_survive_new_store_instance(tmp_path: Path) -> None:
    db_path = str(tmp_path / "audit.db")
    first = SQLiteAuditStore(db_path)
    await first.save_audit_record(make_record("alice", AuditActionStatus.SUCCESS))
    await first.close_pool()

    second = SQLiteAuditStore(db_path)
    try:
        records = await second.get_records()
    finally:
        await second.close_pool()

    assert [r.username for r in records] == ["alice"]


@pytest.mark.asyncio
async def test_invalid_timestamp_row_raises(audit_store: SQLiteAuditStore) -> None:
    await audit_store._init_schema()

    conn = await audit_store._get_connection()
    try:
        await conn.execute(
            """
            INSERT INTO audit_records
            (action, username, admin_username, status, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            ("DeleteAccount", "alice", "admin", "success", "not-a-timestamp"),
        )
        await conn.commit()
    finally:
        await audit_store._return_connection(conn)

    with pytest.raises(ValueError, match="Invalid date format"):
        await audit_store.get_records()
