"""Unit tests for StdoutAuditingAdapter."""

from datetime import UTC, datetime

import pytest

from gallery.adapters.audit.stdout import StdoutAuditingAdapter
from gallery.core.models import AuditActionStatus, DeleteAccountAuditRecord


@pytest.fixture
def record() -> DeleteAccountAuditRecord:
    return DeleteAccountAuditRecord(
        username="alice",
        admin_username="admin",
        status=AuditActionStatus.SUCCESS,
        created_at=datetime(2024, 3, 1, 12, 0, 0, tzinfo=UTC),
    )


@pytest.mark.asyncio
async def test_single_line_output(record, capsys):
    """Default output is one line per record."""
    await StdoutAuditingAdapter().save_audit_record(record)

    output = capsys.readouterr().out
    assert output == (
        "[AUDIT] 2024-03-01T12:00:00+00:00 DeleteAccount alice by admin: OK\n"
    )


@pytest.mark.asyncio
async def test_failure_marker(capsys):
    record = DeleteAccountAuditRecord("bob", "admin", AuditActionStatus.FAILURE)

    await StdoutAuditingAdapter().save_audit_record(record)

    assert capsys.readouterr().out.rstrip().endswith("bob by admin: FAILED")


@pytest.mark.asyncio
async def test_verbose_block(record, capsys):
    await StdoutAuditingAdapter(verbose=True).save_audit_record(record)

    output = capsys.readouterr().out
    assert "AUDIT RECORD" in output
    assert "Account: alice" in output
    assert "Executed By: admin" in output
    assert "Status: SUCCESS" in output
