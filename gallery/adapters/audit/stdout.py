"""Stdout audit adapter.

Implements AuditingPort by printing audit records to the terminal.
"""

import asyncio

from gallery.core.models import AuditActionStatus, DeleteAccountAuditRecord
from gallery.core.ports import AuditingPort


class StdoutAuditingAdapter(AuditingPort):
    """Prints audit records to stdout, one line per record."""

    def __init__(self, verbose: bool = False):
        """Initialize stdout audit adapter.

        Args:
            verbose: If True, print a framed block instead of a single line.
        """
        self.verbose = verbose

    async def save_audit_record(self, record: DeleteAccountAuditRecord) -> None:
        if self.verbose:
            await asyncio.to_thread(print, self._format_block(record))
        else:
            await asyncio.to_thread(print, self._format_line(record))

    @staticmethod
    def _format_line(record: DeleteAccountAuditRecord) -> str:
        marker = "OK" if record.status == AuditActionStatus.SUCCESS else "FAILED"
        return (
            f"[AUDIT] {record.created_at.isoformat()} {record.action} "
            f"{record.username} by {record.admin_username}: {marker}"
        )

    @staticmethod
    def _format_block(record: DeleteAccountAuditRecord) -> str:
        lines = [
            "=" * 60,
            "AUDIT RECORD",
            "=" * 60,
            f"Action: {record.action}",
            f"Account: {record.username}",
            f"Executed By: {record.admin_username}",
            f"Status: {record.status.value.upper()}",
            f"Time: {record.created_at.isoformat()}",
            "=" * 60,
        ]
        return "\n".join(lines)
