"""Support request service over the in-memory gallery store."""

import logging

from gallery.adapters.store.memory import InMemoryGalleryStore
from gallery.core.models import Issue, IssueStatus
from gallery.core.ports import SupportRequestPort

logger = logging.getLogger(__name__)

# Replaces the editor name on history entries of issues that outlive the account
DELETED_ACCOUNT_EDITOR = "_deletedaccount"


class GallerySupportRequestService(SupportRequestPort):
    """Queries and purges support issues."""

    def __init__(self, store: InMemoryGalleryStore):
        self.store = store

    async def get_issues(
        self,
        assigned_to: int | None = None,
        reason: str | None = None,
        issue_status: IssueStatus | None = None,
        created_by: str | None = None,
    ) -> list[Issue]:
        # Assignment and reason are not tracked by this store
        return [
            i
            for i in self.store.data.issues
            if (issue_status is None or i.issue_status == issue_status)
            and (created_by is None or i.created_by == created_by)
        ]

    async def delete_support_requests(self, created_by: str) -> bool:
        """Delete issues opened by the account and scrub its history edits."""
        issues = self.store.data.issues
        removed = [i for i in issues if i.created_by == created_by]
        for issue in removed:
            issues.remove(issue)

        scrubbed = 0
        for issue in issues:
            for entry in issue.history_entries:
                if entry.edited_by == created_by:
                    entry.edited_by = DELETED_ACCOUNT_EDITOR
                    scrubbed += 1

        logger.info(
            f"Deleted {len(removed)} support request(s) of {created_by}",
            extra={"created_by": created_by, "removed": len(removed), "scrubbed": scrubbed},
        )
        await self.store.commit_changes()
        return True
