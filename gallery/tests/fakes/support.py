"""Fake SupportRequestPort implementation for testing."""

from gallery.core.models import Issue, IssueStatus
from gallery.core.ports import SupportRequestPort


class FakeSupportRequestPort(SupportRequestPort):
    """In-memory support issues for testing."""

    def __init__(self, issues: list[Issue] | None = None):
        self.issues: list[Issue] = list(issues or [])
        self.delete_calls: list[str] = []

    async def get_issues(
        self,
        assigned_to: int | None = None,
        reason: str | None = None,
        issue_status: IssueStatus | None = None,
        created_by: str | None = None,
    ) -> list[Issue]:
        return [
            i
            for i in self.issues
            if (issue_status is None or i.issue_status == issue_status)
            and (created_by is None or i.created_by == created_by)
        ]

    async def delete_support_requests(self, created_by: str) -> bool:
        self.delete_calls.append(created_by)
        self.issues = [i for i in self.issues if i.created_by != created_by]
        return True
