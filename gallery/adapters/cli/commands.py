"""CLI command implementations for gallery account management.

Provides admin actions through a command-line interface.

This adapter maps CLI commands (delete, show, audit) to the AccountDeletionPort
and the repositories. It handles CLI-specific formatting and error reporting.
"""

import logging
from typing import Any

from gallery.adapters.audit.sqlite import SQLiteAuditStore
from gallery.core.models import Organization, OrphanPackagePolicy, User
from gallery.core.ports import AccountDeletionPort, PackageServicePort, UserRepositoryPort

logger = logging.getLogger(__name__)


class CLICommandHandler:
    """Handles CLI commands by delegating to the account deletion port.

    Accounts are looked up by username; results are returned as
    JSON-serializable dictionaries with a ``status`` of "success" or "error".
    """

    def __init__(
        self,
        deletion: AccountDeletionPort,
        users: UserRepositoryPort,
        packages: PackageServicePort,
        audit_store: SQLiteAuditStore | None = None,
    ):
        """Initialize the CLI command handler.

        Args:
            deletion: AccountDeletionPort implementation to execute deletions.
            users: Repository used to resolve usernames.
            packages: Package service used to summarize accounts.
            audit_store: Audit store that supports reading records back.
        """
        self.deletion = deletion
        self.users = users
        self.packages = packages
        self.audit_store = audit_store

    async def _require_user(self, username: str) -> User:
        user = await self.users.get_by_username(username)
        if user is None:
            raise ValueError(f"Account {username} not found")
        return user

    async def delete_account(
        self,
        username: str,
        admin_username: str,
        commit_as_transaction: bool = True,
        orphan_policy: str = OrphanPackagePolicy.DO_NOT_ALLOW_ORPHANS.value,
        verbose: bool = False,
    ) -> dict[str, Any]:
        """Delete an account via CLI.

        Args:
            username: Account to delete.
            admin_username: Account executing the deletion.
            commit_as_transaction: Run the deletion in one transaction.
            orphan_policy: OrphanPackagePolicy value.
            verbose: If True, log additional information.

        Returns:
            Dictionary with status and message.
        """
        try:
            policy = OrphanPackagePolicy(orphan_policy)
        except ValueError:
            valid = ", ".join(p.value for p in OrphanPackagePolicy)
            return {
                "status": "error",
                "operation": "delete",
                "username": username,
                "message": f"Invalid orphan policy: {orphan_policy}. Valid: {valid}",
            }

        try:
            user = await self._require_user(username)
            admin = await self._require_user(admin_username)

            result = await self.deletion.delete_account(
                user, admin, commit_as_transaction, policy
            )

            if verbose:
                logger.info(
                    f"Delete requested for {username}",
                    extra={
                        "admin_username": admin_username,
                        "orphan_policy": policy.value,
                        "success": result.success,
                        "verbose": True,
                    },
                )

            return {
                "status": "success" if result.success else "error",
                "operation": "delete",
                "username": result.account_name,
                "message": result.description,
            }

        except ValueError as e:
            logger.error(f"Failed to delete account: {e}")
            return {
                "status": "error",
                "operation": "delete",
                "username": username,
                "message": str(e),
            }

    async def show_account(self, username: str) -> dict[str, Any]:
        """Summarize an account via CLI.

        Returns:
            Dictionary with the account summary under ``account``.
        """
        try:
            user = await self._require_user(username)
        except ValueError as e:
            return {"status": "error", "operation": "show", "message": str(e)}

        packages = await self.packages.find_packages_by_any_matching_owner(
            user, include_unlisted=True
        )
        owned = sorted(
            {
                p.package_registration.id
                for p in packages
                if p.package_registration is not None
                and p.package_registration.is_owner(user)
            }
        )

        account: dict[str, Any] = {
            "username": user.username,
            "type": "organization" if user.is_organization else "user",
            "confirmed": user.confirmed,
            "deleted": user.is_deleted,
            "packages": owned,
            "reserved_namespaces": [ns.value for ns in user.reserved_namespaces],
            "credentials": len(user.credentials),
            "security_policies": [p.name for p in user.security_policies],
            "organizations": [
                {"name": m.organization.username, "admin": m.is_admin}
                for m in user.organizations
            ],
        }
        if isinstance(user, Organization):
            account["members"] = [
                {"name": m.member.username, "admin": m.is_admin} for m in user.members
            ]

        return {"status": "success", "operation": "show", "account": account}

    async def get_audit_records(
        self, username: str | None = None, limit: int = 20
    ) -> dict[str, Any]:
        """List audit records via CLI.

        Returns:
            Dictionary with records under ``records``.
        """
        if self.audit_store is None:
            return {
                "status": "error",
                "operation": "audit",
                "message": "Audit records can only be read with the sqlite audit backend",
            }

        records = await self.audit_store.get_records(username=username, limit=limit)
        return {
            "status": "success",
            "operation": "audit",
            "count": len(records),
            "records": [
                {
                    "action": r.action,
                    "username": r.username,
                    "admin_username": r.admin_username,
                    "status": r.status.value,
                    "created_at": r.created_at.isoformat(),
                }
                for r in records
            ],
        }
