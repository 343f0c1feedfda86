"""Port interfaces for gallery account management.

These abstract base classes define the boundaries between core
domain logic and external adapters. Implementations live in the
adapters/ package.

Port Interface Categories:

1. **Driven Ports** (core calls out to adapters)
   - UserRepositoryPort, AccountDeleteRepositoryPort, ScopeRepositoryPort:
     Unit-of-work style persistence
   - EntitiesContextPort / TransactionPort: Database transactions
   - PackageServicePort, PackageOwnershipPort: Package listing and owners
   - ReservedNamespacePort, SecurityPolicyPort, AuthenticationPort:
     Namespace, policy and credential management
   - SupportRequestPort: Support ticket history
   - AuditingPort, TelemetryPort: Audit trail and usage events

2. **Driving Ports** (adapters/external systems call into core)
   - AccountDeletionPort: Entry point for deleting accounts
"""

from abc import ABC, abstractmethod

from .models import (
    AccountDelete,
    Credential,
    DeleteAccountAuditRecord,
    DeleteAccountStatus,
    Issue,
    IssueStatus,
    OrphanPackagePolicy,
    Package,
    PackageOwnerRequest,
    PackageRegistration,
    Scope,
    User,
)


# ============================================================================
# DRIVEN PORTS (Core calls out to adapters)
# ============================================================================


class UserRepositoryPort(ABC):
    """Port for looking up and removing user and organization rows.

    Removals are staged with delete_on_commit() and only applied by
    commit_changes(). Field changes made directly on entities are
    persisted by the same commit.
    """

    @abstractmethod
    async def get_by_username(self, username: str) -> User | None:
        """Retrieve an account by username.

        Args:
            username: Account name (case-sensitive).

        Returns:
            User or Organization if found, None otherwise.
        """

    @abstractmethod
    def delete_on_commit(self, user: User) -> None:
        """Stage an account row for removal on the next commit."""

    @abstractmethod
    async def commit_changes(self) -> None:
        """Apply all staged changes.

        Raises:
            Exception: If the backing store is unavailable.
        """


class AccountDeleteRepositoryPort(ABC):
    """Port for persisting records of anonymized accounts."""

    @abstractmethod
    def insert_on_commit(self, record: AccountDelete) -> None:
        """Stage an AccountDelete record for insertion on the next commit."""

    @abstractmethod
    async def commit_changes(self) -> None:
        """Apply all staged changes."""


class ScopeRepositoryPort(ABC):
    """Port for API key scopes.

    Scopes belong to credentials; they must be removed together with their
    credential through AuthenticationPort rather than deleted here.
    """

    @abstractmethod
    async def get_all(self) -> list[Scope]:
        """Return every scope known to the gallery."""

    @abstractmethod
    def delete_on_commit(self, scope: Scope) -> None:
        """Stage a scope for removal on the next commit."""

    @abstractmethod
    async def commit_changes(self) -> None:
        """Apply all staged changes."""


class TransactionPort(ABC):
    """An open database transaction."""

    @abstractmethod
    async def commit(self) -> None:
        """Make every change applied inside the transaction durable."""

    @abstractmethod
    async def rollback(self) -> None:
        """Discard every change applied inside the transaction."""


class EntitiesContextPort(ABC):
    """Port for the database context shared by all repositories."""

    @abstractmethod
    async def begin_transaction(self) -> TransactionPort:
        """Open a transaction spanning all repositories.

        Raises:
            RuntimeError: If a transaction is already open.
        """


class PackageServicePort(ABC):
    """Port for package queries and listing state."""

    @abstractmethod
    async def find_packages_by_any_matching_owner(
        self, user: User, include_unlisted: bool = True
    ) -> list[Package]:
        """Find packages whose registration is owned by the account.

        Args:
            user: Owner to match.
            include_unlisted: Whether unlisted packages are returned.

        Returns:
            Packages in registration order. Empty list if none found.
        """

    @abstractmethod
    async def mark_package_unlisted(
        self, package: Package, commit_changes: bool = True
    ) -> None:
        """Hide a package from search results."""


class PackageOwnershipPort(ABC):
    """Port for package ownership and ownership requests."""

    @abstractmethod
    async def remove_package_owner(
        self,
        package_registration: PackageRegistration,
        requesting_owner: User,
        owner_to_be_removed: User,
        commit_changes: bool = True,
    ) -> None:
        """Remove an owner from a package registration.

        Args:
            package_registration: Registration to update.
            requesting_owner: Account performing the change (for audit).
            owner_to_be_removed: Owner being removed.
            commit_changes: Whether to commit immediately.
        """

    @abstractmethod
    async def get_package_ownership_requests(
        self,
        package_registration: PackageRegistration | None = None,
        requesting_owner: User | None = None,
        new_owner: User | None = None,
    ) -> list[PackageOwnerRequest]:
        """Query pending ownership requests; None filters match anything."""

    @abstractmethod
    async def delete_package_ownership_request(
        self,
        package_registration: PackageRegistration,
        new_owner: User,
        commit_changes: bool = True,
    ) -> None:
        """Delete the pending request inviting ``new_owner`` to a registration."""


class ReservedNamespacePort(ABC):
    """Port for reserved package id prefixes."""

    @abstractmethod
    async def delete_owner_from_reserved_namespace(
        self, prefix: str, username: str, commit_changes: bool = True
    ) -> None:
        """Remove an account from the owners of a reserved namespace.

        Raises:
            ValueError: If the namespace or owner does not exist.
        """


class SecurityPolicyPort(ABC):
    """Port for security policy subscriptions."""

    @abstractmethod
    async def unsubscribe(self, user: User, subscription_name: str) -> None:
        """Remove every policy of the subscription from the account."""


class AuthenticationPort(ABC):
    """Port for credential management."""

    @abstractmethod
    async def remove_credential(self, user: User, credential: Credential) -> None:
        """Remove a credential (and its scopes) from its user."""


class SupportRequestPort(ABC):
    """Port for support tickets."""

    @abstractmethod
    async def get_issues(
        self,
        assigned_to: int | None = None,
        reason: str | None = None,
        issue_status: IssueStatus | None = None,
        created_by: str | None = None,
    ) -> list[Issue]:
        """Query support issues; None filters match anything."""

    @abstractmethod
    async def delete_support_requests(self, created_by: str) -> bool:
        """Delete all issues and history entries created by an account.

        Returns:
            True if the purge succeeded.
        """


class AuditingPort(ABC):
    """Port for the audit trail."""

    @abstractmethod
    async def save_audit_record(self, record: DeleteAccountAuditRecord) -> None:
        """Persist an audit record.

        Raises:
            Exception: If the audit store is unavailable.
        """


class TelemetryPort(ABC):
    """Port for usage telemetry.

    Implementations must never raise: telemetry is best-effort.
    """

    @abstractmethod
    async def track_account_deletion_completed(
        self, deleted_user: User, deleted_by: User, success: bool
    ) -> None:
        """Record that an account deletion finished."""


# ============================================================================
# DRIVING PORTS (Adapters/external systems call into core)
# ============================================================================


class AccountDeletionPort(ABC):
    """Port for deleting gallery accounts.

    Driving port: the CLI invokes this to remove a user or organization.
    The implementation lives in the core (delete_account_service.py).
    """

    @abstractmethod
    async def delete_account(
        self,
        user_to_be_deleted: User,
        user_to_execute_the_delete: User,
        commit_as_transaction: bool,
        orphan_package_policy: OrphanPackagePolicy = OrphanPackagePolicy.DO_NOT_ALLOW_ORPHANS,
    ) -> DeleteAccountStatus:
        """Delete a user or organization account.

        Args:
            user_to_be_deleted: Account to delete.
            user_to_execute_the_delete: Account performing the deletion.
            commit_as_transaction: Run every step in one transaction.
            orphan_package_policy: Handling of packages left without owners.

        Returns:
            DeleteAccountStatus describing the outcome. Business conditions
            (already deleted, orphans not allowed, step failure) are reported
            here rather than raised.

        Raises:
            ValueError: If either account is None.
        """
