"""Domain models for gallery account management.

All models in this module use only Python standard library types,
ensuring zero external dependencies in the core domain.

Entities (users, organizations, package registrations, ...) form a cyclic
object graph and are compared by identity. Value objects (status results,
audit records) are frozen dataclasses.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum, IntEnum


class OrphanPackagePolicy(Enum):
    """What to do with packages that would be left without any owner.

    - DO_NOT_ALLOW_ORPHANS: Refuse the deletion if it would orphan a package
    - UNLIST_ORPHANS: Delete the account and unlist orphaned packages
    - KEEP_ORPHANS: Delete the account and leave orphaned packages listed
    """

    DO_NOT_ALLOW_ORPHANS = "do_not_allow_orphans"
    UNLIST_ORPHANS = "unlist_orphans"
    KEEP_ORPHANS = "keep_orphans"


class IssueStatus(IntEnum):
    """Support issue workflow states."""

    NEW = 1
    WORKING = 2
    WAITING_FOR_CUSTOMER = 3
    RESOLVED = 4


class AuditActionStatus(Enum):
    """Outcome recorded in an account deletion audit record."""

    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(eq=False)
class User:
    """A gallery account.

    Note: This dataclass is intentionally mutable. Account deletion
    anonymizes the row in place and detaches it from related entities.
    """

    username: str
    key: int = 0
    email_address: str | None = None
    unconfirmed_email_address: str | None = None
    email_confirmation_token: str | None = None
    password_reset_token: str | None = None
    email_allowed: bool = True
    notify_package_pushed: bool = True
    is_deleted: bool = False
    created_utc: datetime | None = None
    organizations: list["Membership"] = field(default_factory=list)
    organization_requests: list["MembershipRequest"] = field(default_factory=list)
    # Request to transform this account into an organization
    organization_migration_request: "OrganizationMigrationRequest | None" = None
    # Requests where this account is the designated organization admin
    organization_migration_requests: list["OrganizationMigrationRequest"] = field(
        default_factory=list
    )
    credentials: list["Credential"] = field(default_factory=list)
    security_policies: list["UserSecurityPolicy"] = field(default_factory=list)
    reserved_namespaces: list["ReservedNamespace"] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate user invariants on creation."""
        if not self.username or not self.username.strip():
            raise ValueError("username must be a non-empty string")

    @property
    def confirmed(self) -> bool:
        """True once the account has a confirmed email address."""
        return bool(self.email_address)

    @property
    def is_organization(self) -> bool:
        return False

    def __repr__(self) -> str:
        return f"{type(self).__name__}(username={self.username!r}, key={self.key})"


@dataclass(eq=False, repr=False)
class Organization(User):
    """An account owned collectively by its members."""

    members: list["Membership"] = field(default_factory=list)
    member_requests: list["MembershipRequest"] = field(default_factory=list)

    @property
    def is_organization(self) -> bool:
        return True

    @property
    def administrators(self) -> list[User]:
        """Members holding the admin role."""
        return [m.member for m in self.members if m.is_admin]


@dataclass(eq=False)
class Membership:
    """Link between an organization and one of its members."""

    organization: Organization
    member: User
    is_admin: bool = False


@dataclass(eq=False)
class MembershipRequest:
    """Pending invitation for a user to join an organization."""

    organization: Organization
    new_member: User
    is_admin: bool = False
    confirmation_token: str = ""


@dataclass(eq=False)
class OrganizationMigrationRequest:
    """Pending request to transform a user account into an organization."""

    new_organization: User
    admin_user: User
    confirmation_token: str = ""
    request_date: datetime | None = None


@dataclass(eq=False)
class Package:
    """A single version of a package."""

    key: int = 0
    version: str = "1.0.0"
    description: str = ""
    listed: bool = True
    package_registration: "PackageRegistration | None" = None


@dataclass(eq=False)
class PackageRegistration:
    """A package id and the accounts that own it."""

    id: str = ""
    key: int = 0
    owners: list[User] = field(default_factory=list)
    packages: list[Package] = field(default_factory=list)
    reserved_namespaces: list["ReservedNamespace"] = field(default_factory=list)

    def is_owner(self, user: User) -> bool:
        return any(owner is user for owner in self.owners)

    def would_be_orphaned_without(self, user: User) -> bool:
        """True if removing ``user`` leaves the registration with no owner."""
        return self.is_owner(user) and all(owner is user for owner in self.owners)


@dataclass(eq=False)
class Scope:
    """Restriction of an API key to a subject, action and owner account."""

    owner: User | None = None
    subject: str = ""
    allowed_action: str = ""
    owner_key: int | None = None
    credential: "Credential | None" = None
    key: int = 0

    def __post_init__(self) -> None:
        """Default the owner key from the owner."""
        if self.owner_key is None and self.owner is not None:
            self.owner_key = self.owner.key


@dataclass(eq=False)
class Credential:
    """A password, API key or external login bound to a user."""

    type: str
    value: str
    key: int = 0
    user: User | None = None
    scopes: list[Scope] = field(default_factory=list)


@dataclass(eq=False)
class UserSecurityPolicy:
    """A security policy applied to a user, grouped by subscription."""

    name: str
    subscription: str | None = None
    key: int = 0


@dataclass(eq=False)
class ReservedNamespace:
    """A package id prefix reserved for a set of owners."""

    value: str
    is_shared_namespace: bool = False
    is_prefix: bool = False
    owners: list[User] = field(default_factory=list)
    package_registrations: list[PackageRegistration] = field(default_factory=list)


@dataclass(eq=False)
class History:
    """A single edit in a support issue's history."""

    key: int = 0
    issue_id: int = 0
    edited_by: str | None = None
    issue_status: IssueStatus = IssueStatus.NEW


@dataclass(eq=False)
class Issue:
    """A support request."""

    key: int = 0
    created_by: str | None = None
    issue_title: str = ""
    owner_email: str | None = None
    issue_status: IssueStatus = IssueStatus.NEW
    details: str = ""
    history_entries: list[History] = field(default_factory=list)


@dataclass(eq=False)
class PackageOwnerRequest:
    """Pending invitation to become an owner of a package registration."""

    package_registration: PackageRegistration
    new_owner: User
    requesting_owner: User | None = None
    request_date: datetime | None = None
    confirmation_code: str = ""


@dataclass(eq=False)
class AccountDelete:
    """Record kept for an account that was anonymized rather than removed."""

    deleted_account: User
    deleted_by: User
    deleted_on: datetime = field(default_factory=lambda: datetime.now(UTC))
    signature: str = ""

    @property
    def deleted_account_key(self) -> int:
        return self.deleted_account.key

    @property
    def deleted_by_key(self) -> int:
        return self.deleted_by.key


@dataclass(frozen=True)
class DeleteAccountAuditRecord:
    """Audit trail entry for an account deletion attempt."""

    username: str
    admin_username: str
    status: AuditActionStatus
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    action: str = "DeleteAccount"


@dataclass(frozen=True)
class DeleteAccountStatus:
    """Result of an account deletion request."""

    success: bool
    description: str
    account_name: str
