"""Core domain logic for gallery account management.

This package contains zero external dependencies and represents
the pure business logic of the application. All adapters and
external integrations are handled by the adapters package.
"""

from .models import (
    AccountDelete,
    AuditActionStatus,
    Credential,
    DeleteAccountAuditRecord,
    DeleteAccountStatus,
    History,
    Issue,
    IssueStatus,
    Membership,
    MembershipRequest,
    Organization,
    OrganizationMigrationRequest,
    OrphanPackagePolicy,
    Package,
    PackageOwnerRequest,
    PackageRegistration,
    ReservedNamespace,
    Scope,
    User,
    UserSecurityPolicy,
)

__all__ = [
    "AccountDelete",
    "AuditActionStatus",
    "Credential",
    "DeleteAccountAuditRecord",
    "DeleteAccountStatus",
    "History",
    "Issue",
    "IssueStatus",
    "Membership",
    "MembershipRequest",
    "Organization",
    "OrganizationMigrationRequest",
    "OrphanPackagePolicy",
    "Package",
    "PackageOwnerRequest",
    "PackageRegistration",
    "ReservedNamespace",
    "Scope",
    "User",
    "UserSecurityPolicy",
]
