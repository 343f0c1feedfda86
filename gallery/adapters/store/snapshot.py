"""JSON snapshot of the gallery object graph.

The gallery graph is cyclic (users own registrations, registrations list
their owners, organizations list memberships that point back at them).
Snapshots flatten it into tables that reference accounts by username and
registrations by id, and rebuild the links on load.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from gallery.core.models import (
    AccountDelete,
    Credential,
    History,
    Issue,
    IssueStatus,
    Membership,
    MembershipRequest,
    Organization,
    OrganizationMigrationRequest,
    Package,
    PackageOwnerRequest,
    PackageRegistration,
    ReservedNamespace,
    Scope,
    User,
    UserSecurityPolicy,
)

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


@dataclass
class GalleryData:
    """Root collections of the gallery graph."""

    users: list[User] = field(default_factory=list)
    package_registrations: list[PackageRegistration] = field(default_factory=list)
    reserved_namespaces: list[ReservedNamespace] = field(default_factory=list)
    package_owner_requests: list[PackageOwnerRequest] = field(default_factory=list)
    issues: list[Issue] = field(default_factory=list)
    account_deletes: list[AccountDelete] = field(default_factory=list)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_datetime(value: str | None) -> datetime | None:
    if value is None:
        return None
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid date format: {value!r}") from e


def to_document(data: GalleryData) -> dict[str, Any]:
    """Flatten the graph into a JSON-serializable document."""
    users: list[dict[str, Any]] = []
    memberships: list[dict[str, Any]] = []
    membership_requests: list[dict[str, Any]] = []
    migration_requests: list[dict[str, Any]] = []

    for user in data.users:
        users.append(
            {
                "username": user.username,
                "key": user.key,
                "is_organization": user.is_organization,
                "email_address": user.email_address,
                "unconfirmed_email_address": user.unconfirmed_email_address,
                "email_confirmation_token": user.email_confirmation_token,
                "password_reset_token": user.password_reset_token,
                "email_allowed": user.email_allowed,
                "notify_package_pushed": user.notify_package_pushed,
                "is_deleted": user.is_deleted,
                "created_utc": _iso(user.created_utc),
                "credentials": [
                    {
                        "key": credential.key,
                        "type": credential.type,
                        "value": credential.value,
                        "scopes": [
                            {
                                "key": scope.key,
                                "subject": scope.subject,
                                "allowed_action": scope.allowed_action,
                                "owner": scope.owner.username if scope.owner else None,
                                "owner_key": scope.owner_key,
                            }
                            for scope in credential.scopes
                        ],
                    }
                    for credential in user.credentials
                ],
                "security_policies": [
                    {"key": p.key, "name": p.name, "subscription": p.subscription}
                    for p in user.security_policies
                ],
            }
        )
        if isinstance(user, Organization):
            memberships.extend(
                {
                    "organization": user.username,
                    "member": m.member.username,
                    "is_admin": m.is_admin,
                }
                for m in user.members
            )
            membership_requests.extend(
                {
                    "organization": user.username,
                    "new_member": r.new_member.username,
                    "is_admin": r.is_admin,
                    "confirmation_token": r.confirmation_token,
                }
                for r in user.member_requests
            )
        migration = user.organization_migration_request
        if migration is not None:
            migration_requests.append(
                {
                    "new_organization": migration.new_organization.username,
                    "admin_user": migration.admin_user.username,
                    "confirmation_token": migration.confirmation_token,
                    "request_date": _iso(migration.request_date),
                }
            )

    return {
        "version": SNAPSHOT_VERSION,
        "users": users,
        "memberships": memberships,
        "membership_requests": membership_requests,
        "migration_requests": migration_requests,
        "package_registrations": [
            {
                "id": r.id,
                "key": r.key,
                "owners": [o.username for o in r.owners],
                "packages": [
                    {
                        "key": p.key,
                        "version": p.version,
                        "description": p.description,
                        "listed": p.listed,
                    }
                    for p in r.packages
                ],
            }
            for r in data.package_registrations
        ],
        "reserved_namespaces": [
            {
                "value": ns.value,
                "is_shared_namespace": ns.is_shared_namespace,
                "is_prefix": ns.is_prefix,
                "owners": [o.username for o in ns.owners],
                "package_registrations": [r.id for r in ns.package_registrations],
            }
            for ns in data.reserved_namespaces
        ],
        "package_owner_requests": [
            {
                "package_registration": r.package_registration.id,
                "new_owner": r.new_owner.username,
                "requesting_owner": (
                    r.requesting_owner.username if r.requesting_owner else None
                ),
                "request_date": _iso(r.request_date),
                "confirmation_code": r.confirmation_code,
            }
            for r in data.package_owner_requests
        ],
        "issues": [
            {
                "key": i.key,
                "created_by": i.created_by,
                "issue_title": i.issue_title,
                "owner_email": i.owner_email,
                "issue_status": int(i.issue_status),
                "details": i.details,
                "history": [
                    {
                        "key": h.key,
                        "edited_by": h.edited_by,
                        "issue_status": int(h.issue_status),
                    }
                    for h in i.history_entries
                ],
            }
            for i in data.issues
        ],
        "account_deletes": [
            {
                "deleted_account": d.deleted_account.username,
                "deleted_by": d.deleted_by.username,
                "deleted_on": _iso(d.deleted_on),
                "signature": d.signature,
            }
            for d in data.account_deletes
        ],
    }


def from_document(document: dict[str, Any]) -> GalleryData:
    """Rebuild the graph from a snapshot document.

    Raises:
        ValueError: If the document references unknown accounts or
            registrations, or has an unsupported version.
    """
    version = document.get("version", SNAPSHOT_VERSION)
    if version != SNAPSHOT_VERSION:
        raise ValueError(f"Unsupported snapshot version: {version}")

    data = GalleryData()
    users: dict[str, User] = {}
    registrations: dict[str, PackageRegistration] = {}

    def account(username: str) -> User:
        try:
            return users[username]
        except KeyError:
            raise ValueError(f"Snapshot references unknown account: {username}") from None

    def organization(username: str) -> Organization:
        org = account(username)
        if not isinstance(org, Organization):
            raise ValueError(f"Account {username} is not an organization")
        return org

    def registration(registration_id: str) -> PackageRegistration:
        try:
            return registrations[registration_id]
        except KeyError:
            raise ValueError(
                f"Snapshot references unknown package registration: {registration_id}"
            ) from None

    for row in document.get("users", []):
        cls = Organization if row.get("is_organization") else User
        user = cls(
            username=row["username"],
            key=row.get("key", 0),
            email_address=row.get("email_address"),
            unconfirmed_email_address=row.get("unconfirmed_email_address"),
            email_confirmation_token=row.get("email_confirmation_token"),
            password_reset_token=row.get("password_reset_token"),
            email_allowed=row.get("email_allowed", True),
            notify_package_pushed=row.get("notify_package_pushed", True),
            is_deleted=row.get("is_deleted", False),
            created_utc=_parse_datetime(row.get("created_utc")),
        )
        user.security_policies = [
            UserSecurityPolicy(
                name=p["name"], subscription=p.get("subscription"), key=p.get("key", 0)
            )
            for p in row.get("security_policies", [])
        ]
        if user.username in users:
            raise ValueError(f"Duplicate account in snapshot: {user.username}")
        if user.key and any(u.key == user.key for u in data.users):
            raise ValueError(f"Duplicate account key in snapshot: {user.key}")
        users[user.username] = user
        data.users.append(user)

    # Accounts without a key get one past the highest key in the snapshot
    next_key = max((u.key for u in data.users), default=0) + 1
    for user in data.users:
        if not user.key:
            user.key = next_key
            next_key += 1

    # Credentials are linked after all accounts exist so scopes can
    # reference any owner.
    for row in document.get("users", []):
        user = users[row["username"]]
        for c in row.get("credentials", []):
            credential = Credential(
                type=c["type"], value=c["value"], key=c.get("key", 0), user=user
            )
            for s in c.get("scopes", []):
                owner = users.get(s["owner"]) if s.get("owner") else None
                credential.scopes.append(
                    Scope(
                        owner=owner,
                        subject=s.get("subject", ""),
                        allowed_action=s.get("allowed_action", ""),
                        owner_key=owner.key if owner else s.get("owner_key"),
                        credential=credential,
                        key=s.get("key", 0),
                    )
                )
            user.credentials.append(credential)

    for row in document.get("memberships", []):
        org = organization(row["organization"])
        membership = Membership(
            organization=org,
            member=account(row["member"]),
            is_admin=row.get("is_admin", False),
        )
        org.members.append(membership)
        membership.member.organizations.append(membership)

    for row in document.get("membership_requests", []):
        org = organization(row["organization"])
        request = MembershipRequest(
            organization=org,
            new_member=account(row["new_member"]),
            is_admin=row.get("is_admin", False),
            confirmation_token=row.get("confirmation_token", ""),
        )
        org.member_requests.append(request)
        request.new_member.organization_requests.append(request)

    for row in document.get("migration_requests", []):
        migration = OrganizationMigrationRequest(
            new_organization=account(row["new_organization"]),
            admin_user=account(row["admin_user"]),
            confirmation_token=row.get("confirmation_token", ""),
            request_date=_parse_datetime(row.get("request_date")),
        )
        migration.new_organization.organization_migration_request = migration
        migration.admin_user.organization_migration_requests.append(migration)

    for row in document.get("package_registrations", []):
        reg = PackageRegistration(
            id=row["id"],
            key=row.get("key", 0),
            owners=[account(name) for name in row.get("owners", [])],
        )
        for p in row.get("packages", []):
            reg.packages.append(
                Package(
                    key=p.get("key", 0),
                    version=p.get("version", "1.0.0"),
                    description=p.get("description", ""),
                    listed=p.get("listed", True),
                    package_registration=reg,
                )
            )
        registrations[reg.id] = reg
        data.package_registrations.append(reg)

    for row in document.get("reserved_namespaces", []):
        namespace = ReservedNamespace(
            value=row["value"],
            is_shared_namespace=row.get("is_shared_namespace", False),
            is_prefix=row.get("is_prefix", False),
            owners=[account(name) for name in row.get("owners", [])],
            package_registrations=[
                registration(rid) for rid in row.get("package_registrations", [])
            ],
        )
        for owner in namespace.owners:
            owner.reserved_namespaces.append(namespace)
        for reg in namespace.package_registrations:
            reg.reserved_namespaces.append(namespace)
        data.reserved_namespaces.append(namespace)

    for row in document.get("package_owner_requests", []):
        requesting = row.get("requesting_owner")
        data.package_owner_requests.append(
            PackageOwnerRequest(
                package_registration=registration(row["package_registration"]),
                new_owner=account(row["new_owner"]),
                requesting_owner=account(requesting) if requesting else None,
                request_date=_parse_datetime(row.get("request_date")),
                confirmation_code=row.get("confirmation_code", ""),
            )
        )

    for row in document.get("issues", []):
        issue = Issue(
            key=row.get("key", 0),
            created_by=row.get("created_by"),
            issue_title=row.get("issue_title", ""),
            owner_email=row.get("owner_email"),
            issue_status=IssueStatus(row.get("issue_status", IssueStatus.NEW)),
            details=row.get("details", ""),
        )
        issue.history_entries = [
            History(
                key=h.get("key", 0),
                issue_id=issue.key,
                edited_by=h.get("edited_by"),
                issue_status=IssueStatus(h.get("issue_status", IssueStatus.NEW)),
            )
            for h in row.get("history", [])
        ]
        data.issues.append(issue)

    for row in document.get("account_deletes", []):
        deleted_on = _parse_datetime(row.get("deleted_on"))
        record = AccountDelete(
            deleted_account=account(row["deleted_account"]),
            deleted_by=account(row["deleted_by"]),
            signature=row.get("signature", ""),
        )
        if deleted_on is not None:
            record.deleted_on = deleted_on
        data.account_deletes.append(record)

    return data


def read_snapshot(path: Path) -> GalleryData:
    """Load a snapshot file; a missing file yields an empty gallery."""
    if not path.exists():
        logger.info(f"Snapshot {path} does not exist, starting with an empty gallery")
        return GalleryData()
    with path.open(encoding="utf-8") as f:
        return from_document(json.load(f))


def write_snapshot(path: Path, data: GalleryData) -> None:
    """Write a snapshot file atomically (write to temp file, then rename)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as f:
        json.dump(to_document(data), f, indent=2)
    tmp_path.replace(path)
