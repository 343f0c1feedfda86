"""Unit tests for gallery domain models."""

from dataclasses import FrozenInstanceError

import pytest

from gallery.core.models import (
    AccountDelete,
    AuditActionStatus,
    DeleteAccountAuditRecord,
    DeleteAccountStatus,
    Membership,
    Organization,
    OrphanPackagePolicy,
    PackageRegistration,
    Scope,
    User,
)


class TestUser:
    """Tests for User and Organization."""

    def test_blank_username_rejected(self) -> None:
        with pytest.raises(ValueError, match="username"):
            User("   ")

    def test_confirmed_follows_email_address(self) -> None:
        assert User("a", email_address="a@test.com").confirmed is True
        assert User("a", unconfirmed_email_address="a@test.com").confirmed is False

    def test_entities_compare_by_identity(self) -> None:
        assert User("same", key=1) != User("same", key=1)

    def test_organization_flags(self) -> None:
        organization = Organization("org", key=2)
        admin = User("admin")
        organization.members.append(Membership(organization, admin, is_admin=True))
        organization.members.append(Membership(organization, User("collab")))

        assert organization.is_organization is True
        assert User("plain").is_organization is False
        assert organization.administrators == [admin]

    def test_repr_is_short(self) -> None:
        assert repr(Organization("org", key=7)) == "Organization(username='org', key=7)"


class TestPackageRegistration:
    """Tests for ownership helpers."""

    def test_would_be_orphaned_without_sole_owner(self) -> None:
        owner = User("owner")
        registration = PackageRegistration(id="Pkg", owners=[owner])

        assert registration.would_be_orphaned_without(owner) is True

    def test_not_orphaned_with_co_owner(self) -> None:
        owner = User("owner")
        registration = PackageRegistration(id="Pkg", owners=[owner, User("other")])

        assert registration.would_be_orphaned_without(owner) is False

    def test_non_owner_does_not_orphan(self) -> None:
        registration = PackageRegistration(id="Pkg", owners=[User("owner")])

        assert registration.would_be_orphaned_without(User("stranger")) is False


class TestValueObjects:
    """Tests for scopes, records and statuses."""

    def test_scope_owner_key_defaults_from_owner(self) -> None:
        assert Scope(owner=User("owner", key=42)).owner_key == 42
        assert Scope(owner=User("owner", key=42), owner_key=7).owner_key == 7
        assert Scope().owner_key is None

    def test_account_delete_keys(self) -> None:
        record = AccountDelete(User("gone", key=3), User("admin", key=4))

        assert record.deleted_account_key == 3
        assert record.deleted_by_key == 4
        assert record.deleted_on.tzinfo is not None

    def test_audit_record_defaults(self) -> None:
        record = DeleteAccountAuditRecord("gone", "admin", AuditActionStatus.SUCCESS)

        assert record.action == "DeleteAccount"
        with pytest.raises(FrozenInstanceError):
            record.status = AuditActionStatus.FAILURE  # type: ignore[misc]

    def test_status_is_frozen(self) -> None:
        status = DeleteAccountStatus(success=True, description="ok", account_name="gone")

        with pytest.raises(FrozenInstanceError):
            status.success = False  # type: ignore[misc]

    def test_orphan_policy_values(self) -> None:
        assert OrphanPackagePolicy("unlist_orphans") is OrphanPackagePolicy.UNLIST_ORPHANS
        assert {p.value for p in OrphanPackagePolicy} == {
            "do_not_allow_orphans",
            "unlist_orphans",
            "keep_orphans",
        }
