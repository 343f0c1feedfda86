"""Delete account service: implements AccountDeletionPort.

This is a core service that removes a user or organization account from
the gallery. It detaches the account from organizations, packages,
reserved namespaces, security policies, ownership requests, credentials
and support tickets, then either anonymizes the account row (confirmed
accounts) or removes it (unconfirmed accounts). Every attempt that gets
past validation is audited.
"""

import logging
from datetime import UTC, datetime

from . import messages
from .models import (
    AccountDelete,
    AuditActionStatus,
    Credential,
    DeleteAccountAuditRecord,
    DeleteAccountStatus,
    Organization,
    OrphanPackagePolicy,
    Package,
    PackageRegistration,
    Scope,
    User,
)
from .ports import (
    AccountDeleteRepositoryPort,
    AccountDeletionPort,
    AuditingPort,
    AuthenticationPort,
    EntitiesContextPort,
    PackageOwnershipPort,
    PackageServicePort,
    ReservedNamespacePort,
    ScopeRepositoryPort,
    SecurityPolicyPort,
    SupportRequestPort,
    TelemetryPort,
    UserRepositoryPort,
)

logger = logging.getLogger(__name__)


class DeleteAccountService(AccountDeletionPort):
    """Core implementation of AccountDeletionPort.

    Coordinates the cleanup of every entity related to the deleted account.
    Collaborators are injected so the workflow can run against any store.
    """

    def __init__(
        self,
        account_delete_repository: AccountDeleteRepositoryPort,
        user_repository: UserRepositoryPort,
        scope_repository: ScopeRepositoryPort,
        entities_context: EntitiesContextPort,
        package_service: PackageServicePort,
        package_ownership_service: PackageOwnershipPort,
        reserved_namespace_service: ReservedNamespacePort,
        security_policy_service: SecurityPolicyPort,
        authentication_service: AuthenticationPort,
        support_request_service: SupportRequestPort,
        auditing_service: AuditingPort,
        telemetry_service: TelemetryPort,
    ):
        """Initialize the delete account service.

        Args:
            account_delete_repository: Stores records of anonymized accounts.
            user_repository: Looks up and removes account rows.
            scope_repository: Read access to API key scopes.
            entities_context: Opens database transactions.
            package_service: Finds and unlists packages.
            package_ownership_service: Removes owners and ownership requests.
            reserved_namespace_service: Releases reserved namespaces.
            security_policy_service: Unsubscribes security policies.
            authentication_service: Removes credentials.
            support_request_service: Purges support tickets.
            auditing_service: Records the outcome of each deletion.
            telemetry_service: Tracks completed deletions.
        """
        self.account_delete_repository = account_delete_repository
        self.user_repository = user_repository
        self.scope_repository = scope_repository
        self.entities_context = entities_context
        self.package_service = package_service
        self.package_ownership_service = package_ownership_service
        self.reserved_namespace_service = reserved_namespace_service
        self.security_policy_service = security_policy_service
        self.authentication_service = authentication_service
        self.support_request_service = support_request_service
        self.auditing_service = auditing_service
        self.telemetry_service = telemetry_service

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
            DeleteAccountStatus describing the outcome.

        Raises:
            ValueError: If either account is None.
            Exception: If the audit record cannot be saved.
        """
        if user_to_be_deleted is None:
            raise ValueError("user_to_be_deleted must not be None")
        if user_to_execute_the_delete is None:
            raise ValueError("user_to_execute_the_delete must not be None")

        username = user_to_be_deleted.username

        if user_to_be_deleted.is_deleted:
            logger.info(
                f"Account {username} already deleted, skipping",
                extra={"username": username},
            )
            return DeleteAccountStatus(
                success=False,
                description=messages.ACCOUNT_ALREADY_DELETED.format(username=username),
                account_name=username,
            )

        if orphan_package_policy == OrphanPackagePolicy.DO_NOT_ALLOW_ORPHANS:
            orphaned = await self._find_registrations_orphaned_by(user_to_be_deleted)
            if orphaned:
                logger.info(
                    f"Refusing to delete {username}: would orphan {len(orphaned)} registration(s)",
                    extra={
                        "username": username,
                        "registrations": [r.id for r in orphaned],
                    },
                )
                return DeleteAccountStatus(
                    success=False,
                    description=messages.ACCOUNT_DELETE_ORPHANED_PACKAGES.format(
                        username=username, count=len(orphaned)
                    ),
                    account_name=username,
                )

        try:
            if commit_as_transaction:
                transaction = await self.entities_context.begin_transaction()
                try:
                    await self._delete_account_impl(
                        user_to_be_deleted,
                        user_to_execute_the_delete,
                        orphan_package_policy,
                    )
                except Exception:
                    await transaction.rollback()
                    raise
                await transaction.commit()
            else:
                await self._delete_account_impl(
                    user_to_be_deleted,
                    user_to_execute_the_delete,
                    orphan_package_policy,
                )
            status = DeleteAccountStatus(
                success=True,
                description=messages.ACCOUNT_DELETE_SUCCESS.format(username=username),
                account_name=username,
            )
            logger.info(
                f"Account {username} deleted",
                extra={
                    "username": username,
                    "admin_username": user_to_execute_the_delete.username,
                    "transaction": commit_as_transaction,
                    "orphan_package_policy": orphan_package_policy.value,
                },
            )
        except Exception as e:
            logger.error(
                f"Failed to delete account {username}: {e}",
                exc_info=True,
            )
            status = DeleteAccountStatus(
                success=False,
                description=messages.ACCOUNT_DELETE_FAIL.format(username=username, error=e),
                account_name=username,
            )

        await self.auditing_service.save_audit_record(
            DeleteAccountAuditRecord(
                username=username,
                admin_username=user_to_execute_the_delete.username,
                status=(
                    AuditActionStatus.SUCCESS if status.success else AuditActionStatus.FAILURE
                ),
            )
        )
        await self.telemetry_service.track_account_deletion_completed(
            user_to_be_deleted, user_to_execute_the_delete, status.success
        )

        return status

    async def _delete_account_impl(
        self,
        user_to_be_deleted: User,
        requesting_user: User,
        orphan_package_policy: OrphanPackagePolicy,
    ) -> None:
        """Run every cleanup step for one account, then commit."""
        await self._remove_memberships(
            user_to_be_deleted, requesting_user, orphan_package_policy
        )
        if isinstance(user_to_be_deleted, Organization):
            self._remove_members(user_to_be_deleted)

        await self._remove_package_ownership(
            user_to_be_deleted, requesting_user, orphan_package_policy
        )
        await self._remove_reserved_namespaces(user_to_be_deleted)
        await self._remove_security_policies(user_to_be_deleted)
        await self._remove_package_ownership_requests(user_to_be_deleted)
        await self._remove_credentials(user_to_be_deleted)
        await self._remove_scoped_credentials(user_to_be_deleted)
        await self.support_request_service.delete_support_requests(
            user_to_be_deleted.username
        )

        if user_to_be_deleted.confirmed:
            self._anonymize(user_to_be_deleted)
            self.account_delete_repository.insert_on_commit(
                AccountDelete(
                    deleted_account=user_to_be_deleted,
                    deleted_by=requesting_user,
                    deleted_on=datetime.now(UTC),
                    signature=requesting_user.username,
                )
            )
        else:
            self.user_repository.delete_on_commit(user_to_be_deleted)

        await self.user_repository.commit_changes()

        logger.debug(
            f"Cleaned up account {user_to_be_deleted.username}",
            extra={
                "username": user_to_be_deleted.username,
                "anonymized": user_to_be_deleted.is_deleted,
            },
        )

    async def _remove_memberships(
        self,
        user: User,
        requesting_user: User,
        orphan_package_policy: OrphanPackagePolicy,
    ) -> None:
        """Detach the account from every organization it belongs to.

        An organization left without members is deleted with it. An
        organization left without administrators has its remaining
        members promoted.
        """
        for membership in list(user.organizations):
            organization = membership.organization
            user.organizations.remove(membership)
            if membership in organization.members:
                organization.members.remove(membership)

            if not organization.members:
                logger.info(
                    f"Deleting organization {organization.username}: "
                    f"{user.username} was its last member",
                    extra={"organization": organization.username},
                )
                await self._delete_account_impl(
                    organization, requesting_user, orphan_package_policy
                )
            elif not organization.administrators:
                for remaining in organization.members:
                    remaining.is_admin = True
                logger.info(
                    f"Promoted {len(organization.members)} member(s) of "
                    f"{organization.username} to administrator",
                    extra={"organization": organization.username},
                )

        for request in list(user.organization_requests):
            user.organization_requests.remove(request)
            if request in request.organization.member_requests:
                request.organization.member_requests.remove(request)

        migration = user.organization_migration_request
        if migration is not None:
            if migration in migration.admin_user.organization_migration_requests:
                migration.admin_user.organization_migration_requests.remove(migration)
            user.organization_migration_request = None

        for migration in list(user.organization_migration_requests):
            user.organization_migration_requests.remove(migration)
            if migration.new_organization.organization_migration_request is migration:
                migration.new_organization.organization_migration_request = None

    @staticmethod
    def _remove_members(organization: Organization) -> None:
        """Detach all members and pending invitations from an organization."""
        for membership in list(organization.members):
            if membership in membership.member.organizations:
                membership.member.organizations.remove(membership)
        organization.members.clear()

        for request in list(organization.member_requests):
            if request in request.new_member.organization_requests:
                request.new_member.organization_requests.remove(request)
        organization.member_requests.clear()

    async def _remove_package_ownership(
        self,
        user: User,
        requesting_user: User,
        orphan_package_policy: OrphanPackagePolicy,
    ) -> None:
        packages = await self.package_service.find_packages_by_any_matching_owner(
            user, include_unlisted=True
        )
        registrations = self._owned_registrations(user, packages)

        if orphan_package_policy == OrphanPackagePolicy.UNLIST_ORPHANS:
            for registration in registrations:
                if not registration.would_be_orphaned_without(user):
                    continue
                for package in registration.packages:
                    if package.listed:
                        await self.package_service.mark_package_unlisted(
                            package, commit_changes=True
                        )

        for registration in registrations:
            await self.package_ownership_service.remove_package_owner(
                registration, requesting_user, user, commit_changes=False
            )

    async def _remove_reserved_namespaces(self, user: User) -> None:
        for namespace in list(user.reserved_namespaces):
            await self.reserved_namespace_service.delete_owner_from_reserved_namespace(
                namespace.value, user.username, commit_changes=False
            )

    async def _remove_security_policies(self, user: User) -> None:
        subscriptions: list[str] = []
        for policy in list(user.security_policies):
            if policy.subscription is None:
                user.security_policies.remove(policy)
            elif policy.subscription not in subscriptions:
                subscriptions.append(policy.subscription)

        for subscription in subscriptions:
            await self.security_policy_service.unsubscribe(user, subscription)

    async def _remove_package_ownership_requests(self, user: User) -> None:
        as_new_owner = await self.package_ownership_service.get_package_ownership_requests(
            new_owner=user
        )
        for request in as_new_owner:
            await self.package_ownership_service.delete_package_ownership_request(
                request.package_registration, user, commit_changes=True
            )

        as_requester = await self.package_ownership_service.get_package_ownership_requests(
            requesting_owner=user
        )
        for request in as_requester:
            if request.new_owner is user:
                continue
            await self.package_ownership_service.delete_package_ownership_request(
                request.package_registration, request.new_owner, commit_changes=True
            )

    async def _remove_credentials(self, user: User) -> None:
        for credential in list(user.credentials):
            await self.authentication_service.remove_credential(user, credential)

    async def _remove_scoped_credentials(self, user: User) -> None:
        """Remove API keys of other accounts that are scoped to this account."""
        credentials: list[Credential] = []
        for scope in await self.scope_repository.get_all():
            if scope.credential is None or not self._is_scope_owner(scope, user):
                continue
            if not any(c is scope.credential for c in credentials):
                credentials.append(scope.credential)

        for credential in credentials:
            owner = credential.user
            if owner is None:
                logger.warning(
                    f"Scoped credential {credential.key} has no user, skipping",
                    extra={"credential_key": credential.key},
                )
                continue
            await self.authentication_service.remove_credential(owner, credential)

    @staticmethod
    def _is_scope_owner(scope: Scope, user: User) -> bool:
        # Keys only identify the owner when the scope was loaded without one
        if scope.owner is not None:
            return scope.owner is user
        return scope.owner_key is not None and scope.owner_key == user.key

    @staticmethod
    def _anonymize(user: User) -> None:
        user.email_address = None
        user.unconfirmed_email_address = None
        user.email_confirmation_token = None
        user.password_reset_token = None
        user.email_allowed = False
        user.notify_package_pushed = False
        user.is_deleted = True

    async def _find_registrations_orphaned_by(
        self, user: User
    ) -> list[PackageRegistration]:
        """Registrations left ownerless by deleting the account.

        Includes organizations that would be deleted along with it because
        the account is their last member.
        """
        accounts = [user] + [
            m.organization
            for m in user.organizations
            if all(other.member is user for other in m.organization.members)
        ]

        orphaned: list[PackageRegistration] = []
        for account in accounts:
            packages = await self.package_service.find_packages_by_any_matching_owner(
                account, include_unlisted=True
            )
            for registration in self._owned_registrations(account, packages):
                remaining = [
                    owner for owner in registration.owners if owner not in accounts
                ]
                if not remaining and registration not in orphaned:
                    orphaned.append(registration)
        return orphaned

    @staticmethod
    def _owned_registrations(
        user: User, packages: list[Package]
    ) -> list[PackageRegistration]:
        """Distinct registrations of ``packages`` owned directly by ``user``."""
        registrations: list[PackageRegistration] = []
        for package in packages:
            registration = package.package_registration
            if registration is None or not registration.is_owner(user):
                continue
            if not any(r is registration for r in registrations):
                registrations.append(registration)
        return registrations
