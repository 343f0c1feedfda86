"""Package and package ownership services over the in-memory gallery store."""

import logging

from gallery.adapters.store.memory import InMemoryGalleryStore
from gallery.core.models import (
    Organization,
    Package,
    PackageOwnerRequest,
    PackageRegistration,
    User,
)
from gallery.core.ports import PackageOwnershipPort, PackageServicePort

logger = logging.getLogger(__name__)


class GalleryPackageService(PackageServicePort):
    """Finds and unlists packages."""

    def __init__(self, store: InMemoryGalleryStore):
        self.store = store

    async def find_packages_by_any_matching_owner(
        self, user: User, include_unlisted: bool = True
    ) -> list[Package]:
        """Packages owned by the account or by an organization it belongs to."""
        matching_owners: list[User] = [user]
        if not isinstance(user, Organization):
            matching_owners.extend(m.organization for m in user.organizations)

        packages: list[Package] = []
        for registration in self.store.data.package_registrations:
            if not any(registration.is_owner(owner) for owner in matching_owners):
                continue
            packages.extend(
                p for p in registration.packages if include_unlisted or p.listed
            )
        return packages

    async def mark_package_unlisted(
        self, package: Package, commit_changes: bool = True
    ) -> None:
        package.listed = False
        registration_id = (
            package.package_registration.id if package.package_registration else None
        )
        logger.info(
            f"Unlisted package {registration_id} {package.version}",
            extra={"package_id": registration_id, "version": package.version},
        )
        if commit_changes:
            await self.store.commit_changes()


class GalleryPackageOwnershipService(PackageOwnershipPort):
    """Manages registration owners and pending ownership requests."""

    def __init__(self, store: InMemoryGalleryStore):
        self.store = store

    async def remove_package_owner(
        self,
        package_registration: PackageRegistration,
        requesting_owner: User,
        owner_to_be_removed: User,
        commit_changes: bool = True,
    ) -> None:
        """Remove an owner and the namespace links only that owner justified.

        Raises:
            ValueError: If the account does not own the registration.
        """
        if not package_registration.is_owner(owner_to_be_removed):
            raise ValueError(
                f"{owner_to_be_removed.username} is not an owner of "
                f"{package_registration.id}"
            )

        package_registration.owners.remove(owner_to_be_removed)

        for namespace in list(package_registration.reserved_namespaces):
            if owner_to_be_removed not in namespace.owners:
                continue
            if any(owner in namespace.owners for owner in package_registration.owners):
                continue
            package_registration.reserved_namespaces.remove(namespace)
            if package_registration in namespace.package_registrations:
                namespace.package_registrations.remove(package_registration)

        logger.info(
            f"Removed owner {owner_to_be_removed.username} from {package_registration.id}",
            extra={
                "package_id": package_registration.id,
                "owner": owner_to_be_removed.username,
                "requesting_owner": requesting_owner.username,
            },
        )
        if commit_changes:
            await self.store.commit_changes()

    async def get_package_ownership_requests(
        self,
        package_registration: PackageRegistration | None = None,
        requesting_owner: User | None = None,
        new_owner: User | None = None,
    ) -> list[PackageOwnerRequest]:
        return [
            r
            for r in self.store.data.package_owner_requests
            if (package_registration is None or r.package_registration is package_registration)
            and (requesting_owner is None or r.requesting_owner is requesting_owner)
            and (new_owner is None or r.new_owner is new_owner)
        ]

    async def delete_package_ownership_request(
        self,
        package_registration: PackageRegistration,
        new_owner: User,
        commit_changes: bool = True,
    ) -> None:
        requests = await self.get_package_ownership_requests(
            package_registration=package_registration, new_owner=new_owner
        )
        if not requests:
            logger.debug(
                f"No ownership request for {new_owner.username} on {package_registration.id}"
            )
            return

        for request in requests:
            self.store.data.package_owner_requests.remove(request)
        if commit_changes:
            await self.store.commit_changes()
