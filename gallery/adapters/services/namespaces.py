"""Reserved namespace service over the in-memory gallery store."""

import logging

from gallery.adapters.store.memory import InMemoryGalleryStore
from gallery.core.models import ReservedNamespace
from gallery.core.ports import ReservedNamespacePort

logger = logging.getLogger(__name__)


class GalleryReservedNamespaceService(ReservedNamespacePort):
    """Releases reserved package id prefixes."""

    def __init__(self, store: InMemoryGalleryStore):
        self.store = store

    def find_namespace(self, prefix: str) -> ReservedNamespace | None:
        """Look up a namespace; prefixes compare case-insensitively."""
        for namespace in self.store.data.reserved_namespaces:
            if namespace.value.lower() == prefix.lower():
                return namespace
        return None

    async def delete_owner_from_reserved_namespace(
        self, prefix: str, username: str, commit_changes: bool = True
    ) -> None:
        """Remove an owner from a namespace.

        Registrations owned by the removed account stop being marked as
        part of the namespace unless another namespace owner also owns them.

        Raises:
            ValueError: If the namespace or owner does not exist.
        """
        namespace = self.find_namespace(prefix)
        if namespace is None:
            raise ValueError(f"Reserved namespace {prefix} not found")

        owner = next((o for o in namespace.owners if o.username == username), None)
        if owner is None:
            raise ValueError(f"{username} is not an owner of reserved namespace {prefix}")

        namespace.owners.remove(owner)
        if namespace in owner.reserved_namespaces:
            owner.reserved_namespaces.remove(namespace)

        for registration in list(namespace.package_registrations):
            if not registration.is_owner(owner):
                continue
            if any(registration.is_owner(o) for o in namespace.owners):
                continue
            namespace.package_registrations.remove(registration)
            if namespace in registration.reserved_namespaces:
                registration.reserved_namespaces.remove(namespace)

        logger.info(
            f"Removed {username} from reserved namespace {namespace.value}",
            extra={"namespace": namespace.value, "username": username},
        )
        if commit_changes:
            await self.store.commit_changes()
