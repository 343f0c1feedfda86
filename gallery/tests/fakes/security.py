"""Fake namespace, security policy and authentication ports for testing."""

from gallery.core.models import Credential, ReservedNamespace, User
from gallery.core.ports import AuthenticationPort, ReservedNamespacePort, SecurityPolicyPort


class FakeReservedNamespacePort(ReservedNamespacePort):
    """Detaches namespace owners in memory."""

    def __init__(self, namespaces: list[ReservedNamespace] | None = None):
        self.namespaces: list[ReservedNamespace] = list(namespaces or [])
        self.calls: list[tuple[str, str, bool]] = []

    async def delete_owner_from_reserved_namespace(
        self, prefix: str, username: str, commit_changes: bool = True
    ) -> None:
        self.calls.append((prefix, username, commit_changes))
        namespace = next(ns for ns in self.namespaces if ns.value == prefix)
        owner = next(o for o in namespace.owners if o.username == username)
        namespace.owners.remove(owner)
        owner.reserved_namespaces.remove(namespace)


class FakeSecurityPolicyPort(SecurityPolicyPort):
    """Drops policies of the unsubscribed subscription."""

    def __init__(self):
        self.unsubscribed: list[tuple[User, str]] = []

    async def unsubscribe(self, user: User, subscription_name: str) -> None:
        self.unsubscribed.append((user, subscription_name))
        user.security_policies = [
            p for p in user.security_policies if p.subscription != subscription_name
        ]


class FakeAuthenticationPort(AuthenticationPort):
    """Removes credentials and records them for assertion."""

    def __init__(self):
        self.removed_credentials: list[tuple[User, Credential]] = []

    async def remove_credential(self, user: User, credential: Credential) -> None:
        user.credentials.remove(credential)
        self.removed_credentials.append((user, credential))

    def has_removed_credential_scoped_to(self, owner: User) -> bool:
        """True if a removed credential carried a scope owned by ``owner``."""
        return any(
            scope.owner is owner
            for _, credential in self.removed_credentials
            for scope in credential.scopes
        )
