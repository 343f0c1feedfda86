"""Security policy and authentication services over the in-memory gallery store."""

import logging

from gallery.adapters.store.memory import InMemoryGalleryStore
from gallery.core.models import Credential, User
from gallery.core.ports import AuthenticationPort, SecurityPolicyPort

logger = logging.getLogger(__name__)


class GallerySecurityPolicyService(SecurityPolicyPort):
    """Unsubscribes accounts from security policy subscriptions."""

    def __init__(self, store: InMemoryGalleryStore):
        self.store = store

    async def unsubscribe(self, user: User, subscription_name: str) -> None:
        policies = [p for p in user.security_policies if p.subscription == subscription_name]
        if not policies:
            logger.debug(
                f"{user.username} is not subscribed to {subscription_name}",
                extra={"username": user.username, "subscription": subscription_name},
            )
            return

        for policy in policies:
            user.security_policies.remove(policy)

        logger.info(
            f"Unsubscribed {user.username} from {subscription_name}",
            extra={
                "username": user.username,
                "subscription": subscription_name,
                "policies": [p.name for p in policies],
            },
        )
        await self.store.commit_changes()


class GalleryAuthenticationService(AuthenticationPort):
    """Removes credentials together with their scopes."""

    def __init__(self, store: InMemoryGalleryStore):
        self.store = store

    async def remove_credential(self, user: User, credential: Credential) -> None:
        """Remove a credential from its user.

        Raises:
            ValueError: If the credential does not belong to the user.
        """
        if not any(c is credential for c in user.credentials):
            raise ValueError(
                f"Credential {credential.key} does not belong to {user.username}"
            )

        user.credentials.remove(credential)
        credential.scopes.clear()

        logger.info(
            f"Removed {credential.type} credential from {user.username}",
            extra={"username": user.username, "credential_key": credential.key},
        )
        await self.store.commit_changes()
