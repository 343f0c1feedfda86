"""In-memory gallery store adapter.

Holds the gallery object graph in memory and implements the repository
and transaction ports with unit-of-work semantics:

- ``*_on_commit`` operations are staged and applied by ``commit_changes()``
- While a transaction is open, applied changes are not written to the
  snapshot file; ``rollback()`` restores the graph captured when the
  transaction began

When created from a snapshot path, every commit outside a transaction
(and every transaction commit) writes the graph back to that file.
"""

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path

from gallery.core.models import AccountDelete, Scope, User
from gallery.core.ports import (
    AccountDeleteRepositoryPort,
    EntitiesContextPort,
    ScopeRepositoryPort,
    TransactionPort,
    UserRepositoryPort,
)

from .snapshot import GalleryData, from_document, read_snapshot, to_document, write_snapshot

logger = logging.getLogger(__name__)


class InMemoryTransaction(TransactionPort):
    """Transaction over an InMemoryGalleryStore."""

    def __init__(self, store: "InMemoryGalleryStore"):
        self._store = store
        self._document = to_document(store.data)
        self.completed = False

    async def commit(self) -> None:
        """Persist every change applied since the transaction began."""
        if self.completed:
            raise RuntimeError("Transaction already completed")
        self.completed = True
        self._store._end_transaction(self)
        await self._store._persist()
        logger.debug("Transaction committed")

    async def rollback(self) -> None:
        """Restore the graph captured when the transaction began."""
        if self.completed:
            raise RuntimeError("Transaction already completed")
        self.completed = True
        self._store._end_transaction(self)
        self._store._pending.clear()
        self._store.data = from_document(self._document)
        logger.warning(
            "Transaction rolled back; entities loaded before the transaction are stale"
        )


class InMemoryGalleryStore(EntitiesContextPort):
    """Gallery graph shared by all in-memory repositories and services."""

    def __init__(self, data: GalleryData | None = None, snapshot_path: str | None = None):
        """Initialize the store.

        Args:
            data: Initial graph. Defaults to an empty gallery.
            snapshot_path: Optional JSON file to write after each commit.
        """
        self.data = data if data is not None else GalleryData()
        self.snapshot_path = Path(snapshot_path) if snapshot_path else None
        self._pending: list[tuple[str, Callable[[], None]]] = []
        self._transaction: InMemoryTransaction | None = None
        self._lock = asyncio.Lock()

    @classmethod
    async def from_file(cls, snapshot_path: str) -> "InMemoryGalleryStore":
        """Load a store from a snapshot file (empty if the file is missing)."""
        path = Path(snapshot_path)
        data = await asyncio.to_thread(read_snapshot, path)
        logger.info(
            f"Loaded gallery snapshot {path}",
            extra={
                "users": len(data.users),
                "package_registrations": len(data.package_registrations),
            },
        )
        return cls(data=data, snapshot_path=snapshot_path)

    @property
    def in_transaction(self) -> bool:
        return self._transaction is not None

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def begin_transaction(self) -> TransactionPort:
        """Open a transaction; only one may be open at a time."""
        if self._transaction is not None:
            raise RuntimeError("A transaction is already open")
        self._transaction = InMemoryTransaction(self)
        logger.debug("Transaction started")
        return self._transaction

    def _end_transaction(self, transaction: InMemoryTransaction) -> None:
        if self._transaction is transaction:
            self._transaction = None

    def stage(self, description: str, operation: Callable[[], None]) -> None:
        """Queue an operation to run on the next commit."""
        self._pending.append((description, operation))

    async def commit_changes(self) -> None:
        """Apply staged operations and persist unless a transaction is open."""
        async with self._lock:
            pending, self._pending = self._pending, []
            for description, operation in pending:
                operation()
                logger.debug(f"Applied {description}")
        if self._transaction is None:
            await self._persist()

    async def _persist(self) -> None:
        if self.snapshot_path is None:
            return
        async with self._lock:
            await asyncio.to_thread(write_snapshot, self.snapshot_path, self.data)
        logger.debug(f"Wrote gallery snapshot {self.snapshot_path}")

    def find_user(self, username: str) -> User | None:
        for user in self.data.users:
            if user.username == username:
                return user
        return None

    def is_referenced_by_account_delete(self, user: User) -> bool:
        return any(
            record.deleted_account is user or record.deleted_by is user
            for record in self.data.account_deletes
        )

    def all_scopes(self) -> list[Scope]:
        return [
            scope
            for user in self.data.users
            for credential in user.credentials
            for scope in credential.scopes
        ]


class InMemoryUserRepository(UserRepositoryPort):
    """User and organization rows of an InMemoryGalleryStore."""

    def __init__(self, store: InMemoryGalleryStore):
        self.store = store

    async def get_by_username(self, username: str) -> User | None:
        return self.store.find_user(username)

    def delete_on_commit(self, user: User) -> None:
        """Stage removal of an account row.

        An account still named by an AccountDelete record keeps its row,
        scrubbed and marked deleted, so the record can be reloaded.
        """

        def remove() -> None:
            if self.store.is_referenced_by_account_delete(user):
                user.email_address = None
                user.unconfirmed_email_address = None
                user.email_confirmation_token = None
                user.password_reset_token = None
                user.is_deleted = True
                logger.info(
                    f"Kept row of {user.username}: referenced by an account delete record",
                    extra={"username": user.username},
                )
                return
            if user in self.store.data.users:
                self.store.data.users.remove(user)

        self.store.stage(f"delete user {user.username}", remove)

    async def commit_changes(self) -> None:
        await self.store.commit_changes()


class InMemoryAccountDeleteRepository(AccountDeleteRepositoryPort):
    """AccountDelete records of an InMemoryGalleryStore."""

    def __init__(self, store: InMemoryGalleryStore):
        self.store = store

    def insert_on_commit(self, record: AccountDelete) -> None:
        self.store.stage(
            f"insert account delete for {record.deleted_account.username}",
            lambda: self.store.data.account_deletes.append(record),
        )

    async def commit_changes(self) -> None:
        await self.store.commit_changes()

    async def get_all(self) -> list[AccountDelete]:
        return list(self.store.data.account_deletes)


class InMemoryScopeRepository(ScopeRepositoryPort):
    """API key scopes of an InMemoryGalleryStore."""

    def __init__(self, store: InMemoryGalleryStore):
        self.store = store

    async def get_all(self) -> list[Scope]:
        return self.store.all_scopes()

    def delete_on_commit(self, scope: Scope) -> None:
        def remove() -> None:
            if scope.credential is not None and scope in scope.credential.scopes:
                scope.credential.scopes.remove(scope)

        self.store.stage(f"delete scope {scope.key}", remove)

    async def commit_changes(self) -> None:
        await self.store.commit_changes()
