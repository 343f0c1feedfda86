"""Fake repository and transaction ports for testing."""

from gallery.core.models import AccountDelete, Scope, User
from gallery.core.ports import (
    AccountDeleteRepositoryPort,
    EntitiesContextPort,
    ScopeRepositoryPort,
    TransactionPort,
    UserRepositoryPort,
)


class FakeUserRepositoryPort(UserRepositoryPort):
    """In-memory user repository for testing.

    Staged deletions are applied on commit and recorded in ``deleted_users``.
    """

    def __init__(self, users: list[User] | None = None):
        """Initialize with optional known accounts."""
        self.users: list[User] = list(users or [])
        self.deleted_users: list[User] = []
        self.staged_deletes: list[User] = []
        self.commit_count = 0
        self.should_fail_commit = False

    async def get_by_username(self, username: str) -> User | None:
        return next((u for u in self.users if u.username == username), None)

    def delete_on_commit(self, user: User) -> None:
        self.staged_deletes.append(user)

    async def commit_changes(self) -> None:
        self.commit_count += 1
        if self.should_fail_commit:
            raise RuntimeError("Database unavailable")
        for user in self.staged_deletes:
            if user in self.users:
                self.users.remove(user)
            self.deleted_users.append(user)
        self.staged_deletes.clear()


class FakeAccountDeleteRepositoryPort(AccountDeleteRepositoryPort):
    """Captures AccountDelete records for assertion.

    Records are visible in ``deleted_accounts`` as soon as they are staged.
    """

    def __init__(self):
        self.deleted_accounts: list[AccountDelete] = []
        self.commit_count = 0

    def insert_on_commit(self, record: AccountDelete) -> None:
        self.deleted_accounts.append(record)

    async def commit_changes(self) -> None:
        self.commit_count += 1


class FakeScopeRepositoryPort(ScopeRepositoryPort):
    """Scope repository that refuses direct deletes.

    Scopes must go away with their credential through the authentication
    port; deleting one here is a test failure.
    """

    def __init__(self, scopes: list[Scope] | None = None):
        self.scopes: list[Scope] = list(scopes or [])
        self.get_all_call_count = 0

    async def get_all(self) -> list[Scope]:
        self.get_all_call_count += 1
        return list(self.scopes)

    def delete_on_commit(self, scope: Scope) -> None:
        raise AssertionError("Scopes should be deleted by the authentication service!")

    async def commit_changes(self) -> None:
        return None


class FakeTransaction(TransactionPort):
    """Records whether it was committed or rolled back."""

    def __init__(self):
        self.committed = False
        self.rolled_back = False

    async def commit(self) -> None:
        self.committed = True

    async def rollback(self) -> None:
        self.rolled_back = True


class FakeEntitiesContextPort(EntitiesContextPort):
    """Hands out FakeTransactions and keeps them for assertion."""

    def __init__(self):
        self.transactions: list[FakeTransaction] = []

    async def begin_transaction(self) -> TransactionPort:
        transaction = FakeTransaction()
        self.transactions.append(transaction)
        return transaction

    def get_last_transaction(self) -> FakeTransaction | None:
        if self.transactions:
            return self.transactions[-1]
        return None
