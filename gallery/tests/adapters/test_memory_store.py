"""Tests for the in-memory gallery store and its repositories."""

from pathlib import Path

import pytest

from gallery.adapters.store.memory import (
    InMemoryAccountDeleteRepository,
    InMemoryGalleryStore,
    InMemoryScopeRepository,
    InMemoryUserRepository,
)
from gallery.adapters.store.snapshot import GalleryData, read_snapshot
from gallery.core.models import AccountDelete, Credential, Scope, User


@pytest.fixture
def store(tmp_path: Path) -> InMemoryGalleryStore:
    """Store with two users, persisted under tmp_path."""
    alice = User("alice", key=1, email_address="alice@test.com")
    bob = User("bob", key=2)
    api_key = Credential("apikey.v4", "hashed", key=9, user=bob)
    api_key.scopes.append(Scope(owner=alice, subject="*", credential=api_key))
    bob.credentials.append(api_key)
    return InMemoryGalleryStore(
        GalleryData(users=[alice, bob]), snapshot_path=str(tmp_path / "gallery.json")
    )


@pytest.mark.asyncio
async def test_changes_staged_until_commit(store: InMemoryGalleryStore) -> None:
    users = InMemoryUserRepository(store)
    bob = await users.get_by_username("bob")
    assert bob is not None

    users.delete_on_commit(bob)

    assert store.pending_count == 1
    assert await users.get_by_username("bob") is bob

    await users.commit_changes()

    assert store.pending_count == 0
    assert await users.get_by_username("bob") is None


@pytest.mark.asyncio
async def test_commit_writes_snapshot(store: InMemoryGalleryStore) -> None:
    users = InMemoryUserRepository(store)
    alice = await users.get_by_username("alice")
    assert alice is not None
    account_deletes = InMemoryAccountDeleteRepository(store)

    account_deletes.insert_on_commit(AccountDelete(alice, alice, signature="alice"))
    await account_deletes.commit_changes()

    assert len(await account_deletes.get_all()) == 1
    assert store.snapshot_path is not None
    persisted = read_snapshot(store.snapshot_path)
    assert persisted.account_deletes[0].deleted_account.username == "alice"


@pytest.mark.asyncio
async def test_transaction_defers_snapshot_until_commit(
    store: InMemoryGalleryStore,
) -> None:
    users = InMemoryUserRepository(store)
    bob = await users.get_by_username("bob")
    assert bob is not None

    transaction = await store.begin_transaction()
    users.delete_on_commit(bob)
    await users.commit_changes()

    assert store.in_transaction is True
    assert store.snapshot_path is not None
    assert not store.snapshot_path.exists()

    await transaction.commit()

    assert store.in_transaction is False
    assert [u.username for u in read_snapshot(store.snapshot_path).users] == ["alice"]


@pytest.mark.asyncio
async def test_rollback_restores_graph(store: InMemoryGalleryStore) -> None:
    users = InMemoryUserRepository(store)
    bob = await users.get_by_username("bob")
    assert bob is not None

    transaction = await store.begin_transaction()
    users.delete_on_commit(bob)
    await users.commit_changes()
    users.delete_on_commit(await users.get_by_username("alice"))
    await transaction.rollback()

    assert store.pending_count == 0
    assert [u.username for u in store.data.users] == ["alice", "bob"]
    restored = await users.get_by_username("bob")
    assert restored is not None
    assert restored is not bob
    assert restored.credentials[0].scopes[0].owner is store.find_user("alice")


@pytest.mark.asyncio
async def test_single_open_transaction(store: InMemoryGalleryStore) -> None:
    transaction = await store.begin_transaction()

    with pytest.raises(RuntimeError, match="already open"):
        await store.begin_transaction()

    await transaction.commit()
    with pytest.raises(RuntimeError, match="already completed"):
        await transaction.rollback()


@pytest.mark.asyncio
async def test_scope_repository_lists_scopes_of_all_credentials(
    store: InMemoryGalleryStore,
) -> None:
    scopes = InMemoryScopeRepository(store)

    all_scopes = await scopes.get_all()
    assert len(all_scopes) == 1
    assert all_scopes[0].owner_key == 1

    scopes.delete_on_commit(all_scopes[0])
    await scopes.commit_changes()

    assert await scopes.get_all() == []


@pytest.mark.asyncio
async def test_from_file_missing_snapshot(tmp_path: Path) -> None:
    store = await InMemoryGalleryStore.from_file(str(tmp_path / "absent.json"))

    assert store.data.users == []
    assert store.find_user("anyone") is None


@pytest.mark.asyncio
async def test_account_named_by_delete_record_keeps_row(
    store: InMemoryGalleryStore,
) -> None:
    users = InMemoryUserRepository(store)
    account_deletes = InMemoryAccountDeleteRepository(store)
    alice = await users.get_by_username("alice")
    bob = await users.get_by_username("bob")
    assert alice is not None and bob is not None

    account_deletes.insert_on_commit(AccountDelete(alice, bob, signature="bob"))
    users.delete_on_commit(bob)
    await users.commit_changes()

    assert store.find_user("bob") is bob
    assert bob.is_deleted is True
    assert store.snapshot_path is not None
    persisted = read_snapshot(store.snapshot_path)
    assert persisted.account_deletes[0].deleted_by.username == "bob"
