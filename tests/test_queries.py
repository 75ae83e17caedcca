import sqlite3
from datetime import datetime, timedelta, timezone

import pytest

from basicbank.currency import SUPPORTED_CURRENCIES
from basicbank.errors import (
    FOREIGN_KEY_VIOLATION,
    UNIQUE_VIOLATION,
    DatabaseError,
    NoRowsError,
    error_code,
)
from basicbank.models import ZERO_TIME
from basicbank.password import hash_password
from basicbank.queries import Queries, create_schema
from basicbank.random_data import (
    rand_owner,
    random_currency,
    random_email,
    random_money,
    random_string,
)


@pytest.fixture(scope="module")
def hashed():
    return hash_password(random_string(6))


@pytest.fixture
def conn():
    connection = sqlite3.connect(":memory:")
    create_schema(connection)
    yield connection
    connection.close()


@pytest.fixture
def queries(conn):
    return Queries(conn)


def _recent(moment):
    return abs(datetime.now(timezone.utc) - moment) < timedelta(seconds=5)


def create_random_user(queries, hashed):
    username = rand_owner() + random_string(4)
    full_name = rand_owner()
    email = random_email()
    user = queries.create_user(username, hashed, full_name, email)
    assert user.username == username
    assert user.full_name == full_name
    assert user.hashed_password == hashed
    assert user.email == email
    assert user.password_changed_at == ZERO_TIME
    assert _recent(user.created_at)
    return user


def create_random_account(queries, hashed):
    user = create_random_user(queries, hashed)
    balance = random_money()
    currency = random_currency()
    account = queries.create_account(user.username, balance, currency)
    assert account.owner == user.username
    assert account.balance == balance
    assert account.currency == currency
    assert account.id > 0
    assert _recent(account.created_at)
    return account


def create_random_entry(queries, account):
    amount = random_money()
    entry = queries.create_entry(account.id, amount)
    assert entry.amount == amount
    assert entry.account_id == account.id
    assert entry.id > 0
    assert _recent(entry.created_at)
    return entry


def create_random_transfer(queries, account1, account2):
    amount = random_money() + 1
    transfer = queries.create_transfer(account1.id, account2.id, amount)
    assert transfer.from_account_id == account1.id
    assert transfer.to_account_id == account2.id
    assert transfer.amount == amount
    assert _recent(transfer.created_at)
    return transfer


def test_create_account(queries, hashed):
    account = create_random_account(queries, hashed)
    assert account.currency in SUPPORTED_CURRENCIES


def test_get_account(queries, hashed):
    account1 = create_random_account(queries, hashed)
    account2 = queries.get_account(account1.id)
    assert account2.id == account1.id
    assert account2.owner == account1.owner
    assert account2.balance == account1.balance
    assert account2.currency == account1.currency
    assert abs(account2.created_at - account1.created_at) <= timedelta(seconds=1)


def test_get_account_for_update(queries, hashed):
    account1 = create_random_account(queries, hashed)
    assert queries.get_account_for_update(account1.id) == account1


def test_update_account(queries, hashed):
    account1 = create_random_account(queries, hashed)
    balance = random_money()
    account2 = queries.update_account(account1.id, balance)
    assert account2.id == account1.id
    assert account2.owner == account1.owner
    assert account2.balance == balance
    assert account2.currency == account1.currency
    assert abs(account2.created_at - account1.created_at) <= timedelta(seconds=1)


def test_update_missing_account(queries):
    with pytest.raises(NoRowsError):
        queries.update_account(999, 10)


def test_add_account_balance(queries, hashed):
    account = create_random_account(queries, hashed)
    updated = queries.add_account_balance(account.id, -7)
    assert updated.balance == account.balance - 7
    assert queries.get_account(account.id).balance == account.balance - 7


def test_add_balance_missing_account(queries):
    with pytest.raises(NoRowsError):
        queries.add_account_balance(12345, 5)


def test_delete_account(queries, hashed):
    account = create_random_account(queries, hashed)
    queries.delete_account(account.id)
    with pytest.raises(NoRowsError) as info:
        queries.get_account(account.id)
    assert str(info.value) == "no rows in result set"


def test_delete_account_with_entries_violates_foreign_key(queries, hashed):
    account = create_random_account(queries, hashed)
    create_random_entry(queries, account)
    with pytest.raises(DatabaseError) as info:
        queries.delete_account(account.id)
    assert error_code(info.value) == FOREIGN_KEY_VIOLATION
    assert queries.get_account(account.id).id == account.id


def test_list_accounts(queries, hashed):
    for _ in range(10):
        create_random_account(queries, hashed)
    accounts = queries.list_accounts(5, 5)
    assert len(accounts) == 5
    ids = [account.id for account in accounts]
    assert ids == sorted(ids)
    assert all(account.owner for account in accounts)


def test_list_accounts_negative_limit(queries):
    with pytest.raises(DatabaseError) as info:
        queries.list_accounts(-1, 0)
    assert info.value.code == "2201W"


def test_list_accounts_negative_offset(queries):
    with pytest.raises(DatabaseError) as info:
        queries.list_accounts(5, -1)
    assert info.value.code == "2201X"


def test_account_owner_must_exist(queries):
    with pytest.raises(DatabaseError) as info:
        queries.create_account("nobody", 0, "USD")
    assert error_code(info.value) == FOREIGN_KEY_VIOLATION


def test_account_owner_currency_unique(queries, hashed):
    account = create_random_account(queries, hashed)
    with pytest.raises(DatabaseError) as info:
        queries.create_account(account.owner, 0, account.currency)
    assert error_code(info.value) == UNIQUE_VIOLATION


def test_create_entry(queries, hashed):
    account = create_random_account(queries, hashed)
    entry = create_random_entry(queries, account)
    assert queries.get_entry(entry.id) == entry


def test_get_missing_entry(queries):
    with pytest.raises(NoRowsError):
        queries.get_entry(42)


def test_list_entries(queries, hashed):
    account = create_random_account(queries, hashed)
    for _ in range(10):
        create_random_entry(queries, account)
    other = create_random_account(queries, hashed)
    create_random_entry(queries, other)
    entries = queries.list_entries(account.id, 5, 5)
    assert len(entries) == 5
    assert all(entry.account_id == account.id for entry in entries)


def test_create_transfer(queries, hashed):
    account1 = create_random_account(queries, hashed)
    account2 = create_random_account(queries, hashed)
    transfer = create_random_transfer(queries, account1, account2)
    assert transfer.id > 0


def test_list_transfers(queries, hashed):
    account1 = create_random_account(queries, hashed)
    account2 = create_random_account(queries, hashed)
    for _ in range(10):
        create_random_transfer(queries, account1, account2)
        create_random_transfer(queries, account2, account1)
    transfers = queries.list_transfers(account1.id, account2.id, 5, 5)
    assert len(transfers) == 5
    for transfer in transfers:
        assert transfer.from_account_id == account1.id or transfer.to_account_id == account2.id


def test_get_transfer(queries, hashed):
    account1 = create_random_account(queries, hashed)
    account2 = create_random_account(queries, hashed)
    transfer1 = create_random_transfer(queries, account1, account2)
    transfer2 = queries.get_transfer(transfer1.id)
    assert transfer2.id == transfer1.id
    assert transfer2.from_account_id == transfer1.from_account_id
    assert transfer2.to_account_id == transfer1.to_account_id
    assert transfer2.amount == transfer1.amount
    assert abs(transfer2.created_at - transfer1.created_at) <= timedelta(seconds=1)


def test_create_user(queries, hashed):
    user = create_random_user(queries, hashed)
    assert user.email.endswith("@example.com")


def test_get_user(queries, hashed):
    random_user = create_random_user(queries, hashed)
    user = queries.get_user(random_user.username)
    assert user.email == random_user.email
    assert user.full_name == random_user.full_name
    assert user.hashed_password == random_user.hashed_password
    assert abs(user.password_changed_at - random_user.password_changed_at) <= timedelta(seconds=1)
    assert abs(user.created_at - random_user.created_at) <= timedelta(seconds=1)


def test_get_missing_user(queries):
    with pytest.raises(NoRowsError):
        queries.get_user("ghost")


def test_duplicate_username(queries, hashed):
    user = create_random_user(queries, hashed)
    with pytest.raises(DatabaseError) as info:
        queries.create_user(user.username, hashed, "Someone", "other@example.com")
    assert error_code(info.value) == UNIQUE_VIOLATION


def test_writes_are_committed(tmp_path, hashed):
    path = tmp_path / "bank.db"
    writer = sqlite3.connect(path)
    create_schema(writer)
    user = Queries(writer).create_user("alice", hashed, "Alice", "alice@example.com")
    account = Queries(writer).create_account(user.username, 100, "USD")
    reader = sqlite3.connect(path)
    try:
        assert Queries(reader).get_account(account.id).balance == 100
    finally:
        reader.close()
        writer.close()


def test_failed_write_leaves_no_open_transaction(conn, queries):
    with pytest.raises(DatabaseError):
        queries.create_account("nobody", 0, "USD")
    assert conn.in_transaction is False