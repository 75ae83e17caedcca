"""SQL queries over the bank's tables, run on an SQLite connection."""

import sqlite3
from datetime import datetime, timezone

from basicbank.errors import (
    FOREIGN_KEY_VIOLATION,
    UNIQUE_VIOLATION,
    DatabaseError,
    NoRowsError,
)
from basicbank.models import Account, Entry, Transfer, User

NOT_NULL_VIOLATION = "23502"
CHECK_VIOLATION = "23514"
INTEGRITY_CONSTRAINT_VIOLATION = "23000"
INVALID_ROW_COUNT_IN_LIMIT = "2201W"
INVALID_ROW_COUNT_IN_OFFSET = "2201X"

_NOW = "(strftime('%Y-%m-%d %H:%M:%f', 'now'))"

SCHEMA = f"""
CREATE TABLE IF NOT EXISTS users (
    username TEXT PRIMARY KEY,
    hashed_password TEXT NOT NULL,
    full_name TEXT NOT NULL,
    email TEXT NOT NULL UNIQUE,
    password_changed_at TEXT NOT NULL DEFAULT '0001-01-01 00:00:00',
    created_at TEXT NOT NULL DEFAULT {_NOW}
);

CREATE TABLE IF NOT EXISTS accounts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    owner TEXT NOT NULL REFERENCES users (username),
    balance INTEGER NOT NULL,
    currency TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT {_NOW},
    UNIQUE (owner, currency)
);

CREATE TABLE IF NOT EXISTS entries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    account_id INTEGER NOT NULL REFERENCES accounts (id),
    amount INTEGER NOT NULL,
    created_at TEXT NOT NULL DEFAULT {_NOW}
);

CREATE TABLE IF NOT EXISTS transfers (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    from_account_id INTEGER NOT NULL REFERENCES accounts (id),
    to_account_id INTEGER NOT NULL REFERENCES accounts (id),
    amount INTEGER NOT NULL CHECK (amount > 0),
    created_at TEXT NOT NULL DEFAULT {_NOW}
);

CREATE INDEX IF NOT EXISTS accounts_owner_idx ON accounts (owner);
CREATE INDEX IF NOT EXISTS entries_account_id_idx ON entries (account_id);
CREATE INDEX IF NOT EXISTS transfers_from_account_id_idx ON transfers (from_account_id);
CREATE INDEX IF NOT EXISTS transfers_to_account_id_idx ON transfers (to_account_id);
CREATE INDEX IF NOT EXISTS transfers_from_to_idx ON transfers (from_account_id, to_account_id);
"""

_ACCOUNT_COLUMNS = "id, owner, balance, currency, created_at"
_ENTRY_COLUMNS = "id, account_id, amount, created_at"
_TRANSFER_COLUMNS = "id, from_account_id, to_account_id, amount, created_at"
_USER_COLUMNS = (
    "username, email, hashed_password, full_name, password_changed_at, created_at"
)


def create_schema(conn):
    """Create the bank's tables on ``conn`` and turn on foreign key checks."""
    conn.execute("PRAGMA foreign_keys = ON")
    conn.executescript(SCHEMA)


def _parse_time(value):
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _account(row):
    return Account(row[0], row[1], row[2], row[3], _parse_time(row[4]))


def _entry(row):
    return Entry(row[0], row[1], row[2], _parse_time(row[3]))


def _transfer(row):
    return Transfer(row[0], row[1], row[2], row[3], _parse_time(row[4]))


def _user(row):
    return User(row[0], row[1], row[2], row[3], _parse_time(row[4]), _parse_time(row[5]))


def _database_error(exc):
    message = str(exc)
    prefixes = (
        ("UNIQUE", UNIQUE_VIOLATION),
        ("FOREIGN KEY", FOREIGN_KEY_VIOLATION),
        ("NOT NULL", NOT_NULL_VIOLATION),
        ("CHECK", CHECK_VIOLATION),
    )
    for prefix, code in prefixes:
        if message.upper().startswith(prefix):
            return DatabaseError(code, message)
    return DatabaseError(INTEGRITY_CONSTRAINT_VIOLATION, message)


def _check_page(limit, offset):
    if limit < 0:
        raise DatabaseError(INVALID_ROW_COUNT_IN_LIMIT, "LIMIT must not be negative")
    if offset < 0:
        raise DatabaseError(INVALID_ROW_COUNT_IN_OFFSET, "OFFSET must not be negative")


class Queries:
    """Typed queries over one connection.

    Outside an open transaction every write is committed at once; inside one
    the caller decides when to commit.
    """

    def __init__(self, conn):
        self._conn = conn

    def _write(self, sql, params):
        outer = self._conn.in_transaction
        try:
            cursor = self._conn.execute(sql, params)
        except sqlite3.IntegrityError as exc:
            if not outer and self._conn.in_transaction:
                self._conn.rollback()
            raise _database_error(exc) from exc
        if not outer and self._conn.in_transaction:
            self._conn.commit()
        return cursor

    def _one(self, sql, params, build):
        row = self._conn.execute(sql, params).fetchone()
        if row is None:
            raise NoRowsError()
        return build(row)

    def _many(self, sql, params, build):
        return [build(row) for row in self._conn.execute(sql, params)]

    # accounts

    def add_account_balance(self, account_id, amount):
        """Add ``amount`` to an account's balance and return the updated account."""
        cursor = self._write(
            "UPDATE accounts SET balance = balance + ? WHERE id = ?", (amount, account_id)
        )
        if cursor.rowcount == 0:
            raise NoRowsError()
        return self.get_account(account_id)

    def create_account(self, owner, balance, currency):
        """Insert an account and return it."""
        cursor = self._write(
            "INSERT INTO accounts (owner, balance, currency) VALUES (?, ?, ?)",
            (owner, balance, currency),
        )
        return self.get_account(cursor.lastrowid)

    def delete_account(self, account_id):
        """Delete an account; deleting one that does not exist is not an error."""
        self._write("DELETE FROM accounts WHERE id = ?", (account_id,))

    def get_account(self, account_id):
        """Return the account with ``account_id`` or raise NoRowsError."""
        return self._one(
            f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE id = ? LIMIT 1",
            (account_id,),
            _account,
        )

    def get_account_for_update(self, account_id):
        """Return the account with ``account_id`` for changing inside a transaction."""
        return self.get_account(account_id)

    def list_accounts(self, limit, offset):
        """Return up to ``limit`` accounts ordered by id, skipping ``offset``."""
        _check_page(limit, offset)
        return self._many(
            f"SELECT {_ACCOUNT_COLUMNS} FROM accounts ORDER BY id LIMIT ? OFFSET ?",
            (limit, offset),
            _account,
        )

    def update_account(self, account_id, balance):
        """Set an account's balance and return the updated account."""
        cursor = self._write(
            "UPDATE accounts SET balance = ? WHERE id = ?", (balance, account_id)
        )
        if cursor.rowcount == 0:
            raise NoRowsError()
        return self.get_account(account_id)

    # entries

    def create_entry(self, account_id, amount):
        """Insert a balance entry and return it."""
        cursor = self._write(
            "INSERT INTO entries (account_id, amount) VALUES (?, ?)", (account_id, amount)
        )
        return self.get_entry(cursor.lastrowid)

    def get_entry(self, entry_id):
        """Return the entry with ``entry_id`` or raise NoRowsError."""
        return self._one(
            f"SELECT {_ENTRY_COLUMNS} FROM entries WHERE id = ? LIMIT 1",
            (entry_id,),
            _entry,
        )

    def list_entries(self, account_id, limit, offset):
        """Return an account's entries ordered by id, paged."""
        _check_page(limit, offset)
        return self._many(
            f"SELECT {_ENTRY_COLUMNS} FROM entries WHERE account_id = ? "
            "ORDER BY id LIMIT ? OFFSET ?",
            (account_id, limit, offset),
            _entry,
        )

    # transfers

    def create_transfer(self, from_account_id, to_account_id, amount):
        """Insert a transfer record and return it."""
        cursor = self._write(
            "INSERT INTO transfers (from_account_id, to_account_id, amount) VALUES (?, ?, ?)",
            (from_account_id, to_account_id, amount),
        )
        return self.get_transfer(cursor.lastrowid)

    def get_transfer(self, transfer_id):
        """Return the transfer with ``transfer_id`` or raise NoRowsError."""
        return self._one(
            f"SELECT {_TRANSFER_COLUMNS} FROM transfers WHERE id = ? LIMIT 1",
            (transfer_id,),
            _transfer,
        )

    def list_transfers(self, from_account_id, to_account_id, limit, offset):
        """Return transfers leaving ``from_account_id`` or reaching ``to_account_id``."""
        _check_page(limit, offset)
        return self._many(
            f"SELECT {_TRANSFER_COLUMNS} FROM transfers "
            "WHERE from_account_id = ? OR to_account_id = ? "
            "ORDER BY id LIMIT ? OFFSET ?",
            (from_account_id, to_account_id, limit, offset),
            _transfer,
        )

    # users

    def create_user(self, username, hashed_password, full_name, email):
        """Insert a user and return it."""
        self._write(
            "INSERT INTO users (username, hashed_password, full_name, email) "
            "VALUES (?, ?, ?, ?)",
            (username, hashed_password, full_name, email),
        )
        return self.get_user(username)

    def get_user(self, username):
        """Return the user called ``username`` or raise NoRowsError."""
        return self._one(
            f"SELECT {_USER_COLUMNS} FROM users WHERE username = ? LIMIT 1",
            (username,),
            _user,
        )