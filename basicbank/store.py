"""Access to the bank's database: single queries and multi-step transactions."""

import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass

from basicbank.models import Account, Entry, Transfer
from basicbank.queries import Queries, create_schema


@dataclass
class TransferTxResult:
    """Everything a money transfer created or changed."""

    transfer: Transfer
    from_account: Account
    to_account: Account
    from_entry: Entry
    to_entry: Entry

    def to_dict(self):
        return {
            "transfer": self.transfer.to_dict(),
            "from_account": self.from_account.to_dict(),
            "to_account": self.to_account.to_dict(),
            "from_entry": self.from_entry.to_dict(),
            "to_entry": self.to_entry.to_dict(),
        }


def _add_money(queries, account_id1, amount1, account_id2, amount2):
    account1 = queries.add_account_balance(account_id1, amount1)
    account2 = queries.add_account_balance(account_id2, amount2)
    return account1, account2


class Store(Queries):
    """All queries of the bank plus its transactions, safe to share between threads.

    ``database`` is an SQLite database path, or ``":memory:"``.
    """

    def __init__(self, database):
        conn = sqlite3.connect(
            database, check_same_thread=False, isolation_level=None, timeout=30
        )
        try:
            create_schema(conn)
        except sqlite3.Error:
            conn.close()
            raise
        super().__init__(conn)
        self._lock = threading.RLock()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _write(self, sql, params):
        with self._lock:
            return super()._write(sql, params)

    def _one(self, sql, params, build):
        with self._lock:
            return super()._one(sql, params, build)

    def _many(self, sql, params, build):
        with self._lock:
            return super()._many(sql, params, build)

    @contextmanager
    def transaction(self):
        """Run the block in one database transaction and yield its Queries.

        The transaction is committed when the block ends and rolled back if it raises.
        """
        with self._lock:
            self._conn.execute("BEGIN IMMEDIATE")
            try:
                yield Queries(self._conn)
            except BaseException as exc:
                try:
                    self._conn.rollback()
                except sqlite3.Error as rb_exc:
                    raise RuntimeError(f"tx err: {exc}, rb err: {rb_exc}") from exc
                raise
            self._conn.commit()

    def transfer_tx(self, from_account_id, to_account_id, amount):
        """Move ``amount`` between two accounts, recording the transfer and both entries."""
        with self.transaction() as q:
            transfer = q.create_transfer(from_account_id, to_account_id, amount)
            from_entry = q.create_entry(from_account_id, -amount)
            to_entry = q.create_entry(to_account_id, amount)
            # Always update the lower id first so concurrent transfers lock in one order.
            if from_account_id < to_account_id:
                from_account, to_account = _add_money(
                    q, from_account_id, -amount, to_account_id, amount
                )
            else:
                to_account, from_account = _add_money(
                    q, to_account_id, amount, from_account_id, -amount
                )
        return TransferTxResult(
            transfer=transfer,
            from_account=from_account,
            to_account=to_account,
            from_entry=from_entry,
            to_entry=to_entry,
        )

    def close(self):
        """Close the database connection."""
        with self._lock:
            self._conn.close()