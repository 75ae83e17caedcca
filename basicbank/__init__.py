"""A small banking service: users, accounts, ledger entries and transfers in SQLite, served over HTTP."""

__version__ = "0.1.0"