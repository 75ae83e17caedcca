# basicbank

A small banking service. It keeps users and their accounts, each account
holding a balance in one currency, records every movement of money as a
ledger entry, and moves money between two accounts in a single SQLite
transaction, so that the transfer record, both entries and both balances
change together or not at all.

The service speaks JSON over HTTP and is built on Flask.

## Installing

```
pip install .
```

For running the tests as well:

```
pip install ".[test]"
pytest
```

## Configuration

Settings are read from a file named `app.env` in the configuration directory
(the current directory unless `--config-dir` says otherwise). Environment
variables of the same name take precedence over the file. Without an
`app.env` file the command stops with `cannot load config`.

```
DB_DRIVER=sqlite
DB_SOURCE=bank.db
SERVER_ADDRESS=127.0.0.1:8080
```

- `DB_SOURCE` is the path of the SQLite database file (`:memory:` for a
  database that lives only as long as the process). Its tables are created
  when the store opens it.
- `SERVER_ADDRESS` is `host:port`. An empty host listens on all interfaces;
  an empty address means port 80 on all interfaces.
- `DB_DRIVER` is read into the configuration but not otherwise used; the
  store always uses SQLite.

## Running

```
basicbank
basicbank --config-dir /path/to/settings
```

The command loads the configuration, opens the database and serves the API
until it is stopped. It exits with status 1 and a message on standard error
(`cannot load config`, `cannot connect to the db: ...`, `cannot start server`)
when one of these steps fails.

## HTTP API

Request bodies are JSON when sent with a JSON content type, and are otherwise
read as form fields. Responses are JSON. Errors come back as
`{"error": "<message>"}`; a request whose data is missing or fails validation
is answered with 400.

| Method | Path                    | Purpose                           |
|--------|-------------------------|-----------------------------------|
| POST   | `/api/v1/users`         | create a user                     |
| POST   | `/api/v1/accounts`      | open an account                   |
| GET    | `/api/v1/accounts/<id>` | fetch one account                 |
| GET    | `/api/v1/accounts`      | list accounts, one page at a time |
| POST   | `/api/v1/transfers`     | move money between two accounts   |

### Users

```json
{"username": "alice", "email": "alice@example.com", "password": "password", "full_name": "Alice Example"}
```

The username must be alphanumeric, the e-mail address valid and the password
at least eight characters long. The password is stored only as a bcrypt hash;
the response holds `username`, `email`, `full_name`, `created_at` and
`password_changed_at`, never the hash. A username or e-mail address that is
already taken is answered with 403.

### Accounts

```json
{"owner": "alice", "currency": "USD"}
```

Supported currencies are `USD`, `EUR` and `CAD`. A new account starts with a
balance of 0. The owner must be an existing user; an unknown owner, or a
second account for the same owner and currency, is answered with 403.

An account id must be a whole number of at least 1; an unknown id is answered
with 404.

Listing takes the query parameters `page_no` and `per_page`, both at least 1,
and returns accounts in order of id:

```
GET /api/v1/accounts?page_no=1&per_page=5
```

### Transfers

```json
{"from_account_id": 1, "to_account_id": 2, "amount": 10, "currency": "USD"}
```

Both account ids must be at least 1 and the amount greater than 0. An account
that does not exist is answered with 404; an account whose currency differs
from the request's is answered with 400
(`account [<id>] currency mismatch: <requested> vs <held>`). The response
carries `transfer`, `from_entry` (with a negative amount), `to_entry`,
`from_account` and `to_account` with their new balances.

## Using it as a library

```python
from basicbank.password import hash_password
from basicbank.store import Store

password = "password"

with Store("bank.db") as store:
    with store.transaction() as queries:
        queries.create_user("alice", hash_password(password), "Alice Example", "alice@example.com")
        queries.create_user("bob", hash_password(password), "Bob Example", "bob@example.com")
        first = queries.create_account("alice", 100, "USD")
        second = queries.create_account("bob", 0, "USD")

    result = store.transfer_tx(first.id, second.id, 10)
    print(result.to_dict())
```

- `basicbank.store.Store(database)` opens an SQLite database, creates the
  tables and offers every query of `basicbank.queries.Queries` (accounts,
  entries, transfers and users) directly; it can be shared between threads.
  `Store.transaction()` yields a `Queries` for one transaction, committed when
  the block ends and rolled back if it raises. `Store.transfer_tx` returns a
  `TransferTxResult`. `Store.close()` closes the connection, as does leaving a
  `with` block.
- Single-row lookups raise `basicbank.errors.NoRowsError` when nothing is
  found. Constraint failures raise `basicbank.errors.DatabaseError`, whose
  `code` is an SQLSTATE code such as `basicbank.errors.UNIQUE_VIOLATION`
  (`"23505"`) or `FOREIGN_KEY_VIOLATION` (`"23503"`);
  `basicbank.errors.error_code(err)` finds that code in an exception's chain.
- The records in `basicbank.models` (`Account`, `Entry`, `Transfer`, `User`)
  are dataclasses with a `to_dict()` method giving their JSON form.
- `basicbank.password.hash_password` hashes a password with bcrypt (passwords
  over 72 bytes raise `ValueError`); `basicbank.password.check_password`
  raises `basicbank.password.PasswordMismatchError` when a password does not
  match a hash.
- `basicbank.api.Server(store)` holds the Flask application as `app`;
  `start(address)` serves it.
- `basicbank.config.load_config(path)` returns a `Config` with `db_driver`,
  `db_source` and `server_address`.
- `basicbank.currency.is_supported_currency` and the helpers in
  `basicbank.random_data` (random strings, owners, amounts, currencies and
  example.com e-mail addresses) are there for validation and sample data.

## What it does not do

- There is no log-in and no authentication: the HTTP API stores a password
  hash when a user is created but never checks a password, and any client
  may read accounts and make transfers.
- The HTTP API has no way to deposit or withdraw money or to delete anything;
  accounts open with a balance of 0, and other balances can only be set
  through the library (`update_account`, `add_account_balance`).
- Transfers do not check that the sending account has enough money; a
  balance may go below zero.
- Storage is SQLite only.