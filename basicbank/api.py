"""HTTP API of the bank: users, accounts and transfers."""

import json
import re
from dataclasses import dataclass
from http import HTTPStatus

from flask import Flask, jsonify, request

from basicbank.currency import is_supported_currency
from basicbank.errors import FOREIGN_KEY_VIOLATION, UNIQUE_VIOLATION, NoRowsError, error_code
from basicbank.password import hash_password

_ALPHANUM = re.compile(r"[A-Za-z0-9]+")
_EMAIL = re.compile(
    r"[A-Za-z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?"
    r"(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?)*"
)
_INTEGER = re.compile(r"[+-]?[0-9]+")

_REQUIRED = ("required", None)


class _BindingError(ValueError):
    """The request's data could not be read or failed validation."""


def _json_kind(value):
    if isinstance(value, dict):
        return "object"
    if isinstance(value, list):
        return "array"
    if isinstance(value, str):
        return "string"
    if isinstance(value, bool):
        return "bool"
    return "number"


def _passes(tag, param, value):
    if tag == "required":
        return value not in ("", 0)
    size = len(value) if isinstance(value, str) else value
    if tag == "min":
        return size >= param
    if tag == "gt":
        return size > param
    if tag == "alphanum":
        return bool(_ALPHANUM.fullmatch(value))
    if tag == "email":
        return bool(_EMAIL.fullmatch(value))
    if tag == "currency":
        return is_supported_currency(value)
    raise ValueError(f"unknown validation tag {tag!r}")


@dataclass(frozen=True)
class _Field:
    key: str
    name: str
    kind: type = str
    bits: int = 64
    rules: tuple = ()

    @property
    def zero(self):
        return self.kind()

    def fits(self, value):
        limit = 1 << (self.bits - 1)
        return -limit <= value < limit

    def from_json(self, struct, value):
        if value is None:
            return self.zero
        if self.kind is int:
            if isinstance(value, int) and not isinstance(value, bool) and self.fits(value):
                return value
            type_name = f"int{self.bits}"
        elif isinstance(value, str):
            return value
        else:
            type_name = "string"
        raise _BindingError(
            f"json: cannot unmarshal {_json_kind(value)} into field "
            f"{struct}.{self.key} of type {type_name}"
        )

    def from_text(self, text):
        if text is None:
            return self.zero
        if self.kind is not int:
            return text
        if text == "":
            return 0
        if not _INTEGER.fullmatch(text):
            raise _BindingError(f'parsing "{text}": invalid syntax')
        value = int(text)
        if not self.fits(value):
            raise _BindingError(f'parsing "{text}": value out of range')
        return value


@dataclass(frozen=True)
class _Request:
    name: str
    fields: tuple

    def bind_json(self, raw):
        if not raw.strip():
            raise _BindingError("EOF")
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise _BindingError(str(exc)) from exc
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise _BindingError(
                f"json: cannot unmarshal {_json_kind(data)} into value of type {self.name}"
            )
        values = {
            field.key: field.from_json(self.name, _lookup(data, field.key))
            for field in self.fields
        }
        return self.validate(values)

    def bind_text(self, source):
        values = {field.key: field.from_text(source.get(field.key)) for field in self.fields}
        return self.validate(values)

    def validate(self, values):
        failures = []
        for field in self.fields:
            value = values[field.key]
            for tag, param in field.rules:
                if not _passes(tag, param, value):
                    failures.append(
                        f"Key: '{self.name}.{field.name}' Error:Field validation for "
                        f"'{field.name}' failed on the '{tag}' tag"
                    )
                    break
        if failures:
            raise _BindingError("\n".join(failures))
        return values


def _lookup(data, key):
    if key in data:
        return data[key]
    folded = key.lower()
    return next((value for name, value in data.items() if name.lower() == folded), None)


_CREATE_ACCOUNT = _Request(
    "createAccountRequest",
    (
        _Field("owner", "Owner", rules=(_REQUIRED,)),
        _Field("currency", "Currency", rules=(_REQUIRED, ("currency", None))),
    ),
)

_GET_ACCOUNT = _Request(
    "getAccountRequest",
    (_Field("id", "ID", int, 64, (_REQUIRED, ("min", 1))),),
)

_LIST_ACCOUNTS = _Request(
    "listAccountRequest",
    (
        _Field("page_no", "PageNo", int, 32, (_REQUIRED, ("min", 1))),
        _Field("per_page", "PerPage", int, 32, (_REQUIRED, ("min", 1))),
    ),
)

# The currency is not validated while binding; a mismatch with the
# accounts' currency is reported when the accounts are checked.
_TRANSFER = _Request(
    "transferRequest",
    (
        _Field("from_account_id", "FromAccountID", int, 64, (_REQUIRED, ("min", 1))),
        _Field("to_account_id", "ToAccountID", int, 64, (_REQUIRED, ("min", 1))),
        _Field("amount", "Amount", int, 64, (_REQUIRED, ("gt", 0))),
        _Field("currency", "Currency"),
    ),
)

_CREATE_USER = _Request(
    "createUserRequest",
    (
        _Field("username", "Username", rules=(_REQUIRED, ("alphanum", None))),
        _Field("email", "Email", rules=(_REQUIRED, ("email", None))),
        _Field("password", "Password", rules=(_REQUIRED, ("min", 8))),
        _Field("full_name", "Fullname", rules=(_REQUIRED,)),
    ),
)


def error_response(err):
    """Return the JSON body that reports ``err`` to the client."""
    return {"error": str(err)}


def _failure(status, err):
    return jsonify(error_response(err)), status


def _bind_body(spec):
    if request.is_json:
        return spec.bind_json(request.get_data())
    return spec.bind_text(request.form)


class Server:
    """Serves the bank's HTTP API over a store."""

    def __init__(self, store):
        self.store = store
        self.app = Flask(__name__)
        self.app.json.sort_keys = False

        route = self.app.add_url_rule
        route("/api/v1/users", "create_user", self._create_user, methods=["POST"])
        route("/api/v1/accounts", "create_account", self._create_account, methods=["POST"])
        route(
            "/api/v1/accounts/<account_id>", "get_account", self._get_account, methods=["GET"]
        )
        route("/api/v1/accounts", "list_accounts", self._list_accounts, methods=["GET"])
        route("/api/v1/transfers", "create_transfer", self._create_transfer, methods=["POST"])

    def start(self, address):
        """Serve HTTP on ``address`` ("host:port"; an empty host means all interfaces)."""
        if not address:
            address = ":80"
        if ":" not in address:
            raise ValueError(f"address {address}: missing port in address")
        host, _, port = address.rpartition(":")
        host = host.strip("[]") or "0.0.0.0"
        self.app.run(host=host, port=int(port) if port else 80)

    def _create_user(self):
        try:
            req = _bind_body(_CREATE_USER)
        except _BindingError as exc:
            return _failure(HTTPStatus.BAD_REQUEST, exc)

        try:
            hashed = hash_password(req["password"])
        except ValueError as exc:
            return _failure(HTTPStatus.INTERNAL_SERVER_ERROR, exc)

        try:
            user = self.store.create_user(req["username"], hashed, req["full_name"], req["email"])
        except Exception as exc:
            if error_code(exc) == UNIQUE_VIOLATION:
                return _failure(HTTPStatus.FORBIDDEN, exc)
            return _failure(HTTPStatus.INTERNAL_SERVER_ERROR, exc)

        public = user.to_dict()
        response = {
            key: public[key]
            for key in ("username", "email", "full_name", "created_at", "password_changed_at")
        }
        return jsonify(response), HTTPStatus.OK

    def _create_account(self):
        try:
            req = _bind_body(_CREATE_ACCOUNT)
        except _BindingError as exc:
            return _failure(HTTPStatus.BAD_REQUEST, exc)

        try:
            account = self.store.create_account(req["owner"], 0, req["currency"])
        except Exception as exc:
            if error_code(exc) in (FOREIGN_KEY_VIOLATION, UNIQUE_VIOLATION):
                return _failure(HTTPStatus.FORBIDDEN, exc)
            return _failure(HTTPStatus.INTERNAL_SERVER_ERROR, exc)
        return jsonify(account.to_dict()), HTTPStatus.OK

    def _get_account(self, account_id):
        try:
            req = _GET_ACCOUNT.bind_text({"id": account_id})
        except _BindingError as exc:
            return _failure(HTTPStatus.BAD_REQUEST, exc)

        try:
            account = self.store.get_account(req["id"])
        except NoRowsError as exc:
            return _failure(HTTPStatus.NOT_FOUND, exc)
        except Exception as exc:
            return _failure(HTTPStatus.INTERNAL_SERVER_ERROR, exc)
        return jsonify(account.to_dict()), HTTPStatus.OK

    def _list_accounts(self):
        try:
            req = _LIST_ACCOUNTS.bind_text(request.args)
        except _BindingError as exc:
            return _failure(HTTPStatus.BAD_REQUEST, exc)

        per_page = req["per_page"]
        try:
            accounts = self.store.list_accounts(per_page, (req["page_no"] - 1) * per_page)
        except NoRowsError as exc:
            return _failure(HTTPStatus.NOT_FOUND, exc)
        except Exception as exc:
            return _failure(HTTPStatus.INTERNAL_SERVER_ERROR, exc)
        return jsonify([account.to_dict() for account in accounts]), HTTPStatus.OK

    def _create_transfer(self):
        try:
            req = _bind_body(_TRANSFER)
        except _BindingError as exc:
            return _failure(HTTPStatus.BAD_REQUEST, exc)

        for account_id in (req["from_account_id"], req["to_account_id"]):
            problem = self._check_account(account_id, req["currency"])
            if problem is not None:
                return problem

        try:
            result = self.store.transfer_tx(
                req["from_account_id"], req["to_account_id"], req["amount"]
            )
        except Exception as exc:
            return _failure(HTTPStatus.INTERNAL_SERVER_ERROR, exc)
        return jsonify(result.to_dict()), HTTPStatus.OK

    def _check_account(self, account_id, currency):
        """Return an error reply if the account is missing or in another currency."""
        try:
            account = self.store.get_account(account_id)
        except NoRowsError as exc:
            return _failure(HTTPStatus.NOT_FOUND, exc)
        except Exception as exc:
            return _failure(HTTPStatus.INTERNAL_SERVER_ERROR, exc)

        if account.currency != currency:
            err = ValueError(
                f"account [{account_id}] currency mismatch: {currency} vs {account.currency}"
            )
            return _failure(HTTPStatus.BAD_REQUEST, err)
        return None