"""Records stored by the bank."""

from dataclasses import dataclass
from datetime import datetime, timezone

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


def _format_time(value):
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
    )
    if value.microsecond:
        text += f".{value.microsecond:06d}".rstrip("0")
    offset = value.utcoffset()
    if not offset:
        return text + "Z"
    minutes = int(offset.total_seconds()) // 60
    sign = "+" if minutes >= 0 else "-"
    hours, mins = divmod(abs(minutes), 60)
    return f"{text}{sign}{hours:02d}:{mins:02d}"


@dataclass
class Account:
    """A bank account holding a balance in one currency."""

    id: int
    owner: str
    balance: int
    currency: str
    created_at: datetime = ZERO_TIME

    def to_dict(self):
        return {
            "id": self.id,
            "owner": self.owner,
            "balance": self.balance,
            "currency": self.currency,
            "created_at": _format_time(self.created_at),
        }


@dataclass
class Entry:
    """A change to one account's balance; the amount may be negative."""

    id: int
    account_id: int
    amount: int
    created_at: datetime = ZERO_TIME

    def to_dict(self):
        return {
            "id": self.id,
            "account_id": self.account_id,
            "amount": self.amount,
            "created_at": _format_time(self.created_at),
        }


@dataclass
class Transfer:
    """A movement of money from one account to another."""

    id: int
    from_account_id: int
    to_account_id: int
    amount: int
    created_at: datetime = ZERO_TIME

    def to_dict(self):
        return {
            "id": self.id,
            "from_account_id": self.from_account_id,
            "to_account_id": self.to_account_id,
            "amount": self.amount,
            "created_at": _format_time(self.created_at),
        }


@dataclass
class User:
    """A registered user of the bank."""

    username: str
    email: str
    hashed_password: str
    full_name: str
    password_changed_at: datetime = ZERO_TIME
    created_at: datetime = ZERO_TIME

    def to_dict(self):
        return {
            "username": self.username,
            "email": self.email,
            "hashed_password": self.hashed_password,
            "full_name": self.full_name,
            "password_changed_at": _format_time(self.password_changed_at),
            "created_at": _format_time(self.created_at),
        }