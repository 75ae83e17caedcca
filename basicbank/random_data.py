"""Random values for sample data."""

import random

from basicbank.currency import CAD, EUR, USD

ALPHABET = "abcdefghijklmnopqrstuvwxyz"


def rand_int(low, high):
    """Return a random integer between ``low`` and ``high`` inclusive."""
    if high < low:
        raise ValueError(f"invalid range: {low} > {high}")
    return random.randint(low, high)


def random_string(n):
    """Return a random lower-case string of length ``n``."""
    return "".join(random.choices(ALPHABET, k=max(n, 0)))


def rand_owner():
    """Return a random owner name."""
    return random_string(6)


def random_money():
    """Return a random amount of money."""
    return rand_int(0, 1000)


def random_currency():
    """Return a random supported currency code."""
    return random.choice((EUR, USD, CAD))


def random_email():
    """Return a random e-mail address."""
    return f"{random_string(5)}@example.com"