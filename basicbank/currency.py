"""Currencies the bank accepts."""

USD = "USD"
EUR = "EUR"
CAD = "CAD"

SUPPORTED_CURRENCIES = frozenset({USD, EUR, CAD})


def is_supported_currency(currency):
    """Return True if ``currency`` is a currency code the bank accepts."""
    return isinstance(currency, str) and currency in SUPPORTED_CURRENCIES