import pytest

from basicbank.currency import CAD, EUR, USD, is_supported_currency


@pytest.mark.parametrize("code", [USD, EUR, CAD])
def test_supported_codes(code):
    assert is_supported_currency(code) is True


@pytest.mark.parametrize("code", ["usd", "GBP", "", " USD"])
def test_unsupported_codes(code):
    assert is_supported_currency(code) is False


def test_non_string_is_rejected():
    assert is_supported_currency(None) is False
    assert is_supported_currency(840) is False