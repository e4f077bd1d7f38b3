from math import isclose

import pytest

from devis.domain.currency import XOF_PER_EUR, complete_rates, convert, validate_rates
from devis.domain.errors import RateUnavailable
from devis.domain.models import Currency

from conftest import RATES


@pytest.mark.parametrize("amount", [0.0, 0.1, 5.35, 123456.789, 1e-9])
@pytest.mark.parametrize("ccy", list(Currency))
def test_same_currency_is_exact_identity(amount, ccy):
    assert convert(amount, ccy, ccy, RATES) == amount
    # mesmo com tabela vazia ou absurda
    assert convert(amount, ccy, ccy, {}) == amount
    assert convert(amount, ccy, ccy, {ccy.value: 0.0}) == amount


def test_convert_through_pivot():
    assert isclose(convert(100.0, Currency.EUR, Currency.USD, RATES), 110.0)
    assert isclose(convert(110.0, Currency.USD, Currency.EUR, RATES), 100.0)
    # USD -> XOF passa pelo EUR
    assert isclose(convert(1.1, Currency.USD, Currency.XOF, RATES), XOF_PER_EUR)


def test_missing_rate_falls_back_to_one():
    assert convert(10.0, Currency.EUR, Currency.USD, {"EUR": 1.0}) == 10.0


def test_complete_rates_injects_pivot_and_xof():
    rates = complete_rates({"usd": 1.08})
    assert rates == {"USD": 1.08, "EUR": 1.0, "XOF": XOF_PER_EUR}


def test_complete_rates_keeps_published_xof():
    assert complete_rates({"USD": 1.08, "XOF": 650.0})["XOF"] == 650.0


def test_validate_rates():
    assert validate_rates(RATES) == RATES
    with pytest.raises(RateUnavailable):
        validate_rates(None)
    with pytest.raises(RateUnavailable, match="USD"):
        validate_rates({"EUR": 1.0, "XOF": XOF_PER_EUR})
    with pytest.raises(RateUnavailable):
        validate_rates({"EUR": 1.0, "USD": 0.0, "XOF": XOF_PER_EUR})
    with pytest.raises(RateUnavailable):
        validate_rates({"EUR": 1.0, "USD": -1.0, "XOF": XOF_PER_EUR})
