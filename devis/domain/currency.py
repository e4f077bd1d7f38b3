"""
Currency conversion against a pivot-relative rate table.

A rate table maps a currency code to its rate relative to the pivot
currency (EUR): ``rates["USD"] == 1.08`` means 1 EUR buys 1.08 USD.
The pivot's own rate is 1.

``convert`` is pure and stateless; it is called repeatedly while a
quote is displayed or edited, so it never raises on bad input.
"""

from __future__ import annotations

from typing import Dict, Mapping, Optional

from devis.domain.errors import RateUnavailable
from devis.domain.models import Currency

RateTable = Mapping[str, float]

PIVOT_CURRENCY = Currency.EUR

# XOF is pegged to the euro and is not published by the remote source.
XOF_PER_EUR = 655.957


def convert(amount: float, from_currency: Currency, to_currency: Currency, rates: RateTable) -> float:
    """Convert ``amount`` from one currency to another.

    Same-currency conversion returns ``amount`` untouched, whatever the
    rate table holds. A currency missing from ``rates`` is treated as
    rate 1; callers validate the table with :func:`validate_rates`
    before relying on it. A zero source rate is not guarded and raises
    ``ZeroDivisionError``; :func:`validate_rates` rejects such tables.
    """
    from_currency = Currency(from_currency)
    to_currency = Currency(to_currency)
    if from_currency == to_currency:
        return amount
    rate_from = rates.get(from_currency.value, 1.0)
    rate_to = rates.get(to_currency.value, 1.0)
    return amount / rate_from * rate_to


def complete_rates(fetched: Mapping[str, float]) -> Dict[str, float]:
    """Return a copy of ``fetched`` with the pivot and XOF rates injected."""
    rates = {str(k).upper(): float(v) for k, v in fetched.items()}
    rates[PIVOT_CURRENCY.value] = 1.0
    rates.setdefault(Currency.XOF.value, XOF_PER_EUR)
    return rates


def validate_rates(rates: Optional[RateTable]) -> Dict[str, float]:
    """Check that every supported currency has a usable rate.

    Raises
    ------
    RateUnavailable
        If the table is missing, or any supported currency has no
        positive rate.
    """
    if not rates:
        raise RateUnavailable("no exchange rates loaded")
    missing = []
    for currency in Currency:
        value = rates.get(currency.value)
        if not isinstance(value, (int, float)) or isinstance(value, bool) or value <= 0:
            missing.append(currency.value)
    if missing:
        raise RateUnavailable(f"missing exchange rates for: {', '.join(missing)}")
    return dict(rates)
