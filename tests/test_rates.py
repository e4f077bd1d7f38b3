import pytest
import requests

from devis.adapters import rates as rates_mod
from devis.adapters.rates import RatesClient
from devis.domain.currency import XOF_PER_EUR
from devis.domain.errors import RateUnavailable
from devis.usecases.exchange_rates import NOTICE_OFFLINE, NOTICE_UNAVAILABLE, load_rates


class _FakeResponse:
    def __init__(self, payload=None, status=200, exc=None):
        self._payload = payload
        self.status_code = status
        self._exc = exc

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")

    def json(self):
        if self._exc is not None:
            raise self._exc
        return self._payload


def _patch_get(monkeypatch, response):
    calls = []

    def fake_get(url, headers=None, timeout=None):
        calls.append((url, timeout))
        if isinstance(response, Exception):
            raise response
        return response

    monkeypatch.setattr(rates_mod.requests, "get", fake_get)
    return calls


def test_fetch_parses_frankfurter_payload(monkeypatch):
    calls = _patch_get(monkeypatch, _FakeResponse({"base": "EUR", "date": "2025-01-15", "rates": {"USD": 1.08}}))
    got = RatesClient(url="http://rates.test", timeout=3).fetch()
    assert got == {"USD": 1.08, "EUR": 1.0}
    assert calls == [("http://rates.test", 3)]


@pytest.mark.parametrize(
    "response",
    [
        requests.ConnectionError("offline"),
        _FakeResponse({}, status=503),
        _FakeResponse(exc=ValueError("not json")),
        _FakeResponse({"base": "EUR"}),
        _FakeResponse({"rates": {"USD": "1.08"}}),
    ],
)
def test_fetch_failures_become_rate_unavailable(monkeypatch, response):
    _patch_get(monkeypatch, response)
    with pytest.raises(RateUnavailable):
        RatesClient(url="http://rates.test").fetch()


class _StubClient:
    url = "http://stub"

    def __init__(self, result):
        self.result = result

    def fetch(self):
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def test_load_rates_completes_table():
    state = load_rates(_StubClient({"USD": 1.1, "GBP": 0.85}))
    assert state.available
    assert state.notice is None
    assert state.rates["EUR"] == 1.0
    assert state.rates["XOF"] == XOF_PER_EUR
    assert state.rates["USD"] == 1.1


def test_load_rates_failure_is_not_fatal():
    state = load_rates(_StubClient(RateUnavailable("boom")))
    assert not state.available
    assert state.notice == NOTICE_UNAVAILABLE


def test_load_rates_rejects_incomplete_table():
    # sem USD: a tabela não cobre todas as moedas suportadas
    state = load_rates(_StubClient({"GBP": 0.85}))
    assert state.rates is None
    assert state.notice == NOTICE_UNAVAILABLE


def test_load_rates_rejects_non_positive_rate():
    state = load_rates(_StubClient({"USD": 0.0}))
    assert not state.available


def test_load_rates_offline_skips_fetch():
    state = load_rates(_StubClient(AssertionError("should not fetch")), offline=True)
    assert not state.available
    assert state.notice == NOTICE_OFFLINE
