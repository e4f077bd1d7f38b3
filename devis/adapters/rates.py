"""
Cliente da fonte de taxas de câmbio.

A fonte devolve um JSON no formato frankfurter.app::

    {"base": "EUR", "date": "2025-01-15", "rates": {"USD": 1.08, ...}}

Apenas leitura, sem parâmetros. Qualquer falha (rede, HTTP, JSON
malformado) vira ``RateUnavailable``.
"""

from __future__ import annotations

from typing import Dict

import requests

from devis.config import DEFAULTS, RATES_URL
from devis.domain.errors import RateUnavailable


class RatesClient:
    def __init__(self, url: str = RATES_URL, timeout: float = DEFAULTS.rates_timeout) -> None:
        self.url = url
        self.timeout = timeout

    def _fetch_json(self):
        headers = {"Accept": "application/json"}
        resp = requests.get(self.url, headers=headers, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    @staticmethod
    def _parse_rates(payload) -> Dict[str, float]:
        if not isinstance(payload, dict) or not isinstance(payload.get("rates"), dict):
            raise RateUnavailable("malformed rates payload: 'rates' mapping missing")
        rates: Dict[str, float] = {}
        for code, value in payload["rates"].items():
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise RateUnavailable(f"malformed rate for {code}: {value!r}")
            rates[str(code).upper()] = float(value)
        base = payload.get("base")
        if base:
            rates.setdefault(str(base).upper(), 1.0)
        return rates

    def fetch(self) -> Dict[str, float]:
        """Busca as taxas relativas ao pivot (EUR)."""
        try:
            payload = self._fetch_json()
        except (requests.RequestException, ValueError) as e:
            raise RateUnavailable(f"exchange-rate fetch failed: {e}") from e
        return self._parse_rates(payload)
