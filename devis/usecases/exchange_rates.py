"""
UC: Carregar as taxas de câmbio (apenas na inicialização).

Falhas nunca são fatais: o resultado é um ``RateState`` sem taxas e
com um aviso para o usuário; a conversão e a edição em outra moeda
ficam desabilitadas.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from devis.adapters.rates import RatesClient
from devis.domain.currency import complete_rates, validate_rates
from devis.domain.errors import RateUnavailable
from devis.infra.logger import log_rates_event

NOTICE_UNAVAILABLE = (
    "Taux de change indisponibles : les montants sont affichés dans la devise "
    "de chaque devis et la modification dans une autre devise est désactivée."
)
NOTICE_OFFLINE = "Mode hors ligne : taux de change non chargés."


@dataclass
class RateState:
    rates: Optional[Dict[str, float]] = None
    notice: Optional[str] = None

    @property
    def available(self) -> bool:
        return self.rates is not None


def load_rates(client: Optional[RatesClient] = None, offline: bool = False) -> RateState:
    """Busca, completa (pivot + XOF) e valida a tabela de taxas."""
    if offline:
        log_rates_event("offline")
        return RateState(None, NOTICE_OFFLINE)

    client = client or RatesClient()
    log_rates_event("fetch_start", url=client.url)
    try:
        rates = validate_rates(complete_rates(client.fetch()))
    except RateUnavailable as e:
        log_rates_event("unavailable", level="warning", error=str(e))
        return RateState(None, NOTICE_UNAVAILABLE)
    log_rates_event("fetch_success", currencies=sorted(rates))
    return RateState(rates, None)
