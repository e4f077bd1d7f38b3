"""
Relatórios de devis:
- relatório detalhado de um devis (breakdown + fact sheet)
- comparativo de todos os devis (melhor total por devis)
- análise em linguagem natural pelo serviço externo
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from devis.adapters.summarizer import GeminiSummarizer
from devis.config import DB_PATH
from devis.domain.costs import CostBreakdown, aggregate
from devis.domain.currency import RateTable
from devis.domain.facts import FactSheet, build_fact_sheet, facts_as_dict
from devis.domain.models import Currency, Quote
from devis.infra.logger import log_system_event
from devis.usecases.manage_quotes import get_quote, list_quotes


@dataclass
class QuoteReport:
    quote: Quote
    breakdown: CostBreakdown
    facts: FactSheet


def quote_report(
    quote_id: str,
    display_currency: Currency,
    rates: Optional[RateTable],
    db_path: str = DB_PATH,
) -> QuoteReport:
    quote = get_quote(quote_id, db_path)
    breakdown = aggregate(quote, display_currency, rates)
    log_system_event("quote_report", {"id": quote_id, "currency": breakdown.currency.value})
    return QuoteReport(quote, breakdown, build_fact_sheet(quote, breakdown))


def compare_quotes(
    display_currency: Currency,
    rates: Optional[RateTable],
    db_path: str = DB_PATH,
) -> List[Dict[str, Any]]:
    """Uma linha por devis com a opção mais barata, ordenado pelo total."""
    rows: List[Dict[str, Any]] = []
    for q in list_quotes(db_path):
        b = aggregate(q, display_currency, rates)
        best = b.cheapest()
        rows.append({
            "id": q.id,
            "fournisseur": q.supplier_name,
            "produit": q.product_name,
            "meilleure_option": best.label if best is not None else "-",
            "total": b.best_total(),
            "par_piece": b.best_cost_per_unit(),
            "devise": b.currency,
        })
    rows.sort(key=lambda r: (r["devise"].value, r["total"]))
    return rows


def analysis_payload(
    quotes: List[Quote],
    display_currency: Currency,
    rates: Optional[RateTable],
) -> Dict[str, Any]:
    """Estrutura serializável enviada ao serviço de análise."""
    items = []
    for q in quotes:
        b = aggregate(q, display_currency, rates)
        items.append({
            "fournisseur": q.supplier_name,
            "produit": q.product_name,
            "devise": b.currency.value,
            "faits": facts_as_dict(build_fact_sheet(q, b)),
        })
    currencies = {item["devise"] for item in items}
    if len(currencies) <= 1:
        devise = next(iter(currencies), Currency(display_currency).value)
        note = f"Tous les montants sont exprimés en {devise}."
    else:
        devise = None
        note = (
            "Taux de change indisponibles : chaque devis est exprimé dans sa propre "
            "devise (champ 'devise'); ne compare pas directement des montants de devises différentes."
        )
    return {"devise": devise, "note": note, "devis": items}


def analyze_quotes(
    display_currency: Currency,
    rates: Optional[RateTable],
    summarizer: Optional[GeminiSummarizer] = None,
    db_path: str = DB_PATH,
) -> str:
    summarizer = summarizer or GeminiSummarizer()
    payload = analysis_payload(list_quotes(db_path), display_currency, rates)
    log_system_event("analysis_start", {"quotes": len(payload["devis"]), "currency": payload["devise"]})
    return summarizer.summarize(payload)
