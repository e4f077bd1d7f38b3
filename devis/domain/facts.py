"""
Flat fact sheet of a quote, for reports and for the summarizer.

The fact sheet only selects and labels numbers already computed by
:func:`devis.domain.costs.aggregate`; it performs no arithmetic.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from devis.domain.costs import CostBreakdown
from devis.domain.models import Currency, Quote


@dataclass(frozen=True)
class Fact:
    key: str                           # stable machine key, e.g. "direct-air.final_total"
    label: str                         # French label for display
    value: Optional[float]             # None = not applicable
    currency: Optional[Currency] = None  # None for non-monetary facts


FactSheet = List[Fact]


def build_fact_sheet(quote: Quote, breakdown: CostBreakdown) -> FactSheet:
    """Return the labeled facts of ``quote`` in a stable order.

    The weight-based cost line of a shipping option only appears when a
    price per kg was actually supplied.
    """
    ccy = breakdown.currency
    facts: FactSheet = [
        Fact("quantity", "Quantité", float(breakdown.quantity)),
        Fact("unit_price", "Prix unitaire", breakdown.unit_price, ccy),
        Fact("unit_weight_kg", "Poids unitaire (Kg)", quote.weight_kg),
        Fact("total_weight_kg", "Poids total (Kg)", breakdown.total_weight_kg),
        Fact("base_cost", "Total produits", breakdown.base_cost, ccy),
    ]

    for opt in breakdown.shipping:
        prefix = opt.shipping_type.value
        name = opt.label
        if opt.billed_by_weight:
            facts.append(Fact(f"{prefix}.price_per_kg", f"{name} - Prix / Kg", opt.price_per_kg, ccy))
            facts.append(Fact(f"{prefix}.variable_cost", f"{name} - Prix / Kg × Poids total", opt.variable_cost, ccy))
        facts.extend([
            Fact(f"{prefix}.shipping_cost", f"{name} - Forfait expédition", opt.shipping_cost, ccy),
            Fact(f"{prefix}.delivery_cost", f"{name} - Frais de livraison", opt.delivery_cost, ccy),
            Fact(f"{prefix}.logistics_cost", f"{name} - Coût logistique total", opt.logistics_cost, ccy),
            Fact(f"{prefix}.total_before_local", f"{name} - Base + logistique", opt.total_before_local, ccy),
        ])

    for index, line in enumerate(breakdown.local_transport, start=1):
        facts.append(Fact(f"local_transport.{index}", f"Transport local - {line.name}", line.cost, ccy))
    facts.append(Fact("local_transport_total", "Total transport local", breakdown.local_transport_total, ccy))

    if breakdown.shipping:
        for opt in breakdown.shipping:
            prefix = opt.shipping_type.value
            facts.append(Fact(f"{prefix}.final_total", f"{opt.label} - Coût total (tout inclus)", opt.final_total, ccy))
            facts.append(Fact(f"{prefix}.cost_per_unit", f"{opt.label} - Coût / pièce (tout inclus)", opt.cost_per_unit, ccy))
    else:
        facts.append(Fact("final_total", "Coût total (base + local)", breakdown.fallback_total, ccy))
        facts.append(Fact("cost_per_unit", "Coût / pièce (tout inclus)", breakdown.fallback_cost_per_unit, ccy))

    return facts


def facts_as_dict(facts: FactSheet) -> Dict[str, Any]:
    """``{key: value}`` mapping, in sheet order."""
    return {f.key: f.value for f in facts}


def facts_as_rows(facts: FactSheet) -> List[Dict[str, Any]]:
    return [
        {
            "key": f.key,
            "label": f.label,
            "value": f.value,
            "currency": f.currency.value if f.currency is not None else None,
        }
        for f in facts
    ]
