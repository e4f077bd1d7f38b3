"""
Landed-cost aggregation for supplier quotes.

Given a quote stored in its native currency, a display currency and an
optional rate table, these functions compute the full cost breakdown:

    base cost        = unit price x quantity
    logistics cost   = flat shipping + (price per kg x total weight) + flat delivery
    before local     = base cost + logistics cost
    final total      = before local + local-transport total
    cost per unit    = final total / quantity

Every shipping option present on the quote gets its own breakdown; the
local-transport total is added unchanged to each of them. When no
shipping option is present, a fallback total (base cost + local
transport) is still produced.

Intermediate values stay in full float precision; rounding happens only
when amounts are formatted for display. All functions are pure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from devis.domain.currency import RateTable, convert
from devis.domain.models import Currency, Quote, ShippingType
from devis.domain.policies import present_shipping_options


@dataclass(frozen=True)
class ShippingBreakdown:
    """Cost of one shipping option, in the breakdown's currency."""
    shipping_type: ShippingType
    shipping_cost: float
    delivery_cost: float
    price_per_kg: Optional[float]      # None when not billed by weight
    variable_cost: float               # price_per_kg x total weight
    logistics_cost: float
    total_before_local: float
    final_total: float
    cost_per_unit: Optional[float]     # None when quantity is 0

    @property
    def label(self) -> str:
        return self.shipping_type.label

    @property
    def billed_by_weight(self) -> bool:
        return self.price_per_kg is not None and self.price_per_kg > 0


@dataclass(frozen=True)
class LocalTransportLine:
    id: str
    name: str
    cost: float


@dataclass(frozen=True)
class CostBreakdown:
    """Full cost breakdown of a quote, every amount in ``currency``."""
    quote_id: str
    currency: Currency
    quantity: int
    unit_price: float
    base_cost: float
    total_weight_kg: float
    shipping: List[ShippingBreakdown] = field(default_factory=list)
    local_transport: List[LocalTransportLine] = field(default_factory=list)
    local_transport_total: float = 0.0
    fallback_total: float = 0.0
    fallback_cost_per_unit: Optional[float] = None
    converted: bool = False            # False when shown in the native currency

    @property
    def has_shipping(self) -> bool:
        return bool(self.shipping)

    def cheapest(self) -> Optional[ShippingBreakdown]:
        """Shipping option with the lowest final total (first one on ties)."""
        if not self.shipping:
            return None
        return min(self.shipping, key=lambda s: s.final_total)

    def best_total(self) -> float:
        best = self.cheapest()
        return best.final_total if best is not None else self.fallback_total

    def best_cost_per_unit(self) -> Optional[float]:
        best = self.cheapest()
        return best.cost_per_unit if best is not None else self.fallback_cost_per_unit


def per_unit(total: float, quantity: int) -> Optional[float]:
    """Return ``total / quantity``, or ``None`` (not applicable) when quantity is 0."""
    if not quantity:
        return None
    return total / quantity


def aggregate(quote: Quote, display_currency: Currency, rates: Optional[RateTable] = None) -> CostBreakdown:
    """Compute the landed-cost breakdown of ``quote`` in ``display_currency``.

    Parameters
    ----------
    quote: Quote
        The stored quote, amounts in its native currency.
    display_currency: Currency
        Currency the caller wants to see amounts in.
    rates: RateTable, optional
        Pivot-relative exchange rates. Without rates no conversion is
        possible, so the display currency falls back to the quote's
        native currency.

    Returns
    -------
    CostBreakdown
        Amounts tagged with the currency they are actually expressed in.
    """
    native = quote.currency
    target = Currency(display_currency) if rates else native

    def to_display(amount: float) -> float:
        if not rates:
            return amount
        return convert(amount, native, target, rates)

    quantity = quote.quantity or 0
    unit_price = to_display(quote.unit_price or 0.0)
    base_cost = unit_price * quantity
    total_weight = (quote.weight_kg or 0.0) * quantity

    local_lines = [
        LocalTransportLine(leg.id, leg.name, to_display(leg.cost or 0.0))
        for leg in quote.local_transport
    ]
    local_total = sum(line.cost for line in local_lines)

    shipping: List[ShippingBreakdown] = []
    for shipping_type, option in present_shipping_options(quote):
        flat_shipping = to_display(option.shipping_cost or 0.0)
        flat_delivery = to_display(option.delivery_cost or 0.0)
        price_per_kg = to_display(option.price_per_kg) if option.price_per_kg is not None else None
        # flat fees and weight-based price are additive, never exclusive
        variable_cost = price_per_kg * total_weight if price_per_kg and price_per_kg > 0 else 0.0
        logistics = flat_shipping + variable_cost + flat_delivery
        before_local = base_cost + logistics
        final_total = before_local + local_total
        shipping.append(
            ShippingBreakdown(
                shipping_type=shipping_type,
                shipping_cost=flat_shipping,
                delivery_cost=flat_delivery,
                price_per_kg=price_per_kg,
                variable_cost=variable_cost,
                logistics_cost=logistics,
                total_before_local=before_local,
                final_total=final_total,
                cost_per_unit=per_unit(final_total, quantity),
            )
        )

    fallback_total = base_cost + local_total
    return CostBreakdown(
        quote_id=quote.id,
        currency=target,
        quantity=quantity,
        unit_price=unit_price,
        base_cost=base_cost,
        total_weight_kg=total_weight,
        shipping=shipping,
        local_transport=local_lines,
        local_transport_total=local_total,
        fallback_total=fallback_total,
        fallback_cost_per_unit=per_unit(fallback_total, quantity),
        converted=target != native,
    )
