# devis/domain/models.py
"""
Modelos (dataclasses) do domínio.

Observação importante:
- Todos os campos monetários de um ``Quote`` estão na moeda nativa do
  devis (``Quote.currency``), nunca misturados.
- A moeda nativa é fixada na criação e não muda na edição.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional


class Currency(str, Enum):
    EUR = "EUR"
    USD = "USD"
    XOF = "XOF"


class ShippingType(str, Enum):
    """Métodos de expedição internacional (conjunto fechado)."""
    DIRECT_AIR = "direct-air"
    FORWARDER_STANDARD = "forwarder-standard"
    FORWARDER_EXPRESS = "forwarder-express"

    @property
    def label(self) -> str:
        return SHIPPING_LABELS[self]


SHIPPING_LABELS: Dict[ShippingType, str] = {
    ShippingType.DIRECT_AIR: "Direct par avion",
    ShippingType.FORWARDER_STANDARD: "Transitaire Standard",
    ShippingType.FORWARDER_EXPRESS: "Transitaire Express",
}


def new_id() -> str:
    """Id único: timestamp de criação + sufixo aleatório."""
    return f"{datetime.now().isoformat(timespec='microseconds')}-{secrets.token_hex(3)}"


@dataclass
class ShippingOption:
    """Custos de uma opção de expedição (moeda nativa do devis)."""
    shipping_cost: float = 0.0
    delivery_cost: float = 0.0
    price_per_kg: Optional[float] = None  # presente => cobrança por peso


@dataclass
class LocalTransportLeg:
    """Trecho de transporte local nomeado pelo usuário."""
    name: str
    cost: float
    id: str = field(default_factory=new_id)


@dataclass
class Quote:
    """Devis de fornecedor."""
    supplier_name: str
    product_name: str
    unit_price: float
    weight_kg: float                       # peso por unidade
    quantity: int
    currency: Currency
    shipping_options: Dict[ShippingType, ShippingOption] = field(default_factory=dict)
    local_transport: List[LocalTransportLeg] = field(default_factory=list)
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=lambda: datetime.now().isoformat(timespec="seconds"))

    def __post_init__(self) -> None:
        self.currency = Currency(self.currency)
        if self.unit_price < 0 or self.weight_kg < 0:
            raise ValueError("unit_price and weight_kg must be non-negative")
        if isinstance(self.quantity, bool) or int(self.quantity) != self.quantity or self.quantity < 0:
            raise ValueError("quantity must be a non-negative integer")
        self.quantity = int(self.quantity)

    @property
    def total_weight_kg(self) -> float:
        return self.weight_kg * self.quantity

    def with_changes(self, **changes) -> "Quote":
        """Cópia com campos alterados; id, moeda e data de criação são preservados."""
        for locked in ("id", "currency", "created_at"):
            changes.pop(locked, None)
        return replace(self, **changes)
