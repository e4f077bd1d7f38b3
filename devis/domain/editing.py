"""
Projection of quotes to and from an editable form.

A stored quote keeps its amounts in its native currency. The form the
user fills in, however, shows amounts in the *form currency*:

- ADD mode: the currency freely chosen for the new quote, so amounts
  need no conversion before storage;
- EDIT mode: the global display currency, so amounts are converted to
  display currency when the form opens and back to the native currency
  on submit.

The form currency is always passed explicitly; it is never inferred.

Each editable amount remembers the native value it was projected from.
On submit, an amount the user left untouched restores that value
exactly, so opening and saving a quote never perturbs it. Changed or
new amounts are converted back and rounded to the native precision.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from devis.domain.currency import RateTable, convert
from devis.domain.errors import EditingUnavailable
from devis.domain.models import (
    Currency,
    LocalTransportLeg,
    Quote,
    ShippingOption,
    ShippingType,
    new_id,
)
from devis.domain.policies import round_amount, shipping_option_present


class FormMode(str, Enum):
    ADD = "add"
    EDIT = "edit"


def form_currency(mode: FormMode, quote_currency: Currency, display_currency: Currency) -> Currency:
    """Currency the amounts on the form are expressed in."""
    if FormMode(mode) is FormMode.ADD:
        return Currency(quote_currency)
    return Currency(display_currency)


def can_edit(quote_currency: Currency, display_currency: Currency, rates: Optional[RateTable]) -> bool:
    """Editing in another currency is only possible with exchange rates."""
    return Currency(quote_currency) == Currency(display_currency) or bool(rates)


def _require_editable(quote_currency: Currency, display_currency: Currency, rates: Optional[RateTable]) -> None:
    if not can_edit(quote_currency, display_currency, rates):
        raise EditingUnavailable(
            f"cannot edit a {Currency(quote_currency).value} quote in "
            f"{Currency(display_currency).value} without exchange rates"
        )


# -------------------------
# Editable structures
# -------------------------

@dataclass
class EditableAmount:
    """Amount shown on the form, plus the native value it came from."""
    value: float
    native: Optional[float] = None     # None for amounts typed from scratch
    shown: Optional[float] = None      # value as first projected

    def set(self, value: float) -> None:
        self.value = float(value)

    @property
    def touched(self) -> bool:
        return self.native is None or self.shown is None or self.value != self.shown


@dataclass
class EditableShipping:
    shipping_cost: EditableAmount = field(default_factory=lambda: EditableAmount(0.0))
    delivery_cost: EditableAmount = field(default_factory=lambda: EditableAmount(0.0))
    price_per_kg: Optional[EditableAmount] = None


@dataclass
class EditableLeg:
    name: str
    cost: EditableAmount
    id: str = field(default_factory=new_id)


@dataclass
class EditableFields:
    """Values of the quote form, money fields in ``currency``."""
    currency: Currency
    supplier_name: str
    product_name: str
    unit_price: EditableAmount
    weight_kg: float
    quantity: int
    shipping: Dict[ShippingType, EditableShipping] = field(default_factory=dict)
    local_transport: List[EditableLeg] = field(default_factory=list)

    def set_shipping(
        self,
        shipping_type: ShippingType,
        shipping_cost: float = 0.0,
        delivery_cost: float = 0.0,
        price_per_kg: Optional[float] = None,
    ) -> None:
        """Create or overwrite the values of one shipping option."""
        entry = self.shipping.setdefault(ShippingType(shipping_type), EditableShipping())
        entry.shipping_cost.set(shipping_cost)
        entry.delivery_cost.set(delivery_cost)
        if price_per_kg is None:
            entry.price_per_kg = None
        elif entry.price_per_kg is None:
            entry.price_per_kg = EditableAmount(float(price_per_kg))
        else:
            entry.price_per_kg.set(price_per_kg)

    def remove_shipping(self, shipping_type: ShippingType) -> None:
        self.shipping.pop(ShippingType(shipping_type), None)

    def add_leg(self, name: str, cost: float) -> EditableLeg:
        leg = EditableLeg(name=name, cost=EditableAmount(float(cost)))
        self.local_transport.append(leg)
        return leg

    def remove_leg(self, leg_id: str) -> bool:
        before = len(self.local_transport)
        self.local_transport = [leg for leg in self.local_transport if leg.id != leg_id]
        return len(self.local_transport) != before


@dataclass
class QuotePatch:
    """Quote fields in the native currency, ready for a full replace."""
    supplier_name: str
    product_name: str
    unit_price: float
    weight_kg: float
    quantity: int
    shipping_options: Dict[ShippingType, ShippingOption]
    local_transport: List[LocalTransportLeg]

    def apply(self, quote: Quote) -> Quote:
        """New quote with the patched fields; id, currency and creation date kept."""
        return quote.with_changes(
            supplier_name=self.supplier_name,
            product_name=self.product_name,
            unit_price=self.unit_price,
            weight_kg=self.weight_kg,
            quantity=self.quantity,
            shipping_options=self.shipping_options,
            local_transport=self.local_transport,
        )


# -------------------------
# Projections
# -------------------------

def _project(amount: float, native: Currency, display: Currency, rates: Optional[RateTable]) -> EditableAmount:
    converted = convert(amount, native, display, rates or {})
    shown = round_amount(converted, display)
    return EditableAmount(value=shown, native=amount, shown=shown)


def _restore(amount: EditableAmount, native: Currency, display: Currency, rates: Optional[RateTable]) -> float:
    if not amount.touched:
        return amount.native
    return round_amount(convert(amount.value, display, native, rates or {}), native)


def to_editable(quote: Quote, display_currency: Currency, rates: Optional[RateTable]) -> EditableFields:
    """Project ``quote`` into form values expressed in ``display_currency``.

    Raises ``EditingUnavailable`` when the display currency differs from
    the quote's currency and no rates are loaded: unconverted numbers are
    never shown as if they had been converted.
    """
    native = quote.currency
    display = Currency(display_currency)
    _require_editable(native, display, rates)

    shipping: Dict[ShippingType, EditableShipping] = {}
    for shipping_type in ShippingType:
        option = quote.shipping_options.get(shipping_type)
        if not shipping_option_present(option):
            continue
        shipping[shipping_type] = EditableShipping(
            shipping_cost=_project(option.shipping_cost or 0.0, native, display, rates),
            delivery_cost=_project(option.delivery_cost or 0.0, native, display, rates),
            price_per_kg=(
                _project(option.price_per_kg, native, display, rates)
                if option.price_per_kg is not None else None
            ),
        )

    return EditableFields(
        currency=display,
        supplier_name=quote.supplier_name,
        product_name=quote.product_name,
        unit_price=_project(quote.unit_price, native, display, rates),
        weight_kg=quote.weight_kg,
        quantity=quote.quantity,
        shipping=shipping,
        local_transport=[
            EditableLeg(id=leg.id, name=leg.name, cost=_project(leg.cost, native, display, rates))
            for leg in quote.local_transport
        ],
    )


def from_editable(
    fields: EditableFields,
    native_currency: Currency,
    display_currency: Currency,
    rates: Optional[RateTable],
) -> QuotePatch:
    """Convert form values back into the quote's native currency.

    Shipping options left without any meaningful value are dropped, and
    so are local-transport legs with no name or a zero native cost.
    """
    native = Currency(native_currency)
    display = Currency(display_currency)
    _require_editable(native, display, rates)

    shipping_options: Dict[ShippingType, ShippingOption] = {}
    for shipping_type in ShippingType:
        entry = fields.shipping.get(shipping_type)
        if entry is None:
            continue
        option = ShippingOption(
            shipping_cost=_restore(entry.shipping_cost, native, display, rates),
            delivery_cost=_restore(entry.delivery_cost, native, display, rates),
            price_per_kg=(
                _restore(entry.price_per_kg, native, display, rates)
                if entry.price_per_kg is not None else None
            ),
        )
        if shipping_option_present(option):
            shipping_options[shipping_type] = option

    legs: List[LocalTransportLeg] = []
    for leg in fields.local_transport:
        # a small native cost can be shown as 0 in the display currency
        cost = _restore(leg.cost, native, display, rates)
        if leg.name.strip() and cost > 0:
            legs.append(LocalTransportLeg(id=leg.id, name=leg.name.strip(), cost=cost))

    return QuotePatch(
        supplier_name=fields.supplier_name.strip(),
        product_name=fields.product_name.strip(),
        unit_price=_restore(fields.unit_price, native, display, rates),
        weight_kg=float(fields.weight_kg),
        quantity=int(fields.quantity),
        shipping_options=shipping_options,
        local_transport=legs,
    )


# -------------------------
# Add mode
# -------------------------

@dataclass
class QuoteDraft:
    """Values typed on the "add quote" form, money fields in ``form_currency``."""
    supplier_name: str
    product_name: str
    unit_price: float
    weight_kg: float
    quantity: int
    form_currency: Currency
    shipping_options: Dict[ShippingType, ShippingOption] = field(default_factory=dict)
    local_transport: List[LocalTransportLeg] = field(default_factory=list)


def build_quote(draft: QuoteDraft, native_currency: Currency, rates: Optional[RateTable] = None) -> Quote:
    """Create a stored quote from a draft, converting form amounts to ``native_currency``."""
    native = Currency(native_currency)
    source = Currency(draft.form_currency)
    _require_editable(native, source, rates)

    def to_native(amount: float) -> float:
        if source == native:
            return float(amount)
        return round_amount(convert(amount, source, native, rates or {}), native)

    shipping_options: Dict[ShippingType, ShippingOption] = {}
    for shipping_type, option in draft.shipping_options.items():
        if not shipping_option_present(option):
            continue
        shipping_options[ShippingType(shipping_type)] = ShippingOption(
            shipping_cost=to_native(option.shipping_cost or 0.0),
            delivery_cost=to_native(option.delivery_cost or 0.0),
            price_per_kg=to_native(option.price_per_kg) if option.price_per_kg is not None else None,
        )

    legs: List[LocalTransportLeg] = []
    for leg in draft.local_transport:
        cost = to_native(leg.cost)
        if leg.name.strip() and cost > 0:
            legs.append(LocalTransportLeg(id=leg.id, name=leg.name.strip(), cost=cost))

    return Quote(
        supplier_name=draft.supplier_name.strip(),
        product_name=draft.product_name.strip(),
        unit_price=to_native(draft.unit_price),
        weight_kg=float(draft.weight_kg),
        quantity=int(draft.quantity),
        currency=native,
        shipping_options=shipping_options,
        local_transport=legs,
    )
