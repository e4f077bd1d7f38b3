from math import isclose

import pytest

from devis.domain.editing import (
    FormMode,
    QuoteDraft,
    build_quote,
    can_edit,
    form_currency,
    from_editable,
    to_editable,
)
from devis.domain.errors import EditingUnavailable, RateUnavailable
from devis.domain.models import Currency, LocalTransportLeg, ShippingOption, ShippingType
from devis.domain.policies import rounding_unit

from conftest import make_quote


def _money_fields(q):
    out = {"unit_price": q.unit_price}
    for t, opt in q.shipping_options.items():
        out[f"{t.value}.shipping"] = opt.shipping_cost
        out[f"{t.value}.delivery"] = opt.delivery_cost
        out[f"{t.value}.per_kg"] = opt.price_per_kg
    for leg in q.local_transport:
        out[f"leg.{leg.id}"] = leg.cost
    return out


QUOTES = [
    make_quote(),
    make_quote(
        unit_price=0.37,
        shipping_options={
            ShippingType.DIRECT_AIR: ShippingOption(199.99, 12.34, 3.21),
            ShippingType.FORWARDER_EXPRESS: ShippingOption(0.0, 0.0, 7.77),
        },
    ),
    make_quote(
        currency=Currency.XOF,
        unit_price=3279.0,
        shipping_options={ShippingType.FORWARDER_STANDARD: ShippingOption(131191.0, 32798.0, 1312.0)},
        local_transport=[LocalTransportLeg("Camion", 65596.0), LocalTransportLeg("Moto", 1001.0)],
    ),
    make_quote(currency=Currency.USD, unit_price=12.49, local_transport=[]),
]


def test_form_currency_depends_on_mode():
    assert form_currency(FormMode.ADD, Currency.XOF, Currency.EUR) == Currency.XOF
    assert form_currency(FormMode.EDIT, Currency.XOF, Currency.EUR) == Currency.EUR


def test_to_editable_converts_and_rounds(rates):
    q = make_quote()
    fields = to_editable(q, Currency.XOF, rates)
    assert fields.currency == Currency.XOF
    assert fields.unit_price.value == 3280.0  # 5 x 655.957 arredondado
    opt = fields.shipping[ShippingType.DIRECT_AIR]
    assert opt.shipping_cost.value == 131191.0
    assert opt.delivery_cost.value == 32798.0
    assert opt.price_per_kg is None
    assert fields.local_transport[0].cost.value == 65596.0
    assert fields.quantity == 1000


@pytest.mark.parametrize("q", QUOTES)
@pytest.mark.parametrize("display", list(Currency))
def test_untouched_round_trip_is_exact(q, display, rates):
    patch = from_editable(to_editable(q, display, rates), q.currency, display, rates)
    assert _money_fields(patch.apply(q)) == _money_fields(q)


def test_small_leg_shown_as_zero_survives_untouched_edit(rates):
    # 3 XOF = 0,00457 EUR, exibido como 0,00
    q = make_quote(
        currency=Currency.XOF,
        unit_price=3279.0,
        shipping_options={},
        local_transport=[LocalTransportLeg("Pourboire", 3.0), LocalTransportLeg("Camion", 65596.0)],
    )
    fields = to_editable(q, Currency.EUR, rates)
    assert fields.local_transport[0].cost.value == 0.0
    fields.supplier_name = "Autre fournisseur"

    updated = from_editable(fields, q.currency, Currency.EUR, rates).apply(q)
    assert [leg.cost for leg in updated.local_transport] == [3.0, 65596.0]
    assert [leg.id for leg in updated.local_transport] == [leg.id for leg in q.local_transport]


def test_leg_set_to_zero_is_dropped(rates):
    q = make_quote(currency=Currency.XOF, unit_price=3279.0)
    fields = to_editable(q, Currency.EUR, rates)
    fields.local_transport[0].cost.set(0.0)
    assert from_editable(fields, q.currency, Currency.EUR, rates).local_transport == []



@pytest.mark.parametrize("q", QUOTES)
@pytest.mark.parametrize("display", list(Currency))
def test_retyped_round_trip_within_rounding_unit(q, display, rates):
    """Usuário redigita todos os valores exibidos (campos marcados como alterados)."""
    fields = to_editable(q, display, rates)
    fields.unit_price.shown = None
    for entry in fields.shipping.values():
        for amount in (entry.shipping_cost, entry.delivery_cost, entry.price_per_kg):
            if amount is not None:
                amount.shown = None
    for leg in fields.local_transport:
        leg.cost.shown = None
    restored = _money_fields(from_editable(fields, q.currency, display, rates).apply(q))
    original = _money_fields(q)
    tolerance = max(rounding_unit(q.currency), rounding_unit(display) * rates[q.currency.value] / rates[display.value])
    assert restored.keys() == original.keys()
    for key, value in original.items():
        if value is None:
            assert restored[key] is None
        else:
            assert abs(restored[key] - value) <= tolerance + 1e-9, key


def test_edit_converts_changed_amount_back(rates):
    q = make_quote()
    fields = to_editable(q, Currency.USD, rates)
    fields.unit_price.set(6.6)
    patch = from_editable(fields, Currency.EUR, Currency.USD, rates)
    assert patch.unit_price == 6.0
    # os demais campos não mudam
    assert patch.shipping_options[ShippingType.DIRECT_AIR] == q.shipping_options[ShippingType.DIRECT_AIR]
    assert patch.local_transport[0].cost == 100.0


def test_edit_keeps_native_currency_and_identity(rates):
    q = make_quote()
    fields = to_editable(q, Currency.XOF, rates)
    fields.supplier_name = "  Autre fournisseur "
    fields.quantity = 2000
    updated = from_editable(fields, q.currency, Currency.XOF, rates).apply(q)
    assert updated.currency == Currency.EUR
    assert updated.id == q.id
    assert updated.created_at == q.created_at
    assert updated.supplier_name == "Autre fournisseur"
    assert updated.quantity == 2000


def test_new_leg_and_shipping_are_converted_to_native(rates):
    q = make_quote(local_transport=[])
    fields = to_editable(q, Currency.XOF, rates)
    leg = fields.add_leg("Camion Dakar", 65596.0)
    fields.set_shipping(ShippingType.FORWARDER_EXPRESS, 0.0, 0.0, 1312.0)
    patch = from_editable(fields, Currency.EUR, Currency.XOF, rates)
    assert patch.local_transport[0].id == leg.id
    assert patch.local_transport[0].cost == 100.0
    assert isclose(patch.shipping_options[ShippingType.FORWARDER_EXPRESS].price_per_kg, 2.0)


def test_emptied_shipping_and_legs_are_dropped(rates):
    q = make_quote()
    fields = to_editable(q, Currency.EUR, rates)
    fields.set_shipping(ShippingType.DIRECT_AIR, 0.0, 0.0, None)
    fields.local_transport[0].cost.set(0.0)
    patch = from_editable(fields, Currency.EUR, Currency.EUR, rates)
    assert patch.shipping_options == {}
    assert patch.local_transport == []


def test_remove_shipping_and_leg(rates):
    q = make_quote()
    fields = to_editable(q, Currency.EUR, rates)
    fields.remove_shipping(ShippingType.DIRECT_AIR)
    assert fields.remove_leg(q.local_transport[0].id)
    assert not fields.remove_leg("inexistant")
    patch = from_editable(fields, Currency.EUR, Currency.EUR, rates)
    assert patch.shipping_options == {}
    assert patch.local_transport == []


def test_editing_disabled_without_rates_in_other_currency():
    q = make_quote()
    assert not can_edit(Currency.EUR, Currency.USD, None)
    with pytest.raises(EditingUnavailable):
        to_editable(q, Currency.USD, None)
    with pytest.raises(RateUnavailable):
        to_editable(q, Currency.USD, {})


def test_editing_same_currency_without_rates():
    q = make_quote()
    assert can_edit(Currency.EUR, Currency.EUR, None)
    fields = to_editable(q, Currency.EUR, None)
    fields.unit_price.set(4.5)
    patch = from_editable(fields, Currency.EUR, Currency.EUR, None)
    assert patch.unit_price == 4.5
    assert patch.local_transport[0].cost == 100.0


def test_build_quote_add_mode_no_conversion():
    draft = QuoteDraft(
        supplier_name="Fournisseur",
        product_name="Produit",
        unit_price=5.0,
        weight_kg=0.1,
        quantity=1000,
        form_currency=Currency.EUR,
        shipping_options={
            ShippingType.DIRECT_AIR: ShippingOption(200.0, 50.0),
            ShippingType.FORWARDER_EXPRESS: ShippingOption(),
        },
        local_transport=[LocalTransportLeg("Camion", 100.0), LocalTransportLeg("  ", 20.0)],
    )
    q = build_quote(draft, Currency.EUR)
    assert q.currency == Currency.EUR
    assert q.unit_price == 5.0
    assert list(q.shipping_options) == [ShippingType.DIRECT_AIR]
    assert [leg.name for leg in q.local_transport] == ["Camion"]


def test_build_quote_converts_from_form_currency(rates):
    draft = QuoteDraft("F", "P", 5.5, 0.1, 10, Currency.USD,
                       local_transport=[LocalTransportLeg("Camion", 110.0)])
    q = build_quote(draft, Currency.EUR, rates)
    assert q.unit_price == 5.0
    assert q.local_transport[0].cost == 100.0
    with pytest.raises(EditingUnavailable):
        build_quote(draft, Currency.EUR, None)
