from math import isclose

import pytest

from devis.domain.errors import EditingUnavailable, QuoteNotFound
from devis.domain.models import Currency, LocalTransportLeg, ShippingOption, ShippingType
from devis.usecases.manage_quotes import (
    clear_quotes,
    commit_edit,
    create_quote,
    delete_quote,
    edit_quote,
    get_quote,
    list_quotes,
    new_draft,
    start_edit,
)
from devis.usecases.reports import analysis_payload, analyze_quotes, compare_quotes, quote_report


def _draft(supplier="Shenzhen Bags Co", unit_price=5.0, currency=Currency.EUR, **extra):
    extra.setdefault("shipping_options", {ShippingType.DIRECT_AIR: ShippingOption(200.0, 50.0)})
    extra.setdefault("local_transport", [LocalTransportLeg(name="Camion Dakar", cost=100.0)])
    return new_draft(
        supplier_name=supplier,
        product_name="Sac en toile",
        unit_price=unit_price,
        weight_kg=0.1,
        quantity=1000,
        currency=currency,
        display_currency=Currency.USD,
        **extra,
    )


def test_add_form_uses_quote_currency_not_display():
    assert _draft(currency=Currency.XOF).form_currency == Currency.XOF


def test_create_get_and_list(db_path):
    q = create_quote(_draft(), Currency.EUR, db_path=db_path)
    assert get_quote(q.id, db_path) == q
    assert [x.id for x in list_quotes(db_path)] == [q.id]


def test_get_unknown_quote(db_path):
    with pytest.raises(QuoteNotFound) as exc:
        get_quote("inconnu", db_path)
    assert exc.value.quote_id == "inconnu"


def test_edit_in_display_currency(db_path, rates):
    q = create_quote(_draft(), Currency.EUR, db_path=db_path)

    def mutate(fields):
        assert fields.currency == Currency.USD
        assert isclose(fields.unit_price.value, 5.5)
        fields.unit_price.set(6.6)

    updated = edit_quote(q.id, Currency.USD, rates, mutate, db_path=db_path)
    stored = get_quote(q.id, db_path)
    assert stored == updated
    assert stored.currency == Currency.EUR
    assert stored.unit_price == 6.0
    # intocados: valor nativo exato
    assert stored.shipping_options[ShippingType.DIRECT_AIR] == ShippingOption(200.0, 50.0)
    assert stored.local_transport[0].cost == 100.0
    assert stored.created_at == q.created_at


def test_edit_other_currency_without_rates_is_refused(db_path):
    q = create_quote(_draft(), Currency.EUR, db_path=db_path)
    with pytest.raises(EditingUnavailable):
        start_edit(q.id, Currency.XOF, None, db_path=db_path)
    assert get_quote(q.id, db_path) == q


def test_edit_same_currency_without_rates(db_path):
    q = create_quote(_draft(), Currency.EUR, db_path=db_path)
    fields = start_edit(q.id, Currency.EUR, None, db_path=db_path)
    fields.remove_shipping(ShippingType.DIRECT_AIR)
    fields.set_shipping(ShippingType.FORWARDER_STANDARD, 0.0, 0.0, 2.0)
    commit_edit(q.id, fields, None, db_path=db_path)
    stored = get_quote(q.id, db_path)
    assert set(stored.shipping_options) == {ShippingType.FORWARDER_STANDARD}
    assert stored.shipping_options[ShippingType.FORWARDER_STANDARD].price_per_kg == 2.0


def test_commit_edit_on_deleted_quote(db_path):
    q = create_quote(_draft(), Currency.EUR, db_path=db_path)
    fields = start_edit(q.id, Currency.EUR, None, db_path=db_path)
    delete_quote(q.id, db_path=db_path)
    with pytest.raises(QuoteNotFound):
        commit_edit(q.id, fields, None, db_path=db_path)


def test_delete_and_clear(db_path):
    a = create_quote(_draft("A"), Currency.EUR, db_path=db_path)
    create_quote(_draft("B"), Currency.EUR, db_path=db_path)
    delete_quote(a.id, db_path=db_path)
    with pytest.raises(QuoteNotFound):
        delete_quote(a.id, db_path=db_path)
    assert clear_quotes(db_path=db_path) == 1
    assert list_quotes(db_path) == []


def test_quote_report_matches_breakdown(db_path, rates):
    q = create_quote(_draft(), Currency.EUR, db_path=db_path)
    rep = quote_report(q.id, Currency.EUR, rates, db_path=db_path)
    assert rep.breakdown.currency == Currency.EUR
    totals = {f.key: f.value for f in rep.facts}
    assert isclose(totals["direct-air.final_total"], rep.breakdown.shipping[0].final_total)
    assert isclose(totals["direct-air.final_total"], 5350.0)


def test_quote_report_without_rates_uses_native_currency(db_path):
    q = create_quote(_draft(currency=Currency.XOF, unit_price=3280.0), Currency.XOF, db_path=db_path)
    rep = quote_report(q.id, Currency.EUR, None, db_path=db_path)
    assert rep.breakdown.currency == Currency.XOF
    assert all(f.currency in (None, Currency.XOF) for f in rep.facts)


def test_compare_quotes_orders_by_best_total(db_path, rates):
    create_quote(_draft("Cher", unit_price=9.0), Currency.EUR, db_path=db_path)
    create_quote(_draft("Moins cher", unit_price=4.0), Currency.EUR, db_path=db_path)
    rows = compare_quotes(Currency.EUR, rates, db_path=db_path)
    assert [r["fournisseur"] for r in rows] == ["Moins cher", "Cher"]
    assert rows[0]["meilleure_option"] == "Direct par avion"
    assert isclose(rows[0]["total"], 4350.0)


def test_analysis_payload_single_currency(db_path, rates):
    create_quote(_draft("A"), Currency.EUR, db_path=db_path)
    create_quote(_draft("B", currency=Currency.XOF, unit_price=3280.0), Currency.XOF, db_path=db_path)
    payload = analysis_payload(list_quotes(db_path), Currency.EUR, rates)
    assert payload["devise"] == "EUR"
    assert {d["devise"] for d in payload["devis"]} == {"EUR"}
    assert "EUR" in payload["note"]


def test_analysis_payload_mixed_currencies_without_rates(db_path):
    create_quote(_draft("A"), Currency.EUR, db_path=db_path)
    create_quote(_draft("B", currency=Currency.XOF, unit_price=3280.0), Currency.XOF, db_path=db_path)
    payload = analysis_payload(list_quotes(db_path), Currency.EUR, None)
    assert payload["devise"] is None
    assert {d["devise"] for d in payload["devis"]} == {"EUR", "XOF"}


class _StubSummarizer:
    def __init__(self):
        self.payloads = []

    def summarize(self, payload):
        self.payloads.append(payload)
        return "## Analyse"


def test_analyze_quotes_sends_payload(db_path, rates):
    create_quote(_draft("A"), Currency.EUR, db_path=db_path)
    stub = _StubSummarizer()
    assert analyze_quotes(Currency.USD, rates, summarizer=stub, db_path=db_path) == "## Analyse"
    (payload,) = stub.payloads
    assert payload["devise"] == "USD"
    assert payload["devis"][0]["fournisseur"] == "A"
