"""
UC: Criar, editar, listar e remover devis.

A persistência é feita antes de qualquer atualização do estado em
memória do chamador; erros do SQLite são registrados e propagados.
"""
from __future__ import annotations

from typing import Callable, List, Optional

from devis.config import DB_PATH
from devis.domain.currency import RateTable
from devis.domain.editing import (
    EditableFields,
    FormMode,
    QuoteDraft,
    build_quote,
    form_currency,
    from_editable,
    to_editable,
)
from devis.domain.errors import QuoteNotFound
from devis.domain.models import Currency, Quote
from devis.infra.logger import log_database_operation, log_system_event, log_transaction
from devis.infra.repositories import QuoteRepo


def _summary(q: Quote) -> dict:
    return {
        "id": q.id,
        "supplier": q.supplier_name,
        "product": q.product_name,
        "currency": q.currency.value,
        "shipping": [t.value for t in q.shipping_options],
        "local_legs": len(q.local_transport),
    }


def get_quote(quote_id: str, db_path: str = DB_PATH) -> Quote:
    quote = QuoteRepo(db_path).get(quote_id)
    if quote is None:
        raise QuoteNotFound(quote_id)
    return quote


def list_quotes(db_path: str = DB_PATH) -> List[Quote]:
    quotes = QuoteRepo(db_path).list_all()
    log_database_operation("quote", "SELECT_ALL", len(quotes))
    return quotes


def create_quote(
    draft: QuoteDraft,
    currency: Currency,
    rates: Optional[RateTable] = None,
    db_path: str = DB_PATH,
) -> Quote:
    """Grava um novo devis na moeda ``currency`` (fixa a partir daqui).

    No modo "ajout" os valores do formulário já estão na moeda do
    devis; se ``draft.form_currency`` for outra, eles são convertidos.
    """
    log_system_event("create_quote_start", {"supplier": draft.supplier_name})
    try:
        quote = build_quote(draft, currency, rates)
        QuoteRepo(db_path).insert(quote)
        log_database_operation("quote", "INSERT", 1, id=quote.id)
        log_transaction("create_quote", _summary(quote), result="success")
        return quote
    except Exception as e:
        log_transaction("create_quote", {"supplier": draft.supplier_name}, error=str(e))
        log_system_event("create_quote_error", {"error": str(e)}, level="error")
        raise


def new_draft(
    supplier_name: str,
    product_name: str,
    unit_price: float,
    weight_kg: float,
    quantity: int,
    currency: Currency,
    display_currency: Currency,
    **extra,
) -> QuoteDraft:
    """Rascunho do modo "ajout": valores digitados na moeda escolhida para o devis."""
    return QuoteDraft(
        supplier_name=supplier_name,
        product_name=product_name,
        unit_price=unit_price,
        weight_kg=weight_kg,
        quantity=quantity,
        form_currency=form_currency(FormMode.ADD, currency, display_currency),
        **extra,
    )


def start_edit(
    quote_id: str,
    display_currency: Currency,
    rates: Optional[RateTable],
    db_path: str = DB_PATH,
) -> EditableFields:
    """Abre o formulário de edição na moeda de exibição global."""
    quote = get_quote(quote_id, db_path)
    fields = to_editable(quote, form_currency(FormMode.EDIT, quote.currency, display_currency), rates)
    log_system_event("edit_start", {"id": quote_id, "display": fields.currency.value})
    return fields


def commit_edit(
    quote_id: str,
    fields: EditableFields,
    rates: Optional[RateTable],
    db_path: str = DB_PATH,
) -> Quote:
    """Converte o formulário de volta para a moeda nativa e substitui o registro."""
    repo = QuoteRepo(db_path)
    try:
        quote = repo.get(quote_id)
        if quote is None:
            raise QuoteNotFound(quote_id)
        patch = from_editable(fields, quote.currency, fields.currency, rates)
        updated = patch.apply(quote)
        repo.replace(updated)
        log_database_operation("quote", "REPLACE", 1, id=quote_id)
        log_transaction("update_quote", _summary(updated), result="success")
        return updated
    except Exception as e:
        log_transaction("update_quote", {"id": quote_id}, error=str(e))
        raise


def edit_quote(
    quote_id: str,
    display_currency: Currency,
    rates: Optional[RateTable],
    mutate: Callable[[EditableFields], None],
    db_path: str = DB_PATH,
) -> Quote:
    """Fluxo completo: projeta, aplica ``mutate`` e grava."""
    fields = start_edit(quote_id, display_currency, rates, db_path)
    mutate(fields)
    return commit_edit(quote_id, fields, rates, db_path)


def delete_quote(quote_id: str, db_path: str = DB_PATH) -> None:
    try:
        QuoteRepo(db_path).delete(quote_id)
        log_database_operation("quote", "DELETE", 1, id=quote_id)
        log_transaction("delete_quote", {"id": quote_id}, result="success")
    except Exception as e:
        log_transaction("delete_quote", {"id": quote_id}, error=str(e))
        raise


def clear_quotes(db_path: str = DB_PATH) -> int:
    try:
        n = QuoteRepo(db_path).clear()
        log_database_operation("quote", "DELETE_ALL", n)
        log_transaction("clear_quotes", {}, result={"deleted": n})
        return n
    except Exception as e:
        log_transaction("clear_quotes", {}, error=str(e))
        raise
