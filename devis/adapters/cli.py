# devis/adapters/cli.py
"""
CLI do gestionnaire de devis (Typer).

Comandos principais:
- migrate                 -> aplica migrações e cria views
- add                     -> registra um devis (valores na moeda do devis)
- list                    -> lista os devis gravados
- show <id>               -> custo detalhado na moeda de exibição
- report <id>             -> fact sheet (tabela ou JSON)
- compare                 -> melhor custo total de cada devis
- edit <id>               -> edita valores na moeda de exibição
- delete <id> / clear     -> remove um devis / todos
- analyze                 -> análise em linguagem natural (Gemini)
- rates                   -> taxas de câmbio carregadas
- logs [tipo]             -> últimas linhas de um log
"""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from rich import box

from devis.adapters.parsers import (
    parse_amount,
    parse_currency,
    parse_local_spec,
    parse_number,
    parse_quantity,
    parse_shipping_spec,
    parse_shipping_type,
)
from devis.config import DB_PATH, DEFAULTS
from devis.domain.costs import CostBreakdown
from devis.domain.editing import EditableFields
from devis.domain.errors import DevisError, EditingUnavailable
from devis.domain.facts import facts_as_rows
from devis.domain.models import Currency
from devis.domain.policies import format_amount
from devis.infra.logger import LOG_FILES, get_log_summary, log_system_event
from devis.infra.migrations import apply_migrations
from devis.infra.repositories import QuoteRepo
from devis.infra.views import create_views
from devis.usecases.exchange_rates import RateState, load_rates
from devis.usecases.manage_quotes import (
    clear_quotes,
    commit_edit,
    create_quote,
    delete_quote,
    new_draft,
    start_edit,
)
from devis.usecases.reports import analyze_quotes, compare_quotes, quote_report


app = typer.Typer(help="Gestionnaire de Devis — CLI")
console = Console()

DB_OPT = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")
DISPLAY_OPT = typer.Option(DEFAULTS.display_currency, "--display", "-d", help="Devise d'affichage (EUR, USD, XOF)")
OFFLINE_OPT = typer.Option(False, "--offline", help="Ne pas charger les taux de change")


# -----------------------
# util
# -----------------------

def _print_json(obj) -> None:
    typer.echo(json.dumps(obj, ensure_ascii=False, indent=2))


@contextmanager
def _errors() -> Iterator[None]:
    """Converte erros esperados em mensagem vermelha + exit 1."""
    try:
        yield
    except (DevisError, ValueError) as e:
        console.print(f"[bold red]Erreur :[/] {e}")
        raise typer.Exit(code=1)
    except sqlite3.Error as e:
        log_system_event("persistence_failure", {"error": str(e)}, level="error")
        console.print(f"[bold red]Erreur de stockage :[/] {e}")
        raise typer.Exit(code=1)


def _prepare_db(db_path: str) -> None:
    apply_migrations(db_path)
    create_views(db_path)


def _load_rates(offline: bool) -> RateState:
    state = load_rates(offline=offline)
    if state.notice:
        console.print(Panel(state.notice, title="Taux de change", border_style="yellow"))
    return state


def _money(amount: Optional[float], currency: Currency) -> str:
    return format_amount(amount, currency)


def _display_breakdown(b: CostBreakdown, header: Dict[str, str]) -> None:
    """Exibe o custo detalhado de um devis usando Rich."""
    ccy = b.currency
    info = Table(box=box.SIMPLE, show_header=False)
    info.add_column("Champ")
    info.add_column("Valeur", justify="right")
    for k, v in header.items():
        info.add_row(k, v)
    info.add_row("Quantité", str(b.quantity))
    info.add_row("Prix unitaire", _money(b.unit_price, ccy))
    info.add_row("Poids total (Kg)", f"{b.total_weight_kg:g}")
    info.add_row("Total produits", _money(b.base_cost, ccy))
    console.print(Panel(info, title=f"Devis — devise d'affichage {ccy.value}", border_style="blue"))

    if b.shipping:
        ship = Table(title="Expédition internationale", box=box.ROUNDED)
        for col in ["Mode", "Prix / Kg × Poids", "Forfait", "Livraison", "Logistique", "Base + logistique"]:
            ship.add_column(col, justify="left" if col == "Mode" else "right")
        for s in b.shipping:
            ship.add_row(
                s.label,
                _money(s.variable_cost, ccy) if s.billed_by_weight else "-",
                _money(s.shipping_cost, ccy),
                _money(s.delivery_cost, ccy),
                _money(s.logistics_cost, ccy),
                _money(s.total_before_local, ccy),
            )
        console.print(ship)
    else:
        console.print("[dim]Aucune option de livraison internationale renseignée.[/dim]")

    if b.local_transport:
        local = Table(title="Transport local", box=box.ROUNDED)
        local.add_column("Id")
        local.add_column("Trajet")
        local.add_column("Coût", justify="right")
        for line in b.local_transport:
            local.add_row(line.id, line.name, _money(line.cost, ccy))
        local.add_row("", "[bold]Total transport local[/bold]", _money(b.local_transport_total, ccy))
        console.print(local)
    else:
        console.print("[dim]Aucun transport local renseigné.[/dim]")

    totals = Table(title="Totaux finaux", box=box.ROUNDED)
    totals.add_column("Option")
    totals.add_column("Coût total (tout inclus)", justify="right")
    totals.add_column("Coût / pièce", justify="right")
    if b.shipping:
        for s in b.shipping:
            totals.add_row(s.label, _money(s.final_total, ccy), _money(s.cost_per_unit, ccy))
    else:
        totals.add_row("Base + local", _money(b.fallback_total, ccy), _money(b.fallback_cost_per_unit, ccy))
    console.print(totals)


# -----------------------
# comandos de infra
# -----------------------

@app.command("migrate")
def cmd_migrate(db_path: str = DB_OPT):
    """Aplica migrações e recria as views auxiliares."""
    apply_migrations(db_path)
    create_views(db_path)
    typer.echo(f">> Migrations appliquées et vues créées dans : {db_path}")


@app.command("rates")
def cmd_rates(offline: bool = OFFLINE_OPT):
    """Exibe as taxas de câmbio carregadas (pivot EUR)."""
    state = _load_rates(offline)
    if not state.available:
        raise typer.Exit(code=1)
    table = Table(title="Taux de change (1 EUR =)", box=box.ROUNDED)
    table.add_column("Devise")
    table.add_column("Taux", justify="right")
    for ccy in Currency:
        table.add_row(ccy.value, f"{state.rates[ccy.value]:g}")
    console.print(table)


@app.command("logs")
def cmd_logs(
    log_type: str = typer.Argument("transactions", help="transactions | database | system | rates | analysis"),
    lines: int = typer.Option(20, "--lines", "-n", help="Nombre de lignes"),
):
    """Exibe as últimas linhas de um log (requer DEVIS_LOGGING=1)."""
    if log_type not in LOG_FILES:
        console.print(f"[bold red]Erreur :[/] log inconnu : {log_type} (choix : {', '.join(LOG_FILES)})")
        raise typer.Exit(code=1)
    summary = get_log_summary(log_type, lines=lines)
    if summary is None:
        console.print(Panel("Journalisation désactivée (DEVIS_LOGGING=1 pour l'activer).", title="Logs", border_style="yellow"))
        return
    typer.echo(summary.rstrip("\n") or "(vide)")


# -----------------------
# comandos de devis
# -----------------------

@app.command("add")
def cmd_add(
    supplier: str = typer.Option(..., "--supplier", help="Nom du fournisseur"),
    product: str = typer.Option(..., "--product", help="Nom du produit"),
    unit_price: str = typer.Option(..., "--unit-price", help="Prix unitaire (devise du devis)"),
    quantity: str = typer.Option(..., "--quantity", help="Quantité (entier)"),
    weight: str = typer.Option("0", "--weight", help="Poids unitaire (Kg)"),
    currency: str = typer.Option(DEFAULTS.display_currency, "--currency", help="Devise du devis (fixe)"),
    shipping: Optional[List[str]] = typer.Option(
        None, "--shipping", help="TYPE:FORFAIT:LIVRAISON[:PRIX_KG] (répétable; le dernier l'emporte)"
    ),
    local: Optional[List[str]] = typer.Option(None, "--local", help="NOM:COÛT (répétable)"),
    db_path: str = DB_OPT,
):
    """Registra um devis; todos os valores na moeda escolhida para o devis."""
    with _errors():
        ccy = parse_currency(currency)
        shipping_options = dict(parse_shipping_spec(s, ccy) for s in (shipping or []))
        draft = new_draft(
            supplier_name=supplier,
            product_name=product,
            unit_price=parse_amount(unit_price, ccy, "prix unitaire"),
            weight_kg=parse_number(weight, "poids unitaire"),
            quantity=parse_quantity(quantity),
            currency=ccy,
            display_currency=ccy,
            shipping_options=shipping_options,
            local_transport=[parse_local_spec(s, ccy) for s in (local or [])],
        )
        _prepare_db(db_path)
        quote = create_quote(draft, ccy, db_path=db_path)
    typer.echo(f">> Devis enregistré : {quote.id}")


@app.command("list")
def cmd_list(db_path: str = DB_OPT):
    """Lista os devis gravados (mais recentes primeiro)."""
    with _errors():
        _prepare_db(db_path)
        rows = QuoteRepo(db_path).list_summary()
    if not rows:
        console.print(Panel("Aucun devis enregistré", title="Liste des Devis", border_style="yellow"))
        return
    table = Table(title="Liste des Devis", box=box.ROUNDED)
    for col in ["Id", "Fournisseur", "Produit", "Devise", "Quantité", "Expéditions", "Transports locaux"]:
        table.add_column(col, justify="right" if col in ("Quantité", "Expéditions", "Transports locaux") else "left")
    for r in rows:
        table.add_row(
            r["id"], r["supplier_name"], r["product_name"], r["currency"],
            str(r["quantity"]), str(r["n_shipping"]), str(r["n_local"]),
        )
    console.print(table)


@app.command("show")
def cmd_show(
    quote_id: str = typer.Argument(..., help="Id du devis"),
    display: str = DISPLAY_OPT,
    offline: bool = OFFLINE_OPT,
    db_path: str = DB_OPT,
):
    """Exibe o custo detalhado (landed cost) de um devis."""
    with _errors():
        ccy = parse_currency(display)
        _prepare_db(db_path)
        state = _load_rates(offline)
        rep = quote_report(quote_id, ccy, state.rates, db_path=db_path)
    _display_breakdown(rep.breakdown, {
        "Fournisseur": rep.quote.supplier_name,
        "Produit": rep.quote.product_name,
        "Devise du devis": rep.quote.currency.value,
        "Poids unitaire (Kg)": f"{rep.quote.weight_kg:g}",
    })


@app.command("report")
def cmd_report(
    quote_id: str = typer.Argument(..., help="Id du devis"),
    display: str = DISPLAY_OPT,
    offline: bool = OFFLINE_OPT,
    as_json: bool = typer.Option(False, "--json", help="Sortie JSON"),
    db_path: str = DB_OPT,
):
    """Gera a fact sheet de um devis (mesmos números do comando show)."""
    with _errors():
        ccy = parse_currency(display)
        _prepare_db(db_path)
        state = load_rates(offline=offline) if as_json else _load_rates(offline)
        rep = quote_report(quote_id, ccy, state.rates, db_path=db_path)
    if as_json:
        _print_json({
            "id": rep.quote.id,
            "fournisseur": rep.quote.supplier_name,
            "produit": rep.quote.product_name,
            "devise": rep.breakdown.currency.value,
            "faits": facts_as_rows(rep.facts),
        })
        return
    table = Table(title=f"Rapport de Devis — {rep.quote.supplier_name} / {rep.quote.product_name}", box=box.ROUNDED)
    table.add_column("Libellé")
    table.add_column("Valeur", justify="right")
    for f in rep.facts:
        value = format_amount(f.value, f.currency) if f.currency is not None else (
            "-" if f.value is None else f"{f.value:g}"
        )
        table.add_row(f.label, value)
    console.print(table)


@app.command("compare")
def cmd_compare(
    display: str = DISPLAY_OPT,
    offline: bool = OFFLINE_OPT,
    db_path: str = DB_OPT,
):
    """Compara os devis pelo melhor custo total (tout inclus)."""
    with _errors():
        ccy = parse_currency(display)
        _prepare_db(db_path)
        state = _load_rates(offline)
        rows = compare_quotes(ccy, state.rates, db_path=db_path)
    if not rows:
        console.print(Panel("Aucun devis enregistré", title="Comparatif", border_style="yellow"))
        return
    table = Table(title="Comparatif des Devis", box=box.ROUNDED)
    for col in ["Fournisseur", "Produit", "Meilleure option", "Coût total", "Coût / pièce"]:
        table.add_column(col, justify="right" if col.startswith("Coût") else "left")
    for r in rows:
        table.add_row(
            r["fournisseur"], r["produit"], r["meilleure_option"],
            _money(r["total"], r["devise"]), _money(r["par_piece"], r["devise"]),
        )
    console.print(table)


def _apply_edit_options(
    fields: EditableFields,
    supplier: Optional[str],
    product: Optional[str],
    unit_price: Optional[str],
    weight: Optional[str],
    quantity: Optional[str],
    shipping: List[str],
    remove_shipping: List[str],
    local: List[str],
    remove_local: List[str],
    clear_local: bool,
) -> None:
    """Aplica as opções informadas; valores monetários na moeda do formulário."""
    ccy = fields.currency
    if supplier is not None:
        fields.supplier_name = supplier
    if product is not None:
        fields.product_name = product
    if unit_price is not None:
        fields.unit_price.set(parse_amount(unit_price, ccy, "prix unitaire"))
    if weight is not None:
        fields.weight_kg = parse_number(weight, "poids unitaire")
    if quantity is not None:
        fields.quantity = parse_quantity(quantity)
    for spec in shipping:
        shipping_type, opt = parse_shipping_spec(spec, ccy)
        fields.set_shipping(shipping_type, opt.shipping_cost, opt.delivery_cost, opt.price_per_kg)
    for t in remove_shipping:
        fields.remove_shipping(parse_shipping_type(t))
    if clear_local:
        fields.local_transport = []
    for leg_id in remove_local:
        if not fields.remove_leg(leg_id):
            raise ValueError(f"transport local introuvable : {leg_id}")
    for spec in local:
        leg = parse_local_spec(spec, ccy)
        fields.add_leg(leg.name, leg.cost)


@app.command("edit")
def cmd_edit(
    quote_id: str = typer.Argument(..., help="Id du devis"),
    display: str = DISPLAY_OPT,
    offline: bool = OFFLINE_OPT,
    supplier: Optional[str] = typer.Option(None, "--supplier"),
    product: Optional[str] = typer.Option(None, "--product"),
    unit_price: Optional[str] = typer.Option(None, "--unit-price", help="Dans la devise d'affichage"),
    weight: Optional[str] = typer.Option(None, "--weight"),
    quantity: Optional[str] = typer.Option(None, "--quantity"),
    shipping: Optional[List[str]] = typer.Option(None, "--shipping", help="TYPE:FORFAIT:LIVRAISON[:PRIX_KG]"),
    remove_shipping: Optional[List[str]] = typer.Option(None, "--remove-shipping", help="TYPE"),
    local: Optional[List[str]] = typer.Option(None, "--local", help="NOM:COÛT (ajout)"),
    remove_local: Optional[List[str]] = typer.Option(None, "--remove-local", help="Id du trajet"),
    clear_local: bool = typer.Option(False, "--clear-local", help="Supprime tous les transports locaux"),
    db_path: str = DB_OPT,
):
    """
    Edita um devis na moeda de exibição.

    Os valores informados estão na moeda de exibição e são convertidos
    de volta para a moeda do devis antes de gravar. Campos não
    informados permanecem exatamente como estavam.
    """
    with _errors():
        ccy = parse_currency(display)
        _prepare_db(db_path)
        state = _load_rates(offline)
        try:
            fields = start_edit(quote_id, ccy, state.rates, db_path=db_path)
        except EditingUnavailable:
            console.print(Panel(
                "Modification désactivée : ce devis n'est pas en "
                f"{ccy.value} et les taux de change ne sont pas disponibles.",
                title="Modification impossible",
                border_style="red",
            ))
            raise typer.Exit(code=1)
        _apply_edit_options(
            fields, supplier, product, unit_price, weight, quantity,
            shipping or [], remove_shipping or [], local or [], remove_local or [], clear_local,
        )
        commit_edit(quote_id, fields, state.rates, db_path=db_path)
    typer.echo(f">> Devis mis à jour : {quote_id}")


@app.command("delete")
def cmd_delete(
    quote_id: str = typer.Argument(..., help="Id du devis"),
    db_path: str = DB_OPT,
):
    """Remove um devis."""
    with _errors():
        _prepare_db(db_path)
        delete_quote(quote_id, db_path=db_path)
    typer.echo(f">> Devis supprimé : {quote_id}")


@app.command("clear")
def cmd_clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Confirmer sans demander"),
    db_path: str = DB_OPT,
):
    """Remove todos os devis."""
    if not yes and not typer.confirm("Supprimer tous les devis ?"):
        raise typer.Exit(code=1)
    with _errors():
        _prepare_db(db_path)
        n = clear_quotes(db_path=db_path)
    typer.echo(f">> {n} devis supprimé(s).")


@app.command("analyze")
def cmd_analyze(
    display: str = DISPLAY_OPT,
    offline: bool = OFFLINE_OPT,
    db_path: str = DB_OPT,
):
    """Análise dos devis pelo serviço de IA (Gemini)."""
    with _errors():
        ccy = parse_currency(display)
        _prepare_db(db_path)
        state = _load_rates(offline)
        with console.status("Gemini analyse vos données..."):
            text = analyze_quotes(ccy, state.rates, db_path=db_path)
    console.print(Panel(Markdown(text), title="Résultat de l'Analyse IA", border_style="green"))


# Entry point opcional:
def main():
    app()


if __name__ == "__main__":
    main()
