# devis/infra/repositories.py
"""
Repositórios (DAO) para acesso e manipulação de devis no SQLite.

Classes:
- QuoteRepo   (list-all, get, insert, replace, delete, clear)

Um devis é gravado em três tabelas (quote, shipping_option,
local_transport), sempre dentro de uma única conexão/transação.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from .db import connect
from devis.domain.errors import QuoteNotFound
from devis.domain.models import (
    Currency,
    LocalTransportLeg,
    Quote,
    ShippingOption,
    ShippingType,
)
from devis.domain.policies import present_shipping_options


# -------------------------
# Helpers
# -------------------------

def _rows(cur) -> List[Dict[str, Any]]:
    cols = [d[0] for d in cur.description]
    return [dict(zip(cols, row)) for row in cur.fetchall()]


def _quote_row(q: Quote) -> Dict[str, Any]:
    return {
        "id": q.id,
        "supplier_name": q.supplier_name,
        "product_name": q.product_name,
        "unit_price": q.unit_price,
        "weight_kg": q.weight_kg,
        "quantity": q.quantity,
        "currency": q.currency.value,
        "created_at": q.created_at,
    }


def _write_children(conn, q: Quote) -> None:
    """Grava opções de expedição (apenas as informadas) e transporte local."""
    conn.executemany(
        """
        INSERT INTO shipping_option
            (quote_id, shipping_type, shipping_cost, delivery_cost, price_per_kg)
        VALUES (?, ?, ?, ?, ?)
        """,
        [
            (q.id, st.value, opt.shipping_cost or 0.0, opt.delivery_cost or 0.0, opt.price_per_kg)
            for st, opt in present_shipping_options(q)
        ],
    )
    conn.executemany(
        """
        INSERT INTO local_transport (id, quote_id, position, name, cost)
        VALUES (?, ?, ?, ?, ?)
        """,
        [(leg.id, q.id, pos, leg.name, leg.cost) for pos, leg in enumerate(q.local_transport)],
    )


def _assemble(
    quote_rows: Iterable[Dict[str, Any]],
    shipping_rows: Iterable[Dict[str, Any]],
    local_rows: Iterable[Dict[str, Any]],
) -> List[Quote]:
    shipping_by: Dict[str, Dict[ShippingType, ShippingOption]] = {}
    for r in shipping_rows:
        shipping_by.setdefault(r["quote_id"], {})[ShippingType(r["shipping_type"])] = ShippingOption(
            shipping_cost=r["shipping_cost"] or 0.0,
            delivery_cost=r["delivery_cost"] or 0.0,
            price_per_kg=r["price_per_kg"],
        )
    local_by: Dict[str, List[LocalTransportLeg]] = {}
    for r in local_rows:  # já ordenado por position
        local_by.setdefault(r["quote_id"], []).append(
            LocalTransportLeg(id=r["id"], name=r["name"], cost=r["cost"] or 0.0)
        )

    out: List[Quote] = []
    for r in quote_rows:
        out.append(
            Quote(
                id=r["id"],
                supplier_name=r["supplier_name"],
                product_name=r["product_name"],
                unit_price=r["unit_price"] or 0.0,
                weight_kg=r["weight_kg"] or 0.0,
                quantity=r["quantity"] or 0,
                currency=Currency(r["currency"]),
                created_at=r["created_at"],
                shipping_options=shipping_by.get(r["id"], {}),
                local_transport=local_by.get(r["id"], []),
            )
        )
    return out


# -------------------------
# Devis
# -------------------------

class QuoteRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def list_all(self) -> List[Quote]:
        """Todos os devis, do mais recente ao mais antigo."""
        with connect(self.db_path) as c:
            quotes = _rows(c.execute(
                """SELECT id, supplier_name, product_name, unit_price, weight_kg,
                          quantity, currency, created_at
                   FROM quote
                   ORDER BY created_at DESC, id DESC"""
            ))
            shipping = _rows(c.execute(
                "SELECT quote_id, shipping_type, shipping_cost, delivery_cost, price_per_kg FROM shipping_option"
            ))
            local = _rows(c.execute(
                "SELECT id, quote_id, position, name, cost FROM local_transport ORDER BY quote_id, position"
            ))
        return _assemble(quotes, shipping, local)

    def get(self, quote_id: str) -> Optional[Quote]:
        with connect(self.db_path) as c:
            quotes = _rows(c.execute(
                """SELECT id, supplier_name, product_name, unit_price, weight_kg,
                          quantity, currency, created_at
                   FROM quote WHERE id = ?""",
                (quote_id,),
            ))
            if not quotes:
                return None
            shipping = _rows(c.execute(
                """SELECT quote_id, shipping_type, shipping_cost, delivery_cost, price_per_kg
                   FROM shipping_option WHERE quote_id = ?""",
                (quote_id,),
            ))
            local = _rows(c.execute(
                """SELECT id, quote_id, position, name, cost
                   FROM local_transport WHERE quote_id = ? ORDER BY position""",
                (quote_id,),
            ))
        return _assemble(quotes, shipping, local)[0]

    def insert(self, q: Quote) -> Quote:
        with connect(self.db_path) as c:
            c.execute(
                """
                INSERT INTO quote
                    (id, supplier_name, product_name, unit_price, weight_kg,
                     quantity, currency, created_at)
                VALUES
                    (:id, :supplier_name, :product_name, :unit_price, :weight_kg,
                     :quantity, :currency, :created_at)
                """,
                _quote_row(q),
            )
            _write_children(c, q)
        return q

    def replace(self, q: Quote) -> Quote:
        """Substitui o registro completo (a moeda gravada não muda)."""
        with connect(self.db_path) as c:
            cur = c.execute(
                """
                UPDATE quote SET
                    supplier_name=:supplier_name,
                    product_name=:product_name,
                    unit_price=:unit_price,
                    weight_kg=:weight_kg,
                    quantity=:quantity
                WHERE id=:id
                """,
                _quote_row(q),
            )
            if cur.rowcount == 0:
                raise QuoteNotFound(q.id)
            c.execute("DELETE FROM shipping_option WHERE quote_id = ?", (q.id,))
            c.execute("DELETE FROM local_transport WHERE quote_id = ?", (q.id,))
            _write_children(c, q)
        return q

    def delete(self, quote_id: str) -> None:
        with connect(self.db_path) as c:
            cur = c.execute("DELETE FROM quote WHERE id = ?", (quote_id,))
            if cur.rowcount == 0:
                raise QuoteNotFound(quote_id)

    def clear(self) -> int:
        """Apaga todos os devis; retorna quantos foram removidos."""
        with connect(self.db_path) as c:
            cur = c.execute("DELETE FROM quote")
            return cur.rowcount

    def list_summary(self) -> List[Dict[str, Any]]:
        with connect(self.db_path) as c:
            return _rows(c.execute(
                """SELECT id, supplier_name, product_name, currency, quantity,
                          created_at, n_shipping, n_local
                   FROM vw_quote_summary
                   ORDER BY created_at DESC, id DESC"""
            ))
