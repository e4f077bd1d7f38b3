# devis/infra/views.py
"""
Criação de views auxiliares para consultas frequentes.

Views criadas:
- vw_quote_summary: um devis por linha, com a contagem de opções de
  expedição e de trechos de transporte local (usada na listagem).

Obs.:
- A view assume que as migrações V1→V2 já foram aplicadas.
- Os custos NÃO são calculados em SQL: a agregação (com conversão de
  moeda) fica em ``devis.domain.costs``.
"""

from __future__ import annotations

from .db import connect


def create_views(db_path: str) -> None:
    with connect(db_path) as c:
        c.executescript(
            """
            DROP VIEW IF EXISTS vw_quote_summary;
            CREATE VIEW vw_quote_summary AS
            SELECT
                q.id,
                q.supplier_name,
                q.product_name,
                q.currency,
                q.quantity,
                q.created_at,
                (SELECT COUNT(*) FROM shipping_option s WHERE s.quote_id = q.id) AS n_shipping,
                (SELECT COUNT(*) FROM local_transport l WHERE l.quote_id = q.id) AS n_local
            FROM quote q;
            """
        )

        c.executescript(
            """
            CREATE INDEX IF NOT EXISTS idx_quote_created     ON quote(created_at);
            CREATE INDEX IF NOT EXISTS idx_local_transport_q ON local_transport(quote_id, position);
            """
        )
