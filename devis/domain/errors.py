"""
Exceções do domínio de devis.

Nenhuma delas é fatal para o processo: cada uma degrada uma
funcionalidade específica e deixa os devis armazenados intactos.
"""

from __future__ import annotations


class DevisError(Exception):
    """Base de todas as exceções do pacote."""


class RateUnavailable(DevisError):
    """Taxas de câmbio indisponíveis ou malformadas."""


class EditingUnavailable(RateUnavailable):
    """Edição em outra moeda pedida sem taxas de câmbio carregadas."""


class InvalidNumericInput(DevisError, ValueError):
    """Valor digitado pelo usuário não é um número válido para o campo."""


class QuoteNotFound(DevisError, LookupError):
    """Nenhum devis com o id informado."""

    def __init__(self, quote_id: str):
        super().__init__(f"Devis introuvable : {quote_id}")
        self.quote_id = quote_id
