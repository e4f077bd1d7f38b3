"""
Utilidades de parsing para valores digitados pelo usuário.

Esta é a fronteira de entrada: o domínio nunca recebe texto não
numérico. Valores inválidos geram ``InvalidNumericInput``, que a CLI
transforma em mensagem de erro.

Formatos aceitos:
    "1234.5", "1234,5", "1 234,50", "1.234,50" (milhar com ponto e decimal com vírgula)
"""

from __future__ import annotations

import re
from typing import Optional, Tuple

from devis.domain.errors import InvalidNumericInput
from devis.domain.models import Currency, LocalTransportLeg, ShippingOption, ShippingType
from devis.domain.policies import decimals_for

_NUM_RE = re.compile(r"^\d+(?:[.,]\d+)?$")


def _normalize_number(txt: str) -> str:
    s = str(txt).strip().replace(" ", "").replace("\u00a0", "")
    # "1.234,50" -> "1234.50"
    if "," in s and "." in s:
        if s.rfind(",") > s.rfind("."):
            s = s.replace(".", "")
        else:
            s = s.replace(",", "")
    return s


def parse_number(txt: Optional[str], field: str = "valeur") -> float:
    """Interpreta um número não negativo (sem restrição de casas decimais)."""
    if txt is None or not str(txt).strip():
        raise InvalidNumericInput(f"{field} : valeur manquante")
    s = _normalize_number(txt)
    if s.startswith("-"):
        raise InvalidNumericInput(f"{field} : valeur négative interdite ({txt})")
    if not _NUM_RE.match(s):
        raise InvalidNumericInput(f"{field} : nombre invalide ({txt})")
    return float(s.replace(",", "."))


def parse_amount(txt: Optional[str], currency: Currency, field: str = "montant") -> float:
    """Interpreta um valor monetário respeitando a precisão da moeda.

    Exemplos:
        ("12,5", EUR)  -> 12.5
        ("1 500", XOF) -> 1500.0
        ("12,5", XOF)  -> InvalidNumericInput (XOF não tem casas decimais)
    """
    value = parse_number(txt, field)
    s = _normalize_number(txt)
    decimals = len(re.split(r"[.,]", s, maxsplit=1)[1]) if re.search(r"[.,]", s) else 0
    allowed = decimals_for(currency)
    if decimals > allowed:
        raise InvalidNumericInput(
            f"{field} : {Currency(currency).value} accepte au plus {allowed} décimale(s) ({txt})"
        )
    return value


def parse_quantity(txt: Optional[str], field: str = "quantité") -> int:
    """Interpreta uma quantidade inteira não negativa."""
    value = parse_number(txt, field)
    if value != int(value):
        raise InvalidNumericInput(f"{field} : un nombre entier est attendu ({txt})")
    return int(value)


def parse_currency(txt: Optional[str]) -> Currency:
    try:
        return Currency(str(txt or "").strip().upper())
    except ValueError:
        choices = ", ".join(c.value for c in Currency)
        raise InvalidNumericInput(f"devise inconnue : {txt} (choix : {choices})") from None


def parse_shipping_type(txt: Optional[str]) -> ShippingType:
    try:
        return ShippingType(str(txt or "").strip().lower())
    except ValueError:
        choices = ", ".join(t.value for t in ShippingType)
        raise InvalidNumericInput(f"mode d'expédition inconnu : {txt} (choix : {choices})") from None


def parse_shipping_spec(txt: str, currency: Currency) -> Tuple[ShippingType, ShippingOption]:
    """Interpreta ``TIPO:FRETE:ENTREGA[:PRECO_KG]``.

    Campos vazios valem zero; ``PRECO_KG`` ausente ou vazio indica
    opção sem cobrança por peso.

    Exemplos:
        "direct-air:200:50"          -> (DIRECT_AIR, ShippingOption(200, 50, None))
        "forwarder-standard:::2,5"   -> (FORWARDER_STANDARD, ShippingOption(0, 0, 2.5))
    """
    parts = [p.strip() for p in str(txt).split(":")]
    if len(parts) < 2 or len(parts) > 4:
        raise InvalidNumericInput(f"expédition invalide : {txt} (attendu TYPE:FORFAIT:LIVRAISON[:PRIX_KG])")
    parts += [""] * (4 - len(parts))
    shipping_type = parse_shipping_type(parts[0])
    shipping = parse_amount(parts[1], currency, "forfait expédition") if parts[1] else 0.0
    delivery = parse_amount(parts[2], currency, "frais de livraison") if parts[2] else 0.0
    per_kg = parse_number(parts[3], "prix / kg") if parts[3] else None
    return shipping_type, ShippingOption(shipping_cost=shipping, delivery_cost=delivery, price_per_kg=per_kg)


def parse_local_spec(txt: str, currency: Currency) -> LocalTransportLeg:
    """Interpreta ``NOME:CUSTO`` (o nome pode conter ':'; o custo é o último campo)."""
    name, sep, cost = str(txt).rpartition(":")
    if not sep or not name.strip():
        raise InvalidNumericInput(f"transport local invalide : {txt} (attendu NOM:COÛT)")
    return LocalTransportLeg(name=name.strip(), cost=parse_amount(cost, currency, "coût transport local"))
