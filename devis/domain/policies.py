"""
Políticas transversais do domínio de devis.

Este módulo concentra as regras que aparecem em vários pontos do
sistema (agregação de custos, edição e relatórios) para que não sejam
reimplementadas em cada consumidor:

- precisão decimal por moeda (XOF sem casas decimais, demais com 2);
- arredondamento e formatação de valores monetários;
- o teste "esta opção de expedição foi de fato informada?".
"""

from __future__ import annotations

from typing import Iterator, Optional, Tuple

from devis.domain.models import Currency, Quote, ShippingOption, ShippingType

ZERO_DECIMAL_CURRENCIES = frozenset({Currency.XOF})


def decimals_for(currency: Currency) -> int:
    """Retorna o número de casas decimais canônico da moeda."""
    return 0 if Currency(currency) in ZERO_DECIMAL_CURRENCIES else 2


def rounding_unit(currency: Currency) -> float:
    """Menor valor representável na moeda (1 para XOF, 0.01 para as demais)."""
    return 10.0 ** -decimals_for(currency)


def round_amount(amount: float, currency: Currency) -> float:
    """Arredonda ``amount`` à precisão da moeda.

    Usado apenas na apresentação e antes de gravar valores digitados;
    os cálculos internos permanecem em precisão total.
    """
    return round(float(amount), decimals_for(currency)) + 0.0


def format_amount(amount: Optional[float], currency: Currency, with_code: bool = True) -> str:
    """Formata um valor no padrão ``1.234,56 EUR``.

    ``None`` (valor não aplicável) é exibido como ``-``.
    """
    if amount is None:
        return "-"
    d = decimals_for(currency)
    txt = f"{round_amount(amount, currency):,.{d}f}".replace(",", "X").replace(".", ",").replace("X", ".")
    return f"{txt} {Currency(currency).value}" if with_code else txt


def shipping_option_present(option: Optional[ShippingOption]) -> bool:
    """Indica se uma opção de expedição tem algum valor significativo.

    Uma opção com frete fixo, entrega fixa e preço por kg todos nulos
    ou ausentes é tratada como "não informada".
    """
    if option is None:
        return False
    return bool(
        (option.shipping_cost or 0.0) > 0
        or (option.delivery_cost or 0.0) > 0
        or (option.price_per_kg or 0.0) > 0
    )


def present_shipping_options(quote: Quote) -> Iterator[Tuple[ShippingType, ShippingOption]]:
    """Itera pelas opções informadas do devis, na ordem de ``ShippingType``."""
    for shipping_type in ShippingType:
        option = quote.shipping_options.get(shipping_type)
        if shipping_option_present(option):
            yield shipping_type, option
