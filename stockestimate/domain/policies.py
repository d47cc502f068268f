"""
Políticas de classificação e de compra para o StockEstimate.

Este módulo contém as regras de negócio que classificam a urgência de um
químico a partir dos dias de estoque imediato e que arredondam as
quantidades de compra local sugeridas para cobrir lacunas de
abastecimento. As funções são usadas pelo motor de projeção e pelo
agregador de portfólio.
"""

from __future__ import annotations

from math import ceil
from typing import Optional

from stockestimate.config import DEFAULTS, DefaultConfig
from stockestimate.domain.models import CRITICAL, LOW, OK, WARNING


def status_by_days(immediate_days: float, limits: DefaultConfig = DEFAULTS) -> str:
    """Classifica o status pelo estoque imediato em dias.

    Regras (limites inclusivos):
        - ``immediate_days <= 3``  → ``'critical'``
        - ``immediate_days <= 10`` → ``'warning'``
        - ``immediate_days <= 20`` → ``'low'``
        - acima disso            → ``'ok'``

    Args:
        immediate_days: Dias cobertos por estoque de fábrica + compra local.
        limits: Configuração com os limites ``critical_days``,
            ``warning_days`` e ``low_days``.

    Returns:
        Uma das strings ``'critical'``, ``'warning'``, ``'low'`` ou ``'ok'``.
    """
    if immediate_days <= limits.critical_days:
        return CRITICAL
    if immediate_days <= limits.warning_days:
        return WARNING
    if immediate_days <= limits.low_days:
        return LOW
    return OK


def apply_gap_rule(status: str, gap_days: float) -> str:
    """Sinaliza lacunas futuras em itens que estariam ``'ok'``.

    Um item com estoque imediato suficiente mas com lacuna prevista sobe
    para ``'warning'``; a regra nunca eleva além disso nem altera
    ``'critical'``, ``'warning'`` ou ``'low'``.
    """
    if gap_days > 0 and status == OK:
        return WARNING
    return status


def classify_status(immediate_days: float, gap_days: float = 0.0, limits: DefaultConfig = DEFAULTS) -> str:
    return apply_gap_rule(status_by_days(immediate_days, limits), gap_days)


def round_up_to_multiple(x: Optional[float], mult: Optional[float]) -> Optional[float]:
    """Arredonda ``x`` para cima ao múltiplo ``mult``.

    Utilizado ao sugerir compras locais em função do tamanho de
    embalagem ou do múltiplo de pedido do fornecedor. Caso ``mult`` seja
    ``None`` ou menor ou igual a zero, retorna ``x`` sem alteração.

    Args:
        x: Quantidade a ser arredondada.
        mult: Múltiplo base.

    Returns:
        ``ceil(x / mult) * mult`` se ``mult`` for positivo; caso
        contrário, ``x``.
    """
    if x is None:
        return None
    val = float(x)
    if mult is None or float(mult) <= 0:
        return val
    m = float(mult)
    return ceil(val / m) * m


def purchase_quantity(gap_quantity: float, order_multiple: Optional[float] = None) -> float:
    """Quantidade de compra local para cobrir uma lacuna.

    A lacuna é arredondada para cima para um número inteiro de unidades
    e, se informado, para o múltiplo de pedido.
    """
    if gap_quantity <= 0:
        return 0.0
    return round_up_to_multiple(float(ceil(gap_quantity)), order_multiple)
