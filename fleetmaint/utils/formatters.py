# fleetmaint/utils/formatters.py
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

from fleetmaint.constants import CURRENCY_SYMBOL


def format_currency(value: Union[Decimal, float, int, None]) -> str:
    """金额格式化为 pt-BR 风格：R$ 1.234,56"""
    amount = Decimal(str(value or 0)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    integer, cents = f"{abs(amount):,.2f}".split(".")
    return f"{sign}{CURRENCY_SYMBOL} {integer.replace(',', '.')},{cents}"
