"""Currency display formatting"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, NamedTuple
from finance_tracker.domain.models import Currency


class CurrencyInfo(NamedTuple):
    label: str
    symbol: str
    decimals: int
    symbol_spaced: bool


CURRENCIES: Dict[Currency, CurrencyInfo] = {
    Currency.XAF: CurrencyInfo("Central African CFA Franc", "FCFA", 0, True),
    Currency.USD: CurrencyInfo("US Dollar", "$", 2, False),
    Currency.NGN: CurrencyInfo("Nigerian Naira", "₦", 2, False),
    Currency.EUR: CurrencyInfo("Euro", "€", 2, False),
}


def _quantize(amount: Decimal, decimals: int) -> Decimal:
    return amount.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)


def _lookup(currency: Currency | str) -> CurrencyInfo | None:
    try:
        return CURRENCIES.get(Currency(currency))
    except ValueError:
        return None


def format_currency(amount: Decimal | int | float, currency: Currency | str) -> str:
    """
    Format an amount for display.

    Examples:
        1234.5, XAF -> "FCFA 1,235"
        1234.5, USD -> "$1,234.50"
        1234.5, "GBP" -> "1234.50"
    """
    value = Decimal(str(amount))
    info = _lookup(currency)
    if info is None:
        return f"{_quantize(value, 2):f}"

    number = f"{_quantize(value, info.decimals):,f}"
    separator = " " if info.symbol_spaced else ""
    return f"{info.symbol}{separator}{number}"


def currency_symbol(currency: Currency | str) -> str:
    info = _lookup(currency)
    return info.symbol if info else ""
