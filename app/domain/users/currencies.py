"""Currencies a user can pick for their profile."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Currency:
    code: str
    name: str
    symbol: str


CURRENCIES: tuple[Currency, ...] = (
    Currency("AUD", "Australian Dollar", "A$"),
    Currency("BDT", "Bangladeshi Taka", "৳"),
    Currency("BRL", "Brazilian Real", "R$"),
    Currency("CAD", "Canadian Dollar", "C$"),
    Currency("CHF", "Swiss Franc", "CHF"),
    Currency("CNY", "Chinese Yuan", "¥"),
    Currency("EUR", "Euro", "€"),
    Currency("GBP", "British Pound", "£"),
    Currency("INR", "Indian Rupee", "₹"),
    Currency("JPY", "Japanese Yen", "¥"),
    Currency("LKR", "Sri Lankan Rupee", "Rs"),
    Currency("MXN", "Mexican Peso", "MX$"),
    Currency("NPR", "Nepalese Rupee", "Rs"),
    Currency("NZD", "New Zealand Dollar", "NZ$"),
    Currency("PKR", "Pakistani Rupee", "Rs"),
    Currency("SGD", "Singapore Dollar", "S$"),
    Currency("USD", "US Dollar", "$"),
    Currency("ZAR", "South African Rand", "R"),
)

_BY_CODE = {currency.code: currency for currency in CURRENCIES}


def find_currency(code: str | None) -> Currency | None:
    return _BY_CODE.get((code or "").strip().upper())


def list_currencies() -> list[Currency]:
    """All supported currencies ordered by display name."""
    return sorted(CURRENCIES, key=lambda currency: currency.name)
