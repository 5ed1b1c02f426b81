from decimal import Decimal, ROUND_HALF_UP

CURRENCY_SYMBOLS = {
    "USD": "$",
    "CAD": "CA$",
    "EUR": "€",
    "GBP": "£",
}


def get_currency_symbol(code: str) -> str:
    return CURRENCY_SYMBOLS.get(code.upper(), code)


def format_price(price: float | int | Decimal, currency: str = "USD") -> str:
    """``29`` -> ``$29``, ``29.5`` -> ``$29.50``, thousands separated by commas."""
    amount = Decimal(str(price)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    if amount == amount.to_integral_value():
        text = f"{int(amount):,}"
    else:
        text = f"{amount:,.2f}"
    return f"{get_currency_symbol(currency)}{text}"
