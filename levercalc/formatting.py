import math


def _to_number(value):
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(num):
        return None
    return num


def format_currency(amount, decimals=2, show_cents=True, prefix='$', suffix=''):
    """
    Money formatting with thousands separators.
    With show_cents small values (|x| < 1) get at least 4 decimals.
    """
    num = _to_number(amount)
    if num is None:
        return 'N/A'

    if show_cents:
        final_decimals = max(decimals, 4 if abs(num) < 1 else 2)
    else:
        final_decimals = decimals

    return f"{prefix}{num:,.{final_decimals}f}{suffix}"


def format_price(price):
    """Crypto price precision: 2 decimals above 1000, 4 above 1, else 6"""
    num = _to_number(price)
    if not num:
        return 'N/A'
    if num >= 1000:
        return format_currency(num, decimals=2)
    if num >= 1:
        return format_currency(num, decimals=4)
    return format_currency(num, decimals=6)


def format_percent(value, signed=False):
    num = _to_number(value)
    if num is None:
        return 'N/A'
    if signed:
        return f"{num:+.2f}%"
    return f"{num:.2f}%"


def format_volume(volume):
    """24h volume in millions, e.g. '$12.35M'"""
    num = _to_number(volume)
    if num is None:
        return 'N/A'
    return format_currency(num / 1_000_000, decimals=1, suffix='M')


def format_leverage(value):
    num = _to_number(value)
    if num is None:
        return 'N/A'
    return f"{num:g}x"
