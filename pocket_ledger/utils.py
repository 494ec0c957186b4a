# pocket_ledger/utils.py
import math


def transactions_in_month(transactions, year, month):
    """Transactions dated in the calendar month, in input order."""
    return [tx for tx in transactions if (tx.date.year, tx.date.month) == (year, month)]


def previous_month(year, month):
    return (year - 1, 12) if month == 1 else (year, month - 1)


def dedupe_transactions(transactions):
    """
    Remove duplicates based on (date, description, merchant, amount).
    Ids are ignored: the same statement line imported twice gets two ids.
    """
    seen = set()
    unique = []
    for tx in transactions:
        key = (tx.date, tx.description, tx.merchant or '', tx.amount)
        if key not in seen:
            seen.add(key)
            unique.append(tx)
    return unique


def safe_number(value, default=0.0):
    """Map NaN / infinity (e.g. the mean of an empty column) to ``default``."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        return default
    return value if math.isfinite(value) else default
