# pocket_ledger/ledger.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, List, Optional

import pandas as pd
import yaml

from pocket_ledger.core.categorizer import CategorizeFn
from pocket_ledger.core.models import RecurringPayment, Transaction

REQUIRED_COLUMNS = ("date", "description", "amount")


def _records_from_csv(path: Path) -> List[dict]:
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df.columns = [str(c).strip().lower() for c in df.columns]
    for name in REQUIRED_COLUMNS:
        if name not in df.columns:
            raise ValueError(f"Missing required column '{name}' in {path}")
    return df.to_dict(orient="records")


def load_transactions(path, categorize: Optional[CategorizeFn] = None) -> List[Transaction]:
    """
    Load a ledger from a YAML list or a CSV with date/description/amount.
    Rows without a category are labelled with ``categorize`` when given.
    """
    path = Path(path)
    if path.suffix.lower() == ".csv":
        records = _records_from_csv(path)
    else:
        with path.open(encoding="utf-8") as f:
            records = yaml.safe_load(f) or []
        if not isinstance(records, list):
            raise ValueError(f"Ledger {path} must contain a list of transactions")

    txs = []
    for entry in records:
        if not isinstance(entry, dict):
            raise ValueError(f"Malformed ledger entry in {path}: {entry}")
        tx = Transaction.from_record(entry)
        if categorize is not None and not entry.get("category"):
            tx.category = categorize(tx.description)
        txs.append(tx)
    return txs


def save_transactions(transactions: Iterable[Transaction], path) -> None:
    records = [tx.to_record() for tx in transactions]
    with Path(path).open("w", encoding="utf-8") as f:
        yaml.safe_dump(records, f, sort_keys=False)


def dump_recurring_json(payments: Iterable[RecurringPayment]) -> str:
    return json.dumps([p.to_record() for p in payments], indent=2)


def load_recurring_json(text: str) -> List[RecurringPayment]:
    return [RecurringPayment.from_record(r) for r in json.loads(text)]
