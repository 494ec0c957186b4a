# pocket_ledger/core/models.py
from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from typing import List, Optional

from pocket_ledger.core.categories import ESSENTIAL_CATEGORIES, OTHER

DAILY = "daily"
WEEKLY = "weekly"
MONTHLY = "monthly"
YEARLY = "yearly"


def _new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_date(value, field_name="date", entry=None) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip()).date()
        except ValueError as exc:
            raise ValueError(f"Unrecognized {field_name} in entry: {entry}") from exc
    raise ValueError(f"Missing '{field_name}' in entry: {entry}")


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


def _as_tags(value) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [t.strip() for t in value.split(",") if t.strip()]
    return [str(t) for t in value]


def parse_instant(value) -> datetime:
    if isinstance(value, datetime):
        instant = value
    else:
        text = str(value).strip()
        # fromisoformat only learned the trailing 'Z' in 3.11
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        instant = datetime.fromisoformat(text)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant


@dataclass
class Transaction:
    date: date
    description: str
    amount: float
    merchant: Optional[str] = None
    category: str = OTHER
    id: str = field(default_factory=_new_id)
    is_recurring: bool = False
    is_anomaly: bool = False
    tags: List[str] = field(default_factory=list)

    def to_record(self) -> dict:
        record = asdict(self)
        record["date"] = self.date.isoformat()
        return record

    @classmethod
    def from_record(cls, record: dict) -> "Transaction":
        if "amount" not in record:
            raise ValueError(f"Missing 'amount' in entry: {record}")
        try:
            amount = float(record["amount"])
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Could not parse amount in entry: {record}") from exc
        merchant = record.get("merchant")
        kwargs = dict(
            date=parse_date(record.get("date"), "date", record),
            description=str(record.get("description") or ""),
            amount=amount,
            merchant=str(merchant).strip() if merchant else None,
            category=record.get("category") or OTHER,
            is_recurring=_as_bool(record.get("is_recurring", False)),
            is_anomaly=_as_bool(record.get("is_anomaly", False)),
            tags=_as_tags(record.get("tags")),
        )
        if record.get("id"):
            kwargs["id"] = str(record["id"])
        return cls(**kwargs)


@dataclass
class LearnedMapping:
    description: str
    category: str
    count: int = 1
    last_updated: datetime = field(default_factory=utcnow)

    def to_record(self) -> dict:
        # camelCase keys match the exported mappings file format
        return {
            "description": self.description,
            "category": self.category,
            "count": self.count,
            "lastUpdated": self.last_updated.isoformat(),
        }


@dataclass
class RecurringPayment:
    merchant: str
    amount: float
    category: str
    frequency: str
    last_date: date
    next_expected_date: date
    intervals: List[float]
    count: int
    confidence: float
    amount_std_dev: float

    @property
    def mean_interval(self) -> float:
        if not self.intervals:
            return 0.0
        return sum(self.intervals) / len(self.intervals)

    @property
    def monthly_amount(self) -> float:
        """Absolute amount scaled to one month of charges."""
        if self.frequency == WEEKLY:
            scaled = self.amount * 52 / 12
        elif self.frequency == YEARLY:
            scaled = self.amount / 12
        elif self.frequency == DAILY:
            scaled = self.amount * 365 / 12
        else:
            scaled = self.amount
        return abs(scaled)

    @property
    def is_essential(self) -> bool:
        return self.category in ESSENTIAL_CATEGORIES

    def to_record(self) -> dict:
        record = asdict(self)
        record["last_date"] = self.last_date.isoformat()
        record["next_expected_date"] = self.next_expected_date.isoformat()
        return record

    @classmethod
    def from_record(cls, record: dict) -> "RecurringPayment":
        return cls(
            merchant=record["merchant"],
            amount=float(record["amount"]),
            category=record.get("category") or OTHER,
            frequency=record["frequency"],
            last_date=parse_date(record.get("last_date"), "last_date", record),
            next_expected_date=parse_date(
                record.get("next_expected_date"), "next_expected_date", record
            ),
            intervals=[float(i) for i in record.get("intervals") or []],
            count=int(record["count"]),
            confidence=float(record["confidence"]),
            amount_std_dev=float(record.get("amount_std_dev") or 0.0),
        )


@dataclass
class CategoryStats:
    category: str
    total: float
    count: int
    average: float
    percentage: float


@dataclass
class InsightMessage:
    id: str
    type: str
    severity: str
    title: str
    description: str
    category: Optional[str] = None
    amount: Optional[float] = None
