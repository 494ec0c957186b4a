"""Recurring-payment detection and adaptive categorization for personal ledgers."""

from pocket_ledger.core.categorizer import Categorizer
from pocket_ledger.core.mappings import InvalidMappingsError, LearnedMappingStore
from pocket_ledger.core.models import (
    CategoryStats,
    InsightMessage,
    LearnedMapping,
    RecurringPayment,
    Transaction,
)
from pocket_ledger.core.normalizer import normalize_description
from pocket_ledger.core.similarity import similarity
from pocket_ledger.insights import generate_insights
from pocket_ledger.recurring import DetectorSettings, RecurringCache, detect_recurring
from pocket_ledger.store import TransactionStore

__all__ = [
    "Categorizer",
    "CategoryStats",
    "DetectorSettings",
    "InsightMessage",
    "InvalidMappingsError",
    "LearnedMapping",
    "LearnedMappingStore",
    "RecurringCache",
    "RecurringPayment",
    "Transaction",
    "TransactionStore",
    "detect_recurring",
    "generate_insights",
    "normalize_description",
    "similarity",
]
