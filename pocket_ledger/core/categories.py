# pocket_ledger/core/categories.py
from __future__ import annotations

from typing import Dict, List, Mapping, Optional

GROCERIES = "groceries"
DINING = "dining"
TRANSPORT = "transport"
ENTERTAINMENT = "entertainment"
UTILITIES = "utilities"
SHOPPING = "shopping"
HEALTH = "health"
INCOME = "income"
TRANSFER = "transfer"
OTHER = "other"

# Keyword search walks the categories in this order; the first hit wins.
CATEGORIES: List[str] = [
    GROCERIES,
    DINING,
    TRANSPORT,
    ENTERTAINMENT,
    UTILITIES,
    SHOPPING,
    HEALTH,
    INCOME,
    TRANSFER,
    OTHER,
]

ESSENTIAL_CATEGORIES = frozenset({UTILITIES, HEALTH, TRANSPORT})

CATEGORY_COLORS: Dict[str, str] = {
    GROCERIES: "#10b981",
    DINING: "#f59e0b",
    TRANSPORT: "#3b82f6",
    ENTERTAINMENT: "#ec4899",
    UTILITIES: "#8b5cf6",
    SHOPPING: "#06b6d4",
    HEALTH: "#ef4444",
    INCOME: "#22c55e",
    TRANSFER: "#6b7280",
    OTHER: "#64748b",
}

CATEGORY_LABELS: Dict[str, str] = {cat: cat.capitalize() for cat in CATEGORIES}

CATEGORY_KEYWORDS: Dict[str, List[str]] = {
    GROCERIES: [
        "grocery", "supermarket", "whole foods", "trader joe", "safeway",
        "walmart", "target", "aldi", "lidl", "kroger",
    ],
    DINING: [
        "restaurant", "cafe", "coffee", "starbucks", "mcdonald", "burger",
        "pizza", "doordash", "uber eats", "grubhub", "delivery",
    ],
    TRANSPORT: [
        "uber", "lyft", "gas", "fuel", "parking", "transit", "subway",
        "train", "bus", "taxi", "shell", "chevron", "exxon",
    ],
    ENTERTAINMENT: [
        "netflix", "spotify", "hulu", "disney", "hbo", "amazon prime",
        "youtube", "cinema", "theater", "concert", "movie", "game",
    ],
    UTILITIES: [
        "electric", "water", "gas", "internet", "phone", "mobile", "verizon",
        "at&t", "t-mobile", "comcast", "spectrum",
    ],
    SHOPPING: [
        "amazon", "ebay", "shop", "store", "clothing", "fashion", "nike",
        "adidas", "zara", "h&m",
    ],
    HEALTH: [
        "pharmacy", "doctor", "hospital", "medical", "health", "cvs",
        "walgreens", "clinic", "dentist", "gym", "fitness",
    ],
    INCOME: ["salary", "payroll", "deposit", "payment received", "refund", "cashback"],
    TRANSFER: ["transfer", "withdrawal", "atm"],
    OTHER: [],
}


def is_category(value) -> bool:
    return isinstance(value, str) and value in CATEGORY_KEYWORDS


def validate_category(category: str) -> str:
    if not is_category(category):
        raise ValueError(
            f"Unknown category '{category}'. Expected one of: {', '.join(CATEGORIES)}"
        )
    return category


def build_keyword_rules(
    extra: Optional[Mapping[str, List[str]]] = None,
) -> Dict[str, List[str]]:
    """Return the keyword table with user supplied keywords appended.

    ``extra`` maps a known category to additional keywords, typically the
    ``categories`` section of the YAML config. Keywords are lower-cased and
    duplicates are dropped; the category order is always ``CATEGORIES``.
    """
    rules = {cat: list(CATEGORY_KEYWORDS[cat]) for cat in CATEGORIES}
    for cat, keywords in (extra or {}).items():
        validate_category(cat)
        for kw in keywords or []:
            kw = str(kw).strip().lower()
            if kw and kw not in rules[cat]:
                rules[cat].append(kw)
    return rules


def match_keywords(description: str, rules: Mapping[str, List[str]]) -> Optional[str]:
    name = (description or "").lower()
    for cat in CATEGORIES:
        for kw in rules.get(cat, ()):
            if kw.lower() in name:
                return cat
    return None
