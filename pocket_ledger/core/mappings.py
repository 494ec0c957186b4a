# pocket_ledger/core/mappings.py
from __future__ import annotations

import json
import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from pocket_ledger.core.categories import is_category, validate_category
from pocket_ledger.core.models import LearnedMapping, parse_instant, utcnow
from pocket_ledger.core.normalizer import normalize_description

logger = logging.getLogger(__name__)

# Corrections seen only once are treated as noise when sharing mappings.
EXPORT_MIN_COUNT = 2


class InvalidMappingsError(ValueError):
    """Raised when an import payload is not a valid list of mappings."""


class LearnedMappingStore:
    """
    Ordered table of user corrections keyed by normalized description.

    There is at most one entry per key. Insertion order is preserved because
    the fuzzy lookup in the categorizer takes the first qualifying entry.
    The store does no locking; callers serialize writes.
    """

    def __init__(
        self,
        entries: Optional[Iterable[LearnedMapping]] = None,
        normalizer: Callable[[str], str] = normalize_description,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._normalize = normalizer
        self._clock = clock
        self._entries: Dict[str, LearnedMapping] = {}
        for entry in entries or ():
            key = normalizer(entry.description)
            if not key:
                raise ValueError(f"Learned mapping has an empty description: {entry}")
            if key != entry.description:
                entry = replace(entry, description=key)
            self._entries[key] = entry

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[LearnedMapping]:
        return iter(list(self._entries.values()))

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str) -> Optional[LearnedMapping]:
        return self._entries.get(key)

    def learn(self, raw_description: str, category: str) -> LearnedMapping:
        validate_category(category)
        key = self._normalize(raw_description)
        entry = self._entries.get(key)
        if entry is None:
            entry = LearnedMapping(key, category, 1, self._clock())
            self._entries[key] = entry
        else:
            entry.category = category
            entry.count += 1
            entry.last_updated = self._clock()
        logger.debug("Learned %r -> %s (count=%d)", key, category, entry.count)
        return entry

    def export_entries(self) -> List[LearnedMapping]:
        return [e for e in self._entries.values() if e.count >= EXPORT_MIN_COUNT]

    def import_entries(self, incoming: Iterable[LearnedMapping]) -> int:
        """Merge ``incoming`` and return how many entries were added or replaced."""
        changed = 0
        for item in incoming:
            key = self._normalize(item.description)
            existing = self._entries.get(key)
            if existing is None:
                self._entries[key] = LearnedMapping(
                    key, item.category, item.count, self._clock()
                )
                changed += 1
            elif item.count > existing.count:
                existing.category = item.category
                existing.count = item.count
                existing.last_updated = self._clock()
                changed += 1
        logger.debug("Imported learned mappings: %d changed, %d total", changed, len(self))
        return changed

    def records(self) -> List[dict]:
        return [e.to_record() for e in self._entries.values()]

    @classmethod
    def from_records(cls, records, **kwargs) -> "LearnedMappingStore":
        entries = parse_mapping_records(records, keep_timestamps=True)
        return cls(entries, **kwargs)


def _is_positive_int(value) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return isinstance(value, int) and value > 0


def parse_mapping_records(records, keep_timestamps: bool = False) -> List[LearnedMapping]:
    """Validate a whole payload; any bad record rejects all of it."""
    if not isinstance(records, list):
        raise InvalidMappingsError("Learned mappings must be a list of objects")

    parsed = []
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise InvalidMappingsError(f"Mapping #{index} is not an object: {record!r}")
        description = record.get("description")
        category = record.get("category")
        count = record.get("count")
        if not isinstance(description, str) or not normalize_description(description):
            raise InvalidMappingsError(f"Mapping #{index} has no description: {record!r}")
        if not is_category(category):
            raise InvalidMappingsError(f"Mapping #{index} has an invalid category: {record!r}")
        if not _is_positive_int(count):
            raise InvalidMappingsError(f"Mapping #{index} has an invalid count: {record!r}")

        last_updated = utcnow()
        raw_ts = record.get("lastUpdated")
        if keep_timestamps and raw_ts:
            try:
                last_updated = parse_instant(raw_ts)
            except (TypeError, ValueError) as exc:
                raise InvalidMappingsError(
                    f"Mapping #{index} has an invalid lastUpdated: {record!r}"
                ) from exc
        parsed.append(
            LearnedMapping(
                normalize_description(description), category, int(count), last_updated
            )
        )
    return parsed


def load_mappings_json(text: str) -> List[LearnedMapping]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidMappingsError(f"Learned mappings file is not valid JSON: {exc}") from exc
    return parse_mapping_records(data)


def dump_mappings_json(entries: Iterable[LearnedMapping]) -> str:
    return json.dumps([e.to_record() for e in entries], indent=2)
