# pocket_ledger/core/categorizer.py
from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Callable, Iterable, List, Mapping, Optional

from pocket_ledger.core.categories import OTHER, build_keyword_rules, match_keywords
from pocket_ledger.core.mappings import LearnedMappingStore
from pocket_ledger.core.models import LearnedMapping, Transaction
from pocket_ledger.core.normalizer import normalize_description

logger = logging.getLogger(__name__)

FUZZY_MIN_WORD_LENGTH = 3
FUZZY_MATCH_RATIO = 0.7

# Shape of the callback handed to importers: description in, category out.
CategorizeFn = Callable[[str], str]


def _key_words(key: str) -> List[str]:
    words = []
    for word in key.split():
        head, star, tail = word.partition("*")
        # "us*1z2k3": a tail with digits is a per-charge reference
        if star and any(c.isdigit() for c in tail):
            word = head
        if len(word) >= FUZZY_MIN_WORD_LENGTH:
            words.append(word)
    return words


def fuzzy_match(mapping_key: str, normalized_input: str) -> bool:
    words = _key_words(mapping_key)
    if not words:
        return False
    input_words = normalized_input.split()
    matched = sum(
        1 for w in words if any(w in iw or iw in w for iw in input_words if iw)
    )
    return matched >= math.ceil(FUZZY_MATCH_RATIO * len(words))


class Categorizer:
    """
    Resolve a category for a raw description.

    Learned corrections always beat keyword rules: an exact learned key is
    tried first, then a fuzzy partial match against the learned keys, and
    only then the keyword table. Anything left over is ``other``.
    """

    def __init__(
        self,
        store: Optional[LearnedMappingStore] = None,
        rules: Optional[Mapping[str, List[str]]] = None,
        normalizer: Callable[[str], str] = normalize_description,
    ):
        self.store = store if store is not None else LearnedMappingStore(normalizer=normalizer)
        self.rules = rules if rules is not None else build_keyword_rules()
        self._normalize = normalizer

    def categorize(self, description: str) -> str:
        key = self._normalize(description or "")

        exact = self.store.get(key)
        if exact is not None:
            return exact.category

        if key:
            for mapping in self.store:
                if fuzzy_match(mapping.description, key):
                    logger.debug("Fuzzy match %r ~ %r", key, mapping.description)
                    return mapping.category

        return match_keywords(description or "", self.rules) or OTHER

    __call__ = categorize

    def categorize_transaction(self, tx: Transaction) -> Transaction:
        return replace(tx, category=self.categorize(tx.description))

    def learn_correction(self, description: str, category: str) -> LearnedMapping:
        return self.store.learn(description, category)

    def export_learned_mappings(self) -> List[LearnedMapping]:
        return self.store.export_entries()

    def import_learned_mappings(self, mappings: Iterable[LearnedMapping]) -> int:
        return self.store.import_entries(mappings)
