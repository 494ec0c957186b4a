# pocket_ledger/core/normalizer.py
import re

MAX_KEY_LENGTH = 80

_DATE_TOKEN = re.compile(r"\d{1,2}[/.-]\d{1,2}[/.-]\d{2,4}")
_AMOUNT_TOKEN = re.compile(r"\d+[.,]\d\d")
# '*' survives: card processors use it between merchant and reference.
_NOISE = re.compile(r"[^a-z0-9 *]")
_SPACES = re.compile(r"\s+")


def normalize_description(raw: str) -> str:
    """
    Reduce a raw bank description to the key used for learned mappings.
    Dates and amounts are removed before punctuation so that their
    separators cannot leave stray digits behind.
    """
    text = (raw or "").lower()
    text = _DATE_TOKEN.sub("", text)
    text = _AMOUNT_TOKEN.sub("", text)
    text = _NOISE.sub(" ", text)
    text = _SPACES.sub(" ", text).strip()
    return text[:MAX_KEY_LENGTH].strip()
