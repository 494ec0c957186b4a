# pocket_ledger/core/similarity.py


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance with unit costs, keeping a single row of state."""
    if len(a) < len(b):
        a, b = b, a
    row = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        diagonal, row[0] = row[0], i
        for j, cb in enumerate(b, start=1):
            current = min(
                row[j] + 1,        # deletion
                row[j - 1] + 1,    # insertion
                diagonal + (ca != cb),
            )
            diagonal, row[j] = row[j], current
    return row[len(b)]


def similarity(a: str, b: str) -> float:
    """Return a score in [0, 1] where 1 means the strings are identical."""
    longest = max(len(a), len(b))
    if longest == 0 or a == b:
        return 1.0
    return (longest - edit_distance(a, b)) / longest
