class KnownKeyIndex:
    """Per-row set of column keys currently present in the matrix.

    Downstream code uses it to tell which items a user already has (e.g. to
    exclude them from recommendations).  A row is present only while its set
    is non-empty.
    """

    def __init__(self):
        self._keys = {}   # dict: row_id -> set of col_ids

    def add(self, row, col):
        keys = self._keys.get(row)
        if keys is None:
            keys = self._keys[row] = set()
        keys.add(col)

    def discard(self, row, col):
        keys = self._keys.get(row)
        if keys is None:
            return
        keys.discard(col)
        if not keys:
            del self._keys[row]

    def get(self, row):
        return frozenset(self._keys.get(row, ()))

    def rows(self):
        return self._keys.keys()

    def items(self):
        for row, keys in self._keys.items():
            yield row, frozenset(keys)

    def __contains__(self, row):
        return row in self._keys

    def __len__(self):
        return len(self._keys)

    def __repr__(self):
        return f"KnownKeyIndex(rows={len(self._keys)})"
