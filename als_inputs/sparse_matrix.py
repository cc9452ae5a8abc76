# Dual-indexed sparse matrix
#
# The ALS solver alternates between solving for every row (user) vector and
# every column (item) vector, so it needs fast iteration in both directions.
# DualSparseMatrix keeps the same cells in two nested dicts:
#
#   by_row:    row_id -> {col_id: weight}
#   by_column: col_id -> {row_id: weight}
#
# All mutation goes through accumulate() / remove(), which always touch both
# views, so the two can never disagree.  An outer key exists only while its
# inner dict is non-empty.

from types import MappingProxyType

import numpy as np
import pandas as pd
from scipy.sparse import csr_matrix

from als_inputs.record_parser import Accumulate, Remove

_EMPTY = MappingProxyType({})


class DualSparseMatrix:
    def __init__(self):
        self._by_row = {}
        self._by_column = {}

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def accumulate(self, row, col, weight):
        """Add weight to cell (row, col) in both views, creating it if needed."""
        row_map = self._by_row.get(row)
        if row_map is None:
            row_map = self._by_row[row] = {}
        new_weight = row_map.get(col, 0.0) + weight
        row_map[col] = new_weight

        col_map = self._by_column.get(col)
        if col_map is None:
            col_map = self._by_column[col] = {}
        col_map[row] = new_weight
        return new_weight

    def remove(self, row, col):
        """Delete cell (row, col) from both views.

        Returns:
            True if a cell was removed, False if it was not present.
        """
        row_map = self._by_row.get(row)
        if row_map is None or col not in row_map:
            return False

        del row_map[col]
        if not row_map:
            del self._by_row[row]

        col_map = self._by_column[col]
        del col_map[row]
        if not col_map:
            del self._by_column[col]
        return True

    def apply(self, row, col, update):
        """Dispatch a parsed update to accumulate() or remove()."""
        if update is Remove:
            self.remove(row, col)
        elif isinstance(update, Accumulate):
            self.accumulate(row, col, update.weight)
        else:
            raise TypeError(f"Unsupported update: {update!r}")

    def clear(self):
        self._by_row.clear()
        self._by_column.clear()

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def by_row(self):
        """Read-only view: row_id -> {col_id: weight}."""
        return MappingProxyType(self._by_row)

    @property
    def by_column(self):
        """Read-only view: col_id -> {row_id: weight}."""
        return MappingProxyType(self._by_column)

    def row(self, row):
        row_map = self._by_row.get(row)
        return _EMPTY if row_map is None else MappingProxyType(row_map)

    def column(self, col):
        col_map = self._by_column.get(col)
        return _EMPTY if col_map is None else MappingProxyType(col_map)

    def get(self, row, col, default=None):
        row_map = self._by_row.get(row)
        if row_map is None:
            return default
        return row_map.get(col, default)

    def triples(self):
        """Yield (row, col, weight) for every stored cell, row by row."""
        for row, row_map in self._by_row.items():
            for col, weight in row_map.items():
                yield row, col, weight

    @property
    def num_rows(self):
        return len(self._by_row)

    @property
    def num_columns(self):
        return len(self._by_column)

    def __contains__(self, cell):
        row, col = cell
        row_map = self._by_row.get(row)
        return row_map is not None and col in row_map

    def __len__(self):
        return sum(len(row_map) for row_map in self._by_row.values())

    def __repr__(self):
        return (f"DualSparseMatrix(rows={self.num_rows}, columns={self.num_columns}, "
                f"cells={len(self)})")

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def to_csr(self, row_ids=None, col_ids=None):
        """Export to a scipy CSR matrix for the factorization step.

        Args:
            row_ids: Ordered ids to use as matrix rows.  Defaults to all row
                     ids, sorted.  Cells in rows not listed are dropped.
            col_ids: Same for columns.

        Returns:
            (matrix, row_ids, col_ids) where matrix is a csr_matrix of shape
            (len(row_ids), len(col_ids)) and the id arrays map index -> id.
        """
        row_ids = np.asarray(sorted(self._by_row) if row_ids is None else row_ids, dtype=np.int64)
        col_ids = np.asarray(sorted(self._by_column) if col_ids is None else col_ids, dtype=np.int64)
        row_to_idx = {r: i for i, r in enumerate(row_ids.tolist())}
        col_to_idx = {c: i for i, c in enumerate(col_ids.tolist())}

        rows, cols, weights = [], [], []
        for row, col, weight in self.triples():
            i = row_to_idx.get(row)
            j = col_to_idx.get(col)
            if i is None or j is None:
                continue
            rows.append(i)
            cols.append(j)
            weights.append(weight)

        matrix = csr_matrix(
            (np.asarray(weights, dtype=np.float32),
             (np.asarray(rows, dtype=np.int64), np.asarray(cols, dtype=np.int64))),
            shape=(len(row_ids), len(col_ids))
        )
        return matrix, row_ids, col_ids

    def to_frame(self):
        """Return all cells as a DataFrame with columns ['row', 'col', 'weight']."""
        rows, cols, weights = [], [], []
        for row, col, weight in self.triples():
            rows.append(row)
            cols.append(col)
            weights.append(weight)
        return pd.DataFrame({
            'row': pd.Series(rows, dtype='int64'),
            'col': pd.Series(cols, dtype='int64'),
            'weight': pd.Series(weights, dtype='float64'),
        })

    @classmethod
    def from_triples(cls, triples):
        """Build a matrix by accumulating (row, col, weight) triples."""
        matrix = cls()
        for row, col, weight in triples:
            matrix.accumulate(row, col, weight)
        return matrix
