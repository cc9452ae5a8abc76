import os

import pytest


def assert_mirrored(matrix):
    """Row and column views must hold exactly the same cells."""
    from_rows = {
        (row, col, weight)
        for row, cols in matrix.by_row.items()
        for col, weight in cols.items()
    }
    from_columns = {
        (row, col, weight)
        for col, rows in matrix.by_column.items()
        for row, weight in rows.items()
    }
    assert from_rows == from_columns
    assert all(matrix.by_row.values())
    assert all(matrix.by_column.values())


@pytest.fixture
def write_batch(tmp_path):
    """Write files into a batch directory with increasing modification times.

    Usage: write_batch('inbound', ['u1,i1,2.0'], ['u1,i1,3.0']) writes two
    files, the first one older than the second.
    """
    def _write(name, *files):
        batch_dir = tmp_path / name
        batch_dir.mkdir(exist_ok=True)
        base = 1_600_000_000
        for i, lines in enumerate(files):
            path = batch_dir / f"part-{i:05d}.csv"
            path.write_text(''.join(line + '\n' for line in lines), encoding='utf-8')
            os.utime(path, (base + i * 10, base + i * 10))
        return str(batch_dir)
    return _write
