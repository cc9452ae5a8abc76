import logging

logger = logging.getLogger(__name__)


def prune_small(matrix, zero_threshold, known_keys=None):
    """Delete cells whose absolute weight is below zero_threshold.

    Candidates are found by scanning the row view only; each one is then
    deleted through DualSparseMatrix.remove(), so the column view is cleaned
    by the same call rather than by a second comparison pass.

    Args:
        matrix:         DualSparseMatrix to prune in place.
        zero_threshold: Cells with abs(weight) strictly below this go.
                        Nothing happens unless it is positive.
        known_keys:     Optional KnownKeyIndex kept in step with the matrix.

    Returns:
        Number of cells removed.
    """
    if not zero_threshold > 0.0:
        return 0

    small = [
        (row, col)
        for row, col, weight in matrix.triples()
        if abs(weight) < zero_threshold
    ]
    for row, col in small:
        matrix.remove(row, col)
        if known_keys is not None:
            known_keys.discard(row, col)

    logger.info("Pruned %d near-zero entries (threshold %g)", len(small), zero_threshold)
    return len(small)
