# Delta merge for concurrent batches
#
# The shared matrix and known-key index are plain dicts with no locking, so
# batches read on worker threads never touch them directly.  Each task writes
# into its own MatrixDelta instead.  Besides the accumulated cells, a delta
# remembers every cell that was removed while it was built.  Applying it to
# the target removes those cells first and then adds the surviving weights,
# which ends in the same state as replaying the batch's records on the target.
#
# Deltas are applied one after another, in batch order, from the thread that
# owns the target.

import logging
from concurrent.futures import ThreadPoolExecutor

from als_inputs.ingestion import IngestionTask
from als_inputs.pruning import prune_small
from als_inputs.sparse_matrix import DualSparseMatrix

logger = logging.getLogger(__name__)


class MatrixDelta(DualSparseMatrix):
    def __init__(self):
        super().__init__()
        self.removed = set()             # (row, col) cells removed in this delta

    def remove(self, row, col):
        self.removed.add((row, col))
        return super().remove(row, col)

    def clear(self):
        super().clear()
        self.removed.clear()

    def apply_to(self, matrix, known_keys=None):
        """Merge this delta into matrix (and known_keys, if given)."""
        for row, col in self.removed:
            matrix.remove(row, col)
            if known_keys is not None:
                known_keys.discard(row, col)

        for row, col, weight in self.triples():
            matrix.accumulate(row, col, weight)
            if known_keys is not None:
                known_keys.add(row, col)


def _ingest_into_delta(input_dir, inbound, id_mapping, config):
    delta = MatrixDelta()
    # The target index is rebuilt from the delta cells in apply_to()
    task = IngestionTask(input_dir, inbound, delta, id_mapping, config, prune=False)
    task()
    return delta


def ingest_batches(batches, matrix, id_mapping, config, known_keys=None, max_workers=None):
    """Read several batches concurrently and merge them into matrix.

    Args:
        batches:     Sequence of (input_dir, inbound) pairs.  Their effects are
                     merged in this order, so list historical input before the
                     inbound batch.
        matrix:      Target DualSparseMatrix, updated in place.
        id_mapping:  StringIDMapping shared by all workers.
        config:      DecayConfig applied to every batch.
        known_keys:  Optional KnownKeyIndex kept in step with the target.
        max_workers: Thread pool size.  Defaults to one thread per batch.

    Raises:
        The first exception raised by any batch, before anything is merged.
    """
    batches = list(batches)
    if not batches:
        return None

    with ThreadPoolExecutor(max_workers=max_workers or len(batches)) as pool:
        futures = [
            pool.submit(_ingest_into_delta, input_dir, inbound, id_mapping, config)
            for input_dir, inbound in batches
        ]
        deltas = [future.result() for future in futures]

    for (input_dir, _), delta in zip(batches, deltas):
        logger.info("Merging %d cells (%d removals) from %s",
                    len(delta), len(delta.removed), input_dir)
        delta.apply_to(matrix, known_keys)

    # Pruning happens once, on the merged result, and only if some batch was read
    read_any = any(inbound or config.decay_factor > 0.0 for _, inbound in batches)
    if read_any and config.zero_threshold > 0.0:
        logger.info("Pruning near-zero entries")
        prune_small(matrix, config.zero_threshold, known_keys)
    return None
