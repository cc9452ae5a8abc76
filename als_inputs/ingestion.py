"""Reads one batch of interaction files into the caller's matrix.

A batch is either the current inbound data (string ids, full weight) or the
historical input written by an earlier generation (numeric ids, weights
scaled by the decay factor).  The task mutates the matrix, the optional
known-key index and the id mapping in place and returns nothing.

Usage:
    matrix = DualSparseMatrix()
    mapping = StringIDMapping()
    IngestionTask('data/history', False, matrix, mapping, config)()
    IngestionTask('data/inbound', True, matrix, mapping, config)()
"""

import logging

from als_inputs.file_source import iter_lines, list_input_files
from als_inputs.pruning import prune_small
from als_inputs.record_parser import RecordParseError, RecordParser, Remove

logger = logging.getLogger(__name__)


class IngestionTask:
    def __init__(self, input_dir, inbound, matrix, id_mapping, config,
                 known_keys=None, prune=True):
        """
        Args:
            input_dir:  Directory holding the batch's files.
            inbound:    True for the current batch, False for historical input.
            matrix:     DualSparseMatrix to update in place.
            id_mapping: StringIDMapping for inbound string ids.
            config:     DecayConfig (already validated).
            known_keys: Optional KnownKeyIndex to keep in step with the matrix.
            prune:      Set False to skip the final pruning pass, e.g. when
                        the matrix is a delta that will be merged later.
        """
        self.input_dir = input_dir
        self.inbound = inbound
        self.matrix = matrix
        self.id_mapping = id_mapping
        self.config = config
        self.known_keys = known_keys
        self.prune = prune

    def __call__(self):
        return self.run()

    def run(self):
        # Inbound data is always read.  Historical data only counts when the
        # decay factor is positive; at 0 it contributes nothing at all.
        if not (self.inbound or self.config.decay_factor > 0.0):
            logger.info("Skipping %s: decay factor is 0", self.input_dir)
            return None

        self.read_input()

        if self.prune and self.config.zero_threshold > 0.0:
            logger.info("Pruning near-zero entries")
            prune_small(self.matrix, self.config.zero_threshold, self.known_keys)
        return None

    def read_input(self):
        input_files = list_input_files(self.input_dir)
        if not input_files:
            return

        parser = RecordParser(self.id_mapping, self.inbound, self.config.decay_factor)
        for path in input_files:
            logger.info("Reading %s", path)
            for line_number, line in enumerate(iter_lines(path), start=1):
                try:
                    record = parser.parse_line(line)
                except RecordParseError as e:
                    raise RecordParseError(str(e), path, line_number) from None
                if record is None:
                    logger.debug("Skipping blank line %s:%d", path, line_number)
                    continue
                self.apply(*record)

    def apply(self, row, col, update):
        self.matrix.apply(row, col, update)

        if self.known_keys is not None:
            if update is Remove:
                self.known_keys.discard(row, col)
            else:
                self.known_keys.add(row, col)
