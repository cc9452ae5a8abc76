"""Input ingestion script.

Reads the historical input of the previous generation and the current inbound
batch into one dual-indexed interaction matrix, then saves the matrix and id
mapping to the artifacts/ directory for the factorization step.

Run once per generation (e.g. via cron or a workflow scheduler):

    python scripts/ingest_inputs.py --inbound data/inbound
    python scripts/ingest_inputs.py --inbound data/inbound --history data/history --decay-factor 0.9
    python scripts/ingest_inputs.py --inbound data/inbound --config conf/ingest.json --track-known-keys
"""

import argparse
import logging
import os
import sys
import time

# Ensure project root is importable regardless of working directory
_SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
_PROJECT_ROOT = os.path.dirname(_SCRIPT_DIR)
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from als_inputs.artifact_store import load_id_mapping, save_generation, write_historical
from als_inputs.decay_config import DecayConfig
from als_inputs.ingestion import IngestionTask
from als_inputs.known_keys import KnownKeyIndex
from als_inputs.sparse_matrix import DualSparseMatrix


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _elapsed(start):
    return f"{time.time() - start:.1f}s"


def _load_config(config_path, decay_factor=None, zero_threshold=None):
    """Return the validated DecayConfig, with CLI flags taking precedence."""
    config = DecayConfig.from_file(config_path) if config_path else DecayConfig()
    return config.with_overrides(decay_factor=decay_factor, zero_threshold=zero_threshold)


# ---------------------------------------------------------------------------
# Main ingestion routine
# ---------------------------------------------------------------------------

def ingest(inbound_dir, history_dir=None, config=None, track_known_keys=False,
           artifacts_dir=None, history_out=None):
    # Validated before any file is touched
    config = config or DecayConfig()

    print("=" * 60)
    print("ALS inputs — ingestion")
    print("=" * 60)
    print(f"      {config}")

    matrix = DualSparseMatrix()
    id_mapping = load_id_mapping(artifacts_dir)
    known_keys = KnownKeyIndex() if track_known_keys else None

    # 1. Historical input (numeric ids, decayed)
    t0 = time.time()
    if history_dir:
        print(f"\n[1/4] Reading historical input from {history_dir} ...")
        IngestionTask(history_dir, False, matrix, id_mapping, config, known_keys=known_keys)()
        print(f"      {len(matrix):,} cells after history  ({_elapsed(t0)})")
    else:
        print("\n[1/4] No historical input given, skipping.")

    # 2. Inbound batch
    t0 = time.time()
    print(f"\n[2/4] Reading inbound batch from {inbound_dir} ...")
    IngestionTask(inbound_dir, True, matrix, id_mapping, config, known_keys=known_keys)()
    print(f"      {len(matrix):,} cells, {len(id_mapping):,} ids mapped  ({_elapsed(t0)})")

    # 3. Persist artifacts
    print("\n[3/4] Saving artifacts ...")
    paths = save_generation(matrix, id_mapping, known_keys, artifacts_dir=artifacts_dir)
    for name, path in paths.items():
        print(f"      {name:<11} → {path}")
    if history_out:
        write_historical(matrix, history_out)
        print(f"      Wrote next-generation history → {history_out}")

    # 4. Summary
    print("\n[4/4] Ingestion complete.")
    print(f"      Matrix: {matrix.num_rows:,} rows × {matrix.num_columns:,} columns, "
          f"{len(matrix):,} cells")
    if known_keys is not None:
        print(f"      Known keys tracked for {len(known_keys):,} rows")
    print("=" * 60)

    return matrix, id_mapping, known_keys


# ---------------------------------------------------------------------------
# CLI entry-point
# ---------------------------------------------------------------------------

if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Ingest interaction files into an ALS input matrix.')
    parser.add_argument(
        '--inbound',
        required=True,
        help='Directory holding the current batch (string ids).',
    )
    parser.add_argument(
        '--history',
        default=None,
        help='Directory holding the previous generation\'s input (numeric ids).',
    )
    parser.add_argument(
        '--config',
        default=None,
        help='JSON file with model.decay.factor / model.decay.zeroThreshold.',
    )
    parser.add_argument(
        '--decay-factor',
        type=float,
        default=None,
        dest='decay_factor',
        help='Override model.decay.factor (in [0,1]).',
    )
    parser.add_argument(
        '--zero-threshold',
        type=float,
        default=None,
        dest='zero_threshold',
        help='Override model.decay.zeroThreshold (>= 0).',
    )
    parser.add_argument(
        '--track-known-keys',
        action='store_true',
        dest='track_known_keys',
        help='Also build the per-row known-key index.',
    )
    parser.add_argument(
        '--artifacts-dir',
        default=None,
        dest='artifacts_dir',
        help='Directory to write artifacts (default: artifacts/).',
    )
    parser.add_argument(
        '--write-history',
        default=None,
        dest='history_out',
        help='Also write the merged matrix as a historical input file.',
    )
    parser.add_argument('--verbose', '-v', action='store_true', help='Log at DEBUG level.')
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    try:
        config = _load_config(args.config, args.decay_factor, args.zero_threshold)
    except (OSError, ValueError) as e:
        parser.error(str(e))

    ingest(
        inbound_dir=args.inbound,
        history_dir=args.history,
        config=config,
        track_known_keys=args.track_known_keys,
        artifacts_dir=args.artifacts_dir,
        history_out=args.history_out,
    )
