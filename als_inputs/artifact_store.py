"""Artifacts of one ingestion generation.

A generation leaves three artifacts behind for the factorization step and for
the next generation:

    matrix.joblib       DualSparseMatrix with both views
    id_mapping.joblib   StringIDMapping; the next generation must reuse it so
                        the numeric ids in the written history stay valid
    known_keys.joblib   KnownKeyIndex, only when it was tracked

Usage (ingestion):
    from als_inputs.artifact_store import load_id_mapping, save_generation
    id_mapping = load_id_mapping()            # previous mapping or a new one
    ...
    save_generation(matrix, id_mapping, known_keys)

Usage (factorization):
    from als_inputs.artifact_store import load_generation
    matrix, id_mapping, known_keys = load_generation()
    csr, row_ids, col_ids = matrix.to_csr()
"""

import logging
import os

import joblib

from als_inputs.id_mapping import StringIDMapping

logger = logging.getLogger(__name__)

# Default directory for artifacts, relative to the project root
# (two levels up from this file: als_inputs/ → root).
_THIS_DIR = os.path.dirname(os.path.abspath(__file__))
_PROJECT_ROOT = os.path.dirname(_THIS_DIR)
DEFAULT_ARTIFACTS_DIR = os.path.join(_PROJECT_ROOT, 'artifacts')

MATRIX = 'matrix'
ID_MAPPING = 'id_mapping'
KNOWN_KEYS = 'known_keys'


def get_artifact_path(name, artifacts_dir=None):
    return os.path.join(artifacts_dir or DEFAULT_ARTIFACTS_DIR, f"{name}.joblib")


def _dump(obj, path):
    # Written under a temporary name first so readers never see half a file
    tmp_path = path + '.tmp'
    joblib.dump(obj, tmp_path)
    os.replace(tmp_path, path)


def save_generation(matrix, id_mapping, known_keys=None, artifacts_dir=None):
    """Persist the result of one ingestion generation.

    Args:
        matrix:        DualSparseMatrix produced by the ingestion tasks.
        id_mapping:    StringIDMapping used for the inbound batch.
        known_keys:    Optional KnownKeyIndex.  When None, a stale index from
                       an earlier generation is deleted so it cannot be
                       loaded alongside the new matrix.
        artifacts_dir: Target directory.  Defaults to <project_root>/artifacts/.

    Returns:
        Dict of artifact name -> path written.
    """
    artifacts_dir = artifacts_dir or DEFAULT_ARTIFACTS_DIR
    os.makedirs(artifacts_dir, exist_ok=True)

    artifacts = {MATRIX: matrix, ID_MAPPING: id_mapping}
    if known_keys is not None:
        artifacts[KNOWN_KEYS] = known_keys
    else:
        stale = get_artifact_path(KNOWN_KEYS, artifacts_dir)
        if os.path.exists(stale):
            os.remove(stale)

    paths = {}
    for name, obj in artifacts.items():
        paths[name] = get_artifact_path(name, artifacts_dir)
        _dump(obj, paths[name])
        logger.debug("Saved '%s' → %s", name, paths[name])
    return paths


def load_generation(artifacts_dir=None):
    """Load the artifacts written by save_generation().

    Returns:
        (matrix, id_mapping, known_keys); known_keys is None when the
        generation did not track it.

    Raises:
        FileNotFoundError: If the matrix or the id mapping is missing.
    """
    loaded = {}
    for name in (MATRIX, ID_MAPPING, KNOWN_KEYS):
        path = get_artifact_path(name, artifacts_dir)
        if not os.path.exists(path):
            if name == KNOWN_KEYS:
                loaded[name] = None
                continue
            raise FileNotFoundError(
                f"No saved '{name}' found at {path}. "
                "Run the ingestion script first."
            )
        loaded[name] = joblib.load(path)
    return loaded[MATRIX], loaded[ID_MAPPING], loaded[KNOWN_KEYS]


def load_id_mapping(artifacts_dir=None):
    """Return the previous generation's id mapping, or a new empty one."""
    path = get_artifact_path(ID_MAPPING, artifacts_dir)
    if not os.path.exists(path):
        logger.info("No id mapping at %s, starting a new one", path)
        return StringIDMapping()
    id_mapping = joblib.load(path)
    logger.info("Loaded %d ids from %s", len(id_mapping), path)
    return id_mapping


def write_historical(matrix, path):
    """Write the matrix as delimited row,col,weight lines with numeric ids.

    The file can be read back as a historical batch by the next generation.
    Writes through a temporary name so a half-written file is never picked
    up by list_input_files().
    """
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    tmp_path = os.path.join(directory, '.' + os.path.basename(path) + '.tmp')

    frame = matrix.to_frame()
    frame.to_csv(tmp_path, header=False, index=False, float_format='%.17g')
    os.replace(tmp_path, path)

    logger.debug("Wrote %d cells to %s", len(frame), path)
    return path
