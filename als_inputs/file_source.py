"""Input file discovery and line iteration.

Later files must be able to override what earlier files did to the same
cell, so files are always handed out oldest first.
"""

import gzip
import logging
import os

logger = logging.getLogger(__name__)

# Names starting with these are markers or temp files (e.g. _SUCCESS, .crc)
HIDDEN_PREFIXES = ('.', '_')


def is_hidden(name):
    return name.startswith(HIDDEN_PREFIXES)


def list_input_files(input_dir):
    """List the regular, non-hidden files in input_dir, oldest first.

    Files are ordered by last-modified time; equal times fall back to the
    file name so the order is stable.

    Args:
        input_dir: Directory to scan.

    Returns:
        List of absolute file paths.  Empty when the directory is missing or
        holds no eligible files.
    """
    if not os.path.isdir(input_dir):
        logger.info("Input directory %s does not exist", input_dir)
        return []

    candidates = []
    with os.scandir(input_dir) as entries:
        for entry in entries:
            if is_hidden(entry.name) or not entry.is_file():
                continue
            candidates.append((entry.stat().st_mtime, entry.name, os.path.abspath(entry.path)))

    if not candidates:
        logger.info("No input files in %s", input_dir)
        return []

    candidates.sort()
    return [path for _, _, path in candidates]


def iter_lines(path):
    """Yield the lines of a text file in order, without line terminators.

    Files ending in .gz are decompressed on the fly.
    """
    if path.endswith('.gz'):
        handle = gzip.open(path, 'rt', encoding='utf-8', newline='')
    else:
        handle = open(path, 'r', encoding='utf-8', newline='')
    with handle:
        for line in handle:
            yield line.rstrip('\r\n')
