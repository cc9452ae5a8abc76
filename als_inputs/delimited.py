# Delimited line codec
#
# Input records are comma-delimited, one per line.  Fields containing a comma
# or a quote are wrapped in double quotes, with embedded quotes doubled, i.e.
# ordinary CSV.  Only single lines are handled here; files are walked by
# file_source.iter_lines().

import csv


def decode_line(line):
    """Split one encoded line into its fields.

    Args:
        line: A single line of text, with or without its trailing newline.

    Returns:
        List of field strings.  An empty line gives an empty list.
    """
    line = line.rstrip('\r\n')
    if not line:
        return []
    return next(csv.reader([line]))
