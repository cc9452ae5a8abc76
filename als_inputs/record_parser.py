# Record parsing
#
# Every input line carries a row token, a column token and optionally a value:
#
#   u1,i1         -> Accumulate(1.0)
#   u1,i1,2.5     -> Accumulate(2.5)
#   u1,i1,        -> Remove            (empty value deletes the cell)
#
# Inbound batches carry the caller's own string ids, which are mapped to
# numbers through the id mapping.  Historical batches were written by an
# earlier generation and already hold numeric ids; their weights are scaled
# by the decay factor.

import math
import re

from als_inputs.delimited import decode_line


class RecordParseError(ValueError):
    """A line could not be turned into a record."""

    def __init__(self, message, path=None, line_number=None):
        self.path = path
        self.line_number = line_number
        if path is not None:
            message = f"{path}:{line_number}: {message}"
        super().__init__(message)


class Accumulate:
    """Add weight to a cell."""

    __slots__ = ('weight',)

    def __init__(self, weight):
        self.weight = weight

    def scaled(self, factor):
        return Accumulate(self.weight * factor)

    def __eq__(self, other):
        return isinstance(other, Accumulate) and self.weight == other.weight

    def __hash__(self):
        return hash(('accumulate', self.weight))

    def __repr__(self):
        return f"Accumulate({self.weight!r})"


class _Remove:
    """Delete a cell, whatever its current weight."""

    __slots__ = ()

    def scaled(self, factor):
        return self

    def __repr__(self):
        return "Remove"

    def __reduce__(self):
        return 'Remove'


Remove = _Remove()


# Ids are signed 64-bit decimal integers, ASCII digits only
_ID_PATTERN = re.compile(r'[+-]?[0-9]+')
_MIN_ID, _MAX_ID = -2 ** 63, 2 ** 63 - 1


def parse_id(token):
    if _ID_PATTERN.fullmatch(token) is None:
        raise RecordParseError(f"Bad numeric id: {token!r}")
    numeric_id = int(token)
    if not _MIN_ID <= numeric_id <= _MAX_ID:
        raise RecordParseError(f"Numeric id out of range: {token!r}")
    return numeric_id


def parse_value(token):
    """Turn the optional third field into an update.

    None (field absent) counts as a single interaction, an empty string
    removes the cell, anything else must be a finite number written with
    ASCII characters and no digit-group underscores.
    """
    if token is None:
        return Accumulate(1.0)
    if token == '':
        return Remove
    if '_' in token or not token.isascii():
        raise RecordParseError(f"Bad value: {token!r}")
    try:
        weight = float(token)
    except ValueError:
        raise RecordParseError(f"Bad value: {token!r}") from None
    if not math.isfinite(weight):
        raise RecordParseError(f"Value must be finite: {token!r}")
    return Accumulate(weight)


class RecordParser:
    def __init__(self, id_mapping, inbound, decay_factor=1.0):
        """
        Args:
            id_mapping:   StringIDMapping used to resolve inbound string ids.
            inbound:      True for the current batch, False for historical data.
            decay_factor: Multiplier for historical accumulate weights.
        """
        self.id_mapping = id_mapping
        self.inbound = inbound
        self.decay_factor = decay_factor

    def resolve_id(self, token):
        if self.inbound:
            return self.id_mapping.add(token)
        return parse_id(token)

    def parse_fields(self, fields):
        """Return (row_id, col_id, update) for already-decoded fields."""
        if len(fields) < 2:
            raise RecordParseError(f"Expected 2 or 3 fields, got {len(fields)}")

        row_id = self.resolve_id(fields[0])
        col_id = self.resolve_id(fields[1])
        update = parse_value(fields[2] if len(fields) > 2 else None)

        if not self.inbound:
            update = update.scaled(self.decay_factor)
        return row_id, col_id, update

    def parse_line(self, line):
        """Return (row_id, col_id, update), or None for a blank line."""
        fields = decode_line(line)
        if not fields:
            return None
        return self.parse_fields(fields)
