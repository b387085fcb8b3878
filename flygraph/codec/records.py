"""Decode the export's comma-separated dialect into fixed-width records.

The FlyWire CSV exports are not strict quoted CSV. A field that starts
with a double quote runs until the next ``",`` pair, or to a closing
quote at the very end of the line. Doubled quotes are not escapes. If
neither closer is found, the field continues on the next physical line
and the two lines are joined *without* the line break, so a record may
span several physical lines while its values never contain newlines.
Unquoted fields simply run to the next comma.
"""

from flygraph.errors import DecodeError, RecordShapeError, UnterminatedFieldError

QUOTE = '"'
DELIMITER = ","
CLOSING = QUOTE + DELIMITER


def split_fields(line, next_line=None):
    """Split one logical record into field values.

    Parameters
    ----------
    line : str
        The first physical line of the record.
    next_line : callable, optional
        Returns the following physical line, or None at end of input.
        Called only while a quoted field is still open.

    Returns
    -------
    list of str
        Field values in column order.

    Raises
    ------
    UnterminatedFieldError
        If input ends while a quoted field is open.
    """
    fields = []
    rest = line
    while True:
        if rest.startswith(QUOTE):
            end = rest.find(CLOSING, 1)
            if end >= 0:
                fields.append(rest[1:end])
                rest = rest[end + len(CLOSING):]
            elif len(rest) > 1 and rest.endswith(QUOTE):
                fields.append(rest[1:-1])
                return fields
            else:
                following = next_line() if next_line is not None else None
                if following is None:
                    raise UnterminatedFieldError(
                        f"Input ended inside quoted field {len(fields)} "
                        f"starting {rest[:40]!r}"
                    )
                rest += following
        else:
            end = rest.find(DELIMITER)
            if end >= 0:
                fields.append(rest[:end])
                rest = rest[end + 1:]
            else:
                fields.append(rest)
                return fields


class RecordReader:
    """Header and records of one text body.

    The header is decoded with the same rules as data lines, on first
    access. Records are then produced lazily, each a list with exactly
    as many values as the header has names.

    Parameters
    ----------
    source : LineSource
        Anything with ``next_line()`` and a ``bytes_read`` counter.
    """

    def __init__(self, source):
        self.source = source
        self._header = None
        self.n_records = 0

    @property
    def header(self):
        if self._header is None:
            line = self.source.next_line()
            if line is None:
                raise DecodeError("Empty body: no header line")
            self._header = split_fields(line, self.source.next_line)
        return self._header

    @property
    def width(self):
        return len(self.header)

    @property
    def bytes_read(self):
        return self.source.bytes_read

    def records(self):
        """Yield each logical record as a list of field values.

        Raises
        ------
        RecordShapeError
            If a record does not have exactly `width` fields.
        UnterminatedFieldError
            If input ends inside a quoted field.
        """
        width = self.width
        while True:
            line = self.source.next_line()
            if line is None:
                return
            fields = split_fields(line, self.source.next_line)
            if len(fields) != width:
                raise RecordShapeError(
                    f"Record {self.n_records + 1} has {len(fields)} fields, "
                    f"expected {width}: {line[:80]!r}"
                )
            self.n_records += 1
            yield fields

    def __iter__(self):
        return self.records()
