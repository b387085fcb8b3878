"""Physical line sources for export files.

The decoder only ever asks for "the next physical line, or nothing".
A LineSource answers that question for an in-memory body, a plain text
file, or a gzip-compressed file, and keeps a running byte count for
progress reporting.
"""

import gzip
from contextlib import contextmanager
from pathlib import Path

from flygraph.errors import EncodingError

BOM = "\ufeff"


class LineSource:
    """Physical lines of a text body, with a running byte count.

    Parameters
    ----------
    raw_lines : iterable of str or bytes
        Lines as produced by iterating a file. Trailing line breaks are
        stripped, and so is a byte-order mark opening the first line;
        bytes are decoded with `encoding`.
    encoding : str
        Text encoding of byte lines.
    """

    def __init__(self, raw_lines, encoding="utf-8"):
        self._raw = iter(raw_lines)
        self.encoding = encoding
        self.bytes_read = 0
        self.lines_read = 0

    @classmethod
    def from_text(cls, body):
        """A source over an in-memory text body."""
        lines = body.split("\n")
        if lines and lines[-1] == "":
            lines.pop()
        return cls(lines)

    def next_line(self):
        """Return the next physical line without its break, or None at end."""
        try:
            raw = next(self._raw)
        except StopIteration:
            return None
        if isinstance(raw, bytes):
            self.bytes_read += len(raw)
            try:
                line = raw.decode(self.encoding).rstrip("\r\n")
            except UnicodeDecodeError as error:
                raise EncodingError(
                    f"Line {self.lines_read + 1} is not valid {self.encoding}: {error.reason} "
                    f"at byte {error.start}"
                ) from error
        else:
            line = raw.rstrip("\r\n")
            self.bytes_read += len(line.encode(self.encoding)) + 1
        if self.lines_read == 0 and line.startswith(BOM):
            line = line[len(BOM):]
        self.lines_read += 1
        return line

    def __iter__(self):
        while True:
            line = self.next_line()
            if line is None:
                return
            yield line


@contextmanager
def open_lines(path, encoding="utf-8"):
    """Open an export file as a LineSource.

    Files ending in ``.gz`` are decompressed on the fly; anything else is
    read as plain text. Byte counts are of the decompressed body.

    Parameters
    ----------
    path : str or Path
        Path to ``<dataset>.csv.gz`` (or an uncompressed ``.csv``).
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Export file not found: {path}")

    opener = gzip.open if path.suffix == ".gz" else open
    with opener(path, "rb") as stream:
        yield LineSource(stream, encoding=encoding)
