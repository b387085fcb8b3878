"""codec: From compressed export files to lists of field values.

  - LineSource / open_lines: physical lines with a running byte count
  - split_fields: one logical record, following the export's quoting rules
  - RecordReader: header capture and lazy, fixed-width record decoding
"""

from .lines import LineSource, open_lines
from .records import split_fields, RecordReader
