"""Error kinds raised while decoding and assembling an export.

Each error carries a stable ``kind`` string. The ingestion pipeline looks
the kind up in its severity policy to decide whether the run stops or the
row is skipped with a diagnostic. Raising sites never make that decision.
"""


class FlyGraphError(Exception):
    """Base for all flygraph failures.

    The pipeline records where an error surfaced with `locate`; the
    location then prefixes the message as ``<dataset>:<row>:``.
    """

    kind = "error"
    dataset = None
    row = None

    def locate(self, dataset, row=None):
        self.dataset = dataset
        self.row = row
        return self

    def __str__(self):
        message = super().__str__()
        if self.dataset is None:
            return message
        where = self.dataset if self.row is None else f"{self.dataset}:{self.row}"
        return f"{where}: {message}"


class ConfigError(FlyGraphError, ValueError):
    """Invalid ingestion configuration."""

    kind = "config"


# ---------------------------------------------------------------------------
# Codec
# ---------------------------------------------------------------------------

class DecodeError(FlyGraphError):
    """The text body does not follow the export's record dialect."""

    kind = "decode"


class UnterminatedFieldError(DecodeError):
    """Input ended inside a quoted field."""

    kind = "unterminated_field"


class EncodingError(DecodeError):
    """A line is not valid text in the export's encoding."""

    kind = "encoding"


class RecordShapeError(DecodeError):
    """A record decoded to a different number of fields than the header."""

    kind = "record_shape"


class HeaderMismatchError(DecodeError):
    """A header does not match the expected column names."""

    kind = "header_mismatch"


# ---------------------------------------------------------------------------
# Graph store and handlers
# ---------------------------------------------------------------------------

class GraphIntegrityError(FlyGraphError):
    """A row contradicts what the graph already holds, or cannot be read."""

    kind = "integrity"


class UserConflictError(GraphIntegrityError):
    """A user id was presented with a different name or affiliation."""

    kind = "user_conflict"


class GroupConflictError(GraphIntegrityError):
    """A cell's group was reassigned to a different value."""

    kind = "group_conflict"


class OrphanContinuationError(GraphIntegrityError):
    """A synapse continuation row arrived with no synapse to continue."""

    kind = "orphan_continuation"


class MalformedListError(GraphIntegrityError):
    """A bracketed list value does not have the ``['a','b']`` shape."""

    kind = "malformed_list"


class MalformedValueError(GraphIntegrityError):
    """A numeric, position or timestamp value could not be parsed."""

    kind = "malformed_value"


class UnknownCategoryError(GraphIntegrityError):
    """A categorical column holds a value outside its enumerated set."""

    kind = "unknown_category"
