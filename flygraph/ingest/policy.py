"""Which error kinds stop an ingestion run.

Handlers and the store raise; this table decides. A kind mapped to
ANOMALY turns the raised error into a diagnostic for the row, and the
row is skipped. Kinds not listed are fatal.
"""

from flygraph.errors import ConfigError

FATAL = "fatal"
ANOMALY = "anomaly"

DEFAULT_SEVERITY = {
    "encoding": FATAL,
    "header_mismatch": FATAL,
    "record_shape": FATAL,
    "unterminated_field": FATAL,
    "user_conflict": FATAL,
    "group_conflict": FATAL,
    "orphan_continuation": FATAL,
    "malformed_list": FATAL,
    "malformed_value": FATAL,
    "unknown_category": ANOMALY,
}

# The decoder cannot resume after these, whatever the configuration says.
STRUCTURAL = frozenset({
    "decode", "encoding", "header_mismatch", "record_shape", "unterminated_field",
})


class SeverityPolicy:
    """Map error kinds to FATAL or ANOMALY.

    Parameters
    ----------
    overrides : mapping, optional
        kind -> "fatal" | "anomaly", applied over DEFAULT_SEVERITY.
    """

    def __init__(self, overrides=None):
        self.table = dict(DEFAULT_SEVERITY)
        for kind, severity in (overrides or {}).items():
            if severity not in (FATAL, ANOMALY):
                raise ConfigError(
                    f"Severity for '{kind}' must be '{FATAL}' or '{ANOMALY}', got {severity!r}"
                )
            if kind in STRUCTURAL and severity != FATAL:
                raise ConfigError(f"'{kind}' errors are structural and always fatal")
            self.table[kind] = severity

    def severity(self, error):
        return self.table.get(getattr(error, "kind", None), FATAL)

    def is_fatal(self, error):
        return self.severity(error) == FATAL

    def __repr__(self):
        relaxed = sorted(k for k, v in self.table.items() if v == ANOMALY)
        return f"SeverityPolicy(anomaly={relaxed})"
