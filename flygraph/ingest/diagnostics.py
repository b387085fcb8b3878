"""Progress and anomaly reporting for an ingestion run.

Diagnostics only observe: nothing here changes what the pipeline does.
Every anomaly is printed as ``<dataset>:<row>: <message>`` and kept in
an IngestReport, which hands them back as a pandas DataFrame.
"""

import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import pandas as pd

from flygraph.utils import get_logger


@dataclass
class IngestReport:
    """What happened during one run.

    Parameters
    ----------
    anomalies : list of (dataset, row, message)
        Every repaired inconsistency, in the order reported.
    datasets : dict
        dataset name -> (records, bytes) for each completed table.
    """

    anomalies: List[Tuple[str, int, str]] = field(default_factory=list)
    datasets: Dict[str, Tuple[int, int]] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)
    failed: Optional[str] = None
    started: float = field(default_factory=time.monotonic)
    finished: float = None

    @property
    def elapsed(self):
        """Seconds from start to finish (or to now, while running)."""
        end = self.finished if self.finished is not None else time.monotonic()
        return end - self.started

    @property
    def n_anomalies(self):
        return len(self.anomalies)

    def anomaly_frame(self):
        """Anomalies as a DataFrame with columns dataset, row, message."""
        return pd.DataFrame(self.anomalies, columns=["dataset", "row", "message"])

    def dataset_frame(self):
        """Per-dataset record and byte counts, with anomaly counts."""
        frame = pd.DataFrame.from_dict(
            self.datasets, orient="index", columns=["records", "bytes"]
        )
        frame.index.name = "dataset"
        counts = self.anomaly_frame().groupby("dataset").size()
        frame["anomalies"] = counts.reindex(frame.index, fill_value=0).astype(int)
        return frame


class Diagnostics:
    """Console sink for per-table progress and per-row anomalies.

    Parameters
    ----------
    log : callable, optional
        A logger from flygraph.utils.get_logger.
    progress_every : int, optional
        Report progress every this many records. By default the
        interval shrinks with the width of the table, so wide tables
        report about as often (in bytes) as narrow ones.
    """

    def __init__(self, log=None, progress_every=None):
        self.log = log or get_logger("ingest")
        self.progress_every = progress_every
        self.report = IngestReport()
        self._interval = None

    def interval_for(self, n_columns):
        if self.progress_every:
            return self.progress_every
        return max(1, 81 * 729 // max(1, n_columns))

    def start(self, dataset, n_columns):
        self._interval = self.interval_for(n_columns)
        self.log.info("Reading %s...", dataset)

    def anomaly(self, dataset, row, message):
        for line in str(message).splitlines() or [""]:
            self.report.anomalies.append((dataset, row, line))
            self.log.warning("%s:%s: %s", dataset, row, line)

    def progress(self, dataset, records, nbytes, force=False):
        if force or (self._interval and records % self._interval == 0):
            self.log.status("%s: %s records - %s bytes",
                            dataset, f"{records:,}", f"{nbytes:,}")

    def skip(self, dataset, reason):
        self.report.skipped.append(dataset)
        self.log.warning("Skipping %s: %s", dataset, reason)

    def finish(self, dataset, records, nbytes):
        self.report.datasets[dataset] = (records, nbytes)
        self.log.info("%s: %s records - %s bytes", dataset, f"{records:,}", f"{nbytes:,}")

    def fatal(self, error):
        self.report.failed = error.dataset
        self.log.error("Ingestion aborted [%s]: %s", error.kind, error)

    def close(self):
        self.report.finished = time.monotonic()
        self.log.info("done - %.1f s, %d anomalies",
                      self.report.elapsed, self.report.n_anomalies)
        return self.report
