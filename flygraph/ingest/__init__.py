"""ingest: From export directory to assembled graph.

  - ExportDataset / build_catalogue: the tables and their reading order
  - handlers: per-table row handlers and value parsers
  - SeverityPolicy: which error kinds stop a run
  - Diagnostics / IngestReport: progress and anomaly reporting
  - IngestConfig: where the export lives, loadable from YAML
  - ingest_dataset / ingest_export: the pipeline
"""

from .datasets import ExportDataset, build_catalogue, CONNECTIONS_DATASETS
from .handlers import RowState
from .policy import SeverityPolicy, FATAL, ANOMALY
from .diagnostics import Diagnostics, IngestReport
from .config import IngestConfig
from .pipeline import Stage, DatasetRun, ingest_dataset, ingest_export
