"""Read an export, table by table, into one GraphStore.

Each table goes through the same stages::

    AWAITING_HEADER -> VALIDATING_HEADER -> STREAMING_ROWS -> DONE
                              |                   |
                              +------> FATAL <----+

A header that differs from the expected columns, or any error the
severity policy calls fatal, ends the whole run: the error propagates
out of `ingest_export` with the table and record number attached.
Errors the policy calls anomalies, and the stub-creation messages that
handlers return, are reported and the stream continues.

Tables are read strictly one after another. Several depend on what
earlier ones left in the store (cells, users, groups, neuropils).
"""

from contextlib import ExitStack
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from flygraph.codec import RecordReader, open_lines
from flygraph.errors import DecodeError, FlyGraphError, GraphIntegrityError
from flygraph.graph import GraphStore
from flygraph.ingest.config import IngestConfig
from flygraph.ingest.diagnostics import Diagnostics
from flygraph.ingest.handlers import RowState
from flygraph.ingest.policy import SeverityPolicy
from flygraph.utils import get_logger


class Stage(Enum):
    AWAITING_HEADER = "awaiting_header"
    VALIDATING_HEADER = "validating_header"
    STREAMING_ROWS = "streaming_rows"
    DONE = "done"
    FATAL = "fatal"


@dataclass
class DatasetRun:
    """Progress of one table through the pipeline."""

    name: str
    stage: Stage = Stage.AWAITING_HEADER
    header: Optional[List[str]] = None
    records: int = 0
    bytes: int = 0
    anomalies: int = 0


def _messages(result):
    """Normalize a handler's return value to a list of messages."""
    if result is None:
        return []
    if isinstance(result, str):
        return [result]
    return [message for message in result if message]


def ingest_dataset(store, dataset, source, diagnostics=None, policy=None, state=None):
    """Decode one table and apply its handler to every record.

    Parameters
    ----------
    store : GraphStore
        Receives the mutations.
    dataset : ExportDataset
        Expected header and row handler.
    source : LineSource
        Physical lines of the (decompressed) table.
    diagnostics : Diagnostics, optional
        Sink for progress and anomalies.
    policy : SeverityPolicy, optional
        Decides which raised errors are fatal.
    state : RowState, optional
        Threaded through handler calls; a fresh one by default.

    Returns
    -------
    DatasetRun
        In stage DONE.

    Raises
    ------
    FlyGraphError
        Any fatal condition, located at the table and record.
    """
    diagnostics = diagnostics or Diagnostics()
    policy = policy or SeverityPolicy()
    state = state if state is not None else RowState()
    run = DatasetRun(dataset.name)
    reader = RecordReader(source)

    try:
        run.header = reader.header
        diagnostics.start(dataset.name, len(run.header))
        run.stage = Stage.VALIDATING_HEADER
        dataset.check_header(run.header, state)

        run.stage = Stage.STREAMING_ROWS
        for fields in reader.records():
            row = reader.n_records
            try:
                result = dataset.handler(store, fields, state)
            except GraphIntegrityError as error:
                if policy.is_fatal(error):
                    raise error.locate(dataset.name, row)
                result = f"[{error.kind}] {error}"
            messages = _messages(result)
            for message in messages:
                diagnostics.anomaly(dataset.name, row, message)
            run.anomalies += len(messages)
            diagnostics.progress(dataset.name, row, reader.bytes_read, force=bool(messages))

    except FlyGraphError as error:
        if error.dataset is None:
            streaming = run.stage is Stage.STREAMING_ROWS and isinstance(error, DecodeError)
            error.locate(dataset.name, reader.n_records + 1 if streaming else None)
        run.stage = Stage.FATAL
        diagnostics.fatal(error)
        raise

    run.records = reader.n_records
    run.bytes = reader.bytes_read
    run.stage = Stage.DONE
    diagnostics.finish(dataset.name, run.records, run.bytes)
    return run


def _as_config(config):
    if config is None:
        return IngestConfig()
    if isinstance(config, IngestConfig):
        return config
    return IngestConfig(export_dir=config)


def ingest_export(config=None, store=None, diagnostics=None):
    """Assemble a whole export into a GraphStore.

    Parameters
    ----------
    config : IngestConfig, str or Path, optional
        Full configuration, or just the export directory. Defaults to
        the directory named by $FLYGRAPH_EXPORT_DIR.
    store : GraphStore, optional
        Store to fill; a new one by default.
    diagnostics : Diagnostics, optional
        Sink for progress and anomalies; logs to the console by default.

    Returns
    -------
    (GraphStore, IngestReport)
    """
    config = _as_config(config)
    store = store if store is not None else GraphStore()

    with ExitStack() as stack:
        if diagnostics is None:
            out = stack.enter_context(open(config.log_file, "a")) if config.log_file else None
            diagnostics = Diagnostics(get_logger("ingest", out=out), config.progress_every)

        if not config.export_dir.is_dir():
            raise FileNotFoundError(f"Export directory not found: {config.export_dir}")

        catalogue = config.catalogue()
        missing = [d.filename for d in catalogue
                   if not d.optional and not d.path_in(config.export_dir).exists()]
        if missing:
            raise FileNotFoundError(
                f"Export files missing from {config.export_dir}: {', '.join(missing)}"
            )

        for dataset in catalogue:
            path = dataset.path_in(config.export_dir)
            if not path.exists():
                diagnostics.skip(dataset.name, f"{path.name} not present")
                continue
            with open_lines(path) as source:
                ingest_dataset(store, dataset, source, diagnostics, config.policy)

        report = diagnostics.close()

    return store, report
