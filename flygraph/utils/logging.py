"""A print-based logger for long-running ingestion at the console.

Ingestion of a full export takes minutes and runs mostly in notebooks
or a bare terminal, where standard Python logging is easy to lose. This
module prints to stdout with timestamps and level labels, and can keep a
single status line updated in place for progress counters.

Usage:
    from flygraph.utils import get_logger
    log = get_logger("ingest")
    log.info("Reading %s", "classification")
    log.status("1,000 records - 65,536 bytes")
"""

import sys
from datetime import datetime

LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}


def get_logger(name, out=None, level="INFO"):
    """Create a print-based logger.

    Parameters
    ----------
    name : str
        Logger name, displayed in every message header.
    out : file-like, optional
        Additional output stream (e.g., an open log file).
    level : str
        Minimum level printed; one of DEBUG, INFO, WARNING, ERROR.

    Returns
    -------
    callable
        A log function with .debug, .info, .warning, .error methods,
        plus .status for an in-place progress line.
    """
    prefix = f"flygraph:{name}"
    line_length = 72
    extra = [out] if out else []
    state = {"threshold": LEVELS[level], "status_width": 0}

    def _clear_status():
        if state["status_width"]:
            sys.stdout.write("\r" + " " * state["status_width"] + "\r")
            state["status_width"] = 0

    def _header(level):
        now = datetime.now().strftime("%H:%M:%S")
        for dest in [sys.stdout] + extra:
            print(f"{'_' * line_length}", file=dest)
            print(f"{prefix} {level} [{now}]", file=dest)

    def log(level, msg, args):
        if LEVELS[level] < state["threshold"]:
            return
        _clear_status()
        _header(level)
        for dest in [sys.stdout] + extra:
            try:
                print(msg % args, file=dest)
            except TypeError:
                print(msg, file=dest)

    def status(msg, *args):
        """Overwrite the current console line; never copied to `out`."""
        if LEVELS["INFO"] < state["threshold"]:
            return
        text = msg % args if args else msg
        _clear_status()
        sys.stdout.write(text)
        sys.stdout.flush()
        state["status_width"] = len(text)

    log.debug = lambda msg, *args: log("DEBUG", msg, args)
    log.info = lambda msg, *args: log("INFO", msg, args)
    log.warning = lambda msg, *args: log("WARNING", msg, args)
    log.error = lambda msg, *args: log("ERROR", msg, args)
    log.status = status

    return log
