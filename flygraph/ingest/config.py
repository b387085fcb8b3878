"""Where the export lives and how strictly to read it.

A configuration can be built in code, or loaded from YAML::

    export_dir: ~/data/flywire/783
    connections_dataset: connections_no_threshold
    include_optional: false
    severity:
      unknown_category: fatal
"""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from flygraph.errors import ConfigError
from flygraph.ingest.datasets import CONNECTIONS_DATASETS, build_catalogue
from flygraph.ingest.policy import SeverityPolicy

EXPORT_DIR_VARIABLE = "FLYGRAPH_EXPORT_DIR"
DEFAULT_EXPORT_DIR = "~/dev/notgithub/flywire"


def default_export_dir():
    return Path(os.environ.get(EXPORT_DIR_VARIABLE, DEFAULT_EXPORT_DIR)).expanduser()


@dataclass
class IngestConfig:
    """Settings for one ingestion run.

    Parameters
    ----------
    export_dir : Path or str
        Directory holding the ``<dataset>.csv.gz`` files.
    connections_dataset : str
        "connections" or "connections_no_threshold".
    include_optional : bool
        Whether optional tables are read when present.
    datasets : list of str, optional
        Read only these tables (still in catalogue order).
    progress_every : int, optional
        Fixed progress interval in records.
    severity : dict
        Error kind -> "fatal" | "anomaly" overrides.
    log_file : Path or str, optional
        Also write log output here.
    """

    export_dir: Path = field(default_factory=default_export_dir)
    connections_dataset: str = "connections"
    include_optional: bool = True
    datasets: Optional[List[str]] = None
    progress_every: Optional[int] = None
    severity: Dict[str, str] = field(default_factory=dict)
    log_file: Optional[Path] = None

    def __post_init__(self):
        self.export_dir = Path(self.export_dir).expanduser()
        if self.log_file is not None:
            self.log_file = Path(self.log_file).expanduser()
        if self.connections_dataset not in CONNECTIONS_DATASETS:
            raise ConfigError(
                f"connections_dataset must be one of {CONNECTIONS_DATASETS}, "
                f"got {self.connections_dataset!r}"
            )
        if self.progress_every is not None and int(self.progress_every) < 1:
            raise ConfigError(f"progress_every must be positive, got {self.progress_every}")
        if self.datasets is not None:
            known = {d.name for d in build_catalogue(self.connections_dataset)}
            unknown = [name for name in self.datasets if name not in known]
            if unknown:
                raise ConfigError(f"Unknown datasets {unknown}. Known: {sorted(known)}")
        self.policy = SeverityPolicy(self.severity)

    @classmethod
    def from_mapping(cls, mapping):
        """Build a configuration from a plain dict, rejecting unknown keys."""
        allowed = {f.name for f in fields(cls)}
        unknown = sorted(set(mapping) - allowed)
        if unknown:
            raise ConfigError(f"Unknown configuration keys {unknown}. Allowed: {sorted(allowed)}")
        return cls(**mapping)

    @classmethod
    def from_yaml(cls, path):
        """Load a configuration from a YAML file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: expected a mapping at top level")
        return cls.from_mapping(data)

    def catalogue(self):
        """Datasets to read, in order."""
        selected = build_catalogue(self.connections_dataset)
        if self.datasets is not None:
            selected = [d for d in selected if d.name in self.datasets]
        if not self.include_optional:
            selected = [d for d in selected if not d.optional]
        return selected
