"""The tables of a FlyWire export, and the order they are read in.

An ExportDataset is a named, typed description of one file that can
`.define()` itself for provenance. It knows the header to expect and
the row handler that turns each record into graph mutations.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from flygraph.errors import HeaderMismatchError
from flygraph.ingest import handlers


@dataclass
class ExportDataset:
    """One table of the export.

    Parameters
    ----------
    name : str
        Table name; the file is ``<name>.<ftype>``.
    columns : list of str, optional
        Exact expected header. Required unless `derive_header` is given.
    handler : callable
        (store, fields, state) -> None | str | list of str.
    derive_header : callable, optional
        (header, state) -> anything; validates a header that cannot be
        listed in advance and records what rows need from it in `state`.
    optional : bool
        If True, a missing file is skipped rather than fatal.
    ftype : str
        File extension.
    description : str, optional
        What the table holds.
    """

    name: str
    columns: Optional[List[str]] = None
    handler: Callable = None
    derive_header: Callable = None
    optional: bool = False
    ftype: str = "csv.gz"
    description: str = None

    def __post_init__(self):
        if self.columns is None and self.derive_header is None:
            raise ValueError(
                f"Dataset '{self.name}' needs either columns or derive_header"
            )
        if self.handler is None:
            raise ValueError(f"No handler for dataset '{self.name}'")

    @property
    def filename(self):
        return f"{self.name}.{self.ftype}"

    def path_in(self, export_dir):
        return Path(export_dir) / self.filename

    def check_header(self, header, state):
        """Validate a decoded header, deriving row state where needed.

        Raises
        ------
        HeaderMismatchError
            On any difference from the expected columns.
        """
        if self.derive_header is not None:
            return self.derive_header(header, state)
        if len(header) != len(self.columns):
            raise HeaderMismatchError(
                f"expected {len(self.columns)} columns {self.columns}, "
                f"got {len(header)}: {list(header)}"
            )
        for position, (found, expected) in enumerate(zip(header, self.columns)):
            if found != expected:
                raise HeaderMismatchError(
                    f"column {position} is {found!r}, expected {expected!r}"
                )
        return None

    def define(self):
        """Serializable definition of this dataset, for provenance."""
        return {
            "class": self.__class__.__qualname__,
            "name": self.name,
            "ftype": self.ftype,
            "columns": list(self.columns) if self.columns else "derived from header",
            "handler": f"{self.handler.__module__}.{self.handler.__qualname__}",
            "optional": self.optional,
            "description": self.description or "Not provided",
        }


# ---------------------------------------------------------------------------
# The catalogue, in reading order
# ---------------------------------------------------------------------------

CONNECTION_COLUMNS = ["pre_root_id", "post_root_id", "neuropil", "syn_count", "nt_type"]

CONNECTIONS_DATASETS = ("connections", "connections_no_threshold")


def build_catalogue(connections_dataset="connections"):
    """All export tables, in the order they must be ingested.

    Cell-describing tables come first, then neuropil statistics, and the
    connectivity tables last, so that most references they make resolve
    to cells that are already fully described.

    Parameters
    ----------
    connections_dataset : str
        "connections" (thresholded) or "connections_no_threshold".
    """
    if connections_dataset not in CONNECTIONS_DATASETS:
        raise ValueError(
            f"Unknown connections dataset '{connections_dataset}'. "
            f"Use one of {CONNECTIONS_DATASETS}."
        )
    return [
        ExportDataset(
            "classification",
            ["root_id", "flow", "super_class", "class", "sub_class",
             "cell_type", "hemibrain_type", "hemilineage", "side", "nerve"],
            handlers.handle_classification,
            description="Hierarchical cell classification; creates the cells.",
        ),
        ExportDataset(
            "cell_stats",
            ["root_id", "length_nm", "area_nm", "size_nm"],
            handlers.handle_cell_stats,
            description="Cable length, surface area and volume.",
        ),
        ExportDataset(
            "column_assignment",
            ["root_id", "hemisphere", "type", "column_id", "x", "y", "p", "q"],
            handlers.handle_column_assignment,
            description="Optic lobe column of each columnar cell.",
        ),
        ExportDataset(
            "connectivity_tags",
            ["root_id", "connectivity_tag"],
            handlers.handle_connectivity_tags,
        ),
        ExportDataset(
            "consolidated_cell_types",
            ["root_id", "primary_type", "additional_type(s)"],
            handlers.handle_consolidated_cell_types,
        ),
        ExportDataset(
            "coordinates",
            ["root_id", "position", "supervoxel_id"],
            handlers.handle_coordinates,
            description="One representative point per cell.",
        ),
        ExportDataset(
            "labels",
            ["root_id", "label", "user_id", "position", "supervoxel_id",
             "label_id", "date_created", "user_name", "user_affiliation"],
            handlers.handle_labels,
            description="Community annotations, with their authors.",
        ),
        ExportDataset(
            "names",
            ["root_id", "name", "group"],
            handlers.handle_names,
        ),
        ExportDataset(
            "neurons",
            ["root_id", "group", "nt_type", "nt_type_score", "da_avg",
             "ser_avg", "gaba_avg", "glut_avg", "ach_avg", "oct_avg"],
            handlers.handle_neurons,
            description="Predicted neurotransmitter per cell.",
        ),
        ExportDataset(
            "neuropil_synapse_table",
            handler=handlers.handle_neuropil_synapse_table,
            derive_header=handlers.derive_neuropil_quadrants,
            optional=True,
            description="Per-neuropil input/output synapse and partner counts.",
        ),
        ExportDataset(
            "processed_labels",
            ["root_id", "processed_labels"],
            handlers.handle_processed_labels,
        ),
        ExportDataset(
            "synapse_attachment_rates",
            ["neuropil", "count_total", "count_proof", "proof_ratio", "side"],
            handlers.handle_synapse_attachment_rates,
            description="Proofreading statistics per neuropil and side.",
        ),
        ExportDataset(
            "synapse_coordinates",
            ["pre_root_id", "post_root_id", "x", "y", "z"],
            handlers.handle_synapse_coordinates,
            description="Synapse points; blank ids continue the previous synapse.",
        ),
        ExportDataset(
            "visual_neuron_types",
            ["root_id", "type", "family", "subsystem", "category", "side"],
            handlers.handle_visual_neuron_types,
        ),
        ExportDataset(
            connections_dataset,
            CONNECTION_COLUMNS,
            handlers.handle_connections,
            description="Synapse counts per (pre, post, neuropil).",
        ),
    ]
