"""Entities of the assembled connectome graph.

Cells, neuropils and users are keyed by their export ids. Connections
and synapses live in flat lists owned by the GraphStore; everything that
refers to them (a cell's incident lists, a neuropil's connection list)
holds their integer index in those lists, and they in turn refer to
cells by root id and to neuropils by name. No entity points back at
another through an object reference, so the graph has no cycles.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

import numpy as np
import pandas as pd

from flygraph.errors import UnknownCategoryError
from flygraph.graph.neurotransmitters import NT_COLUMNS, NT_NAMES

Point = Tuple[int, int, int]

SIDES = ("pre", "post")


@dataclass
class User:
    """A proofreader who authored labels."""

    id: int
    name: str
    affiliation: str


@dataclass
class Label:
    """A free-text annotation attached to one cell.

    Parameters
    ----------
    text : str
        The annotation.
    label_id : int
        Export id of the annotation.
    created : pd.Timestamp
        Creation time, in UTC.
    user : User
        Author; shared with every other label by the same user.
    position : tuple of int, optional
        Where the annotation was placed, if recorded.
    supervoxel_id : int
        Supervoxel under the annotation.
    """

    text: str
    label_id: int
    created: pd.Timestamp
    user: User
    position: Optional[Point] = None
    supervoxel_id: int = 0


@dataclass
class Neuropil:
    """A named brain region, with synapse proofreading statistics."""

    name: str
    pre_count_total: int = 0
    pre_count_proof: int = 0
    pre_proof_ratio: float = 0.0
    post_count_total: int = 0
    post_count_proof: int = 0
    post_proof_ratio: float = 0.0
    connections: List[int] = field(default_factory=list)

    def set_stats(self, side, count_total, count_proof, proof_ratio):
        """Record proofreading statistics for the `pre` or `post` side."""
        if side not in SIDES:
            raise UnknownCategoryError(f"unknown side {side}")
        setattr(self, f"{side}_count_total", count_total)
        setattr(self, f"{side}_count_proof", count_proof)
        setattr(self, f"{side}_proof_ratio", proof_ratio)


@dataclass
class Connection:
    """Synapses from one cell onto another within one neuropil."""

    source: int
    target: int
    neuropil: str
    syn_count: int
    nt_type: str


@dataclass
class Synapse:
    """One synaptic contact, described by one or more points."""

    source: int
    target: int
    coords: List[Point] = field(default_factory=list)

    @property
    def positions(self):
        """Points as an (n, 3) integer array."""
        return np.array(self.coords, dtype=np.int64).reshape(-1, 3)


@dataclass(eq=False)
class Cell:
    """A neuron, identified by its FlyWire root id.

    Fields are grouped by the dataset that fills them. A cell first seen
    in a table other than `classification` starts as a stub with only
    its id, and is filled in by whichever tables mention it later.
    """

    id: int

    # classification
    flow: Optional[str] = None
    super_class: Optional[str] = None
    cell_class: Optional[str] = None
    sub_class: Optional[str] = None
    cell_type: Optional[str] = None
    hemibrain_type: Optional[str] = None
    hemilineage: Optional[str] = None
    side: Optional[str] = None
    nerve: Optional[str] = None

    # cell_stats
    cable_length_nm: int = 0
    surface_area_nm2: int = 0
    volume_nm3: int = 0

    # column_assignment
    column_hemisphere: Optional[str] = None
    column_type: Optional[str] = None
    column_id: Optional[int] = None
    column_x: int = 0
    column_y: int = 0
    column_p: int = 0
    column_q: int = 0

    # connectivity_tags
    connectivity_tags: Set[str] = field(default_factory=set)

    # consolidated_cell_types
    primary_type: Optional[str] = None
    additional_types: List[str] = field(default_factory=list)

    # labels
    labels: List[Label] = field(default_factory=list)

    # coordinates
    position: Optional[Point] = None
    supervoxel_id: int = 0

    # names
    name: Optional[str] = None
    group: Optional[str] = None

    # neurons
    nt_type: Optional[str] = None
    nt_type_score: float = 0.0
    nt_scores: Dict[str, float] = field(default_factory=dict)

    # neuropil_synapse_table
    total_input_synapses: int = 0
    total_input_partners: int = 0
    total_output_synapses: int = 0
    total_output_partners: int = 0
    input_synapses: Dict[str, int] = field(default_factory=dict)
    input_partners: Dict[str, int] = field(default_factory=dict)
    output_synapses: Dict[str, int] = field(default_factory=dict)
    output_partners: Dict[str, int] = field(default_factory=dict)

    # processed_labels
    processed_labels: List[str] = field(default_factory=list)

    # visual_neuron_types
    visual_type: Optional[str] = None
    visual_family: Optional[str] = None
    visual_subsystem: Optional[str] = None
    visual_category: Optional[str] = None
    visual_side: Optional[str] = None

    # indices into GraphStore.connections / GraphStore.synapses
    outgoing: List[int] = field(default_factory=list, repr=False)
    incoming: List[int] = field(default_factory=list, repr=False)
    synapses_out: List[int] = field(default_factory=list, repr=False)
    synapses_in: List[int] = field(default_factory=list, repr=False)

    @property
    def nt_profile(self):
        """Channel scores as a Series indexed by transmitter name."""
        return pd.Series(
            {NT_NAMES[c]: self.nt_scores[c] for c in NT_COLUMNS if c in self.nt_scores},
            dtype=float,
            name=self.id,
        )
