"""graph: The in-memory connectome graph.

  - Cell, Connection, Synapse, Neuropil, User, Label: the entities
  - GraphStore: lookup-or-create arena that owns them all
  - SynapseCursor: continuation state for multi-row synapses
"""

from .model import Cell, Connection, Synapse, Neuropil, User, Label, SIDES
from .store import GraphStore, SynapseCursor, SynapsePoint
from .neurotransmitters import NT_COLUMNS, NT_NAMES
