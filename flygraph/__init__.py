"""flygraph: assemble the FlyWire connectome export into one object graph.

Reads the family of gzip-compressed CSV tables published with the
FlyWire 783 release (cells, classifications, labels, connections,
synapse coordinates, neuropil statistics) and links them into a single
in-memory graph of cells, connections, synapses, neuropils and users.

Subpackages:
    codec    Decoder for the export's quoting dialect, gzip line source
    graph    Entities and the GraphStore arena that owns them
    ingest   Dataset handlers, the ordered pipeline, diagnostics, config
    utils    Print-based logging
"""

__version__ = "0.1.0"

from flygraph.graph import GraphStore
from flygraph.ingest import IngestConfig, ingest_export
