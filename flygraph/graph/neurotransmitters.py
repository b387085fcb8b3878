"""Neurotransmitter channels carried by each cell.

The `neurons` table reports one predicted transmitter type per cell and
six per-channel scores, in the column order given by NT_COLUMNS.
"""

# Per-channel score columns, in the order they appear in `neurons`
NT_COLUMNS = ["da_avg", "ser_avg", "gaba_avg", "glut_avg", "ach_avg", "oct_avg"]

# Human-readable names for the channels
NT_NAMES = {
    "gaba_avg": "GABA",
    "ach_avg": "acetylcholine",
    "glut_avg": "glutamate",
    "oct_avg": "octopamine",
    "ser_avg": "serotonin",
    "da_avg": "dopamine",
}
