"""Row handlers for each table of the FlyWire export.

A handler receives the GraphStore, one decoded record (a list of field
strings in header order) and the per-table RowState, mutates the store,
and returns None, one anomaly message, or a list of them. Hard
contradictions are raised as GraphIntegrityError subclasses.

Handlers parse every value and check every invariant before their
first mutation, so a row that raises leaves the store unchanged.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional

import pandas as pd

from flygraph.errors import (
    HeaderMismatchError,
    MalformedListError,
    MalformedValueError,
    UnknownCategoryError,
)
from flygraph.graph.model import SIDES, Label
from flygraph.graph.neurotransmitters import NT_COLUMNS
from flygraph.graph.store import SynapseCursor


@dataclass
class RowState:
    """State threaded through one table's handler calls.

    Parameters
    ----------
    cursor : SynapseCursor
        Continuation state for `synapse_coordinates`.
    quadrants : list of list of str
        Neuropil names of the four count blocks of
        `neuropil_synapse_table`, derived from its header.
    """

    cursor: SynapseCursor = field(default_factory=SynapseCursor)
    quadrants: Optional[List[List[str]]] = None


# ---------------------------------------------------------------------------
# Value parsing
# ---------------------------------------------------------------------------

_POSITION = re.compile(r"\[\s*(-?\d+)[\s,]+(-?\d+)[\s,]+(-?\d+)\s*\]")


def parse_int(text, column):
    try:
        return int(text)
    except ValueError as error:
        raise MalformedValueError(f"{column}: not an integer: {text!r}") from error


def parse_float(text, column):
    try:
        return float(text)
    except ValueError as error:
        raise MalformedValueError(f"{column}: not a number: {text!r}") from error


def parse_position(text, column="position"):
    """Parse ``[x y z]`` into an integer triple; blank gives None."""
    if text == "":
        return None
    match = _POSITION.fullmatch(text.strip())
    if match is None:
        raise MalformedValueError(f"{column}: not an [x y z] position: {text!r}")
    return tuple(int(v) for v in match.groups())


def parse_timestamp(text, column="date_created"):
    """Parse a timestamp and express it in UTC.

    Timestamps without a zone are taken to be UTC already.
    """
    try:
        stamp = pd.Timestamp(text)
    except ValueError as error:
        raise MalformedValueError(f"{column}: not a timestamp: {text!r}") from error
    if stamp is pd.NaT:
        raise MalformedValueError(f"{column}: not a timestamp: {text!r}")
    if stamp.tzinfo is None:
        return stamp.tz_localize("UTC")
    return stamp.tz_convert("UTC")


def parse_literal_list(text, column):
    """Parse a ``['a','b']`` list literal; blank gives an empty list."""
    if text in ("", "[]"):
        return []
    if not (text.startswith("['") and text.endswith("']")) or len(text) < 4:
        raise MalformedListError(f"{column}: unexpected format {text}")
    return text[2:-2].split("','")


def split_list(text):
    """Split a comma-separated field, dropping blanks."""
    return [item.strip() for item in text.split(",") if item.strip()]


def _cell(store, text, column="root_id", role=None):
    """Look a cell up by id, returning it with a message if it was stubbed."""
    cell, created = store.get_or_create_cell(parse_int(text, column))
    if not created:
        return cell, None
    what = f"{role} cell" if role else "cell"
    return cell, f"missing {what} for root_id {cell.id}"


# ---------------------------------------------------------------------------
# Per-table handlers
# ---------------------------------------------------------------------------

def handle_classification(store, fields, state):
    cell, created = store.get_or_create_cell(parse_int(fields[0], "root_id"))
    (cell.flow, cell.super_class, cell.cell_class, cell.sub_class,
     cell.cell_type, cell.hemibrain_type, cell.hemilineage,
     cell.side, cell.nerve) = fields[1:10]
    return None if created else f"duplicate root_id {cell.id}"


def handle_cell_stats(store, fields, state):
    length = parse_int(fields[1], "length_nm")
    area = parse_int(fields[2], "area_nm")
    size = parse_int(fields[3], "size_nm")
    cell, message = _cell(store, fields[0])
    cell.cable_length_nm, cell.surface_area_nm2, cell.volume_nm3 = length, area, size
    return message


def handle_column_assignment(store, fields, state):
    column_id = parse_int(fields[3], "column_id")
    x, y, p, q = (parse_int(fields[i], name) for i, name in zip(range(4, 8), "xypq"))
    cell, message = _cell(store, fields[0])
    cell.column_hemisphere = fields[1]
    cell.column_type = fields[2]
    cell.column_id = column_id
    cell.column_x, cell.column_y, cell.column_p, cell.column_q = x, y, p, q
    return message


def handle_connectivity_tags(store, fields, state):
    cell, message = _cell(store, fields[0])
    if fields[1] != "":
        cell.connectivity_tags.update(fields[1].split(","))
    return message


def handle_consolidated_cell_types(store, fields, state):
    cell, message = _cell(store, fields[0])
    cell.primary_type = fields[1]
    cell.additional_types = split_list(fields[2])
    return message


def handle_coordinates(store, fields, state):
    position = parse_position(fields[1])
    supervoxel_id = parse_int(fields[2], "supervoxel_id")
    cell, message = _cell(store, fields[0])
    if position is not None:
        cell.position = position
    cell.supervoxel_id = supervoxel_id
    return message


def handle_labels(store, fields, state):
    """Attach a label to its cell; the author must match earlier rows."""
    cell_id = parse_int(fields[0], "root_id")
    user_id = parse_int(fields[2], "user_id")
    position = parse_position(fields[3])
    supervoxel_id = parse_int(fields[4], "supervoxel_id")
    label_id = parse_int(fields[5], "label_id")
    created = parse_timestamp(fields[6])
    user = store.bind_user(user_id, fields[7], fields[8])
    cell, message = _cell(store, cell_id)
    cell.labels.append(Label(
        text=fields[1],
        label_id=label_id,
        created=created,
        user=user,
        position=position,
        supervoxel_id=supervoxel_id,
    ))
    return message


def handle_names(store, fields, state):
    cell, message = _cell(store, fields[0])
    store.set_group(cell, fields[2])
    cell.name = fields[1]
    return message


def handle_neurons(store, fields, state):
    score = parse_float(fields[3], "nt_type_score")
    scores = {
        column: parse_float(value, column)
        for column, value in zip(NT_COLUMNS, fields[4:10])
    }
    cell, message = _cell(store, fields[0])
    store.set_group(cell, fields[1])
    cell.nt_type = fields[2]
    cell.nt_type_score = score
    cell.nt_scores = scores
    return message


NEUROPIL_TABLE_PREFIX = [
    "root_id", "input synapses", "input partners",
    "output synapses", "output partners",
]


def derive_neuropil_quadrants(header, state):
    """Read the four blocks of per-neuropil columns off the wide header.

    After the five fixed columns come four equal blocks (input synapses,
    input partners, output synapses, output partners), each with one
    column per neuropil named ``"<block> <neuropil>"``.
    """
    prefix = len(NEUROPIL_TABLE_PREFIX)
    if list(header[:prefix]) != NEUROPIL_TABLE_PREFIX:
        raise HeaderMismatchError(
            f"expected leading columns {NEUROPIL_TABLE_PREFIX}, got {list(header[:prefix])}"
        )
    rest = header[prefix:]
    if len(rest) % 4:
        raise HeaderMismatchError(
            f"{len(rest)} per-neuropil columns do not split into four blocks"
        )
    take = len(rest) // 4
    state.quadrants = [
        [name.split(" ")[-1] for name in rest[i * take:(i + 1) * take]]
        for i in range(4)
    ]
    return state.quadrants


def handle_neuropil_synapse_table(store, fields, state):
    totals = [parse_int(fields[i], name)
              for i, name in enumerate(NEUROPIL_TABLE_PREFIX[1:], start=1)]
    column = len(NEUROPIL_TABLE_PREFIX)
    blocks = []
    for neuropils in state.quadrants:
        block = {}
        for neuropil in neuropils:
            value = parse_int(fields[column], neuropil)
            column += 1
            if value != 0:
                block[neuropil] = value
        blocks.append(block)

    cell, message = _cell(store, fields[0])
    (cell.total_input_synapses, cell.total_input_partners,
     cell.total_output_synapses, cell.total_output_partners) = totals
    counts = (cell.input_synapses, cell.input_partners,
              cell.output_synapses, cell.output_partners)
    for target, block in zip(counts, blocks):
        target.update(block)
    return message


def handle_processed_labels(store, fields, state):
    labels = parse_literal_list(fields[1], "processed_labels")
    cell, message = _cell(store, fields[0])
    cell.processed_labels.extend(labels)
    return message


def handle_synapse_attachment_rates(store, fields, state):
    side = fields[4]
    if side not in SIDES:
        raise UnknownCategoryError(f"unknown side {side}")
    stats = (
        parse_int(fields[1], "count_total"),
        parse_int(fields[2], "count_proof"),
        parse_float(fields[3], "proof_ratio"),
    )
    neuropil, _ = store.get_or_create_neuropil(fields[0])
    neuropil.set_stats(side, *stats)


def _blank_or_id(text, column):
    return None if text == "" else parse_int(text, column)


def handle_synapse_coordinates(store, fields, state):
    point = store.register_synapse_point(
        _blank_or_id(fields[0], "pre_root_id"),
        _blank_or_id(fields[1], "post_root_id"),
        (parse_int(fields[2], "x"), parse_int(fields[3], "y"), parse_int(fields[4], "z")),
        cursor=state.cursor,
    )
    return [f"missing {role} cell for root_id {cell_id}" for role, cell_id in point.created]


def handle_visual_neuron_types(store, fields, state):
    cell, message = _cell(store, fields[0])
    (cell.visual_type, cell.visual_family, cell.visual_subsystem,
     cell.visual_category, cell.visual_side) = fields[1:6]
    return message


def handle_connections(store, fields, state):
    """Register one connection, stubbing whatever it refers to."""
    source_id = parse_int(fields[0], "pre_root_id")
    target_id = parse_int(fields[1], "post_root_id")
    syn_count = parse_int(fields[3], "syn_count")
    messages = []
    source, message = _cell(store, source_id, role="pre")
    messages.append(message)
    target, message = _cell(store, target_id, role="post")
    messages.append(message)
    neuropil, created = store.get_or_create_neuropil(fields[2])
    if created:
        messages.append(f"missing neuropil {neuropil.name}")
    store.register_connection(source, target, neuropil, syn_count, fields[4])
    return [m for m in messages if m]
