"""The GraphStore: one owner for every entity of an ingestion run.

Cells, users and neuropils are created on first reference and looked up
by id afterwards; connections and synapses are appended to flat lists
and referenced everywhere else by index. Mutators enforce the
cross-table invariants and raise a GraphIntegrityError subclass when a
row contradicts what the store already holds. Whether that stops the
run is decided by the caller.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

import pandas as pd

from flygraph.errors import (
    GroupConflictError,
    OrphanContinuationError,
    UserConflictError,
)
from flygraph.graph.model import Cell, Connection, Neuropil, Point, Synapse, User


@dataclass
class SynapseCursor:
    """Where the last synapse row left off.

    Rows of `synapse_coordinates` with blank pre/post ids continue the
    synapse started by the most recent row that had an id.
    """

    source: Optional[int] = None
    target: Optional[int] = None
    synapse: Optional[int] = None


@dataclass
class SynapsePoint:
    """Outcome of one register_synapse_point call."""

    synapse: Synapse
    index: int
    started: bool
    created: Tuple[Tuple[str, int], ...] = ()


def _is_blank(value):
    return value is None or value == ""


class GraphStore:
    """Mutable, process-lifetime collection of the connectome's entities."""

    def __init__(self):
        self.cells: Dict[int, Cell] = {}
        self.users: Dict[int, User] = {}
        self.neuropils: Dict[str, Neuropil] = {}
        self.connections: List[Connection] = []
        self.synapses: List[Synapse] = []
        self.groups: Dict[str, Set[int]] = {}
        self.synapse_cursor = SynapseCursor()

    def __repr__(self):
        return (f"GraphStore({len(self.cells)} cells, "
                f"{len(self.connections)} connections, "
                f"{len(self.synapses)} synapses, "
                f"{len(self.neuropils)} neuropils)")

    # -----------------------------------------------------------------------
    # Lookup-or-create
    # -----------------------------------------------------------------------

    def get_or_create_cell(self, cell_id) -> Tuple[Cell, bool]:
        """Return the cell for `cell_id`, creating a stub if it is new.

        Returns
        -------
        (Cell, bool)
            The cell and whether it was created by this call.
        """
        cell_id = int(cell_id)
        cell = self.cells.get(cell_id)
        if cell is not None:
            return cell, False
        cell = self.cells[cell_id] = Cell(cell_id)
        return cell, True

    def get_or_create_neuropil(self, name) -> Tuple[Neuropil, bool]:
        """Return the neuropil called `name`, creating it with zero stats."""
        neuropil = self.neuropils.get(name)
        if neuropil is not None:
            return neuropil, False
        neuropil = self.neuropils[name] = Neuropil(name)
        return neuropil, True

    def bind_user(self, user_id, name, affiliation) -> User:
        """Return the user for `user_id`, creating it on first reference.

        Raises
        ------
        UserConflictError
            If the id is already bound to a different name or affiliation.
        """
        user_id = int(user_id)
        user = self.users.get(user_id)
        if user is None:
            user = self.users[user_id] = User(user_id, name, affiliation)
            return user
        if (user.name, user.affiliation) != (name, affiliation):
            raise UserConflictError(
                f"user {user_id} is bound to ({user.name!r}, {user.affiliation!r}), "
                f"not ({name!r}, {affiliation!r})"
            )
        return user

    # -----------------------------------------------------------------------
    # Mutators
    # -----------------------------------------------------------------------

    def set_group(self, cell, group):
        """Assign `group` to `cell` and index it.

        Raises
        ------
        GroupConflictError
            If the cell already carries a different group.
        """
        if cell.group is None:
            cell.group = group
        elif cell.group != group:
            raise GroupConflictError(
                f"cell {cell.id} is in group {cell.group!r}, not {group!r}"
            )
        self.groups.setdefault(group, set()).add(cell.id)

    def register_connection(self, source, target, neuropil, syn_count, nt_type) -> Connection:
        """Create a connection and register it with both cells and the neuropil."""
        connection = Connection(
            source=source.id,
            target=target.id,
            neuropil=neuropil.name,
            syn_count=int(syn_count),
            nt_type=nt_type,
        )
        index = len(self.connections)
        self.connections.append(connection)
        source.outgoing.append(index)
        target.incoming.append(index)
        neuropil.connections.append(index)
        return connection

    def register_synapse_point(self, source_id, target_id, coordinate: Point,
                               cursor=None) -> SynapsePoint:
        """Add one point of a synapse, starting a new synapse if ids are given.

        A row with at least one id starts a new synapse; a blank id takes
        the cell of the previous row. A row with both ids blank appends its
        point to the current synapse.

        Parameters
        ----------
        source_id, target_id : int, str, or None
            Root ids; None or "" for blank.
        coordinate : tuple of int
            The point to append.
        cursor : SynapseCursor, optional
            Continuation state; the store's own cursor if not given.

        Raises
        ------
        OrphanContinuationError
            If the row needs a previous synapse or cell and there is none.
        """
        cursor = cursor if cursor is not None else self.synapse_cursor
        created = []
        if _is_blank(source_id) and _is_blank(target_id):
            if cursor.synapse is None:
                raise OrphanContinuationError(
                    "synapse continuation row with no synapse to continue"
                )
            index = cursor.synapse
            synapse = self.synapses[index]
            synapse.coords.append(tuple(coordinate))
            return SynapsePoint(synapse, index, started=False)

        ends = {}
        roles = (("pre", source_id, cursor.source), ("post", target_id, cursor.target))
        for role, given, carried in roles:
            if _is_blank(given) and carried is None:
                raise OrphanContinuationError(
                    f"blank {role} id with no previous {role} cell"
                )
        for role, given, carried in roles:
            if _is_blank(given):
                ends[role] = self.cells[carried]
                continue
            cell, new = self.get_or_create_cell(given)
            if new:
                created.append((role, cell.id))
            ends[role] = cell

        source, target = ends["pre"], ends["post"]
        synapse = Synapse(source.id, target.id, [tuple(coordinate)])
        index = len(self.synapses)
        self.synapses.append(synapse)
        source.synapses_out.append(index)
        target.synapses_in.append(index)
        cursor.source, cursor.target, cursor.synapse = source.id, target.id, index
        return SynapsePoint(synapse, index, started=True, created=tuple(created))

    # -----------------------------------------------------------------------
    # Read access; never creates entities
    # -----------------------------------------------------------------------

    def cell(self, cell_id):
        """The cell with `cell_id`. Raises KeyError if absent."""
        return self.cells[int(cell_id)]

    def neuropil(self, name):
        return self.neuropils[name]

    def user(self, user_id):
        return self.users[int(user_id)]

    def group(self, name):
        """Cells carrying group `name`, ordered by root id."""
        return [self.cells[i] for i in sorted(self.groups.get(name, ()))]

    def outgoing(self, cell):
        return [self.connections[i] for i in cell.outgoing]

    def incoming(self, cell):
        return [self.connections[i] for i in cell.incoming]

    def synapses_from(self, cell):
        return [self.synapses[i] for i in cell.synapses_out]

    def synapses_onto(self, cell):
        return [self.synapses[i] for i in cell.synapses_in]

    def neuropil_connections(self, neuropil):
        if isinstance(neuropil, str):
            neuropil = self.neuropils[neuropil]
        return [self.connections[i] for i in neuropil.connections]

    def summary(self):
        """Entity counts as a pandas Series."""
        return pd.Series({
            "cells": len(self.cells),
            "connections": len(self.connections),
            "synapses": len(self.synapses),
            "synapse_points": sum(len(s.coords) for s in self.synapses),
            "neuropils": len(self.neuropils),
            "users": len(self.users),
            "labels": sum(len(c.labels) for c in self.cells.values()),
            "groups": len(self.groups),
        }, name="count")
