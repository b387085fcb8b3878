"""Tests for the GraphStore: lookup-or-create and its invariants."""

import numpy as np
import pytest

from flygraph.errors import (
    GroupConflictError,
    OrphanContinuationError,
    UnknownCategoryError,
    UserConflictError,
)
from flygraph.graph import GraphStore, SynapseCursor


@pytest.fixture
def store():
    return GraphStore()


@pytest.fixture
def linked(store):
    """Two cells and a neuropil, ready to connect."""
    a, _ = store.get_or_create_cell(1)
    b, _ = store.get_or_create_cell(2)
    mb, _ = store.get_or_create_neuropil("MB_CA_R")
    return store, a, b, mb


# ---------------------------------------------------------------------------
# Cells, users, groups
# ---------------------------------------------------------------------------

class TestCells:

    def test_created_once(self, store):
        first, created = store.get_or_create_cell(100)
        again, created_again = store.get_or_create_cell(100)
        assert created and not created_again
        assert first is again
        assert len(store.cells) == 1

    def test_string_and_int_ids_agree(self, store):
        cell, _ = store.get_or_create_cell("720575940")
        assert store.get_or_create_cell(720575940)[0] is cell

    def test_stub_has_only_id(self, store):
        cell, _ = store.get_or_create_cell(5)
        assert cell.id == 5
        assert cell.cell_type is None
        assert cell.outgoing == [] and cell.labels == []

    def test_read_access_does_not_create(self, store):
        with pytest.raises(KeyError):
            store.cell(9)
        assert store.cells == {}


class TestUsers:

    def test_same_binding_returns_same_user(self, store):
        first = store.bind_user(7, "alice", "lab1")
        second = store.bind_user(7, "alice", "lab1")
        assert first is second

    def test_rebinding_is_a_conflict(self, store):
        store.bind_user(7, "alice", "lab1")
        store.bind_user(7, "alice", "lab1")
        with pytest.raises(UserConflictError) as info:
            store.bind_user(7, "alice", "lab2")
        assert info.value.kind == "user_conflict"
        assert store.user(7).affiliation == "lab1"


class TestGroups:

    def test_same_group_twice_is_fine(self, store):
        cell, _ = store.get_or_create_cell(100)
        store.set_group(cell, "X")
        store.set_group(cell, "X")
        assert cell.group == "X"
        assert store.group("X") == [cell]

    def test_different_group_is_a_conflict(self, store):
        cell, _ = store.get_or_create_cell(100)
        store.set_group(cell, "X")
        with pytest.raises(GroupConflictError):
            store.set_group(cell, "Y")
        assert cell.group == "X"
        assert store.group("Y") == []

    def test_group_index_orders_by_id(self, store):
        for cell_id in (30, 10, 20):
            store.set_group(store.get_or_create_cell(cell_id)[0], "G")
        assert [c.id for c in store.group("G")] == [10, 20, 30]


# ---------------------------------------------------------------------------
# Connections
# ---------------------------------------------------------------------------

class TestConnections:

    def test_registered_in_all_three_places(self, linked):
        store, a, b, mb = linked
        connection = store.register_connection(a, b, mb, 12, "ACH")
        assert (connection.source, connection.target) == (a.id, b.id)
        assert store.outgoing(a) == [connection]
        assert store.incoming(b) == [connection]
        assert store.neuropil_connections("MB_CA_R") == [connection]
        assert store.incoming(a) == [] and store.outgoing(b) == []

    def test_pairs_may_repeat(self, linked):
        store, a, b, mb = linked
        lh, _ = store.get_or_create_neuropil("LH_R")
        store.register_connection(a, b, mb, 12, "ACH")
        store.register_connection(a, b, lh, 3, "ACH")
        assert len(store.outgoing(a)) == 2
        assert [c.neuropil for c in store.incoming(b)] == ["MB_CA_R", "LH_R"]

    def test_syn_count_is_integer(self, linked):
        store, a, b, mb = linked
        assert store.register_connection(a, b, mb, "7", "GABA").syn_count == 7


# ---------------------------------------------------------------------------
# Synapses
# ---------------------------------------------------------------------------

class TestSynapses:

    def test_continuation_rows_extend_one_synapse(self, store):
        store.register_synapse_point(1, 2, (0, 0, 0))
        store.register_synapse_point(None, None, (1, 1, 1))
        store.register_synapse_point("", "", (2, 2, 2))
        assert len(store.synapses) == 1
        assert store.synapses[0].coords == [(0, 0, 0), (1, 1, 1), (2, 2, 2)]

        store.register_synapse_point(3, 4, (3, 3, 3))
        assert len(store.synapses) == 2
        assert store.synapses[1].coords == [(3, 3, 3)]
        assert store.synapses[0].coords[-1] == (2, 2, 2)

    def test_registered_with_both_cells(self, store):
        point = store.register_synapse_point(1, 2, (5, 6, 7))
        assert point.started
        assert store.synapses_from(store.cell(1)) == [point.synapse]
        assert store.synapses_onto(store.cell(2)) == [point.synapse]

    def test_continuation_does_not_register_again(self, store):
        store.register_synapse_point(1, 2, (0, 0, 0))
        point = store.register_synapse_point(None, None, (1, 1, 1))
        assert not point.started
        assert len(store.cell(1).synapses_out) == 1

    def test_stubs_are_reported(self, store):
        store.get_or_create_cell(1)
        point = store.register_synapse_point(1, 2, (0, 0, 0))
        assert point.created == (("post", 2),)

    def test_one_blank_id_carries_the_previous_cell(self, store):
        store.register_synapse_point(1, 2, (0, 0, 0))
        point = store.register_synapse_point(None, 3, (1, 1, 1))
        assert point.started
        assert (point.synapse.source, point.synapse.target) == (1, 3)

    def test_leading_blank_row_is_fatal(self, store):
        with pytest.raises(OrphanContinuationError):
            store.register_synapse_point(None, None, (0, 0, 0))

    def test_leading_half_blank_row_creates_nothing(self, store):
        with pytest.raises(OrphanContinuationError):
            store.register_synapse_point(1, None, (0, 0, 0))
        assert store.cells == {}

    def test_explicit_cursors_are_independent(self, store):
        cursor = SynapseCursor()
        store.register_synapse_point(1, 2, (0, 0, 0), cursor=cursor)
        with pytest.raises(OrphanContinuationError):
            store.register_synapse_point(None, None, (1, 1, 1))
        store.register_synapse_point(None, None, (1, 1, 1), cursor=cursor)
        assert store.synapses[0].coords == [(0, 0, 0), (1, 1, 1)]

    def test_positions_array(self, store):
        store.register_synapse_point(1, 2, (0, 1, 2))
        store.register_synapse_point(None, None, (3, 4, 5))
        positions = store.synapses[0].positions
        assert positions.shape == (2, 3)
        assert np.array_equal(positions[1], [3, 4, 5])


# ---------------------------------------------------------------------------
# Neuropils and summary
# ---------------------------------------------------------------------------

class TestNeuropils:

    def test_lazy_neuropil_has_zero_stats(self, store):
        neuropil, created = store.get_or_create_neuropil("LH_R")
        assert created
        assert neuropil.pre_count_total == 0 and neuropil.post_proof_ratio == 0.0
        assert store.get_or_create_neuropil("LH_R") == (neuropil, False)

    def test_side_stats(self, store):
        neuropil, _ = store.get_or_create_neuropil("MB_CA_R")
        neuropil.set_stats("pre", 1000, 800, 0.8)
        neuropil.set_stats("post", 2000, 1000, 0.5)
        assert neuropil.pre_count_proof == 800
        assert neuropil.post_count_total == 2000

    def test_unknown_side(self, store):
        neuropil, _ = store.get_or_create_neuropil("MB_CA_R")
        with pytest.raises(UnknownCategoryError):
            neuropil.set_stats("both", 1, 1, 1.0)


class TestSummary:

    def test_counts(self, linked):
        store, a, b, mb = linked
        store.register_connection(a, b, mb, 1, "ACH")
        store.register_synapse_point(1, 2, (0, 0, 0))
        store.register_synapse_point(None, None, (1, 0, 0))
        summary = store.summary()
        assert summary["cells"] == 2
        assert summary["connections"] == 1
        assert summary["synapses"] == 1
        assert summary["synapse_points"] == 2
        assert summary["neuropils"] == 1
