"""
Tests for Edge Store and Graph Builder — the influence projection

These tests validate:
- Edges derive only from character sheets, rebuilt in full
- have_influence_over adds self -> name, has_influence_over adds name -> self
- Malformed sheet data is skipped, never fatal
- Version moves exactly once per rebuild
"""

from influence.core.graph import EdgeStore, GraphBuilder
from influence.core.names import composite_key, normalize
from influence.services.store import MemoryRecordStore
from tests.factories import entry


class TestEdgeStore:
    """Adjacency map and version counter."""

    def test_add_edge_creates_target_set(self):
        edges = EdgeStore()
        edges.add_edge("beacon", "legacy")
        edges.add_edge("beacon", "nova")
        edges.add_edge("beacon", "legacy")
        assert edges.targets("beacon") == {"legacy", "nova"}

    def test_from_keys_keep_insertion_order(self):
        edges = EdgeStore()
        edges.add_edge("zeta", "a")
        edges.add_edge("alpha", "b")
        assert list(edges.from_keys()) == ["zeta", "alpha"]

    def test_unknown_key_has_no_targets(self):
        assert EdgeStore().targets("nobody") == set()

    def test_snapshot_is_sorted_copy(self):
        edges = EdgeStore()
        edges.add_edge("nova", "legacy")
        edges.add_edge("nova", "beacon")
        snapshot = edges.snapshot()
        assert snapshot == {"nova": ["beacon", "legacy"]}
        snapshot["nova"].append("x")
        assert "x" not in edges.targets("nova")

    def test_stats(self):
        edges = EdgeStore()
        edges.add_edge("a", "b")
        edges.add_edge("a", "c")
        edges.bump()
        assert edges.stats() == {"from_keys": 1, "edges": 2, "version": 1}


class TestRebuild:
    """Full rescan of the cast."""

    def test_empty_cast_gives_empty_graph(self, cast):
        index = cast.index()
        assert index.edges.edges == {}
        assert index.has_edge("beacon", "legacy") is False

    def test_have_influence_adds_outgoing_edge(self, cast):
        beacon = cast.character("Beacon", influences=[entry("Legacy", have=True)])
        index = cast.index()

        assert index.has_edge(composite_key(beacon), normalize("Legacy")) is True
        assert index.has_edge(normalize("Legacy"), composite_key(beacon)) is False

    def test_has_influence_adds_incoming_edge(self, cast):
        beacon = cast.character("Beacon", influences=[entry("Nova", has=True)])
        index = cast.index()

        assert index.edges.snapshot() == {"nova": ["beacon"]}
        assert index.has_edge("nova", composite_key(beacon)) is True

    def test_reverse_edge_requires_own_declaration(self, cast):
        beacon = cast.character("Beacon", influences=[entry("Legacy", have=True)])
        cast.character("Legacy", influences=[entry("Beacon", has=True)])
        index = cast.index()

        # Legacy's "Beacon has Influence over me" is the same direction
        assert index.has_edge("legacy", composite_key(beacon)) is False

    def test_both_flags_add_both_edges(self, cast):
        cast.character("Beacon", influences=[entry("Legacy", have=True, has=True)])
        index = cast.index()
        assert index.edges.snapshot() == {"beacon": ["legacy"], "legacy": ["beacon"]}

    def test_titled_names_meet(self, team):
        """'The Beacon' typed on Legacy's sheet matches Beacon's record."""
        team.cast.store._records[team.legacy.id].influences = [entry("The Beacon", has=True)]
        index = team.cast.index()
        assert index.has_influence(team.beacon, team.legacy) is True

    def test_self_key_uses_all_record_names(self, team):
        index = team.cast.index()
        assert "beacon|alexchen" in index.edges.snapshot()

    def test_npc_sheets_ignored(self, cast):
        cast.npc("Villain", influences=[entry("Beacon", have=True)])
        index = cast.index()
        assert index.edges.edges == {}

    def test_nameless_character_ignored(self, cast):
        cast.character("", influences=[entry("Beacon", have=True)])
        index = cast.index()
        assert index.edges.edges == {}

    def test_entries_with_empty_names_skipped(self, cast):
        cast.character("Beacon", influences=[
            entry("", have=True),
            entry("The", have=True),
            {"name": None, "haveInfluenceOver": True},
            entry("Legacy", have=True),
        ])
        index = cast.index()
        assert index.edges.snapshot() == {"beacon": ["legacy"]}

    def test_malformed_influences_skipped(self, cast):
        cast.character("Beacon", influences="not a list")
        cast.character("Legacy", influences=None)
        cast.character("Nova", influences=[None, 5, "x", entry("Beacon", have=True)])
        index = cast.index()
        assert index.edges.snapshot() == {"nova": ["beacon"]}

    def test_only_literal_true_counts(self, cast):
        cast.character("Beacon", influences=[
            {"name": "Legacy", "haveInfluenceOver": "true"},
            {"name": "Nova", "haveInfluenceOver": 1},
        ])
        index = cast.index()
        assert index.edges.edges == {}

    def test_deterministic_and_versioned(self, team):
        index = team.cast.index()
        first = index.edges.snapshot()
        v1 = index.version

        index.rebuild()
        assert index.edges.snapshot() == first
        assert index.version == v1 + 1

        index.rebuild()
        assert index.version == v1 + 2

    def test_rebuild_drops_removed_edges(self, team):
        index = team.cast.index()
        team.cast.store._records[team.beacon.id].influences = []
        index.rebuild()
        assert index.edges.edges == {}


class BrokenListingStore(MemoryRecordStore):
    def list_character_records(self):
        raise RuntimeError("backend offline")


class BrokenReadStore(MemoryRecordStore):
    def read_relationship_entries(self, record):
        if record.name == "Beacon":
            raise RuntimeError("corrupt sheet")
        return super().read_relationship_entries(record)


class TestRebuildNeverRaises:
    """A bad store degrades to a partial graph, not an exception."""

    def test_listing_failure_gives_empty_graph(self):
        edges = EdgeStore()
        builder = GraphBuilder(BrokenListingStore(), edges)

        assert builder.rebuild() == 1
        assert edges.edges == {}

    def test_failing_record_is_skipped(self, cast):
        store = BrokenReadStore()
        for record in (
            cast.character("Beacon", influences=[entry("Legacy", have=True)]),
            cast.character("Nova", influences=[entry("Legacy", have=True)]),
        ):
            store._records[record.id] = record

        edges = EdgeStore()
        GraphBuilder(store, edges).rebuild()
        assert edges.snapshot() == {"nova": ["legacy"]}
