"""
Unit Tests for graph.asset_graph

Tests for grouping, deletion cascades, reparenting, region mutations,
the stitch queue and transactional rejection.
"""

import pytest

from conftest import make_layer
from stitch_toolkit.core.errors import (
    GraphInvariantViolation,
    OwnerNotFound,
    RegionLocked,
    RegionNotFound,
)
from stitch_toolkit.core.geometry import Rect
from stitch_toolkit.core.models import Region
from stitch_toolkit.graph import AssetGraph


def assert_consistent(graph: AssetGraph) -> None:
    """No layer points at a missing group and no group lists a missing layer."""
    for layer in graph.layers:
        if layer.group_id is not None:
            assert graph.has_group(layer.group_id)
            assert layer.id in graph.get_group(layer.group_id).member_layer_ids
    for group in graph.groups:
        for lid in group.member_layer_ids:
            assert graph.get_layer(lid).group_id == group.id
        if group.parent_group_id is not None:
            assert graph.has_group(group.parent_group_id)


@pytest.fixture
def three_layers(graph):
    return tuple(graph.add_layer(make_layer(name=f"l{i}.png")) for i in range(3))


class TestGrouping:
    """Tests for group() / ungroup()."""

    # ─────────────────────────────────────────────────────────────────────────
    # group
    # ─────────────────────────────────────────────────────────────────────────

    def test_group_when_two_ungrouped_then_members_in_given_order(self, graph, three_layers):
        a, b, _ = three_layers
        group = graph.group([b.id, a.id])

        assert group.member_layer_ids == (b.id, a.id)
        assert group.name == "Group 1"
        assert graph.get_layer(a.id).group_id == group.id
        assert graph.selection.asset_id == group.id
        assert_consistent(graph)

    def test_group_when_single_layer_then_rejected_without_mutation(self, graph, three_layers):
        revision = graph.revision
        with pytest.raises(GraphInvariantViolation):
            graph.group([three_layers[0].id])
        assert graph.revision == revision
        assert graph.groups == ()

    def test_group_when_layer_already_grouped_then_rejected(self, graph, three_layers):
        a, b, c = three_layers
        graph.group([a.id, b.id])
        with pytest.raises(GraphInvariantViolation, match="already belongs"):
            graph.group([b.id, c.id])
        assert graph.get_layer(c.id).group_id is None
        assert len(graph.groups) == 1

    def test_group_when_unknown_id_then_owner_not_found(self, graph, three_layers):
        with pytest.raises(OwnerNotFound):
            graph.group([three_layers[0].id, "nope"])
        assert graph.groups == ()

    # ─────────────────────────────────────────────────────────────────────────
    # ungroup
    # ─────────────────────────────────────────────────────────────────────────

    def test_ungroup_when_called_then_members_released_not_deleted(self, graph, three_layers):
        a, b, _ = three_layers
        group = graph.group([a.id, b.id])

        released = graph.ungroup(group.id)

        assert released == (a.id, b.id)
        assert not graph.has_group(group.id)
        assert graph.get_layer(a.id).group_id is None
        assert len(graph.layers) == 3

    def test_ungroup_when_subgroups_then_detached_as_roots(self, graph, three_layers):
        a, b, _ = three_layers
        parent = graph.group([a.id, b.id])
        child = graph.create_subgroup(parent.id, [make_layer()])

        graph.ungroup(parent.id)

        assert graph.get_group(child.id).parent_group_id is None
        assert_consistent(graph)


class TestDeletion:
    """Tests for delete_group() / delete_layer() / delete_items()."""

    def test_delete_group_when_nested_subgroups_then_whole_subtree_removed(self, graph, three_layers):
        a, b, c = three_layers
        root = graph.group([a.id, b.id])
        sub1 = graph.create_subgroup(root.id, [make_layer(), make_layer()])
        sub2 = graph.create_subgroup(root.id, [make_layer()])
        sub1_layers = graph.get_group(sub1.id).member_layer_ids

        removed = graph.delete_group(root.id)

        assert {root.id, sub1.id, sub2.id} <= removed
        assert set(sub1_layers) <= removed
        assert graph.groups == ()
        assert [l.id for l in graph.layers] == [c.id]
        assert_consistent(graph)

    def test_delete_group_when_selected_inside_subtree_then_selection_cleared(self, graph, three_layers):
        a, b, _ = three_layers
        root = graph.group([a.id, b.id])
        graph.select(a.id)

        graph.delete_group(root.id)

        assert graph.selection.is_empty

    def test_delete_layer_when_grouped_then_group_kept_with_one_member(self, graph, three_layers):
        a, b, _ = three_layers
        group = graph.group([a.id, b.id])

        graph.delete_layer(a.id)

        assert graph.get_group(group.id).member_layer_ids == (b.id,)
        assert_consistent(graph)

    def test_delete_layer_when_queued_then_queue_purged(self, graph, three_layers):
        a = three_layers[0]
        region = graph.add_region(a.id, Region.create(Rect(0, 0, 50, 50)))
        graph.enqueue_stitch(a.id, region.id)

        graph.delete_layer(a.id)

        assert graph.stitch_queue == ()

    def test_delete_items_when_mixed_then_all_removed_in_one_revision(self, graph, three_layers):
        a, b, c = three_layers
        group = graph.group([a.id, b.id])
        revision = graph.revision

        removed = graph.delete_items([group.id, a.id, c.id])

        assert removed == {group.id, a.id, b.id, c.id}
        assert graph.layers == ()
        assert graph.revision == revision + 1

    def test_delete_items_when_unknown_id_then_nothing_deleted(self, graph, three_layers):
        with pytest.raises(OwnerNotFound):
            graph.delete_items([three_layers[0].id, "ghost"])
        assert len(graph.layers) == 3


class TestMoveAndReorder:
    """Tests for move_layer() / reorder_group_members()."""

    def test_move_when_target_is_group_then_appended(self, graph, three_layers):
        a, b, c = three_layers
        group = graph.group([a.id, b.id])

        result = graph.move_layer(c.id, group.id)

        assert result.member_layer_ids == (a.id, b.id, c.id)
        assert graph.get_layer(c.id).group_id == group.id

    def test_move_when_target_is_ungrouped_layer_then_new_group(self, graph, three_layers):
        a, b, _ = three_layers

        group = graph.move_layer(a.id, b.id)

        assert group.member_layer_ids == (b.id, a.id)
        assert_consistent(graph)

    def test_move_when_target_is_grouped_layer_then_joins_its_group(self, graph, three_layers):
        a, b, c = three_layers
        group = graph.group([a.id, b.id])

        result = graph.move_layer(c.id, a.id)

        assert result.id == group.id
        assert result.member_layer_ids[-1] == c.id

    def test_move_when_leaving_group_then_old_order_preserved(self, graph, three_layers):
        a, b, c = three_layers
        old = graph.group([a.id, b.id, c.id])
        other = graph.add_layer(make_layer())

        graph.move_layer(b.id, other.id)

        assert graph.get_group(old.id).member_layer_ids == (a.id, c.id)
        assert_consistent(graph)

    def test_move_when_onto_itself_then_rejected(self, graph, three_layers):
        with pytest.raises(GraphInvariantViolation):
            graph.move_layer(three_layers[0].id, three_layers[0].id)

    def test_reorder_when_valid_indices_then_list_move(self, graph, three_layers):
        a, b, c = three_layers
        group = graph.group([a.id, b.id, c.id])

        result = graph.reorder_group_members(group.id, 0, 2)

        assert result.member_layer_ids == (b.id, c.id, a.id)

    def test_reorder_when_index_out_of_range_then_rejected(self, graph, three_layers):
        a, b, _ = three_layers
        group = graph.group([a.id, b.id])
        with pytest.raises(GraphInvariantViolation, match="out of range"):
            graph.reorder_group_members(group.id, 0, 5)
        assert graph.get_group(group.id).member_layer_ids == (a.id, b.id)


class TestSubgroupsAndNames:
    """Tests for create_subgroup() / rename_group() / tree()."""

    def test_create_subgroup_when_called_then_nested_and_named(self, graph, three_layers):
        a, b, _ = three_layers
        parent = graph.group([a.id, b.id])

        sub = graph.create_subgroup(parent.id, [make_layer(), make_layer()])

        assert sub.parent_group_id == parent.id
        assert sub.name == "Selection Stitch 1"
        assert graph.subgroups(parent.id) == (sub,)
        assert graph.descendant_group_ids(parent.id) == (parent.id, sub.id)
        assert_consistent(graph)

    def test_rename_when_blank_then_rejected(self, graph, three_layers):
        a, b, _ = three_layers
        group = graph.group([a.id, b.id])
        with pytest.raises(GraphInvariantViolation):
            graph.rename_group(group.id, "   ")
        assert graph.rename_group(group.id, "Scans").name == "Scans"

    def test_tree_when_nested_then_subgroups_inside_parent(self, graph, three_layers):
        a, b, c = three_layers
        parent = graph.group([a.id, b.id])
        sub = graph.create_subgroup(parent.id, [make_layer()])

        tree = graph.tree()

        assert [g["id"] for g in tree["groups"]] == [parent.id]
        assert tree["groups"][0]["subgroups"][0]["id"] == sub.id
        assert [l["id"] for l in tree["layers"]] == [c.id]


class TestRegions:
    """Tests for region mutations and lock policy."""

    @pytest.fixture
    def layer_with_region(self, graph):
        layer = graph.add_layer(make_layer())
        region = graph.add_region(layer.id, Region.create(Rect(10, 10, 20, 20)))
        return layer, region

    def test_update_rect_when_unlocked_then_replaced_by_id(self, graph, layer_with_region):
        layer, region = layer_with_region
        graph.update_region_rect(layer.id, region.id, Rect(50, 50, 10, 10))
        assert graph.get_region(layer.id, region.id).rect == Rect(50, 50, 10, 10)

    def test_update_rect_when_locked_then_region_locked(self, graph, layer_with_region):
        layer, region = layer_with_region
        graph.set_locked(layer.id, region.id, True)
        with pytest.raises(RegionLocked):
            graph.update_region_rect(layer.id, region.id, Rect(50, 50, 10, 10))
        assert graph.get_region(layer.id, region.id).rect == Rect(10, 10, 20, 20)

    def test_delete_when_locked_then_region_locked(self, graph, layer_with_region):
        layer, region = layer_with_region
        graph.toggle_lock(layer.id, region.id)
        with pytest.raises(RegionLocked):
            graph.delete_region(layer.id, region.id)

    def test_set_replacement_when_locked_then_allowed(self, graph, layer_with_region):
        layer, region = layer_with_region
        graph.set_locked(layer.id, region.id, True)

        updated = graph.set_replacement(layer.id, region.id, b"edited")

        assert updated.replacement_src == b"edited"
        assert graph.clear_replacement(layer.id, region.id).replacement_src is None

    def test_get_region_when_stale_id_then_region_not_found(self, graph, layer_with_region):
        layer, _ = layer_with_region
        with pytest.raises(RegionNotFound):
            graph.get_region(layer.id, "stale")


class TestStitchQueue:
    """Tests for enqueue_stitch() and queue management."""

    @pytest.fixture
    def regions(self, graph):
        layer = graph.add_layer(make_layer())
        r1 = graph.add_region(layer.id, Region.create(Rect(0, 0, 10, 10)))
        r2 = graph.add_region(layer.id, Region.create(Rect(50, 50, 10, 10)))
        return layer, r1, r2

    def test_enqueue_when_resolves_then_appended_and_flagged(self, graph, regions):
        layer, r1, r2 = regions
        graph.enqueue_stitch(layer.id, r2.id)
        graph.enqueue_stitch(layer.id, r1.id)

        assert [i.region_id for i in graph.stitch_queue] == [r2.id, r1.id]
        assert graph.get_region(layer.id, r1.id).is_queued is True

    def test_enqueue_when_region_missing_then_rejected(self, graph, regions):
        layer = regions[0]
        with pytest.raises(RegionNotFound):
            graph.enqueue_stitch(layer.id, "missing")
        assert graph.stitch_queue == ()

    def test_enqueue_when_owner_missing_then_rejected(self, graph, regions):
        with pytest.raises(OwnerNotFound):
            graph.enqueue_stitch("missing", regions[1].id)

    def test_remove_item_when_last_reference_then_flag_cleared(self, graph, regions):
        layer, r1, _ = regions
        first = graph.enqueue_stitch(layer.id, r1.id)
        second = graph.enqueue_stitch(layer.id, r1.id)

        graph.remove_stitch_item(first.id)
        assert graph.get_region(layer.id, r1.id).is_queued is True

        graph.remove_stitch_item(second.id)
        assert graph.get_region(layer.id, r1.id).is_queued is False

    def test_move_item_when_at_edge_then_no_change(self, graph, regions):
        layer, r1, r2 = regions
        graph.enqueue_stitch(layer.id, r1.id)
        graph.enqueue_stitch(layer.id, r2.id)

        assert graph.move_stitch_item(0, -1) is False
        assert graph.move_stitch_item(0, 1) is True
        assert [i.region_id for i in graph.stitch_queue] == [r2.id, r1.id]

    def test_delete_region_when_queued_then_queue_purged(self, graph, regions):
        layer, r1, r2 = regions
        graph.enqueue_stitch(layer.id, r1.id)
        graph.enqueue_stitch(layer.id, r2.id)

        graph.delete_region(layer.id, r1.id)

        assert [i.region_id for i in graph.stitch_queue] == [r2.id]

    def test_reorder_queue_when_valid_then_moved(self, graph, regions):
        layer, r1, r2 = regions
        graph.enqueue_stitch(layer.id, r1.id)
        graph.enqueue_stitch(layer.id, r2.id)
        graph.enqueue_stitch(layer.id, r1.id)

        graph.reorder_stitch_queue(2, 0)

        assert [i.region_id for i in graph.stitch_queue] == [r1.id, r1.id, r2.id]


class TestSelection:
    """Tests for select() and pruning."""

    def test_select_when_unknown_asset_then_owner_not_found(self, graph):
        with pytest.raises(OwnerNotFound):
            graph.select("ghost")

    def test_selection_when_region_deleted_then_region_cleared_asset_kept(self, graph):
        layer = graph.add_layer(make_layer())
        region = graph.add_region(layer.id, Region.create(Rect(0, 0, 10, 10)))
        graph.select_region(layer.id, region.id)

        graph.delete_region(layer.id, region.id)

        assert graph.selection.asset_id == layer.id
        assert graph.selection.region_id is None
