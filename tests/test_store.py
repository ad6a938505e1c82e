import pytest

from forcegraph import Handle, InvalidRequest, NodeData, NodeEdgeStore, NotFound


def _store_with(count: int):
    store = NodeEdgeStore(capacity=2)
    handles = [store.add_node(NodeData(x=float(i), y=0.0, owner=f"n{i}")) for i in range(count)]
    return store, handles


def test_add_node_assigns_sequential_handles_and_grows():
    store, handles = _store_with(5)

    assert handles == [Handle(i, 0) for i in range(5)]
    assert store.capacity >= 5
    assert len(store) == 5
    assert store.position(handles[3]) == (3.0, 0.0)
    assert store.owner(handles[4]) == "n4"


def test_removed_handle_is_stale_and_slot_is_reused_with_new_generation():
    store, handles = _store_with(3)

    store.remove_node(handles[1])
    assert handles[1] not in store
    with pytest.raises(NotFound):
        store.get(handles[1])

    fresh = store.add_node()
    assert fresh.index == handles[1].index
    assert fresh.generation == handles[1].generation + 1
    assert fresh in store
    assert handles[1] not in store


def test_foreign_objects_are_not_handles():
    store, _ = _store_with(1)

    assert "node" not in store
    assert Handle(7, 0) not in store
    with pytest.raises(NotFound):
        store.position(Handle(7, 0))


def test_add_edge_is_idempotent_and_updates_owner():
    store, (a, b) = _store_with(2)

    store.add_edge(a, b, "first")
    version = store.version
    store.add_edge(b, a, "second")

    assert store.edge_count == 1
    assert store.version == version
    assert store.edge_owner(a, b) == "second"
    assert store.neighbors(a) == [b]
    assert store.neighbors(b) == [a]


def test_self_loop_is_rejected():
    store, (a,) = _store_with(1)

    with pytest.raises(InvalidRequest):
        store.add_edge(a, a)
    assert store.edge_count == 0


def test_remove_edge_requires_existing_edge():
    store, (a, b, c) = _store_with(3)
    store.add_edge(a, b)

    store.remove_edge(b, a)
    assert not store.has_edge(a, b)
    with pytest.raises(NotFound):
        store.remove_edge(a, c)


def test_remove_node_drops_incident_edges():
    store, (a, b, c) = _store_with(3)
    store.add_edge(a, b)
    store.add_edge(b, c)
    store.add_edge(a, c)

    store.remove_node(b)

    assert store.edge_count == 1
    assert store.neighbors(a) == [c]
    assert [(x, y) for x, y, _ in store.edges()] == [(a, c)]


def test_neighbors_keep_insertion_order():
    store, (hub, *leaves) = _store_with(4)
    for leaf in reversed(leaves):
        store.add_edge(hub, leaf)

    assert store.neighbors(hub) == list(reversed(leaves))
    assert store.degree(hub) == 3


def test_set_applies_in_place_mutation():
    store, (a,) = _store_with(1)

    def heavier(data):
        data.mass = 42.0
        data.y = 5.0

    updated = store.set(a, heavier)

    assert updated.mass == 42.0
    assert store.get(a).mass == 42.0
    assert store.position(a) == (0.0, 5.0)


def test_set_accepts_replacement_and_rejects_invalid_data():
    store, (a,) = _store_with(1)

    store.set(a, lambda data: NodeData(x=1.0, y=2.0, mass=3.0, owner="swapped"))
    assert store.owner(a) == "swapped"

    with pytest.raises(InvalidRequest):
        store.set(a, lambda data: NodeData(x=1.0, y=2.0, mass=0.0))
    assert store.get(a).mass == 3.0

    with pytest.raises(InvalidRequest):
        store.set(a, lambda data: "not node data")


def test_anchor_flip_resets_velocity():
    store, (a,) = _store_with(1)
    store.velocities[a.index] = (3.0, -4.0)

    store.set(a, lambda data: setattr(data, "is_anchor", True))

    assert store.velocities[a.index].tolist() == [0.0, 0.0]


def test_add_node_validates_input():
    store = NodeEdgeStore()

    with pytest.raises(InvalidRequest):
        store.add_node(NodeData(x=float("nan")))
    with pytest.raises(InvalidRequest):
        store.add_node(NodeData(repel_radius=-1.0))
    assert len(store) == 0


def test_directed_edge_slots_list_both_directions():
    store, (a, b, c) = _store_with(3)
    store.add_edge(a, b)
    store.add_edge(b, c)

    src, dst = store.directed_edge_slots()

    pairs = sorted(zip(src.tolist(), dst.tolist()))
    assert pairs == [(0, 1), (1, 0), (1, 2), (2, 1)]


def test_clear_invalidates_every_handle():
    store, handles = _store_with(3)
    store.add_edge(handles[0], handles[1])

    store.clear()

    assert len(store) == 0
    assert store.edge_count == 0
    assert all(h not in store for h in handles)
    fresh = store.add_node()
    assert fresh == Handle(0, 1)
