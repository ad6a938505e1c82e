import itertools

import numpy as np
import pytest

from forcegraph import PRIMORDIAL_COMPONENT, ForceGraph, NodeData, NotFound


def _graph(node_count, edges, anchors=()):
    graph = ForceGraph()
    handles = [graph.add_node(NodeData(x=float(i), y=0.0, is_anchor=i in anchors)) for i in range(node_count)]
    for a, b in edges:
        graph.add_edge(handles[a], handles[b])
    return graph, handles


def _reference_components(node_count, edges):
    parent = list(range(node_count))

    def find(i):
        while parent[i] != i:
            parent[i] = parent[parent[i]]
            i = parent[i]
        return i

    for a, b in edges:
        parent[find(a)] = find(b)
    return [find(i) for i in range(node_count)]


def _random_edges(rng, node_count, edge_count):
    edges = set()
    while len(edges) < edge_count:
        a, b = rng.integers(node_count, size=2)
        if a != b:
            edges.add((int(min(a, b)), int(max(a, b))))
    return sorted(edges)


@pytest.mark.parametrize("seed", range(8))
def test_components_match_union_find(seed):
    rng = np.random.default_rng(seed)
    node_count = int(rng.integers(1, 50))
    max_edges = node_count * (node_count - 1) // 2
    edges = _random_edges(rng, node_count, int(rng.integers(0, min(max_edges, node_count) + 1)))
    graph, handles = _graph(node_count, edges)

    expected = _reference_components(node_count, edges)
    for i, j in itertools.combinations(range(node_count), 2):
        assert graph.same_component(handles[i], handles[j]) == (expected[i] == expected[j])
    assert graph.component_count() == len(set(expected))


def test_component_labels_are_canonical():
    graph, handles = _graph(5, [(3, 4), (1, 2)])

    assert graph.component_id(handles[0]) == PRIMORDIAL_COMPONENT
    assert graph.component_id(handles[1]) == 1
    assert graph.component_id(handles[4]) == 2
    assert graph.components() == {0: [handles[0]], 1: [handles[1], handles[2]], 2: [handles[3], handles[4]]}


def test_component_cache_follows_edits():
    graph, (a, b, c) = _graph(3, [(0, 1)])
    assert not graph.is_connected(a, c)

    graph.add_edge(b, c)
    assert graph.is_connected(a, c)

    graph.remove_edge(a, b)
    assert not graph.is_connected(a, c)
    assert graph.is_connected(b, c)


def test_removal_tree_on_path_keeps_root_side():
    graph, (root, a, b, c) = _graph(4, [(0, 1), (1, 2), (2, 3)])

    tree = graph.removal_tree(b, root)

    assert set(tree) == {b, c}
    assert tree.remainder is None
    assert graph.topology.deletion_count(b, root) == 2
    assert graph.topology.deletion_count(a, root) == 3


def test_removal_tree_spares_nodes_with_another_route_to_root():
    # 0 - 1 - 2 and 0 - 3 - 2 form a cycle; 4 hangs off 1.
    graph, h = _graph(5, [(0, 1), (1, 2), (0, 3), (3, 2), (1, 4)])

    tree = graph.removal_tree(h[1], h[0])

    assert set(tree) == {h[1], h[4]}


def test_removal_tree_across_components_is_empty():
    graph, (a, b, c) = _graph(3, [(0, 1)])

    tree = graph.removal_tree(c, a)

    assert len(tree) == 0
    assert tree.remainder is None


def test_removing_primordial_root_spares_nearest_node():
    # Nodes 1 and 2 are both one hop from the root; the lower slot wins.
    graph, h = _graph(4, [(0, 2), (2, 3), (0, 1)])

    tree = graph.removal_tree(h[0], h[0])

    assert tree.remainder == h[1]
    assert set(tree) == {h[0], h[2], h[3]}


def test_removing_primordial_root_leaves_other_components_alone():
    graph, h = _graph(6, [(0, 1), (1, 2), (3, 4), (4, 5)], anchors=(0, 3))
    others_before = {node: graph.get(node) for node in h[3:]}

    tree = graph.removal_tree(h[0], h[0])

    assert tree.remainder == h[1]
    assert set(tree) == {h[0], h[2]}
    assert not any(node in tree for node in h[3:])

    for node in tree:
        graph.remove_node(node)
    assert {node: graph.get(node) for node in h[3:]} == others_before
    assert graph.has_edge(h[3], h[4]) and graph.has_edge(h[4], h[5])
    assert graph.same_component(h[3], h[5])
    assert not graph.same_component(h[1], h[3])


def test_removing_secondary_root_takes_whole_component():
    graph, h = _graph(5, [(0, 1), (2, 3), (3, 4)], anchors=(0, 2))

    tree = graph.removal_tree(h[2], h[2])

    assert tree.remainder is None
    assert set(tree) == {h[2], h[3], h[4]}


def test_removing_isolated_primordial_root_has_no_remainder():
    graph, (a,) = _graph(1, [])

    tree = graph.removal_tree(a, a)

    assert set(tree) == {a}
    assert tree.remainder is None


@pytest.mark.parametrize("seed", range(6))
def test_removal_tree_of_random_tree_is_the_subtree(seed):
    rng = np.random.default_rng(100 + seed)
    node_count = int(rng.integers(3, 30))
    parents = {child: int(rng.integers(child)) for child in range(1, node_count)}
    graph, handles = _graph(node_count, parents.items())

    start = int(rng.integers(1, node_count))
    tree = graph.removal_tree(handles[start], handles[0])

    def descends_from_start(node):
        while node != 0:
            if node == start:
                return True
            node = parents[node]
        return False

    expected = {handles[n] for n in range(node_count) if descends_from_start(n)}
    assert set(tree) == expected
    assert handles[0] not in tree

    # Nothing outside the tree loses its path to the root.
    for node in tree:
        graph.remove_node(node)
    for survivor in graph.nodes():
        assert graph.is_connected(survivor, handles[0])


def test_sole_anchor_detection():
    graph, (hub, a, b, *_) = _graph(5, [(0, 1), (0, 2), (0, 3), (0, 4)], anchors=(0,))

    assert graph.is_sole_anchor(hub)
    assert not graph.is_sole_anchor(a)

    graph.set(b, lambda data: setattr(data, "is_anchor", True))
    assert not graph.is_sole_anchor(hub)
    assert graph.topology.anchors_in_component(a) == [hub, b]


def test_queries_reject_stale_handles():
    graph, (a, b) = _graph(2, [(0, 1)])
    graph.remove_node(b)

    with pytest.raises(NotFound):
        graph.component_id(b)
    with pytest.raises(NotFound):
        graph.removal_tree(b, a)
