import itertools

from landbsync.nodes import Node, order_nodes


def test_order_sorts_by_id(three_nodes):
    shuffled = [three_nodes[2], three_nodes[0], three_nodes[1]]
    assert [n.id for n in order_nodes(shuffled)] == ["srv-a", "srv-b", "srv-c"]


def test_order_is_stable_under_permutation(three_nodes):
    expected = order_nodes(three_nodes)
    for perm in itertools.permutations(three_nodes):
        assert order_nodes(list(perm)) == expected


def test_order_filters_by_label_presence(three_nodes):
    got = order_nodes(three_nodes, "cern-services")
    assert [n.id for n in got] == ["srv-c"]


def test_order_without_label_keeps_everything(three_nodes):
    assert len(order_nodes(three_nodes, None)) == 3
    assert len(order_nodes(three_nodes, "")) == 3


def test_order_does_not_mutate_input():
    nodes = [Node(id="b"), Node(id="a")]
    order_nodes(nodes)
    assert [n.id for n in nodes] == ["b", "a"]


def test_order_accepts_generators():
    got = order_nodes(Node(id=i) for i in ("3", "1", "2"))
    assert [n.id for n in got] == ["1", "2", "3"]
