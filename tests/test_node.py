import math

import numpy as np
import pytest

from gpgomea.node import Node, NodeType, SingleNode, SubtreeParseType
from gpgomea.operators import OpVariable
from gpgomea.regression import OpPlus, OpRegrConstant, OpSin, OpTimes


def leaf(i):
    return SingleNode(OpVariable(i))


def const(v):
    return SingleNode(OpRegrConstant(v))


def fn(op, *kids):
    n = SingleNode(op)
    for k in kids:
        n.append_child(k)
    return n


X = np.array([[1.0, 2.0], [3.0, -4.0], [0.5, 0.25]])


def test_output_of_sum():
    tree = fn(OpPlus(), leaf(0), leaf(1))
    np.testing.assert_allclose(tree.output(X), X[:, 0] + X[:, 1])


def test_output_nested():
    tree = fn(OpTimes(), fn(OpSin(), leaf(0)), leaf(1))
    np.testing.assert_allclose(tree.output(X), np.sin(X[:, 0]) * X[:, 1])


def test_caching_and_clearing():
    c = const(2.0)
    tree = fn(OpPlus(), leaf(0), c)
    first = tree.output(X, True)
    c.op.set_constant(5.0)
    np.testing.assert_allclose(tree.output(X, True), first)
    c.clear_cached_output(True)
    assert tree.cached_output is None
    np.testing.assert_allclose(tree.output(X, True), X[:, 0] + 5.0)


def test_human_expression():
    tree = fn(OpPlus(), leaf(0), leaf(1))
    assert tree.human_expression() == "(x0+x1)"
    assert tree.python_expression() == "(x0+x1)"


def test_subtree_expression_preorder():
    tree = fn(OpPlus(), leaf(0), leaf(1))
    assert tree.subtree_expression(True) == "+x0x1"


def test_depth_and_height():
    inner = leaf(0)
    s = fn(OpSin(), inner)
    tree = fn(OpPlus(), s, leaf(1))
    assert tree.depth == 0
    assert inner.depth == s.depth + 1
    assert tree.height() == inner.depth
    assert inner.height() == 0
    assert s.height() + s.depth == tree.height()


def test_subtree_orders():
    a, b = leaf(0), leaf(1)
    s = fn(OpSin(), a)
    tree = fn(OpPlus(), s, b)
    assert tree.subtree_nodes(True) == [tree, s, a, b]
    assert tree.subtree_nodes(True, SubtreeParseType.POSTORDER) == [a, s, b, tree]
    assert tree.subtree_nodes(True, SubtreeParseType.LEVELORDER) == [tree, s, b, a]


def test_inactive_children_and_change_operator():
    a, b = leaf(0), leaf(1)
    tree = fn(OpPlus(), a, b)
    old = tree.change_operator(OpSin())
    assert isinstance(old, OpPlus)
    assert a.is_active()
    assert not b.is_active()
    assert b not in tree.subtree_nodes(True)
    assert b in tree.subtree_nodes(False)
    assert tree.height(False) == tree.height(True)


def test_clone_is_independent():
    tree = fn(OpPlus(), leaf(0), leaf(1))
    tree.cached_fitness = 3.0
    copy = tree.clone_subtree()
    assert copy.human_expression() == tree.human_expression()
    assert copy.cached_fitness == tree.cached_fitness
    assert copy.children[0] is not tree.children[0]
    assert copy.children[0].parent is copy
    copy.children[0].change_operator(OpVariable(1))
    assert tree.human_expression() != copy.human_expression()


def test_detach_and_insert():
    a, b = leaf(0), leaf(1)
    tree = fn(OpPlus(), a, b)
    pos = tree.detach_child(a)
    assert a.parent is None
    assert tree.children == [b]
    c = const(1.0)
    tree.insert_child(c, pos)
    assert tree.children == [c, b]
    assert c.relative_index() == pos
    removed = tree.detach_child_at(1)
    assert removed is b and b.parent is None


def test_detach_missing_child_raises():
    tree = fn(OpPlus(), leaf(0), leaf(1))
    with pytest.raises(ValueError):
        tree.detach_child(leaf(0))


def test_relative_index_of_root():
    assert leaf(0).relative_index() == 0
    a, b = leaf(0), leaf(1)
    fn(OpPlus(), a, b)
    assert b.relative_index() == a.relative_index() + 1


def test_desired_output_root_passthrough():
    tree = fn(OpPlus(), leaf(0), leaf(1))
    y = [np.array([1.0]), np.array([2.0]), np.array([3.0])]
    result = tree.desired_output(y, X)
    assert all(np.array_equal(r, w) for r, w in zip(result, y))


def test_desired_output_of_plus_child():
    a = leaf(0)
    fn(OpPlus(), a, const(2.0))
    y = [np.array([v]) for v in (5.0, 7.0, 9.0)]
    result = a.desired_output(y, X)
    np.testing.assert_allclose([r[0] for r in result], [5.0 - 2.0, 7.0 - 2.0, 9.0 - 2.0])


def test_desired_output_uses_sibling_on_second_child():
    b = leaf(1)
    fn(OpPlus(), leaf(0), b)
    y = [np.array([v]) for v in (10.0, 10.0, 10.0)]
    result = b.desired_output(y, X)
    np.testing.assert_allclose([r[0] for r in result], 10.0 - X[:, 0])


def test_desired_output_propagates_dont_care():
    a = leaf(0)
    fn(OpPlus(), a, const(2.0))
    y = [np.array([math.nan]), np.array([4.0]), np.array([4.0])]
    result = a.desired_output(y, X)
    assert math.isnan(result[0][0])
    assert len(result) == len(y)


def test_desired_output_impossible_times_zero():
    a = leaf(0)
    fn(OpTimes(), a, const(0.0))
    y = [np.array([3.0]), np.array([3.0]), np.array([3.0])]
    result = a.desired_output(y, X)
    assert len(result) == 1
    assert math.isinf(result[0][0])


def test_count_non_arithmetic_composition():
    nested = fn(OpSin(), fn(OpSin(), leaf(0)))
    single = fn(OpPlus(), fn(OpSin(), leaf(0)), leaf(1))
    plain = fn(OpPlus(), leaf(0), leaf(1))
    assert nested.count_non_arithmetic_composition() == single.count_non_arithmetic_composition() + 1
    assert plain.count_non_arithmetic_composition() == 0


def test_dominates():
    a, b = leaf(0), leaf(1)
    a.cached_objectives = np.array([1.0, 2.0])
    b.cached_objectives = np.array([1.0, 3.0])
    assert a.dominates(b)
    assert not b.dominates(a)
    assert not a.dominates(a)


def test_type_and_base_is_abstract():
    assert leaf(0).type == NodeType.SINGLE
    with pytest.raises(TypeError):
        Node(NodeType.SINGLE)


def test_unknown_order_raises():
    with pytest.raises(ValueError):
        leaf(0).subtree_nodes(True, "sideways")