import math

import numpy as np

from gpgomea.node import SingleNode
from gpgomea.operators import OpVariable
from gpgomea.regression import OpPlus, OpRegrConstant, OpTimes
from gpgomea.semantic_library import SemanticLibrary, SemanticLibraryType
from gpgomea.tree_init import TreeInitializer
from gpgomea.utils import compute_distance, hash_vector

TRAIN_X = np.array([[1.0, 2.0], [2.0, 5.0], [3.0, 1.0], [4.0, 7.0]])


def _var(i):
    return SingleNode(OpVariable(i))


def _binary(op, left, right):
    node = SingleNode(op)
    node.append_child(left)
    node.append_child(right)
    return node


def test_new_library_is_empty_and_types_are_listed():
    lib = SemanticLibrary()
    assert len(lib) == 0
    assert {t.name for t in SemanticLibraryType} == {"RANDOM_STATIC", "RANDOM_DYNAMIC", "POPULATION"}


def test_population_library_stores_all_distinct_subtrees():
    lib = SemanticLibrary()
    lib.generate_population_library(3, 10, [_binary(OpPlus(), _var(0), _var(1))], TRAIN_X)
    assert len(lib) == 3
    assert sorted(node.value for node, _ in lib.stored_solutions.values()) == ["+", "x0", "x1"]


def test_stored_keys_are_output_hashes():
    lib = SemanticLibrary()
    lib.generate_population_library(3, 10, [_binary(OpPlus(), _var(0), _var(1))], TRAIN_X)
    for key, (_, out) in lib.stored_solutions.items():
        assert key == hash_vector(out)


def test_constants_are_rejected():
    lib = SemanticLibrary()
    tree = _binary(OpPlus(), _var(0), SingleNode(OpRegrConstant(2.0)))
    lib.generate_population_library(3, 10, [tree], TRAIN_X)
    assert len(lib) == 2
    assert all(node.value != "2.000000" for node, _ in lib.stored_solutions.values())


def test_duplicate_semantics_keep_smaller_tree():
    lib = SemanticLibrary()
    tree = _binary(OpPlus(), _var(0), SingleNode(OpRegrConstant(0.0)))
    lib.generate_population_library(3, 10, [tree], TRAIN_X)
    assert len(lib) == 1
    (node, _), = lib.stored_solutions.values()
    assert node.value == "x0"
    result = lib.closest_subtree(TRAIN_X[:, 0], 3)
    assert result.node is node
    assert result.distance == 0


def test_library_size_limit():
    lib = SemanticLibrary()
    lib.generate_population_library(3, 2, [_binary(OpPlus(), _var(0), _var(1))], TRAIN_X)
    assert len(lib) == 2


def test_height_limit_keeps_only_leaves():
    lib = SemanticLibrary()
    lib.generate_population_library(0, 10, [_binary(OpPlus(), _var(0), _var(1))], TRAIN_X)
    assert all(node.height() == 0 for node, _ in lib.stored_solutions.values())
    assert len(lib) == 2


def test_closest_subtree_exact_match():
    lib = SemanticLibrary()
    lib.generate_population_library(3, 10, [_binary(OpPlus(), _var(0), _var(1))], TRAIN_X)
    result = lib.closest_subtree(TRAIN_X[:, 1], 3)
    assert result.node.value == "x1"
    assert result.distance == 0
    assert result.scaling is None


def test_closest_subtree_respects_max_height():
    lib = SemanticLibrary()
    tree = _binary(OpPlus(), _var(0), _var(1))
    lib.generate_population_library(3, 10, [tree], TRAIN_X)
    query = tree.output(TRAIN_X)
    result = lib.closest_subtree(query, 0)
    assert result.node.height() == 0
    assert result.distance > 0
    assert math.isclose(result.distance, compute_distance(query, result.node.output(TRAIN_X)))


def test_closest_subtree_dont_care_query():
    lib = SemanticLibrary()
    lib.generate_population_library(3, 10, [_binary(OpPlus(), _var(0), _var(1))], TRAIN_X)
    query = [np.array([math.nan])] * TRAIN_X.shape[0]
    result = lib.closest_subtree(query, 3)
    assert result.distance == 0
    assert result.node is not None and result.node.value in {"+", "x0", "x1"}


def test_empty_library_finds_nothing():
    lib = SemanticLibrary()
    result = lib.closest_subtree(TRAIN_X[:, 0], 5)
    assert result.node is None
    assert math.isinf(result.distance)


def test_normalized_library_records_mean():
    lib = SemanticLibrary(normalize_outputs=True)
    lib.generate_population_library(3, 10, [_binary(OpPlus(), _var(0), _var(1))], TRAIN_X)
    by_name = {node.value: node for node, _ in lib.stored_solutions.values()}
    m, sd = lib.normalization_stored_solutions_mean_std[by_name["x0"]]
    assert math.isclose(m, float(np.mean(TRAIN_X[:, 0])))
    assert sd > 0
    for _, out in lib.stored_solutions.values():
        assert abs(float(np.mean(out))) < 1e-12


def test_linear_parse_with_scaling():
    lib = SemanticLibrary(normalize_outputs=True, linear_parse_library=True)
    lib.generate_population_library(3, 10, [_binary(OpPlus(), _var(0), _var(1))], TRAIN_X)
    query = 5.0 * TRAIN_X[:, 0] + 2.0
    result = lib.closest_subtree(query, 2, want_scaling=True)
    assert result.node.value == "x0"
    assert result.distance < 1e-9
    a, b = result.scaling
    assert math.isclose(a, 2.0, abs_tol=1e-9)
    assert math.isclose(b, 5.0, abs_tol=1e-9)


def test_linear_parse_without_scaling_uses_dont_cares():
    lib = SemanticLibrary(linear_parse_library=True)
    lib.generate_population_library(3, 10, [_binary(OpPlus(), _var(0), _var(1))], TRAIN_X)
    result = lib.closest_subtree(TRAIN_X[:, 1], 2)
    assert result.node.value == "x1"
    assert result.distance == 0
    assert result.scaling is None


def test_random_library_unique_and_non_constant():
    rng = np.random.default_rng(3)
    lib = SemanticLibrary()
    lib.generate_random_library(
        3, 5, TRAIN_X, [OpPlus(), OpTimes()], [OpVariable(0), OpVariable(1)],
        TreeInitializer(rng=rng), False, rng,
    )
    assert 0 < len(lib) <= 5
    keys = [hash_vector(out) for _, out in lib.stored_solutions.values()]
    assert len(set(keys)) == len(keys)
    for _, out in lib.stored_solutions.values():
        assert not np.all(out == out[0])


def test_random_library_of_constants_is_empty():
    rng = np.random.default_rng(0)
    lib = SemanticLibrary()
    lib.max_tries = 20
    lib.generate_random_library(
        3, 5, TRAIN_X, [OpPlus()], [OpRegrConstant(1.0)], TreeInitializer(rng=rng), False, rng,
    )
    assert len(lib) == 0
    assert math.isinf(lib.closest_subtree(TRAIN_X[:, 0], 5).distance)