import numpy as np
import pytest

from gpgomea.operators import (
    OpAnd,
    OpNand,
    OpNor,
    OpNot,
    OpOr,
    OperatorType,
    OpVariable,
    OpXor,
    Operator,
)

TABLE = np.array([[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [1.0, 1.0]])


class _Negate(Operator):
    arity = 1

    def invert(self, desired, output_siblings, idx):
        return -np.asarray(desired, dtype=float)


def test_variable_reads_its_column():
    x = np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])
    op = OpVariable(2)
    assert op.compute_output(x).tolist() == [3.0, 6.0]
    assert op.type is OperatorType.TERM_VARIABLE
    assert op.arity == 0


def test_variable_expressions_use_its_name():
    op = OpVariable(4)
    assert op.human_expression([]) == "x4"
    assert op.python_expression([]) == op.name


def test_variable_output_is_a_copy():
    x = np.array([[1.0], [2.0]])
    out = OpVariable(0).compute_output(x)
    out[0] = 50.0
    assert x[0, 0] == 1.0


def test_clone_is_independent():
    op = OpVariable(1)
    twin = op.clone()
    twin.name = "renamed"
    assert op.name == "x1"
    assert type(twin) is OpVariable


def test_and_truth_table():
    assert OpAnd().compute_output(TABLE).tolist() == [0.0, 0.0, 0.0, 1.0]


def test_nand_is_negated_and():
    assert np.array_equal(OpNand().compute_output(TABLE), 1.0 - OpAnd().compute_output(TABLE))


def test_nor_is_negated_or():
    assert np.array_equal(OpNor().compute_output(TABLE), 1.0 - OpOr().compute_output(TABLE))


def test_xor_is_or_without_and():
    expected = OpOr().compute_output(TABLE) - OpAnd().compute_output(TABLE)
    assert np.array_equal(OpXor().compute_output(TABLE), expected)


def test_or_is_true_when_either_is_true():
    out = OpOr().compute_output(TABLE)
    assert np.array_equal(out, np.maximum(TABLE[:, 0], TABLE[:, 1]))


def test_not_twice_restores_truth_value():
    col = np.array([[0.0], [3.0], [-1.0], [0.0]])
    once = OpNot().compute_output(col)
    twice = OpNot().compute_output(once.reshape(-1, 1))
    assert np.array_equal(twice, (col[:, 0] != 0).astype(float))


def test_nonzero_values_count_as_true():
    x = np.array([[2.5, -7.0], [np.nan, 1.0]])
    assert np.array_equal(OpAnd().compute_output(x), np.ones(2))


def test_binary_human_expressions():
    for op in (OpAnd(), OpNand(), OpNor(), OpOr(), OpXor()):
        assert op.human_expression(["a", "b"]) == "(a" + op.name + "b)"


def test_python_expressions():
    assert OpAnd().python_expression(["a", "b"]) == "(a AND b)"
    assert OpOr().python_expression(["a", "b"]) == "(a OR b)"
    assert OpNand().python_expression(["a", "b"]) == "(aNANDb)"
    assert OpNor().python_expression(["a", "b"]) == "(aNORb)"
    assert OpXor().python_expression(["a", "b"]) == "(aXORb)"
    assert OpNot().python_expression(["a"]) == "NOT (a)"


def test_not_human_expression():
    assert OpNot().human_expression(["q"]) == "NOT(q)"


def test_base_operator_is_abstract():
    op = Operator()
    with pytest.raises(NotImplementedError):
        op.compute_output(TABLE)
    with pytest.raises(NotImplementedError):
        op.invert(np.array([1.0]), np.array([]), 0)
    with pytest.raises(NotImplementedError):
        op.invert_and_postproc(np.array([1.0]), np.array([]), 0)
    with pytest.raises(NotImplementedError):
        op.human_expression([])


def test_base_python_expression_is_empty():
    assert Operator().python_expression(["a"]) == ""


def test_invert_and_postproc_returns_inversion():
    desired = np.array([1.0, -2.0, 3.0])
    out = Operator.invert_and_postproc(_Negate(), desired, np.array([]), 0)
    assert out.tolist() == [-1.0, 2.0, -3.0]


def test_boolean_operator_arities():
    assert [op.arity for op in (OpAnd(), OpNot(), OpXor())] == [2, 1, 2]
    assert OpNot().compute_output(np.array([[0.0]])).tolist() == [1.0]