import numpy as np
import pytest
import scipy.sparse as sp

from conic_bridge.reformulate.bridge import LPQPtoConicBridge
from conic_bridge.reformulate.utils import build_lpqp_problem


def make_linear_problem():
    # Four rows, one per linear cone kind, over three variables.
    A = np.array(
        [
            [1.0, 2.0, 0.0],
            [0.0, 1.0, -1.0],
            [3.0, 0.0, 1.0],
            [1.0, 1.0, 1.0],
        ]
    )
    b = np.array([5.0, -2.0, 7.0, 1.5])
    c = np.array([1.0, -1.0, 0.5])
    constr_cones = [("Zero", [0]), ("NonNeg", [1]), ("NonPos", [2]), ("Free", [3])]
    var_cones = [("NonNeg", [0]), ("NonPos", [1]), ("Free", [2])]
    return c, A, b, constr_cones, var_cones


def test_variable_bounds_follow_cone_kind():
    problem = build_lpqp_problem(
        [0.0] * 4, np.zeros((0, 4)), [], [], [("Free", 0), ("NonNeg", 1), ("NonPos", 2), ("Zero", 3)]
    )

    assert problem.l.tolist() == [-np.inf, 0.0, -np.inf, 0.0]
    assert problem.u.tolist() == [np.inf, np.inf, 0.0, 0.0]
    assert problem.num_aux == 0
    assert problem.quad_constraints == ()


def test_row_bounds_follow_cone_kind():
    problem = build_lpqp_problem(*make_linear_problem())

    # Zero -> equality, NonNeg -> Ax <= b, NonPos -> Ax >= b, Free -> unbounded
    assert problem.lb.tolist() == [5.0, -np.inf, 7.0, -np.inf]
    assert problem.ub.tolist() == [5.0, -2.0, np.inf, np.inf]


def test_linear_rows_keep_matrix_and_objective():
    c, A, b, constr_cones, var_cones = make_linear_problem()
    problem = build_lpqp_problem(c, sp.csr_matrix(A), b, constr_cones, var_cones)

    assert problem.A.shape == (4, 3)
    assert np.array_equal(problem.A.toarray(), A)
    assert np.array_equal(problem.c, c)
    assert problem.sense == "min"


def test_linear_rows_follow_cone_order_not_row_order():
    A = np.array([[1.0, 0.0], [0.0, 1.0], [1.0, 1.0]])
    b = np.array([1.0, 2.0, 3.0])
    problem = build_lpqp_problem([1.0, 1.0], A, b, [("NonNeg", [2, 0]), ("Zero", 1)], [("Free", [0, 1])])

    assert np.array_equal(problem.A.toarray(), A[[2, 0, 1]])
    assert problem.lb.tolist() == [-np.inf, -np.inf, 2.0]
    assert problem.ub.tolist() == [3.0, 1.0, 2.0]


def test_inputs_are_not_modified():
    c, A, b, constr_cones, var_cones = make_linear_problem()
    c_before, A_before, b_before = c.copy(), A.copy(), b.copy()

    problem = build_lpqp_problem(c, A, b, constr_cones, var_cones)
    problem.c[0] = 99.0

    assert np.array_equal(c, c_before)
    assert np.array_equal(A, A_before)
    assert np.array_equal(b, b_before)


def test_bridge_counts_original_variables_and_linear_rows(recording_model):
    bridge = LPQPtoConicBridge(recording_model)
    bridge.load_problem(*make_linear_problem())

    assert bridge.num_var() == 3
    assert bridge.num_constr() == 4
    assert recording_model.loaded["sense"] == "min"


def test_counts_before_load_raise(recording_model):
    bridge = LPQPtoConicBridge(recording_model)

    with pytest.raises(RuntimeError):
        bridge.num_var()
