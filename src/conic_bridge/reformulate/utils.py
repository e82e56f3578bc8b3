import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Tuple

import numpy as np
import scipy.sparse as sp

from ..errors import DimensionMismatchError, UnsupportedConeError
from ..schemas import UNSUPPORTED_CONES, Cone, SparseMatrix, as_json_floats

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuadraticConstraint:
    """``sum(linear_coef * x[linear_idx]) + sum(quad_coef * x[row] * x[col]) <= rhs``."""

    linear_idx: Tuple[int, ...]
    linear_coef: Tuple[float, ...]
    quad_row_idx: Tuple[int, ...]
    quad_col_idx: Tuple[int, ...]
    quad_coef: Tuple[float, ...]
    sense: str = "<="
    rhs: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "linear_idx": list(self.linear_idx),
            "linear_coef": list(self.linear_coef),
            "quad_row_idx": list(self.quad_row_idx),
            "quad_col_idx": list(self.quad_col_idx),
            "quad_coef": list(self.quad_coef),
            "sense": self.sense,
            "rhs": self.rhs,
        }


@dataclass(frozen=True)
class LPQPProblem:
    """
    Linear model ``min c'x`` s.t. ``lb <= Ax <= ub``, ``l <= x <= u`` plus quadratic constraints.

    Columns ``num_orig .. num_orig + num_aux - 1`` are auxiliary variables standing in
    for the rows of second-order constraint cones. The first ``num_linear`` rows of ``A``
    come from the non-SOC constraint cones; the auxiliary equality rows follow.
    """

    c: np.ndarray
    l: np.ndarray
    u: np.ndarray
    A: sp.csr_matrix
    lb: np.ndarray
    ub: np.ndarray
    num_orig: int
    num_aux: int
    num_linear: int
    quad_constraints: Tuple[QuadraticConstraint, ...] = field(default_factory=tuple)
    sense: str = "min"

    @property
    def num_var(self) -> int:
        return self.num_orig + self.num_aux

    @property
    def num_constr(self) -> int:
        return int(self.A.shape[0])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sense": self.sense,
            "c": [float(v) for v in self.c],
            "l": as_json_floats(self.l),
            "u": as_json_floats(self.u),
            "A": SparseMatrix.from_array(self.A).model_dump(),
            "lb": as_json_floats(self.lb),
            "ub": as_json_floats(self.ub),
            "num_orig": self.num_orig,
            "num_aux": self.num_aux,
            "num_linear": self.num_linear,
            "quad_constraints": [qc.to_dict() for qc in self.quad_constraints],
        }


def validate_cones(constr_cones: Sequence[Cone], var_cones: Sequence[Cone]) -> None:
    for cone in list(constr_cones) + list(var_cones):
        if cone.kind in UNSUPPORTED_CONES:
            raise UnsupportedConeError(cone.kind)


def partition_constraint_cones(constr_cones: Sequence[Cone]) -> Tuple[List[int], List[str], List[int], int]:
    """
    Split constraint rows into linear rows and second-order-cone rows.

    Returns the linear row indices, the cone kind of each linear row, the SOC row
    indices (grouped by cone, in cone order) and the number of auxiliary variables.
    """

    linear_rows: List[int] = []
    linear_kinds: List[str] = []
    soc_rows: List[int] = []
    num_aux = 0
    for cone in constr_cones:
        if cone.kind == "SOC":
            num_aux += cone.size
            soc_rows.extend(cone.indices)
        else:
            linear_rows.extend(cone.indices)
            linear_kinds.extend([cone.kind] * cone.size)

    if num_aux != len(soc_rows):
        raise DimensionMismatchError(
            f"Collected {len(soc_rows)} second-order cone rows for {num_aux} auxiliary variables."
        )
    return linear_rows, linear_kinds, soc_rows, num_aux


def variable_bounds(
    var_cones: Sequence[Cone], constr_cones: Sequence[Cone], num_orig: int, num_aux: int
) -> Tuple[np.ndarray, np.ndarray]:
    l = np.full(num_orig + num_aux, -np.inf)
    u = np.full(num_orig + num_aux, np.inf)

    for cone in var_cones:
        if cone.kind == "SOC":
            # Leading component is the first supplied index, not the smallest.
            if cone.indices:
                l[cone.indices[0]] = 0.0
            continue
        cone_l = -np.inf if cone.kind in ("Free", "NonPos") else 0.0
        cone_u = np.inf if cone.kind in ("Free", "NonNeg") else 0.0
        for idx in cone.indices:
            l[idx] = cone_l
            u[idx] = cone_u

    offset = num_orig
    for cone in constr_cones:
        if cone.kind == "SOC" and cone.indices:
            l[offset] = 0.0
            offset += cone.size
    return l, u


def row_bounds(linear_rows: Sequence[int], linear_kinds: Sequence[str], b: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    # Zero:   b - Ax == 0  ->  Ax == b
    # NonPos: b - Ax <= 0  ->  Ax >= b
    # NonNeg: b - Ax >= 0  ->  Ax <= b
    # Free:   b - Ax free  ->  free
    lb = np.empty(len(linear_rows))
    ub = np.empty(len(linear_rows))
    for k, (idx, kind) in enumerate(zip(linear_rows, linear_kinds)):
        lb[k] = b[idx] if kind in ("Zero", "NonPos") else -np.inf
        ub[k] = b[idx] if kind in ("Zero", "NonNeg") else np.inf
    return lb, ub


def assemble_linear_block(A: sp.csr_matrix, linear_rows: Sequence[int], soc_rows: Sequence[int], num_aux: int) -> sp.csr_matrix:
    A_lin = sp.csr_matrix(A[np.asarray(linear_rows, dtype=np.intp), :])
    if num_aux == 0:
        return A_lin

    # Widen to the auxiliary columns; they never appear in the linear rows.
    A_lin = sp.csr_matrix((A_lin.data, A_lin.indices, A_lin.indptr), shape=(len(linear_rows), A.shape[1] + num_aux))
    # For each SOC row introduce y = b - Ax, i.e. Ax + y == b.
    A_aux = sp.hstack(
        [A[np.asarray(soc_rows, dtype=np.intp), :], sp.identity(num_aux, dtype=float, format="csr")],
        format="csr",
    )
    if not linear_rows:
        return A_aux
    return sp.vstack([A_lin, A_aux], format="csr")


def _soc_constraint(indices: Sequence[int]) -> QuadraticConstraint:
    idx = tuple(int(i) for i in indices)
    coef = (-1.0,) + (1.0,) * (len(idx) - 1)
    return QuadraticConstraint(
        linear_idx=(),
        linear_coef=(),
        quad_row_idx=idx,
        quad_col_idx=idx,
        quad_coef=coef,
        sense="<=",
        rhs=0.0,
    )


def emit_quadratic_constraints(
    var_cones: Sequence[Cone], constr_cones: Sequence[Cone], num_orig: int
) -> Tuple[QuadraticConstraint, ...]:
    """-t^2 + ||y||^2 <= 0 for every SOC group: variable cones first, then constraint cones."""

    constraints: List[QuadraticConstraint] = []
    for cone in var_cones:
        if cone.kind == "SOC" and cone.indices:
            constraints.append(_soc_constraint(cone.indices))

    offset = num_orig
    for cone in constr_cones:
        if cone.kind != "SOC" or not cone.indices:
            continue
        constraints.append(_soc_constraint(range(offset, offset + cone.size)))
        offset += cone.size
    return tuple(constraints)


def build_lpqp_problem(c: Any, A: Any, b: Any, constr_cones: Sequence[Any], var_cones: Sequence[Any]) -> LPQPProblem:
    """
    Reformulate ``min c'x  s.t.  b - Ax in K_1,  x in K_2`` into LP/QP form.

    Nothing supplied by the caller is modified; every output array is freshly allocated.
    Raises UnsupportedConeError or DimensionMismatchError before producing anything.
    """

    constr_cones = [Cone.coerce(cone) for cone in constr_cones]
    var_cones = [Cone.coerce(cone) for cone in var_cones]
    validate_cones(constr_cones, var_cones)

    c_vec = np.array(c, dtype=float).reshape(-1)
    b_vec = np.array(b, dtype=float).reshape(-1)
    A_mat = sp.csr_matrix(A, dtype=float, copy=True)
    num_orig = c_vec.shape[0]
    if A_mat.shape != (b_vec.shape[0], num_orig):
        raise DimensionMismatchError(
            f"A has shape {A_mat.shape} but c has {num_orig} entries and b has {b_vec.shape[0]}."
        )

    linear_rows, linear_kinds, soc_rows, num_aux = partition_constraint_cones(constr_cones)

    l, u = variable_bounds(var_cones, constr_cones, num_orig, num_aux)
    lb, ub = row_bounds(linear_rows, linear_kinds, b_vec)
    if num_aux > 0:
        lb = np.concatenate([lb, b_vec[soc_rows]])
        ub = np.concatenate([ub, b_vec[soc_rows]])

    problem = LPQPProblem(
        c=np.concatenate([c_vec, np.zeros(num_aux)]),
        l=l,
        u=u,
        A=assemble_linear_block(A_mat, linear_rows, soc_rows, num_aux),
        lb=lb,
        ub=ub,
        num_orig=num_orig,
        num_aux=num_aux,
        num_linear=len(linear_rows),
        quad_constraints=emit_quadratic_constraints(var_cones, constr_cones, num_orig),
    )
    logger.debug(
        "Reformulated conic problem: %d variables, %d auxiliary, %d linear rows, %d quadratic constraints",
        num_orig,
        num_aux,
        problem.num_linear,
        len(problem.quad_constraints),
    )
    return problem
