from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, get_args

import numpy as np
import scipy.sparse as sp
from scipy.optimize import Bounds, linprog, minimize

from ..base import LinearQuadraticModel
from ..schemas import SolveOptions, VarType

logger = logging.getLogger(__name__)

VAR_TYPES = get_args(VarType)


class ScipyLPQPModel(LinearQuadraticModel):
    """
    LP/QP model solved with SciPy.

    Purely linear models go to HiGHS through ``linprog`` (with integrality when
    integer variables are declared). Models carrying quadratic constraints are
    handed to ``minimize(method="SLSQP")`` with analytic Jacobians.
    """

    def __init__(self, options: Optional[SolveOptions] = None) -> None:
        self.options = options or SolveOptions()
        self.A: Optional[sp.csr_matrix] = None
        self.l = np.zeros(0)
        self.u = np.zeros(0)
        self.c = np.zeros(0)
        self.lb = np.zeros(0)
        self.ub = np.zeros(0)
        self.sense = "min"
        self.quad_constraints: List[Dict[str, Any]] = []
        self._vartypes: List[str] = []
        self._reset_solution()

    def _reset_solution(self) -> None:
        self._status = "not_solved"
        self._x: Optional[np.ndarray] = None
        self._objval: Optional[float] = None
        self._reduced_costs: Optional[np.ndarray] = None
        self.message = ""
        self.iterations = 0

    def load_problem(
        self,
        A: Any,
        l: np.ndarray,
        u: np.ndarray,
        c: np.ndarray,
        lb: np.ndarray,
        ub: np.ndarray,
        sense: str,
    ) -> None:
        if sense not in ("min", "max"):
            raise ValueError(f"Unknown objective sense '{sense}'.")
        A = sp.csr_matrix(A, dtype=float, copy=True)
        c = np.array(c, dtype=float).reshape(-1)
        n = c.shape[0]
        l = np.array(l, dtype=float).reshape(-1)
        u = np.array(u, dtype=float).reshape(-1)
        lb = np.array(lb, dtype=float).reshape(-1)
        ub = np.array(ub, dtype=float).reshape(-1)
        if A.shape[1] != n or l.shape[0] != n or u.shape[0] != n:
            raise ValueError(f"Column data disagrees: A has {A.shape[1]} columns, c has {n} entries.")
        if lb.shape[0] != A.shape[0] or ub.shape[0] != A.shape[0]:
            raise ValueError(f"Row bounds disagree with the {A.shape[0]} rows of A.")
        if np.any(l > u):
            raise ValueError("Variable has inconsistent bounds (lb > ub).")

        self.A, self.l, self.u, self.c, self.lb, self.ub = A, l, u, c, lb, ub
        self.sense = sense
        self.quad_constraints = []
        self._vartypes = ["continuous"] * n
        self._reset_solution()

    def add_quadconstr(
        self,
        linear_idx: Sequence[int],
        linear_coef: Sequence[float],
        quad_row_idx: Sequence[int],
        quad_col_idx: Sequence[int],
        quad_coef: Sequence[float],
        sense: str,
        rhs: float,
    ) -> None:
        if self.A is None:
            raise RuntimeError("Load a problem before adding quadratic constraints.")
        if sense != "<=":
            raise ValueError(f"Only '<=' quadratic constraints are supported, got '{sense}'.")
        if len(linear_idx) != len(linear_coef):
            raise ValueError("Linear indices and coefficients differ in length.")
        if not (len(quad_row_idx) == len(quad_col_idx) == len(quad_coef)):
            raise ValueError("Quadratic indices and coefficients differ in length.")
        n = self.c.shape[0]
        for idx in list(linear_idx) + list(quad_row_idx) + list(quad_col_idx):
            if idx < 0 or idx >= n:
                raise IndexError(f"Quadratic constraint references variable {idx} outside 0..{n - 1}.")

        self.quad_constraints.append(
            {
                "linear_idx": np.asarray(linear_idx, dtype=np.intp),
                "linear_coef": np.asarray(linear_coef, dtype=float),
                "quad_row_idx": np.asarray(quad_row_idx, dtype=np.intp),
                "quad_col_idx": np.asarray(quad_col_idx, dtype=np.intp),
                "quad_coef": np.asarray(quad_coef, dtype=float),
                "rhs": float(rhs),
            }
        )
        self._reset_solution()

    def optimize(self) -> None:
        if self.A is None:
            raise RuntimeError("No problem loaded.")
        self._reset_solution()
        if self.quad_constraints:
            self._solve_quadratic()
        else:
            self._solve_linear()
        logger.info("Backend finished with status %s after %d iterations", self._status, self.iterations)

    def _solve_linear(self) -> None:
        sense_factor = 1.0 if self.sense == "min" else -1.0
        A_ub, b_ub, A_eq, b_eq = _split_rows(self.A, self.lb, self.ub)
        bounds = _build_bounds(self.l, self.u, self._vartypes)
        integrality = [0 if vtype == "continuous" else 1 for vtype in self._vartypes]

        res = linprog(
            self.c * sense_factor,
            A_ub=A_ub if A_ub.shape[0] else None,
            b_ub=b_ub if b_ub.size else None,
            A_eq=A_eq if A_eq.shape[0] else None,
            b_eq=b_eq if b_eq.size else None,
            bounds=bounds,
            method="highs",
            integrality=integrality if any(integrality) else None,
            options={"maxiter": self.options.max_iters},
        )

        self.iterations = int(getattr(res, "nit", 0) or 0)
        self.message = res.message or ""
        if not res.success:
            self._status = _map_linprog_status(res.status)
            return

        self._status = "optimal"
        self._x = np.asarray(res.x, dtype=float)
        self._objval = float(self.c @ self._x)
        self._reduced_costs = _extract_reduced_costs(res, self.c.shape[0], sense_factor)

    def _solve_quadratic(self) -> None:
        if any(vtype != "continuous" for vtype in self._vartypes):
            raise ValueError("Integer variables are not supported together with quadratic constraints.")

        sense_factor = 1.0 if self.sense == "min" else -1.0
        c = self.c * sense_factor
        A = self.A.toarray()
        eq_rows, ub_rows, lb_rows = _classify_rows(self.lb, self.ub)
        A_eq, b_eq = A[eq_rows], self.lb[eq_rows]
        G = np.vstack([A[ub_rows], -A[lb_rows]])
        h = np.concatenate([self.ub[ub_rows], -self.lb[lb_rows]])

        constraints = []
        if A_eq.shape[0]:
            constraints.append({"type": "eq", "fun": lambda x: A_eq @ x - b_eq, "jac": lambda x: A_eq})
        if G.shape[0]:
            constraints.append({"type": "ineq", "fun": lambda x: h - G @ x, "jac": lambda x: -G})
        quads = self.quad_constraints
        constraints.append(
            {
                "type": "ineq",
                "fun": lambda x: np.array([qc["rhs"] - _quad_value(qc, x) for qc in quads]),
                "jac": lambda x: -np.vstack([_quad_grad(qc, x) for qc in quads]),
            }
        )

        def run(lo: np.ndarray, hi: np.ndarray):
            return minimize(
                lambda x: float(c @ x),
                np.clip(np.ones_like(c), lo, hi),
                method=self.options.qp_method,
                jac=lambda x: c,
                bounds=Bounds(lo, hi),
                constraints=constraints,
                options={"maxiter": self.options.max_iters, "ftol": self.options.tol},
            )

        res = run(self.l, self.u)
        self.iterations = int(getattr(res, "nit", 0) or 0)
        self.message = str(res.message)

        if not res.success and res.status != 4:
            # Retry inside a box on the free directions; a feasible point pressed
            # against the box means the objective decreases without limit.
            lo, hi = _box_bounds(self.l, self.u, self.options.box_limit)
            boxed = run(lo, hi)
            self.iterations += int(getattr(boxed, "nit", 0) or 0)
            boxed_x = np.asarray(boxed.x, dtype=float)
            if self._max_violation(boxed_x) <= self.options.feas_tol:
                margin = 0.01 * self.options.box_limit
                at_box = (~np.isfinite(self.u) & (boxed_x >= hi - margin)) | (
                    ~np.isfinite(self.l) & (boxed_x <= lo + margin)
                )
                if np.any(at_box):
                    self._status = "unbounded"
                    self.message = f"Objective keeps improving up to the box limit {self.options.box_limit:g}."
                    return
                if boxed.success:
                    res = boxed
                    self.message = str(boxed.message)

        if not res.success:
            self._status = _map_slsqp_status(res.status)
            if self._status == "error" and self._max_violation(np.asarray(res.x, dtype=float)) > self.options.feas_tol:
                self._status = "infeasible"
            return

        self._status = "optimal"
        self._x = np.asarray(res.x, dtype=float)
        self._objval = float(self.c @ self._x)
        # SLSQP does not report bound multipliers.
        self._reduced_costs = np.full(self.c.shape[0], np.nan)

    def _max_violation(self, x: np.ndarray) -> float:
        """Largest violation of bounds, row bounds and quadratic constraints at ``x`` (inf if x is not finite)."""
        if not np.all(np.isfinite(x)):
            return np.inf
        Ax = self.A @ x
        violations = [
            np.max(self.l - x, initial=0.0),
            np.max(x - self.u, initial=0.0),
            np.max(self.lb - Ax, initial=0.0),
            np.max(Ax - self.ub, initial=0.0),
        ]
        violations.extend(_quad_value(qc, x) - qc["rhs"] for qc in self.quad_constraints)
        return float(max(violations))

    def status(self) -> str:
        return self._status

    def _require_solution(self) -> None:
        if self._x is None:
            raise RuntimeError(f"No solution available (status: {self._status}).")

    def get_solution(self) -> np.ndarray:
        self._require_solution()
        return self._x.copy()

    def get_objval(self) -> float:
        self._require_solution()
        return self._objval

    def get_reduced_costs(self) -> np.ndarray:
        self._require_solution()
        return self._reduced_costs.copy()

    def get_vartype(self) -> List[str]:
        return list(self._vartypes)

    def set_vartype(self, vtypes: Sequence[str]) -> None:
        vtypes = list(vtypes)
        if len(vtypes) != len(self._vartypes):
            raise ValueError(f"Expected {len(self._vartypes)} variable types, got {len(vtypes)}.")
        for vtype in vtypes:
            if vtype not in VAR_TYPES:
                raise ValueError(f"Unknown variable type '{vtype}'.")
        self._vartypes = vtypes
        self._reset_solution()

    def num_var(self) -> int:
        return int(self.c.shape[0])

    def num_constr(self) -> int:
        return 0 if self.A is None else int(self.A.shape[0])

    def num_quadconstr(self) -> int:
        return len(self.quad_constraints)


def _classify_rows(lb: np.ndarray, ub: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    eq = np.isfinite(lb) & np.isfinite(ub) & (lb == ub)
    ub_rows = np.flatnonzero(np.isfinite(ub) & ~eq)
    lb_rows = np.flatnonzero(np.isfinite(lb) & ~eq)
    return np.flatnonzero(eq), ub_rows, lb_rows


def _split_rows(
    A: sp.csr_matrix, lb: np.ndarray, ub: np.ndarray
) -> Tuple[sp.csr_matrix, np.ndarray, sp.csr_matrix, np.ndarray]:
    eq_rows, ub_rows, lb_rows = _classify_rows(lb, ub)
    # lb <= a'x becomes -a'x <= -lb
    signs = np.concatenate([np.ones(ub_rows.size), -np.ones(lb_rows.size)])
    A_ub = sp.csr_matrix(A[np.concatenate([ub_rows, lb_rows])], copy=True)
    A_ub.data *= np.repeat(signs, np.diff(A_ub.indptr))
    b_ub = np.concatenate([ub[ub_rows], -lb[lb_rows]])
    return A_ub, b_ub, sp.csr_matrix(A[eq_rows]), lb[eq_rows]


def _build_bounds(l: np.ndarray, u: np.ndarray, vartypes: Sequence[str]) -> List[Tuple[float | None, float | None]]:
    bounds: List[Tuple[float | None, float | None]] = []
    for lo, hi, vtype in zip(l, u, vartypes):
        if vtype == "binary":
            lo, hi = max(lo, 0.0), min(hi, 1.0)
        bounds.append((None if np.isneginf(lo) else float(lo), None if np.isposinf(hi) else float(hi)))
    return bounds


def _box_bounds(l: np.ndarray, u: np.ndarray, limit: float) -> Tuple[np.ndarray, np.ndarray]:
    # Infinite sides are replaced `limit` away from the opposite bound (or from 0).
    lo = np.where(np.isfinite(l), l, np.where(np.isfinite(u), u, 0.0) - limit)
    hi = np.where(np.isfinite(u), u, np.where(np.isfinite(l), l, 0.0) + limit)
    return lo, hi


def _quad_value(qc: Dict[str, Any], x: np.ndarray) -> float:
    value = float(qc["linear_coef"] @ x[qc["linear_idx"]])
    value += float(np.sum(qc["quad_coef"] * x[qc["quad_row_idx"]] * x[qc["quad_col_idx"]]))
    return value


def _quad_grad(qc: Dict[str, Any], x: np.ndarray) -> np.ndarray:
    grad = np.zeros_like(x)
    np.add.at(grad, qc["linear_idx"], qc["linear_coef"])
    np.add.at(grad, qc["quad_row_idx"], qc["quad_coef"] * x[qc["quad_col_idx"]])
    np.add.at(grad, qc["quad_col_idx"], qc["quad_coef"] * x[qc["quad_row_idx"]])
    return grad


def _extract_reduced_costs(res, n: int, sense_factor: float) -> np.ndarray:
    lower = getattr(res, "lower", None)
    upper = getattr(res, "upper", None)
    if lower is None or upper is None or lower.get("marginals") is None or upper.get("marginals") is None:
        return np.full(n, np.nan)
    return (np.asarray(lower["marginals"]) + np.asarray(upper["marginals"])) * sense_factor


def _map_linprog_status(code: int) -> str:
    mapping = {
        0: "optimal",
        1: "iteration_limit",
        2: "infeasible",
        3: "unbounded",
        4: "error",
    }
    return mapping.get(code, "error")


def _map_slsqp_status(code: int) -> str:
    mapping = {
        0: "optimal",
        4: "infeasible",
        9: "iteration_limit",
    }
    return mapping.get(code, "error")
