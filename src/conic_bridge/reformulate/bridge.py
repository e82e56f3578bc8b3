import logging
from typing import Any, List, Optional, Sequence

import numpy as np

from ..base import ConicModel, LinearQuadraticModel
from ..schemas import SUPPORTED_CONES, Cone, ConicProblem
from .utils import LPQPProblem, build_lpqp_problem

logger = logging.getLogger(__name__)


class LPQPtoConicBridge(ConicModel):
    """
    Conic model backed by an LP/QP solver.

    Second-order cones are passed to the backend as quadratic constraints;
    every other supported cone becomes variable or row bounds. Solutions,
    reduced costs and variable types are reported in the backend's (padded)
    variable space.
    """

    def __init__(self, lpqpmodel: LinearQuadraticModel) -> None:
        self.lpqpmodel = lpqpmodel
        self.c: Optional[np.ndarray] = None
        self.A: Any = None
        self.b: Optional[np.ndarray] = None
        self.constr_cones: Optional[List[Cone]] = None
        self.var_cones: Optional[List[Cone]] = None
        self.lpqp_problem: Optional[LPQPProblem] = None

    def supported_cones(self) -> List[str]:
        return list(SUPPORTED_CONES)

    def load_problem(self, c: Any, A: Any, b: Any, constr_cones: Sequence[Any], var_cones: Sequence[Any]) -> None:
        constr_cones = [Cone.coerce(cone) for cone in constr_cones]
        var_cones = [Cone.coerce(cone) for cone in var_cones]

        # Build everything first so a failure leaves the backend untouched.
        problem = build_lpqp_problem(c, A, b, constr_cones, var_cones)

        self.lpqpmodel.load_problem(problem.A, problem.l, problem.u, problem.c, problem.lb, problem.ub, problem.sense)
        for qc in problem.quad_constraints:
            self.lpqpmodel.add_quadconstr(
                qc.linear_idx,
                qc.linear_coef,
                qc.quad_row_idx,
                qc.quad_col_idx,
                qc.quad_coef,
                qc.sense,
                qc.rhs,
            )
        logger.debug("Loaded %d quadratic constraints into %s", len(problem.quad_constraints), type(self.lpqpmodel).__name__)

        self.c = np.array(c, dtype=float).reshape(-1)
        self.A = A
        self.b = np.array(b, dtype=float).reshape(-1)
        self.constr_cones = constr_cones
        self.var_cones = var_cones
        self.lpqp_problem = problem

    def load_conic_problem(self, problem: ConicProblem) -> None:
        self.load_problem(problem.c, problem.A.to_scipy(), problem.b, problem.constr_cones, problem.var_cones)

    def _loaded(self) -> LPQPProblem:
        if self.lpqp_problem is None:
            raise RuntimeError("No conic problem has been loaded.")
        return self.lpqp_problem

    def num_var(self) -> int:
        return self._loaded().num_orig

    def num_constr(self) -> int:
        # Rows left after the second-order cone rows are moved onto auxiliaries.
        return self._loaded().num_linear

    def optimize(self) -> None:
        self.lpqpmodel.optimize()

    def status(self) -> str:
        return self.lpqpmodel.status()

    def get_solution(self) -> np.ndarray:
        return self.lpqpmodel.get_solution()

    def get_objval(self) -> float:
        return self.lpqpmodel.get_objval()

    def get_reduced_costs(self) -> np.ndarray:
        return self.lpqpmodel.get_reduced_costs()

    def get_vartype(self) -> List[str]:
        return self.lpqpmodel.get_vartype()

    def set_vartype(self, vtypes: Sequence[str]) -> None:
        self.lpqpmodel.set_vartype(vtypes)
