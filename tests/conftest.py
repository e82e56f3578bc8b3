from typing import Any, List, Sequence, Tuple

import numpy as np
import pytest

from conic_bridge.base import LinearQuadraticModel


class RecordingModel(LinearQuadraticModel):
    """Backend double that records every call made on it."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []
        self.loaded = None
        self.quad_constraints: List[dict] = []
        self.vartypes: List[str] = []

    def load_problem(self, A, l, u, c, lb, ub, sense) -> None:
        self.calls.append(("load_problem", (A, l, u, c, lb, ub, sense)))
        self.loaded = {"A": A, "l": l, "u": u, "c": c, "lb": lb, "ub": ub, "sense": sense}
        self.vartypes = ["continuous"] * len(c)

    def add_quadconstr(self, linear_idx, linear_coef, quad_row_idx, quad_col_idx, quad_coef, sense, rhs) -> None:
        self.calls.append(("add_quadconstr", (linear_idx, linear_coef, quad_row_idx, quad_col_idx, quad_coef, sense, rhs)))
        self.quad_constraints.append(
            {
                "linear_idx": list(linear_idx),
                "linear_coef": list(linear_coef),
                "quad_row_idx": list(quad_row_idx),
                "quad_col_idx": list(quad_col_idx),
                "quad_coef": list(quad_coef),
                "sense": sense,
                "rhs": rhs,
            }
        )

    def optimize(self) -> None:
        self.calls.append(("optimize", ()))

    def status(self) -> str:
        return "optimal"

    def get_solution(self) -> np.ndarray:
        return np.arange(len(self.loaded["c"]), dtype=float)

    def get_objval(self) -> float:
        return 42.0

    def get_reduced_costs(self) -> np.ndarray:
        return -np.arange(len(self.loaded["c"]), dtype=float)

    def get_vartype(self) -> List[str]:
        return list(self.vartypes)

    def set_vartype(self, vtypes: Sequence[str]) -> None:
        self.calls.append(("set_vartype", (list(vtypes),)))
        self.vartypes = list(vtypes)

    def num_var(self) -> int:
        return 0 if self.loaded is None else len(self.loaded["c"])

    def num_constr(self) -> int:
        return 0 if self.loaded is None else self.loaded["A"].shape[0]


@pytest.fixture
def recording_model() -> RecordingModel:
    return RecordingModel()
