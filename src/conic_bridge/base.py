"""Abstract model capabilities.

``LinearQuadraticModel`` is what a backend solver must provide: a linear
model with variable and row bounds plus appended quadratic constraints.
``ConicModel`` is what callers program against, so that they do not care
whether a native conic solver or a reformulating bridge sits underneath.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, List, Sequence

import numpy as np


class LinearQuadraticModel(ABC):
    """Backend LP/QP model holding one problem instance."""

    @abstractmethod
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
        """Replace the model with ``sense c'x`` s.t. ``lb <= Ax <= ub``, ``l <= x <= u``."""

    @abstractmethod
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
        """Append ``a'x + sum_k q_k x_{i_k} x_{j_k} <sense> rhs``."""

    @abstractmethod
    def optimize(self) -> None:
        ...

    @abstractmethod
    def status(self) -> str:
        ...

    @abstractmethod
    def get_solution(self) -> np.ndarray:
        ...

    @abstractmethod
    def get_objval(self) -> float:
        ...

    @abstractmethod
    def get_reduced_costs(self) -> np.ndarray:
        ...

    @abstractmethod
    def get_vartype(self) -> List[str]:
        ...

    @abstractmethod
    def set_vartype(self, vtypes: Sequence[str]) -> None:
        ...

    @abstractmethod
    def num_var(self) -> int:
        ...

    @abstractmethod
    def num_constr(self) -> int:
        ...


class ConicModel(ABC):
    """Caller-facing conic model: minimize c'x s.t. b - Ax in K_1, x in K_2."""

    @abstractmethod
    def load_problem(self, c: Any, A: Any, b: Any, constr_cones: Sequence[Any], var_cones: Sequence[Any]) -> None:
        ...

    @abstractmethod
    def supported_cones(self) -> List[str]:
        ...

    @abstractmethod
    def num_var(self) -> int:
        ...

    @abstractmethod
    def num_constr(self) -> int:
        ...

    @abstractmethod
    def optimize(self) -> None:
        ...

    @abstractmethod
    def status(self) -> str:
        ...

    @abstractmethod
    def get_solution(self) -> np.ndarray:
        ...

    @abstractmethod
    def get_objval(self) -> float:
        ...

    @abstractmethod
    def get_reduced_costs(self) -> np.ndarray:
        ...

    @abstractmethod
    def get_vartype(self) -> List[str]:
        ...

    @abstractmethod
    def set_vartype(self, vtypes: Sequence[str]) -> None:
        ...


__all__ = ["LinearQuadraticModel", "ConicModel"]
