from __future__ import annotations

from typing import Any, List, Literal, Optional, Tuple

import numpy as np
import scipy.sparse as sp
from pydantic import BaseModel, Field, NonNegativeInt, field_validator, model_validator

ConeKind = Literal["Free", "Zero", "NonNeg", "NonPos", "SOC", "SOCRotated", "SDP", "ExpPrimal", "ExpDual"]
Status = Literal["not_solved", "optimal", "infeasible", "unbounded", "iteration_limit", "error"]
VarType = Literal["continuous", "integer", "binary"]

SUPPORTED_CONES: Tuple[str, ...] = ("Free", "Zero", "NonNeg", "NonPos", "SOC")
UNSUPPORTED_CONES: Tuple[str, ...] = ("SOCRotated", "SDP", "ExpPrimal", "ExpDual")


class Cone(BaseModel):
    """A cone kind paired with the ordered indices (rows or variables) it covers."""

    kind: ConeKind
    indices: List[NonNegativeInt] = Field(default_factory=list)

    @field_validator("indices", mode="before")
    @classmethod
    def _normalise_indices(cls, value: Any) -> Any:
        # A single row/variable may be given as a bare integer.
        if isinstance(value, (int, np.integer)):
            return [int(value)]
        if isinstance(value, (range, tuple, np.ndarray)):
            return [int(v) for v in value]
        if isinstance(value, list):
            return [int(v) if isinstance(v, np.integer) else v for v in value]
        return value

    @property
    def size(self) -> int:
        return len(self.indices)

    @classmethod
    def coerce(cls, item: Any) -> "Cone":
        if isinstance(item, Cone):
            return item
        if isinstance(item, dict):
            return cls.model_validate(item)
        kind, indices = item
        return cls(kind=kind, indices=indices)


class SparseMatrix(BaseModel):
    """Coordinate-format matrix so that A can travel as JSON."""

    shape: Tuple[int, int]
    rows: List[int] = Field(default_factory=list)
    cols: List[int] = Field(default_factory=list)
    vals: List[float] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_triplets(self) -> "SparseMatrix":
        if not (len(self.rows) == len(self.cols) == len(self.vals)):
            raise ValueError("rows, cols and vals must have the same length.")
        m, n = self.shape
        if any(r < 0 or r >= m for r in self.rows) or any(j < 0 or j >= n for j in self.cols):
            raise ValueError(f"Matrix entry outside of shape {self.shape}.")
        return self

    def to_scipy(self) -> sp.csr_matrix:
        return sp.csr_matrix((self.vals, (self.rows, self.cols)), shape=self.shape, dtype=float)

    @classmethod
    def from_array(cls, array: Any) -> "SparseMatrix":
        coo = sp.coo_matrix(array, dtype=float)
        return cls(
            shape=(int(coo.shape[0]), int(coo.shape[1])),
            rows=[int(r) for r in coo.row],
            cols=[int(j) for j in coo.col],
            vals=[float(v) for v in coo.data],
        )


class ConicProblem(BaseModel):
    """minimize c'x subject to b - Ax in constr_cones, x in var_cones."""

    name: str = "problem"
    c: List[float]
    A: SparseMatrix
    b: List[float]
    constr_cones: List[Cone] = Field(default_factory=list)
    var_cones: List[Cone] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_dimensions(self) -> "ConicProblem":
        m, n = self.A.shape
        if len(self.c) != n:
            raise ValueError(f"Objective has {len(self.c)} entries but A has {n} columns.")
        if len(self.b) != m:
            raise ValueError(f"Right-hand side has {len(self.b)} entries but A has {m} rows.")
        return self


class SolveOptions(BaseModel):
    max_iters: int = 10_000
    tol: float = 1e-9
    feas_tol: float = 1e-6
    box_limit: float = 1e4
    qp_method: Literal["SLSQP"] = "SLSQP"


class ConicSolution(BaseModel):
    status: Status
    objective_value: Optional[float]
    x: List[float] | None
    x_extended: List[float] | None
    reduced_costs: List[float | None] | None
    num_variables: int
    num_auxiliary: int
    num_linear_constraints: int
    num_quadratic_constraints: int
    message: str = ""


def as_json_floats(values: Any) -> List[float | None]:
    """Map non-finite entries to None so that vectors survive JSON encoding."""
    return [float(v) if np.isfinite(v) else None for v in np.asarray(values, dtype=float)]


__all__: List[str] = [
    "Cone",
    "ConeKind",
    "ConicProblem",
    "ConicSolution",
    "SolveOptions",
    "SparseMatrix",
    "Status",
    "VarType",
    "SUPPORTED_CONES",
    "UNSUPPORTED_CONES",
    "as_json_floats",
]
