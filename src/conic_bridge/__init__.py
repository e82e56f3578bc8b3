"""Conic Bridge: solve conic problems with LP/QP backends."""

from .errors import DimensionMismatchError, UnsupportedConeError
from .lpqp import ScipyLPQPModel
from .reformulate import LPQPProblem, LPQPtoConicBridge, QuadraticConstraint, build_lpqp_problem
from .schemas import Cone, ConicProblem, SolveOptions, SparseMatrix

__all__ = [
    "Cone",
    "ConicProblem",
    "DimensionMismatchError",
    "LPQPProblem",
    "LPQPtoConicBridge",
    "QuadraticConstraint",
    "ScipyLPQPModel",
    "SolveOptions",
    "SparseMatrix",
    "UnsupportedConeError",
    "build_lpqp_problem",
]
