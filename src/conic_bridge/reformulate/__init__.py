"""Conic to LP/QP reformulation for Conic Bridge."""

from .bridge import LPQPtoConicBridge
from .utils import LPQPProblem, QuadraticConstraint, build_lpqp_problem

__all__ = ["LPQPtoConicBridge", "LPQPProblem", "QuadraticConstraint", "build_lpqp_problem"]
