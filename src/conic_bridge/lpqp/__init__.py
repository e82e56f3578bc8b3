"""LP/QP backends for Conic Bridge."""

from .scipy_model import ScipyLPQPModel

__all__ = ["ScipyLPQPModel"]
