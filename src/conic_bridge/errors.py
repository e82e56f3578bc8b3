from __future__ import annotations


class UnsupportedConeError(ValueError):
    """Raised when a cone kind cannot be expressed with linear rows and quadratic constraints."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        super().__init__(f"Cone type {kind} not supported")


class DimensionMismatchError(ValueError):
    """Raised when the conic data is internally inconsistent."""


__all__ = ["UnsupportedConeError", "DimensionMismatchError"]
