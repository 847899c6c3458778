"""
Calibration exceptions.

Every failure of a calibration call is terminal: no partial curve is
returned and nothing is retried. Each exception carries the context needed
to diagnose it (quote key, curve name, iteration, residual norm).
"""

from datetime import date
from typing import Optional


class CurveCalibrationError(RuntimeError):
    """Base exception for curve calibration failures."""


class MissingQuoteError(CurveCalibrationError, KeyError):
    """A node's quote key has no entry in the market quote snapshot."""

    def __init__(self, key, node_label: Optional[str] = None):
        self.key = key
        self.node_label = node_label
        where = f" for node '{node_label}'" if node_label else ""
        super().__init__(f"No market quote for key '{key}'{where}")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class MissingFixingError(CurveCalibrationError, KeyError):
    """A historic fixing needed for a past fixing date is not in the series."""

    def __init__(self, index_name: str, fixing_date: date):
        self.index_name = index_name
        self.fixing_date = fixing_date
        super().__init__(f"No fixing for index {index_name} on {fixing_date.isoformat()}")

    def __str__(self) -> str:
        return self.args[0]


class InvalidConfigurationError(CurveCalibrationError, ValueError):
    """Curve or curve group definition is inconsistent."""

    def __init__(self, curve_name: Optional[str], message: str):
        self.curve_name = curve_name
        super().__init__(f"[{curve_name or 'GROUP'}] {message}")


class SingularJacobianError(CurveCalibrationError):
    """The Newton linear system cannot be solved."""

    def __init__(self, iteration: int, message: str = "Jacobian is numerically singular"):
        self.iteration = iteration
        super().__init__(f"Iteration {iteration}: {message}")


class NonConvergenceError(CurveCalibrationError):
    """Maximum iterations reached without meeting both tolerances."""

    def __init__(self, iterations: int, residual_norm: float, step_norm: float):
        self.iterations = iterations
        self.residual_norm = residual_norm
        self.step_norm = step_norm
        super().__init__(
            f"Calibration did not converge after {iterations} iterations "
            f"(residual {residual_norm:.3e}, last step {step_norm:.3e})"
        )


class CalibrationCancelledError(CurveCalibrationError):
    """Calibration was cancelled on an iteration boundary."""

    def __init__(self, iteration: int):
        self.iteration = iteration
        super().__init__(f"Calibration cancelled before iteration {iteration}")


__all__ = [
    "CurveCalibrationError",
    "MissingQuoteError",
    "MissingFixingError",
    "InvalidConfigurationError",
    "SingularJacobianError",
    "NonConvergenceError",
    "CalibrationCancelledError",
]
