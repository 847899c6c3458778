"""
Interpolation and extrapolation methods for nodal curves.

Provides:
- LinearInterpolator: Linear interpolation of y values
- LogLinearInterpolator: Linear interpolation of log(y), for discount factors
- NaturalCubicSplineInterpolator: Natural cubic spline through the nodes
- FlatExtrapolator / LinearExtrapolator / LogLinearExtrapolator

Every method also returns the sensitivity of the interpolated value to
each node value. The calibrator chains these sensitivities into the
Jacobian, so they must be exact derivatives of `interpolate`.

Interpolators are fitted once at construction and never mutated, so a
fitted curve can be shared between threads.
"""

from abc import ABC, abstractmethod
from typing import Tuple
import numpy as np


class Interpolator(ABC):
    """
    Abstract base class for curve interpolation.

    Interpolation is only defined on [x[0], x[-1]]; outside that range
    the curve delegates to its extrapolators.
    """

    name = "abstract"

    def __init__(self, times: np.ndarray, values: np.ndarray):
        times = np.asarray(times, dtype=np.float64)
        values = np.asarray(values, dtype=np.float64)
        if times.shape != values.shape or times.ndim != 1:
            raise ValueError("Times and values must be 1-d arrays of the same length")
        if len(times) < 1:
            raise ValueError("Need at least 1 point for interpolation")
        if len(times) > 1 and np.any(np.diff(times) <= 0):
            raise ValueError("Times must be strictly increasing")
        self.times = times
        self.values = values

    @abstractmethod
    def interpolate(self, t: float) -> float:
        """Interpolated value at t, with x[0] <= t <= x[-1]."""

    @abstractmethod
    def parameter_sensitivity(self, t: float) -> np.ndarray:
        """Derivative of interpolate(t) with respect to each node value."""

    def __call__(self, t: float) -> float:
        return self.interpolate(t)

    def _bracket(self, t: float) -> int:
        idx = np.searchsorted(self.times, t, side='right') - 1
        return int(max(0, min(idx, len(self.times) - 2)))


class LinearInterpolator(Interpolator):
    """Linear interpolation between knot points."""

    name = "linear"

    def interpolate(self, t: float) -> float:
        if len(self.times) == 1:
            return float(self.values[0])
        idx = self._bracket(t)
        t0, t1 = self.times[idx], self.times[idx + 1]
        v0, v1 = self.values[idx], self.values[idx + 1]
        w = (t - t0) / (t1 - t0)
        return float(v0 + w * (v1 - v0))

    def parameter_sensitivity(self, t: float) -> np.ndarray:
        sens = np.zeros(len(self.times))
        if len(self.times) == 1:
            sens[0] = 1.0
            return sens
        idx = self._bracket(t)
        t0, t1 = self.times[idx], self.times[idx + 1]
        w = (t - t0) / (t1 - t0)
        sens[idx] = 1.0 - w
        sens[idx + 1] = w
        return sens


class LogLinearInterpolator(Interpolator):
    """
    Log-linear interpolation.

    Interpolates linearly in log(value) space; on discount factors this
    corresponds to piecewise constant forward rates.
    """

    name = "log_linear"

    def __init__(self, times: np.ndarray, values: np.ndarray):
        super().__init__(times, values)
        if np.any(self.values <= 0):
            raise ValueError("Log-linear interpolation requires positive values")
        self.log_values = np.log(self.values)

    def interpolate(self, t: float) -> float:
        if len(self.times) == 1:
            return float(self.values[0])
        idx = self._bracket(t)
        t0, t1 = self.times[idx], self.times[idx + 1]
        w = (t - t0) / (t1 - t0)
        return float(np.exp((1.0 - w) * self.log_values[idx] + w * self.log_values[idx + 1]))

    def parameter_sensitivity(self, t: float) -> np.ndarray:
        sens = np.zeros(len(self.times))
        if len(self.times) == 1:
            sens[0] = 1.0
            return sens
        idx = self._bracket(t)
        t0, t1 = self.times[idx], self.times[idx + 1]
        w = (t - t0) / (t1 - t0)
        value = self.interpolate(t)
        sens[idx] = value * (1.0 - w) / self.values[idx]
        sens[idx + 1] = value * w / self.values[idx + 1]
        return sens


class NaturalCubicSplineInterpolator(Interpolator):
    """
    Natural cubic spline interpolation.

    Uses natural boundary conditions (second derivative = 0 at both ends).
    The spline is linear in the node values: the second derivatives are
    M = R @ values for a matrix R fixed by the node times, which gives the
    parameter sensitivities in closed form.
    """

    name = "natural_cubic_spline"

    def __init__(self, times: np.ndarray, values: np.ndarray):
        super().__init__(times, values)
        n = len(self.times)
        if n < 3:
            # Degenerates to linear
            self._linear = LinearInterpolator(self.times, self.values)
            return
        self._linear = None

        h = np.diff(self.times)

        # Tridiagonal system A M = B v, natural spline: M[0] = M[n-1] = 0
        A = np.zeros((n, n))
        B = np.zeros((n, n))
        A[0, 0] = 1.0
        A[n-1, n-1] = 1.0
        for i in range(1, n-1):
            A[i, i-1] = h[i-1]
            A[i, i] = 2 * (h[i-1] + h[i])
            A[i, i+1] = h[i]
            B[i, i-1] = 6.0 / h[i-1]
            B[i, i] = -6.0 / h[i-1] - 6.0 / h[i]
            B[i, i+1] = 6.0 / h[i]

        self._h = h
        self._r_matrix = np.linalg.solve(A, B)
        self._second_derivs = self._r_matrix @ self.values

    def _basis(self, t: float) -> Tuple[int, float, float]:
        idx = self._bracket(t)
        return idx, t - self.times[idx], self._h[idx]

    def interpolate(self, t: float) -> float:
        if self._linear is not None:
            return self._linear.interpolate(t)
        idx, dx, h = self._basis(t)
        v0, v1 = self.values[idx], self.values[idx + 1]
        m0, m1 = self._second_derivs[idx], self._second_derivs[idx + 1]
        b = (v1 - v0) / h - h * (m1 + 2 * m0) / 6
        c = m0 / 2
        d = (m1 - m0) / (6 * h)
        return float(v0 + b*dx + c*dx**2 + d*dx**3)

    def parameter_sensitivity(self, t: float) -> np.ndarray:
        if self._linear is not None:
            return self._linear.parameter_sensitivity(t)
        idx, dx, h = self._basis(t)
        r0, r1 = self._r_matrix[idx], self._r_matrix[idx + 1]
        sens = -h * dx * (r1 + 2 * r0) / 6 + r0 * dx**2 / 2 + (r1 - r0) * dx**3 / (6 * h)
        sens[idx] += 1.0 - dx / h
        sens[idx + 1] += dx / h
        return sens


class Extrapolator(ABC):
    """Extrapolation rule below the first or above the last node."""

    name = "abstract"

    @abstractmethod
    def extrapolate(self, interp: Interpolator, t: float, left: bool) -> float:
        pass

    @abstractmethod
    def parameter_sensitivity(self, interp: Interpolator, t: float, left: bool) -> np.ndarray:
        pass


class FlatExtrapolator(Extrapolator):
    """Holds the boundary node value constant."""

    name = "flat"

    def extrapolate(self, interp: Interpolator, t: float, left: bool) -> float:
        return float(interp.values[0] if left else interp.values[-1])

    def parameter_sensitivity(self, interp: Interpolator, t: float, left: bool) -> np.ndarray:
        sens = np.zeros(len(interp.values))
        sens[0 if left else -1] = 1.0
        return sens


def _chord(interp: Interpolator, left: bool) -> Tuple[int, int]:
    n = len(interp.times)
    return (0, 1) if left else (n - 2, n - 1)


class LinearExtrapolator(Extrapolator):
    """Extends the chord through the two boundary nodes."""

    name = "linear"

    def extrapolate(self, interp: Interpolator, t: float, left: bool) -> float:
        if len(interp.times) < 2:
            return float(interp.values[0])
        i, j = _chord(interp, left)
        slope = (interp.values[j] - interp.values[i]) / (interp.times[j] - interp.times[i])
        anchor = i if left else j
        return float(interp.values[anchor] + slope * (t - interp.times[anchor]))

    def parameter_sensitivity(self, interp: Interpolator, t: float, left: bool) -> np.ndarray:
        sens = np.zeros(len(interp.values))
        if len(interp.times) < 2:
            sens[0] = 1.0
            return sens
        i, j = _chord(interp, left)
        anchor = i if left else j
        w = (t - interp.times[anchor]) / (interp.times[j] - interp.times[i])
        sens[anchor] += 1.0
        sens[j] += w
        sens[i] -= w
        return sens


class LogLinearExtrapolator(Extrapolator):
    """Extends the log-value chord through the two boundary nodes."""

    name = "log_linear"

    def extrapolate(self, interp: Interpolator, t: float, left: bool) -> float:
        if len(interp.times) < 2:
            return float(interp.values[0])
        i, j = _chord(interp, left)
        logs = np.log(interp.values)
        slope = (logs[j] - logs[i]) / (interp.times[j] - interp.times[i])
        anchor = i if left else j
        return float(np.exp(logs[anchor] + slope * (t - interp.times[anchor])))

    def parameter_sensitivity(self, interp: Interpolator, t: float, left: bool) -> np.ndarray:
        sens = np.zeros(len(interp.values))
        if len(interp.times) < 2:
            sens[0] = 1.0
            return sens
        i, j = _chord(interp, left)
        anchor = i if left else j
        w = (t - interp.times[anchor]) / (interp.times[j] - interp.times[i])
        value = self.extrapolate(interp, t, left)
        # d log(value) / d log(v_k), then chain through 1 / v_k
        sens[anchor] += value / interp.values[anchor]
        sens[j] += w * value / interp.values[j]
        sens[i] -= w * value / interp.values[i]
        return sens


_INTERPOLATORS = {
    "linear": LinearInterpolator,
    "lin": LinearInterpolator,
    "log_linear": LogLinearInterpolator,
    "loglinear": LogLinearInterpolator,
    "natural_cubic_spline": NaturalCubicSplineInterpolator,
    "cubic_spline": NaturalCubicSplineInterpolator,
    "cubic": NaturalCubicSplineInterpolator,
    "spline": NaturalCubicSplineInterpolator,
}

_EXTRAPOLATORS = {
    "flat": FlatExtrapolator,
    "linear": LinearExtrapolator,
    "log_linear": LogLinearExtrapolator,
    "loglinear": LogLinearExtrapolator,
}


def _normalize(method: str) -> str:
    return method.lower().replace("-", "_").replace(" ", "_")


def interpolator_class(method: str) -> type:
    """
    Look up an interpolator class by name.

    Args:
        method: One of "linear", "log_linear", "natural_cubic_spline"
    """
    key = _normalize(method)
    if key not in _INTERPOLATORS:
        raise ValueError(f"Unknown interpolation method: {method}")
    return _INTERPOLATORS[key]


def create_interpolator(method: str, times: np.ndarray, values: np.ndarray) -> Interpolator:
    """Factory function to create a fitted interpolator by name."""
    return interpolator_class(method)(times, values)


def create_extrapolator(method: str) -> Extrapolator:
    """
    Factory function to create an extrapolator by name.

    Args:
        method: One of "flat", "linear", "log_linear"
    """
    key = _normalize(method)
    if key not in _EXTRAPOLATORS:
        raise ValueError(f"Unknown extrapolation method: {method}")
    return _EXTRAPOLATORS[key]()


__all__ = [
    "Interpolator",
    "LinearInterpolator",
    "LogLinearInterpolator",
    "NaturalCubicSplineInterpolator",
    "Extrapolator",
    "FlatExtrapolator",
    "LinearExtrapolator",
    "LogLinearExtrapolator",
    "interpolator_class",
    "create_interpolator",
    "create_extrapolator",
]
