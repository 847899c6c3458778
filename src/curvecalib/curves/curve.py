"""
Nodal curve representation and discounting views.

The InterpolatedNodalCurve class provides:
- y(x) at any x via interpolation / extrapolation
- dy/dp, the sensitivity of y(x) to each node value
- The node values as the parameter vector used in calibration

DiscountFactors and SurvivalProbabilities wrap a nodal curve and give
it meaning as a function of date:
- Discount factor P(0,t) / survival probability Q(0,t)
- Zero rate z(t) / zero hazard rate
- Simple forward rate f(t1, t2)

Times are year fractions from the valuation date measured with the
curve's day count.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional, Sequence, Tuple, Union
import numpy as np

from ..conventions import DayCount, year_fraction
from .interpolation import (
    Extrapolator,
    Interpolator,
    create_extrapolator,
    interpolator_class,
)


class ValueType(Enum):
    """Meaning of curve x or y values."""
    YEAR_FRACTION = "YearFraction"
    ZERO_RATE = "ZeroRate"
    DISCOUNT_FACTOR = "DiscountFactor"
    ZERO_HAZARD_RATE = "ZeroHazardRate"


@dataclass(frozen=True)
class NodeMetadata:
    """Identifies one curve parameter: the node's date, label and tenor."""
    date: date
    label: str
    tenor: Optional[str] = None

    @property
    def identifier(self) -> str:
        return self.label


class InterpolatedNodalCurve:
    """
    Curve defined by (x, y) nodes with interpolation and extrapolation.

    The node x values are fixed at construction; `with_parameters` builds
    an equivalent curve with new y values without re-sorting.

    Attributes:
        name: Curve name
        x_values: Node x values (strictly increasing)
        y_values: Node y values (the curve parameters)
        y_value_type: Meaning of the y values
        interpolator_name: Interpolation method name
        anchor: Optional fixed (x, y) point prepended to the nodes; it is
            used for interpolation but is not a parameter
    """

    def __init__(
        self,
        name: str,
        x_values: Sequence[float],
        y_values: Sequence[float],
        y_value_type: ValueType = ValueType.ZERO_RATE,
        interpolator: str = "linear",
        extrapolator_left: str = "flat",
        extrapolator_right: str = "flat",
        metadata: Sequence[NodeMetadata] = (),
        anchor: Optional[Tuple[float, float]] = None,
        _interp_cls: Optional[type] = None,
    ):
        x = np.array(x_values, dtype=np.float64)
        y = np.array(y_values, dtype=np.float64)
        if x.shape != y.shape:
            raise ValueError(
                f"Curve {name}: {len(x)} x values but {len(y)} y values"
            )
        if len(x) < 1:
            raise ValueError(f"Curve {name} needs at least one node")
        if metadata and len(metadata) != len(x):
            raise ValueError(f"Curve {name}: metadata length does not match nodes")
        x.flags.writeable = False
        y.flags.writeable = False

        self.name = name
        self.x_values = x
        self.y_values = y
        self.y_value_type = y_value_type
        self.interpolator_name = interpolator
        self.extrapolator_left_name = extrapolator_left
        self.extrapolator_right_name = extrapolator_right
        self.metadata = tuple(metadata)
        self.anchor = anchor

        if anchor is not None:
            grid_x = np.concatenate(([anchor[0]], x))
            grid_y = np.concatenate(([anchor[1]], y))
        else:
            grid_x, grid_y = x, y
        self._offset = 0 if anchor is None else 1
        self._interp_cls = _interp_cls or interpolator_class(interpolator)
        self._interpolator: Interpolator = self._interp_cls(grid_x, grid_y)
        self._left: Extrapolator = create_extrapolator(extrapolator_left)
        self._right: Extrapolator = create_extrapolator(extrapolator_right)

    @property
    def parameter_count(self) -> int:
        return len(self.y_values)

    @property
    def parameters(self) -> np.ndarray:
        """Node y values (read-only)."""
        return self.y_values

    def y_value(self, x: float) -> float:
        """Curve value at x."""
        interp = self._interpolator
        if x < interp.times[0]:
            return self._left.extrapolate(interp, x, left=True)
        if x > interp.times[-1]:
            return self._right.extrapolate(interp, x, left=False)
        return interp.interpolate(x)

    def y_value_parameter_sensitivity(self, x: float) -> np.ndarray:
        """Derivative of y_value(x) with respect to each parameter."""
        interp = self._interpolator
        if x < interp.times[0]:
            sens = self._left.parameter_sensitivity(interp, x, left=True)
        elif x > interp.times[-1]:
            sens = self._right.parameter_sensitivity(interp, x, left=False)
        else:
            sens = interp.parameter_sensitivity(x)
        return sens[self._offset:]

    def with_parameters(self, y_values: Sequence[float]) -> "InterpolatedNodalCurve":
        """Equivalent curve with new node y values."""
        return InterpolatedNodalCurve(
            name=self.name,
            x_values=self.x_values,
            y_values=y_values,
            y_value_type=self.y_value_type,
            interpolator=self.interpolator_name,
            extrapolator_left=self.extrapolator_left_name,
            extrapolator_right=self.extrapolator_right_name,
            metadata=self.metadata,
            anchor=self.anchor,
            _interp_cls=self._interp_cls,
        )

    def get_nodes(self) -> Sequence[Tuple[float, float]]:
        """List of (x, y) node pairs."""
        return list(zip(self.x_values.tolist(), self.y_values.tolist()))

    def __eq__(self, other) -> bool:
        if not isinstance(other, InterpolatedNodalCurve):
            return NotImplemented
        return (
            self.name == other.name
            and self.y_value_type == other.y_value_type
            and self.interpolator_name == other.interpolator_name
            and self.extrapolator_left_name == other.extrapolator_left_name
            and self.extrapolator_right_name == other.extrapolator_right_name
            and self.anchor == other.anchor
            and np.array_equal(self.x_values, other.x_values)
            and np.array_equal(self.y_values, other.y_values)
        )

    __hash__ = None

    def __repr__(self) -> str:
        return (f"InterpolatedNodalCurve(name={self.name}, nodes={self.parameter_count}, "
                f"y={self.y_value_type.value}, method={self.interpolator_name})")


class DiscountFactors:
    """
    Date-based discounting view of a nodal curve.

    Supports ZERO_RATE curves (continuously compounded zero rates) and
    DISCOUNT_FACTOR curves (discount factors directly).

    Attributes:
        valuation_date: Date with discount factor 1
        curve: Underlying nodal curve
        day_count: Day count converting dates to curve x values
    """

    def __init__(self, valuation_date: date, curve: InterpolatedNodalCurve,
                 day_count: DayCount = DayCount.ACT_365F):
        if curve.y_value_type not in (ValueType.ZERO_RATE, ValueType.DISCOUNT_FACTOR,
                                      ValueType.ZERO_HAZARD_RATE):
            raise ValueError(f"Unsupported y value type: {curve.y_value_type}")
        self.valuation_date = valuation_date
        self.curve = curve
        self.day_count = day_count

    @property
    def name(self) -> str:
        return self.curve.name

    def relative_time(self, d: Union[date, float]) -> float:
        if isinstance(d, date):
            return year_fraction(self.valuation_date, d, self.day_count)
        return float(d)

    def discount_factor(self, d: Union[date, float]) -> float:
        """Discount factor P(0,t) for a date or year fraction."""
        t = self.relative_time(d)
        if self.curve.y_value_type == ValueType.DISCOUNT_FACTOR:
            if t <= 0:
                return 1.0
            return self.curve.y_value(t)
        return float(np.exp(-self.curve.y_value(t) * t))

    def discount_factor_sensitivity(self, d: Union[date, float]) -> np.ndarray:
        """Derivative of discount_factor(d) with respect to the curve parameters."""
        t = self.relative_time(d)
        if self.curve.y_value_type == ValueType.DISCOUNT_FACTOR:
            if t <= 0:
                return np.zeros(self.curve.parameter_count)
            return self.curve.y_value_parameter_sensitivity(t)
        df = np.exp(-self.curve.y_value(t) * t)
        return -t * df * self.curve.y_value_parameter_sensitivity(t)

    def zero_rate(self, d: Union[date, float]) -> float:
        """Continuously compounded zero rate."""
        t = self.relative_time(d)
        if self.curve.y_value_type != ValueType.DISCOUNT_FACTOR:
            return self.curve.y_value(t)
        if t <= 0:
            t = self.curve.x_values[0]
        return float(-np.log(self.discount_factor(t)) / t)

    def forward_rate(self, start: Union[date, float], end: Union[date, float]) -> float:
        """Simple forward rate between two dates on the curve's day count."""
        t1 = self.relative_time(start)
        t2 = self.relative_time(end)
        if t2 <= t1:
            raise ValueError("end must be after start")
        return (self.discount_factor(t1) / self.discount_factor(t2) - 1.0) / (t2 - t1)

    def with_parameters(self, y_values: Sequence[float]) -> "DiscountFactors":
        return type(self)(self.valuation_date, self.curve.with_parameters(y_values), self.day_count)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(valuation={self.valuation_date}, curve={self.curve.name})"


class SurvivalProbabilities(DiscountFactors):
    """
    Survival probability view of a nodal curve.

    A ZERO_HAZARD_RATE curve h(t) gives Q(0,t) = exp(-h(t) t), the same
    algebra as a zero-rate discount curve.
    """

    def survival_probability(self, d: Union[date, float]) -> float:
        return self.discount_factor(d)

    def survival_probability_sensitivity(self, d: Union[date, float]) -> np.ndarray:
        return self.discount_factor_sensitivity(d)

    def zero_hazard_rate(self, d: Union[date, float]) -> float:
        return self.zero_rate(d)


def create_flat_curve(
    valuation_date: date,
    rate: float,
    name: str = "FLAT",
    tenors: Sequence[float] = (0.25, 0.5, 1, 2, 5, 10, 20, 30),
    day_count: DayCount = DayCount.ACT_365F
) -> DiscountFactors:
    """
    Create a flat continuously compounded zero-rate curve.

    Args:
        valuation_date: Valuation date
        rate: Flat continuously compounded rate
        name: Curve name
        tenors: Node times in years
        day_count: Curve day count

    Returns:
        DiscountFactors over a linear zero-rate curve
    """
    curve = InterpolatedNodalCurve(
        name=name,
        x_values=list(tenors),
        y_values=[rate] * len(tenors),
        y_value_type=ValueType.ZERO_RATE,
        interpolator="linear",
    )
    return DiscountFactors(valuation_date, curve, day_count)


__all__ = [
    "ValueType",
    "NodeMetadata",
    "InterpolatedNodalCurve",
    "DiscountFactors",
    "SurvivalProbabilities",
    "create_flat_curve",
]
