"""
Curves package - curve parametrization, nodes and interpolation.

Provides:
- InterpolatedNodalCurve: Nodal curve with parameter sensitivities
- DiscountFactors / SurvivalProbabilities: Date-based views of a curve
- Curve nodes: Instrument templates bound to quote keys
- InterpolatedNodalCurveDefinition / CurveGroupDefinition: What to calibrate
"""

from .curve import (
    ValueType,
    NodeMetadata,
    InterpolatedNodalCurve,
    DiscountFactors,
    SurvivalProbabilities,
    create_flat_curve,
)
from .interpolation import (
    Interpolator,
    LinearInterpolator,
    LogLinearInterpolator,
    NaturalCubicSplineInterpolator,
    Extrapolator,
    FlatExtrapolator,
    LinearExtrapolator,
    LogLinearExtrapolator,
    create_interpolator,
    create_extrapolator,
)
from .instruments import (
    AccrualPeriod,
    ResolvedTermDeposit,
    ResolvedIborFixingDeposit,
    ResolvedFra,
    ResolvedFixedOvernightSwap,
    ResolvedFixedIborSwap,
    ResolvedCds,
)
from .nodes import (
    CurveNode,
    TermDepositCurveNode,
    IborFixingDepositCurveNode,
    FraCurveNode,
    FixedOvernightSwapCurveNode,
    FixedIborSwapCurveNode,
    CdsCurveNode,
)
from .definition import (
    ResolvedNode,
    InterpolatedNodalCurveDefinition,
    CurveGroupEntry,
    CurveGroupDefinition,
)

__all__ = [
    "ValueType",
    "NodeMetadata",
    "InterpolatedNodalCurve",
    "DiscountFactors",
    "SurvivalProbabilities",
    "create_flat_curve",
    "Interpolator",
    "LinearInterpolator",
    "LogLinearInterpolator",
    "NaturalCubicSplineInterpolator",
    "Extrapolator",
    "FlatExtrapolator",
    "LinearExtrapolator",
    "LogLinearExtrapolator",
    "create_interpolator",
    "create_extrapolator",
    "AccrualPeriod",
    "ResolvedTermDeposit",
    "ResolvedIborFixingDeposit",
    "ResolvedFra",
    "ResolvedFixedOvernightSwap",
    "ResolvedFixedIborSwap",
    "ResolvedCds",
    "CurveNode",
    "TermDepositCurveNode",
    "IborFixingDepositCurveNode",
    "FraCurveNode",
    "FixedOvernightSwapCurveNode",
    "FixedIborSwapCurveNode",
    "CdsCurveNode",
    "ResolvedNode",
    "InterpolatedNodalCurveDefinition",
    "CurveGroupEntry",
    "CurveGroupDefinition",
]
