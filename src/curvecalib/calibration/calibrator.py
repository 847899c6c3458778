"""
Joint multi-curve calibration.

All curves of a group are solved together with Newton-Raphson on the
stacked parameter vector:

1. Resolve every node into an instrument priced at its quote
2. Seed each parameter from its node's quote
3. Iterate p <- p - J^-1 r(p) where r is the vector of par spreads and
   J its Jacobian, until both the residual and the step are below
   tolerance

The linear system is solved by LU decomposition with partial pivoting.
"""

import logging
import warnings
from datetime import date
from typing import Dict, List, Mapping, Optional, Tuple

import numpy as np
from scipy.linalg import LinAlgWarning, lu_factor, lu_solve

from ..conventions import ReferenceData
from ..curves.curve import DiscountFactors, SurvivalProbabilities, ValueType
from ..curves.definition import CurveGroupDefinition, ResolvedNode
from ..curves.instruments import (
    ResolvedFixedIborSwap,
    ResolvedFixedOvernightSwap,
    ResolvedFra,
)
from ..errors import (
    CalibrationCancelledError,
    InvalidConfigurationError,
    NonConvergenceError,
    SingularJacobianError,
)
from ..market_data import FixingSeries, FxMatrix, MarketQuotes
from ..provider import CalibrationDiagnostics, ImmutableRatesProvider
from .measures import CalibrationMeasures, ParameterLayout

logger = logging.getLogger(__name__)

# Relative pivot size below which the Jacobian is treated as singular
SINGULAR_PIVOT_RATIO = 1e-12


class CurveCalibrator:
    """
    Newton-Raphson calibrator for curve groups.

    Attributes:
        tolerance_value: Max absolute par spread at convergence
        tolerance_param: Max absolute parameter step at convergence
        max_iterations: Newton steps allowed before failing
        measures: Calibration measures (analytic gradients by default)

    Example:
        calibrator = CurveCalibrator.standard()
        provider = calibrator.calibrate(group, date(2025, 1, 2), quotes)
        provider.discount_factor("EUR", date(2026, 1, 2))
    """

    def __init__(
        self,
        tolerance_value: float = 1e-9,
        tolerance_param: float = 1e-9,
        max_iterations: int = 100,
        measures: Optional[CalibrationMeasures] = None
    ):
        if tolerance_value <= 0 or tolerance_param <= 0:
            raise ValueError("Tolerances must be positive")
        if max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1, got {max_iterations}")
        self.tolerance_value = tolerance_value
        self.tolerance_param = tolerance_param
        self.max_iterations = max_iterations
        self.measures = measures or CalibrationMeasures.DEFAULT

    @classmethod
    def of(
        cls,
        tolerance_value: float,
        tolerance_param: float,
        max_iterations: int,
        measures: Optional[CalibrationMeasures] = None
    ) -> "CurveCalibrator":
        return cls(tolerance_value, tolerance_param, max_iterations, measures)

    @classmethod
    def standard(cls) -> "CurveCalibrator":
        """Calibrator with 1e-9 tolerances, 100 iterations and analytic gradients."""
        return cls()

    def calibrate(
        self,
        group: CurveGroupDefinition,
        valuation_date: date,
        quotes: MarketQuotes,
        fixings: Optional[Mapping[str, FixingSeries]] = None,
        fx_matrix: Optional[FxMatrix] = None,
        ref_data: Optional[ReferenceData] = None,
        cancel_event=None,
        known: Optional[ImmutableRatesProvider] = None
    ) -> ImmutableRatesProvider:
        """
        Calibrate every curve of a group to the market quotes.

        Args:
            group: Curves to calibrate and what they are used for
            valuation_date: Valuation date
            quotes: Market quote snapshot; keys not used by any node are ignored
            fixings: Historic fixings keyed by index name
            fx_matrix: FX rates carried into the result
            ref_data: Holiday calendars (weekend-only when omitted)
            cancel_event: Object with `is_set()` (e.g. threading.Event),
                checked before each iteration
            known: Previously calibrated curves used as fixed inputs

        Returns:
            ImmutableRatesProvider with the calibrated curves and diagnostics

        Raises:
            InvalidConfigurationError: Inconsistent group or node dates
            MissingQuoteError: A node's quote is absent (before any iteration)
            MissingFixingError: A past fixing needed by a node is absent
                (before any iteration)
            SingularJacobianError: The Newton system cannot be solved
            NonConvergenceError: Tolerances not met within max_iterations
            CalibrationCancelledError: cancel_event was set
        """
        ref_data = ref_data or ReferenceData.standard()
        group.validate(valuation_date, ref_data)
        if known is not None:
            for name in group.curve_names:
                if name in known.curve_names:
                    raise InvalidConfigurationError(
                        name, "Curve is both calibrated and supplied in the known curves")

        resolved = {
            entry.name: entry.definition.resolved_nodes(valuation_date, ref_data)
            for entry in group.entries
        }
        trades = []
        labels = []
        for entry in group.entries:
            for r in resolved[entry.name]:
                trades.append(r.node.resolve(valuation_date, quotes, ref_data))
                labels.append(r.node.label)
        for trade in trades:
            self.measures.measure(trade)

        layout = ParameterLayout(
            group.curve_names, [len(resolved[name]) for name in group.curve_names])
        params = self._initial_guess(group, resolved, quotes)
        template = self._template_provider(
            group, resolved, params, layout, valuation_date, fixings, fx_matrix, ref_data, known)
        _check_fixings(trades, template)

        logger.info(
            "Calibrating group %s: %d curves, %d parameters, valuation %s",
            group.name, len(layout.curve_names), layout.total, valuation_date,
        )

        residual_norms: List[float] = []
        step_norm = float("inf")
        for iteration in range(self.max_iterations + 1):
            if cancel_event is not None and cancel_event.is_set():
                logger.error("Calibration of %s cancelled before iteration %d", group.name, iteration)
                raise CalibrationCancelledError(iteration)

            provider = template.with_curve_parameters(layout.split(params))
            residuals = np.array([self.measures.value(t, provider) for t in trades])
            residual_norm = float(np.max(np.abs(residuals)))
            residual_norms.append(residual_norm)
            logger.debug(
                "Iteration %d: residual %.3e, step %.3e", iteration, residual_norm, step_norm)

            if not np.isfinite(residual_norm):
                logger.error("Residuals of %s are not finite at iteration %d", group.name, iteration)
                raise NonConvergenceError(iteration, residual_norm, step_norm)

            if residual_norm < self.tolerance_value and step_norm < self.tolerance_param:
                logger.info(
                    "Calibrated %s in %d iterations (residual %.3e)",
                    group.name, iteration, residual_norm,
                )
                diagnostics = CalibrationDiagnostics(
                    iterations=iteration,
                    residuals=residuals,
                    residual_norms=tuple(residual_norms),
                    parameters=params.copy(),
                    curve_names=layout.curve_names,
                    node_labels=tuple(labels),
                )
                return provider.with_diagnostics(diagnostics)

            if iteration == self.max_iterations:
                logger.error(
                    "Calibration of %s did not converge in %d iterations (residual %.3e)",
                    group.name, iteration, residual_norm,
                )
                raise NonConvergenceError(iteration, residual_norm, step_norm)

            jacobian = np.vstack([self.measures.derivative(t, provider, layout) for t in trades])
            delta = self._solve(jacobian, -residuals, iteration)
            params = params + delta
            step_norm = float(np.max(np.abs(delta)))

        # Unreachable: the loop returns or raises on its last pass
        raise NonConvergenceError(self.max_iterations, residual_norms[-1], step_norm)

    def _initial_guess(
        self,
        group: CurveGroupDefinition,
        resolved: Dict[str, List[ResolvedNode]],
        quotes: MarketQuotes
    ) -> np.ndarray:
        """Node seed rates converted to each curve's y values."""
        guess = []
        for entry in group.entries:
            y_type = entry.definition.y_value_type
            for r in resolved[entry.name]:
                rate = r.node.initial_guess(quotes)
                if y_type == ValueType.DISCOUNT_FACTOR:
                    guess.append(np.exp(-rate * r.x_value))
                else:
                    guess.append(rate)
        return np.array(guess, dtype=np.float64)

    def _template_provider(
        self,
        group: CurveGroupDefinition,
        resolved: Dict[str, List[ResolvedNode]],
        params: np.ndarray,
        layout: ParameterLayout,
        valuation_date: date,
        fixings: Optional[Mapping[str, FixingSeries]],
        fx_matrix: Optional[FxMatrix],
        ref_data: ReferenceData,
        known: Optional[ImmutableRatesProvider]
    ) -> ImmutableRatesProvider:
        """Provider holding the group curves at `params` on top of any known curves."""
        discount: Dict[str, DiscountFactors] = {}
        index: Dict[str, DiscountFactors] = {}
        credit: Dict[Tuple[str, str], SurvivalProbabilities] = {}
        if known is not None:
            discount.update(known.discount_curves)
            index.update(known.index_curves)
            credit.update(known.credit_curves)

        split = layout.split(params)
        for entry in group.entries:
            defn = entry.definition
            curve = defn.curve(valuation_date, ref_data, split[entry.name], resolved[entry.name])
            if entry.is_credit:
                survival = SurvivalProbabilities(valuation_date, curve, defn.day_count)
                for key in entry.credit_keys:
                    credit[key] = survival
            else:
                dsc = DiscountFactors(valuation_date, curve, defn.day_count)
                for ccy in entry.discount_currencies:
                    discount[ccy] = dsc
                for idx in entry.indices:
                    index[idx.name] = dsc

        if fixings is None:
            fixings = known.fixings if known is not None else {}
        if fx_matrix is None:
            fx_matrix = known.fx_matrix if known is not None else FxMatrix.empty()
        return ImmutableRatesProvider(
            valuation_date=valuation_date,
            discount_curves=discount,
            index_curves=index,
            credit_curves=credit,
            fx_matrix=fx_matrix,
            fixings=fixings,
            ref_data=ref_data,
        )

    def _solve(self, jacobian: np.ndarray, rhs: np.ndarray, iteration: int) -> np.ndarray:
        """Solve J x = rhs by LU with partial pivoting."""
        if not np.all(np.isfinite(jacobian)):
            logger.error("Jacobian has non-finite entries at iteration %d", iteration)
            raise SingularJacobianError(iteration, "Jacobian has non-finite entries")
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", LinAlgWarning)
            lu, piv = lu_factor(jacobian)
        pivots = np.abs(np.diag(lu))
        scale = max(float(np.max(np.abs(jacobian))), 1.0)
        if np.min(pivots) <= SINGULAR_PIVOT_RATIO * scale:
            logger.error("Singular Jacobian at iteration %d (min pivot %.3e)",
                         iteration, float(np.min(pivots)))
            raise SingularJacobianError(iteration)
        delta = lu_solve((lu, piv), rhs)
        if not np.all(np.isfinite(delta)):
            raise SingularJacobianError(iteration, "Newton step is not finite")
        return delta

    def __repr__(self) -> str:
        return (f"CurveCalibrator(tolerance_value={self.tolerance_value}, "
                f"tolerance_param={self.tolerance_param}, "
                f"max_iterations={self.max_iterations}, measures={self.measures.name})")


def _check_fixings(trades, provider: ImmutableRatesProvider) -> None:
    """
    Look up every historic fixing the trades need.

    Fixings do not change between iterations, so a missing one fails here
    rather than inside the Newton loop.

    Raises:
        MissingFixingError: If a fixing before the valuation date is absent
    """
    for trade in trades:
        if isinstance(trade, ResolvedFra):
            provider.historic_ibor_fixing(trade.index, trade.fixing_date)
        elif isinstance(trade, ResolvedFixedIborSwap):
            for p in trade.float_periods:
                provider.historic_ibor_fixing(trade.index, p.fixing_date)
        elif isinstance(trade, ResolvedFixedOvernightSwap):
            for p in trade.float_periods:
                provider.historic_overnight_factor(trade.index, p.start, p.end)


__all__ = ["CurveCalibrator"]
