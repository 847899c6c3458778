"""
Immutable rates provider.

The result of a calibration: the calibrated curves keyed by what they are
used for, together with the market data they were built from.

Provides:
- Discount factors per currency
- Ibor and overnight index rates (historic fixings before the valuation date)
- Survival probabilities per (entity, currency)
- FX rates
- Calibration diagnostics
"""

from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Sequence, Tuple

import numpy as np

from .conventions import ReferenceData, year_fraction
from .curves.curve import DiscountFactors, SurvivalProbabilities
from .errors import MissingFixingError
from .indices import IborIndex, OvernightIndex, RateIndex
from .market_data import FixingSeries, FxMatrix


@dataclass(frozen=True)
class CalibrationDiagnostics:
    """
    Outcome of a calibration run.

    Attributes:
        iterations: Newton iterations performed
        residuals: Final measure values, one per node
        residual_norms: Max-norm of the residuals at every iteration
        parameters: Final parameter vector in group order
        curve_names: Curves in parameter vector order
        node_labels: Node labels in residual order
    """
    iterations: int
    residuals: np.ndarray
    residual_norms: Tuple[float, ...]
    parameters: np.ndarray
    curve_names: Tuple[str, ...]
    node_labels: Tuple[str, ...] = ()

    def __post_init__(self):
        for name in ("residuals", "parameters"):
            arr = np.array(getattr(self, name), dtype=np.float64)
            arr.flags.writeable = False
            object.__setattr__(self, name, arr)
        object.__setattr__(self, "residual_norms", tuple(self.residual_norms))

    @property
    def residual_norm(self) -> float:
        return self.residual_norms[-1] if self.residual_norms else float("nan")

    def to_dict(self) -> Dict:
        """Serialize to dictionary."""
        return {
            "iterations": self.iterations,
            "residual_norm": self.residual_norm,
            "residual_norms": list(self.residual_norms),
            "residuals": dict(zip(self.node_labels, self.residuals.tolist())),
            "curve_names": list(self.curve_names),
        }


@dataclass(frozen=True, eq=False)
class ImmutableRatesProvider:
    """
    Read-only market view built from calibrated curves.

    All mappings are wrapped read-only, so a provider can be queried from
    several threads at once.

    Attributes:
        valuation_date: Valuation date of every curve
        discount_curves: Currency -> discount factors
        index_curves: Index name -> forward curve (as discount factors)
        credit_curves: (entity, currency) -> survival probabilities
        fx_matrix: FX rates
        fixings: Index name -> historic fixings
        ref_data: Calendars used to date index periods
        diagnostics: Calibration diagnostics, None when built directly
    """
    valuation_date: date
    discount_curves: Mapping[str, DiscountFactors] = field(default_factory=dict)
    index_curves: Mapping[str, DiscountFactors] = field(default_factory=dict)
    credit_curves: Mapping[Tuple[str, str], SurvivalProbabilities] = field(default_factory=dict)
    fx_matrix: FxMatrix = field(default_factory=FxMatrix.empty)
    fixings: Mapping[str, FixingSeries] = field(default_factory=dict)
    ref_data: ReferenceData = field(default_factory=ReferenceData.standard)
    diagnostics: Optional[CalibrationDiagnostics] = None

    def __post_init__(self):
        for name in ("discount_curves", "index_curves", "credit_curves", "fixings"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))

    # Discounting

    def discount_factors(self, currency: str) -> DiscountFactors:
        try:
            return self.discount_curves[currency.upper()]
        except KeyError:
            raise KeyError(f"No discount curve for currency {currency}") from None

    def discount_factor(self, currency: str, d: date) -> float:
        return self.discount_factors(currency).discount_factor(d)

    # Indices

    def index_curve(self, index: RateIndex) -> DiscountFactors:
        try:
            return self.index_curves[_index_name(index)]
        except KeyError:
            raise KeyError(f"No forward curve for index {_index_name(index)}") from None

    def fixing_series(self, index: RateIndex) -> FixingSeries:
        return self.fixings.get(_index_name(index), FixingSeries.empty())

    def historic_ibor_fixing(self, index: IborIndex, fixing_date: date) -> Optional[float]:
        """
        Fixing to use instead of the forward curve, if any.

        A fixing date before the valuation date must have a fixing. On the
        valuation date the fixing is used when present, otherwise the
        forward curve applies.

        Raises:
            MissingFixingError: If a past fixing is absent
        """
        if fixing_date > self.valuation_date:
            return None
        value = self.fixing_series(index).get(fixing_date)
        if value is None and fixing_date < self.valuation_date:
            raise MissingFixingError(index.name, fixing_date)
        return value

    def ibor_rate(self, index: IborIndex, fixing_date: date) -> float:
        """Ibor rate for a fixing date: the historic fixing or the forward."""
        fixed = self.historic_ibor_fixing(index, fixing_date)
        if fixed is not None:
            return fixed
        start = index.effective_date(fixing_date, self.ref_data)
        end = index.maturity_date(start, self.ref_data)
        return self.forward_rate(index, start, end)

    def forward_rate(self, index: RateIndex, start: date, end: date) -> float:
        """Simple forward rate of the index between two dates on its day count."""
        curve = self.index_curve(index)
        tau = year_fraction(start, end, index.day_count)
        if tau <= 0:
            raise ValueError("end must be after start")
        return (curve.discount_factor(start) / curve.discount_factor(end) - 1.0) / tau

    def historic_overnight_factor(
        self,
        index: OvernightIndex,
        start: date,
        end: date
    ) -> Tuple[float, date]:
        """
        Compounded growth of the fixings published before the valuation date.

        Each fixing accrues from its date to the next business day. Returns
        the growth factor and the date from which the forward curve applies.

        Raises:
            MissingFixingError: If a fixing between start and the valuation
                date is absent
        """
        if start >= self.valuation_date:
            return 1.0, start
        cal = self.ref_data.calendar(index.calendar)
        series = self.fixing_series(index)
        stop = min(end, self.valuation_date)
        factor = 1.0
        d = start
        while d < stop:
            nxt = min(cal.shift(d, 1), stop)
            rate = series.get(d)
            if rate is None:
                raise MissingFixingError(index.name, d)
            factor *= 1.0 + rate * year_fraction(d, nxt, index.day_count)
            d = nxt
        return factor, stop

    def overnight_rate(self, index: OvernightIndex, start: date, end: date) -> float:
        """Compounded overnight rate over [start, end] as a simple rate."""
        factor, split = self.historic_overnight_factor(index, start, end)
        if split < end:
            curve = self.index_curve(index)
            factor *= curve.discount_factor(split) / curve.discount_factor(end)
        return (factor - 1.0) / year_fraction(start, end, index.day_count)

    # Credit

    def survival_probabilities(self, entity: str, currency: str) -> SurvivalProbabilities:
        try:
            return self.credit_curves[(entity, currency.upper())]
        except KeyError:
            raise KeyError(f"No credit curve for {entity}/{currency}") from None

    def survival_probability(self, entity: str, currency: str, d: date) -> float:
        return self.survival_probabilities(entity, currency).survival_probability(d)

    # FX

    def fx_rate(self, base: str, counter: str) -> float:
        return self.fx_matrix.fx_rate(base, counter)

    # Curves by name

    def _all_curves(self) -> Dict[str, DiscountFactors]:
        curves: Dict[str, DiscountFactors] = {}
        for mapping in (self.discount_curves, self.index_curves, self.credit_curves):
            for df in mapping.values():
                curves.setdefault(df.name, df)
        return curves

    @property
    def curve_names(self) -> Tuple[str, ...]:
        return tuple(sorted(self._all_curves()))

    def curve(self, name: str) -> DiscountFactors:
        try:
            return self._all_curves()[name]
        except KeyError:
            raise KeyError(f"No curve named {name}") from None

    def with_curve_parameters(
        self,
        parameters: Mapping[str, Sequence[float]]
    ) -> "ImmutableRatesProvider":
        """
        Copy of the provider with new parameters for the named curves.

        Curves not named keep their parameters. The diagnostics are dropped.
        """
        replaced = {
            name: df.with_parameters(parameters[name])
            for name, df in self._all_curves().items()
            if name in parameters
        }

        def swap(mapping):
            return {k: replaced.get(v.name, v) for k, v in mapping.items()}

        return ImmutableRatesProvider(
            valuation_date=self.valuation_date,
            discount_curves=swap(self.discount_curves),
            index_curves=swap(self.index_curves),
            credit_curves=swap(self.credit_curves),
            fx_matrix=self.fx_matrix,
            fixings=self.fixings,
            ref_data=self.ref_data,
        )

    def with_diagnostics(self, diagnostics: CalibrationDiagnostics) -> "ImmutableRatesProvider":
        return ImmutableRatesProvider(
            valuation_date=self.valuation_date,
            discount_curves=self.discount_curves,
            index_curves=self.index_curves,
            credit_curves=self.credit_curves,
            fx_matrix=self.fx_matrix,
            fixings=self.fixings,
            ref_data=self.ref_data,
            diagnostics=diagnostics,
        )

    def __repr__(self) -> str:
        return (f"ImmutableRatesProvider(valuation={self.valuation_date}, "
                f"curves={list(self.curve_names)})")


def _index_name(index) -> str:
    return index if isinstance(index, str) else index.name


__all__ = [
    "CalibrationDiagnostics",
    "ImmutableRatesProvider",
]
