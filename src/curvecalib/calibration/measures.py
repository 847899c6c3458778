"""
Calibration measures.

A calibration measure turns a resolved instrument and a rates provider
into a par spread: the amount by which the instrument's fair rate differs
from its quote. Calibration drives every measure to zero.

Each measure also gives its gradient with respect to the group parameter
vector, either analytically (measure -> discount factors -> curve
parameters) or by centred finite differences.

Measures:
- Term deposit: (P(s)/P(e) - 1) / tau - rate
- Ibor fixing deposit / FRA: forward rate - quoted rate
- OIS: PV(float) / annuity - fixed rate
- IRS: PV(float) / annuity - fixed rate
- CDS: protection leg / risky annuity - spread
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Sequence, Tuple

import numpy as np

from ..curves.curve import DiscountFactors
from ..curves.instruments import (
    ResolvedCds,
    ResolvedFixedIborSwap,
    ResolvedFixedOvernightSwap,
    ResolvedFra,
    ResolvedIborFixingDeposit,
    ResolvedTermDeposit,
)
from ..errors import InvalidConfigurationError
from ..provider import ImmutableRatesProvider


class ParameterLayout:
    """
    Position of each calibrated curve's parameters in the group vector.

    Attributes:
        curve_names: Curves in vector order
        counts: Parameter count per curve
        offsets: Start index per curve
    """

    def __init__(self, curve_names: Sequence[str], counts: Sequence[int]):
        if len(curve_names) != len(counts):
            raise ValueError("curve_names and counts must have the same length")
        self.curve_names = tuple(curve_names)
        self.counts = tuple(int(c) for c in counts)
        offsets = np.concatenate(([0], np.cumsum(self.counts)[:-1])).astype(int)
        self.offsets = dict(zip(self.curve_names, offsets.tolist()))
        self._counts = dict(zip(self.curve_names, self.counts))

    @property
    def total(self) -> int:
        return sum(self.counts)

    def __contains__(self, curve_name: str) -> bool:
        return curve_name in self.offsets

    def slice(self, curve_name: str) -> slice:
        start = self.offsets[curve_name]
        return slice(start, start + self._counts[curve_name])

    def split(self, parameters: Sequence[float]) -> Dict[str, np.ndarray]:
        """Split a group vector into per-curve parameter arrays."""
        p = np.asarray(parameters, dtype=np.float64)
        if len(p) != self.total:
            raise ValueError(f"Expected {self.total} parameters, got {len(p)}")
        return {name: p[self.slice(name)].copy() for name in self.curve_names}

    def join(self, provider: ImmutableRatesProvider) -> np.ndarray:
        """Current parameters of the laid-out curves as one vector."""
        return np.concatenate([
            np.asarray(provider.curve(name).curve.parameters) for name in self.curve_names
        ]) if self.curve_names else np.zeros(0)


class _Gradient:
    """Accumulates d(measure)/dp over the group vector."""

    def __init__(self, layout: ParameterLayout):
        self.layout = layout
        self.values = np.zeros(layout.total)

    def add_df(self, curve: DiscountFactors, d, coefficient: float) -> None:
        """Add coefficient * d(DF(d))/dp for a curve; curves held fixed contribute nothing."""
        if coefficient == 0.0 or curve.name not in self.layout:
            return
        self.values[self.layout.slice(curve.name)] += coefficient * curve.discount_factor_sensitivity(d)


ValueFn = Callable[[object, ImmutableRatesProvider], float]
SensitivityFn = Callable[[object, ImmutableRatesProvider, ParameterLayout], np.ndarray]


@dataclass(frozen=True)
class CalibrationMeasure:
    """Par spread of one instrument type and its parameter gradient."""
    name: str
    value_fn: ValueFn
    sensitivity_fn: SensitivityFn

    def value(self, trade, provider: ImmutableRatesProvider) -> float:
        return self.value_fn(trade, provider)

    def sensitivity(self, trade, provider: ImmutableRatesProvider,
                    layout: ParameterLayout) -> np.ndarray:
        return self.sensitivity_fn(trade, provider, layout)


# Term deposit

def _deposit_value(trade: ResolvedTermDeposit, provider: ImmutableRatesProvider) -> float:
    dsc = provider.discount_factors(trade.currency)
    return (dsc.discount_factor(trade.start) / dsc.discount_factor(trade.end) - 1.0) \
        / trade.year_fraction - trade.rate


def _deposit_sensitivity(trade: ResolvedTermDeposit, provider: ImmutableRatesProvider,
                         layout: ParameterLayout) -> np.ndarray:
    dsc = provider.discount_factors(trade.currency)
    grad = _Gradient(layout)
    _add_forward_sensitivity(grad, dsc, trade.start, trade.end, trade.year_fraction)
    return grad.values


def _add_forward_sensitivity(grad: _Gradient, curve: DiscountFactors, start, end,
                             tau: float, scale: float = 1.0) -> None:
    """Gradient of scale * (P(start)/P(end) - 1) / tau."""
    ps = curve.discount_factor(start)
    pe = curve.discount_factor(end)
    grad.add_df(curve, start, scale / (tau * pe))
    grad.add_df(curve, end, -scale * ps / (tau * pe * pe))


# Ibor fixing deposit and FRA

def _ibor_forward(provider: ImmutableRatesProvider, index, fixing_date, start, end,
                  tau: float) -> Tuple[float, bool]:
    """Forward rate of an Ibor period and whether it comes from the curve."""
    fixed = provider.historic_ibor_fixing(index, fixing_date)
    if fixed is not None:
        return fixed, False
    curve = provider.index_curve(index)
    return (curve.discount_factor(start) / curve.discount_factor(end) - 1.0) / tau, True


def _fixing_deposit_value(trade: ResolvedIborFixingDeposit,
                          provider: ImmutableRatesProvider) -> float:
    # Always the curve forward: the node exists to pin the index curve at spot
    curve = provider.index_curve(trade.index)
    forward = (curve.discount_factor(trade.start) / curve.discount_factor(trade.end) - 1.0) \
        / trade.year_fraction
    return forward - trade.rate


def _fixing_deposit_sensitivity(trade: ResolvedIborFixingDeposit,
                                provider: ImmutableRatesProvider,
                                layout: ParameterLayout) -> np.ndarray:
    grad = _Gradient(layout)
    _add_forward_sensitivity(grad, provider.index_curve(trade.index),
                             trade.start, trade.end, trade.year_fraction)
    return grad.values


def _fra_value(trade: ResolvedFra, provider: ImmutableRatesProvider) -> float:
    forward, _ = _ibor_forward(provider, trade.index, trade.fixing_date, trade.start,
                               trade.end, trade.year_fraction)
    return forward - trade.fixed_rate


def _fra_sensitivity(trade: ResolvedFra, provider: ImmutableRatesProvider,
                     layout: ParameterLayout) -> np.ndarray:
    grad = _Gradient(layout)
    _, from_curve = _ibor_forward(provider, trade.index, trade.fixing_date, trade.start,
                                  trade.end, trade.year_fraction)
    if from_curve:
        _add_forward_sensitivity(grad, provider.index_curve(trade.index),
                                 trade.start, trade.end, trade.year_fraction)
    return grad.values


# Swaps

def _annuity(periods, dsc: DiscountFactors, grad: _Gradient = None) -> float:
    """Sum of tau_i * P(pay_i), accumulating its gradient when given."""
    annuity = 0.0
    for p in periods:
        annuity += p.year_fraction * dsc.discount_factor(p.payment)
        if grad is not None:
            grad.add_df(dsc, p.payment, p.year_fraction)
    return annuity


def _ois_float_pv(trade: ResolvedFixedOvernightSwap, provider: ImmutableRatesProvider,
                  grad: _Gradient = None) -> float:
    """
    PV of the compounded overnight leg per unit notional.

    The compounded growth over a period is the historic factor H up to
    the valuation date times Pf(split)/Pf(end) for the rest.
    """
    dsc = provider.discount_factors(trade.currency)
    fwd = provider.index_curve(trade.index)
    pv = 0.0
    for p in trade.float_periods:
        h, split = provider.historic_overnight_factor(trade.index, p.start, p.end)
        pd_pay = dsc.discount_factor(p.payment)
        if split < p.end:
            ps = fwd.discount_factor(split)
            pe = fwd.discount_factor(p.end)
            growth = h * ps / pe
            if grad is not None:
                grad.add_df(fwd, split, h / pe * pd_pay)
                grad.add_df(fwd, p.end, -h * ps / (pe * pe) * pd_pay)
        else:
            growth = h
        pv += (growth - 1.0) * pd_pay
        if grad is not None:
            grad.add_df(dsc, p.payment, growth - 1.0)
    return pv


def _ois_value(trade: ResolvedFixedOvernightSwap, provider: ImmutableRatesProvider) -> float:
    dsc = provider.discount_factors(trade.currency)
    return _ois_float_pv(trade, provider) / _annuity(trade.fixed_periods, dsc) - trade.fixed_rate


def _ois_sensitivity(trade: ResolvedFixedOvernightSwap, provider: ImmutableRatesProvider,
                     layout: ParameterLayout) -> np.ndarray:
    dsc = provider.discount_factors(trade.currency)
    pv_grad = _Gradient(layout)
    annuity_grad = _Gradient(layout)
    pv = _ois_float_pv(trade, provider, pv_grad)
    annuity = _annuity(trade.fixed_periods, dsc, annuity_grad)
    return pv_grad.values / annuity - pv / (annuity * annuity) * annuity_grad.values


def _irs_float_pv(trade: ResolvedFixedIborSwap, provider: ImmutableRatesProvider,
                  grad: _Gradient = None) -> float:
    """Sum of tau_j * F_j * P(pay_j) over the Ibor leg."""
    dsc = provider.discount_factors(trade.currency)
    fwd = provider.index_curve(trade.index)
    pv = 0.0
    for p in trade.float_periods:
        forward, from_curve = _ibor_forward(provider, trade.index, p.fixing_date,
                                            p.start, p.end, p.year_fraction)
        pd_pay = dsc.discount_factor(p.payment)
        accrual = p.year_fraction * forward
        pv += accrual * pd_pay
        if grad is not None:
            if from_curve:
                _add_forward_sensitivity(grad, fwd, p.start, p.end, p.year_fraction,
                                         scale=p.year_fraction * pd_pay)
            grad.add_df(dsc, p.payment, accrual)
    return pv


def _irs_value(trade: ResolvedFixedIborSwap, provider: ImmutableRatesProvider) -> float:
    dsc = provider.discount_factors(trade.currency)
    return _irs_float_pv(trade, provider) / _annuity(trade.fixed_periods, dsc) - trade.fixed_rate


def _irs_sensitivity(trade: ResolvedFixedIborSwap, provider: ImmutableRatesProvider,
                     layout: ParameterLayout) -> np.ndarray:
    dsc = provider.discount_factors(trade.currency)
    pv_grad = _Gradient(layout)
    annuity_grad = _Gradient(layout)
    pv = _irs_float_pv(trade, provider, pv_grad)
    annuity = _annuity(trade.fixed_periods, dsc, annuity_grad)
    return pv_grad.values / annuity - pv / (annuity * annuity) * annuity_grad.values


# CDS

def _cds_legs(trade: ResolvedCds, provider: ImmutableRatesProvider,
              prot_grad: _Gradient = None, rpv01_grad: _Gradient = None) -> Tuple[float, float]:
    """
    Protection leg and risky annuity per unit notional.

    Default within a period is settled at the period end; accrued premium
    on default is half a period on average.
    """
    dsc = provider.discount_factors(trade.currency)
    srv = provider.survival_probabilities(trade.entity, trade.currency)
    lgd = 1.0 - trade.recovery_rate
    protection = 0.0
    rpv01 = 0.0
    for i, p in enumerate(trade.premium_periods):
        start = trade.protection_start if i == 0 else p.start
        q_start = srv.survival_probability(start)
        q_end = srv.survival_probability(p.end)
        pd_end = dsc.discount_factor(p.end)
        pd_pay = dsc.discount_factor(p.payment)
        protection += lgd * pd_end * (q_start - q_end)
        rpv01 += p.year_fraction * pd_pay * 0.5 * (q_start + q_end)
        if prot_grad is not None:
            prot_grad.add_df(srv, start, lgd * pd_end)
            prot_grad.add_df(srv, p.end, -lgd * pd_end)
            prot_grad.add_df(dsc, p.end, lgd * (q_start - q_end))
        if rpv01_grad is not None:
            half = 0.5 * p.year_fraction
            rpv01_grad.add_df(srv, start, half * pd_pay)
            rpv01_grad.add_df(srv, p.end, half * pd_pay)
            rpv01_grad.add_df(dsc, p.payment, half * (q_start + q_end))
    return protection, rpv01


def _cds_value(trade: ResolvedCds, provider: ImmutableRatesProvider) -> float:
    protection, rpv01 = _cds_legs(trade, provider)
    return protection / rpv01 - trade.spread


def _cds_sensitivity(trade: ResolvedCds, provider: ImmutableRatesProvider,
                     layout: ParameterLayout) -> np.ndarray:
    prot_grad = _Gradient(layout)
    rpv01_grad = _Gradient(layout)
    protection, rpv01 = _cds_legs(trade, provider, prot_grad, rpv01_grad)
    return prot_grad.values / rpv01 - protection / (rpv01 * rpv01) * rpv01_grad.values


def _finite_difference(value_fn: ValueFn, shift: float) -> SensitivityFn:
    """Centred finite-difference gradient of a value function."""

    def sensitivity(trade, provider: ImmutableRatesProvider,
                    layout: ParameterLayout) -> np.ndarray:
        base = layout.split(layout.join(provider))
        grad = np.zeros(layout.total)
        for name in layout.curve_names:
            offset = layout.offsets[name]
            for i in range(len(base[name])):
                up = base[name].copy()
                down = base[name].copy()
                up[i] += shift
                down[i] -= shift
                v_up = value_fn(trade, provider.with_curve_parameters({name: up}))
                v_down = value_fn(trade, provider.with_curve_parameters({name: down}))
                grad[offset + i] = (v_up - v_down) / (2.0 * shift)
        return grad

    return sensitivity


_ANALYTIC = {
    ResolvedTermDeposit: CalibrationMeasure("TermDeposit", _deposit_value, _deposit_sensitivity),
    ResolvedIborFixingDeposit: CalibrationMeasure(
        "IborFixingDeposit", _fixing_deposit_value, _fixing_deposit_sensitivity),
    ResolvedFra: CalibrationMeasure("Fra", _fra_value, _fra_sensitivity),
    ResolvedFixedOvernightSwap: CalibrationMeasure("FixedOvernightSwap", _ois_value, _ois_sensitivity),
    ResolvedFixedIborSwap: CalibrationMeasure("FixedIborSwap", _irs_value, _irs_sensitivity),
    ResolvedCds: CalibrationMeasure("Cds", _cds_value, _cds_sensitivity),
}


class CalibrationMeasures:
    """
    Read-only registry of calibration measures keyed by instrument type.

    Use `CalibrationMeasures.DEFAULT` for analytic gradients or
    `CalibrationMeasures.finite_difference()` for bumped gradients.
    """

    DEFAULT: "CalibrationMeasures"

    def __init__(self, name: str, measures: Mapping[type, CalibrationMeasure]):
        self.name = name
        self._measures = MappingProxyType(dict(measures))

    @classmethod
    def of(cls, name: str, *measures: Tuple[type, CalibrationMeasure]) -> "CalibrationMeasures":
        return cls(name, dict(measures))

    @classmethod
    def finite_difference(cls, shift: float = 1e-6) -> "CalibrationMeasures":
        """Registry with the default values and centred finite-difference gradients."""
        if shift <= 0:
            raise ValueError(f"shift must be positive, got {shift}")
        return cls(
            f"FiniteDifference({shift:g})",
            {
                trade_type: CalibrationMeasure(m.name, m.value_fn, _finite_difference(m.value_fn, shift))
                for trade_type, m in _ANALYTIC.items()
            },
        )

    @property
    def trade_types(self) -> Tuple[type, ...]:
        return tuple(self._measures)

    def supports(self, trade) -> bool:
        return type(trade) in self._measures

    def measure(self, trade) -> CalibrationMeasure:
        try:
            return self._measures[type(trade)]
        except KeyError:
            raise InvalidConfigurationError(
                None, f"No calibration measure for instrument type {type(trade).__name__}"
            ) from None

    def value(self, trade, provider: ImmutableRatesProvider) -> float:
        """Par spread of the trade; 0 when the curves reprice its quote."""
        return self.measure(trade).value(trade, provider)

    def derivative(self, trade, provider: ImmutableRatesProvider,
                   layout: ParameterLayout) -> np.ndarray:
        """Gradient of `value` over the group parameter vector."""
        return self.measure(trade).sensitivity(trade, provider, layout)

    def __repr__(self) -> str:
        return f"CalibrationMeasures({self.name})"


CalibrationMeasures.DEFAULT = CalibrationMeasures("ParSpread", _ANALYTIC)


__all__ = [
    "ParameterLayout",
    "CalibrationMeasure",
    "CalibrationMeasures",
]
