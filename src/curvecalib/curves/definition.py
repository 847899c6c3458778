"""
Curve and curve group definitions.

A curve definition is the parametrization of one curve: its nodes (one
parameter per node, the y value at the node's date), the value types and
the interpolation rules. A curve group definition lists the curves that
are calibrated jointly and what each of them is used for: discounting a
currency, forwarding an index or giving survival probabilities of a
credit entity.

Definitions are immutable; the `add_*` methods return new instances.
"""

from dataclasses import dataclass, replace
from datetime import date
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from ..conventions import DayCount, ReferenceData, year_fraction
from ..errors import InvalidConfigurationError
from ..indices import RateIndex
from .curve import InterpolatedNodalCurve, NodeMetadata, ValueType
from .interpolation import create_extrapolator, interpolator_class
from .nodes import CurveNode


@dataclass(frozen=True)
class ResolvedNode:
    """A node with its reference date and curve x value."""
    node: CurveNode
    date: date
    x_value: float


@dataclass(frozen=True)
class InterpolatedNodalCurveDefinition:
    """
    Definition of a curve interpolated between calibrated nodes.

    Attributes:
        name: Curve name, unique within a group
        nodes: Curve nodes in any order; they are sorted by date
        y_value_type: ZERO_RATE, DISCOUNT_FACTOR or ZERO_HAZARD_RATE
        day_count: Day count giving x values from the valuation date
        interpolator: Interpolation method name
        extrapolator_left: Extrapolation below the first node
        extrapolator_right: Extrapolation above the last node
        x_value_type: Must be YEAR_FRACTION
    """
    name: str
    nodes: Tuple[CurveNode, ...]
    y_value_type: ValueType = ValueType.ZERO_RATE
    day_count: DayCount = DayCount.ACT_365F
    interpolator: str = "linear"
    extrapolator_left: str = "flat"
    extrapolator_right: str = "flat"
    x_value_type: ValueType = ValueType.YEAR_FRACTION

    def __post_init__(self):
        object.__setattr__(self, "nodes", tuple(self.nodes))
        if not self.nodes:
            raise InvalidConfigurationError(self.name, "Curve definition has no nodes")
        if self.x_value_type != ValueType.YEAR_FRACTION:
            raise InvalidConfigurationError(
                self.name, f"x value type must be YEAR_FRACTION, got {self.x_value_type}")
        if self.y_value_type == ValueType.YEAR_FRACTION:
            raise InvalidConfigurationError(self.name, "y value type cannot be YEAR_FRACTION")
        try:
            interpolator_class(self.interpolator)
            create_extrapolator(self.extrapolator_left)
            create_extrapolator(self.extrapolator_right)
        except ValueError as e:
            raise InvalidConfigurationError(self.name, str(e)) from e

    @property
    def parameter_count(self) -> int:
        return len(self.nodes)

    def resolved_nodes(self, valuation_date: date, ref_data: ReferenceData) -> List[ResolvedNode]:
        """
        Nodes sorted by reference date.

        Raises:
            InvalidConfigurationError: If two nodes share a date or a node
                date is not after the valuation date
        """
        resolved = []
        for node in self.nodes:
            node_date = node.date(valuation_date, ref_data)
            x = year_fraction(valuation_date, node_date, self.day_count)
            if x <= 0:
                raise InvalidConfigurationError(
                    self.name,
                    f"Node '{node.label}' date {node_date} is not after valuation date {valuation_date}"
                )
            resolved.append(ResolvedNode(node, node_date, x))

        resolved.sort(key=lambda r: r.date)
        for prev, curr in zip(resolved[:-1], resolved[1:]):
            if curr.date <= prev.date:
                raise InvalidConfigurationError(
                    self.name,
                    f"Nodes '{prev.node.label}' and '{curr.node.label}' share the date {curr.date}"
                )
        return resolved

    def curve(
        self,
        valuation_date: date,
        ref_data: ReferenceData,
        y_values: Sequence[float],
        resolved: Optional[Sequence[ResolvedNode]] = None
    ) -> InterpolatedNodalCurve:
        """
        Build the nodal curve for parameter values in node date order.

        Args:
            valuation_date: Valuation date
            ref_data: Reference data used to date the nodes
            y_values: One y value per node, sorted by node date
            resolved: Output of `resolved_nodes`, to avoid re-dating nodes

        Returns:
            InterpolatedNodalCurve with x values measured from the valuation date
        """
        if resolved is None:
            resolved = self.resolved_nodes(valuation_date, ref_data)
        if len(y_values) != len(resolved):
            raise InvalidConfigurationError(
                self.name, f"Expected {len(resolved)} parameters, got {len(y_values)}")
        metadata = [
            NodeMetadata(r.date, r.node.label, r.node.tenor) for r in resolved
        ]
        anchor = (0.0, 1.0) if self.y_value_type == ValueType.DISCOUNT_FACTOR else None
        return InterpolatedNodalCurve(
            name=self.name,
            x_values=[r.x_value for r in resolved],
            y_values=y_values,
            y_value_type=self.y_value_type,
            interpolator=self.interpolator,
            extrapolator_left=self.extrapolator_left,
            extrapolator_right=self.extrapolator_right,
            metadata=metadata,
            anchor=anchor,
        )

    def with_nodes(self, nodes: Iterable[CurveNode]) -> "InterpolatedNodalCurveDefinition":
        return replace(self, nodes=tuple(nodes))


@dataclass(frozen=True)
class CurveGroupEntry:
    """
    One curve of a group and its uses.

    Attributes:
        definition: Curve definition
        discount_currencies: Currencies discounted by the curve
        indices: Indices forwarded by the curve
        credit_keys: (entity, currency) pairs whose survival the curve gives
    """
    definition: InterpolatedNodalCurveDefinition
    discount_currencies: FrozenSet[str] = frozenset()
    indices: Tuple[RateIndex, ...] = ()
    credit_keys: FrozenSet[Tuple[str, str]] = frozenset()

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def is_credit(self) -> bool:
        return bool(self.credit_keys)


@dataclass(frozen=True)
class CurveGroupDefinition:
    """
    Set of curves calibrated together.

    Example:
        group = (CurveGroupDefinition.of("EUR-DSCON-EURIBOR3M")
                 .add_curve(dsc_defn, "EUR", EUR_EONIA)
                 .add_forward_curve(fwd3_defn, EUR_EURIBOR_3M))
    """
    name: str
    entries: Tuple[CurveGroupEntry, ...] = ()

    @classmethod
    def of(cls, name: str) -> "CurveGroupDefinition":
        return cls(name=name)

    def _with_entry(self, entry: CurveGroupEntry) -> "CurveGroupDefinition":
        return replace(self, entries=self.entries + (entry,))

    def add_curve(
        self,
        definition: InterpolatedNodalCurveDefinition,
        currency: Optional[str] = None,
        *indices: RateIndex
    ) -> "CurveGroupDefinition":
        """Add a curve discounting `currency` and forwarding `indices`."""
        currencies = frozenset([currency.upper()]) if currency else frozenset()
        return self._with_entry(CurveGroupEntry(definition, currencies, tuple(indices)))

    def add_discount_curve(
        self,
        definition: InterpolatedNodalCurveDefinition,
        currency: str
    ) -> "CurveGroupDefinition":
        return self.add_curve(definition, currency)

    def add_forward_curve(
        self,
        definition: InterpolatedNodalCurveDefinition,
        *indices: RateIndex
    ) -> "CurveGroupDefinition":
        return self.add_curve(definition, None, *indices)

    def add_credit_curve(
        self,
        definition: InterpolatedNodalCurveDefinition,
        entity: str,
        currency: str
    ) -> "CurveGroupDefinition":
        """Add a survival curve for (entity, currency)."""
        entry = CurveGroupEntry(definition, credit_keys=frozenset([(entity, currency.upper())]))
        return self._with_entry(entry)

    @property
    def curve_definitions(self) -> Tuple[InterpolatedNodalCurveDefinition, ...]:
        return tuple(e.definition for e in self.entries)

    @property
    def curve_names(self) -> Tuple[str, ...]:
        return tuple(e.name for e in self.entries)

    @property
    def total_parameter_count(self) -> int:
        return sum(e.definition.parameter_count for e in self.entries)

    def find_entry(self, curve_name: str) -> Optional[CurveGroupEntry]:
        for entry in self.entries:
            if entry.name == curve_name:
                return entry
        return None

    def validate(
        self,
        valuation_date: Optional[date] = None,
        ref_data: Optional[ReferenceData] = None
    ) -> None:
        """
        Check the group is consistent.

        Each currency, index and credit key must map to exactly one curve,
        curve names must be unique and every curve must have a use. When a
        valuation date is given the node dates of every curve are checked
        too.

        Raises:
            InvalidConfigurationError: On the first inconsistency found
        """
        if not self.entries:
            raise InvalidConfigurationError(None, f"Curve group '{self.name}' has no curves")

        owners: Dict[object, str] = {}

        def claim(key, kind: str, curve_name: str) -> None:
            if key in owners:
                raise InvalidConfigurationError(
                    curve_name,
                    f"{kind} {key} is already associated with curve '{owners[key]}'"
                )
            owners[key] = curve_name

        for entry in self.entries:
            claim(("curve", entry.name), "Curve name", entry.name)
            if not (entry.discount_currencies or entry.indices or entry.credit_keys):
                raise InvalidConfigurationError(
                    entry.name, "Curve is not associated with any currency, index or credit entity")
            for ccy in sorted(entry.discount_currencies):
                claim(("discount", ccy), "Currency", entry.name)
            for index in entry.indices:
                claim(("index", index.name), "Index", entry.name)
            for key in sorted(entry.credit_keys):
                claim(("credit", key), "Credit entity", entry.name)

        if valuation_date is not None:
            ref_data = ref_data or ReferenceData.standard()
            for entry in self.entries:
                entry.definition.resolved_nodes(valuation_date, ref_data)


__all__ = [
    "ResolvedNode",
    "InterpolatedNodalCurveDefinition",
    "CurveGroupEntry",
    "CurveGroupDefinition",
]
