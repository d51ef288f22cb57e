"""
Cash Flow Classification Engine.

This module normalizes raw private equity cash flow records into the totals
and signed, dated series used by the metric and IRR calculations.
"""

from typing import List, Optional, Sequence, Tuple
from dataclasses import dataclass
from datetime import date
from enum import Enum
import logging

logger = logging.getLogger(__name__)


# ==============================================================================
# ENUMS AND CONSTANTS
# ==============================================================================

class CashFlowType(Enum):
    """Cash flow transaction types."""
    CAPITAL_CALL = "capital_call"
    DISTRIBUTION = "distribution"
    MANAGEMENT_FEE = "management_fee"
    CARRY = "carry"
    RECALLABLE = "recallable"

    @classmethod
    def parse(cls, value) -> Optional["CashFlowType"]:
        """Map a raw type tag to a CashFlowType, or None if the tag is unknown."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


# Types that move money from the investor into the asset
OUTFLOW_TYPES = frozenset({CashFlowType.CAPITAL_CALL, CashFlowType.MANAGEMENT_FEE})


# ==============================================================================
# CASH FLOW DATA STRUCTURES
# ==============================================================================

@dataclass(frozen=True)
class CashFlowEvent:
    """
    Represents a single cash flow record as stored.

    ``amount`` is always a non-negative magnitude; the direction is derived
    from ``cf_type``. ``cf_type`` keeps the raw tag so unknown tags survive
    until classification.
    """
    cf_type: str
    amount: float
    date: date
    cash_flow_id: Optional[str] = None
    currency: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None

    @property
    def flow_type(self) -> Optional[CashFlowType]:
        return CashFlowType.parse(self.cf_type)

    @property
    def sign(self) -> int:
        """Direction in the dated series: -1 for outflows, +1 otherwise."""
        return -1 if self.flow_type in OUTFLOW_TYPES else 1

    def to_dict(self):
        return {
            "id": self.cash_flow_id,
            "type": self.cf_type,
            "amount": self.amount,
            "currency": self.currency,
            "date": self.date.isoformat(),
            "description": self.description,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class SignedFlow:
    """A dated cash movement from the investor's point of view (negative = paid out)."""
    date: date
    amount: float


@dataclass(frozen=True)
class ClassifiedCashFlows:
    """Totals and signed series derived from a list of cash flow events."""
    contributed: float
    distributed: float
    fees: float
    signed_series: Tuple[SignedFlow, ...]


# ==============================================================================
# CLASSIFICATION
# ==============================================================================

def to_signed_flow(event: CashFlowEvent) -> SignedFlow:
    """
    Convert an event to its signed dated movement.

    Recallable distributions keep a positive sign here even though they reduce
    the distributed total.
    """
    return SignedFlow(date=event.date, amount=event.sign * event.amount)


def classify_cash_flows(events: Sequence[CashFlowEvent]) -> ClassifiedCashFlows:
    """
    Aggregate cash flow events into contributed, distributed and fee totals.

    Args:
        events: Cash flow events for one asset, in any order

    Returns:
        ClassifiedCashFlows with the totals and one signed entry per event

    Example:
        >>> events = [CashFlowEvent("capital_call", 100000, date(2020, 1, 1)),
        ...           CashFlowEvent("distribution", 60000, date(2022, 1, 1)),
        ...           CashFlowEvent("recallable", 20000, date(2022, 6, 1))]
        >>> classified = classify_cash_flows(events)
        >>> classified.distributed  # 40000
    """
    contributed = 0.0
    distributed = 0.0
    fees = 0.0
    unknown = 0

    for event in events:
        flow_type = event.flow_type
        if flow_type is CashFlowType.CAPITAL_CALL:
            contributed += event.amount
        elif flow_type is CashFlowType.DISTRIBUTION:
            distributed += event.amount
        elif flow_type is CashFlowType.RECALLABLE:
            # A recallable distribution claws back part of what was distributed
            distributed -= event.amount
        elif flow_type in (CashFlowType.MANAGEMENT_FEE, CashFlowType.CARRY):
            fees += event.amount
        else:
            unknown += 1

    if unknown:
        logger.debug(f"Ignored {unknown} cash flows with unknown type in totals")

    signed_series = tuple(to_signed_flow(event) for event in events)

    return ClassifiedCashFlows(
        contributed=contributed,
        distributed=distributed,
        fees=fees,
        signed_series=signed_series,
    )


def cash_flow_date_range(events: Sequence[CashFlowEvent]) -> Tuple[Optional[date], Optional[date]]:
    """Return the earliest and latest event dates, or (None, None) if there are no events."""
    if not events:
        return None, None
    dates: List[date] = [event.date for event in events]
    return min(dates), max(dates)
