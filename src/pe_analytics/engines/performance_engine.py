"""
Asset and Portfolio Performance Engine.

Combines cash flow classification, multiples and IRR into one performance
record per asset, and folds many assets into a portfolio summary whose IRR is
solved over the pooled cash flows of every asset.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
import logging

from ..config import DEFAULT_CURRENCY, PORTFOLIO_MAX_WORKERS
from .cash_flow_engine import (
    CashFlowEvent,
    SignedFlow,
    cash_flow_date_range,
    classify_cash_flows,
)
from .pe_metrics_engine import (
    calculate_dpi,
    calculate_multiples,
    calculate_tvpi,
    round_metric,
    solve_irr,
)

logger = logging.getLogger(__name__)


# ==============================================================================
# DATA STRUCTURES
# ==============================================================================

@dataclass(frozen=True)
class AssetPosition:
    """Read-only snapshot of a PE position: its valuation and cash flow history."""
    current_value: float
    currency: str
    cash_flows: Tuple[CashFlowEvent, ...] = ()
    asset_id: Optional[str] = None
    name: Optional[str] = None
    asset_type: Optional[str] = None


@dataclass(frozen=True)
class PerformanceResult:
    """Performance metrics for a single asset."""
    total_contributed: float
    total_distributed: float
    total_fees: float
    net_contributed: float
    tvpi_multiple: float
    dpi_multiple: float
    rvpi_multiple: float
    irr: Optional[float]
    unrealized_gain_loss: float
    unrealized_gain_loss_percent: float
    cash_flow_count: int
    first_cash_flow_date: Optional[date]
    last_cash_flow_date: Optional[date]
    current_value: float = 0.0
    currency: str = DEFAULT_CURRENCY
    asset_id: Optional[str] = None
    asset_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asset_id": self.asset_id,
            "asset_name": self.asset_name,
            "current_value": self.current_value,
            "currency": self.currency,
            "total_contributed": self.total_contributed,
            "total_distributed": self.total_distributed,
            "total_fees": self.total_fees,
            "net_contributed": self.net_contributed,
            "tvpi_multiple": self.tvpi_multiple,
            "dpi_multiple": self.dpi_multiple,
            "rvpi_multiple": self.rvpi_multiple,
            "irr": self.irr,
            "cash_flow_count": self.cash_flow_count,
            "first_cash_flow_date": _iso(self.first_cash_flow_date),
            "last_cash_flow_date": _iso(self.last_cash_flow_date),
            "unrealized_gain_loss": self.unrealized_gain_loss,
            "unrealized_gain_loss_percent": self.unrealized_gain_loss_percent,
        }


@dataclass(frozen=True)
class PortfolioSummary:
    """Portfolio-level totals, multiples and pooled IRR."""
    total_assets: int
    total_current_value: float
    total_contributed: float
    total_distributed: float
    total_fees: float
    portfolio_tvpi: float
    portfolio_dpi: float
    portfolio_irr: Optional[float]
    currency: str = DEFAULT_CURRENCY
    assets: Tuple[PerformanceResult, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_assets": self.total_assets,
            "total_current_value": self.total_current_value,
            "total_contributed": self.total_contributed,
            "total_distributed": self.total_distributed,
            "total_fees": self.total_fees,
            "portfolio_tvpi": self.portfolio_tvpi,
            "portfolio_dpi": self.portfolio_dpi,
            "portfolio_irr": self.portfolio_irr,
            "currency": self.currency,
            "assets": [asset.to_dict() for asset in self.assets],
        }


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


# ==============================================================================
# ASSET PERFORMANCE
# ==============================================================================

def with_terminal_value(
    signed_series: Sequence[SignedFlow],
    current_value: float,
    as_of: date
) -> List[SignedFlow]:
    """Append the current valuation as a final inflow dated as_of, if there is one."""
    series = list(signed_series)
    if current_value > 0:
        series.append(SignedFlow(date=as_of, amount=current_value))
    return series


def compute_performance(asset: AssetPosition, as_of: Optional[date] = None) -> PerformanceResult:
    """
    Calculate all performance metrics for one PE asset.

    Args:
        asset: Position snapshot; never mutated
        as_of: Valuation date for the terminal cash flow (defaults to today)

    Returns:
        PerformanceResult for the asset

    Example:
        >>> asset = AssetPosition(
        ...     current_value=150000, currency="USD",
        ...     cash_flows=(CashFlowEvent("capital_call", 100000, date(2023, 1, 1)),))
        >>> compute_performance(asset, as_of=date(2024, 1, 1)).tvpi_multiple  # 1.5
    """
    if as_of is None:
        as_of = date.today()

    events = asset.cash_flows
    current_value = asset.current_value

    classified = classify_cash_flows(events)
    contributed = classified.contributed
    distributed = classified.distributed
    fees = classified.fees

    irr = solve_irr(with_terminal_value(classified.signed_series, current_value, as_of))
    multiples = calculate_multiples(contributed, distributed, current_value)

    unrealized_gain_loss = current_value - (contributed - distributed)
    if contributed > 0:
        unrealized_gain_loss_percent = unrealized_gain_loss / contributed * 100
    else:
        unrealized_gain_loss_percent = 0.0

    first_date, last_date = cash_flow_date_range(events)

    logger.debug(
        f"Computed performance for asset {asset.asset_id}: "
        f"TVPI={multiples.tvpi}, DPI={multiples.dpi}, IRR={irr}"
    )

    return PerformanceResult(
        total_contributed=contributed,
        total_distributed=distributed,
        total_fees=fees,
        net_contributed=contributed + fees,
        tvpi_multiple=multiples.tvpi,
        dpi_multiple=multiples.dpi,
        rvpi_multiple=multiples.rvpi,
        irr=irr,
        unrealized_gain_loss=round_metric(unrealized_gain_loss),
        unrealized_gain_loss_percent=round_metric(unrealized_gain_loss_percent),
        cash_flow_count=len(events),
        first_cash_flow_date=first_date,
        last_cash_flow_date=last_date,
        current_value=current_value,
        currency=asset.currency,
        asset_id=asset.asset_id,
        asset_name=asset.name,
    )


# ==============================================================================
# PORTFOLIO AGGREGATION
# ==============================================================================

def pooled_cash_flows(assets: Sequence[AssetPosition], as_of: date) -> List[SignedFlow]:
    """
    Build the portfolio cash flow series.

    Every asset's signed flows plus one terminal valuation per asset, treating
    the portfolio as a single pooled investment.
    """
    pooled: List[SignedFlow] = []
    for asset in assets:
        signed_series = classify_cash_flows(asset.cash_flows).signed_series
        pooled.extend(with_terminal_value(signed_series, asset.current_value, as_of))
    return pooled


def _compute_all(
    assets: Sequence[AssetPosition],
    as_of: date,
    max_workers: int
) -> List[PerformanceResult]:
    if max_workers > 1 and len(assets) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(executor.map(lambda asset: compute_performance(asset, as_of), assets))
    return [compute_performance(asset, as_of) for asset in assets]


def aggregate_portfolio(
    assets: Sequence[AssetPosition],
    currency: str = DEFAULT_CURRENCY,
    as_of: Optional[date] = None,
    max_workers: Optional[int] = None
) -> PortfolioSummary:
    """
    Aggregate performance across a portfolio of PE assets.

    Args:
        assets: Position snapshots, all in the reporting currency
        currency: Reporting currency label for the summary
        as_of: Valuation date for terminal cash flows (defaults to today)
        max_workers: Thread pool size for per-asset computation; 0 or 1 runs serially

    Returns:
        PortfolioSummary with per-asset results in input order

    Note:
        - Multiples are recomputed from summed totals, not averaged
        - IRR is solved once over the pooled cash flows of all assets
    """
    if as_of is None:
        as_of = date.today()
    if max_workers is None:
        max_workers = PORTFOLIO_MAX_WORKERS

    performances = _compute_all(assets, as_of, max_workers)

    total_current_value = sum(p.current_value for p in performances)
    total_contributed = sum(p.total_contributed for p in performances)
    total_distributed = sum(p.total_distributed for p in performances)
    total_fees = sum(p.total_fees for p in performances)

    portfolio_irr = solve_irr(pooled_cash_flows(assets, as_of))

    logger.info(f"Aggregated {len(performances)} PE assets (portfolio IRR={portfolio_irr})")

    return PortfolioSummary(
        total_assets=len(performances),
        total_current_value=total_current_value,
        total_contributed=total_contributed,
        total_distributed=total_distributed,
        total_fees=total_fees,
        portfolio_tvpi=round_metric(calculate_tvpi(total_distributed, total_current_value, total_contributed)),
        portfolio_dpi=round_metric(calculate_dpi(total_distributed, total_contributed)),
        portfolio_irr=portfolio_irr,
        currency=currency,
        assets=tuple(performances),
    )
