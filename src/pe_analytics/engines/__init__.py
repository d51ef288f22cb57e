"""
Computation Engines Package.

This package contains all pure Python computation modules for PE performance analysis.
These modules are independent of database logic.
"""

from .cash_flow_engine import (
    CashFlowType,
    CashFlowEvent,
    SignedFlow,
    ClassifiedCashFlows,
    classify_cash_flows,
    cash_flow_date_range,
    to_signed_flow
)

from .pe_metrics_engine import (
    Multiples,
    round_metric,
    calculate_tvpi,
    calculate_dpi,
    calculate_rvpi,
    calculate_multiples,
    calculate_xnpv,
    find_irr_root,
    solve_irr
)

from .performance_engine import (
    AssetPosition,
    PerformanceResult,
    PortfolioSummary,
    compute_performance,
    aggregate_portfolio,
    pooled_cash_flows,
    with_terminal_value
)

__all__ = [
    # Cash Flow
    "CashFlowType",
    "CashFlowEvent",
    "SignedFlow",
    "ClassifiedCashFlows",
    "classify_cash_flows",
    "cash_flow_date_range",
    "to_signed_flow",

    # PE Metrics
    "Multiples",
    "round_metric",
    "calculate_tvpi",
    "calculate_dpi",
    "calculate_rvpi",
    "calculate_multiples",
    "calculate_xnpv",
    "find_irr_root",
    "solve_irr",

    # Performance
    "AssetPosition",
    "PerformanceResult",
    "PortfolioSummary",
    "compute_performance",
    "aggregate_portfolio",
    "pooled_cash_flows",
    "with_terminal_value"
]
