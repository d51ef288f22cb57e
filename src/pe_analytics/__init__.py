"""
PE Performance Analytics.

Performance metrics (TVPI, DPI, RVPI, IRR) for private equity and angel
investment positions, and their aggregation across a portfolio.
"""

from .engines import (
    AssetPosition,
    CashFlowEvent,
    CashFlowType,
    PerformanceResult,
    PortfolioSummary,
    SignedFlow,
    aggregate_portfolio,
    compute_performance,
    solve_irr
)

__version__ = "0.1.0"

__all__ = [
    "AssetPosition",
    "CashFlowEvent",
    "CashFlowType",
    "PerformanceResult",
    "PortfolioSummary",
    "SignedFlow",
    "aggregate_portfolio",
    "compute_performance",
    "solve_irr"
]
