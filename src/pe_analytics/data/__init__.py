"""
Data Layer Package.

This package handles all database interactions and data retrieval.
"""

from .db_adapter import (
    DatabaseConnection,
    create_asset,
    get_asset_position,
    get_asset_positions,
    add_cash_flow,
    get_cash_flows,
    delete_cash_flow,
    calculate_asset_performance,
    calculate_portfolio_summary
)
from .models import Base, ManualAsset, PrivateEquityCashFlow

__all__ = [
    "DatabaseConnection",
    "create_asset",
    "get_asset_position",
    "get_asset_positions",
    "add_cash_flow",
    "get_cash_flows",
    "delete_cash_flow",
    "calculate_asset_performance",
    "calculate_portfolio_summary",
    "Base",
    "ManualAsset",
    "PrivateEquityCashFlow"
]
