"""
Database Adapter Layer.

This module provides a clean interface between the computation engines and the database.
It handles all database queries and converts results into the immutable
snapshots the computation engines consume.
"""

from typing import Any, Dict, Iterator, List, Optional, Sequence
from contextlib import contextmanager
from datetime import date
import logging

import pandas as pd
from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import DATABASE_URL, DEFAULT_CURRENCY, PE_ASSET_TYPES
from ..engines.cash_flow_engine import CashFlowEvent, CashFlowType
from ..engines.performance_engine import (
    AssetPosition,
    PerformanceResult,
    PortfolioSummary,
    aggregate_portfolio,
    compute_performance,
)
from ..exceptions import (
    AssetNotFoundError,
    CashFlowNotFoundError,
    InvalidCashFlowError,
    UnsupportedAssetTypeError,
)
from .models import Base, ManualAsset, PrivateEquityCashFlow

logger = logging.getLogger(__name__)


# ==============================================================================
# DATABASE CONNECTION
# ==============================================================================

class DatabaseConnection:
    """Manages database engine and session lifecycle."""

    def __init__(self, db_url: Optional[str] = None):
        """
        Initialize database connection.

        Args:
            db_url: SQLAlchemy database URL (defaults to DATABASE_URL from config.py)
        """
        self.db_url = db_url or DATABASE_URL

        if self.db_url.startswith("sqlite:"):
            # Use StaticPool for SQLite to avoid threading issues
            self.engine = create_engine(
                self.db_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool
            )
        else:
            self.engine = create_engine(self.db_url)

        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)
        logger.info(f"Connected to database ({self.engine.dialect.name})")

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Yield a session that commits on success and rolls back on error."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self):
        """Dispose of the engine's connection pool."""
        self.engine.dispose()
        logger.info("Database connection closed")


# ==============================================================================
# CONVERSION HELPERS
# ==============================================================================

def _to_event(row: PrivateEquityCashFlow) -> CashFlowEvent:
    return CashFlowEvent(
        cf_type=row.type,
        amount=float(row.amount),
        date=row.date,
        cash_flow_id=row.id,
        currency=row.currency,
        description=row.description,
        notes=row.notes
    )


def _to_position(asset: ManualAsset) -> AssetPosition:
    return AssetPosition(
        current_value=float(asset.current_value or 0),
        currency=asset.currency,
        cash_flows=tuple(_to_event(cf) for cf in asset.cash_flows),
        asset_id=asset.id,
        name=asset.name,
        asset_type=asset.type
    )


def _clean(value: Any) -> Any:
    """Turn pandas missing values back into None."""
    if value is None:
        return None
    try:
        return None if pd.isna(value) else value
    except (TypeError, ValueError):
        return value


def _frame_to_events(frame: pd.DataFrame) -> tuple:
    return tuple(
        CashFlowEvent(
            cf_type=row.cf_type,
            amount=float(row.amount),
            date=row.cf_date.date(),
            cash_flow_id=row.cash_flow_id,
            currency=_clean(row.currency),
            description=_clean(row.description),
            notes=_clean(row.notes)
        )
        for row in frame.itertuples(index=False)
    )


def _get_asset(session: Session, space_id: str, asset_id: str) -> ManualAsset:
    asset = (
        session.query(ManualAsset)
        .filter(ManualAsset.id == asset_id, ManualAsset.space_id == space_id)
        .first()
    )
    if asset is None:
        raise AssetNotFoundError(asset_id, space_id)
    return asset


# ==============================================================================
# ASSET FUNCTIONS
# ==============================================================================

def create_asset(
    db: DatabaseConnection,
    space_id: str,
    name: str,
    asset_type: str,
    current_value: float = 0.0,
    currency: str = DEFAULT_CURRENCY
) -> str:
    """
    Create a manual asset in a space.

    Returns:
        The new asset's ID
    """
    if current_value < 0:
        raise ValueError("current_value must be non-negative")

    with db.session() as session:
        asset = ManualAsset(
            space_id=space_id,
            name=name,
            type=asset_type,
            currency=currency,
            current_value=current_value
        )
        session.add(asset)
        session.flush()
        asset_id = asset.id

    logger.info(f"Created {asset_type} asset {asset_id} in space {space_id}")
    return asset_id


def get_asset_position(db: DatabaseConnection, space_id: str, asset_id: str) -> AssetPosition:
    """
    Load one asset and its cash flows as an immutable position snapshot.

    Raises:
        AssetNotFoundError: If the asset is not in the space
    """
    with db.session() as session:
        return _to_position(_get_asset(session, space_id, asset_id))


def get_asset_positions(
    db: DatabaseConnection,
    space_id: str,
    asset_types: Sequence[str] = PE_ASSET_TYPES
) -> List[AssetPosition]:
    """
    Load all assets of the given types in a space, with their cash flows.

    Args:
        db: Database connection
        space_id: Space owning the assets
        asset_types: Asset types to include

    Returns:
        List of AssetPosition snapshots, in asset creation order
    """
    assets_sql = text("""
        SELECT id AS asset_id, name, type AS asset_type, currency, current_value
        FROM manual_assets
        WHERE space_id = :space_id
        ORDER BY created_at, id
    """)
    flows_sql = text("""
        SELECT
            cf.id AS cash_flow_id,
            cf.asset_id,
            cf.type AS cf_type,
            cf.amount,
            cf.currency,
            cf.date AS cf_date,
            cf.description,
            cf.notes
        FROM private_equity_cash_flows cf
        JOIN manual_assets a ON cf.asset_id = a.id
        WHERE a.space_id = :space_id
        ORDER BY cf.date ASC, cf.created_at ASC
    """)

    with db.engine.connect() as conn:
        assets_df = pd.read_sql(assets_sql, conn, params={"space_id": space_id})
        flows_df = pd.read_sql(flows_sql, conn, params={"space_id": space_id}, parse_dates=["cf_date"])

    assets_df = assets_df[assets_df["asset_type"].isin(list(asset_types))]
    if assets_df.empty:
        logger.warning(f"No assets of types {list(asset_types)} found in space {space_id}")
        return []

    flows_by_asset: Dict[str, pd.DataFrame] = {
        asset_id: group for asset_id, group in flows_df.groupby("asset_id", sort=False)
    }

    positions = []
    for row in assets_df.itertuples(index=False):
        group = flows_by_asset.get(row.asset_id)
        positions.append(AssetPosition(
            current_value=float(row.current_value),
            currency=row.currency,
            cash_flows=_frame_to_events(group) if group is not None else (),
            asset_id=row.asset_id,
            name=row.name,
            asset_type=row.asset_type
        ))

    logger.info(f"Loaded {len(positions)} assets with {len(flows_df)} cash flows for space {space_id}")
    return positions


# ==============================================================================
# CASH FLOW FUNCTIONS
# ==============================================================================

def add_cash_flow(
    db: DatabaseConnection,
    space_id: str,
    asset_id: str,
    cf_type: str,
    amount: float,
    cf_date: date,
    currency: Optional[str] = None,
    description: Optional[str] = None,
    notes: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> CashFlowEvent:
    """
    Record a cash flow against a private equity or angel investment asset.

    Args:
        db: Database connection
        space_id: Space owning the asset
        asset_id: Target asset
        cf_type: One of the CashFlowType values
        amount: Non-negative magnitude; the direction follows from the type
        cf_date: Date of the cash movement
        currency: Defaults to the asset's currency

    Returns:
        The stored cash flow as a CashFlowEvent

    Raises:
        AssetNotFoundError: If the asset is not in the space
        UnsupportedAssetTypeError: If the asset is not a PE or angel investment
        InvalidCashFlowError: If the type is unknown or the amount is negative
    """
    flow_type = CashFlowType.parse(cf_type)
    if flow_type is None:
        raise InvalidCashFlowError(f"Unknown cash flow type: {cf_type!r}")
    if amount < 0:
        raise InvalidCashFlowError("Cash flow amount must be non-negative")

    with db.session() as session:
        asset = _get_asset(session, space_id, asset_id)
        if asset.type not in PE_ASSET_TYPES:
            raise UnsupportedAssetTypeError(asset_id, asset.type)

        row = PrivateEquityCashFlow(
            asset_id=asset_id,
            type=flow_type.value,
            amount=amount,
            currency=currency or asset.currency,
            date=cf_date,
            description=description,
            notes=notes,
            flow_metadata=metadata
        )
        session.add(row)
        session.flush()
        event = _to_event(row)

    logger.info(f"Added {flow_type.value} of {amount} to asset {asset_id}")
    return event


def get_cash_flows(db: DatabaseConnection, space_id: str, asset_id: str) -> List[CashFlowEvent]:
    """
    Get all cash flows for an asset, oldest first.

    Raises:
        AssetNotFoundError: If the asset is not in the space
    """
    with db.session() as session:
        _get_asset(session, space_id, asset_id)
        rows = (
            session.query(PrivateEquityCashFlow)
            .filter(PrivateEquityCashFlow.asset_id == asset_id)
            .order_by(PrivateEquityCashFlow.date.asc(), PrivateEquityCashFlow.created_at.asc())
            .all()
        )
        cash_flows = [_to_event(row) for row in rows]

    logger.debug(f"Retrieved {len(cash_flows)} cash flows for asset {asset_id}")
    return cash_flows


def delete_cash_flow(db: DatabaseConnection, space_id: str, asset_id: str, cash_flow_id: str) -> None:
    """
    Delete a cash flow.

    Raises:
        CashFlowNotFoundError: If the cash flow does not belong to the asset in this space
    """
    with db.session() as session:
        row = (
            session.query(PrivateEquityCashFlow)
            .join(ManualAsset)
            .filter(
                PrivateEquityCashFlow.id == cash_flow_id,
                PrivateEquityCashFlow.asset_id == asset_id,
                ManualAsset.space_id == space_id
            )
            .first()
        )
        if row is None:
            raise CashFlowNotFoundError(cash_flow_id, asset_id)
        session.delete(row)

    logger.info(f"Deleted cash flow {cash_flow_id} from asset {asset_id}")


# ==============================================================================
# METRIC CALCULATION WITH DATABASE
# ==============================================================================

def calculate_asset_performance(
    db: DatabaseConnection,
    space_id: str,
    asset_id: str,
    as_of: Optional[date] = None
) -> PerformanceResult:
    """
    Calculate performance metrics for one asset.

    Raises:
        AssetNotFoundError: If the asset is not in the space
    """
    position = get_asset_position(db, space_id, asset_id)
    return compute_performance(position, as_of=as_of)


def calculate_portfolio_summary(
    db: DatabaseConnection,
    space_id: str,
    currency: str = DEFAULT_CURRENCY,
    as_of: Optional[date] = None,
    max_workers: Optional[int] = None
) -> PortfolioSummary:
    """
    Calculate portfolio metrics across all PE and angel investment assets in a space.

    Args:
        db: Database connection
        space_id: Space owning the assets
        currency: Reporting currency of the space
        as_of: Valuation date for terminal cash flows (defaults to today)
        max_workers: Thread pool size for per-asset computation

    Returns:
        PortfolioSummary; empty totals when the space holds no PE assets
    """
    positions = get_asset_positions(db, space_id)
    return aggregate_portfolio(positions, currency=currency, as_of=as_of, max_workers=max_workers)
