"""
Domain exceptions raised by the data layer.

The computation engines never raise these; they degrade to ``None`` or ``0``.
"""


class PEAnalyticsError(Exception):
    """Base class for all PE analytics errors."""


class AssetNotFoundError(PEAnalyticsError):
    """The asset does not exist in the requested space."""

    def __init__(self, asset_id: str, space_id: str):
        super().__init__(f"Asset {asset_id} not found in space {space_id}")
        self.asset_id = asset_id
        self.space_id = space_id


class CashFlowNotFoundError(PEAnalyticsError):
    """The cash flow does not exist for the requested asset."""

    def __init__(self, cash_flow_id: str, asset_id: str):
        super().__init__(f"Cash flow {cash_flow_id} not found for asset {asset_id}")
        self.cash_flow_id = cash_flow_id
        self.asset_id = asset_id


class UnsupportedAssetTypeError(PEAnalyticsError):
    """Cash flows can only be attached to private equity or angel investment assets."""

    def __init__(self, asset_id: str, asset_type: str):
        super().__init__(
            f"Cash flows can only be added to private equity or angel investment assets "
            f"(asset {asset_id} is '{asset_type}')"
        )
        self.asset_id = asset_id
        self.asset_type = asset_type


class InvalidCashFlowError(PEAnalyticsError, ValueError):
    """A cash flow record failed validation on write."""
