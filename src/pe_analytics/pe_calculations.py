import json
import logging
import sys
from datetime import date
from typing import Dict, List, Optional, Sequence

from .config import DEFAULT_CURRENCY, LOG_FORMAT, LOG_LEVEL
from .data.db_adapter import DatabaseConnection, calculate_portfolio_summary
from .engines.performance_engine import PortfolioSummary

logger = logging.getLogger(__name__)


class PECalculator:
    """
    Batch runner for Private Equity performance metrics.
    Levels: Asset and Space portfolio.
    Metrics: IRR, TVPI, DPI, RVPI.
    """
    def __init__(self, db_url: Optional[str] = None, currency: str = DEFAULT_CURRENCY):
        self.db = DatabaseConnection(db_url)
        self.currency = currency

    def run_all(self, space_ids: Sequence[str], as_of: Optional[date] = None) -> Dict[str, PortfolioSummary]:
        """Runs calculations for every requested space."""
        logger.info("Starting PE Metrics Calculation...")
        summaries = {}
        for space_id in space_ids:
            summaries[space_id] = self.calculate_metrics(space_id, as_of=as_of)
        logger.info(f"Calculation complete for {len(summaries)} spaces.")
        return summaries

    def calculate_metrics(self, space_id: str, as_of: Optional[date] = None) -> PortfolioSummary:
        """
        Calculates the portfolio summary for one space.
        """
        logger.info(f"Processing space: {space_id}")

        summary = calculate_portfolio_summary(self.db, space_id, currency=self.currency, as_of=as_of)

        if summary.total_assets == 0:
            logger.warning(f"No PE assets found for space {space_id}")
        else:
            logger.info(
                f"Space {space_id}: {summary.total_assets} assets, "
                f"TVPI={summary.portfolio_tvpi}, DPI={summary.portfolio_dpi}, IRR={summary.portfolio_irr}"
            )
        return summary

    def close(self):
        self.db.close()


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)

    space_ids = sys.argv[1:] if argv is None else argv
    if not space_ids:
        print("usage: python -m pe_analytics.pe_calculations SPACE_ID [SPACE_ID ...]", file=sys.stderr)
        return 2

    calc = PECalculator()
    try:
        summaries = calc.run_all(space_ids)
    finally:
        calc.close()

    print(json.dumps({space_id: s.to_dict() for space_id, s in summaries.items()}, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
