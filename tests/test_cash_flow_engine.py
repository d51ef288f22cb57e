"""
Unit tests for Cash Flow Engine.

Tests cash flow type parsing, classification totals and the signed series.
"""

import unittest
from datetime import date

from pe_analytics.engines.cash_flow_engine import (
    CashFlowEvent,
    CashFlowType,
    SignedFlow,
    cash_flow_date_range,
    classify_cash_flows,
    to_signed_flow
)


class TestCashFlowType(unittest.TestCase):
    """Test CashFlowType parsing."""

    def test_parse_known_types(self):
        """Every stored tag maps to its enum member."""
        for tag in ["capital_call", "distribution", "management_fee", "carry", "recallable"]:
            self.assertEqual(CashFlowType.parse(tag).value, tag)

    def test_parse_unknown_type(self):
        """Unknown tags parse to None instead of raising."""
        self.assertIsNone(CashFlowType.parse("dividend"))
        self.assertIsNone(CashFlowType.parse(None))

    def test_parse_enum_member(self):
        """Enum members pass through unchanged."""
        self.assertIs(CashFlowType.parse(CashFlowType.CARRY), CashFlowType.CARRY)


class TestCashFlowEvent(unittest.TestCase):
    """Test CashFlowEvent sign derivation."""

    def test_outflow_signs(self):
        """Capital calls and management fees are investor outflows."""
        self.assertEqual(CashFlowEvent("capital_call", 100, date(2020, 1, 1)).sign, -1)
        self.assertEqual(CashFlowEvent("management_fee", 100, date(2020, 1, 1)).sign, -1)

    def test_inflow_signs(self):
        """Distributions, carry, recallable and unknown tags are positive."""
        for tag in ["distribution", "carry", "recallable", "dividend"]:
            self.assertEqual(CashFlowEvent(tag, 100, date(2020, 1, 1)).sign, 1)

    def test_to_signed_flow(self):
        """Signed flow keeps the date and applies the sign."""
        event = CashFlowEvent("capital_call", 2500.0, date(2021, 3, 31))

        self.assertEqual(to_signed_flow(event), SignedFlow(date(2021, 3, 31), -2500.0))

    def test_to_dict(self):
        """Serialized events carry ISO dates."""
        event = CashFlowEvent("distribution", 10.0, date(2022, 5, 1), cash_flow_id="cf-1", currency="USD")
        data = event.to_dict()

        self.assertEqual(data["id"], "cf-1")
        self.assertEqual(data["type"], "distribution")
        self.assertEqual(data["date"], "2022-05-01")


class TestClassification(unittest.TestCase):
    """Test totals and signed series produced by classify_cash_flows."""

    def setUp(self):
        """Set up a call, a distribution and a recallable distribution."""
        self.events = (
            CashFlowEvent("capital_call", 100000, date(2020, 1, 1)),
            CashFlowEvent("distribution", 60000, date(2021, 1, 1)),
            CashFlowEvent("recallable", 20000, date(2021, 6, 1))
        )

    def test_recallable_reduces_distributed_total(self):
        """Recallable distributions are subtracted from the distributed total."""
        classified = classify_cash_flows(self.events)

        self.assertEqual(classified.contributed, 100000)
        self.assertEqual(classified.distributed, 40000)
        self.assertEqual(classified.fees, 0)

    def test_recallable_stays_positive_in_series(self):
        """The dated series keeps the recallable amount as a positive entry."""
        classified = classify_cash_flows(self.events)
        amounts = [cf.amount for cf in classified.signed_series]

        self.assertEqual(amounts, [-100000, 60000, 20000])

    def test_fees_and_carry(self):
        """Management fees and carry both count as fees, with opposite series signs."""
        events = [
            CashFlowEvent("capital_call", 50000, date(2020, 1, 1)),
            CashFlowEvent("management_fee", 2000, date(2020, 6, 30)),
            CashFlowEvent("carry", 3000, date(2022, 1, 1))
        ]
        classified = classify_cash_flows(events)

        self.assertEqual(classified.contributed, 50000)
        self.assertEqual(classified.fees, 5000)
        self.assertEqual([cf.amount for cf in classified.signed_series], [-50000, -2000, 3000])

    def test_unknown_type_ignored_in_totals(self):
        """Unknown types add nothing to any total."""
        events = [
            CashFlowEvent("capital_call", 1000, date(2020, 1, 1)),
            CashFlowEvent("dividend", 500, date(2020, 2, 1))
        ]
        classified = classify_cash_flows(events)

        self.assertEqual(classified.contributed, 1000)
        self.assertEqual(classified.distributed, 0)
        self.assertEqual(classified.fees, 0)
        self.assertEqual(len(classified.signed_series), 2)

    def test_empty(self):
        """No events yields zero totals and an empty series."""
        classified = classify_cash_flows([])

        self.assertEqual(classified.contributed, 0)
        self.assertEqual(classified.distributed, 0)
        self.assertEqual(classified.signed_series, ())

    def test_input_not_mutated(self):
        """Classification leaves the caller's events untouched."""
        before = tuple(self.events)
        classify_cash_flows(self.events)

        self.assertEqual(self.events, before)


class TestDateRange(unittest.TestCase):
    """Test first/last cash flow date detection."""

    def test_unsorted_events(self):
        """Range is taken over all events regardless of order."""
        events = [
            CashFlowEvent("distribution", 1, date(2022, 1, 1)),
            CashFlowEvent("capital_call", 1, date(2019, 7, 1)),
            CashFlowEvent("capital_call", 1, date(2020, 7, 1))
        ]

        self.assertEqual(cash_flow_date_range(events), (date(2019, 7, 1), date(2022, 1, 1)))

    def test_no_events(self):
        """Empty input has no range."""
        self.assertEqual(cash_flow_date_range([]), (None, None))


if __name__ == '__main__':
    unittest.main()
