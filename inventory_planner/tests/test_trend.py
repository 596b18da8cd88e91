"""
Unit tests for the sales trend.
"""
import unittest
from datetime import date, datetime

from inventory_planner.exceptions import ValidationError
from inventory_planner.models import Snapshot
from inventory_planner.core.trend import resolve_timeframe, summarize_trend, trend_skus, sales_trend
from inventory_planner.utils.date_utils import subtract_months


def make_snapshot(id, sku, count_date, qty):
    return Snapshot(id=id, sku=sku, date=count_date, qty=qty)


class TestResolveTimeframe(unittest.TestCase):
    """Test cases for resolve_timeframe."""

    def test_rolling_window_ends_now(self):
        """Rolling windows run back from the reference instant."""
        now = datetime(2025, 6, 15, 9, 30)

        start, end = resolve_timeframe('6m', now)

        self.assertEqual(start, datetime(2024, 12, 15, 9, 30))
        self.assertEqual(end, now)

    def test_short_month_clamps(self):
        """Stepping back from the 31st lands on the last day of a short month."""
        start, _ = resolve_timeframe('3m', datetime(2025, 5, 31, 12))

        self.assertEqual(start, datetime(2025, 2, 28, 12))
        self.assertEqual(subtract_months(date(2024, 5, 31), 3), date(2024, 2, 29))

    def test_custom_end_covers_whole_day(self):
        """A custom range includes every instant of its end date."""
        start, end = resolve_timeframe('custom', None, '2025-03-01', '2025-06-01')

        self.assertEqual(start, datetime(2025, 3, 1))
        self.assertEqual(end.date(), date(2025, 6, 1))
        self.assertEqual((end.hour, end.minute, end.second), (23, 59, 59))

    def test_incomplete_custom_range(self):
        """A custom range with a missing date means no filtering."""
        self.assertIsNone(resolve_timeframe('custom', None, '2025-03-01', None))
        self.assertIsNone(resolve_timeframe('custom', None, None, '2025-03-01'))

    def test_unknown_timeframe(self):
        """Unknown selectors are rejected."""
        with self.assertRaises(ValidationError):
            resolve_timeframe('2w', datetime(2025, 1, 1))


class TestSalesTrend(unittest.TestCase):
    """Test cases for sales_trend."""

    def setUp(self):
        """Set up test fixtures."""
        self.snapshots = [
            make_snapshot(1, 'X', '2025-01-01', 100),
            make_snapshot(2, 'X', '2025-03-01', 80),
            make_snapshot(3, 'X', '2025-06-01', 50),
            make_snapshot(4, 'X', '2025-06-11', 40),
            make_snapshot(5, 'Y', '2025-06-11', 7),
        ]
        self.now = datetime(2025, 6, 15)

    def test_rolling_window(self):
        """Only periods plotted inside the window count, oldest first."""
        trend = sales_trend(self.snapshots, [], 'X', '3m', self.now)

        self.assertEqual(
            [p['current_date'] for p in trend['periods']],
            [date(2025, 6, 1), date(2025, 6, 11)]
        )
        self.assertEqual(trend['total_sold'], 40)
        self.assertAlmostEqual(trend['avg_rate'], (30 / 92 + 1.0) / 2)

    def test_average_weighs_periods_equally(self):
        """The average rate is the plain mean of the period rates."""
        trend = sales_trend(self.snapshots, [], 'X', '1y', self.now)

        self.assertEqual(len(trend['periods']), 3)
        self.assertEqual(trend['total_sold'], 60)
        self.assertAlmostEqual(trend['avg_rate'], (20 / 59 + 30 / 92 + 1.0) / 3)
        self.assertNotAlmostEqual(trend['avg_rate'], 60 / 161)

    def test_custom_range_includes_end_date(self):
        """A period plotted on the custom end date is included."""
        trend = sales_trend(self.snapshots, [], 'X', 'custom', self.now, '2025-03-01', '2025-06-01')

        self.assertEqual(
            [p['current_date'] for p in trend['periods']],
            [date(2025, 3, 1), date(2025, 6, 1)]
        )
        self.assertEqual(trend['total_sold'], 50)

    def test_custom_range_with_start_only(self):
        """A custom range without an end returns the full series."""
        trend = sales_trend(self.snapshots, [], 'X', 'custom', self.now, '2025-05-01', None)

        self.assertEqual(len(trend['periods']), 3)
        self.assertIsNone(trend['start'])
        self.assertIsNone(trend['end'])

    def test_sku_without_periods(self):
        """A SKU with a single count has an empty trend."""
        trend = sales_trend(self.snapshots, [], 'Y', '1y', self.now)

        self.assertEqual(trend['periods'], [])
        self.assertEqual(trend['total_sold'], 0)
        self.assertEqual(trend['avg_rate'], 0.0)

    def test_trend_skus(self):
        """Trend SKUs come from snapshots only."""
        self.assertEqual(trend_skus(self.snapshots), ['X', 'Y'])

    def test_summarize_empty(self):
        """No periods summarize to zero."""
        self.assertEqual(summarize_trend([]), {'total_sold': 0, 'avg_rate': 0.0})


if __name__ == '__main__':
    unittest.main()
