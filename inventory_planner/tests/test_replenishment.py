"""
Unit tests for the replenishment planner.
"""
import math
import unittest
from datetime import date

from inventory_planner.exceptions import ValidationError
from inventory_planner.models import Snapshot, PurchaseOrder, SkuSettings
from inventory_planner.core.replenishment import (
    DEFAULT_SETTINGS,
    parse_rate_basis,
    find_closest_snapshot,
    calculate_current_rate,
    resolve_settings,
    build_planner_row,
    plan_replenishment
)
from inventory_planner.core.periods import sort_snapshots


def make_snapshot(id, sku, count_date, qty):
    return Snapshot(id=id, sku=sku, date=count_date, qty=qty)


def make_po(id, sku, qty, received=True, received_date=None):
    return PurchaseOrder(
        id=id, sku=sku, po_number=f"PO{id}", order_date='2025-01-01', qty=qty,
        received=received, eta=None, received_date=received_date, vendor=None
    )


class TestPlanReplenishment(unittest.TestCase):
    """Test cases for plan_replenishment."""

    def setUp(self):
        """Set up test fixtures."""
        self.snapshots = [
            make_snapshot(1, 'X', '2025-07-01', 0),
            make_snapshot(2, 'X', '2025-11-25', 600),
        ]
        self.purchase_orders = [make_po(1, 'X', 1000, received_date='2025-07-09')]
        self.settings = [SkuSettings(sku='X', lead_time=90, min_days=60, target_months=10)]
        self.today = date(2025, 11, 25)

    def test_reorder_figures(self):
        """Trigger, target and reorder quantity follow the daily rate."""
        rows = plan_replenishment(self.snapshots, self.purchase_orders, self.settings, self.today)

        self.assertEqual(len(rows), 1)
        row = rows[0]
        self.assertEqual(row['current_inventory'], 600)
        self.assertAlmostEqual(row['daily_rate'], 400 / 147)
        self.assertAlmostEqual(row['reorder_trigger_level'], 408.16, places=2)
        self.assertAlmostEqual(row['target_unit_level'], 1224.49, places=2)
        self.assertAlmostEqual(row['reorder_qty'], 624.49, places=2)
        self.assertAlmostEqual(row['days_remaining'], 220.5)
        self.assertEqual(row['suggested_order_date'], date(2026, 2, 3))
        self.assertFalse(row['needs_action'])
        self.assertEqual(row['used_period_label'], 'Last Period')

    def test_settings_without_snapshots(self):
        """A SKU known only from settings never runs out."""
        settings = [SkuSettings(sku='NEW', lead_time=30, min_days=10, target_months=2)]

        row = plan_replenishment([], [], settings, self.today)[0]

        self.assertEqual(row['sku'], 'NEW')
        self.assertEqual(row['current_inventory'], 0)
        self.assertEqual(row['daily_rate'], 0)
        self.assertTrue(math.isinf(row['days_remaining']))
        self.assertIsNone(row['zero_date'])
        self.assertFalse(row['needs_action'])
        self.assertEqual(row['reorder_qty'], 0)
        self.assertEqual(row['used_period_label'], 'No Data')

    def test_sku_only_on_purchase_orders(self):
        """A SKU that has only been ordered still gets a row with its open quantity."""
        rows = plan_replenishment([], [make_po(1, 'P', 50, received=False)], [], self.today)

        self.assertEqual(len(rows), 1)
        row = rows[0]
        self.assertEqual(row['sku'], 'P')
        self.assertEqual(row['on_order'], 50)
        self.assertEqual(row['suggested_order_date'], self.today)
        self.assertFalse(row['needs_action'])

    def test_defaults_for_missing_settings(self):
        """SKUs without a settings row use the defaults."""
        row = plan_replenishment(self.snapshots, self.purchase_orders, [], self.today)[0]

        self.assertEqual(row['settings']['lead_time'], DEFAULT_SETTINGS['lead_time'])
        self.assertEqual(row['settings']['min_days'], DEFAULT_SETTINGS['min_days'])
        self.assertEqual(row['settings']['target_months'], DEFAULT_SETTINGS['target_months'])

    def test_custom_defaults(self):
        """Explicit defaults override the built-in ones."""
        defaults = {'lead_time': 10, 'min_days': 5, 'target_months': 1}

        row = plan_replenishment(self.snapshots, self.purchase_orders, [], self.today, defaults=defaults)[0]

        self.assertAlmostEqual(row['reorder_trigger_level'], 400 / 147 * 15)

    def test_rows_needing_action_first(self):
        """Rows needing action come first, each group alphabetical."""
        snapshots = [
            # A and D have plenty of stock, B and C are running low
            make_snapshot(1, 'A', '2025-01-01', 1000),
            make_snapshot(2, 'A', '2025-01-31', 990),
            make_snapshot(3, 'B', '2025-01-01', 100),
            make_snapshot(4, 'B', '2025-01-31', 10),
            make_snapshot(5, 'C', '2025-01-01', 100),
            make_snapshot(6, 'C', '2025-01-31', 40),
            make_snapshot(7, 'D', '2025-01-01', 500),
            make_snapshot(8, 'D', '2025-01-31', 500),
        ]

        rows = plan_replenishment(snapshots, [], [], date(2025, 2, 1))

        self.assertEqual([r['sku'] for r in rows], ['B', 'C', 'A', 'D'])
        self.assertEqual([r['needs_action'] for r in rows], [True, True, False, False])

    def test_reorder_qty_never_negative(self):
        """Stock above the target level means nothing to order."""
        snapshots = [
            make_snapshot(1, 'X', '2025-01-01', 10010),
            make_snapshot(2, 'X', '2025-01-11', 10000),
        ]

        row = plan_replenishment(snapshots, [], [], date(2025, 1, 11))[0]

        self.assertEqual(row['daily_rate'], 1)
        self.assertEqual(row['reorder_qty'], 0)
        self.assertFalse(row['needs_action'])

    def test_negative_rate_floored(self):
        """A negative rate keeps its raw value but plans as zero demand."""
        snapshots = [
            make_snapshot(1, 'X', '2025-01-01', 10),
            make_snapshot(2, 'X', '2025-01-11', 50),
        ]

        row = plan_replenishment(snapshots, [], [], date(2025, 1, 11))[0]

        self.assertEqual(row['raw_daily_rate'], -4)
        self.assertEqual(row['daily_rate'], 0)
        self.assertTrue(math.isinf(row['days_remaining']))
        self.assertEqual(row['reorder_qty'], 0)
        self.assertFalse(row['needs_action'])

    def test_non_numeric_settings_count_as_zero(self):
        """Non-numeric setting values are treated as 0."""
        settings = [{'sku': 'X', 'lead_time': 'abc', 'min_days': None, 'target_months': '2'}]

        row = plan_replenishment(self.snapshots, self.purchase_orders, settings, self.today)[0]

        self.assertEqual(row['settings']['lead_time'], 0)
        self.assertEqual(row['settings']['min_days'], 0)
        self.assertEqual(row['settings']['target_months'], 2)
        self.assertEqual(row['reorder_trigger_level'], 0)

    def test_invalid_reference_date(self):
        """An unusable reference date is rejected."""
        with self.assertRaises(ValidationError):
            plan_replenishment(self.snapshots, self.purchase_orders, self.settings, 'not a date')

    def test_string_reference_date(self):
        """ISO strings are accepted as the reference date."""
        rows = plan_replenishment(self.snapshots, self.purchase_orders, self.settings, '2025-11-25')

        self.assertEqual(rows[0]['suggested_order_date'], date(2026, 2, 3))


class TestBuildPlannerRow(unittest.TestCase):
    """Test cases for the per-SKU forecast."""

    def setUp(self):
        """Set up test fixtures."""
        self.settings = {'sku': 'X', 'lead_time': 0, 'min_days': 0, 'target_months': 0}
        self.today = date(2025, 1, 1)

    def test_zero_date_rounds_half_up(self):
        """2.5 days of stock runs out three days from today."""
        row = build_planner_row('X', 5, 2.0, 0, self.settings, self.today)

        self.assertEqual(row['days_remaining'], 2.5)
        self.assertEqual(row['zero_date'], date(2025, 1, 4))

    def test_order_date_floors(self):
        """The suggested order date rounds the remaining slack down."""
        settings = dict(self.settings, lead_time=5, min_days=5)

        row = build_planner_row('X', 35, 2.0, 0, settings, self.today)

        self.assertEqual(row['days_until_order'], 7.5)
        self.assertEqual(row['suggested_order_date'], date(2025, 1, 8))
        self.assertFalse(row['needs_action'])

    def test_overdue_order_date_is_today(self):
        """When the cover is already breached the order date is today."""
        settings = dict(self.settings, lead_time=30, min_days=30)

        row = build_planner_row('X', 20, 1.0, 0, settings, self.today)

        self.assertEqual(row['suggested_order_date'], self.today)
        self.assertTrue(row['needs_action'])

    def test_on_order_reduces_reorder_qty(self):
        """Open purchase orders count towards the target level."""
        settings = dict(self.settings, lead_time=10, min_days=10, target_months=1)

        row = build_planner_row('X', 20, 1.0, 30, settings, self.today)

        self.assertEqual(row['target_unit_level'], 50)
        self.assertEqual(row['reorder_qty'], 0)

    def test_zero_date_beyond_calendar(self):
        """A horizon past the last representable date has no zero date."""
        row = build_planner_row('X', 10 ** 9, 1e-6, 0, self.settings, self.today)

        self.assertIsNone(row['zero_date'])


class TestRateBasis(unittest.TestCase):
    """Test cases for choosing the span the daily rate comes from."""

    def setUp(self):
        """Set up test fixtures."""
        self.ordered = sort_snapshots([
            make_snapshot(1, 'X', '2025-06-01', 500),
            make_snapshot(2, 'X', '2025-09-01', 300),
            make_snapshot(3, 'X', '2025-11-01', 250),
            make_snapshot(4, 'X', '2025-12-01', 200),
        ])
        self.today = date(2025, 12, 1)

    def test_parse_rate_basis(self):
        """Selectors normalize to a dictionary."""
        self.assertEqual(parse_rate_basis(None)['timeframe'], 'last-period')
        self.assertEqual(parse_rate_basis('6m')['timeframe'], '6m')

        parsed = parse_rate_basis({'timeframe': 'custom', 'start': '2025-01-01', 'end': '2025-02-01'})
        self.assertEqual(parsed['start'], date(2025, 1, 1))
        self.assertEqual(parsed['end'], date(2025, 2, 1))

        with self.assertRaises(ValidationError):
            parse_rate_basis('2w')

    def test_find_closest_snapshot(self):
        """The nearest count wins; equal distances go to the first."""
        self.assertEqual(find_closest_snapshot(self.ordered, date(2025, 8, 30)).id, 2)
        self.assertEqual(find_closest_snapshot(self.ordered, date(2025, 11, 16)).id, 4)
        self.assertIsNone(find_closest_snapshot([], date(2025, 1, 1)))

    def test_last_period(self):
        """The default uses the two newest counts."""
        rate, label = calculate_current_rate(self.ordered, [], self.today, parse_rate_basis(None))

        self.assertAlmostEqual(rate, 50 / 30)
        self.assertEqual(label, 'Last Period')

    def test_rolling_three_months(self):
        """A rolling basis spans from the count closest to N months ago."""
        rate, label = calculate_current_rate(self.ordered, [], self.today, parse_rate_basis('3m'))

        self.assertAlmostEqual(rate, 100 / 91)
        self.assertEqual(label, '3m')

    def test_rolling_year_uses_oldest_count(self):
        """A window older than every count starts at the oldest one."""
        rate, label = calculate_current_rate(self.ordered, [], self.today, parse_rate_basis('1y'))

        self.assertAlmostEqual(rate, 300 / 183)
        self.assertEqual(label, '1y')

    def test_custom_range(self):
        """A custom basis spans between the counts closest to its dates."""
        basis = parse_rate_basis({'timeframe': 'custom', 'start': '2025-06-02', 'end': '2025-11-02'})

        rate, label = calculate_current_rate(self.ordered, [], self.today, basis)

        self.assertAlmostEqual(rate, 250 / 153)
        self.assertEqual(label, 'Custom Range')

    def test_incomplete_custom_range(self):
        """A custom basis without both dates falls back to the latest period."""
        basis = parse_rate_basis({'timeframe': 'custom', 'start': '2025-06-02'})

        rate, label = calculate_current_rate(self.ordered, [], self.today, basis)

        self.assertAlmostEqual(rate, 50 / 30)
        self.assertEqual(label, 'Last Period')

    def test_same_count_at_both_ends(self):
        """Both dates closest to one count give a zero rate."""
        basis = parse_rate_basis({'timeframe': 'custom', 'start': '2025-12-02', 'end': '2025-12-05'})

        rate, label = calculate_current_rate(self.ordered, [], self.today, basis)

        self.assertEqual(rate, 0)
        self.assertEqual(label, 'Custom Range')

    def test_planner_passes_basis_through(self):
        """plan_replenishment labels rows with the basis used."""
        rows = plan_replenishment(self.ordered, [], [], self.today, rate_basis='3m')

        self.assertEqual(rows[0]['used_period_label'], '3m')
        self.assertAlmostEqual(rows[0]['daily_rate'], 100 / 91)


class TestResolveSettings(unittest.TestCase):
    """Test cases for resolve_settings."""

    def test_model_row(self):
        """Settings rows are read attribute by attribute."""
        rows = {'X': SkuSettings(sku='X', lead_time=14, min_days=7, target_months=1.5)}

        result = resolve_settings('X', rows, DEFAULT_SETTINGS)

        self.assertEqual(result, {'sku': 'X', 'lead_time': 14, 'min_days': 7, 'target_months': 1.5})

    def test_missing_row(self):
        """Unknown SKUs take the defaults."""
        result = resolve_settings('Y', {}, DEFAULT_SETTINGS)

        self.assertEqual(result['lead_time'], 90)
        self.assertEqual(result['min_days'], 60)
        self.assertEqual(result['target_months'], 6)


if __name__ == '__main__':
    unittest.main()
