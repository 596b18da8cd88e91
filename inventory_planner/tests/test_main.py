"""
Tests for the command-line interface.
"""
import io
import json
import math
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from inventory_planner.db import db
from inventory_planner.main import main, format_days, format_stat, format_date, build_parser
from inventory_planner.tests.test_services import PAYLOAD


class TestFormatting(unittest.TestCase):
    """Test cases for the display helpers."""

    def test_format_days(self):
        self.assertEqual(format_days(math.inf), 'never')
        self.assertEqual(format_days(None), '—')
        self.assertEqual(format_days(27.5), '27.5')

    def test_format_stat(self):
        self.assertEqual(format_stat(None), '—')
        self.assertEqual(format_stat(float('nan')), '—')
        self.assertEqual(format_stat(-1.5, ' days'), '-1.5 days')
        self.assertEqual(format_stat(0.0, '%'), '0.0%')

    def test_format_date(self):
        self.assertEqual(format_date(None), '—')
        self.assertEqual(format_date('2025-07-09'), '2025-07-09')

    def test_rejects_bad_date_argument(self):
        with patch('sys.stderr', new_callable=io.StringIO):
            with self.assertRaises(SystemExit):
                build_parser().parse_args(['planner', '--today', '25/11/2025'])


class TestCommands(unittest.TestCase):
    """Test cases running commands against a temporary database."""

    def setUp(self):
        """Set up test fixtures."""
        self.tmp = tempfile.TemporaryDirectory()
        self.url = f"sqlite:///{Path(self.tmp.name) / 'planner.db'}"
        self.payload_path = Path(self.tmp.name) / 'export.json'
        self.payload_path.write_text(json.dumps(PAYLOAD), encoding='utf-8')

    def tearDown(self):
        """Tear down test fixtures."""
        db.close()
        self.tmp.cleanup()

    def run_cli(self, *args):
        with patch('sys.stdout', new_callable=io.StringIO) as stdout:
            code = main(['--database-url', self.url, *args])
        return code, stdout.getvalue()

    def test_import_then_plan(self):
        code, output = self.run_cli('import', str(self.payload_path))
        self.assertEqual(code, 0)
        self.assertIn('Imported 4 snapshots, 2 purchase orders and 1 settings rows', output)

        code, output = self.run_cli('planner', '--today', '2025-11-25')
        self.assertEqual(code, 0)
        lines = output.splitlines()
        self.assertTrue(lines[2].startswith('LOBO'))
        self.assertIn('YES', lines[2])
        self.assertIn('never', lines[3])

    def test_lead_time_and_log(self):
        self.run_cli('import', str(self.payload_path))

        code, output = self.run_cli('lead-time')
        self.assertEqual(code, 0)
        self.assertIn('on time: 100.0%', output)

        code, output = self.run_cli('log', '--sku', 'MST12')
        self.assertEqual(code, 0)
        self.assertIn('2025-11-25', output)

    def test_trend(self):
        self.run_cli('import', str(self.payload_path))

        code, output = self.run_cli('trend', '--sku', 'MST12', '--timeframe', '1y', '--now', '2025-12-01')

        self.assertEqual(code, 0)
        self.assertIn('Total sold: 400', output)

    def test_receive_unknown_order(self):
        code, _ = self.run_cli('receive', '999')

        self.assertEqual(code, 1)

    def test_import_missing_file(self):
        code, _ = self.run_cli('import', str(Path(self.tmp.name) / 'missing.json'))

        self.assertEqual(code, 1)


if __name__ == '__main__':
    unittest.main()
