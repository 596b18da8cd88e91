import argparse
import json
import logging
import math
import sys
from datetime import date
from pathlib import Path

from inventory_planner.config import config
from inventory_planner.db import db, session_scope
from inventory_planner.logging_setup import logger, get_logger
from inventory_planner.exceptions import PlannerError
from inventory_planner.utils.date_utils import to_date, to_iso

NEVER = 'never'
EMPTY = '—'


def init_application(database_url=None):
    """Initialize application components."""
    db.initialize(database_url)
    db.create_all_tables()

    log = logger.app_logger
    log.debug(f"Using database: {database_url or config.get_db_url()}")
    return True


def format_days(value):
    """Render a day count; an infinite horizon reads as 'never'."""
    if value is None:
        return EMPTY
    if math.isinf(value):
        return NEVER
    return f"{value:.1f}"


def format_stat(value, suffix=''):
    """Render an optional statistic; a missing value reads as '—'."""
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return EMPTY
    return f"{value:.1f}{suffix}"


def format_date(value):
    return to_iso(value) or EMPTY


def _parse_date(value):
    parsed = to_date(value)
    if parsed is None:
        raise argparse.ArgumentTypeError(f"not a valid YYYY-MM-DD date: {value!r}")
    return parsed


def _print_table(headers, rows):
    widths = [len(h) for h in headers]
    for row in rows:
        widths = [max(w, len(str(cell))) for w, cell in zip(widths, row)]

    print('  '.join(h.ljust(w) for h, w in zip(headers, widths)))
    print('  '.join('-' * w for w in widths))
    for row in rows:
        print('  '.join(str(cell).ljust(w) for cell, w in zip(row, widths)))


def import_data(args):
    """Import an exported JSON payload into the database."""
    from inventory_planner.services.inventory_service import InventoryService

    log = get_logger('import')
    path = Path(args.file)

    try:
        payload = json.loads(path.read_text(encoding='utf-8'))
    except (OSError, ValueError) as e:
        log.error(f"Could not read {path}: {str(e)}")
        return False

    with session_scope() as session:
        counts = InventoryService(session).import_payload(payload, replace=args.replace)

    print(f"Imported {counts['snapshots']} snapshots, {counts['purchase_orders']} purchase orders "
          f"and {counts['settings']} settings rows from {path}")
    return True


def show_planner(args):
    """Print the replenishment plan."""
    from inventory_planner.services.reporting_service import ReportingService

    rate_basis = args.rate_basis
    if rate_basis == 'custom':
        rate_basis = {'timeframe': 'custom', 'start': args.start, 'end': args.end}

    with session_scope() as session:
        rows = ReportingService(session).planner_report(today=args.today, rate_basis=rate_basis)

        table = [
            [
                row['sku'],
                row['current_inventory'],
                f"{row['daily_rate']:.2f}",
                format_days(row['days_remaining']),
                format_date(row['zero_date']),
                round(row['reorder_trigger_level']),
                round(row['target_unit_level']),
                row['on_order'],
                round(row['reorder_qty']),
                format_date(row['suggested_order_date']),
                'YES' if row['needs_action'] else '',
                row['used_period_label']
            ]
            for row in rows
        ]

    _print_table(
        ['SKU', 'On Hand', 'Rate/Day', 'Days Left', 'Zero Date', 'Trigger', 'Target',
         'On Order', 'Reorder', 'Order By', 'Action', 'Rate Basis'],
        table
    )
    return True


def show_trend(args):
    """Print the sales trend of one SKU."""
    from inventory_planner.services.reporting_service import ReportingService

    with session_scope() as session:
        trend = ReportingService(session).sales_trend_report(
            sku=args.sku,
            timeframe=args.timeframe,
            now=args.now,
            custom_start=args.start,
            custom_end=args.end
        )

    print(f"SKU: {trend['sku'] or EMPTY}  timeframe: {trend['timeframe']}")
    print(f"Total sold: {trend['total_sold']}  average rate: {trend['avg_rate']:.2f}/day")
    _print_table(
        ['Date', 'Days', 'Purchases', 'Units Sold', 'Rate/Day'],
        [
            [format_date(p['current_date']), p['days_in_period'], p['purchases'],
             p['units_sold'], f"{p['daily_rate']:.2f}"]
            for p in trend['periods']
        ]
    )
    return True


def show_lead_time(args):
    """Print the lead time and ETA variance report."""
    from inventory_planner.services.reporting_service import ReportingService

    with session_scope() as session:
        report = ReportingService(session).lead_time_report()

    print(f"Purchase orders: {report['total_pos']}  evaluated: {report['evaluated_pos']}")
    print(f"Average variance: {format_stat(report['avg_variance'], ' days')}  "
          f"on time: {format_stat(report['on_time_pct'], '%')}")
    _print_table(
        ['SKU', 'Avg Lead Time', 'Avg ETA Variance', 'Received'],
        [
            [row['sku'], format_stat(row['avg_actual_lead_time'], ' days'),
             format_stat(row['avg_variance_eta'], ' days'), row['received_count']]
            for row in report['rows']
        ]
    )
    return True


def show_log(args):
    """Print the physical count log."""
    from inventory_planner.services.reporting_service import ReportingService

    with session_scope() as session:
        rows = ReportingService(session).inventory_log(sku=args.sku)

    _print_table(
        ['Date', 'SKU', 'Qty', 'Prev Date', 'Prev Qty', 'Purchases', 'Days', 'Units Sold', 'Rate/Day'],
        [
            [format_date(r['date']), r['sku'], r['qty'], format_date(r['prev_date']),
             EMPTY if r['prev_qty'] is None else r['prev_qty'], r['purchases'],
             EMPTY if r['days_in_period'] is None else r['days_in_period'],
             EMPTY if r['units_sold'] is None else r['units_sold'], f"{r['daily_rate']:.2f}"]
            for r in rows
        ]
    )
    return True


def receive_order(args):
    """Toggle the received flag of a purchase order."""
    from inventory_planner.services.inventory_service import InventoryService

    with session_scope() as session:
        po = InventoryService(session).toggle_received(args.po_id, args.today or date.today())
        state = f"received {format_date(po.received_date)}" if po.received else 'on order'
        print(f"PO {po.po_number} ({po.sku}) is now {state}")
    return True


COMMANDS = {
    'import': import_data,
    'planner': show_planner,
    'trend': show_trend,
    'lead-time': show_lead_time,
    'log': show_log,
    'receive': receive_order
}


def build_parser():
    parser = argparse.ArgumentParser(description='Inventory velocity and replenishment planner')
    parser.add_argument('--database-url', help='SQLAlchemy URL, overrides the configuration')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose logging')

    subparsers = parser.add_subparsers(dest='command', required=True)

    import_parser = subparsers.add_parser('import', help='Import an exported JSON payload')
    import_parser.add_argument('file', help='Path to the JSON file')
    import_parser.add_argument('--replace', action='store_true', help='Delete stored records first')

    planner_parser = subparsers.add_parser('planner', help='Show the replenishment plan')
    planner_parser.add_argument('--today', type=_parse_date, help='Reference date (YYYY-MM-DD)')
    planner_parser.add_argument('--rate-basis', choices=['last-period', '3m', '6m', '1y', 'custom'],
                                help='Span used for the daily rate')
    planner_parser.add_argument('--start', type=_parse_date, help='Custom rate basis start')
    planner_parser.add_argument('--end', type=_parse_date, help='Custom rate basis end')

    trend_parser = subparsers.add_parser('trend', help='Show the sales trend of a SKU')
    trend_parser.add_argument('--sku', help='SKU, defaults to the first counted SKU')
    trend_parser.add_argument('--timeframe', choices=['3m', '6m', '1y', 'custom'], help='Window')
    trend_parser.add_argument('--start', type=_parse_date, help='Custom window start')
    trend_parser.add_argument('--end', type=_parse_date, help='Custom window end')
    trend_parser.add_argument('--now', type=_parse_date, help='Reference date for rolling windows')

    subparsers.add_parser('lead-time', help='Show the lead time and ETA variance report')

    log_parser = subparsers.add_parser('log', help='Show the physical count log')
    log_parser.add_argument('--sku', help='Only show one SKU')

    receive_parser = subparsers.add_parser('receive', help='Toggle the received flag of a PO')
    receive_parser.add_argument('po_id', type=int, help='Purchase order ID')
    receive_parser.add_argument('--today', type=_parse_date, help='Receipt date (YYYY-MM-DD)')

    return parser


def main(argv=None):
    """Main entry point for the command-line interface."""
    args = build_parser().parse_args(argv)

    if args.verbose:
        logger.set_level(logging.DEBUG)

    log = get_logger('cli')

    try:
        init_application(args.database_url)
        success = COMMANDS[args.command](args)
    except PlannerError as e:
        log.error(f"{args.command} failed: {str(e)}")
        if e.details:
            log.error(f"Details: {e.details}")
        return 1
    except Exception as e:
        logger.log_exception('cli', e, f"Unexpected error running {args.command}")
        return 1

    return 0 if success else 1


if __name__ == '__main__':
    sys.exit(main())
