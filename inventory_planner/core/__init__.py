from .periods import reconstruct_periods, purchases_in_period, sort_snapshots
from .velocity import (
    days_in_period, calculate_velocity, calculate_period_velocity,
    build_sku_periods, build_inventory_log
)
from .replenishment import (
    plan_replenishment, build_planner_row, sort_planner_rows,
    parse_rate_basis, DEFAULT_SETTINGS
)
from .trend import resolve_timeframe, window_periods, summarize_trend, sales_trend, trend_skus
from .lead_time import (
    analyze_lead_times, calculate_actual_lead_time, calculate_eta_variance, eta_status
)

__all__ = [
    'reconstruct_periods',
    'purchases_in_period',
    'sort_snapshots',
    'days_in_period',
    'calculate_velocity',
    'calculate_period_velocity',
    'build_sku_periods',
    'build_inventory_log',
    'plan_replenishment',
    'build_planner_row',
    'sort_planner_rows',
    'parse_rate_basis',
    'DEFAULT_SETTINGS',
    'resolve_timeframe',
    'window_periods',
    'summarize_trend',
    'sales_trend',
    'trend_skus',
    'analyze_lead_times',
    'calculate_actual_lead_time',
    'calculate_eta_variance',
    'eta_status'
]
