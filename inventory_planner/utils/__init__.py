from .date_utils import to_date, to_iso, days_between, add_days, subtract_months
from .math_utils import safe_divide, mean_or_none, as_number

__all__ = [
    'to_date',
    'to_iso',
    'days_between',
    'add_days',
    'subtract_months',
    'safe_divide',
    'mean_or_none',
    'as_number'
]
