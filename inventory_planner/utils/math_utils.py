# inventory_planner/utils/math_utils.py
import math
from typing import Iterable, Optional

import numpy as np


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Divide, returning `default` when the denominator is not positive."""
    if not denominator or denominator <= 0:
        return default
    return numerator / denominator


def mean_or_none(values: Iterable[float]) -> Optional[float]:
    """Arithmetic mean of the values, or None when there are none."""
    values = [v for v in values if v is not None and math.isfinite(v)]
    if not values:
        return None
    return float(np.mean(values))


def as_number(value, default: float = 0.0) -> float:
    """Coerce a setting value to a number.

    Empty, non-numeric and non-finite values become `default`.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return number
