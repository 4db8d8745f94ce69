"""
Usage Forecasting

Average daily consumption derived from the transaction log, and the
projected days until a material runs out at that rate.
"""

import math
from collections import defaultdict
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from ...utils.timezone_utils import TimezoneUtils
from ._quantities import to_decimal
from .types import MaterialSnapshot, TransactionSnapshot, UsageStats


def group_transactions_by_material(
    transactions: Iterable[TransactionSnapshot],
) -> Dict[int, List[TransactionSnapshot]]:
    grouped: Dict[int, List[TransactionSnapshot]] = defaultdict(list)
    for txn in transactions:
        grouped[txn.material_id].append(txn)
    return grouped


def _window_transactions(
    material_id: int,
    transactions: Iterable[TransactionSnapshot],
    window_days: int,
    as_of: datetime,
) -> List[TransactionSnapshot]:
    end = TimezoneUtils.ensure_timezone_aware(as_of)
    start = end - timedelta(days=window_days)
    return [
        txn for txn in transactions
        if txn.material_id == material_id
        and start <= TimezoneUtils.ensure_timezone_aware(txn.created_at) <= end
    ]


def compute_usage_stats(
    material: MaterialSnapshot,
    transactions: Iterable[TransactionSnapshot],
    window_days: int = 30,
    as_of: Optional[datetime] = None,
    tz_name: str = 'UTC',
) -> UsageStats:
    """
    Consumption statistics for one material over ``[as_of - window_days, as_of]``.

    Average daily usage divides total consumption (absolute value of negative
    changes) by the number of distinct calendar days that carry any
    transaction for the material, so short histories are not diluted by the
    nominal window length.
    """
    as_of = as_of or TimezoneUtils.utc_now()
    in_window = _window_transactions(material.id, transactions, window_days, as_of)

    consumed = Decimal('0')
    received = Decimal('0')
    observed_days = set()
    for txn in in_window:
        change = to_decimal(txn.quantity_change)
        if change < 0:
            consumed += -change
        elif change > 0:
            received += change
        observed_days.add(TimezoneUtils.local_date(txn.created_at, tz_name))

    average = float(consumed / len(observed_days)) if consumed > 0 and observed_days else 0.0
    return UsageStats(
        material_id=material.id,
        window_days=window_days,
        average_daily_usage=average,
        observed_days=len(observed_days),
        total_consumed=float(consumed),
        total_received=float(received),
        transaction_count=len(in_window),
        days_to_stockout=project_days_to_stockout(material, average),
    )


def compute_average_daily_usage(
    material: MaterialSnapshot,
    transactions: Iterable[TransactionSnapshot],
    window_days: int = 30,
    as_of: Optional[datetime] = None,
    tz_name: str = 'UTC',
) -> float:
    return compute_usage_stats(material, transactions, window_days, as_of, tz_name).average_daily_usage


def project_days_to_stockout(material: MaterialSnapshot, avg_daily_usage: float) -> float:
    """Days of stock left at ``avg_daily_usage``; infinite when nothing is consumed."""
    if not avg_daily_usage or avg_daily_usage <= 0:
        return math.inf
    return max(0.0, float(material.stock_quantity) / avg_daily_usage)
