"""
Network strength history.

One snapshot row per day holds that day's network strength. The weekly
change compares today's score with the latest snapshot at least a week
old; with no such snapshot there is no change to report.
"""

import logging
from datetime import date, timedelta
from typing import Optional

from core.models import format_date, parse_date
from core.store import Store, StoreError
from core.thresholds import STRENGTH_HISTORY_LOOKBACK_DAYS
from core.warmth import DateLike

logger = logging.getLogger(__name__)


def record_strength(store: Store, score: int, today: DateLike = None) -> bool:
    """Upsert today's strength snapshot. Returns False when signed out or on failure."""
    if not store.current_user():
        return False
    day = format_date(parse_date(today) or date.today())
    try:
        existing = store.select_one('strength_snapshots', {'snapshot_date': day})
        if existing is None:
            store.insert('strength_snapshots', {'snapshot_date': day, 'network_strength': score})
        elif existing.get('network_strength') != score:
            store.update('strength_snapshots', {'id': existing['id']},
                         {'network_strength': score})
    except StoreError as e:
        logger.error(f"Could not record network strength for {day}: {e}")
        return False
    return True


def strength_delta(store: Store, score: int, today: DateLike = None) -> Optional[int]:
    """score minus the most recent snapshot dated a week ago or earlier."""
    if not store.current_user():
        return None
    day = parse_date(today) or date.today()
    cutoff = day - timedelta(days=STRENGTH_HISTORY_LOOKBACK_DAYS)

    rows = store.select('strength_snapshots', order_by='snapshot_date', descending=True)
    for row in rows:
        snapshot_day = parse_date(row.get('snapshot_date'))
        if snapshot_day is not None and snapshot_day <= cutoff:
            return score - int(row.get('network_strength') or 0)
    return None
