"""
Warmth classification.

Warmth is a pure function of last_contact_date and "now":

    0-14 days   -> warm
    15-30 days  -> cooling
    31+ / never -> cold

The warmth_level column in the store is a write-back cache of this
function. Scoring always recomputes in memory first and only writes rows
whose stored label is out of date.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, List, Optional, Union

from core.models import COLD, COOLING, WARM, Contact, parse_date
from core.store import Store, StoreError
from core.thresholds import COOLING_MAX_DAYS, WARM_MAX_DAYS

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime, str, None]


@dataclass(frozen=True)
class WarmthChange:
    contact_id: str
    old: str
    new: str


def _as_date(value: DateLike) -> Optional[date]:
    return parse_date(value)


def days_since(last_contact: DateLike, now: DateLike = None) -> Optional[int]:
    """Whole calendar days since last_contact. None when never contacted; future dates count as 0."""
    last = _as_date(last_contact)
    if last is None:
        return None
    today = _as_date(now) or date.today()
    return max((today - last).days, 0)


def classify_warmth(last_contact: DateLike, now: DateLike = None) -> str:
    days = days_since(last_contact, now)
    if days is None:
        return COLD
    if days <= WARM_MAX_DAYS:
        return WARM
    if days <= COOLING_MAX_DAYS:
        return COOLING
    return COLD


def with_recomputed_warmth(contacts: Iterable[Contact], now: DateLike = None) -> List[Contact]:
    """Copies of contacts carrying freshly computed warmth."""
    return [c.with_warmth(classify_warmth(c.last_contact_date, now)) for c in contacts]


def reclassify_contacts(contacts: Iterable[Contact], now: DateLike = None) -> List[WarmthChange]:
    """
    Contacts whose stored warmth differs from the computed one.

    Compares against the raw stored label, so legacy 'hot', NULL and unknown
    labels are rewritten once as the canonical level.
    """
    changes = []
    for c in contacts:
        new = classify_warmth(c.last_contact_date, now)
        old = c.warmth_level if c.stored_warmth is None else c.stored_warmth
        if new != old:
            changes.append(WarmthChange(c.id, old, new))
    return changes


def apply_warmth_updates(store: Store, changes: Iterable[WarmthChange]) -> int:
    """
    Write each change as its own update. A failed write is logged and
    skipped; the row keeps its stale label until the next recompute.

    Returns:
        Number of rows written
    """
    written = 0
    for change in changes:
        try:
            store.update('contacts', {'id': change.contact_id},
                         {'warmth_level': change.new})
            written += 1
        except StoreError as e:
            logger.error(f"Warmth update failed for contact {change.contact_id}: {e}")
    if written:
        logger.info(f"Updated warmth on {written} contact(s)")
    return written


def refresh_warmth(store: Store, now: DateLike = None) -> int:
    """Recompute warmth for the user's active contacts and persist changes."""
    if not store.current_user():
        return 0
    try:
        rows = store.select('contacts', {'is_archived': False})
    except StoreError as e:
        logger.error(f"Could not load contacts for warmth refresh: {e}")
        return 0
    contacts = [Contact.from_row(r) for r in rows]
    return apply_warmth_updates(store, reclassify_contacts(contacts, now))
