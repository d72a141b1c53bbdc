"""
Outreach Manager
================
Log interactions, schedule follow-ups, surface what is due.

Interactions are an append-only log. Logging one moves the contact's
last_contact_date and rewrites its cached warmth_level.
Follow-ups are independent of interactions.
"""

import logging
from datetime import date, datetime
from typing import Dict, List, Optional

from core.cache import ReadThroughCache
from core.models import Contact, FollowUp, Interaction, format_date, parse_date
from core.store import Store, StoreError
from core.validation import FollowUpForm, InteractionForm, parse_form
from core.warmth import DateLike, classify_warmth

logger = logging.getLogger(__name__)


def _invalidate(cache: Optional[ReadThroughCache], *collections: str):
    if cache is not None:
        for collection in collections:
            cache.invalidate(collection)


def log_interaction(store: Store, form_data: Dict, now: DateLike = None,
                    cache: Optional[ReadThroughCache] = None) -> Optional[Interaction]:
    """
    Log an interaction with a contact.

    Args:
        form_data: contact_id, interaction_type (email | call | message |
                   meeting | intro_attempt), interaction_date, notes
        now: reference date for the recomputed warmth

    Returns:
        The new Interaction, or None when signed out

    Raises:
        ValidationFailed: bad form input
        StoreError: insert or contact update failed
    """
    if not store.current_user():
        return None

    form = parse_form(InteractionForm, form_data)
    try:
        row = store.insert('interactions', {
            'contact_id': form.contact_id,
            'interaction_date': format_date(form.interaction_date),
            'interaction_type': form.interaction_type,
            'notes': form.notes,
        })
        store.update('contacts', {'id': form.contact_id}, {
            'last_contact_date': format_date(form.interaction_date),
            'warmth_level': classify_warmth(form.interaction_date, now),
        })
    except StoreError as e:
        logger.error(f"Failed to log interaction for contact {form.contact_id}: {e}")
        raise

    _invalidate(cache, 'interactions', 'contacts')
    return Interaction.from_row(row)


def get_interactions(store: Store, contact_id: Optional[str] = None) -> List[Interaction]:
    """Interactions newest first, optionally for one contact."""
    if not store.current_user():
        return []
    filters = {'contact_id': contact_id} if contact_id else None
    rows = store.select('interactions', filters, order_by='interaction_date', descending=True)
    return [Interaction.from_row(r) for r in rows]


def schedule_follow_up(store: Store, form_data: Dict,
                       cache: Optional[ReadThroughCache] = None) -> Optional[FollowUp]:
    """Schedule a follow-up with a contact on a due date."""
    if not store.current_user():
        return None

    form = parse_form(FollowUpForm, form_data)
    try:
        row = store.insert('follow_ups', {
            'contact_id': form.contact_id,
            'due_date': format_date(form.due_date),
            'note': form.note,
            'completed': False,
        })
    except StoreError as e:
        logger.error(f"Failed to add follow-up for contact {form.contact_id}: {e}")
        raise

    _invalidate(cache, 'follow_ups')
    return FollowUp.from_row(row)


def set_follow_up_completed(store: Store, follow_up_id: str, completed: bool = True,
                            cache: Optional[ReadThroughCache] = None) -> bool:
    """Mark a follow-up done (stamps completed_at) or reopen it."""
    if not store.current_user():
        return False
    patch = {
        'completed': completed,
        'completed_at': datetime.now().isoformat(timespec='seconds') if completed else None,
    }
    try:
        store.update('follow_ups', {'id': follow_up_id}, patch)
    except StoreError as e:
        logger.error(f"Failed to update follow-up {follow_up_id}: {e}")
        raise
    _invalidate(cache, 'follow_ups')
    return True


def _join_contacts(store: Store, rows: List[Dict]) -> List[FollowUp]:
    contact_ids = {r['contact_id'] for r in rows}
    contacts = {}
    if contact_ids:
        for c in store.select('contacts'):
            if c['id'] in contact_ids:
                contacts[c['id']] = Contact.from_row(c)
    return [FollowUp.from_row(r, contacts.get(r['contact_id'])) for r in rows]


def get_follow_ups_due(store: Store, today: DateLike = None) -> List[FollowUp]:
    """Uncompleted follow-ups due exactly today, with their contact attached."""
    if not store.current_user():
        return []
    day = parse_date(today) or date.today()
    rows = store.select('follow_ups', {'due_date': format_date(day), 'completed': False},
                        order_by='created_at')
    return _join_contacts(store, rows)


def list_follow_ups(store: Store) -> List[FollowUp]:
    """All follow-ups, soonest due first."""
    if not store.current_user():
        return []
    rows = store.select('follow_ups', order_by='due_date')
    return _join_contacts(store, rows)


def is_overdue(follow_up: FollowUp, today: DateLike = None) -> bool:
    day = parse_date(today) or date.today()
    return (not follow_up.completed
            and follow_up.due_date is not None
            and follow_up.due_date < day)


def get_follow_up_summary(store: Store, today: DateLike = None) -> Dict:
    """Quick summary of follow-up status."""
    day = parse_date(today) or date.today()
    summary = {'due': 0, 'overdue': 0, 'upcoming': 0, 'completed': 0}
    for fu in list_follow_ups(store):
        if fu.completed:
            summary['completed'] += 1
        elif fu.due_date is None or fu.due_date > day:
            summary['upcoming'] += 1
        elif fu.due_date == day:
            summary['due'] += 1
        else:
            summary['overdue'] += 1
    return summary
