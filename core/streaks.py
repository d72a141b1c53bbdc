"""
Daily tasks and the activity streak.

Completing a task on consecutive days grows the streak; a missed day resets
it to 1. A second completion on the same day leaves the streak alone but
still counts toward total_tasks_completed.
"""

import logging
from dataclasses import replace
from datetime import date, timedelta
from typing import Iterable, List, Optional

from core.action_prioritizer import COMPANY_OVERLAP, FOLLOW_UP, REASON_COOLING, Action
from core.models import DailyTask, Streak, format_date, parse_date
from core.store import Store, StoreError, new_id
from core.warmth import DateLike

logger = logging.getLogger(__name__)


def next_streak(streak: Optional[Streak], today: DateLike = None) -> Streak:
    """Streak after one more completed task on `today`."""
    streak = streak or Streak()
    day = parse_date(today) or date.today()
    last = streak.last_activity_date

    if last == day - timedelta(days=1):
        current = streak.current_streak + 1
    elif last != day:
        current = 1
    else:
        current = streak.current_streak

    return replace(
        streak,
        current_streak=current,
        longest_streak=max(streak.longest_streak, current),
        total_tasks_completed=streak.total_tasks_completed + 1,
        last_activity_date=day,
    )


def get_streak(store: Store) -> Streak:
    """The user's streak; zeros when no row exists yet."""
    if not store.current_user():
        return Streak()
    return Streak.from_row(store.select_one('streaks', {}))


def tasks_for_day(store: Store, day: DateLike = None) -> List[DailyTask]:
    if not store.current_user():
        return []
    day = parse_date(day) or date.today()
    rows = store.select('daily_tasks', {'due_date': format_date(day)}, order_by='created_at')
    return [DailyTask.from_row(r) for r in rows]


def complete_task(store: Store, task_id: str, completed: bool = True,
                  today: DateLike = None) -> Optional[Streak]:
    """
    Mark a daily task done or not done.

    Completing a task advances the streak, creating the streak row on first
    use. Un-completing leaves the streak as it is.

    Returns:
        The streak after the update, or None when signed out
    """
    if not store.current_user():
        return None

    try:
        store.update('daily_tasks', {'id': task_id}, {'completed': completed})
    except StoreError as e:
        logger.error(f"Failed to update task {task_id}: {e}")
        raise

    row = store.select_one('streaks', {})
    streak = Streak.from_row(row)
    if not completed:
        return streak

    updated = next_streak(streak, today)
    try:
        if row is None:
            store.insert('streaks', updated.to_row())
        else:
            store.update('streaks', {'id': row['id']}, updated.to_row())
    except StoreError as e:
        logger.error(f"Failed to update streak: {e}")
        raise

    if updated.current_streak > streak.current_streak:
        logger.info(f"Streak is now {updated.current_streak} day(s)")
    return updated


def _task_type(action: Action) -> str:
    if action.type == FOLLOW_UP:
        return 'follow_up'
    if action.type != COMPANY_OVERLAP and action.reason == REASON_COOLING:
        return 'warm_up'
    return 'reach_out'


def _discard_tasks(store: Store, task_ids: List[str]):
    for task_id in task_ids:
        try:
            store.delete('daily_tasks', {'id': task_id})
        except StoreError as e:
            logger.error(f"Could not remove partial task {task_id}: {e}")


def generate_daily_tasks(store: Store, actions: Iterable[Action],
                         today: DateLike = None) -> List[DailyTask]:
    """
    Turn today's recommended actions into daily tasks.

    Does nothing when the day already has tasks, so re-running is safe.
    The day's plan is written whole or not at all: if an insert fails, the
    tasks inserted so far are deleted and the StoreError is re-raised.

    Returns:
        The tasks created (empty when the day was already planned)
    """
    if not store.current_user():
        return []
    day = parse_date(today) or date.today()
    if tasks_for_day(store, day):
        logger.info(f"Tasks for {day} already exist, skipping generation")
        return []

    rows = [{
        'id': new_id(),
        'description': action.describe(),
        'task_type': _task_type(action),
        'completed': False,
        'due_date': format_date(day),
        'contact_id': action.contact.id,
        'company_id': action.metadata.get('company_id'),
    } for action in actions]

    created = []
    for row in rows:
        try:
            created.append(DailyTask.from_row(store.insert('daily_tasks', row)))
        except StoreError as e:
            logger.error(f"Failed to save tasks for {day}: {e}")
            _discard_tasks(store, [t.id for t in created])
            raise

    logger.info(f"Generated {len(created)} task(s) for {day}")
    return created
