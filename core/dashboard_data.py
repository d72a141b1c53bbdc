"""
Dashboard loader.

Builds everything the dashboard shows from one consistent snapshot:

    1. no signed-in user -> None
    2. recompute warmth for active contacts, write only changed labels
    3. drop cached contacts if any label was written
    4. fetch today's tasks, streak, follow-ups due today, contacts,
       companies and interactions
    5. derive actions and scores in memory
    6. record today's network strength
    7. save the snapshot locally

If step 4 fails the last local snapshot is used instead, so the dashboard
degrades to last-known data rather than failing.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

from core.action_prioritizer import Action, prioritize_actions
from core.cache import ReadThroughCache, SnapshotStore
from core.models import (Company, Contact, DailyTask, FollowUp, Interaction, Streak,
                         format_date, parse_date)
from core.network_scores import ScoreCard, compute_scores
from core.store import Store, StoreError
from core.strength_history import record_strength, strength_delta
from core.warmth import DateLike, refresh_warmth, with_recomputed_warmth

logger = logging.getLogger(__name__)


@dataclass
class DashboardView:
    today: date
    contacts: List[Contact]
    companies: List[Company]
    interactions: List[Interaction]
    tasks: List[DailyTask]
    streak: Streak
    follow_ups_due: List[FollowUp]
    actions: List[Action]
    scores: ScoreCard
    warmth_updates: int = 0
    is_stale: bool = False
    from_snapshot: bool = False
    saved_at: Optional[datetime] = None
    errors: List[str] = field(default_factory=list)

    @property
    def tasks_done(self) -> int:
        return sum(1 for t in self.tasks if t.completed)


def _empty_snapshot() -> Dict:
    return {
        'contacts': [], 'companies': [], 'interactions': [],
        'tasks': [], 'streak': None, 'follow_ups_due': [],
    }


def _collection(store: Store, cache: Optional[ReadThroughCache], name: str,
                order_by: Optional[str] = None, descending: bool = False,
                **params) -> Tuple[List[Dict], bool]:
    if cache is not None:
        data, stale = cache.get(name, **params)
        return list(data or []), stale
    return store.select(name, params or None, order_by=order_by, descending=descending), False


def _fetch_snapshot(store: Store, cache: Optional[ReadThroughCache],
                    today: date) -> Tuple[Dict, bool]:
    """Raw rows for one dashboard render. Raises StoreError."""
    day = format_date(today)
    contacts, stale_contacts = _collection(store, cache, 'contacts', 'created_at', True,
                                           is_archived=False)
    companies, stale_companies = _collection(store, cache, 'companies', 'priority', True,
                                             is_archived=False)
    interactions, stale_interactions = _collection(store, cache, 'interactions')
    snapshot = {
        'contacts': contacts,
        'companies': companies,
        'interactions': interactions,
        'tasks': store.select('daily_tasks', {'due_date': day}, order_by='created_at'),
        'streak': store.select_one('streaks', {}),
        'follow_ups_due': store.select('follow_ups', {'due_date': day, 'completed': False},
                                       order_by='created_at'),
    }
    return snapshot, stale_contacts or stale_companies or stale_interactions


def build_view(snapshot: Dict, now: DateLike = None,
               strength_change: Optional[int] = None) -> DashboardView:
    """Derive the dashboard view from raw snapshot rows. Pure."""
    today = parse_date(now) or date.today()
    contacts = with_recomputed_warmth(
        [Contact.from_row(r) for r in snapshot.get('contacts') or []], today)
    companies = [Company.from_row(r) for r in snapshot.get('companies') or []]
    interactions = [Interaction.from_row(r) for r in snapshot.get('interactions') or []]
    tasks = [DailyTask.from_row(r) for r in snapshot.get('tasks') or []]
    streak = Streak.from_row(snapshot.get('streak'))

    by_id = {c.id: c for c in contacts}
    follow_ups = [FollowUp.from_row(r, by_id.get(r.get('contact_id')))
                  for r in snapshot.get('follow_ups_due') or []]

    actions = prioritize_actions(contacts, companies, follow_ups, today)
    scores = compute_scores(contacts, companies, interactions, streak, today, strength_change)
    return DashboardView(
        today=today,
        contacts=contacts,
        companies=companies,
        interactions=interactions,
        tasks=tasks,
        streak=streak,
        follow_ups_due=follow_ups,
        actions=actions,
        scores=scores,
    )


def _with_strength_change(view: DashboardView, change: Optional[int]) -> DashboardView:
    weekly = replace(view.scores.weekly, network_strength_change=change)
    return replace(view, scores=replace(view.scores, weekly=weekly))


def paint_from_snapshot(snapshot_store: Optional[SnapshotStore],
                        now: DateLike = None) -> Optional[DashboardView]:
    """View from the last locally saved snapshot, before any round trip."""
    if snapshot_store is None:
        return None
    saved = snapshot_store.load()
    if saved is None:
        return None
    snapshot, saved_at = saved
    view = build_view(snapshot, now)
    view.from_snapshot = True
    view.is_stale = True
    view.saved_at = saved_at
    return view


def load_dashboard(store: Store, cache: Optional[ReadThroughCache] = None,
                   snapshot_store: Optional[SnapshotStore] = None,
                   now: DateLike = None) -> Optional[DashboardView]:
    """
    Load and derive the dashboard.

    Args:
        store: tenant-scoped store
        cache: read-through cache for contacts, companies and interactions
        snapshot_store: local blob used as fallback and saved on success
        now: reference date (default today)

    Returns:
        DashboardView, or None when nobody is signed in
    """
    if not store.current_user():
        return None
    today = parse_date(now) or date.today()

    written = refresh_warmth(store, today)
    if written and cache is not None:
        cache.invalidate('contacts')

    try:
        snapshot, is_stale = _fetch_snapshot(store, cache, today)
    except StoreError as e:
        logger.error(f"Dashboard fetch failed: {e}")
        view = paint_from_snapshot(snapshot_store, today)
        if view is None:
            logger.warning("No local snapshot available, showing an empty dashboard")
            view = build_view(_empty_snapshot(), today)
        view.warmth_updates = written
        view.errors.append(str(e))
        return view

    view = build_view(snapshot, today)
    view.warmth_updates = written
    view.is_stale = is_stale

    strength = view.scores.network_strength
    try:
        change = strength_delta(store, strength, today)
    except StoreError as e:
        logger.warning(f"Could not load strength history: {e}")
        change = None
    view = _with_strength_change(view, change)

    record_strength(store, strength, today)

    if snapshot_store is not None:
        snapshot_store.save(snapshot)
    return view
