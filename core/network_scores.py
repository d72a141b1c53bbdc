"""
Aggregate dashboard scores.

Network Strength (0-100)
    Sum of four saturating components, each min(weight, actual/target * weight):
        warm contacts         target 10,  weight 40
        interactions (30d)    target 10,  weight 20
        current streak        target 30,  weight 20
        tasks completed       target 100, weight 20

Offer Momentum (0-100)
    min(100, round(0.4 * strength
                   + min(30, warm_paths / 5 * 30)
                   + min(30, interactions_7d / 5 * 30)
                   + min(10, streak / 7 * 10)))

Weekly Summary
    Counts over the last 7 days plus the week-over-week strength change,
    which is None unless a stored snapshot from a week ago exists.

Everything here is pure and recomputed from one in-memory snapshot.
"""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Tuple

from core.company_resolver import CompanyIndex
from core.models import WARM, Company, Contact, Interaction, Streak, parse_date
from core.thresholds import (
    MOMENTUM_PATHS_CAP, MOMENTUM_PATHS_TARGET, MOMENTUM_STREAK_CAP,
    MOMENTUM_STREAK_TARGET, MOMENTUM_STRENGTH_FACTOR, MOMENTUM_TIERS,
    MOMENTUM_WEEKLY_INTERACTIONS_CAP, MOMENTUM_WEEKLY_INTERACTIONS_TARGET,
    RECENT_INTERACTION_DAYS, STRENGTH_COMPONENTS, TREND_BAND, WEEK_DAYS,
)
from core.warmth import DateLike, with_recomputed_warmth


def _component(actual: float, target: float, weight: float) -> float:
    if target <= 0:
        return 0.0
    return max(0.0, min(weight, (actual / target) * weight))


def _today(now: DateLike) -> date:
    return parse_date(now) or date.today()


def within_days(day: Optional[date], now: DateLike, days: int) -> bool:
    """True when day is one of the last `days` calendar days, today included."""
    if day is None:
        return False
    delta = (_today(now) - day).days
    return 0 <= delta < days


# ============================================================
# NETWORK STRENGTH
# ============================================================

def network_strength(warm_contacts: int, recent_interactions: int,
                     current_streak: int, total_completed: int) -> int:
    parts = {
        'warm_contacts': warm_contacts,
        'recent_interactions': recent_interactions,
        'streak': current_streak,
        'tasks_completed': total_completed,
    }
    total = 0.0
    for key, actual in parts.items():
        target, weight = STRENGTH_COMPONENTS[key]
        total += _component(max(actual or 0, 0), target, weight)
    return int(round(min(total, 100)))


# ============================================================
# OFFER MOMENTUM
# ============================================================

def offer_momentum(strength: int, warm_paths: int,
                   interactions_last_7_days: int, current_streak: int) -> int:
    score = (
        MOMENTUM_STRENGTH_FACTOR * max(strength, 0)
        + _component(warm_paths, MOMENTUM_PATHS_TARGET, MOMENTUM_PATHS_CAP)
        + _component(interactions_last_7_days, MOMENTUM_WEEKLY_INTERACTIONS_TARGET,
                     MOMENTUM_WEEKLY_INTERACTIONS_CAP)
        + _component(current_streak, MOMENTUM_STREAK_TARGET, MOMENTUM_STREAK_CAP)
    )
    return min(100, int(round(score)))


def warm_paths_to_targets(contacts: Iterable[Contact], companies: Iterable[Company],
                          now: DateLike = None) -> int:
    """
    Number of active target companies reachable through a warm contact:
    the contact works there, or is a connector with influence there.
    """
    targets = [co for co in companies if not co.is_archived]
    if not targets:
        return 0
    index = CompanyIndex(targets)
    reached = set()
    for contact in with_recomputed_warmth(contacts, now):
        if contact.is_archived or contact.warmth_level != WARM:
            continue
        company = index.resolve(contact)
        if company is not None:
            reached.add(company.id)
        if contact.is_connector:
            reached.update(cid for cid in contact.profile.influence_company_ids
                           if cid in index.by_id)
    return len(reached)


def momentum_tier(score: int) -> Tuple[str, str]:
    """Meter band and message for an offer momentum score."""
    messages = {
        'high': "High momentum, interviews incoming!",
        'strong': "Strong position, keep pushing!",
        'building': "Building momentum, stay consistent",
        'gaining': "Gaining traction, reach out more",
        'starting': "Start small, every connection counts",
    }
    for floor, tier in MOMENTUM_TIERS:
        if score >= floor:
            return tier, messages[tier]
    return 'starting', messages['starting']


# ============================================================
# WEEKLY SUMMARY
# ============================================================

@dataclass(frozen=True)
class WeeklySummary:
    interactions_this_week: int
    warm_contacts: int
    cooling_saved: int
    new_paths: int
    current_streak: int
    network_strength_change: Optional[int] = None


def weekly_trend(change: Optional[int]) -> Tuple[str, str]:
    if change is not None and change > TREND_BAND:
        return 'up', "Strong upward momentum!"
    if change is not None and change < -TREND_BAND:
        return 'down', "Time to re-engage your network"
    return 'steady', "Steady progress"


def weekly_summary(contacts: Iterable[Contact], interactions: Iterable[Interaction],
                   streak: Optional[Streak], now: DateLike = None,
                   strength_change: Optional[int] = None) -> WeeklySummary:
    """
    Counts for the last WEEK_DAYS calendar days (default 7), today included.
    Future-dated rows fall outside the window.
    """
    active = [c for c in with_recomputed_warmth(contacts, now) if not c.is_archived]
    warm_ids = {c.id for c in active if c.warmth_level == WARM}
    this_week = [i for i in interactions if within_days(i.interaction_date, now, WEEK_DAYS)]
    new_paths = sum(
        1 for c in active
        if (c.company or c.company_id)
        and c.created_at is not None
        and within_days(c.created_at.date(), now, WEEK_DAYS)
    )
    return WeeklySummary(
        interactions_this_week=len(this_week),
        warm_contacts=len(warm_ids),
        cooling_saved=sum(1 for i in this_week if i.contact_id in warm_ids),
        new_paths=new_paths,
        current_streak=(streak or Streak()).current_streak,
        network_strength_change=strength_change,
    )


# ============================================================
# BADGES
# ============================================================

@dataclass(frozen=True)
class Badge:
    id: str
    name: str
    description: str
    earned: bool


def earned_badges(streak: int, total_interactions: int, warm_contacts: int,
                  companies_with_warm_paths: int, connectors: int) -> List[Badge]:
    return [
        Badge('streak_3', "3 Days in a Row", "Maintained a 3-day streak", streak >= 3),
        Badge('streak_7', "Week Warrior", "Maintained a 7-day streak", streak >= 7),
        Badge('interactions_10', "Network Builder", "Logged 10 interactions",
              total_interactions >= 10),
        Badge('warm_5', "Warm Network", "5 warm contacts", warm_contacts >= 5),
        Badge('paths_3', "Path Finder", "3 companies with warm paths",
              companies_with_warm_paths >= 3),
        Badge('first_connector', "First Connector", "Added your first connector",
              connectors > 0),
    ]


# ============================================================
# SCORE CARD
# ============================================================

@dataclass(frozen=True)
class ScoreCard:
    network_strength: int
    offer_momentum: int
    warm_paths: int
    weekly: WeeklySummary
    badges: Tuple[Badge, ...]

    @property
    def momentum_tier(self) -> Tuple[str, str]:
        return momentum_tier(self.offer_momentum)


def compute_scores(contacts: Iterable[Contact], companies: Iterable[Company],
                   interactions: Iterable[Interaction], streak: Optional[Streak],
                   now: DateLike = None, strength_change: Optional[int] = None) -> ScoreCard:
    """All dashboard scores from one snapshot."""
    streak = streak or Streak()
    contacts = [c for c in with_recomputed_warmth(contacts, now) if not c.is_archived]
    companies = list(companies)
    interactions = list(interactions)

    warm = sum(1 for c in contacts if c.warmth_level == WARM)
    recent = sum(1 for i in interactions
                 if within_days(i.interaction_date, now, RECENT_INTERACTION_DAYS))
    last_week = sum(1 for i in interactions if within_days(i.interaction_date, now, WEEK_DAYS))
    paths = warm_paths_to_targets(contacts, companies, now)

    strength = network_strength(warm, recent, streak.current_streak,
                                streak.total_tasks_completed)
    momentum = offer_momentum(strength, paths, last_week, streak.current_streak)
    weekly = weekly_summary(contacts, interactions, streak, now, strength_change)
    badges = earned_badges(
        streak=streak.current_streak,
        total_interactions=len(interactions),
        warm_contacts=warm,
        companies_with_warm_paths=paths,
        connectors=sum(1 for c in contacts if c.is_connector),
    )
    return ScoreCard(strength, momentum, paths, weekly, tuple(badges))
