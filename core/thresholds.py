"""
Configurable thresholds for warmth classification, prioritization and scoring.
All thresholds are defined here as module-level constants.
Override via environment variables (NE_*) for quick tuning.

To tune: change values here or set env vars in private_data/.env
e.g. NE_WARM_DAYS=21
"""

import os


def _env_float(key: str, default: float) -> float:
    val = os.environ.get(key)
    if val:
        try:
            return float(val)
        except ValueError:
            pass
    return default


def _env_int(key: str, default: int) -> int:
    val = os.environ.get(key)
    if val:
        try:
            return int(val)
        except ValueError:
            pass
    return default


# =============================================================================
# WARMTH BOUNDARIES (days since last contact, inclusive)
# =============================================================================

WARM_MAX_DAYS = _env_int("NE_WARM_DAYS", 14)          # 0-14 days  -> warm
COOLING_MAX_DAYS = _env_int("NE_COOLING_DAYS", 30)    # 15-30 days -> cooling
                                                      # 31+ / never -> cold

# =============================================================================
# ACTION PRIORITIZATION
# =============================================================================

MAX_DAILY_ACTIONS = _env_int("NE_MAX_ACTIONS", 3)

# =============================================================================
# NETWORK STRENGTH
# Each component is (target, weight). Weights sum to 100.
# =============================================================================

STRENGTH_COMPONENTS = {
    'warm_contacts': (10, 40),
    'recent_interactions': (10, 20),
    'streak': (30, 20),
    'tasks_completed': (100, 20),
}

RECENT_INTERACTION_DAYS = 30

# =============================================================================
# OFFER MOMENTUM
# =============================================================================

MOMENTUM_STRENGTH_FACTOR = 0.4
MOMENTUM_PATHS_TARGET = 5
MOMENTUM_PATHS_CAP = 30
MOMENTUM_WEEKLY_INTERACTIONS_TARGET = 5
MOMENTUM_WEEKLY_INTERACTIONS_CAP = 30
MOMENTUM_STREAK_TARGET = 7
MOMENTUM_STREAK_CAP = 10

# Momentum meter bands (lower bound, tier)
MOMENTUM_TIERS = [
    (80, 'high'),
    (61, 'strong'),
    (40, 'building'),
    (31, 'gaining'),
    (0, 'starting'),
]

# Weekly trend: strength change beyond +/- this is a trend
TREND_BAND = 5

# =============================================================================
# CACHE
# =============================================================================

CACHE_TTL_SECONDS = _env_float("NE_CACHE_TTL_SECONDS", 300)   # 5 minutes

# =============================================================================
# WEEKLY WINDOWS (days)
# =============================================================================

WEEK_DAYS = 7
STRENGTH_HISTORY_LOOKBACK_DAYS = 7
