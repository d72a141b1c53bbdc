"""
Unit tests for core/network_scores.py.

Tests the saturating formulas, warm-path counting, the weekly summary
windows, badges and momentum tiers.
"""

import unittest
import sys
import os
from datetime import date, datetime, timedelta

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.models import Company, ConnectorProfile, Contact, Interaction, Streak
from core.network_scores import (
    compute_scores,
    earned_badges,
    momentum_tier,
    network_strength,
    offer_momentum,
    warm_paths_to_targets,
    weekly_summary,
    weekly_trend,
    within_days,
)

TODAY = date(2024, 6, 30)


def ago(days):
    return TODAY - timedelta(days=days)


def interaction(iid, contact_id, days_ago):
    return Interaction(id=iid, contact_id=contact_id, interaction_date=ago(days_ago),
                       interaction_type='email')


class TestNetworkStrength(unittest.TestCase):
    """Test network_strength."""

    def test_all_zero(self):
        self.assertEqual(network_strength(0, 0, 0, 0), 0)

    def test_all_saturated(self):
        self.assertEqual(network_strength(10, 10, 30, 100), 100)

    def test_capped_at_100(self):
        self.assertEqual(network_strength(1000, 1000, 1000, 1000), 100)

    def test_partial(self):
        """Test 5 warm (20) + 5 recent (10) + 15 streak (10) + 50 tasks (10) = 50."""
        self.assertEqual(network_strength(5, 5, 15, 50), 50)

    def test_negative_inputs_clamp(self):
        self.assertEqual(network_strength(-5, -1, -3, -10), 0)

    def test_monotonic_in_each_input(self):
        base = network_strength(3, 3, 3, 3)
        self.assertGreaterEqual(network_strength(4, 3, 3, 3), base)
        self.assertGreaterEqual(network_strength(3, 4, 3, 3), base)
        self.assertGreaterEqual(network_strength(3, 3, 4, 3), base)
        self.assertGreaterEqual(network_strength(3, 3, 3, 4), base)


class TestOfferMomentum(unittest.TestCase):
    """Test offer_momentum."""

    def test_zero(self):
        self.assertEqual(offer_momentum(0, 0, 0, 0), 0)

    def test_full(self):
        """Test 0.4*100 + 30 + 30 + 10 caps at 100."""
        self.assertEqual(offer_momentum(100, 5, 5, 7), 100)

    def test_formula(self):
        # 0.4*50 + 6*2 + 6*1 + 10/7*7 -> 20 + 12 + 6 + 10 = 48
        self.assertEqual(offer_momentum(50, 2, 1, 7), 48)

    def test_components_saturate(self):
        self.assertEqual(offer_momentum(0, 50, 0, 0), 30)
        self.assertEqual(offer_momentum(0, 0, 50, 0), 30)
        self.assertEqual(offer_momentum(0, 0, 0, 70), 10)


class TestWarmPaths(unittest.TestCase):
    """Test warm_paths_to_targets."""

    def setUp(self):
        self.acme = Company(id='co1', name='Acme')
        self.globex = Company(id='co2', name='Globex')

    def test_no_companies(self):
        contacts = [Contact(id='a', name='A', company='Acme', last_contact_date=ago(1))]
        self.assertEqual(warm_paths_to_targets(contacts, [], TODAY), 0)

    def test_counts_distinct_companies(self):
        contacts = [
            Contact(id='a', name='A', company='acme', last_contact_date=ago(1)),
            Contact(id='b', name='B', company_id='co1', last_contact_date=ago(2)),
            Contact(id='c', name='C', company='Globex', last_contact_date=ago(40)),
        ]
        self.assertEqual(warm_paths_to_targets(contacts, [self.acme, self.globex], TODAY), 1)

    def test_connector_influence_counts(self):
        conn = Contact(id='k', name='K', last_contact_date=ago(1),
                       profile=ConnectorProfile(('co2', 'missing')))
        self.assertEqual(warm_paths_to_targets([conn], [self.acme, self.globex], TODAY), 1)

    def test_archived_excluded(self):
        archived = Company(id='co1', name='Acme', is_archived=True)
        contacts = [
            Contact(id='a', name='A', company='Acme', last_contact_date=ago(1)),
            Contact(id='b', name='B', company='Globex', last_contact_date=ago(1), is_archived=True),
        ]
        self.assertEqual(warm_paths_to_targets(contacts, [archived, self.globex], TODAY), 0)


class TestWeeklySummary(unittest.TestCase):
    """Test weekly_summary and its windows."""

    def test_window_bounds(self):
        self.assertTrue(within_days(ago(0), TODAY, 7))
        self.assertTrue(within_days(ago(6), TODAY, 7))
        self.assertFalse(within_days(ago(7), TODAY, 7))
        self.assertFalse(within_days(TODAY + timedelta(days=1), TODAY, 7))
        self.assertFalse(within_days(None, TODAY, 7))

    def test_counts(self):
        contacts = [
            Contact(id='a', name='A', last_contact_date=ago(1), company='Acme',
                    created_at=datetime(2024, 6, 28, 9, 0)),
            Contact(id='b', name='B', last_contact_date=ago(20),
                    created_at=datetime(2024, 6, 29, 9, 0)),
            Contact(id='c', name='C', last_contact_date=ago(3), company='Old Co',
                    created_at=datetime(2024, 1, 1, 9, 0)),
        ]
        interactions = [
            interaction('i1', 'a', 1),
            interaction('i2', 'b', 3),
            interaction('i3', 'c', 3),
            interaction('i4', 'a', 10),
        ]
        summary = weekly_summary(contacts, interactions, Streak(current_streak=4), TODAY)
        self.assertEqual(summary.interactions_this_week, 3)
        self.assertEqual(summary.warm_contacts, 2)
        self.assertEqual(summary.cooling_saved, 2)
        self.assertEqual(summary.new_paths, 1)
        self.assertEqual(summary.current_streak, 4)
        self.assertIsNone(summary.network_strength_change)

    def test_strength_change_passed_through(self):
        summary = weekly_summary([], [], None, TODAY, strength_change=-3)
        self.assertEqual(summary.network_strength_change, -3)
        self.assertEqual(summary.current_streak, 0)

    def test_trend(self):
        self.assertEqual(weekly_trend(None)[0], 'steady')
        self.assertEqual(weekly_trend(5)[0], 'steady')
        self.assertEqual(weekly_trend(6)[0], 'up')
        self.assertEqual(weekly_trend(-6)[0], 'down')


class TestBadgesAndTiers(unittest.TestCase):
    """Test earned_badges and momentum_tier."""

    def test_nothing_earned(self):
        badges = earned_badges(0, 0, 0, 0, 0)
        self.assertFalse(any(b.earned for b in badges))

    def test_first_connector_uses_real_count(self):
        earned = {b.id for b in earned_badges(0, 0, 0, 0, 1) if b.earned}
        self.assertEqual(earned, {'first_connector'})

    def test_thresholds(self):
        earned = {b.id for b in earned_badges(7, 10, 5, 3, 0) if b.earned}
        self.assertEqual(earned, {'streak_3', 'streak_7', 'interactions_10', 'warm_5', 'paths_3'})

    def test_tiers(self):
        self.assertEqual(momentum_tier(0)[0], 'starting')
        self.assertEqual(momentum_tier(31)[0], 'gaining')
        self.assertEqual(momentum_tier(40)[0], 'building')
        self.assertEqual(momentum_tier(61)[0], 'strong')
        self.assertEqual(momentum_tier(80)[0], 'high')


class TestComputeScores(unittest.TestCase):
    """Test compute_scores over one snapshot."""

    def test_empty(self):
        card = compute_scores([], [], [], None, TODAY)
        self.assertEqual(card.network_strength, 0)
        self.assertEqual(card.offer_momentum, 0)
        self.assertEqual(card.warm_paths, 0)
        self.assertEqual(card.momentum_tier[0], 'starting')

    def test_snapshot(self):
        contacts = [Contact(id=f'c{i}', name=f'C{i}', company='Acme', last_contact_date=ago(1))
                    for i in range(5)]
        interactions = [interaction(f'i{i}', 'c0', i) for i in range(5)]
        streak = Streak(current_streak=3, longest_streak=3, total_tasks_completed=10)
        card = compute_scores(contacts, [Company(id='co1', name='Acme')], interactions,
                              streak, TODAY, strength_change=4)
        # 5/10*40 + 5/10*20 + 3/30*20 + 10/100*20 = 20 + 10 + 2 + 2
        self.assertEqual(card.network_strength, 34)
        # 0.4*34 + 6 + 30 + 30/7 = 13.6 + 6 + 30 + 4.29 = 53.9
        self.assertEqual(card.offer_momentum, 54)
        self.assertEqual(card.warm_paths, 1)
        self.assertEqual(card.weekly.network_strength_change, 4)
        self.assertTrue(any(b.id == 'warm_5' and b.earned for b in card.badges))


if __name__ == '__main__':
    unittest.main()
