"""
Unit tests for core/outreach_manager.py and core/message_drafts.py.
"""

import unittest
import sys
import os
from datetime import date
from unittest.mock import MagicMock
from urllib.parse import unquote

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.message_drafts import draft_message, mailto_link
from core.models import FollowUp
from core.outreach_manager import (
    get_follow_up_summary,
    get_follow_ups_due,
    get_interactions,
    is_overdue,
    list_follow_ups,
    log_interaction,
    schedule_follow_up,
    set_follow_up_completed,
)
from core.store import SQLiteStore
from core.validation import ValidationFailed

TODAY = date(2024, 6, 30)


class OutreachTestCase(unittest.TestCase):

    def setUp(self):
        self.store = SQLiteStore(":memory:", user_id='u1')
        self.ada = self.store.insert('contacts', {'name': 'Ada', 'warmth_level': 'cold'})
        self.bob = self.store.insert('contacts', {'name': 'Bob'})

    def tearDown(self):
        self.store.close()


class TestLogInteraction(OutreachTestCase):
    """Test log_interaction."""

    def test_updates_contact(self):
        interaction = log_interaction(self.store, {
            'contact_id': self.ada['id'], 'interaction_type': 'call',
            'interaction_date': '2024-06-25', 'notes': 'Coffee chat',
        }, now=TODAY)
        self.assertEqual(interaction.interaction_type, 'call')
        self.assertEqual(interaction.interaction_date, date(2024, 6, 25))

        row = self.store.select_one('contacts', {'id': self.ada['id']})
        self.assertEqual(row['last_contact_date'], '2024-06-25')
        self.assertEqual(row['warmth_level'], 'warm')

    def test_old_interaction_sets_cooling(self):
        log_interaction(self.store, {'contact_id': self.ada['id'],
                                     'interaction_date': '2024-06-10'}, now=TODAY)
        row = self.store.select_one('contacts', {'id': self.ada['id']})
        self.assertEqual(row['warmth_level'], 'cooling')

    def test_requires_contact(self):
        with self.assertRaises(ValidationFailed):
            log_interaction(self.store, {'interaction_type': 'call'})
        self.assertEqual(get_interactions(self.store), [])

    def test_newest_first(self):
        for day in ('2024-06-01', '2024-06-20', '2024-06-10'):
            log_interaction(self.store, {'contact_id': self.ada['id'], 'interaction_date': day})
        dates = [i.interaction_date.isoformat() for i in get_interactions(self.store, self.ada['id'])]
        self.assertEqual(dates, ['2024-06-20', '2024-06-10', '2024-06-01'])

    def test_invalidates_cache(self):
        cache = MagicMock()
        log_interaction(self.store, {'contact_id': self.ada['id']}, cache=cache)
        invalidated = {c.args[0] for c in cache.invalidate.call_args_list}
        self.assertEqual(invalidated, {'interactions', 'contacts'})


class TestFollowUps(OutreachTestCase):
    """Test follow-up scheduling and queries."""

    def test_due_today_only_uncompleted(self):
        due = schedule_follow_up(self.store, {'contact_id': self.ada['id'], 'due_date': '2024-06-30',
                                              'note': 'Send deck'})
        done = schedule_follow_up(self.store, {'contact_id': self.bob['id'], 'due_date': '2024-06-30'})
        schedule_follow_up(self.store, {'contact_id': self.bob['id'], 'due_date': '2024-07-01'})
        set_follow_up_completed(self.store, done.id, True)

        result = get_follow_ups_due(self.store, TODAY)
        self.assertEqual([fu.id for fu in result], [due.id])
        self.assertEqual(result[0].contact.name, 'Ada')
        self.assertEqual(result[0].note, 'Send deck')

    def test_completed_at_set_and_cleared(self):
        fu = schedule_follow_up(self.store, {'contact_id': self.ada['id'], 'due_date': '2024-06-30'})
        set_follow_up_completed(self.store, fu.id, True)
        row = self.store.select_one('follow_ups', {'id': fu.id})
        self.assertEqual(row['completed'], 1)
        self.assertIsNotNone(row['completed_at'])

        set_follow_up_completed(self.store, fu.id, False)
        row = self.store.select_one('follow_ups', {'id': fu.id})
        self.assertEqual(row['completed'], 0)
        self.assertIsNone(row['completed_at'])

    def test_list_ascending_due_date(self):
        for day in ('2024-07-05', '2024-06-01', '2024-06-30'):
            schedule_follow_up(self.store, {'contact_id': self.ada['id'], 'due_date': day})
        days = [fu.due_date.isoformat() for fu in list_follow_ups(self.store)]
        self.assertEqual(days, ['2024-06-01', '2024-06-30', '2024-07-05'])

    def test_is_overdue(self):
        past = FollowUp(id='f', contact_id='c', due_date=date(2024, 6, 29))
        self.assertTrue(is_overdue(past, TODAY))
        self.assertFalse(is_overdue(FollowUp(id='f', contact_id='c', due_date=TODAY), TODAY))
        self.assertFalse(is_overdue(FollowUp(id='f', contact_id='c', due_date=date(2024, 6, 1),
                                             completed=True), TODAY))

    def test_summary(self):
        for day in ('2024-06-01', '2024-06-30', '2024-07-05'):
            schedule_follow_up(self.store, {'contact_id': self.ada['id'], 'due_date': day})
        summary = get_follow_up_summary(self.store, TODAY)
        self.assertEqual(summary, {'due': 1, 'overdue': 1, 'upcoming': 1, 'completed': 0})

    def test_missing_due_date(self):
        with self.assertRaises(ValidationFailed) as ctx:
            schedule_follow_up(self.store, {'contact_id': self.ada['id']})
        self.assertEqual(ctx.exception.error.message, 'Due date is required')


class TestMessageDrafts(unittest.TestCase):
    """Test draft_message and mailto_link."""

    def test_draft_mentions_company(self):
        body = draft_message('Ada', 'Acme')
        self.assertTrue(body.startswith('Hi Ada,'))
        self.assertIn('opportunities at Acme', body)

    def test_draft_without_company(self):
        self.assertIn('your company', draft_message('Ada'))

    def test_mailto(self):
        link = mailto_link('ada@example.com', 'Ada', 'Acme & Co')
        self.assertTrue(link.startswith('mailto:ada@example.com?subject='))
        self.assertNotIn(' ', link)
        subject = link.split('subject=')[1].split('&body=')[0]
        self.assertEqual(unquote(subject), 'Catching up about Acme & Co')

    def test_mailto_custom_body(self):
        link = mailto_link('ada@example.com', 'Ada', body='Hello there')
        self.assertTrue(link.endswith('body=Hello%20there'))

    def test_mailto_without_email(self):
        self.assertIsNone(mailto_link(None, 'Ada'))
        self.assertIsNone(mailto_link('  ', 'Ada'))


if __name__ == '__main__':
    unittest.main()
