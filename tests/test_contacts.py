"""
Unit tests for core/contacts.py and core/company_resolver.py.

Uses an in-memory SQLiteStore scoped to one user.
"""

import unittest
import sys
import os
from unittest.mock import MagicMock

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.company_resolver import backfill_company_ids, normalize_company_name, resolve_company
from core.contacts import (
    create_company,
    create_contact,
    delete_contact,
    list_companies,
    list_contacts,
    set_company_archived,
    set_contact_archived,
    update_contact,
)
from core.models import Company, Contact
from core.store import SQLiteStore, StoreError
from core.validation import ValidationFailed


class StoreTestCase(unittest.TestCase):

    def setUp(self):
        self.store = SQLiteStore(":memory:", user_id='u1')

    def tearDown(self):
        self.store.close()


class TestCreateContact(StoreTestCase):
    """Test create_contact."""

    def test_creates_missing_company(self):
        contact = create_contact(self.store, {'name': 'Ada', 'company': ' Acme '})
        companies = list_companies(self.store)
        self.assertEqual(len(companies), 1)
        self.assertEqual(companies[0].name, 'Acme')
        self.assertEqual(companies[0].priority, 0)
        self.assertEqual(contact.company_id, companies[0].id)

    def test_reuses_existing_company_case_insensitive(self):
        acme = create_company(self.store, {'name': 'Acme', 'priority': 4})
        contact = create_contact(self.store, {'name': 'Ada', 'company': 'ACME'})
        self.assertEqual(contact.company_id, acme.id)
        self.assertEqual(len(list_companies(self.store)), 1)

    def test_connector_profile_columns(self):
        contact = create_contact(self.store, {
            'name': 'Kay', 'contact_type': 'connector',
            'connector_influence_company_ids': ['co1', 'co2'],
            'recruiter_specialization': 'interview_prep',
        })
        self.assertTrue(contact.is_connector)
        self.assertEqual(contact.profile.influence_company_ids, ('co1', 'co2'))
        row = self.store.select_one('contacts', {'id': contact.id})
        self.assertIsNone(row['recruiter_specialization'])

    def test_invalid_form_raises(self):
        with self.assertRaises(ValidationFailed):
            create_contact(self.store, {'name': ''})
        self.assertEqual(list_contacts(self.store), [])

    def test_signed_out_returns_none(self):
        store = SQLiteStore(":memory:")
        self.assertIsNone(create_contact(store, {'name': 'Ada'}))
        self.assertEqual(list_contacts(store), [])
        store.close()

    def test_invalidates_cache(self):
        cache = MagicMock()
        create_contact(self.store, {'name': 'Ada', 'company': 'Acme'}, cache=cache)
        invalidated = {c.args[0] for c in cache.invalidate.call_args_list}
        self.assertEqual(invalidated, {'contacts', 'companies'})


class TestUpdateAndArchive(StoreTestCase):
    """Test update_contact and archiving."""

    def test_update_does_not_create_company(self):
        contact = create_contact(self.store, {'name': 'Ada'})
        updated = update_contact(self.store, contact.id, {'name': 'Ada L', 'company': 'Nowhere'})
        self.assertEqual(updated.name, 'Ada L')
        self.assertEqual(updated.company, 'Nowhere')
        self.assertIsNone(updated.company_id)
        self.assertEqual(list_companies(self.store), [])

    def test_archive_and_restore(self):
        contact = create_contact(self.store, {'name': 'Ada'})
        set_contact_archived(self.store, contact.id, True)
        self.assertEqual(list_contacts(self.store), [])
        archived = list_contacts(self.store, archived=True)
        self.assertEqual(len(archived), 1)
        self.assertIsNotNone(archived[0].archived_at)

        set_contact_archived(self.store, contact.id, False)
        restored = list_contacts(self.store)
        self.assertEqual(len(restored), 1)
        self.assertIsNone(restored[0].archived_at)

    def test_archive_company(self):
        acme = create_company(self.store, {'name': 'Acme'})
        set_company_archived(self.store, acme.id, True)
        self.assertEqual(list_companies(self.store), [])
        self.assertEqual(len(list_companies(self.store, archived=True)), 1)


class TestDeleteContact(StoreTestCase):
    """Test cascading delete."""

    def test_cascade(self):
        ada = create_contact(self.store, {'name': 'Ada'})
        bob = create_contact(self.store, {'name': 'Bob'})
        for cid in (ada.id, bob.id):
            self.store.insert('interactions', {'contact_id': cid, 'interaction_date': '2024-06-01',
                                               'interaction_type': 'call'})
            self.store.insert('follow_ups', {'contact_id': cid, 'due_date': '2024-07-01'})

        self.assertTrue(delete_contact(self.store, ada.id))

        self.assertEqual([c.id for c in list_contacts(self.store)], [bob.id])
        self.assertEqual(self.store.select('interactions', {'contact_id': ada.id}), [])
        self.assertEqual(self.store.select('follow_ups', {'contact_id': ada.id}), [])
        self.assertEqual(len(self.store.select('interactions')), 1)

    def test_dependent_failure_is_logged_not_raised(self):
        store = MagicMock()
        store.current_user.return_value = {'id': 'u1'}
        store.delete.side_effect = [StoreError("interactions"), None, None]
        self.assertTrue(delete_contact(store, 'c1'))
        self.assertEqual(store.delete.call_count, 3)

    def test_contact_failure_raises(self):
        store = MagicMock()
        store.current_user.return_value = {'id': 'u1'}
        store.delete.side_effect = [None, None, StoreError("contacts")]
        with self.assertRaises(StoreError):
            delete_contact(store, 'c1')


class TestCompanyResolver(StoreTestCase):
    """Test company resolution and backfill."""

    def test_normalize(self):
        self.assertEqual(normalize_company_name('  AcMe Corp '), 'acme corp')
        self.assertEqual(normalize_company_name(None), '')

    def test_id_first_then_name(self):
        acme = Company(id='co1', name='Acme')
        other = Company(id='co2', name='Other')
        by_id = Contact(id='a', name='A', company='Acme', company_id='co2')
        by_name = Contact(id='b', name='B', company=' acme ')
        nothing = Contact(id='c', name='C', company='Unknown')
        self.assertEqual(resolve_company(by_id, [acme, other]).id, 'co2')
        self.assertEqual(resolve_company(by_name, [acme, other]).id, 'co1')
        self.assertIsNone(resolve_company(nothing, [acme, other]))

    def test_backfill(self):
        acme = create_company(self.store, {'name': 'Acme'})
        self.store.insert('contacts', {'name': 'Ada', 'company': 'acme '})
        self.store.insert('contacts', {'name': 'Bob', 'company': 'Elsewhere'})
        self.store.insert('contacts', {'name': 'Cy'})

        self.assertEqual(backfill_company_ids(self.store), 1)
        ada = self.store.select_one('contacts', {'name': 'Ada'})
        self.assertEqual(ada['company_id'], acme.id)
        self.assertEqual(backfill_company_ids(self.store), 0)


if __name__ == '__main__':
    unittest.main()
