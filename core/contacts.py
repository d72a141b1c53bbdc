"""
Contacts & Companies
====================
Create, edit, archive and delete the user's contacts and target companies.

Every mutation invalidates the matching cache collection when a cache is
passed in. Calls made without a signed-in user are no-ops returning None.
Store failures are logged and re-raised as StoreError for the caller to
surface.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from core.cache import ReadThroughCache
from core.company_resolver import CompanyIndex
from core.models import Company, Contact, profile_columns, profile_from_row
from core.store import Store, StoreError
from core.validation import CompanyForm, ContactForm, parse_form

logger = logging.getLogger(__name__)


def _invalidate(cache: Optional[ReadThroughCache], *collections: str):
    if cache is None:
        return
    for collection in collections:
        cache.invalidate(collection)


def _load_companies(store: Store) -> List[Company]:
    return [Company.from_row(r) for r in store.select('companies')]


def _contact_fields(form: ContactForm) -> Dict:
    fields = {
        'name': form.name,
        'email': form.email,
        'company': form.company,
        'role': form.role,
        'notes': form.notes,
        'linkedin_url': form.linkedin_url,
        'warmth_level': form.warmth_level,
    }
    profile = profile_from_row({
        'contact_type': form.contact_type,
        'connector_influence_company_ids': form.connector_influence_company_ids,
        'recruiter_specialization': form.recruiter_specialization,
    })
    fields.update(profile_columns(profile))
    return fields


# ============================================================
# CONTACTS
# ============================================================

def list_contacts(store: Store, archived: bool = False) -> List[Contact]:
    """Contacts newest first. Empty when signed out."""
    if not store.current_user():
        return []
    rows = store.select('contacts', {'is_archived': archived},
                        order_by='created_at', descending=True)
    return [Contact.from_row(r) for r in rows]


def get_contact(store: Store, contact_id: str) -> Optional[Contact]:
    if not store.current_user():
        return None
    row = store.select_one('contacts', {'id': contact_id})
    return Contact.from_row(row) if row else None


def create_contact(store: Store, form_data: Dict,
                   cache: Optional[ReadThroughCache] = None) -> Optional[Contact]:
    """
    Validate and insert a contact.

    A company name with no matching company (trimmed, case-insensitive)
    creates that company with priority 0 and links it by id.

    Raises:
        ValidationFailed: first violated form rule
        StoreError: the contact insert failed
    """
    if not store.current_user():
        return None

    form = parse_form(ContactForm, form_data)
    fields = _contact_fields(form)
    created_company = False

    company_id = None
    if form.company:
        company = CompanyIndex(_load_companies(store)).lookup_name(form.company)
        if company is None:
            try:
                row = store.insert('companies', {'name': form.company.strip(), 'priority': 0})
                company = Company.from_row(row)
                created_company = True
                logger.info(f"Created new company: {company.name}")
            except StoreError as e:
                logger.error(f"Could not create company '{form.company}': {e}")
        company_id = company.id if company else None
    fields['company_id'] = company_id

    try:
        row = store.insert('contacts', fields)
    except StoreError as e:
        logger.error(f"Failed to add contact {form.name}: {e}")
        raise

    _invalidate(cache, 'contacts', *(['companies'] if created_company else []))
    return Contact.from_row(row)


def update_contact(store: Store, contact_id: str, form_data: Dict,
                   cache: Optional[ReadThroughCache] = None) -> Optional[Contact]:
    """
    Apply an edit form to a contact. The company link is re-resolved
    against existing companies only; no company is created on edit.
    """
    if not store.current_user():
        return None

    form = parse_form(ContactForm, form_data)
    fields = _contact_fields(form)
    company = CompanyIndex(_load_companies(store)).lookup_name(form.company) if form.company else None
    fields['company_id'] = company.id if company else None

    try:
        store.update('contacts', {'id': contact_id}, fields)
    except StoreError as e:
        logger.error(f"Failed to update contact {contact_id}: {e}")
        raise

    _invalidate(cache, 'contacts')
    return get_contact(store, contact_id)


def set_contact_archived(store: Store, contact_id: str, archived: bool,
                         cache: Optional[ReadThroughCache] = None) -> bool:
    """Archive (soft delete) or restore a contact."""
    if not store.current_user():
        return False
    patch = {
        'is_archived': archived,
        'archived_at': datetime.now().isoformat(timespec='seconds') if archived else None,
    }
    try:
        store.update('contacts', {'id': contact_id}, patch)
    except StoreError as e:
        action = "archive" if archived else "restore"
        logger.error(f"Failed to {action} contact {contact_id}: {e}")
        raise
    _invalidate(cache, 'contacts')
    return True


def delete_contact(store: Store, contact_id: str,
                   cache: Optional[ReadThroughCache] = None) -> bool:
    """
    Hard delete a contact with its interactions and follow-ups.

    Dependent deletes that fail are logged and skipped; a failure deleting
    the contact itself raises StoreError.
    """
    if not store.current_user():
        return False

    for table in ('interactions', 'follow_ups'):
        try:
            store.delete(table, {'contact_id': contact_id})
        except StoreError as e:
            logger.warning(f"Error deleting {table} for contact {contact_id}: {e}")

    try:
        store.delete('contacts', {'id': contact_id})
    except StoreError as e:
        logger.error(f"Failed to delete contact {contact_id}: {e}")
        raise

    _invalidate(cache, 'contacts', 'interactions', 'follow_ups')
    return True


# ============================================================
# COMPANIES
# ============================================================

def list_companies(store: Store, archived: bool = False) -> List[Company]:
    """Companies by priority, highest first. Empty when signed out."""
    if not store.current_user():
        return []
    rows = store.select('companies', {'is_archived': archived},
                        order_by='priority', descending=True)
    return [Company.from_row(r) for r in rows]


def create_company(store: Store, form_data: Dict,
                   cache: Optional[ReadThroughCache] = None) -> Optional[Company]:
    if not store.current_user():
        return None
    form = parse_form(CompanyForm, form_data)
    try:
        row = store.insert('companies', form.model_dump())
    except StoreError as e:
        logger.error(f"Failed to add company {form.name}: {e}")
        raise
    _invalidate(cache, 'companies')
    return Company.from_row(row)


def update_company(store: Store, company_id: str, form_data: Dict,
                   cache: Optional[ReadThroughCache] = None) -> Optional[Company]:
    if not store.current_user():
        return None
    form = parse_form(CompanyForm, form_data)
    try:
        store.update('companies', {'id': company_id}, form.model_dump())
    except StoreError as e:
        logger.error(f"Failed to update company {company_id}: {e}")
        raise
    _invalidate(cache, 'companies')
    row = store.select_one('companies', {'id': company_id})
    return Company.from_row(row) if row else None


def set_company_archived(store: Store, company_id: str, archived: bool,
                         cache: Optional[ReadThroughCache] = None) -> bool:
    if not store.current_user():
        return False
    patch = {
        'is_archived': archived,
        'archived_at': datetime.now().isoformat(timespec='seconds') if archived else None,
    }
    try:
        store.update('companies', {'id': company_id}, patch)
    except StoreError as e:
        logger.error(f"Failed to update archive state of company {company_id}: {e}")
        raise
    _invalidate(cache, 'companies')
    return True
