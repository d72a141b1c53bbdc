"""
Company resolution for contacts.

A contact points at a company two ways: company_id (soft foreign key) and
the free-text company name. The id wins; otherwise the name is matched
trimmed and case-insensitive.
"""

import logging
from typing import Dict, Iterable, Optional

from core.models import Company, Contact
from core.store import Store, StoreError

logger = logging.getLogger(__name__)


def normalize_company_name(name: Optional[str]) -> str:
    return (name or '').strip().lower()


class CompanyIndex:
    """Lookup of companies by id and by normalized name."""

    def __init__(self, companies: Iterable[Company]):
        self.by_id: Dict[str, Company] = {}
        self.by_name: Dict[str, Company] = {}
        for company in companies:
            self.by_id[company.id] = company
            key = normalize_company_name(company.name)
            # First row wins on duplicate names
            if key and key not in self.by_name:
                self.by_name[key] = company

    def resolve(self, contact: Contact) -> Optional[Company]:
        if contact.company_id and contact.company_id in self.by_id:
            return self.by_id[contact.company_id]
        key = normalize_company_name(contact.company)
        if key:
            return self.by_name.get(key)
        return None

    def lookup_name(self, name: Optional[str]) -> Optional[Company]:
        return self.by_name.get(normalize_company_name(name))


def resolve_company(contact: Contact, companies: Iterable[Company]) -> Optional[Company]:
    return CompanyIndex(companies).resolve(contact)


def backfill_company_ids(store: Store) -> int:
    """
    Set company_id on contacts that only carry a company name matching one
    of the user's companies.

    Returns:
        Number of contacts linked
    """
    if not store.current_user():
        return 0

    try:
        contacts = [Contact.from_row(r) for r in store.select('contacts', {'company_id': None})]
        companies = [Company.from_row(r) for r in store.select('companies')]
    except StoreError as e:
        logger.error(f"Backfill skipped, could not load rows: {e}")
        return 0

    if not contacts or not companies:
        return 0

    index = CompanyIndex(companies)
    linked = 0
    for contact in contacts:
        if not contact.company:
            continue
        company = index.lookup_name(contact.company)
        if company is None:
            continue
        try:
            store.update('contacts', {'id': contact.id}, {'company_id': company.id})
            linked += 1
        except StoreError as e:
            logger.error(f"Could not link {contact.name} to {company.name}: {e}")

    logger.info(f"Linked {linked} contact(s) to companies by name")
    return linked
