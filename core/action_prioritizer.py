"""
Today's recommended actions.

Strict waterfall over six tiers. Each tier only fills the slots left by the
tiers before it, keeps input order, and never picks a contact twice:

  1. follow-ups due today
  2. cooling contacts
  3. connectors influencing a target company  (company_overlap)
  4. cold contacts at a target company
  5. contacts never contacted
  6. reliable recruiters

Warmth is recomputed in memory; the stored warmth_level is never trusted here.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from core.company_resolver import CompanyIndex
from core.models import COLD, COOLING, Company, Contact, FollowUp
from core.thresholds import MAX_DAILY_ACTIONS
from core.warmth import DateLike, with_recomputed_warmth

FOLLOW_UP = 'follow_up'
COLD_CONTACT = 'cold_contact'
COMPANY_OVERLAP = 'company_overlap'
ACTION_TYPES = (FOLLOW_UP, COLD_CONTACT, COMPANY_OVERLAP)

# metadata['reason'] values
REASON_FOLLOW_UP = 'follow_up_due'
REASON_COOLING = 'cooling'
REASON_CONNECTOR = 'connector_overlap'
REASON_TARGET_COMPANY = 'target_company'
REASON_NEVER_CONTACTED = 'never_contacted'
REASON_RECRUITER = 'recruiter'


@dataclass(frozen=True)
class Action:
    type: str
    contact: Contact
    metadata: Dict = field(default_factory=dict)

    @property
    def reason(self) -> Optional[str]:
        return self.metadata.get('reason')

    def describe(self) -> str:
        name = self.contact.name
        reason = self.reason
        if self.type == FOLLOW_UP:
            note = self.metadata.get('note')
            return f"Follow up with {name}" + (f": {note}" if note else "")
        if self.type == COMPANY_OVERLAP:
            return f"Ask {name} for an intro at {self.metadata.get('company_name')}"
        if reason == REASON_COOLING:
            return f"Reconnect with {name} before they go cold"
        if reason == REASON_TARGET_COMPANY:
            return f"Warm up {name} at {self.metadata.get('company_name')}"
        if reason == REASON_NEVER_CONTACTED:
            return f"Make first contact with {name}"
        if reason == REASON_RECRUITER:
            return f"Check in with recruiter {name}"
        return f"Reach out to {name}"


class _Picker:
    """Collects actions up to the limit, one per contact."""

    def __init__(self, limit: int):
        self.limit = limit
        self.actions: List[Action] = []
        self.seen = set()

    @property
    def full(self) -> bool:
        return len(self.actions) >= self.limit

    def add(self, action_type: str, contact: Contact, **metadata) -> bool:
        if self.full or contact.id in self.seen:
            return False
        self.seen.add(contact.id)
        self.actions.append(Action(action_type, contact, metadata))
        return True


def _connector_overlap(contact: Contact, targets: Dict[str, Company]) -> Optional[Company]:
    if not contact.is_connector:
        return None
    for company_id in contact.profile.influence_company_ids:
        if company_id in targets:
            return targets[company_id]
    return None


def prioritize_actions(contacts: Iterable[Contact],
                       companies: Iterable[Company],
                       follow_ups_due: Iterable[FollowUp],
                       now: DateLike = None,
                       limit: int = MAX_DAILY_ACTIONS) -> List[Action]:
    """
    Rank today's recommended actions.

    Args:
        contacts: the user's contacts; archived ones are ignored
        companies: target companies; archived ones are ignored
        follow_ups_due: pending follow-ups due today, in display order
        now: reference date for warmth
        limit: maximum number of actions

    Returns:
        Up to `limit` actions, earlier tiers first. Empty when there is nothing to do.
    """
    active = with_recomputed_warmth([c for c in contacts if not c.is_archived], now)
    if not active or limit <= 0:
        return []

    targets = [co for co in companies if not co.is_archived]
    index = CompanyIndex(targets)
    by_id = {c.id: c for c in active}
    picker = _Picker(limit)

    # 1. Follow-ups due today
    for fu in follow_ups_due:
        if picker.full:
            break
        if fu.completed:
            continue
        contact = by_id.get(fu.contact_id)
        if contact is None and fu.contact is not None and not fu.contact.is_archived:
            contact = with_recomputed_warmth([fu.contact], now)[0]
        if contact is None:
            continue
        picker.add(FOLLOW_UP, contact, reason=REASON_FOLLOW_UP,
                   follow_up_id=fu.id, note=fu.note)

    # 2. Cooling contacts
    for contact in active:
        if picker.full:
            break
        if contact.warmth_level == COOLING:
            picker.add(COLD_CONTACT, contact, reason=REASON_COOLING)

    # 3. Connectors with influence at a target company
    for contact in active:
        if picker.full:
            break
        company = _connector_overlap(contact, index.by_id)
        if company is not None:
            picker.add(COMPANY_OVERLAP, contact, reason=REASON_CONNECTOR,
                       company_id=company.id, company_name=company.name)

    # 4. Cold contacts at a target company
    for contact in active:
        if picker.full:
            break
        if contact.warmth_level != COLD:
            continue
        company = index.resolve(contact)
        if company is not None:
            picker.add(COLD_CONTACT, contact, reason=REASON_TARGET_COMPANY,
                       company_id=company.id, company_name=company.name)

    # 5. Never contacted
    for contact in active:
        if picker.full:
            break
        if contact.last_contact_date is None:
            picker.add(COLD_CONTACT, contact, reason=REASON_NEVER_CONTACTED)

    # 6. Reliable recruiters
    for contact in active:
        if picker.full:
            break
        if contact.is_recruiter:
            picker.add(COLD_CONTACT, contact, reason=REASON_RECRUITER,
                       specialization=contact.profile.specialization)

    return picker.actions
