"""
Entity records for Networking Engine.

Rows come from the store as plain dicts; these dataclasses give them types.
A Contact's type-specific attributes live on its profile, a tagged union
keyed by contact_type:

    connector          -> ConnectorProfile(influence_company_ids)
    reliable_recruiter -> RecruiterProfile(specialization)
    trailblazer        -> TrailblazerProfile()
    unspecified        -> UnspecifiedProfile()

Only the matching variant's columns are written back to the store.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Dict, Optional, Tuple, Union

# Warmth levels
WARM = 'warm'
COOLING = 'cooling'
COLD = 'cold'
WARMTH_LEVELS = (WARM, COOLING, COLD)

# Older rows carry 'hot' for the middle level
WARMTH_ALIASES = {'hot': COOLING}

# Contact types
CONNECTOR = 'connector'
TRAILBLAZER = 'trailblazer'
RELIABLE_RECRUITER = 'reliable_recruiter'
UNSPECIFIED = 'unspecified'
CONTACT_TYPES = (CONNECTOR, TRAILBLAZER, RELIABLE_RECRUITER, UNSPECIFIED)

RECRUITER_SPECIALIZATIONS = ('industry_knowledge', 'interview_prep', 'offer_negotiation')
INTERACTION_TYPES = ('email', 'call', 'message', 'meeting', 'intro_attempt')
TASK_TYPES = ('reach_out', 'follow_up', 'warm_up', 'research')


def parse_date(value) -> Optional[date]:
    """Parse YYYY-MM-DD or an ISO timestamp into a date. Bad input gives None."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return datetime.strptime(text[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


def format_date(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def normalize_warmth(value: Optional[str]) -> str:
    value = (value or COLD).strip().lower()
    value = WARMTH_ALIASES.get(value, value)
    return value if value in WARMTH_LEVELS else COLD


# ============================================================
# CONTACT PROFILES
# ============================================================

@dataclass(frozen=True)
class ConnectorProfile:
    influence_company_ids: Tuple[str, ...] = ()
    contact_type: str = field(default=CONNECTOR, init=False)


@dataclass(frozen=True)
class RecruiterProfile:
    specialization: Optional[str] = None
    contact_type: str = field(default=RELIABLE_RECRUITER, init=False)


@dataclass(frozen=True)
class TrailblazerProfile:
    contact_type: str = field(default=TRAILBLAZER, init=False)


@dataclass(frozen=True)
class UnspecifiedProfile:
    contact_type: str = field(default=UNSPECIFIED, init=False)


ContactProfile = Union[ConnectorProfile, RecruiterProfile, TrailblazerProfile, UnspecifiedProfile]


def profile_from_row(row: Dict) -> ContactProfile:
    contact_type = row.get('contact_type') or UNSPECIFIED
    if contact_type == CONNECTOR:
        ids = row.get('connector_influence_company_ids') or ()
        return ConnectorProfile(tuple(ids))
    if contact_type == RELIABLE_RECRUITER:
        specialization = row.get('recruiter_specialization')
        return RecruiterProfile(specialization if specialization in RECRUITER_SPECIALIZATIONS else None)
    if contact_type == TRAILBLAZER:
        return TrailblazerProfile()
    return UnspecifiedProfile()


def profile_columns(profile: ContactProfile) -> Dict:
    """Type-specific columns for a profile; the other variant's columns are NULL."""
    cols = {
        'contact_type': profile.contact_type,
        'connector_influence_company_ids': None,
        'recruiter_specialization': None,
    }
    if isinstance(profile, ConnectorProfile):
        cols['connector_influence_company_ids'] = list(profile.influence_company_ids)
    elif isinstance(profile, RecruiterProfile):
        cols['recruiter_specialization'] = profile.specialization
    return cols


# ============================================================
# ENTITIES
# ============================================================

@dataclass(frozen=True)
class Contact:
    id: str
    name: str
    profile: ContactProfile = UnspecifiedProfile()
    email: Optional[str] = None
    company: Optional[str] = None
    company_id: Optional[str] = None
    role: Optional[str] = None
    notes: Optional[str] = None
    linkedin_url: Optional[str] = None
    warmth_level: str = COLD
    last_contact_date: Optional[date] = None
    is_archived: bool = False
    archived_at: Optional[str] = None
    created_at: Optional[datetime] = None
    # warmth_level exactly as stored ('' for NULL); None when not read from a row
    stored_warmth: Optional[str] = field(default=None, compare=False, repr=False)

    @property
    def contact_type(self) -> str:
        return self.profile.contact_type

    @property
    def is_connector(self) -> bool:
        return isinstance(self.profile, ConnectorProfile)

    @property
    def is_recruiter(self) -> bool:
        return isinstance(self.profile, RecruiterProfile)

    def with_warmth(self, warmth: str) -> 'Contact':
        return replace(self, warmth_level=warmth)

    @classmethod
    def from_row(cls, row: Dict) -> 'Contact':
        created = row.get('created_at')
        return cls(
            id=row['id'],
            name=row.get('name') or '',
            profile=profile_from_row(row),
            email=row.get('email'),
            company=row.get('company'),
            company_id=row.get('company_id'),
            role=row.get('role'),
            notes=row.get('notes'),
            linkedin_url=row.get('linkedin_url'),
            warmth_level=normalize_warmth(row.get('warmth_level')),
            last_contact_date=parse_date(row.get('last_contact_date')),
            is_archived=bool(row.get('is_archived')),
            archived_at=row.get('archived_at'),
            created_at=_parse_timestamp(created),
            stored_warmth=row.get('warmth_level') or '',
        )

    def to_row(self) -> Dict:
        row = {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'company': self.company,
            'company_id': self.company_id,
            'role': self.role,
            'notes': self.notes,
            'linkedin_url': self.linkedin_url,
            'warmth_level': self.warmth_level,
            'last_contact_date': format_date(self.last_contact_date),
            'is_archived': self.is_archived,
            'archived_at': self.archived_at,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
        row.update(profile_columns(self.profile))
        return row


@dataclass(frozen=True)
class Company:
    id: str
    name: str
    priority: int = 0
    industry: Optional[str] = None
    target_role: Optional[str] = None
    notes: Optional[str] = None
    is_archived: bool = False
    archived_at: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict) -> 'Company':
        return cls(
            id=row['id'],
            name=row.get('name') or '',
            priority=int(row.get('priority') or 0),
            industry=row.get('industry'),
            target_role=row.get('target_role'),
            notes=row.get('notes'),
            is_archived=bool(row.get('is_archived')),
            archived_at=row.get('archived_at'),
            created_at=_parse_timestamp(row.get('created_at')),
        )

    def to_row(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'priority': self.priority,
            'industry': self.industry,
            'target_role': self.target_role,
            'notes': self.notes,
            'is_archived': self.is_archived,
            'archived_at': self.archived_at,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class Interaction:
    id: str
    contact_id: str
    interaction_date: Optional[date]
    interaction_type: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict) -> 'Interaction':
        return cls(
            id=row['id'],
            contact_id=row['contact_id'],
            interaction_date=parse_date(row.get('interaction_date')),
            interaction_type=row.get('interaction_type') or 'email',
            notes=row.get('notes'),
            created_at=_parse_timestamp(row.get('created_at')),
        )

    def to_row(self) -> Dict:
        return {
            'id': self.id,
            'contact_id': self.contact_id,
            'interaction_date': format_date(self.interaction_date),
            'interaction_type': self.interaction_type,
            'notes': self.notes,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class FollowUp:
    id: str
    contact_id: str
    due_date: Optional[date]
    note: Optional[str] = None
    completed: bool = False
    completed_at: Optional[str] = None
    contact: Optional[Contact] = None

    @classmethod
    def from_row(cls, row: Dict, contact: Optional[Contact] = None) -> 'FollowUp':
        return cls(
            id=row['id'],
            contact_id=row['contact_id'],
            due_date=parse_date(row.get('due_date')),
            note=row.get('note'),
            completed=bool(row.get('completed')),
            completed_at=row.get('completed_at'),
            contact=contact,
        )

    def to_row(self) -> Dict:
        return {
            'id': self.id,
            'contact_id': self.contact_id,
            'due_date': format_date(self.due_date),
            'note': self.note,
            'completed': self.completed,
            'completed_at': self.completed_at,
        }


@dataclass(frozen=True)
class DailyTask:
    id: str
    description: str
    task_type: str
    completed: bool = False
    due_date: Optional[date] = None
    contact_id: Optional[str] = None
    company_id: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict) -> 'DailyTask':
        return cls(
            id=row['id'],
            description=row.get('description') or '',
            task_type=row.get('task_type') or 'reach_out',
            completed=bool(row.get('completed')),
            due_date=parse_date(row.get('due_date')),
            contact_id=row.get('contact_id'),
            company_id=row.get('company_id'),
        )

    def to_row(self) -> Dict:
        return {
            'id': self.id,
            'description': self.description,
            'task_type': self.task_type,
            'completed': self.completed,
            'due_date': format_date(self.due_date),
            'contact_id': self.contact_id,
            'company_id': self.company_id,
        }


@dataclass(frozen=True)
class Streak:
    current_streak: int = 0
    longest_streak: int = 0
    total_tasks_completed: int = 0
    last_activity_date: Optional[date] = None

    @classmethod
    def from_row(cls, row: Optional[Dict]) -> 'Streak':
        if not row:
            return cls()
        return cls(
            current_streak=int(row.get('current_streak') or 0),
            longest_streak=int(row.get('longest_streak') or 0),
            total_tasks_completed=int(row.get('total_tasks_completed') or 0),
            last_activity_date=parse_date(row.get('last_activity_date')),
        )

    def to_row(self) -> Dict:
        return {
            'current_streak': self.current_streak,
            'longest_streak': self.longest_streak,
            'total_tasks_completed': self.total_tasks_completed,
            'last_activity_date': format_date(self.last_activity_date),
        }


def _parse_timestamp(value) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    text = str(value).strip().replace('Z', '+00:00')
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        day = parse_date(text)
        return datetime(day.year, day.month, day.day) if day else None
    # Store timestamps may be tz-aware; comparisons here are local-naive
    return parsed.replace(tzinfo=None)
