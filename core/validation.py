"""
Form input validation.

Each form is a pydantic model. validate_form() returns the parsed model or
the first violated rule only, as a FieldError the UI can show as a single
message.
"""

from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Tuple, Type, TypeVar

from pydantic import (BaseModel, ConfigDict, EmailStr, Field, TypeAdapter,
                      ValidationError, field_validator)

from core.models import (COLD, CONTACT_TYPES, INTERACTION_TYPES,
                         RECRUITER_SPECIALIZATIONS, UNSPECIFIED, WARMTH_ALIASES,
                         WARMTH_LEVELS)

NAME_MAX = 100
EMAIL_MAX = 255
NOTES_MAX = 1000

_EMAIL = TypeAdapter(EmailStr)

FormT = TypeVar('FormT', bound=BaseModel)


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


class ValidationFailed(Exception):
    def __init__(self, error: FieldError):
        super().__init__(f"{error.field}: {error.message}")
        self.error = error


def _blank_to_none(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _max_len(value: Optional[str], limit: int, label: str) -> Optional[str]:
    if value is not None and len(value) > limit:
        raise ValueError(f"{label} must be less than {limit} characters")
    return value


def _required_name(value: Optional[str], label: str) -> str:
    value = str(value or '').strip()
    if not value:
        raise ValueError(f"{label} is required")
    return _max_len(value, NAME_MAX, label)


class _Form(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra='ignore')


class ContactForm(_Form):
    name: str = Field(default='', validate_default=True)
    email: Optional[str] = None
    company: Optional[str] = None
    role: Optional[str] = None
    notes: Optional[str] = None
    linkedin_url: Optional[str] = None
    warmth_level: str = COLD
    contact_type: str = UNSPECIFIED
    connector_influence_company_ids: List[str] = Field(default_factory=list)
    recruiter_specialization: Optional[str] = None

    @field_validator('name', mode='before')
    @classmethod
    def _name(cls, v):
        return _required_name(v, "Name")

    @field_validator('email', 'company', 'role', 'notes', 'linkedin_url',
                     'recruiter_specialization', mode='before')
    @classmethod
    def _blank(cls, v):
        return _blank_to_none(v)

    @field_validator('email')
    @classmethod
    def _email(cls, v):
        if v is None:
            return v
        _max_len(v, EMAIL_MAX, "Email")
        try:
            return str(_EMAIL.validate_python(v))
        except ValidationError:
            raise ValueError("Invalid email address")

    @field_validator('company')
    @classmethod
    def _company(cls, v):
        return _max_len(v, NAME_MAX, "Company name")

    @field_validator('role')
    @classmethod
    def _role(cls, v):
        return _max_len(v, NAME_MAX, "Role")

    @field_validator('notes')
    @classmethod
    def _notes(cls, v):
        return _max_len(v, NOTES_MAX, "Notes")

    @field_validator('warmth_level', mode='before')
    @classmethod
    def _warmth(cls, v):
        v = str(v or COLD).strip().lower()
        v = WARMTH_ALIASES.get(v, v)
        if v not in WARMTH_LEVELS:
            raise ValueError(f"Warmth must be one of {', '.join(WARMTH_LEVELS)}")
        return v

    @field_validator('contact_type', mode='before')
    @classmethod
    def _contact_type(cls, v):
        v = str(v or UNSPECIFIED).strip()
        if v not in CONTACT_TYPES:
            raise ValueError(f"Contact type must be one of {', '.join(CONTACT_TYPES)}")
        return v

    @field_validator('recruiter_specialization')
    @classmethod
    def _specialization(cls, v):
        if v is not None and v not in RECRUITER_SPECIALIZATIONS:
            raise ValueError(
                f"Specialization must be one of {', '.join(RECRUITER_SPECIALIZATIONS)}")
        return v


class CompanyForm(_Form):
    name: str = Field(default='', validate_default=True)
    industry: Optional[str] = None
    target_role: Optional[str] = None
    notes: Optional[str] = None
    priority: int = 0

    @field_validator('name', mode='before')
    @classmethod
    def _name(cls, v):
        return _required_name(v, "Company name")

    @field_validator('industry', 'target_role', 'notes', mode='before')
    @classmethod
    def _blank(cls, v):
        return _blank_to_none(v)

    @field_validator('industry')
    @classmethod
    def _industry(cls, v):
        return _max_len(v, NAME_MAX, "Industry")

    @field_validator('target_role')
    @classmethod
    def _target_role(cls, v):
        return _max_len(v, NAME_MAX, "Target role")

    @field_validator('notes')
    @classmethod
    def _notes(cls, v):
        return _max_len(v, NOTES_MAX, "Notes")

    @field_validator('priority')
    @classmethod
    def _priority(cls, v):
        if v < 0:
            raise ValueError("Priority must be at least 0")
        if v > 5:
            raise ValueError("Priority must be at most 5")
        return v


class FollowUpForm(_Form):
    contact_id: Optional[str] = Field(default=None, validate_default=True)
    due_date: Optional[date] = Field(default=None, validate_default=True)
    note: Optional[str] = None

    @field_validator('contact_id', 'note', mode='before')
    @classmethod
    def _blank(cls, v):
        return _blank_to_none(v)

    @field_validator('contact_id')
    @classmethod
    def _contact(cls, v):
        if not v:
            raise ValueError("Contact is required")
        return v

    @field_validator('due_date', mode='before')
    @classmethod
    def _due(cls, v):
        v = _blank_to_none(v)
        if v is None:
            raise ValueError("Due date is required")
        return v

    @field_validator('note')
    @classmethod
    def _note(cls, v):
        return _max_len(v, NOTES_MAX, "Note")


class InteractionForm(_Form):
    contact_id: Optional[str] = Field(default=None, validate_default=True)
    interaction_type: str = 'email'
    interaction_date: date = Field(default_factory=date.today)
    notes: Optional[str] = None

    @field_validator('contact_id', 'notes', mode='before')
    @classmethod
    def _blank(cls, v):
        return _blank_to_none(v)

    @field_validator('contact_id')
    @classmethod
    def _contact(cls, v):
        if not v:
            raise ValueError("Contact is required")
        return v

    @field_validator('interaction_type')
    @classmethod
    def _type(cls, v):
        if v not in INTERACTION_TYPES:
            raise ValueError(f"Interaction type must be one of {', '.join(INTERACTION_TYPES)}")
        return v

    @field_validator('notes')
    @classmethod
    def _notes(cls, v):
        return _max_len(v, NOTES_MAX, "Notes")


def _first_error(exc: ValidationError) -> FieldError:
    err = exc.errors()[0]
    field = '.'.join(str(p) for p in err.get('loc', ())) or 'form'
    message = err.get('msg', 'Invalid value')
    if message.startswith('Value error, '):
        message = message[len('Value error, '):]
    return FieldError(field, message)


def validate_form(form: Type[FormT], data: Dict) -> Tuple[Optional[FormT], Optional[FieldError]]:
    """Parse form data. Returns (model, None) or (None, first error)."""
    try:
        return form.model_validate(data), None
    except ValidationError as e:
        return None, _first_error(e)


def parse_form(form: Type[FormT], data: Dict) -> FormT:
    """Like validate_form() but raises ValidationFailed."""
    model, error = validate_form(form, data)
    if error is not None:
        raise ValidationFailed(error)
    return model
