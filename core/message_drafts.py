"""
Outreach message drafts.

A short catch-up note for a contact, and a mailto: link that opens it in
the user's mail client.
"""

from typing import Optional
from urllib.parse import quote

CATCH_UP_TEMPLATE = """Hi {contact_name},

I've been thinking more about opportunities at {company} and would value your perspective. Do you have a few minutes sometime this week to catch up?

Best regards"""


def draft_message(contact_name: str, company_name: Optional[str] = None) -> str:
    """Catch-up message for a contact, mentioning their company when known."""
    return CATCH_UP_TEMPLATE.format(
        contact_name=contact_name,
        company=company_name or "your company",
    )


def draft_subject(company_name: Optional[str] = None) -> str:
    return f"Catching up about {company_name or 'opportunities'}"


def mailto_link(email: Optional[str], contact_name: str,
                company_name: Optional[str] = None, body: Optional[str] = None) -> Optional[str]:
    """
    Build a mailto: link with subject and body URL-encoded.

    Returns None when the contact has no email address.
    """
    if not email or not email.strip():
        return None
    body = body if body is not None else draft_message(contact_name, company_name)
    subject = quote(draft_subject(company_name), safe='')
    return f"mailto:{email.strip()}?subject={subject}&body={quote(body, safe='')}"
