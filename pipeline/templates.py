from datetime import datetime
from typing import Iterable, Optional
from pipeline.state import CompanyRecord, LeadershipRecord

NO_SELECTION_PLACEHOLDER = "Select contacts and company data to preview email"
CONTACT_NOT_FOUND = "Contact not found"


def professional_template(company_name: str, contact_name: str) -> str:
    return f"""Dear {contact_name},

I hope this message finds you well. I've been following {company_name}'s impressive growth trajectory in the market, particularly your recent initiatives in digital transformation.

I believe there's a valuable opportunity for us to explore how we can support {company_name}'s continued expansion. I'd welcome the chance to discuss this further at your convenience.

Best regards"""


def friendly_template(company_name: str, contact_name: str) -> str:
    return f"""Hi {contact_name},

I've been impressed by what {company_name} is doing in the industry. Your company's innovation and growth story is really compelling.

I'd love to chat about how we might be able to add value to your initiatives. Would you have 15 minutes next week?

Looking forward to connecting!"""


EMAIL_TEMPLATES = {
    "professional": professional_template,
    "friendly": friendly_template,
}


def render_template(template: str, company_name: str, contact_name: str) -> str:
    try:
        return EMAIL_TEMPLATES[template](company_name, contact_name)
    except KeyError:
        raise ValueError(f"Unknown email template: {template}")


def preview(
    template: str,
    company: Optional[CompanyRecord],
    selection: Iterable[str],
    leadership: Optional[LeadershipRecord],
    custom_text: str = ""
) -> str:
    """
    Render the representative email for the first selected contact.

    The preview always uses one recipient; per-recipient personalization is
    left to the outreach agent.

    Args:
        template: "professional", "friendly" or "custom"
        company: Current company record
        selection: Selected contact emails, in selection order
        leadership: Current leadership record
        custom_text: Body used verbatim for the custom template

    Returns:
        Email body or a placeholder message
    """
    first_email = next(iter(selection), None)
    if company is None or leadership is None or first_email is None:
        return NO_SELECTION_PLACEHOLDER

    if template == "custom":
        return custom_text

    contact = next((c for c in leadership["team"] if c["email"] == first_email), None)
    if contact is None:
        return CONTACT_NOT_FOUND

    return render_template(template, company["name"], contact["name"])


def relevance_band(score: float) -> str:
    """Bucket a relevance/confidence score the way the contacts table colours it."""
    if score >= 0.9:
        return "excellent"
    if score >= 0.7:
        return "good"
    if score >= 0.5:
        return "fair"
    return "low"


def format_timestamp(timestamp: str) -> str:
    """Human-readable send time; unparseable input is returned unchanged."""
    try:
        moment = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return timestamp
    return moment.strftime("%b %d, %Y, %I:%M %p").replace(" 0", " ")
