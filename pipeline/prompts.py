from typing import List, Optional
from pipeline.filters import describe_filters
from pipeline.state import FilterCriteria, LeadershipContact


def build_enrichment_instruction(company_input: str) -> str:
    return (
        f"Enrich company profile for: {company_input}. Return comprehensive company data with "
        "company_overview, firmographics, technology_stack, recent_activity, and contact_information."
    )


def build_discovery_instruction(company_name: str, filters: Optional[FilterCriteria]) -> str:
    return (
        f"Search for decision-makers and leaders at {company_name}. "
        f"Apply filters for: {describe_filters(filters)}. "
        "Return a list of key contacts with their names, titles, departments, seniority levels, and relevance scores."
    )


def build_outreach_instruction(
    company_name: str,
    contacts: List[LeadershipContact],
    template: str,
    email_content: str
) -> str:
    contacts_list = "; ".join(f"{c['name']} ({c['title']}) - {c['email']}" for c in contacts)
    return (
        f"Send personalized emails to these decision-makers at {company_name}: {contacts_list}. "
        f"Email template: {template}. Email content: {email_content}. "
        "Report the send status for each recipient."
    )
