import copy
import json
import math
import re
from typing import Any, Dict, List, Optional
from loguru import logger

from agents.json_parser import parse_llm_json
from pipeline.state import (
    CompanyRecord,
    LeadershipContact,
    LeadershipRecord,
    ENRICHMENT,
    LEADERSHIP,
    OUTREACH,
)

COMPANY_DEFAULTS: Dict[str, Any] = {
    "domain": "example.com",
    "description": "Company information",
    "year_founded": 2020,
    "industry": "Technology",
    "revenue_range": "$1M - $10M",
    "employee_count": 50,
    "location": "USA",
    "technologies": ["Cloud", "SaaS", "AI"],
    "recent_activity": ["Founded company", "Raised funding"],
    "phone": "+1-555-0000",
    "email": "info@company.com",
    "address": "USA",
}

# field -> path inside the agent payload
COMPANY_PATHS = {
    "name": ("company_overview", "name"),
    "domain": ("company_overview", "domain"),
    "description": ("company_overview", "description"),
    "year_founded": ("company_overview", "year_founded"),
    "industry": ("firmographics", "industry"),
    "revenue_range": ("firmographics", "revenue_range"),
    "employee_count": ("firmographics", "employee_count"),
    "location": ("firmographics", "location"),
    "technologies": ("technology_stack",),
    "recent_activity": ("recent_activity",),
    "phone": ("contact_information", "phone"),
    "email": ("contact_information", "email"),
    "address": ("contact_information", "address"),
}

DEFAULT_TEAM: List[LeadershipContact] = [
    {
        "name": "John Smith",
        "title": "CEO",
        "department": "Executive",
        "seniority_level": "C-Level",
        "linkedin_url": "https://linkedin.com/in/johnsmith",
        "email": "john@company.com",
        "relevance_score": 0.95,
    },
    {
        "name": "Sarah Johnson",
        "title": "VP of Sales",
        "department": "Sales",
        "seniority_level": "VP",
        "linkedin_url": "https://linkedin.com/in/sarahjohnson",
        "email": "sarah@company.com",
        "relevance_score": 0.88,
    },
    {
        "name": "Michael Chen",
        "title": "CTO",
        "department": "Technology",
        "seniority_level": "C-Level",
        "linkedin_url": "https://linkedin.com/in/michaelchen",
        "email": "michael@company.com",
        "relevance_score": 0.92,
    },
]

DEFAULT_DEPARTMENT_SUMMARY = {"Executive": 2, "Sales": 1}
DEFAULT_TOTAL_CONTACTS = 5

CONTACT_TEXT_DEFAULTS = {
    "name": "Unknown",
    "title": "Unknown",
    "department": "Unknown",
    "seniority_level": "Unknown",
    "linkedin_url": "",
}

_NUMBER_RE = re.compile(r"^\s*-?\d[\d,]*(\.\d+)?\s*$")


def decode_payload(value: Any) -> Any:
    """Decode agent text and unwrap an optional ``result`` wrapper."""
    if isinstance(value, str):
        value = parse_llm_json(value, None)
    if isinstance(value, dict) and value.get("result"):
        value = value["result"]
        if isinstance(value, str):
            value = parse_llm_json(value, None)
    return value


def dig(source: Any, *path: str) -> Any:
    """Read a nested key path, returning None when any level is not a mapping."""
    current = source
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def as_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def as_int(value: Any, zero_is_missing: bool = True) -> Optional[int]:
    """Accept ints, floats and numeric strings; zero counts as missing unless told otherwise."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if not math.isfinite(value):
            return None
        number = int(round(value))
    elif isinstance(value, str) and _NUMBER_RE.match(value):
        parsed = float(value.replace(",", ""))
        if not math.isfinite(parsed):
            return None
        number = int(round(parsed))
    else:
        return None
    if zero_is_missing and number == 0:
        return None
    return number


def as_score(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, int):
        return 1.0 if value > 0 else 0.0
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return 0.0
    if not isinstance(value, float) or not math.isfinite(value):
        return 0.0
    return max(0.0, min(1.0, value))


def item_text(item: Any) -> str:
    """Flatten one array element to text: string, then title, then description, then a JSON dump."""
    if isinstance(item, str):
        return item
    if isinstance(item, dict):
        for key in ("title", "description"):
            text = as_text(item.get(key))
            if text:
                return text
    return json.dumps(item, default=str)


def as_text_list(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list):
        return None
    return [item_text(item) for item in value]


def normalize_company(value: Any, company_input: str = "") -> CompanyRecord:
    """
    Build a complete CompanyRecord from an enrichment agent response.

    Args:
        value: Raw agent response (text, mapping or None)
        company_input: What the user asked to enrich; default company name

    Returns:
        CompanyRecord with every field populated
    """
    data = decode_payload(value)
    if not isinstance(data, dict):
        data = {}

    defaulted: List[str] = []
    record: Dict[str, Any] = {}

    for field, path in COMPANY_PATHS.items():
        raw = dig(data, *path)
        if field in ("technologies", "recent_activity"):
            parsed = as_text_list(raw)
        elif field in ("year_founded", "employee_count"):
            parsed = as_int(raw)
        else:
            parsed = as_text(raw)

        if parsed is None:
            defaulted.append(field)
            if field == "name":
                parsed = company_input.strip() or "Unknown Company"
            else:
                parsed = copy.deepcopy(COMPANY_DEFAULTS[field])
        record[field] = parsed

    record["defaulted_fields"] = defaulted
    if defaulted:
        logger.debug(f"Company record for '{record['name']}' defaulted: {defaulted}")
    return record


def normalize_contact(item: Any, position: int, domain: str) -> Optional[LeadershipContact]:
    """Coerce one team entry; bare strings become a contact name."""
    if isinstance(item, str) and item.strip():
        item = {"name": item}
    if not isinstance(item, dict):
        return None

    contact: Dict[str, Any] = {}
    for field, default in CONTACT_TEXT_DEFAULTS.items():
        contact[field] = as_text(item.get(field)) or default
    contact["email"] = as_text(item.get("email")) or f"contact{position}@{domain}"
    contact["relevance_score"] = as_score(item.get("relevance_score"))
    return contact


def normalize_team(value: Any, domain: str) -> List[LeadershipContact]:
    team: List[LeadershipContact] = []
    seen = set()
    for position, item in enumerate(value, 1):
        contact = normalize_contact(item, position, domain)
        if contact is None:
            logger.warning(f"Skipping unusable team entry #{position}")
            continue
        if contact["email"] in seen:
            logger.warning(f"Skipping duplicate contact {contact['email']}")
            continue
        seen.add(contact["email"])
        team.append(contact)
    return team


def normalize_department_summary(value: Any) -> Optional[Dict[str, int]]:
    if not isinstance(value, dict):
        return None
    summary = {}
    for department, count in value.items():
        number = as_int(count, zero_is_missing=False)
        if number is not None:
            summary[str(department)] = number
    return summary


def normalize_leadership(value: Any, company: Optional[CompanyRecord] = None) -> LeadershipRecord:
    """
    Build a complete LeadershipRecord from a discovery agent response.

    Company name and domain fall back to the current company record.
    """
    data = decode_payload(value)
    if not isinstance(data, dict):
        data = {}

    defaulted: List[str] = []
    fallback_name = company["name"] if company else "Unknown Company"
    fallback_domain = company["domain"] if company else COMPANY_DEFAULTS["domain"]

    company_name = as_text(data.get("company_name"))
    if company_name is None:
        defaulted.append("company_name")
        company_name = fallback_name

    company_domain = as_text(data.get("company_domain"))
    if company_domain is None:
        defaulted.append("company_domain")
        company_domain = fallback_domain

    total = as_int(data.get("total_contacts_found"))
    if total is None:
        defaulted.append("total_contacts_found")
        total = DEFAULT_TOTAL_CONTACTS

    raw_team = data.get("leadership_team")
    if isinstance(raw_team, list):
        team = normalize_team(raw_team, company_domain)
    else:
        defaulted.append("team")
        team = copy.deepcopy(DEFAULT_TEAM)

    summary = normalize_department_summary(data.get("department_summary"))
    if summary is None:
        defaulted.append("department_summary")
        summary = dict(DEFAULT_DEPARTMENT_SUMMARY)

    if defaulted:
        logger.debug(f"Leadership record for '{company_name}' defaulted: {defaulted}")

    return {
        "company_name": company_name,
        "company_domain": company_domain,
        "total_contacts_found": total,
        "team": team,
        "department_summary": summary,
        "defaulted_fields": defaulted,
    }


def normalize(stage: str, value: Any = None, **context: Any) -> Dict[str, Any]:
    """
    Map an agent response for ``stage`` onto its complete record.

    Context keys: ``company_input`` (enrichment), ``company`` (leadership),
    ``selected_contacts`` and ``preview_text`` (outreach).
    """
    if stage == ENRICHMENT:
        return normalize_company(value, context.get("company_input", ""))
    if stage == LEADERSHIP:
        return normalize_leadership(value, context.get("company"))
    if stage == OUTREACH:
        from pipeline.campaign import aggregate
        return aggregate(
            value,
            context.get("selected_contacts") or [],
            context.get("preview_text", "")
        )
    raise ValueError(f"Unknown stage: {stage}")
