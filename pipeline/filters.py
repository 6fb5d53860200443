from typing import List, Optional
from pipeline.state import FilterCriteria, LeadershipContact

FILTER_KEYS = ("title_filter", "seniority_filter", "department_filter")


def _criterion(criteria: Optional[FilterCriteria], key: str) -> str:
    value = (criteria or {}).get(key)
    # Blank means unset; non-blank values are compared as given
    if not isinstance(value, str) or not value.strip():
        return ""
    return value


def matches(contact: LeadershipContact, criteria: Optional[FilterCriteria]) -> bool:
    """Title is a case-insensitive substring match; seniority and department match exactly."""
    title = _criterion(criteria, "title_filter")
    if title and title.lower() not in contact["title"].lower():
        return False

    seniority = _criterion(criteria, "seniority_filter")
    if seniority and contact["seniority_level"] != seniority:
        return False

    department = _criterion(criteria, "department_filter")
    if department and contact["department"] != department:
        return False

    return True


def filter_team(team: List[LeadershipContact], criteria: Optional[FilterCriteria] = None) -> List[LeadershipContact]:
    """Return the contacts passing ``criteria``, in their original order."""
    return [contact for contact in team if matches(contact, criteria)]


def describe_filters(criteria: Optional[FilterCriteria]) -> str:
    """Active filter values joined for agent instructions, or 'None'."""
    active = [_criterion(criteria, key) for key in FILTER_KEYS]
    return ", ".join(value for value in active if value) or "None"
