import os
import sys
import copy
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from agents.client import DEFAULT_AGENT_IDS

STAGE_BY_AGENT_ID = {agent_id: stage for stage, agent_id in DEFAULT_AGENT_IDS.items()}

SAMPLE_TEAM = [
    {
        "name": "John Smith",
        "title": "CEO",
        "department": "Executive",
        "seniority_level": "C-Level",
        "linkedin_url": "https://linkedin.com/in/johnsmith",
        "email": "john@acme.com",
        "relevance_score": 0.95,
    },
    {
        "name": "Sarah Johnson",
        "title": "VP of Sales",
        "department": "Sales",
        "seniority_level": "VP",
        "linkedin_url": "https://linkedin.com/in/sarahjohnson",
        "email": "sarah@acme.com",
        "relevance_score": 0.88,
    },
    {
        "name": "Michael Chen",
        "title": "Chief Technology Officer",
        "department": "Technology",
        "seniority_level": "C-Level",
        "linkedin_url": "https://linkedin.com/in/michaelchen",
        "email": "michael@acme.com",
        "relevance_score": 0.92,
    },
    {
        "name": "Priya Patel",
        "title": "Sales Director",
        "department": "Sales",
        "seniority_level": "Director",
        "linkedin_url": "https://linkedin.com/in/priyapatel",
        "email": "priya@acme.com",
        "relevance_score": 0.64,
    },
]


class FakeAgent:
    """Scripted stand-in for the agent adapter, keyed by stage name."""

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []

    def stages_called(self):
        return [STAGE_BY_AGENT_ID[agent_id] for _, agent_id in self.calls]

    async def __call__(self, instruction, agent_id):
        self.calls.append((instruction, agent_id))
        response = self.responses.get(STAGE_BY_AGENT_ID[agent_id])
        if isinstance(response, Exception):
            raise response
        if response is None:
            return {"success": False, "response": None, "error": None}
        return copy.deepcopy(response)


def ok(payload):
    return {"success": True, "response": payload, "error": None}


def company_payload(name="Acme Corp"):
    return {
        "result": {
            "company_overview": {
                "name": name,
                "domain": "acme.com",
                "description": "Industrial widgets",
                "year_founded": 1998,
            },
            "firmographics": {
                "industry": "Manufacturing",
                "revenue_range": "$50M - $100M",
                "employee_count": 420,
                "location": "Chicago, IL",
            },
            "technology_stack": ["SAP", {"title": "Salesforce"}],
            "recent_activity": ["Opened new plant"],
            "contact_information": {
                "phone": "+1-312-555-0100",
                "email": "hello@acme.com",
                "address": "1 Widget Way, Chicago, IL",
            },
        }
    }


def leadership_payload(team=None):
    team = SAMPLE_TEAM if team is None else team
    return {
        "company_name": "Acme Corp",
        "company_domain": "acme.com",
        "total_contacts_found": len(team),
        "leadership_team": copy.deepcopy(team),
        "department_summary": {"Executive": 1, "Sales": 2, "Technology": 1},
    }


@pytest.fixture
def fake_agent():
    return FakeAgent({
        "enrichment": ok(company_payload()),
        "leadership": ok(leadership_payload()),
        "outreach": ok("All emails were queued."),
    })


@pytest.fixture
def team():
    return copy.deepcopy(SAMPLE_TEAM)
