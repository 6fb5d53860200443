from typing import TypedDict, Optional, List, Dict, Any

ENRICHMENT = "enrichment"
LEADERSHIP = "leadership"
OUTREACH = "outreach"
STAGES = (ENRICHMENT, LEADERSHIP, OUTREACH)

TEMPLATES = ("professional", "friendly", "custom")
SEND_STATUSES = ("sent", "failed", "preview")


class CompanyRecord(TypedDict):
    """Normalized output of the enrichment agent."""
    name: str
    domain: str
    description: str
    year_founded: int
    industry: str
    revenue_range: str
    employee_count: int
    location: str
    technologies: List[str]
    recent_activity: List[str]
    phone: str
    email: str
    address: str
    defaulted_fields: List[str]      # fields filled from defaults, not agent data


class LeadershipContact(TypedDict):
    name: str
    title: str
    department: str
    seniority_level: str
    linkedin_url: str
    email: str                       # identity key for selection
    relevance_score: float           # 0.0 - 1.0


class LeadershipRecord(TypedDict):
    """Normalized output of the leadership discovery agent."""
    company_name: str
    company_domain: str
    total_contacts_found: int
    team: List[LeadershipContact]
    department_summary: Dict[str, int]
    defaulted_fields: List[str]


class FilterCriteria(TypedDict, total=False):
    title_filter: Optional[str]
    seniority_filter: Optional[str]
    department_filter: Optional[str]


class SendResult(TypedDict, total=False):
    recipient_email: str
    recipient_name: str
    status: str                      # "sent" | "failed" | "preview"
    timestamp: str                   # ISO 8601
    error: str


class EmailCampaignResult(TypedDict):
    """Normalized output of the outreach agent."""
    total_recipients: int
    successfully_sent: int
    failed: int
    preview_text: str
    per_recipient: List[SendResult]
    defaulted_fields: List[str]


class StageStatus(TypedDict):
    busy: bool
    error: Optional[str]


class PipelineState(TypedDict):
    """Snapshot of the whole workflow, owned by PipelineOrchestrator."""
    active_stage: str                # "enrichment" | "leadership" | "outreach"
    company_input: str
    company: Optional[CompanyRecord]
    filters: FilterCriteria
    leadership: Optional[LeadershipRecord]
    selection: List[str]             # selected contact emails, in selection order
    email_template: str              # "professional" | "friendly" | "custom"
    custom_text: str
    campaign: Optional[EmailCampaignResult]
    per_stage: Dict[str, StageStatus]


class RunState(TypedDict, total=False):
    """State shape for the one-shot full pipeline workflow."""
    company_input: str
    filters: FilterCriteria
    email_template: str
    custom_text: str
    completed: List[str]             # stages that committed a record
    errors: List[str]
    summary: Dict[str, Any]
