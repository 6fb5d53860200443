import copy
from typing import Any, Awaitable, Callable, Dict, List, Optional
from loguru import logger

from agents.client import AgentResponse, call_agent, load_agent_ids
from pipeline.filters import FILTER_KEYS, filter_team
from pipeline.normalize import normalize
from pipeline.prompts import (
    build_discovery_instruction,
    build_enrichment_instruction,
    build_outreach_instruction,
)
from pipeline.selection import SelectionSet
from pipeline.state import (
    CompanyRecord,
    EmailCampaignResult,
    FilterCriteria,
    LeadershipContact,
    LeadershipRecord,
    PipelineState,
    StageStatus,
    ENRICHMENT,
    LEADERSHIP,
    OUTREACH,
    STAGES,
    TEMPLATES,
)
from pipeline.templates import preview as render_preview

InvokeFn = Callable[[str, str], Awaitable[AgentResponse]]

NO_COMPANY_ERROR = "Please enrich a company first"
NO_SELECTION_ERROR = "Please select contacts to send emails to"
GENERIC_ERROR = "An error occurred"
FAILURE_MESSAGES = {
    ENRICHMENT: "Failed to enrich company",
    LEADERSHIP: "Failed to discover leadership",
    OUTREACH: "Failed to send outreach emails",
}


class PipelineOrchestrator:
    """
    Single owner of the enrichment -> leadership -> outreach workflow state.

    All mutation goes through the methods below; readers get deep copies via
    ``snapshot()``. Later-stage records are not invalidated when an earlier
    stage is re-run: re-enriching another company keeps the previous
    leadership list and selection until discovery is run again.

    Each stage keeps a request generation counter. Only the most recently
    issued request for a stage may commit; older completions are dropped.
    A request rejected by its precondition still counts as the latest one.
    """

    def __init__(self, invoke: Optional[InvokeFn] = None, agent_ids: Optional[Dict[str, str]] = None):
        self._invoke = invoke or call_agent
        self._agent_ids = agent_ids or load_agent_ids()
        self._generations = {stage: 0 for stage in STAGES}

        self._active_stage = ENRICHMENT
        self._company_input = ""
        self._company: Optional[CompanyRecord] = None
        self._filters: FilterCriteria = {key: "" for key in FILTER_KEYS}
        self._leadership: Optional[LeadershipRecord] = None
        self._selection = SelectionSet()
        self._email_template = "professional"
        self._custom_text = ""
        self._campaign: Optional[EmailCampaignResult] = None
        self._per_stage: Dict[str, StageStatus] = {
            stage: {"busy": False, "error": None} for stage in STAGES
        }

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def snapshot(self) -> PipelineState:
        return copy.deepcopy({
            "active_stage": self._active_stage,
            "company_input": self._company_input,
            "company": self._company,
            "filters": self._filters,
            "leadership": self._leadership,
            "selection": self._selection.to_list(),
            "email_template": self._email_template,
            "custom_text": self._custom_text,
            "campaign": self._campaign,
            "per_stage": self._per_stage,
        })

    def status(self, stage: str) -> StageStatus:
        return dict(self._per_stage[stage])

    def visible_contacts(self) -> List[LeadershipContact]:
        """Leadership team narrowed by the current filters."""
        if self._leadership is None:
            return []
        return copy.deepcopy(filter_team(self._leadership["team"], self._filters))

    def selected_contacts(self) -> List[LeadershipContact]:
        """Selected contacts in team order, whether or not they are visible."""
        if self._leadership is None:
            return []
        return [copy.deepcopy(c) for c in self._leadership["team"] if c["email"] in self._selection]

    def all_visible_selected(self) -> bool:
        return self._selection.all_visible_selected(filter_team(self._team(), self._filters))

    def preview(self) -> str:
        return render_preview(
            self._email_template,
            self._company,
            self._selection,
            self._leadership,
            self._custom_text
        )

    # ------------------------------------------------------------------
    # Local transitions
    # ------------------------------------------------------------------

    def set_active_stage(self, stage: str) -> None:
        if stage not in STAGES:
            raise ValueError(f"Unknown stage: {stage}")
        self._active_stage = stage

    def set_company_input(self, company_input: str) -> None:
        self._company_input = company_input or ""

    def set_filters(self, filters: Optional[FilterCriteria]) -> None:
        filters = filters or {}
        self._filters = {key: filters.get(key) or "" for key in FILTER_KEYS}
        logger.debug(f"Filters set to {self._filters}")

    def set_email_template(self, template: str, custom_text: Optional[str] = None) -> None:
        if template not in TEMPLATES:
            raise ValueError(f"Unknown email template: {template}")
        self._email_template = template
        if custom_text is not None:
            self._custom_text = custom_text

    def toggle_contact(self, email: str) -> bool:
        """Flip one contact's selection. Only current team members can be added."""
        if email not in self._selection and email not in {c["email"] for c in self._team()}:
            raise ValueError(f"Unknown contact: {email}")
        return self._selection.toggle(email)

    def select_all_visible(self) -> None:
        self._selection.select_all_visible(filter_team(self._team(), self._filters))

    def set_all_visible_selected(self, checked: bool) -> None:
        self._selection.set_all_visible(filter_team(self._team(), self._filters), checked)

    def clear_selection(self) -> None:
        self._selection.clear_all()

    def _team(self) -> List[LeadershipContact]:
        return self._leadership["team"] if self._leadership else []

    # ------------------------------------------------------------------
    # Agent-backed transitions
    # ------------------------------------------------------------------

    async def submit_enrichment(self, company_input: Optional[str] = None) -> bool:
        """Enrich the company named by ``company_input`` (or the stored input)."""
        if company_input is not None:
            self.set_company_input(company_input)
        text = self._company_input.strip()
        if not text:
            logger.warning("Enrichment requested without a company")
            return False

        def commit(payload: Any) -> None:
            self._company = normalize(ENRICHMENT, payload, company_input=text)
            self._active_stage = ENRICHMENT
            logger.info(f"Company record stored for {self._company['name']}")

        return await self._run_stage(ENRICHMENT, build_enrichment_instruction(text), commit)

    async def submit_leadership_discovery(self, filters: Optional[FilterCriteria] = None) -> bool:
        """Discover decision makers at the enriched company."""
        if filters is not None:
            self.set_filters(filters)

        company = self._company
        if company is None or not company["name"].strip():
            logger.warning("Leadership discovery requested before enrichment")
            return self._reject(LEADERSHIP, NO_COMPANY_ERROR)

        def commit(payload: Any) -> None:
            record = normalize(LEADERSHIP, payload, company=company)
            self._leadership = record
            dropped = self._selection.prune(c["email"] for c in record["team"])
            if dropped:
                logger.info(f"Dropped {len(dropped)} selected contacts missing from the new team")
            self._active_stage = LEADERSHIP
            logger.info(f"Leadership record stored: {len(record['team'])} contacts")

        instruction = build_discovery_instruction(company["name"], self._filters)
        return await self._run_stage(LEADERSHIP, instruction, commit)

    async def submit_outreach(self, template: Optional[str] = None, custom_text: Optional[str] = None) -> bool:
        """Send the outreach campaign to the selected contacts."""
        if template is not None:
            self.set_email_template(template, custom_text)

        company = self._company
        if company is None or len(self._selection) == 0:
            logger.warning("Outreach requested without company or selected contacts")
            return self._reject(OUTREACH, NO_SELECTION_ERROR)

        contacts = self.selected_contacts()
        email_content = self.preview()
        instruction = build_outreach_instruction(
            company["name"], contacts, self._email_template, email_content
        )

        def commit(payload: Any) -> None:
            self._campaign = normalize(
                OUTREACH, payload, selected_contacts=contacts, preview_text=email_content
            )
            self._active_stage = OUTREACH
            logger.info(
                f"Campaign stored: {self._campaign['successfully_sent']}/"
                f"{self._campaign['total_recipients']} sent"
            )

        return await self._run_stage(OUTREACH, instruction, commit)

    def _reject(self, stage: str, error: str) -> bool:
        """Record a failed precondition as the stage's latest request; in-flight calls become stale."""
        self._generations[stage] += 1
        self._per_stage[stage] = {"busy": False, "error": error}
        return False

    async def _run_stage(self, stage: str, instruction: str, commit: Callable[[Any], None]) -> bool:
        """Invoke the stage agent and commit its normalized record if still current."""
        self._generations[stage] += 1
        generation = self._generations[stage]
        status: StageStatus = {"busy": True, "error": None}
        self._per_stage[stage] = status
        logger.info(f"Starting {stage} request #{generation}")

        try:
            response = await self._invoke(instruction, self._agent_ids[stage])
        except Exception as e:
            logger.error(f"{stage} agent call failed: {e}")
            response = {"success": False, "response": None, "error": str(e) or GENERIC_ERROR}

        latest = self._generations[stage]
        if generation != latest:
            logger.warning(f"Discarding stale {stage} result #{generation} (latest is #{latest})")
            return False

        status["busy"] = False
        if response.get("success") and response.get("response"):
            commit(response["response"])
            return True

        status["error"] = response.get("error") or FAILURE_MESSAGES[stage]
        logger.error(f"{stage} request #{generation} failed: {status['error']}")
        return False
