from pipeline.orchestrator import PipelineOrchestrator
from pipeline.state import RunState
from loguru import logger


async def summarize(state: RunState, orchestrator: PipelineOrchestrator) -> RunState:
    """Collect the headline numbers of the run."""
    snapshot = orchestrator.snapshot()
    company = snapshot["company"] or {}
    leadership = snapshot["leadership"] or {}
    campaign = snapshot["campaign"] or {}

    state["summary"] = {
        "company": company.get("name"),
        "industry": company.get("industry"),
        "contacts_found": len(leadership.get("team", [])),
        "selected": len(snapshot["selection"]),
        "sent": campaign.get("successfully_sent", 0),
        "failed": campaign.get("failed", 0),
        "active_stage": snapshot["active_stage"],
    }

    logger.info(f"Pipeline run summary: {state['summary']}")
    return state
