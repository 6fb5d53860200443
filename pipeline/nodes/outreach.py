from loguru import logger
from pipeline.orchestrator import PipelineOrchestrator
from pipeline.state import RunState, OUTREACH


async def outreach(state: RunState, orchestrator: PipelineOrchestrator) -> RunState:
    """Send the outreach campaign to the selected contacts."""
    logger.info("Starting email outreach")

    committed = await orchestrator.submit_outreach(
        state.get("email_template"),
        state.get("custom_text")
    )
    if committed:
        state.setdefault("completed", []).append(OUTREACH)
        logger.info("Email outreach completed")
    else:
        error = orchestrator.status(OUTREACH)["error"] or "Superseded by a newer outreach request"
        logger.error(f"Email outreach failed: {error}")
        state.setdefault("errors", []).append(f"outreach: {error}")

    return state
