from loguru import logger
from pipeline.orchestrator import PipelineOrchestrator
from pipeline.state import RunState, LEADERSHIP


async def discover(state: RunState, orchestrator: PipelineOrchestrator) -> RunState:
    """Discover the leadership team of the enriched company."""
    logger.info("Starting leadership discovery")

    committed = await orchestrator.submit_leadership_discovery(state.get("filters"))
    if committed:
        state.setdefault("completed", []).append(LEADERSHIP)
        logger.info(f"Leadership discovery completed: {len(orchestrator.visible_contacts())} visible contacts")
    else:
        error = orchestrator.status(LEADERSHIP)["error"] or "Superseded by a newer discovery request"
        logger.error(f"Leadership discovery failed: {error}")
        state.setdefault("errors", []).append(f"leadership: {error}")

    return state
