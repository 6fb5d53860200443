from loguru import logger
from pipeline.orchestrator import PipelineOrchestrator
from pipeline.state import RunState


async def select_contacts(state: RunState, orchestrator: PipelineOrchestrator) -> RunState:
    """Select every contact that survives the run's filters."""
    orchestrator.select_all_visible()
    selected = orchestrator.selected_contacts()

    if not selected:
        logger.warning("No contacts matched the filters, nothing to send")
        state.setdefault("errors", []).append("selection: No contacts matched the filters")
    else:
        logger.info(f"Selected {len(selected)} contacts for outreach")

    return state
