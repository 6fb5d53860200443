from loguru import logger
from pipeline.orchestrator import PipelineOrchestrator
from pipeline.state import RunState, ENRICHMENT


async def enrich(state: RunState, orchestrator: PipelineOrchestrator) -> RunState:
    """Run company enrichment for the requested company."""
    logger.info(f"Starting enrichment for: {state.get('company_input', 'unknown')}")

    committed = await orchestrator.submit_enrichment(state.get("company_input", ""))
    if committed:
        state.setdefault("completed", []).append(ENRICHMENT)
        logger.info("Enrichment stage completed")
    else:
        error = orchestrator.status(ENRICHMENT)["error"] or "Company input is required"
        logger.error(f"Enrichment failed: {error}")
        state.setdefault("errors", []).append(f"enrichment: {error}")

    return state
