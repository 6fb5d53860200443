from loguru import logger
from langgraph.graph import StateGraph, START, END

from pipeline.orchestrator import PipelineOrchestrator
from pipeline.state import RunState
from pipeline.nodes.enrich import enrich
from pipeline.nodes.discover import discover
from pipeline.nodes.select_contacts import select_contacts
from pipeline.nodes.outreach import outreach
from pipeline.nodes.summarize import summarize


def _next_or_summarize(next_node: str):
    """Edge router: carry on while no stage has failed."""
    def decide(state: RunState) -> str:
        if state.get("errors"):
            logger.info(f"Stopping pipeline before {next_node}: {state['errors'][-1]}")
            return "summarize"
        return next_node
    return decide


def build_workflow(orchestrator: PipelineOrchestrator):
    """Build the one-shot enrichment -> leadership -> outreach workflow."""
    workflow = StateGraph(RunState)

    async def enrich_node(state: RunState) -> RunState:
        return await enrich(state, orchestrator)

    async def discover_node(state: RunState) -> RunState:
        return await discover(state, orchestrator)

    async def select_node(state: RunState) -> RunState:
        return await select_contacts(state, orchestrator)

    async def outreach_node(state: RunState) -> RunState:
        return await outreach(state, orchestrator)

    async def summarize_node(state: RunState) -> RunState:
        return await summarize(state, orchestrator)

    # Add nodes
    workflow.add_node("enrich", enrich_node)
    workflow.add_node("discover", discover_node)
    workflow.add_node("select", select_node)
    workflow.add_node("outreach", outreach_node)
    workflow.add_node("summarize", summarize_node)

    # Add edges
    workflow.add_edge(START, "enrich")
    workflow.add_conditional_edges(
        "enrich",
        _next_or_summarize("discover"),
        {"discover": "discover", "summarize": "summarize"}
    )
    workflow.add_conditional_edges(
        "discover",
        _next_or_summarize("select"),
        {"select": "select", "summarize": "summarize"}
    )
    workflow.add_conditional_edges(
        "select",
        _next_or_summarize("outreach"),
        {"outreach": "outreach", "summarize": "summarize"}
    )
    workflow.add_edge("outreach", "summarize")
    workflow.add_edge("summarize", END)

    return workflow.compile()


async def run_pipeline(orchestrator: PipelineOrchestrator, request: RunState) -> RunState:
    """Execute every stage in order against ``orchestrator``."""
    initial_state: RunState = {
        "company_input": request.get("company_input", ""),
        "filters": request.get("filters") or {},
        "email_template": request.get("email_template") or "professional",
        "custom_text": request.get("custom_text") or "",
        "completed": [],
        "errors": [],
    }
    graph = build_workflow(orchestrator)
    return await graph.ainvoke(initial_state)
