import os
import time
from typing import Any, Dict, Literal, Optional
from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Import our modules
from agents.client import agent_client
from pipeline.orchestrator import PipelineOrchestrator
from pipeline.state import ENRICHMENT, LEADERSHIP, OUTREACH
from pipeline.templates import format_timestamp, relevance_band
from pipeline.workflow import run_pipeline

# Configure logging
logger.add(os.getenv("LOG_FILE", "logs/app.log"), rotation="1 day", retention="7 days", level="INFO")

# Initialize FastAPI app
app = FastAPI(
    title="Sales Intelligence Pipeline",
    description="Company enrichment, leadership discovery and email outreach driven by AI agents",
    version="1.0.0"
)

# In-memory pipeline state, reset on restart
orchestrator = PipelineOrchestrator(invoke=agent_client.invoke)


class EnrichmentRequest(BaseModel):
    company_input: str


class FiltersRequest(BaseModel):
    title_filter: Optional[str] = ""
    seniority_filter: Optional[str] = ""
    department_filter: Optional[str] = ""


class DiscoveryRequest(BaseModel):
    filters: Optional[FiltersRequest] = None


class StageRequest(BaseModel):
    stage: Literal["enrichment", "leadership", "outreach"]


class ToggleRequest(BaseModel):
    email: str


class SelectVisibleRequest(BaseModel):
    checked: bool = True


class TemplateRequest(BaseModel):
    template: Literal["professional", "friendly", "custom"]
    custom_text: Optional[str] = None


class RunRequest(BaseModel):
    company_input: str
    filters: Optional[FiltersRequest] = None
    email_template: Literal["professional", "friendly", "custom"] = "professional"
    custom_text: str = ""


def stage_response(stage: str, committed: bool) -> JSONResponse:
    """Stage outcome plus the resulting state; failures live in the state, not the status code."""
    status = orchestrator.status(stage)
    return JSONResponse(
        status_code=200,
        content={
            "status": "success" if committed else "error",
            "error": status["error"],
            "state": orchestrator.snapshot()
        }
    )


def campaign_view(campaign: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if campaign is None:
        return None
    view = dict(campaign)
    view["per_recipient"] = [
        {**result, "sent_at": format_timestamp(result["timestamp"])}
        for result in campaign["per_recipient"]
    ]
    return view


@app.get("/health")
def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "version": "1.0.0",
        "services": {
            "agents": "connected" if agent_client.base_url else "mock",
            "workflow": "ready"
        }
    }


@app.get("/state")
def get_state():
    """Full pipeline state snapshot."""
    state = orchestrator.snapshot()
    state["campaign"] = campaign_view(state["campaign"])
    return state


@app.put("/state/stage")
def set_stage(body: StageRequest):
    orchestrator.set_active_stage(body.stage)
    return {"active_stage": body.stage}


@app.post("/enrichment")
async def enrich_company(body: EnrichmentRequest):
    """Run the company enrichment agent."""
    if not body.company_input.strip():
        raise HTTPException(status_code=422, detail="company_input must not be blank")

    logger.info(f"Enrichment requested for: {body.company_input}")
    committed = await orchestrator.submit_enrichment(body.company_input)
    return stage_response(ENRICHMENT, committed)


@app.put("/leadership/filters")
def update_filters(body: FiltersRequest):
    orchestrator.set_filters(body.model_dump())
    return {
        "filters": orchestrator.snapshot()["filters"],
        "visible": len(orchestrator.visible_contacts()),
        "all_selected": orchestrator.all_visible_selected()
    }


@app.post("/leadership")
async def discover_leadership(body: Optional[DiscoveryRequest] = None):
    """Run the leadership discovery agent for the enriched company."""
    filters = body.filters.model_dump() if body and body.filters else None
    committed = await orchestrator.submit_leadership_discovery(filters)
    return stage_response(LEADERSHIP, committed)


@app.get("/leadership/contacts")
def list_contacts():
    """Filtered contact view with selection flags."""
    snapshot = orchestrator.snapshot()
    selected = set(snapshot["selection"])
    return {
        "contacts": [
            {
                **contact,
                "selected": contact["email"] in selected,
                "relevance_band": relevance_band(contact["relevance_score"])
            }
            for contact in orchestrator.visible_contacts()
        ],
        "all_selected": orchestrator.all_visible_selected(),
        "selected_count": len(selected)
    }


@app.post("/selection/toggle")
def toggle_contact(body: ToggleRequest):
    try:
        selected = orchestrator.toggle_contact(body.email)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"email": body.email, "selected": selected, "selection": orchestrator.snapshot()["selection"]}


@app.post("/selection/visible")
def select_visible(body: SelectVisibleRequest):
    """Header checkbox: select the filtered view, or clear the selection."""
    orchestrator.set_all_visible_selected(body.checked)
    return {"selection": orchestrator.snapshot()["selection"], "all_selected": orchestrator.all_visible_selected()}


@app.delete("/selection")
def clear_selection():
    orchestrator.clear_selection()
    return {"selection": []}


@app.put("/outreach/template")
def set_template(body: TemplateRequest):
    orchestrator.set_email_template(body.template, body.custom_text)
    return {"template": body.template, "preview": orchestrator.preview()}


@app.get("/outreach/preview")
def preview_email():
    """Representative email for the first selected contact."""
    snapshot = orchestrator.snapshot()
    return {
        "template": snapshot["email_template"],
        "recipients": len(snapshot["selection"]),
        "preview": orchestrator.preview()
    }


@app.post("/outreach")
async def send_outreach():
    """Run the email outreach agent for the selected contacts."""
    committed = await orchestrator.submit_outreach()
    return stage_response(OUTREACH, committed)


@app.post("/pipeline/run")
async def run_full_pipeline(body: RunRequest):
    """Run enrichment, discovery, select-all and outreach in one go."""
    start_time = time.time()
    logger.info(f"Full pipeline run requested for: {body.company_input}")

    result = await run_pipeline(orchestrator, {
        "company_input": body.company_input,
        "filters": body.filters.model_dump() if body.filters else {},
        "email_template": body.email_template,
        "custom_text": body.custom_text
    })

    processing_time = time.time() - start_time
    logger.info(f"Pipeline run finished in {processing_time:.2f}s")

    return JSONResponse(
        status_code=200,
        content={
            "status": "error" if result.get("errors") else "success",
            "processing_time": processing_time,
            "completed": result.get("completed", []),
            "errors": result.get("errors", []),
            "summary": result.get("summary", {})
        }
    )


# Error handlers
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={"status": "error", "message": "Internal server error"}
    )


if __name__ == "__main__":
    import uvicorn

    # Create logs directory if it doesn't exist
    os.makedirs("logs", exist_ok=True)

    logger.info("Starting Sales Intelligence Pipeline")

    uvicorn.run(
        "app:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
