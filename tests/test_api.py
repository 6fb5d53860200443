import pytest
from unittest.mock import patch
from fastapi.testclient import TestClient

from agents.client import DEFAULT_AGENT_IDS
from pipeline.orchestrator import PipelineOrchestrator
from conftest import FakeAgent, ok, company_payload, leadership_payload

import app as app_module


class TestApiEndpoints:
    """Test the HTTP surface against a scripted agent."""

    def setup_method(self):
        self.agent = FakeAgent({
            "enrichment": ok(company_payload()),
            "leadership": ok(leadership_payload()),
            "outreach": ok({
                "campaign_summary": {"total_recipients": 1, "successfully_sent": 1, "failed": 0},
                "send_results": [
                    {"recipient_email": "sarah@acme.com", "recipient_name": "Sarah Johnson",
                     "status": "sent", "timestamp": "2026-10-17T15:30:00Z"}
                ],
            }),
        })
        self.orchestrator = PipelineOrchestrator(invoke=self.agent, agent_ids=DEFAULT_AGENT_IDS)
        self.patcher = patch("app.orchestrator", self.orchestrator)
        self.patcher.start()
        self.client = TestClient(app_module.app)

    def teardown_method(self):
        self.patcher.stop()

    def enrich_and_discover(self):
        self.client.post("/enrichment", json={"company_input": "Acme"})
        self.client.post("/leadership", json={})

    def test_health(self):
        response = self.client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["services"]["agents"] in ("connected", "mock")

    def test_initial_state(self):
        body = self.client.get("/state").json()

        assert body["active_stage"] == "enrichment"
        assert body["company"] is None
        assert body["campaign"] is None

    def test_enrichment(self):
        response = self.client.post("/enrichment", json={"company_input": "Acme"})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert body["error"] is None
        assert body["state"]["company"]["name"] == "Acme Corp"

    def test_enrichment_blank_input(self):
        response = self.client.post("/enrichment", json={"company_input": "   "})

        assert response.status_code == 422
        assert self.agent.calls == []

    def test_enrichment_failure_is_reported_in_body(self):
        self.agent.responses["enrichment"] = {"success": False, "error": "Agent overloaded"}
        response = self.client.post("/enrichment", json={"company_input": "Acme"})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "error"
        assert body["error"] == "Agent overloaded"
        assert body["state"]["per_stage"]["enrichment"] == {"busy": False, "error": "Agent overloaded"}

    def test_leadership_requires_company(self):
        body = self.client.post("/leadership").json()

        assert body["status"] == "error"
        assert body["error"] == "Please enrich a company first"

    def test_leadership_with_filters(self):
        self.client.post("/enrichment", json={"company_input": "Acme"})
        body = self.client.post("/leadership", json={"filters": {"department_filter": "Sales"}}).json()

        assert body["status"] == "success"
        assert body["state"]["active_stage"] == "leadership"
        assert body["state"]["filters"]["department_filter"] == "Sales"

        contacts = self.client.get("/leadership/contacts").json()
        assert [c["email"] for c in contacts["contacts"]] == ["sarah@acme.com", "priya@acme.com"]
        assert contacts["contacts"][0]["relevance_band"] == "good"
        assert contacts["all_selected"] is False

    def test_update_filters(self):
        self.enrich_and_discover()
        body = self.client.put("/leadership/filters", json={"seniority_filter": "C-Level"}).json()

        assert body["filters"]["seniority_filter"] == "C-Level"
        assert body["visible"] == 2

    def test_toggle_and_selection_flags(self):
        self.enrich_and_discover()
        body = self.client.post("/selection/toggle", json={"email": "sarah@acme.com"}).json()
        assert body["selected"] is True
        assert body["selection"] == ["sarah@acme.com"]

        contacts = self.client.get("/leadership/contacts").json()
        flags = {c["email"]: c["selected"] for c in contacts["contacts"]}
        assert flags["sarah@acme.com"] is True
        assert flags["john@acme.com"] is False
        assert contacts["selected_count"] == 1

        body = self.client.post("/selection/toggle", json={"email": "sarah@acme.com"}).json()
        assert body["selected"] is False

    def test_toggle_unknown_contact(self):
        self.enrich_and_discover()
        response = self.client.post("/selection/toggle", json={"email": "nobody@acme.com"})
        assert response.status_code == 404

    def test_select_visible_and_clear(self):
        self.enrich_and_discover()
        self.client.put("/leadership/filters", json={"department_filter": "Sales"})

        body = self.client.post("/selection/visible", json={"checked": True}).json()
        assert body["selection"] == ["sarah@acme.com", "priya@acme.com"]
        assert body["all_selected"] is True

        body = self.client.delete("/selection").json()
        assert body["selection"] == []
        assert self.client.get("/state").json()["selection"] == []

    def test_set_stage(self):
        assert self.client.put("/state/stage", json={"stage": "outreach"}).json() == {"active_stage": "outreach"}
        assert self.client.put("/state/stage", json={"stage": "billing"}).status_code == 422

    def test_template_and_preview(self):
        body = self.client.get("/outreach/preview").json()
        assert body["preview"] == "Select contacts and company data to preview email"

        self.enrich_and_discover()
        self.client.post("/selection/toggle", json={"email": "sarah@acme.com"})

        body = self.client.put("/outreach/template", json={"template": "friendly"}).json()
        assert body["preview"].startswith("Hi Sarah Johnson,")

        body = self.client.put("/outreach/template", json={"template": "custom", "custom_text": "Hello!"}).json()
        assert body["preview"] == "Hello!"
        assert self.client.get("/outreach/preview").json()["recipients"] == 1

    def test_outreach_requires_selection(self):
        self.enrich_and_discover()
        body = self.client.post("/outreach").json()

        assert body["status"] == "error"
        assert body["error"] == "Please select contacts to send emails to"

    def test_outreach(self):
        self.enrich_and_discover()
        self.client.post("/selection/toggle", json={"email": "sarah@acme.com"})

        body = self.client.post("/outreach").json()
        assert body["status"] == "success"
        assert body["state"]["campaign"]["successfully_sent"] == 1

        campaign = self.client.get("/state").json()["campaign"]
        assert campaign["per_recipient"][0]["sent_at"] == "Oct 17, 2026, 3:30 PM"

    def test_pipeline_run(self):
        body = self.client.post("/pipeline/run", json={
            "company_input": "Acme",
            "filters": {"title_filter": "VP"},
        }).json()

        assert body["status"] == "success"
        assert body["completed"] == ["enrichment", "leadership", "outreach"]
        assert body["summary"]["selected"] == 1
        assert body["errors"] == []

    def test_pipeline_run_failure(self):
        self.agent.responses["leadership"] = RuntimeError("discovery backend down")
        body = self.client.post("/pipeline/run", json={"company_input": "Acme"}).json()

        assert body["status"] == "error"
        assert body["errors"] == ["leadership: discovery backend down"]
        assert body["completed"] == ["enrichment"]

    def test_unhandled_errors_return_500(self):
        client = TestClient(app_module.app, raise_server_exceptions=False)
        with patch.object(self.orchestrator, "snapshot", side_effect=RuntimeError("boom")):
            response = client.get("/state")

        assert response.status_code == 500
        assert response.json() == {"status": "error", "message": "Internal server error"}
