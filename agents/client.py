import os
import json
from typing import Any, Dict, Optional, TypedDict
import httpx
from loguru import logger

DEFAULT_AGENT_IDS = {
    "enrichment": "68fd2794a39d463331e03764",
    "leadership": "68fd27a071c6b27d6c8eb819",
    "outreach": "68fd27ba058210757bf63fd6",
}


class AgentResponse(TypedDict, total=False):
    """Result of one agent call."""
    success: bool
    response: Any                    # str | dict | None
    error: Optional[str]


def load_agent_ids() -> Dict[str, str]:
    """Resolve the per-stage agent identifiers from the environment."""
    return {
        "enrichment": os.getenv("COMPANY_ENRICHMENT_AGENT_ID", DEFAULT_AGENT_IDS["enrichment"]),
        "leadership": os.getenv("LEADERSHIP_DISCOVERY_AGENT_ID", DEFAULT_AGENT_IDS["leadership"]),
        "outreach": os.getenv("EMAIL_OUTREACH_AGENT_ID", DEFAULT_AGENT_IDS["outreach"]),
    }


class AgentClient:
    """Invokes natural-language agents over HTTP (with fallback to mock responses)."""

    def __init__(self):
        self.base_url = os.getenv("AGENT_API_URL")
        self.api_key = os.getenv("AGENT_API_KEY")
        self.timeout = float(os.getenv("AGENT_TIMEOUT", "60"))
        self.agent_ids = load_agent_ids()

        if not self.base_url:
            logger.warning("No agent API URL provided, using mock mode")

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def invoke(self, instruction: str, agent_id: str) -> AgentResponse:
        """
        Send an instruction to an agent.

        Args:
            instruction: Natural-language instruction text
            agent_id: Opaque agent identifier

        Returns:
            AgentResponse with success flag, payload and error message
        """
        if not self.base_url:
            logger.info(f"Mock mode: would call agent {agent_id}")
            return self._mock_response(agent_id)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.base_url,
                    json={"message": instruction, "agent_id": agent_id},
                    headers=self._get_headers()
                )
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Agent {agent_id} returned HTTP {e.response.status_code}")
            return {"success": False, "response": None, "error": f"Agent request failed with status {e.response.status_code}"}
        except httpx.HTTPError as e:
            logger.error(f"Agent {agent_id} call failed: {e}")
            return {"success": False, "response": None, "error": str(e) or "Agent request failed"}
        except json.JSONDecodeError:
            logger.error(f"Agent {agent_id} returned a non-JSON body")
            return {"success": False, "response": None, "error": "Agent returned an invalid response"}

        return self._parse_body(body)

    def _parse_body(self, body: Any) -> AgentResponse:
        """Map the agent endpoint body onto an AgentResponse."""
        if isinstance(body, dict) and "success" in body:
            return {
                "success": bool(body.get("success")),
                "response": body.get("response"),
                "error": body.get("error"),
            }
        # Endpoints that return the bare payload
        return {"success": True, "response": body, "error": None}

    def _mock_response(self, agent_id: str) -> AgentResponse:
        """Generate canned agent output for testing/fallback."""
        if agent_id == self.agent_ids["enrichment"]:
            payload = {
                "result": {
                    "company_overview": {
                        "domain": "mockcompany.com",
                        "description": "Mock company profile generated without an agent backend",
                        "year_founded": 2015,
                    },
                    "firmographics": {
                        "industry": "SaaS",
                        "revenue_range": "$10M - $50M",
                        "employee_count": 120,
                        "location": "San Francisco, CA",
                    },
                    "technology_stack": ["AWS", "Snowflake", {"title": "Python"}],
                    "recent_activity": [{"title": "Series B funding"}, "Launched new product line"],
                }
            }
            # Agents usually answer with text
            return {"success": True, "response": json.dumps(payload), "error": None}

        if agent_id == self.agent_ids["leadership"]:
            return {
                "success": True,
                "response": {
                    "result": {
                        "total_contacts_found": 2,
                        "leadership_team": [
                            {
                                "name": "Mock Person",
                                "title": "Director of Engineering",
                                "department": "Technology",
                                "seniority_level": "Director",
                                "linkedin_url": "https://linkedin.com/in/mockperson",
                                "email": "mock.person@mockcompany.com",
                                "relevance_score": 0.81,
                            },
                            {
                                "name": "Mock Executive",
                                "title": "Chief Revenue Officer",
                                "department": "Sales",
                                "seniority_level": "C-Level",
                                "linkedin_url": "https://linkedin.com/in/mockexecutive",
                                "email": "mock.executive@mockcompany.com",
                                "relevance_score": 0.93,
                            },
                        ],
                        "department_summary": {"Technology": 1, "Sales": 1},
                    }
                },
                "error": None,
            }

        if agent_id == self.agent_ids["outreach"]:
            # No send_results: the aggregator synthesizes them
            return {"success": True, "response": "Emails queued for delivery.", "error": None}

        return {"success": False, "response": None, "error": f"Unknown agent: {agent_id}"}


# Global agent client instance
agent_client = AgentClient()


async def call_agent(instruction: str, agent_id: str) -> AgentResponse:
    """Invoke an agent using the global client."""
    return await agent_client.invoke(instruction, agent_id)
