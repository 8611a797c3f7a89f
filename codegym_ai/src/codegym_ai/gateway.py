"""
Flow Gateways

How a practice session reaches the flows. LocalGateway calls the actions in
the same process; HttpGateway posts JSON to the backend's flow endpoints.
Both return the canonical output models and raise on failure.
"""

import logging
from typing import Any, Dict, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from codegym_ai import actions
from codegym_ai.errors import GatewayError
from codegym_ai.flows import CodeGymFlows
from codegym_ai.schemas import (
    ChatbotAnswer,
    ChatbotInput,
    CheckCodeInput,
    CheckResult,
    EnhanceProblemInput,
    GenerateProblemInput,
    Problem,
    RunCodeInput,
    RunResult,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

FLOW_ROUTE_PREFIX = "/api/flows"


class FlowGateway:
    """Interface used by PracticeSession."""

    async def generate_problem(self, data: GenerateProblemInput) -> Problem:
        raise NotImplementedError

    async def enhance_problem(self, data: EnhanceProblemInput) -> Problem:
        raise NotImplementedError

    async def check_code(self, data: CheckCodeInput) -> CheckResult:
        raise NotImplementedError

    async def run_code(self, data: RunCodeInput) -> RunResult:
        raise NotImplementedError

    async def ask_chatbot(self, data: ChatbotInput) -> ChatbotAnswer:
        raise NotImplementedError


class LocalGateway(FlowGateway):
    """Calls the actions directly, like a server action would."""

    def __init__(self, flows: CodeGymFlows):
        self.flows = flows

    async def generate_problem(self, data):
        return await actions.generate_problem_action(self.flows, data)

    async def enhance_problem(self, data):
        return await actions.enhance_problem_action(self.flows, data)

    async def check_code(self, data):
        return await actions.check_code_action(self.flows, data)

    async def run_code(self, data):
        return await actions.run_code_action(self.flows, data)

    async def ask_chatbot(self, data):
        return await actions.ask_chatbot_action(self.flows, data)


class HttpGateway(FlowGateway):
    """
    Talks to the FastAPI flow endpoints.

    Each endpoint answers {"response": ...} on success and {"error": ...}
    with a non-2xx status on failure.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 90.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)

    async def aclose(self):
        await self.client.aclose()

    async def _post(self, flow: str, body: Dict[str, Any], model: Type[ModelT]) -> ModelT:
        path = f"{FLOW_ROUTE_PREFIX}/{flow}"
        try:
            response = await self.client.post(path, json=body)
        except httpx.HTTPError as e:
            logger.error(f"❌ POST {path} failed: {e}")
            raise GatewayError(f"Could not reach {flow} endpoint") from e

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        if response.status_code >= 400 or "error" in payload:
            message = payload.get("error") or f"{flow} endpoint returned {response.status_code}"
            raise GatewayError(message, status_code=response.status_code)

        try:
            return model.model_validate(payload.get("response"))
        except ValidationError as e:
            raise GatewayError(f"Unexpected {flow} response shape") from e

    async def generate_problem(self, data):
        return await self._post("generate-problem", data.to_wire(), Problem)

    async def enhance_problem(self, data):
        return await self._post("enhance-problem", data.to_wire(), Problem)

    async def check_code(self, data):
        return await self._post("check-code", data.to_wire(), CheckResult)

    async def run_code(self, data):
        return await self._post("run-code", data.to_wire(), RunResult)

    async def ask_chatbot(self, data):
        return await self._post("chatbot", data.to_wire(), ChatbotAnswer)
