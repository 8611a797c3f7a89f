"""
Flow Actions

Thin forwarding layer between callers (HTTP routes, the in-process gateway)
and the flows. Input errors propagate untouched; upstream failures are logged
and re-raised as ActionError with a fixed user-facing message.
"""

import logging
from typing import Any, Dict, Union

from pydantic import BaseModel

from codegym_ai.errors import ActionError, ModelError
from codegym_ai.flows import CodeGymFlows
from codegym_ai.schemas import ChatbotAnswer, CheckResult, Problem, RunResult

logger = logging.getLogger(__name__)

Payload = Union[BaseModel, Dict[str, Any]]

ACTION_MESSAGES: Dict[str, str] = {
    "generate-problem": "Failed to generate problem.",
    "enhance-problem": "Failed to enhance imported problem.",
    "check-code": "Failed to check code.",
    "run-code": "Failed to run code.",
    "chatbot": "Failed to get response from chatbot.",
}


async def _forward(flows: CodeGymFlows, name: str, payload: Payload):
    flow = flows.by_name(name)
    try:
        return await flow.execute(payload)
    except ModelError as e:
        logger.error(f"❌ Error in {flow.name} action: {e.reason}")
        raise ActionError(ACTION_MESSAGES[flow.name]) from e


async def generate_problem_action(flows: CodeGymFlows, payload: Payload) -> Problem:
    return await _forward(flows, "generate-problem", payload)


async def enhance_problem_action(flows: CodeGymFlows, payload: Payload) -> Problem:
    return await _forward(flows, "enhance-problem", payload)


async def check_code_action(flows: CodeGymFlows, payload: Payload) -> CheckResult:
    return await _forward(flows, "check-code", payload)


async def run_code_action(flows: CodeGymFlows, payload: Payload) -> RunResult:
    return await _forward(flows, "run-code", payload)


async def ask_chatbot_action(flows: CodeGymFlows, payload: Payload) -> ChatbotAnswer:
    return await _forward(flows, "chatbot", payload)


ACTIONS = {
    "generate-problem": generate_problem_action,
    "enhance-problem": enhance_problem_action,
    "check-code": check_code_action,
    "run-code": run_code_action,
    "chatbot": ask_chatbot_action,
}
