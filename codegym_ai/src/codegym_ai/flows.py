"""
AI Flows

Each flow is a prompt-templated call to the hosted model with a declared
output schema:

1. generate-problem - new coding problem for a topic/language/complexity
2. enhance-problem  - clean up a problem pasted from another site
3. check-code       - code quality review
4. run-code         - correctness verdict (the model reasons, nothing executes)
5. chatbot          - hints and answers about the current problem

execute() is the strict path: invalid input raises InvalidInputError before
any model call, and any upstream or output problem raises ModelError.
run() is the safe path: input errors still fail fast, but a ModelError is
turned into the flow's fallback object.
"""

import logging
import re
from typing import Any, Dict, Generic, Optional, Type, TypeVar, Union

from pydantic import BaseModel

from codegym_ai.errors import ModelError
from codegym_ai.llm_client import LLMClient
from codegym_ai.markdown import (
    extract_code_skeleton,
    normalize_markdown,
    strip_code_fence,
    strip_emphasis,
)
from codegym_ai.prompts import (
    SYSTEM_PROMPTS,
    render_chatbot,
    render_check_code,
    render_enhance_problem,
    render_generate_problem,
    render_run_code,
)
from codegym_ai.schemas import (
    RUN_STATUSES,
    ChatbotAnswer,
    ChatbotInput,
    CheckCodeInput,
    CheckResult,
    EnhanceProblemInput,
    GenerateProblemInput,
    Problem,
    RunCodeInput,
    RunResult,
    validate_payload,
)

logger = logging.getLogger(__name__)

FALLBACK_CHAT_ANSWER = "Sorry, I encountered an error. Please try again."
FALLBACK_PROBLEM_STATEMENT = "Sorry, I couldn't generate a problem right now. Please try again."
FALLBACK_EXPECTED_OUTPUT = "No expected output is available because problem generation failed."
FALLBACK_FEEDBACK = "Sorry, I couldn't review your code right now. Please try again."
FALLBACK_RUN_OUTPUT = "**Status:** 🔴 FAIL\n\nSorry, I couldn't evaluate your code right now. Please try again."

# Older prompt revisions used a 3-level scale ending in "wrong"
LEGACY_STATUS_ALIASES = {"wrong": "fail"}

InputT = TypeVar("InputT", bound=BaseModel)
OutputT = TypeVar("OutputT", bound=BaseModel)


class Flow(Generic[InputT, OutputT]):
    """Base class: validate -> render -> model call -> normalize -> validate."""

    name: str = ""
    input_model: Type[BaseModel] = BaseModel
    output_model: Type[BaseModel] = BaseModel
    max_tokens: Optional[int] = None

    def __init__(self, client: LLMClient):
        self.client = client

    def validate(self, payload: Union[InputT, Dict[str, Any]]) -> InputT:
        return validate_payload(self.input_model, self.name, payload)

    def render(self, data: InputT) -> str:
        raise NotImplementedError

    def normalize(self, raw: Any, data: InputT) -> Dict[str, Any]:
        """Coerce the decoded model reply into the output model's shape."""
        if not isinstance(raw, dict):
            raise ValueError(f"expected a JSON object, got {type(raw).__name__}")
        return raw

    def check(self, output: OutputT, data: InputT) -> OutputT:
        """Structural checks the schema alone cannot express."""
        return output

    def fallback(self, data: InputT) -> OutputT:
        raise NotImplementedError

    def parse(self, raw: Any, data: InputT) -> OutputT:
        try:
            shaped = self.normalize(raw, data)
            output = self.output_model.model_validate(shaped)
            return self.check(output, data)
        except (ValueError, TypeError) as e:
            raise ModelError(self.name, f"malformed output: {e}") from e

    async def execute(self, payload: Union[InputT, Dict[str, Any]]) -> OutputT:
        data = self.validate(payload)
        prompt = self.render(data)
        raw = await self.client.complete_json(
            self.name, SYSTEM_PROMPTS[self.name], prompt, max_tokens=self.max_tokens
        )
        return self.parse(raw, data)

    async def run(self, payload: Union[InputT, Dict[str, Any]]) -> OutputT:
        data = self.validate(payload)
        try:
            return await self.execute(data)
        except ModelError as e:
            logger.warning(f"⚠️ [{self.name}] Falling back after model error: {e.reason}")
            return self.fallback(data)


def _first(raw: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return "\n".join(f"- {item}" for item in value)
    return str(value)


class _ProblemFlow(Flow):
    """Shared output handling for the two flows that produce a Problem."""

    output_model = Problem

    def normalize(self, raw, data):
        raw = super().normalize(raw, data)
        statement = normalize_markdown(_as_text(_first(raw, "problemStatement", "problem_statement")))
        expected = normalize_markdown(_as_text(_first(raw, "expectedOutput", "expected_output")))
        skeleton = strip_code_fence(_as_text(_first(raw, "codeSkeleton", "code_skeleton")))
        if not skeleton.strip():
            statement, skeleton = extract_code_skeleton(statement)
        return {
            "problemStatement": statement,
            "expectedOutput": expected,
            "codeSkeleton": skeleton,
        }

    def check(self, output, data):
        if not output.problem_statement.strip():
            raise ValueError("problemStatement is empty")
        if not output.expected_output.strip():
            raise ValueError("expectedOutput is empty")
        return output


class GenerateProblemFlow(_ProblemFlow):
    name = "generate-problem"
    input_model = GenerateProblemInput

    def render(self, data):
        return render_generate_problem(data)

    def fallback(self, data):
        return Problem(
            problem_statement=FALLBACK_PROBLEM_STATEMENT,
            expected_output=FALLBACK_EXPECTED_OUTPUT,
            code_skeleton="",
        )


class EnhanceProblemFlow(_ProblemFlow):
    name = "enhance-problem"
    input_model = EnhanceProblemInput

    def render(self, data):
        return render_enhance_problem(data)

    def fallback(self, data):
        # Degraded but usable: the learner keeps what they pasted
        return Problem(
            problem_statement=data.problem_statement,
            expected_output=data.expected_output,
            code_skeleton="",
        )


class CheckCodeFlow(Flow):
    name = "check-code"
    input_model = CheckCodeInput
    output_model = CheckResult

    def render(self, data):
        return render_check_code(data)

    def normalize(self, raw, data):
        raw = super().normalize(raw, data)
        return {
            "feedback": normalize_markdown(_as_text(raw.get("feedback"))),
            "suggestions": normalize_markdown(_as_text(raw.get("suggestions"))),
        }

    def check(self, output, data):
        if not output.feedback.strip():
            raise ValueError("feedback is empty")
        return output

    def fallback(self, data):
        return CheckResult(feedback=FALLBACK_FEEDBACK, suggestions="")


def normalize_status(value: Any) -> str:
    """
    Map a model status word onto the canonical vocabulary.

    Emoji tags and case are ignored ("🟢 CORRECT" -> "correct"), and the
    legacy "wrong" maps to "fail".

    Raises:
        ValueError: For anything outside the vocabulary
    """
    word = re.sub(r"[^a-z]", "", str(value or "").lower())
    word = LEGACY_STATUS_ALIASES.get(word, word)
    if word not in RUN_STATUSES:
        raise ValueError(f"unknown status {value!r}")
    return word


class RunCodeFlow(Flow):
    name = "run-code"
    input_model = RunCodeInput
    output_model = RunResult
    max_tokens = 400

    def render(self, data):
        return render_run_code(data)

    def normalize(self, raw, data):
        raw = super().normalize(raw, data)
        return {
            "status": normalize_status(raw.get("status")),
            "output": normalize_markdown(_as_text(raw.get("output"))),
        }

    def check(self, output, data):
        if not output.output.strip():
            raise ValueError("output is empty")
        return output

    def fallback(self, data):
        return RunResult(status="fail", output=FALLBACK_RUN_OUTPUT)


class ChatbotFlow(Flow):
    name = "chatbot"
    input_model = ChatbotInput
    output_model = ChatbotAnswer
    max_tokens = 500

    def render(self, data):
        return render_chatbot(data)

    def normalize(self, raw, data):
        # Replies come back as {"answer"}, {"response"} or a bare string
        if isinstance(raw, str):
            answer = raw
        elif isinstance(raw, dict):
            answer = _first(raw, "answer", "response")
            if answer is None:
                raise ValueError("reply has neither 'answer' nor 'response'")
        else:
            raise ValueError(f"unexpected reply type {type(raw).__name__}")
        return {"answer": strip_emphasis(str(answer)).strip()}

    def check(self, output, data):
        if not output.answer:
            raise ValueError("answer is empty")
        return output

    def fallback(self, data):
        return ChatbotAnswer(answer=FALLBACK_CHAT_ANSWER)


class CodeGymFlows:
    """The five flows sharing one model client."""

    def __init__(self, client: LLMClient):
        self.client = client
        self.generate_problem = GenerateProblemFlow(client)
        self.enhance_problem = EnhanceProblemFlow(client)
        self.check_code = CheckCodeFlow(client)
        self.run_code = RunCodeFlow(client)
        self.chatbot = ChatbotFlow(client)

    def by_name(self, name: str) -> Flow:
        flows = {
            flow.name: flow
            for flow in (
                self.generate_problem,
                self.enhance_problem,
                self.check_code,
                self.run_code,
                self.chatbot,
            )
        }
        if name not in flows:
            raise KeyError(f"Unknown flow: {name}")
        return flows[name]
