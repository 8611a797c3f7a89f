"""
Request/Response Schemas

Pydantic models for every flow input and output, plus the chat message and
problem spec entities. Attributes are snake_case in Python and camelCase on
the wire (problemStatement, expectedOutput, codeSkeleton, responseLength).
"""

from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Type, TypeVar, Union

from pydantic import (
    AfterValidator,
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

from codegym_ai.errors import InvalidInputError

Language = Literal["java", "python", "c"]
Complexity = Literal["easy", "medium", "hard"]
ResponseLength = Literal["short", "medium", "full"]
Sender = Literal["user", "bot"]
# Canonical correctness vocabulary (4 levels)
RunStatus = Literal["correct", "halfway", "moderate", "fail"]

LANGUAGES: List[str] = ["java", "python", "c"]
COMPLEXITIES: List[str] = ["easy", "medium", "hard"]
RESPONSE_LENGTHS: List[str] = ["short", "medium", "full"]
RUN_STATUSES: List[str] = ["correct", "halfway", "moderate", "fail"]


def _require_text(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be empty")
    return value


NonEmptyStr = Annotated[str, AfterValidator(_require_text)]


class CamelModel(BaseModel):
    """Base model: camelCase aliases, population by either name."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# ==================== Entities ====================

class ProblemSpec(CamelModel):
    """What the learner asked for. Replaced wholesale, never edited."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    topic: NonEmptyStr
    language: Language
    complexity: Complexity


class ChatTurn(CamelModel):
    """One replayed turn of conversation history."""
    sender: Sender
    text: str


class ChatMessage(CamelModel):
    """A chat message as stored in the session and in local storage."""
    id: str
    sender: Sender
    text: str
    timestamp: datetime = Field(default_factory=datetime.now)
    response_length: ResponseLength = "medium"

    def as_turn(self) -> ChatTurn:
        return ChatTurn(sender=self.sender, text=self.text)


# ==================== Flow inputs ====================

class GenerateProblemInput(CamelModel):
    topic: NonEmptyStr
    language: Language
    complexity: Complexity = "medium"
    hints: Optional[str] = None


class CheckCodeInput(CamelModel):
    code: NonEmptyStr
    language: Language
    problem: Optional[str] = None


class RunCodeInput(CamelModel):
    code: NonEmptyStr
    language: Language
    problem_statement: str = Field(
        validation_alias=AliasChoices("problemStatement", "problem_statement", "problem"),
        serialization_alias="problemStatement",
    )
    expected_output: str = ""


class ChatbotInput(CamelModel):
    question: NonEmptyStr
    problem_statement: str
    code: Optional[str] = None
    language: Language
    history: List[ChatTurn] = Field(default_factory=list)
    response_length: ResponseLength = "medium"

    @field_validator("history", mode="before")
    @classmethod
    def _none_history(cls, value):
        return [] if value is None else value


class EnhanceProblemInput(CamelModel):
    topic: str
    language: Language
    complexity: Complexity
    problem_statement: NonEmptyStr = Field(
        validation_alias=AliasChoices("problemStatement", "problem_statement", "rawProblem"),
        serialization_alias="problemStatement",
    )
    expected_output: str = ""


# ==================== Flow outputs ====================

class Problem(CamelModel):
    """A generated or imported coding problem."""
    problem_statement: str
    expected_output: str
    code_skeleton: str = ""

    @field_validator("code_skeleton", mode="before")
    @classmethod
    def _none_skeleton(cls, value):
        return "" if value is None else value


class CheckResult(CamelModel):
    feedback: str
    suggestions: str


class RunResult(CamelModel):
    status: RunStatus
    output: str


class ChatbotAnswer(CamelModel):
    answer: str


ModelT = TypeVar("ModelT", bound=BaseModel)


def validate_payload(
    model: Type[ModelT],
    flow: str,
    payload: Union[ModelT, Dict[str, Any], None],
) -> ModelT:
    """
    Validate a raw payload into a typed flow input.

    Args:
        model: Pydantic model to validate against
        flow: Flow name used in the error message
        payload: Raw mapping, or an already validated model instance

    Returns:
        Validated model instance

    Raises:
        InvalidInputError: Listing every missing or malformed field
    """
    if isinstance(payload, model):
        return payload
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(by_alias=True)
    if not isinstance(payload, dict):
        raise InvalidInputError(flow, [{"field": "body", "message": "expected a JSON object"}])
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        errors = []
        for err in e.errors():
            loc = ".".join(str(part) for part in err.get("loc", ())) or "body"
            errors.append({"field": loc, "message": err.get("msg", "invalid value")})
        raise InvalidInputError(flow, errors) from e
