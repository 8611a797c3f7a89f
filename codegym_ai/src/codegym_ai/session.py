"""
Practice Session Orchestration

Client-side state machine for one learner: the current problem, the code
buffer, the last check and run results, the chat, pending flags and
toast-style notifications. User intents (generate, import, check, run, chat)
are coroutines that call the flows through a gateway.

Exactly one problem is current. Replacing it bumps a generation counter and
resets code, feedback, run result and chat together; check, run and chat
results that come back for a superseded problem are dropped.

Operations never raise: failures become notifications or bot messages.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from codegym_ai.catalog import DEFAULT_PROBLEM
from codegym_ai.chat_history import ChatHistory
from codegym_ai.config import Settings
from codegym_ai.gateway import FlowGateway
from codegym_ai.progress import ProgressTracker
from codegym_ai.schemas import (
    ChatbotInput,
    ChatMessage,
    CheckCodeInput,
    CheckResult,
    EnhanceProblemInput,
    GenerateProblemInput,
    Problem,
    ProblemSpec,
    ResponseLength,
    RunCodeInput,
    RunResult,
)
from codegym_ai.storage import InMemoryStore, JsonFileStore, KeyValueStore

logger = logging.getLogger(__name__)

NO_PROBLEM_REPLY = (
    "I need a coding problem to work with! Please wait for the problem to load, or generate a new one "
    "using the \"Generate Problem\" button. Once you have a problem, I can help you with specific questions about it."
)
STILL_LOADING_REPLY = "Please wait, I'm still loading the problem. Once it's ready, I can help you with it!"
CHAT_ERROR_REPLY = "Sorry, I encountered an error. Please try again."


@dataclass
class Notification:
    """A toast shown to the learner."""
    title: str
    description: str
    variant: str = "default"  # "default" or "destructive"


class PracticeSession:
    """
    One learner's practice state.

    Args:
        gateway: Route to the flows (in-process or HTTP)
        store: Persistence port for chat history and progress
        progress: Progress tracker (built on the store when omitted)
        clock: Time source, overridable in tests
    """

    def __init__(
        self,
        gateway: FlowGateway,
        store: Optional[KeyValueStore] = None,
        progress: Optional[ProgressTracker] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.gateway = gateway
        self.store = store if store is not None else InMemoryStore()
        self.chat = ChatHistory(self.store)
        self.progress = progress or ProgressTracker(self.store)
        self.clock = clock

        self.spec: ProblemSpec = DEFAULT_PROBLEM
        self.problem: Optional[Problem] = None
        self.code: str = ""
        self.feedback: Optional[CheckResult] = None
        self.run_result: Optional[RunResult] = None
        self.started_at: Optional[datetime] = None
        self.notifications: List[Notification] = []

        self.is_checking = False
        self.is_running = False
        self.is_typing = False

        self._loading = 0
        self._generation = 0
        self._solved_generation: Optional[int] = None

    @classmethod
    def from_settings(cls, settings: Settings, gateway: FlowGateway) -> "PracticeSession":
        """Session persisted to the JSON file named by settings.storage_path."""
        return cls(gateway, store=JsonFileStore(settings.storage_path))

    # ==================== State helpers ====================

    @property
    def topic(self) -> str:
        return self.spec.topic

    @property
    def language(self) -> str:
        return self.spec.language

    @property
    def complexity(self) -> str:
        return self.spec.complexity

    @property
    def is_generating(self) -> bool:
        """True while any generate or import is in flight."""
        return self._loading > 0

    @property
    def can_chat(self) -> bool:
        return self.problem is not None and not self.is_generating

    @property
    def can_check(self) -> bool:
        return self._has_work() and not self.is_checking and not self.is_running

    @property
    def can_run(self) -> bool:
        return self._has_work() and not self.is_running and not self.is_checking

    def _has_work(self) -> bool:
        return self.problem is not None and bool(self.code.strip())

    def notify(self, title: str, description: str, variant: str = "default") -> Notification:
        notification = Notification(title=title, description=description, variant=variant)
        self.notifications.append(notification)
        return notification

    def set_code(self, code: str) -> None:
        self.code = code

    def _install_problem(self, problem: Optional[Problem]) -> None:
        """Make problem current and reset everything derived from the old one."""
        self._generation += 1
        self.problem = problem
        self.code = problem.code_skeleton if problem else ""
        self.feedback = None
        self.run_result = None
        self.chat.clear()

    def _is_stale(self, generation: int, what: str) -> bool:
        if generation != self._generation:
            logger.info(f"Discarding {what} for a problem that has since been replaced")
            return True
        return False

    # ==================== Problem lifecycle ====================

    async def start(self) -> Optional[Problem]:
        """Load the default problem when nothing is loaded yet."""
        if self.problem is not None or self.is_generating:
            return self.problem
        return await self.generate_problem(
            DEFAULT_PROBLEM.topic, DEFAULT_PROBLEM.language, DEFAULT_PROBLEM.complexity
        )

    async def generate_problem(
        self,
        topic: str,
        language: str,
        complexity: str,
        hints: Optional[str] = None,
    ) -> Optional[Problem]:
        try:
            spec = ProblemSpec(topic=topic, language=language, complexity=complexity)
        except ValidationError:
            self.notify("Invalid Selection", "Please pick a topic, a language and a complexity.", "destructive")
            return None

        previous = (self.spec, self.problem, self.code, self.started_at)
        self.spec = spec
        self._install_problem(None)
        generation = self._generation
        self.started_at = self.clock()
        self._loading += 1

        try:
            problem = await self.gateway.generate_problem(
                GenerateProblemInput(topic=spec.topic, language=spec.language, complexity=spec.complexity, hints=hints)
            )
        except Exception as e:
            logger.error(f"Failed to generate problem: {e}", exc_info=True)
            if generation == self._generation:
                self.spec, restored, code, self.started_at = previous
                self._install_problem(restored)
                self.code = code
                self.notify("Error", "Could not generate a new coding problem. Please try again.", "destructive")
            return None
        finally:
            self._loading -= 1

        if self._is_stale(generation, "generated problem"):
            return None

        self.problem = problem
        self.code = problem.code_skeleton
        self.progress.record_attempt(spec.language, spec.complexity)
        return problem

    async def import_problem(
        self,
        problem_statement: str,
        expected_output: str,
        language: str,
        complexity: str,
        topic: str,
    ) -> Optional[Problem]:
        """
        Import a pasted problem, enhanced by the model when possible.

        If enhancement fails the raw pasted content becomes the problem
        verbatim, with an empty skeleton.
        """
        try:
            data = EnhanceProblemInput(
                topic=topic,
                language=language,
                complexity=complexity,
                problem_statement=problem_statement,
                expected_output=expected_output,
            )
            spec = ProblemSpec(topic=topic.strip() or "Imported Problem", language=language, complexity=complexity)
        except ValidationError:
            self.notify("Invalid Import", "Please paste a problem statement and pick a language and complexity.", "destructive")
            return None

        generation = self._generation
        self._loading += 1
        enhanced = True
        try:
            problem = await self.gateway.enhance_problem(data)
        except Exception as e:
            logger.error(f"Error processing imported problem, using raw content: {e}", exc_info=True)
            problem = Problem(
                problem_statement=data.problem_statement,
                expected_output=data.expected_output,
                code_skeleton="",
            )
            enhanced = False
        finally:
            self._loading -= 1

        if self._is_stale(generation, "imported problem"):
            return None

        self.spec = spec
        self._install_problem(problem)
        self.started_at = self.clock()
        self.progress.record_attempt(spec.language, spec.complexity)
        if enhanced:
            self.notify("Problem Imported Successfully!", f'Enhanced "{spec.topic}" problem is now ready to work on.')
        return problem

    # ==================== Code feedback ====================

    def _guard_code(self, verb: str) -> bool:
        if not self.code.strip():
            self.notify("Empty Code", f"Please write some code before {verb}.", "destructive")
            return False
        if self.problem is None:
            self.notify("No Problem", f"Please generate a problem first before {verb} code.", "destructive")
            return False
        return True

    async def check_code(self) -> Optional[CheckResult]:
        if not self._guard_code("checking"):
            return None

        data = CheckCodeInput(code=self.code, language=self.language, problem=self.problem.problem_statement)
        generation = self._generation
        self.feedback = None
        self.is_checking = True
        try:
            result = await self.gateway.check_code(data)
        except Exception as e:
            logger.error(f"Failed to check code: {e}", exc_info=True)
            if generation == self._generation:
                self.notify("Error", "Could not check your code. Please try again.", "destructive")
            return None
        finally:
            self.is_checking = False

        if self._is_stale(generation, "check result"):
            return None
        self.feedback = result
        return result

    async def run_code(self) -> Optional[RunResult]:
        if not self._guard_code("running"):
            return None

        data = RunCodeInput(
            code=self.code,
            language=self.language,
            problem_statement=self.problem.problem_statement,
            expected_output=self.problem.expected_output,
        )
        generation = self._generation
        self.run_result = None
        self.is_running = True
        try:
            result = await self.gateway.run_code(data)
        except Exception as e:
            logger.error(f"Failed to run code: {e}", exc_info=True)
            if generation == self._generation:
                self.notify("Error", "Failed to run code via AI.", "destructive")
            return None
        finally:
            self.is_running = False

        if self._is_stale(generation, "run result"):
            return None
        self.run_result = result
        if result.status == "correct" and self._solved_generation != generation:
            self._record_solve(generation)
        return result

    def _record_solve(self, generation: int) -> None:
        self._solved_generation = generation
        minutes = 0.0
        if self.started_at is not None:
            minutes = (self.clock() - self.started_at).total_seconds() / 60
        unlocked = self.progress.record_solve(self.language, self.complexity, minutes, solved_on=self.clock().date())
        self.notify("Problem Solved!", f'You solved "{self.topic}".')
        for achievement in unlocked:
            self.notify("Achievement Unlocked!", f"{achievement.icon} {achievement.name}: {achievement.description}")

    # ==================== Chat ====================

    async def send_chat_message(
        self,
        text: str,
        response_length: ResponseLength = "medium",
    ) -> Optional[ChatMessage]:
        """
        Append the learner's message, ask the chatbot and append its reply.

        The user message lands immediately. is_typing is set while waiting
        and always cleared afterwards. Returns the bot message, or None when
        the text was blank or the reply arrived for a replaced problem.
        """
        text = text.strip()
        if not text:
            return None

        self.chat.append("user", text, response_length)
        prior_turns = self.chat.turns(exclude_last=1)
        self.is_typing = True
        try:
            reply = await self._chat_reply(text, response_length, prior_turns)
        finally:
            self.is_typing = False

        if reply is None:
            return None
        return self.chat.append("bot", reply, response_length)

    async def _chat_reply(self, text, response_length, prior_turns) -> Optional[str]:
        if self.problem is None:
            return NO_PROBLEM_REPLY
        if self.is_generating:
            return STILL_LOADING_REPLY

        generation = self._generation
        try:
            answer = await self.gateway.ask_chatbot(
                ChatbotInput(
                    question=text,
                    problem_statement=self.problem.problem_statement,
                    code=self.code,
                    language=self.language,
                    history=prior_turns,
                    response_length=response_length,
                )
            )
        except Exception as e:
            logger.error(f"Chatbot error: {e}", exc_info=True)
            if self._is_stale(generation, "chat error"):
                return None
            return CHAT_ERROR_REPLY

        if self._is_stale(generation, "chat reply"):
            return None
        return answer.answer

    def new_chat(self) -> None:
        self.chat.clear()

    # ==================== Views ====================

    def snapshot(self) -> Dict[str, Any]:
        """Plain-data view of the session for rendering."""
        return {
            "spec": self.spec.to_wire(),
            "problem": self.problem.to_wire() if self.problem else None,
            "code": self.code,
            "feedback": self.feedback.to_wire() if self.feedback else None,
            "runResult": self.run_result.to_wire() if self.run_result else None,
            "chat": [m.to_wire() for m in self.chat],
            "isGenerating": self.is_generating,
            "isChecking": self.is_checking,
            "isRunning": self.is_running,
            "isTyping": self.is_typing,
            "progress": self._progress_view(),
        }

    def _progress_view(self) -> Dict[str, Any]:
        rec = self.progress.record
        return {
            "solvedProblems": rec.solved_problems,
            "totalProblems": rec.total_problems,
            "overallPercent": rec.overall_percent,
            "currentStreak": rec.current_streak,
            "languages": {lang: tally.percent for lang, tally in rec.languages.items()},
            "complexity": {level: tally.percent for level, tally in rec.complexity.items()},
            "unlocked": [a.id for a in rec.achievements if a.unlocked],
        }
